"""
Fruchterman-Reingold force-directed 2D layout of the whole genome.

Every node repels every other node with force ``k^2 / d`` and adjacent
nodes attract with force ``d^2 / k`` where ``k = sqrt(area / n)``. Each
iteration moves a node by its net displacement clamped to a step budget
that decays geometrically. The result is re-centred and rescaled to the
requested body length.
"""

from dataclasses import dataclass
from typing import Dict

import numpy as np
import structlog

from ..utils.random import SeedLike, resolve_prng
from .graph_index import GraphIndex

logger = structlog.get_logger()


@dataclass
class LayoutOptions:
    """Force layout parameters."""

    iterations: int = 120  # Fixed iteration count
    area: float = 1.0  # Layout area used to derive the ideal edge length k
    initial_step: float = 0.1  # Step budget at iteration 0, relative to sqrt(area)
    cooling: float = 0.96  # Step budget multiplier per iteration
    min_distance: float = 1e-6  # Floor for pairwise distances

    def __post_init__(self):
        if self.iterations < 0:
            raise ValueError("iterations must be non-negative")
        if self.area <= 0:
            raise ValueError("area must be positive")
        if not 0 < self.cooling <= 1:
            raise ValueError("cooling must be in (0, 1]")


@dataclass
class Layout:
    """2D node positions aligned with a GraphIndex's local order."""

    node_ids: np.ndarray
    positions: np.ndarray  # (n, 2)

    def position_of(self, node_id: int) -> np.ndarray:
        return self.positions[self.lookup[node_id]]

    @property
    def lookup(self) -> Dict[int, int]:
        return {int(node): i for i, node in enumerate(self.node_ids)}


class ForceLayout:
    """Places all genome nodes in the plane."""

    def __init__(self, options: LayoutOptions = None):
        self.options = options or LayoutOptions()

    def run(self, index: GraphIndex, body_length: float = 1.0, seed: SeedLike = None) -> Layout:
        """
        Lay out every node of the graph.

        Args:
            index: Graph index
            body_length: Largest extent of the final layout
            seed: Seed or AleaPRNG for the initial placement

        Returns:
            Layout with centred positions scaled to ``body_length``
        """
        opts = self.options
        n = index.node_count
        if n == 0:
            return Layout(node_ids=index.node_ids.copy(), positions=np.zeros((0, 2)))

        prng = resolve_prng(seed)
        side = np.sqrt(opts.area)
        positions = np.array(
            [[prng.uniform(-side / 2, side / 2), prng.uniform(-side / 2, side / 2)] for _ in range(n)],
            dtype=np.float64,
        )

        k = np.sqrt(opts.area / n)
        step = opts.initial_step * side
        edges = np.array(index.edges, dtype=np.int64).reshape(-1, 2)

        for _ in range(opts.iterations):
            delta = positions[:, None, :] - positions[None, :, :]
            dist = np.maximum(np.linalg.norm(delta, axis=2), opts.min_distance)
            np.fill_diagonal(dist, np.inf)

            # repulsion: k^2 / d along the unit separation
            disp = np.sum(delta * (k * k / (dist * dist))[:, :, None], axis=1)

            if len(edges):
                d_edge = positions[edges[:, 0]] - positions[edges[:, 1]]
                length = np.maximum(np.linalg.norm(d_edge, axis=1), opts.min_distance)
                pull = d_edge * (length / k)[:, None]  # unit * d^2 / k
                np.add.at(disp, edges[:, 0], -pull)
                np.add.at(disp, edges[:, 1], pull)

            magnitude = np.linalg.norm(disp, axis=1)
            scale = np.minimum(magnitude, step) / np.maximum(magnitude, opts.min_distance)
            positions += disp * scale[:, None]
            step *= opts.cooling

        positions -= positions.mean(axis=0)
        extent = float(np.max(np.ptp(positions, axis=0)))
        if extent > opts.min_distance:
            positions *= body_length / extent
        else:
            logger.debug("Layout collapsed, skipping rescale", nodes=n)

        logger.debug("Layout complete", nodes=n, iterations=opts.iterations, k=float(k))
        return Layout(node_ids=index.node_ids.copy(), positions=positions)
