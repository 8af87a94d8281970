"""
Body generation pipeline.

Runs every stage for one genome:

1. index the graph and extract the spine (double BFS)
2. derive the complexity scale from node and edge counts
3. force-directed layout of all nodes
4. arc-length spine curve with camber, rotation-minimising frames
5. asymmetry field from the non-spine nodes
6. body sweep, limb tubes and fins
7. vertex welding and orientation normalisation

A degenerate genome is logged and skipped; the previously generated body
stays available as ``last_result``.
"""

from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np
import structlog

from ..utils.random import SeedLike, resolve_prng
from .accessories import AccessoryGeometry, AccessoryOptions, compute_anchors
from .asymmetry import AsymmetryOptions, compute_asymmetry, non_spine_nodes
from .body import BodyOptions, BodySynthesizer, ComplexityOptions, complexity_scale
from .force_layout import ForceLayout, Layout, LayoutOptions
from .frame_field import FrameField, propagate_frames
from .graph_index import Graph, GraphIndex
from .mesh import MeshBuffers
from .orientation import normalize_orientation
from .rule_engine import GraphLike, dedupe
from .skeleton import DegenerateGraphError, extract_spine
from .spine import SpineOptions, build_spine
from .topology import weld_vertices

logger = structlog.get_logger()


def default_weld_tolerance() -> float:
    """Weld distance from the environment-driven settings."""
    from ..config.settings import settings

    return settings.weld_tolerance


@dataclass
class GeneratorOptions:
    """All stage options for one generation run."""

    layout: LayoutOptions = field(default_factory=LayoutOptions)
    spine: SpineOptions = field(default_factory=SpineOptions)
    asymmetry: AsymmetryOptions = field(default_factory=AsymmetryOptions)
    body: BodyOptions = field(default_factory=BodyOptions)
    accessories: AccessoryOptions = field(default_factory=AccessoryOptions)
    complexity: ComplexityOptions = field(default_factory=ComplexityOptions)
    body_length: float = 1.0  # Spine layout extent before complexity scaling
    weld_tolerance: float = field(default_factory=default_weld_tolerance)
    include_limbs: bool = True
    include_fins: bool = True


@dataclass
class GeneratedBody:
    """Mesh plus the intermediate fields downstream consumers reuse."""

    mesh: MeshBuffers
    frames: FrameField
    asymmetry: np.ndarray
    spine: List[int]
    scale: float
    layout: Layout
    pre_weld_vertex_count: int
    body_triangle_count: int

    @property
    def sample_count(self) -> int:
        return len(self.frames)


class BodyGenerator:
    """Generates organic body meshes from genome graphs."""

    def __init__(self, options: Optional[GeneratorOptions] = None):
        self.options = options or GeneratorOptions()
        self.last_result: Optional[GeneratedBody] = None

    def generate(self, graph: GraphLike, seed: SeedLike = None) -> Optional[GeneratedBody]:
        """
        Generate a body for ``graph``.

        Args:
            graph: Genome graph or edge list
            seed: Seed or AleaPRNG for the layout

        Returns:
            GeneratedBody, or None for a degenerate graph (``last_result``
            is left untouched in that case)
        """
        genome = dedupe(graph)
        index = GraphIndex.build(genome)
        try:
            spine = extract_spine(index)
        except DegenerateGraphError as e:
            logger.warning(
                "Degenerate graph, skipping generation",
                nodes=index.node_count,
                edges=index.edge_count,
                reason=str(e),
            )
            return None

        result = self._build(genome, index, spine, resolve_prng(seed))
        self.last_result = result
        return result

    def _build(self, genome: Graph, index: GraphIndex, spine: List[int], prng) -> GeneratedBody:
        opts = self.options
        logger.info("Generating body", nodes=index.node_count, edges=index.edge_count, spine=len(spine))

        scale = complexity_scale(index.node_count, index.edge_count, opts.complexity)
        layout = ForceLayout(opts.layout).run(index, body_length=opts.body_length * scale, seed=prng)
        lookup = layout.lookup
        spine_2d = np.array([layout.positions[lookup[node]] for node in spine])

        curve = build_spine(spine_2d, opts.spine)
        frames = propagate_frames(curve.positions)

        side_nodes = non_spine_nodes(layout.node_ids, spine)
        bias = compute_asymmetry(
            spine_2d,
            np.array([layout.positions[lookup[node]] for node in side_nodes]).reshape(-1, 2),
            [index.degree_of(node) for node in side_nodes],
            curve.sample_count,
            opts.asymmetry,
        )

        synthesizer = BodySynthesizer(opts.body)
        mesh = synthesizer.build(frames, bias, scale)
        body_triangles = mesh.triangle_count

        radii_a, radii_b = synthesizer.semi_axes(curve.arc, bias, scale)
        accessories = AccessoryGeometry(opts.accessories)
        if opts.include_limbs:
            anchors = compute_anchors(layout.node_ids, layout.positions, spine_2d, frames, bias, radii_b)
            mesh.append(accessories.build_limbs(genome.edges, spine, anchors, frames, scale))
        if opts.include_fins:
            mesh.append(accessories.build_fins(frames, radii_a, radii_b, scale, opts.body.twist))

        pre_weld = mesh.vertex_count
        welded = weld_vertices(mesh, opts.weld_tolerance)
        oriented = normalize_orientation(welded.mesh, frames)

        logger.info(
            "Body generated",
            vertices=oriented.mesh.vertex_count,
            triangles=oriented.mesh.triangle_count,
            merged=welded.merged,
            scale=scale,
        )
        return GeneratedBody(
            mesh=oriented.mesh,
            frames=oriented.frames,
            asymmetry=bias,
            spine=spine,
            scale=scale,
            layout=layout,
            pre_weld_vertex_count=pre_weld,
            body_triangle_count=body_triangles,
        )


def generate_body(graph: GraphLike, options: Optional[GeneratorOptions] = None,
                  seed: SeedLike = None) -> Optional[GeneratedBody]:
    """One-shot convenience wrapper around ``BodyGenerator.generate``."""
    return BodyGenerator(options).generate(graph, seed=seed)
