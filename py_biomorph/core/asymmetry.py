"""
Left/right asymmetry field along the spine.

Each non-spine node is projected onto the spine polyline in the layout
plane. Its normalised arc position and the side of the spine it lies on
(sign of the 2D cross product) define a signed Gaussian bump, weighted by
node degree. The summed field is normalised by its largest magnitude so it
stays within [-1, 1]; mirror-symmetric placements cancel to zero.
"""

from dataclasses import dataclass
from typing import List, Sequence

import numpy as np
import structlog
from shapely.geometry import LineString, Point

logger = structlog.get_logger()


@dataclass
class AsymmetryOptions:
    """Bias field parameters."""

    sigma: float = 0.12  # Gaussian width in normalised arc units
    degree_bias: float = 0.5  # Exponent applied to max(1, degree)

    def __post_init__(self):
        if self.sigma <= 0:
            raise ValueError("sigma must be positive")


@dataclass
class SpineProjection:
    """Projection of a 2D point onto the spine polyline."""

    arc: float  # Normalised arc position in [0, 1]
    side: float  # +1 left, -1 right, 0 on the line
    segment: int


class SpineProjector:
    """Projects layout points onto the spine polyline."""

    def __init__(self, spine_points: np.ndarray):
        self.points = np.asarray(spine_points, dtype=np.float64)
        self.line = LineString(self.points)
        self.length = float(self.line.length)
        seg = np.linalg.norm(np.diff(self.points, axis=0), axis=1)
        self.cumulative = np.concatenate([[0.0], np.cumsum(seg)])

    @property
    def degenerate(self) -> bool:
        return self.length < 1e-9

    def project(self, point: Sequence[float]) -> SpineProjection:
        """Nearest point on the polyline, clamped per segment."""
        if self.degenerate:
            return SpineProjection(arc=0.0, side=0.0, segment=0)

        distance = float(self.line.project(Point(point[0], point[1])))
        segment = int(np.searchsorted(self.cumulative, distance, side="right") - 1)
        segment = min(max(segment, 0), len(self.points) - 2)

        a = self.points[segment]
        b = self.points[segment + 1]
        cross = (b[0] - a[0]) * (point[1] - a[1]) - (b[1] - a[1]) * (point[0] - a[0])
        return SpineProjection(arc=distance / self.length, side=float(np.sign(cross)), segment=segment)


def compute_asymmetry(
    spine_points: np.ndarray,
    side_points: np.ndarray,
    side_degrees: Sequence[int],
    sample_count: int,
    options: AsymmetryOptions = None,
) -> np.ndarray:
    """
    Compute the signed bias field.

    Args:
        spine_points: (m, 2) layout positions of the spine path
        side_points: (k, 2) layout positions of non-spine nodes
        side_degrees: Degree of each non-spine node
        sample_count: Number of spine samples
        options: Field options

    Returns:
        (sample_count,) array with values in [-1, 1]
    """
    opts = options or AsymmetryOptions()
    field = np.zeros(sample_count, dtype=np.float64)
    side_points = np.asarray(side_points, dtype=np.float64).reshape(-1, 2)
    if len(side_points) == 0 or sample_count == 0:
        return field

    projector = SpineProjector(spine_points)
    if projector.degenerate:
        logger.debug("Zero-length spine polyline, asymmetry left at zero")
        return field

    s = np.linspace(0.0, 1.0, sample_count)
    two_sigma_sq = 2.0 * opts.sigma * opts.sigma
    for point, degree in zip(side_points, side_degrees):
        proj = projector.project(point)
        if proj.side == 0.0:
            continue
        weight = max(1, int(degree)) ** opts.degree_bias
        field += proj.side * weight * np.exp(-((s - proj.arc) ** 2) / two_sigma_sq)

    peak = float(np.max(np.abs(field)))
    if peak < 1e-9:
        return np.zeros(sample_count, dtype=np.float64)
    return field / peak


def non_spine_nodes(node_ids: Sequence[int], spine: Sequence[int]) -> List[int]:
    """Nodes that are not on the spine, in input order."""
    on_spine = set(spine)
    return [int(n) for n in node_ids if int(n) not in on_spine]
