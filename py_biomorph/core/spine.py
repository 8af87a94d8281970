"""
Spine curve construction.

Turns the 2D layout of the spine node path into a smooth 3D curve sampled at
evenly spaced arc-length positions, with a half-sine camber lifting the
middle of the body out of the layout plane.
"""

from dataclasses import dataclass

import numpy as np
import structlog
from scipy.interpolate import splev, splprep

logger = structlog.get_logger()


@dataclass
class SpineOptions:
    """Spine sampling parameters."""

    samples: int = 48  # Number of arc-length samples (>= 4)
    camber: float = 0.08  # Camber height as a fraction of spine length
    oversampling: int = 32  # Dense evaluations per control segment for arc length

    def __post_init__(self):
        if self.samples < 4:
            raise ValueError("spine needs at least 4 samples")
        if self.oversampling < 2:
            raise ValueError("oversampling must be at least 2")


@dataclass
class SpineCurve:
    """Arc-length sampled 3D spine."""

    positions: np.ndarray  # (samples, 3)
    arc: np.ndarray  # (samples,) normalised arc position in [0, 1]
    control_points: np.ndarray  # (m, 2) spine node layout positions
    length: float

    @property
    def sample_count(self) -> int:
        return len(self.positions)


def _chord_parameters(points: np.ndarray, min_step: float) -> np.ndarray:
    """Cumulative chord length, strictly increasing even for repeated points."""
    steps = np.linalg.norm(np.diff(points, axis=0), axis=1)
    steps = np.maximum(steps, min_step)
    return np.concatenate([[0.0], np.cumsum(steps)])


def build_spine(control_points: np.ndarray, options: SpineOptions = None) -> SpineCurve:
    """
    Interpolate and resample the spine.

    Args:
        control_points: (m, 2) layout positions of the spine nodes, m >= 2
        options: Spine options

    Returns:
        SpineCurve with ``options.samples`` evenly arc-length spaced points
    """
    opts = options or SpineOptions()
    points = np.asarray(control_points, dtype=np.float64)
    if len(points) < 2:
        raise ValueError("spine needs at least 2 control points")

    t = _chord_parameters(points, 1e-9)
    dense_count = max(opts.oversampling * (len(points) - 1), opts.samples * 4)
    t_dense = np.linspace(0.0, t[-1], dense_count)

    if len(points) == 2:
        dense = np.column_stack([np.interp(t_dense, t, points[:, d]) for d in range(2)])
    else:
        # interpolating B-spline (s=0), cubic once there are enough points
        tck, _ = splprep([points[:, 0], points[:, 1]], u=t, s=0, k=min(3, len(points) - 1))
        dense = np.column_stack(splev(t_dense, tck))

    seg = np.linalg.norm(np.diff(dense, axis=0), axis=1)
    cumulative = np.concatenate([[0.0], np.cumsum(seg)])
    length = float(cumulative[-1])

    if length < 1e-9:
        logger.debug("Spine has near-zero length", control_points=len(points))
        xy = np.repeat(dense[:1], opts.samples, axis=0)
        length = 0.0
    else:
        targets = np.linspace(0.0, length, opts.samples)
        xy = np.column_stack([np.interp(targets, cumulative, dense[:, d]) for d in range(2)])

    arc = np.linspace(0.0, 1.0, opts.samples)
    z = opts.camber * length * np.sin(np.pi * arc)
    z[0] = 0.0
    z[-1] = 0.0
    positions = np.column_stack([xy, z])

    logger.debug("Spine built", samples=opts.samples, length=length)
    return SpineCurve(positions=positions, arc=arc, control_points=points, length=length)
