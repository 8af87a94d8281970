"""
Body surface synthesis.

Sweeps a tapered, bulging, twisted and asymmetric elliptical cross-section
along the frame field, stitches consecutive rings into quads and closes the
tube with a fan around one apex vertex at each end.

Semi-axes at arc position ``s``::

    a(s) = a0 * (1 - s)^pA * (1 + bulge(s))
    b(s) = b0 * (1 - s)^pB * (1 + bulge(s)) * (1 + asym_amp * bias(s))
    bulge(s) = bulge_amp * exp(-(s - bulge_center)^2 / (2 bulge_sigma^2))

Both are floored at ``min_radius``. All linear sizes are multiplied by the
complexity scale.
"""

from dataclasses import dataclass
from typing import Tuple

import numpy as np
import structlog

from .frame_field import FrameField
from .mesh import MeshBuffers
from .vector_math import normalize

logger = structlog.get_logger()


@dataclass
class ComplexityOptions:
    """Graph-size to body-size mapping."""

    base_complexity: float = 12.0
    min_scale: float = 0.6
    max_scale: float = 2.5

    def __post_init__(self):
        if self.base_complexity <= 0:
            raise ValueError("base_complexity must be positive")
        if self.min_scale > self.max_scale:
            raise ValueError("min_scale must not exceed max_scale")


def complexity_scale(node_count: int, edge_count: int, options: ComplexityOptions = None) -> float:
    """``clamp(sqrt((nodes + 2 * edges) / base), min, max)``"""
    opts = options or ComplexityOptions()
    raw = np.sqrt((node_count + 2 * edge_count) / opts.base_complexity)
    return float(np.clip(raw, opts.min_scale, opts.max_scale))


@dataclass
class BodyOptions:
    """Body sweep parameters (sizes before complexity scaling)."""

    sides: int = 16  # Ring vertex count (>= 3)
    radius_a: float = 0.12  # Semi-axis along the normal at the head
    radius_b: float = 0.09  # Semi-axis along the binormal at the head
    taper_a: float = 0.6  # Taper exponent pA
    taper_b: float = 0.8  # Taper exponent pB
    bulge_amp: float = 0.35
    bulge_center: float = 0.3
    bulge_sigma: float = 0.18
    asym_amp: float = 0.25
    twist: float = 0.0  # Total twist in radians from head to tail
    min_radius: float = 0.01
    cap_extension: float = 0.5  # Apex offset as a fraction of the end ring's smaller semi-axis

    def __post_init__(self):
        if self.sides < 3:
            raise ValueError("sides must be at least 3")
        if self.min_radius <= 0:
            raise ValueError("min_radius must be positive")
        if self.bulge_sigma <= 0:
            raise ValueError("bulge_sigma must be positive")


def gaussian(s: np.ndarray, center: float, sigma: float) -> np.ndarray:
    return np.exp(-((s - center) ** 2) / (2.0 * sigma * sigma))


def stitch_rings(n: int, sides: int) -> np.ndarray:
    """
    Triangles for ``n`` rings of ``sides`` vertices followed by a head and a
    tail apex: quad strips between rings plus a fan at each end, wound so
    normals face outward for a right-handed (tangent, normal, binormal) frame.
    """
    j = np.arange(sides)
    j_next = (j + 1) % sides
    tris = []
    for i in range(n - 1):
        v00 = i * sides + j
        v01 = i * sides + j_next
        v10 = (i + 1) * sides + j
        v11 = (i + 1) * sides + j_next
        tris.append(np.column_stack([v00, v01, v11]))
        tris.append(np.column_stack([v00, v11, v10]))

    head = n * sides
    tail = head + 1
    tris.append(np.column_stack([np.full(sides, head), j_next, j]))
    last = (n - 1) * sides
    tris.append(np.column_stack([np.full(sides, tail), last + j, last + j_next]))
    return np.vstack(tris).astype(np.int64)


class BodySynthesizer:
    """Builds the capped body tube from a frame field and bias field."""

    def __init__(self, options: BodyOptions = None):
        self.options = options or BodyOptions()

    def semi_axes(self, arc: np.ndarray, bias: np.ndarray, scale: float = 1.0) -> Tuple[np.ndarray, np.ndarray]:
        """Per-sample semi-axes (a, b)."""
        opts = self.options
        remaining = np.clip(1.0 - arc, 0.0, 1.0)
        bulge = 1.0 + opts.bulge_amp * gaussian(arc, opts.bulge_center, opts.bulge_sigma)
        a = opts.radius_a * scale * remaining ** opts.taper_a * bulge
        b = opts.radius_b * scale * remaining ** opts.taper_b * bulge * (1.0 + opts.asym_amp * bias)
        floor = opts.min_radius * scale
        return np.maximum(a, floor), np.maximum(b, floor)

    def build(self, frames: FrameField, bias: np.ndarray, scale: float = 1.0) -> MeshBuffers:
        """
        Sweep the cross-section along the frames.

        Args:
            frames: Frame field (n >= 2 samples)
            bias: Asymmetry field aligned with the frames
            scale: Complexity scale

        Returns:
            Mesh with ``n * sides + 2`` vertices and
            ``sides * 2 * (n - 1) + 2 * sides`` triangles
        """
        opts = self.options
        n = len(frames)
        sides = opts.sides
        if n < 2:
            raise ValueError("body sweep needs at least 2 frames")

        arc = np.linspace(0.0, 1.0, n)
        bias = np.asarray(bias, dtype=np.float64)
        a, b = self.semi_axes(arc, bias, scale)

        theta = opts.twist * arc
        cos_t = np.cos(theta)[:, None]
        sin_t = np.sin(theta)[:, None]
        normal_axis = cos_t * frames.normals + sin_t * frames.binormals
        binormal_axis = -sin_t * frames.normals + cos_t * frames.binormals

        phi = 2.0 * np.pi * np.arange(sides) / sides
        cos_p = np.cos(phi)[None, :, None]
        sin_p = np.sin(phi)[None, :, None]

        ring = (
            frames.positions[:, None, :]
            + a[:, None, None] * cos_p * normal_axis[:, None, :]
            + b[:, None, None] * sin_p * binormal_axis[:, None, :]
        )
        # ellipse gradient: (cos/a, sin/b) in the rotated basis
        grad = (
            (cos_p / a[:, None, None]) * normal_axis[:, None, :]
            + (sin_p / b[:, None, None]) * binormal_axis[:, None, :]
        )
        ring_normals = grad / np.maximum(np.linalg.norm(grad, axis=2, keepdims=True), 1e-12)

        positions = ring.reshape(-1, 3)
        normals = ring_normals.reshape(-1, 3)
        u = np.tile(np.arange(sides) / sides, n)
        v = np.repeat(arc, sides)
        uvs = np.column_stack([u, v])
        aux = np.column_stack([np.repeat(frames.binormals, sides, axis=0), v])

        head_offset = opts.cap_extension * min(a[0], b[0])
        tail_offset = opts.cap_extension * min(a[-1], b[-1])
        head = frames.positions[0] - frames.tangents[0] * head_offset
        tail = frames.positions[-1] + frames.tangents[-1] * tail_offset
        positions = np.vstack([positions, head, tail])
        normals = np.vstack([normals, normalize(-frames.tangents[0]), normalize(frames.tangents[-1])])
        uvs = np.vstack([uvs, [0.5, 0.0], [0.5, 1.0]])
        aux = np.vstack([
            aux,
            np.append(frames.binormals[0], 0.0),
            np.append(frames.binormals[-1], 1.0),
        ])

        triangles = stitch_rings(n, sides)
        logger.debug(
            "Body swept",
            samples=n,
            sides=sides,
            vertices=len(positions),
            triangles=len(triangles),
            scale=scale,
        )
        return MeshBuffers(positions=positions, normals=normals, uvs=uvs, aux=aux, triangles=triangles)
