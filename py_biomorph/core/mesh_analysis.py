"""
Mesh quality analysis.

Summarises a generated mesh: counts, bounds, open or non-manifold edges and
attribute sanity. Used by tests and by callers deciding whether a freshly
generated body is usable.
"""

from collections import Counter
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from .mesh import MeshBuffers


@dataclass
class MeshReport:
    vertex_count: int
    triangle_count: int
    bounds_min: Tuple[float, float, float]
    bounds_max: Tuple[float, float, float]
    boundary_edges: int  # Edges used by exactly one triangle
    non_manifold_edges: int  # Edges used by more than two triangles
    degenerate_triangles: int
    indices_in_range: bool
    normals_unit: bool

    @property
    def is_watertight(self) -> bool:
        return self.triangle_count > 0 and self.boundary_edges == 0 and self.non_manifold_edges == 0


def edge_usage(triangles: np.ndarray) -> Counter:
    """Count how many triangles use each undirected edge."""
    usage = Counter()
    for a, b, c in triangles:
        for u, v in ((a, b), (b, c), (c, a)):
            usage[(min(u, v), max(u, v))] += 1
    return usage


def analyze_mesh(mesh: MeshBuffers, normal_tolerance: float = 1e-4) -> MeshReport:
    """Build a MeshReport for ``mesh``."""
    tris = mesh.triangles
    n = mesh.vertex_count
    if n:
        lo = tuple(float(v) for v in mesh.positions.min(axis=0))
        hi = tuple(float(v) for v in mesh.positions.max(axis=0))
    else:
        lo = hi = (0.0, 0.0, 0.0)

    usage = edge_usage(tris) if len(tris) else Counter()
    degenerate = 0
    if len(tris):
        degenerate = int(np.count_nonzero(
            (tris[:, 0] == tris[:, 1]) | (tris[:, 1] == tris[:, 2]) | (tris[:, 0] == tris[:, 2])
        ))

    lengths = np.linalg.norm(mesh.normals, axis=1) if n else np.zeros(0)
    return MeshReport(
        vertex_count=n,
        triangle_count=len(tris),
        bounds_min=lo,
        bounds_max=hi,
        boundary_edges=sum(1 for count in usage.values() if count == 1),
        non_manifold_edges=sum(1 for count in usage.values() if count > 2),
        degenerate_triangles=degenerate,
        indices_in_range=bool(len(tris) == 0 or (tris.min() >= 0 and tris.max() < n)),
        normals_unit=bool(np.all(np.abs(lengths - 1.0) <= normal_tolerance)),
    )
