"""
Mesh topology cleanup: vertex welding.

Vertices closer than a tolerance are merged into the lowest-indexed vertex
of their neighbourhood and the index buffer is rewritten through the remap
table. Afterwards no two vertices lie within the tolerance and every index
is in range.
"""

from dataclasses import dataclass

import numpy as np
import structlog
from sklearn.neighbors import KDTree

from .mesh import MeshBuffers

logger = structlog.get_logger()


@dataclass
class WeldResult:
    """Welded mesh plus the old -> new vertex remap table."""

    mesh: MeshBuffers
    remap: np.ndarray
    merged: int
    dropped_triangles: int


def weld_vertices(mesh: MeshBuffers, tolerance: float = 1e-5, drop_degenerate: bool = True) -> WeldResult:
    """
    Merge near-duplicate vertices.

    Vertices are visited in index order; each unvisited vertex becomes a
    representative and absorbs every unvisited vertex within ``tolerance``.
    The representative keeps its own attributes.

    Args:
        mesh: Input mesh (not modified)
        tolerance: Merge distance
        drop_degenerate: Remove triangles that collapse to a repeated index

    Returns:
        WeldResult
    """
    n = mesh.vertex_count
    if n == 0:
        return WeldResult(mesh=mesh.copy(), remap=np.zeros(0, dtype=np.int64), merged=0, dropped_triangles=0)

    tree = KDTree(mesh.positions)
    neighborhoods = tree.query_radius(mesh.positions, r=tolerance)

    remap = np.full(n, -1, dtype=np.int64)
    keep = []
    for i in range(n):
        if remap[i] != -1:
            continue
        new_index = len(keep)
        keep.append(i)
        remap[i] = new_index
        for j in neighborhoods[i]:
            if remap[j] == -1:
                remap[j] = new_index

    keep = np.array(keep, dtype=np.int64)
    triangles = remap[mesh.triangles] if mesh.triangle_count else mesh.triangles.copy()

    dropped = 0
    if drop_degenerate and len(triangles):
        valid = (
            (triangles[:, 0] != triangles[:, 1])
            & (triangles[:, 1] != triangles[:, 2])
            & (triangles[:, 0] != triangles[:, 2])
        )
        dropped = int(np.count_nonzero(~valid))
        triangles = triangles[valid]

    welded = MeshBuffers(
        positions=mesh.positions[keep],
        normals=mesh.normals[keep],
        uvs=mesh.uvs[keep],
        aux=mesh.aux[keep],
        triangles=triangles.astype(np.int64),
    )
    merged = n - len(keep)
    logger.debug("Vertices welded", before=n, after=len(keep), merged=merged, dropped_triangles=dropped)
    return WeldResult(mesh=welded, remap=remap, merged=merged, dropped_triangles=dropped)
