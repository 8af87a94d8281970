"""Mesh buffer container shared by the geometry stages."""

from dataclasses import dataclass, field

import numpy as np


def _empty(width: int, dtype=np.float64) -> np.ndarray:
    return np.zeros((0, width), dtype=dtype)


@dataclass
class MeshBuffers:
    """
    Parallel vertex attribute arrays plus a triangle index list.

    ``aux`` carries the frame binormal (xyz) and the normalised arc position
    (w) of the spine sample a vertex belongs to, for downstream
    displacement passes.
    """

    positions: np.ndarray = field(default_factory=lambda: _empty(3))
    normals: np.ndarray = field(default_factory=lambda: _empty(3))
    uvs: np.ndarray = field(default_factory=lambda: _empty(2))
    aux: np.ndarray = field(default_factory=lambda: _empty(4))
    triangles: np.ndarray = field(default_factory=lambda: _empty(3, np.int64))

    @property
    def vertex_count(self) -> int:
        return len(self.positions)

    @property
    def triangle_count(self) -> int:
        return len(self.triangles)

    @property
    def is_empty(self) -> bool:
        return self.triangle_count == 0

    def append(self, other: "MeshBuffers") -> "MeshBuffers":
        """Append another mesh, offsetting its indices. Returns self."""
        offset = self.vertex_count
        self.positions = np.vstack([self.positions, other.positions])
        self.normals = np.vstack([self.normals, other.normals])
        self.uvs = np.vstack([self.uvs, other.uvs])
        self.aux = np.vstack([self.aux, other.aux])
        self.triangles = np.vstack([self.triangles, other.triangles + offset]).astype(np.int64)
        return self

    def copy(self) -> "MeshBuffers":
        return MeshBuffers(
            positions=self.positions.copy(),
            normals=self.normals.copy(),
            uvs=self.uvs.copy(),
            aux=self.aux.copy(),
            triangles=self.triangles.copy(),
        )

    def validate(self) -> None:
        """Raise ValueError if buffers are inconsistent."""
        n = self.vertex_count
        for name in ("normals", "uvs", "aux"):
            if len(getattr(self, name)) != n:
                raise ValueError(f"{name} has {len(getattr(self, name))} entries, expected {n}")
        if self.triangle_count and (self.triangles.min() < 0 or self.triangles.max() >= n):
            raise ValueError("triangle index out of range")
