"""
Rotation-minimising frame transport along the spine.

Frame 0 is seeded from the first tangent and a reference axis. Each later
frame is obtained by applying the shortest-arc rotation between consecutive
tangents to the previous normal and binormal, which avoids the twisting and
flipping of a Frenet frame on near-straight stretches.
"""

from dataclasses import dataclass

import numpy as np
import structlog

from .vector_math import normalize, perpendicular_unit, rotation_between

logger = structlog.get_logger()

# Reference axes are swapped when within ~18 degrees of the tangent
PARALLEL_COS = np.cos(np.radians(18.0))
PRIMARY_REFERENCE = np.array([0.0, 0.0, 1.0])
SECONDARY_REFERENCE = np.array([0.0, 1.0, 0.0])


@dataclass
class FrameField:
    """Per-sample positions and orthonormal (tangent, normal, binormal) frames."""

    positions: np.ndarray  # (n, 3)
    tangents: np.ndarray  # (n, 3)
    normals: np.ndarray  # (n, 3)
    binormals: np.ndarray  # (n, 3)

    def __len__(self) -> int:
        return len(self.positions)

    def max_orthonormal_error(self) -> float:
        """Largest deviation from orthonormality over all samples."""
        if len(self) == 0:
            return 0.0
        t, n, b = self.tangents, self.normals, self.binormals
        dots = np.abs(np.concatenate([
            np.einsum("ij,ij->i", t, n),
            np.einsum("ij,ij->i", t, b),
            np.einsum("ij,ij->i", n, b),
        ]))
        lengths = np.abs(np.concatenate([
            np.linalg.norm(t, axis=1),
            np.linalg.norm(n, axis=1),
            np.linalg.norm(b, axis=1),
        ]) - 1.0)
        return float(max(dots.max(), lengths.max()))

    def transformed(self, rotation: np.ndarray, origin: np.ndarray) -> "FrameField":
        """Copy with positions rotated about ``origin`` (then centred on it) and axes rotated."""
        return FrameField(
            positions=(self.positions - origin) @ rotation.T,
            tangents=self.tangents @ rotation.T,
            normals=self.normals @ rotation.T,
            binormals=self.binormals @ rotation.T,
        )


def sample_tangents(positions: np.ndarray) -> np.ndarray:
    """Forward-difference tangents (backward difference at the last sample)."""
    n = len(positions)
    tangents = np.zeros((n, 3))
    previous = np.array([1.0, 0.0, 0.0])
    for i in range(n):
        if n == 1:
            delta = np.zeros(3)
        elif i < n - 1:
            delta = positions[i + 1] - positions[i]
        else:
            delta = positions[i] - positions[i - 1]
        tangents[i] = normalize(delta, fallback=previous)
        previous = tangents[i]
    return tangents


def seed_frame(tangent: np.ndarray):
    """Initial normal and binormal for a tangent."""
    reference = PRIMARY_REFERENCE
    if abs(float(np.dot(tangent, reference))) > PARALLEL_COS:
        reference = SECONDARY_REFERENCE
    normal = normalize(reference - np.dot(reference, tangent) * tangent, fallback=perpendicular_unit(tangent))
    binormal = np.cross(tangent, normal)
    return normal, binormal


def propagate_frames(positions: np.ndarray) -> FrameField:
    """
    Build the rotation-minimising frame field for a sampled curve.

    Args:
        positions: (n, 3) curve samples

    Returns:
        FrameField whose frames are orthonormal at every sample
    """
    positions = np.asarray(positions, dtype=np.float64)
    n = len(positions)
    tangents = sample_tangents(positions)
    normals = np.zeros((n, 3))
    binormals = np.zeros((n, 3))
    if n == 0:
        return FrameField(positions, tangents, normals, binormals)

    normals[0], binormals[0] = seed_frame(tangents[0])

    for i in range(1, n):
        rotation = rotation_between(tangents[i - 1], tangents[i])
        normal = rotation @ normals[i - 1]
        # re-orthogonalise to keep rounding drift from accumulating
        normal = normalize(normal - np.dot(normal, tangents[i]) * tangents[i],
                           fallback=perpendicular_unit(tangents[i]))
        normals[i] = normal
        binormals[i] = np.cross(tangents[i], normal)

    logger.debug("Frames propagated", samples=n)
    return FrameField(positions=positions.copy(), tangents=tangents, normals=normals, binormals=binormals)
