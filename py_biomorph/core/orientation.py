"""
Orientation normalisation.

The force layout places the body at a random orientation. This rotates the
assembled geometry about its centroid so the head-to-tail spine vector lies
along a canonical axis, and moves the centroid to the origin.
"""

from dataclasses import dataclass

import numpy as np
import structlog

from .frame_field import FrameField
from .mesh import MeshBuffers
from .vector_math import rotation_between

logger = structlog.get_logger()

CANONICAL_AXIS = np.array([1.0, 0.0, 0.0])


@dataclass
class OrientedGeometry:
    mesh: MeshBuffers
    frames: FrameField
    rotation: np.ndarray
    centroid: np.ndarray


def normalize_orientation(mesh: MeshBuffers, frames: FrameField, axis: np.ndarray = CANONICAL_AXIS) -> OrientedGeometry:
    """
    Align the spine with ``axis`` and centre the geometry.

    Args:
        mesh: Assembled mesh (not modified)
        frames: Frame field the mesh was built from (not modified)
        axis: Target direction for the first-to-last spine vector

    Returns:
        OrientedGeometry with transformed copies, the rotation and the old centroid
    """
    spine_vector = frames.positions[-1] - frames.positions[0]
    rotation = rotation_between(spine_vector, axis)
    if mesh.vertex_count:
        centroid = mesh.positions.mean(axis=0)
    else:
        centroid = frames.positions.mean(axis=0)

    oriented = mesh.copy()
    oriented.positions = (mesh.positions - centroid) @ rotation.T
    oriented.normals = mesh.normals @ rotation.T
    oriented.aux = mesh.aux.copy()
    oriented.aux[:, :3] = mesh.aux[:, :3] @ rotation.T

    logger.debug("Orientation normalised", spine_length=float(np.linalg.norm(spine_vector)))
    return OrientedGeometry(
        mesh=oriented,
        frames=frames.transformed(rotation, centroid),
        rotation=rotation,
        centroid=centroid,
    )
