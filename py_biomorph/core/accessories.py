"""
Accessory geometry: limb tubes and fins.

Every graph edge that is not part of the spine path becomes a capped tube
between the anchors of its endpoints. A node's anchor is the spine sample
nearest its projected arc position, pushed along the local binormal by the
asymmetry bias. Fins (one dorsal, two mirrored pectorals, a forked tail)
are flat double-sided fans at fixed arc positions.
"""

from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

import numpy as np
import structlog

from .asymmetry import SpineProjector
from .body import stitch_rings
from .frame_field import FrameField
from .mesh import MeshBuffers
from .vector_math import normalize, perpendicular_unit

logger = structlog.get_logger()


@dataclass
class AccessoryOptions:
    """Limb and fin parameters (sizes before complexity scaling)."""

    tube_radius: float = 0.018
    tube_segments: int = 6
    fin_length: float = 0.16
    fin_height: float = 0.12
    dorsal_position: float = 0.4
    pectoral_position: float = 0.22
    pectoral_sweep: float = 0.5  # Backward lean of the pectoral fins
    tail_spread: float = 0.8  # Vertical spread of the tail lobes
    tail_scale: float = 1.2
    fin_thickness: float = 0.002

    def __post_init__(self):
        if self.tube_segments < 3:
            raise ValueError("tube_segments must be at least 3")
        for name in ("dorsal_position", "pectoral_position"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be within [0, 1]")


# (along, out) outline of a fin, counter-clockwise, in units of (length, height)
FIN_OUTLINE = np.array([
    [0.5, 0.0],
    [0.1, 1.0],
    [-0.4, 0.7],
    [-0.5, 0.0],
])


def sample_index(arc: float, sample_count: int) -> int:
    return int(round(min(max(arc, 0.0), 1.0) * (sample_count - 1)))


def compute_anchors(
    node_ids: Sequence[int],
    positions_2d: np.ndarray,
    spine_points: np.ndarray,
    frames: FrameField,
    bias: np.ndarray,
    radii: np.ndarray,
) -> Dict[int, Tuple[np.ndarray, int]]:
    """
    Anchor every node to the body.

    Returns:
        Mapping node id -> (anchor position, spine sample index)
    """
    projector = SpineProjector(spine_points)
    count = len(frames)
    anchors = {}
    for node, point in zip(node_ids, positions_2d):
        idx = sample_index(projector.project(point).arc, count)
        anchor = frames.positions[idx] + frames.binormals[idx] * bias[idx] * radii[idx]
        anchors[int(node)] = (anchor, idx)
    return anchors


def build_tube(start: np.ndarray, end: np.ndarray, radius: float, segments: int,
               binormal: np.ndarray, arc_start: float, arc_end: float) -> MeshBuffers:
    """Capped cylinder between two points; empty mesh for coincident points."""
    axis = end - start
    length = float(np.linalg.norm(axis))
    if length < 1e-6:
        return MeshBuffers()
    tangent = axis / length
    n1 = perpendicular_unit(tangent)
    n2 = np.cross(tangent, n1)

    phi = 2.0 * np.pi * np.arange(segments) / segments
    radial = np.cos(phi)[:, None] * n1 + np.sin(phi)[:, None] * n2
    positions = np.vstack([start + radius * radial, end + radius * radial, start, end])
    normals = np.vstack([radial, radial, -tangent, tangent])
    u = np.arange(segments) / segments
    uvs = np.vstack([np.column_stack([u, np.zeros(segments)]),
                     np.column_stack([u, np.ones(segments)]),
                     [[0.5, 0.0], [0.5, 1.0]]])
    arcs = np.concatenate([np.full(segments, arc_start), np.full(segments, arc_end), [arc_start, arc_end]])
    aux = np.column_stack([np.tile(binormal, (len(positions), 1)), arcs])
    return MeshBuffers(positions=positions, normals=normals, uvs=uvs, aux=aux,
                       triangles=stitch_rings(2, segments))


def build_fin(origin: np.ndarray, along: np.ndarray, out: np.ndarray, length: float, height: float,
              thickness: float, binormal: np.ndarray, arc: float) -> MeshBuffers:
    """
    Double-sided fan fin spanned by ``along`` and ``out`` at ``origin``.

    The back face is offset by ``thickness`` so the two faces never weld.
    """
    along = normalize(along)
    out = normalize(out - np.dot(out, along) * along, fallback=perpendicular_unit(along))
    face_normal = np.cross(along, out)

    outline = origin + (FIN_OUTLINE[:, :1] * length) * along + (FIN_OUTLINE[:, 1:] * height) * out
    front = np.vstack([origin, outline])
    back = front - face_normal * thickness
    m = len(FIN_OUTLINE)

    k = np.arange(1, m)
    front_tris = np.column_stack([np.zeros(m - 1, dtype=np.int64), k, k + 1])
    back_tris = front_tris[:, [0, 2, 1]] + (m + 1)

    uv = np.vstack([[0.5, 0.0], FIN_OUTLINE + [0.5, 0.0]])
    count = 2 * (m + 1)
    return MeshBuffers(
        positions=np.vstack([front, back]),
        normals=np.vstack([np.tile(face_normal, (m + 1, 1)), np.tile(-face_normal, (m + 1, 1))]),
        uvs=np.vstack([uv, uv]),
        aux=np.column_stack([np.tile(binormal, (count, 1)), np.full(count, arc)]),
        triangles=np.vstack([front_tris, back_tris]).astype(np.int64),
    )


class AccessoryGeometry:
    """Builds limb tubes and fins for a swept body."""

    def __init__(self, options: AccessoryOptions = None):
        self.options = options or AccessoryOptions()

    def limb_edges(self, edges: Sequence[Tuple[int, int]], spine: Sequence[int]) -> List[Tuple[int, int]]:
        """Edges that are not consecutive spine pairs."""
        spine_edges = {frozenset(pair) for pair in zip(spine[:-1], spine[1:])}
        return [(a, b) for a, b in edges if frozenset((a, b)) not in spine_edges]

    def build_limbs(self, edges, spine, anchors, frames: FrameField, scale: float = 1.0) -> MeshBuffers:
        """Tube meshes for every non-spine edge with both endpoints anchored."""
        opts = self.options
        mesh = MeshBuffers()
        count = len(frames)
        skipped = 0
        for a, b in self.limb_edges(edges, spine):
            if a not in anchors or b not in anchors:
                skipped += 1
                continue
            (pa, ia), (pb, ib) = anchors[a], anchors[b]
            tube = build_tube(pa, pb, opts.tube_radius * scale, opts.tube_segments,
                              frames.binormals[ia], ia / (count - 1), ib / (count - 1))
            if tube.is_empty:
                skipped += 1
                continue
            mesh.append(tube)
        logger.debug("Limbs built", tubes=mesh.triangle_count // (4 * opts.tube_segments), skipped=skipped)
        return mesh

    def build_fins(self, frames: FrameField, radii_a: np.ndarray, radii_b: np.ndarray,
                   scale: float = 1.0, twist: float = 0.0) -> MeshBuffers:
        """
        Dorsal, paired pectoral and forked tail fins.

        ``twist`` must match the body sweep so fin roots sit on the twisted
        cross-section.
        """
        opts = self.options
        count = len(frames)
        length = opts.fin_length * scale
        height = opts.fin_height * scale
        thickness = opts.fin_thickness * scale
        mesh = MeshBuffers()

        def basis(i: int):
            theta = twist * i / (count - 1)
            n, b = frames.normals[i], frames.binormals[i]
            return (frames.tangents[i],
                    np.cos(theta) * n + np.sin(theta) * b,
                    -np.sin(theta) * n + np.cos(theta) * b)

        i = sample_index(opts.dorsal_position, count)
        t, n, b = basis(i)
        mesh.append(build_fin(frames.positions[i] + n * radii_a[i], t, n, length, height,
                              thickness, frames.binormals[i], i / (count - 1)))

        i = sample_index(opts.pectoral_position, count)
        t, n, b = basis(i)
        for side in (1.0, -1.0):
            # swept back: out leans towards -t, along stays orthogonal to it
            out = side * b - opts.pectoral_sweep * t
            along = t + opts.pectoral_sweep * side * b
            mesh.append(build_fin(frames.positions[i] + side * b * radii_b[i], along, out,
                                  length * 0.8, height * 0.8, thickness, frames.binormals[i],
                                  i / (count - 1)))

        i = count - 1
        t, n, b = basis(i)
        lobe = length * 0.6 * opts.tail_scale
        for side in (1.0, -1.0):
            direction = normalize(t + side * opts.tail_spread * n)
            mesh.append(build_fin(frames.positions[i] + direction * lobe * 0.5, direction, side * n,
                                  lobe, height * opts.tail_scale, thickness,
                                  frames.binormals[i], 1.0))

        logger.debug("Fins built", triangles=mesh.triangle_count)
        return mesh
