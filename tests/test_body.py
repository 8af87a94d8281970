"""Tests for body synthesis, accessories, welding and orientation."""

import pytest
import numpy as np
from py_biomorph.core.spine import SpineOptions, build_spine
from py_biomorph.core.frame_field import propagate_frames
from py_biomorph.core.body import (
    BodyOptions, BodySynthesizer, ComplexityOptions, complexity_scale
)
from py_biomorph.core.accessories import (
    FIN_OUTLINE, AccessoryGeometry, build_fin, build_tube, compute_anchors, sample_index
)
from py_biomorph.core.mesh import MeshBuffers
from py_biomorph.core.mesh_analysis import analyze_mesh
from py_biomorph.core.topology import weld_vertices
from py_biomorph.core.orientation import normalize_orientation


@pytest.fixture
def frames():
    curve = build_spine(np.array([[0.0, 0.0], [0.5, 0.2], [1.0, -0.1], [1.5, 0.1]]), SpineOptions(samples=24))
    return propagate_frames(curve.positions)


def signed_volume(mesh):
    p = mesh.positions[mesh.triangles]
    return float(np.sum(np.einsum("ij,ij->i", p[:, 0], np.cross(p[:, 1], p[:, 2]))) / 6.0)


class TestComplexityScale:
    """Test graph-size to body-size mapping."""

    def test_formula(self):
        """Test the unclamped formula."""
        opts = ComplexityOptions(base_complexity=10.0, min_scale=0.1, max_scale=10.0)
        assert complexity_scale(4, 8, opts) == pytest.approx(np.sqrt(2.0))

    def test_clamped(self):
        """Test clamping at both ends."""
        opts = ComplexityOptions(base_complexity=10.0, min_scale=0.5, max_scale=2.0)
        assert complexity_scale(0, 0, opts) == 0.5
        assert complexity_scale(1000, 1000, opts) == 2.0

    def test_grows_with_graph(self):
        """Test monotonic growth."""
        assert complexity_scale(10, 12) >= complexity_scale(5, 4)


class TestBodySynthesizer:
    """Test the swept body tube."""

    @pytest.mark.parametrize("sides", [3, 8, 16])
    def test_triangle_count(self, frames, sides):
        """Test sides * 2 * (samples - 1) + 2 * sides triangles."""
        mesh = BodySynthesizer(BodyOptions(sides=sides)).build(frames, np.zeros(len(frames)))
        n = len(frames)
        assert mesh.triangle_count == sides * 2 * (n - 1) + 2 * sides
        assert mesh.vertex_count == n * sides + 2

    def test_buffers_consistent(self, frames):
        """Test parallel buffer lengths and index range."""
        mesh = BodySynthesizer().build(frames, np.zeros(len(frames)))
        mesh.validate()
        assert mesh.uvs.shape == (mesh.vertex_count, 2)
        assert mesh.aux.shape == (mesh.vertex_count, 4)
        np.testing.assert_allclose(np.linalg.norm(mesh.normals, axis=1), 1.0, atol=1e-9)

    def test_watertight(self, frames):
        """Test that the capped tube is closed and manifold."""
        mesh = BodySynthesizer().build(frames, np.zeros(len(frames)))
        report = analyze_mesh(mesh)
        assert report.is_watertight
        assert report.degenerate_triangles == 0

    def test_outward_winding(self, frames):
        """Test that the winding encloses positive volume."""
        mesh = BodySynthesizer(BodyOptions(twist=1.5)).build(frames, np.zeros(len(frames)))
        assert signed_volume(mesh) > 0.0

    def test_normals_point_outward(self, frames):
        """Test that ring normals point away from the spine."""
        opts = BodyOptions(sides=12)
        mesh = BodySynthesizer(opts).build(frames, np.zeros(len(frames)))
        ring = mesh.positions[: len(frames) * 12].reshape(len(frames), 12, 3)
        normals = mesh.normals[: len(frames) * 12].reshape(len(frames), 12, 3)
        radial = ring - frames.positions[:, None, :]
        assert np.all(np.einsum("ijk,ijk->ij", radial, normals) > 0)

    def test_taper_and_floor(self):
        """Test that semi-axes taper towards the tail and respect the floor."""
        synth = BodySynthesizer(BodyOptions(bulge_amp=0.0, min_radius=0.02))
        arc = np.linspace(0, 1, 11)
        a, b = synth.semi_axes(arc, np.zeros(11))
        assert np.all(np.diff(a) <= 1e-12)
        assert a[-1] == pytest.approx(0.02) and b[-1] == pytest.approx(0.02)
        assert a[0] == pytest.approx(0.12)

    def test_asymmetry_widens_b(self):
        """Test that positive bias widens the binormal semi-axis."""
        synth = BodySynthesizer(BodyOptions(asym_amp=0.5))
        arc = np.array([0.2])
        _, b_plain = synth.semi_axes(arc, np.array([0.0]))
        _, b_biased = synth.semi_axes(arc, np.array([1.0]))
        assert b_biased[0] == pytest.approx(1.5 * b_plain[0])

    def test_scale_multiplies_size(self, frames):
        """Test that the complexity scale grows the cross-section."""
        synth = BodySynthesizer()
        a1, _ = synth.semi_axes(np.array([0.0]), np.zeros(1), scale=1.0)
        a2, _ = synth.semi_axes(np.array([0.0]), np.zeros(1), scale=2.0)
        assert a2[0] == pytest.approx(2.0 * a1[0])

    def test_invalid_sides(self):
        """Test option validation."""
        with pytest.raises(ValueError):
            BodyOptions(sides=2)


class TestAccessories:
    """Test limb tubes and fins."""

    def test_tube_closed(self):
        """Test a capped tube is watertight."""
        tube = build_tube(np.zeros(3), np.array([0.0, 0.0, 1.0]), 0.1, 6, np.array([0, 1.0, 0]), 0.0, 1.0)
        assert tube.triangle_count == 6 * 2 + 2 * 6
        assert analyze_mesh(tube).is_watertight
        assert signed_volume(tube) > 0.0

    def test_coincident_tube_empty(self):
        """Test that a zero-length tube is skipped."""
        assert build_tube(np.ones(3), np.ones(3), 0.1, 6, np.zeros(3), 0.0, 0.0).is_empty

    def test_fin_double_sided(self):
        """Test that fin faces have opposite normals and do not overlap."""
        fin = build_fin(np.zeros(3), np.array([1.0, 0, 0]), np.array([0, 0, 1.0]), 1.0, 1.0, 0.01,
                        np.array([0, 1.0, 0]), 0.5)
        half = fin.vertex_count // 2
        np.testing.assert_allclose(fin.normals[:half], -fin.normals[half:])
        assert weld_vertices(fin).mesh.vertex_count == fin.vertex_count

    def test_limb_edges_skip_spine(self):
        """Test that spine edges get no tube."""
        edges = [(1, 2), (2, 3), (2, 4), (4, 5)]
        assert AccessoryGeometry().limb_edges(edges, [1, 2, 3]) == [(2, 4), (4, 5)]

    def test_limbs_and_fins(self, frames):
        """Test that accessories append valid geometry."""
        spine_2d = frames.positions[[0, 8, 16, 23], :2]
        node_ids = [1, 2, 3, 4, 5]
        points = np.vstack([spine_2d, [[1.3, 0.6]]])
        bias = np.zeros(len(frames))
        radii = np.full(len(frames), 0.1)
        anchors = compute_anchors(node_ids, points, spine_2d, frames, bias, radii)
        geometry = AccessoryGeometry()
        limbs = geometry.build_limbs([(1, 2), (2, 3), (3, 4), (2, 5)], [1, 2, 3, 4], anchors, frames)
        assert limbs.triangle_count == 4 * geometry.options.tube_segments
        fins = geometry.build_fins(frames, radii, radii)
        fins.validate()
        assert fins.triangle_count == 5 * 2 * 3

    def test_fin_roots_follow_twist(self, frames):
        """Test that dorsal and pectoral roots sit on the twisted body surface."""
        sides, twist = 16, 1.2
        n = len(frames)
        bias = np.zeros(n)
        synth = BodySynthesizer(BodyOptions(sides=sides, twist=twist))
        body = synth.build(frames, bias)
        radii_a, radii_b = synth.semi_axes(np.linspace(0.0, 1.0, n), bias)
        geometry = AccessoryGeometry()
        fins = geometry.build_fins(frames, radii_a, radii_b, twist=twist)
        per_fin = 2 * (len(FIN_OUTLINE) + 1)

        dorsal = sample_index(geometry.options.dorsal_position, n)
        pectoral = sample_index(geometry.options.pectoral_position, n)
        np.testing.assert_allclose(fins.positions[0], body.positions[dorsal * sides], atol=1e-9)
        np.testing.assert_allclose(fins.positions[per_fin], body.positions[pectoral * sides + sides // 4],
                                   atol=1e-9)

        untwisted = geometry.build_fins(frames, radii_a, radii_b)
        assert np.linalg.norm(untwisted.positions[0] - body.positions[dorsal * sides]) > 1e-3


class TestWeld:
    """Test vertex welding."""

    def test_merges_duplicates(self):
        """Test that coincident vertices merge and indices are remapped."""
        mesh = MeshBuffers(
            positions=np.array([[0, 0, 0], [1, 0, 0], [0, 1, 0], [1, 0, 1e-7], [1, 1, 0]], dtype=float),
            normals=np.tile([0, 0, 1.0], (5, 1)),
            uvs=np.zeros((5, 2)),
            aux=np.zeros((5, 4)),
            triangles=np.array([[0, 1, 2], [3, 4, 2]]),
        )
        result = weld_vertices(mesh, tolerance=1e-5)
        assert result.mesh.vertex_count == 4
        assert result.remap[3] == result.remap[1]
        np.testing.assert_array_equal(result.mesh.triangles, [[0, 1, 2], [1, 3, 2]])

    def test_invariants_after_weld(self, frames):
        """Test no close pairs remain and all indices are in range."""
        body = BodySynthesizer().build(frames, np.zeros(len(frames)))
        doubled = body.copy().append(body)
        tol = 1e-5
        result = weld_vertices(doubled, tolerance=tol)
        welded = result.mesh
        assert welded.vertex_count <= doubled.vertex_count
        assert welded.vertex_count == body.vertex_count
        assert welded.triangles.max() < welded.vertex_count
        d = np.linalg.norm(welded.positions[:, None] - welded.positions[None, :], axis=2)
        np.fill_diagonal(d, np.inf)
        assert d.min() > tol

    def test_degenerate_triangles_dropped(self):
        """Test that collapsed triangles are removed."""
        mesh = MeshBuffers(
            positions=np.array([[0, 0, 0], [0, 0, 0], [1, 0, 0]], dtype=float),
            normals=np.tile([0, 0, 1.0], (3, 1)),
            uvs=np.zeros((3, 2)),
            aux=np.zeros((3, 4)),
            triangles=np.array([[0, 1, 2]]),
        )
        result = weld_vertices(mesh)
        assert result.mesh.triangle_count == 0
        assert result.dropped_triangles == 1

    def test_empty(self):
        """Test welding an empty mesh."""
        assert weld_vertices(MeshBuffers()).mesh.vertex_count == 0


class TestOrientation:
    """Test orientation normalisation."""

    def test_spine_aligned_and_centred(self, frames):
        """Test that the spine vector maps onto +X and the centroid to the origin."""
        mesh = BodySynthesizer().build(frames, np.zeros(len(frames)))
        oriented = normalize_orientation(mesh, frames)
        spine = oriented.frames.positions[-1] - oriented.frames.positions[0]
        np.testing.assert_allclose(spine / np.linalg.norm(spine), [1.0, 0.0, 0.0], atol=1e-9)
        np.testing.assert_allclose(oriented.mesh.positions.mean(axis=0), 0.0, atol=1e-9)

    def test_rigid_transform(self, frames):
        """Test that distances, normals and frames stay orthonormal."""
        mesh = BodySynthesizer().build(frames, np.zeros(len(frames)))
        oriented = normalize_orientation(mesh, frames)
        before = np.linalg.norm(mesh.positions[1] - mesh.positions[50])
        after = np.linalg.norm(oriented.mesh.positions[1] - oriented.mesh.positions[50])
        assert after == pytest.approx(before)
        np.testing.assert_allclose(np.linalg.norm(oriented.mesh.normals, axis=1), 1.0, atol=1e-9)
        assert oriented.frames.max_orthonormal_error() <= 1e-4
        assert signed_volume(oriented.mesh) == pytest.approx(signed_volume(mesh))

    def test_antiparallel_spine(self):
        """Test a spine already pointing along -X."""
        positions = np.column_stack([np.linspace(0, -2, 10), np.zeros(10), np.zeros(10)])
        frames = propagate_frames(positions)
        mesh = BodySynthesizer(BodyOptions(sides=4)).build(frames, np.zeros(10))
        oriented = normalize_orientation(mesh, frames)
        spine = oriented.frames.positions[-1] - oriented.frames.positions[0]
        assert spine[0] == pytest.approx(2.0)
