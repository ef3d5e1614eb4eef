"""Tests for the petal deformer."""

import math

import numpy as np
import pytest

from bloom.config import DeformParams
from bloom.deform import deform, deform_leaf, sanitize_params, variant_phase
from bloom.mesh import extrude_outline, make_mesh
from bloom.shapes import PetalShapeFactory, leaf_profile


@pytest.fixture(scope="module")
def base_mesh():
    return extrude_outline(PetalShapeFactory().profile(3, 6))


FULL = DeformParams(cup=0.2, backward_curl=0.3, edge_curl=0.05, ruffle=0.03,
                    base_pinch=0.3, twist=0.2, tip_fold=0.1)


class TestDeform:
    def test_topology_preserved(self, base_mesh):
        out = deform(base_mesh, FULL, 1)
        assert out.vertex_count == base_mesh.vertex_count
        np.testing.assert_array_equal(out.faces, base_mesh.faces)

    def test_recentered(self, base_mesh):
        out = deform(base_mesh, FULL, 2)
        lo, hi = out.bounds()
        np.testing.assert_allclose(lo[1], 0.0, atol=1e-12)
        np.testing.assert_allclose((lo[0] + hi[0]) / 2, 0.0, atol=1e-12)
        np.testing.assert_allclose((lo[2] + hi[2]) / 2, 0.0, atol=1e-12)

    def test_zero_params_only_translate(self, base_mesh):
        out = deform(base_mesh, DeformParams(), 0)
        offset = out.vertices - base_mesh.vertices
        np.testing.assert_allclose(offset, np.broadcast_to(offset[0], offset.shape), atol=1e-12)

    def test_deterministic(self, base_mesh):
        a = deform(base_mesh, FULL, 3)
        b = deform(base_mesh, FULL, 3)
        np.testing.assert_array_equal(a.vertices, b.vertices)

    def test_variants_differ(self, base_mesh):
        a = deform(base_mesh, FULL, 0)
        b = deform(base_mesh, FULL, 1)
        assert not np.allclose(a.vertices, b.vertices)

    def test_cup_raises_center_over_edge(self, base_mesh):
        flat = deform(base_mesh, DeformParams(), 0).vertices
        cupped = deform(base_mesh, DeformParams(cup=0.3), 0).vertices
        dz = cupped[:, 2] - flat[:, 2]
        x = base_mesh.vertices[:, 0]
        y = base_mesh.vertices[:, 1]
        mid = np.argmin(np.abs(x) + np.abs(y - np.ptp(y) * 0.5))
        edge = np.argmax(np.abs(x))
        assert dz[mid] - dz[edge] > 0.1

    def test_pinch_narrows_base(self, base_mesh):
        plain = deform(base_mesh, DeformParams(), 0).vertices
        pinched = deform(base_mesh, DeformParams(base_pinch=0.5), 0).vertices
        y01 = plain[:, 1] / plain[:, 1].max()
        low = y01 < 0.15
        assert np.ptp(pinched[low, 0]) < 0.8 * np.ptp(plain[low, 0])

    def test_backward_curl_pushes_tip_back(self, base_mesh):
        plain = deform(base_mesh, DeformParams(), 0).vertices
        curled = deform(base_mesh, DeformParams(backward_curl=0.5), 0).vertices
        dz = curled[:, 2] - plain[:, 2]
        y = base_mesh.vertices[:, 1]
        tip, root = np.argmax(y), np.argmin(y)
        assert dz[tip] - dz[root] < -0.1

    def test_non_finite_params_are_zeroed(self, base_mesh):
        bad = DeformParams(cup=math.nan, twist=math.inf, ruffle=-math.inf)
        out = deform(base_mesh, bad, 0)
        assert np.all(np.isfinite(out.vertices))
        assert np.all(np.isfinite(out.normals))
        np.testing.assert_allclose(out.vertices, deform(base_mesh, DeformParams(), 0).vertices)

    def test_twist_applied_after_cup(self):
        # Half-width 1, height 1; vertex 3 sits on the midline at y01 = 0.5
        vertices = np.array([[-1.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.0, 0.5, 0.0]])
        mesh = make_mesh(vertices, [[0, 1, 3], [3, 1, 2]])
        out = deform(mesh, DeformParams(cup=0.2, twist=0.8), 0).vertices

        # Corner 0: no cup at y01 = 0, twisted by (0 - 0.25) * 0.8
        a = -0.2
        corner = np.array([-math.cos(a), 0.0, -math.sin(a)])
        # Midline: cupped first, then twisted by (0.5 - 0.25) * 0.8
        cup = math.sin(0.5 * math.pi * 0.7) * 0.2
        b = 0.2
        mid = np.array([-cup * math.sin(b), 0.5, cup * math.cos(b)])

        # Recentering is a shared translation, so compare offsets
        np.testing.assert_allclose(out[3] - out[0], mid - corner, atol=1e-12)

    def test_base_mesh_untouched(self, base_mesh):
        before = base_mesh.vertices.copy()
        deform(base_mesh, FULL, 1)
        np.testing.assert_array_equal(base_mesh.vertices, before)

    def test_flat_degenerate_mesh(self):
        # Zero-height outline must not divide by zero
        outline = np.array([[-1.0, 0.0], [0.0, 0.0], [1.0, 0.0]])
        out = deform(extrude_outline(outline, bevel_segments=0), FULL, 0)
        assert np.all(np.isfinite(out.vertices))


class TestHelpers:
    def test_variant_phase(self):
        assert variant_phase(0) == 0.0
        np.testing.assert_allclose(variant_phase(2), 0.48)

    def test_sanitize_keeps_finite_values(self):
        assert sanitize_params(FULL) == FULL

    def test_deform_leaf_keeps_topology(self):
        base = extrude_outline(leaf_profile(), depth=0.008, bevel_thickness=0.004, bevel_size=0.004)
        leaf = deform_leaf(base)
        assert leaf.vertex_count == base.vertex_count
        assert leaf.vertices[:, 1].min() == 0.0
        assert np.ptp(leaf.vertices[:, 2]) > np.ptp(base.vertices[:, 2])
