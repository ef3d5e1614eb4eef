"""Tests for mesh containers and base mesh builders."""

import numpy as np
import pytest

from bloom.mesh import (
    compute_vertex_normals,
    cone_mesh,
    extrude_outline,
    make_mesh,
    sphere_mesh,
    tube_mesh,
)
from bloom.shapes import PetalShapeFactory


@pytest.fixture(scope="module")
def petal_outline():
    return PetalShapeFactory().profile(2, 6)


def _face_normals(mesh):
    v, f = mesh.vertices, mesh.faces
    return np.cross(v[f[:, 1]] - v[f[:, 0]], v[f[:, 2]] - v[f[:, 0]])


class TestComputeVertexNormals:
    def test_ccw_triangle_faces_plus_z(self):
        v = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])
        n = compute_vertex_normals(v, np.array([[0, 1, 2]]))
        np.testing.assert_allclose(n, np.tile([0.0, 0.0, 1.0], (3, 1)))

    def test_unreferenced_vertex_falls_back(self):
        v = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [5.0, 5.0, 5.0]])
        n = compute_vertex_normals(v, np.array([[0, 2, 1]]))
        np.testing.assert_allclose(n[3], [0.0, 0.0, 1.0])
        np.testing.assert_allclose(n[0], [0.0, 0.0, -1.0])


class TestPetalMesh:
    def test_arrays_read_only(self):
        mesh = make_mesh(np.eye(3), [[0, 1, 2]])
        with pytest.raises(ValueError):
            mesh.vertices[0, 0] = 2.0
        with pytest.raises(ValueError):
            mesh.faces[0, 0] = 1

    def test_bounds(self):
        mesh = make_mesh(np.eye(3), [[0, 1, 2]])
        lo, hi = mesh.bounds()
        np.testing.assert_allclose(lo, [0, 0, 0])
        np.testing.assert_allclose(hi, [1, 1, 1])
        assert mesh.vertex_count == 3


class TestExtrudeOutline:
    def test_faces_valid(self, petal_outline):
        mesh = extrude_outline(petal_outline)
        assert mesh.faces.dtype == np.int32
        assert mesh.faces.min() >= 0
        assert mesh.faces.max() < mesh.vertex_count

    def test_normals_unit(self, petal_outline):
        mesh = extrude_outline(petal_outline)
        np.testing.assert_allclose(np.linalg.norm(mesh.normals, axis=-1), 1.0, atol=1e-9)

    def test_z_extent_includes_bevel(self, petal_outline):
        mesh = extrude_outline(petal_outline, depth=0.02, bevel_thickness=0.004)
        lo, hi = mesh.bounds()
        np.testing.assert_allclose(lo[2], -0.004)
        np.testing.assert_allclose(hi[2], 0.024)

    def test_caps_have_interior_vertices(self, petal_outline):
        m = len(petal_outline)
        mesh = extrude_outline(petal_outline, bevel_segments=0, cap_rings=4)
        # Two caps of (1 + 4 rings) plus two plain side rings
        assert mesh.vertex_count == 2 * (1 + 4 * m) + 2 * m

    def test_caps_face_outward(self, petal_outline):
        mesh = extrude_outline(petal_outline, depth=0.02)
        z = mesh.vertices[:, 2]
        top = z > z.max() - 1e-9
        bottom = z < z.min() + 1e-9
        assert mesh.normals[top, 2].mean() > 0.5
        assert mesh.normals[bottom, 2].mean() < -0.5

    def test_clockwise_outline_same_topology(self, petal_outline):
        ccw = extrude_outline(petal_outline)
        cw = extrude_outline(petal_outline[::-1])
        assert ccw.vertex_count == cw.vertex_count
        assert len(ccw.faces) == len(cw.faces)


class TestPrimitiveMeshes:
    def test_cone_apex_and_base(self):
        mesh = cone_mesh(radius=0.01, height=0.05, segments=6)
        lo, hi = mesh.bounds()
        np.testing.assert_allclose(hi[1], 0.05)
        np.testing.assert_allclose(lo[1], 0.0)
        assert mesh.vertex_count == 8

    def test_sphere_normals_point_outward(self):
        mesh = sphere_mesh(radius=0.5)
        np.testing.assert_allclose(np.linalg.norm(mesh.vertices, axis=-1), 0.5, atol=1e-12)
        assert np.all(np.sum(mesh.normals * mesh.vertices, axis=-1) > 0)

    def test_sphere_faces_wind_outward(self):
        mesh = sphere_mesh(radius=1.0)
        fn = _face_normals(mesh)
        area = np.linalg.norm(fn, axis=-1)
        centroids = mesh.vertices[mesh.faces].mean(axis=1)
        real = area > 1e-12
        assert np.all(np.sum(fn[real] * centroids[real], axis=-1) > 0)

    def test_tube_radius(self):
        points = np.stack([np.zeros(5), np.linspace(0, 1, 5), np.zeros(5)], -1)
        normals = np.tile([1.0, 0.0, 0.0], (5, 1))
        binormals = np.tile([0.0, 0.0, 1.0], (5, 1))
        mesh = tube_mesh(points, normals, binormals, radius=0.1, radial_segments=8)
        assert mesh.vertex_count == 5 * 8
        assert len(mesh.faces) == 4 * 8 * 2
        radial = mesh.vertices - np.repeat(points, 8, axis=0)
        np.testing.assert_allclose(np.linalg.norm(radial, axis=-1), 0.1, atol=1e-12)
