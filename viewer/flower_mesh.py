"""OpenGL flower renderer: one display list per pooled geometry, drawn per instance."""

import numpy as np

from bloom import quaternion as quat
from bloom.animation import apply_delta, bloom_delta, organ_delta, petal_delta
from bloom.flower import Flower
from bloom.mesh import tube_mesh
from bloom.stem import build_frame_table
from data.generate_flower import hex_to_rgb

# Lazy imports: OpenGL may not be available in headless/test environments
_gl = None


def _import_gl():
    global _gl
    if _gl is None:
        import OpenGL.GL as GL
        _gl = GL
    return _gl


def instance_matrix(position, orientation, scale: float) -> np.ndarray:
    """4x4 model matrix: translate * rotate * scale."""
    m = np.eye(4)
    m[:3, :3] = quat.to_matrix(np.asarray(orientation, dtype=np.float64)) * scale
    m[:3, 3] = position
    return m


def bloom_matrix(flower: Flower, elapsed: float) -> np.ndarray:
    """Transform for the whole bloom: offset above the stem plus spin, nod and pulse."""
    delta = bloom_delta(elapsed, flower.config.animation)
    _, orientation = apply_delta(np.zeros(3), quat.IDENTITY, delta)
    return instance_matrix(flower.config.bloom_offset, orientation, delta.scale)


def animated_petals(flower: Flower, elapsed: float) -> list[np.ndarray]:
    """Per-petal local model matrices at the given time; instances stay untouched."""
    style = flower.config.animation
    matrices = []
    for petal in flower.petals:
        position, orientation = apply_delta(petal.position, petal.orientation, petal_delta(petal, elapsed, style))
        matrices.append(instance_matrix(position, orientation, petal.scale))
    return matrices


def animated_organs(flower: Flower, elapsed: float) -> list[np.ndarray]:
    matrices = []
    for organ in flower.organs:
        position, orientation = apply_delta(organ.position, organ.orientation, organ_delta(organ, elapsed))
        matrices.append(instance_matrix(position, orientation, organ.attachment.scale))
    return matrices


class FlowerRenderer:
    """Renders a generated flower using OpenGL with directional lighting."""

    def __init__(self, flower: Flower):
        self.flower = flower
        self._lists = {}

    def init_gl(self):
        """Initialize OpenGL state for rendering (call after context creation)."""
        GL = _import_gl()

        GL.glEnable(GL.GL_DEPTH_TEST)
        GL.glEnable(GL.GL_LIGHTING)
        GL.glEnable(GL.GL_LIGHT0)
        GL.glEnable(GL.GL_COLOR_MATERIAL)
        GL.glEnable(GL.GL_NORMALIZE)
        GL.glLightModeli(GL.GL_LIGHT_MODEL_TWO_SIDE, GL.GL_TRUE)

        # Directional light from upper-right
        GL.glLightfv(GL.GL_LIGHT0, GL.GL_POSITION, [0.5, 0.8, 0.3, 0.0])  # w=0 -> directional
        GL.glLightfv(GL.GL_LIGHT0, GL.GL_DIFFUSE, [0.8, 0.8, 0.8, 1.0])
        GL.glLightfv(GL.GL_LIGHT0, GL.GL_SPECULAR, [0.3, 0.3, 0.3, 1.0])
        GL.glLightfv(GL.GL_LIGHT0, GL.GL_AMBIENT, [0.3, 0.3, 0.3, 1.0])
        GL.glColorMaterial(GL.GL_FRONT_AND_BACK, GL.GL_AMBIENT_AND_DIFFUSE)

        GL.glClearColor(0.15, 0.15, 0.2, 1.0)
        self._build_display_lists()

    def _compile(self, mesh):
        GL = _import_gl()
        display_list = GL.glGenLists(1)
        GL.glNewList(display_list, GL.GL_COMPILE)
        GL.glBegin(GL.GL_TRIANGLES)
        for face in mesh.faces:
            for idx in face:
                GL.glNormal3fv(mesh.normals[idx].tolist())
                GL.glVertex3fv(mesh.vertices[idx].tolist())
        GL.glEnd()
        GL.glEndList()
        return display_list

    def _build_display_lists(self):
        """Compile each pooled mesh once; instances reuse them."""
        pool = self.flower.pool
        for geometry_id in range(pool.geometry_count):
            self._lists[("petal", geometry_id)] = self._compile(pool.geometry(geometry_id))
        self._lists["leaf"] = self._compile(pool.leaf_geometry)
        self._lists["thorn"] = self._compile(pool.thorn_geometry)
        self._lists["center"] = self._compile(pool.center_geometry)

        frames = build_frame_table(self.flower.stem_curve, 81)
        points = np.array([self.flower.stem_curve.point_at(t) for t in frames.params])
        stem = tube_mesh(points, frames.normals, frames.binormals, self.flower.config.stem.radius, 10)
        self._lists["stem"] = self._compile(stem)

    def _draw(self, key, matrix: np.ndarray, color: str):
        GL = _import_gl()
        GL.glPushMatrix()
        GL.glMultMatrixf(matrix.T.astype(np.float32).flatten())
        GL.glColor3fv(hex_to_rgb(color).tolist())
        GL.glCallList(self._lists[key])
        GL.glPopMatrix()

    def render(self, elapsed: float = 0.0):
        """Draw the flower at the given animation time."""
        GL = _import_gl()
        if not self._lists:
            return
        flower = self.flower
        config = flower.config

        self._draw("stem", np.eye(4), config.stem_material.color)
        for organ, matrix in zip(flower.organs, animated_organs(flower, elapsed)):
            color = config.stem_material.color if organ.kind == "thorn" else config.leaf_material.color
            self._draw(organ.kind, matrix, color)

        GL.glPushMatrix()
        GL.glMultMatrixf(bloom_matrix(flower, elapsed).T.astype(np.float32).flatten())
        for petal, matrix in zip(flower.petals, animated_petals(flower, elapsed)):
            material = flower.pool.material(petal.material_variant_id)
            self._draw(("petal", petal.geometry_variant_id), matrix, material.color)
        for sepal in flower.sepals:
            matrix = instance_matrix(sepal.position, sepal.orientation, sepal.attachment.scale)
            self._draw("leaf", matrix, config.sepal_material.color)
        center = instance_matrix((0.0, config.center_height, 0.0), quat.IDENTITY, 1.0)
        self._draw("center", center, config.center_material.color)
        GL.glPopMatrix()

    def cleanup(self):
        """Free OpenGL resources."""
        GL = _import_gl()
        for display_list in self._lists.values():
            GL.glDeleteLists(display_list, 1)
        self._lists = {}
