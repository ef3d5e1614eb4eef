"""Flatten a generated flower into a single triangle mesh.

Each petal, sepal, leaf and thorn instance is expanded from its pooled
geometry using the instance's quaternion, scale and position; the stem is
swept as a tube along its frame table. Returns vertices, normals, colors and
triangle faces suitable for OpenGL display lists or the software rasterizer.
"""

import numpy as np

from bloom import quaternion as quat
from bloom.config import FlowerConfig, Material
from bloom.flower import Flower, build_flower
from bloom.mesh import PetalMesh, tube_mesh
from bloom.presets import get_preset
from bloom.stem import build_frame_table


def hex_to_rgb(color: str) -> np.ndarray:
    """'#rrggbb' -> (3,) floats in [0, 1]."""
    color = color.lstrip("#")
    return np.array([int(color[i:i + 2], 16) for i in (0, 2, 4)], dtype=np.float64) / 255.0


def transform_mesh(
    mesh: PetalMesh,
    position,
    orientation,
    scale: float = 1.0,
    offset=None,
) -> tuple[np.ndarray, np.ndarray]:
    """Place a pooled mesh in the world: scale, rotate, then translate.

    Returns new (vertices, normals); the pooled arrays are never touched.
    """
    R = quat.to_matrix(np.asarray(orientation, dtype=np.float64))
    vertices = (mesh.vertices * scale) @ R.T + np.asarray(position, dtype=np.float64)
    if offset is not None:
        vertices = vertices + np.asarray(offset, dtype=np.float64)
    normals = mesh.normals @ R.T
    return vertices, normals


def _gradient_colors(mesh: PetalMesh, material: Material, strength: float = 0.5) -> np.ndarray:
    """Material color at the base fading toward its sheen color at the tip."""
    y = mesh.vertices[:, 1]
    span = y.max() - y.min()
    t = ((y - y.min()) / span if span > 0 else np.zeros_like(y))[:, None] * strength
    return hex_to_rgb(material.color) * (1.0 - t) + hex_to_rgb(material.sheen_color) * t


def _flat_colors(count: int, material: Material) -> np.ndarray:
    return np.tile(hex_to_rgb(material.color), (count, 1))


def flower_mesh(
    flower: Flower,
    stem_segments: int = 80,
    radial_segments: int = 10,
) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Merge every part of a built flower.

    Returns:
        vertices: (N, 3) float32 positions
        normals: (N, 3) float32 unit normals
        colors: (N, 3) float32 RGB in [0, 1]
        faces: (M, 3) int32 triangle indices
    """
    config: FlowerConfig = flower.config
    pool = flower.pool
    bloom = np.asarray(config.bloom_offset, dtype=np.float64)

    all_verts = []
    all_normals = []
    all_colors = []
    all_faces = []
    offset = 0

    def add(mesh: PetalMesh, vertices, normals, colors):
        nonlocal offset
        all_verts.append(vertices)
        all_normals.append(normals)
        all_colors.append(colors)
        all_faces.append(mesh.faces + offset)
        offset += len(vertices)

    for petal in flower.petals:
        mesh = pool.geometry(petal.geometry_variant_id)
        v, n = transform_mesh(mesh, petal.position, petal.orientation, petal.scale, bloom)
        add(mesh, v, n, _gradient_colors(mesh, pool.material(petal.material_variant_id)))

    for sepal in flower.sepals:
        mesh = pool.leaf_geometry
        v, n = transform_mesh(mesh, sepal.position, sepal.orientation, sepal.attachment.scale, bloom)
        add(mesh, v, n, _flat_colors(len(v), config.sepal_material))

    center = pool.center_geometry
    v, n = transform_mesh(center, (0.0, config.center_height, 0.0), quat.IDENTITY, 1.0, bloom)
    add(center, v, n, _flat_colors(len(v), config.center_material))

    # Stem
    frames = build_frame_table(flower.stem_curve, stem_segments + 1)
    points = np.array([flower.stem_curve.point_at(t) for t in frames.params])
    stem = tube_mesh(points, frames.normals, frames.binormals, config.stem.radius, radial_segments)
    add(stem, stem.vertices, stem.normals, _flat_colors(stem.vertex_count, config.stem_material))

    for organ in flower.organs:
        if organ.kind == "thorn":
            mesh, material = pool.thorn_geometry, config.stem_material
        else:
            mesh, material = pool.leaf_geometry, config.leaf_material
        v, n = transform_mesh(mesh, organ.position, organ.orientation, organ.attachment.scale)
        add(mesh, v, n, _flat_colors(len(v), material))

    vertices = np.concatenate(all_verts, axis=0).astype(np.float32)
    normals = np.concatenate(all_normals, axis=0).astype(np.float32)
    colors = np.clip(np.concatenate(all_colors, axis=0), 0.0, 1.0).astype(np.float32)
    faces = np.concatenate(all_faces, axis=0).astype(np.int32)
    return vertices, normals, colors, faces


def generate_flower(
    preset: str = "realistic_rose",
    seed: int = 42,
    config: FlowerConfig = None,
) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Generate a complete flower mesh: petals, sepals, center, stem, leaves, thorns."""
    if config is None:
        config = get_preset(preset)
    return flower_mesh(build_flower(seed, config))
