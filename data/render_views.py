"""Render preview images of a generated flower using a software rasterizer.

This avoids any OpenGL dependency, so previews can be produced on headless
servers and in CI.
"""

import json
import logging
import os

import numpy as np
from PIL import Image

from data.generate_flower import generate_flower

logger = logging.getLogger(__name__)

LIGHT_DIR = np.array([0.5, 0.8, 0.3]) / np.linalg.norm([0.5, 0.8, 0.3])


def look_at(
    cam_pos: np.ndarray,
    target: np.ndarray = None,
    up: np.ndarray = None,
) -> np.ndarray:
    """Camera-to-world matrix for a camera at cam_pos looking at target.

    OpenGL convention: the camera looks down its local -Z axis.
    """
    if target is None:
        target = np.zeros(3)
    if up is None:
        up = np.array([0.0, 1.0, 0.0])

    cam_pos = np.asarray(cam_pos, dtype=np.float64)
    forward = np.asarray(target, dtype=np.float64) - cam_pos
    forward = forward / np.linalg.norm(forward)

    right = np.cross(forward, np.asarray(up, dtype=np.float64))
    norm = np.linalg.norm(right)
    if norm < 1e-6:
        right = np.array([1.0, 0.0, 0.0])
    else:
        right = right / norm
    true_up = np.cross(right, forward)

    c2w = np.eye(4)
    c2w[:3, 0] = right
    c2w[:3, 1] = true_up
    c2w[:3, 2] = -forward
    c2w[:3, 3] = cam_pos
    return c2w


def project_vertices(
    vertices: np.ndarray,
    c2w: np.ndarray,
    focal: float,
    height: int,
    width: int,
) -> np.ndarray:
    """Project 3D vertices to screen coordinates.

    Returns:
        (N, 3) screen-space positions [x, y, depth]; points behind the
        camera get depth 1e10.
    """
    w2c = np.linalg.inv(c2w)
    cam_pts = vertices @ w2c[:3, :3].T + w2c[:3, 3]
    depth = -cam_pts[:, 2]

    screen = np.zeros((len(vertices), 3))
    valid = depth > 0.01
    screen[valid, 0] = focal * cam_pts[valid, 0] / depth[valid] + width * 0.5
    screen[valid, 1] = -focal * cam_pts[valid, 1] / depth[valid] + height * 0.5
    screen[valid, 2] = depth[valid]
    screen[~valid, 2] = 1e10
    return screen


def rasterize_triangle(
    tri: np.ndarray,
    colors: np.ndarray,
    normals: np.ndarray,
    image: np.ndarray,
    zbuf: np.ndarray,
    light_dir: np.ndarray = LIGHT_DIR,
    ambient: float = 0.3,
):
    """Rasterize one triangle into image/zbuf with two-sided Lambertian shading.

    Args:
        tri: (3, 3) screen-space corners [x, y, depth]
        colors: (3, 3) per-corner RGB
        normals: (3, 3) per-corner world-space normals
    """
    H, W = zbuf.shape
    min_x = max(int(np.floor(tri[:, 0].min())), 0)
    max_x = min(int(np.ceil(tri[:, 0].max())), W - 1)
    min_y = max(int(np.floor(tri[:, 1].min())), 0)
    max_y = min(int(np.ceil(tri[:, 1].max())), H - 1)
    if min_x > max_x or min_y > max_y:
        return

    v0 = tri[0, :2]
    e01 = tri[1, :2] - v0
    e02 = tri[2, :2] - v0
    det = e01[0] * e02[1] - e01[1] * e02[0]
    if abs(det) < 1e-10:
        return

    px, py = np.meshgrid(np.arange(min_x, max_x + 1) + 0.5, np.arange(min_y, max_y + 1) + 0.5)
    ex = px - v0[0]
    ey = py - v0[1]
    u = (ex * e02[1] - ey * e02[0]) / det
    v = (e01[0] * ey - e01[1] * ex) / det
    w = 1.0 - u - v
    inside = (u >= 0) & (v >= 0) & (w >= 0)
    if not inside.any():
        return

    bary = np.stack([w[inside], u[inside], v[inside]], axis=-1)  # (K, 3)
    z = bary @ tri[:, 2]
    rows = py[inside].astype(int)
    cols = px[inside].astype(int)
    closer = z < zbuf[rows, cols]
    if not closer.any():
        return
    rows, cols, bary, z = rows[closer], cols[closer], bary[closer], z[closer]

    color = bary @ colors
    normal = bary @ normals
    normal /= np.maximum(np.linalg.norm(normal, axis=-1, keepdims=True), 1e-8)
    diffuse = np.abs(normal @ light_dir)
    shade = ambient + (1.0 - ambient) * diffuse

    zbuf[rows, cols] = z
    image[rows, cols] = np.clip(color * shade[:, None], 0, 1)


def render_scene(
    vertices: np.ndarray,
    faces: np.ndarray,
    colors: np.ndarray,
    normals: np.ndarray,
    c2w: np.ndarray,
    focal: float,
    height: int,
    width: int,
    background: np.ndarray = None,
) -> np.ndarray:
    """Render the mesh from a camera pose.

    Returns:
        (H, W, 3) float32 image in [0, 1]
    """
    if background is None:
        background = np.array([1.0, 1.0, 1.0])

    screen = project_vertices(vertices, c2w, focal, height, width)
    image = np.full((height, width, 3), background, dtype=np.float64)
    zbuf = np.full((height, width), np.inf, dtype=np.float64)

    corners = screen[faces]  # (M, 3, 3)
    visible = (
        np.all(corners[:, :, 2] < 1e9, axis=1)
        & (corners[:, :, 0].max(axis=1) >= 0)
        & (corners[:, :, 0].min(axis=1) < width)
        & (corners[:, :, 1].max(axis=1) >= 0)
        & (corners[:, :, 1].min(axis=1) < height)
    )
    # Front to back so the depth test rejects most hidden pixels early
    order = np.argsort(corners[:, :, 2].mean(axis=1))
    for fi in order[visible[order]]:
        f = faces[fi]
        rasterize_triangle(corners[fi], colors[f], normals[f], image, zbuf)

    return image.astype(np.float32)


def orbit_poses(
    n_views: int,
    radius: float = 3.0,
    elevation: float = 0.35,
    target: np.ndarray = None,
) -> list[np.ndarray]:
    """Cameras evenly spaced on a horizontal ring, raised by elevation radians."""
    if target is None:
        target = np.array([0.0, 0.6, 0.0])
    target = np.asarray(target, dtype=np.float64)

    poses = []
    for i in range(n_views):
        theta = 2 * np.pi * i / max(n_views, 1)
        cam_pos = target + radius * np.array([
            np.cos(elevation) * np.sin(theta),
            np.sin(elevation),
            np.cos(elevation) * np.cos(theta),
        ])
        poses.append(look_at(cam_pos, target))
    return poses


def render_previews(
    output_dir: str = "previews",
    preset: str = "realistic_rose",
    seed: int = 42,
    n_views: int = 8,
    image_size: int = 128,
    radius: float = 3.0,
    verbose: bool = True,
) -> dict:
    """Render a turntable of preview images.

    Writes ``<output_dir>/images/view_NNN.png`` and ``<output_dir>/views.json``.

    Returns:
        dict with 'preset', 'seed', 'focal', and 'frames' list
    """
    images_dir = os.path.join(output_dir, "images")
    os.makedirs(images_dir, exist_ok=True)

    vertices, normals, colors, faces = generate_flower(preset, seed)
    logger.debug("preview mesh: %d vertices, %d faces", len(vertices), len(faces))

    fov_x = 0.6911  # ~39.6 degrees
    focal = image_size * 0.5 / np.tan(fov_x * 0.5)

    frames = []
    for i, c2w in enumerate(orbit_poses(n_views, radius=radius)):
        img = render_scene(vertices, faces, colors, normals, c2w, focal, image_size, image_size)
        name = f"view_{i:03d}.png"
        Image.fromarray((np.clip(img, 0, 1) * 255).astype(np.uint8)).save(os.path.join(images_dir, name))
        frames.append({
            "file_path": f"./images/{name}",
            "transform_matrix": c2w.tolist(),
        })

    meta = {
        "preset": preset,
        "seed": seed,
        "camera_angle_x": fov_x,
        "focal": focal,
        "frames": frames,
    }
    with open(os.path.join(output_dir, "views.json"), "w") as f:
        json.dump(meta, f, indent=2)

    if verbose:
        print(f"Rendered {n_views} views of {preset} (seed {seed}) at {image_size}x{image_size} in {output_dir}/")
    return meta


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Render flower preview images")
    parser.add_argument("--output_dir", default="previews", help="Output directory")
    parser.add_argument("--preset", default="realistic_rose", help="Flower preset")
    parser.add_argument("--seed", type=int, default=42, help="Generation seed")
    parser.add_argument("--n_views", type=int, default=8, help="Number of views")
    parser.add_argument("--image_size", type=int, default=128, help="Image size")
    parser.add_argument("--radius", type=float, default=3.0, help="Camera radius")
    args = parser.parse_args()

    render_previews(args.output_dir, args.preset, args.seed, args.n_views, args.image_size, args.radius)
