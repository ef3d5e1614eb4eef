"""Triangle mesh containers and base mesh builders."""

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True, eq=False)
class PetalMesh:
    """Immutable indexed triangle mesh.

    Attributes:
        vertices: (N, 3) float64 positions
        normals: (N, 3) float64 unit normals
        faces: (M, 3) int32 triangle indices
    """
    vertices: np.ndarray
    normals: np.ndarray
    faces: np.ndarray

    def __post_init__(self):
        for arr in (self.vertices, self.normals, self.faces):
            arr.flags.writeable = False

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)

    def bounds(self) -> tuple[np.ndarray, np.ndarray]:
        return self.vertices.min(axis=0), self.vertices.max(axis=0)


def make_mesh(vertices: np.ndarray, faces: np.ndarray, normals: np.ndarray = None) -> PetalMesh:
    vertices = np.array(vertices, dtype=np.float64)
    faces = np.array(faces, dtype=np.int32).reshape(-1, 3)
    if normals is None:
        normals = compute_vertex_normals(vertices, faces)
    return PetalMesh(vertices, np.array(normals, dtype=np.float64), faces)


def compute_vertex_normals(vertices: np.ndarray, faces: np.ndarray) -> np.ndarray:
    """Area-weighted per-vertex normals. Degenerate vertices get +Z."""
    v = np.asarray(vertices, dtype=np.float64)
    f = np.asarray(faces, dtype=np.int64)
    normals = np.zeros_like(v)
    if len(f):
        face_normals = np.cross(v[f[:, 1]] - v[f[:, 0]], v[f[:, 2]] - v[f[:, 0]])
        for k in range(3):
            np.add.at(normals, f[:, k], face_normals)
    norms = np.linalg.norm(normals, axis=-1, keepdims=True)
    degenerate = (norms < 1e-12).squeeze(-1)
    normals = normals / np.maximum(norms, 1e-12)
    normals[degenerate] = np.array([0.0, 0.0, 1.0])
    return normals


def _ring_faces(start_a: int, start_b: int, count: int, closed: bool = True) -> np.ndarray:
    """Quad strip between two rings of ``count`` vertices, as triangles."""
    i = np.arange(count if closed else count - 1)
    j = (i + 1) % count
    a, b = start_a + i, start_a + j
    c, d = start_b + j, start_b + i
    return np.concatenate([np.stack([a, b, c], -1), np.stack([a, c, d], -1)])


def extrude_outline(
    outline: np.ndarray,
    depth: float = 0.012,
    bevel_thickness: float = 0.005,
    bevel_size: float = 0.005,
    bevel_segments: int = 2,
    cap_rings: int = 4,
) -> PetalMesh:
    """Extrude a closed 2D outline along +Z into a bevelled slab.

    The caps are filled with concentric rings shrinking toward the outline
    centroid, so they carry interior vertices for later deformation. This
    assumes the outline is star-shaped around its centroid, which holds for
    petal and leaf outlines.
    """
    outline = np.asarray(outline, dtype=np.float64)
    x, y = outline[:, 0], outline[:, 1]
    signed_area = 0.5 * np.sum(x * np.roll(y, -1) - np.roll(x, -1) * y)
    if signed_area < 0:
        outline = outline[::-1]
    m = len(outline)
    center = outline.mean(axis=0)

    tangent = np.roll(outline, -1, axis=0) - np.roll(outline, 1, axis=0)
    outward = np.stack([tangent[:, 1], -tangent[:, 0]], axis=-1)
    outward /= np.maximum(np.linalg.norm(outward, axis=-1, keepdims=True), 1e-12)

    if bevel_segments > 0 and (bevel_thickness > 0 or bevel_size > 0):
        phis = np.linspace(0.0, np.pi / 2, bevel_segments + 1)
        rings = [(bevel_size * np.sin(p), -bevel_thickness * np.cos(p)) for p in phis]
        rings += [(bevel_size * np.sin(p), depth + bevel_thickness * np.cos(p)) for p in phis[::-1]]
    else:
        rings = [(0.0, 0.0), (0.0, depth)]
    z_front = rings[0][1]
    z_back = rings[-1][1]

    cap_rings = max(int(cap_rings), 1)
    vertices = []
    faces = []

    def add_cap(z: float, facing_back: bool):
        base = sum(len(v) for v in vertices)
        pts = [np.array([[center[0], center[1], z]])]
        for r in range(1, cap_rings + 1):
            ring = center + (outline - center) * (r / cap_rings)
            pts.append(np.column_stack([ring, np.full(m, z)]))
        vertices.append(np.concatenate(pts))

        i = np.arange(m)
        fan = np.stack([np.full(m, base), base + 1 + i, base + 1 + (i + 1) % m], -1)
        strips = [fan]
        for r in range(cap_rings - 1):
            inner = base + 1 + r * m
            outer = inner + m
            # inner -> outer strip oriented for +Z
            i0, i1 = inner + i, inner + (i + 1) % m
            o0, o1 = outer + i, outer + (i + 1) % m
            strips.append(np.stack([i0, o0, o1], -1))
            strips.append(np.stack([i0, o1, i1], -1))
        tris = np.concatenate(strips)
        if not facing_back:
            tris = tris[:, ::-1]
        faces.append(tris)

    add_cap(z_front, facing_back=False)

    side_base = sum(len(v) for v in vertices)
    for offset, z in rings:
        ring = outline + outward * offset
        vertices.append(np.column_stack([ring, np.full(m, z)]))
    for k in range(len(rings) - 1):
        faces.append(_ring_faces(side_base + k * m, side_base + (k + 1) * m, m))

    add_cap(z_back, facing_back=True)

    return make_mesh(np.concatenate(vertices), np.concatenate(faces))


def cone_mesh(radius: float = 0.012, height: float = 0.05, segments: int = 6) -> PetalMesh:
    """Closed cone with its base on y=0 and its apex at +Y."""
    theta = np.linspace(0.0, 2 * np.pi, segments, endpoint=False)
    ring = np.stack([radius * np.cos(theta), np.zeros(segments), radius * np.sin(theta)], -1)
    vertices = np.concatenate([[[0.0, height, 0.0]], ring, [[0.0, 0.0, 0.0]]])
    i = np.arange(segments)
    p0, p1 = 1 + i, 1 + (i + 1) % segments
    apex, base_center = 0, segments + 1
    sides = np.stack([p0, np.full(segments, apex), p1], -1)
    cap = np.stack([np.full(segments, base_center), p0, p1], -1)
    return make_mesh(vertices, np.concatenate([sides, cap]))


def sphere_mesh(radius: float = 0.035, n_lat: int = 10, n_lon: int = 16) -> PetalMesh:
    """UV sphere centered at the origin with analytic normals."""
    phi = np.linspace(0, np.pi, n_lat)
    theta = np.linspace(0, 2 * np.pi, n_lon, endpoint=False)
    PHI, THETA = np.meshgrid(phi, theta, indexing="ij")
    unit = np.stack([
        np.sin(PHI) * np.cos(THETA),
        np.cos(PHI),
        np.sin(PHI) * np.sin(THETA),
    ], axis=-1).reshape(-1, 3)
    faces = np.concatenate([
        _ring_faces(r * n_lon, (r + 1) * n_lon, n_lon) for r in range(n_lat - 1)
    ])
    return make_mesh(unit * radius, faces, normals=unit)


def tube_mesh(
    points: np.ndarray,
    normals: np.ndarray,
    binormals: np.ndarray,
    radius: float = 0.04,
    radial_segments: int = 10,
) -> PetalMesh:
    """Open tube swept along a path using its (normal, binormal) frames."""
    points = np.asarray(points, dtype=np.float64)
    theta = np.linspace(0.0, 2 * np.pi, radial_segments, endpoint=False)
    cos, sin = np.cos(theta)[None, :, None], np.sin(theta)[None, :, None]
    radial = cos * np.asarray(normals)[:, None, :] + sin * np.asarray(binormals)[:, None, :]
    vertices = (points[:, None, :] + radius * radial).reshape(-1, 3)
    faces = np.concatenate([
        _ring_faces(k * radial_segments, (k + 1) * radial_segments, radial_segments)
        for k in range(len(points) - 1)
    ])
    return make_mesh(vertices, faces, normals=radial.reshape(-1, 3))
