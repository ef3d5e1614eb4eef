"""Quaternion and rotation helpers. Quaternions are (x, y, z, w) arrays."""

import numpy as np

UP = np.array([0.0, 1.0, 0.0])
IDENTITY = np.array([0.0, 0.0, 0.0, 1.0])


def normalize_vector(v: np.ndarray, fallback: np.ndarray = None) -> np.ndarray:
    """Unit vector along v, or fallback (default +Y) when v is degenerate."""
    v = np.asarray(v, dtype=np.float64)
    norm = np.linalg.norm(v)
    if not np.isfinite(norm) or norm < 1e-12:
        return np.array(UP if fallback is None else fallback, dtype=np.float64)
    return v / norm


def normalize(q: np.ndarray) -> np.ndarray:
    q = np.asarray(q, dtype=np.float64)
    norm = np.linalg.norm(q)
    if not np.isfinite(norm) or norm < 1e-12:
        return IDENTITY.copy()
    return q / norm


def from_axis_angle(axis: np.ndarray, angle: float) -> np.ndarray:
    axis = normalize_vector(axis)
    half = 0.5 * angle
    s = np.sin(half)
    return np.array([axis[0] * s, axis[1] * s, axis[2] * s, np.cos(half)])


def from_unit_vectors(v_from: np.ndarray, v_to: np.ndarray) -> np.ndarray:
    """Shortest rotation taking unit vector v_from onto unit vector v_to."""
    a = normalize_vector(v_from)
    b = normalize_vector(v_to)
    r = float(np.dot(a, b)) + 1.0
    if r < 1e-8:
        # Antiparallel: rotate half a turn about any axis orthogonal to a
        if abs(a[0]) > abs(a[2]):
            q = np.array([-a[1], a[0], 0.0, 0.0])
        else:
            q = np.array([0.0, -a[2], a[1], 0.0])
    else:
        c = np.cross(a, b)
        q = np.array([c[0], c[1], c[2], r])
    return normalize(q)


def multiply(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Hamilton product a * b (b is applied first)."""
    ax, ay, az, aw = a
    bx, by, bz, bw = b
    return np.array([
        ax * bw + aw * bx + ay * bz - az * by,
        ay * bw + aw * by + az * bx - ax * bz,
        az * bw + aw * bz + ax * by - ay * bx,
        aw * bw - ax * bx - ay * by - az * bz,
    ])


def rotate_vector(q: np.ndarray, v: np.ndarray) -> np.ndarray:
    u = np.asarray(q[:3], dtype=np.float64)
    w = q[3]
    v = np.asarray(v, dtype=np.float64)
    t = 2.0 * np.cross(u, v)
    return v + w * t + np.cross(u, t)


def rotate_vectors(q: np.ndarray, vectors: np.ndarray) -> np.ndarray:
    """Rotate an (N, 3) array of vectors."""
    return np.asarray(vectors, dtype=np.float64) @ to_matrix(q).T


def to_matrix(q: np.ndarray) -> np.ndarray:
    x, y, z, w = normalize(q)
    return np.array([
        [1 - 2 * (y * y + z * z), 2 * (x * y - z * w), 2 * (x * z + y * w)],
        [2 * (x * y + z * w), 1 - 2 * (x * x + z * z), 2 * (y * z - x * w)],
        [2 * (x * z - y * w), 2 * (y * z + x * w), 1 - 2 * (x * x + y * y)],
    ])


def from_euler_xyz(rx: float, ry: float, rz: float) -> np.ndarray:
    """Quaternion for intrinsic X, then Y, then Z rotations."""
    c1, c2, c3 = np.cos(rx / 2), np.cos(ry / 2), np.cos(rz / 2)
    s1, s2, s3 = np.sin(rx / 2), np.sin(ry / 2), np.sin(rz / 2)
    return np.array([
        s1 * c2 * c3 + c1 * s2 * s3,
        c1 * s2 * c3 - s1 * c2 * s3,
        c1 * c2 * s3 + s1 * s2 * c3,
        c1 * c2 * c3 - s1 * s2 * s3,
    ])


def rotate_about_axis(v: np.ndarray, axis: np.ndarray, angle: float) -> np.ndarray:
    """Rodrigues rotation of vector v about a unit axis."""
    k = normalize_vector(axis)
    v = np.asarray(v, dtype=np.float64)
    c, s = np.cos(angle), np.sin(angle)
    return v * c + np.cross(k, v) * s + k * np.dot(k, v) * (1.0 - c)


def orient_along(direction: np.ndarray, roll_angle: float = 0.0) -> np.ndarray:
    """Rotate +Y onto ``direction``, then roll about ``direction``.

    Composed as roll * base, so the roll turns about the already-rotated
    axis rather than about world up.
    """
    base = from_unit_vectors(UP, direction)
    roll = from_axis_angle(direction, roll_angle)
    return normalize(multiply(roll, base))
