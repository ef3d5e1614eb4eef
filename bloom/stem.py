"""Stem spline and rotation-minimizing frames for attaching leaves and thorns."""

import logging
import math
from dataclasses import dataclass

import numpy as np

from bloom import quaternion as quat

logger = logging.getLogger(__name__)

_EPS = 1e-9


class StemCurve:
    """Catmull-Rom spline through authored control points.

    Tangents at each control point are ``tension * (next - previous)``; the
    first and last control points are mirrored to supply missing neighbours.
    ``point(u)`` uses the raw spline parameter, ``point_at(t)`` the
    arc-length parameter.
    """

    def __init__(self, points, tension: float = 0.5, arc_divisions: int = 200):
        pts = np.nan_to_num(np.asarray(points, dtype=np.float64).reshape(-1, 3))
        if len(pts) == 0:
            pts = np.array([[0.0, 0.0, 0.0]])
        if len(pts) == 1:
            logger.debug("stem with a single control point padded to a short vertical segment")
            pts = np.concatenate([pts, pts + np.array([0.0, 0.1, 0.0])])
        self.points = pts
        self.points.flags.writeable = False
        self.tension = float(tension) if math.isfinite(tension) else 0.5
        self.arc_divisions = max(int(arc_divisions), 1)

        samples = np.array([self.point(u) for u in np.linspace(0.0, 1.0, self.arc_divisions + 1)])
        segment = np.linalg.norm(np.diff(samples, axis=0), axis=-1)
        self._arc_lengths = np.concatenate([[0.0], np.cumsum(segment)])

    @property
    def length(self) -> float:
        return float(self._arc_lengths[-1])

    def _segment(self, u: float):
        pts = self.points
        n = len(pts)
        u = min(max(float(u), 0.0), 1.0)
        p = (n - 1) * u
        i = math.floor(p)
        w = p - i
        if i >= n - 1:
            i, w = n - 2, 1.0
        p0 = pts[i - 1] if i > 0 else 2 * pts[0] - pts[1]
        p1, p2 = pts[i], pts[i + 1]
        p3 = pts[i + 2] if i + 2 < n else 2 * pts[n - 1] - pts[n - 2]

        t0 = self.tension * (p2 - p0)
        t1 = self.tension * (p3 - p1)
        c0 = p1
        c1 = t0
        c2 = -3 * p1 + 3 * p2 - 2 * t0 - t1
        c3 = 2 * p1 - 2 * p2 + t0 + t1
        return w, (c0, c1, c2, c3), n - 1

    def point(self, u: float) -> np.ndarray:
        w, (c0, c1, c2, c3), _ = self._segment(u)
        return c0 + w * (c1 + w * (c2 + w * c3))

    def derivative(self, u: float) -> np.ndarray:
        """d point / d u."""
        w, (_, c1, c2, c3), spans = self._segment(u)
        return (c1 + 2 * c2 * w + 3 * c3 * w * w) * spans

    def u_at(self, t: float) -> float:
        """Map an arc-length fraction to the raw spline parameter."""
        t = min(max(float(t), 0.0), 1.0)
        total = self._arc_lengths[-1]
        if total < _EPS:
            return t
        target = t * total
        k = int(np.searchsorted(self._arc_lengths, target, side="right")) - 1
        k = min(max(k, 0), self.arc_divisions - 1)
        seg = self._arc_lengths[k + 1] - self._arc_lengths[k]
        frac = (target - self._arc_lengths[k]) / seg if seg > _EPS else 0.0
        return (k + frac) / self.arc_divisions

    def point_at(self, t: float) -> np.ndarray:
        return self.point(self.u_at(t))

    def tangent_at(self, t: float):
        """Unit tangent at arc-length fraction t, or None where it vanishes."""
        d = self.derivative(self.u_at(t))
        norm = np.linalg.norm(d)
        if not np.isfinite(norm) or norm < _EPS:
            return None
        return d / norm


@dataclass(frozen=True, eq=False)
class FrenetFrameTable:
    """Orthonormal (tangent, normal, binormal) samples along a stem."""
    params: np.ndarray
    tangents: np.ndarray
    normals: np.ndarray
    binormals: np.ndarray

    def __post_init__(self):
        for arr in (self.params, self.tangents, self.normals, self.binormals):
            arr.flags.writeable = False

    def __len__(self) -> int:
        return len(self.params)

    def nearest_index(self, t: float) -> int:
        t = float(t) if math.isfinite(t) else 0.0
        t = min(max(t, 0.0), 1.0)
        return int(round(t * (len(self.params) - 1)))

    def sample_nearest(self, t: float) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        i = self.nearest_index(t)
        return self.tangents[i], self.normals[i], self.binormals[i]


def _initial_normal(tangent: np.ndarray) -> np.ndarray:
    """Normal perpendicular to the tangent, seeded from its smallest axis."""
    magnitude = np.abs(tangent)
    smallest = np.inf
    axis = None
    for k in range(3):
        if magnitude[k] <= smallest:
            smallest = magnitude[k]
            axis = np.eye(3)[k]
    side = quat.normalize_vector(np.cross(tangent, axis), fallback=np.array([1.0, 0.0, 0.0]))
    return np.cross(tangent, side)


def build_frame_table(curve: StemCurve, samples: int = 141) -> FrenetFrameTable:
    """Sample tangents and parallel-transport a normal along the curve.

    Each normal is the previous one turned by the minimal rotation taking the
    previous tangent onto the current one, so the frame never flips where
    the stem runs vertical. Vanishing tangents reuse the last valid tangent,
    or +Y when there is none yet.
    """
    samples = max(int(samples), 2)
    params = np.linspace(0.0, 1.0, samples)

    tangents = np.zeros((samples, 3))
    previous = None
    for i, t in enumerate(params):
        tangent = curve.tangent_at(t)
        if tangent is None:
            logger.debug("zero-length stem tangent at t=%.3f", t)
            tangent = previous if previous is not None else quat.UP.copy()
        tangents[i] = tangent
        previous = tangent

    normals = np.zeros((samples, 3))
    binormals = np.zeros((samples, 3))
    normals[0] = _initial_normal(tangents[0])
    binormals[0] = np.cross(tangents[0], normals[0])

    for i in range(1, samples):
        t_prev, t_cur = tangents[i - 1], tangents[i]
        normal = normals[i - 1]
        axis = np.cross(t_prev, t_cur)
        if np.linalg.norm(axis) > _EPS:
            theta = math.acos(min(max(float(np.dot(t_prev, t_cur)), -1.0), 1.0))
            normal = quat.rotate_about_axis(normal, axis, theta)
        # Remove drift so the frame stays orthonormal
        normal = quat.normalize_vector(normal - t_cur * np.dot(normal, t_cur), fallback=normals[i - 1])
        normals[i] = normal
        binormals[i] = np.cross(t_cur, normal)

    return FrenetFrameTable(params, tangents, normals, binormals)


def attach_organ(
    curve: StemCurve,
    frames: FrenetFrameTable,
    t: float,
    side_sign: int = 1,
    roll_angle: float = 0.0,
    lean_weight: float = 0.3,
    out_weight: float = 0.85,
    lateral_offset: float = 0.07,
    azimuth: float = 0.0,
) -> tuple[np.ndarray, np.ndarray]:
    """Position and orientation of an organ growing out of the stem at t.

    The organ points along a blend of the stem tangent and the outward
    normal (turned by ``azimuth`` around the stem), then rolls about its own
    axis.
    """
    t = min(max(float(t), 0.0), 1.0) if math.isfinite(t) else 0.0
    side = -1.0 if side_sign < 0 else 1.0
    point = curve.point_at(t)
    tangent, normal, _ = frames.sample_nearest(t)

    outward = normal * side
    if azimuth:
        outward = quat.rotate_about_axis(outward, tangent, azimuth)
    direction = quat.normalize_vector(tangent * lean_weight + outward * out_weight, fallback=outward)
    orientation = quat.orient_along(direction, roll_angle)
    position = point + outward * lateral_offset
    return position, orientation
