"""Orbit camera that circles the flower: mouse drag rotates, wheel zooms."""

import math

import numpy as np


class OrbitCamera:
    """Camera on a sphere around a target point.

    Controls:
        Mouse drag: Orbit (azimuth/elevation)
        Wheel or +/-: Move closer/further
        Arrow keys: Orbit by keyboard
    """

    def __init__(
        self,
        target: np.ndarray = None,
        distance: float = 3.0,
        azimuth: float = 0.0,
        elevation: float = 20.0,
        fov: float = 45.0,
        orbit_sensitivity: float = 0.3,
        zoom_step: float = 0.1,
    ):
        self.target = np.array(target if target is not None else [0.0, 0.6, 0.0], dtype=np.float64)
        self.distance = distance
        self.azimuth = azimuth  # degrees around +Y
        self.elevation = elevation  # degrees above the horizon
        self.fov = fov  # degrees
        self.orbit_sensitivity = orbit_sensitivity
        self.zoom_step = zoom_step

        # Clamp limits
        self.min_elevation = -85.0
        self.max_elevation = 85.0
        self.min_distance = 0.5
        self.max_distance = 12.0

        self._clamp()

    def _clamp(self):
        self.elevation = max(self.min_elevation, min(self.max_elevation, self.elevation))
        self.distance = max(self.min_distance, min(self.max_distance, self.distance))
        self.azimuth %= 360.0

    @property
    def position(self) -> np.ndarray:
        az = math.radians(self.azimuth)
        el = math.radians(self.elevation)
        return self.target + self.distance * np.array([
            math.cos(el) * math.sin(az),
            math.sin(el),
            math.cos(el) * math.cos(az),
        ])

    def orbit(self, d_azimuth: float, d_elevation: float):
        """Rotate around the target by the given degrees."""
        self.azimuth += d_azimuth
        self.elevation += d_elevation
        self._clamp()

    def process_mouse(self, dx: float, dy: float):
        """Drag deltas in pixels; dragging up raises the camera."""
        self.orbit(-dx * self.orbit_sensitivity, dy * self.orbit_sensitivity)

    def zoom(self, steps: float):
        """Positive steps move toward the target, scaling the distance geometrically."""
        self.distance *= (1.0 - self.zoom_step) ** steps
        self._clamp()

    def get_view_matrix(self) -> np.ndarray:
        """Get the 4x4 view matrix (world-to-camera)."""
        return np.linalg.inv(self.get_c2w_matrix())

    def get_c2w_matrix(self) -> np.ndarray:
        """Get the 4x4 camera-to-world matrix (OpenGL: camera looks down -Z)."""
        eye = self.position
        forward = self.target - eye
        forward /= np.linalg.norm(forward)
        right = np.cross(forward, np.array([0.0, 1.0, 0.0]))
        norm = np.linalg.norm(right)
        right = right / norm if norm > 1e-6 else np.array([1.0, 0.0, 0.0])
        up = np.cross(right, forward)

        c2w = np.eye(4)
        c2w[:3, 0] = right
        c2w[:3, 1] = up
        c2w[:3, 2] = -forward
        c2w[:3, 3] = eye
        return c2w
