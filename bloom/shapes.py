"""2D petal and leaf outlines."""

import numpy as np

from bloom.config import ProfileStyle


def bezier_points(p0, p1, p2, p3, n: int, include_end: bool = False) -> np.ndarray:
    """Sample a cubic Bezier segment at n evenly spaced parameters."""
    t = np.linspace(0.0, 1.0, n + 1 if include_end else n, endpoint=include_end)[:, None]
    p0, p1, p2, p3 = (np.asarray(p, dtype=np.float64) for p in (p0, p1, p2, p3))
    mt = 1.0 - t
    return mt ** 3 * p0 + 3 * mt ** 2 * t * p1 + 3 * mt * t ** 2 * p2 + t ** 3 * p3


def petal_segments(width: float, height: float, notch: float) -> list[tuple]:
    """Control points of the six cubic segments of a heart-shaped petal.

    Starts at the base (0, 0), runs up the right side, through the notch at
    the top and back down the left side.
    """
    w, h = width, height
    return [
        ((0.0, 0.0), (0.12 * w, 0.02 * h), (0.42 * w, 0.18 * h), (0.52 * w, 0.48 * h)),
        ((0.52 * w, 0.48 * h), (0.56 * w, 0.68 * h), (0.48 * w, 0.88 * h), (0.28 * w, 0.98 * h)),
        ((0.28 * w, 0.98 * h), (0.15 * w, 1.02 * h), (0.05 * w, (1.0 - notch) * h), (0.0, (1.0 - notch * 0.4) * h)),
        ((0.0, (1.0 - notch * 0.4) * h), (-0.05 * w, (1.0 - notch) * h), (-0.15 * w, 1.02 * h), (-0.28 * w, 0.98 * h)),
        ((-0.28 * w, 0.98 * h), (-0.48 * w, 0.88 * h), (-0.56 * w, 0.68 * h), (-0.52 * w, 0.48 * h)),
        ((-0.52 * w, 0.48 * h), (-0.42 * w, 0.18 * h), (-0.12 * w, 0.02 * h), (0.0, 0.0)),
    ]


class PetalShapeFactory:
    """Builds and caches one outline per layer.

    ``profile(layer, layer_count)`` is pure: the same arguments always give
    the same read-only (M, 2) array, shared by every petal of that layer.
    """

    def __init__(self, style: ProfileStyle = None):
        self.style = style if style is not None else ProfileStyle()
        self._cache: dict[tuple[int, int], np.ndarray] = {}

    def proportions(self, layer_index: int, layer_count: int) -> tuple[float, float, float]:
        """(width_scale, height_scale, notch_depth) for a layer."""
        layer_count = max(int(layer_count), 1)
        layer_index = min(max(int(layer_index), 0), layer_count - 1)
        if self.style.shape_layers is not None:
            layer_count = min(layer_count, max(int(self.style.shape_layers), 1))
            layer_index = min(layer_index, layer_count - 1)
        t = layer_index / (layer_count - 1) if layer_count > 1 else 0.0

        def blend(bounds):
            return bounds[0] + (bounds[1] - bounds[0]) * t

        return (
            blend(self.style.width_range),
            blend(self.style.height_range),
            blend(self.style.notch_range),
        )

    def profile(self, layer_index: int, layer_count: int) -> np.ndarray:
        layer_count = max(int(layer_count), 1)
        layer_index = min(max(int(layer_index), 0), layer_count - 1)
        key = (layer_index, layer_count)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        width, height, notch = self.proportions(layer_index, layer_count)
        n = max(int(self.style.curve_segments), 2)
        outline = np.concatenate(
            [bezier_points(*seg, n=n) for seg in petal_segments(width, height, notch)],
            axis=0,
        )
        outline.flags.writeable = False
        self._cache[key] = outline
        return outline


def leaf_profile(
    half_width: float = 0.24,
    length: float = 1.0,
    edge_segments: int = 16,
    serration: float = 0.015,
    serration_frequency: float = 12.0,
) -> np.ndarray:
    """Serrated lanceolate leaf outline, base at the origin, tip at +Y."""
    t = np.arange(1, edge_segments + 1) / edge_segments
    y = t * length
    width = np.sin(np.pi * t) * half_width * (1.0 - t * 0.3)
    teeth = serration * np.sin(t * np.pi * serration_frequency) * (1.0 - t * 0.5)
    right = np.stack([width + teeth, y], axis=-1)
    left = np.stack([-(width + teeth), y], axis=-1)[::-1]
    outline = np.concatenate([[[0.0, 0.0]], right, [[0.0, length]], left], axis=0)
    # Drop points that coincide with a neighbour (the tip sample and apex)
    keep = np.ones(len(outline), dtype=bool)
    keep[1:] = np.linalg.norm(np.diff(outline, axis=0), axis=-1) > 1e-9
    return outline[keep]
