"""Per-vertex deformation that turns a flat extruded outline into a petal.

The displacement steps run in a fixed order: base pinch on x, then all z
contributions (cup, edge curl, backward curl, ruffle, tip fold) summed,
then a twist of the (x, z) plane. Changing the order changes the shape.
"""

import logging
import math

import numpy as np

from bloom.config import DeformParams
from bloom.mesh import PetalMesh, compute_vertex_normals, make_mesh

logger = logging.getLogger(__name__)

# Tuned visual constants, kept fixed so every preset shares the same look.
PINCH_THRESHOLD = 0.3
CUP_FREQUENCY = 0.7
EDGE_CURL_POWER = 1.8
BACK_CURL_THRESHOLD = 0.3
RUFFLE_FREQ_LENGTH = math.pi * 5
RUFFLE_FREQ_EDGE = math.pi * 3
RUFFLE_POWER = 0.5
TIP_FOLD_THRESHOLD = 0.7
TWIST_PIVOT = 0.25
VARIANT_OFFSET = 0.12


def variant_phase(variant_seed: int) -> float:
    """Ruffle phase shift so copies of one layer differ reproducibly."""
    return int(variant_seed) * VARIANT_OFFSET * 2.0


def _finite(value: float) -> float:
    value = float(value)
    if not math.isfinite(value):
        logger.debug("non-finite deformation parameter %r replaced by 0", value)
        return 0.0
    return value


def sanitize_params(params: DeformParams) -> DeformParams:
    return DeformParams(
        cup=_finite(params.cup),
        backward_curl=_finite(params.backward_curl),
        edge_curl=_finite(params.edge_curl),
        ruffle=_finite(params.ruffle),
        base_pinch=_finite(params.base_pinch),
        twist=_finite(params.twist),
        tip_fold=_finite(params.tip_fold),
    )


def deform(base_mesh: PetalMesh, params: DeformParams, variant_seed: int = 0) -> PetalMesh:
    """Curve a flat petal mesh.

    Args:
        base_mesh: extruded outline, petal length along +Y, thickness along Z
        params: deformation amounts for this layer
        variant_seed: variant index; shifts the ruffle phase and twist

    Returns:
        New mesh with the same vertex count, order and faces, translated so
        min y is 0 and the x/z bounding box is centered, with fresh normals.
    """
    p = sanitize_params(params)
    v = np.array(base_mesh.vertices, dtype=np.float64)
    x, y, z = v[:, 0].copy(), v[:, 1], v[:, 2].copy()

    min_y, max_y = y.min(), y.max()
    height = max_y - min_y
    half_width = max(abs(x.min()), abs(x.max()))
    if not half_width > 0:
        half_width = 1.0

    y01 = (y - min_y) / height if height > 0 else np.zeros_like(y)
    edge = np.clip(np.abs(x) / half_width, 0.0, 1.0)
    center = 1.0 - edge
    phase = variant_phase(variant_seed)

    # 1. base pinch
    x *= 1.0 - (1.0 - np.minimum(y01 / PINCH_THRESHOLD, 1.0)) * p.base_pinch

    # 2-5. z displacement
    cup = np.sin(y01 * math.pi * CUP_FREQUENCY) * center * p.cup
    edge_curl = edge ** EDGE_CURL_POWER * p.edge_curl * (0.8 + np.sin(y01 * math.pi) * 0.4)
    back_curl = np.maximum(0.0, y01 - BACK_CURL_THRESHOLD) ** 2 * p.backward_curl
    ruffle = (
        np.sin(y01 * RUFFLE_FREQ_LENGTH + edge * RUFFLE_FREQ_EDGE + phase)
        * p.ruffle * edge * y01 ** RUFFLE_POWER
    )
    tip_fold = np.maximum(0.0, y01 - TIP_FOLD_THRESHOLD) ** 2 * p.tip_fold

    # 6. combine before twisting
    z += cup - edge_curl - back_curl + ruffle + tip_fold

    # 7. twist the cupped surface
    angle = (y01 - TWIST_PIVOT) * p.twist * (1.0 + phase * 0.1)
    cos, sin = np.cos(angle), np.sin(angle)
    x, z = x * cos - z * sin, x * sin + z * cos

    out = np.stack([x, y, z], axis=-1)
    lo, hi = out.min(axis=0), out.max(axis=0)
    out -= np.array([(lo[0] + hi[0]) * 0.5, lo[1], (lo[2] + hi[2]) * 0.5])

    faces = np.array(base_mesh.faces)
    return PetalMesh(out, compute_vertex_normals(out, faces), faces)


def deform_leaf(base_mesh: PetalMesh, half_width: float = 0.24, length: float = 1.0) -> PetalMesh:
    """Raise a midrib, curl the blade and twist its halves apart."""
    v = np.array(base_mesh.vertices, dtype=np.float64)
    v[:, 1] -= v[:, 1].min()
    length = length if length > 0 else 1.0
    half_width = half_width if half_width > 0 else 1.0

    y01 = np.clip(v[:, 1] / length, 0.0, 1.0)
    falloff = 1.0 - np.clip(np.abs(v[:, 0]) / (half_width * 1.1), 0.0, 1.0)
    midrib = (1.0 - np.clip(np.abs(v[:, 0]) / (half_width * 0.3), 0.0, 1.0)) * 0.025
    curl = np.sin(y01 * math.pi) * 0.06 * falloff
    side_twist = np.sin(y01 * math.pi * 0.7) * 0.015 * np.sign(v[:, 0])

    v[:, 2] += curl + midrib
    v[:, 0] += side_twist
    return make_mesh(v, base_mesh.faces)
