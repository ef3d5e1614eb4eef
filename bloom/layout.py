"""Petal placement: concentric whorls or continuous golden-angle phyllotaxis.

Both strategies return the same thing, an ordered tuple of immutable
``PetalInstance`` records that reference pooled geometry and materials by id.
"""

import logging
import math
from dataclasses import asdict, dataclass, fields

import numpy as np

from bloom import quaternion as quat
from bloom.config import LayoutConfig, SpiralSpec, WhorlSpec
from bloom.pool import ResourcePool
from bloom.prng import PseudoRandomSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PetalInstance:
    index: int
    layer: int
    position: tuple[float, float, float]
    orientation: tuple[float, float, float, float]  # unit quaternion (x, y, z, w)
    scale: float
    geometry_variant_id: int
    material_variant_id: int
    openness: float

    def as_dict(self) -> dict:
        return asdict(self)


def _finite(value: float, default: float) -> float:
    value = float(value)
    return value if math.isfinite(value) else default


def sanitize_whorls(whorls) -> tuple[WhorlSpec, ...]:
    """Clamp whorls to renderable values.

    count >= 1, radius >= 0, scale > 0, tilt in [0, 1] and non-decreasing
    from one whorl to the next (inner petals are never more open than
    outer ones). An empty list becomes a single default whorl.
    """
    if not whorls:
        logger.debug("no whorls given, using a single default whorl")
        return (WhorlSpec(),)
    result = []
    floor_tilt = 0.0
    for whorl in whorls:
        tilt = min(max(_finite(whorl.tilt, 0.0), 0.0), 1.0)
        if tilt < floor_tilt:
            logger.debug("whorl tilt %.3f raised to %.3f to keep openness monotonic", tilt, floor_tilt)
            tilt = floor_tilt
        floor_tilt = tilt
        count = _finite(whorl.count, 1.0)
        result.append(WhorlSpec(
            count=max(int(count), 1),
            radius=max(_finite(whorl.radius, 0.0), 0.0),
            height=_finite(whorl.height, 0.0),
            tilt=tilt,
            scale=max(_finite(whorl.scale, 1e-3), 1e-3),
            layer=max(int(_finite(whorl.layer, 0.0)), 0),
        ))
    return tuple(result)


def sanitize_spiral(spiral: SpiralSpec) -> SpiralSpec:
    """Replace non-finite spiral fields with their defaults and clamp the rest.

    total_petals and layers >= 1, radius_max >= 0, exponents >= 0.
    """
    default = SpiralSpec()
    values = {}
    for f in fields(SpiralSpec):
        value = float(getattr(spiral, f.name))
        if not math.isfinite(value):
            value = getattr(default, f.name)
            logger.debug("non-finite spiral %s replaced by %r", f.name, value)
        values[f.name] = value
    values["total_petals"] = max(int(values["total_petals"]), 1)
    values["layers"] = max(int(values["layers"]), 1)
    values["radius_max"] = max(values["radius_max"], 0.0)
    values["radius_exponent"] = max(values["radius_exponent"], 0.0)
    values["tilt_exponent"] = max(values["tilt_exponent"], 0.0)
    return SpiralSpec(**values)


def petal_direction(
    angle: float,
    tilt: float,
    lean: float = 0.0,
    droop: float = 0.0,
) -> np.ndarray:
    """Unit direction blending up into radial by tilt * pi/2.

    ``lean`` pushes along the tangent (spiral wrap); ``droop`` lowers the
    up component for strongly curled outer layers.
    """
    radial = np.array([math.cos(angle), 0.0, math.sin(angle)])
    tangent = np.array([-math.sin(angle), 0.0, math.cos(angle)])
    up_component = math.cos(tilt * math.pi * 0.5)
    out_component = math.sin(tilt * math.pi * 0.5)
    direction = radial * out_component + tangent * lean + quat.UP * (up_component - droop)
    return quat.normalize_vector(direction, fallback=radial)


def petal_orientation(direction: np.ndarray, roll_angle: float) -> np.ndarray:
    """Point the petal along ``direction`` with its concave face rolled inward."""
    return quat.orient_along(direction, roll_angle)


def _instance(index, layer, position, orientation, scale, geometry_id, material_id, openness, pool):
    return PetalInstance(
        index=index,
        layer=layer,
        position=tuple(float(c) for c in position),
        orientation=tuple(float(c) for c in quat.normalize(orientation)),
        scale=float(scale),
        geometry_variant_id=pool.clamp_geometry_id(geometry_id),
        material_variant_id=pool.clamp_material_id(material_id),
        openness=float(min(max(openness, 0.0), 1.0)),
    )


def material_for_layer(layer: int, pool: ResourcePool) -> int:
    """Outer layers map to later (lighter) palette entries."""
    layer_t = layer / (pool.layers - 1) if pool.layers > 1 else 0.0
    return pool.clamp_material_id(math.floor(layer_t * pool.material_count))


def layout_whorls(config: LayoutConfig, pool: ResourcePool, rng: PseudoRandomSource) -> tuple[PetalInstance, ...]:
    """Concentric rings, each staggered against the previous one."""
    instances = []
    whorl_offset = 0.0
    for whorl in sanitize_whorls(config.whorls):
        whorl_offset += math.pi / whorl.count * config.stagger
        layer = min(whorl.layer, pool.layers - 1)
        droop = (whorl.tilt - config.curl_down_pivot) * config.curl_down_gain \
            if layer >= config.curl_down_layer else 0.0

        for i in range(whorl.count):
            angle = (i / whorl.count) * math.pi * 2 + whorl_offset + rng.jitter(config.angle_jitter)
            radius = whorl.radius * (1.0 - config.radius_jitter / 2 + rng.next() * config.radius_jitter)
            height = whorl.height + rng.jitter(config.height_jitter)
            scale = whorl.scale * (1.0 - config.scale_jitter / 2 + rng.next() * config.scale_jitter)

            direction = petal_direction(angle, whorl.tilt, droop=droop)
            roll_angle = angle + math.pi + rng.jitter(config.roll_jitter)
            orientation = petal_orientation(direction, roll_angle)

            geometry_id = pool.geometry_id(layer, rng.index(pool.variants))
            position = (math.cos(angle) * radius, height, math.sin(angle) * radius)
            instances.append(_instance(
                len(instances), layer, position, orientation, scale,
                geometry_id, material_for_layer(layer, pool), whorl.tilt, pool,
            ))
    return tuple(instances)


def spiral_angle(index: int, spiral: SpiralSpec) -> float:
    return index * spiral.golden_angle


def layout_spiral(config: LayoutConfig, pool: ResourcePool, rng: PseudoRandomSource) -> tuple[PetalInstance, ...]:
    """Fermat-style golden-angle spiral from a tight upright center to an open rim."""
    spiral = sanitize_spiral(config.spiral)
    total = max(int(spiral.total_petals), 1)
    layers = max(int(spiral.layers), 1)
    instances = []
    for i in range(total):
        t = i / (total - 1) if total > 1 else 0.0
        angle = spiral_angle(i, spiral)
        radius = spiral.radius_at(t) * (0.95 + rng.next() * 0.1)
        height = spiral.height_at(t) + rng.jitter(0.008)
        tilt = spiral.tilt_at(t)
        scale = spiral.scale_at(t) * (0.9 + rng.next() * 0.2)
        layer = min(layers - 1, math.floor(t * layers), pool.layers - 1)

        direction = petal_direction(angle, tilt, lean=(1.0 - t) * spiral.lean)
        roll_angle = angle + math.pi + (1.0 - t) * spiral.wrap + rng.jitter(0.08)
        orientation = petal_orientation(direction, roll_angle)
        if spiral.inward_tilt:
            # Cup the inner petals around the center: tilt about -radial
            axis = np.array([-math.cos(angle), 0.0, -math.sin(angle)])
            cup = quat.from_axis_angle(axis, (1.0 - t) * spiral.inward_tilt)
            orientation = quat.multiply(cup, orientation)

        geometry_id = pool.geometry_id(layer, rng.index(pool.variants))
        position = (math.cos(angle) * radius, height, math.sin(angle) * radius)
        instances.append(_instance(
            i, layer, position, orientation, scale,
            geometry_id, material_for_layer(layer, pool), tilt, pool,
        ))
    return tuple(instances)


def layout_petals(config: LayoutConfig, pool: ResourcePool, rng: PseudoRandomSource) -> tuple[PetalInstance, ...]:
    if config.strategy == "spiral":
        return layout_spiral(config, pool, rng)
    return layout_whorls(config, pool, rng)
