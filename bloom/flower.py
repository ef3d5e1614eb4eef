"""Top-level entry point: one call builds everything a renderer needs."""

import functools
import logging
from dataclasses import dataclass

from bloom.config import FlowerConfig
from bloom.layout import PetalInstance, layout_petals
from bloom.organs import PlacedOrgan, layout_sepals, place_organs
from bloom.pool import ResourcePool, build_resource_pool
from bloom.prng import PseudoRandomSource, validate_seed
from bloom.stem import FrenetFrameTable, StemCurve, build_frame_table

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class Flower:
    seed: int
    config: FlowerConfig
    petals: tuple[PetalInstance, ...]
    sepals: tuple[PlacedOrgan, ...]
    organs: tuple[PlacedOrgan, ...]
    pool: ResourcePool
    stem_curve: StemCurve
    frames: FrenetFrameTable


def pool_for(config: FlowerConfig) -> ResourcePool:
    return build_resource_pool(
        config.style,
        config.palette,
        config.leaf,
        config.stem.thorn_radius,
        config.stem.thorn_length,
        config.center_radius,
    )


@functools.lru_cache(maxsize=64)
def _build(seed: int, config: FlowerConfig) -> Flower:
    pool = pool_for(config)
    rng = PseudoRandomSource(seed)
    petals = layout_petals(config.layout, pool, rng)
    sepals = layout_sepals(config.sepals, rng.spawn(config.sepals.salt)) if config.sepals else ()

    curve = StemCurve(config.stem.control_points, config.stem.tension)
    frames = build_frame_table(curve, config.stem.frame_samples)
    organs = place_organs(config.stem, curve, frames)

    logger.debug("built flower seed=%d: %d petals, %d sepals, %d organs",
                 seed, len(petals), len(sepals), len(organs))
    return Flower(seed, config, petals, sepals, organs, pool, curve, frames)


def build_flower(seed, config: FlowerConfig = None) -> Flower:
    """Generate a flower for ``(seed, config)``.

    Raises:
        SeedError: if seed is not a finite integer. Nothing else raises;
            out-of-range configuration is clamped.
    """
    seed = validate_seed(seed)
    if config is None:
        config = FlowerConfig()
    return _build(seed, config)


def clear_cache():
    _build.cache_clear()
    build_resource_pool.cache_clear()
