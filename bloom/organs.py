"""Leaves and thorns along the stem, and the sepal ring under the bloom."""

import math
from dataclasses import dataclass

import numpy as np

from bloom import quaternion as quat
from bloom.config import SepalConfig, StemConfig
from bloom.prng import PseudoRandomSource
from bloom.stem import FrenetFrameTable, StemCurve, attach_organ

LEAF = "leaf"
THORN = "thorn"
SEPAL = "sepal"


@dataclass(frozen=True)
class OrganAttachment:
    """Where and how an organ sits; position/orientation are derived."""
    kind: str
    t: float
    side_sign: int
    roll_angle: float
    scale: float
    phase: float = 0.0
    flutter: float = 0.0
    azimuth: float = 0.0


@dataclass(frozen=True)
class PlacedOrgan:
    attachment: OrganAttachment
    position: tuple[float, float, float]
    orientation: tuple[float, float, float, float]

    @property
    def kind(self) -> str:
        return self.attachment.kind


def organ_attachments(stem: StemConfig) -> tuple[OrganAttachment, ...]:
    """Leaves first (in authored order), then thorns scattered around the stem."""
    leaves = tuple(
        OrganAttachment(
            kind=LEAF,
            t=leaf.t,
            side_sign=-1 if leaf.side < 0 else 1,
            roll_angle=leaf.roll,
            scale=leaf.scale,
            phase=idx * stem.leaf_phase_step,
            flutter=stem.flutter_base + idx * stem.flutter_step,
        )
        for idx, leaf in enumerate(stem.leaves)
    )
    thorns = tuple(
        OrganAttachment(
            kind=THORN,
            t=t,
            side_sign=1,
            roll_angle=0.0,
            scale=stem.thorn_scale,
            azimuth=idx * stem.thorn_azimuth_step + stem.thorn_azimuth_offset,
        )
        for idx, t in enumerate(stem.thorn_params)
    )
    return leaves + thorns


def place_organ(
    attachment: OrganAttachment,
    stem: StemConfig,
    curve: StemCurve,
    frames: FrenetFrameTable,
) -> PlacedOrgan:
    if attachment.kind == THORN:
        # Thorns point straight out from the stem
        position, orientation = attach_organ(
            curve, frames, attachment.t, attachment.side_sign, attachment.roll_angle,
            lean_weight=0.0, out_weight=1.0,
            lateral_offset=stem.thorn_offset, azimuth=attachment.azimuth,
        )
    else:
        position, orientation = attach_organ(
            curve, frames, attachment.t, attachment.side_sign, attachment.roll_angle,
            lean_weight=stem.leaf_lean, out_weight=stem.leaf_out,
            lateral_offset=stem.leaf_offset, azimuth=attachment.azimuth,
        )
    return PlacedOrgan(
        attachment=attachment,
        position=tuple(float(c) for c in position),
        orientation=tuple(float(c) for c in orientation),
    )


def place_organs(stem: StemConfig, curve: StemCurve, frames: FrenetFrameTable) -> tuple[PlacedOrgan, ...]:
    return tuple(place_organ(a, stem, curve, frames) for a in organ_attachments(stem))


def layout_sepals(config: SepalConfig, rng: PseudoRandomSource) -> tuple[PlacedOrgan, ...]:
    """Ring of sepals folded down under the bloom."""
    count = max(int(config.count), 0)
    sepals = []
    for i in range(count):
        angle = (i / count) * math.pi * 2 + config.angle_offset
        tilt = config.tilt + rng.jitter(config.tilt_jitter)
        roll = rng.jitter(config.roll_jitter)
        radius = max(config.radius + rng.jitter(config.radius_jitter), 0.0)
        scale = config.scale + rng.next() * config.scale_spread
        height = config.height + rng.jitter(config.height_jitter)

        orientation = quat.from_euler_xyz(tilt, angle + math.pi, roll)
        position = np.array([math.cos(angle) * radius, height, math.sin(angle) * radius])
        sepals.append(PlacedOrgan(
            attachment=OrganAttachment(kind=SEPAL, t=1.0, side_sign=1, roll_angle=roll, scale=scale),
            position=tuple(float(c) for c in position),
            orientation=tuple(float(c) for c in quat.normalize(orientation)),
        ))
    return tuple(sepals)
