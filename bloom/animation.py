"""Per-frame sway as pure functions of (record, elapsed time).

Nothing here writes to instances: a scheduler asks for a delta every tick
and composes it on top of the static layout.
"""

import math
from dataclasses import dataclass

import numpy as np

from bloom import quaternion as quat
from bloom.config import AnimationStyle
from bloom.layout import PetalInstance
from bloom.organs import PlacedOrgan


@dataclass(frozen=True)
class TransformDelta:
    rotation: tuple[float, float, float] = (0.0, 0.0, 0.0)  # XYZ Euler offsets, radians
    translation: tuple[float, float, float] = (0.0, 0.0, 0.0)
    scale: float = 1.0

    def as_quaternion(self) -> np.ndarray:
        return quat.from_euler_xyz(*self.rotation)


def petal_delta(instance: PetalInstance, elapsed: float, style: AnimationStyle = AnimationStyle()) -> TransformDelta:
    """Slow breathing; open petals move more than closed ones."""
    phase = instance.index * style.phase_step
    amplitude = style.breath_base + instance.openness * style.breath_open
    return TransformDelta(rotation=(
        math.sin(elapsed * style.breath_speed + phase) * amplitude,
        math.sin(elapsed * style.yaw_speed + phase) * style.yaw_amount * instance.openness,
        math.sin(elapsed * style.roll_speed + phase * style.roll_phase) * style.roll_amount * instance.openness,
    ))


def organ_delta(organ: PlacedOrgan, elapsed: float) -> TransformDelta:
    """Leaf flutter; thorns and sepals stay rigid."""
    a = organ.attachment
    if a.flutter <= 0:
        return TransformDelta()
    return TransformDelta(
        rotation=(
            math.sin(elapsed * 0.8 + a.phase) * a.flutter,
            math.sin(elapsed * 0.6 + a.phase * 1.1) * a.flutter * 0.25,
            math.sin(elapsed * 1.0 + a.phase * 1.3) * a.flutter * 0.5,
        ),
        translation=(
            math.sin(elapsed * 0.5 + a.phase) * 0.005,
            math.sin(elapsed * 0.7 + a.phase * 0.9) * 0.004,
            math.sin(elapsed * 0.6 + a.phase * 1.2) * 0.005,
        ),
    )


def bloom_delta(elapsed: float, style: AnimationStyle = AnimationStyle()) -> TransformDelta:
    """Whole-bloom spin, nod and pulse."""
    return TransformDelta(
        rotation=(math.sin(elapsed * style.nod_speed) * style.nod_amount, elapsed * style.spin_speed, 0.0),
        scale=1.0 + math.sin(elapsed * style.pulse_speed) * style.pulse_amount,
    )


def apply_delta(position, orientation, delta: TransformDelta) -> tuple[np.ndarray, np.ndarray]:
    """Return a new (position, orientation) with the delta in local space."""
    new_position = np.asarray(position, dtype=np.float64) + np.asarray(delta.translation)
    new_orientation = quat.normalize(quat.multiply(np.asarray(orientation, dtype=np.float64), delta.as_quaternion()))
    return new_position, new_orientation
