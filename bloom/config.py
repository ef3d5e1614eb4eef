"""Configuration records for flower generation.

Every record is a frozen dataclass of plain values and tuples so that a
configuration can key the memoization caches. Derive variants with
``dataclasses.replace``.
"""

import math
from dataclasses import dataclass, field
from typing import Optional

GOLDEN_ANGLE = math.pi * (3.0 - math.sqrt(5.0))


@dataclass(frozen=True)
class ProfileStyle:
    """Outline proportions blended from the innermost to the outermost layer."""
    width_range: tuple[float, float] = (0.7, 1.5)
    height_range: tuple[float, float] = (1.05, 0.73)
    notch_range: tuple[float, float] = (0.015, 0.115)
    curve_segments: int = 8  # samples per Bezier segment
    # Distinct outlines; layers past the last one reuse it. None: one per layer
    shape_layers: Optional[int] = 5


@dataclass(frozen=True)
class DeformParams:
    cup: float = 0.0
    backward_curl: float = 0.0
    edge_curl: float = 0.0
    ruffle: float = 0.0
    base_pinch: float = 0.0
    twist: float = 0.0
    tip_fold: float = 0.0


@dataclass(frozen=True)
class PetalBlueprint:
    """Everything needed to build one (layer, variant) petal geometry."""
    layer: int
    variant: int
    outline: tuple[tuple[float, float], ...]
    params: DeformParams
    depth: float
    bevel_thickness: float
    bevel_size: float
    bevel_segments: int
    cap_rings: int


@dataclass(frozen=True)
class PetalStyleConfig:
    layers: int = 6
    variants: int = 4
    profile: ProfileStyle = field(default_factory=ProfileStyle)
    inner: DeformParams = field(default_factory=lambda: DeformParams(
        cup=0.18, edge_curl=0.015, base_pinch=0.35, twist=0.33,
    ))
    outer: DeformParams = field(default_factory=lambda: DeformParams(
        cup=0.04, backward_curl=0.35, edge_curl=0.075, ruffle=0.025,
        base_pinch=0.17, twist=0.08,
    ))
    backward_curl_power: float = 1.5

    # Extrusion
    depth: float = 0.012
    bevel_thickness: float = 0.005
    bevel_size: float = 0.005
    bevel_segments: int = 2
    cap_rings: int = 4

    def layer_fraction(self, layer: int) -> float:
        layers = max(int(self.layers), 1)
        if layers == 1:
            return 0.0
        layer = min(max(int(layer), 0), layers - 1)
        return layer / (layers - 1)

    def params_for_layer(self, layer: int) -> DeformParams:
        """Blend inner -> outer deformation for a layer."""
        t = self.layer_fraction(layer)
        a, b = self.inner, self.outer

        def lerp(x, y):
            return x + (y - x) * t

        curl_t = t ** self.backward_curl_power
        return DeformParams(
            cup=lerp(a.cup, b.cup),
            backward_curl=a.backward_curl + (b.backward_curl - a.backward_curl) * curl_t,
            edge_curl=lerp(a.edge_curl, b.edge_curl),
            ruffle=lerp(a.ruffle, b.ruffle),
            base_pinch=lerp(a.base_pinch, b.base_pinch),
            twist=lerp(a.twist, b.twist),
            tip_fold=lerp(a.tip_fold, b.tip_fold),
        )


@dataclass(frozen=True)
class LeafStyle:
    half_width: float = 0.24
    length: float = 1.0
    edge_segments: int = 16
    serration: float = 0.015
    serration_frequency: float = 12.0
    depth: float = 0.008
    bevel: float = 0.004


@dataclass(frozen=True)
class Material:
    name: str
    color: str
    sheen_color: str = "#ffffff"
    roughness: float = 0.65
    opacity: float = 1.0


@dataclass(frozen=True)
class WhorlSpec:
    count: int = 5
    radius: float = 0.1
    height: float = 0.0
    tilt: float = 0.5
    scale: float = 0.3
    layer: int = 0


@dataclass(frozen=True)
class SpiralSpec:
    """Continuous golden-angle phyllotaxis, driven by t = i / (N - 1)."""
    total_petals: int = 75
    golden_angle: float = GOLDEN_ANGLE
    radius_max: float = 0.36
    radius_exponent: float = 0.5
    dome_height: float = 0.28
    height_drop: float = 0.12
    tilt_min: float = 0.05
    tilt_range: float = 0.9
    tilt_exponent: float = 0.6
    scale_min: float = 0.04
    scale_range: float = 0.52
    layers: int = 7
    lean: float = 0.5
    wrap: float = 0.4
    inward_tilt: float = 0.3

    def radius_at(self, t: float) -> float:
        return max(self.radius_max, 0.0) * max(t, 0.0) ** self.radius_exponent

    def height_at(self, t: float) -> float:
        return self.dome_height * math.cos(t * math.pi * 0.5) - t * self.height_drop

    def tilt_at(self, t: float) -> float:
        return min(max(self.tilt_min + max(t, 0.0) ** self.tilt_exponent * self.tilt_range, 0.0), 1.0)

    def scale_at(self, t: float) -> float:
        return max(self.scale_min + t * self.scale_range, 1e-3)


@dataclass(frozen=True)
class LayoutConfig:
    whorls: Optional[tuple[WhorlSpec, ...]] = None
    spiral: Optional[SpiralSpec] = None

    # Whorl jitter and stagger
    stagger: float = 0.8
    angle_jitter: float = 0.12
    radius_jitter: float = 0.12
    height_jitter: float = 0.015
    scale_jitter: float = 0.16
    roll_jitter: float = 0.25

    # Strongly curled outer layers droop below the horizontal
    curl_down_layer: int = 4
    curl_down_pivot: float = 0.8
    curl_down_gain: float = 0.35

    def __post_init__(self):
        if self.whorls is not None and not isinstance(self.whorls, tuple):
            object.__setattr__(self, "whorls", tuple(self.whorls))

    @property
    def strategy(self) -> str:
        return "spiral" if self.spiral is not None else "whorls"


@dataclass(frozen=True)
class LeafSpec:
    t: float
    side: int
    scale: float
    roll: float


@dataclass(frozen=True)
class StemConfig:
    control_points: tuple[tuple[float, float, float], ...] = (
        (0.0, -1.5, 0.0),
        (0.12, -0.95, 0.05),
        (-0.08, -0.35, -0.1),
        (0.1, 0.35, 0.06),
        (-0.05, 1.0, -0.03),
        (0.01, 1.38, 0.02),
    )
    tension: float = 0.6
    frame_samples: int = 141
    radius: float = 0.04
    leaves: tuple[LeafSpec, ...] = (
        LeafSpec(t=0.42, side=-1, scale=0.48, roll=-0.45),
        LeafSpec(t=0.28, side=1, scale=0.40, roll=0.3),
        LeafSpec(t=0.14, side=-1, scale=0.35, roll=-0.15),
    )
    leaf_lean: float = 0.3
    leaf_out: float = 0.85
    leaf_offset: float = 0.07
    leaf_phase_step: float = 1.5
    flutter_base: float = 0.03
    flutter_step: float = 0.008
    thorn_params: tuple[float, ...] = (0.2, 0.3, 0.42, 0.55, 0.65)
    thorn_offset: float = 0.045
    thorn_azimuth_step: float = 1.5
    thorn_azimuth_offset: float = 0.6
    thorn_scale: float = 1.0
    thorn_radius: float = 0.012
    thorn_length: float = 0.05

    def __post_init__(self):
        object.__setattr__(self, "control_points", tuple(tuple(float(c) for c in p) for p in self.control_points))
        object.__setattr__(self, "leaves", tuple(self.leaves))
        object.__setattr__(self, "thorn_params", tuple(float(t) for t in self.thorn_params))


@dataclass(frozen=True)
class SepalConfig:
    count: int = 5
    angle_offset: float = 0.15
    tilt: float = 2.2
    tilt_jitter: float = 0.15
    roll_jitter: float = 0.2
    radius: float = 0.14
    radius_jitter: float = 0.02
    height: float = -0.14
    height_jitter: float = 0.015
    scale: float = 0.2
    scale_spread: float = 0.05
    salt: int = 57


@dataclass(frozen=True)
class AnimationStyle:
    breath_speed: float = 0.25
    phase_step: float = 0.08
    breath_base: float = 0.03
    breath_open: float = 0.05
    yaw_speed: float = 0.3
    yaw_amount: float = 0.01
    roll_speed: float = 0.25
    roll_phase: float = 0.8
    roll_amount: float = 0.015

    # Whole-bloom motion
    spin_speed: float = 0.15
    nod_speed: float = 0.4
    nod_amount: float = 0.015
    pulse_speed: float = 0.6
    pulse_amount: float = 0.006


ROSE_PALETTE = (
    Material("deep_crimson", "#8b0020", "#cc4466"),
    Material("rich_red", "#a50028", "#dd5577"),
    Material("bright_red", "#c41035", "#ee6688"),
    Material("light_red", "#d01840", "#ff7799"),
    Material("edge_red", "#dd2050", "#ff88aa"),
)


@dataclass(frozen=True)
class FlowerConfig:
    layout: LayoutConfig = field(default_factory=LayoutConfig)
    style: PetalStyleConfig = field(default_factory=PetalStyleConfig)
    palette: tuple[Material, ...] = ROSE_PALETTE
    leaf: LeafStyle = field(default_factory=LeafStyle)
    stem: StemConfig = field(default_factory=StemConfig)
    sepals: Optional[SepalConfig] = field(default_factory=SepalConfig)
    animation: AnimationStyle = field(default_factory=AnimationStyle)
    bloom_offset: tuple[float, float, float] = (0.0, 1.5, 0.0)
    center_height: float = 0.2
    center_radius: float = 0.035
    stem_material: Material = Material("stem", "#1a5c35", roughness=0.7)
    leaf_material: Material = Material("leaf", "#145c30", "#2a8050", roughness=0.6)
    sepal_material: Material = Material("sepal", "#0f4825", roughness=0.7)
    center_material: Material = Material("center", "#4a0012", roughness=0.8)

    def __post_init__(self):
        object.__setattr__(self, "palette", tuple(self.palette))
        object.__setattr__(self, "bloom_offset", tuple(float(c) for c in self.bloom_offset))
