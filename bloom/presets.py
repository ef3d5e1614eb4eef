"""Named flower configurations.

The variants differ only in data, so each one is a ``FlowerConfig`` value.
"""

from dataclasses import replace

from bloom.config import (
    AnimationStyle,
    DeformParams,
    FlowerConfig,
    LayoutConfig,
    LeafSpec,
    LeafStyle,
    Material,
    PetalStyleConfig,
    ProfileStyle,
    SepalConfig,
    SpiralSpec,
    StemConfig,
    WhorlSpec,
)

REALISTIC_WHORLS = (
    # Tight center
    WhorlSpec(count=3, radius=0.015, height=0.24, tilt=0.08, scale=0.08, layer=0),
    WhorlSpec(count=4, radius=0.025, height=0.23, tilt=0.12, scale=0.10, layer=0),
    WhorlSpec(count=5, radius=0.038, height=0.21, tilt=0.18, scale=0.13, layer=0),
    # Inner cup
    WhorlSpec(count=5, radius=0.052, height=0.19, tilt=0.25, scale=0.17, layer=1),
    WhorlSpec(count=6, radius=0.068, height=0.17, tilt=0.32, scale=0.21, layer=1),
    WhorlSpec(count=7, radius=0.085, height=0.15, tilt=0.40, scale=0.25, layer=1),
    # Middle
    WhorlSpec(count=7, radius=0.105, height=0.12, tilt=0.48, scale=0.30, layer=2),
    WhorlSpec(count=8, radius=0.125, height=0.09, tilt=0.55, scale=0.35, layer=2),
    WhorlSpec(count=8, radius=0.148, height=0.06, tilt=0.62, scale=0.40, layer=3),
    # Outer
    WhorlSpec(count=9, radius=0.175, height=0.03, tilt=0.70, scale=0.45, layer=3),
    WhorlSpec(count=9, radius=0.205, height=0.00, tilt=0.78, scale=0.50, layer=4),
    WhorlSpec(count=10, radius=0.238, height=-0.03, tilt=0.85, scale=0.54, layer=4),
    WhorlSpec(count=10, radius=0.275, height=-0.06, tilt=0.92, scale=0.56, layer=5),
    WhorlSpec(count=11, radius=0.315, height=-0.09, tilt=0.97, scale=0.58, layer=5),
)

REALISTIC_ROSE = FlowerConfig(layout=LayoutConfig(whorls=REALISTIC_WHORLS))

SPIRAL_ROSE = FlowerConfig(
    layout=LayoutConfig(spiral=SpiralSpec()),
    style=PetalStyleConfig(
        layers=7,
        variants=3,
        profile=ProfileStyle(width_range=(0.5, 1.1), height_range=(1.1, 0.95), notch_range=(0.01, 0.03),
                             shape_layers=None),
        # Negative edge curl wraps the edges inward
        inner=DeformParams(cup=0.35, edge_curl=-0.08, base_pinch=0.4, twist=0.15, tip_fold=0.2),
        outer=DeformParams(cup=0.14, backward_curl=0.4, edge_curl=-0.04, ruffle=0.01,
                           base_pinch=0.25, twist=0.045),
        backward_curl_power=2.0,
        depth=0.008,
        bevel_thickness=0.003,
        bevel_size=0.003,
    ),
    palette=(
        Material("oxblood", "#6b0018", "#b03050", roughness=0.7),
        Material("deep_crimson", "#8b0020", "#cc4466", roughness=0.7),
        Material("rich_red", "#a50028", "#dd5577", roughness=0.7),
        Material("scarlet", "#c01030", "#ee6688", roughness=0.7),
        Material("bright_red", "#d81840", "#ff7799", roughness=0.7),
    ),
    leaf=LeafStyle(half_width=0.22, edge_segments=14, serration=0.012, serration_frequency=10.0,
                   depth=0.006, bevel=0.003),
    stem=StemConfig(
        control_points=(
            (0.0, -1.5, 0.0),
            (0.1, -1.0, 0.04),
            (-0.06, -0.4, -0.08),
            (0.08, 0.25, 0.05),
            (-0.04, 0.9, -0.02),
            (0.01, 1.35, 0.015),
        ),
        tension=0.55,
        frame_samples=121,
        radius=0.035,
        leaves=(
            LeafSpec(t=0.4, side=-1, scale=0.45, roll=-0.4),
            LeafSpec(t=0.26, side=1, scale=0.38, roll=0.28),
            LeafSpec(t=0.12, side=-1, scale=0.32, roll=-0.12),
        ),
        leaf_lean=0.28,
        leaf_out=0.82,
        leaf_offset=0.06,
        leaf_phase_step=1.4,
        flutter_base=0.025,
        flutter_step=0.006,
        thorn_params=(0.18, 0.28, 0.4, 0.52, 0.62),
        thorn_offset=0.04,
        thorn_azimuth_step=1.4,
        thorn_azimuth_offset=0.5,
        thorn_radius=0.01,
        thorn_length=0.04,
    ),
    sepals=SepalConfig(angle_offset=0.12, tilt=2.25, tilt_jitter=0.12, roll_jitter=0.18,
                       radius=0.13, radius_jitter=0.015, height=-0.12, height_jitter=0.01,
                       scale=0.18, scale_spread=0.04),
    animation=AnimationStyle(breath_speed=0.2, phase_step=0.05, breath_base=0.015, breath_open=0.025,
                             yaw_speed=0.2, yaw_amount=0.005, roll_speed=0.18, roll_phase=0.7,
                             roll_amount=0.008, spin_speed=0.12, nod_speed=0.35, nod_amount=0.01,
                             pulse_speed=0.5, pulse_amount=0.004),
    center_height=0.24,
    center_radius=0.025,
)

TULIP = FlowerConfig(
    layout=LayoutConfig(
        whorls=(
            WhorlSpec(count=3, radius=0.07, height=0.05, tilt=0.12, scale=0.42, layer=0),
            WhorlSpec(count=6, radius=0.11, height=0.0, tilt=0.22, scale=0.5, layer=1),
        ),
        stagger=1.0,
        angle_jitter=0.04,
        radius_jitter=0.06,
        height_jitter=0.01,
        scale_jitter=0.06,
        roll_jitter=0.08,
    ),
    style=PetalStyleConfig(
        layers=2,
        variants=2,
        profile=ProfileStyle(width_range=(0.55, 0.75), height_range=(1.1, 1.0), notch_range=(0.0, 0.01),
                             shape_layers=None),
        inner=DeformParams(cup=0.2, edge_curl=-0.03, base_pinch=0.45, twist=0.03, tip_fold=0.08),
        outer=DeformParams(cup=0.28, backward_curl=0.05, edge_curl=-0.02, ruffle=0.005,
                           base_pinch=0.4, twist=0.05, tip_fold=0.04),
        backward_curl_power=1.0,
    ),
    palette=(
        Material("tulip_inner", "#ee8cb4", "#f6b0c8", roughness=0.55),
        Material("tulip_outer", "#f6b0c8", "#ffd6e4", roughness=0.55),
    ),
    leaf=LeafStyle(half_width=0.2, length=1.25, serration=0.0),
    stem=StemConfig(
        control_points=(
            (0.0, -1.45, 0.0),
            (0.08, -0.9, 0.05),
            (-0.06, -0.2, -0.04),
            (0.04, 0.45, 0.02),
            (0.0, 0.95, 0.0),
        ),
        radius=0.045,
        leaves=(
            LeafSpec(t=0.45, side=1, scale=0.9, roll=0.5),
            LeafSpec(t=0.3, side=-1, scale=0.75, roll=-0.7),
        ),
        leaf_lean=0.6,
        leaf_out=0.6,
        leaf_offset=0.05,
        thorn_params=(),
    ),
    sepals=None,
    bloom_offset=(0.0, 0.95, 0.0),
    center_height=0.3,
    center_radius=0.07,
    center_material=Material("tulip_center", "#f7d07a", roughness=0.8),
    leaf_material=Material("tulip_leaf", "#3aa36d", "#2f8b5b", roughness=0.6),
    stem_material=Material("tulip_stem", "#2f8b5b", roughness=0.7),
)

PRESETS = {
    "realistic_rose": REALISTIC_ROSE,
    "spiral_rose": SPIRAL_ROSE,
    "tulip": TULIP,
}


def get_preset(name: str) -> FlowerConfig:
    try:
        return PRESETS[name]
    except KeyError:
        raise ValueError(f"unknown preset {name!r}; choose from {', '.join(sorted(PRESETS))}") from None


def derive_preset(name: str, **changes) -> FlowerConfig:
    """A preset with some top-level fields replaced."""
    return replace(get_preset(name), **changes)
