"""Tests for whorl and golden-angle spiral petal layout."""

import math

import numpy as np
import pytest

from bloom import quaternion as quat
from bloom.config import GOLDEN_ANGLE, LayoutConfig, PetalStyleConfig, ROSE_PALETTE, SpiralSpec, WhorlSpec
from bloom.layout import (
    layout_petals,
    layout_spiral,
    layout_whorls,
    material_for_layer,
    petal_direction,
    petal_orientation,
    sanitize_spiral,
    sanitize_whorls,
    spiral_angle,
)
from bloom.pool import build_resource_pool
from bloom.presets import REALISTIC_WHORLS
from bloom.prng import PseudoRandomSource


@pytest.fixture(scope="module")
def pool():
    return build_resource_pool(PetalStyleConfig(layers=7, variants=3, cap_rings=2), ROSE_PALETTE)


@pytest.fixture(scope="module")
def whorl_petals(pool):
    return layout_whorls(LayoutConfig(whorls=REALISTIC_WHORLS), pool, PseudoRandomSource(42))


@pytest.fixture(scope="module")
def spiral_petals(pool):
    return layout_spiral(LayoutConfig(spiral=SpiralSpec()), pool, PseudoRandomSource(42))


def _assert_unit_quaternions(petals):
    norms = np.linalg.norm([p.orientation for p in petals], axis=-1)
    np.testing.assert_allclose(norms, 1.0, atol=1e-6)


def _assert_bounded_ids(petals, pool):
    for p in petals:
        assert 0 <= p.geometry_variant_id < pool.geometry_count
        assert 0 <= p.material_variant_id < pool.material_count


class TestSanitizeWhorls:
    def test_empty_becomes_default(self):
        assert sanitize_whorls(()) == (WhorlSpec(),)
        assert sanitize_whorls(None) == (WhorlSpec(),)

    def test_clamps_out_of_domain(self):
        (w,) = sanitize_whorls((WhorlSpec(count=0, radius=-1.0, tilt=1.7, scale=-2.0, layer=-1),))
        assert w.count == 1
        assert w.radius == 0.0
        assert w.tilt == 1.0
        assert w.scale > 0
        assert w.layer == 0

    def test_non_finite_values(self):
        (w,) = sanitize_whorls((WhorlSpec(
            count=math.nan, radius=math.inf, height=math.nan, tilt=math.nan, layer=math.nan),))
        assert w.count == 1
        assert w.radius == 0.0
        assert w.height == 0.0
        assert w.tilt == 0.0
        assert w.layer == 0

    def test_non_finite_layer(self):
        for layer in (math.nan, math.inf, -math.inf):
            (w,) = sanitize_whorls((WhorlSpec(layer=layer),))
            assert w.layer == 0

    def test_tilt_made_non_decreasing(self):
        whorls = sanitize_whorls((WhorlSpec(tilt=0.5), WhorlSpec(tilt=0.3), WhorlSpec(tilt=0.8)))
        assert [w.tilt for w in whorls] == [0.5, 0.5, 0.8]


class TestSanitizeSpiral:
    def test_finite_spiral_unchanged(self):
        assert sanitize_spiral(SpiralSpec()) == SpiralSpec()

    def test_non_finite_replaced_by_defaults(self):
        spiral = sanitize_spiral(SpiralSpec(total_petals=math.nan, layers=math.inf,
                                            radius_max=math.nan, tilt_min=math.nan))
        default = SpiralSpec()
        assert spiral.total_petals == default.total_petals
        assert spiral.layers == default.layers
        assert spiral.radius_max == default.radius_max
        assert spiral.tilt_min == default.tilt_min

    def test_clamps_out_of_domain(self):
        spiral = sanitize_spiral(SpiralSpec(total_petals=-3, layers=0, radius_max=-1.0, radius_exponent=-2.0))
        assert spiral.total_petals == 1
        assert spiral.layers == 1
        assert spiral.radius_max == 0.0
        assert spiral.radius_exponent == 0.0

    def test_non_finite_spiral_still_renders(self, pool):
        config = LayoutConfig(spiral=SpiralSpec(total_petals=math.nan, radius_max=math.nan,
                                                tilt_min=math.nan, dome_height=math.inf))
        petals = layout_spiral(config, pool, PseudoRandomSource(1))
        assert len(petals) == SpiralSpec().total_petals
        assert np.all(np.isfinite([p.position for p in petals]))
        assert all(0.0 <= p.openness <= 1.0 for p in petals)
        _assert_unit_quaternions(petals)


class TestDirection:
    def test_closed_points_up(self):
        np.testing.assert_allclose(petal_direction(0.7, 0.0), [0.0, 1.0, 0.0], atol=1e-12)

    def test_open_points_radially(self):
        angle = 1.2
        np.testing.assert_allclose(
            petal_direction(angle, 1.0),
            [math.cos(angle), 0.0, math.sin(angle)],
            atol=1e-12,
        )

    def test_orientation_maps_up_to_direction(self):
        d = petal_direction(2.0, 0.6, lean=0.2)
        q = petal_orientation(d, 0.9)
        np.testing.assert_allclose(quat.rotate_vector(q, quat.UP), d, atol=1e-10)


class TestWhorlLayout:
    def test_count(self, whorl_petals):
        assert len(whorl_petals) == sum(w.count for w in REALISTIC_WHORLS)

    def test_indices_sequential(self, whorl_petals):
        assert [p.index for p in whorl_petals] == list(range(len(whorl_petals)))

    def test_unit_quaternions(self, whorl_petals):
        _assert_unit_quaternions(whorl_petals)

    def test_openness_monotonic(self, whorl_petals):
        openness = [p.openness for p in whorl_petals]
        assert all(a <= b for a, b in zip(openness, openness[1:]))

    def test_bounded_ids(self, whorl_petals, pool):
        _assert_bounded_ids(whorl_petals, pool)

    def test_geometry_matches_layer(self, whorl_petals, pool):
        for p in whorl_petals:
            assert pool.blueprint(p.geometry_variant_id).layer == p.layer

    def test_deterministic(self, pool, whorl_petals):
        again = layout_whorls(LayoutConfig(whorls=REALISTIC_WHORLS), pool, PseudoRandomSource(42))
        assert again == whorl_petals

    def test_seed_changes_layout(self, pool, whorl_petals):
        other = layout_whorls(LayoutConfig(whorls=REALISTIC_WHORLS), pool, PseudoRandomSource(43))
        assert other != whorl_petals

    def test_positions_on_whorl_radius(self, pool):
        config = LayoutConfig(whorls=(WhorlSpec(count=6, radius=0.2, height=0.1),), radius_jitter=0.0,
                              height_jitter=0.0)
        petals = layout_whorls(config, pool, PseudoRandomSource(1))
        for p in petals:
            np.testing.assert_allclose(math.hypot(p.position[0], p.position[2]), 0.2)
            np.testing.assert_allclose(p.position[1], 0.1)

    def test_degenerate_whorls_still_render(self, pool):
        config = LayoutConfig(whorls=(WhorlSpec(count=-4, radius=-1.0, scale=0.0, layer=99),))
        petals = layout_whorls(config, pool, PseudoRandomSource(1))
        assert len(petals) == 1
        _assert_bounded_ids(petals, pool)
        assert petals[0].scale > 0

    def test_as_dict(self, whorl_petals):
        d = whorl_petals[0].as_dict()
        assert set(d) == {
            "index", "layer", "position", "orientation", "scale",
            "geometry_variant_id", "material_variant_id", "openness",
        }


class TestSpiralLayout:
    def test_golden_angle(self):
        spiral = SpiralSpec(total_petals=75)
        np.testing.assert_allclose(spiral_angle(1, spiral) % (2 * math.pi), 2.39996, atol=1e-5)
        np.testing.assert_allclose(GOLDEN_ANGLE, 2.399963, atol=1e-6)

    def test_count(self, spiral_petals):
        assert len(spiral_petals) == 75

    def test_first_petal_at_center(self, spiral_petals):
        first = spiral_petals[0]
        np.testing.assert_allclose(math.hypot(first.position[0], first.position[2]), 0.0, atol=1e-12)
        np.testing.assert_allclose(first.openness, 0.05)

    def test_last_petal_open(self, spiral_petals):
        np.testing.assert_allclose(spiral_petals[74].openness, 0.95)

    def test_tilt_non_decreasing(self):
        spiral = SpiralSpec()
        tilts = [spiral.tilt_at(t) for t in np.linspace(0.0, 1.0, 200)]
        assert all(a <= b for a, b in zip(tilts, tilts[1:]))

    def test_radius_grows(self):
        spiral = SpiralSpec()
        radii = [spiral.radius_at(t) for t in np.linspace(0.0, 1.0, 50)]
        assert radii[0] == 0.0
        assert all(a <= b for a, b in zip(radii, radii[1:]))

    def test_unit_quaternions(self, spiral_petals):
        _assert_unit_quaternions(spiral_petals)

    def test_bounded_ids(self, spiral_petals, pool):
        _assert_bounded_ids(spiral_petals, pool)

    def test_layers_cover_range(self, spiral_petals):
        layers = [p.layer for p in spiral_petals]
        assert layers[0] == 0
        assert layers[-1] == 6
        assert layers == sorted(layers)

    def test_single_petal(self, pool):
        petals = layout_spiral(LayoutConfig(spiral=SpiralSpec(total_petals=0)), pool, PseudoRandomSource(3))
        assert len(petals) == 1
        _assert_unit_quaternions(petals)


class TestDispatch:
    def test_strategy(self, pool):
        rng = PseudoRandomSource(5)
        spiral = layout_petals(LayoutConfig(spiral=SpiralSpec(total_petals=10)), pool, rng)
        assert len(spiral) == 10
        whorls = layout_petals(LayoutConfig(whorls=(WhorlSpec(count=4),)), pool, PseudoRandomSource(5))
        assert len(whorls) == 4

    def test_material_for_layer(self, pool):
        assert material_for_layer(0, pool) == 0
        assert material_for_layer(pool.layers - 1, pool) == pool.material_count - 1
