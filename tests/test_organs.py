"""Tests for leaves, thorns and sepals."""

import math

import numpy as np
import pytest

from bloom import quaternion as quat
from bloom.config import LeafSpec, SepalConfig, StemConfig
from bloom.organs import LEAF, SEPAL, THORN, layout_sepals, organ_attachments, place_organs
from bloom.prng import PseudoRandomSource
from bloom.stem import StemCurve, build_frame_table


@pytest.fixture(scope="module")
def stem():
    return StemConfig()


@pytest.fixture(scope="module")
def placed(stem):
    curve = StemCurve(stem.control_points, stem.tension)
    frames = build_frame_table(curve, stem.frame_samples)
    return curve, frames, place_organs(stem, curve, frames)


class TestAttachments:
    def test_leaves_then_thorns(self, stem):
        attachments = organ_attachments(stem)
        kinds = [a.kind for a in attachments]
        assert kinds == [LEAF] * len(stem.leaves) + [THORN] * len(stem.thorn_params)

    def test_leaf_phase_and_flutter(self, stem):
        leaves = [a for a in organ_attachments(stem) if a.kind == LEAF]
        assert [a.phase for a in leaves] == [i * stem.leaf_phase_step for i in range(len(leaves))]
        assert leaves[0].flutter == pytest.approx(stem.flutter_base)
        assert all(a.flutter > 0 for a in leaves)

    def test_thorns_scattered(self, stem):
        thorns = [a for a in organ_attachments(stem) if a.kind == THORN]
        azimuths = [a.azimuth for a in thorns]
        assert len(set(azimuths)) == len(azimuths)
        assert all(a.flutter == 0.0 for a in thorns)

    def test_side_sign_normalized(self):
        stem = StemConfig(leaves=(LeafSpec(t=0.3, side=-5, scale=0.4, roll=0.0),
                                  LeafSpec(t=0.5, side=0, scale=0.4, roll=0.0)))
        signs = [a.side_sign for a in organ_attachments(stem) if a.kind == LEAF]
        assert signs == [-1, 1]


class TestPlaceOrgans:
    def test_unit_quaternions(self, placed):
        _, _, organs = placed
        norms = np.linalg.norm([o.orientation for o in organs], axis=-1)
        np.testing.assert_allclose(norms, 1.0, atol=1e-6)

    def test_thorns_perpendicular_to_stem(self, placed, stem):
        curve, frames, organs = placed
        for organ in organs:
            if organ.kind != THORN:
                continue
            tangent, _, _ = frames.sample_nearest(organ.attachment.t)
            direction = quat.rotate_vector(np.array(organ.orientation), quat.UP)
            assert abs(np.dot(direction, tangent)) < 1e-9
            offset = np.array(organ.position) - curve.point_at(organ.attachment.t)
            np.testing.assert_allclose(np.linalg.norm(offset), stem.thorn_offset, atol=1e-9)

    def test_leaves_lean_up_the_stem(self, placed):
        _, frames, organs = placed
        for organ in organs:
            if organ.kind != LEAF:
                continue
            tangent, _, _ = frames.sample_nearest(organ.attachment.t)
            direction = quat.rotate_vector(np.array(organ.orientation), quat.UP)
            assert np.dot(direction, tangent) > 0.1

    def test_no_thorns(self):
        stem = StemConfig(thorn_params=())
        curve = StemCurve(stem.control_points, stem.tension)
        organs = place_organs(stem, curve, build_frame_table(curve, 20))
        assert all(o.kind == LEAF for o in organs)


class TestSepals:
    def test_count_and_kind(self):
        sepals = layout_sepals(SepalConfig(), PseudoRandomSource(4))
        assert len(sepals) == 5
        assert all(s.kind == SEPAL for s in sepals)

    def test_deterministic(self):
        a = layout_sepals(SepalConfig(), PseudoRandomSource(4))
        b = layout_sepals(SepalConfig(), PseudoRandomSource(4))
        assert a == b

    def test_ring_below_bloom(self):
        config = SepalConfig(radius_jitter=0.0, height_jitter=0.0)
        for s in layout_sepals(config, PseudoRandomSource(8)):
            np.testing.assert_allclose(math.hypot(s.position[0], s.position[2]), config.radius)
            assert s.position[1] == pytest.approx(config.height)
            np.testing.assert_allclose(np.linalg.norm(s.orientation), 1.0, atol=1e-9)

    def test_zero_count(self):
        assert layout_sepals(SepalConfig(count=0), PseudoRandomSource(1)) == ()

    def test_negative_radius_clamped(self):
        sepals = layout_sepals(SepalConfig(radius=-1.0, radius_jitter=0.0), PseudoRandomSource(1))
        for s in sepals:
            np.testing.assert_allclose(math.hypot(s.position[0], s.position[2]), 0.0, atol=1e-12)
