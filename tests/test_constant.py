"""Tests for constant track stripping."""

import numpy as np
import pytest

from animopt.constant import AnimationConstantOptimizer, strip_constant
from animopt.raw_animation import (
    JointTrack,
    RawAnimation,
    RotationKey,
    ScaleKey,
    TrackType,
    TranslationKey,
)


def _z_rotation(angle, time):
    return RotationKey(time, (0.0, 0.0, float(np.sin(angle / 2)), float(np.cos(angle / 2))))


def test_constant_tracks_collapse(arm_animation):
    output = RawAnimation()
    assert AnimationConstantOptimizer()(arm_animation, output)

    elbow, hand = output.tracks[1], output.tracks[2]
    assert elbow.translations == [TranslationKey(0.0, (0.3, 0.0, 0.0))]
    assert hand.translations == [TranslationKey(0.0, (0.3, 0.0, 0.0))]
    assert output.tracks[0].scales == [ScaleKey(0.0, (1.0, 1.0, 1.0))]
    assert hand.scales == [ScaleKey(0.0, (1.0, 1.0, 1.0))]


def test_varying_tracks_unchanged(arm_animation):
    output = RawAnimation()
    assert AnimationConstantOptimizer()(arm_animation, output)

    assert output.tracks[0].translations == arm_animation.tracks[0].translations
    assert output.tracks[1].scales == arm_animation.tracks[1].scales
    for before, after in zip(arm_animation.tracks, output.tracks):
        assert after.rotations == before.rotations
    assert output.duration == arm_animation.duration
    assert output.validate()


def test_stripping_is_idempotent(arm_animation):
    optimizer = AnimationConstantOptimizer()
    once, twice = RawAnimation(), RawAnimation()
    assert optimizer(arm_animation, once)
    assert optimizer(once, twice)
    assert twice == once


def test_opposite_quaternions_are_constant():
    q = _z_rotation(0.7, 0.0)
    flipped = RotationKey(1.0, tuple(-c for c in q.value))
    assert strip_constant([q, flipped], TrackType.ROTATION, 0.99999) == [q]


@pytest.mark.parametrize("angle, collapses", [(0.001, True), (0.1, False)])
def test_rotation_tolerance_is_half_angle_cosine(angle, collapses):
    keys = [_z_rotation(0.0, 0.0), _z_rotation(angle, 0.5), _z_rotation(0.0, 1.0)]
    stripped = strip_constant(keys, TrackType.ROTATION, 0.99999)
    assert (len(stripped) == 1) is collapses


def test_single_key_moves_to_time_zero():
    key = TranslationKey(0.5, (1.0, 2.0, 3.0))
    assert strip_constant([key], TrackType.TRANSLATION, 0.0) == [
        TranslationKey(0.0, (1.0, 2.0, 3.0))]


def test_empty_track_stays_empty():
    assert strip_constant([], TrackType.SCALE, 1.0) == []


def test_translation_tolerance_boundary():
    keys = [TranslationKey(0.0), TranslationKey(1.0, (0.0, 0.0, 0.01))]
    assert len(strip_constant(keys, TrackType.TRANSLATION, 0.02)) == 1
    assert strip_constant(keys, TrackType.TRANSLATION, 0.005) == keys


def test_invalid_input_resets_output(arm_animation):
    invalid = RawAnimation(duration=-1.0, tracks=[JointTrack()])
    output = arm_animation.copy()
    assert not AnimationConstantOptimizer()(invalid, output)
    assert output.num_tracks == 0
    assert output.duration == 0.0


def test_negative_tolerance_fails(arm_animation):
    output = RawAnimation()
    assert not AnimationConstantOptimizer(scale_tolerance=-1.0)(arm_animation, output)
    assert output.num_tracks == 0
