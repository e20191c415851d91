"""Tests for the RawAnimation container and Skeleton."""

import pytest

from animopt.raw_animation import (
    JointTrack,
    RawAnimation,
    RotationKey,
    TrackType,
    TranslationKey,
)
from animopt.skeleton import Skeleton


def test_valid_animation(arm_animation):
    assert arm_animation.validate()
    assert arm_animation.num_tracks == 3


def test_empty_tracks_are_valid():
    assert RawAnimation(duration=1.0, tracks=[JointTrack(), JointTrack()]).validate()


@pytest.mark.parametrize("duration", [0.0, -1.0])
def test_non_positive_duration_is_invalid(duration):
    assert not RawAnimation(duration=duration, tracks=[JointTrack()]).validate()


def test_unordered_keys_are_invalid():
    track = JointTrack(translations=[TranslationKey(0.5), TranslationKey(0.2)])
    assert not RawAnimation(duration=1.0, tracks=[track]).validate()


def test_duplicate_key_times_are_invalid():
    track = JointTrack(rotations=[RotationKey(0.5), RotationKey(0.5)])
    assert not RawAnimation(duration=1.0, tracks=[track]).validate()


def test_key_beyond_duration_is_invalid():
    track = JointTrack(translations=[TranslationKey(0.0), TranslationKey(1.5)])
    assert not RawAnimation(duration=1.0, tracks=[track]).validate()


def test_copy_does_not_alias(arm_animation):
    clone = arm_animation.copy()
    clone.tracks[0].translations.pop()
    clone.tracks.append(JointTrack())
    assert len(arm_animation.tracks[0].translations) == len(clone.tracks[0].translations) + 1
    assert arm_animation.num_tracks == 3


def test_reset():
    animation = RawAnimation(duration=3.0, tracks=[JointTrack()], name="walk")
    animation.reset()
    assert animation.num_tracks == 0
    assert animation.duration == 0.0


def test_track_accessors():
    track = JointTrack()
    track.set_keys(TrackType.ROTATION, [RotationKey(0.0)])
    assert track.keys(TrackType.ROTATION) == [RotationKey(0.0, (0.0, 0.0, 0.0, 1.0))]
    assert track.key_count() == 1


def test_skeleton_hierarchy(branch_skeleton):
    assert branch_skeleton.num_joints == 4
    assert branch_skeleton.roots == [0]
    assert branch_skeleton.children[0] == (1, 2)
    assert branch_skeleton.children[1] == (3,)
    assert branch_skeleton.heights() == [2, 1, 0, 0]
    assert branch_skeleton.depth(3) == 2
    assert list(branch_skeleton.iter_topological()) == [0, 1, 2, 3]


def test_skeleton_default_names():
    assert Skeleton(parent_indices=(-1, 0)).joint_names == ("joint_0", "joint_1")


def test_skeleton_forest():
    skeleton = Skeleton(parent_indices=(-1, -1, 1))
    assert skeleton.roots == [0, 1]
    assert skeleton.heights() == [0, 1, 0]


@pytest.mark.parametrize("parents", [(-1, 1), (-1, 2, 0), (-2,)])
def test_skeleton_rejects_non_topological_parents(parents):
    with pytest.raises(ValueError):
        Skeleton(parent_indices=parents)
