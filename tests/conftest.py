"""Shared fixtures: small rigs with densely sampled animations."""

import numpy as np
import pytest

from animopt.raw_animation import (
    JointTrack,
    RawAnimation,
    RotationKey,
    ScaleKey,
    TranslationKey,
)
from animopt.skeleton import Skeleton

FPS = 30
DURATION = 2.0


def sample_times(duration=DURATION, fps=FPS):
    return np.linspace(0.0, duration, int(round(duration * fps)) + 1)


def swing_rotations(times, axis, amplitude, frequency, phase=0.0):
    """Rotation keys swinging around axis: angle = amplitude * sin(2 pi f t + phase)."""
    axis = np.asarray(axis, dtype=np.float64)
    axis = axis / np.linalg.norm(axis)
    half = amplitude * np.sin(2.0 * np.pi * frequency * times + phase) / 2.0
    return [RotationKey(float(t), (*(axis * np.sin(h)), float(np.cos(h))))
            for t, h in zip(times, half)]


def constant_translations(times, value):
    return [TranslationKey(float(t), tuple(float(v) for v in value)) for t in times]


def unit_scales(times):
    return [ScaleKey(float(t), (1.0, 1.0, 1.0)) for t in times]


def make_chain_animation(parents, times=None):
    """One swinging joint per entry; children sit 0.3 along x of their parent."""
    times = sample_times() if times is None else times
    tracks = []
    for ji, parent in enumerate(parents):
        if parent < 0:
            translations = [
                TranslationKey(float(t), (0.1 * np.sin(np.pi * t), 1.0, 0.5 * float(t)))
                for t in times
            ]
        else:
            translations = constant_translations(times, (0.3, 0.0, 0.0))
        scales = unit_scales(times)
        if ji == 1:
            scales = [ScaleKey(float(t), (1.0 + 0.05 * np.sin(np.pi * t),) * 3) for t in times]
        tracks.append(JointTrack(
            translations=translations,
            rotations=swing_rotations(times, (0.2, 0.3, 1.0), 0.4, 0.5 + 0.25 * ji, phase=ji),
            scales=scales,
        ))
    return RawAnimation(duration=float(times[-1]), tracks=tracks, name="chain")


@pytest.fixture
def arm_skeleton():
    """shoulder → elbow → hand"""
    return Skeleton(parent_indices=(-1, 0, 1), joint_names=("shoulder", "elbow", "hand"))


@pytest.fixture
def arm_animation(arm_skeleton):
    return make_chain_animation(arm_skeleton.parent_indices)


@pytest.fixture
def branch_skeleton():
    """root with two children, the first one carrying a leaf."""
    return Skeleton(parent_indices=(-1, 0, 0, 1))


@pytest.fixture
def branch_animation(branch_skeleton):
    return make_chain_animation(branch_skeleton.parent_indices)


@pytest.fixture
def line_animation():
    """Root translating along a straight line, child static 1.0 above."""
    times = [0.0, 0.25, 0.5, 0.75, 1.0]
    root = JointTrack(
        translations=[TranslationKey(t, (2.0 * t, 0.5 * t, 0.0)) for t in times],
    )
    child = JointTrack(translations=[TranslationKey(0.0, (0.0, 1.0, 0.0))])
    return RawAnimation(duration=1.0, tracks=[root, child], name="line")


@pytest.fixture
def chain_factory():
    return make_chain_animation
