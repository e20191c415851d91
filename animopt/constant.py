"""Constant track stripping.

A track whose keys all stay within tolerance of its first key is replaced
by a single key at time 0 holding the first key's value.
"""

import logging

import numpy as np

from animopt.config import (
    CONSTANT_ROTATION_TOLERANCE,
    CONSTANT_SCALE_TOLERANCE,
    CONSTANT_TRANSLATION_TOLERANCE,
)
from animopt.decimate import euclidean_error
from animopt.interpolation import quat_dot, track_arrays
from animopt.raw_animation import KEY_TYPES, JointTrack, RawAnimation, TrackType

logger = logging.getLogger(__name__)


def _is_constant(keys, track_type: TrackType, tolerance: float) -> bool:
    _, values = track_arrays(keys)
    first = np.broadcast_to(values[0], values.shape)
    if track_type == TrackType.ROTATION:
        # Sign invariant: q and -q are the same rotation.
        return bool((np.abs(quat_dot(values, first)) >= tolerance).all())
    return bool((euclidean_error(values, first) <= tolerance).all())


def strip_constant(keys, track_type: TrackType, tolerance: float) -> list:
    """Collapse a constant key list to one key at time 0, else return it unchanged."""
    if not keys:
        return []
    if len(keys) == 1 and keys[0].time == 0.0:
        return list(keys)
    if not _is_constant(keys, track_type, tolerance):
        return list(keys)
    return [KEY_TYPES[track_type](time=0.0, value=keys[0].value)]


class AnimationConstantOptimizer:
    """Strips constant tracks from a RawAnimation."""

    def __init__(self, translation_tolerance=CONSTANT_TRANSLATION_TOLERANCE,
                 rotation_tolerance=CONSTANT_ROTATION_TOLERANCE,
                 scale_tolerance=CONSTANT_SCALE_TOLERANCE):
        # Euclidean distance.
        self.translation_tolerance = translation_tolerance
        # Cosine of half the tolerance angle, compared to |dot|. Allows
        # angles small enough that cos would round them to 1.
        self.rotation_tolerance = rotation_tolerance
        # Euclidean distance.
        self.scale_tolerance = scale_tolerance

    def tolerance(self, track_type: TrackType) -> float:
        if track_type == TrackType.TRANSLATION:
            return self.translation_tolerance
        if track_type == TrackType.ROTATION:
            return self.rotation_tolerance
        return self.scale_tolerance

    def __call__(self, input_animation: RawAnimation, output: RawAnimation) -> bool:
        """Returns False and resets output when input is invalid."""
        if not input_animation.validate():
            logger.debug("Constant optimizer input %r is not a valid animation",
                         input_animation.name)
            output.reset()
            return False
        if min(self.translation_tolerance, self.rotation_tolerance, self.scale_tolerance) < 0.0:
            logger.debug("Negative constant optimizer tolerance")
            output.reset()
            return False

        result = RawAnimation(duration=input_animation.duration, name=input_animation.name)
        for source in input_animation.tracks:
            track = JointTrack()
            for tt in TrackType:
                track.set_keys(tt, strip_constant(source.keys(tt), tt, self.tolerance(tt)))
            result.tracks.append(track)
        output.assign(result)
        return True
