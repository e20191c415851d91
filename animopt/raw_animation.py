"""Offline animation data model: per-joint translation / rotation / scale keys.

Keys are plain (time, value) pairs. Values are float tuples:
translation and scale are xyz, rotation is a unit quaternion in **xyzw**
(glTF convention). Tracks of a joint are independent; they do not need to
share key counts or timestamps.
"""

import copy
import logging
from dataclasses import dataclass, field
from enum import IntEnum

logger = logging.getLogger(__name__)


class TrackType(IntEnum):
    TRANSLATION = 0
    ROTATION = 1
    SCALE = 2


IDENTITY_TRANSLATION = (0.0, 0.0, 0.0)
IDENTITY_ROTATION = (0.0, 0.0, 0.0, 1.0)
IDENTITY_SCALE = (1.0, 1.0, 1.0)


@dataclass(frozen=True)
class TranslationKey:
    time: float
    value: tuple = IDENTITY_TRANSLATION


@dataclass(frozen=True)
class RotationKey:
    time: float
    value: tuple = IDENTITY_ROTATION  # xyzw


@dataclass(frozen=True)
class ScaleKey:
    time: float
    value: tuple = IDENTITY_SCALE


KEY_TYPES = {
    TrackType.TRANSLATION: TranslationKey,
    TrackType.ROTATION: RotationKey,
    TrackType.SCALE: ScaleKey,
}

IDENTITY_VALUES = {
    TrackType.TRANSLATION: IDENTITY_TRANSLATION,
    TrackType.ROTATION: IDENTITY_ROTATION,
    TrackType.SCALE: IDENTITY_SCALE,
}


@dataclass
class JointTrack:
    translations: list = field(default_factory=list)  # [TranslationKey, ...]
    rotations: list = field(default_factory=list)     # [RotationKey, ...]
    scales: list = field(default_factory=list)        # [ScaleKey, ...]

    def keys(self, track_type: TrackType) -> list:
        if track_type == TrackType.TRANSLATION:
            return self.translations
        if track_type == TrackType.ROTATION:
            return self.rotations
        return self.scales

    def set_keys(self, track_type: TrackType, keys: list) -> None:
        if track_type == TrackType.TRANSLATION:
            self.translations = list(keys)
        elif track_type == TrackType.ROTATION:
            self.rotations = list(keys)
        else:
            self.scales = list(keys)

    def key_count(self) -> int:
        return len(self.translations) + len(self.rotations) + len(self.scales)


def _track_is_valid(keys, duration: float) -> bool:
    """Key times must lie in [0, duration] and strictly increase."""
    previous = -1.0
    for key in keys:
        t = key.time
        if t < 0.0 or t > duration:
            return False
        if t <= previous:
            return False
        previous = t
    return True


@dataclass
class RawAnimation:
    """Uncompressed animation: one JointTrack per joint, in skeleton order."""

    duration: float = 1.0  # seconds
    tracks: list = field(default_factory=list)  # [JointTrack, ...]
    name: str = ""

    @property
    def num_tracks(self) -> int:
        return len(self.tracks)

    def key_count(self) -> int:
        return sum(track.key_count() for track in self.tracks)

    def validate(self) -> bool:
        """Structural validity: positive duration, ordered keys within range."""
        if not self.duration > 0.0:
            logger.debug("Invalid animation %r: duration %s", self.name, self.duration)
            return False
        for ji, track in enumerate(self.tracks):
            for track_type in TrackType:
                if not _track_is_valid(track.keys(track_type), self.duration):
                    logger.debug("Invalid animation %r: joint %d %s keys out of order or range",
                                 self.name, ji, track_type.name.lower())
                    return False
        return True

    def copy(self) -> "RawAnimation":
        # Keys are frozen, but track lists must not be shared.
        return RawAnimation(
            duration=self.duration,
            tracks=[copy.deepcopy(track) for track in self.tracks],
            name=self.name,
        )

    def reset(self) -> None:
        """Empty this animation in place (no tracks, zero duration)."""
        self.duration = 0.0
        self.tracks = []
        self.name = ""

    def assign(self, other: "RawAnimation") -> None:
        """Replace this animation's content with an independent copy of other."""
        fresh = other.copy()
        self.duration = fresh.duration
        self.tracks = fresh.tracks
        self.name = fresh.name
