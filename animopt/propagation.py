"""Forward-kinematics error propagation.

A joint's track error is measured as the world-space displacement of a
virtual point placed ``lever`` away from the joint (emulating a skinned
vertex):

  translation:  |dt|
  rotation:     lever * 2 * sin(half angle)   (chord of the angular error)
  scale:        lever * |ds|

each multiplied by the joint's accumulated parent scale. ``sin(half angle)``
is derived from the quaternion dot product, so no inverse trigonometric
function is involved.

The FK helpers at the bottom evaluate whole animations and measure the
actual world-space deviation between two of them; they are used to verify
optimizer output.
"""

from enum import Enum

import numpy as np

from animopt.decimate import euclidean_error
from animopt.interpolation import quat_dot, sample_arrays, sample_track, track_arrays
from animopt.raw_animation import TrackType


# ---------------------------------------------------------------------------
# Error combination policy
# ---------------------------------------------------------------------------

class ErrorCombination(Enum):
    SUM = "sum"   # worst case: contributions add up at the same sample point
    MAX = "max"

    def combine(self, errors) -> float:
        errors = [float(e) for e in errors]
        if not errors:
            return 0.0
        if self is ErrorCombination.SUM:
            return float(sum(errors))
        return float(max(errors))

    @classmethod
    def parse(cls, value) -> "ErrorCombination":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(f"unknown error combination {value!r} (expected sum or max)") from None


# ---------------------------------------------------------------------------
# Per-track positional error metrics
# ---------------------------------------------------------------------------

def positional_error_fn(track_type: TrackType, lever: float, own_scale: float,
                        parent_scale: float):
    """Error function (reconstructed, original) → (M,) world displacement.

    lever is the reach of the joint's hierarchy in its child space,
    own_scale the joint's largest scale component and parent_scale the
    accumulated scale of its ancestors.
    """
    if track_type == TrackType.TRANSLATION:
        def _error(reconstructed, original):
            return parent_scale * euclidean_error(reconstructed, original)
    elif track_type == TrackType.ROTATION:
        reach = lever * own_scale

        def _error(reconstructed, original):
            cos_half = np.minimum(np.abs(quat_dot(reconstructed, original)), 1.0)
            sin_half = np.sqrt(np.maximum(1.0 - cos_half * cos_half, 0.0))
            return parent_scale * reach * 2.0 * sin_half
    else:
        def _error(reconstructed, original):
            return parent_scale * lever * euclidean_error(reconstructed, original)
    return _error


def track_error(original_keys, candidate_keys, track_type: TrackType, error_fn) -> float:
    """Worst error of candidate vs original, at every original key time."""
    if len(original_keys) == 0 or len(candidate_keys) == len(original_keys):
        return 0.0
    times, values = track_arrays(original_keys)
    reconstructed = sample_track(candidate_keys, times, track_type)
    return float(error_fn(reconstructed, values).max())


# ---------------------------------------------------------------------------
# Forward kinematics (verification)
# ---------------------------------------------------------------------------

def sample_times(animation) -> np.ndarray:
    """Sorted union of every key time of an animation."""
    times = [k.time for track in animation.tracks
             for tt in TrackType for k in track.keys(tt)]
    if not times:
        return np.zeros(1, dtype=np.float64)
    return np.unique(np.array(times, dtype=np.float64))


def sample_animation(animation, times) -> tuple:
    """Per-joint local TRS at the given times.

    Returns:
        translations: (T, N, 3)
        rotations:    (T, N, 4) xyzw
        scales:       (T, N, 3)
    """
    times = np.asarray(times, dtype=np.float64)
    T, N = times.shape[0], animation.num_tracks
    translations = np.zeros((T, N, 3), dtype=np.float64)
    rotations = np.zeros((T, N, 4), dtype=np.float64)
    scales = np.ones((T, N, 3), dtype=np.float64)
    for si, track in enumerate(animation.tracks):
        for tt, out in ((TrackType.TRANSLATION, translations),
                        (TrackType.ROTATION, rotations),
                        (TrackType.SCALE, scales)):
            key_times, key_values = track_arrays(track.keys(tt))
            if key_times.shape[0]:
                out[:, si] = sample_arrays(key_times, key_values, times, tt)
            elif tt == TrackType.ROTATION:
                out[:, si, 3] = 1.0
    return translations, rotations, scales


def local_matrices(translations, rotations, scales) -> np.ndarray:
    """Batched T * R * S local matrices. (..., 3), (..., 4) xyzw, (..., 3) → (..., 4, 4)"""
    x, y, z, w = rotations[..., 0], rotations[..., 1], rotations[..., 2], rotations[..., 3]
    sx, sy, sz = scales[..., 0], scales[..., 1], scales[..., 2]

    m = np.zeros(translations.shape[:-1] + (4, 4), dtype=np.float64)
    m[..., 3, 3] = 1.0
    m[..., 0, 0] = (1 - 2*(y*y + z*z)) * sx
    m[..., 0, 1] = (2*(x*y - z*w)) * sy
    m[..., 0, 2] = (2*(x*z + y*w)) * sz
    m[..., 1, 0] = (2*(x*y + z*w)) * sx
    m[..., 1, 1] = (1 - 2*(x*x + z*z)) * sy
    m[..., 1, 2] = (2*(y*z - x*w)) * sz
    m[..., 2, 0] = (2*(x*z - y*w)) * sx
    m[..., 2, 1] = (2*(y*z + x*w)) * sy
    m[..., 2, 2] = (1 - 2*(x*x + y*y)) * sz
    m[..., :3, 3] = translations
    return m


def world_matrices(skeleton, animation, times) -> np.ndarray:
    """FK: world matrices of every joint at the given times. → (T, N, 4, 4)"""
    translations, rotations, scales = sample_animation(animation, times)
    local = local_matrices(translations, rotations, scales)
    world = np.empty_like(local)
    for si in skeleton.iter_topological():
        pi = skeleton.parent_indices[si]
        if pi < 0:
            world[:, si] = local[:, si]
        else:
            world[:, si] = np.einsum('tij,tjk->tik', world[:, pi], local[:, si])
    return world


def measure_joint_errors(skeleton, original, optimized, distances) -> np.ndarray:
    """Worst world displacement per joint between two animations.

    Points are the joint origin and ``distance`` along each local axis,
    sampled at every key time of the original animation.

    Args:
        distances: scalar, or one distance per joint

    Returns:
        errors: (N,)
    """
    n = skeleton.num_joints
    distances = np.broadcast_to(np.asarray(distances, dtype=np.float64), (n,))
    times = sample_times(original)
    world_a = world_matrices(skeleton, original, times)
    world_b = world_matrices(skeleton, optimized, times)

    # (N, 4 points, 4) homogeneous local points
    points = np.zeros((n, 4, 4), dtype=np.float64)
    points[:, :, 3] = 1.0
    for axis in range(3):
        points[:, axis + 1, axis] = distances

    pos_a = np.einsum('tnij,npj->tnpi', world_a, points)[..., :3]
    pos_b = np.einsum('tnij,npj->tnpi', world_b, points)[..., :3]
    err = np.sqrt(((pos_a - pos_b) ** 2).sum(axis=-1))  # (T, N, 4)
    return err.max(axis=(0, 2))
