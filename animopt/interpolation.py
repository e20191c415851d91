"""Track sampling: linear interpolation for vectors, slerp for quaternions.

Pure-numpy, batched over samples. Quaternions are **xyzw**.
"""

import numpy as np

from animopt.raw_animation import IDENTITY_VALUES, TrackType


# ---------------------------------------------------------------------------
# Vector / quaternion helpers
# ---------------------------------------------------------------------------

def _normalize(v: np.ndarray) -> np.ndarray:
    """Normalize vectors along last axis, handling zero-length."""
    norms = np.sqrt((v ** 2).sum(axis=-1, keepdims=True))
    norms = np.maximum(norms, 1e-10)
    return v / norms


def quat_dot(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Dot product along last axis. (..., 4) → (...)"""
    return (a * b).sum(axis=-1)


def lerp(a: np.ndarray, b: np.ndarray, alpha: np.ndarray) -> np.ndarray:
    """Linear interpolation, alpha broadcast over the last axis. (N, D), (N,)"""
    alpha = np.asarray(alpha, dtype=np.float64)[..., np.newaxis]
    return a + (b - a) * alpha


def quat_slerp(q0: np.ndarray, q1: np.ndarray, alpha: np.ndarray) -> np.ndarray:
    """Shortest-arc spherical interpolation. (N, 4), (N, 4), (N,) → (N, 4)"""
    t = np.asarray(alpha, dtype=np.float64)[..., np.newaxis]
    dot = quat_dot(q0, q1)[..., np.newaxis]
    # Ensure shortest path
    sign = np.where(dot < 0, -1.0, 1.0)
    q1 = q1 * sign
    dot = np.clip(dot * sign, -1.0, 1.0)
    theta = np.arccos(dot)
    sin_theta = np.sin(theta)
    # Fallback to lerp when angle is very small
    small = sin_theta[..., 0] < 1e-6
    s0 = np.sin((1 - t) * theta) / np.maximum(sin_theta, 1e-10)
    s1 = np.sin(t * theta) / np.maximum(sin_theta, 1e-10)
    result = s0 * q0 + s1 * q1
    if np.any(small):
        nlerp = (1 - t) * q0 + t * q1
        result[small] = nlerp[small]
    return _normalize(result)


def interpolate(a: np.ndarray, b: np.ndarray, alpha: np.ndarray,
                track_type: TrackType) -> np.ndarray:
    if track_type == TrackType.ROTATION:
        return quat_slerp(a, b, alpha)
    return lerp(a, b, alpha)


# ---------------------------------------------------------------------------
# Track sampling
# ---------------------------------------------------------------------------

def track_arrays(keys) -> tuple:
    """Key list → (times (K,), values (K, D)) float64 arrays."""
    times = np.array([k.time for k in keys], dtype=np.float64)
    values = np.array([k.value for k in keys], dtype=np.float64)
    return times, values


def sample_arrays(key_times: np.ndarray, key_values: np.ndarray,
                  times: np.ndarray, track_type: TrackType) -> np.ndarray:
    """Sample a track given as arrays at arbitrary times. Clamps outside range."""
    times = np.asarray(times, dtype=np.float64)
    if key_times.shape[0] == 0:
        identity = np.array(IDENTITY_VALUES[track_type], dtype=np.float64)
        return np.tile(identity, (times.shape[0], 1))
    if key_times.shape[0] == 1:
        return np.tile(key_values[0], (times.shape[0], 1))

    idx = np.searchsorted(key_times, times, side="right") - 1
    idx = np.clip(idx, 0, key_times.shape[0] - 2)
    t0 = key_times[idx]
    t1 = key_times[idx + 1]
    alpha = np.clip((times - t0) / (t1 - t0), 0.0, 1.0)
    return interpolate(key_values[idx], key_values[idx + 1], alpha, track_type)


def sample_track(keys, times, track_type: TrackType) -> np.ndarray:
    """Sample a key list at the given times. (T,) → (T, 3|4)"""
    key_times, key_values = track_arrays(keys)
    if key_values.ndim == 1:
        key_values = key_values.reshape(0, len(IDENTITY_VALUES[track_type]))
    return sample_arrays(key_times, key_values, times, track_type)
