"""Key-frame decimation of a single track.

A key can be removed when interpolating between its kept neighbours
reproduces every original sample of the span within tolerance. Candidates
are removed cheapest-first; once the cheapest one exceeds the tolerance,
every remaining key is fixed and the pass stops. The removal order does not
depend on the tolerance, so a larger tolerance never keeps more keys.
"""

import numpy as np

from animopt.interpolation import interpolate, quat_dot, track_arrays
from animopt.raw_animation import TrackType


# ---------------------------------------------------------------------------
# Error metrics, (M, D) reconstructed vs (M, D) original → (M,)
# ---------------------------------------------------------------------------

def euclidean_error(reconstructed: np.ndarray, original: np.ndarray) -> np.ndarray:
    return np.sqrt(((reconstructed - original) ** 2).sum(axis=-1))


def rotation_cosine_error(reconstructed: np.ndarray, original: np.ndarray) -> np.ndarray:
    """1 - cos(half angle) between quaternions, sign invariant."""
    return 1.0 - np.minimum(np.abs(quat_dot(reconstructed, original)), 1.0)


# ---------------------------------------------------------------------------
# Decimation
# ---------------------------------------------------------------------------

def _span_error(times, values, prev_i, next_i, track_type, error_fn) -> float:
    """Worst error over original samples strictly between prev_i and next_i."""
    inner = slice(prev_i + 1, next_i)
    t = times[inner]
    alpha = (t - times[prev_i]) / (times[next_i] - times[prev_i])
    count = t.shape[0]
    a = np.broadcast_to(values[prev_i], (count, values.shape[1]))
    b = np.broadcast_to(values[next_i], (count, values.shape[1]))
    reconstructed = interpolate(a, b, alpha, track_type)
    return float(error_fn(reconstructed, values[inner]).max())


def decimate_indices(times: np.ndarray, values: np.ndarray, tolerance: float,
                     track_type: TrackType, error_fn) -> list:
    """Indices of the keys kept by decimation. First and last are always kept."""
    n = times.shape[0]
    if n <= 2 or not tolerance > 0.0:
        return list(range(n))

    prev_of = np.arange(n) - 1
    next_of = np.arange(n) + 1
    costs = np.full(n, np.inf)
    for i in range(1, n - 1):
        costs[i] = _span_error(times, values, i - 1, i + 1, track_type, error_fn)

    alive = np.ones(n, dtype=bool)
    while True:
        candidate = int(np.argmin(costs))
        if not costs[candidate] <= tolerance:
            break
        p, q = int(prev_of[candidate]), int(next_of[candidate])
        alive[candidate] = False
        costs[candidate] = np.inf
        next_of[p] = q
        prev_of[q] = p
        # Only the two neighbours' spans changed
        if p > 0:
            costs[p] = _span_error(times, values, int(prev_of[p]), q, track_type, error_fn)
        if q < n - 1:
            costs[q] = _span_error(times, values, p, int(next_of[q]), track_type, error_fn)

    return [int(i) for i in np.flatnonzero(alive)]


def decimate(keys, tolerance: float, track_type: TrackType, error_fn) -> list:
    """Decimate a key list against tolerance, expressed in error_fn's metric."""
    if len(keys) <= 2 or not tolerance > 0.0:
        return list(keys)
    times, values = track_arrays(keys)
    return [keys[i] for i in decimate_indices(times, values, tolerance, track_type, error_fn)]


def decimate_translations(keys, tolerance: float) -> list:
    """Tolerance is a euclidean distance."""
    return decimate(keys, tolerance, TrackType.TRANSLATION, euclidean_error)


def decimate_rotations(keys, cos_tolerance: float) -> list:
    """Tolerance is the cosine of half the allowed angle (1.0 keeps everything)."""
    return decimate(keys, 1.0 - cos_tolerance, TrackType.ROTATION, rotation_cosine_error)


def decimate_scales(keys, tolerance: float) -> list:
    """Tolerance is a euclidean distance."""
    return decimate(keys, tolerance, TrackType.SCALE, euclidean_error)
