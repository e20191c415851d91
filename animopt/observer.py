"""Optimization observers: push-only sinks for decimation decisions.

An observer is anything with ``push(data) -> bool``. Returning False asks
the optimizer to stop; what was validated so far is kept.
"""

import logging
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ObserverData:
    iteration: int                # Iteration number.
    joint: int                    # Joint number.
    type: int                     # Track type (TrackType value).
    target_error: float           # Target error value.
    distance: float               # Distance at which error is measured.
    original_size: int            # Original track size.
    validated_size: int           # Last validated track size.
    candidate_size: int           # Candidate track size.
    own_tolerance: float          # Current decimation tolerance.
    own_error: float              # Track own error metric.
    hierarchy_error_ratio: float  # Joint error / target error.
    optimization_delta: float     # Keys removed per unit of error for this candidate.


class Observer(Protocol):
    def push(self, data: ObserverData) -> bool:
        ...


class LoggingObserver:
    """Logs every record at the given level."""

    def __init__(self, log=None, level=logging.DEBUG):
        self.log = log or logger
        self.level = level

    def push(self, data: ObserverData) -> bool:
        self.log.log(
            self.level,
            "iter %d joint %d type %d: %d -> %d keys (validated %d), "
            "tol %.6g err %.6g ratio %.3f delta %.6g",
            data.iteration, data.joint, data.type, data.original_size,
            data.candidate_size, data.validated_size, data.own_tolerance,
            data.own_error, data.hierarchy_error_ratio, data.optimization_delta,
        )
        return True


class RecordingObserver:
    """Keeps every record. With max_records set, aborts once that many are held."""

    def __init__(self, max_records=None):
        self.records = []
        self.max_records = max_records

    def push(self, data: ObserverData) -> bool:
        self.records.append(data)
        return self.max_records is None or len(self.records) < self.max_records
