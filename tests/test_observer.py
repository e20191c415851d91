"""Tests for the observer sinks."""

import logging

from animopt.observer import LoggingObserver, ObserverData, RecordingObserver


def _data(joint=0):
    return ObserverData(
        iteration=1, joint=joint, type=0, target_error=0.01, distance=0.1,
        original_size=10, validated_size=10, candidate_size=4, own_tolerance=0.002,
        own_error=0.0015, hierarchy_error_ratio=0.5, optimization_delta=4000.0,
    )


def test_logging_observer_logs_and_continues(caplog):
    caplog.set_level(logging.DEBUG, logger="animopt.observer")
    assert LoggingObserver().push(_data(joint=3))
    assert "joint 3" in caplog.text
    assert "10 -> 4 keys" in caplog.text


def test_logging_observer_custom_logger(caplog):
    log = logging.getLogger("animopt.tests")
    with caplog.at_level(logging.INFO, logger="animopt.tests"):
        assert LoggingObserver(log=log, level=logging.INFO).push(_data())
    assert caplog.records[0].name == "animopt.tests"


def test_recording_observer_unbounded():
    observer = RecordingObserver()
    assert all(observer.push(_data(j)) for j in range(5))
    assert [d.joint for d in observer.records] == list(range(5))


def test_recording_observer_stops_at_limit():
    observer = RecordingObserver(max_records=2)
    assert observer.push(_data())
    assert not observer.push(_data())
    assert len(observer.records) == 2
