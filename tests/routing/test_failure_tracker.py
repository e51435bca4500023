import threading

import pytest

from completion_gateway.routing import FailureTracker
from completion_gateway.upstream import UpstreamError


def test_record_failure_counts_from_zero():
    tracker = FailureTracker()

    assert tracker.failure_count("m") == 0
    assert tracker.record_failure("m") == 1
    assert tracker.record_failure("m") == 2
    assert tracker.failure_count("m") == 2


def test_should_skip_once_threshold_is_reached():
    tracker = FailureTracker(threshold=3)

    tracker.record_failure("m")
    tracker.record_failure("m")
    assert tracker.should_skip("m") is False

    tracker.record_failure("m")
    assert tracker.should_skip("m") is True


def test_reset_failures_clears_counter():
    tracker = FailureTracker(threshold=3)
    for _ in range(5):
        tracker.record_failure("m")

    tracker.reset_failures("m")

    assert tracker.failure_count("m") == 0
    assert tracker.should_skip("m") is False
    assert tracker.record_failure("m") == 1


def test_reset_unknown_model_is_noop():
    tracker = FailureTracker()
    tracker.reset_failures("never-seen")
    assert tracker.failure_count("never-seen") == 0


def test_counters_are_per_model():
    tracker = FailureTracker(threshold=1)
    tracker.record_failure("a")

    assert tracker.should_skip("a") is True
    assert tracker.should_skip("b") is False


def test_status_snapshot():
    tracker = FailureTracker(threshold=2)
    tracker.record_failure("m")
    tracker.record_failure("m")

    status = tracker.status("m")
    assert status.model_id == "m"
    assert status.count == 2
    assert status.threshold == 2
    assert status.should_skip is True


def test_threshold_must_be_positive():
    with pytest.raises(ValueError):
        FailureTracker(threshold=0)


def test_is_rate_limit_error_is_exposed_on_tracker():
    assert FailureTracker.is_rate_limit_error(UpstreamError(status_code=429, message="x"))
    assert not FailureTracker.is_rate_limit_error(UpstreamError(status_code=500, message="x"))


def test_concurrent_record_failure_loses_no_updates():
    tracker = FailureTracker(threshold=3)
    threads_count, per_thread = 8, 500
    start = threading.Barrier(threads_count)

    def worker():
        start.wait()
        for _ in range(per_thread):
            tracker.record_failure("m")

    threads = [threading.Thread(target=worker) for _ in range(threads_count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert tracker.failure_count("m") == threads_count * per_thread


def test_concurrent_reset_and_record_stay_consistent():
    tracker = FailureTracker(threshold=3)
    per_thread = 500
    results = []

    def recorder():
        for _ in range(per_thread):
            results.append(tracker.record_failure("m"))

    def resetter():
        for _ in range(per_thread):
            tracker.reset_failures("m")

    threads = [threading.Thread(target=recorder), threading.Thread(target=resetter)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(results) == per_thread
    assert all(count >= 1 for count in results)
    assert 0 <= tracker.failure_count("m") <= per_thread
    tracker.reset_failures("m")
    assert tracker.failure_count("m") == 0
