#!filepath: tests/observability/test_timer.py

import time
from lendrelay.observability.timer import Timer


def test_timer_basic():
    t = Timer(enabled=True)
    t.start("submit.deposit")
    time.sleep(0.01)
    elapsed = t.end("submit.deposit")

    assert elapsed > 0
    assert isinstance(elapsed, float)


def test_timer_disabled():
    t = Timer(enabled=False)
    t.start("task")
    elapsed = t.end("task")

    assert elapsed == 0.0


def test_timer_end_without_start():
    assert Timer().end("never-started") == 0.0


def test_span_reports_to_recorder():
    from lendrelay.observability.metrics import MetricRecorder

    recorder = MetricRecorder()
    with Timer(recorder=recorder).span("submit.withdraw"):
        time.sleep(0.001)

    assert recorder.metrics["submit.withdraw.seconds"] > 0


def test_span_records_even_when_body_raises():
    from lendrelay.observability.metrics import MetricRecorder

    recorder = MetricRecorder()
    try:
        with Timer(recorder=recorder).span("submit.deposit"):
            raise RuntimeError("executor down")
    except RuntimeError:
        pass

    assert "submit.deposit.seconds" in recorder.metrics
