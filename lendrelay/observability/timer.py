#!filepath: lendrelay/observability/timer.py
import time
from contextlib import contextmanager
from typing import TYPE_CHECKING, Dict, Iterator, Optional

if TYPE_CHECKING:
    from lendrelay.observability.metrics import MetricRecorder


class Timer:
    """
    Named high-resolution spans
    - start(name) / end(name) -> elapsed seconds
    - span(name): context manager, reports "<name>.seconds" to the recorder

    Spans live on the instance; use one Timer per request when requests run
    concurrently.
    """

    def __init__(self, enabled: bool = True, recorder: Optional["MetricRecorder"] = None):
        self.enabled = enabled
        self.recorder = recorder
        self._start: Dict[str, float] = {}

    def start(self, name: str):
        if not self.enabled:
            return
        self._start[name] = time.perf_counter()

    def end(self, name: str) -> float:
        if not self.enabled or name not in self._start:
            return 0.0
        return time.perf_counter() - self._start.pop(name)

    @contextmanager
    def span(self, name: str) -> Iterator[None]:
        self.start(name)
        try:
            yield
        finally:
            elapsed = self.end(name)
            if self.recorder is not None and self.enabled:
                self.recorder.record(f"{name}.seconds", elapsed)
