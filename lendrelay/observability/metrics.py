#!filepath: lendrelay/observability/metrics.py
import threading
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict

from lendrelay import logs


@dataclass
class MetricRecorder:
    """
    Relay counters: one counter per (route, outcome code), plus the last
    observed value of gauges such as submission latency.
    """
    enabled: bool = True
    metrics: Dict[str, Any] = field(default_factory=dict)
    counters: Counter = field(default_factory=Counter)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def record(self, name: str, value: Any):
        if not self.enabled:
            return
        with self._lock:
            self.metrics[name] = value
        logs.debug(f"[Metric] {name} = {value}")

    def incr(self, route: str, outcome: str):
        if not self.enabled:
            return
        with self._lock:
            self.counters[f"{route}.{outcome}"] += 1

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return {"counters": dict(self.counters), "gauges": dict(self.metrics)}
