"""Observability: per-process counters and step timers for the chat pipeline."""

import time
from collections import defaultdict
from contextlib import contextmanager
from typing import Any

import structlog

logger = structlog.get_logger().bind(source="observability")


class Metrics:
    """Dict-based metrics collector. Counters are ints, timers keep every duration."""

    def __init__(self):
        self._counters: dict[str, int] = defaultdict(int)
        self._timers: dict[str, list[float]] = defaultdict(list)

    def counter(self, name: str, value: int = 1):
        self._counters[name] += value

    def count(self, name: str) -> int:
        return self._counters.get(name, 0)

    @contextmanager
    def timer(self, name: str):
        """Time the wrapped block. Duration is recorded even when the block raises."""
        start = time.perf_counter()
        try:
            yield
        finally:
            self._timers[name].append(time.perf_counter() - start)

    def durations(self, name: str) -> list[float]:
        return list(self._timers.get(name, []))

    def summary(self) -> dict[str, Any]:
        timers = {}
        for name, durations in self._timers.items():
            if not durations:
                continue
            timers[name] = {
                "count": len(durations),
                "avg_ms": round(sum(durations) / len(durations) * 1000, 2),
                "max_ms": round(max(durations) * 1000, 2),
            }
        return {"counters": dict(self._counters), "timers": timers}

    def reset(self):
        self._counters.clear()
        self._timers.clear()


metrics = Metrics()


def log_run_summary():
    """Log the current metrics summary via structlog."""
    logger.info("metrics.summary", **metrics.summary())
