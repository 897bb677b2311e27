"""In-process counters and timing aggregates for the inventory and transforms.

Nothing is exported; tests and ``--log-level debug`` sessions read
``metrics.snapshot()``. Timings are folded into per-key aggregates so a
long-running process keeps a fixed amount of state per key.

Usage:
    from image_inventory.image_engine.metrics import metrics
    metrics.inc("inventory.skipped")
    with metrics.timed("transform.resize"):
        ...
    metrics.snapshot()["timings"]["transform.resize"]["count"]
"""

from __future__ import annotations

import time
from collections import defaultdict
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import asdict, dataclass
from threading import RLock
from typing import Any


@dataclass
class TimingStats:
    count: int = 0
    total: float = 0.0
    min: float = 0.0
    max: float = 0.0

    def add(self, elapsed: float) -> None:
        if self.count == 0 or elapsed < self.min:
            self.min = elapsed
        self.max = max(self.max, elapsed)
        self.count += 1
        self.total += elapsed

    @property
    def mean(self) -> float:
        return self.total / self.count if self.count else 0.0


class _Metrics:
    def __init__(self) -> None:
        self._counters: dict[str, int] = defaultdict(int)
        self._timings: dict[str, TimingStats] = defaultdict(TimingStats)
        self._lock = RLock()

    def inc(self, key: str, amount: int = 1) -> None:
        with self._lock:
            self._counters[key] += int(amount)

    @contextmanager
    def timed(self, key: str) -> Iterator[None]:
        """Time the ``with`` body, recorded even when it raises."""
        start = time.perf_counter()
        try:
            yield
        finally:
            elapsed = time.perf_counter() - start
            with self._lock:
                self._timings[key].add(elapsed)

    def counter(self, key: str) -> int:
        with self._lock:
            return self._counters.get(key, 0)

    def timing(self, key: str) -> TimingStats:
        """Copy of the aggregate for ``key`` (all zeros if never timed)."""
        with self._lock:
            stats = self._timings.get(key)
            return TimingStats(**asdict(stats)) if stats else TimingStats()

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return {
                "counters": dict(self._counters),
                "timings": {k: {**asdict(v), "mean": v.mean} for k, v in self._timings.items()},
            }

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()
            self._timings.clear()


metrics = _Metrics()
