"""Performance statistics for the metadata cache."""

from __future__ import annotations

import threading
import time
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, Iterator

from leyline.discovery.compression import CompressionStats

RECENT_TIMINGS = 10
TIMING_HISTORY = 100


def ratio(numerator: int, denominator: int) -> float:
    return numerator / denominator if denominator else 0.0


@dataclass(slots=True)
class OperationMetrics:
    count: int = 0
    total_ms: float = 0.0
    min_ms: float = 0.0
    max_ms: float = 0.0
    timings: Deque[float] = field(default_factory=lambda: deque(maxlen=TIMING_HISTORY))

    def record(self, elapsed_ms: float) -> None:
        if self.count == 0:
            self.min_ms = self.max_ms = elapsed_ms
        else:
            self.min_ms = min(self.min_ms, elapsed_ms)
            self.max_ms = max(self.max_ms, elapsed_ms)
        self.count += 1
        self.total_ms += elapsed_ms
        self.timings.append(elapsed_ms)

    @property
    def avg_ms(self) -> float:
        return self.total_ms / self.count if self.count else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "total_ms": self.total_ms,
            "avg_ms": self.avg_ms,
            "min_ms": self.min_ms,
            "max_ms": self.max_ms,
            "recent_ms": list(self.timings)[-RECENT_TIMINGS:],
        }


class OperationTimer:
    """Records wall-clock timings per named operation."""

    def __init__(self) -> None:
        self._metrics: Dict[str, OperationMetrics] = {}
        self._lock = threading.Lock()

    @contextmanager
    def measure(self, operation: str) -> Iterator[None]:
        start = time.perf_counter()
        try:
            yield
        finally:
            self.record(operation, (time.perf_counter() - start) * 1000.0)

    def record(self, operation: str, elapsed_ms: float) -> None:
        with self._lock:
            self._metrics.setdefault(operation, OperationMetrics()).record(elapsed_ms)

    def snapshot(self) -> Dict[str, Dict[str, Any]]:
        with self._lock:
            return {name: metrics.to_dict() for name, metrics in self._metrics.items()}


@dataclass(slots=True)
class PerformanceStats:
    """Point-in-time view of cache effectiveness.

    ``hit_ratio`` is file-level: the share of freshness checks that found a
    file unchanged. ``query_hit_ratio`` is the share of queries answered from
    memory without rescanning anything.
    """

    hit_count: int
    miss_count: int
    scan_count: int
    document_count: int
    category_count: int
    memory_usage: int
    compression_stats: CompressionStats
    queries: int = 0
    queries_from_memory: int = 0
    eviction_count: int = 0
    last_scan_time: float | None = None
    warm_state: str = "cold"
    operation_metrics: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    @property
    def hit_ratio(self) -> float:
        return ratio(self.hit_count, self.hit_count + self.miss_count)

    @property
    def query_hit_ratio(self) -> float:
        return ratio(self.queries_from_memory, self.queries)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hit_ratio": self.hit_ratio,
            "hit_count": self.hit_count,
            "miss_count": self.miss_count,
            "scan_count": self.scan_count,
            "document_count": self.document_count,
            "category_count": self.category_count,
            "memory_usage": self.memory_usage,
            "compression_stats": self.compression_stats.to_dict(),
            "query_hit_ratio": self.query_hit_ratio,
            "queries": self.queries,
            "eviction_count": self.eviction_count,
            "last_scan_time": self.last_scan_time,
            "warm_state": self.warm_state,
            "operation_metrics": self.operation_metrics,
        }
