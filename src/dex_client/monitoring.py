"""
Performance monitoring and statistics for collaborator calls.

Tracks call metrics, fallback usage, and performance indicators.
"""

import time
from collections import defaultdict, deque
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List


class CallOutcome(Enum):
    """How a collaborator call ended."""
    OK = "ok"
    FALLBACK = "fallback"
    ERROR = "error"


@dataclass(frozen=True)
class CallMetrics:
    """Metrics for a single collaborator call."""
    service: str
    operation: str
    outcome: CallOutcome
    duration_ms: float
    timestamp: float


@dataclass
class Statistics:
    """Collaborator call statistics."""
    total_calls: int = 0
    successful_calls: int = 0
    fallback_calls: int = 0
    failed_calls: int = 0
    total_duration_ms: float = 0.0
    avg_duration_ms: float = 0.0
    min_duration_ms: float = float("inf")
    max_duration_ms: float = 0.0

    def update(self, metrics: CallMetrics) -> None:
        """Update statistics with new call metrics."""
        self.total_calls += 1
        self.total_duration_ms += metrics.duration_ms
        self.avg_duration_ms = self.total_duration_ms / self.total_calls
        self.min_duration_ms = min(self.min_duration_ms, metrics.duration_ms)
        self.max_duration_ms = max(self.max_duration_ms, metrics.duration_ms)

        if metrics.outcome is CallOutcome.OK:
            self.successful_calls += 1
        elif metrics.outcome is CallOutcome.FALLBACK:
            self.fallback_calls += 1
        else:
            self.failed_calls += 1


class PerformanceMonitor:
    """Monitors collaborator calls and tracks metrics."""

    def __init__(self, max_history: int = 1000):
        """Initialize performance monitor."""
        self._max_history = max_history
        self._statistics = Statistics()
        self._call_history: deque[CallMetrics] = deque(maxlen=max_history)
        self._operation_stats: Dict[str, deque] = defaultdict(lambda: deque(maxlen=max_history))
        self._start_time = time.time()

    def record_call(
        self,
        service: str,
        operation: str,
        outcome: CallOutcome,
        duration_ms: float,
    ) -> None:
        """Record metrics for a completed call."""
        metrics = CallMetrics(
            service=service,
            operation=operation,
            outcome=outcome,
            duration_ms=duration_ms,
            timestamp=time.time(),
        )

        self._statistics.update(metrics)
        self._call_history.append(metrics)
        self._operation_stats[f"{service}.{operation}"].append(metrics)

    @property
    def statistics(self) -> Statistics:
        """Get current statistics snapshot."""
        return self._statistics

    @property
    def uptime_seconds(self) -> float:
        return time.time() - self._start_time

    def get_operation_stats(self, service: str, operation: str) -> Dict[str, float]:
        """Get statistics for a specific collaborator operation."""
        calls = self._operation_stats.get(f"{service}.{operation}")

        if not calls:
            return {
                "count": 0,
                "avg_duration_ms": 0.0,
                "fallback_rate": 0.0,
                "success_rate": 0.0,
            }

        durations = [c.duration_ms for c in calls]
        successful = sum(1 for c in calls if c.outcome is CallOutcome.OK)
        fallbacks = sum(1 for c in calls if c.outcome is CallOutcome.FALLBACK)

        return {
            "count": len(calls),
            "avg_duration_ms": sum(durations) / len(durations),
            "fallback_rate": fallbacks / len(calls),
            "success_rate": successful / len(calls),
        }

    def get_recent_calls(self, count: int = 10) -> List[CallMetrics]:
        """Get most recent calls."""
        return list(self._call_history)[-count:]

    def reset(self) -> None:
        """Reset all statistics and history."""
        self._statistics = Statistics()
        self._call_history.clear()
        self._operation_stats.clear()


def elapsed_ms(started: float) -> float:
    """Milliseconds since a time.perf_counter() reading."""
    return (time.perf_counter() - started) * 1000
