"""In-process decision telemetry: outcome counts, rule failures, latency."""

import time
from collections import Counter, deque
from dataclasses import dataclass
from typing import Any

import numpy as np
import structlog

from .models import DecisionResult

logger = structlog.get_logger()


@dataclass
class LatencyStats:
    """Latency percentiles for fraud checks."""

    p50_ms: float = 0.0
    p95_ms: float = 0.0
    p99_ms: float = 0.0
    count: int = 0


class DecisionTelemetry:
    """Collects per-decision metrics and fail-open rule failures.

    Keeps bounded windows so a long-running service does not grow without
    limit. Not shared across processes.
    """

    def __init__(self, max_observations: int = 10_000) -> None:
        self._decisions: Counter[str] = Counter()
        self._risk_levels: Counter[str] = Counter()
        self._rule_failures: Counter[str] = Counter()
        self._latencies: deque[float] = deque(maxlen=max_observations)
        self._persist_failures = 0
        self._alert_failures = 0
        self._started_at = time.time()

    def record_decision(self, result: DecisionResult) -> None:
        self._decisions[result.decision.value] += 1
        self._risk_levels[result.risk_level.value] += 1
        self._latencies.append(result.processing_ms)

    def record_rule_failure(self, rule_name: str, reason: str) -> None:
        self._rule_failures[rule_name] += 1
        logger.debug("rule_failure_recorded", rule=rule_name, reason=reason)

    def record_persist_failure(self) -> None:
        self._persist_failures += 1

    def record_alert_failure(self) -> None:
        self._alert_failures += 1

    def latency_stats(self) -> LatencyStats:
        if not self._latencies:
            return LatencyStats()
        arr = np.array(self._latencies)
        return LatencyStats(
            p50_ms=round(float(np.percentile(arr, 50)), 2),
            p95_ms=round(float(np.percentile(arr, 95)), 2),
            p99_ms=round(float(np.percentile(arr, 99)), 2),
            count=len(arr),
        )

    def summary(self) -> dict[str, Any]:
        latency = self.latency_stats()
        return {
            "total_checks": sum(self._decisions.values()),
            "decisions": dict(self._decisions),
            "risk_levels": dict(self._risk_levels),
            "high_risk_count": self._risk_levels.get("high", 0),
            "blocked_count": self._decisions.get("block", 0),
            "rule_failures": dict(self._rule_failures),
            "persist_failures": self._persist_failures,
            "alert_failures": self._alert_failures,
            "latency_ms": {
                "p50": latency.p50_ms,
                "p95": latency.p95_ms,
                "p99": latency.p99_ms,
                "count": latency.count,
            },
            "uptime_seconds": round(time.time() - self._started_at, 1),
        }
