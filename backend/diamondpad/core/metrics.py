"""Operation metrics for the allocation engine.

Tracks how often each public operation succeeds or fails (by error kind)
and how many tokens each pool has handed out.
"""

import threading
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import structlog

logger = structlog.get_logger()


@dataclass
class OperationMetrics:
    """Counters for a single operation."""
    operation: str
    call_count: int = 0
    success_count: int = 0
    error_count: int = 0
    errors_by_kind: Dict[str, int] = field(default_factory=lambda: defaultdict(int))
    last_call_at: Optional[datetime] = None
    last_error: Optional[str] = None

    @property
    def success_rate(self) -> float:
        if self.call_count == 0:
            return 1.0
        return self.success_count / self.call_count

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation": self.operation,
            "call_count": self.call_count,
            "success_count": self.success_count,
            "error_count": self.error_count,
            "errors_by_kind": dict(self.errors_by_kind),
            "success_rate": round(self.success_rate, 4),
            "last_call_at": self.last_call_at.isoformat() if self.last_call_at else None,
            "last_error": self.last_error,
        }


@dataclass
class DistributionMetrics:
    """Totals for one pool across all launches."""
    pool: str
    runs: int = 0
    tokens_allocated: int = 0
    awarded_entries: int = 0
    lost_entries: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pool": self.pool,
            "runs": self.runs,
            "tokens_allocated": self.tokens_allocated,
            "awarded_entries": self.awarded_entries,
            "lost_entries": self.lost_entries,
        }


class MetricsCollector:
    """Metrics collector shared by the managers of one engine."""

    def __init__(self):
        self._lock = threading.Lock()
        self._operations: Dict[str, OperationMetrics] = {}
        self._distributions: Dict[str, DistributionMetrics] = {}
        self._started_at = datetime.now(timezone.utc)

    def record_operation(
        self,
        operation: str,
        success: bool,
        error_kind: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> None:
        """Record the outcome of a public operation."""
        with self._lock:
            if operation not in self._operations:
                self._operations[operation] = OperationMetrics(operation=operation)

            m = self._operations[operation]
            m.call_count += 1
            m.last_call_at = datetime.now(timezone.utc)

            if success:
                m.success_count += 1
            else:
                m.error_count += 1
                m.errors_by_kind[error_kind or "unknown"] += 1
                m.last_error = error_message

        if not success:
            logger.warning(
                "Operation rejected",
                operation=operation,
                error_kind=error_kind,
                error=(error_message or "")[:200],
            )

    def record_distribution(
        self,
        pool: str,
        tokens_allocated: int,
        awarded_entries: int,
        lost_entries: int,
    ) -> None:
        """Record one pool distribution run."""
        with self._lock:
            if pool not in self._distributions:
                self._distributions[pool] = DistributionMetrics(pool=pool)
            d = self._distributions[pool]
            d.runs += 1
            d.tokens_allocated += tokens_allocated
            d.awarded_entries += awarded_entries
            d.lost_entries += lost_entries

    def get_operation_metrics(self) -> Dict[str, Dict[str, Any]]:
        return {name: m.to_dict() for name, m in self._operations.items()}

    def get_distribution_metrics(self) -> Dict[str, Dict[str, Any]]:
        return {name: d.to_dict() for name, d in self._distributions.items()}

    def get_summary(self) -> Dict[str, Any]:
        """Get aggregated metrics summary."""
        total_calls = sum(m.call_count for m in self._operations.values())
        total_errors = sum(m.error_count for m in self._operations.values())
        return {
            "started_at": self._started_at.isoformat(),
            "total_calls": total_calls,
            "total_errors": total_errors,
            "error_rate": round(total_errors / total_calls, 4) if total_calls > 0 else 0,
            "tokens_allocated": sum(d.tokens_allocated for d in self._distributions.values()),
            "operations_tracked": len(self._operations),
        }
