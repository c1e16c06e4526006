"""Error kinds and the result wrapper returned by public operations.

Services raise LaunchpadError internally. Public entry points catch it and
return OperationResult so callers map failures to responses uniformly.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, Generic, Optional, TypeVar

if TYPE_CHECKING:
    from diamondpad.core.metrics import MetricsCollector

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Failure categories surfaced to callers."""
    NOT_FOUND = "not_found"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    POOL_NOT_OPEN = "pool_not_open"
    TIER_NOT_MET = "tier_not_met"
    VALIDATION_ERROR = "validation_error"
    INVALID_REQUEST = "invalid_request"
    ALREADY_DISTRIBUTED = "already_distributed"
    NOTHING_TO_CLAIM = "nothing_to_claim"


class LaunchpadError(Exception):
    """Rejected operation. Raised before any state is mutated."""

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message


@dataclass
class OperationResult(Generic[T]):
    """Outcome of a public operation."""
    success: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None

    @classmethod
    def ok(cls, value: Optional[T] = None) -> "OperationResult[T]":
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, kind: ErrorKind, message: str) -> "OperationResult[T]":
        return cls(success=False, error=message, error_kind=kind)

    @classmethod
    def from_error(cls, exc: LaunchpadError) -> "OperationResult[T]":
        return cls.fail(exc.kind, exc.message)

    def to_dict(self) -> Dict[str, Any]:
        value = self.value
        if hasattr(value, "to_dict"):
            value = value.to_dict()
        elif hasattr(value, "model_dump"):
            value = value.model_dump(mode="json")
        return {
            "success": self.success,
            "value": value,
            "error": self.error,
            "error_kind": self.error_kind.value if self.error_kind else None,
        }


def to_decimal(value: Any, field_name: str) -> Decimal:
    """Coerce a numeric input to Decimal, rejecting non-finite values."""
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise LaunchpadError(ErrorKind.VALIDATION_ERROR, f"{field_name} must be a number")
    if not result.is_finite():
        raise LaunchpadError(ErrorKind.VALIDATION_ERROR, f"{field_name} must be finite")
    return result


def run_operation(
    metrics: "MetricsCollector",
    operation: str,
    fn: Callable[..., T],
    *args: Any,
) -> OperationResult[T]:
    """Call fn, converting LaunchpadError into a failed OperationResult."""
    try:
        value = fn(*args)
    except LaunchpadError as exc:
        metrics.record_operation(operation, False, exc.kind.value, exc.message)
        return OperationResult.from_error(exc)
    metrics.record_operation(operation, True)
    return OperationResult.ok(value)
