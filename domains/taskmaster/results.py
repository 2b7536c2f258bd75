"""Tagged results returned by reminder and shopping list operations."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class ErrorCode(str, Enum):
    """Failure categories reported to callers."""
    UNPARSEABLE = "unparseable"
    INVALID_RESULT = "invalid_result"
    PAST_TIME = "past_time"
    POSITION_OUT_OF_RANGE = "position_out_of_range"
    NOT_RECURRING = "not_recurring"
    NO_SCHEDULED_TIME = "no_scheduled_time"
    INVALID_RECURRENCE = "invalid_recurrence"
    INVALID_ARGUMENTS = "invalid_arguments"
    TRANSPORT_FAILURE = "transport_failure"
    STORE_UNAVAILABLE = "store_unavailable"
    INTERNAL_ERROR = "internal_error"


@dataclass
class OperationResult:
    """Outcome of one collection operation.

    On failure ``items`` is the input collection, untouched.
    """
    success: bool
    message: str
    items: list
    item: Optional[Any] = None
    error: Optional[ErrorCode] = None
    data: dict = field(default_factory=dict)

    def to_dict(self, item_key: str = "item") -> dict:
        """Structured payload handed back to the caller."""
        payload = {"success": self.success, "message": self.message}
        if self.error is not None:
            payload["error"] = self.error.value
        if self.item is not None:
            payload[item_key] = self.item.to_dict()
        payload.update(self.data)
        return payload


def failure(items: list, error: ErrorCode, message: str, **data) -> OperationResult:
    """Build a failed result that leaves ``items`` unchanged."""
    return OperationResult(success=False, message=message, items=items, error=error, data=data)


def position_out_of_range(items: list, position: int, noun: str = "reminder") -> OperationResult:
    return failure(
        items,
        ErrorCode.POSITION_OUT_OF_RANGE,
        f"Could not find {noun} at position {position}. You have {len(items)} {noun}(s).",
        position=position,
    )


def in_range(items: list, position: int) -> bool:
    """1-based position check."""
    return isinstance(position, int) and not isinstance(position, bool) and 1 <= position <= len(items)
