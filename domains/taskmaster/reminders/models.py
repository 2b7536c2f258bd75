"""Reminder data model."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from dateutil.parser import isoparse

from ..config import REMINDER_ID_PREFIX


class RecurrenceKind(str, Enum):
    """Calendar unit of a recurrence rule."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class ReminderKind(str, Enum):
    """Filter used by view_reminders_by_kind."""
    SCHEDULED = "scheduled"
    RECURRING = "recurring"
    IMMEDIATE = "immediate"
    ALL = "all"


class InvalidRecurrenceError(ValueError):
    """Recurrence rule with an unknown kind or a non-positive interval."""


@dataclass(frozen=True)
class RecurrenceRule:
    """Repeat every ``interval`` days, weeks or months."""
    kind: RecurrenceKind
    interval: int = 1

    def __post_init__(self):
        try:
            kind = RecurrenceKind(self.kind)
        except ValueError:
            raise InvalidRecurrenceError(f"Unknown recurrence kind: {self.kind!r}") from None
        object.__setattr__(self, "kind", kind)

        if isinstance(self.interval, bool) or not isinstance(self.interval, int) or self.interval < 1:
            raise InvalidRecurrenceError(f"Recurrence interval must be a positive integer, got {self.interval!r}")

    def describe(self) -> str:
        """Human-readable form, e.g. 'weekly' or 'daily (every 3)'."""
        if self.interval > 1:
            return f"{self.kind.value} (every {self.interval})"
        return self.kind.value

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "interval": self.interval}

    @classmethod
    def from_dict(cls, data: dict) -> "RecurrenceRule":
        """Build a rule from a stored or caller-supplied dict.

        Accepts ``type`` as an alias of ``kind``; a missing or null interval means 1.
        """
        if not isinstance(data, dict):
            raise InvalidRecurrenceError(f"Recurrence must be an object, got {data!r}")
        kind = data.get("kind", data.get("type"))
        interval = data.get("interval")
        return cls(kind=kind, interval=1 if interval is None else interval)


def _new_reminder_id() -> str:
    return f"{REMINDER_ID_PREFIX}{uuid.uuid4().hex}"


def _parse_instant(value) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return isoparse(value)


@dataclass(frozen=True)
class Reminder:
    """A user reminder with an optional due instant and recurrence."""
    text: str
    created_at: datetime
    scheduled_time: Optional[datetime] = None
    recurring: Optional[RecurrenceRule] = None
    id: str = field(default_factory=_new_reminder_id)

    @property
    def kind(self) -> ReminderKind:
        if self.recurring is not None:
            return ReminderKind.RECURRING
        if self.scheduled_time is not None:
            return ReminderKind.SCHEDULED
        return ReminderKind.IMMEDIATE

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "text": self.text,
            "created_at": self.created_at.isoformat(),
            "scheduled_time": self.scheduled_time.isoformat() if self.scheduled_time else None,
            "recurring": self.recurring.to_dict() if self.recurring else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Reminder":
        recurring = data.get("recurring")
        return cls(
            id=data["id"],
            text=data["text"],
            created_at=_parse_instant(data["created_at"]),
            scheduled_time=_parse_instant(data.get("scheduled_time")),
            recurring=RecurrenceRule.from_dict(recurring) if recurring else None,
        )


def load_reminders(raw: list) -> list[Reminder]:
    """Decode the stored collection (list of dicts)."""
    return [Reminder.from_dict(r) for r in raw or []]


def dump_reminders(reminders: list[Reminder]) -> list[dict]:
    """Encode a collection for the state store."""
    return [r.to_dict() for r in reminders]
