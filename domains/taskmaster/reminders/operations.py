"""Reminder collection operations.

Every operation takes the current collection and returns an OperationResult
holding the updated collection. Inputs are never mutated, and a failed
operation hands back the original list untouched. Positions are 1-based.
"""

import dataclasses
from datetime import datetime, timedelta
from typing import Optional, Union

from ..clock import local_now
from ..config import DEFAULT_UPCOMING_HOURS, DISPLAY_FORMAT
from ..results import ErrorCode, OperationResult, failure, in_range, position_out_of_range
from .models import InvalidRecurrenceError, RecurrenceRule, Reminder, ReminderKind
from .parser import ParseErrorKind, parse_time_expression
from .recurrence import advance

# Marks "argument not supplied" where None means "clear"
UNSET = object()

RecurrenceInput = Union[RecurrenceRule, dict, None]


def _fmt(instant: datetime) -> str:
    return instant.strftime(DISPLAY_FORMAT)


def _resolve_time(reminders: list, time_input: str, now: datetime):
    """Parse a time string and reject instants that are not in the future.

    Returns:
        (instant, None) on success, (None, failed OperationResult) otherwise
    """
    parsed = parse_time_expression(time_input, now)

    if not parsed.ok:
        code = ErrorCode.INVALID_RESULT if parsed.error == ParseErrorKind.INVALID_RESULT else ErrorCode.UNPARSEABLE
        return None, failure(
            reminders,
            code,
            f'Could not parse time input: "{time_input}". Try formats like "2025-01-15T14:30:00Z", '
            f'"in 2 hours", "tomorrow at 3pm", "next Monday at 9am".',
            detail=parsed.detail,
        )

    if parsed.instant <= now:
        return None, failure(
            reminders,
            ErrorCode.PAST_TIME,
            f"Cannot schedule reminder in the past. The time {_fmt(parsed.instant)} has already passed.",
            scheduled_time=parsed.instant.isoformat(),
        )

    return parsed.instant, None


def _coerce_recurrence(reminders: list, recurring: RecurrenceInput):
    """Accept a RecurrenceRule, a {"kind"/"type", "interval"} dict or None."""
    if recurring is None or isinstance(recurring, RecurrenceRule):
        return recurring, None
    try:
        return RecurrenceRule.from_dict(recurring), None
    except InvalidRecurrenceError as e:
        return None, failure(reminders, ErrorCode.INVALID_RECURRENCE, f"Invalid recurring schedule: {e}")


def add_reminder(
    reminders: list[Reminder],
    text: str,
    time_input: Optional[str] = None,
    now: Optional[datetime] = None,
) -> OperationResult:
    """Append a reminder, immediate or at a one-shot time.

    Args:
        reminders: Current collection
        text: Reminder text
        time_input: Optional time expression (ISO or natural language)
        now: Reference time (defaults to the assistant clock)
    """
    now = now or local_now()
    scheduled = None

    if time_input:
        scheduled, error = _resolve_time(reminders, time_input, now)
        if error:
            return error

    reminder = Reminder(text=text, created_at=now, scheduled_time=scheduled)
    updated = reminders + [reminder]
    time_info = f" (due: {_fmt(scheduled)})" if scheduled else ""

    return OperationResult(
        success=True,
        message=f"Added reminder: {text}{time_info}",
        items=updated,
        item=reminder,
        data={"total_reminders": len(updated)},
    )


def schedule_reminder(
    reminders: list[Reminder],
    text: str,
    time_input: str,
    recurring: RecurrenceInput = None,
    now: Optional[datetime] = None,
) -> OperationResult:
    """Append a reminder with a mandatory time and optional recurrence."""
    now = now or local_now()

    if not time_input:
        return failure(reminders, ErrorCode.UNPARSEABLE, "A time is required to schedule a reminder.")

    rule, error = _coerce_recurrence(reminders, recurring)
    if error:
        return error

    scheduled, error = _resolve_time(reminders, time_input, now)
    if error:
        return error

    reminder = Reminder(text=text, created_at=now, scheduled_time=scheduled, recurring=rule)
    updated = reminders + [reminder]
    recurring_info = f" (recurring: {rule.describe()})" if rule else ""

    return OperationResult(
        success=True,
        message=f'Scheduled reminder: "{text}" for {_fmt(scheduled)}{recurring_info}',
        items=updated,
        item=reminder,
        data={
            "scheduled_time": scheduled.isoformat(),
            "local_time": _fmt(scheduled),
            "total_reminders": len(updated),
        },
    )


def view_reminders(reminders: list[Reminder]) -> OperationResult:
    return OperationResult(
        success=True,
        message=(
            f"Here are your {len(reminders)} reminder(s):"
            if reminders else "You don't have any reminders yet."
        ),
        items=reminders,
        data={"reminders": [r.to_dict() for r in reminders], "count": len(reminders)},
    )


def view_reminders_by_kind(reminders: list[Reminder], kind: Union[ReminderKind, str] = ReminderKind.ALL) -> OperationResult:
    """Filter by kind: recurring, scheduled (one-shot), immediate or all."""
    try:
        kind = ReminderKind(kind)
    except ValueError:
        return failure(reminders, ErrorCode.INVALID_ARGUMENTS, f"Unknown reminder type: {kind!r}")

    if kind == ReminderKind.ALL:
        selected = list(reminders)
    else:
        selected = [r for r in reminders if r.kind == kind]

    label = "" if kind == ReminderKind.ALL else f"{kind.value} "
    return OperationResult(
        success=True,
        message=(
            f"Found {len(selected)} {label}reminder(s):"
            if selected else f"No {label}reminders found."
        ),
        items=reminders,
        data={
            "reminders": [r.to_dict() for r in selected],
            "count": len(selected),
            "total_count": len(reminders),
            "type_filter": kind.value,
        },
    )


def update_reminder(
    reminders: list[Reminder],
    position: int,
    new_text: str,
    time_input: Optional[str] = None,
    recurring=UNSET,
    now: Optional[datetime] = None,
) -> OperationResult:
    """Replace text, and optionally time and recurrence, of one reminder.

    All-or-nothing: any validation failure leaves the collection untouched.
    Pass ``recurring=None`` to clear the recurrence; leave it UNSET to keep it.
    """
    now = now or local_now()

    if not in_range(reminders, position):
        return position_out_of_range(reminders, position)

    old = reminders[position - 1]
    changes = {"text": new_text}

    if time_input:
        scheduled, error = _resolve_time(reminders, time_input, now)
        if error:
            return error
        changes["scheduled_time"] = scheduled

    if recurring is not UNSET:
        rule, error = _coerce_recurrence(reminders, recurring)
        if error:
            return error
        changes["recurring"] = rule

    updated_reminder = dataclasses.replace(old, **changes)
    if updated_reminder.recurring is not None and updated_reminder.scheduled_time is None:
        return failure(
            reminders,
            ErrorCode.NO_SCHEDULED_TIME,
            f"Reminder {position} has no scheduled time, so it cannot recur. Provide a time as well.",
        )

    updated = list(reminders)
    updated[position - 1] = updated_reminder

    message = f'Updated reminder {position}: "{old.text}" → "{new_text}"'
    if "scheduled_time" in changes:
        message += f" (new time: {_fmt(changes['scheduled_time'])})"
    if changes.get("recurring"):
        message += f" (recurring: {changes['recurring'].describe()})"

    return OperationResult(
        success=True,
        message=message,
        items=updated,
        item=updated_reminder,
        data={"position": position, "old_reminder": old.to_dict()},
    )


def delete_reminder(reminders: list[Reminder], position: int) -> OperationResult:
    if not in_range(reminders, position):
        return position_out_of_range(reminders, position)

    removed = reminders[position - 1]
    updated = reminders[:position - 1] + reminders[position:]
    recurring_info = f" (was recurring: {removed.recurring.describe()})" if removed.recurring else ""

    return OperationResult(
        success=True,
        message=f'Deleted reminder {position}: "{removed.text}"{recurring_info}',
        items=updated,
        item=removed,
        data={"position": position, "remaining_count": len(updated)},
    )


def stop_recurring(reminders: list[Reminder], position: int) -> OperationResult:
    """Turn a recurring reminder into a one-shot at its current time."""
    if not in_range(reminders, position):
        return position_out_of_range(reminders, position)

    reminder = reminders[position - 1]
    if reminder.recurring is None:
        return failure(reminders, ErrorCode.NOT_RECURRING, f"Reminder {position} is not a recurring reminder.")

    stopped = dataclasses.replace(reminder, recurring=None)
    updated = list(reminders)
    updated[position - 1] = stopped

    when = f" at {_fmt(stopped.scheduled_time)}" if stopped.scheduled_time else ""
    return OperationResult(
        success=True,
        message=(
            f'Stopped recurring schedule for reminder {position}: "{stopped.text}". '
            f"It will now only trigger once{when}."
        ),
        items=updated,
        item=stopped,
        data={"position": position, "old_recurring": reminder.recurring.to_dict()},
    )


def modify_recurrence(reminders: list[Reminder], position: int, recurring: RecurrenceInput) -> OperationResult:
    """Replace the recurrence rule; a previous rule is not required."""
    if not in_range(reminders, position):
        return position_out_of_range(reminders, position)

    rule, error = _coerce_recurrence(reminders, recurring)
    if error:
        return error
    if rule is None:
        return failure(reminders, ErrorCode.INVALID_RECURRENCE, "A new recurring schedule is required.")

    reminder = reminders[position - 1]
    if reminder.scheduled_time is None:
        return failure(
            reminders,
            ErrorCode.NO_SCHEDULED_TIME,
            f"Reminder {position} has no scheduled time, so it cannot recur.",
        )

    modified = dataclasses.replace(reminder, recurring=rule)
    updated = list(reminders)
    updated[position - 1] = modified

    old_text = reminder.recurring.describe() if reminder.recurring else "none"
    return OperationResult(
        success=True,
        message=(
            f'Updated recurring schedule for reminder {position}: "{reminder.text}". '
            f"Changed from {old_text} to {rule.describe()}."
        ),
        items=updated,
        item=modified,
        data={
            "position": position,
            "old_recurring": reminder.recurring.to_dict() if reminder.recurring else None,
            "new_recurring": rule.to_dict(),
        },
    )


def upcoming_reminders(
    reminders: list[Reminder],
    within_hours: float = DEFAULT_UPCOMING_HOURS,
    now: Optional[datetime] = None,
) -> OperationResult:
    """Reminders due in (now, now + within_hours], soonest first."""
    now = now or local_now()
    cutoff = now + timedelta(hours=within_hours)

    upcoming = sorted(
        (r for r in reminders if r.scheduled_time is not None and now < r.scheduled_time <= cutoff),
        key=lambda r: r.scheduled_time,
    )

    return OperationResult(
        success=True,
        message=(
            f"Found {len(upcoming)} reminder(s) scheduled in the next {within_hours} hour(s):"
            if upcoming else f"No reminders scheduled in the next {within_hours} hour(s)."
        ),
        items=reminders,
        data={
            "upcoming_reminders": [r.to_dict() for r in upcoming],
            "count": len(upcoming),
            "time_window_hours": within_hours,
        },
    )


def next_occurrence(reminders: list[Reminder], position: int, now: Optional[datetime] = None) -> OperationResult:
    """When a recurring reminder will next trigger."""
    now = now or local_now()

    if not in_range(reminders, position):
        return position_out_of_range(reminders, position)

    reminder = reminders[position - 1]
    if reminder.recurring is None:
        return failure(reminders, ErrorCode.NOT_RECURRING, f"Reminder {position} is not a recurring reminder.")
    if reminder.scheduled_time is None:
        return failure(
            reminders,
            ErrorCode.NO_SCHEDULED_TIME,
            f"Reminder {position} has no scheduled time to calculate from.",
        )

    next_time = advance(reminder.scheduled_time, reminder.recurring, now)

    return OperationResult(
        success=True,
        message=f'Next occurrence of recurring reminder {position}: "{reminder.text}" will be at {_fmt(next_time)}',
        items=reminders,
        item=reminder,
        data={
            "current_scheduled_time": reminder.scheduled_time.isoformat(),
            "next_occurrence": next_time.isoformat(),
            "next_occurrence_local": _fmt(next_time),
            "recurring_info": reminder.recurring.to_dict(),
        },
    )


def get_current_time(now: Optional[datetime] = None) -> dict:
    """Reference instant for callers resolving relative expressions."""
    now = now or local_now()
    tz_name = getattr(now.tzinfo, "key", None) or now.tzname() or "local"

    return {
        "success": True,
        "current_time": now.isoformat(),
        "local_time": _fmt(now),
        "timezone": tz_name,
        "timestamp": int(now.timestamp() * 1000),
        "formatted": {
            "date": now.strftime("%Y-%m-%d"),
            "time": now.strftime("%H:%M:%S"),
            "date_time": _fmt(now),
        },
        "message": f"Current time: {_fmt(now)} ({tz_name})",
    }
