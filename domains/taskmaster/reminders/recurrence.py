"""Advance recurring reminders to their next occurrence."""

from datetime import datetime, timedelta, timezone

from dateutil.relativedelta import relativedelta

from .models import InvalidRecurrenceError, RecurrenceKind, RecurrenceRule


def step_offset(rule: RecurrenceRule, steps: int):
    """Calendar offset covering ``steps`` whole occurrences of ``rule``."""
    if rule.kind == RecurrenceKind.DAILY:
        return timedelta(days=rule.interval * steps)
    if rule.kind == RecurrenceKind.WEEKLY:
        return timedelta(days=7 * rule.interval * steps)
    if rule.kind == RecurrenceKind.MONTHLY:
        # relativedelta clamps the day: Jan 31 + 1 month -> Feb 28/29
        return relativedelta(months=rule.interval * steps)
    raise InvalidRecurrenceError(f"Unknown recurrence kind: {rule.kind!r}")


def advance(last: datetime, rule: RecurrenceRule, not_before: datetime) -> datetime:
    """Return the first occurrence ``last + k steps`` (k >= 0) strictly after ``not_before``.

    Offsets are always taken from ``last``, so a monthly rule anchored on the
    31st lands on the last day of short months without eroding later months.
    Day arithmetic runs on the wall clock of ``not_before``'s timezone, which
    keeps a 09:00 reminder at 09:00 across DST changes. Comparisons are
    made in UTC, since datetimes sharing a ZoneInfo compare by wall clock
    and ignore the repeated or skipped DST hour.

    Args:
        last: The last scheduled instant
        rule: Recurrence rule (interval must be >= 1)
        not_before: Result must be strictly greater than this

    Raises:
        InvalidRecurrenceError: if the rule's interval is not a positive integer
    """
    if isinstance(rule.interval, bool) or not isinstance(rule.interval, int) or rule.interval < 1:
        raise InvalidRecurrenceError(f"Recurrence interval must be >= 1, got {rule.interval!r}")

    if last.tzinfo is not None and not_before.tzinfo is not None:
        last = last.astimezone(not_before.tzinfo)

    if _instant(last) > _instant(not_before):
        return last

    steps = max(_estimate_steps(last, rule, not_before), 1)

    # The estimate can be off by one around DST shifts and month clamping
    limit = _instant(not_before)
    while _instant(last + step_offset(rule, steps)) <= limit:
        steps += 1
    while steps > 1 and _instant(last + step_offset(rule, steps - 1)) > limit:
        steps -= 1

    return last + step_offset(rule, steps)


def _estimate_steps(last: datetime, rule: RecurrenceRule, not_before: datetime) -> int:
    """Number of steps needed to pass ``not_before``, computed arithmetically."""
    if rule.kind == RecurrenceKind.MONTHLY:
        months = (not_before.year - last.year) * 12 + (not_before.month - last.month)
        return months // rule.interval + 1

    step = step_offset(rule, 1)
    return (not_before - last) // step + 1


def _instant(value: datetime) -> datetime:
    """UTC view of an aware datetime; naive values are left as they are."""
    return value.astimezone(timezone.utc) if value.tzinfo is not None else value
