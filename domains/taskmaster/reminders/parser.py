"""Parse time expressions into absolute instants.

Examples:
- "2025-07-25T14:30:00Z" (ISO 8601)
- "in 2 hours", "in 30 minutes", "in a week"
- "tomorrow at 3pm", "9:15am today"
- "next Monday at 9am", "friday", "Sunday 8:30am"
- "3pm", "15:30", "noon"
- anything else dateparser understands ("July 30th at 2:30pm")
"""

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

import dateparser
from dateparser.search import search_dates
from dateutil.parser import isoparse

from logger import logger
from .. import config


class ParseErrorKind(str, Enum):
    """Why a time expression produced no instant."""
    UNPARSEABLE = "unparseable"
    INVALID_RESULT = "invalid_result"


@dataclass(frozen=True)
class ParseResult:
    """Tagged parse outcome: ``instant`` on success, ``error`` otherwise."""
    raw: str
    instant: Optional[datetime] = None
    error: Optional[ParseErrorKind] = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None and self.instant is not None


class _InvalidValue(ValueError):
    """A rule matched but produced an impossible value."""


WEEKDAYS = {
    "monday": 0, "mon": 0,
    "tuesday": 1, "tue": 1, "tues": 1,
    "wednesday": 2, "wed": 2,
    "thursday": 3, "thu": 3, "thur": 3, "thurs": 3,
    "friday": 4, "fri": 4,
    "saturday": 5, "sat": 5,
    "sunday": 6, "sun": 6,
}

_UNITS = {
    "second": "seconds", "seconds": "seconds", "sec": "seconds", "secs": "seconds",
    "minute": "minutes", "minutes": "minutes", "min": "minutes", "mins": "minutes",
    "hour": "hours", "hours": "hours", "hr": "hours", "hrs": "hours",
    "day": "days", "days": "days",
    "week": "weeks", "weeks": "weeks",
}

_ISO_SHAPE = re.compile(
    r"^\d{4}-\d{2}-\d{2}"
    r"(?:[T ]\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?)?"
    r"(?:Z|[+-]\d{2}(?::?\d{2})?)?$",
    re.IGNORECASE,
)

# 3pm, 3 pm, 3:30pm, 15:30, 9.15am, noon, midnight
_TIME = r"(?:noon|midnight|\d{1,2}(?:[:.]\d{2})?\s*(?:[ap]\.?m\.?)|\d{1,2}:\d{2})"
_WEEKDAY = "|".join(sorted(WEEKDAYS, key=len, reverse=True))

_RELATIVE_RE = re.compile(
    r"^in\s+(?P<amount>\d+|an?)\s*(?P<unit>" + "|".join(sorted(_UNITS, key=len, reverse=True)) + r")"
    r"(?:\s+from\s+now)?$"
)
_DAY_RE = re.compile(
    rf"^(?:(?:at\s+)?(?P<time1>{_TIME})\s+)?(?P<day>today|tomorrow)(?:\s+(?:at\s+)?(?P<time2>{_TIME}))?$"
)
_WEEKDAY_RE = re.compile(
    rf"^(?:(?:at\s+)?(?P<time1>{_TIME})\s+)?(?:(?P<prefix>next|this|on)\s+)?(?P<weekday>{_WEEKDAY})"
    rf"(?:\s+(?:at\s+)?(?P<time2>{_TIME}))?$"
)
_BARE_TIME_RE = re.compile(rf"^(?:at\s+)?(?P<time>{_TIME})$")


def parse_time_expression(text: str, reference: datetime) -> ParseResult:
    """Resolve a time expression against ``reference``.

    Past instants are not rejected here - callers decide whether a past
    result is an error.

    Args:
        text: ISO 8601 timestamp or natural language expression
        reference: The "now" that relative expressions are resolved against

    Returns:
        ParseResult with the instant, or an UNPARSEABLE / INVALID_RESULT error
    """
    raw = text if isinstance(text, str) else ""
    stripped = raw.strip()
    if not stripped:
        return ParseResult(raw=raw, error=ParseErrorKind.UNPARSEABLE, detail="Empty time expression")

    try:
        instant = _parse(stripped, reference)
    except _InvalidValue as e:
        return ParseResult(raw=raw, error=ParseErrorKind.INVALID_RESULT, detail=str(e))
    except OverflowError:
        return ParseResult(raw=raw, error=ParseErrorKind.INVALID_RESULT,
                           detail=f"Time expression is out of range: {stripped}")

    if instant is None:
        return ParseResult(raw=raw, error=ParseErrorKind.UNPARSEABLE,
                           detail=f"Unable to parse time input: {stripped}")

    if not isinstance(instant, datetime):
        return ParseResult(raw=raw, error=ParseErrorKind.INVALID_RESULT,
                           detail=f"Invalid date parsed from: {stripped}")

    if instant.tzinfo is None and reference.tzinfo is not None:
        instant = instant.replace(tzinfo=reference.tzinfo)

    return ParseResult(raw=raw, instant=instant)


def _parse(text: str, reference: datetime) -> Optional[datetime]:
    """Try each rule in order; None when nothing matches."""
    if _ISO_SHAPE.match(text):
        try:
            return isoparse(text)
        except ValueError as e:
            raise _InvalidValue(f"Invalid ISO 8601 timestamp {text!r}: {e}") from None

    lowered = re.sub(r"\s+", " ", text.lower()).strip().rstrip(".!,;")

    match = _RELATIVE_RE.match(lowered)
    if match:
        return _resolve_relative(match, reference)

    match = _DAY_RE.match(lowered)
    if match:
        hour, minute = _clock_or_default(match.group("time1") or match.group("time2"))
        days = 1 if match.group("day") == "tomorrow" else 0
        return _at(reference + timedelta(days=days), hour, minute)

    match = _WEEKDAY_RE.match(lowered)
    if match:
        hour, minute = _clock_or_default(match.group("time1") or match.group("time2"))
        return _resolve_weekday(
            reference,
            WEEKDAYS[match.group("weekday")],
            explicit_next=match.group("prefix") == "next",
            hour=hour,
            minute=minute,
        )

    match = _BARE_TIME_RE.match(lowered)
    if match:
        hour, minute = _parse_clock(match.group("time"))
        candidate = _at(reference, hour, minute)
        # Already passed today - roll to tomorrow
        if candidate <= reference:
            candidate = _at(reference + timedelta(days=1), hour, minute)
        return candidate

    return _search_natural_language(text, reference)


def _resolve_relative(match: re.Match, reference: datetime) -> datetime:
    amount_str = match.group("amount")
    amount = 1 if amount_str in ("a", "an") else int(amount_str)
    delta = timedelta(**{_UNITS[match.group("unit")]: amount})

    if reference.tzinfo is None:
        return reference + delta

    # Elapsed-time offsets are absolute; do the arithmetic in UTC
    return (reference.astimezone(timezone.utc) + delta).astimezone(reference.tzinfo)


def _resolve_weekday(reference: datetime, weekday: int, explicit_next: bool, hour: int, minute: int) -> datetime:
    days_ahead = (weekday - reference.weekday()) % 7
    if explicit_next and days_ahead == 0:
        days_ahead = 7

    candidate = _at(reference + timedelta(days=days_ahead), hour, minute)
    if candidate <= reference:
        candidate = _at(reference + timedelta(days=days_ahead + 7), hour, minute)
    return candidate


def _at(day: datetime, hour: int, minute: int) -> datetime:
    return day.replace(hour=hour, minute=minute, second=0, microsecond=0)


def _clock_or_default(token: Optional[str]) -> tuple[int, int]:
    if token is None:
        return config.DEFAULT_HOUR, 0
    return _parse_clock(token)


def _parse_clock(token: str) -> tuple[int, int]:
    """Parse a clock token to (hour, minute).

    Args:
        token: "9am", "9:30pm", "14:00", "8.45am", "noon", "midnight"

    Raises:
        _InvalidValue: if the hour or minute is out of range
    """
    token = token.strip()
    if token == "noon":
        return 12, 0
    if token == "midnight":
        return 0, 0

    meridiem = None
    suffix = re.search(r"([ap])\.?m\.?$", token)
    if suffix:
        meridiem = suffix.group(1)
        token = token[:suffix.start()].strip()

    parts = re.split(r"[:.]", token)
    hour = int(parts[0])
    minute = int(parts[1]) if len(parts) > 1 else 0

    if minute > 59:
        raise _InvalidValue(f"Invalid minute: {minute}")

    if meridiem:
        if hour < 1 or hour > 12:
            raise _InvalidValue(f"Invalid 12-hour clock hour: {hour}")
        if meridiem == "p" and hour != 12:
            hour += 12
        elif meridiem == "a" and hour == 12:
            hour = 0
    elif hour > 23:
        raise _InvalidValue(f"Invalid hour: {hour}")

    return hour, minute


def _search_natural_language(text: str, reference: datetime) -> Optional[datetime]:
    """Fall back to dateparser; the first candidate found wins."""
    settings = {
        "RELATIVE_BASE": reference.replace(tzinfo=None),
        "PREFER_DATES_FROM": "future",
    }
    try:
        parsed = dateparser.parse(text, languages=["en"], settings=settings)
        if parsed is not None:
            return parsed

        matches = search_dates(text, languages=["en"], settings=settings)
    except Exception as e:
        logger.debug(f"dateparser failed on {text!r}: {e}")
        return None

    if not matches:
        return None

    _, first = matches[0]
    return first
