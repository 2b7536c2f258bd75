"""Reminder lifecycle: parsing, collection operations, recurrence and notifications."""

from .models import Reminder, RecurrenceRule, RecurrenceKind, ReminderKind, InvalidRecurrenceError
from .parser import parse_time_expression, ParseResult, ParseErrorKind
from .recurrence import advance
from .operations import (
    UNSET,
    add_reminder,
    schedule_reminder,
    view_reminders,
    view_reminders_by_kind,
    update_reminder,
    delete_reminder,
    stop_recurring,
    modify_recurrence,
    upcoming_reminders,
    next_occurrence,
    get_current_time,
)
from .executor import render_notification, deliver_reminder
from .poller import ReminderPoller, CycleReport, select_due, build_next_collection

__all__ = [
    "Reminder",
    "RecurrenceRule",
    "RecurrenceKind",
    "ReminderKind",
    "InvalidRecurrenceError",
    "parse_time_expression",
    "ParseResult",
    "ParseErrorKind",
    "advance",
    "UNSET",
    "add_reminder",
    "schedule_reminder",
    "view_reminders",
    "view_reminders_by_kind",
    "update_reminder",
    "delete_reminder",
    "stop_recurring",
    "modify_recurrence",
    "upcoming_reminders",
    "next_occurrence",
    "get_current_time",
    "render_notification",
    "deliver_reminder",
    "ReminderPoller",
    "CycleReport",
    "select_due",
    "build_next_collection",
]
