"""Render and deliver reminder notifications."""

from datetime import datetime
from typing import Optional

from logger import logger
from ..config import DISPLAY_FORMAT
from ..results import ErrorCode
from ..transport import Transport
from .models import Reminder


def render_notification(reminder: Reminder, tz=None) -> str:
    """Notification text: the reminder and when it was scheduled for."""
    when = "None"
    if reminder.scheduled_time is not None:
        scheduled = reminder.scheduled_time.astimezone(tz) if tz else reminder.scheduled_time
        when = scheduled.strftime(DISPLAY_FORMAT)

    return (
        "🔔 **Reminder**\n\n"
        f"> {reminder.text}\n\n"
        f"Scheduled for: {when}"
    )


async def deliver_reminder(transport: Transport, reminder: Reminder, tz=None) -> Optional[str]:
    """Send one reminder notification.

    Failures are logged and returned, never raised, so one bad delivery does
    not stop the others.

    Returns:
        None on success, otherwise the failure reason
    """
    try:
        accepted = await transport.send(render_notification(reminder, tz))
    except Exception as e:
        logger.error(f"[{ErrorCode.TRANSPORT_FAILURE.value}] Failed to send reminder {reminder.id} via {transport.name}: {e}")
        return str(e)

    if not accepted:
        logger.error(f"[{ErrorCode.TRANSPORT_FAILURE.value}] Transport {transport.name} rejected reminder {reminder.id}")
        return "rejected by transport"

    logger.info(f"Fired reminder {reminder.id}: {reminder.text}")
    return None


def describe_due(reminder: Reminder, now: datetime) -> str:
    """Short log line for a due reminder."""
    lateness = (now - reminder.scheduled_time).total_seconds() if reminder.scheduled_time else 0
    return f"{reminder.id} '{reminder.text[:30]}' ({lateness:.0f}s late)"
