"""Reference clock for the Task Master domain."""

from datetime import datetime
from zoneinfo import ZoneInfo

from config import ASSISTANT_TIMEZONE


def get_timezone() -> ZoneInfo:
    """Timezone used to resolve and display reminder times."""
    return ZoneInfo(ASSISTANT_TIMEZONE)


def local_now() -> datetime:
    """Current time, timezone-aware, in the assistant timezone."""
    return datetime.now(get_timezone())
