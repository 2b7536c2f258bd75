"""Task Master domain - reminders with notifications, and a shopping list."""

from .state import StateStore, MemoryStateStore, SqliteStateStore, StoreUnavailableError
from .transport import Transport, LogTransport, TelegramTransport, DiscordTransport, TransportError
from .tools import ToolName, build_tools, dispatch_tool

__all__ = [
    "StateStore",
    "MemoryStateStore",
    "SqliteStateStore",
    "StoreUnavailableError",
    "Transport",
    "LogTransport",
    "TelegramTransport",
    "DiscordTransport",
    "TransportError",
    "ToolName",
    "build_tools",
    "dispatch_tool",
]
