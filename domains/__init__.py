"""Domain modules for the Task Master assistant."""

from .base import ToolDefinition

__all__ = ["ToolDefinition"]
