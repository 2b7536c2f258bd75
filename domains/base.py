"""Shared tool definition type for domain tool surfaces."""

from dataclasses import dataclass
from typing import Callable, Any


@dataclass
class ToolDefinition:
    """Claude API tool definition + handler."""

    name: str
    description: str
    input_schema: dict
    handler: Callable[..., Any]

    def to_api_format(self) -> dict:
        """Convert to Claude API tool format."""
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.input_schema
        }
