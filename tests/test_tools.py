"""Tests for the tool surface: store round trips and dispatch errors."""

import os
import sys
from unittest.mock import Mock

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from domains.taskmaster.config import REMINDERS_FIELD, SHOPPING_FIELD
from domains.taskmaster.state import StoreUnavailableError
from domains.taskmaster.tools import ToolName, build_tools, dispatch_tool


@pytest.fixture
def tools(memory_store, now):
    return build_tools(memory_store, "test", clock=lambda: now)


def call(tools, name, **arguments):
    return dispatch_tool(tools, name.value, arguments)


def test_every_tool_is_registered(tools):
    assert {t.name for t in tools} == {name.value for name in ToolName}
    for tool in tools:
        api = tool.to_api_format()
        assert api["input_schema"]["type"] == "object"


class TestReminderTools:

    def test_schedule_then_view(self, tools, memory_store):
        result = call(tools, ToolName.SCHEDULE_REMINDER, reminder="Pay rent", time_input="tomorrow at 9am",
                      recurring={"type": "monthly"})

        assert result["success"]
        assert result["reminder"]["recurring"] == {"kind": "monthly", "interval": 1}
        assert result["scheduled_time"] == "2025-01-16T09:00:00+00:00"

        stored = memory_store.get("test", REMINDERS_FIELD)
        assert [r["text"] for r in stored] == ["Pay rent"]

        view = call(tools, ToolName.VIEW_REMINDERS)
        assert view["count"] == 1
        assert view["reminders"][0]["id"] == stored[0]["id"]

    def test_failure_leaves_store_untouched(self, tools, memory_store):
        call(tools, ToolName.ADD_REMINDER, reminder="Buy milk")
        before = memory_store.get("test", REMINDERS_FIELD)

        result = call(tools, ToolName.ADD_REMINDER, reminder="Too late", scheduled_time="2020-01-01T00:00:00Z")

        assert result == {
            "success": False,
            "error": "past_time",
            "message": result["message"],
            "scheduled_time": "2020-01-01T00:00:00+00:00",
        }
        assert memory_store.get("test", REMINDERS_FIELD) == before

    def test_update_with_null_recurring_clears_it(self, tools, memory_store):
        call(tools, ToolName.SCHEDULE_REMINDER, reminder="Water plants", time_input="in 1 hour",
             recurring={"type": "daily"})

        result = call(tools, ToolName.UPDATE_REMINDER, index=1, updated_text="Water plants", recurring=None)

        assert result["success"]
        assert memory_store.get("test", REMINDERS_FIELD)[0]["recurring"] is None

    def test_update_without_recurring_keeps_it(self, tools, memory_store):
        call(tools, ToolName.SCHEDULE_REMINDER, reminder="Water plants", time_input="in 1 hour",
             recurring={"type": "daily"})

        call(tools, ToolName.UPDATE_REMINDER, index=1, updated_text="Water the plants")

        stored = memory_store.get("test", REMINDERS_FIELD)[0]
        assert stored["text"] == "Water the plants"
        assert stored["recurring"] == {"kind": "daily", "interval": 1}

    def test_float_index_accepted(self, tools):
        call(tools, ToolName.ADD_REMINDER, reminder="Buy milk")
        assert call(tools, ToolName.DELETE_REMINDER, index=1.0)["success"]

    def test_out_of_range(self, tools):
        result = call(tools, ToolName.STOP_RECURRING_REMINDER, index=3)
        assert result["error"] == "position_out_of_range"

    def test_upcoming_and_next_occurrence(self, tools):
        call(tools, ToolName.SCHEDULE_REMINDER, reminder="Stand up", time_input="in 2 hours",
             recurring={"type": "weekly", "interval": 2})

        assert call(tools, ToolName.GET_UPCOMING_REMINDERS)["count"] == 1
        assert call(tools, ToolName.GET_UPCOMING_REMINDERS, hours=1)["count"] == 0

        result = call(tools, ToolName.GET_NEXT_RECURRING_TIME, index=1)
        assert result["next_occurrence"] == "2025-01-15T12:00:00+00:00"

    def test_modify_recurring_schedule(self, tools, memory_store):
        call(tools, ToolName.ADD_REMINDER, reminder="Gym", scheduled_time="tomorrow at 7am")

        result = call(tools, ToolName.MODIFY_RECURRING_SCHEDULE, index=1, recurring={"type": "weekly"})

        assert result["success"]
        assert memory_store.get("test", REMINDERS_FIELD)[0]["recurring"] == {"kind": "weekly", "interval": 1}

    def test_view_by_type(self, tools):
        call(tools, ToolName.ADD_REMINDER, reminder="Buy milk")
        result = call(tools, ToolName.VIEW_REMINDERS_BY_TYPE, type="immediate")
        assert result["count"] == 1
        assert result["type_filter"] == "immediate"

    def test_current_time(self, tools):
        assert call(tools, ToolName.GET_CURRENT_TIME)["current_time"] == "2025-01-15T10:00:00+00:00"


class TestShoppingTools:

    def test_add_toggle_clear(self, tools, memory_store):
        call(tools, ToolName.ADD_ITEM, item="eggs", quantity=12)
        call(tools, ToolName.ADD_ITEM, item="bread")
        call(tools, ToolName.MARK_ITEM_COMPLETED, index=2)

        result = call(tools, ToolName.CLEAR_COMPLETED_ITEMS)

        assert result["cleared_count"] == 1
        assert [i["text"] for i in memory_store.get("test", SHOPPING_FIELD)] == ["eggs"]

    def test_update_item(self, tools):
        call(tools, ToolName.ADD_ITEM, item="milk")
        result = call(tools, ToolName.UPDATE_ITEM, index=1, quantity=2)

        assert result["item"]["quantity"] == 2
        assert call(tools, ToolName.VIEW_SHOPPING_LIST)["total_count"] == 1


class TestDispatch:

    def test_unknown_tool(self, tools):
        result = dispatch_tool(tools, "launch_rockets", {})
        assert result["success"] is False
        assert result["error"] == "invalid_arguments"

    def test_missing_argument(self, tools):
        result = dispatch_tool(tools, ToolName.DELETE_REMINDER.value, {})
        assert result["error"] == "invalid_arguments"

    def test_unexpected_argument(self, tools):
        result = dispatch_tool(tools, ToolName.VIEW_REMINDERS.value, {"verbose": True})
        assert result["error"] == "invalid_arguments"

    def test_store_unavailable(self, now):
        store = Mock()
        store.get.side_effect = StoreUnavailableError("database is locked")
        tools = build_tools(store, "test", clock=lambda: now)

        result = dispatch_tool(tools, ToolName.VIEW_REMINDERS.value)

        assert result["error"] == "store_unavailable"

    def test_unexpected_error(self, now):
        store = Mock()
        store.get.side_effect = KeyError("boom")
        tools = build_tools(store, "test", clock=lambda: now)

        assert dispatch_tool(tools, ToolName.VIEW_SHOPPING_LIST.value)["error"] == "internal_error"
