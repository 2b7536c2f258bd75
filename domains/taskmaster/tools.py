"""Task Master tools: the operation surface exposed to the agent layer.

Each tool reads its collection from the session store, runs a pure
operation and writes the result back only when a mutating operation
succeeds. Callers always get a dict payload back, never an exception.
"""

from datetime import datetime
from enum import Enum
from typing import Callable

from domains.base import ToolDefinition
from logger import logger
from . import shopping
from .clock import local_now
from .config import DEFAULT_UPCOMING_HOURS, REMINDERS_FIELD, SHOPPING_FIELD
from .reminders import operations
from .reminders.models import RecurrenceKind, ReminderKind, dump_reminders, load_reminders
from .results import ErrorCode, OperationResult
from .state import StateStore, StoreUnavailableError


class ToolName(str, Enum):
    """Every operation the agent layer may call."""
    ADD_REMINDER = "add_reminder"
    SCHEDULE_REMINDER = "schedule_reminder"
    VIEW_REMINDERS = "view_reminders"
    VIEW_REMINDERS_BY_TYPE = "view_reminders_by_type"
    UPDATE_REMINDER = "update_reminder"
    DELETE_REMINDER = "delete_reminder"
    STOP_RECURRING_REMINDER = "stop_recurring_reminder"
    MODIFY_RECURRING_SCHEDULE = "modify_recurring_schedule"
    GET_UPCOMING_REMINDERS = "get_upcoming_reminders"
    GET_NEXT_RECURRING_TIME = "get_next_recurring_time"
    GET_CURRENT_TIME = "get_current_time"
    ADD_ITEM = "add_item"
    VIEW_SHOPPING_LIST = "view_shopping_list"
    UPDATE_ITEM = "update_item"
    DELETE_ITEM = "delete_item"
    MARK_ITEM_COMPLETED = "mark_item_completed"
    CLEAR_COMPLETED_ITEMS = "clear_completed_items"


TIME_INPUT_HINT = (
    "Supports ISO 8601 and natural language like 'tomorrow at 3pm', 'in 2 hours', "
    "'next Monday at 9am', '15:30'. Ask the user if the time is ambiguous."
)

_INDEX = {"type": "integer", "minimum": 1, "description": "Position in the list (starting from 1)"}

_RECURRING = {
    "type": "object",
    "properties": {
        "type": {"type": "string", "enum": [k.value for k in RecurrenceKind]},
        "interval": {"type": "integer", "minimum": 1, "description": "Repeat every N days/weeks/months (default 1)"},
    },
    "required": ["type"],
}


def _object(properties: dict = None, required: list = None) -> dict:
    schema = {"type": "object", "properties": properties or {}}
    if required:
        schema["required"] = required
    return schema


def _as_int(value):
    """JSON numbers may arrive as floats (2.0)."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def build_tools(
    store: StateStore,
    session_key: str,
    clock: Callable[[], datetime] = local_now,
) -> list[ToolDefinition]:
    """Bind every tool to one session of ``store``.

    Args:
        store: Session state store
        session_key: Session the tools read and write
        clock: Returns the current aware datetime
    """

    def run_reminders(op: Callable[[list], OperationResult], mutates: bool = True) -> dict:
        reminders = load_reminders(store.get(session_key, REMINDERS_FIELD, []))
        result = op(reminders)
        if result.success and mutates:
            store.set(session_key, REMINDERS_FIELD, dump_reminders(result.items))
        return result.to_dict(item_key="reminder")

    def run_shopping(op: Callable[[list], OperationResult], mutates: bool = True) -> dict:
        items = shopping.load_items(store.get(session_key, SHOPPING_FIELD, []))
        result = op(items)
        if result.success and mutates:
            store.set(session_key, SHOPPING_FIELD, shopping.dump_items(result.items))
        return result.to_dict()

    # --- Reminders ---

    def add_reminder(reminder: str, scheduled_time: str = None) -> dict:
        return run_reminders(lambda rs: operations.add_reminder(rs, reminder, scheduled_time, now=clock()))

    def schedule_reminder(reminder: str, time_input: str, recurring: dict = None) -> dict:
        return run_reminders(
            lambda rs: operations.schedule_reminder(rs, reminder, time_input, recurring, now=clock())
        )

    def view_reminders() -> dict:
        return run_reminders(operations.view_reminders, mutates=False)

    def view_reminders_by_type(type: str = ReminderKind.ALL.value) -> dict:
        return run_reminders(lambda rs: operations.view_reminders_by_kind(rs, type), mutates=False)

    def update_reminder(index: int, updated_text: str, scheduled_time: str = None,
                        recurring=operations.UNSET) -> dict:
        return run_reminders(
            lambda rs: operations.update_reminder(
                rs, _as_int(index), updated_text, scheduled_time, recurring, now=clock()
            )
        )

    def delete_reminder(index: int) -> dict:
        return run_reminders(lambda rs: operations.delete_reminder(rs, _as_int(index)))

    def stop_recurring_reminder(index: int) -> dict:
        return run_reminders(lambda rs: operations.stop_recurring(rs, _as_int(index)))

    def modify_recurring_schedule(index: int, recurring: dict) -> dict:
        return run_reminders(lambda rs: operations.modify_recurrence(rs, _as_int(index), recurring))

    def get_upcoming_reminders(hours: float = DEFAULT_UPCOMING_HOURS) -> dict:
        return run_reminders(
            lambda rs: operations.upcoming_reminders(rs, hours, now=clock()), mutates=False
        )

    def get_next_recurring_time(index: int) -> dict:
        return run_reminders(
            lambda rs: operations.next_occurrence(rs, _as_int(index), now=clock()), mutates=False
        )

    def get_current_time() -> dict:
        return operations.get_current_time(clock())

    # --- Shopping list ---

    def add_item(item: str, quantity: int = None) -> dict:
        return run_shopping(lambda items: shopping.add_item(items, item, _as_int(quantity)))

    def view_shopping_list() -> dict:
        return run_shopping(shopping.view_shopping_list, mutates=False)

    def update_item(index: int, updated_text: str = None, quantity: int = None) -> dict:
        return run_shopping(
            lambda items: shopping.update_item(items, _as_int(index), updated_text, _as_int(quantity))
        )

    def delete_item(index: int) -> dict:
        return run_shopping(lambda items: shopping.delete_item(items, _as_int(index)))

    def mark_item_completed(index: int) -> dict:
        return run_shopping(lambda items: shopping.mark_item_completed(items, _as_int(index)))

    def clear_completed_items() -> dict:
        return run_shopping(shopping.clear_completed_items)

    return [
        ToolDefinition(
            name=ToolName.ADD_REMINDER.value,
            description="Add a reminder; without a time it is an immediate reminder with no notification",
            input_schema=_object({
                "reminder": {"type": "string", "description": "The reminder text"},
                "scheduled_time": {"type": "string", "description": f"Optional due time. {TIME_INPUT_HINT}"},
            }, required=["reminder"]),
            handler=add_reminder,
        ),
        ToolDefinition(
            name=ToolName.SCHEDULE_REMINDER.value,
            description="Schedule a reminder at a specific time, optionally recurring",
            input_schema=_object({
                "reminder": {"type": "string", "description": "The reminder text"},
                "time_input": {"type": "string", "description": f"When to trigger. {TIME_INPUT_HINT}"},
                "recurring": {**_RECURRING, "description": "Optional recurring schedule"},
            }, required=["reminder", "time_input"]),
            handler=schedule_reminder,
        ),
        ToolDefinition(
            name=ToolName.VIEW_REMINDERS.value,
            description="View all current reminders",
            input_schema=_object(),
            handler=view_reminders,
        ),
        ToolDefinition(
            name=ToolName.VIEW_REMINDERS_BY_TYPE.value,
            description="View reminders filtered by type (scheduled, recurring, immediate or all)",
            input_schema=_object({
                "type": {"type": "string", "enum": [k.value for k in ReminderKind], "default": "all"},
            }),
            handler=view_reminders_by_type,
        ),
        ToolDefinition(
            name=ToolName.UPDATE_REMINDER.value,
            description="Update a reminder by position; pass recurring=null to clear its schedule",
            input_schema=_object({
                "index": _INDEX,
                "updated_text": {"type": "string", "description": "The new text for the reminder"},
                "scheduled_time": {"type": "string", "description": f"Optional new time. {TIME_INPUT_HINT}"},
                "recurring": {**_RECURRING, "type": ["object", "null"], "description": "Optional new recurring schedule"},
            }, required=["index", "updated_text"]),
            handler=update_reminder,
        ),
        ToolDefinition(
            name=ToolName.DELETE_REMINDER.value,
            description="Delete a reminder by position",
            input_schema=_object({"index": _INDEX}, required=["index"]),
            handler=delete_reminder,
        ),
        ToolDefinition(
            name=ToolName.STOP_RECURRING_REMINDER.value,
            description="Stop a recurring reminder, keeping it as a one-time reminder",
            input_schema=_object({"index": _INDEX}, required=["index"]),
            handler=stop_recurring_reminder,
        ),
        ToolDefinition(
            name=ToolName.MODIFY_RECURRING_SCHEDULE.value,
            description="Set or change the recurring schedule of a scheduled reminder",
            input_schema=_object({
                "index": _INDEX,
                "recurring": {**_RECURRING, "description": "New recurring schedule"},
            }, required=["index", "recurring"]),
            handler=modify_recurring_schedule,
        ),
        ToolDefinition(
            name=ToolName.GET_UPCOMING_REMINDERS.value,
            description="Get reminders due within the next N hours",
            input_schema=_object({
                "hours": {"type": "number", "description": "Hours to look ahead (default 24)"},
            }),
            handler=get_upcoming_reminders,
        ),
        ToolDefinition(
            name=ToolName.GET_NEXT_RECURRING_TIME.value,
            description="Calculate when a recurring reminder will next trigger",
            input_schema=_object({"index": _INDEX}, required=["index"]),
            handler=get_next_recurring_time,
        ),
        ToolDefinition(
            name=ToolName.GET_CURRENT_TIME.value,
            description="Get the current date, time and timezone",
            input_schema=_object(),
            handler=get_current_time,
        ),
        ToolDefinition(
            name=ToolName.ADD_ITEM.value,
            description="Add an item to the shopping list",
            input_schema=_object({
                "item": {"type": "string", "description": "The item to add"},
                "quantity": {"type": "integer", "minimum": 1, "description": "Quantity (default 1)"},
            }, required=["item"]),
            handler=add_item,
        ),
        ToolDefinition(
            name=ToolName.VIEW_SHOPPING_LIST.value,
            description="View all items in the shopping list",
            input_schema=_object(),
            handler=view_shopping_list,
        ),
        ToolDefinition(
            name=ToolName.UPDATE_ITEM.value,
            description="Update a shopping list item by position",
            input_schema=_object({
                "index": _INDEX,
                "updated_text": {"type": "string", "description": "The new text for the item"},
                "quantity": {"type": "integer", "minimum": 1, "description": "The new quantity"},
            }, required=["index"]),
            handler=update_item,
        ),
        ToolDefinition(
            name=ToolName.DELETE_ITEM.value,
            description="Delete a shopping list item by position",
            input_schema=_object({"index": _INDEX}, required=["index"]),
            handler=delete_item,
        ),
        ToolDefinition(
            name=ToolName.MARK_ITEM_COMPLETED.value,
            description="Toggle a shopping list item between completed and pending",
            input_schema=_object({"index": _INDEX}, required=["index"]),
            handler=mark_item_completed,
        ),
        ToolDefinition(
            name=ToolName.CLEAR_COMPLETED_ITEMS.value,
            description="Remove all completed items from the shopping list",
            input_schema=_object(),
            handler=clear_completed_items,
        ),
    ]


def get_tool(tools: list[ToolDefinition], name: str) -> ToolDefinition | None:
    for tool in tools:
        if tool.name == name:
            return tool
    return None


def dispatch_tool(tools: list[ToolDefinition], name: str, arguments: dict = None) -> dict:
    """Run a tool by name and always return a payload.

    Args:
        tools: Tools from build_tools
        name: Tool name
        arguments: Keyword arguments for the tool
    """
    tool = get_tool(tools, name)
    if tool is None:
        return {
            "success": False,
            "error": ErrorCode.INVALID_ARGUMENTS.value,
            "message": f"Unknown tool: {name}",
        }

    try:
        return tool.handler(**(arguments or {}))
    except StoreUnavailableError as e:
        logger.error(f"Tool {name} failed, state store unavailable: {e}")
        return {"success": False, "error": ErrorCode.STORE_UNAVAILABLE.value, "message": str(e)}
    except (TypeError, ValueError) as e:
        logger.warning(f"Tool {name} called with bad arguments {arguments}: {e}")
        return {
            "success": False,
            "error": ErrorCode.INVALID_ARGUMENTS.value,
            "message": f"Invalid arguments for {name}: {e}",
        }
    except Exception as e:
        logger.error(f"Tool {name} failed: {e}")
        return {"success": False, "error": ErrorCode.INTERNAL_ERROR.value, "message": f"Failed to run {name}: {e}"}
