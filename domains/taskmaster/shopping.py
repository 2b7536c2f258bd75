"""Shopping list operations.

Same positional contract as reminders (1-based, failures leave the list
untouched) without any scheduling.
"""

import dataclasses
import uuid
from dataclasses import dataclass, field
from typing import Optional

from .config import SHOPPING_ID_PREFIX
from .results import ErrorCode, OperationResult, failure, in_range, position_out_of_range


def _new_item_id() -> str:
    return f"{SHOPPING_ID_PREFIX}{uuid.uuid4().hex}"


@dataclass(frozen=True)
class ShoppingItem:
    text: str
    quantity: int = 1
    completed: bool = False
    id: str = field(default_factory=_new_item_id)

    def to_dict(self) -> dict:
        return {"id": self.id, "text": self.text, "quantity": self.quantity, "completed": self.completed}

    @classmethod
    def from_dict(cls, data: dict) -> "ShoppingItem":
        return cls(
            id=data["id"],
            text=data["text"],
            quantity=data.get("quantity", 1),
            completed=bool(data.get("completed", False)),
        )


def load_items(raw: list) -> list[ShoppingItem]:
    return [ShoppingItem.from_dict(i) for i in raw or []]


def dump_items(items: list[ShoppingItem]) -> list[dict]:
    return [i.to_dict() for i in items]


def _valid_quantity(quantity) -> bool:
    return isinstance(quantity, int) and not isinstance(quantity, bool) and quantity >= 1


def _label(item: ShoppingItem) -> str:
    return f"{item.quantity} {item.text}"


def add_item(items: list[ShoppingItem], text: str, quantity: Optional[int] = None) -> OperationResult:
    quantity = 1 if quantity is None else quantity
    if not _valid_quantity(quantity):
        return failure(items, ErrorCode.INVALID_ARGUMENTS, f"Quantity must be a positive whole number, got {quantity!r}.")

    item = ShoppingItem(text=text, quantity=quantity)
    updated = items + [item]
    return OperationResult(
        success=True,
        message=f"Added {quantity} {text} to your shopping list",
        items=updated,
        item=item,
        data={"total_items": len(updated)},
    )


def view_shopping_list(items: list[ShoppingItem]) -> OperationResult:
    pending = [i for i in items if not i.completed]
    completed = [i for i in items if i.completed]

    return OperationResult(
        success=True,
        message=(
            f"Your shopping list has {len(items)} item(s): {len(pending)} pending, {len(completed)} completed"
            if items else "Your shopping list is empty."
        ),
        items=items,
        data={
            "shopping_list": dump_items(items),
            "pending_items": dump_items(pending),
            "completed_items": dump_items(completed),
            "total_count": len(items),
            "pending_count": len(pending),
            "completed_count": len(completed),
        },
    )


def update_item(
    items: list[ShoppingItem],
    position: int,
    new_text: Optional[str] = None,
    quantity: Optional[int] = None,
) -> OperationResult:
    """Change text and/or quantity; omitted fields are kept."""
    if not in_range(items, position):
        return position_out_of_range(items, position, noun="item")

    if quantity is not None and not _valid_quantity(quantity):
        return failure(items, ErrorCode.INVALID_ARGUMENTS, f"Quantity must be a positive whole number, got {quantity!r}.")

    old = items[position - 1]
    changes = {}
    if new_text:
        changes["text"] = new_text
    if quantity is not None:
        changes["quantity"] = quantity

    new = dataclasses.replace(old, **changes)
    updated = list(items)
    updated[position - 1] = new

    return OperationResult(
        success=True,
        message=f"Updated item {position} from '{_label(old)}' to '{_label(new)}'",
        items=updated,
        item=new,
        data={"position": position, "old_item": old.to_dict()},
    )


def delete_item(items: list[ShoppingItem], position: int) -> OperationResult:
    if not in_range(items, position):
        return position_out_of_range(items, position, noun="item")

    removed = items[position - 1]
    updated = items[:position - 1] + items[position:]
    return OperationResult(
        success=True,
        message=f"Deleted item {position}: '{_label(removed)}'",
        items=updated,
        item=removed,
        data={"position": position, "remaining_count": len(updated)},
    )


def mark_item_completed(items: list[ShoppingItem], position: int) -> OperationResult:
    """Toggle an item between completed and pending."""
    if not in_range(items, position):
        return position_out_of_range(items, position, noun="item")

    old = items[position - 1]
    toggled = dataclasses.replace(old, completed=not old.completed)
    updated = list(items)
    updated[position - 1] = toggled

    return OperationResult(
        success=True,
        message=(
            f"✅ Marked '{toggled.text}' as completed"
            if toggled.completed else f"📝 Marked '{toggled.text}' as pending"
        ),
        items=updated,
        item=toggled,
        data={"position": position},
    )


def clear_completed_items(items: list[ShoppingItem]) -> OperationResult:
    completed = [i for i in items if i.completed]
    pending = [i for i in items if not i.completed]

    return OperationResult(
        success=True,
        message=(
            f"Cleared {len(completed)} completed item(s) from your shopping list. "
            f"{len(pending)} item(s) remaining."
        ),
        items=pending,
        data={
            "cleared_count": len(completed),
            "remaining_count": len(pending),
            "cleared_items": dump_items(completed),
        },
    )
