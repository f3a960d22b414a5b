"""Orderable items and the pure sequence operations on them."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Hashable, Sequence

from sustainwdn.lib.exceptions import ValidationError


@dataclass(frozen=True)
class OrderedItem:
    """A record taking part in a user-controlled display sequence.

    ``payload`` is the backend's own record (an ORM object or a row dict) and
    is carried through untouched.
    """

    id: Hashable
    display_order: int
    payload: Any = field(default=None, compare=False, repr=False)


def sort_items(items: Sequence[OrderedItem]) -> list[OrderedItem]:
    """Sort ascending by rank; ties keep their fetch order."""
    return sorted(items, key=lambda item: item.display_order)


def index_of(sequence: Sequence[OrderedItem], item_id: Hashable) -> int | None:
    for i, item in enumerate(sequence):
        if item.id == item_id:
            return i
    return None


def require_index(sequence: Sequence[OrderedItem], item_id: Hashable) -> int:
    """Like index_of, but an unknown id raises ValidationError."""
    index = index_of(sequence, item_id)
    if index is None:
        raise ValidationError(f"{item_id} is not in this collection")
    return index


def move_item(
    sequence: Sequence[OrderedItem], source_index: int, target_index: int
) -> list[OrderedItem]:
    """Remove the item at ``source_index`` and reinsert it at ``target_index``.

    Items between the two positions shift by one slot. Raises IndexError for
    positions outside the sequence.
    """
    size = len(sequence)
    if not (0 <= source_index < size and 0 <= target_index < size):
        raise IndexError(
            f"move {source_index} -> {target_index} out of range for {size} items"
        )

    result = list(sequence)
    item = result.pop(source_index)
    result.insert(target_index, item)
    return result


def move_by_id(
    sequence: Sequence[OrderedItem], source_id: Hashable, target_id: Hashable | None
) -> list[OrderedItem] | None:
    """Move ``source_id`` to the position currently held by ``target_id``.

    Returns None when there is nothing to do: no target, source dropped on
    itself, or either id missing from the sequence.
    """
    if target_id is None or source_id == target_id:
        return None

    source_index = index_of(sequence, source_id)
    target_index = index_of(sequence, target_id)
    if source_index is None or target_index is None:
        return None

    return move_item(sequence, source_index, target_index)


def rerank(sequence: Sequence[OrderedItem]) -> list[OrderedItem]:
    """Assign ranks 1..N in sequence order."""
    return [replace(item, display_order=position) for position, item in enumerate(sequence, start=1)]


def same_members(a: Sequence[OrderedItem], b: Sequence[OrderedItem]) -> bool:
    ids_a = [item.id for item in a]
    ids_b = [item.id for item in b]
    return len(ids_a) == len(ids_b) and set(ids_a) == set(ids_b) and len(set(ids_a)) == len(ids_a)


def next_rank(items: Sequence[OrderedItem]) -> int:
    """Rank for a new item appended after ``items``."""
    if not items:
        return 1
    return max(item.display_order for item in items) + 1
