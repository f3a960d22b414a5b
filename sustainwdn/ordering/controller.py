"""Turns drag and keyboard moves into new sequences and persists them."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Hashable, Protocol, Sequence

from sustainwdn.lib.exceptions import WriteError
from sustainwdn.ordering.items import OrderedItem, index_of, move_by_id, move_item
from sustainwdn.ordering.sync import PersistenceSynchronizer


class ReorderStatus(str, Enum):
    MOVED = "moved"
    NOOP = "noop"
    BUSY = "busy"
    FAILED = "failed"


@dataclass
class ReorderOutcome:
    status: ReorderStatus
    sequence: list[OrderedItem] = field(default_factory=list)
    error: WriteError | None = None

    @property
    def ok(self) -> bool:
        return self.status in (ReorderStatus.MOVED, ReorderStatus.NOOP)


class DragHandler(Protocol):
    """What a drag-and-drop (or keyboard) surface calls into."""

    def on_drag_start(self, source_id: Hashable) -> None: ...

    async def on_drag_end(self, source_id: Hashable, target_id: Hashable | None) -> ReorderOutcome: ...


class ReorderController:
    """One reorder at a time: overlapping requests are rejected as busy."""

    def __init__(self, synchronizer: PersistenceSynchronizer) -> None:
        self.synchronizer = synchronizer
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    async def reorder(
        self,
        sequence: Sequence[OrderedItem],
        source_id: Hashable,
        target_id: Hashable | None,
    ) -> ReorderOutcome:
        """Move ``source_id`` onto ``target_id``'s position and persist."""
        if self._busy:
            return ReorderOutcome(ReorderStatus.BUSY, list(sequence))

        moved = move_by_id(sequence, source_id, target_id)
        if moved is None:
            return ReorderOutcome(ReorderStatus.NOOP, list(sequence))

        return await self.apply(moved)

    async def move_by(self, sequence: Sequence[OrderedItem], item_id: Hashable, offset: int) -> ReorderOutcome:
        """Keyboard move: shift ``item_id`` by ``offset`` slots, clamped to the ends."""
        if self._busy:
            return ReorderOutcome(ReorderStatus.BUSY, list(sequence))

        source = index_of(sequence, item_id)
        if source is None:
            return ReorderOutcome(ReorderStatus.NOOP, list(sequence))

        target = min(max(source + offset, 0), len(sequence) - 1)
        if target == source:
            return ReorderOutcome(ReorderStatus.NOOP, list(sequence))

        return await self.apply(move_item(sequence, source, target))

    async def apply(self, new_sequence: Sequence[OrderedItem]) -> ReorderOutcome:
        """Persist a fully determined new sequence."""
        if self._busy:
            return ReorderOutcome(ReorderStatus.BUSY, list(new_sequence))

        self._busy = True
        try:
            error = await self.synchronizer.persist(new_sequence)
        finally:
            self._busy = False

        if error is not None:
            return ReorderOutcome(ReorderStatus.FAILED, list(new_sequence), error)
        return ReorderOutcome(ReorderStatus.MOVED, list(new_sequence))
