"""A collection view: store, reorder controller and synchronizer together."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Hashable, Sequence

from sustainwdn.lib.exceptions import FetchError
from sustainwdn.lib.flash import Notifier
from sustainwdn.ordering.backends import CollectionBackend
from sustainwdn.ordering.controller import ReorderController, ReorderOutcome, ReorderStatus
from sustainwdn.ordering.items import OrderedItem, rerank, same_members
from sustainwdn.ordering.store import OrderedCollectionStore
from sustainwdn.ordering.sync import PersistenceSynchronizer

logger = logging.getLogger(__name__)


class CollectionState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    REORDERING = "reordering"
    ERROR = "error"


class CollectionView:
    """One visible ordered collection, optionally limited to a scope.

    Implements the drag handler interface, so a drag-and-drop surface and a
    keyboard fallback both end up in ``reorder``.
    """

    def __init__(
        self,
        backend: CollectionBackend,
        scope: Hashable | None = None,
        notifier: Notifier | None = None,
        label: str = "order",
    ) -> None:
        self.store = OrderedCollectionStore(backend, scope)
        self.synchronizer = PersistenceSynchronizer(backend, self.store, notifier, label)
        self.controller = ReorderController(self.synchronizer)
        self.state = CollectionState.IDLE
        self.dragging: Hashable | None = None
        self._pending = False

    @property
    def backend(self) -> CollectionBackend:
        return self.store.backend

    @property
    def items(self) -> list[OrderedItem]:
        return self.store.items

    @property
    def payloads(self) -> list[Any]:
        return [item.payload for item in self.store.items]

    async def load(self) -> list[OrderedItem]:
        """Read the collection, fetching if the snapshot is stale."""
        previous = self.state
        self.state = CollectionState.LOADING
        try:
            items = await self.store.read()
        except FetchError:
            self.state = previous
            raise
        self.state = CollectionState.LOADED
        return items

    async def reorder(self, source_id: Hashable, target_id: Hashable | None) -> ReorderOutcome:
        """Drop ``source_id`` onto ``target_id``."""
        return await self._run(lambda items: self.controller.reorder(items, source_id, target_id))

    async def reorder_to(self, new_sequence: Sequence[OrderedItem]) -> ReorderOutcome:
        """Persist a complete new sequence of the current items.

        A sequence that is not a permutation of the current items is ignored.
        """

        async def apply(items: list[OrderedItem]) -> ReorderOutcome:
            if not same_members(items, new_sequence):
                return ReorderOutcome(ReorderStatus.NOOP, items)
            if [i.id for i in items] == [i.id for i in new_sequence]:
                return ReorderOutcome(ReorderStatus.NOOP, items)
            return await self.controller.apply(new_sequence)

        return await self._run(apply)

    async def move_up(self, item_id: Hashable) -> ReorderOutcome:
        return await self._run(lambda items: self.controller.move_by(items, item_id, -1))

    async def move_down(self, item_id: Hashable) -> ReorderOutcome:
        return await self._run(lambda items: self.controller.move_by(items, item_id, 1))

    def on_drag_start(self, source_id: Hashable) -> None:
        self.dragging = source_id

    async def on_drag_end(self, source_id: Hashable, target_id: Hashable | None) -> ReorderOutcome:
        self.dragging = None
        return await self.reorder(source_id, target_id)

    async def _run(self, operation) -> ReorderOutcome:
        if self._pending or self.controller.busy:
            return ReorderOutcome(ReorderStatus.BUSY, self.items)

        self._pending = True
        try:
            if not self.store.loaded or self.store.stale:
                await self.load()

            self.state = CollectionState.REORDERING
            outcome = await operation(self.items)

            if outcome.status is ReorderStatus.NOOP:
                self.state = CollectionState.LOADED
                return outcome

            if outcome.status is ReorderStatus.FAILED:
                self.state = CollectionState.ERROR

            # Reconcile with the backend whether or not the writes landed.
            try:
                outcome.sequence = await self.store.read()
            except FetchError:
                # The store stays stale, so the next read fetches again.
                logger.warning("Could not refetch %s after reorder", self.backend.name, exc_info=True)
                outcome.sequence = rerank(outcome.sequence) if outcome.ok else self.items
            self.state = CollectionState.LOADED
            return outcome
        finally:
            self._pending = False

    async def create(self, record: Any) -> OrderedItem:
        """Append a new record after the current last item."""
        item = await self.backend.insert(record)
        self.store.invalidate()
        return item

    async def delete(self, item_id: Hashable) -> bool:
        """Remove an item; remaining ranks are left until the next reorder."""
        deleted = await self.backend.delete(item_id)
        self.store.invalidate()
        return deleted

    def detach(self) -> None:
        self.store.detach()
