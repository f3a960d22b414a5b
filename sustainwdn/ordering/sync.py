"""Writes a reordered sequence back to its backend."""

from __future__ import annotations

import logging
from typing import Sequence

from sustainwdn.lib import observability
from sustainwdn.lib.exceptions import WriteError
from sustainwdn.lib.flash import Notifier, NullNotifier
from sustainwdn.lib.hooks import AFTER_COLLECTION_REORDER, hooks
from sustainwdn.ordering.backends import CollectionBackend
from sustainwdn.ordering.items import OrderedItem, rerank
from sustainwdn.ordering.store import OrderedCollectionStore

logger = logging.getLogger(__name__)


class PersistenceSynchronizer:
    """Assigns ranks 1..N to a full sequence and reconciles the store.

    Every outcome invalidates the store, so the next read reflects what the
    backend holds. Failures produce exactly one error notice and are
    returned, not raised.
    """

    def __init__(
        self,
        backend: CollectionBackend,
        store: OrderedCollectionStore,
        notifier: Notifier | None = None,
        label: str = "order",
    ) -> None:
        self.backend = backend
        self.store = store
        self.notifier = notifier or NullNotifier()
        self.label = label

    @property
    def failure_message(self) -> str:
        return f"Failed to update {self.label}"

    @property
    def success_message(self) -> str:
        return f"{self.label[:1].upper()}{self.label[1:]} updated successfully"

    async def write(self, sequence: Sequence[OrderedItem]) -> list[OrderedItem]:
        """Write ranks for ``sequence`` and return the reranked items.

        Raises WriteError if any write fails.
        """
        ranked = rerank(sequence)
        with observability.span(
            "collection.write_ranks",
            collection=self.backend.name,
            size=len(ranked),
            bulk=self.backend.supports_bulk,
        ):
            try:
                if self.backend.supports_bulk:
                    await self.backend.write_ranks(ranked)
                else:
                    for item in ranked:
                        await self.backend.update_rank(item.id, item.display_order)
            except WriteError:
                raise
            except Exception as exc:
                raise WriteError(f"Could not write ranks for {self.backend.name}") from exc
        return ranked

    async def persist(self, sequence: Sequence[OrderedItem]) -> WriteError | None:
        """Persist ``sequence`` as the collection's order.

        Returns None on success or the WriteError describing the failure.
        """
        try:
            ranked = await self.write(sequence)
        except WriteError as exc:
            self.store.invalidate()
            observability.warning(
                "Reorder failed", collection=self.backend.name, scope=str(self.store.scope), error=str(exc)
            )
            self.notifier.error(self.failure_message)
            return exc

        self.store.invalidate()
        self.notifier.success(self.success_message)
        await hooks.do_action(
            AFTER_COLLECTION_REORDER,
            self.backend.name,
            self.store.scope,
            [item.id for item in ranked],
        )
        return None
