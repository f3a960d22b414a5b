"""Client-side cache of one ordered collection."""

from __future__ import annotations

import logging
from typing import Callable, Hashable

from sustainwdn.lib import observability
from sustainwdn.lib.exceptions import FetchError
from sustainwdn.ordering.backends import CollectionBackend
from sustainwdn.ordering.items import OrderedItem, sort_items

logger = logging.getLogger(__name__)

Listener = Callable[[list[OrderedItem]], None]

_UNSET = object()


class OrderedCollectionStore:
    """Holds the visible sequence of a collection, refetched after mutations.

    The store has no write path of its own. Writers call ``invalidate()``
    and the next ``read()`` replaces the snapshot with a fresh fetch.
    """

    def __init__(self, backend: CollectionBackend, scope: Hashable | None = None) -> None:
        self.backend = backend
        self.scope = scope
        self._items: list[OrderedItem] = []
        self._loaded = False
        self._stale = True
        self._detached = False
        self._listeners: list[Listener] = []
        self.fetch_count = 0

    @property
    def items(self) -> list[OrderedItem]:
        """Last fetched sequence, possibly stale."""
        return list(self._items)

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def stale(self) -> bool:
        return self._stale

    async def load(self, scope: Hashable | None = _UNSET) -> list[OrderedItem]:
        """Fetch the collection ascending by rank.

        Raises FetchError on backend failure, leaving the previous snapshot
        in place. A fetch that completes after ``detach()`` is discarded.
        """
        if scope is not _UNSET:
            self.scope = scope

        self.fetch_count += 1
        with observability.span("collection.load", collection=self.backend.name, scope=str(self.scope)):
            try:
                fetched = await self.backend.fetch(self.scope)
            except FetchError:
                logger.warning("Failed to load %s (scope=%s)", self.backend.name, self.scope)
                raise

        ordered = sort_items(fetched)
        if self._detached:
            return ordered

        self._items = ordered
        self._loaded = True
        self._stale = False
        for listener in list(self._listeners):
            listener(self.items)
        return self.items

    def invalidate(self) -> None:
        """Mark the snapshot stale so the next read refetches."""
        self._stale = True

    async def read(self) -> list[OrderedItem]:
        """Current sequence, refetched first if stale."""
        if self._stale or not self._loaded:
            return await self.load()
        return self.items

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` with the sequence after every load.

        Returns a function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def detach(self) -> None:
        """The owning view is gone; drop listeners and late results."""
        self._detached = True
        self._listeners.clear()
