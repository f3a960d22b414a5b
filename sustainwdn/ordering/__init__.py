"""Ordered collections: rank-ordered lists that users reorder by dragging."""

from sustainwdn.ordering.backends import UNASSIGNED, CollectionBackend, SQLAlchemyCollectionBackend
from sustainwdn.ordering.controller import (
    DragHandler,
    ReorderController,
    ReorderOutcome,
    ReorderStatus,
)
from sustainwdn.ordering.items import (
    OrderedItem,
    move_by_id,
    move_item,
    next_rank,
    require_index,
    rerank,
)
from sustainwdn.ordering.rest import RestCollectionBackend, create_rest_client
from sustainwdn.ordering.store import OrderedCollectionStore
from sustainwdn.ordering.sync import PersistenceSynchronizer
from sustainwdn.ordering.view import CollectionState, CollectionView

__all__ = [
    "UNASSIGNED",
    "CollectionBackend",
    "CollectionState",
    "CollectionView",
    "DragHandler",
    "OrderedCollectionStore",
    "OrderedItem",
    "PersistenceSynchronizer",
    "ReorderController",
    "ReorderOutcome",
    "ReorderStatus",
    "RestCollectionBackend",
    "SQLAlchemyCollectionBackend",
    "create_rest_client",
    "move_by_id",
    "move_item",
    "next_rank",
    "require_index",
    "rerank",
]
