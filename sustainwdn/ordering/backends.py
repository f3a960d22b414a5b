"""Backends that hold ordered collections.

A backend is the remote table behind a collection: it reads items in rank
order, writes ranks, and manages the records themselves. Backend failures
are raised as FetchError or WriteError with the original exception chained.
"""

from __future__ import annotations

from typing import Any, Hashable, Protocol, Sequence

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from sustainwdn.lib.exceptions import FetchError, WriteError
from sustainwdn.ordering.items import OrderedItem


class _Unassigned:
    """Scope of the records whose scope column is empty."""

    def __repr__(self) -> str:
        return "UNASSIGNED"


UNASSIGNED = _Unassigned()


class CollectionBackend(Protocol):
    """The remote table behind one ordered collection."""

    name: str
    supports_bulk: bool

    async def fetch(self, scope: Hashable | None = None) -> list[OrderedItem]:
        """All items in ``scope`` (or every item) ascending by rank."""
        ...

    async def get(self, item_id: Hashable) -> OrderedItem | None: ...

    async def write_ranks(self, items: Sequence[OrderedItem]) -> None:
        """Persist each item's ``display_order`` as one batch."""
        ...

    async def update(self, item_id: Hashable, values: dict[str, Any]) -> OrderedItem | None:
        """Change fields other than the rank. Returns None for an unknown id."""
        ...

    async def update_rank(self, item_id: Hashable, rank: int) -> None: ...

    async def next_rank(self, scope: Hashable | None = None) -> int: ...

    async def insert(self, record: Any) -> OrderedItem:
        """Store a new record ranked after every existing item in its scope."""
        ...

    async def delete(self, item_id: Hashable) -> bool: ...


class SQLAlchemyCollectionBackend:
    """Collection backed by a mapped model with a ``display_order`` column.

    Rank batches run in a single transaction, so a failed batch leaves the
    previous order in place.
    """

    supports_bulk = True

    def __init__(
        self,
        db_session: AsyncSession,
        model: type,
        scope_column: str | None = None,
        name: str | None = None,
    ) -> None:
        self.db_session = db_session
        self.model = model
        self.scope_column = scope_column
        self.name = name or model.__tablename__

    def _scoped(self, query, scope: Hashable | None):
        if self.scope_column is None or scope is None:
            return query
        column = getattr(self.model, self.scope_column)
        if scope is UNASSIGNED:
            return query.where(column.is_(None))
        return query.where(column == scope)

    def _to_item(self, record: Any) -> OrderedItem:
        return OrderedItem(id=record.id, display_order=record.display_order, payload=record)

    async def fetch(self, scope: Hashable | None = None) -> list[OrderedItem]:
        query = self._scoped(select(self.model), scope).order_by(
            self.model.display_order.asc(), self.model.created_at.asc()
        )
        # Rank writes bypass the identity map; always take the row values.
        query = query.execution_options(populate_existing=True)
        try:
            result = await self.db_session.execute(query)
        except SQLAlchemyError as exc:
            raise FetchError(f"Could not load {self.name}") from exc
        return [self._to_item(record) for record in result.scalars().all()]

    async def get(self, item_id: Hashable) -> OrderedItem | None:
        try:
            result = await self.db_session.execute(
                select(self.model).where(self.model.id == item_id)
            )
        except SQLAlchemyError as exc:
            raise FetchError(f"Could not load {self.name} item {item_id}") from exc
        record = result.scalar_one_or_none()
        return self._to_item(record) if record is not None else None

    async def write_ranks(self, items: Sequence[OrderedItem]) -> None:
        if not items:
            return
        rows = [{"id": item.id, "display_order": item.display_order} for item in items]
        try:
            await self.db_session.execute(update(self.model), rows)
            await self.db_session.commit()
        except SQLAlchemyError as exc:
            await self.db_session.rollback()
            raise WriteError(f"Could not write ranks for {self.name}") from exc

    async def update(self, item_id: Hashable, values: dict[str, Any]) -> OrderedItem | None:
        item = await self.get(item_id)
        if item is None:
            return None
        record = item.payload
        try:
            for name, value in values.items():
                setattr(record, name, value)
            await self.db_session.commit()
            await self.db_session.refresh(record)
        except SQLAlchemyError as exc:
            await self.db_session.rollback()
            raise WriteError(f"Could not update {self.name} item {item_id}", action="update") from exc
        return self._to_item(record)

    async def update_rank(self, item_id: Hashable, rank: int) -> None:
        try:
            await self.db_session.execute(
                update(self.model).where(self.model.id == item_id).values(display_order=rank)
            )
            await self.db_session.commit()
        except SQLAlchemyError as exc:
            await self.db_session.rollback()
            raise WriteError(f"Could not write rank for {self.name} item {item_id}") from exc

    async def next_rank(self, scope: Hashable | None = None) -> int:
        query = self._scoped(select(func.max(self.model.display_order)), scope)
        try:
            result = await self.db_session.execute(query)
        except SQLAlchemyError as exc:
            raise FetchError(f"Could not read ranks for {self.name}") from exc
        highest = result.scalar_one_or_none()
        return 1 if highest is None else highest + 1

    async def insert(self, record: Any) -> OrderedItem:
        scope = None
        if self.scope_column:
            scope = getattr(record, self.scope_column)
            scope = UNASSIGNED if scope is None else scope
        record.display_order = await self.next_rank(scope)
        try:
            self.db_session.add(record)
            await self.db_session.commit()
            await self.db_session.refresh(record)
        except SQLAlchemyError as exc:
            await self.db_session.rollback()
            raise WriteError(f"Could not create {self.name} item", action="create") from exc
        return self._to_item(record)

    async def delete(self, item_id: Hashable) -> bool:
        item = await self.get(item_id)
        if item is None:
            return False
        try:
            await self.db_session.delete(item.payload)
            await self.db_session.commit()
        except SQLAlchemyError as exc:
            await self.db_session.rollback()
            raise WriteError(f"Could not delete {self.name} item {item_id}", action="delete") from exc
        return True
