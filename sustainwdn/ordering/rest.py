"""Collection backend for a PostgREST-compatible backend-as-a-service.

Talks the REST contract that hosted Postgres services (Supabase and friends)
expose under ``/rest/v1/<table>``: filters as ``column=eq.value`` query
params, ordering via ``order=column.asc``, and stored functions under
``/rest/v1/rpc/<function>``. Rank writes only ever carry ``id`` and
``display_order``, so edits other clients made to the rest of a row survive.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Hashable, Sequence

import httpx

from sustainwdn.lib.exceptions import FetchError, WriteError
from sustainwdn.ordering.backends import UNASSIGNED
from sustainwdn.ordering.items import OrderedItem

if TYPE_CHECKING:
    from sustainwdn.config import BackendConfig

REST_PREFIX = "/rest/v1"


def create_rest_client(config: "BackendConfig") -> httpx.AsyncClient:
    """Build an HTTP client carrying the service's API key headers."""
    if not config.rest_url:
        raise ValueError("backend.rest_url must be set to use the rest backend")

    headers = {"Content-Type": "application/json"}
    if config.api_key:
        headers["apikey"] = config.api_key
        headers["Authorization"] = f"Bearer {config.api_key}"

    return httpx.AsyncClient(
        base_url=config.rest_url.rstrip("/"),
        headers=headers,
        timeout=config.timeout,
    )


class RestCollectionBackend:
    """Collection stored in a remote table reached over HTTP.

    Ranks are written one ``PATCH {display_order}`` per item unless
    ``rank_function`` names a stored function on the service. That function
    receives ``table_name`` and ``ranks`` (a list of ``{id, display_order}``)
    and applies every rank in one transaction, which makes bulk writes
    atomic.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        table: str,
        scope_column: str | None = None,
        rank_function: str | None = None,
        name: str | None = None,
    ) -> None:
        self.client = client
        self.table = table
        self.scope_column = scope_column
        self.rank_function = rank_function or None
        self.name = name or table

    @property
    def supports_bulk(self) -> bool:
        return self.rank_function is not None

    @property
    def path(self) -> str:
        return f"{REST_PREFIX}/{self.table}"

    def _scope_params(self, scope: Hashable | None) -> dict[str, str]:
        if self.scope_column is None or scope is None:
            return {}
        if scope is UNASSIGNED:
            return {self.scope_column: "is.null"}
        return {self.scope_column: f"eq.{scope}"}

    @staticmethod
    def _to_item(row: dict[str, Any]) -> OrderedItem:
        return OrderedItem(id=row["id"], display_order=row["display_order"], payload=row)

    async def _request(
        self, method: str, failure: Exception, path: str | None = None, **kwargs
    ) -> httpx.Response:
        try:
            response = await self.client.request(method, path or self.path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise failure from exc
        return response

    async def fetch(self, scope: Hashable | None = None) -> list[OrderedItem]:
        params = {"select": "*", "order": "display_order.asc", **self._scope_params(scope)}
        response = await self._request("GET", FetchError(f"Could not load {self.name}"), params=params)
        return [self._to_item(row) for row in response.json()]

    async def get(self, item_id: Hashable) -> OrderedItem | None:
        params = {"select": "*", "id": f"eq.{item_id}"}
        response = await self._request(
            "GET", FetchError(f"Could not load {self.name} item {item_id}"), params=params
        )
        rows = response.json()
        return self._to_item(rows[0]) if rows else None

    async def write_ranks(self, items: Sequence[OrderedItem]) -> None:
        if not items:
            return
        if self.rank_function is None:
            for item in items:
                await self.update_rank(item.id, item.display_order)
            return

        ranks = [{"id": item.id, "display_order": item.display_order} for item in items]
        await self._request(
            "POST",
            WriteError(f"Could not write ranks for {self.name}"),
            path=f"{REST_PREFIX}/rpc/{self.rank_function}",
            json={"table_name": self.table, "ranks": ranks},
        )

    async def update(self, item_id: Hashable, values: dict[str, Any]) -> OrderedItem | None:
        response = await self._request(
            "PATCH",
            WriteError(f"Could not update {self.name} item {item_id}", action="update"),
            params={"id": f"eq.{item_id}"},
            json=values,
            headers={"Prefer": "return=representation"},
        )
        rows = response.json()
        return self._to_item(rows[0]) if rows else None

    async def update_rank(self, item_id: Hashable, rank: int) -> None:
        await self._request(
            "PATCH",
            WriteError(f"Could not write rank for {self.name} item {item_id}"),
            params={"id": f"eq.{item_id}"},
            json={"display_order": rank},
            headers={"Prefer": "return=minimal"},
        )

    async def next_rank(self, scope: Hashable | None = None) -> int:
        params = {
            "select": "display_order",
            "order": "display_order.desc",
            "limit": "1",
            **self._scope_params(scope),
        }
        response = await self._request("GET", FetchError(f"Could not read ranks for {self.name}"), params=params)
        rows = response.json()
        return rows[0]["display_order"] + 1 if rows else 1

    async def insert(self, record: dict[str, Any]) -> OrderedItem:
        scope = None
        if self.scope_column:
            scope = record.get(self.scope_column)
            scope = UNASSIGNED if scope is None else scope
        values = {**record, "display_order": await self.next_rank(scope)}
        response = await self._request(
            "POST",
            WriteError(f"Could not create {self.name} item", action="create"),
            json=[values],
            headers={"Prefer": "return=representation"},
        )
        return self._to_item(response.json()[0])

    async def delete(self, item_id: Hashable) -> bool:
        response = await self._request(
            "DELETE",
            WriteError(f"Could not delete {self.name} item {item_id}", action="delete"),
            params={"id": f"eq.{item_id}"},
            headers={"Prefer": "return=representation"},
        )
        return bool(response.json())
