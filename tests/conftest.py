"""Shared pytest fixtures."""

import copy
from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest
import pytest_asyncio
import yaml
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from sustainwdn.config import get_settings
from sustainwdn.db import models  # noqa: F401
from sustainwdn.db.base import Base
from sustainwdn.lib import observability
from sustainwdn.lib.exceptions import FetchError, WriteError
from sustainwdn.lib.hooks import hooks
from sustainwdn.ordering import UNASSIGNED, OrderedItem


@pytest.fixture(autouse=True)
def secret_key_env(monkeypatch):
    """Settings require SECRET_KEY; keep get_settings' cache per test."""
    monkeypatch.setenv("SECRET_KEY", "test-secret-key")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def no_logfire():
    observability.reset()
    yield
    observability.reset()


@pytest.fixture
def temp_app_yaml(tmp_path):
    """Create a temporary app.yaml file for testing."""
    config_path = tmp_path / "app.yaml"

    def _create_config(config: dict):
        with open(config_path, "w") as f:
            yaml.safe_dump(config, f)
        return config_path

    return _create_config


@pytest.fixture
def mock_config_path(temp_app_yaml):
    """Patch get_config_path to point at a temporary app.yaml."""
    patchers = []

    def _mock(config: dict):
        config_path = temp_app_yaml(config)
        patcher = patch("sustainwdn.config.get_config_path", return_value=config_path)
        patchers.append(patcher)
        return patcher.start()

    yield _mock
    for patcher in patchers:
        patcher.stop()


@pytest.fixture
def clean_hooks():
    """Save and restore hooks state around a test."""
    original_filters = copy.deepcopy(dict(hooks._filters))
    original_actions = copy.deepcopy(dict(hooks._actions))
    yield
    hooks._filters.clear()
    hooks._filters.update(original_filters)
    hooks._actions.clear()
    hooks._actions.update(original_actions)


@pytest.fixture
def mock_request_factory():
    """Factory fixture that returns mock requests with a session dict."""
    def _make(session=None):
        request = MagicMock()
        request.session = session if session is not None else {}
        return request
    return _make


class RecordingNotifier:
    """Notifier that remembers every message it was given."""

    def __init__(self):
        self.successes: list[str] = []
        self.errors: list[str] = []

    def success(self, message: str) -> None:
        self.successes.append(message)

    def error(self, message: str) -> None:
        self.errors.append(message)


class FakeBackend:
    """In-memory collection backend with switchable failures.

    Records are dicts with ``id``, ``display_order`` and optional ``scope``.
    ``fail_writes_after`` lets that many rank writes succeed, then raises.
    """

    def __init__(self, records=None, supports_bulk=True, name="things"):
        self.name = name
        self.supports_bulk = supports_bulk
        self.rows = {r["id"]: dict(r) for r in records or []}
        self.fetches = 0
        self.writes: list[tuple] = []
        self.fail_fetch = False
        self.fail_writes_after: int | None = None

    def _items(self, scope=None):
        if scope is UNASSIGNED:
            rows = [r for r in self.rows.values() if r.get("scope") is None]
        else:
            rows = [r for r in self.rows.values() if scope is None or r.get("scope") == scope]
        rows.sort(key=lambda r: r["display_order"])
        return [OrderedItem(r["id"], r["display_order"], dict(r)) for r in rows]

    def ranks(self, scope=None):
        return {item.id: item.display_order for item in self._items(scope)}

    def _check_write(self):
        if self.fail_writes_after is not None and len(self.writes) >= self.fail_writes_after:
            raise WriteError("simulated write failure")

    async def fetch(self, scope=None):
        self.fetches += 1
        if self.fail_fetch:
            raise FetchError("simulated fetch failure")
        return self._items(scope)

    async def get(self, item_id):
        row = self.rows.get(item_id)
        return OrderedItem(row["id"], row["display_order"], dict(row)) if row else None

    async def write_ranks(self, items):
        # A bulk write is all-or-nothing.
        self._check_write()
        for item in items:
            self.rows[item.id]["display_order"] = item.display_order
        self.writes.append(tuple((i.id, i.display_order) for i in items))

    async def update(self, item_id, values):
        row = self.rows.get(item_id)
        if row is None:
            return None
        row.update(values)
        return OrderedItem(row["id"], row["display_order"], dict(row))

    async def update_rank(self, item_id, rank):
        self._check_write()
        self.rows[item_id]["display_order"] = rank
        self.writes.append(((item_id, rank),))

    async def next_rank(self, scope=None):
        ranks = [item.display_order for item in self._items(scope)]
        return max(ranks) + 1 if ranks else 1

    async def insert(self, record):
        row = dict(record)
        row.setdefault("id", str(uuid4()))
        row["display_order"] = await self.next_rank(row.get("scope"))
        self.rows[row["id"]] = row
        return OrderedItem(row["id"], row["display_order"], dict(row))

    async def delete(self, item_id):
        return self.rows.pop(item_id, None) is not None


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def abc_backend():
    """Three items A, B, C ranked 1, 2, 3."""
    return FakeBackend([
        {"id": "A", "display_order": 1},
        {"id": "B", "display_order": 2},
        {"id": "C", "display_order": 3},
    ])


@pytest_asyncio.fixture
async def db_engine():
    """In-memory SQLite engine with the schema created."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    session_maker = async_sessionmaker(db_engine, expire_on_commit=False)
    async with session_maker() as session:
        yield session


@pytest.fixture
def session_factory(db_engine):
    """Callable returning a new session context manager, like db_config.get_session."""
    return async_sessionmaker(db_engine, expire_on_commit=False)


@pytest.fixture
def make_backend():
    """The FakeBackend class, for tests that build their own records."""
    return FakeBackend
