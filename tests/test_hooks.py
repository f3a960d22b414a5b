"""Tests for the action/filter hook registry."""

import pytest

from sustainwdn.lib.hooks import (
    AFTER_COLLECTION_REORDER,
    JOB_PAYLOAD,
    HookRegistry,
    action,
    filter,
    hooks,
)


@pytest.fixture
def registry():
    return HookRegistry()


class TestActions:
    """Actions run for their side effects, lowest priority first."""

    @pytest.mark.asyncio
    async def test_priority_order(self, registry):
        calls = []
        registry.add_action("saved", lambda: calls.append("late"), priority=20)
        registry.add_action("saved", lambda: calls.append("early"), priority=5)

        await registry.do_action("saved")

        assert calls == ["early", "late"]

    @pytest.mark.asyncio
    async def test_sync_and_async_handlers(self, registry):
        calls = []

        async def async_handler(collection, scope, ids):
            calls.append(("async", collection, ids))

        registry.add_action(AFTER_COLLECTION_REORDER, lambda c, s, ids: calls.append(("sync", c, ids)))
        registry.add_action(AFTER_COLLECTION_REORDER, async_handler)

        await registry.do_action(AFTER_COLLECTION_REORDER, "pathways", None, ["b", "a"])

        assert calls == [("sync", "pathways", ["b", "a"]), ("async", "pathways", ["b", "a"])]

    @pytest.mark.asyncio
    async def test_unknown_hook_is_noop(self, registry):
        await registry.do_action("nothing_registered")
        assert not registry.has_action("nothing_registered")

    def test_remove(self, registry):
        def handler():
            pass

        registry.add_action("saved", handler)
        assert registry.remove_action("saved", handler)
        assert not registry.remove_action("saved", handler)
        assert not registry.has_action("saved")


class TestFilters:
    @pytest.mark.asyncio
    async def test_chain_in_priority_order(self, registry):
        registry.add_filter(JOB_PAYLOAD, lambda p, job: {**p, "seen": p.get("seen", []) + ["b"]}, priority=20)
        registry.add_filter(JOB_PAYLOAD, lambda p, job: {**p, "seen": p.get("seen", []) + ["a"]}, priority=10)

        result = await registry.apply_filters(JOB_PAYLOAD, {}, None)

        assert result == {"seen": ["a", "b"]}

    @pytest.mark.asyncio
    async def test_async_filter(self, registry):
        async def shout(value):
            return value.upper()

        registry.add_filter("title", shout)

        assert await registry.apply_filters("title", "solar") == "SOLAR"

    @pytest.mark.asyncio
    async def test_no_filters_returns_value(self, registry):
        assert await registry.apply_filters("title", "unchanged") == "unchanged"

    def test_clear(self, registry):
        registry.add_action("a", lambda: None)
        registry.add_filter("f", lambda v: v)

        registry.clear()

        assert not registry.has_action("a")
        assert not registry.has_filter("f")


class TestDecorators:
    """The decorators register on the global registry and return the function."""

    def test_action_decorator(self, clean_hooks):
        @action("decorated_action")
        def handler():
            return "result"

        assert hooks.has_action("decorated_action")
        assert handler() == "result"

    def test_filter_decorator(self, clean_hooks):
        @filter("decorated_filter", priority=1)
        def passthrough(value):
            return value

        assert hooks.has_filter("decorated_filter")
        assert hooks._filters["decorated_filter"][0].priority == 1
