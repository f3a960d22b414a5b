"""Tests for CollectionView: reorder flow, states and concurrency."""

import asyncio

import pytest

from sustainwdn.lib.exceptions import FetchError
from sustainwdn.ordering import CollectionState, CollectionView, OrderedItem, ReorderStatus


def ids(items):
    return [item.id for item in items]


class TestReorder:
    @pytest.mark.asyncio
    async def test_drag_c_before_a(self, abc_backend, notifier):
        view = CollectionView(abc_backend, notifier=notifier, label="pathway order")
        await view.load()

        outcome = await view.reorder("C", "A")

        assert outcome.status is ReorderStatus.MOVED
        assert ids(outcome.sequence) == ["C", "A", "B"]
        assert [i.display_order for i in outcome.sequence] == [1, 2, 3]
        assert abc_backend.ranks() == {"C": 1, "A": 2, "B": 3}
        assert view.state is CollectionState.LOADED
        assert notifier.successes == ["Pathway order updated successfully"]

    @pytest.mark.asyncio
    async def test_drop_on_self_issues_no_writes(self, abc_backend, notifier):
        view = CollectionView(abc_backend, notifier=notifier)
        await view.load()

        outcome = await view.reorder("B", "B")

        assert outcome.status is ReorderStatus.NOOP
        assert ids(outcome.sequence) == ["A", "B", "C"]
        assert abc_backend.writes == []
        assert notifier.successes == notifier.errors == []
        assert view.state is CollectionState.LOADED

    @pytest.mark.asyncio
    async def test_reorder_loads_first_when_needed(self, abc_backend):
        view = CollectionView(abc_backend)
        assert view.state is CollectionState.IDLE

        outcome = await view.reorder("A", "C")

        assert ids(outcome.sequence) == ["B", "C", "A"]

    @pytest.mark.asyncio
    async def test_reorder_refetches_once(self, abc_backend):
        view = CollectionView(abc_backend)
        await view.load()
        fetches = abc_backend.fetches

        await view.reorder("C", "A")

        assert abc_backend.fetches == fetches + 1

    @pytest.mark.asyncio
    async def test_drag_handler_interface(self, abc_backend):
        view = CollectionView(abc_backend)
        view.on_drag_start("C")
        assert view.dragging == "C"

        outcome = await view.on_drag_end("C", "A")

        assert view.dragging is None
        assert outcome.status is ReorderStatus.MOVED

    @pytest.mark.asyncio
    async def test_failure_reconciles_with_backend(self, abc_backend, notifier):
        abc_backend.fail_writes_after = 0
        view = CollectionView(abc_backend, notifier=notifier, label="job order")
        await view.load()

        outcome = await view.reorder("C", "A")

        assert outcome.status is ReorderStatus.FAILED
        assert not outcome.ok
        assert ids(outcome.sequence) == ["A", "B", "C"]
        assert notifier.errors == ["Failed to update job order"]
        assert view.state is CollectionState.LOADED


class TestKeyboardMoves:
    @pytest.mark.asyncio
    async def test_move_up_and_down(self, abc_backend):
        view = CollectionView(abc_backend)

        await view.move_up("B")
        assert abc_backend.ranks() == {"B": 1, "A": 2, "C": 3}

        await view.move_down("B")
        assert abc_backend.ranks() == {"A": 1, "B": 2, "C": 3}

    @pytest.mark.asyncio
    async def test_move_past_the_ends_is_noop(self, abc_backend):
        view = CollectionView(abc_backend)

        assert (await view.move_up("A")).status is ReorderStatus.NOOP
        assert (await view.move_down("C")).status is ReorderStatus.NOOP
        assert abc_backend.writes == []


class TestReorderTo:
    @pytest.mark.asyncio
    async def test_full_sequence(self, abc_backend):
        view = CollectionView(abc_backend)
        items = await view.load()

        outcome = await view.reorder_to(list(reversed(items)))

        assert outcome.status is ReorderStatus.MOVED
        assert abc_backend.ranks() == {"C": 1, "B": 2, "A": 3}

    @pytest.mark.asyncio
    async def test_non_permutation_is_ignored(self, abc_backend):
        view = CollectionView(abc_backend)
        await view.load()

        outcome = await view.reorder_to([OrderedItem("A", 1), OrderedItem("Z", 2), OrderedItem("B", 3)])

        assert outcome.status is ReorderStatus.NOOP
        assert abc_backend.writes == []


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_second_reorder_while_persisting_is_busy(self, abc_backend):
        release = asyncio.Event()
        original = abc_backend.write_ranks

        async def slow_write(items):
            await release.wait()
            await original(items)

        abc_backend.write_ranks = slow_write
        view = CollectionView(abc_backend)
        await view.load()

        first = asyncio.create_task(view.reorder("C", "A"))
        await asyncio.sleep(0)
        second = await view.reorder("B", "A")
        release.set()
        first_outcome = await first

        assert second.status is ReorderStatus.BUSY
        assert first_outcome.status is ReorderStatus.MOVED
        assert abc_backend.ranks() == {"C": 1, "A": 2, "B": 3}


class TestCreateDelete:
    @pytest.mark.asyncio
    async def test_create_appends_after_last(self, make_backend):
        backend = make_backend([{"id": "A", "display_order": 1}, {"id": "B", "display_order": 2}])
        view = CollectionView(backend)
        await view.load()

        item = await view.create({"id": "D"})
        items = await view.load()

        assert item.display_order == 3
        assert ids(items) == ["A", "B", "D"]

    @pytest.mark.asyncio
    async def test_delete_leaves_gap_until_next_reorder(self, abc_backend):
        view = CollectionView(abc_backend)
        await view.load()

        assert await view.delete("B")
        items = await view.load()
        assert [(i.id, i.display_order) for i in items] == [("A", 1), ("C", 3)]

        await view.reorder("C", "A")
        assert abc_backend.ranks() == {"C": 1, "A": 2}


class TestLoadErrors:
    @pytest.mark.asyncio
    async def test_load_failure_restores_state(self, abc_backend):
        abc_backend.fail_fetch = True
        view = CollectionView(abc_backend)

        with pytest.raises(FetchError):
            await view.load()

        assert view.state is CollectionState.IDLE

    @pytest.mark.asyncio
    async def test_detach_stops_updates(self, abc_backend):
        view = CollectionView(abc_backend)
        view.detach()
        await view.store.load()
        assert view.items == []

    @pytest.mark.asyncio
    async def test_refetch_failure_after_write_keeps_outcome(self, abc_backend, notifier):
        write_ranks = abc_backend.write_ranks

        async def write_then_go_offline(items):
            await write_ranks(items)
            abc_backend.fail_fetch = True

        abc_backend.write_ranks = write_then_go_offline
        view = CollectionView(abc_backend, notifier=notifier)
        await view.load()

        outcome = await view.reorder("C", "A")

        assert outcome.status is ReorderStatus.MOVED
        assert [(i.id, i.display_order) for i in outcome.sequence] == [("C", 1), ("A", 2), ("B", 3)]
        assert abc_backend.ranks() == {"C": 1, "A": 2, "B": 3}
        assert view.state is CollectionState.LOADED
        assert view.store.stale
        assert notifier.successes == ["Order updated successfully"]
        assert notifier.errors == []

        abc_backend.fail_fetch = False
        assert ids(await view.load()) == ["C", "A", "B"]

    @pytest.mark.asyncio
    async def test_refetch_failure_after_failed_write_shows_snapshot(self, abc_backend, notifier):
        abc_backend.fail_writes_after = 0
        view = CollectionView(abc_backend, notifier=notifier)
        await view.load()
        abc_backend.fail_fetch = True

        outcome = await view.reorder("C", "A")

        assert outcome.status is ReorderStatus.FAILED
        assert ids(outcome.sequence) == ["A", "B", "C"]
        assert view.state is CollectionState.LOADED
        assert len(notifier.errors) == 1
