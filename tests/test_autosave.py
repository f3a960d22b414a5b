"""Tests for the debounced autosave buffer."""

import asyncio

import pytest

from sustainwdn.lib.autosave import DebouncedAutosave


class SaveRecorder:
    def __init__(self, fail=False):
        self.saved = []
        self.fail = fail

    async def __call__(self, values):
        if self.fail:
            raise RuntimeError("database unavailable")
        self.saved.append(values)


class TestDebounce:
    @pytest.mark.asyncio
    async def test_saves_after_idle(self):
        save = SaveRecorder()
        autosave = DebouncedAutosave(save, idle_seconds=0.01)

        autosave.edit(first_name="Ada")
        assert autosave.pending
        await asyncio.sleep(0.05)

        assert save.saved == [{"first_name": "Ada"}]
        assert not autosave.dirty

    @pytest.mark.asyncio
    async def test_rapid_edits_are_one_save(self):
        save = SaveRecorder()
        autosave = DebouncedAutosave(save, idle_seconds=0.02)

        autosave.edit(first_name="A")
        autosave.edit(first_name="Ad")
        autosave.edit(last_name="Lovelace")
        await asyncio.sleep(0.08)

        assert save.saved == [{"first_name": "Ad", "last_name": "Lovelace"}]

    @pytest.mark.asyncio
    async def test_unchanged_values_are_not_saved(self):
        save = SaveRecorder()
        autosave = DebouncedAutosave(save, idle_seconds=0.01, initial={"first_name": "Ada"})

        autosave.edit(first_name="Ada")
        await asyncio.sleep(0.05)

        assert save.saved == []


class TestFlush:
    @pytest.mark.asyncio
    async def test_flush_now(self):
        save = SaveRecorder()
        autosave = DebouncedAutosave(save, idle_seconds=60)

        autosave.edit(bio="hi")
        assert await autosave.flush()
        assert not await autosave.flush()
        assert save.saved == [{"bio": "hi"}]

    @pytest.mark.asyncio
    async def test_failure_keeps_buffer(self):
        save = SaveRecorder(fail=True)
        errors = []
        autosave = DebouncedAutosave(save, idle_seconds=60, on_error=errors.append)

        autosave.edit(bio="hi")
        assert not await autosave.flush()

        assert autosave.dirty
        assert autosave.values == {"bio": "hi"}
        assert isinstance(errors[0], RuntimeError)

        save.fail = False
        assert await autosave.flush()
        assert save.saved == [{"bio": "hi"}]

    @pytest.mark.asyncio
    async def test_close_flushes_and_cancels_timer(self):
        save = SaveRecorder()
        autosave = DebouncedAutosave(save, idle_seconds=60)

        autosave.edit(bio="bye")
        await autosave.close()

        assert not autosave.pending
        assert save.saved == [{"bio": "bye"}]


class TestChanges:
    @pytest.mark.asyncio
    async def test_only_changed_fields_are_saved(self):
        save = SaveRecorder()
        autosave = DebouncedAutosave(save, idle_seconds=60, initial={"bio": "A", "first_name": "Ada"})

        autosave.edit(bio="A", first_name="Grace")
        assert autosave.changes == {"first_name": "Grace"}
        await autosave.flush()

        assert save.saved == [{"first_name": "Grace"}]

    @pytest.mark.asyncio
    async def test_saved_fields_are_not_resent(self):
        save = SaveRecorder()
        autosave = DebouncedAutosave(save, idle_seconds=60)

        autosave.edit(bio="A")
        await autosave.flush()
        autosave.edit(first_name="X")
        await autosave.flush()

        assert save.saved == [{"bio": "A"}, {"first_name": "X"}]

    @pytest.mark.asyncio
    async def test_discard_drops_edits_and_timer(self):
        save = SaveRecorder()
        autosave = DebouncedAutosave(save, idle_seconds=0.01)

        autosave.edit(bio="draft")
        await autosave.discard()
        await asyncio.sleep(0.05)

        assert not autosave.pending
        assert not autosave.dirty
        assert save.saved == []

    @pytest.mark.asyncio
    async def test_on_settled_after_save(self):
        settled = []
        autosave = DebouncedAutosave(SaveRecorder(), idle_seconds=60, on_settled=settled.append)

        autosave.edit(bio="hi")
        await autosave.flush()

        assert settled == [autosave]

    @pytest.mark.asyncio
    async def test_failed_save_does_not_settle(self):
        settled = []
        autosave = DebouncedAutosave(
            SaveRecorder(fail=True), idle_seconds=60, on_settled=settled.append
        )

        autosave.edit(bio="hi")
        await autosave.flush()

        assert settled == []
