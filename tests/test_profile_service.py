"""Tests for the profile service and per-user autosave registry."""

import asyncio
from uuid import uuid4

import pytest

from sustainwdn.config import ProfileDefaultsConfig
from sustainwdn.db.services import profile_service
from sustainwdn.lib.hooks import AFTER_PROFILE_SAVE, hooks


class TestGetOrCreate:
    @pytest.mark.asyncio
    async def test_creates_with_defaults(self, db_session):
        user_id = uuid4()
        defaults = ProfileDefaultsConfig(first_name="Jane", country="CA")

        profile = await profile_service.get_or_create_profile(db_session, user_id, defaults, email="j@x.test")

        assert profile.id == user_id
        assert profile.first_name == "Jane"
        assert profile.last_name == "Doe"
        assert profile.country == "CA"
        assert profile.email == "j@x.test"
        assert profile.role is None

    @pytest.mark.asyncio
    async def test_returns_existing(self, db_session):
        user_id = uuid4()
        first = await profile_service.get_or_create_profile(db_session, user_id)
        first.first_name = "Ada"
        await db_session.commit()

        again = await profile_service.get_or_create_profile(db_session, user_id)

        assert again.first_name == "Ada"


class TestFormValues:
    def test_falls_back_to_defaults(self):
        values = profile_service.profile_form_values(None)
        assert values["first_name"] == "John"
        assert values["phone_number"] == "(555) 555-5555"
        assert values["bio"] == ""

    def test_clean_fields(self):
        cleaned = profile_service.clean_profile_fields(
            {"first_name": "  Ada ", "bio": "", "role": "admin", "unknown": "x"}
        )
        assert cleaned == {"first_name": "Ada", "bio": None}


class TestSaveProfile:
    @pytest.mark.asyncio
    async def test_role_cannot_be_set(self, db_session):
        user_id = uuid4()

        profile = await profile_service.save_profile(db_session, user_id, {"bio": "Hello", "role": "admin"})

        assert profile.bio == "Hello"
        assert not profile.is_admin

    @pytest.mark.asyncio
    async def test_fires_hook(self, db_session, clean_hooks):
        saved = []
        hooks.add_action(AFTER_PROFILE_SAVE, lambda profile: saved.append(profile.last_name))

        await profile_service.save_profile(db_session, uuid4(), {"last_name": "Lovelace"})

        assert saved == ["Lovelace"]


class TestAutosaveRegistry:
    @pytest.mark.asyncio
    async def test_flush_writes_through_new_session(self, session_factory):
        user_id = uuid4()
        registry = profile_service.ProfileAutosaveRegistry(session_factory, idle_seconds=60)

        registry.edit(user_id, {"bio": "Drafting", "role": "admin"})
        assert await registry.flush(user_id)

        async with session_factory() as db_session:
            profile = await profile_service.get_profile(db_session, user_id)
        assert profile.bio == "Drafting"
        assert profile.role is None

    @pytest.mark.asyncio
    async def test_idle_flush(self, session_factory):
        user_id = uuid4()
        registry = profile_service.ProfileAutosaveRegistry(session_factory, idle_seconds=0.01)

        registry.edit(user_id, {"first_name": "Ada"})
        await asyncio.sleep(0.1)

        async with session_factory() as db_session:
            profile = await profile_service.get_profile(db_session, user_id)
        assert profile is not None
        assert profile.first_name == "Ada"

    @pytest.mark.asyncio
    async def test_unknown_user_flush(self, session_factory):
        registry = profile_service.ProfileAutosaveRegistry(session_factory)
        assert not await registry.flush(uuid4())

    @pytest.mark.asyncio
    async def test_close_all(self, session_factory):
        user_id = uuid4()
        registry = profile_service.ProfileAutosaveRegistry(session_factory, idle_seconds=60)
        registry.edit(user_id, {"country": "NZ"})

        await registry.close_all()

        async with session_factory() as db_session:
            profile = await profile_service.get_profile(db_session, user_id)
        assert profile.country == "NZ"

    @pytest.mark.asyncio
    async def test_later_autosave_keeps_form_save(self, session_factory):
        user_id = uuid4()
        registry = profile_service.ProfileAutosaveRegistry(session_factory, idle_seconds=60)

        registry.edit(user_id, {"bio": "A"})
        await registry.flush(user_id)
        async with session_factory() as db_session:
            await profile_service.save_profile(db_session, user_id, {"bio": "B"})
        registry.edit(user_id, {"first_name": "X"})
        await registry.flush(user_id)

        async with session_factory() as db_session:
            profile = await profile_service.get_profile(db_session, user_id)
        assert profile.bio == "B"
        assert profile.first_name == "X"

    @pytest.mark.asyncio
    async def test_discard_drops_pending_edits(self, session_factory):
        user_id = uuid4()
        registry = profile_service.ProfileAutosaveRegistry(session_factory, idle_seconds=0.01)

        registry.edit(user_id, {"bio": "A"})
        await registry.discard(user_id)
        async with session_factory() as db_session:
            await profile_service.save_profile(db_session, user_id, {"bio": "B"})
        await asyncio.sleep(0.05)

        assert user_id not in registry
        async with session_factory() as db_session:
            profile = await profile_service.get_profile(db_session, user_id)
        assert profile.bio == "B"

    @pytest.mark.asyncio
    async def test_saved_buffers_are_forgotten(self, session_factory):
        first, second = uuid4(), uuid4()
        registry = profile_service.ProfileAutosaveRegistry(session_factory, idle_seconds=0.01)

        registry.edit(first, {"bio": "now"})
        registry.edit(second, {"bio": "later"})
        assert len(registry) == 2

        assert await registry.flush(first)
        assert first not in registry
        await asyncio.sleep(0.1)
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_failed_save_keeps_buffer(self, session_factory):
        user_id = uuid4()

        def broken_factory():
            raise RuntimeError("database unavailable")

        registry = profile_service.ProfileAutosaveRegistry(broken_factory, idle_seconds=60)
        registry.edit(user_id, {"bio": "draft"})

        assert not await registry.flush(user_id)
        assert user_id in registry

    def test_non_editable_fields_create_no_buffer(self, session_factory):
        registry = profile_service.ProfileAutosaveRegistry(session_factory)

        assert registry.edit(uuid4(), {"role": "admin"}) is None
        assert len(registry) == 0


class TestRoles:
    @pytest.mark.asyncio
    async def test_toggle_role(self, db_session):
        user_id = uuid4()
        await profile_service.get_or_create_profile(db_session, user_id)

        promoted = await profile_service.toggle_role(db_session, user_id)
        assert promoted.role == "admin"
        assert promoted.is_admin

        demoted = await profile_service.toggle_role(db_session, user_id)
        assert demoted.role == "user"
        assert not demoted.is_admin

    @pytest.mark.asyncio
    async def test_toggle_unknown_user(self, db_session):
        assert await profile_service.toggle_role(db_session, uuid4()) is None

    @pytest.mark.asyncio
    async def test_list_profiles(self, db_session):
        ids = {uuid4(), uuid4()}
        for user_id in ids:
            await profile_service.get_or_create_profile(db_session, user_id)

        profiles = await profile_service.list_profiles(db_session)

        assert {p.id for p in profiles} == ids
