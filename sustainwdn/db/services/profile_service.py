"""Profile service: lookup, bootstrap, saves and debounced autosave."""

from __future__ import annotations

import logging
from typing import Any, AsyncContextManager, Callable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sustainwdn.config import ProfileDefaultsConfig
from sustainwdn.db.models import Profile
from sustainwdn.db.models.profile import ADMIN_ROLE, USER_ROLE
from sustainwdn.lib.autosave import DebouncedAutosave
from sustainwdn.lib.hooks import AFTER_PROFILE_SAVE, hooks

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "first_name",
    "last_name",
    "email",
    "bio",
    "phone_number",
    "country",
    "timezone",
    "avatar_url",
    "resume_url",
)

SessionFactory = Callable[[], AsyncContextManager[AsyncSession]]


async def get_profile(db_session: AsyncSession, user_id: UUID) -> Profile | None:
    result = await db_session.execute(select(Profile).where(Profile.id == user_id))
    return result.scalar_one_or_none()


async def list_profiles(db_session: AsyncSession) -> list[Profile]:
    """Every profile, newest first."""
    result = await db_session.execute(select(Profile).order_by(Profile.created_at.desc()))
    return list(result.scalars().all())


async def toggle_role(db_session: AsyncSession, user_id: UUID) -> Profile | None:
    """Make a user an admin, or an admin a regular user.

    Returns:
        The updated Profile, or None if the user has no profile
    """
    profile = await get_profile(db_session, user_id)
    if not profile:
        return None

    profile.role = USER_ROLE if profile.is_admin else ADMIN_ROLE
    await db_session.commit()
    await db_session.refresh(profile)
    logger.info("User %s is now %s", user_id, profile.role)
    return profile


async def get_or_create_profile(
    db_session: AsyncSession,
    user_id: UUID,
    defaults: ProfileDefaultsConfig | None = None,
    email: str | None = None,
) -> Profile:
    """Return the user's profile, creating one from ``defaults`` if missing.

    Args:
        db_session: Database session
        user_id: Identity provider user id, used as the profile id
        defaults: Placeholder values for a new profile
        email: Email address from the identity provider

    Returns:
        The existing or newly created Profile
    """
    profile = await get_profile(db_session, user_id)
    if profile:
        return profile

    defaults = defaults or ProfileDefaultsConfig()
    profile = Profile(
        id=user_id,
        email=email,
        first_name=defaults.first_name,
        last_name=defaults.last_name,
        phone_number=defaults.phone_number,
        country=defaults.country,
        timezone=defaults.timezone,
    )
    db_session.add(profile)
    await db_session.commit()
    await db_session.refresh(profile)
    logger.info("Created profile for user %s", user_id)
    return profile


def profile_form_values(profile: Profile | None, defaults: ProfileDefaultsConfig | None = None) -> dict[str, str]:
    """Form values for ``profile``, falling back to defaults for empty fields."""
    fallback = (defaults or ProfileDefaultsConfig()).model_dump()
    values = {}
    for name in EDITABLE_FIELDS:
        value = getattr(profile, name, None) if profile else None
        values[name] = value if value else fallback.get(name, "")
    return values


def clean_profile_fields(data: dict[str, Any]) -> dict[str, str | None]:
    """Keep editable fields only; blank strings become None."""
    cleaned = {}
    for name in EDITABLE_FIELDS:
        if name in data:
            value = data[name]
            value = value.strip() if isinstance(value, str) else value
            cleaned[name] = value or None
    return cleaned


async def save_profile(db_session: AsyncSession, user_id: UUID, fields: dict[str, Any]) -> Profile:
    """Write editable ``fields`` to the user's profile, creating it if needed.

    Unknown fields (including ``role``) are ignored.
    """
    profile = await get_or_create_profile(db_session, user_id)
    for name, value in clean_profile_fields(fields).items():
        setattr(profile, name, value)

    await db_session.commit()
    await db_session.refresh(profile)

    await hooks.do_action(AFTER_PROFILE_SAVE, profile)
    return profile


class ProfileAutosaveRegistry:
    """One debounced autosave buffer per user with unsaved edits.

    Each flush opens its own database session, since it runs after the
    request that made the edit has finished. A buffer is dropped once
    everything in it has been saved.
    """

    def __init__(self, session_factory: SessionFactory, idle_seconds: float = 1.0) -> None:
        self.session_factory = session_factory
        self.idle_seconds = idle_seconds
        self._buffers: dict[UUID, DebouncedAutosave] = {}

    def for_user(self, user_id: UUID, initial: dict[str, Any] | None = None) -> DebouncedAutosave:
        buffer = self._buffers.get(user_id)
        if buffer is None:

            async def save(values: dict[str, Any]) -> None:
                async with self.session_factory() as db_session:
                    await save_profile(db_session, user_id, values)

            buffer = DebouncedAutosave(
                save,
                idle_seconds=self.idle_seconds,
                initial=initial,
                on_settled=lambda settled: self._forget(user_id, settled),
            )
            self._buffers[user_id] = buffer
        return buffer

    def _forget(self, user_id: UUID, buffer: DebouncedAutosave) -> None:
        if self._buffers.get(user_id) is buffer:
            del self._buffers[user_id]

    def __contains__(self, user_id: UUID) -> bool:
        return user_id in self._buffers

    def __len__(self) -> int:
        return len(self._buffers)

    def edit(self, user_id: UUID, fields: dict[str, Any]) -> DebouncedAutosave | None:
        """Buffer ``fields`` for ``user_id`` and restart their idle timer.

        Returns the user's buffer, or None if nothing editable was given and
        nothing is buffered.
        """
        cleaned = {name: value for name, value in fields.items() if name in EDITABLE_FIELDS}
        if not cleaned:
            return self._buffers.get(user_id)
        buffer = self.for_user(user_id)
        buffer.edit(**cleaned)
        return buffer

    async def flush(self, user_id: UUID) -> bool:
        buffer = self._buffers.get(user_id)
        if buffer is None:
            return False
        return await buffer.flush()

    async def discard(self, user_id: UUID) -> None:
        """Drop the user's unsaved edits, e.g. when a full form save replaces them."""
        buffer = self._buffers.pop(user_id, None)
        if buffer is not None:
            await buffer.discard()

    async def close_all(self) -> None:
        """Flush every buffer; called on application shutdown."""
        for buffer in list(self._buffers.values()):
            await buffer.close()
        self._buffers.clear()
