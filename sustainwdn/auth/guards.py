"""Route guards for signed-in users and administrators.

Sign-in itself is handled by the identity provider, which leaves the user's
id in the session under ``user_id``.
"""

from __future__ import annotations

from uuid import UUID

from litestar.connection import ASGIConnection
from litestar.exceptions import NotAuthorizedException, PermissionDeniedException
from litestar.handlers.base import BaseRouteHandler
from sqlalchemy import select

from sustainwdn.db.models import Profile
from sustainwdn.db.models.profile import ADMIN_ROLE


def session_user_id(connection: ASGIConnection) -> UUID | None:
    """The signed-in user's id, or None if the session has none."""
    session = connection.session
    if not session or not session.get("user_id"):
        return None
    try:
        return UUID(str(session["user_id"]))
    except ValueError:
        return None


async def auth_guard(connection: ASGIConnection, _: BaseRouteHandler) -> None:
    """Require a signed-in user."""
    if session_user_id(connection) is None:
        raise NotAuthorizedException("Authentication required")


async def admin_guard(connection: ASGIConnection, _: BaseRouteHandler) -> None:
    """Require a signed-in user whose profile has the admin role."""
    user_id = session_user_id(connection)
    if user_id is None:
        raise NotAuthorizedException("Authentication required")

    db_config = connection.app.state.db_config
    async with db_config.get_session() as db_session:
        result = await db_session.execute(select(Profile.role).where(Profile.id == user_id))
        role = result.scalar_one_or_none()

    if role != ADMIN_ROLE:
        raise PermissionDeniedException("Administrator access required")
