"""Tests for the signed-in and administrator route guards."""

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from litestar.exceptions import NotAuthorizedException, PermissionDeniedException

from sustainwdn.auth.guards import admin_guard, auth_guard, session_user_id


def _connection(session=None, role=None):
    """Mock connection whose database reports ``role`` for any profile."""
    connection = MagicMock()
    connection.session = session if session is not None else {}

    result = MagicMock()
    result.scalar_one_or_none.return_value = role
    db_session = MagicMock()
    db_session.execute = AsyncMock(return_value=result)

    @asynccontextmanager
    async def get_session():
        yield db_session

    connection.app.state.db_config.get_session = get_session
    connection.db_session = db_session
    return connection


class TestSessionUserId:
    def test_reads_uuid(self):
        user_id = uuid4()
        assert session_user_id(_connection({"user_id": str(user_id)})) == user_id

    @pytest.mark.parametrize("session", [{}, {"user_id": ""}, {"user_id": "not-a-uuid"}])
    def test_missing_or_malformed(self, session):
        assert session_user_id(_connection(session)) is None


class TestAuthGuard:
    @pytest.mark.asyncio
    async def test_allows_signed_in_user(self):
        await auth_guard(_connection({"user_id": str(uuid4())}), MagicMock())

    @pytest.mark.asyncio
    async def test_rejects_anonymous(self):
        with pytest.raises(NotAuthorizedException):
            await auth_guard(_connection({}), MagicMock())


class TestAdminGuard:
    @pytest.mark.asyncio
    async def test_allows_admin(self):
        connection = _connection({"user_id": str(uuid4())}, role="admin")
        await admin_guard(connection, MagicMock())
        connection.db_session.execute.assert_awaited_once()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("role", [None, "member"])
    async def test_rejects_other_roles(self, role):
        with pytest.raises(PermissionDeniedException):
            await admin_guard(_connection({"user_id": str(uuid4())}, role=role), MagicMock())

    @pytest.mark.asyncio
    async def test_anonymous_never_queries(self):
        connection = _connection({}, role="admin")
        with pytest.raises(NotAuthorizedException):
            await admin_guard(connection, MagicMock())
        connection.db_session.execute.assert_not_called()
