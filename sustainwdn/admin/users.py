"""User management admin controller."""

from __future__ import annotations

import logging
from uuid import UUID

from litestar import Controller, Request, get, post
from litestar.response import Redirect
from litestar.response import Template as TemplateResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from sustainwdn.admin.helpers import get_admin_context
from sustainwdn.auth.guards import admin_guard
from sustainwdn.db.services import profile_service
from sustainwdn.lib.flash import flash_error, flash_success, get_flash_messages

logger = logging.getLogger(__name__)


class UserAdminController(Controller):
    """List users and switch them between the admin and user roles."""

    path = "/admin"
    guards = [admin_guard]

    @get("/users")
    async def list_users(self, request: Request, db_session: AsyncSession) -> TemplateResponse:
        """List all users with their roles."""
        ctx = await get_admin_context(request, db_session)
        users = await profile_service.list_profiles(db_session)

        flash_messages = get_flash_messages(request)
        return TemplateResponse(
            "admin/users/list.html",
            context={"flash_messages": flash_messages, "users": users, **ctx},
        )

    @post("/users/{user_id:uuid}/toggle-role")
    async def toggle_role(self, request: Request, db_session: AsyncSession, user_id: UUID) -> Redirect:
        """Make a user an admin, or an admin a regular user."""
        if str(user_id) == request.session.get("user_id"):
            flash_error(request, "You cannot change your own role")
            return Redirect(path="/admin/users")

        try:
            profile = await profile_service.toggle_role(db_session, user_id)
        except SQLAlchemyError:
            logger.exception("Failed to update role for user %s", user_id)
            flash_error(request, "Failed to update user role")
            return Redirect(path="/admin/users")

        if not profile:
            flash_error(request, "User not found")
            return Redirect(path="/admin/users")

        flash_success(request, "User role updated successfully")
        return Redirect(path="/admin/users")
