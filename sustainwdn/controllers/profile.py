"""Profile page with immediate save and debounced autosave."""

import logging
from typing import Annotated, Any
from uuid import UUID

from litestar import Controller, Request, Response, get, post
from litestar.enums import RequestEncodingType
from litestar.params import Body
from litestar.response import Redirect
from litestar.response import Template as TemplateResponse
from litestar.status_codes import HTTP_202_ACCEPTED
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from sustainwdn.auth.guards import auth_guard
from sustainwdn.config import get_settings
from sustainwdn.db.services import profile_service
from sustainwdn.lib.flash import flash_error, flash_success, get_flash_messages

logger = logging.getLogger(__name__)


class ProfileController(Controller):
    path = "/profile"
    guards = [auth_guard]

    @get("/")
    async def view_profile(self, request: Request, db_session: AsyncSession) -> TemplateResponse:
        """Show the profile form, creating the profile on first visit."""
        defaults = get_settings().profile_defaults
        user_id = UUID(request.session["user_id"])
        profile = await profile_service.get_or_create_profile(
            db_session, user_id, defaults, email=request.session.get("user_email")
        )

        return TemplateResponse(
            "profile.html",
            context={
                "flash_messages": get_flash_messages(request),
                "profile": profile,
                "values": profile_service.profile_form_values(profile, defaults),
                "autosave_idle_ms": int(get_settings().autosave.idle_seconds * 1000),
            },
        )

    @post("/")
    async def save_profile(
        self,
        request: Request,
        db_session: AsyncSession,
        data: Annotated[dict, Body(media_type=RequestEncodingType.URL_ENCODED)],
    ) -> Redirect:
        user_id = UUID(request.session["user_id"])
        registry: profile_service.ProfileAutosaveRegistry = request.app.state.autosave

        # The submitted form carries every field, so buffered edits are stale.
        await registry.discard(user_id)
        try:
            await profile_service.save_profile(db_session, user_id, data)
        except SQLAlchemyError:
            logger.exception("Failed to save profile for user %s", user_id)
            flash_error(request, "Failed to update profile")
            return Redirect(path="/profile")

        flash_success(request, "Profile updated successfully")
        return Redirect(path="/profile")

    @post("/autosave")
    async def autosave_profile(self, request: Request, data: dict[str, Any]) -> Response:
        """Buffer field edits; they are saved once the user stops typing."""
        user_id = UUID(request.session["user_id"])
        registry: profile_service.ProfileAutosaveRegistry = request.app.state.autosave
        buffer = registry.edit(user_id, data)

        return Response(
            content={
                "pending": buffer is not None and buffer.pending,
                "dirty": buffer is not None and buffer.dirty,
            },
            status_code=HTTP_202_ACCEPTED,
        )
