"""Career pathway admin controller."""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from litestar import Controller, Request, Response, get, post
from litestar.enums import RequestEncodingType
from litestar.params import Body
from litestar.response import Redirect
from litestar.response import Template as TemplateResponse
from sqlalchemy.ext.asyncio import AsyncSession

from sustainwdn.admin.helpers import (
    ReorderRequest,
    extract_pathway_form_data,
    get_admin_context,
    reorder_response,
)
from sustainwdn.auth.guards import admin_guard
from sustainwdn.db.services import pathway_service
from sustainwdn.lib.exceptions import WriteError
from sustainwdn.lib.flash import SessionNotifier, flash_error, flash_success, get_flash_messages


class PathwayAdminController(Controller):
    """Create, edit, delete and reorder career pathways."""

    path = "/admin"
    guards = [admin_guard]

    @get("/pathways")
    async def list_pathways(self, request: Request, db_session: AsyncSession) -> TemplateResponse:
        """List pathways in display order with drag handles."""
        ctx = await get_admin_context(request, db_session)
        view = pathway_service.pathway_view(db_session)
        await view.load()

        flash_messages = get_flash_messages(request)
        return TemplateResponse(
            "admin/pathways/list.html",
            context={"flash_messages": flash_messages, "pathways": view.payloads, **ctx},
        )

    @get("/pathways/new")
    async def new_pathway(self, request: Request, db_session: AsyncSession) -> TemplateResponse:
        ctx = await get_admin_context(request, db_session)
        flash_messages = get_flash_messages(request)
        return TemplateResponse(
            "admin/pathways/edit.html",
            context={"flash_messages": flash_messages, "pathway": None, **ctx},
        )

    @post("/pathways/new")
    async def create_pathway(
        self,
        request: Request,
        db_session: AsyncSession,
        data: Annotated[dict, Body(media_type=RequestEncodingType.URL_ENCODED)],
    ) -> Redirect:
        """Create a pathway at the end of the order."""
        try:
            form = extract_pathway_form_data(data)
        except ValueError as e:
            flash_error(request, str(e))
            return Redirect(path="/admin/pathways/new")

        try:
            await pathway_service.create_pathway(
                db_session,
                title=form.title,
                description=form.description,
                icon=form.icon or pathway_service.DEFAULT_ICON,
                requirements=form.requirements,
                salary_range=form.salary_range,
                skills=form.skills,
            )
        except WriteError as e:
            flash_error(request, f"Failed to {e.action} pathway")
            return Redirect(path="/admin/pathways/new")

        flash_success(request, f"Pathway '{form.title}' created successfully!")
        return Redirect(path="/admin/pathways")

    @get("/pathways/{pathway_id:uuid}/edit")
    async def edit_pathway(
        self, request: Request, db_session: AsyncSession, pathway_id: UUID
    ) -> TemplateResponse:
        ctx = await get_admin_context(request, db_session)

        pathway = await pathway_service.get_pathway_by_id(db_session, pathway_id)
        if not pathway:
            flash_error(request, "Pathway not found")
            return Redirect(path="/admin/pathways")

        flash_messages = get_flash_messages(request)
        return TemplateResponse(
            "admin/pathways/edit.html",
            context={
                "flash_messages": flash_messages,
                "pathway": pathway,
                "requirements": pathway_service.pathway_requirements(pathway),
                **ctx,
            },
        )

    @post("/pathways/{pathway_id:uuid}/edit")
    async def update_pathway(
        self,
        request: Request,
        db_session: AsyncSession,
        pathway_id: UUID,
        data: Annotated[dict, Body(media_type=RequestEncodingType.URL_ENCODED)],
    ) -> Redirect:
        """Update a pathway's fields; its position is unchanged."""
        try:
            form = extract_pathway_form_data(data)
        except ValueError as e:
            flash_error(request, str(e))
            return Redirect(path=f"/admin/pathways/{pathway_id}/edit")

        try:
            pathway = await pathway_service.update_pathway(
                db_session,
                pathway_id=pathway_id,
                title=form.title,
                description=form.description,
                icon=form.icon,
                requirements=form.requirements,
                salary_range=form.salary_range,
                skills=form.skills,
            )
        except WriteError as e:
            flash_error(request, f"Failed to {e.action} pathway")
            return Redirect(path=f"/admin/pathways/{pathway_id}/edit")
        if not pathway:
            flash_error(request, "Pathway not found")
            return Redirect(path="/admin/pathways")

        flash_success(request, f"Pathway '{form.title}' updated successfully!")
        return Redirect(path="/admin/pathways")

    @post("/pathways/{pathway_id:uuid}/delete")
    async def delete_pathway(
        self, request: Request, db_session: AsyncSession, pathway_id: UUID
    ) -> Redirect:
        pathway = await pathway_service.get_pathway_by_id(db_session, pathway_id)
        if not pathway:
            flash_error(request, "Pathway not found")
            return Redirect(path="/admin/pathways")

        title = pathway.title
        try:
            await pathway_service.delete_pathway(db_session, pathway_id)
        except WriteError as e:
            flash_error(request, f"Failed to {e.action} pathway")
            return Redirect(path="/admin/pathways")

        flash_success(request, f"'{title}' has been deleted")
        return Redirect(path="/admin/pathways")

    @post("/pathways/reorder")
    async def reorder_pathways(
        self, request: Request, db_session: AsyncSession, data: ReorderRequest
    ) -> Response:
        """Drop handler: move ``source_id`` to ``target_id``'s position."""
        view = pathway_service.pathway_view(db_session, SessionNotifier(request))
        outcome = await view.on_drag_end(data.source_id, data.target_id)
        return reorder_response(view, outcome, pathway_service.as_dict)

    @post("/pathways/{pathway_id:uuid}/move-up")
    async def move_pathway_up(
        self, request: Request, db_session: AsyncSession, pathway_id: UUID
    ) -> Redirect:
        view = pathway_service.pathway_view(db_session, SessionNotifier(request))
        await view.move_up(pathway_id)
        return Redirect(path="/admin/pathways")

    @post("/pathways/{pathway_id:uuid}/move-down")
    async def move_pathway_down(
        self, request: Request, db_session: AsyncSession, pathway_id: UUID
    ) -> Redirect:
        view = pathway_service.pathway_view(db_session, SessionNotifier(request))
        await view.move_down(pathway_id)
        return Redirect(path="/admin/pathways")
