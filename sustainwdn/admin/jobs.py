"""Job role admin controller.

Jobs are ordered within their pathway; jobs without one form their own order.
"""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from litestar import Controller, Request, Response, get, post
from litestar.enums import RequestEncodingType
from litestar.exceptions import NotFoundException
from litestar.params import Body
from litestar.response import Redirect
from litestar.response import Template as TemplateResponse
from sqlalchemy.ext.asyncio import AsyncSession

from sustainwdn.admin.helpers import (
    ReorderRequest,
    extract_job_form_data,
    get_admin_context,
    reorder_response,
)
from sustainwdn.auth.guards import admin_guard
from sustainwdn.db.models.job import JOB_LEVELS
from sustainwdn.db.services import job_service, pathway_service
from sustainwdn.lib.exceptions import WriteError
from sustainwdn.lib.flash import SessionNotifier, flash_error, flash_success, get_flash_messages
from sustainwdn.ordering import UNASSIGNED


def _form_kwargs(form) -> dict:
    return {
        "title": form.title,
        "pathway_id": form.pathway_id,
        "description": form.description,
        "level": form.level,
        "salary": form.salary,
        "projections": form.projections,
        "tasks": form.tasks,
        "resources": form.resources,
        "related_jobs": form.related_jobs,
        "education": form.education,
        "certificates": form.certificates,
        "experience": form.experience,
        "licenses": form.licenses,
    }


def _scope(job):
    return UNASSIGNED if job.pathway_id is None else job.pathway_id


class JobAdminController(Controller):
    """Create, edit, delete and reorder job roles."""

    path = "/admin"
    guards = [admin_guard]

    async def _form_context(self, db_session: AsyncSession) -> dict:
        return {
            "pathways": await pathway_service.list_pathways(db_session),
            "levels": JOB_LEVELS,
        }

    @get("/jobs")
    async def list_jobs(self, request: Request, db_session: AsyncSession) -> TemplateResponse:
        """List jobs grouped by pathway, each group in display order."""
        ctx = await get_admin_context(request, db_session)
        pathways = await pathway_service.list_pathways(db_session)
        jobs = await job_service.list_jobs(db_session)

        flash_messages = get_flash_messages(request)
        return TemplateResponse(
            "admin/jobs/list.html",
            context={
                "flash_messages": flash_messages,
                "groups": job_service.group_jobs_by_pathway(pathways, jobs),
                "unassigned": [job for job in jobs if job.pathway_id is None],
                **ctx,
            },
        )

    @get("/jobs/new")
    async def new_job(self, request: Request, db_session: AsyncSession) -> TemplateResponse:
        ctx = await get_admin_context(request, db_session)
        flash_messages = get_flash_messages(request)
        return TemplateResponse(
            "admin/jobs/edit.html",
            context={
                "flash_messages": flash_messages,
                "job": None,
                "payload": None,
                "selected_pathway": request.query_params.get("pathway_id", ""),
                **(await self._form_context(db_session)),
                **ctx,
            },
        )

    @post("/jobs/new")
    async def create_job(
        self,
        request: Request,
        db_session: AsyncSession,
        data: Annotated[dict, Body(media_type=RequestEncodingType.URL_ENCODED)],
    ) -> Redirect:
        """Create a job at the end of its pathway's order."""
        try:
            form = extract_job_form_data(data)
        except ValueError as e:
            flash_error(request, str(e))
            return Redirect(path="/admin/jobs/new")

        try:
            await job_service.create_job(db_session, **_form_kwargs(form))
        except WriteError as e:
            flash_error(request, f"Failed to {e.action} job")
            return Redirect(path="/admin/jobs/new")

        flash_success(request, f"Job '{form.title}' created successfully!")
        return Redirect(path="/admin/jobs")

    @get("/jobs/{job_id:uuid}/edit")
    async def edit_job(
        self, request: Request, db_session: AsyncSession, job_id: UUID
    ) -> TemplateResponse:
        ctx = await get_admin_context(request, db_session)

        job = await job_service.get_job_by_id(db_session, job_id)
        if not job:
            flash_error(request, "Job not found")
            return Redirect(path="/admin/jobs")

        flash_messages = get_flash_messages(request)
        return TemplateResponse(
            "admin/jobs/edit.html",
            context={
                "flash_messages": flash_messages,
                "job": job,
                "payload": await job_service.job_payload(job),
                "selected_pathway": str(job.pathway_id or ""),
                **(await self._form_context(db_session)),
                **ctx,
            },
        )

    @post("/jobs/{job_id:uuid}/edit")
    async def update_job(
        self,
        request: Request,
        db_session: AsyncSession,
        job_id: UUID,
        data: Annotated[dict, Body(media_type=RequestEncodingType.URL_ENCODED)],
    ) -> Redirect:
        """Update a job. Moving it to another pathway appends it there."""
        try:
            form = extract_job_form_data(data)
        except ValueError as e:
            flash_error(request, str(e))
            return Redirect(path=f"/admin/jobs/{job_id}/edit")

        try:
            job = await job_service.update_job(db_session, job_id, **_form_kwargs(form))
        except WriteError as e:
            flash_error(request, f"Failed to {e.action} job")
            return Redirect(path=f"/admin/jobs/{job_id}/edit")
        if not job:
            flash_error(request, "Job not found")
            return Redirect(path="/admin/jobs")

        flash_success(request, f"Job '{form.title}' updated successfully!")
        return Redirect(path="/admin/jobs")

    @post("/jobs/{job_id:uuid}/delete")
    async def delete_job(self, request: Request, db_session: AsyncSession, job_id: UUID) -> Redirect:
        job = await job_service.get_job_by_id(db_session, job_id)
        if not job:
            flash_error(request, "Job not found")
            return Redirect(path="/admin/jobs")

        title = job.title
        try:
            await job_service.delete_job(db_session, job_id)
        except WriteError as e:
            flash_error(request, f"Failed to {e.action} job")
            return Redirect(path="/admin/jobs")

        flash_success(request, f"'{title}' has been deleted")
        return Redirect(path="/admin/jobs")

    @post("/jobs/reorder")
    async def reorder_jobs(
        self, request: Request, db_session: AsyncSession, data: ReorderRequest
    ) -> Response:
        """Drop handler, scoped to the dragged job's pathway.

        Jobs without a pathway are ordered among themselves. Dropping onto a
        job from another scope changes nothing.
        """
        job = await job_service.get_job_by_id(db_session, data.source_id)
        if not job:
            raise NotFoundException("Job not found")

        view = job_service.job_view(db_session, _scope(job), SessionNotifier(request))
        outcome = await view.on_drag_end(data.source_id, data.target_id)
        return reorder_response(view, outcome, job_service.as_dict)

    async def _move(self, request: Request, db_session: AsyncSession, job_id: UUID, offset: int) -> Redirect:
        job = await job_service.get_job_by_id(db_session, job_id)
        if not job:
            flash_error(request, "Job not found")
        else:
            view = job_service.job_view(db_session, _scope(job), SessionNotifier(request))
            if offset < 0:
                await view.move_up(job_id)
            else:
                await view.move_down(job_id)
        return Redirect(path="/admin/jobs")

    @post("/jobs/{job_id:uuid}/move-up")
    async def move_job_up(self, request: Request, db_session: AsyncSession, job_id: UUID) -> Redirect:
        return await self._move(request, db_session, job_id, -1)

    @post("/jobs/{job_id:uuid}/move-down")
    async def move_job_down(self, request: Request, db_session: AsyncSession, job_id: UUID) -> Redirect:
        return await self._move(request, db_session, job_id, 1)
