"""Public pages: pathway explorer, pathway job lists and job details."""

from uuid import UUID

from litestar import Controller, Request, get
from litestar.exceptions import NotFoundException
from litestar.response import Redirect
from litestar.response import Template as TemplateResponse
from sqlalchemy.ext.asyncio import AsyncSession

from sustainwdn.db.models.job import JOB_LEVELS
from sustainwdn.db.services import job_service, pathway_service, profile_service
from sustainwdn.lib.flash import get_flash_messages


class WebController(Controller):
    path = "/"

    async def _get_profile_context(self, request: Request, db_session: AsyncSession) -> dict:
        """Signed-in user's profile for the nav, if any."""
        user_id = request.session.get("user_id")
        if not user_id:
            return {"profile": None}

        profile = await profile_service.get_profile(db_session, UUID(user_id))
        return {"profile": profile}

    @get("/")
    async def index(self) -> Redirect:
        return Redirect(path="/explore")

    @get("/explore")
    async def explore(self, request: Request, db_session: AsyncSession) -> TemplateResponse:
        """All career pathways in display order."""
        ctx = await self._get_profile_context(request, db_session)
        pathways = await pathway_service.list_pathways(db_session)

        return TemplateResponse(
            "explore.html",
            context={
                "flash_messages": get_flash_messages(request),
                "pathways": pathways,
                **ctx,
            },
        )

    @get("/pathways/{pathway_id:uuid}")
    async def pathway_jobs(
        self,
        request: Request,
        db_session: AsyncSession,
        pathway_id: UUID,
        level: str | None = None,
    ) -> TemplateResponse:
        """Jobs of one pathway in display order, optionally one level only."""
        ctx = await self._get_profile_context(request, db_session)

        pathway = await pathway_service.get_pathway_by_id(db_session, pathway_id)
        if not pathway:
            raise NotFoundException("Pathway not found")

        if level not in JOB_LEVELS:
            level = None
        jobs = await job_service.list_jobs(db_session, pathway_id=pathway_id, level=level)

        return TemplateResponse(
            "pathway_jobs.html",
            context={
                "flash_messages": get_flash_messages(request),
                "pathway": pathway,
                "requirements": pathway_service.pathway_requirements(pathway),
                "jobs": jobs,
                "levels": JOB_LEVELS,
                "level": level,
                **ctx,
            },
        )

    @get("/jobs/{job_id:uuid}")
    async def job_detail(
        self, request: Request, db_session: AsyncSession, job_id: UUID
    ) -> TemplateResponse:
        ctx = await self._get_profile_context(request, db_session)

        job = await job_service.get_job_by_id(db_session, job_id)
        if not job:
            raise NotFoundException("Job not found")

        return TemplateResponse(
            "job_detail.html",
            context={
                "flash_messages": get_flash_messages(request),
                "job": await job_service.job_payload(job),
                **ctx,
            },
        )
