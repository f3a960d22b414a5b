"""Admin controller, index only. Pathway, job and user controllers are in separate modules."""

from __future__ import annotations

from litestar import Controller, Request, get
from litestar.response import Template as TemplateResponse
from sqlalchemy.ext.asyncio import AsyncSession

from sustainwdn.admin.helpers import get_admin_context
from sustainwdn.auth.guards import admin_guard
from sustainwdn.db.services import job_service, pathway_service, profile_service
from sustainwdn.lib.flash import get_flash_messages

# Re-export split controllers for convenient registration
from sustainwdn.admin.jobs import JobAdminController  # noqa: F401
from sustainwdn.admin.pathways import PathwayAdminController  # noqa: F401
from sustainwdn.admin.users import UserAdminController  # noqa: F401


class AdminController(Controller):
    """Controller for the admin dashboard."""

    path = "/admin"
    guards = [admin_guard]

    @get("/")
    async def admin_index(self, request: Request, db_session: AsyncSession) -> TemplateResponse:
        """Admin landing page linking each management section."""
        ctx = await get_admin_context(request, db_session)

        sections = [
            {
                "title": "Career Pathways",
                "description": "Manage career pathways and their requirements",
                "href": "/admin/pathways",
                "count": len(await pathway_service.list_pathways(db_session)),
            },
            {
                "title": "Job Roles",
                "description": "Manage job roles and their details",
                "href": "/admin/jobs",
                "count": len(await job_service.list_jobs(db_session)),
            },
            {
                "title": "User Management",
                "description": "Manage user roles and permissions",
                "href": "/admin/users",
                "count": len(await profile_service.list_profiles(db_session)),
            },
        ]

        flash_messages = get_flash_messages(request)
        return TemplateResponse(
            "admin/index.html",
            context={"flash_messages": flash_messages, "sections": sections, **ctx},
        )
