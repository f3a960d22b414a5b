"""Shared helpers for admin controllers."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from litestar import Request, Response
from litestar.exceptions import NotAuthorizedException
from litestar.status_codes import HTTP_200_OK, HTTP_409_CONFLICT, HTTP_500_INTERNAL_SERVER_ERROR
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from sustainwdn.db.models.job import JOB_LEVELS
from sustainwdn.db.services import profile_service
from sustainwdn.db.services.job_service import ResourceLink, parse_resource_link
from sustainwdn.ordering import CollectionView, ReorderOutcome, ReorderStatus


class ReorderRequest(BaseModel):
    """Body of a drag-and-drop reorder: drop ``source_id`` on ``target_id``."""

    source_id: UUID
    target_id: UUID | None = None


def _lines(value: str | None) -> list[str]:
    return [line.strip() for line in (value or "").splitlines() if line.strip()]


def _commas(value: str | None) -> list[str]:
    return [part.strip() for part in (value or "").split(",") if part.strip()]


def _links(value: str | None) -> list[ResourceLink]:
    return [parse_resource_link(line) for line in _lines(value)]


@dataclass
class PathwayFormData:
    """Parsed pathway form data."""

    title: str
    description: str
    icon: str
    requirements: list[str]
    salary_range: str | None
    skills: list[str]


def extract_pathway_form_data(data: dict) -> PathwayFormData:
    """Extract pathway form data from a form submission dict.

    Requirements are one per line; skills are comma separated.

    Raises:
        ValueError: If the title is missing.
    """
    title = data.get("title", "").strip()
    if not title:
        raise ValueError("Title is required")

    return PathwayFormData(
        title=title,
        description=data.get("description", "").strip(),
        icon=data.get("icon", "").strip(),
        requirements=_lines(data.get("requirements")),
        salary_range=data.get("salary_range", "").strip() or None,
        skills=_commas(data.get("skills")),
    )


@dataclass
class JobFormData:
    """Parsed job form data."""

    title: str
    pathway_id: UUID | None
    description: str
    level: str
    salary: str | None
    projections: str | None
    tasks: list[str]
    resources: list[ResourceLink]
    related_jobs: list[str]
    education: list[str]
    certificates: list[ResourceLink]
    experience: list[str]
    licenses: list[str]


def extract_job_form_data(data: dict) -> JobFormData:
    """Extract job form data from a form submission dict.

    List fields are one entry per line. Resource and certificate lines use
    the "url|text" format.

    Raises:
        ValueError: If the title is missing, the level is unknown or the
            pathway id is malformed.
    """
    title = data.get("title", "").strip()
    if not title:
        raise ValueError("Title is required")

    level = data.get("level", "entry").strip() or "entry"
    if level not in JOB_LEVELS:
        raise ValueError(f"Invalid level: {level}")

    pathway_str = data.get("pathway_id", "").strip()
    pathway_id = None
    if pathway_str:
        try:
            pathway_id = UUID(pathway_str)
        except ValueError:
            raise ValueError(f"Invalid pathway: {pathway_str}")

    return JobFormData(
        title=title,
        pathway_id=pathway_id,
        description=data.get("description", "").strip(),
        level=level,
        salary=data.get("salary", "").strip() or None,
        projections=data.get("projections", "").strip() or None,
        tasks=_lines(data.get("tasks")),
        resources=_links(data.get("resources")),
        related_jobs=_lines(data.get("related_jobs")),
        education=_lines(data.get("education")),
        certificates=_links(data.get("certificates")),
        experience=_lines(data.get("experience")),
        licenses=_lines(data.get("licenses")),
    )


async def get_admin_context(request: Request, db_session: AsyncSession) -> dict:
    """Get common admin context: the signed-in admin's profile and path."""
    user_id = request.session.get("user_id")
    if not user_id:
        raise NotAuthorizedException("Authentication required")

    profile = await profile_service.get_profile(db_session, UUID(user_id))
    if not profile:
        raise NotAuthorizedException("Invalid user session")

    return {
        "profile": profile,
        "current_path": request.url.path,
    }


_REORDER_STATUS_CODES = {
    ReorderStatus.MOVED: HTTP_200_OK,
    ReorderStatus.NOOP: HTTP_200_OK,
    ReorderStatus.BUSY: HTTP_409_CONFLICT,
    ReorderStatus.FAILED: HTTP_500_INTERNAL_SERVER_ERROR,
}


def reorder_response(view: CollectionView, outcome: ReorderOutcome, serialize) -> Response:
    """JSON answer to a drag handler: the outcome and the persisted order."""
    content = {
        "status": outcome.status.value,
        "order": [serialize(item.payload) for item in outcome.sequence],
    }
    if outcome.status is ReorderStatus.FAILED:
        content["detail"] = view.synchronizer.failure_message
    elif outcome.status is ReorderStatus.MOVED:
        content["detail"] = view.synchronizer.success_message
    return Response(content=content, status_code=_REORDER_STATUS_CODES[outcome.status])
