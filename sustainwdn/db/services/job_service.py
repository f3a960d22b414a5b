"""Job role service: CRUD, per-pathway ordering and payload normalization."""

from dataclasses import dataclass
from typing import Any, Hashable
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from sustainwdn.db.models import CareerPathway, JobRole
from sustainwdn.db.models.job import JOB_LEVELS
from sustainwdn.lib.flash import Notifier
from sustainwdn.lib.hooks import (
    AFTER_JOB_DELETE,
    AFTER_JOB_SAVE,
    BEFORE_JOB_DELETE,
    BEFORE_JOB_SAVE,
    JOB_PAYLOAD,
    hooks,
)
from sustainwdn.ordering import UNASSIGNED, CollectionView, SQLAlchemyCollectionBackend

_UNSET = object()  # Sentinel for distinguishing None from "not provided"


@dataclass
class ResourceLink:
    url: str
    text: str


def parse_resource_link(content: str) -> ResourceLink:
    """Parse a stored "url|text" resource; the URL doubles as text if none."""
    url, _, text = content.partition("|")
    return ResourceLink(url=url, text=text or url)


def format_resource_link(link: ResourceLink) -> str:
    return f"{link.url}|{link.text}"


def as_content(value: Any) -> dict[str, Any]:
    """Legacy rows hold bare strings where {"content": ...} is expected."""
    if isinstance(value, dict):
        return value
    if value is None:
        return {"content": ""}
    return {"content": str(value)}


def job_collection(db_session: AsyncSession) -> SQLAlchemyCollectionBackend:
    return SQLAlchemyCollectionBackend(db_session, JobRole, scope_column="pathway_id", name="jobs")


def job_view(
    db_session: AsyncSession,
    pathway_id: Hashable | None = None,
    notifier: Notifier | None = None,
) -> CollectionView:
    """Ordered view of the jobs in one pathway.

    Pass ``UNASSIGNED`` for the jobs without a pathway, or None for all jobs.
    """
    return CollectionView(
        job_collection(db_session), scope=pathway_id, notifier=notifier, label="job order"
    )


async def list_jobs(
    db_session: AsyncSession,
    pathway_id: UUID | None = None,
    level: str | None = None,
) -> list[JobRole]:
    """Jobs ascending by display order, optionally for one pathway and level."""
    items = await job_collection(db_session).fetch(pathway_id)
    jobs = [item.payload for item in items]
    if level:
        jobs = [job for job in jobs if job.level == level]
    return jobs


async def get_job_by_id(db_session: AsyncSession, job_id: UUID) -> JobRole | None:
    item = await job_collection(db_session).get(job_id)
    return item.payload if item else None


def group_jobs_by_pathway(
    pathways: list[CareerPathway], jobs: list[JobRole]
) -> list[tuple[CareerPathway, list[JobRole]]]:
    """Pair each pathway (in pathway order) with its jobs.

    Pathways without jobs and jobs without a pathway are left out.
    """
    grouped: dict[UUID, list[JobRole]] = {}
    for job in jobs:
        if job.pathway_id is None:
            continue
        grouped.setdefault(job.pathway_id, []).append(job)

    return [(p, grouped[p.id]) for p in pathways if grouped.get(p.id)]


async def job_payload(job: JobRole) -> dict[str, Any]:
    """Normalized, template-ready view of a job's JSON fields."""
    tasks = job.tasks_responsibilities or {}
    certificates = job.certificates_degrees or {}
    payload = {
        "id": job.id,
        "title": job.title,
        "level": job.level,
        "salary": job.salary,
        "projections": job.projections,
        "pathway": job.pathway,
        "description": as_content(job.description),
        "tasks_responsibilities": {key: as_content(value) for key, value in tasks.items()},
        "resources": [
            parse_resource_link(as_content(r).get("content", "")) for r in job.resources or []
        ],
        "related_jobs": [as_content(r) for r in job.related_jobs or []],
        "education": list(certificates.get("education") or []),
        "certificates": [parse_resource_link(c) for c in certificates.get("certificates") or []],
        "experience": list(certificates.get("experience") or []),
        "licenses": list(job.licenses or []),
        "job_projections": list(job.job_projections or []),
    }
    return await hooks.apply_filters(JOB_PAYLOAD, payload, job)


def _validate_level(level: str) -> str:
    if level not in JOB_LEVELS:
        raise ValueError(f"Unknown job level: {level}")
    return level


async def create_job(
    db_session: AsyncSession,
    title: str,
    pathway_id: UUID | None,
    description: str = "",
    level: str = "entry",
    salary: str | None = None,
    projections: str | None = None,
    tasks: list[str] | None = None,
    resources: list[ResourceLink] | None = None,
    related_jobs: list[str] | None = None,
    education: list[str] | None = None,
    certificates: list[ResourceLink] | None = None,
    experience: list[str] | None = None,
    licenses: list[str] | None = None,
) -> JobRole:
    """Create a job at the end of its pathway's order.

    Args:
        db_session: Database session
        title: Job title
        pathway_id: Owning pathway (the ordering scope)
        description: Plain-text description, stored as {"content": ...}
        level: One of entry, mid, advanced
        salary: Free-form salary range
        projections: Job outlook text
        tasks: Task lines, stored as {"task_N": {"content": ...}}
        resources: Resource links, stored as [{"content": "url|text"}]
        related_jobs: Related job titles
        education: Education requirements
        certificates: Certificate links, stored as "url|text"
        experience: Experience requirements
        licenses: License names

    Returns:
        Created JobRole
    """
    job = JobRole(
        title=title,
        pathway_id=pathway_id,
        description={"content": description},
        level=_validate_level(level),
        salary=salary,
        projections=projections,
    )
    for name, value in _list_values(
        job.certificates_degrees,
        tasks=tasks,
        resources=resources,
        related_jobs=related_jobs,
        education=education,
        certificates=certificates,
        experience=experience,
        licenses=licenses,
    ).items():
        setattr(job, name, value)

    await hooks.do_action(BEFORE_JOB_SAVE, job, is_new=True)
    await job_collection(db_session).insert(job)
    await hooks.do_action(AFTER_JOB_SAVE, job, is_new=True)

    return job


def _list_values(certificates_degrees: dict | None, **lists: Any) -> dict[str, Any]:
    """Column values for the list-valued form fields, in their JSON shapes.

    Education, certificates and experience share one column, so the ones not
    given keep their ``certificates_degrees`` value.
    """
    values: dict[str, Any] = {}
    if lists.get("tasks") is not None:
        values["tasks_responsibilities"] = {
            f"task_{i}": {"content": task} for i, task in enumerate(lists["tasks"], start=1)
        }
    if lists.get("resources") is not None:
        values["resources"] = [{"content": format_resource_link(r)} for r in lists["resources"]]
    if lists.get("related_jobs") is not None:
        values["related_jobs"] = [{"content": r} for r in lists["related_jobs"]]
    if lists.get("licenses") is not None:
        values["licenses"] = lists["licenses"] or None

    cert_keys = ("education", "certificates", "experience")
    if any(lists.get(key) is not None for key in cert_keys):
        current = dict(certificates_degrees or {})
        if lists.get("education") is not None:
            current["education"] = lists["education"]
        if lists.get("certificates") is not None:
            current["certificates"] = [format_resource_link(c) for c in lists["certificates"]]
        if lists.get("experience") is not None:
            current["experience"] = lists["experience"]
        values["certificates_degrees"] = current
    return values


async def update_job(
    db_session: AsyncSession,
    job_id: UUID,
    title: str | None = None,
    pathway_id: UUID | None | object = _UNSET,
    description: str | None = None,
    level: str | None = None,
    salary: str | None | object = _UNSET,
    projections: str | None | object = _UNSET,
    **lists: Any,
) -> JobRole | None:
    """Update a job in place.

    The display order is kept unless the job moves to another pathway, in
    which case it is appended to the end of that pathway's order. Jobs
    without a pathway are ordered among themselves.

    Returns:
        Updated JobRole or None if not found
    """
    job = await get_job_by_id(db_session, job_id)
    if not job:
        return None

    await hooks.do_action(BEFORE_JOB_SAVE, job, is_new=False)

    collection = job_collection(db_session)
    values = _list_values(job.certificates_degrees, **lists)
    if title is not None:
        values["title"] = title
    if description is not None:
        values["description"] = {"content": description}
    if level is not None:
        values["level"] = _validate_level(level)
    if salary is not _UNSET:
        values["salary"] = salary
    if projections is not _UNSET:
        values["projections"] = projections
    if pathway_id is not _UNSET and pathway_id != job.pathway_id:
        values["display_order"] = await collection.next_rank(
            UNASSIGNED if pathway_id is None else pathway_id
        )
        values["pathway_id"] = pathway_id

    item = await collection.update(job_id, values)
    if item is None:
        return None
    job = item.payload

    await hooks.do_action(AFTER_JOB_SAVE, job, is_new=False)

    return job


async def delete_job(db_session: AsyncSession, job_id: UUID) -> bool:
    """Delete a job role.

    Returns:
        True if deleted, False if not found
    """
    job = await get_job_by_id(db_session, job_id)
    if not job:
        return False

    await hooks.do_action(BEFORE_JOB_DELETE, job)
    deleted = await job_collection(db_session).delete(job_id)
    await hooks.do_action(AFTER_JOB_DELETE, job)

    return deleted


def as_dict(job: JobRole) -> dict[str, Any]:
    return {
        "id": str(job.id),
        "title": job.title,
        "pathway_id": str(job.pathway_id) if job.pathway_id else None,
        "display_order": job.display_order,
    }
