"""Pathway service for CRUD operations on career pathways."""

from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from sustainwdn.db.models import CareerPathway
from sustainwdn.lib.flash import Notifier
from sustainwdn.lib.hooks import (
    AFTER_PATHWAY_DELETE,
    AFTER_PATHWAY_SAVE,
    BEFORE_PATHWAY_DELETE,
    BEFORE_PATHWAY_SAVE,
    hooks,
)
from sustainwdn.ordering import CollectionView, SQLAlchemyCollectionBackend

DEFAULT_ICON = "BookOpen"

_UNSET = object()  # Sentinel for distinguishing None from "not provided"


def pathway_collection(db_session: AsyncSession) -> SQLAlchemyCollectionBackend:
    return SQLAlchemyCollectionBackend(db_session, CareerPathway, name="pathways")


def pathway_view(db_session: AsyncSession, notifier: Notifier | None = None) -> CollectionView:
    """Ordered view of every pathway, reporting as "pathway order"."""
    return CollectionView(pathway_collection(db_session), notifier=notifier, label="pathway order")


async def list_pathways(db_session: AsyncSession) -> list[CareerPathway]:
    """All pathways ascending by display order."""
    items = await pathway_collection(db_session).fetch()
    return [item.payload for item in items]


async def get_pathway_by_id(db_session: AsyncSession, pathway_id: UUID) -> CareerPathway | None:
    item = await pathway_collection(db_session).get(pathway_id)
    return item.payload if item else None


async def create_pathway(
    db_session: AsyncSession,
    title: str,
    description: str = "",
    icon: str = DEFAULT_ICON,
    requirements: list[str] | None = None,
    salary_range: str | None = None,
    skills: list[str] | None = None,
) -> CareerPathway:
    """Create a pathway at the end of the current order.

    Args:
        db_session: Database session
        title: Pathway title
        description: Plain-text description, stored as {"content": ...}
        icon: Icon name shown on the explore page
        requirements: Requirement lines, stored as [{"content": ...}]
        salary_range: Free-form salary range
        skills: Skill names

    Returns:
        Created CareerPathway
    """
    pathway = CareerPathway(
        title=title,
        description={"content": description},
        icon=icon or DEFAULT_ICON,
        requirements=[{"content": r} for r in requirements] if requirements else None,
        salary_range=salary_range,
        skills=skills or None,
    )

    await hooks.do_action(BEFORE_PATHWAY_SAVE, pathway, is_new=True)
    await pathway_collection(db_session).insert(pathway)
    await hooks.do_action(AFTER_PATHWAY_SAVE, pathway, is_new=True)

    return pathway


async def update_pathway(
    db_session: AsyncSession,
    pathway_id: UUID,
    title: str | None = None,
    description: str | None = None,
    icon: str | None = None,
    requirements: list[str] | None | object = _UNSET,
    salary_range: str | None | object = _UNSET,
    skills: list[str] | None | object = _UNSET,
) -> CareerPathway | None:
    """Update a pathway's fields. The display order is never touched here.

    Returns:
        Updated CareerPathway or None if not found
    """
    pathway = await get_pathway_by_id(db_session, pathway_id)
    if not pathway:
        return None

    await hooks.do_action(BEFORE_PATHWAY_SAVE, pathway, is_new=False)

    values: dict[str, Any] = {}
    if title is not None:
        values["title"] = title
    if description is not None:
        values["description"] = {"content": description}
    if icon is not None:
        values["icon"] = icon or DEFAULT_ICON
    if requirements is not _UNSET:
        values["requirements"] = [{"content": r} for r in requirements] if requirements else None
    if salary_range is not _UNSET:
        values["salary_range"] = salary_range
    if skills is not _UNSET:
        values["skills"] = skills or None

    item = await pathway_collection(db_session).update(pathway_id, values)
    if item is None:
        return None
    pathway = item.payload

    await hooks.do_action(AFTER_PATHWAY_SAVE, pathway, is_new=False)

    return pathway


async def delete_pathway(db_session: AsyncSession, pathway_id: UUID) -> bool:
    """Delete a pathway. Its jobs stay, unassigned.

    Returns:
        True if deleted, False if not found
    """
    pathway = await get_pathway_by_id(db_session, pathway_id)
    if not pathway:
        return False

    await hooks.do_action(BEFORE_PATHWAY_DELETE, pathway)
    deleted = await pathway_collection(db_session).delete(pathway_id)
    await hooks.do_action(AFTER_PATHWAY_DELETE, pathway)

    return deleted


def pathway_requirements(pathway: CareerPathway) -> list[str]:
    return [r.get("content", "") for r in (pathway.requirements or []) if isinstance(r, dict)]


def as_dict(pathway: CareerPathway) -> dict[str, Any]:
    """JSON-friendly representation used by the admin reorder endpoint."""
    return {
        "id": str(pathway.id),
        "title": pathway.title,
        "display_order": pathway.display_order,
    }
