from typing import TYPE_CHECKING, Any
from uuid import UUID

from advanced_alchemy.types import JsonB
from sqlalchemy import ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sustainwdn.db.base import Base

if TYPE_CHECKING:
    from sustainwdn.db.models.pathway import CareerPathway

JOB_LEVELS = ("entry", "mid", "advanced")


class JobRole(Base):
    """A job role belonging to (at most) one career pathway."""

    __tablename__ = "job_roles"

    # Scope of the ordered collection
    pathway_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("career_pathways.id", ondelete="SET NULL"), nullable=True, index=True
    )
    pathway: Mapped["CareerPathway | None"] = relationship(
        "CareerPathway", back_populates="jobs", lazy="selectin"
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Any] = mapped_column(JsonB, nullable=False, default=dict)
    level: Mapped[str] = mapped_column(String(32), nullable=False, default="entry")
    salary: Mapped[str | None] = mapped_column(String(255), nullable=True)
    projections: Mapped[str | None] = mapped_column(Text, nullable=True)

    certificates_degrees: Mapped[dict[str, Any] | None] = mapped_column(JsonB, nullable=True)
    tasks_responsibilities: Mapped[dict[str, Any] | None] = mapped_column(JsonB, nullable=True)
    licenses: Mapped[list[str] | None] = mapped_column(JsonB, nullable=True)
    job_projections: Mapped[list[str] | None] = mapped_column(JsonB, nullable=True)
    resources: Mapped[list[Any] | None] = mapped_column(JsonB, nullable=True)
    related_jobs: Mapped[list[Any] | None] = mapped_column(JsonB, nullable=True)

    # Ordering field, ranked within pathway_id
    display_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False, index=True)
