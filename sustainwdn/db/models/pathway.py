from typing import TYPE_CHECKING, Any

from advanced_alchemy.types import JsonB
from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sustainwdn.db.base import Base

if TYPE_CHECKING:
    from sustainwdn.db.models.job import JobRole


class CareerPathway(Base):
    """A career pathway shown on the explore page."""

    __tablename__ = "career_pathways"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    # Stored as {"content": "..."}
    description: Mapped[dict[str, Any]] = mapped_column(JsonB, nullable=False, default=dict)
    icon: Mapped[str] = mapped_column(String(64), nullable=False, default="BookOpen")
    requirements: Mapped[list[dict[str, Any]] | None] = mapped_column(JsonB, nullable=True)
    salary_range: Mapped[str | None] = mapped_column(String(255), nullable=True)
    skills: Mapped[list[str] | None] = mapped_column(JsonB, nullable=True)

    # Ordering field
    display_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False, index=True)

    jobs: Mapped[list["JobRole"]] = relationship(
        "JobRole",
        back_populates="pathway",
        order_by="JobRole.display_order",
    )

    @property
    def description_text(self) -> str:
        return (self.description or {}).get("content", "")
