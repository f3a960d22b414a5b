from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from sustainwdn.db.base import Base

ADMIN_ROLE = "admin"
USER_ROLE = "user"


class Profile(Base):
    """Per-user profile. ``id`` is the identity provider's user id."""

    __tablename__ = "profiles"

    first_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    phone_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    country: Mapped[str | None] = mapped_column(String(8), nullable=True)
    timezone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    resume_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    role: Mapped[str | None] = mapped_column(String(32), nullable=True)

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE
