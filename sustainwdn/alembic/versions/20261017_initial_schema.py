"""Create career pathway, job role and profile tables.

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-17
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "a1b2c3d4e5f6"
down_revision = None
branch_labels = None
depends_on = None

JSON = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def _audit_columns() -> list[sa.Column]:
    return [
        sa.Column("sa_orm_sentinel", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "career_pathways",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", JSON, nullable=False),
        sa.Column("icon", sa.String(64), nullable=False, server_default="BookOpen"),
        sa.Column("requirements", JSON, nullable=True),
        sa.Column("salary_range", sa.String(255), nullable=True),
        sa.Column("skills", JSON, nullable=True),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
        *_audit_columns(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_career_pathways_display_order", "career_pathways", ["display_order"])

    op.create_table(
        "job_roles",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("pathway_id", sa.Uuid(), nullable=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", JSON, nullable=False),
        sa.Column("level", sa.String(32), nullable=False, server_default="entry"),
        sa.Column("salary", sa.String(255), nullable=True),
        sa.Column("projections", sa.Text(), nullable=True),
        sa.Column("certificates_degrees", JSON, nullable=True),
        sa.Column("tasks_responsibilities", JSON, nullable=True),
        sa.Column("licenses", JSON, nullable=True),
        sa.Column("job_projections", JSON, nullable=True),
        sa.Column("resources", JSON, nullable=True),
        sa.Column("related_jobs", JSON, nullable=True),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
        *_audit_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["pathway_id"], ["career_pathways.id"], ondelete="SET NULL"),
    )
    op.create_index("ix_job_roles_pathway_id", "job_roles", ["pathway_id"])
    op.create_index("ix_job_roles_display_order", "job_roles", ["display_order"])

    op.create_table(
        "profiles",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("first_name", sa.String(255), nullable=True),
        sa.Column("last_name", sa.String(255), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("phone_number", sa.String(64), nullable=True),
        sa.Column("country", sa.String(8), nullable=True),
        sa.Column("timezone", sa.String(64), nullable=True),
        sa.Column("avatar_url", sa.String(1024), nullable=True),
        sa.Column("resume_url", sa.String(1024), nullable=True),
        sa.Column("role", sa.String(32), nullable=True),
        *_audit_columns(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_profiles_email", "profiles", ["email"])


def downgrade() -> None:
    op.drop_index("ix_profiles_email", table_name="profiles")
    op.drop_table("profiles")
    op.drop_index("ix_job_roles_display_order", table_name="job_roles")
    op.drop_index("ix_job_roles_pathway_id", table_name="job_roles")
    op.drop_table("job_roles")
    op.drop_index("ix_career_pathways_display_order", table_name="career_pathways")
    op.drop_table("career_pathways")
