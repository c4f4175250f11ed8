"""create internship applications and sequence counters

Revision ID: a7c1e2d3f4b5
Revises:
Create Date: 2026-10-19 10:00:00.000000

This migration:
1. Creates the sequence_counters table backing public application IDs
2. Creates the internship_applications table with its enum types

The email unique constraint is what rejects concurrent duplicate
submissions, so it must exist before the API accepts traffic.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "a7c1e2d3f4b5"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

APPLICATION_STATUS_VALUES = ("pending", "reviewed", "accepted", "rejected")

INTERNSHIP_DOMAIN_VALUES = (
    "Web Development",
    "Mobile Development",
    "Data Science",
    "Machine Learning",
    "DevOps",
    "Cloud Computing",
    "Cybersecurity",
    "UI/UX Design",
    "Other",
)


def upgrade() -> None:
    """Create sequence_counters and internship_applications tables."""
    op.create_table(
        "sequence_counters",
        sa.Column("name", sa.String(length=64), nullable=False),
        sa.Column("value", sa.Integer(), server_default="0", nullable=False),
        sa.PrimaryKeyConstraint("name"),
    )

    op.create_table(
        "internship_applications",
        # Primary key and public identifier
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("application_id", sa.String(length=32), nullable=False),
        # Personal information
        sa.Column("full_name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=20), nullable=False),
        # Education
        sa.Column("university", sa.String(length=200), nullable=False),
        sa.Column("degree", sa.String(length=200), nullable=False),
        sa.Column("major", sa.String(length=200), nullable=False),
        sa.Column("graduation_year", sa.Integer(), nullable=False),
        sa.Column("cgpa", sa.Float(), nullable=False),
        # Preferences
        sa.Column(
            "preferred_domain",
            sa.Enum(*INTERNSHIP_DOMAIN_VALUES, name="internship_domain"),
            nullable=False,
        ),
        sa.Column("skills", sa.JSON(), nullable=False),
        # Optional links
        sa.Column("resume_link", sa.String(length=500), nullable=True),
        sa.Column("github_profile", sa.String(length=500), nullable=True),
        sa.Column("linkedin_profile", sa.String(length=500), nullable=True),
        sa.Column("cover_letter", sa.Text(), nullable=True),
        # Status tracking
        sa.Column(
            "status",
            sa.Enum(*APPLICATION_STATUS_VALUES, name="application_status"),
            nullable=False,
        ),
        sa.Column(
            "submitted_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        # Audit timestamps
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="uq_internship_applications_email"),
        sa.UniqueConstraint("application_id", name="uq_internship_applications_application_id"),
    )

    op.create_index(
        "ix_internship_applications_status",
        "internship_applications",
        ["status"],
        unique=False,
    )
    op.create_index(
        "ix_internship_applications_submitted_at",
        "internship_applications",
        ["submitted_at"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_internship_applications_submitted_at", table_name="internship_applications")
    op.drop_index("ix_internship_applications_status", table_name="internship_applications")
    op.drop_table("internship_applications")
    op.drop_table("sequence_counters")

    # Enum types outlive their tables on PostgreSQL
    sa.Enum(name="application_status").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="internship_domain").drop(op.get_bind(), checkfirst=True)
