"""
Internship Applications Models

Database models for internship applications and the named sequence counters
used to derive public application identifiers (INT-<year>-<seq>).
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    DateTime,
    Enum,
    Float,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from internship_portal.core.database import Base


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    """Persist enum values (not member names) in the database."""
    return [member.value for member in enum_cls]


class ApplicationStatus(str, enum.Enum):
    """Status of an internship application."""

    PENDING = "pending"
    REVIEWED = "reviewed"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class InternshipDomain(str, enum.Enum):
    """Internship domains an applicant can choose from."""

    WEB_DEVELOPMENT = "Web Development"
    MOBILE_DEVELOPMENT = "Mobile Development"
    DATA_SCIENCE = "Data Science"
    MACHINE_LEARNING = "Machine Learning"
    DEVOPS = "DevOps"
    CLOUD_COMPUTING = "Cloud Computing"
    CYBERSECURITY = "Cybersecurity"
    UI_UX_DESIGN = "UI/UX Design"
    OTHER = "Other"


class InternshipApplication(Base):
    """
    Internship application.

    Stores everything submitted through the public application form.
    `application_id` is the public identifier; it is assigned once, in the
    same transaction that inserts the row, and never changes afterwards.
    """

    __tablename__ = "internship_applications"

    # Primary key (internal)
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # Public identifier, e.g. INT-2026-0007
    application_id: Mapped[str] = mapped_column(String(32), nullable=False)

    # Personal information
    full_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(20), nullable=False)

    # Education
    university: Mapped[str] = mapped_column(String(200), nullable=False)
    degree: Mapped[str] = mapped_column(String(200), nullable=False)
    major: Mapped[str] = mapped_column(String(200), nullable=False)
    graduation_year: Mapped[int] = mapped_column(Integer, nullable=False)
    cgpa: Mapped[float] = mapped_column(Float, nullable=False)

    # Preferences
    preferred_domain: Mapped[InternshipDomain] = mapped_column(
        Enum(InternshipDomain, name="internship_domain", values_callable=_enum_values),
        nullable=False,
    )
    skills: Mapped[list] = mapped_column(JSON, nullable=False)

    # Optional links
    resume_link: Mapped[str | None] = mapped_column(String(500), nullable=True)
    github_profile: Mapped[str | None] = mapped_column(String(500), nullable=True)
    linkedin_profile: Mapped[str | None] = mapped_column(String(500), nullable=True)

    cover_letter: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Status tracking
    status: Mapped[ApplicationStatus] = mapped_column(
        Enum(ApplicationStatus, name="application_status", values_callable=_enum_values),
        nullable=False,
        default=ApplicationStatus.PENDING,
    )
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # Audit timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        # The email constraint is the authoritative duplicate guard
        UniqueConstraint("email", name="uq_internship_applications_email"),
        UniqueConstraint("application_id", name="uq_internship_applications_application_id"),
        Index("ix_internship_applications_status", "status"),
        Index("ix_internship_applications_submitted_at", "submitted_at"),
    )


class SequenceCounter(Base):
    """
    Durable named counter.

    Incremented only through a single atomic upsert (see sequence.allocate_next).
    """

    __tablename__ = "sequence_counters"

    name: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
