"""
Internship Applications Repository

Async data access for internship applications. Functions take the session
from the caller; only create() and update_status() commit.

Emails are stored lowercased and timestamps are UTC.
"""

import contextlib
import logging
from datetime import UTC, datetime

from sqlalchemy import delete, desc, func, select
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .models import ApplicationStatus, InternshipApplication
from .schemas import ApplicationCreate
from .sequence import StorageUnavailableError

logger = logging.getLogger(__name__)

EMAIL_CONSTRAINT_NAME = "uq_internship_applications_email"


class EmailAlreadyExistsError(ValueError):
    """Raised when the unique email constraint rejects an insert."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"An application with email {email} already exists")


def _is_email_violation(error: IntegrityError) -> bool:
    """Check whether an IntegrityError came from the unique email constraint."""
    message = str(error.orig).lower()
    return EMAIL_CONSTRAINT_NAME in message or "internship_applications.email" in message


def build(data: ApplicationCreate, application_id: str) -> InternshipApplication:
    """
    Construct (but do not persist) an application record.

    The public identifier is a constructor argument: a record never exists
    without one.
    """
    return InternshipApplication(
        application_id=application_id,
        # Personal
        full_name=data.full_name,
        email=data.email,
        phone=data.phone,
        # Education
        university=data.university,
        degree=data.degree,
        major=data.major,
        graduation_year=data.graduation_year,
        cgpa=data.cgpa,
        # Preferences
        preferred_domain=data.preferred_domain,
        skills=list(data.skills),
        # Links
        resume_link=str(data.resume_link) if data.resume_link else None,
        github_profile=str(data.github_profile) if data.github_profile else None,
        linkedin_profile=str(data.linkedin_profile) if data.linkedin_profile else None,
        cover_letter=data.cover_letter,
        status=ApplicationStatus.PENDING,
        submitted_at=datetime.now(UTC),
    )


async def _rollback_quietly(db: AsyncSession) -> None:
    # Connection may already be gone
    with contextlib.suppress(SQLAlchemyError, OSError):
        await db.rollback()


async def create(
    db: AsyncSession,
    data: ApplicationCreate,
    application_id: str,
) -> InternshipApplication:
    """
    Insert a new application and commit the current transaction.

    Anything already executed in the session's transaction (the sequence
    increment) is committed together with the insert, or rolled back with it.

    Raises:
        EmailAlreadyExistsError: If the email is already registered
        StorageUnavailableError: If the store cannot be reached
    """
    new_application = build(data, application_id)
    db.add(new_application)

    try:
        await db.commit()
    except IntegrityError as e:
        await _rollback_quietly(db)
        if _is_email_violation(e):
            raise EmailAlreadyExistsError(data.email) from e
        raise
    except (OperationalError, InterfaceError, OSError) as e:
        await _rollback_quietly(db)
        raise StorageUnavailableError("Unable to persist application") from e

    # Already committed; a failed reload is only logged
    try:
        await db.refresh(new_application)
    except (SQLAlchemyError, OSError) as e:
        logger.warning(f"Could not reload application {application_id} after commit: {e}")

    return new_application


async def rollback(db: AsyncSession) -> None:
    """Discard the session's current transaction."""
    await _rollback_quietly(db)


async def get_by_email(db: AsyncSession, email: str) -> InternshipApplication | None:
    """Get application by (lower-cased) email."""
    result = await db.execute(
        select(InternshipApplication).where(InternshipApplication.email == email.lower())
    )
    return result.scalar_one_or_none()


async def get_by_application_id(
    db: AsyncSession, application_id: str
) -> InternshipApplication | None:
    """Get application by its public identifier."""
    result = await db.execute(
        select(InternshipApplication).where(
            InternshipApplication.application_id == application_id
        )
    )
    return result.scalar_one_or_none()


async def get_applications(
    db: AsyncSession,
    *,
    status: ApplicationStatus | None = None,
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[InternshipApplication], int]:
    """
    Get applications with optional status filter, newest first.

    Args:
        db: Database session
        status: Filter by application status (optional)
        skip: Number of records to skip
        limit: Maximum records to return

    Returns:
        Tuple of (list of applications, total count matching filters)
    """
    query = select(InternshipApplication)

    if status:
        query = query.where(InternshipApplication.status == status)

    count_query = select(func.count()).select_from(query.subquery())
    total_result = await db.execute(count_query)
    total = total_result.scalar() or 0

    query = (
        query.order_by(
            desc(InternshipApplication.submitted_at),
            desc(InternshipApplication.application_id),
        )
        .offset(skip)
        .limit(limit)
    )

    result = await db.execute(query)
    return list(result.scalars().all()), total


async def get_status_counts(db: AsyncSession) -> dict[str, int]:
    """
    Count applications per status.

    Returns:
        Dict with total plus one key per ApplicationStatus value
        (statuses with no applications are reported as 0)
    """
    result = await db.execute(
        select(InternshipApplication.status, func.count()).group_by(InternshipApplication.status)
    )

    counts = {status.value: 0 for status in ApplicationStatus}
    for status, count in result.all():
        counts[ApplicationStatus(status).value] = count

    return {"total": sum(counts.values()), **counts}


# Review workflow; accepted and rejected are final
VALID_STATUS_TRANSITIONS: dict[ApplicationStatus, set[ApplicationStatus]] = {
    ApplicationStatus.PENDING: {
        ApplicationStatus.REVIEWED,
        ApplicationStatus.ACCEPTED,
        ApplicationStatus.REJECTED,
    },
    ApplicationStatus.REVIEWED: {
        ApplicationStatus.ACCEPTED,
        ApplicationStatus.REJECTED,
    },
    ApplicationStatus.ACCEPTED: set(),
    ApplicationStatus.REJECTED: set(),
}


class InvalidStatusTransitionError(ValueError):
    """The state machine does not allow moving between these statuses."""

    def __init__(self, current_status: ApplicationStatus, new_status: ApplicationStatus):
        self.current_status = current_status
        self.new_status = new_status
        allowed = sorted(s.value for s in allowed_transitions(current_status))
        super().__init__(
            f"Cannot move application from {current_status.value} to {new_status.value} "
            f"(allowed: {', '.join(allowed) or 'none'})"
        )


def allowed_transitions(current_status: ApplicationStatus) -> set[ApplicationStatus]:
    return VALID_STATUS_TRANSITIONS.get(current_status, set())


async def update_status(
    db: AsyncSession,
    application_id: str,
    status: ApplicationStatus,
) -> InternshipApplication:
    """
    Update application status.

    Validates the transition against the state machine. Setting the current
    status again is a no-op.

    Raises:
        ValueError: If application not found
        InvalidStatusTransitionError: If status transition is not allowed
    """
    application = await get_by_application_id(db, application_id)
    if not application:
        raise ValueError(f"Application {application_id} not found")

    if status != application.status and status not in allowed_transitions(application.status):
        raise InvalidStatusTransitionError(application.status, status)

    application.status = status

    await db.commit()
    await db.refresh(application)

    return application


# ============================================
# Maintenance
# ============================================


async def get_all(db: AsyncSession) -> list[InternshipApplication]:
    """Get every application, newest first."""
    result = await db.execute(
        select(InternshipApplication).order_by(desc(InternshipApplication.submitted_at))
    )
    return list(result.scalars().all())


async def delete_all(db: AsyncSession) -> int:
    """Delete every application. The caller commits."""
    result = await db.execute(delete(InternshipApplication))
    return result.rowcount or 0
