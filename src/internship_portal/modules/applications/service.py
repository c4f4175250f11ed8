"""
Internship Applications Service Layer

Business logic for internship applications.
Orchestrates repository operations, identifier allocation and email notifications.

This module implements:
1. Application Submission Flow:
   - Reject emails that already have an application
   - Allocate the next public ID (INT-<year>-<seq>) from the durable counter
   - Store the application with its ID in the same transaction
   - Dispatch applicant and admin emails in the background

2. Admin Views:
   - Paginated listing (newest first, optional status filter)
   - Counts by status
   - Single application lookup

3. Status Updates:
   - State machine enforced by the repository
     (pending -> reviewed/accepted/rejected, reviewed -> accepted/rejected)

Consistency considerations:
- The email unique constraint is the authoritative duplicate guard; the
  pre-check only avoids burning a transaction on obvious duplicates
- Counter increment and insert commit or roll back together, so a failed
  submission never consumes an identifier
- Notification failures never affect the submission response
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from internship_portal.modules.applications import notifications, repository, sequence
from internship_portal.modules.applications.helpers import calculate_total_pages, page_to_offset
from internship_portal.modules.applications.models import ApplicationStatus, InternshipApplication
from internship_portal.modules.applications.schemas import (
    ApplicationCreate,
    ApplicationDetail,
    ApplicationListResponse,
    ApplicationStats,
    ApplicationSubmitResponse,
)

logger = logging.getLogger(__name__)

# Pagination
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

DUPLICATE_APPLICATION_MESSAGE = "An application with this email already exists"
SUBMISSION_FAILED_MESSAGE = "Failed to submit application. Please try again later."


class ApplicationServiceError(Exception):
    """Base exception for application service errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class DuplicateApplicationError(ApplicationServiceError):
    """Raised when an application already exists for the email."""

    def __init__(self, message: str = DUPLICATE_APPLICATION_MESSAGE):
        super().__init__(
            message=message,
            error_code="DUPLICATE_APPLICATION",
            status_code=409,
        )


class SubmissionFailedError(ApplicationServiceError):
    """Raised when the application could not be stored."""

    def __init__(self, message: str = SUBMISSION_FAILED_MESSAGE):
        super().__init__(
            message=message,
            error_code="SUBMISSION_FAILED",
            status_code=500,
        )


class ApplicationNotFoundError(ApplicationServiceError):
    """Raised when an application is not found."""

    def __init__(self, application_id: str | None = None):
        message = (
            f"Application {application_id} not found" if application_id else "Application not found"
        )
        super().__init__(
            message=message,
            error_code="APPLICATION_NOT_FOUND",
            status_code=404,
        )


class InvalidStatusChangeError(ApplicationServiceError):
    """Raised when a status change is not allowed from the current status."""

    def __init__(self, current_status: ApplicationStatus, new_status: ApplicationStatus):
        super().__init__(
            message=(
                f"Cannot change status from '{current_status.value}' to '{new_status.value}'"
            ),
            error_code="INVALID_STATUS_TRANSITION",
            status_code=409,
        )


async def _check_duplicate_email(db: AsyncSession, email: str) -> None:
    """
    Check whether an application already exists for this email.

    Raises:
        DuplicateApplicationError: If an application already exists
    """
    existing = await repository.get_by_email(db, email)
    if existing:
        logger.warning(f"Duplicate application attempt: email={email}")
        raise DuplicateApplicationError()


async def submit_application(
    db: AsyncSession,
    data: ApplicationCreate,
) -> ApplicationSubmitResponse:
    """
    Submit a new internship application.

    This is the main entry point of the public form. It:
    1. Rejects emails that already have an application
    2. Allocates the next application ID
    3. Stores the application (ID allocation and insert commit together)
    4. Dispatches the applicant and admin emails without waiting for them

    Args:
        db: Database session
        data: Validated application data

    Returns:
        ApplicationSubmitResponse with the new application ID

    Raises:
        DuplicateApplicationError: If an application already exists for the email
        SubmissionFailedError: If the store fails during allocation or insert
    """
    logger.info(f"Processing application submission for {data.email}")

    try:
        await _check_duplicate_email(db, data.email)

        application_id = await sequence.allocate_application_id(db)
        application = await repository.create(db, data, application_id)
    except repository.EmailAlreadyExistsError as e:
        # Lost the race against a concurrent submission with the same email
        logger.warning(f"Duplicate application rejected by constraint: email={data.email}")
        raise DuplicateApplicationError() from e
    except (sequence.StorageUnavailableError, SQLAlchemyError) as e:
        await repository.rollback(db)
        logger.error(f"Application submission failed for {data.email}: {e}")
        raise SubmissionFailedError() from e

    logger.info(f"Created application {application.application_id} for {application.email}")

    # Snapshot before dispatch so the background task never touches the session
    snapshot = ApplicationDetail.model_validate(application)
    notifications.dispatch_notifications(snapshot)

    return ApplicationSubmitResponse(application_id=application.application_id)


async def list_applications(
    db: AsyncSession,
    *,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
    status: ApplicationStatus | None = None,
) -> ApplicationListResponse:
    """
    Get a page of applications, newest first.

    Args:
        db: Database session
        page: 1-based page number
        limit: Page size (capped at MAX_PAGE_SIZE)
        status: Optional status filter

    Returns:
        ApplicationListResponse with the page and pagination totals
    """
    page = max(1, page)
    limit = min(max(1, limit), MAX_PAGE_SIZE)

    logger.info(f"Listing applications: status={status}, page={page}, limit={limit}")

    applications, total = await repository.get_applications(
        db,
        status=status,
        skip=page_to_offset(page, limit),
        limit=limit,
    )

    return ApplicationListResponse(
        applications=[ApplicationDetail.model_validate(app) for app in applications],
        total=total,
        total_pages=calculate_total_pages(total, limit),
        current_page=page,
        limit=limit,
    )


async def get_stats(db: AsyncSession) -> ApplicationStats:
    """Get application counts by status."""
    counts = await repository.get_status_counts(db)
    logger.info(f"Application stats: {counts}")
    return ApplicationStats(**counts)


async def get_application(
    db: AsyncSession,
    application_id: str,
) -> InternshipApplication:
    """
    Get an application by its public ID.

    Raises:
        ApplicationNotFoundError: If the application doesn't exist
    """
    application = await repository.get_by_application_id(db, application_id)

    if not application:
        logger.warning(f"Application not found: {application_id}")
        raise ApplicationNotFoundError(application_id)

    return application


async def update_application_status(
    db: AsyncSession,
    application_id: str,
    new_status: ApplicationStatus,
) -> InternshipApplication:
    """
    Move an application to a new status.

    Args:
        db: Database session
        application_id: Public application ID
        new_status: Target status

    Returns:
        Updated InternshipApplication

    Raises:
        ApplicationNotFoundError: If the application doesn't exist
        InvalidStatusChangeError: If the transition is not allowed
    """
    logger.info(f"Updating application {application_id} status to {new_status.value}")

    # Validate existence first for a clean 404
    await get_application(db, application_id)

    try:
        updated = await repository.update_status(db, application_id, new_status)
    except repository.InvalidStatusTransitionError as e:
        logger.warning(f"Status transition rejected for {application_id}: {e}")
        raise InvalidStatusChangeError(e.current_status, e.new_status) from e

    logger.info(f"Application {application_id} is now {updated.status.value}")
    return updated
