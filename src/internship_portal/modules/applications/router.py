"""
Internship Applications Router

API endpoints for the internship application flow.
All endpoints are public (no authentication required).

Endpoints:
- POST /applications - Submit a new internship application
- GET /applications - List applications (paginated, newest first)
- GET /applications/stats - Application counts by status
- GET /applications/{application_id} - Get a single application
- PATCH /applications/{application_id}/status - Change application status

Security:
- Rate limiting per client IP (strict on submission)
- Input validation via Pydantic schemas
- XSS prevention in email templates
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from internship_portal.core.config import settings
from internship_portal.core.database import get_db
from internship_portal.core.rate_limit import client_ip_key, rate_limit
from internship_portal.modules.applications import service
from internship_portal.modules.applications.models import ApplicationStatus
from internship_portal.modules.applications.schemas import (
    ApplicationCreate,
    ApplicationDetail,
    ApplicationListResponse,
    ApplicationResponse,
    ApplicationStatsResponse,
    ApplicationSubmitResponse,
    ErrorResponse,
    StatusUpdateRequest,
    ValidationErrorResponse,
)
from internship_portal.modules.applications.service import ApplicationServiceError

logger = logging.getLogger(__name__)

router = APIRouter()

submit_rate_limit = rate_limit(
    limit=settings.effective_submit_rate_limit,
    window_seconds=settings.submit_rate_window_seconds,
    key_func=client_ip_key("submit"),
)

api_rate_limit = rate_limit(
    limit=settings.api_rate_limit,
    window_seconds=settings.api_rate_window_seconds,
    key_func=client_ip_key("api"),
)


# ============================================
# Helper Functions
# ============================================


def _handle_service_error(e: ApplicationServiceError) -> None:
    """Convert service errors to HTTPExceptions."""
    raise HTTPException(
        status_code=e.status_code,
        detail={
            "success": False,
            "error": e.error_code,
            "message": e.message,
        },
    ) from e


def _internal_error(message: str) -> HTTPException:
    """Build the generic 500 response for unexpected errors."""
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={
            "success": False,
            "error": "INTERNAL_ERROR",
            "message": message,
        },
    )


# ============================================
# Endpoints
# ============================================


@router.post(
    "",
    response_model=ApplicationSubmitResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit Internship Application",
    description="""
Submit a new internship application.

After submission:
1. The application receives a public ID (INT-<year>-<sequence>)
2. A confirmation email is sent to the applicant
3. A notification email is sent to the admin inbox

Emails are sent in the background; a failed email does not fail the submission.

**Duplicate Prevention:**
- Only one application allowed per email address
""",
    responses={
        201: {
            "description": "Application created successfully",
            "model": ApplicationSubmitResponse,
        },
        400: {
            "description": "Validation error - every invalid field is listed",
            "model": ValidationErrorResponse,
        },
        409: {
            "description": "An application already exists for this email",
            "model": ErrorResponse,
        },
        429: {
            "description": "Too many submissions from this IP",
        },
        500: {
            "description": "Application could not be stored",
            "model": ErrorResponse,
        },
    },
)
@submit_rate_limit
async def submit_application(
    request: Request,
    data: ApplicationCreate,
    db: AsyncSession = Depends(get_db),
) -> ApplicationSubmitResponse:
    """
    Submit a new internship application.

    Args:
        request: Incoming request (used for rate limiting)
        data: Validated application form
        db: Database session (injected)

    Returns:
        Success flag, message and the new application ID

    Raises:
        HTTPException 409: If an application already exists for the email
        HTTPException 500: If the application could not be stored
    """
    try:
        response = await service.submit_application(db, data)

        logger.info(f"Application submitted successfully: id={response.application_id}")

        return response

    except ApplicationServiceError as e:
        logger.warning(f"Application submission rejected: {e.error_code} - {e.message}")
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Unexpected error submitting application: {e}")
        raise _internal_error("Failed to submit application. Please try again later.") from e


@router.get(
    "",
    response_model=ApplicationListResponse,
    summary="List Applications",
    description="""
Get a paginated list of applications, newest first.

**Filters:**
- `status`: Filter by application status

**Pagination:**
- `page`: 1-based page number. Default: 1
- `limit`: Maximum records per page (1-100). Default: 20
""",
)
@api_rate_limit
async def list_applications(
    request: Request,
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(
        service.DEFAULT_PAGE_SIZE,
        ge=1,
        le=service.MAX_PAGE_SIZE,
        description="Maximum records to return",
    ),
    status: ApplicationStatus | None = Query(None, description="Filter by application status"),
    db: AsyncSession = Depends(get_db),
) -> ApplicationListResponse:
    """List applications with optional status filter and pagination."""
    try:
        result = await service.list_applications(db, page=page, limit=limit, status=status)

        logger.info(
            f"Listed applications: total={result.total}, returned={len(result.applications)}"
        )

        return result

    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error listing applications: {e}")
        raise _internal_error("Failed to fetch applications") from e


@router.get(
    "/stats",
    response_model=ApplicationStatsResponse,
    summary="Get Application Statistics",
    description="Counts of applications in total and per status.",
)
@api_rate_limit
async def get_stats(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> ApplicationStatsResponse:
    """Get application counts by status."""
    try:
        stats = await service.get_stats(db)
        return ApplicationStatsResponse(stats=stats)
    except Exception as e:
        logger.exception(f"Error getting application stats: {e}")
        raise _internal_error("Failed to fetch statistics") from e


@router.get(
    "/{application_id}",
    response_model=ApplicationResponse,
    summary="Get Application",
    responses={
        404: {"description": "Application not found", "model": ErrorResponse},
    },
)
@api_rate_limit
async def get_application(
    request: Request,
    application_id: str,
    db: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    """Get a single application by its public ID."""
    try:
        application = await service.get_application(db, application_id)
        return ApplicationResponse(application=ApplicationDetail.model_validate(application))
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error getting application {application_id}: {e}")
        raise _internal_error("Failed to fetch application") from e


@router.patch(
    "/{application_id}/status",
    response_model=ApplicationResponse,
    summary="Update Application Status",
    description="""
Move an application to a new status.

**Allowed transitions:**
- `pending` -> `reviewed`, `accepted`, `rejected`
- `reviewed` -> `accepted`, `rejected`
- `accepted` and `rejected` are final
""",
    responses={
        404: {"description": "Application not found", "model": ErrorResponse},
        409: {"description": "Transition not allowed", "model": ErrorResponse},
    },
)
@api_rate_limit
async def update_application_status(
    request: Request,
    application_id: str,
    data: StatusUpdateRequest,
    db: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    """Change the status of an application."""
    try:
        application = await service.update_application_status(db, application_id, data.status)

        logger.info(f"Application {application_id} status set to {data.status.value}")

        return ApplicationResponse(application=ApplicationDetail.model_validate(application))
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error updating status of application {application_id}: {e}")
        raise _internal_error("Failed to update application status") from e
