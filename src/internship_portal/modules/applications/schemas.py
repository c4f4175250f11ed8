"""
Internship Applications Schemas

Pydantic schemas for request validation and response serialization.
JSON bodies use camelCase keys (fullName, graduationYear, ...) to match the
public application form; Python code uses snake_case attribute names.
"""

from datetime import datetime
from typing import Annotated
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    HttpUrl,
    UrlConstraints,
    field_validator,
)
from pydantic.alias_generators import to_camel

# Re-use enums from models (they work with Pydantic too!)
from internship_portal.modules.applications.models import ApplicationStatus, InternshipDomain

GRADUATION_YEAR_MIN = 2024
GRADUATION_YEAR_MAX = 2030
COVER_LETTER_MAX_LENGTH = 1000
LINK_MAX_LENGTH = 500  # matches the String(500) link columns

LinkUrl = Annotated[HttpUrl, UrlConstraints(max_length=LINK_MAX_LENGTH)]


class CamelModel(BaseModel):
    """Base schema serializing to camelCase and accepting either spelling."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ApplicationCreate(CamelModel):
    """Request body for POST /applications."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    # Personal information
    full_name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    phone: str = Field(..., pattern=r"^[0-9]{10}$")

    # Education
    university: str = Field(..., min_length=1, max_length=200)
    degree: str = Field(..., min_length=1, max_length=200)
    major: str = Field(..., min_length=1, max_length=200)
    graduation_year: int = Field(..., ge=GRADUATION_YEAR_MIN, le=GRADUATION_YEAR_MAX)
    cgpa: float = Field(..., ge=0, le=10)

    # Preferences
    preferred_domain: InternshipDomain
    skills: list[str]

    # Optional links
    resume_link: LinkUrl | None = None
    github_profile: LinkUrl | None = None
    linkedin_profile: LinkUrl | None = None

    cover_letter: str | None = Field(None, max_length=COVER_LETTER_MAX_LENGTH)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("skills")
    @classmethod
    def validate_skills(cls, value: list[str]) -> list[str]:
        skills = [skill.strip() for skill in value if skill and skill.strip()]
        if not skills:
            raise ValueError("At least one skill is required")
        return skills

    @field_validator(
        "resume_link", "github_profile", "linkedin_profile", "cover_letter", mode="before"
    )
    @classmethod
    def blank_to_none(cls, value):
        # The form sends empty strings for untouched optional inputs
        if isinstance(value, str) and not value.strip():
            return None
        return value


class FieldError(BaseModel):
    """A single field-level validation failure."""

    field: str
    message: str


class ValidationErrorResponse(BaseModel):
    """400 response listing every invalid field."""

    success: bool = False
    errors: list[FieldError]


class ErrorResponse(BaseModel):
    """Error response for duplicate, not-found and server failures."""

    success: bool = False
    message: str
    error: str | None = None


class ApplicationSubmitResponse(CamelModel):
    """Response after submitting an application."""

    success: bool = True
    message: str = "Application submitted successfully! Check your email for confirmation."
    application_id: str


class ApplicationDetail(CamelModel):
    """Full application as returned to the admin views and used for notifications."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: UUID
    application_id: str
    full_name: str
    email: str
    phone: str
    university: str
    degree: str
    major: str
    graduation_year: int
    cgpa: float
    preferred_domain: InternshipDomain
    skills: list[str]
    resume_link: str | None = None
    github_profile: str | None = None
    linkedin_profile: str | None = None
    cover_letter: str | None = None
    status: ApplicationStatus
    submitted_at: datetime


class ApplicationListResponse(CamelModel):
    """Paginated list of applications, newest first."""

    success: bool = True
    applications: list[ApplicationDetail]
    total: int = Field(..., ge=0)
    total_pages: int = Field(..., ge=0)
    current_page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1, le=100)


class ApplicationStats(BaseModel):
    """Application counts by status."""

    total: int = Field(..., ge=0)
    pending: int = Field(..., ge=0)
    reviewed: int = Field(..., ge=0)
    accepted: int = Field(..., ge=0)
    rejected: int = Field(..., ge=0)


class ApplicationStatsResponse(BaseModel):
    """Response for GET /applications/stats."""

    success: bool = True
    stats: ApplicationStats


class StatusUpdateRequest(BaseModel):
    """Request body for PATCH /applications/{application_id}/status."""

    status: ApplicationStatus


class ApplicationResponse(CamelModel):
    """Single application wrapper."""

    success: bool = True
    application: ApplicationDetail
