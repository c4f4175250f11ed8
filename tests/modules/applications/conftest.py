"""
Fixtures for internship applications tests.
"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from internship_portal.core.database import Base, create_engine_for_url
from internship_portal.modules.applications import repository, sequence
from internship_portal.modules.applications.models import (
    ApplicationStatus,
    InternshipApplication,
    InternshipDomain,
)
from internship_portal.modules.applications.schemas import ApplicationCreate


def make_application_payload(**overrides) -> dict:
    """Build a valid JSON body for POST /applications (camelCase keys)."""
    payload = {
        "fullName": "Ada Lovelace",
        "email": "ada@example.com",
        "phone": "9876543210",
        "university": "University of London",
        "degree": "B.Tech",
        "major": "Computer Science",
        "graduationYear": 2026,
        "cgpa": 8.7,
        "preferredDomain": "Web Development",
        "skills": ["Python", "SQL"],
        "resumeLink": "https://example.com/resume.pdf",
        "githubProfile": "https://github.com/ada",
        "linkedinProfile": "",
        "coverLetter": "I would love to join the team.",
    }
    payload.update(overrides)
    return payload


def make_application_create(**overrides) -> ApplicationCreate:
    """Build a validated ApplicationCreate."""
    return ApplicationCreate.model_validate(make_application_payload(**overrides))


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.refresh = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def application_payload():
    """Valid request body for the public form."""
    return make_application_payload()


@pytest.fixture
def sample_application_create():
    """Validated application create request."""
    return make_application_create()


@pytest.fixture
def sample_application_model():
    """A stored application, as returned by the repository."""
    return InternshipApplication(
        id=uuid4(),
        application_id="INT-2026-0001",
        full_name="Ada Lovelace",
        email="ada@example.com",
        phone="9876543210",
        university="University of London",
        degree="B.Tech",
        major="Computer Science",
        graduation_year=2026,
        cgpa=8.7,
        preferred_domain=InternshipDomain.WEB_DEVELOPMENT,
        skills=["Python", "SQL"],
        resume_link="https://example.com/resume.pdf",
        github_profile="https://github.com/ada",
        linkedin_profile=None,
        cover_letter="I would love to join the team.",
        status=ApplicationStatus.PENDING,
        submitted_at=datetime(2026, 3, 1, 9, 30, tzinfo=UTC),
    )


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """
    Session factory bound to a fresh SQLite database file.

    A file (not :memory:) so that concurrent sessions share one database.
    """
    engine = create_engine_for_url(f"sqlite+aiosqlite:///{tmp_path / 'portal.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory):
    """A single session on the SQLite test database."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def application_create_factory():
    """Factory for validated ApplicationCreate objects with field overrides."""
    return make_application_create


@pytest.fixture
def application_payload_factory():
    """Factory for request bodies with field overrides."""
    return make_application_payload


@pytest.fixture
def store_application(db_session):
    """Allocate an ID and insert an application, as the service does."""

    async def _store(**overrides):
        application_id = await sequence.allocate_application_id(db_session)
        return await repository.create(
            db_session, make_application_create(**overrides), application_id
        )

    return _store
