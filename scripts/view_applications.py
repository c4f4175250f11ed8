"""
View Internship Applications

Prints every stored application, newest first.

Usage:
    python scripts/view_applications.py
"""

import asyncio
import sys
from pathlib import Path

# Add the src directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from internship_portal.core.database import async_session_maker, close_db
from internship_portal.modules.applications import repository
from internship_portal.modules.applications.models import InternshipApplication

COVER_LETTER_PREVIEW_LENGTH = 100


def print_application(index: int, app: InternshipApplication) -> None:
    """Print one application block."""
    print(f"\n{index}. {app.application_id}")
    print("-" * 80)
    print(f"  Name:       {app.full_name}")
    print(f"  Email:      {app.email}")
    print(f"  Phone:      {app.phone}")
    print(f"  University: {app.university}")
    print(f"  Degree:     {app.degree} in {app.major}")
    print(f"  CGPA:       {app.cgpa}/10")
    print(f"  Grad Year:  {app.graduation_year}")
    print(f"  Domain:     {app.preferred_domain.value}")
    print(f"  Skills:     {', '.join(app.skills)}")
    print(f"  Status:     {app.status.value}")
    print(f"  Submitted:  {app.submitted_at}")
    if app.resume_link:
        print(f"  Resume:     {app.resume_link}")
    if app.github_profile:
        print(f"  GitHub:     {app.github_profile}")
    if app.linkedin_profile:
        print(f"  LinkedIn:   {app.linkedin_profile}")
    if app.cover_letter:
        print(f"  Cover:      {app.cover_letter[:COVER_LETTER_PREVIEW_LENGTH]}...")
    print("=" * 80)


async def view_applications() -> None:
    """Print all applications."""
    async with async_session_maker() as db:
        applications = await repository.get_all(db)

    print(f"Total Applications: {len(applications)}")
    print("=" * 80)

    for index, app in enumerate(applications, start=1):
        print_application(index, app)


async def main() -> int:
    try:
        await view_applications()
    except Exception as e:
        print(f"[FAIL] Could not read applications: {e}")
        return 1
    finally:
        await close_db()
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
