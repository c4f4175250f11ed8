"""
Internship Application Notifications

Best-effort emails sent after an application is stored:
- Confirmation to the applicant (with their application ID)
- Summary of the new application to the admin inbox

Sends are fire-and-forget: the submission response never waits for them,
and a failure is logged but never propagated. There is no retry queue.
"""

import asyncio
import logging

from internship_portal.core.config import settings
from internship_portal.core.email import (
    admin_notification_subject,
    applicant_confirmation_subject,
    send_admin_notification,
    send_applicant_confirmation,
)
from internship_portal.modules.applications.schemas import ApplicationDetail

logger = logging.getLogger(__name__)

# Strong references to in-flight dispatches so they aren't garbage collected
_background_tasks: set[asyncio.Task] = set()


async def notify_applicant(application: ApplicationDetail) -> bool:
    """
    Send the confirmation email to the applicant.

    Returns:
        True if the email was handed to the provider, False if it failed
    """
    try:
        await send_applicant_confirmation(
            to_email=application.email,
            full_name=application.full_name,
            application_id=application.application_id,
            preferred_domain=application.preferred_domain.value,
        )
    except Exception as e:
        logger.error(
            f"Applicant email failed: to={application.email}, "
            f"subject='{applicant_confirmation_subject(application.application_id)}', "
            f"application={application.application_id}: {e}"
        )
        return False

    logger.info(f"Applicant confirmation sent for application {application.application_id}")
    return True


async def notify_admin(application: ApplicationDetail) -> bool:
    """
    Send the new-application summary to the admin inbox.

    Returns:
        True if the email was handed to the provider, False if it failed
    """
    subject = admin_notification_subject(application.full_name, application.application_id)
    try:
        await send_admin_notification(
            to_email=settings.admin_email,
            application_id=application.application_id,
            full_name=application.full_name,
            applicant_email=application.email,
            phone=application.phone,
            university=application.university,
            degree=application.degree,
            major=application.major,
            graduation_year=application.graduation_year,
            cgpa=application.cgpa,
            preferred_domain=application.preferred_domain.value,
            skills=application.skills,
            resume_link=application.resume_link,
            github_profile=application.github_profile,
            linkedin_profile=application.linkedin_profile,
            cover_letter=application.cover_letter,
        )
    except Exception as e:
        logger.error(
            f"Admin email failed: to={settings.admin_email}, subject='{subject}', "
            f"application={application.application_id}: {e}"
        )
        return False

    logger.info(f"Admin notification sent for application {application.application_id}")
    return True


async def send_notifications(application: ApplicationDetail) -> tuple[bool, bool]:
    """
    Send both notifications concurrently.

    Neither send waits on or is affected by the other.

    Returns:
        (applicant_sent, admin_sent)
    """
    applicant_sent, admin_sent = await asyncio.gather(
        notify_applicant(application),
        notify_admin(application),
    )
    return applicant_sent, admin_sent


def dispatch_notifications(application: ApplicationDetail) -> asyncio.Task:
    """
    Start sending both notifications in the background.

    Must be called from a running event loop. The caller is not expected to
    await the returned task.

    Args:
        application: Snapshot of the stored application

    Returns:
        The background task
    """
    task = asyncio.create_task(
        send_notifications(application),
        name=f"notify:{application.application_id}",
    )
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)
    return task


def pending_notifications() -> int:
    """Number of dispatches still in flight."""
    return len(_background_tasks)


async def drain_notifications(timeout: float | None = None) -> None:
    """
    Wait for in-flight notification dispatches.

    Called on shutdown so queued emails get a chance to go out.

    Args:
        timeout: Seconds to wait before giving up (None waits indefinitely)
    """
    if not _background_tasks:
        return

    tasks = list(_background_tasks)
    logger.info(f"Waiting for {len(tasks)} notification dispatch(es) to finish")
    _, pending = await asyncio.wait(tasks, timeout=timeout)
    if pending:
        logger.warning(f"{len(pending)} notification dispatch(es) still running after {timeout}s")
