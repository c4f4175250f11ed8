"""
Email Service using Resend

Handles sending the emails of the internship application flow.
"""

import asyncio
import logging
import uuid
from html import escape

import resend

from internship_portal.core.config import settings

logger = logging.getLogger(__name__)

# Initialize Resend with API key
resend.api_key = settings.resend_api_key


class EmailDeliveryError(Exception):
    """Raised when the email provider rejects or fails to send a message."""

    def __init__(self, to_email: str, subject: str, reason: str):
        self.to_email = to_email
        self.subject = subject
        self.reason = reason
        super().__init__(f"Failed to send '{subject}' to {to_email}: {reason}")


_BASE_STYLES = """
            body { font-family: system-ui, -apple-system, sans-serif; line-height: 1.6; color: #1f2937; }
            .container { max-width: 600px; margin: 0 auto; padding: 40px 20px; }
            .header { color: #1a365d; margin-bottom: 24px; }
            .id-box { background-color: #eff6ff; border: 1px solid #bfdbfe; padding: 16px; border-radius: 8px; margin: 16px 0; text-align: center; font-size: 18px; }
            .summary-box { background-color: #f9fafb; border: 1px solid #e5e7eb; padding: 16px; border-radius: 8px; margin: 16px 0; }
            .summary-box ul { margin: 8px 0 0 0; padding-left: 20px; }
            .summary-box li { margin-bottom: 4px; }
            .footer { margin-top: 40px; padding-top: 20px; border-top: 1px solid #e5e7eb; color: #6b7280; font-size: 14px; }
"""


async def send_email(
    to_email: str,
    subject: str,
    html_content: str,
) -> str:
    """
    Send an email using Resend.

    Args:
        to_email: Recipient email address
        subject: Email subject line
        html_content: HTML content of the email

    Returns:
        Provider message id (a synthetic "logged-..." id when no API key is set)

    Raises:
        EmailDeliveryError: If the provider call fails
    """
    if not resend.api_key:
        logger.warning("RESEND_API_KEY not set - logging email instead of sending")
        logger.info(f"EMAIL TO: {to_email} | SUBJECT: {subject}")
        return f"logged-{uuid.uuid4()}"

    params: resend.Emails.SendParams = {
        "from": settings.email_from,
        "to": [to_email],
        "subject": subject,
        "html": html_content,
    }

    try:
        # Run sync Resend call in thread pool to avoid blocking event loop
        email = await asyncio.to_thread(resend.Emails.send, params)
    except Exception as e:
        raise EmailDeliveryError(to_email, subject, str(e)) from e

    message_id = email["id"]
    logger.info(f"Email sent successfully to {to_email}, id: {message_id}")
    return message_id


def applicant_confirmation_subject(application_id: str) -> str:
    return f"Application Received - {application_id}"


def admin_notification_subject(full_name: str, application_id: str) -> str:
    return f"New Internship Application: {full_name} ({application_id})"


async def send_applicant_confirmation(
    to_email: str,
    full_name: str,
    application_id: str,
    preferred_domain: str,
) -> str:
    """Send submission confirmation to the applicant."""
    # Escape user inputs to prevent XSS
    safe_full_name = escape(full_name)
    safe_domain = escape(preferred_domain)
    safe_application_id = escape(application_id)

    html_content = f"""
    <!DOCTYPE html>
    <html>
    <head>
        <style>{_BASE_STYLES}</style>
    </head>
    <body>
        <div class="container">
            <h1 class="header">Application Received</h1>

            <p>Hello {safe_full_name},</p>

            <p>Thank you for applying for an internship in <strong>{safe_domain}</strong>. We have received your application.</p>

            <div class="id-box">
                Your application ID: <strong>{safe_application_id}</strong>
            </div>

            <p>Please keep this ID for your records and quote it in any correspondence with us.</p>

            <p>Our team will review your application and get back to you by email.</p>

            <div class="footer">
                <p>If you didn't submit this application, you can safely ignore this email.</p>
                <p>Internship Portal</p>
            </div>
        </div>
    </body>
    </html>
    """
    return await send_email(
        to_email=to_email,
        subject=applicant_confirmation_subject(application_id),
        html_content=html_content,
    )


async def send_admin_notification(
    to_email: str,
    application_id: str,
    full_name: str,
    applicant_email: str,
    phone: str,
    university: str,
    degree: str,
    major: str,
    graduation_year: int,
    cgpa: float,
    preferred_domain: str,
    skills: list[str],
    resume_link: str | None = None,
    github_profile: str | None = None,
    linkedin_profile: str | None = None,
    cover_letter: str | None = None,
) -> str:
    """Send new-application summary to the admin inbox."""
    # Escape user inputs to prevent XSS
    safe_full_name = escape(full_name)
    safe_application_id = escape(application_id)
    safe_skills = ", ".join(escape(skill) for skill in skills)

    links = [
        ("Resume", resume_link),
        ("GitHub", github_profile),
        ("LinkedIn", linkedin_profile),
    ]
    links_html = "".join(
        f'<li><strong>{label}:</strong> <a href="{escape(url)}">{escape(url)}</a></li>'
        for label, url in links
        if url
    )
    cover_letter_html = (
        f"<p><strong>Cover Letter:</strong></p><p>{escape(cover_letter)}</p>"
        if cover_letter
        else ""
    )

    html_content = f"""
    <!DOCTYPE html>
    <html>
    <head>
        <style>{_BASE_STYLES}</style>
    </head>
    <body>
        <div class="container">
            <h1 class="header">New Internship Application</h1>

            <div class="id-box">
                <strong>{safe_application_id}</strong>
            </div>

            <div class="summary-box">
                <p><strong>Applicant:</strong></p>
                <ul>
                    <li><strong>Name:</strong> {safe_full_name}</li>
                    <li><strong>Email:</strong> {escape(applicant_email)}</li>
                    <li><strong>Phone:</strong> {escape(phone)}</li>
                </ul>
            </div>

            <div class="summary-box">
                <p><strong>Education:</strong></p>
                <ul>
                    <li><strong>University:</strong> {escape(university)}</li>
                    <li><strong>Degree:</strong> {escape(degree)} in {escape(major)}</li>
                    <li><strong>Graduation Year:</strong> {graduation_year}</li>
                    <li><strong>CGPA:</strong> {cgpa}</li>
                </ul>
            </div>

            <div class="summary-box">
                <p><strong>Preferences:</strong></p>
                <ul>
                    <li><strong>Domain:</strong> {escape(preferred_domain)}</li>
                    <li><strong>Skills:</strong> {safe_skills}</li>
                    {links_html}
                </ul>
            </div>

            {cover_letter_html}

            <div class="footer">
                <p>Internship Portal - Admin Notification</p>
            </div>
        </div>
    </body>
    </html>
    """
    return await send_email(
        to_email=to_email,
        subject=admin_notification_subject(full_name, application_id),
        html_content=html_content,
    )
