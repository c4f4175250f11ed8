"""
Send Test Email

Checks the email configuration by sending one message to the admin inbox.

Usage:
    python scripts/send_test_email.py [recipient]
"""

import asyncio
import sys
from pathlib import Path

# Add the src directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from internship_portal.core.config import settings
from internship_portal.core.email import EmailDeliveryError, send_email


async def main(argv: list[str]) -> int:
    recipient = argv[0] if argv else settings.admin_email

    print(f"Sender:    {settings.email_from}")
    print(f"Recipient: {recipient}")
    if not settings.resend_api_key:
        print("RESEND_API_KEY is not set - the email will only be logged")

    try:
        message_id = await send_email(
            to_email=recipient,
            subject="Internship Portal test email",
            html_content="<h1>Success!</h1><p>Email delivery is working.</p>",
        )
    except EmailDeliveryError as e:
        print(f"[FAIL] {e}")
        return 1

    print(f"[OK] Email sent, id: {message_id}")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main(sys.argv[1:])))
