# budget_tracker/utils/email.py
import asyncio
import logging

import sendgrid
from sendgrid.helpers.mail import Mail

from budget_tracker.core.config import Settings

logger = logging.getLogger(__name__)


async def send_email_via_sendgrid(settings: Settings, to_email: str, subject: str, body: str) -> bool:
    """
    Send an HTML email through SendGrid without blocking the event loop.

    Returns False (and logs) when SendGrid is not configured or the send fails.
    """
    if not settings.SENDGRID_API_KEY:
        logger.warning(f"SendGrid API key not configured - email to {to_email} not sent")
        return False

    try:
        logger.info(f"Attempting to send email to {to_email}")

        message = Mail(
            from_email=(settings.EMAIL_FROM, settings.EMAIL_FROM_NAME),
            to_emails=to_email,
            subject=subject,
            html_content=body
        )
        message.reply_to = settings.EMAIL_FROM

        sg = sendgrid.SendGridAPIClient(api_key=settings.SENDGRID_API_KEY)

        loop = asyncio.get_running_loop()
        response = await loop.run_in_executor(None, sg.send, message)

        if response.status_code == 202:
            logger.info(f"✅ Email sent successfully to {to_email}")
            return True

        logger.error(f"❌ Failed to send email. Status code: {response.status_code}")
        logger.error(f"Response body: {response.body}")
        return False

    except Exception as e:
        logger.error(f"❌ Exception while sending email to {to_email}: {str(e)}")
        return False


def password_reset_body(user_name: str, reset_link: str, app_name: str) -> str:
    return """
    <!DOCTYPE html>
    <html>
    <body style="margin: 0; padding: 0; font-family: Arial, sans-serif; background-color: #f4f4f4;">
        <div style="max-width: 600px; margin: 0 auto; background-color: #ffffff; padding: 20px;">
            <h2 style="color: #333;">Password Reset Request</h2>
            <p style="color: #666;">Hello <strong>{user_name}</strong>!</p>
            <p style="color: #666;">
                We received a request to reset your {app_name} password.
                If you made this request, use the link below to set a new password:
            </p>
            <p><a href="{reset_link}">{reset_link}</a></p>
            <p style="color: #666;">
                If you didn't request this, ignore this email. Your password will remain unchanged.
            </p>
        </div>
    </body>
    </html>
    """.format(user_name=user_name, reset_link=reset_link, app_name=app_name)
