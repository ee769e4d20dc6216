import logging
from email.message import EmailMessage
from typing import List, Optional

import aiosmtplib

from src.common.config import settings

logger = logging.getLogger(__name__)


async def send_email(subject: str, body: str, recipients: List[str], html_body: Optional[str] = None) -> None:
    """
    Sends an email asynchronously using aiosmtplib.

    Args:
        subject (str): The subject of the email.
        body (str): The plain text content of the email.
        recipients (List[str]): List of recipient email addresses.
    """
    message = EmailMessage()
    message["From"] = settings.EMAIL_SENDER
    message["To"] = ", ".join(recipients)
    message["Subject"] = subject
    message.set_content(body)

    # If HTML content is provided, add it as an alternative.
    if html_body:
        message.add_alternative(html_body, subtype="html")

    try:
        await aiosmtplib.send(
            message,
            hostname=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USER or None,
            password=settings.SMTP_PASSWORD or None,
            start_tls=True,
        )
    except aiosmtplib.SMTPException:
        # Runs as a background task; the request has already been answered.
        logger.exception("Failed to send '%s' to %s", subject, recipients)


async def send_password_reset_otp(recipient_email: str, name: str, otp: str) -> None:
    """
    Sends the password reset code to an owner account.

    Args:
        recipient_email (str): The email address of the recipient.
        name (str): The account holder's name.
        otp (str): The one-time reset code.
    """
    minutes = settings.OTP_EXPIRATION_MINUTES

    email_content = f"""
Dear {name},

A password reset was requested for your {settings.CLINIC_NAME} account.

Your reset code is: {otp}

The code expires in {minutes} minutes. If you did not request a reset, please ignore this email.

Best regards,
{settings.CLINIC_NAME}
"""

    html_content = f"""
<!DOCTYPE html>
<html>
<body style="font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
    <p style="font-size: 16px;">Dear <strong>{name}</strong>,</p>
    <p style="font-size: 16px;">A password reset was requested for your {settings.CLINIC_NAME} account.</p>
    <div style="background: #f3f4f6; padding: 16px; border-radius: 8px; text-align: center; margin: 16px 0;">
        <code style="font-size: 24px; font-weight: bold; letter-spacing: 4px; color: #0f766e;">{otp}</code>
    </div>
    <p style="font-size: 12px; color: #9ca3af; text-align: center;">
        This code expires in {minutes} minutes. If you did not request a reset, please ignore this email.
    </p>
</body>
</html>
"""

    await send_email(f"{settings.CLINIC_NAME} password reset code", email_content, [recipient_email], html_body=html_content)
