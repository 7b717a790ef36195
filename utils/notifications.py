"""
Outbound account notifications.

Sends run as background tasks after the response; every failure is logged
and swallowed so it never reaches the request that triggered it.
"""

import os
import smtplib
from email.message import EmailMessage

from dotenv import load_dotenv

from utils.logger import setup_logger

load_dotenv()

logger = setup_logger("notifications")

SMTP_HOST = os.getenv("SMTP_HOST")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USERNAME = os.getenv("SMTP_USERNAME")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
EMAIL_FROM = os.getenv("EMAIL_FROM", "noreply@taskmanager.local")


def send_email(to: str, subject: str, body: str) -> bool:
    """
    Deliver a plain text email over SMTP

    Args:
        to: Recipient address
        subject: Subject line
        body: Message text

    Returns:
        True if the message was handed to the SMTP server, False otherwise
    """
    if not SMTP_HOST:
        logger.info(f"SMTP_HOST not set, skipping email '{subject}' to {to}")
        return False

    message = EmailMessage()
    message["From"] = EMAIL_FROM
    message["To"] = to
    message["Subject"] = subject
    message.set_content(body)

    try:
        with smtplib.SMTP(SMTP_HOST, SMTP_PORT, timeout=10) as smtp:
            smtp.starttls()
            if SMTP_USERNAME:
                smtp.login(SMTP_USERNAME, SMTP_PASSWORD or "")
            smtp.send_message(message)
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Failed to send email '{subject}' to {to}: {e}")
        return False

    logger.info(f"Sent email '{subject}' to {to}")
    return True


def send_welcome_email(email: str, name: str) -> bool:
    return send_email(
        email,
        "Thanks for joining in!",
        f"Welcome to the app, {name}. Let me know how you get along with the app.",
    )


def send_cancellation_email(email: str, name: str) -> bool:
    return send_email(
        email,
        "Sorry to see you go!",
        f"Goodbye, {name}. Is there anything we could have done to have kept you on board?",
    )
