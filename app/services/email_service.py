"""
Email service using fastapi-mail over SMTP.

Gmail setup steps (do this once):
  1. Enable 2-Factor Authentication on your Gmail account
  2. Go to: Google Account → Security → App Passwords
  3. Create an app password for "Mail"
  4. Use that 16-character password as MAIL_PASSWORD in your .env

fastapi-mail 1.x:
  - ConnectionConfig uses MAIL_STARTTLS=True, MAIL_SSL_TLS=False for port 587
  - MAIL_SSL_TLS=True, MAIL_STARTTLS=False for port 465
  - SUPPRESS_SEND=1 builds the message but never opens a connection (local dev)

Delivery policy: sending happens in a background task after the response is
returned. A failed send is logged and reported as False; the challenge that
was just issued stays valid and the user can request a resend once the
cooldown has passed.
"""
import logging
from typing import Awaitable, Callable

from fastapi_mail import FastMail, MessageSchema, ConnectionConfig, MessageType

from app.config import settings

logger = logging.getLogger(__name__)

# Build connection config once at module level: don't rebuild on every request
mail_config = ConnectionConfig(
    MAIL_USERNAME=settings.mail_username,
    MAIL_PASSWORD=settings.mail_password,
    MAIL_FROM=settings.mail_from,
    MAIL_PORT=settings.mail_port,
    MAIL_SERVER=settings.mail_server,
    MAIL_STARTTLS=True,
    MAIL_SSL_TLS=False,
    USE_CREDENTIALS=True,
    VALIDATE_CERTS=True,
    SUPPRESS_SEND=int(settings.mail_suppress_send),
)

fast_mail = FastMail(mail_config)

OTPSender = Callable[[str, str], Awaitable[bool]]


def _otp_body(otp: str) -> str:
    return (
        f"Welcome!\n\n"
        f"Your verification code is: {otp}\n\n"
        f"This code is valid for {settings.otp_expiry_minutes} minutes.\n"
        f"Do not share it with anyone.\n\n"
        f"If you did not create an account, please ignore this email."
    )


async def send_otp_email(email_to: str, otp: str) -> bool:
    """
    Send a verification code. Returns True when the SMTP server accepted it.

    Args:
        email_to: recipient email address
        otp: the raw code (never stored raw in DB)
    """
    message = MessageSchema(
        subject="Verify your account",
        recipients=[email_to],
        body=_otp_body(otp),
        subtype=MessageType.plain,
    )
    try:
        await fast_mail.send_message(message)
    except Exception as exc:
        # Non-fatal by policy: the OTP remains valid, the user can resend.
        logger.warning(f"OTP email to {email_to} failed: {exc!r}")
        return False
    return True


def get_otp_sender() -> OTPSender:
    """FastAPI dependency so the transport can be swapped (tests record codes here)."""
    return send_otp_email
