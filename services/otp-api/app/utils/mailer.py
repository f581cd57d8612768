import html
import logging
import smtplib
from email.message import EmailMessage

from app.core.config import Settings

logger = logging.getLogger(__name__)


def smtp_missing_fields(settings: Settings) -> list[str]:
    missing: list[str] = []
    if not settings.smtp_host:
        missing.append("SMTP_HOST")
    if not settings.smtp_from_email:
        missing.append("SMTP_FROM_EMAIL")
    return missing


def build_confirmation_message(settings: Settings, to_email: str, link: str) -> EmailMessage:
    safe_link = html.escape(link, quote=True)
    body = f"""
    <html>
        <body>
            <p>Hello,</p>
            <p>Please confirm your email address by opening the link below:</p>
            <p><a href="{safe_link}">Confirm email</a></p>
            <p>If you did not request this, please ignore this email.</p>
        </body>
    </html>
    """
    msg = EmailMessage()
    msg["From"] = settings.smtp_from_email
    msg["To"] = to_email
    msg["Subject"] = "Confirm your email"
    msg.set_content(f"Confirm your email: {link}")
    msg.add_alternative(body, subtype="html")
    return msg


def send_confirmation_email(settings: Settings, to_email: str, link: str) -> bool:
    """
    Mail the confirmation link through the configured SMTP relay.
    Returns True when the relay accepted the message. Never raises.
    """
    missing = smtp_missing_fields(settings)
    if missing:
        logger.warning("SMTP not configured; missing=%s", ",".join(missing))
        return False

    try:
        msg = build_confirmation_message(settings, to_email, link)
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=settings.notify_timeout_seconds) as server:
            server.ehlo()
            if settings.smtp_use_tls:
                server.starttls()
                server.ehlo()
            if settings.smtp_user and settings.smtp_password:
                server.login(settings.smtp_user, settings.smtp_password)
            server.send_message(msg)
    except (smtplib.SMTPException, OSError, ValueError) as e:
        logger.warning("Confirmation email to %r failed: %s", to_email, e)
        return False

    logger.info("Confirmation email sent to %s", to_email)
    return True
