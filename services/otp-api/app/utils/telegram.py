import logging

import requests

from app.core.config import Settings

logger = logging.getLogger(__name__)


def telegram_missing_fields(settings: Settings) -> list[str]:
    missing: list[str] = []
    if not settings.telegram_bot_token:
        missing.append("TELEGRAM_BOT_TOKEN")
    if not settings.telegram_chat_id:
        missing.append("TELEGRAM_CHAT_ID")
    return missing


def format_otp_message(phone: str, otp: str) -> str:
    return f"New OTP code: {otp}\nPhone: {phone}"


def send_otp_telegram(settings: Settings, phone: str, otp: str) -> bool:
    """
    Fire-and-forget OTP delivery to the operator chat via the Telegram Bot API.
    Returns True if Telegram accepted the message, False otherwise. Never raises.
    """
    missing = telegram_missing_fields(settings)
    if missing:
        logger.warning("Telegram not configured; missing=%s", ",".join(missing))
        return False

    url = f"{settings.telegram_api_base.rstrip('/')}/bot{settings.telegram_bot_token}/sendMessage"
    payload = {"chat_id": settings.telegram_chat_id, "text": format_otp_message(phone, otp)}
    try:
        resp = requests.post(url, json=payload, timeout=settings.notify_timeout_seconds)
    except requests.RequestException as e:
        logger.warning("Telegram send exception: %s", e)
        return False

    try:
        data = resp.json()
    except ValueError:
        data = {}
    if resp.status_code // 100 == 2 and data.get("ok"):
        logger.info("OTP delivered to Telegram for phone=%s", phone)
        return True
    logger.warning(
        "Telegram send failed: status=%s description=%s",
        resp.status_code,
        data.get("description") or resp.text[:200],
    )
    return False
