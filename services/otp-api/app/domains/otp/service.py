"""
OTP lifecycle: issue a code for a phone, verify it once, and confirm an email
address through a signed link.

Per phone the lifecycle is NoChallenge -> Issued -> Verified (rows deleted).
Failed verification leaves the challenge in place. Only the most recently issued
row for a phone is ever checked; older rows stay until the phone verifies.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable
from urllib.parse import urlencode

from app.core.config import Settings
from app.core.errors import InvalidOtpError, InvalidTokenError, ValidationError
from app.core.security import compare_codes, create_token, decode_token, generate_otp
from app.domains.otp.models import OtpRecord
from app.domains.otp.store import OtpStore
from app.utils.mailer import send_confirmation_email
from app.utils.telegram import send_otp_telegram

logger = logging.getLogger(__name__)

# Schedules best-effort work that must not affect the response, e.g. BackgroundTasks.add_task.
Dispatch = Callable[..., Any]


@dataclass(frozen=True)
class IssuedOtp:
    record: OtpRecord
    code: str
    confirmation_token: str | None = None


@dataclass(frozen=True)
class EmailConfirmation:
    phone: str
    email: str


def _as_utc(dt: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC.
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


class OtpService:
    def __init__(self, store: OtpStore, settings: Settings):
        self.store = store
        self.settings = settings

    def _sign(self, claims: dict, audience: str) -> str:
        return create_token(
            claims,
            secret=self.settings.jwt_secret,
            issuer=self.settings.jwt_issuer,
            audience=audience,
            ttl_seconds=self.settings.token_ttl_seconds,
        )

    def confirmation_link(self, token: str) -> str:
        return f"{self.settings.base_url}/api/confirm-email?{urlencode({'token': token})}"

    def issue(self, phone: str | None, email: str | None = None, *, dispatch: Dispatch) -> IssuedOtp:
        if not phone:
            raise ValidationError("Phone number is required")
        if self.settings.email_confirmation and not email:
            raise ValidationError("Phone number and email are required")

        code = generate_otp(self.settings.otp_len)
        expires_at = None
        if self.settings.otp_ttl_seconds > 0:
            expires_at = datetime.now(timezone.utc) + timedelta(seconds=self.settings.otp_ttl_seconds)
        record = self.store.add(phone, code, expires_at)

        if self.settings.otp_dev_mode:
            logger.info("otp issued phone=%s otp=%s", phone, code)
        else:
            logger.info("otp issued phone=%s", phone)

        dispatch(send_otp_telegram, self.settings, phone, code)

        token = None
        if self.settings.email_confirmation:
            token = self._sign({"phone": phone, "email": email}, "email-confirm")
            dispatch(send_confirmation_email, self.settings, email, self.confirmation_link(token))

        return IssuedOtp(record=record, code=code, confirmation_token=token)

    def verify(self, phone: str | None, otp: str | None) -> str:
        if not phone or not otp:
            raise ValidationError("Phone number and OTP are required")

        record = self.store.latest(phone)
        if record is None:
            logger.info("otp verify failed phone=%s reason=no_challenge", phone)
            raise InvalidOtpError()
        if record.expires_at is not None and _as_utc(record.expires_at) <= datetime.now(timezone.utc):
            logger.info("otp verify failed phone=%s reason=expired", phone)
            raise InvalidOtpError()
        if not compare_codes(otp, record.otp):
            logger.info("otp verify failed phone=%s reason=mismatch", phone)
            raise InvalidOtpError()
        if not self.store.consume(record, otp):
            logger.info("otp verify failed phone=%s reason=already_consumed", phone)
            raise InvalidOtpError()

        logger.info("otp verified phone=%s", phone)
        return self._sign({"phone": phone}, "session")

    def confirm_email(self, token: str | None) -> EmailConfirmation:
        if not token:
            raise ValidationError("Token is required")
        payload = decode_token(
            token,
            secret=self.settings.jwt_secret,
            issuer=self.settings.jwt_issuer,
            audience="email-confirm",
        )
        phone, email = payload.get("phone"), payload.get("email")
        if not phone or not email:
            raise InvalidTokenError()
        return EmailConfirmation(phone=str(phone), email=str(email))
