import re
import secrets
import time
from typing import Literal

import jwt

from app.core.errors import InvalidTokenError


Audience = Literal["session", "email-confirm"]

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhdw]?)\s*$", re.IGNORECASE)
_UNIT_SECONDS = {"": 1, "s": 1, "m": 60, "h": 60 * 60, "d": 60 * 60 * 24, "w": 60 * 60 * 24 * 7}


def _now_s() -> int:
    return int(time.time())


def parse_duration(value: str | int) -> int:
    """
    Parse a token lifetime such as "1d", "12h", "15m", "30s" or a bare number of seconds.
    Raises ValueError on anything else.
    """
    if isinstance(value, int):
        if value < 0:
            raise ValueError(f"Invalid duration: {value!r}")
        return value
    m = _DURATION_RE.match(value or "")
    if not m:
        raise ValueError(f"Invalid duration: {value!r}")
    amount, unit = m.groups()
    return int(amount) * _UNIT_SECONDS[unit.lower()]


def generate_otp(length: int) -> str:
    upper = 10**length
    lower = 10 ** (length - 1)
    return str(secrets.randbelow(upper - lower) + lower)


def compare_codes(supplied: str, expected: str) -> bool:
    return secrets.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8"))


def create_token(
    claims: dict,
    *,
    secret: str,
    issuer: str,
    audience: Audience,
    ttl_seconds: int,
) -> str:
    now = _now_s()
    payload = {
        "iss": issuer,
        "aud": audience,
        "iat": now,
        "exp": now + ttl_seconds,
    }
    payload.update(claims)
    return jwt.encode(payload, secret, algorithm="HS256")


def decode_token(token: str, *, secret: str, issuer: str, audience: Audience) -> dict:
    try:
        return jwt.decode(
            token,
            secret,
            algorithms=["HS256"],
            audience=audience,
            issuer=issuer,
            options={"require": ["exp", "iat"]},
        )
    except jwt.ExpiredSignatureError:
        raise InvalidTokenError("Token has expired")
    except jwt.InvalidTokenError:
        raise InvalidTokenError()
