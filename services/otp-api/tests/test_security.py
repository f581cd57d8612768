import pytest

from app.core.config import Settings
from app.core.errors import InvalidTokenError
from app.core.security import compare_codes, create_token, decode_token, generate_otp, parse_duration


def tamper(token: str) -> str:
    """Flip one bit of a character in the middle of the signature segment."""
    head, body, sig = token.split(".")
    i = len(sig) // 2
    flipped = chr(ord(sig[i]) ^ 1)
    if not (flipped.isalnum() or flipped in "-_"):
        flipped = "A" if sig[i] != "A" else "B"
    return ".".join([head, body, sig[:i] + flipped + sig[i + 1 :]])


@pytest.mark.parametrize(
    "value,expected",
    [("1d", 86400), ("12h", 43200), ("15m", 900), ("30s", 30), ("90", 90), ("2w", 1209600), ("1D", 86400)],
)
def test_parse_duration(value, expected):
    assert parse_duration(value) == expected


@pytest.mark.parametrize("value", ["", "abc", "1y", "-5m", "1.5h"])
def test_parse_duration_rejects_garbage(value):
    with pytest.raises(ValueError):
        parse_duration(value)


def test_settings_reject_bad_token_ttl():
    with pytest.raises(ValueError):
        Settings(_env_file=None, token_expires_in="forever")


def test_settings_token_ttl_default_is_one_day():
    assert Settings(_env_file=None).token_ttl_seconds == 86400


def test_generate_otp_is_four_digits_in_range():
    for _ in range(500):
        code = generate_otp(4)
        assert len(code) == 4
        assert code.isdigit()
        assert 1000 <= int(code) <= 9999


def test_compare_codes_is_exact():
    assert compare_codes("4821", "4821")
    assert not compare_codes("4821", "4822")
    assert not compare_codes(" 4821", "4821")
    assert not compare_codes("482", "4821")


def _token(**kw):
    defaults = dict(secret="s3cret", issuer="otp-auth", audience="email-confirm", ttl_seconds=60)
    defaults.update(kw)
    return create_token({"phone": "998901234567", "email": "a@b.c"}, **defaults)


def test_token_round_trip():
    payload = decode_token(_token(), secret="s3cret", issuer="otp-auth", audience="email-confirm")
    assert payload["phone"] == "998901234567"
    assert payload["email"] == "a@b.c"
    assert payload["exp"] - payload["iat"] == 60


def test_tampered_token_is_rejected():
    with pytest.raises(InvalidTokenError):
        decode_token(tamper(_token()), secret="s3cret", issuer="otp-auth", audience="email-confirm")


def test_expired_token_is_rejected():
    token = _token(ttl_seconds=-10)
    with pytest.raises(InvalidTokenError, match="expired"):
        decode_token(token, secret="s3cret", issuer="otp-auth", audience="email-confirm")


def test_wrong_secret_is_rejected():
    with pytest.raises(InvalidTokenError):
        decode_token(_token(), secret="other", issuer="otp-auth", audience="email-confirm")


def test_session_token_is_not_a_confirmation_token():
    token = _token(audience="session")
    with pytest.raises(InvalidTokenError):
        decode_token(token, secret="s3cret", issuer="otp-auth", audience="email-confirm")


def test_garbage_token_is_rejected():
    with pytest.raises(InvalidTokenError):
        decode_token("not-a-jwt", secret="s3cret", issuer="otp-auth", audience="session")
