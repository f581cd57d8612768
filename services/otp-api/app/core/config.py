from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.core.security import parse_duration


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    app_name: str = "otp-auth-api"
    env: str = "dev"
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    # Used to build links in outbound email (no trailing slash needed)
    base_url: str = "http://localhost:3000"

    # Data
    database_url: str = "sqlite:///./otp-auth.db"

    # JWT
    jwt_secret: str = "dev-secret-change-me"
    jwt_issuer: str = "otp-auth"
    # Accepts "90", "30s", "15m", "12h", "1d", "2w"
    token_expires_in: str = "1d"

    # OTP
    otp_len: int = 4
    # 0 keeps challenges valid until consumed
    otp_ttl_seconds: int = 5 * 60
    # If true, send-otp also returns `dev_otp` so a client can log in without Telegram.
    otp_dev_mode: bool = False
    # v2 flow: email required on send-otp and a confirmation link is mailed
    email_confirmation: bool = False

    # Telegram bot (OTP delivery)
    telegram_bot_token: str | None = None
    telegram_chat_id: str | None = None
    telegram_api_base: str = "https://api.telegram.org"

    # SMTP relay (confirmation email)
    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_user: str | None = None
    smtp_password: str | None = None
    smtp_from_email: str | None = None
    smtp_use_tls: bool = True

    notify_timeout_seconds: float = 10.0

    cors_allow_origins: str = ""

    @field_validator("token_expires_in")
    @classmethod
    def _check_token_expires_in(cls, v: str) -> str:
        parse_duration(v)
        return v

    @field_validator("otp_len")
    @classmethod
    def _check_otp_len(cls, v: int) -> int:
        if v < 1 or v > 12:
            raise ValueError("otp_len must be between 1 and 12")
        return v

    @field_validator("base_url")
    @classmethod
    def _strip_base_url(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def token_ttl_seconds(self) -> int:
        return parse_duration(self.token_expires_in)


settings = Settings()


def get_settings() -> Settings:
    return settings
