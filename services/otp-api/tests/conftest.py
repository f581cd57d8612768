import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import Settings, get_settings
from app.core.db import Base
from app.core.deps import get_db
from app.domains.otp import models  # noqa: F401
from app.domains.otp import service as otp_service
from app.domains.otp.store import OtpStore
from app.main import app


@pytest.fixture()
def settings():
    return Settings(
        _env_file=None,
        env="test",
        jwt_secret="test-secret",
        base_url="http://testserver",
        otp_dev_mode=False,
        email_confirmation=False,
        telegram_bot_token="123:abc",
        telegram_chat_id="42",
        smtp_host="smtp.test",
        smtp_from_email="noreply@test",
    )


@pytest.fixture()
def session_factory():
    # One shared in-memory database for every thread the TestClient uses.
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)
    yield factory
    engine.dispose()


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def store(db):
    return OtpStore(db)


@pytest.fixture()
def sent(monkeypatch):
    """Capture outbound notifications instead of calling Telegram/SMTP."""
    calls = {"telegram": [], "email": []}

    def fake_telegram(settings, phone, otp):
        calls["telegram"].append((phone, otp))
        return True

    def fake_email(settings, email, link):
        calls["email"].append((email, link))
        return True

    monkeypatch.setattr(otp_service, "send_otp_telegram", fake_telegram)
    monkeypatch.setattr(otp_service, "send_confirmation_email", fake_email)
    return calls


@pytest.fixture()
def codes(monkeypatch):
    """Queue the codes the generator will hand out, in order."""
    queue: list[str] = []

    def fake_generate(length):
        return queue.pop(0)

    monkeypatch.setattr(otp_service, "generate_otp", fake_generate)
    return queue


@pytest.fixture()
def client(settings, session_factory, sent):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_settings] = lambda: settings
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
