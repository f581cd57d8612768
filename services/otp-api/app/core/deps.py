from fastapi import Depends
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.db import SessionLocal
from app.domains.otp.service import OtpService
from app.domains.otp.store import OtpStore


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_otp_store(db: Session = Depends(get_db)) -> OtpStore:
    return OtpStore(db)


def get_otp_service(
    store: OtpStore = Depends(get_otp_store),
    settings: Settings = Depends(get_settings),
) -> OtpService:
    return OtpService(store, settings)
