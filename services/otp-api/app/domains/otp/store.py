import logging
from datetime import datetime

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import StorageError
from app.domains.otp.models import OtpRecord

logger = logging.getLogger(__name__)

_WRITE_FAILED = "Could not write to the database"
_READ_FAILED = "Could not read from the database"


class OtpStore:
    """Append/query/delete access to the `otps` table, bound to one session."""

    def __init__(self, db: Session):
        self.db = db

    def _fail(self, message: str, exc: SQLAlchemyError) -> StorageError:
        self.db.rollback()
        logger.error("otp store error: %s", exc, exc_info=exc)
        return StorageError(message)

    def add(self, phone: str, code: str, expires_at: datetime | None) -> OtpRecord:
        record = OtpRecord(phone=phone, otp=code, expires_at=expires_at)
        try:
            self.db.add(record)
            self.db.commit()
            self.db.refresh(record)
        except SQLAlchemyError as e:
            raise self._fail(_WRITE_FAILED, e)
        return record

    def latest(self, phone: str) -> OtpRecord | None:
        stmt = (
            select(OtpRecord)
            .where(OtpRecord.phone == phone)
            .order_by(OtpRecord.created_at.desc(), OtpRecord.id.desc())
            .limit(1)
        )
        try:
            return self.db.execute(stmt).scalars().first()
        except SQLAlchemyError as e:
            raise self._fail(_READ_FAILED, e)

    def consume(self, record: OtpRecord, code: str) -> bool:
        """
        Delete `record` only if it still holds `code`, then drop every other row for the phone.
        Both happen in one transaction; returns False when another request consumed it first.
        """
        try:
            result = self.db.execute(
                delete(OtpRecord).where(OtpRecord.id == record.id, OtpRecord.otp == code)
            )
            if result.rowcount != 1:
                self.db.rollback()
                return False
            self.db.execute(delete(OtpRecord).where(OtpRecord.phone == record.phone))
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._fail(_WRITE_FAILED, e)
        return True

    def delete_for_phone(self, phone: str) -> int:
        try:
            result = self.db.execute(delete(OtpRecord).where(OtpRecord.phone == phone))
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._fail(_WRITE_FAILED, e)
        return result.rowcount

    def delete_all(self) -> int:
        try:
            result = self.db.execute(delete(OtpRecord))
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._fail(_WRITE_FAILED, e)
        return result.rowcount

    def purge_expired(self, now: datetime) -> int:
        try:
            result = self.db.execute(
                delete(OtpRecord).where(OtpRecord.expires_at.is_not(None), OtpRecord.expires_at < now)
            )
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._fail(_WRITE_FAILED, e)
        return result.rowcount

    def count(self, phone: str | None = None) -> int:
        stmt = select(func.count(OtpRecord.id))
        if phone is not None:
            stmt = stmt.where(OtpRecord.phone == phone)
        try:
            return self.db.execute(stmt).scalar_one()
        except SQLAlchemyError as e:
            raise self._fail(_READ_FAILED, e)
