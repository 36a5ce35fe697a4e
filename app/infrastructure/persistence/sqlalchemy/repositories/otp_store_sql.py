from datetime import datetime
from typing import Optional

from sqlalchemy import update, delete
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from .....db.models import OtpCode
from .....application.ports.otp_store import OtpStore, OtpRecordDto


class SqlOtpStore(OtpStore):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, rec: OtpCode) -> OtpRecordDto:
        return OtpRecordDto(
            phone=rec.phone,
            code_hash=rec.code_hash,
            attempts_remaining=rec.attempts_remaining,
            expires_at=rec.expires_at,
            last_attempt_at=rec.last_attempt_at,
            last_sent_at=rec.last_sent_at,
            sms_log_id=rec.sms_log_id,
        )

    def get(self, phone: str) -> Optional[OtpRecordDto]:
        rec = self.session.exec(select(OtpCode).where(OtpCode.phone == phone)).first()
        return self._to_dto(rec) if rec else None

    def upsert(self, phone: str, code_hash: str, attempts_remaining: int, expires_at: datetime, sent_at: datetime) -> OtpRecordDto:
        for attempt in range(2):
            rec = self.session.exec(select(OtpCode).where(OtpCode.phone == phone).with_for_update()).first()
            if rec is None:
                rec = OtpCode(phone=phone, code_hash=code_hash, attempts_remaining=attempts_remaining,
                              expires_at=expires_at, last_sent_at=sent_at, created_at=sent_at, updated_at=sent_at)
            else:
                rec.code_hash = code_hash
                rec.attempts_remaining = attempts_remaining
                rec.expires_at = expires_at
                rec.last_attempt_at = None
                rec.last_sent_at = sent_at
                rec.sms_log_id = None
                rec.updated_at = sent_at
            self.session.add(rec)
            try:
                self.session.commit()
            except IntegrityError:
                # A concurrent send inserted the row first; replace it on the second pass
                self.session.rollback()
                if attempt:
                    raise
                continue
            self.session.refresh(rec)
            return self._to_dto(rec)

    def consume(self, phone: str, code_hash: str) -> bool:
        result = self.session.execute(
            delete(OtpCode).where(OtpCode.phone == phone, OtpCode.code_hash == code_hash)
        )
        self.session.commit()
        return result.rowcount == 1

    def decrement_attempts(self, phone: str, attempted_at: datetime) -> Optional[int]:
        result = self.session.execute(
            update(OtpCode)
            .where(OtpCode.phone == phone, OtpCode.attempts_remaining > 0)
            .values(
                attempts_remaining=OtpCode.attempts_remaining - 1,
                last_attempt_at=attempted_at,
                updated_at=attempted_at,
            )
            .execution_options(synchronize_session=False)
        )
        self.session.commit()
        if result.rowcount != 1:
            return None
        remaining = self.session.exec(select(OtpCode.attempts_remaining).where(OtpCode.phone == phone)).first()
        return int(remaining) if remaining is not None else 0

    def delete(self, phone: str) -> None:
        self.session.execute(delete(OtpCode).where(OtpCode.phone == phone))
        self.session.commit()

    def attach_log(self, phone: str, sms_log_id: int, sent_at: datetime) -> None:
        self.session.execute(
            update(OtpCode)
            .where(OtpCode.phone == phone)
            .values(sms_log_id=sms_log_id, last_sent_at=sent_at)
            .execution_options(synchronize_session=False)
        )
        self.session.commit()

    def delete_expired(self, now: datetime) -> int:
        result = self.session.execute(delete(OtpCode).where(OtpCode.expires_at < now))
        self.session.commit()
        return result.rowcount or 0
