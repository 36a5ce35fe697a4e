from datetime import datetime
from typing import Optional, Dict, Any, Sequence

from sqlalchemy import func
from sqlmodel import Session, select

from .....db.models import SmsLog
from .....db.models.sms.sms_log import STATUS_PENDING
from .....application.ports.sms_log_repo import SmsLogRepository, SmsLogDto


class SqlSmsLogRepository(SmsLogRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, log: SmsLog) -> SmsLogDto:
        return SmsLogDto(
            id=log.id,
            phone=log.phone,
            ip_address=log.ip_address,
            purpose=log.purpose,
            provider=log.provider,
            status=log.status,
            message=log.message,
            message_hash=log.message_hash,
            provider_message_id=log.provider_message_id,
            error_code=log.error_code,
            error_message=log.error_message,
            meta=dict(log.meta or {}),
            requested_at=log.requested_at,
            sent_at=log.sent_at,
        )

    def create(self, phone: str, ip_address: Optional[str], purpose: str, provider: Optional[str], message: str, message_hash: str, requested_at: datetime, meta: Dict[str, Any]) -> SmsLogDto:
        log = SmsLog(
            phone=phone,
            ip_address=ip_address,
            purpose=purpose,
            provider=provider,
            status=STATUS_PENDING,
            message=message,
            message_hash=message_hash,
            meta=meta,
            requested_at=requested_at,
            created_at=requested_at,
            updated_at=requested_at,
        )
        self.session.add(log)
        self.session.commit()
        self.session.refresh(log)
        return self._to_dto(log)

    def finish(self, log_id: int, status: str, sent_at: Optional[datetime] = None, provider_message_id: Optional[str] = None, error_code: Optional[str] = None, error_message: Optional[str] = None, meta: Optional[Dict[str, Any]] = None) -> SmsLogDto:
        log = self.session.exec(select(SmsLog).where(SmsLog.id == log_id).with_for_update()).first()
        if log is None:
            raise LookupError(f"SMS log {log_id} not found")
        if log.status != STATUS_PENDING:
            raise ValueError(f"SMS log {log_id} already finalised as {log.status}")
        log.status = status
        log.sent_at = sent_at
        log.provider_message_id = provider_message_id
        log.error_code = error_code
        log.error_message = error_message
        if meta:
            # reassign so the JSON column is flagged dirty
            log.meta = {**(log.meta or {}), **meta}
        log.updated_at = datetime.utcnow()
        self.session.add(log)
        self.session.commit()
        self.session.refresh(log)
        return self._to_dto(log)

    def latest_for_phone(self, phone: str, purpose: str, statuses: Sequence[str]) -> Optional[SmsLogDto]:
        log = self.session.exec(
            select(SmsLog)
            .where(SmsLog.phone == phone, SmsLog.purpose == purpose, SmsLog.status.in_(list(statuses)))
            .order_by(SmsLog.requested_at.desc(), SmsLog.id.desc())
        ).first()
        return self._to_dto(log) if log else None

    def count_for_phone_since(self, phone: str, purpose: str, since: datetime) -> int:
        return int(self.session.exec(
            select(func.count(SmsLog.id)).where(
                SmsLog.phone == phone, SmsLog.purpose == purpose, SmsLog.requested_at >= since
            )
        ).one())

    def count_for_ip_since(self, ip_address: str, purpose: str, since: datetime) -> int:
        return int(self.session.exec(
            select(func.count(SmsLog.id)).where(
                SmsLog.ip_address == ip_address, SmsLog.purpose == purpose, SmsLog.requested_at >= since
            )
        ).one())
