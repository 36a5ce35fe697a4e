from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol


@dataclass
class OtpRecordDto:
    phone: str
    code_hash: str
    attempts_remaining: int
    expires_at: datetime
    last_attempt_at: Optional[datetime]
    last_sent_at: datetime
    sms_log_id: Optional[int] = None


class OtpStore(Protocol):
    def get(self, phone: str) -> Optional[OtpRecordDto]:
        ...

    def upsert(self, phone: str, code_hash: str, attempts_remaining: int, expires_at: datetime, sent_at: datetime) -> OtpRecordDto:
        ...

    def consume(self, phone: str, code_hash: str) -> bool:
        """Delete the record only if it still carries ``code_hash``."""
        ...

    def decrement_attempts(self, phone: str, attempted_at: datetime) -> Optional[int]:
        """Atomically take one attempt; returns what is left, or None if nothing was left to take."""
        ...

    def delete(self, phone: str) -> None:
        ...

    def attach_log(self, phone: str, sms_log_id: int, sent_at: datetime) -> None:
        ...

    def delete_expired(self, now: datetime) -> int:
        ...
