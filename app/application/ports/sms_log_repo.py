from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Protocol, Dict, Any, Sequence


@dataclass
class SmsLogDto:
    id: int
    phone: str
    ip_address: Optional[str]
    purpose: str
    provider: Optional[str]
    status: str
    message: Optional[str]
    message_hash: Optional[str]
    provider_message_id: Optional[str]
    error_code: Optional[str]
    error_message: Optional[str]
    meta: Dict[str, Any] = field(default_factory=dict)
    requested_at: Optional[datetime] = None
    sent_at: Optional[datetime] = None


class SmsLogRepository(Protocol):
    def create(self, phone: str, ip_address: Optional[str], purpose: str, provider: Optional[str], message: str, message_hash: str, requested_at: datetime, meta: Dict[str, Any]) -> SmsLogDto:
        ...

    def finish(self, log_id: int, status: str, sent_at: Optional[datetime] = None, provider_message_id: Optional[str] = None, error_code: Optional[str] = None, error_message: Optional[str] = None, meta: Optional[Dict[str, Any]] = None) -> SmsLogDto:
        """Move a pending row to its final status; extra ``meta`` keys are merged in."""
        ...

    def latest_for_phone(self, phone: str, purpose: str, statuses: Sequence[str]) -> Optional[SmsLogDto]:
        ...

    def count_for_phone_since(self, phone: str, purpose: str, since: datetime) -> int:
        ...

    def count_for_ip_since(self, ip_address: str, purpose: str, since: datetime) -> int:
        ...
