from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol


@dataclass
class RefreshTokenDto:
    id: str
    user_id: str
    token_hash: str
    expires_at: datetime
    last_used_at: Optional[datetime]
    ip_address: Optional[str]
    user_agent: Optional[str]
    created_at: datetime


class RefreshTokenRepository(Protocol):
    def create(self, user_id: str, token_hash: str, expires_at: datetime, ip_address: Optional[str], user_agent: Optional[str]) -> RefreshTokenDto:
        ...

    def get_by_hash(self, token_hash: str) -> Optional[RefreshTokenDto]:
        ...

    def delete_by_id(self, token_id: str) -> bool:
        """True only for the caller whose delete removed the row."""
        ...

    def delete_for_user(self, user_id: str) -> int:
        ...

    def delete_expired(self, now: datetime) -> int:
        ...
