from datetime import datetime
from typing import Optional

from sqlalchemy import delete
from sqlmodel import Session, select

from .....db.models import RefreshToken
from .....application.ports.refresh_token_repo import RefreshTokenRepository, RefreshTokenDto


class SqlRefreshTokenRepository(RefreshTokenRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, rec: RefreshToken) -> RefreshTokenDto:
        return RefreshTokenDto(
            id=rec.id,
            user_id=rec.user_id,
            token_hash=rec.token_hash,
            expires_at=rec.expires_at,
            last_used_at=rec.last_used_at,
            ip_address=rec.ip_address,
            user_agent=rec.user_agent,
            created_at=rec.created_at,
        )

    def create(self, user_id: str, token_hash: str, expires_at: datetime, ip_address: Optional[str], user_agent: Optional[str]) -> RefreshTokenDto:
        rec = RefreshToken(user_id=user_id, token_hash=token_hash, expires_at=expires_at,
                           ip_address=ip_address, user_agent=user_agent)
        self.session.add(rec)
        self.session.commit()
        self.session.refresh(rec)
        return self._to_dto(rec)

    def get_by_hash(self, token_hash: str) -> Optional[RefreshTokenDto]:
        rec = self.session.exec(select(RefreshToken).where(RefreshToken.token_hash == token_hash)).first()
        return self._to_dto(rec) if rec else None

    def delete_by_id(self, token_id: str) -> bool:
        result = self.session.execute(delete(RefreshToken).where(RefreshToken.id == token_id))
        self.session.commit()
        return result.rowcount == 1

    def delete_for_user(self, user_id: str) -> int:
        result = self.session.execute(delete(RefreshToken).where(RefreshToken.user_id == user_id))
        self.session.commit()
        return result.rowcount or 0

    def delete_expired(self, now: datetime) -> int:
        result = self.session.execute(delete(RefreshToken).where(RefreshToken.expires_at <= now))
        self.session.commit()
        return result.rowcount or 0
