import hashlib
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional, Dict, Any

import jwt

from ..ports.refresh_token_repo import RefreshTokenRepository
from ..ports.user_repo import UserRepository

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


@dataclass
class TokenPair:
    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str = "bearer"


@dataclass
class TokenService:
    """Mints JWT access tokens and rotating opaque refresh tokens.

    Only the sha256 of a refresh token is persisted. Rotation deletes the
    presented token before issuing a new pair, so replaying it fails.
    """
    refresh_tokens: RefreshTokenRepository
    users: UserRepository
    secret_key: str
    algorithm: str = "HS256"
    access_token_minutes: int = 60
    refresh_token_days: int = 30
    clock: Callable[[], datetime] = datetime.utcnow

    def issue(self, user_id: str, ip_address: Optional[str] = None, user_agent: Optional[str] = None) -> TokenPair:
        now = self.clock()
        expires_in = self.access_token_minutes * 60
        access_token = jwt.encode(
            {"sub": user_id, "type": ACCESS_TOKEN_TYPE, "iat": now, "exp": now + timedelta(seconds=expires_in)},
            self.secret_key,
            algorithm=self.algorithm,
        )
        refresh_token = secrets.token_urlsafe(48)
        self.refresh_tokens.create(
            user_id=user_id,
            token_hash=hash_token(refresh_token),
            expires_at=now + timedelta(days=self.refresh_token_days),
            ip_address=ip_address,
            user_agent=(user_agent or "")[:512] or None,
        )
        return TokenPair(access_token=access_token, refresh_token=refresh_token, expires_in=expires_in)

    def rotate(self, refresh_token: str, ip_address: Optional[str] = None, user_agent: Optional[str] = None) -> Optional[TokenPair]:
        if not refresh_token:
            return None
        record = self.refresh_tokens.get_by_hash(hash_token(refresh_token))
        if record is None:
            return None
        if record.expires_at <= self.clock():
            self.refresh_tokens.delete_by_id(record.id)
            return None
        if not self.refresh_tokens.delete_by_id(record.id):
            # another request rotated this token first
            logger.warning(f"Refresh token {record.id} was already rotated")
            return None
        if self.users.get_by_id(record.user_id) is None:
            return None
        return self.issue(record.user_id, ip_address=ip_address, user_agent=user_agent)

    def revoke_all(self, user_id: str) -> int:
        count = self.refresh_tokens.delete_for_user(user_id)
        logger.info(f"Revoked {count} refresh tokens for user {user_id}")
        return count

    def decode_access_token(self, token: str) -> Optional[Dict[str, Any]]:
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except jwt.PyJWTError:
            return None
        if payload.get("type") != ACCESS_TOKEN_TYPE or not payload.get("sub"):
            return None
        return payload

    def prune_expired(self) -> int:
        return self.refresh_tokens.delete_expired(self.clock())
