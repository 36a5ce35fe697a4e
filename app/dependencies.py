# app/dependencies.py
import logging
from functools import lru_cache, partial
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlmodel import Session

from .application.ports.cache import Cache
from .application.ports.rate_limiter import RateLimiter
from .application.ports.user_repo import UserDto
from .application.services.auth_service import AuthService
from .application.services.captcha_service import CaptchaService
from .application.services.otp_service import OtpService
from .application.services.sms_service import SmsService
from .application.services.token_service import TokenService
from .core.config import SmsProviderConfig, settings
from .database import get_session
from .exceptions import AdminRequired, AuthenticationRequired
from .infrastructure.audit.std_logger import StdAuditLogger
from .infrastructure.cache.memory_cache import InMemoryCache
from .infrastructure.cache.redis_cache import RedisCache
from .infrastructure.persistence.sqlalchemy.repositories.otp_store_sql import SqlOtpStore
from .infrastructure.persistence.sqlalchemy.repositories.refresh_token_repository_sql import SqlRefreshTokenRepository
from .infrastructure.persistence.sqlalchemy.repositories.settings_repository_sql import SqlSystemSettingsRepository
from .infrastructure.persistence.sqlalchemy.repositories.sms_log_repository_sql import SqlSmsLogRepository
from .infrastructure.persistence.sqlalchemy.repositories.user_repository_sql import SqlUserRepository
from .infrastructure.rate_limit.memory_rate_limiter import InMemoryRateLimiter
from .infrastructure.rate_limit.redis_rate_limiter import RedisRateLimiter
from .infrastructure.sms.factory import build_sms_gateway

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@lru_cache()
def get_rate_limiter() -> RateLimiter:
    if settings.REDIS_URL:
        logger.info("Using Redis rate limiter")
        return RedisRateLimiter(settings.REDIS_URL)
    return InMemoryRateLimiter()


@lru_cache()
def get_cache() -> Cache:
    if settings.REDIS_URL:
        return RedisCache(settings.REDIS_URL)
    return InMemoryCache()


def get_client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def get_user_agent(request: Request) -> Optional[str]:
    return request.headers.get("user-agent")


def get_sms_config(session: Session = Depends(get_session)) -> SmsProviderConfig:
    """The stored admin configuration wins over environment defaults."""
    return SqlSystemSettingsRepository(session).get_sms_config() or settings.sms_config()


def get_otp_service(session: Session = Depends(get_session)) -> OtpService:
    return OtpService(
        store=SqlOtpStore(session),
        sms_logs=SqlSmsLogRepository(session),
        rate_limiter=get_rate_limiter(),
        policy=settings.otp_policy(),
    )


def get_sms_service(
    session: Session = Depends(get_session),
    config: SmsProviderConfig = Depends(get_sms_config),
) -> SmsService:
    return SmsService(
        sms_logs=SqlSmsLogRepository(session),
        config=config,
        gateway_factory=partial(build_sms_gateway, settings=settings),
        production=settings.is_production,
        otp_template=settings.OTP_MESSAGE_TEMPLATE,
    )


def get_captcha_service() -> CaptchaService:
    return CaptchaService(
        cache=get_cache(),
        ttl_seconds=settings.CAPTCHA_TTL_SECONDS,
        length=settings.CAPTCHA_LENGTH,
    )


def get_token_service(session: Session = Depends(get_session)) -> TokenService:
    return TokenService(
        refresh_tokens=SqlRefreshTokenRepository(session),
        users=SqlUserRepository(session),
        secret_key=settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
        access_token_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES,
        refresh_token_days=settings.REFRESH_TOKEN_EXPIRE_DAYS,
    )


def get_auth_service(
    session: Session = Depends(get_session),
    otp_service: OtpService = Depends(get_otp_service),
    sms_service: SmsService = Depends(get_sms_service),
    captcha_service: CaptchaService = Depends(get_captcha_service),
    token_service: TokenService = Depends(get_token_service),
) -> AuthService:
    return AuthService(
        otp_service=otp_service,
        sms_service=sms_service,
        captcha_service=captcha_service,
        token_service=token_service,
        user_repo=SqlUserRepository(session),
        audit_logger=StdAuditLogger(),
    )


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    session: Session = Depends(get_session),
    token_service: TokenService = Depends(get_token_service),
) -> UserDto:
    if not credentials or not credentials.credentials:
        raise AuthenticationRequired()
    payload = token_service.decode_access_token(credentials.credentials)
    if not payload:
        logger.warning("JWT token decode failed - invalid or expired token")
        raise AuthenticationRequired()
    user = SqlUserRepository(session).get_by_id(payload["sub"])
    if user is None:
        raise AuthenticationRequired()
    return user


def require_admin(user: UserDto = Depends(get_current_user)) -> UserDto:
    if not user.is_admin:
        raise AdminRequired()
    return user
