from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.gzip import GZipMiddleware
from contextlib import asynccontextmanager
from dotenv import load_dotenv
from datetime import datetime
from sqlmodel import Session
import logging

# Load environment variables as early as possible
load_dotenv()

from .core.config import settings
from .database import create_db_and_tables, engine
from .middleware import (
    RateLimitMiddleware, SecurityMiddleware, LoggingMiddleware, ErrorHandlingMiddleware,
    RequestSizeLimitMiddleware, RequestIdMiddleware,
)
from .exceptions import http_exception_handler, validation_exception_handler
from .routers import auth_router, captcha_router, settings_router
from .application.services.otp_service import OtpService
from .application.services.token_service import TokenService
from .dependencies import get_rate_limiter
from .infrastructure.persistence.sqlalchemy.repositories.otp_store_sql import SqlOtpStore
from .infrastructure.persistence.sqlalchemy.repositories.refresh_token_repository_sql import SqlRefreshTokenRepository
from .infrastructure.persistence.sqlalchemy.repositories.sms_log_repository_sql import SqlSmsLogRepository
from .infrastructure.persistence.sqlalchemy.repositories.user_repository_sql import SqlUserRepository

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format=settings.LOG_FORMAT
)
logger = logging.getLogger(__name__)


def prune_expired_records() -> None:
    with Session(engine) as session:
        otps = OtpService(
            store=SqlOtpStore(session),
            sms_logs=SqlSmsLogRepository(session),
            rate_limiter=get_rate_limiter(),
            policy=settings.otp_policy(),
        ).prune_expired()
        tokens = TokenService(
            refresh_tokens=SqlRefreshTokenRepository(session),
            users=SqlUserRepository(session),
            secret_key=settings.SECRET_KEY,
        ).prune_expired()
    logger.info(f"Pruned {otps} expired OTP codes and {tokens} expired refresh tokens")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"Starting {settings.APP_NAME} ({settings.ENVIRONMENT})...")
    app.state.db_init_ok = True
    app.state.db_init_error = None
    try:
        create_db_and_tables()
        prune_expired_records()
        logger.info("Database initialized successfully")
    except Exception as e:
        # Do not crash the app; report via health endpoint
        app.state.db_init_ok = False
        app.state.db_init_error = str(e)
        logger.exception("Database initialization failed")
    if settings.is_production and settings.SECRET_KEY == "change-me-in-prod":
        logger.warning("JWT_SECRET_KEY is not configured; tokens are signed with the default key")
    yield
    # Shutdown
    logger.info(f"Shutting down {settings.APP_NAME}...")

# Initialize FastAPI
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
    docs_url=("/docs" if settings.DOCS_ENABLED else None),
    redoc_url=("/redoc" if settings.DOCS_ENABLED else None),
    openapi_url=("/openapi.json" if settings.DOCS_ENABLED else None)
)

# Add custom exception handlers
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)

# Add middleware
app.add_middleware(ErrorHandlingMiddleware)
app.add_middleware(LoggingMiddleware)
app.add_middleware(SecurityMiddleware)
app.add_middleware(RequestSizeLimitMiddleware)
app.add_middleware(RateLimitMiddleware)
app.add_middleware(RequestIdMiddleware)

# GZip compression
app.add_middleware(GZipMiddleware, minimum_size=settings.GZIP_MIN_SIZE)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=settings.allowed_methods_list,
    allow_headers=settings.allowed_headers_list,
    expose_headers=["X-Request-Id", "Retry-After"],
)

app.include_router(captcha_router.router)
app.include_router(auth_router.router)
app.include_router(settings_router.router)


# Health check endpoint
@app.get("/health")
def health_check():
    return {
        "status": "healthy" if getattr(app.state, "db_init_ok", True) else "degraded",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "timestamp": datetime.utcnow().isoformat(),
        "environment": settings.ENVIRONMENT,
        "database": {
            "ok": getattr(app.state, "db_init_ok", True),
            "error": getattr(app.state, "db_init_error", None)
        },
        "auth": {
            "secret_key_configured": bool(settings.SECRET_KEY and settings.SECRET_KEY != "change-me-in-prod"),
            "jwt_algorithm": settings.ALGORITHM,
            "token_expiry_minutes": settings.ACCESS_TOKEN_EXPIRE_MINUTES
        },
        "sms": {
            "provider": settings.SMS_PROVIDER,
            "enabled": settings.SMS_ENABLED,
        },
        "rate_limiter": "redis" if settings.REDIS_URL else "memory",
    }


# ------------------------
# Run with correct PORT in local/production
# ------------------------
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        workers=settings.WORKERS,
        log_level=settings.LOG_LEVEL.lower()
    )
