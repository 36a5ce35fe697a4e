# app/core/config.py
import os
from dataclasses import dataclass
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
from pydantic_settings import SettingsConfigDict
from typing import Optional, List
from functools import lru_cache

NON_PRODUCTION_ENVIRONMENTS = ("local", "testing", "development")


@dataclass(frozen=True)
class OtpPolicy:
    """Limits consumed by the OTP policy engine. A ``None`` limit disables that check."""
    ttl_seconds: int = 120
    code_length: int = 6
    max_verify_attempts: int = 5
    burst_max_attempts: Optional[int] = 3
    burst_decay_seconds: Optional[int] = 60
    cooldown_seconds: Optional[int] = 90
    per_phone_hour: Optional[int] = 10
    per_phone_day: Optional[int] = 30
    per_ip_hour: Optional[int] = 25
    per_ip_day: Optional[int] = 80


@dataclass(frozen=True)
class SmsProviderConfig:
    provider: Optional[str] = None
    enabled: bool = False
    username: Optional[str] = None
    password: Optional[str] = None
    sender: Optional[str] = None

    @property
    def has_credentials(self) -> bool:
        return bool(self.username and self.password and self.sender)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra='ignore', populate_by_name=True)

    # Application Settings
    APP_NAME: str = "Elevator Parts Auth API"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = os.environ.get("ENVIRONMENT", "production")
    DEBUG: bool = False
    DOCS_ENABLED: bool = True
    LOCALE: str = "en"

    # Server Settings
    HOST: str = "0.0.0.0"
    PORT: int = int(os.environ.get("PORT", 8000))
    WORKERS: int = 1

    # Database Settings
    DATABASE_URL: str = os.environ.get("DATABASE_URL", "sqlite:///./app/elevator_auth.db")

    # Security Settings
    SECRET_KEY: str = Field(default="change-me-in-prod", alias="JWT_SECRET_KEY")
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    REFRESH_TOKEN_EXPIRE_DAYS: int = 30

    # CORS Settings
    ALLOWED_ORIGINS: str = os.environ.get("ALLOWED_ORIGINS", "*")
    ALLOWED_METHODS: str = os.environ.get("ALLOWED_METHODS", "GET,POST,PUT,DELETE,OPTIONS")
    ALLOWED_HEADERS: str = os.environ.get("ALLOWED_HEADERS", "*")
    CORS_ALLOW_CREDENTIALS: bool = True

    # Middleware settings
    GZIP_MIN_SIZE: int = 500
    MAX_REQUEST_SIZE: int = 64 * 1024  # 64KB, auth payloads are tiny

    # Logging Settings
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # Rate Limiting
    RATE_LIMIT_PER_MINUTE: int = 60
    REDIS_URL: Optional[str] = os.environ.get("REDIS_URL", None)

    # Phone numbers are Iranian mobiles by default (09xxxxxxxxx)
    PHONE_PATTERN: str = r"^09[0-9]{9}$"

    # OTP policy
    OTP_LENGTH: int = 6
    OTP_TTL_SECONDS: int = 120
    OTP_MAX_VERIFY_ATTEMPTS: int = 5
    OTP_BURST_MAX_ATTEMPTS: Optional[int] = 3
    OTP_BURST_DECAY_SECONDS: Optional[int] = 60
    OTP_COOLDOWN_SECONDS: Optional[int] = 90
    OTP_PER_PHONE_HOUR: Optional[int] = 10
    OTP_PER_PHONE_DAY: Optional[int] = 30
    OTP_PER_IP_HOUR: Optional[int] = 25
    OTP_PER_IP_DAY: Optional[int] = 80
    OTP_MESSAGE_TEMPLATE: str = "Your verification code: {code}"

    # Captcha
    CAPTCHA_TTL_SECONDS: int = 180
    CAPTCHA_LENGTH: int = 4

    # SMS provider defaults (a system_settings row overrides these)
    SMS_PROVIDER: str = "farapayamak"
    SMS_ENABLED: bool = False
    SMS_USERNAME: Optional[str] = None
    SMS_PASSWORD: Optional[str] = None
    SMS_SENDER: Optional[str] = None
    SMS_TIMEOUT_SECONDS: float = 10.0
    SMS_VERIFY_SSL: bool = True
    FARAPAYAMAK_BASE_URL: str = "https://rest.payamak-panel.com/api/SendSMS/"

    @field_validator(
        "OTP_BURST_MAX_ATTEMPTS", "OTP_BURST_DECAY_SECONDS", "OTP_COOLDOWN_SECONDS",
        "OTP_PER_PHONE_HOUR", "OTP_PER_PHONE_DAY", "OTP_PER_IP_HOUR", "OTP_PER_IP_DAY", "REDIS_URL",
        mode="before",
    )
    @classmethod
    def blank_as_none(cls, v):
        if isinstance(v, str) and v.strip() == "":
            return None
        return v

    # Helper methods for list envs
    def _split_csv(self, value: str) -> List[str]:
        if value is None:
            return []
        value = value.strip()
        if value == "":
            return []
        return [item.strip() for item in value.split(",")]

    @property
    def allowed_origins_list(self) -> List[str]:
        return self._split_csv(self.ALLOWED_ORIGINS)

    @property
    def allowed_methods_list(self) -> List[str]:
        return self._split_csv(self.ALLOWED_METHODS)

    @property
    def allowed_headers_list(self) -> List[str]:
        return self._split_csv(self.ALLOWED_HEADERS)

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.strip().lower() not in NON_PRODUCTION_ENVIRONMENTS

    def otp_policy(self) -> OtpPolicy:
        return OtpPolicy(
            ttl_seconds=self.OTP_TTL_SECONDS,
            code_length=self.OTP_LENGTH,
            max_verify_attempts=self.OTP_MAX_VERIFY_ATTEMPTS,
            burst_max_attempts=self.OTP_BURST_MAX_ATTEMPTS,
            burst_decay_seconds=self.OTP_BURST_DECAY_SECONDS,
            cooldown_seconds=self.OTP_COOLDOWN_SECONDS,
            per_phone_hour=self.OTP_PER_PHONE_HOUR,
            per_phone_day=self.OTP_PER_PHONE_DAY,
            per_ip_hour=self.OTP_PER_IP_HOUR,
            per_ip_day=self.OTP_PER_IP_DAY,
        )

    def sms_config(self) -> SmsProviderConfig:
        return SmsProviderConfig(
            provider=self.SMS_PROVIDER,
            enabled=self.SMS_ENABLED,
            username=(self.SMS_USERNAME or "").strip() or None,
            password=(self.SMS_PASSWORD or "").strip() or None,
            sender=(self.SMS_SENDER or "").strip() or None,
        )


@lru_cache()
def get_settings() -> Settings:
    s = Settings()
    # Normalize ALLOWED_ORIGINS if provided as comma-separated string env var CORS_ORIGINS
    cors_env = os.environ.get("CORS_ORIGINS")
    if cors_env:
        s.ALLOWED_ORIGINS = cors_env
    return s

settings: Settings = get_settings()
