# app/schemas/auth/auth.py
from pydantic import BaseModel, Field, validator
from typing import Optional
import re
from datetime import datetime

from ...core.config import settings
from ...core.digits import is_ascii_digits, to_ascii_digits


def _validate_phone(v: str) -> str:
    phone = to_ascii_digits(v)
    if not re.match(settings.PHONE_PATTERN, phone, re.ASCII):
        raise ValueError('Invalid phone number format (expected 09xxxxxxxxx)')
    return phone


class SendOtpRequest(BaseModel):
    phone: str = Field(..., description="Mobile number, e.g. 09123456789")
    captchaId: str = Field(..., min_length=1, description="Identifier returned by /captcha")
    captcha: str = Field(..., description="Digits shown in the captcha image")

    @validator('phone')
    def validate_phone(cls, v):
        return _validate_phone(v)

    @validator('captcha')
    def validate_captcha(cls, v):
        v = to_ascii_digits(v)
        if not is_ascii_digits(v, settings.CAPTCHA_LENGTH):
            raise ValueError(f'Captcha must be {settings.CAPTCHA_LENGTH} digits')
        return v


class SendOtpResponse(BaseModel):
    success: bool
    message: str
    ttl: int
    retryAfter: Optional[int] = None


class VerifyOtpRequest(BaseModel):
    phone: str = Field(..., description="Mobile number the code was sent to")
    code: str = Field(..., description="One-time code received by SMS")

    @validator('phone')
    def validate_phone(cls, v):
        return _validate_phone(v)

    @validator('code')
    def validate_code(cls, v):
        v = to_ascii_digits(v)
        if not is_ascii_digits(v, settings.OTP_LENGTH):
            raise ValueError(f'Code must be {settings.OTP_LENGTH} digits')
        return v


class RefreshRequest(BaseModel):
    refreshToken: Optional[str] = None


class TokenPairResponse(BaseModel):
    accessToken: str
    refreshToken: str
    expiresIn: int
    tokenType: str = "bearer"


class LogoutResponse(BaseModel):
    success: bool
    message: str


class UserResponse(BaseModel):
    id: str
    name: Optional[str] = None
    phone: str
    email: Optional[str] = None
    status: str
    isVerified: bool
    isAdmin: bool
    createdAt: datetime


class MeResponse(BaseModel):
    user: UserResponse
