# app/schemas/settings/settings.py
from pydantic import BaseModel, Field, validator
from typing import Optional
import re

from ...core.config import settings
from ...core.digits import to_ascii_digits
from ...infrastructure.sms.factory import SUPPORTED_PROVIDERS


class SmsSettingsResponse(BaseModel):
    success: bool = True
    provider: Optional[str] = None
    enabled: bool = False
    username: Optional[str] = None
    password: Optional[str] = Field(None, description="Masked; never returned in clear text")
    sender: Optional[str] = None
    source: str = Field("environment", description="'database' when an admin override is stored")


class UpdateSmsSettingsRequest(BaseModel):
    provider: str
    enabled: bool = False
    username: Optional[str] = Field(None, max_length=255)
    password: Optional[str] = Field(None, max_length=255)
    sender: Optional[str] = Field(None, max_length=50)

    @validator('provider')
    def validate_provider(cls, v):
        v = v.strip().lower()
        if v not in SUPPORTED_PROVIDERS:
            raise ValueError(f'Provider must be one of: {", ".join(SUPPORTED_PROVIDERS)}')
        return v

    @validator('username', 'password', 'sender')
    def strip_blank(cls, v):
        if v is None:
            return v
        return v.strip() or None


class SmsTestRequest(BaseModel):
    testNumber: str
    message: str = Field("Test message", min_length=1, max_length=500)

    @validator('testNumber')
    def validate_number(cls, v):
        v = to_ascii_digits(v)
        if not re.match(settings.PHONE_PATTERN, v, re.ASCII):
            raise ValueError('Invalid phone number format (expected 09xxxxxxxxx)')
        return v


class SmsTestResponse(BaseModel):
    success: bool
    message: str
    status: str
    logId: Optional[int] = None
