# app/db/models/auth/otp.py
from sqlmodel import SQLModel, Field
from datetime import datetime
from typing import Optional


class OtpCode(SQLModel, table=True):
    __tablename__ = "otp_codes"
    id: Optional[int] = Field(default=None, primary_key=True)
    phone: str = Field(max_length=20, unique=True, index=True)
    code_hash: str = Field(max_length=64)
    attempts_remaining: int = Field(default=0, ge=0)
    expires_at: datetime = Field(index=True)
    last_attempt_at: Optional[datetime] = Field(default=None)
    last_sent_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    sms_log_id: Optional[int] = Field(default=None, foreign_key="sms_logs.id")
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
