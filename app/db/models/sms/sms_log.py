# app/db/models/sms/sms_log.py
from typing import Optional, Dict, Any
from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON
from datetime import datetime

STATUS_PENDING = "pending"
STATUS_SENT = "sent"
STATUS_FAILED = "failed"
STATUS_SKIPPED = "skipped"


class SmsLog(SQLModel, table=True):
    __tablename__ = "sms_logs"
    id: Optional[int] = Field(default=None, primary_key=True)
    phone: str = Field(max_length=20, index=True)
    ip_address: Optional[str] = Field(max_length=45, default=None, index=True)
    purpose: str = Field(max_length=50, default="otp", index=True)
    provider: Optional[str] = Field(max_length=50, default=None)
    status: str = Field(max_length=20, default=STATUS_PENDING, index=True)
    message: Optional[str] = Field(default=None)
    message_hash: Optional[str] = Field(max_length=64, default=None)
    provider_message_id: Optional[str] = Field(max_length=100, default=None)
    error_code: Optional[str] = Field(max_length=100, default=None)
    error_message: Optional[str] = Field(default=None)
    meta: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    requested_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    sent_at: Optional[datetime] = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
