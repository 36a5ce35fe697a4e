# app/db/models/settings/system_setting.py
from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime


class SystemSetting(SQLModel, table=True):
    """Singleton row; the SMS group lives in explicit columns rather than a meta blob."""
    __tablename__ = "system_settings"
    id: Optional[int] = Field(default=None, primary_key=True)
    sms_provider: Optional[str] = Field(max_length=50, default=None)
    sms_enabled: bool = Field(default=False)
    sms_username: Optional[str] = Field(max_length=255, default=None)
    sms_password: Optional[str] = Field(max_length=255, default=None)
    sms_sender: Optional[str] = Field(max_length=50, default=None)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
