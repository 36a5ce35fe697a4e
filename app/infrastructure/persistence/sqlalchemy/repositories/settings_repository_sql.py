from datetime import datetime
from typing import Optional

from sqlmodel import Session, select

from .....db.models import SystemSetting
from .....core.config import SmsProviderConfig
from .....application.ports.settings_repo import SystemSettingsRepository


class SqlSystemSettingsRepository(SystemSettingsRepository):
    def __init__(self, session: Session):
        self.session = session

    def _row(self) -> Optional[SystemSetting]:
        return self.session.exec(select(SystemSetting).order_by(SystemSetting.id)).first()

    def get_sms_config(self) -> Optional[SmsProviderConfig]:
        row = self._row()
        if not row or not row.sms_provider:
            return None
        return SmsProviderConfig(
            provider=row.sms_provider,
            enabled=bool(row.sms_enabled),
            username=(row.sms_username or "").strip() or None,
            password=(row.sms_password or "").strip() or None,
            sender=(row.sms_sender or "").strip() or None,
        )

    def save_sms_config(self, config: SmsProviderConfig) -> SmsProviderConfig:
        row = self._row() or SystemSetting()
        row.sms_provider = config.provider
        row.sms_enabled = config.enabled
        row.sms_username = config.username
        row.sms_password = config.password
        row.sms_sender = config.sender
        row.updated_at = datetime.utcnow()
        self.session.add(row)
        self.session.commit()
        return self.get_sms_config()
