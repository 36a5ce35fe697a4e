from typing import Optional, Protocol

from ...core.config import SmsProviderConfig


class SystemSettingsRepository(Protocol):
    def get_sms_config(self) -> Optional[SmsProviderConfig]:
        ...

    def save_sms_config(self, config: SmsProviderConfig) -> SmsProviderConfig:
        ...
