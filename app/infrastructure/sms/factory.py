from typing import Optional

from ...application.ports.sms_gateway import SmsGateway
from ...core.config import Settings, SmsProviderConfig
from .farapayamak_gateway import FarapayamakGateway
from .twilio_gateway import TwilioSmsGateway

SUPPORTED_PROVIDERS = ("farapayamak", "twilio")


def build_sms_gateway(config: SmsProviderConfig, settings: Settings) -> Optional[SmsGateway]:
    """Gateway for ``config.provider``; None when the provider is unknown."""
    provider = (config.provider or "").strip().lower()
    if provider == "farapayamak":
        return FarapayamakGateway(
            config.username,
            config.password,
            endpoint=settings.FARAPAYAMAK_BASE_URL,
            timeout=settings.SMS_TIMEOUT_SECONDS,
            verify_ssl=settings.SMS_VERIFY_SSL,
        )
    if provider == "twilio":
        # username/password carry the account SID and auth token
        return TwilioSmsGateway(config.username, config.password, timeout=settings.SMS_TIMEOUT_SECONDS)
    return None
