import hashlib
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from ...core.config import SmsProviderConfig
from ...db.models.sms.sms_log import STATUS_FAILED, STATUS_SENT, STATUS_SKIPPED
from ...exceptions import ProviderRejected, ProviderUnavailable, SmsMisconfigured
from ..ports.sms_gateway import SmsGateway, SmsTransportError
from ..ports.sms_log_repo import SmsLogDto, SmsLogRepository
from .otp_service import OTP_PURPOSE

logger = logging.getLogger(__name__)

TEST_PURPOSE = "test"
DEFAULT_OTP_TEMPLATE = "Your verification code: {code}"


@dataclass
class SmsService:
    """Sends a message through the configured gateway and walks its delivery log
    from ``pending`` to a final status.

    A disabled or half-configured provider is skipped outside production and is
    a hard failure in production.
    """
    sms_logs: SmsLogRepository
    config: SmsProviderConfig
    gateway_factory: Callable[[SmsProviderConfig], Optional[SmsGateway]]
    production: bool = True
    otp_template: str = DEFAULT_OTP_TEMPLATE
    clock: Callable[[], datetime] = datetime.utcnow

    def send_otp(self, phone: str, code: str, ip_address: Optional[str] = None, meta: Optional[Dict[str, Any]] = None) -> SmsLogDto:
        text = self.otp_template.format(code=code)
        redacted = self.otp_template.format(code="*" * len(code))
        return self._dispatch(phone, text, redacted, OTP_PURPOSE, ip_address, meta)

    def send_test(self, phone: str, message: str, ip_address: Optional[str] = None) -> SmsLogDto:
        return self._dispatch(phone, message, message, TEST_PURPOSE, ip_address, {"test": True})

    def _dispatch(self, phone: str, text: str, stored_text: str, purpose: str,
                  ip_address: Optional[str], meta: Optional[Dict[str, Any]]) -> SmsLogDto:
        provider = (self.config.provider or "").strip().lower() or None
        log = self.sms_logs.create(
            phone=phone,
            ip_address=ip_address,
            purpose=purpose,
            provider=provider,
            message=stored_text,
            message_hash=hashlib.sha256(text.encode()).hexdigest(),
            requested_at=self.clock(),
            meta=dict(meta or {}),
        )

        if not self.config.enabled or not self.config.has_credentials:
            reason = "SMS provider is disabled." if not self.config.enabled else "SMS provider credentials are missing."
            if not self.production:
                logger.info(f"SMS to {phone[-4:]} skipped ({purpose}): {reason}")
                return self.sms_logs.finish(log.id, STATUS_SKIPPED, error_message=reason)
            logger.error(f"SMS to {phone[-4:]} not sent ({purpose}): {reason}")
            self.sms_logs.finish(log.id, STATUS_FAILED, error_code="misconfigured", error_message=reason)
            raise SmsMisconfigured(reason)

        gateway = self.gateway_factory(self.config)
        if gateway is None:
            reason = f"Unsupported SMS provider: {provider}"
            logger.error(reason)
            self.sms_logs.finish(log.id, STATUS_FAILED, error_code="unsupported_provider", error_message=reason)
            raise SmsMisconfigured(reason)

        try:
            result = gateway.send(phone, self.config.sender, text)
        except SmsTransportError as e:
            logger.error(f"SMS transport failure via {provider}: {e}")
            self.sms_logs.finish(log.id, STATUS_FAILED, error_code="transport_error", error_message=str(e))
            raise ProviderUnavailable(str(e)) from e

        if not result.success:
            logger.warning(f"SMS rejected by {provider}: {result.error_code} {result.error_message}")
            self.sms_logs.finish(
                log.id,
                STATUS_FAILED,
                provider_message_id=result.provider_message_id,
                error_code=result.error_code,
                error_message=result.error_message,
                meta={"response": result.raw},
            )
            raise ProviderRejected(result.error_message, error_code=result.error_code)

        logger.info(f"SMS sent to {phone[-4:]} via {provider} ({purpose})")
        return self.sms_logs.finish(
            log.id,
            STATUS_SENT,
            sent_at=self.clock(),
            provider_message_id=result.provider_message_id,
            meta={"response": result.raw},
        )
