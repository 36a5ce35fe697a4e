import logging
from typing import Optional
from dataclasses import dataclass

from ...exceptions import CaptchaInvalid, InvalidCode, RefreshTokenInvalid, SmsDispatchError
from ..ports.audit_logger import AuditLogger
from ..ports.user_repo import UserRepository, UserDto
from .captcha_service import CaptchaService
from .otp_service import OtpService
from .sms_service import SmsService
from .token_service import TokenPair, TokenService

logger = logging.getLogger(__name__)


@dataclass
class AuthService:
    otp_service: OtpService
    sms_service: SmsService
    captcha_service: CaptchaService
    token_service: TokenService
    user_repo: UserRepository
    audit_logger: Optional[AuditLogger] = None

    def send_login_otp(self, phone: str, captcha_id: str, captcha_value: str,
                       ip_address: Optional[str] = None, user_agent: Optional[str] = None) -> int:
        """Validate the captcha, pass the send limits and dispatch a fresh code.

        Returns the code lifetime in seconds.
        """
        if not self.captcha_service.validate(captcha_id, captcha_value):
            self._audit("otp_send", phone, ip_address=ip_address, user_agent=user_agent, success=False, details={"reason": "captcha"})
            raise CaptchaInvalid()

        self.otp_service.ensure_can_send(phone, ip_address)
        code = self.otp_service.generate(phone)
        ttl = self.otp_service.policy.ttl_seconds
        if not self.sms_service.production:
            logger.debug(f"OTP code generated for {phone}: {code}")

        try:
            log = self.sms_service.send_otp(phone, code, ip_address=ip_address,
                                            meta={"otp_ttl": ttl, "user_agent": user_agent})
        except SmsDispatchError as e:
            self.otp_service.clear(phone)
            self._audit("otp_send", phone, ip_address=ip_address, user_agent=user_agent, success=False,
                        details={"reason": e.code, "error": str(e)})
            raise

        self.otp_service.attach_log(phone, log)
        self._audit("otp_send", phone, ip_address=ip_address, user_agent=user_agent, details={"sms_log_id": log.id, "status": log.status})
        return ttl

    def verify_otp_and_issue(self, phone: str, code: str,
                             ip_address: Optional[str] = None, user_agent: Optional[str] = None) -> TokenPair:
        try:
            self.otp_service.check(phone, code)
        except InvalidCode as e:
            self._audit("otp_verify", phone, ip_address=ip_address, user_agent=user_agent, success=False,
                        details={"reason": type(e).__name__})
            raise

        user = self.user_repo.get_or_create_by_phone(phone)
        if not user.is_verified:
            self.user_repo.mark_verified(user.id)
        tokens = self.token_service.issue(user.id, ip_address=ip_address, user_agent=user_agent)
        self._audit("otp_verify", phone, user_id=user.id, ip_address=ip_address, user_agent=user_agent)
        return tokens

    def refresh(self, refresh_token: str, ip_address: Optional[str] = None, user_agent: Optional[str] = None) -> TokenPair:
        tokens = self.token_service.rotate(refresh_token, ip_address=ip_address, user_agent=user_agent)
        if tokens is None:
            raise RefreshTokenInvalid()
        return tokens

    def logout(self, user: UserDto, ip_address: Optional[str] = None, user_agent: Optional[str] = None) -> int:
        count = self.token_service.revoke_all(user.id)
        self._audit("logout", user.phone, user_id=user.id, ip_address=ip_address, user_agent=user_agent, details={"revoked": count})
        return count

    def _audit(self, action: str, phone: str, **kwargs) -> None:
        if self.audit_logger is None:
            return
        self.audit_logger.log(action, phone, **kwargs)
