import hashlib
import hmac
import logging
import math
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Optional

from ...core.config import OtpPolicy
from ...db.models.sms.sms_log import STATUS_PENDING, STATUS_SENT
from ...exceptions import (
    AttemptsExhausted,
    CodeExpired,
    CodeInvalid,
    CooldownActive,
    InvalidCode,
    QuotaExceeded,
    RateLimitExceeded,
)
from ..ports.otp_store import OtpStore
from ..ports.rate_limiter import RateLimiter
from ..ports.sms_log_repo import SmsLogDto, SmsLogRepository

logger = logging.getLogger(__name__)

OTP_PURPOSE = "otp"
HOUR = timedelta(hours=1)
DAY = timedelta(days=1)


def hash_code(code: str) -> str:
    return hashlib.sha256(code.encode()).hexdigest()


@dataclass
class OtpService:
    """Gate-keeps OTP issuance and checks submitted codes.

    Send limits are evaluated in a fixed order (burst, cooldown, phone/hour,
    phone/day, ip/hour, ip/day) and the first one that trips is raised.
    Only the sha256 of a code is ever persisted.
    """
    store: OtpStore
    sms_logs: SmsLogRepository
    rate_limiter: RateLimiter
    policy: OtpPolicy = field(default_factory=OtpPolicy)
    clock: Callable[[], datetime] = datetime.utcnow

    def ensure_can_send(self, phone: str, ip_address: Optional[str]) -> None:
        self._check_burst_limit(phone, ip_address)
        self._check_policy_limits(phone, ip_address)

    def generate(self, phone: str) -> str:
        width = self.policy.code_length
        code = str(secrets.randbelow(10 ** width)).zfill(width)
        now = self.clock()
        self.store.upsert(
            phone,
            code_hash=hash_code(code),
            attempts_remaining=self.policy.max_verify_attempts,
            expires_at=now + timedelta(seconds=self.policy.ttl_seconds),
            sent_at=now,
        )
        return code

    def check(self, phone: str, code: str) -> None:
        """Consume the code for ``phone`` or raise the specific InvalidCode subclass."""
        record = self.store.get(phone)
        if record is None:
            raise CodeInvalid()

        now = self.clock()
        # cleanup is keyed on the hash read above so a concurrent resend survives
        if record.expires_at < now:
            self.store.consume(phone, record.code_hash)
            raise CodeExpired()

        if record.attempts_remaining <= 0:
            self.store.consume(phone, record.code_hash)
            raise AttemptsExhausted()

        if hmac.compare_digest(record.code_hash, hash_code(code or "")):
            # conditional delete: only one concurrent verifier can win
            if self.store.consume(phone, record.code_hash):
                return
            raise CodeInvalid()

        remaining = self.store.decrement_attempts(phone, now)
        if remaining is None or remaining <= 0:
            self.store.consume(phone, record.code_hash)
            raise AttemptsExhausted()
        raise CodeInvalid()

    def verify(self, phone: str, code: str) -> bool:
        try:
            self.check(phone, code)
        except InvalidCode as e:
            logger.info(f"OTP verification failed for {phone[-4:]}: {type(e).__name__}")
            return False
        return True

    def clear(self, phone: str) -> None:
        self.store.delete(phone)

    def attach_log(self, phone: str, log: SmsLogDto) -> None:
        self.store.attach_log(phone, log.id, log.sent_at or self.clock())

    def prune_expired(self) -> int:
        return self.store.delete_expired(self.clock())

    def _check_burst_limit(self, phone: str, ip_address: Optional[str]) -> None:
        max_attempts = self.policy.burst_max_attempts
        decay = self.policy.burst_decay_seconds
        if not max_attempts or not decay:
            return

        key = f"otp-rate:{phone}:{ip_address or ''}"
        tripped = self.rate_limiter.too_many_attempts(key, max_attempts)
        # recorded even when tripped so hammering keeps the block alive
        self.rate_limiter.hit(key, decay)
        if tripped:
            logger.warning(f"OTP burst limit hit for {phone[-4:]} from {ip_address}")
            raise RateLimitExceeded(retry_after=self.rate_limiter.available_in(key))

    def _check_policy_limits(self, phone: str, ip_address: Optional[str]) -> None:
        now = self.clock()
        policy = self.policy

        if policy.cooldown_seconds:
            recent = self.sms_logs.latest_for_phone(phone, OTP_PURPOSE, (STATUS_PENDING, STATUS_SENT))
            if recent and recent.requested_at:
                elapsed = (now - recent.requested_at).total_seconds()
                if elapsed < policy.cooldown_seconds:
                    raise CooldownActive(retry_after=math.ceil(policy.cooldown_seconds - elapsed))

        if policy.per_phone_hour is not None:
            if self.sms_logs.count_for_phone_since(phone, OTP_PURPOSE, now - HOUR) >= policy.per_phone_hour:
                raise QuotaExceeded("phone_hour", retry_after=int(HOUR.total_seconds()))

        if policy.per_phone_day is not None:
            if self.sms_logs.count_for_phone_since(phone, OTP_PURPOSE, now - DAY) >= policy.per_phone_day:
                raise QuotaExceeded("phone_day", retry_after=int(DAY.total_seconds()))

        if not ip_address:
            return

        if policy.per_ip_hour is not None:
            if self.sms_logs.count_for_ip_since(ip_address, OTP_PURPOSE, now - HOUR) >= policy.per_ip_hour:
                raise QuotaExceeded("ip_hour", retry_after=int(HOUR.total_seconds()))

        if policy.per_ip_day is not None:
            if self.sms_logs.count_for_ip_since(ip_address, OTP_PURPOSE, now - DAY) >= policy.per_ip_day:
                raise QuotaExceeded("ip_day", retry_after=int(DAY.total_seconds()))
