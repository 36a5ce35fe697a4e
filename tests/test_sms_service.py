import hashlib

import pytest

from app.application.ports.sms_gateway import SmsSendResult, SmsTransportError
from app.application.services.sms_service import SmsService
from app.core.config import SmsProviderConfig
from app.db.models.sms.sms_log import STATUS_FAILED, STATUS_SENT, STATUS_SKIPPED
from app.exceptions import ProviderRejected, ProviderUnavailable, SmsMisconfigured
from app.infrastructure.persistence.sqlalchemy.repositories.sms_log_repository_sql import SqlSmsLogRepository

PHONE = "09123456789"
CONFIGURED = SmsProviderConfig(provider="farapayamak", enabled=True, username="u", password="p", sender="3000")


class FakeGateway:
    name = "farapayamak"

    def __init__(self, result=None, error=None):
        self.result = result or SmsSendResult(success=True, provider_message_id="msg-1", raw={"RetStatus": 1})
        self.error = error
        self.sent = []

    def send(self, to, sender, text):
        self.sent.append((to, sender, text))
        if self.error:
            raise self.error
        return self.result


def make_service(session, clock, config=CONFIGURED, gateway=None, production=True):
    return SmsService(
        sms_logs=SqlSmsLogRepository(session),
        config=config,
        gateway_factory=lambda cfg: gateway,
        production=production,
        otp_template="Your verification code: {code}",
        clock=clock,
    )


def test_send_otp_marks_log_sent_and_redacts_code(session, clock):
    gateway = FakeGateway()
    svc = make_service(session, clock, gateway=gateway)
    log = svc.send_otp(PHONE, "123456", ip_address="203.0.113.7", meta={"otp_ttl": 120})

    assert gateway.sent == [(PHONE, "3000", "Your verification code: 123456")]
    assert log.status == STATUS_SENT
    assert log.provider == "farapayamak"
    assert log.provider_message_id == "msg-1"
    assert log.sent_at == clock()
    assert log.purpose == "otp"
    assert "123456" not in log.message
    assert log.message_hash == hashlib.sha256(b"Your verification code: 123456").hexdigest()
    assert log.meta["otp_ttl"] == 120


@pytest.mark.parametrize("config", [
    SmsProviderConfig(provider="farapayamak", enabled=False, username="u", password="p", sender="3000"),
    SmsProviderConfig(provider="farapayamak", enabled=True, username=None, password="p", sender="3000"),
])
def test_unconfigured_provider_is_skipped_outside_production(session, clock, config):
    gateway = FakeGateway()
    svc = make_service(session, clock, config=config, gateway=gateway, production=False)
    log = svc.send_otp(PHONE, "123456")
    assert log.status == STATUS_SKIPPED
    assert gateway.sent == []


def test_unconfigured_provider_fails_in_production(session, clock):
    config = SmsProviderConfig(provider="farapayamak", enabled=False)
    svc = make_service(session, clock, config=config, gateway=FakeGateway(), production=True)
    with pytest.raises(SmsMisconfigured):
        svc.send_otp(PHONE, "123456")
    latest = svc.sms_logs.latest_for_phone(PHONE, "otp", [STATUS_FAILED])
    assert latest is not None
    assert latest.error_code == "misconfigured"


def test_unsupported_provider_fails(session, clock):
    config = SmsProviderConfig(provider="carrier-pigeon", enabled=True, username="u", password="p", sender="1")
    svc = make_service(session, clock, config=config, gateway=None)
    with pytest.raises(SmsMisconfigured):
        svc.send_otp(PHONE, "123456")
    latest = svc.sms_logs.latest_for_phone(PHONE, "otp", [STATUS_FAILED])
    assert latest.error_code == "unsupported_provider"


def test_transport_failure_marks_log_failed(session, clock):
    gateway = FakeGateway(error=SmsTransportError("connection refused"))
    svc = make_service(session, clock, gateway=gateway)
    with pytest.raises(ProviderUnavailable) as exc:
        svc.send_otp(PHONE, "123456")
    assert exc.value.status_code == 500
    latest = svc.sms_logs.latest_for_phone(PHONE, "otp", [STATUS_FAILED])
    assert latest.error_code == "transport_error"
    assert "connection refused" in latest.error_message


def test_provider_rejection_keeps_error_details(session, clock):
    result = SmsSendResult(success=False, error_code="35", error_message="Invalid sender", raw={"RetStatus": 35})
    svc = make_service(session, clock, gateway=FakeGateway(result=result))
    with pytest.raises(ProviderRejected) as exc:
        svc.send_otp(PHONE, "123456")
    assert exc.value.error_code == "35"
    latest = svc.sms_logs.latest_for_phone(PHONE, "otp", [STATUS_FAILED])
    assert latest.error_code == "35"
    assert latest.error_message == "Invalid sender"
    assert latest.meta["response"] == {"RetStatus": 35}


def test_send_test_message_is_logged_with_test_purpose(session, clock):
    gateway = FakeGateway()
    svc = make_service(session, clock, gateway=gateway)
    log = svc.send_test(PHONE, "hello")
    assert log.purpose == "test"
    assert log.message == "hello"
    assert svc.sms_logs.count_for_phone_since(PHONE, "otp", clock()) == 0
