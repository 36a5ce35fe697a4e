import re

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlmodel import select

from app.application.ports.sms_gateway import SmsSendResult
from app.application.services.captcha_service import CaptchaService, CACHE_PREFIX
from app.application.services.sms_service import SmsService
from app.core.config import SmsProviderConfig
from app.database import get_session
from app.db.models import User
from app.dependencies import get_captcha_service, get_rate_limiter, get_sms_service
from app.infrastructure.cache.memory_cache import InMemoryCache
from app.infrastructure.persistence.sqlalchemy.repositories.sms_log_repository_sql import SqlSmsLogRepository
from app.infrastructure.persistence.sqlalchemy.repositories.settings_repository_sql import SqlSystemSettingsRepository
from app.main import app
from app.middleware import RateLimitMiddleware

PHONE = "09123456789"
PERSIAN = str.maketrans("0123456789", "۰۱۲۳۴۵۶۷۸۹")
ARABIC_INDIC = str.maketrans("0123456789", "٠١٢٣٤٥٦٧٨٩")


class FakeGateway:
    name = "farapayamak"

    def __init__(self):
        self.sent = []

    def send(self, to, sender, text):
        self.sent.append((to, text))
        return SmsSendResult(success=True, provider_message_id="m1")

    def last_code(self):
        return re.search(r"(\d{6})", self.sent[-1][1]).group(1)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def cache():
    return InMemoryCache()


@pytest.fixture
def client(session, gateway, cache):
    get_rate_limiter.cache_clear()
    config = SmsProviderConfig(provider="farapayamak", enabled=True, username="u", password="p", sender="3000")
    app.dependency_overrides[get_session] = lambda: session
    app.dependency_overrides[get_captcha_service] = lambda: CaptchaService(cache)
    app.dependency_overrides[get_sms_service] = lambda: SmsService(
        sms_logs=SqlSmsLogRepository(session),
        config=config,
        gateway_factory=lambda cfg: gateway,
    )
    yield TestClient(app)
    app.dependency_overrides.clear()
    get_rate_limiter.cache_clear()


def promote_to_admin(session, phone=PHONE):
    user = session.exec(select(User).where(User.phone == phone)).first()
    user.is_admin = True
    session.add(user)
    session.commit()


def new_captcha(client, cache):
    body = client.get("/captcha").json()
    return body["captchaId"], cache.get(CACHE_PREFIX + body["captchaId"])


def login(client, cache, gateway, phone=PHONE):
    captcha_id, value = new_captcha(client, cache)
    res = client.post("/auth/send-otp", json={"phone": phone, "captchaId": captcha_id, "captcha": value})
    assert res.status_code == 200, res.text
    res = client.post("/auth/verify-otp", json={"phone": phone, "code": gateway.last_code()})
    assert res.status_code == 200, res.text
    return res.json()


def test_captcha_endpoint_and_single_use_validation(client, cache):
    res = client.post("/captcha")
    assert res.status_code == 200
    body = res.json()
    assert body["imageUrl"].startswith("data:image/png;base64,")
    assert body["expiresIn"] == 180

    value = cache.get(CACHE_PREFIX + body["captchaId"])
    first = client.post("/captcha/validate", json={"captchaId": body["captchaId"], "captchaValue": value})
    second = client.post("/captcha/validate", json={"captchaId": body["captchaId"], "captcha": value})
    assert first.json()["valid"] is True
    assert second.json()["valid"] is False


def test_send_otp_success(client, cache, gateway):
    captcha_id, value = new_captcha(client, cache)
    res = client.post("/auth/send-otp", json={"phone": PHONE, "captchaId": captcha_id, "captcha": value})
    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert body["ttl"] == 120
    assert body["retryAfter"] == 90
    assert gateway.sent[0][0] == PHONE
    assert "X-Request-Id" in res.headers


def test_send_otp_rejects_malformed_phone(client, cache, gateway):
    captcha_id, value = new_captcha(client, cache)
    res = client.post("/auth/send-otp", json={"phone": "+15551234567", "captchaId": captcha_id, "captcha": value})
    assert res.status_code == 422
    body = res.json()
    assert body["success"] is False
    assert body["code"] == "validation_error"
    assert "phone" in body["errors"]
    assert gateway.sent == []


def test_send_otp_wrong_captcha(client, cache, gateway):
    captcha_id, value = new_captcha(client, cache)
    wrong = "0000" if value != "0000" else "1111"
    res = client.post("/auth/send-otp", json={"phone": PHONE, "captchaId": captcha_id, "captcha": wrong})
    assert res.status_code == 422
    assert res.json()["code"] == "captcha_invalid"
    assert gateway.sent == []


def test_second_send_hits_cooldown(client, cache, gateway):
    for expected in (200, 429):
        captcha_id, value = new_captcha(client, cache)
        res = client.post("/auth/send-otp", json={"phone": PHONE, "captchaId": captcha_id, "captcha": value})
        assert res.status_code == expected
    assert res.json()["code"] == "cooldown_active"
    assert int(res.headers["Retry-After"]) > 0
    assert len(gateway.sent) == 1


def test_local_digit_spellings_share_one_phone(client, cache, gateway):
    variants = [PHONE, PHONE.translate(PERSIAN), "09" + PHONE[2:5].translate(ARABIC_INDIC) + PHONE[5:]]
    statuses = []
    for phone in variants:
        captcha_id, value = new_captcha(client, cache)
        res = client.post("/auth/send-otp", json={"phone": phone, "captchaId": captcha_id, "captcha": value})
        statuses.append(res.status_code)
        if res.status_code == 429:
            assert res.json()["code"] == "cooldown_active"
    assert statuses == [200, 429, 429]
    assert [to for to, _ in gateway.sent] == [PHONE]


def test_non_ascii_digits_outside_local_scripts_are_rejected(client, cache, gateway):
    captcha_id, value = new_captcha(client, cache)
    # Devanagari one
    res = client.post("/auth/send-otp", json={"phone": "0912345678१", "captchaId": captcha_id, "captcha": value})
    assert res.status_code == 422
    assert "phone" in res.json()["errors"]
    assert gateway.sent == []


def test_send_otp_accepts_captcha_in_persian_digits(client, cache, gateway):
    captcha_id, value = new_captcha(client, cache)
    res = client.post("/auth/send-otp", json={"phone": PHONE, "captchaId": captcha_id, "captcha": value.translate(PERSIAN)})
    assert res.status_code == 200, res.text
    assert gateway.sent[0][0] == PHONE


def test_verify_otp_accepts_code_in_persian_digits(client, cache, gateway):
    captcha_id, value = new_captcha(client, cache)
    client.post("/auth/send-otp", json={"phone": PHONE, "captchaId": captcha_id, "captcha": value})
    res = client.post("/auth/verify-otp", json={"phone": PHONE.translate(PERSIAN), "code": gateway.last_code().translate(PERSIAN)})
    assert res.status_code == 200, res.text
    assert res.json()["accessToken"]


def test_captcha_validate_with_non_ascii_value(client, cache):
    captcha_id, value = new_captcha(client, cache)
    res = client.post("/captcha/validate", json={"captchaId": captcha_id, "captchaValue": "é"})
    assert res.status_code == 200
    assert res.json()["valid"] is False

    res = client.post("/captcha/validate", json={"captchaId": captcha_id, "captchaValue": value.translate(ARABIC_INDIC)})
    assert res.json()["valid"] is True


def test_send_otp_with_garbage_captcha_is_a_validation_error(client, cache, gateway):
    captcha_id, _ = new_captcha(client, cache)
    res = client.post("/auth/send-otp", json={"phone": PHONE, "captchaId": captcha_id, "captcha": "éééé"})
    assert res.status_code == 422
    assert "captcha" in res.json()["errors"]
    assert gateway.sent == []


def test_verify_otp_issues_tokens_and_me(client, cache, gateway):
    tokens = login(client, cache, gateway)
    assert set(tokens) >= {"accessToken", "refreshToken", "expiresIn"}

    res = client.get("/auth/me", headers={"Authorization": f"Bearer {tokens['accessToken']}"})
    assert res.status_code == 200
    user = res.json()["user"]
    assert user["phone"] == PHONE
    assert user["isVerified"] is True


def test_verify_otp_wrong_code(client, cache, gateway):
    captcha_id, value = new_captcha(client, cache)
    client.post("/auth/send-otp", json={"phone": PHONE, "captchaId": captcha_id, "captcha": value})
    wrong = "000000" if gateway.last_code() != "000000" else "111111"
    res = client.post("/auth/verify-otp", json={"phone": PHONE, "code": wrong})
    assert res.status_code == 422
    assert res.json()["code"] == "invalid_code"


def test_refresh_rotation_over_http(client, cache, gateway):
    tokens = login(client, cache, gateway)
    token_a = tokens["refreshToken"]

    res = client.post("/auth/refresh", headers={"Authorization": f"Bearer {token_a}"})
    assert res.status_code == 200
    token_b = res.json()["refreshToken"]

    replay = client.post("/auth/refresh", headers={"Authorization": f"Bearer {token_a}"})
    assert replay.status_code == 401
    assert replay.json()["code"] == "refresh_invalid"

    res = client.post("/auth/refresh", json={"refreshToken": token_b})
    assert res.status_code == 200


def test_refresh_without_token(client):
    res = client.post("/auth/refresh")
    assert res.status_code == 401


def test_logout_revokes_refresh_tokens(client, cache, gateway):
    tokens = login(client, cache, gateway)
    res = client.post("/auth/logout", headers={"Authorization": f"Bearer {tokens['accessToken']}"})
    assert res.status_code == 200
    assert res.json()["success"] is True

    res = client.post("/auth/refresh", json={"refreshToken": tokens["refreshToken"]})
    assert res.status_code == 401


def test_protected_routes_require_token(client):
    assert client.get("/auth/me").status_code == 401
    assert client.post("/auth/logout").status_code == 401
    assert client.get("/admin/settings/sms", headers={"Authorization": "Bearer junk"}).status_code == 401


def test_admin_sms_settings(client, cache, gateway, session):
    tokens = login(client, cache, gateway)
    headers = {"Authorization": f"Bearer {tokens['accessToken']}"}
    assert client.get("/admin/settings/sms", headers=headers).status_code == 403

    promote_to_admin(session)

    res = client.put("/admin/settings/sms", headers=headers, json={
        "provider": "farapayamak", "enabled": True, "username": "panel", "password": "s3cret", "sender": "3000",
    })
    assert res.status_code == 200
    assert res.json()["password"] == "********"

    res = client.get("/admin/settings/sms", headers=headers)
    body = res.json()
    assert body["source"] == "database"
    assert body["username"] == "panel"
    assert body["password"] == "********"

    # a masked password keeps the stored secret
    client.put("/admin/settings/sms", headers=headers, json={
        "provider": "farapayamak", "enabled": False, "username": "panel", "password": "********", "sender": "3000",
    })
    assert SqlSystemSettingsRepository(session).get_sms_config().password == "s3cret"

    res = client.post("/admin/settings/sms/test", headers=headers, json={"testNumber": PHONE, "message": "ping"})
    assert res.status_code == 200
    assert res.json()["status"] == "sent"
    assert gateway.sent[-1] == (PHONE, "ping")


def test_admin_rejects_unknown_provider(client, cache, gateway, session):
    tokens = login(client, cache, gateway)
    promote_to_admin(session)
    res = client.put("/admin/settings/sms", headers={"Authorization": f"Bearer {tokens['accessToken']}"},
                     json={"provider": "pigeon", "enabled": True})
    assert res.status_code == 422


def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json()["service"]


def test_rate_limit_middleware_caps_requests_per_client():
    get_rate_limiter.cache_clear()
    limited = FastAPI()
    limited.add_middleware(RateLimitMiddleware, limit=2)

    @limited.get("/ping")
    def ping():
        return {"ok": True}

    client = TestClient(limited)
    statuses = [client.get("/ping", headers={"X-Forwarded-For": "198.51.100.9"}).status_code for _ in range(3)]
    res = client.get("/ping", headers={"X-Forwarded-For": "198.51.100.9"})
    other = client.get("/ping", headers={"X-Forwarded-For": "198.51.100.10"})
    get_rate_limiter.cache_clear()

    assert statuses == [200, 200, 429]
    assert res.json()["code"] == "rate_limited"
    assert int(res.headers["Retry-After"]) > 0
    assert other.status_code == 200
