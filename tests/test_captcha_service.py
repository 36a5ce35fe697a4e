import base64

from app.application.services.captcha_service import CaptchaService, CACHE_PREFIX
from app.infrastructure.cache.memory_cache import InMemoryCache
from app.infrastructure.cache.redis_cache import RedisCache


def issued_code(cache, captcha_id):
    return cache.get(CACHE_PREFIX + captcha_id)


def test_generate_returns_png_data_url(clock):
    cache = InMemoryCache(clock=clock.time)
    captcha = CaptchaService(cache, ttl_seconds=180, length=4).generate()

    assert captcha["expires_in"] == 180
    assert captcha["image"].startswith("data:image/png;base64,")
    png = base64.b64decode(captcha["image"].split(",", 1)[1])
    assert png[:8] == b"\x89PNG\r\n\x1a\n"
    code = issued_code(cache, captcha["id"])
    assert len(code) == 4 and code.isdigit()


def test_captcha_is_single_use(clock):
    cache = InMemoryCache(clock=clock.time)
    svc = CaptchaService(cache)
    captcha = svc.generate()
    code = issued_code(cache, captcha["id"])

    assert svc.validate(captcha["id"], code) is True
    assert svc.validate(captcha["id"], code) is False


def test_wrong_value_does_not_consume(clock):
    cache = InMemoryCache(clock=clock.time)
    svc = CaptchaService(cache)
    captcha = svc.generate()
    code = issued_code(cache, captcha["id"])
    wrong = "0000" if code != "0000" else "1111"

    assert svc.validate(captcha["id"], wrong) is False
    assert svc.validate(captcha["id"], code) is True


def test_validate_without_consume_keeps_captcha(clock):
    cache = InMemoryCache(clock=clock.time)
    svc = CaptchaService(cache)
    captcha = svc.generate()
    code = issued_code(cache, captcha["id"])

    assert svc.validate(captcha["id"], code, consume=False) is True
    assert svc.validate(captcha["id"], code) is True


def test_captcha_expires(clock):
    cache = InMemoryCache(clock=clock.time)
    svc = CaptchaService(cache, ttl_seconds=180)
    captcha = svc.generate()
    code = issued_code(cache, captcha["id"])
    clock.advance(181)
    assert svc.validate(captcha["id"], code) is False


def test_unknown_or_empty_captcha_is_invalid():
    svc = CaptchaService(InMemoryCache())
    assert svc.validate("missing", "1234") is False
    assert svc.validate("", "1234") is False
    assert svc.validate("missing", "") is False


class FakeRedis:
    def __init__(self):
        self.store = {}

    def set(self, key, value, ex=None):
        self.store[key] = value

    def get(self, key):
        return self.store.get(key)

    def delete(self, key):
        return 1 if self.store.pop(key, None) is not None else 0


def test_single_use_with_redis_cache():
    cache = RedisCache("redis://fake", client=FakeRedis())
    svc = CaptchaService(cache)
    captcha = svc.generate()
    code = issued_code(cache, captcha["id"])
    assert svc.validate(captcha["id"], code) is True
    assert svc.validate(captcha["id"], code) is False


PERSIAN = str.maketrans("0123456789", "۰۱۲۳۴۵۶۷۸۹")


def test_answer_in_persian_digits_is_accepted(clock):
    cache = InMemoryCache(clock=clock.time)
    svc = CaptchaService(cache)
    captcha = svc.generate()
    code = issued_code(cache, captcha["id"])
    assert svc.validate(captcha["id"], code.translate(PERSIAN)) is True


def test_non_ascii_answer_is_rejected_not_raised(clock):
    cache = InMemoryCache(clock=clock.time)
    svc = CaptchaService(cache)
    captcha = svc.generate()
    code = issued_code(cache, captcha["id"])
    assert svc.validate(captcha["id"], "é") is False
    assert svc.validate(captcha["id"], "١٢٣x") is False
    assert svc.validate(captcha["id"], code) is True
