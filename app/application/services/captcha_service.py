import base64
import hmac
import io
import secrets
import string
import uuid
from dataclasses import dataclass
from typing import Any, Dict

from PIL import Image, ImageDraw, ImageFont

from ...core.digits import to_ascii_digits
from ..ports.cache import Cache

CACHE_PREFIX = "captcha:"
IMAGE_SIZE = (160, 60)
BACKGROUND = (248, 250, 252)
NOISE = (203, 213, 225)
INK = (30, 41, 59)


def render_captcha_png(code: str) -> str:
    """Draw ``code`` over line noise and return it as a PNG data URL."""
    width, height = IMAGE_SIZE
    image = Image.new("RGB", IMAGE_SIZE, BACKGROUND)
    draw = ImageDraw.Draw(image)
    rng = secrets.SystemRandom()
    for _ in range(60):
        draw.line(
            [(rng.randint(0, width), rng.randint(0, height)), (rng.randint(0, width), rng.randint(0, height))],
            fill=NOISE,
        )

    font = ImageFont.load_default()
    left, top, right, bottom = draw.textbbox((0, 0), code, font=font)
    x = (width - (right - left)) // 2
    y = (height - (bottom - top)) // 2
    draw.text((x, y), code, fill=INK, font=font)

    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode()


@dataclass
class CaptchaService:
    cache: Cache
    ttl_seconds: int = 180
    length: int = 4

    def generate(self) -> Dict[str, Any]:
        code = "".join(secrets.choice(string.digits) for _ in range(self.length))
        captcha_id = str(uuid.uuid4())
        self.cache.put(self._key(captcha_id), code, self.ttl_seconds)
        return {
            "id": captcha_id,
            "image": render_captcha_png(code),
            "expires_in": self.ttl_seconds,
        }

    def validate(self, captcha_id: str, value: str, consume: bool = True) -> bool:
        """Check a captcha answer; a consumed pair validates exactly once."""
        if not captcha_id or not value:
            return False
        key = self._key(captcha_id)
        expected = self.cache.get(key)
        if expected is None:
            return False
        answer = to_ascii_digits(str(value))
        if not hmac.compare_digest(expected.encode(), answer.encode()):
            return False
        if consume:
            # only the caller whose forget removed the entry wins
            return self.cache.forget(key)
        return True

    def _key(self, captcha_id: str) -> str:
        return CACHE_PREFIX + captcha_id
