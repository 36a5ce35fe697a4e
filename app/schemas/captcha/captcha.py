# app/schemas/captcha/captcha.py
from pydantic import BaseModel, Field, validator
from typing import Optional

from ...core.digits import to_ascii_digits


class CaptchaResponse(BaseModel):
    captchaId: str
    imageUrl: str = Field(..., description="PNG image as a data URL")
    expiresIn: int


class CaptchaValidateRequest(BaseModel):
    captchaId: str = Field(..., min_length=1)
    captchaValue: Optional[str] = None
    captcha: Optional[str] = None

    @validator('captchaValue', 'captcha')
    def normalize_digits(cls, v):
        if v is None:
            return v
        return to_ascii_digits(v)

    def get_value(self) -> Optional[str]:
        return self.captchaValue if self.captchaValue is not None else self.captcha


class CaptchaValidateResponse(BaseModel):
    valid: bool
    message: str
