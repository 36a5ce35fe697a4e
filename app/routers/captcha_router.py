# app/routers/captcha_router.py
from fastapi import APIRouter, Depends

from ..application.services.captcha_service import CaptchaService
from ..core.messages import translate
from ..dependencies import get_captcha_service
from ..exceptions import ValidationError
from ..schemas import CaptchaResponse, CaptchaValidateRequest, CaptchaValidateResponse

router = APIRouter(prefix="/captcha", tags=["Captcha"])


@router.api_route("", methods=["GET", "POST"], response_model=CaptchaResponse)
def create_captcha(captcha_service: CaptchaService = Depends(get_captcha_service)):
    captcha = captcha_service.generate()
    return CaptchaResponse(
        captchaId=captcha["id"],
        imageUrl=captcha["image"],
        expiresIn=captcha["expires_in"],
    )


@router.post("/validate", response_model=CaptchaValidateResponse)
def validate_captcha(
    payload: CaptchaValidateRequest,
    captcha_service: CaptchaService = Depends(get_captcha_service),
):
    value = payload.get_value()
    if value is None:
        raise ValidationError(detail="Captcha value is required.")
    valid = captcha_service.validate(payload.captchaId, value)
    return CaptchaValidateResponse(
        valid=valid,
        message=translate("captcha_valid" if valid else "captcha_invalid"),
    )
