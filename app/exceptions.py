from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from typing import Optional, Dict

from .core.messages import translate


class APIException(HTTPException):
    status_code_default = 400
    code = "error"
    message_key: Optional[str] = None

    def __init__(self, status_code: int = None, detail: str = None, headers: Optional[Dict[str, str]] = None):
        if detail is None and self.message_key:
            detail = translate(self.message_key)
        super().__init__(status_code=status_code or self.status_code_default, detail=detail, headers=headers)


class ValidationError(APIException):
    """Malformed phone, captcha or code; raised before any rate-limit work."""
    status_code_default = 422
    code = "validation_error"
    message_key = "validation_failed"


class CaptchaInvalid(APIException):
    status_code_default = 422
    code = "captcha_invalid"
    message_key = "captcha_invalid"


class ThrottleError(APIException):
    status_code_default = 429

    def __init__(self, detail: str = None, retry_after: Optional[int] = None):
        headers = {"Retry-After": str(int(retry_after))} if retry_after else None
        super().__init__(detail=detail, headers=headers)
        self.retry_after = retry_after


class RateLimitExceeded(ThrottleError):
    code = "rate_limited"
    message_key = "rate_limited"


class CooldownActive(ThrottleError):
    code = "cooldown_active"
    message_key = "cooldown_active"


class QuotaExceeded(ThrottleError):
    code = "quota_exceeded"

    def __init__(self, scope: str, retry_after: Optional[int] = None):
        self.scope = scope
        super().__init__(detail=translate(f"quota_{scope}"), retry_after=retry_after)


class SmsDispatchError(APIException):
    """Anything that stopped the SMS from leaving; the client only sees a generic failure."""
    status_code_default = 500
    code = "sms_dispatch_failed"
    message_key = "sms_dispatch_failed"

    def __init__(self, reason: str = None):
        super().__init__()
        self.reason = reason

    def __str__(self) -> str:
        return self.reason or self.detail


class ProviderUnavailable(SmsDispatchError):
    code = "provider_unavailable"


class ProviderRejected(SmsDispatchError):
    code = "provider_rejected"

    def __init__(self, reason: str = None, error_code: Optional[str] = None):
        super().__init__(reason)
        self.error_code = error_code


class SmsMisconfigured(SmsDispatchError):
    code = "sms_misconfigured"


class InvalidCode(APIException):
    """Every verification failure shares this outward signal."""
    status_code_default = 422
    code = "invalid_code"
    message_key = "code_invalid"


class CodeInvalid(InvalidCode):
    pass


class CodeExpired(InvalidCode):
    pass


class AttemptsExhausted(InvalidCode):
    pass


class RefreshTokenInvalid(APIException):
    status_code_default = 401
    code = "refresh_invalid"
    message_key = "refresh_invalid"


class AuthenticationRequired(APIException):
    status_code_default = 401
    code = "unauthenticated"
    message_key = "auth_required"


class AdminRequired(APIException):
    status_code_default = 403
    code = "forbidden"
    message_key = "admin_required"


def create_error_response(error_message: str, status_code: int = 400, code: str = "error") -> dict:
    """Create a standardized error response"""
    return {
        "success": False,
        "data": None,
        "error": error_message,
        "message": error_message,
        "code": code,
    }

async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Custom exception handler for HTTPException"""
    # Convert 403 from HTTPBearer to 401 for missing authentication
    if exc.status_code == 403 and "Not authenticated" in str(exc.detail):
        return JSONResponse(
            status_code=401,
            content=create_error_response(translate("auth_required"), 401, AuthenticationRequired.code)
        )

    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.detail, exc.status_code, getattr(exc, "code", "error")),
        headers=getattr(exc, "headers", None),
    )

async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = {}
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ())[1:]) or "body"
        errors.setdefault(field, []).append(err.get("msg"))
    content = create_error_response(translate(ValidationError.message_key), 422, ValidationError.code)
    content["errors"] = errors
    return JSONResponse(status_code=422, content=content)
