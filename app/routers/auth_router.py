# app/routers/auth_router.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.security import HTTPAuthorizationCredentials

from ..application.ports.user_repo import UserDto
from ..application.services.auth_service import AuthService
from ..application.services.token_service import TokenPair
from ..core.config import settings
from ..core.messages import translate
from ..dependencies import (
    bearer_scheme,
    get_auth_service,
    get_client_ip,
    get_current_user,
    get_user_agent,
)
from ..exceptions import RefreshTokenInvalid
from ..schemas import (
    SendOtpRequest, SendOtpResponse, VerifyOtpRequest, RefreshRequest,
    TokenPairResponse, LogoutResponse, UserResponse, MeResponse, ErrorResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _token_response(tokens: TokenPair) -> TokenPairResponse:
    return TokenPairResponse(
        accessToken=tokens.access_token,
        refreshToken=tokens.refresh_token,
        expiresIn=tokens.expires_in,
        tokenType=tokens.token_type,
    )


@router.post(
    "/send-otp",
    response_model=SendOtpResponse,
    responses={422: {"model": ErrorResponse}, 429: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def send_otp(
    payload: SendOtpRequest,
    request: Request,
    auth_service: AuthService = Depends(get_auth_service),
):
    ttl = auth_service.send_login_otp(
        payload.phone,
        payload.captchaId,
        payload.captcha,
        ip_address=get_client_ip(request),
        user_agent=get_user_agent(request),
    )
    return SendOtpResponse(
        success=True,
        message=translate("otp_sent"),
        ttl=ttl,
        retryAfter=settings.OTP_COOLDOWN_SECONDS,
    )


@router.post("/verify-otp", response_model=TokenPairResponse, responses={422: {"model": ErrorResponse}})
def verify_otp(
    payload: VerifyOtpRequest,
    request: Request,
    auth_service: AuthService = Depends(get_auth_service),
):
    tokens = auth_service.verify_otp_and_issue(
        payload.phone,
        payload.code,
        ip_address=get_client_ip(request),
        user_agent=get_user_agent(request),
    )
    return _token_response(tokens)


@router.post("/refresh", response_model=TokenPairResponse, responses={401: {"model": ErrorResponse}})
def refresh(
    request: Request,
    payload: Optional[RefreshRequest] = None,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
):
    # Bearer header first, body as a fallback for clients that cannot set headers
    token = credentials.credentials if credentials else None
    if not token and payload is not None:
        token = payload.refreshToken
    if not token:
        raise RefreshTokenInvalid(detail=translate("refresh_missing"))

    tokens = auth_service.refresh(token, ip_address=get_client_ip(request), user_agent=get_user_agent(request))
    return _token_response(tokens)


@router.post("/logout", response_model=LogoutResponse)
def logout(
    request: Request,
    current_user: UserDto = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
):
    auth_service.logout(current_user, ip_address=get_client_ip(request), user_agent=get_user_agent(request))
    return LogoutResponse(success=True, message=translate("logged_out"))


@router.get("/me", response_model=MeResponse)
def me(current_user: UserDto = Depends(get_current_user)):
    return MeResponse(user=UserResponse(
        id=current_user.id,
        name=current_user.name,
        phone=current_user.phone,
        email=current_user.email,
        status=current_user.status,
        isVerified=current_user.is_verified,
        isAdmin=current_user.is_admin,
        createdAt=current_user.created_at,
    ))
