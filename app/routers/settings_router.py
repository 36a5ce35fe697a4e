from fastapi import APIRouter, Depends, Request
from sqlmodel import Session
import logging

from ..application.ports.user_repo import UserDto
from ..application.services.sms_service import SmsService
from ..core.config import SmsProviderConfig, settings
from ..core.messages import translate
from ..database import get_session
from ..dependencies import get_client_ip, get_sms_service, require_admin
from ..exceptions import SmsDispatchError
from ..infrastructure.persistence.sqlalchemy.repositories.settings_repository_sql import SqlSystemSettingsRepository
from ..schemas import SmsSettingsResponse, UpdateSmsSettingsRequest, SmsTestRequest, SmsTestResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/settings", tags=["Settings"])

PASSWORD_MASK = "********"


def _to_response(config: SmsProviderConfig, source: str) -> SmsSettingsResponse:
    return SmsSettingsResponse(
        provider=config.provider,
        enabled=config.enabled,
        username=config.username,
        password=PASSWORD_MASK if config.password else None,
        sender=config.sender,
        source=source,
    )


@router.get("/sms", response_model=SmsSettingsResponse)
def get_sms_settings(admin: UserDto = Depends(require_admin), session: Session = Depends(get_session)):
    stored = SqlSystemSettingsRepository(session).get_sms_config()
    if stored:
        return _to_response(stored, "database")
    return _to_response(settings.sms_config(), "environment")


@router.put("/sms", response_model=SmsSettingsResponse)
def update_sms_settings(
    payload: UpdateSmsSettingsRequest,
    admin: UserDto = Depends(require_admin),
    session: Session = Depends(get_session),
):
    repo = SqlSystemSettingsRepository(session)
    current = repo.get_sms_config()
    password = payload.password
    if password is None or password == PASSWORD_MASK:
        # leaving the field blank keeps the stored secret
        password = current.password if current else settings.sms_config().password
    saved = repo.save_sms_config(SmsProviderConfig(
        provider=payload.provider,
        enabled=payload.enabled,
        username=payload.username,
        password=password,
        sender=payload.sender,
    ))
    logger.info(f"SMS settings updated by admin {admin.id}: provider={saved.provider} enabled={saved.enabled}")
    return _to_response(saved, "database")


@router.post("/sms/test", response_model=SmsTestResponse)
def send_test_sms(
    payload: SmsTestRequest,
    request: Request,
    admin: UserDto = Depends(require_admin),
    sms_service: SmsService = Depends(get_sms_service),
):
    try:
        log = sms_service.send_test(payload.testNumber, payload.message, ip_address=get_client_ip(request))
    except SmsDispatchError as e:
        logger.error(f"Test SMS failed: {e}")
        return SmsTestResponse(success=False, message=str(e), status="failed")
    return SmsTestResponse(success=True, message=translate("test_sms_sent"), status=log.status, logId=log.id)
