# Models package (re-export feature modules for stable imports)
from .users.user import User
from .auth.otp import OtpCode
from .auth.refresh_token import RefreshToken
from .sms.sms_log import SmsLog
from .settings.system_setting import SystemSetting

__all__ = [
    "User",
    "OtpCode",
    "RefreshToken",
    "SmsLog",
    "SystemSetting",
]
