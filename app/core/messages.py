# app/core/messages.py
from typing import Dict

from .config import settings

MESSAGES: Dict[str, Dict[str, str]] = {
    "en": {
        "validation_failed": "The request payload is invalid.",
        "captcha_invalid": "Invalid captcha value.",
        "captcha_valid": "Captcha is valid.",
        "rate_limited": "Too many requests. Please try again later.",
        "cooldown_active": "Please wait a moment before requesting another code.",
        "quota_phone_hour": "The hourly sending limit for this number has been reached.",
        "quota_phone_day": "The daily sending limit for this number has been reached.",
        "quota_ip_hour": "Too many requests from this IP in the last hour.",
        "quota_ip_day": "The daily sending limit for this IP has been reached.",
        "sms_dispatch_failed": "Sending the SMS failed.",
        "otp_sent": "Verification code sent.",
        "code_invalid": "The provided code is invalid or has expired.",
        "refresh_missing": "Refresh token missing.",
        "refresh_invalid": "Refresh token is invalid or expired.",
        "logged_out": "Logged out successfully.",
        "admin_required": "Administrator access required.",
        "auth_required": "Authentication required",
        "test_sms_sent": "Test message dispatched.",
    },
    "fa": {
        "validation_failed": "اطلاعات ارسالی معتبر نیست.",
        "captcha_invalid": "کد امنیتی نامعتبر است.",
        "captcha_valid": "کد امنیتی معتبر است.",
        "rate_limited": "تعداد درخواست‌ها بیش از حد مجاز است. لطفاً بعداً تلاش کنید.",
        "cooldown_active": "لطفاً کمی صبر کنید و سپس مجدداً تلاش نمایید.",
        "quota_phone_hour": "سقف ارسال در ساعت اخیر برای این شماره تکمیل شده است.",
        "quota_phone_day": "سقف ارسال روزانه برای این شماره تکمیل شده است.",
        "quota_ip_hour": "تعداد درخواست‌های این IP در ساعت اخیر بیش از حد مجاز است.",
        "quota_ip_day": "سقف روزانه‌ی این IP برای ارسال کد تکمیل شده است.",
        "sms_dispatch_failed": "ارسال پیامک با خطا مواجه شد.",
        "otp_sent": "کد تأیید ارسال شد.",
        "code_invalid": "کد وارد شده نامعتبر است یا منقضی شده است.",
        "refresh_missing": "توکن تازه‌سازی ارسال نشده است.",
        "refresh_invalid": "توکن تازه‌سازی نامعتبر یا منقضی شده است.",
        "logged_out": "با موفقیت خارج شدید.",
        "admin_required": "دسترسی مدیر لازم است.",
        "auth_required": "احراز هویت لازم است.",
        "test_sms_sent": "پیامک آزمایشی ارسال شد.",
    },
}


def translate(key: str, locale: str = None) -> str:
    catalog = MESSAGES.get(locale or settings.LOCALE) or MESSAGES["en"]
    return catalog.get(key) or MESSAGES["en"].get(key, key)
