# Routers package
from . import auth_router
from . import captcha_router
from . import settings_router

__all__ = [
    "auth_router",
    "captcha_router",
    "settings_router",
]
