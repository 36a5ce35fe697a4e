# Schemas package (re-export feature modules for stable imports)
from .auth.auth import *
from .captcha.captcha import *
from .settings.settings import *
from .common.common import *
