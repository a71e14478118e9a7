"""ORM 模型导出集合。"""

from blogify_api.models.otp import OtpCode
from blogify_api.models.user import User

__all__ = [
    "OtpCode",
    "User",
]
