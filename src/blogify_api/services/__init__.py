"""服务层能力导出集合。"""

from blogify_api.services.credentials import (
    authenticate,
    create_user,
    get_user,
    get_user_by_email,
    normalize_email,
    update_credentials,
)
from blogify_api.services.otp import issue_otp, verify_otp
from blogify_api.services.permissions import PermissionAction, has_permission, permission_catalog
from blogify_api.services.tokens import TokenPair, issue_token_pair, refresh_access_token

__all__ = [
    "authenticate",
    "create_user",
    "get_user",
    "get_user_by_email",
    "normalize_email",
    "update_credentials",
    "issue_otp",
    "verify_otp",
    "PermissionAction",
    "has_permission",
    "permission_catalog",
    "TokenPair",
    "issue_token_pair",
    "refresh_access_token",
]
