"""请求上下文依赖。

职责:
1. 解析并校验 Bearer 访问令牌。
2. 将令牌主体映射为本地 User，并按账号状态与改密时间拒绝请求。
3. 按权限点（或超级用户）限制可变更操作。
"""

from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from blogify_api.core.config import get_settings
from blogify_api.core.security import TokenClass, decode_token, extract_bearer_token
from blogify_api.db.session import get_db
from blogify_api.errors import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from blogify_api.models.enums import UserStatus
from blogify_api.models.user import User
from blogify_api.services.credentials import get_user, is_password_stale
from blogify_api.services.permissions import has_permission
from blogify_api.services.tokens import PASSWORD_CHANGED_MESSAGE, USER_GONE_MESSAGE

_STATUS_REJECTIONS = {
    UserStatus.PENDING: "Your account is not verified. Please complete verification first.",
    UserStatus.INACTIVE: "Your account is inactive. Please contact support to reactivate it.",
    UserStatus.DELETED: "Your account has been deleted. Please register again to access the service.",
}
_SUSPENDED_MESSAGE = "Your account is suspended. Only profile access is allowed."


@dataclass
class Principal:
    """请求认证主体。

    在认证阶段生成，权限阶段可补充超级用户标记供业务逻辑使用。
    """

    # 当前请求用户 ID。
    user_id: UUID
    # 用户状态。
    status: str
    # 是否超级用户（仅在权限校验后可信）。
    is_super: bool = False


def resolve_principal(
    db: Session,
    authorization: str | None,
    *,
    allow_suspended: bool = False,
) -> Principal:
    """校验访问令牌并解析认证主体。"""
    settings = get_settings()
    token = extract_bearer_token(authorization)
    claims = decode_token(token, secret=settings.auth_access_token_secret, token_class=TokenClass.ACCESS)

    user = get_user(db, claims.subject)
    if user is None:
        raise AuthenticationError(USER_GONE_MESSAGE, code="AUTH_USER_GONE")

    rejection = _STATUS_REJECTIONS.get(user.status)
    if rejection:
        raise AuthorizationError(rejection, code=f"ACCOUNT_{str(user.status).upper()}")
    if user.status == UserStatus.SUSPENDED and not allow_suspended:
        raise AuthorizationError(_SUSPENDED_MESSAGE, code="ACCOUNT_SUSPENDED")
    if user.status not in (UserStatus.ACTIVE, UserStatus.SUSPENDED):
        raise AuthorizationError("Forbidden")

    if is_password_stale(user, claims.issued_at):
        raise AuthenticationError(PASSWORD_CHANGED_MESSAGE, code="AUTH_PASSWORD_CHANGED")

    return Principal(user_id=user.id, status=user.status)


def _authenticate(*, allow_suspended: bool):
    def _dep(
        request: Request,
        authorization: str | None = Header(default=None, alias="Authorization"),
        db: Session = Depends(get_db),
    ) -> Principal:
        principal = resolve_principal(db, authorization, allow_suspended=allow_suspended)
        request.state.principal = principal
        return principal

    return _dep


# 受保护路由默认仅允许 active 账号。
get_current_principal = _authenticate(allow_suspended=False)
# 只读个人资料允许 suspended 账号访问。
get_profile_principal = _authenticate(allow_suspended=True)


def check_permission(db: Session, principal: Principal | None, permission: str) -> User:
    """校验认证主体是否具备权限点，返回最新用户记录。"""
    if principal is None or principal.user_id is None:
        raise ValidationError("Authenticated user is required.", code="PRINCIPAL_MISSING")

    user = get_user(db, principal.user_id)
    if user is None:
        raise NotFoundError("User not found.", code="USER_NOT_FOUND")

    if user.is_super:
        principal.is_super = True
        return user
    if not has_permission(user, permission):
        raise AuthorizationError("Forbidden")
    return user


def require_permission(permission: str):
    """按权限点做路由级权限限制，需组合在认证之后。"""

    def _dep(
        principal: Principal = Depends(get_current_principal),
        db: Session = Depends(get_db),
    ) -> Principal:
        check_permission(db, principal, permission)
        return principal

    return _dep
