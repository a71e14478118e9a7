"""访问令牌与刷新令牌服务。"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from blogify_api.core.config import get_settings
from blogify_api.core.security import TokenClass, decode_token, issue_token
from blogify_api.errors import AuthenticationError, ValidationError
from blogify_api.models.user import User
from blogify_api.services.credentials import get_user, is_password_stale

logger = logging.getLogger("blogify_api.tokens")

USER_GONE_MESSAGE = "The user belonging to this token no longer exists."
PASSWORD_CHANGED_MESSAGE = "Password changed recently. Please log in again."


@dataclass
class TokenPair:
    """登录签发的令牌对。"""

    access: str
    refresh: str


def issue_access_token(user: User, *, now: datetime | None = None) -> str:
    settings = get_settings()
    return issue_token(
        str(user.id),
        TokenClass.ACCESS,
        secret=settings.auth_access_token_secret,
        ttl=timedelta(seconds=settings.access_token_ttl_seconds),
        now=now,
    )


def issue_refresh_token(user: User, *, now: datetime | None = None) -> str:
    settings = get_settings()
    return issue_token(
        str(user.id),
        TokenClass.REFRESH,
        secret=settings.auth_refresh_token_secret,
        ttl=timedelta(seconds=settings.refresh_token_ttl_seconds),
        now=now,
    )


def issue_token_pair(user: User, *, now: datetime | None = None) -> TokenPair:
    """签发一对访问令牌与刷新令牌，二者都绑定用户 ID。"""
    return TokenPair(
        access=issue_access_token(user, now=now),
        refresh=issue_refresh_token(user, now=now),
    )


def refresh_access_token(db: Session, refresh_token: str | None) -> str:
    """使用刷新令牌换取新的访问令牌。

    刷新令牌本身不轮换，仍在原有效期内可用。
    """
    if not refresh_token:
        raise ValidationError("Please provide a refresh token.")

    settings = get_settings()
    claims = decode_token(
        refresh_token,
        secret=settings.auth_refresh_token_secret,
        token_class=TokenClass.REFRESH,
    )

    user = get_user(db, claims.subject)
    if user is None:
        raise AuthenticationError(USER_GONE_MESSAGE, code="AUTH_USER_GONE")
    if is_password_stale(user, claims.issued_at):
        raise AuthenticationError(PASSWORD_CHANGED_MESSAGE, code="AUTH_PASSWORD_CHANGED")

    logger.info("access token refreshed user_id=%s", user.id)
    return issue_access_token(user)
