"""令牌签发与校验工具。

访问令牌与刷新令牌使用各自独立的密钥签名，并在声明中携带 `type`，
任一类令牌的密钥泄露不会影响另一类令牌。
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import StrEnum
from typing import Any
from uuid import uuid4

import jwt
from jwt import InvalidTokenError

from blogify_api.core.config import get_settings
from blogify_api.errors import AuthenticationError

INVALID_TOKEN_MESSAGE = "Invalid or expired token."


class TokenClass(StrEnum):
    """令牌类别。"""

    ACCESS = "access"
    REFRESH = "refresh"


@dataclass
class TokenClaims:
    """已通过校验的令牌声明。"""

    # 令牌主体（用户 ID）。
    subject: str
    # 令牌类别。
    token_class: TokenClass
    # 签发时间（秒级时间戳）。
    issued_at: int
    # 过期时间（秒级时间戳）。
    expires_at: int
    # 原始声明集。
    claims: dict[str, Any]


def _invalid_token() -> AuthenticationError:
    # 签名、格式、过期统一为同一提示，避免暴露具体失败原因。
    return AuthenticationError(INVALID_TOKEN_MESSAGE, code="AUTH_TOKEN_INVALID")


def issue_token(
    subject_id: str,
    token_class: TokenClass,
    *,
    secret: str,
    ttl: timedelta,
    now: datetime | None = None,
) -> str:
    """签发指定类别的令牌。"""
    settings = get_settings()
    issued_at = now or datetime.now(timezone.utc)
    expires_at = issued_at + ttl
    claims: dict[str, Any] = {
        "sub": str(subject_id),
        "type": TokenClass(token_class).value,
        "iat": int(issued_at.timestamp()),
        "exp": int(expires_at.timestamp()),
        "jti": str(uuid4()),
    }
    return jwt.encode(claims, secret, algorithm=settings.auth_jwt_algorithm)


def decode_token(token: str, *, secret: str, token_class: TokenClass) -> TokenClaims:
    """校验签名、过期时间与令牌类别。"""
    settings = get_settings()
    try:
        claims = jwt.decode(
            token,
            key=secret,
            algorithms=[settings.auth_jwt_algorithm],
            options={"require": ["sub", "iat", "exp"]},
        )
    except InvalidTokenError as exc:
        raise _invalid_token() from exc

    if claims.get("type") != TokenClass(token_class).value:
        raise _invalid_token()

    subject = str(claims.get("sub") or "").strip()
    issued_at = claims.get("iat")
    expires_at = claims.get("exp")
    if not subject or not isinstance(issued_at, int) or not isinstance(expires_at, int):
        raise _invalid_token()

    return TokenClaims(
        subject=subject,
        token_class=TokenClass(token_class),
        issued_at=issued_at,
        expires_at=expires_at,
        claims=claims,
    )


def extract_bearer_token(authorization: str | None) -> str:
    """从 Authorization 头中提取 Bearer token。"""
    if not authorization or not authorization.strip():
        raise AuthenticationError("Unauthorized - No token provided", code="AUTH_TOKEN_MISSING")
    parts = authorization.strip().split()
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1]:
        raise AuthenticationError("Unauthorized - Token missing", code="AUTH_TOKEN_MISSING")
    return parts[1]
