"""用户凭据存储。

职责:
1. 创建、查询、更新用户身份记录。
2. 口令只在写入路径 `_assign_password` 中哈希一次。
3. 判断令牌是否早于最近一次改密时间签发。
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import logging
import re
import secrets
from datetime import datetime
from functools import lru_cache
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from blogify_api.core.config import get_settings
from blogify_api.errors import ConflictError, InvalidCredentials, NotFoundError, ValidationError
from blogify_api.models.enums import ASSIGNABLE_USER_STATUSES, UserStatus
from blogify_api.models.user import User
from blogify_api.utils.clock import as_utc, utc_now

logger = logging.getLogger("blogify_api.credentials")

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 30
PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_LENGTH = 128
PICTURE_MAX_LENGTH = 1024

# 区分“未传入”与“显式清空”。
UNSET: Any = object()


def normalize_email(email: str) -> str:
    """邮箱统一去空白并转小写。"""
    return email.strip().lower()


def redact_email(email: str) -> str:
    """日志中脱敏邮箱。"""
    if "@" not in email:
        return "redacted"
    local, domain = email.split("@", 1)
    return f"{local[:2]}***@{domain}"


def hash_password(password: str) -> str:
    """使用 PBKDF2-SHA256 生成口令哈希。"""
    settings = get_settings()
    salt = secrets.token_bytes(16)
    digest = hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        salt,
        settings.auth_password_hash_iterations,
    )
    salt_b64 = base64.b64encode(salt).decode("ascii")
    digest_b64 = base64.b64encode(digest).decode("ascii")
    return f"pbkdf2_sha256${settings.auth_password_hash_iterations}${salt_b64}${digest_b64}"


def verify_password(password: str, password_hash: str) -> bool:
    """校验口令是否匹配。"""
    try:
        algorithm, iterations_text, salt_b64, expected_digest_b64 = password_hash.split("$", 3)
        if algorithm != "pbkdf2_sha256":
            return False
        iterations = int(iterations_text)
        salt = base64.b64decode(salt_b64.encode("ascii"))
        expected_digest = base64.b64decode(expected_digest_b64.encode("ascii"))
    except (ValueError, TypeError, binascii.Error):
        return False

    actual_digest = hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        salt,
        iterations,
    )
    return hmac.compare_digest(actual_digest, expected_digest)


def validate_name(name: str) -> str:
    normalized = name.strip()
    if not NAME_MIN_LENGTH <= len(normalized) <= NAME_MAX_LENGTH:
        raise ValidationError(
            f"Please make sure your name is between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH} characters."
        )
    return normalized


def validate_email(email: str) -> str:
    normalized = normalize_email(email)
    if len(normalized) > 256 or not EMAIL_PATTERN.match(normalized):
        raise ValidationError("Please make sure to provide a valid email address.")
    return normalized


def validate_picture(picture: str | None) -> str | None:
    """头像地址去空白，空值视为清除。"""
    normalized = (picture or "").strip()
    if len(normalized) > PICTURE_MAX_LENGTH:
        raise ValidationError(
            f"Please make sure your picture URL is at most {PICTURE_MAX_LENGTH} characters."
        )
    return normalized or None


def validate_password(password: str) -> str:
    if not PASSWORD_MIN_LENGTH <= len(password) <= PASSWORD_MAX_LENGTH:
        raise ValidationError(
            f"Please make sure your password is between {PASSWORD_MIN_LENGTH} and {PASSWORD_MAX_LENGTH} characters."
        )
    return password


def _assign_password(user: User, password: str, *, now: datetime | None = None) -> bool:
    """写入新口令哈希。

    新口令与当前哈希一致时不做任何修改并返回 False；
    已有用户改密时同步刷新 `password_changed_at`。
    """
    if user.password_hash and verify_password(password, user.password_hash):
        return False
    is_replacement = bool(user.password_hash)
    user.password_hash = hash_password(password)
    if is_replacement:
        user.password_changed_at = now or utc_now()
    return True


@lru_cache
def _dummy_password_hash(iterations: int) -> str:
    # 按迭代次数缓存，与真实口令哈希的计算量保持一致。
    return hash_password(secrets.token_urlsafe(16))


def public_user(user: User) -> dict[str, Any]:
    """构造对外可见的用户视图，不包含口令与超级用户标记。"""
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "picture": user.picture,
        "status": user.status,
        "created_at": user.created_at,
        "updated_at": user.updated_at,
    }


def get_user(db: Session, user_id: UUID | str) -> User | None:
    """按 ID 查询用户，非法 ID 视为不存在。"""
    if not isinstance(user_id, UUID):
        try:
            user_id = UUID(str(user_id))
        except ValueError:
            return None
    return db.get(User, user_id)


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.execute(select(User).where(User.email == normalize_email(email))).scalar_one_or_none()


def create_user(
    db: Session,
    *,
    name: str | None,
    email: str | None,
    password: str | None,
    picture: str | None = None,
) -> User:
    """创建待验证（pending）用户。"""
    if not name or not email or not password:
        raise ValidationError("Please fill all fields.")

    normalized_name = validate_name(name)
    normalized_email = validate_email(email)
    if get_user_by_email(db, normalized_email) is not None:
        raise ConflictError(
            "Please try again with a different email address, this email already exist.",
            code="EMAIL_TAKEN",
        )
    validate_password(password)

    user = User(
        name=normalized_name,
        email=normalized_email,
        picture=validate_picture(picture),
        password_hash="",
        is_super=False,
        permissions=[],
        status=UserStatus.PENDING,
    )
    _assign_password(user, password)
    db.add(user)
    try:
        db.flush()
    except IntegrityError as exc:
        # 并发注册同一邮箱时由唯一约束兜底。
        db.rollback()
        raise ConflictError(
            "Please try again with a different email address, this email already exist.",
            code="EMAIL_TAKEN",
        ) from exc

    logger.info("user created id=%s email=%s", user.id, redact_email(normalized_email))
    return user


def authenticate(db: Session, email: str, password: str) -> User:
    """校验邮箱与口令。"""
    user = get_user_by_email(db, email)
    if user is None:
        # 未知邮箱同样执行一次哈希校验，响应耗时不暴露账号是否存在。
        verify_password(password, _dummy_password_hash(get_settings().auth_password_hash_iterations))
        raise InvalidCredentials()
    if not verify_password(password, user.password_hash):
        raise InvalidCredentials()
    return user


def update_credentials(
    db: Session,
    email: str | None,
    *,
    name: str | None = None,
    picture: str | None = UNSET,
    password: str | None = None,
    status: str | None = None,
) -> User:
    """按邮箱局部更新用户资料与凭据。"""
    if not email:
        raise ValidationError("Email is required to update user.")

    user = get_user_by_email(db, email)
    if user is None:
        raise NotFoundError("User not found with this email.", code="USER_NOT_FOUND")

    if name is not None:
        user.name = validate_name(name)

    if picture is not UNSET:
        user.picture = validate_picture(picture)

    if status is not None:
        if status not in ASSIGNABLE_USER_STATUSES:
            raise ValidationError("Invalid status provided.")
        user.status = status

    if password is not None:
        validate_password(password)
        if _assign_password(user, password):
            logger.info("password replaced id=%s", user.id)

    db.flush()
    return user


def is_password_stale(user: User, token_issued_at: int) -> bool:
    """判断令牌是否签发于最近一次改密之前。"""
    if user.password_changed_at is None:
        return False
    changed_at_seconds = int(as_utc(user.password_changed_at).timestamp())
    return changed_at_seconds > token_issued_at
