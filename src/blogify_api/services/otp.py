"""一次性验证码台账。

每个用户只保留一条验证码记录：重新签发会覆盖旧验证码（无论用途），
验证成功后删除记录。台账本身不负责投递验证码。
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from blogify_api.core.config import get_settings
from blogify_api.errors import RateLimitError, ValidationError
from blogify_api.models.enums import OtpPurpose
from blogify_api.models.otp import OtpCode
from blogify_api.utils.clock import as_utc, utc_now

logger = logging.getLogger("blogify_api.otp")

OTP_MIN_CODE = 100000
OTP_MAX_CODE = 999999
OTP_MIN_TTL = timedelta(minutes=1)
OTP_MAX_TTL = timedelta(minutes=60)
INVALID_OTP_MESSAGE = "Invalid or expired OTP."


def generate_code() -> int:
    """在 [100000, 999999] 上均匀生成 6 位验证码。"""
    return OTP_MIN_CODE + secrets.randbelow(OTP_MAX_CODE - OTP_MIN_CODE + 1)


def parse_purpose(purpose: str | OtpPurpose) -> OtpPurpose:
    """校验验证码用途。"""
    try:
        return OtpPurpose(purpose)
    except ValueError as exc:
        raise ValidationError("Invalid OTP type", code="OTP_PURPOSE_INVALID") from exc


def _resolve_ttl(ttl: timedelta | None) -> timedelta:
    if ttl is None:
        return timedelta(seconds=get_settings().otp_ttl_seconds)
    if not OTP_MIN_TTL <= ttl <= OTP_MAX_TTL:
        raise ValidationError("Invalid OTP lifetime. Must be 1-60 minutes.", code="OTP_TTL_INVALID")
    return ttl


def _get_record(db: Session, user_id: UUID) -> OtpCode | None:
    return db.execute(select(OtpCode).where(OtpCode.user_id == user_id)).scalar_one_or_none()


def _rate_limited() -> RateLimitError:
    return RateLimitError(
        "OTP was recently sent. Please wait before trying again.",
        code="OTP_RESEND_TOO_SOON",
    )


def issue_otp(
    db: Session,
    user_id: UUID,
    purpose: str | OtpPurpose,
    *,
    ttl: timedelta | None = None,
    now: datetime | None = None,
) -> int:
    """签发验证码并返回明文验证码。

    冷却判断在数据库侧完成：覆盖写只在已有记录早于冷却窗口时生效，
    并发签发中只有一个请求能成功，其余返回 429。
    """
    settings = get_settings()
    otp_purpose = parse_purpose(purpose)
    lifetime = _resolve_ttl(ttl)
    issued_at = now or utc_now()
    cooldown = timedelta(seconds=settings.otp_resend_cooldown_seconds)
    code = generate_code()

    record = _get_record(db, user_id)
    inserted = False
    if record is None:
        try:
            with db.begin_nested():
                db.add(
                    OtpCode(
                        user_id=user_id,
                        code=code,
                        purpose=otp_purpose,
                        issued_at=issued_at,
                        expires_at=issued_at + lifetime,
                    )
                )
            inserted = True
        except IntegrityError:
            # 另一请求刚插入记录，交由下方带冷却条件的覆盖写判定。
            logger.info("otp insert raced user_id=%s", user_id)

    if not inserted:
        result = db.execute(
            update(OtpCode)
            .where(OtpCode.user_id == user_id, OtpCode.issued_at <= issued_at - cooldown)
            .values(
                code=code,
                purpose=otp_purpose.value,
                issued_at=issued_at,
                expires_at=issued_at + lifetime,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise _rate_limited()
        if record is not None:
            db.expire(record)

    logger.info("otp issued user_id=%s purpose=%s", user_id, otp_purpose.value)
    return code


def verify_otp(
    db: Session,
    user_id: UUID,
    purpose: str | OtpPurpose,
    submitted_code: int | str | None,
    *,
    now: datetime | None = None,
) -> None:
    """校验并消费验证码，失败统一返回无效或过期。"""
    otp_purpose = parse_purpose(purpose)
    current = now or utc_now()
    record = _get_record(db, user_id)

    try:
        code = int(str(submitted_code).strip())
    except (TypeError, ValueError):
        code = None

    if (
        record is None
        or record.purpose != otp_purpose
        or code is None
        or record.code != code
        or current >= as_utc(record.expires_at)
    ):
        logger.info("otp rejected user_id=%s purpose=%s", user_id, otp_purpose.value)
        raise ValidationError(INVALID_OTP_MESSAGE, code="OTP_INVALID")

    # 条件删除即消费：并发校验同一验证码时只有一个请求能删到记录。
    result = db.execute(
        delete(OtpCode)
        .where(
            OtpCode.id == record.id,
            OtpCode.code == code,
            OtpCode.purpose == otp_purpose.value,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        logger.info("otp already consumed user_id=%s purpose=%s", user_id, otp_purpose.value)
        raise ValidationError(INVALID_OTP_MESSAGE, code="OTP_INVALID")

    db.expunge(record)
    logger.info("otp consumed user_id=%s purpose=%s", user_id, otp_purpose.value)
