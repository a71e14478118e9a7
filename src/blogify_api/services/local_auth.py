"""本地账号认证流程。

编排注册、邮箱验证、登录、忘记密码、重置密码与验证码重发。
各函数只 flush 不 commit，事务由路由层统一提交。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from blogify_api.errors import AuthorizationError, NotFoundError, ValidationError
from blogify_api.models.enums import OtpPurpose, UserStatus
from blogify_api.models.user import User
from blogify_api.services import credentials, otp
from blogify_api.services.mailer import OtpMailer
from blogify_api.services.tokens import TokenPair, issue_token_pair

logger = logging.getLogger("blogify_api.auth")

NO_ACCOUNT_MESSAGE = "No account found with this email address"

# 登录阶段直接拒绝的账号状态；suspended 允许登录，仅可访问只读资料。
_LOGIN_BLOCKED_STATUSES = {
    UserStatus.PENDING: "Your account is not verified. Please verify your email first.",
    UserStatus.INACTIVE: "Your account is inactive. Please contact support to reactivate it.",
    UserStatus.DELETED: "Your account has been deleted. Please register again to access the service.",
}


@dataclass
class RegistrationResult:
    """注册结果。"""

    user: User
    otp_code: int


def _require_user(db: Session, email: str) -> User:
    user = credentials.get_user_by_email(db, email)
    if user is None:
        raise NotFoundError(NO_ACCOUNT_MESSAGE, code="USER_NOT_FOUND")
    return user


def register(
    db: Session,
    mailer: OtpMailer,
    *,
    name: str | None,
    email: str | None,
    password: str | None,
    picture: str | None = None,
) -> RegistrationResult:
    """注册待验证账号并投递邮箱验证码。"""
    user = credentials.create_user(db, name=name, email=email, password=password, picture=picture)
    code = otp.issue_otp(db, user.id, OtpPurpose.EMAIL_VERIFICATION)
    mailer.send_otp(user.email, code, OtpPurpose.EMAIL_VERIFICATION)
    logger.info("user registered id=%s", user.id)
    return RegistrationResult(user=user, otp_code=code)


def verify_email(db: Session, *, email: str | None, otp_code: int | str | None) -> User:
    """校验邮箱验证码并激活账号。"""
    if not email or otp_code in (None, ""):
        raise ValidationError("Email and OTP code are required.")

    user = _require_user(db, email)
    otp.verify_otp(db, user.id, OtpPurpose.EMAIL_VERIFICATION, otp_code)
    if user.status == UserStatus.PENDING:
        user.status = UserStatus.ACTIVE
        db.flush()
    logger.info("email verified id=%s status=%s", user.id, user.status)
    return user


def login(db: Session, *, email: str | None, password: str | None) -> TokenPair:
    """校验凭据并签发令牌对。"""
    if not email or not password:
        raise ValidationError("Please provide email and password.")

    user = credentials.authenticate(db, email, password)
    blocked_message = _LOGIN_BLOCKED_STATUSES.get(user.status)
    if blocked_message:
        logger.info("login blocked id=%s status=%s", user.id, user.status)
        raise AuthorizationError(blocked_message, code=f"ACCOUNT_{str(user.status).upper()}")

    logger.info("user logged in id=%s", user.id)
    return issue_token_pair(user)


def forgot_password(db: Session, mailer: OtpMailer, *, email: str | None) -> int:
    """签发并投递密码重置验证码。"""
    if not email:
        raise ValidationError("Email address is required")
    credentials.validate_email(email)

    user = _require_user(db, email)
    code = otp.issue_otp(db, user.id, OtpPurpose.PASSWORD_RESET)
    mailer.send_otp(user.email, code, OtpPurpose.PASSWORD_RESET)
    logger.info("password reset requested id=%s", user.id)
    return code


def reset_password(
    db: Session,
    *,
    email: str | None,
    new_password: str | None,
    otp_code: int | str | None,
) -> User:
    """校验重置验证码并替换口令，旧令牌随之全部失效。"""
    if not email or not new_password or otp_code in (None, ""):
        raise ValidationError("Email, new password, and OTP are required.")
    credentials.validate_password(new_password)

    user = _require_user(db, email)
    otp.verify_otp(db, user.id, OtpPurpose.PASSWORD_RESET, otp_code)
    if credentials.verify_password(new_password, user.password_hash):
        raise ValidationError(
            "New password cannot be the same as the old password.",
            code="PASSWORD_UNCHANGED",
        )

    credentials.update_credentials(db, user.email, password=new_password)
    logger.info("password reset id=%s", user.id)
    return user


def resend_otp(db: Session, mailer: OtpMailer, *, email: str | None, purpose: str | None) -> int:
    """按用途重新签发并投递验证码。"""
    otp_purpose = otp.parse_purpose(purpose or "")
    if not email:
        raise ValidationError("Valid email is required")
    credentials.validate_email(email)

    user = _require_user(db, email)
    if otp_purpose == OtpPurpose.EMAIL_VERIFICATION and user.status != UserStatus.PENDING:
        raise ValidationError("This email address is already verified.", code="EMAIL_ALREADY_VERIFIED")

    code = otp.issue_otp(db, user.id, otp_purpose)
    mailer.send_otp(user.email, code, otp_purpose)
    return code
