"""认证接口。"""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from blogify_api.core.config import get_settings
from blogify_api.db.session import get_db
from blogify_api.dependencies import Principal, get_profile_principal
from blogify_api.schemas.auth import (
    AuthForgotPasswordRequest,
    AuthLoginData,
    AuthLoginRequest,
    AuthLogoutData,
    AuthMessageData,
    AuthOtpIssuedData,
    AuthRefreshData,
    AuthRefreshRequest,
    AuthRegisterData,
    AuthRegisterRequest,
    AuthResendOtpRequest,
    AuthResetPasswordRequest,
    AuthVerifyEmailRequest,
)
from blogify_api.schemas.common import ErrorResponse, SuccessResponse
from blogify_api.services import local_auth
from blogify_api.services.mailer import OtpMailer, get_mailer
from blogify_api.services.tokens import refresh_access_token
from blogify_api.utils.response import success

router = APIRouter(prefix="/auth", tags=["auth"])


def _otp_issued(request: Request, message: str, code: int) -> dict:
    """非生产环境回显验证码，便于联调与测试。"""
    data: dict[str, object] = {"message": message}
    if not get_settings().is_production:
        data["otp_code"] = code
    return success(request, data)


@router.post(
    "/register",
    summary="注册本地账号",
    description="创建待验证账号，并向注册邮箱发送 6 位验证码（5 分钟内有效）。",
    status_code=status.HTTP_201_CREATED,
    response_model=SuccessResponse[AuthRegisterData],
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}, 429: {"model": ErrorResponse}},
)
def register(
    payload: AuthRegisterRequest,
    request: Request,
    db: Session = Depends(get_db),
    mailer: OtpMailer = Depends(get_mailer),
):
    """注册本地账号。"""
    result = local_auth.register(
        db,
        mailer,
        name=payload.name,
        email=payload.email,
        password=payload.password,
        picture=payload.picture,
    )
    db.commit()
    return success(
        request,
        {"id": result.user.id, "email": result.user.email},
        meta={"message": "User successfully registered. An OTP has been sent to your email."},
    )


@router.post(
    "/verify-email",
    summary="验证邮箱",
    description="使用注册邮件中的验证码激活账号。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[AuthMessageData],
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def verify_email(
    payload: AuthVerifyEmailRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """校验邮箱验证码并激活账号。"""
    local_auth.verify_email(db, email=payload.email, otp_code=payload.otp_code)
    db.commit()
    return success(request, {"message": "Your email has been successfully verified. You can now log in."})


@router.post(
    "/resend-otp",
    summary="重发验证码",
    description="按用途重新签发验证码，同一账号 30 秒内只能签发一次。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[AuthOtpIssuedData],
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 429: {"model": ErrorResponse}},
)
def resend_otp(
    payload: AuthResendOtpRequest,
    request: Request,
    db: Session = Depends(get_db),
    mailer: OtpMailer = Depends(get_mailer),
):
    """重新签发并投递验证码。"""
    code = local_auth.resend_otp(db, mailer, email=payload.email, purpose=payload.purpose)
    db.commit()
    return _otp_issued(request, "OTP has been sent to your email", code)


@router.post(
    "/login",
    summary="本地账号登录",
    description="使用邮箱密码登录，返回访问令牌与刷新令牌。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[AuthLoginData],
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
def login(
    payload: AuthLoginRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """本地账号登录并签发令牌对。"""
    tokens = local_auth.login(db, email=payload.email, password=payload.password)
    return success(
        request,
        {"tokens": {"access": tokens.access, "refresh": tokens.refresh}, "token_type": "bearer"},
    )


@router.post(
    "/forgot-password",
    summary="忘记密码",
    description="向账号邮箱发送密码重置验证码；非生产环境会在响应中回显验证码。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[AuthOtpIssuedData],
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 429: {"model": ErrorResponse}},
)
def forgot_password(
    payload: AuthForgotPasswordRequest,
    request: Request,
    db: Session = Depends(get_db),
    mailer: OtpMailer = Depends(get_mailer),
):
    """签发密码重置验证码。"""
    code = local_auth.forgot_password(db, mailer, email=payload.email)
    db.commit()
    return _otp_issued(request, "OTP has been sent to your email", code)


@router.post(
    "/reset-password",
    summary="重置密码",
    description="校验重置验证码后替换密码，此前签发的全部令牌立即失效。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[AuthMessageData],
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def reset_password(
    payload: AuthResetPasswordRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """重置密码。"""
    local_auth.reset_password(
        db,
        email=payload.email,
        new_password=payload.new_password,
        otp_code=payload.otp_code,
    )
    db.commit()
    return success(
        request,
        {"message": "Your password has been reset successfully. Please log in with your new password."},
    )


@router.post(
    "/refresh-token",
    summary="刷新访问令牌",
    description="使用刷新令牌换取新的访问令牌，刷新令牌本身不轮换。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[AuthRefreshData],
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
)
def refresh_token(
    payload: AuthRefreshRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """签发新的访问令牌。"""
    access_token = refresh_access_token(db, payload.refresh_token)
    return success(request, {"access_token": access_token, "token_type": "bearer"})


@router.post(
    "/logout",
    summary="登出",
    description="无状态登出：服务端不保存吊销列表，客户端丢弃令牌即可。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[AuthLogoutData],
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
def logout(
    request: Request,
    payload: AuthRefreshRequest | None = None,
    principal: Principal = Depends(get_profile_principal),
):
    """登出。"""
    # TODO: 引入刷新令牌吊销表后在此吊销 payload.refresh_token。
    return success(request, {"logged_out": True, "revoked": False})
