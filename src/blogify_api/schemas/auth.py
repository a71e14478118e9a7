"""认证接口请求与返回结构。

请求字段同时兼容下划线与驼峰命名（如 `otp_code` / `otpCode`），
字段长度等业务校验由认证服务统一完成。
"""

from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from blogify_api.schemas.common import BaseSchema


class _Request(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


class AuthRegisterRequest(_Request):
    """本地账号注册请求。"""

    name: str | None = Field(default=None, description="展示名（2-30 个字符）。", examples=["Ana"])
    email: str | None = Field(default=None, description="登录邮箱。", examples=["ana@example.com"])
    picture: str | None = Field(default=None, description="头像地址。")
    password: str | None = Field(default=None, description="登录密码（6-128 个字符）。", examples=["secret1"])


class AuthVerifyEmailRequest(_Request):
    """邮箱验证请求。"""

    email: str | None = Field(default=None, description="注册邮箱。")
    otp_code: str | int | None = Field(
        default=None,
        validation_alias=AliasChoices("otp_code", "otpCode"),
        description="邮件中的 6 位验证码。",
    )


class AuthLoginRequest(_Request):
    """本地账号登录请求。"""

    email: str | None = Field(default=None, description="登录邮箱。", examples=["ana@example.com"])
    password: str | None = Field(default=None, description="登录密码。", examples=["secret1"])


class AuthForgotPasswordRequest(_Request):
    """忘记密码请求。"""

    email: str | None = Field(default=None, description="账号邮箱。")


class AuthResetPasswordRequest(_Request):
    """重置密码请求。"""

    email: str | None = Field(default=None, description="账号邮箱。")
    new_password: str | None = Field(
        default=None,
        validation_alias=AliasChoices("new_password", "newPassword"),
        description="新密码（6-128 个字符）。",
    )
    otp_code: str | int | None = Field(
        default=None,
        validation_alias=AliasChoices("otp_code", "otpCode"),
        description="密码重置验证码。",
    )


class AuthResendOtpRequest(_Request):
    """重发验证码请求。"""

    email: str | None = Field(default=None, description="账号邮箱。")
    purpose: str | None = Field(
        default=None,
        validation_alias=AliasChoices("purpose", "otp_type", "otpType"),
        description="验证码用途：email_verification / password_reset / login。",
    )


class AuthRefreshRequest(_Request):
    """刷新访问令牌请求。"""

    refresh_token: str | None = Field(
        default=None,
        validation_alias=AliasChoices("refresh_token", "refreshToken"),
        description="登录时签发的刷新令牌。",
    )


class AuthRegisterData(BaseSchema):
    """注册结果结构。"""

    id: UUID = Field(description="用户 ID。")
    email: str = Field(description="登录邮箱。")


class AuthTokens(BaseSchema):
    access: str = Field(description="访问令牌。")
    refresh: str = Field(description="刷新令牌。")


class AuthLoginData(BaseSchema):
    """登录结果结构。"""

    tokens: AuthTokens = Field(description="令牌对。")
    token_type: str = Field(default="bearer", description="令牌类型。")


class AuthRefreshData(BaseSchema):
    """刷新结果结构。"""

    access_token: str = Field(description="新的访问令牌。")
    token_type: str = Field(default="bearer", description="令牌类型。")


class AuthOtpIssuedData(BaseSchema):
    """验证码已签发的返回结构。"""

    message: str = Field(description="提示信息。")
    otp_code: int | None = Field(default=None, description="验证码明文，仅非生产环境返回。")


class AuthMessageData(BaseSchema):
    """仅包含提示信息的返回结构。"""

    message: str = Field(description="提示信息。")


class AuthLogoutData(BaseSchema):
    """登出结果结构。"""

    logged_out: bool = Field(description="是否已完成登出。")
    revoked: bool = Field(description="服务端是否吊销了令牌（无状态设计下恒为 false）。")
