"""领域枚举定义。"""

from enum import StrEnum


class UserStatus(StrEnum):
    """用户生命周期状态。"""

    PENDING = "pending"  # 已注册，等待邮箱验证。
    ACTIVE = "active"  # 正常可用。
    INACTIVE = "inactive"  # 已停用，不可登录或访问任何资源。
    SUSPENDED = "suspended"  # 已暂停，仅可查看个人资料。
    DELETED = "deleted"  # 逻辑删除，仅保留用于审计。


# 资料更新接口允许写入的状态（pending 只能由注册流程产生）。
ASSIGNABLE_USER_STATUSES = frozenset(
    {UserStatus.ACTIVE, UserStatus.INACTIVE, UserStatus.SUSPENDED, UserStatus.DELETED}
)


class OtpPurpose(StrEnum):
    """一次性验证码用途。"""

    EMAIL_VERIFICATION = "email_verification"  # 注册后邮箱验证。
    PASSWORD_RESET = "password_reset"  # 忘记密码重置。
    LOGIN = "login"  # 验证码登录（预留）。
