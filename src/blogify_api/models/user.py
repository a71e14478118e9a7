"""用户身份模型。"""

from datetime import datetime

from sqlalchemy import JSON, Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from blogify_api.models.base import Base, TimestampMixin, UTCDateTime, UUIDPrimaryKeyMixin
from blogify_api.models.enums import UserStatus


class User(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """平台用户，同时承载本地登录凭据。"""

    __tablename__ = "users"

    # 展示名。
    name: Mapped[str] = mapped_column(String(30), nullable=False)
    # 登录邮箱，统一小写存储，全局唯一。
    email: Mapped[str] = mapped_column(String(256), nullable=False, unique=True)
    # 头像地址。
    picture: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    # 口令哈希，不存明文，不对外序列化。
    password_hash: Mapped[str] = mapped_column(String(256), nullable=False)
    # 最近一次修改口令时间，早于该时间签发的令牌全部失效。
    password_changed_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    # 超级用户跳过所有权限点校验。
    is_super: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # 用户自身持有的权限点集合。
    permissions: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    # 生命周期状态（pending/active/inactive/suspended/deleted）。
    status: Mapped[str] = mapped_column(String(32), nullable=False, default=UserStatus.PENDING)
