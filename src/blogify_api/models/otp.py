"""一次性验证码模型。"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from blogify_api.models.base import Base, TimestampMixin, UTCDateTime, UUIDPrimaryKeyMixin


class OtpCode(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """一次性验证码。

    说明：
    1. 每个用户最多一条记录，重新签发时覆盖验证码、用途与时间。
    2. 验证成功后删除记录，避免重放。
    """

    __tablename__ = "otp_codes"
    __table_args__ = (UniqueConstraint("user_id", name="uk_otp_code_user"),)

    # 所属用户 ID。
    user_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    # 6 位数字验证码（100000-999999）。
    code: Mapped[int] = mapped_column(Integer, nullable=False)
    # 验证码用途。
    purpose: Mapped[str] = mapped_column(String(32), nullable=False)
    # 签发时间，用于重发冷却判断。
    issued_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    # 过期时间。
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
