"""用户资料相关结构。"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from blogify_api.schemas.common import BaseSchema


class UserProfileUpdateRequest(BaseModel):
    """更新本人资料请求体，未传字段保持不变。"""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str | None = Field(default=None, description="新的展示名。", examples=["Ana Maria"])
    picture: str | None = Field(default=None, description="新的头像地址，传空字符串表示清除。")
    password: str | None = Field(default=None, description="新的登录密码，修改后旧令牌全部失效。")


class UserStatusUpdateRequest(BaseModel):
    """管理员变更用户状态请求体。"""

    status: str = Field(description="目标状态：active / inactive / suspended / deleted。", examples=["suspended"])


class UserPermissionsUpdateRequest(BaseModel):
    """覆盖设置用户权限点请求体。"""

    permissions: list[str] = Field(default_factory=list, description="权限点编码列表。", examples=[["api.blog.create"]])


class UserProfileData(BaseSchema):
    """对外可见的用户资料。"""

    id: UUID = Field(description="用户 ID。")
    name: str = Field(description="展示名。")
    email: str = Field(description="登录邮箱。")
    picture: str | None = Field(default=None, description="头像地址。")
    status: str = Field(description="账号状态。")
    created_at: datetime | None = Field(default=None, description="创建时间。")
    updated_at: datetime | None = Field(default=None, description="更新时间。")


class UserProfileEnvelope(BaseSchema):
    user: UserProfileData = Field(description="用户资料。")


class UserPermissionsData(BaseSchema):
    user_id: UUID = Field(description="用户 ID。")
    permissions: list[str] = Field(description="生效的权限点编码。")
