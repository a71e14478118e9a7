"""权限点定义与判定。

权限点集合归属于用户记录本身，不维护进程级的可变权限表；
超级用户直接视为拥有全部权限。
"""

from collections.abc import Iterable
from enum import StrEnum

from blogify_api.models.user import User


class PermissionAction(StrEnum):
    """后端接口鉴权动作定义。"""

    BLOG_CREATE = "api.blog.create"
    BLOG_UPDATE = "api.blog.update"
    BLOG_DELETE = "api.blog.delete"
    BLOG_PUBLISH = "api.blog.publish"

    TAG_CREATE = "api.tag.create"
    TAG_UPDATE = "api.tag.update"
    TAG_DELETE = "api.tag.delete"

    USER_READ = "api.user.read"
    USER_STATUS_UPDATE = "api.user.status.update"
    USER_PERMISSION_MANAGE = "api.user.permission.manage"


_ACTION_VALUES = {action.value for action in PermissionAction}


def permission_catalog() -> list[str]:
    """返回内置权限点目录。"""
    return sorted(_ACTION_VALUES)


def normalize_permission_code(code: str) -> str:
    """规范化权限编码（去除首尾空白），未知编码原样保留。"""
    return code.strip()


def normalize_permission_set(codes: Iterable[str]) -> list[str]:
    return sorted({normalize_permission_code(code) for code in codes if code and code.strip()})


def has_permission(user: User, permission: str) -> bool:
    """判断用户是否具备指定权限点。"""
    if user.is_super:
        return True
    wanted = normalize_permission_code(str(permission))
    return wanted in set(normalize_permission_set(user.permissions or []))


def set_user_permissions(user: User, codes: Iterable[str]) -> list[str]:
    """覆盖设置用户权限点。"""
    user.permissions = normalize_permission_set(codes)
    return list(user.permissions)
