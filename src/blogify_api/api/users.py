"""用户资料与管理接口。"""

from uuid import UUID

from fastapi import APIRouter, Depends, Path, Request, status
from sqlalchemy.orm import Session

from blogify_api.db.session import get_db
from blogify_api.dependencies import Principal, get_current_principal, get_profile_principal, require_permission
from blogify_api.errors import NotFoundError
from blogify_api.schemas.common import ErrorResponse, SuccessResponse
from blogify_api.schemas.user import (
    UserPermissionsData,
    UserPermissionsUpdateRequest,
    UserProfileEnvelope,
    UserProfileUpdateRequest,
    UserStatusUpdateRequest,
)
from blogify_api.services import credentials
from blogify_api.services.credentials import UNSET, public_user
from blogify_api.services.permissions import PermissionAction, set_user_permissions
from blogify_api.utils.response import success

router = APIRouter(prefix="/users", tags=["users"])


def _load_user(db: Session, user_id: UUID):
    user = credentials.get_user(db, user_id)
    if user is None:
        raise NotFoundError("User not found with the provided ID", code="USER_NOT_FOUND")
    return user


@router.get(
    "/profile",
    summary="查询本人资料",
    description="返回当前登录用户资料；暂停状态账号也可访问。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[UserProfileEnvelope],
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
def get_profile(
    request: Request,
    principal: Principal = Depends(get_profile_principal),
    db: Session = Depends(get_db),
):
    """查询本人资料。"""
    user = _load_user(db, principal.user_id)
    return success(request, {"user": public_user(user)})


@router.patch(
    "/profile",
    summary="更新本人资料",
    description="局部更新展示名、头像或密码；修改密码后此前签发的令牌全部失效。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[UserProfileEnvelope],
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
def update_profile(
    payload: UserProfileUpdateRequest,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """更新本人资料。"""
    user = _load_user(db, principal.user_id)
    user = credentials.update_credentials(
        db,
        user.email,
        name=payload.name,
        picture=payload.picture if "picture" in payload.model_fields_set else UNSET,
        password=payload.password,
    )
    db.commit()
    db.refresh(user)
    return success(request, {"user": public_user(user)})


@router.patch(
    "/{user_id}/status",
    summary="变更用户状态",
    description="需要 `api.user.status.update` 权限或超级用户。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[UserProfileEnvelope],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
def update_user_status(
    payload: UserStatusUpdateRequest,
    request: Request,
    user_id: UUID = Path(..., description="目标用户 ID。"),
    principal: Principal = Depends(require_permission(PermissionAction.USER_STATUS_UPDATE)),
    db: Session = Depends(get_db),
):
    """变更目标用户生命周期状态。"""
    target = _load_user(db, user_id)
    target = credentials.update_credentials(db, target.email, status=payload.status)
    db.commit()
    db.refresh(target)
    return success(request, {"user": public_user(target)})


@router.put(
    "/{user_id}/permissions",
    summary="设置用户权限点",
    description="覆盖设置目标用户的权限点集合，需要 `api.user.permission.manage` 权限或超级用户。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[UserPermissionsData],
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def update_user_permissions(
    payload: UserPermissionsUpdateRequest,
    request: Request,
    user_id: UUID = Path(..., description="目标用户 ID。"),
    principal: Principal = Depends(require_permission(PermissionAction.USER_PERMISSION_MANAGE)),
    db: Session = Depends(get_db),
):
    """覆盖设置目标用户权限点。"""
    target = _load_user(db, user_id)
    permissions = set_user_permissions(target, payload.permissions)
    db.commit()
    return success(request, {"user_id": target.id, "permissions": permissions})
