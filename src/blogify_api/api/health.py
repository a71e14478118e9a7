"""服务探针接口。"""

import logging

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from blogify_api.core.config import get_settings
from blogify_api.db.session import get_db
from blogify_api.errors import ServiceUnavailableError
from blogify_api.models.otp import OtpCode
from blogify_api.models.user import User
from blogify_api.schemas.common import ErrorResponse, SuccessResponse
from blogify_api.schemas.responses import HealthStatusData, ReadinessData
from blogify_api.services.mailer import get_mailer
from blogify_api.utils.response import success

logger = logging.getLogger("blogify_api.health")

router = APIRouter(prefix="/health", tags=["health"])


@router.get(
    "/live",
    summary="存活探针",
    description="进程存活即返回 ok，不访问数据库。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[HealthStatusData],
)
def live(request: Request):
    return success(request, {"status": "ok"})


@router.get(
    "/ready",
    summary="就绪探针",
    description="确认用户表与验证码表可读、令牌密钥已替换默认值，并返回验证码投递方式。",
    status_code=status.HTTP_200_OK,
    response_model=SuccessResponse[ReadinessData],
    responses={503: {"model": ErrorResponse}},
)
def ready(request: Request, db: Session = Depends(get_db)):
    """认证链路依赖的存储与密钥均可用时才视为就绪。"""
    settings = get_settings()
    if settings.is_production and settings.uses_default_token_secrets:
        raise ServiceUnavailableError("Token secrets are not configured.", code="AUTH_SECRETS_DEFAULT")

    try:
        db.execute(select(User.id).limit(1))
        db.execute(select(OtpCode.id).limit(1))
    except SQLAlchemyError as exc:
        logger.warning("readiness check failed: %s", exc.__class__.__name__)
        raise ServiceUnavailableError("Database is not reachable.", code="DATABASE_UNAVAILABLE") from exc

    mail_delivery = "smtp" if get_mailer().is_configured else "log"
    return success(request, {"status": "ready", "database": "ok", "mail_delivery": mail_delivery})
