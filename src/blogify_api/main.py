"""FastAPI 应用入口点。"""

from fastapi import FastAPI

from blogify_api.api.router import api_router
from blogify_api.core.config import get_settings
from blogify_api.exceptions import register_exception_handlers
from blogify_api.logging_config import setup_logging
from blogify_api.middlewares import register_middlewares

settings = get_settings()


def create_app() -> FastAPI:
    """创建并配置 FastAPI 应用实例。"""
    setup_logging()
    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        debug=settings.app_debug,
        description=(
            "Blogify 认证与授权接口。\n\n"
            "所有业务接口统一返回：`{request_id, data, meta}`。\n"
            "受保护接口通过 `Authorization: Bearer <access token>` 认证。"
        ),
        openapi_tags=[
            {"name": "health", "description": "服务存活与就绪探针。"},
            {"name": "auth", "description": "注册、邮箱验证、登录、密码重置与令牌刷新。"},
            {"name": "users", "description": "个人资料与用户管理。"},
        ],
    )

    register_middlewares(app)
    register_exception_handlers(app)
    app.include_router(api_router, prefix=settings.api_prefix)
    return app


app = create_app()
