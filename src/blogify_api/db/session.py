"""数据库引擎与请求级会话。"""

from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker

from blogify_api.core.config import get_settings


def _engine_options(database_url: str) -> dict[str, Any]:
    """按驱动补充连接参数。

    SQLite 连接会被线程池中的同步接口跨线程使用；
    其余驱动开启连接预检查，避免复用已断开的连接。
    """
    if make_url(database_url).get_backend_name() == "sqlite":
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


settings = get_settings()
engine = create_engine(settings.database_url, future=True, **_engine_options(settings.database_url))
# 认证服务只在路由层提交事务，服务层函数仅 flush。
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, class_=Session)


def get_db() -> Generator[Session, None, None]:
    """为每个请求提供独立会话，未提交的写入在关闭时回滚。"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
