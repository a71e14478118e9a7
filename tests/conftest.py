import os
from collections.abc import Generator
from dataclasses import dataclass, field

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# 应用模块在导入时读取配置，测试库地址需先于导入设置。
os.environ.setdefault("BLOGIFY_DATABASE_URL", "sqlite+pysqlite:///:memory:")

import blogify_api.models  # noqa: E402,F401
from blogify_api.core.config import get_settings  # noqa: E402
from blogify_api.db.session import get_db  # noqa: E402
from blogify_api.main import app  # noqa: E402
from blogify_api.models.base import Base  # noqa: E402
from blogify_api.models.enums import OtpPurpose  # noqa: E402
from blogify_api.services.mailer import get_mailer  # noqa: E402


@dataclass
class SentMail:
    to_email: str
    code: int
    purpose: OtpPurpose


@dataclass
class RecordingMailer:
    """记录投递内容，不连接真实 SMTP。"""

    outbox: list[SentMail] = field(default_factory=list)

    def send_otp(self, to_email: str, code: int, purpose: OtpPurpose) -> None:
        self.outbox.append(SentMail(to_email=to_email, code=code, purpose=purpose))

    def last_code(self, to_email: str) -> int:
        for mail in reversed(self.outbox):
            if mail.to_email == to_email:
                return mail.code
        raise AssertionError(f"no mail sent to {to_email}")


@pytest.fixture(autouse=True)
def _test_settings(monkeypatch):
    monkeypatch.setenv("BLOGIFY_APP_ENV", "test")
    monkeypatch.setenv("BLOGIFY_AUTH_ACCESS_TOKEN_SECRET", "unit-test-access-secret")
    monkeypatch.setenv("BLOGIFY_AUTH_REFRESH_TOKEN_SECRET", "unit-test-refresh-secret")
    # 降低哈希迭代次数，加快测试。
    monkeypatch.setenv("BLOGIFY_AUTH_PASSWORD_HASH_ITERATIONS", "1000")
    monkeypatch.delenv("BLOGIFY_SMTP_HOST", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def session_factory() -> Generator[sessionmaker, None, None]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False, class_=Session)
    try:
        yield factory
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def db_session(session_factory) -> Generator[Session, None, None]:
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def api_client(session_factory, mailer) -> Generator[TestClient, None, None]:
    def _override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_mailer] = lambda: mailer
    try:
        with TestClient(app, raise_server_exceptions=False) as client:
            yield client
    finally:
        app.dependency_overrides.clear()
