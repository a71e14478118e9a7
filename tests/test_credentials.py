from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from blogify_api.errors import ConflictError, InvalidCredentials, NotFoundError, ValidationError
from blogify_api.models.enums import UserStatus
from blogify_api.models.user import User
from blogify_api.services import credentials
from blogify_api.services.credentials import (
    authenticate,
    create_user,
    hash_password,
    is_password_stale,
    update_credentials,
    verify_password,
)


def _create(db, *, email="ana@example.com", password="secret1", name="Ana"):
    return create_user(db, name=name, email=email, password=password)


def test_password_hash_and_verify():
    password_hash = hash_password("StrongPassw0rd!")
    assert password_hash.startswith("pbkdf2_sha256$")
    assert verify_password("StrongPassw0rd!", password_hash)
    assert not verify_password("wrong-password", password_hash)
    assert not verify_password("StrongPassw0rd!", "not-a-hash")


def test_create_user_stores_hash_and_pending_status(db_session):
    user = _create(db_session, email="  Ana@Example.COM ")

    assert user.email == "ana@example.com"
    assert user.status == UserStatus.PENDING
    assert user.password_hash != "secret1"
    assert verify_password("secret1", user.password_hash)
    assert user.password_changed_at is None
    assert user.is_super is False


@pytest.mark.parametrize(
    ("name", "email", "password"),
    [
        (None, "a@example.com", "secret1"),
        ("Ana", "", "secret1"),
        ("Ana", "a@example.com", None),
    ],
)
def test_create_user_requires_all_fields(db_session, name, email, password):
    with pytest.raises(ValidationError) as exc:
        create_user(db_session, name=name, email=email, password=password)
    assert exc.value.status_code == 400
    assert exc.value.detail["message"] == "Please fill all fields."


@pytest.mark.parametrize(
    ("name", "email", "password"),
    [
        ("A", "a@example.com", "secret1"),
        ("A" * 31, "a@example.com", "secret1"),
        ("Ana", "not-an-email", "secret1"),
        ("Ana", "a@example.com", "abc"),
        ("Ana", "a@example.com", "x" * 129),
    ],
)
def test_create_user_rejects_invalid_fields(db_session, name, email, password):
    with pytest.raises(ValidationError):
        create_user(db_session, name=name, email=email, password=password)
    assert db_session.execute(select(User)).scalars().all() == []


def test_create_user_duplicate_email_conflicts(db_session):
    _create(db_session)
    db_session.commit()

    with pytest.raises(ConflictError) as exc:
        _create(db_session, email="ANA@example.com", name="Other")
    assert exc.value.status_code == 409
    assert exc.value.detail["code"] == "EMAIL_TAKEN"


def test_authenticate_rejects_unknown_email_and_wrong_password(db_session):
    _create(db_session)

    assert authenticate(db_session, "ana@example.com", "secret1").email == "ana@example.com"
    with pytest.raises(InvalidCredentials) as unknown:
        authenticate(db_session, "nobody@example.com", "secret1")
    with pytest.raises(InvalidCredentials) as wrong:
        authenticate(db_session, "ana@example.com", "secret2")

    # 未知邮箱与错误口令返回相同提示，不暴露账号是否存在。
    assert unknown.value.detail == wrong.value.detail
    assert unknown.value.status_code == 400
    assert unknown.value.detail["message"] == "Invalid credentials."


def test_update_credentials_requires_email_and_existing_user(db_session):
    with pytest.raises(ValidationError):
        update_credentials(db_session, None, name="Ana")
    with pytest.raises(NotFoundError) as exc:
        update_credentials(db_session, "ghost@example.com", name="Ana")
    assert exc.value.status_code == 404


def test_update_credentials_partial_update_keeps_other_fields(db_session):
    user = _create(db_session)
    original_hash = user.password_hash

    update_credentials(db_session, "ana@example.com", name="Ana Maria", picture="https://cdn/p.png")

    assert user.name == "Ana Maria"
    assert user.picture == "https://cdn/p.png"
    assert user.password_hash == original_hash
    assert user.password_changed_at is None

    update_credentials(db_session, "ana@example.com", picture="")
    assert user.picture is None


def test_update_credentials_rejects_unknown_status(db_session):
    _create(db_session)
    with pytest.raises(ValidationError) as exc:
        update_credentials(db_session, "ana@example.com", status="banned")
    assert exc.value.detail["message"] == "Invalid status provided."

    with pytest.raises(ValidationError):
        update_credentials(db_session, "ana@example.com", status=UserStatus.PENDING)


def test_password_change_rehashes_and_bumps_changed_at(db_session, monkeypatch):
    user = _create(db_session)
    changed_at = datetime(2030, 1, 1, tzinfo=timezone.utc)
    monkeypatch.setattr(credentials, "utc_now", lambda: changed_at)

    update_credentials(db_session, "ana@example.com", password="secret2")

    assert verify_password("secret2", user.password_hash)
    assert not verify_password("secret1", user.password_hash)
    assert user.password_changed_at == changed_at


def test_same_password_is_not_rehashed(db_session):
    user = _create(db_session)
    original_hash = user.password_hash

    update_credentials(db_session, "ana@example.com", password="secret1")

    assert user.password_hash == original_hash
    assert user.password_changed_at is None


def test_is_password_stale_compares_whole_seconds(db_session):
    user = _create(db_session)
    changed_at = datetime(2030, 1, 1, 12, 0, 0, 900000, tzinfo=timezone.utc)
    user.password_changed_at = changed_at
    changed_ts = int(changed_at.timestamp())

    assert is_password_stale(user, changed_ts - 1)
    # 同一秒内签发的令牌仍视为有效。
    assert not is_password_stale(user, changed_ts)
    assert not is_password_stale(user, changed_ts + 1)

    user.password_changed_at = None
    assert not is_password_stale(user, 0)


def test_is_password_stale_handles_naive_datetimes(db_session):
    user = _create(db_session)
    changed_at = datetime(2030, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
    user.password_changed_at = changed_at.replace(tzinfo=None)

    assert is_password_stale(user, int((changed_at - timedelta(seconds=5)).timestamp()))


def test_picture_longer_than_column_is_rejected(db_session):
    with pytest.raises(ValidationError):
        create_user(db_session, name="Ana", email="ana@example.com", password="secret1", picture="x" * 1025)
    assert db_session.execute(select(User)).scalars().all() == []

    user = create_user(db_session, name="Ana", email="ana@example.com", password="secret1", picture="x" * 1024)
    assert len(user.picture) == 1024

    with pytest.raises(ValidationError):
        update_credentials(db_session, "ana@example.com", picture="y" * 2000)
    assert user.picture == "x" * 1024


def test_authenticate_unknown_email_still_runs_password_hash(db_session, monkeypatch):
    _create(db_session)
    checked = []
    real_verify = credentials.verify_password

    def _recording_verify(password, password_hash):
        checked.append(password_hash)
        return real_verify(password, password_hash)

    monkeypatch.setattr(credentials, "verify_password", _recording_verify)

    with pytest.raises(InvalidCredentials):
        authenticate(db_session, "nobody@example.com", "secret1")

    assert len(checked) == 1
    assert checked[0].startswith("pbkdf2_sha256$1000$")
