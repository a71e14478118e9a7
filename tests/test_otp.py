from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import delete, select, update

from blogify_api.errors import RateLimitError, ValidationError
from blogify_api.models.enums import OtpPurpose
from blogify_api.models.otp import OtpCode
from blogify_api.services import otp
from blogify_api.services.credentials import create_user
from blogify_api.utils.clock import as_utc

NOW = datetime(2030, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def user(db_session):
    return create_user(db_session, name="Ana", email="ana@example.com", password="secret1")


def _records(db_session):
    return db_session.execute(select(OtpCode)).scalars().all()


def test_generate_code_is_six_digits():
    for _ in range(200):
        code = otp.generate_code()
        assert 100000 <= code <= 999999


def test_generate_code_covers_exactly_nine_hundred_thousand_values(monkeypatch):
    bounds = []

    def _randbelow(upper):
        bounds.append(upper)
        return 0 if len(bounds) == 1 else upper - 1

    monkeypatch.setattr(otp.secrets, "randbelow", _randbelow)

    assert otp.generate_code() == 100000
    assert otp.generate_code() == 999999
    assert bounds == [900000, 900000]


def test_issue_otp_stores_single_record_with_default_ttl(db_session, user):
    code = otp.issue_otp(db_session, user.id, OtpPurpose.EMAIL_VERIFICATION, now=NOW)

    records = _records(db_session)
    assert len(records) == 1
    assert records[0].code == code
    assert records[0].purpose == OtpPurpose.EMAIL_VERIFICATION
    assert as_utc(records[0].expires_at) - as_utc(records[0].issued_at) == timedelta(minutes=5)


def test_issue_otp_within_cooldown_is_rate_limited(db_session, user):
    first = otp.issue_otp(db_session, user.id, OtpPurpose.PASSWORD_RESET, now=NOW)

    with pytest.raises(RateLimitError) as exc:
        otp.issue_otp(db_session, user.id, OtpPurpose.PASSWORD_RESET, now=NOW + timedelta(seconds=29))
    assert exc.value.status_code == 429

    # 被拒绝的签发不改动已有验证码。
    assert _records(db_session)[0].code == first


def test_issue_otp_after_cooldown_overwrites_previous_code(db_session, user):
    otp.issue_otp(db_session, user.id, OtpPurpose.EMAIL_VERIFICATION, now=NOW)
    second = otp.issue_otp(db_session, user.id, OtpPurpose.PASSWORD_RESET, now=NOW + timedelta(seconds=31))

    records = _records(db_session)
    assert len(records) == 1
    assert records[0].code == second
    assert records[0].purpose == OtpPurpose.PASSWORD_RESET


@pytest.mark.parametrize("ttl", [timedelta(seconds=30), timedelta(minutes=61)])
def test_issue_otp_rejects_out_of_range_ttl(db_session, user, ttl):
    with pytest.raises(ValidationError):
        otp.issue_otp(db_session, user.id, OtpPurpose.LOGIN, ttl=ttl, now=NOW)
    assert _records(db_session) == []


def test_issue_otp_accepts_custom_ttl(db_session, user):
    otp.issue_otp(db_session, user.id, OtpPurpose.LOGIN, ttl=timedelta(minutes=10), now=NOW)
    record = _records(db_session)[0]
    assert as_utc(record.expires_at) == NOW + timedelta(minutes=10)


def test_issue_otp_rejects_unknown_purpose(db_session, user):
    with pytest.raises(ValidationError) as exc:
        otp.issue_otp(db_session, user.id, "sms", now=NOW)
    assert exc.value.detail["message"] == "Invalid OTP type"


def test_verify_otp_consumes_record(db_session, user):
    code = otp.issue_otp(db_session, user.id, OtpPurpose.EMAIL_VERIFICATION, now=NOW)

    otp.verify_otp(db_session, user.id, OtpPurpose.EMAIL_VERIFICATION, str(code), now=NOW + timedelta(minutes=1))
    assert _records(db_session) == []

    # 同一验证码不可重放。
    with pytest.raises(ValidationError):
        otp.verify_otp(db_session, user.id, OtpPurpose.EMAIL_VERIFICATION, code, now=NOW + timedelta(minutes=1))


def test_verify_otp_rejects_wrong_code_purpose_and_expiry(db_session, user):
    code = otp.issue_otp(db_session, user.id, OtpPurpose.EMAIL_VERIFICATION, now=NOW)
    wrong_code = 100000 if code != 100000 else 100001

    for purpose, submitted, at in [
        (OtpPurpose.EMAIL_VERIFICATION, wrong_code, NOW),
        (OtpPurpose.PASSWORD_RESET, code, NOW),
        (OtpPurpose.EMAIL_VERIFICATION, "abc", NOW),
        (OtpPurpose.EMAIL_VERIFICATION, code, NOW + timedelta(minutes=5)),
    ]:
        with pytest.raises(ValidationError) as exc:
            otp.verify_otp(db_session, user.id, purpose, submitted, now=at)
        assert exc.value.detail["message"] == "Invalid or expired OTP."

    # 失败校验不消费验证码。
    assert len(_records(db_session)) == 1


def test_verify_otp_stale_read_cannot_consume_twice(db_session, user, monkeypatch):
    code = otp.issue_otp(db_session, user.id, OtpPurpose.PASSWORD_RESET, now=NOW)
    db_session.commit()
    stale = _records(db_session)[0]

    # 另一请求已消费同一验证码，本请求仍持有此前读到的记录。
    db_session.execute(delete(OtpCode).execution_options(synchronize_session=False))
    monkeypatch.setattr(otp, "_get_record", lambda db, user_id: stale)

    with pytest.raises(ValidationError) as exc:
        otp.verify_otp(db_session, user.id, OtpPurpose.PASSWORD_RESET, code, now=NOW)
    assert exc.value.detail["code"] == "OTP_INVALID"


def test_issue_otp_cooldown_is_checked_against_stored_row(db_session, user):
    otp.issue_otp(db_session, user.id, OtpPurpose.PASSWORD_RESET, now=NOW - timedelta(minutes=5))
    _records(db_session)

    # 另一请求刚刚重新签发，本会话中的记录仍是旧的签发时间。
    db_session.execute(
        update(OtpCode)
        .values(code=123456, issued_at=NOW)
        .execution_options(synchronize_session=False)
    )

    with pytest.raises(RateLimitError):
        otp.issue_otp(db_session, user.id, OtpPurpose.PASSWORD_RESET, now=NOW + timedelta(seconds=1))

    db_session.expire_all()
    assert _records(db_session)[0].code == 123456


def test_issue_otp_insert_race_within_cooldown_is_rate_limited(db_session, user, monkeypatch):
    otp.issue_otp(db_session, user.id, OtpPurpose.EMAIL_VERIFICATION, now=NOW)
    # 模拟读取时尚无记录、插入时另一请求已写入的竞争。
    monkeypatch.setattr(otp, "_get_record", lambda db, user_id: None)

    with pytest.raises(RateLimitError):
        otp.issue_otp(db_session, user.id, OtpPurpose.PASSWORD_RESET, now=NOW + timedelta(seconds=5))
    assert len(_records(db_session)) == 1


def test_issue_otp_insert_race_after_cooldown_overwrites(db_session, user, monkeypatch):
    otp.issue_otp(db_session, user.id, OtpPurpose.EMAIL_VERIFICATION, now=NOW)
    monkeypatch.setattr(otp, "_get_record", lambda db, user_id: None)

    code = otp.issue_otp(db_session, user.id, OtpPurpose.PASSWORD_RESET, now=NOW + timedelta(minutes=1))

    db_session.expire_all()
    records = _records(db_session)
    assert len(records) == 1
    assert records[0].code == code
    assert records[0].purpose == OtpPurpose.PASSWORD_RESET
