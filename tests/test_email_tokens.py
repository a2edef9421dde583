"""
이메일 인증 / 비밀번호 재설정 토큰 테스트.
- 인증 토큰 1회용, 만료된 토큰 거부
- 비밀번호 재설정: 토큰 확인 → 재설정 → 기존 세션 종료
"""

from datetime import timedelta

from app.core.security import hash_opaque_token
from app.models.user import utcnow
from tests.helpers import create_user_in_db, get_user, login, refresh_with, token_from_url


def _register(client):
    r = client.post(
        "/auth/register",
        json={"name": "Erin", "username": "erin", "email": "erin@test.com", "password": "Aa1!aaaa"},
    )
    assert r.status_code == 201, r.text
    return r.json()["data"]["user"]["id"]


def test_verification_token_is_single_use(client, db_session, notifier):
    user_id = _register(client)
    token = token_from_url(notifier.verification[0][1])

    # DB에는 해시만 저장
    user = get_user(db_session, user_id)
    assert user.email_verification_token == hash_opaque_token(token)

    first = client.post("/auth/verify-email", json={"token": token})
    assert first.status_code == 200, first.text

    second = client.post("/auth/verify-email", json={"token": token})
    assert second.status_code == 404
    assert second.json()["detail"] == (
        "Invalid or expired verification token. Please request a new verification email."
    )

    user = get_user(db_session, user_id)
    assert user.email_verified is True
    assert user.email_verification_token is None
    assert user.email_verification_expiry is None


def test_expired_verification_token_is_rejected(client, db_session, notifier):
    user_id = _register(client)
    token = token_from_url(notifier.verification[0][1])

    user = get_user(db_session, user_id)
    user.email_verification_expiry = utcnow() - timedelta(minutes=1)
    db_session.commit()

    r = client.post("/auth/verify-email", json={"token": token})
    assert r.status_code == 404
    assert get_user(db_session, user_id).email_verified is False


def test_password_reset_flow(client, db_session, notifier):
    user = create_user_in_db(db_session, username="frank", email="frank@test.com")
    old_session = login(client, "frank")

    r = client.post("/auth/forgot-password", json={"email": "FRANK@test.com"})
    assert r.status_code == 200, r.text
    email, url = notifier.password_reset[0]
    assert email == "frank@test.com"
    assert "/auth/reset-password?token=" in url
    token = token_from_url(url)

    check = client.get(f"/auth/verify-reset-token/{token}")
    assert check.status_code == 200, check.text
    assert check.json()["data"]["user"]["username"] == "frank"

    reset = client.post(
        "/auth/reset-password",
        json={"token": token, "password": "Reset1!pass", "confirm_password": "Reset1!pass"},
    )
    assert reset.status_code == 200, reset.text

    # 재설정 토큰은 1회용, 기존 세션은 종료
    again = client.post(
        "/auth/reset-password",
        json={"token": token, "password": "Reset2!pass", "confirm_password": "Reset2!pass"},
    )
    assert again.status_code == 404
    assert again.json()["detail"] == "Invalid or expired reset token"
    assert refresh_with(client, old_session["refresh_token"]).status_code == 401

    reloaded = get_user(db_session, user.id)
    assert reloaded.reset_token is None
    assert reloaded.reset_token_expiry is None
    assert login(client, "frank", "Reset1!pass")["access_token"]


def test_expired_reset_token_is_rejected(client, db_session, notifier):
    user = create_user_in_db(db_session, username="gina", email="gina@test.com")
    assert client.post("/auth/forgot-password", json={"email": "gina@test.com"}).status_code == 200
    token = token_from_url(notifier.password_reset[0][1])

    reloaded = get_user(db_session, user.id)
    reloaded.reset_token_expiry = utcnow() - timedelta(seconds=1)
    db_session.commit()

    assert client.get(f"/auth/verify-reset-token/{token}").status_code == 404
    r = client.post(
        "/auth/reset-password",
        json={"token": token, "password": "Reset1!pass", "confirm_password": "Reset1!pass"},
    )
    assert r.status_code == 404


def test_forgot_password_errors(client, notifier, db_session):
    missing = client.post("/auth/forgot-password", json={"email": "nobody@test.com"})
    assert missing.status_code == 404
    assert missing.json()["detail"] == "User not found with this email."

    create_user_in_db(db_session, username="hank", email="hank@test.com")
    notifier.fail = True
    failed = client.post("/auth/forgot-password", json={"email": "hank@test.com"})
    assert failed.status_code == 500
    assert failed.json()["detail"] == "Failed to send password reset email."
