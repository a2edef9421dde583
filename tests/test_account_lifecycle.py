"""
계정 상태 흐름 통합 테스트.
- 차단 시 모든 세션 종료, 로그인 / 재발급 / 보호 API 차단, 해제 후 복구
- 비활성화 / 정지
- 본인 탈퇴 요청 → 유예 기간 내 로그인 시 자동 복구, 취소 / 재활성화
"""

from datetime import timedelta

from app.models.user import AccountStatus, utcnow
from tests.helpers import auth_header, create_user_in_db, get_user, login, refresh_with, setup_admin


def test_block_clears_sessions_until_unblock(client, db_session):
    ctx = setup_admin(client, db_session)
    user = create_user_in_db(db_session, username="mallory", email="mallory@test.com")
    session = login(client, "mallory")

    r = client.put(
        f"/admin/users/{user.id}/block",
        headers=auth_header(ctx["admin_token"]),
        json={"reason": "spam"},
    )
    assert r.status_code == 200, r.text
    assert r.json()["data"]["status"] == "blocked"
    assert get_user(db_session, user.id).refresh_tokens == []

    # 기존 Refresh Token 무효
    assert refresh_with(client, session["refresh_token"]).status_code == 401

    # 로그인 차단
    blocked = client.post("/auth/login", json={"identifier": "mallory", "password": "UserPassw0rd!"})
    assert blocked.status_code == 403
    assert blocked.json()["detail"] == "Account is blocked. Please contact support"

    # 아직 만료되지 않은 Access Token도 DB 상태 재확인으로 차단
    profile = client.get("/users/profile", headers=auth_header(session["access_token"]))
    assert profile.status_code == 403

    unblock = client.put(f"/admin/users/{user.id}/unblock", headers=auth_header(ctx["admin_token"]))
    assert unblock.status_code == 200, unblock.text
    assert unblock.json()["data"]["status"] == "active"
    assert login(client, "mallory")["access_token"]


def test_refresh_of_blocked_account_fails_account_blocked(client, db_session):
    user = create_user_in_db(db_session, username="sly", email="sly@test.com")
    session = login(client, "sly")

    # 토큰을 남긴 채 상태만 바꿔도 재발급은 상태 검사로 거부
    reloaded = get_user(db_session, user.id)
    reloaded.status = AccountStatus.SUSPENDED
    db_session.commit()

    r = refresh_with(client, session["refresh_token"])
    assert r.status_code == 403
    assert r.json()["detail"] == "Account is blocked. Please contact support"

    reloaded = get_user(db_session, user.id)
    reloaded.status = AccountStatus.INACTIVE
    db_session.commit()

    r = refresh_with(client, session["refresh_token"])
    assert r.status_code == 403
    assert r.json()["detail"] == "Account is deactivated. Please contact support"


def test_deactivate_and_activate(client, db_session):
    ctx = setup_admin(client, db_session)
    user = create_user_in_db(db_session, username="ivan", email="ivan@test.com")
    session = login(client, "ivan")

    r = client.put(f"/admin/users/{user.id}/deactivate", headers=auth_header(ctx["admin_token"]))
    assert r.status_code == 200, r.text
    assert r.json()["data"]["status"] == "inactive"

    assert refresh_with(client, session["refresh_token"]).status_code == 401
    denied = client.post("/auth/login", json={"identifier": "ivan", "password": "UserPassw0rd!"})
    assert denied.status_code == 403
    assert denied.json()["detail"] == "Account is deactivated. Please contact support"

    again = client.put(f"/admin/users/{user.id}/deactivate", headers=auth_header(ctx["admin_token"]))
    assert again.status_code == 400

    r = client.put(f"/admin/users/{user.id}/activate", headers=auth_header(ctx["admin_token"]))
    assert r.status_code == 200, r.text
    assert login(client, "ivan")["access_token"]


def test_suspend(client, db_session):
    ctx = setup_admin(client, db_session)
    user = create_user_in_db(db_session, username="sam", email="sam@test.com")

    r = client.put(
        f"/admin/users/{user.id}/suspend",
        headers=auth_header(ctx["admin_token"]),
        json={"reason": "abuse"},
    )
    assert r.status_code == 200, r.text
    assert r.json()["data"]["status"] == "suspended"

    denied = client.post("/auth/login", json={"identifier": "sam", "password": "UserPassw0rd!"})
    assert denied.status_code == 403
    assert denied.json()["detail"] == "Account is blocked. Please contact support"


def test_deletion_request_cancelled_by_login(client, db_session):
    user = create_user_in_db(db_session, username="judy", email="judy@test.com")
    token = login(client, "judy")["access_token"]

    wrong = client.post("/users/me/deletion", headers=auth_header(token), json={"password": "Nope1!nope"})
    assert wrong.status_code == 401

    r = client.post(
        "/users/me/deletion",
        headers=auth_header(token),
        json={"password": "UserPassw0rd!", "reason": "leaving"},
    )
    assert r.status_code == 200, r.text
    data = r.json()["data"]["user"]
    assert data["status"] == "deletion_requested"
    assert data["deletion_requested_at"] is not None
    assert data["deletion_expiry_date"] is not None

    # 유예 기간 내 로그인 → 탈퇴 요청 취소
    r = client.post("/auth/login", json={"identifier": "judy", "password": "UserPassw0rd!"})
    assert r.status_code == 200, r.text
    assert r.json()["message"] == "Login successful. Your account deletion request has been cancelled."
    assert r.json()["data"]["user"]["status"] == "active"

    reloaded = get_user(db_session, user.id)
    assert reloaded.deletion_requested_at is None
    assert reloaded.deletion_reason is None


def test_cancel_and_reactivate_deletion(client, db_session):
    create_user_in_db(db_session, username="kate", email="kate@test.com")
    token = login(client, "kate")["access_token"]

    nothing = client.delete("/users/me/deletion", headers=auth_header(token))
    assert nothing.status_code == 400

    body = {"password": "UserPassw0rd!"}
    assert client.post("/users/me/deletion", headers=auth_header(token), json=body).status_code == 200

    cancel = client.delete("/users/me/deletion", headers=auth_header(token))
    assert cancel.status_code == 200, cancel.text
    assert cancel.json()["data"]["user"]["status"] == "active"

    assert client.post("/users/me/deletion", headers=auth_header(token), json=body).status_code == 200
    reactivate = client.post("/users/me/reactivate", headers=auth_header(token))
    assert reactivate.status_code == 200, reactivate.text
    assert reactivate.json()["data"]["user"]["status"] == "active"


def test_login_after_grace_period_is_refused(client, db_session):
    user = create_user_in_db(db_session, username="leo", email="leo@test.com")

    reloaded = get_user(db_session, user.id)
    reloaded.status = AccountStatus.DELETION_REQUESTED
    reloaded.deletion_requested_at = utcnow() - timedelta(days=31)
    db_session.commit()

    r = client.post("/auth/login", json={"identifier": "leo", "password": "UserPassw0rd!"})
    assert r.status_code == 403
    assert r.json()["detail"] == "Account is deactivated. Please contact support"


def test_update_profile(client, db_session):
    create_user_in_db(db_session, username="mia", email="mia@test.com")
    create_user_in_db(db_session, username="taken", email="taken@test.com")
    token = login(client, "mia")["access_token"]

    r = client.put("/users/profile", headers=auth_header(token), json={"name": "Mia K", "username": "Mia_K"})
    assert r.status_code == 200, r.text
    assert r.json()["data"]["user"]["username"] == "mia_k"
    assert r.json()["data"]["user"]["name"] == "Mia K"

    dup = client.put("/users/profile", headers=auth_header(token), json={"username": "TAKEN"})
    assert dup.status_code == 409

    empty = client.put("/users/profile", headers=auth_header(token), json={})
    assert empty.status_code == 400
