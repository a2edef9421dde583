"""
관리자 계정 관리 API 테스트.
- 권한 검사, 생성 / 조회 / 수정 / 삭제, 권한 변경, 자기 자신 보호, 행위 로그
"""

import uuid

import pytest

from app.core.config import get_settings
from app.core.errors import BadRequestError
from app.core.security import PasswordHasher
from app.models.user import AccountStatus, Role, User
from app.services.user_store import UserStore
from app.services.users import UserService
from tests.helpers import auth_header, create_admin_in_db, create_user_in_db, get_user, login, setup_admin


def test_admin_routes_require_admin(client, db_session):
    create_user_in_db(db_session, username="plain", email="plain@test.com")
    token = login(client, "plain")["access_token"]

    r = client.get("/admin/users", headers=auth_header(token))
    assert r.status_code == 403

    r = client.get("/admin/users")
    assert r.status_code == 401


def test_admin_create_get_update_delete(client, db_session):
    ctx = setup_admin(client, db_session)
    headers = auth_header(ctx["admin_token"])

    created = client.post(
        "/admin/users",
        headers=headers,
        json={
            "name": "Nina",
            "username": "Nina",
            "email": "Nina@Test.com",
            "password": "NinaPassw0rd!",
            "email_verified": True,
        },
    )
    assert created.status_code == 201, created.text
    user = created.json()["data"]
    assert user["username"] == "nina"
    assert user["email"] == "nina@test.com"
    assert user["status"] == "active"
    assert user["role"] == "user"

    # 관리자가 만든 계정은 바로 로그인 가능
    assert login(client, "nina", "NinaPassw0rd!")["access_token"]

    dup = client.post(
        "/admin/users",
        headers=headers,
        json={"name": "Nina", "username": "nina", "email": "nina@test.com", "password": "NinaPassw0rd!"},
    )
    assert dup.status_code == 409
    assert dup.json()["detail"] == "User with this email already exists"

    got = client.get(f"/admin/users/{user['id']}", headers=headers)
    assert got.status_code == 200
    assert got.json()["data"]["email"] == "nina@test.com"

    missing = client.get(f"/admin/users/{uuid.uuid4()}", headers=headers)
    assert missing.status_code == 404

    updated = client.put(
        f"/admin/users/{user['id']}",
        headers=headers,
        json={"name": "Nina Park", "onboarding_completed": True},
    )
    assert updated.status_code == 200, updated.text
    assert updated.json()["data"]["name"] == "Nina Park"
    assert updated.json()["data"]["onboarding_completed"] is True

    conflict = client.put(
        f"/admin/users/{user['id']}",
        headers=headers,
        json={"email": ctx["admin_email"]},
    )
    assert conflict.status_code == 409

    deleted = client.delete(f"/admin/users/{user['id']}", headers=headers)
    assert deleted.status_code == 200, deleted.text
    assert deleted.json()["data"]["email"] == "nina@test.com"
    assert get_user(db_session, user["id"]) is None


def test_admin_list_filters(client, db_session):
    ctx = setup_admin(client, db_session)
    create_user_in_db(db_session, username="u1", email="u1@test.com")
    create_user_in_db(db_session, username="u2", email="u2@test.com", email_verified=False)

    r = client.get("/admin/users", headers=auth_header(ctx["admin_token"]), params={"role": "user"})
    assert r.status_code == 200, r.text
    assert {u["username"] for u in r.json()["data"]} == {"u1", "u2"}

    r = client.get("/admin/users", headers=auth_header(ctx["admin_token"]), params={"role": "admin"})
    assert [u["email"] for u in r.json()["data"]] == [ctx["admin_email"]]

    r = client.get(
        "/admin/users",
        headers=auth_header(ctx["admin_token"]),
        params={"limit": 1, "offset": 0},
    )
    assert r.json()["meta"]["count"] == 1


def test_admin_cannot_act_on_self(client, db_session):
    ctx = setup_admin(client, db_session)
    headers = auth_header(ctx["admin_token"])
    admin_id = ctx["admin"].id

    assert client.put(f"/admin/users/{admin_id}/block", headers=headers).status_code == 400
    assert client.delete(f"/admin/users/{admin_id}", headers=headers).status_code == 400

    r = client.patch(f"/admin/users/{admin_id}/role", headers=headers, json={"role": "user"})
    assert r.status_code == 400


def test_set_role_and_logs(client, db_session):
    ctx = setup_admin(client, db_session)
    headers = auth_header(ctx["admin_token"])
    user = create_user_in_db(db_session, username="oscar", email="oscar@test.com")

    r = client.patch(f"/admin/users/{user.id}/role", headers=headers, json={"role": "admin"})
    assert r.status_code == 200, r.text
    assert r.json()["data"]["role"] == "admin"
    assert get_user(db_session, user.id).role == Role.ADMIN

    same = client.patch(f"/admin/users/{user.id}/role", headers=headers, json={"role": "admin"})
    assert same.status_code == 400

    # 새 관리자는 관리자 API 사용 가능
    oscar_token = login(client, "oscar")["access_token"]
    assert client.get("/admin/users", headers=auth_header(oscar_token)).status_code == 200

    block = client.put(f"/admin/users/{user.id}/block", headers=headers, json={"reason": "test"})
    assert block.status_code == 200

    logs = client.get("/admin/logs", headers=headers)
    assert logs.status_code == 200, logs.text
    entries = logs.json()["data"]
    assert {e["action"] for e in entries} == {"SET_ROLE", "BLOCK_USER"}

    block_log = next(e for e in entries if e["action"] == "BLOCK_USER")
    assert block_log["before"] == "active"
    assert block_log["after"] == "blocked"
    assert block_log["reason"] == "test"
    assert block_log["actor"]["email"] == ctx["admin_email"]
    assert block_log["target"]["email"] == "oscar@test.com"


def test_sole_admin_cannot_request_deletion(client, db_session):
    ctx = setup_admin(client, db_session)

    r = client.post(
        "/users/me/deletion",
        headers=auth_header(ctx["admin_token"]),
        json={"password": "AdminPassw0rd!"},
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "Cannot delete the last ADMIN"


def test_admin_create_rejects_non_initial_status(client, db_session):
    ctx = setup_admin(client, db_session)
    headers = auth_header(ctx["admin_token"])

    for status in ("deletion_requested", "deleted", "blocked", "suspended"):
        r = client.post(
            "/admin/users",
            headers=headers,
            json={
                "name": "Quinn",
                "username": "quinn",
                "email": "quinn@test.com",
                "password": "QuinnPassw0rd!",
                "status": status,
                "email_verified": True,
            },
        )
        assert r.status_code == 422, status

    assert db_session.query(User).filter_by(username="quinn").count() == 0

    inactive = client.post(
        "/admin/users",
        headers=headers,
        json={
            "name": "Quinn",
            "username": "quinn",
            "email": "quinn@test.com",
            "password": "QuinnPassw0rd!",
            "status": "inactive",
        },
    )
    assert inactive.status_code == 201, inactive.text
    assert inactive.json()["data"]["status"] == "inactive"


def test_user_service_create_refuses_terminal_status(db_session):
    admin = create_admin_in_db(db_session, email="root@test.com", password="AdminPassw0rd!")
    service = UserService(store=UserStore(db_session), hasher=PasswordHasher(get_settings()))

    with pytest.raises(BadRequestError) as exc:
        service.create(
            admin,
            name="Rita",
            username="rita",
            email="rita@test.com",
            password="RitaPassw0rd!",
            status=AccountStatus.DELETION_REQUESTED,
        )
    assert exc.value.message == "Cannot create an account in deletion_requested status"
    assert db_session.query(User).filter_by(username="rita").count() == 0
