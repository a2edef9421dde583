# tests/helpers.py
import uuid
from urllib.parse import parse_qs, urlparse

from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.security import PasswordHasher
from app.models.user import AccountStatus, Role, User

DEFAULT_PASSWORD = "UserPassw0rd!"


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def token_from_url(url: str) -> str:
    return parse_qs(urlparse(url).query)["token"][0]


def create_user_in_db(
    db: Session,
    *,
    email: str | None = None,
    username: str | None = None,
    password: str = DEFAULT_PASSWORD,
    role: Role = Role.USER,
    status: AccountStatus = AccountStatus.ACTIVE,
    email_verified: bool = True,
) -> User:
    suffix = uuid.uuid4().hex[:6]
    user = User(
        id=uuid.uuid4(),
        name="테스트유저",
        username=username or f"user_{suffix}",
        email=email or f"user_{suffix}@test.com",
        password_hash=PasswordHasher(get_settings()).hash_password(password),
        role=role,
        status=status,
        email_verified=email_verified,
        onboarding_completed=False,
        oauth_providers=[],
        refresh_tokens=[],
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def create_admin_in_db(db: Session, *, email: str, password: str) -> User:
    return create_user_in_db(
        db,
        email=email,
        username=f"admin_{uuid.uuid4().hex[:6]}",
        password=password,
        role=Role.ADMIN,
    )


def login(client, identifier: str, password: str = DEFAULT_PASSWORD):
    r = client.post("/auth/login", json={"identifier": identifier, "password": password})
    assert r.status_code == 200, r.text
    return r.json()["data"]


def refresh_with(client, refresh_token: str):
    """쿠키 대신 바디로 특정 Refresh Token을 보낸다."""
    client.cookies.clear()
    return client.post("/auth/refresh", json={"refresh_token": refresh_token})


def setup_admin(client, db: Session) -> dict:
    admin_email = f"admin_{uuid.uuid4().hex[:6]}@test.com"
    admin_password = "AdminPassw0rd!"
    admin = create_admin_in_db(db, email=admin_email, password=admin_password)
    data = login(client, admin_email, admin_password)
    return {"admin": admin, "admin_email": admin_email, "admin_token": data["access_token"]}


def get_user(db: Session, user_id) -> User:
    db.expire_all()
    return db.get(User, uuid.UUID(str(user_id)))
