import os

# 앱 import 전에 테스트용 설정 주입
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-access-secret-key-0123456789abcdef")
os.environ.setdefault("REFRESH_SECRET_KEY", "test-refresh-secret-key-0123456789abcdef")
os.environ["BCRYPT_ROUNDS"] = "4"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app as fastapi_app
from app.core.config import get_settings
from app.core.deps import get_db, get_notifier
from app.db.base import Base
from app.db.session import build_engine

# ✅ 모델 import (Base.metadata에 테이블 등록)
import app.models  # noqa: F401


TEST_DB_URL = get_settings().TEST_DATABASE_URL or os.getenv("TEST_DATABASE_URL") or "sqlite://"

if TEST_DB_URL in ("sqlite://", "sqlite:///:memory:"):
    # 인메모리 SQLite는 연결 하나를 모든 세션이 공유해야 같은 DB를 봄
    engine = build_engine(TEST_DB_URL, poolclass=StaticPool)
else:
    engine = build_engine(TEST_DB_URL)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


class FakeNotifier:
    """발송 대신 (email, url) 기록. fail=True면 발송 실패를 흉내낸다."""

    def __init__(self):
        self.fail = False
        self.verification = []
        self.password_reset = []

    def send_verification_email(self, email: str, verification_url: str) -> bool:
        self.verification.append((email, verification_url))
        return not self.fail

    def send_password_reset_email(self, email: str, reset_url: str) -> bool:
        self.password_reset.append((email, reset_url))
        return not self.fail


@pytest.fixture(scope="session", autouse=True)
def setup_test_db():
    """테스트 전체 시작/종료 때만 스키마 생성/삭제"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def clean_tables():
    """각 테스트마다 데이터 초기화 (테이블은 유지, row만 삭제)"""
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture()
def db_session():
    """테스트에서 직접 DB 조작할 때 쓰는 세션"""
    session = TestingSessionLocal()
    try:
        yield session
        session.commit()
    finally:
        session.close()


@pytest.fixture()
def notifier():
    return FakeNotifier()


@pytest.fixture()
def client(notifier):
    fastapi_app.dependency_overrides[get_db] = override_get_db
    fastapi_app.dependency_overrides[get_notifier] = lambda: notifier
    with TestClient(fastapi_app) as c:
        yield c
    fastapi_app.dependency_overrides.clear()
