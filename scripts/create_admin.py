"""

ADMIN 초기 계정 생성 스크립트.

- 서버 최초 세팅 시 단 한 번 실행하는 용도
- .env에 정의된 DEFAULT_ADMIN_* 환경 변수를 읽어
  이메일 인증이 끝난 active 상태의 ADMIN 계정을 생성한다.
- 이미 ADMIN 계정이 존재하면 생성하지 않고 종료한다.
- 테이블은 미리 만들어 두어야 한다 (alembic upgrade head)

사용 방법
- 가상환경 접속
- (.venv) ~\backend~$ alembic upgrade head
- (.venv) ~\backend~$ python -m scripts.create_admin

"""

import uuid

from dotenv import load_dotenv
load_dotenv()

from sqlalchemy import select

from app.core.config import get_settings
from app.core.security import PasswordHasher
from app.db.session import SessionLocal
from app.models.user import AccountStatus, Role, User
from app.services.user_store import UserStore


def main():
    settings = get_settings()

    db = SessionLocal()
    try:
        exists = db.scalar(select(User).where(User.role == Role.ADMIN))
        if exists:
            print("✅ ADMIN already exists. Skip creation.")
            return

        store = UserStore(db)
        store.ensure_unique(email=settings.DEFAULT_ADMIN_EMAIL, username=settings.DEFAULT_ADMIN_USERNAME)

        user = User(
            id=uuid.uuid4(),
            name=settings.DEFAULT_ADMIN_NAME,
            username=settings.DEFAULT_ADMIN_USERNAME,
            email=settings.DEFAULT_ADMIN_EMAIL,
            password_hash=PasswordHasher(settings).hash_password(settings.DEFAULT_ADMIN_PASSWORD),
            role=Role.ADMIN,
            status=AccountStatus.ACTIVE,
            email_verified=True,
            onboarding_completed=True,
            oauth_providers=[],
            refresh_tokens=[],
        )
        store.create(user)

        print(f"🚀 ADMIN created: {user.email}")

    finally:
        db.close()


if __name__ == "__main__":
    main()
