"""
deps.py

FastAPI 의존성(Dependency) 모음.

주요 기능:
- 요청 단위 DB 세션 (get_db)
- 서비스 조립: Settings / TokenService / PasswordHasher / Notifier 주입
- Access Guard: Bearer Access Token 검증 후 DB에서 계정을 다시 조회
- Optional Guard: 실패해도 비로그인 상태로 통과
- 권한(Role) 검사

설계 원칙:
- 토큰 클레임만 믿지 않고 매 요청마다 계정 상태(status)를 다시 확인
- 실패는 app.core.errors 예외로 발생, 응답 변환은 app.main 핸들러가 담당
- 메일 발송기(get_notifier)는 테스트에서 dependency_overrides 로 교체 가능

관련 파일:
- app.core.tokens        : Access Token 검증
- app.services.auth      : AuthService
- app.services.users     : UserService

"""

from typing import Generator

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.errors import (
    AccountBlockedError,
    AccountDeactivatedError,
    AppError,
    ForbiddenError,
    UnauthorizedError,
)
from app.core.security import PasswordHasher
from app.core.tokens import TokenService
from app.db.session import SessionLocal
from app.models.user import Role, User
from app.services.auth import AuthService
from app.services.email import EmailService, Notifier, UrlBuilder
from app.services.user_store import UserStore
from app.services.users import UserService

# Swagger Authorize에서 "Bearer 토큰" 입력받는 스키마
bearer_scheme = HTTPBearer(auto_error=False)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_token_service(settings: Settings = Depends(get_settings)) -> TokenService:
    return TokenService(settings)


def get_password_hasher(settings: Settings = Depends(get_settings)) -> PasswordHasher:
    return PasswordHasher(settings)


def get_notifier(settings: Settings = Depends(get_settings)) -> Notifier:
    return EmailService.from_settings(settings)


def get_user_store(db: Session = Depends(get_db)) -> UserStore:
    return UserStore(db)


def get_auth_service(
    store: UserStore = Depends(get_user_store),
    tokens: TokenService = Depends(get_token_service),
    hasher: PasswordHasher = Depends(get_password_hasher),
    notifier: Notifier = Depends(get_notifier),
    settings: Settings = Depends(get_settings),
) -> AuthService:
    return AuthService(
        store=store,
        tokens=tokens,
        hasher=hasher,
        notifier=notifier,
        urls=UrlBuilder(settings),
        settings=settings,
    )


def get_user_service(
    store: UserStore = Depends(get_user_store),
    hasher: PasswordHasher = Depends(get_password_hasher),
) -> UserService:
    return UserService(store=store, hasher=hasher)


"""
Access Guard

- Authorization: Bearer <access token> 필수
- 서명 / 만료 / issuer / audience 검증
- DB에서 계정을 다시 읽어 존재 여부와 상태 확인
  (차단 / 정지 → AccountBlockedError, 비활성 / 탈퇴 → AccountDeactivatedError)

"""

def get_current_user(
    cred: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    store: UserStore = Depends(get_user_store),
    tokens: TokenService = Depends(get_token_service),
) -> User:
    if cred is None:
        raise UnauthorizedError("Access token not provided")

    claims = tokens.verify_access_token(cred.credentials)

    user = store.find_by_id(claims.user_id)
    if not user:
        raise UnauthorizedError("User no longer exists")

    if not user.can_authenticate():
        if user.is_blocked():
            raise AccountBlockedError()
        raise AccountDeactivatedError()

    return user


def get_optional_user(
    cred: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    store: UserStore = Depends(get_user_store),
    tokens: TokenService = Depends(get_token_service),
) -> User | None:
    if cred is None:
        return None
    try:
        return get_current_user(cred=cred, store=store, tokens=tokens)
    except AppError:
        return None


def require_role(role: Role):
    def _checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role != role:
            raise ForbiddenError(f"Requires role {role.value}")
        return current_user
    return _checker


get_current_admin = require_role(Role.ADMIN)
