"""
services/auth.py

인증(Authentication) 및 세션 흐름 비즈니스 로직(Service).

이 파일은 회원 가입, 로그인, 토큰 재발급, 로그아웃, 비밀번호 변경,
이메일 인증, 비밀번호 재설정 흐름을 담당한다.
라우터는 이 클래스의 메서드를 호출하고 결과만 응답으로 변환한다.

주요 기능:
- 회원 가입 (이메일 인증 토큰 발급 + 메일 발송, 발송 실패는 경고 메시지로만 처리)
- 로그인 (이메일 또는 username), 탈퇴 유예 기간 중 로그인 시 계정 재활성화
- Refresh Token 회전(rotation): 사용한 토큰은 즉시 제거, 새 토큰 추가
- 로그아웃 (해당 Refresh Token만 제거, 중복 호출 허용)
- 비밀번호 변경 / 재설정 (변경 시 모든 세션 종료)
- 이메일 인증 / 인증 메일 재발송 / 비밀번호 재설정 메일

설계 원칙:
- HTTP / FastAPI 의존성 없음, 실패는 app.core.errors 의 예외로 전달
- 계정 조회 → 메모리에서 변경 → 행 전체 저장 순서로만 처리
- 존재하지 않는 계정과 잘못된 비밀번호는 같은 오류로 응답 (계정 추측 방지)
- 원본 토큰 / 비밀번호는 로그에 남기지 않음

관련 파일:
- app.core.tokens          : JWT 생성·검증
- app.core.security        : 비밀번호 해시 / opaque 토큰
- app.services.user_store  : User 조회 / 저장
- app.services.email       : 메일 발송 / 링크 생성
- app.routers.auth         : 인증 API

"""

import uuid
from dataclasses import dataclass
from typing import Optional

from app.core.config import Settings
from app.core.errors import (
    AccountBlockedError,
    AccountDeactivatedError,
    EmailDeliveryError,
    EmailNotVerifiedError,
    InvalidCredentialsError,
    NotFoundError,
    BadRequestError,
    UnauthorizedError,
)
from app.core.logging import get_logger
from app.core.security import PasswordHasher, hash_opaque_token
from app.core.tokens import AccessClaims, TokenPair, TokenService
from app.models.user import AccountStatus, Role, User, utcnow
from app.services.email import Notifier, UrlBuilder
from app.services.user_store import UserStore, normalize

logger = get_logger(__name__)


@dataclass
class AuthResult:
    user: User
    tokens: TokenPair
    message: str


def ensure_session_allowed(user: User) -> None:
    """세션(로그인 / 재발급)을 가질 수 없는 상태면 상태에 맞는 예외 발생."""
    if user.is_blocked():
        raise AccountBlockedError()
    if not user.is_active():
        raise AccountDeactivatedError()


class AuthService:
    def __init__(
        self,
        *,
        store: UserStore,
        tokens: TokenService,
        hasher: PasswordHasher,
        notifier: Notifier,
        urls: UrlBuilder,
        settings: Settings,
    ):
        self.store = store
        self.tokens = tokens
        self.hasher = hasher
        self.notifier = notifier
        self.urls = urls
        self.registration_status = AccountStatus(settings.REGISTRATION_STATUS)
        self.max_refresh_tokens = settings.MAX_REFRESH_TOKENS

    def _start_session(self, user: User) -> TokenPair:
        """새 Access / Refresh 토큰 발급 후 Refresh Token을 계정에 추가 (저장은 호출 측)."""
        pair = self.tokens.issue_pair(
            AccessClaims(
                user_id=str(user.id),
                email=user.email,
                role=user.role.value,
                username=user.username,
            )
        )
        user.add_refresh_token(pair.refresh_token, pair.refresh_expires_at, capacity=self.max_refresh_tokens)
        return pair

    def _load(self, user_id) -> User:
        user = self.store.find_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    """
    회원 가입

    - 이메일 / username 중복 시 ConflictError (이메일 충돌 우선)
    - 인증 토큰 해시 + 만료 시각 저장, 원본 토큰은 메일 링크로만 전달
    - 메일 발송 실패는 가입을 취소하지 않고 응답 메시지만 바꿈

    """

    def register(self, *, name: str, username: str, email: str, password: str) -> AuthResult:
        email, username = normalize(email), normalize(username)
        self.store.ensure_unique(email=email, username=username)

        verification = self.hasher.generate_verification_token()
        user = User(
            id=uuid.uuid4(),
            name=name.strip(),
            username=username,
            email=email,
            password_hash=self.hasher.hash_password(password),
            role=Role.USER,
            status=self.registration_status,
            email_verified=False,
            onboarding_completed=False,
            oauth_providers=[],
            refresh_tokens=[],
            email_verification_token=verification.hashed,
            email_verification_expiry=verification.expires_at,
        )
        tokens = self._start_session(user)
        user = self.store.create(user)

        sent = self.notifier.send_verification_email(user.email, self.urls.verification_url(verification.raw))
        if sent:
            logger.info("user_registered", user_id=str(user.id), mail_status="sent")
            message = "User registered successfully. Verification email sent."
        else:
            logger.warning("user_registered_email_failed", user_id=str(user.id))
            message = "User registered successfully, but verification email could not be sent."

        return AuthResult(user=user, tokens=tokens, message=message)

    """
    로그인

    - 이메일 또는 username (대소문자 무시)
    - 확인 순서: 계정 존재 → 이메일 인증 → 계정 상태 → 비밀번호
    - 탈퇴 유예 기간 중이면 reactivate_account() 후 로그인

    """

    def login(self, *, identifier: str, password: str) -> AuthResult:
        user = self.store.find_by_email_or_username(identifier)
        if not user:
            raise InvalidCredentialsError()

        if not user.email_verified:
            raise EmailNotVerifiedError()

        if not user.can_login():
            ensure_session_allowed(user)

        if not self.hasher.verify_password(password, user.password_hash):
            raise InvalidCredentialsError()

        message = "Login successful"
        if user.in_deletion_grace_window():
            user.reactivate_account()
            message = "Login successful. Your account deletion request has been cancelled."
            logger.info("account_reactivated_on_login", user_id=str(user.id))

        user.last_login = utcnow()
        tokens = self._start_session(user)
        self.store.save(user)

        logger.info("user_logged_in", user_id=str(user.id))
        return AuthResult(user=user, tokens=tokens, message=message)

    """
    Refresh Token 재발급 (rotation)

    - 서명 / 만료 검증 후 계정 조회
    - 계정의 활성 토큰 목록에 없으면 거부 (이미 사용했거나 폐기된 토큰)
    - 사용한 토큰을 먼저 제거한 뒤 새 토큰을 추가 → 같은 토큰은 두 번 쓸 수 없음

    """

    def refresh(self, raw_refresh_token: str) -> TokenPair:
        user_id = self.tokens.verify_refresh_token(raw_refresh_token)

        user = self.store.find_by_id(user_id)
        if not user or not user.is_valid_refresh_token(raw_refresh_token):
            raise UnauthorizedError("Invalid refresh token")

        ensure_session_allowed(user)

        user.remove_refresh_token(raw_refresh_token)
        tokens = self._start_session(user)
        self.store.save(user)

        logger.info("token_refreshed", user_id=str(user.id))
        return tokens

    def logout(self, user_id, raw_refresh_token: Optional[str]) -> None:
        user = self._load(user_id)
        if raw_refresh_token and user.remove_refresh_token(raw_refresh_token):
            self.store.save(user)
        logger.info("user_logged_out", user_id=str(user.id))

    def change_password(self, user_id, *, current_password: str, new_password: str) -> None:
        user = self._load(user_id)

        if not self.hasher.verify_password(current_password, user.password_hash):
            raise UnauthorizedError("Current password is incorrect")

        if self.hasher.verify_password(new_password, user.password_hash):
            raise BadRequestError("New password must be different")

        user.password_hash = self.hasher.hash_password(new_password)
        # 모든 기기에서 다시 로그인하도록 세션 전체 종료
        user.clear_refresh_tokens()
        self.store.save(user)

        logger.info("password_changed", user_id=str(user.id))

    def verify_email(self, raw_token: str) -> User:
        hashed = hash_opaque_token(raw_token)
        user = self.store.find_by_hashed_verification_token(hashed)
        if not user or not user.has_valid_verification_token(hashed):
            raise NotFoundError(
                "Invalid or expired verification token. Please request a new verification email."
            )

        user.mark_email_verified()
        self.store.save(user)

        logger.info("email_verified", user_id=str(user.id))
        return user

    def resend_verification(self, email: str) -> None:
        user = self.store.find_by_email(email)
        if not user:
            raise NotFoundError("User not found with this email.")
        if user.email_verified:
            raise BadRequestError("Email is already verified.")

        verification = self.hasher.generate_verification_token()
        user.email_verification_token = verification.hashed
        user.email_verification_expiry = verification.expires_at
        self.store.save(user)

        if not self.notifier.send_verification_email(user.email, self.urls.verification_url(verification.raw)):
            raise EmailDeliveryError("Failed to send verification email.")
        logger.info("verification_email_resent", user_id=str(user.id))

    def forgot_password(self, email: str) -> None:
        user = self.store.find_by_email(email)
        if not user:
            raise NotFoundError("User not found with this email.")

        reset = self.hasher.generate_password_reset_token()
        user.reset_token = reset.hashed
        user.reset_token_expiry = reset.expires_at
        self.store.save(user)

        if not self.notifier.send_password_reset_email(user.email, self.urls.password_reset_url(reset.raw)):
            raise EmailDeliveryError("Failed to send password reset email.")
        logger.info("password_reset_requested", user_id=str(user.id))

    def _find_by_reset_token(self, raw_token: str) -> User:
        hashed = hash_opaque_token(raw_token)
        user = self.store.find_by_hashed_reset_token(hashed)
        if not user or not user.has_valid_reset_token(hashed):
            raise NotFoundError("Invalid or expired reset token")
        return user

    def verify_reset_token(self, raw_token: str) -> User:
        return self._find_by_reset_token(raw_token)

    def reset_password(self, raw_token: str, new_password: str) -> None:
        user = self._find_by_reset_token(raw_token)

        user.password_hash = self.hasher.hash_password(new_password)
        user.clear_reset_token()
        user.clear_refresh_tokens()
        self.store.save(user)

        logger.info("password_reset", user_id=str(user.id))
