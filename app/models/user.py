"""
user.py

사용자(User) 계정 모델 및 계정 상태 머신 정의 파일.

이 파일은 회원의 기본 정보, 권한(Role), 계정 상태(AccountStatus),
Refresh Token 목록, 이메일 인증 / 비밀번호 재설정 토큰 슬롯을 관리한다.

모든 인증, 세션, 관리자 기능의 기준이 되는 핵심 모델이다.

설계 원칙:
- 로그인 가능 여부는 status 하나로만 판단 (isActive / isBlocked 이중 표현 사용 안 함)
- 상태 변경은 activate / deactivate / block 등 명시적인 메서드로만 수행
- Refresh Token 목록은 최대 MAX_REFRESH_TOKENS개, 초과 시 가장 오래된 것부터 제거
- refresh_tokens / oauth_providers 는 JSON 컬럼으로 행 안에 함께 저장되며
  항상 리스트 전체를 새로 할당하여 변경 사항이 저장되도록 함
- 민감 필드(password_hash, refresh_tokens, 인증/재설정 토큰)는 외부 응답에 포함하지 않음

"""

import uuid
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, Enum as SAEnum, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.core.errors import InvalidStatusTransition
from app.db.base import Base

MAX_REFRESH_TOKENS = 5
DELETION_GRACE_PERIOD = timedelta(days=30)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    # SQLite는 tzinfo를 버리므로 naive 값은 UTC로 간주
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


"""
사용자 권한(Role) 정의

- ADMIN : 관리자 (회원 상태 / 권한 관리)
- USER  : 일반 회원

"""

class Role(str, Enum):
    ADMIN = "admin"
    USER = "user"


"""
계정 상태(AccountStatus) 정의

- PENDING_VERIFICATION : 가입 후 이메일 인증 대기
- ACTIVE               : 정상 사용
- INACTIVE             : 비활성화 (관리자 조치)
- BLOCKED / SUSPENDED  : 차단 / 정지
- DELETION_REQUESTED   : 탈퇴 요청 (유예 기간 30일)
- DELETED              : 탈퇴 처리

"""

class AccountStatus(str, Enum):
    PENDING_VERIFICATION = "pending_verification"
    ACTIVE = "active"
    INACTIVE = "inactive"
    BLOCKED = "blocked"
    SUSPENDED = "suspended"
    DELETION_REQUESTED = "deletion_requested"
    DELETED = "deleted"


BLOCKED_STATUSES = (AccountStatus.BLOCKED, AccountStatus.SUSPENDED)
# 관리자가 계정을 새로 만들 때 지정할 수 있는 상태
CREATABLE_STATUSES = (AccountStatus.PENDING_VERIFICATION, AccountStatus.ACTIVE, AccountStatus.INACTIVE)


"""
사용자(User) 모델

- email / username 은 소문자로 저장되는 고유 식별자
- status 로 로그인 / 토큰 재발급 가능 여부 제어
- refresh_tokens 로 기기별 세션(최대 5개) 관리
- email_verification_token / reset_token 에는 SHA-256 해시만 저장

"""

class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    name: Mapped[str] = mapped_column(String(50), nullable=False)
    username: Mapped[str] = mapped_column(String(30), unique=True, index=True, nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    role: Mapped[Role] = mapped_column(SAEnum(Role, name="user_role"), nullable=False, default=Role.USER, index=True)
    status: Mapped[AccountStatus] = mapped_column(
        SAEnum(AccountStatus, name="account_status"),
        nullable=False,
        default=AccountStatus.PENDING_VERIFICATION,
        index=True,
    )
    email_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)

    deletion_requested_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    deletion_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    deactivation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    last_login: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    onboarding_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    oauth_providers: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    email_verification_token: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    email_verification_expiry: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reset_token: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    reset_token_expiry: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    refresh_tokens: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    # ---- 상태 조회 ----

    def is_active(self) -> bool:
        return self.status == AccountStatus.ACTIVE

    def is_blocked(self) -> bool:
        return self.status in BLOCKED_STATUSES

    def is_deletion_requested(self) -> bool:
        return self.status == AccountStatus.DELETION_REQUESTED

    def get_deletion_expiry_date(self) -> datetime | None:
        requested_at = as_utc(self.deletion_requested_at)
        if requested_at is None:
            return None
        return requested_at + DELETION_GRACE_PERIOD

    def is_deletion_expired(self, now: datetime | None = None) -> bool:
        expiry = self.get_deletion_expiry_date()
        if expiry is None:
            return False
        return (now or utcnow()) >= expiry

    def in_deletion_grace_window(self) -> bool:
        return self.is_deletion_requested() and not self.is_deletion_expired()

    def can_login(self) -> bool:
        if not self.email_verified:
            return False
        return self.is_active() or self.in_deletion_grace_window()

    def can_authenticate(self) -> bool:
        """Access Token으로 보호 API를 호출할 수 있는 상태인지 여부."""
        return self.status in (AccountStatus.ACTIVE, AccountStatus.PENDING_VERIFICATION) \
            or self.in_deletion_grace_window()

    # ---- 상태 전이 ----

    def activate(self) -> None:
        if self.is_active():
            raise InvalidStatusTransition("User is already active")
        self.status = AccountStatus.ACTIVE
        self.deactivation_reason = None
        self.deletion_requested_at = None
        self.deletion_reason = None

    def deactivate(self, reason: str | None = None) -> None:
        # 비활성화도 차단과 동일하게 모든 세션을 끊는다
        if not self.is_active():
            raise InvalidStatusTransition("Only active users can be deactivated")
        self.status = AccountStatus.INACTIVE
        self.deactivation_reason = reason
        self.clear_refresh_tokens()

    def block(self, reason: str | None = None) -> None:
        if self.status == AccountStatus.BLOCKED:
            raise InvalidStatusTransition("User is already blocked")
        self.status = AccountStatus.BLOCKED
        self.deactivation_reason = reason
        self.clear_refresh_tokens()

    def suspend(self, reason: str | None = None) -> None:
        if not self.is_active():
            raise InvalidStatusTransition("Only active users can be suspended")
        self.status = AccountStatus.SUSPENDED
        self.deactivation_reason = reason
        self.clear_refresh_tokens()

    def unblock(self) -> None:
        if not self.is_blocked():
            raise InvalidStatusTransition("User is not blocked")
        self.status = AccountStatus.ACTIVE
        self.deactivation_reason = None

    def mark_email_verified(self) -> None:
        self.email_verified = True
        self.email_verification_token = None
        self.email_verification_expiry = None
        if self.status == AccountStatus.PENDING_VERIFICATION:
            self.status = AccountStatus.ACTIVE

    def request_deletion(self, reason: str | None = None) -> None:
        if not self.is_active():
            raise InvalidStatusTransition("Only active accounts can request deletion")
        self.status = AccountStatus.DELETION_REQUESTED
        self.deletion_requested_at = utcnow()
        self.deletion_reason = reason

    def cancel_deletion_request(self) -> None:
        if not self.is_deletion_requested():
            raise InvalidStatusTransition("No deletion request to cancel")
        if self.is_deletion_expired():
            raise InvalidStatusTransition("Deletion grace period has expired")
        self.status = AccountStatus.ACTIVE
        self.deletion_requested_at = None
        self.deletion_reason = None
        self.deactivation_reason = None

    def reactivate_account(self) -> None:
        self.cancel_deletion_request()
        self.last_login = utcnow()

    # ---- Refresh Token 목록 ----

    def _refresh_entries(self) -> list[dict[str, Any]]:
        return list(self.refresh_tokens or [])

    @staticmethod
    def _entry_expires_at(entry: dict[str, Any]) -> datetime:
        return as_utc(datetime.fromisoformat(entry["expires_at"]))

    def is_valid_refresh_token(self, token: str) -> bool:
        now = utcnow()
        return any(
            entry["token"] == token and self._entry_expires_at(entry) > now
            for entry in self._refresh_entries()
        )

    def evict_oldest_refresh_tokens(self, capacity: int = MAX_REFRESH_TOKENS) -> list[str]:
        """capacity 개의 빈 자리가 남을 때까지 가장 오래된 토큰부터 제거하고, 제거된 토큰을 반환."""
        entries = self._refresh_entries()
        evicted = []
        while entries and len(entries) >= capacity:
            evicted.append(entries.pop(0)["token"])
        self.refresh_tokens = entries
        return evicted

    def add_refresh_token(self, token: str, expires_at: datetime, capacity: int = MAX_REFRESH_TOKENS) -> None:
        self.evict_oldest_refresh_tokens(capacity)
        entries = self._refresh_entries()
        entries.append({
            "token": token,
            "created_at": utcnow().isoformat(),
            "expires_at": as_utc(expires_at).isoformat(),
        })
        self.refresh_tokens = entries

    def remove_refresh_token(self, token: str) -> bool:
        entries = self._refresh_entries()
        kept = [entry for entry in entries if entry["token"] != token]
        self.refresh_tokens = kept
        return len(kept) != len(entries)

    def clear_refresh_tokens(self) -> None:
        self.refresh_tokens = []

    def prune_expired_refresh_tokens(self) -> None:
        now = utcnow()
        self.refresh_tokens = [
            entry for entry in self._refresh_entries() if self._entry_expires_at(entry) > now
        ]

    # ---- 인증 / 재설정 토큰 슬롯 ----

    def has_valid_verification_token(self, hashed: str) -> bool:
        expiry = as_utc(self.email_verification_expiry)
        return self.email_verification_token == hashed and expiry is not None and expiry > utcnow()

    def has_valid_reset_token(self, hashed: str) -> bool:
        expiry = as_utc(self.reset_token_expiry)
        return self.reset_token == hashed and expiry is not None and expiry > utcnow()

    def clear_reset_token(self) -> None:
        self.reset_token = None
        self.reset_token_expiry = None
