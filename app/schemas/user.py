from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, computed_field, field_validator

from app.models.user import CREATABLE_STATUSES, DELETION_GRACE_PERIOD, AccountStatus, Role, as_utc
from app.schemas.auth import USERNAME_PATTERN, check_password_policy


# 🔹 외부 응답용 계정 정보 (민감 필드 제외)
class UserPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)  # SQLAlchemy → Pydantic 변환

    id: UUID
    name: str
    username: str
    email: str
    role: Role
    status: AccountStatus
    email_verified: bool
    deletion_requested_at: datetime | None = None
    last_login: datetime | None = None
    onboarding_completed: bool
    oauth_providers: list[dict[str, Any]] = []
    created_at: datetime
    updated_at: datetime

    @computed_field
    @property
    def deletion_expiry_date(self) -> datetime | None:
        requested_at = as_utc(self.deletion_requested_at)
        if requested_at is None:
            return None
        return requested_at + DELETION_GRACE_PERIOD


def public(user) -> dict:
    return UserPublic.model_validate(user).model_dump(mode="json")


class _Lowercase(BaseModel):
    @field_validator("username", "email", check_fields=False)
    @classmethod
    def lowercase(cls, v):
        return v.lower() if isinstance(v, str) else v

    @field_validator("name", check_fields=False)
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v


# 🔹 본인 프로필 수정 (name / username 만 허용)
class ProfileUpdate(_Lowercase):
    name: str | None = Field(default=None, min_length=2, max_length=50)
    username: str | None = Field(default=None, min_length=3, max_length=30, pattern=USERNAME_PATTERN)


class DeletionRequest(BaseModel):
    password: str = Field(min_length=1)
    reason: str | None = Field(default=None, max_length=500)


# 🔹 관리자 계정 생성
class AdminUserCreate(_Lowercase):
    name: str = Field(min_length=2, max_length=50)
    username: str = Field(min_length=3, max_length=30, pattern=USERNAME_PATTERN)
    email: EmailStr
    password: str = Field(max_length=128)
    role: Role = Role.USER
    status: AccountStatus = AccountStatus.ACTIVE
    email_verified: bool = False
    onboarding_completed: bool = False

    @field_validator("password")
    @classmethod
    def password_policy(cls, v: str) -> str:
        return check_password_policy(v)

    # 탈퇴 / 차단 계열 상태는 전이 메서드로만 진입
    @field_validator("status")
    @classmethod
    def creatable_status(cls, v: AccountStatus) -> AccountStatus:
        if v not in CREATABLE_STATUSES:
            allowed = ", ".join(s.value for s in CREATABLE_STATUSES)
            raise ValueError(f"New accounts must start in one of: {allowed}")
        return v


# 🔹 관리자 계정 수정 (상태 변경은 전용 API 사용)
class AdminUserUpdate(_Lowercase):
    name: str | None = Field(default=None, min_length=2, max_length=50)
    username: str | None = Field(default=None, min_length=3, max_length=30, pattern=USERNAME_PATTERN)
    email: EmailStr | None = None
    role: Role | None = None
    email_verified: bool | None = None
    onboarding_completed: bool | None = None


# 🔹 관리자 role 변경 요청용
class RoleUpdate(BaseModel):
    role: Role


class ReasonRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=255)
