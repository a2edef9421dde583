"""
schemas/auth.py

인증 API 요청 / 응답 스키마.

- 비밀번호 정책: 8자 이상, 소문자 / 대문자 / 숫자 / 특수문자 각각 1개 이상
- username: 3~30자, 영문 / 숫자 / 밑줄만 허용, 소문자로 변환
- name: 2~50자, 앞뒤 공백 제거
- 정책 위반은 FastAPI 기본 422 응답으로 처리

"""

import re

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

USERNAME_PATTERN = r"^[a-zA-Z0-9_]+$"
_SPECIAL_CHARS = re.compile(r'[!@#$%^&*(),.?":{}|<>]')


def check_password_policy(value: str) -> str:
    if len(value) < 8:
        raise ValueError("Password must be at least 8 characters long")
    if not re.search(r"[a-z]", value):
        raise ValueError("Password must contain at least one lowercase letter")
    if not re.search(r"[A-Z]", value):
        raise ValueError("Password must contain at least one uppercase letter")
    if not re.search(r"\d", value):
        raise ValueError("Password must contain at least one number")
    if not _SPECIAL_CHARS.search(value):
        raise ValueError("Password must contain at least one special character")
    return value


class RegisterRequest(BaseModel):
    name: str = Field(min_length=2, max_length=50)
    username: str = Field(min_length=3, max_length=30, pattern=USERNAME_PATTERN)
    email: EmailStr
    password: str = Field(max_length=128)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Name must be at least 2 characters long")
        return v

    @field_validator("username", "email")
    @classmethod
    def lowercase(cls, v: str) -> str:
        return v.lower()

    @field_validator("password")
    @classmethod
    def password_policy(cls, v: str) -> str:
        return check_password_policy(v)


class LoginRequest(BaseModel):
    # 이메일 또는 username
    identifier: str = Field(min_length=1)
    password: str = Field(min_length=1)


class RefreshRequest(BaseModel):
    refresh_token: str | None = None


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., max_length=128)
    confirm_password: str = Field(..., min_length=1)

    @field_validator("new_password")
    @classmethod
    def password_policy(cls, v: str) -> str:
        return check_password_policy(v)

    @model_validator(mode="after")
    def passwords_match(self) -> "ChangePasswordRequest":
        if self.new_password != self.confirm_password:
            raise ValueError("New password and confirmation don't match")
        return self


class EmailRequest(BaseModel):
    email: EmailStr


class VerifyEmailRequest(BaseModel):
    token: str = Field(min_length=1)


class ResetPasswordRequest(BaseModel):
    token: str = Field(min_length=1)
    password: str = Field(max_length=128)
    confirm_password: str = Field(min_length=1)

    @field_validator("password")
    @classmethod
    def password_policy(cls, v: str) -> str:
        return check_password_policy(v)

    @model_validator(mode="after")
    def passwords_match(self) -> "ResetPasswordRequest":
        if self.password != self.confirm_password:
            raise ValueError("Password and confirmation don't match")
        return self
