"""
services/user_store.py

사용자(User) 저장소 모음.

서비스 계층(auth / users)이 DB에 접근할 때 사용하는 조회 / 저장 함수를
한 곳에 모아 둔 클래스이다.

주요 기능:
- 이메일 또는 username 으로 조회 (대소문자 무시)
- ID / 인증 토큰 해시 / 재설정 토큰 해시로 조회
- 생성 / 저장 / 영구 삭제
- 이메일 · username 중복 검사 (이메일 충돌이 우선)

설계 원칙:
- 이메일 / username 은 항상 소문자로 변환 후 비교 / 저장
- 저장 시 만료된 Refresh Token 정리
- 유니크 제약 위반(IntegrityError)은 ConflictError 로 변환
- commit / rollback 은 이 클래스에서만 수행

관련 파일:
- app.models.user          : User 모델
- app.services.auth        : 인증 흐름
- app.services.users       : 관리자 계정 관리

"""

import uuid
from typing import Optional, Sequence

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import ConflictError
from app.models.user import AccountStatus, Role, User


def normalize(value: str) -> str:
    return value.strip().lower()


class UserStore:
    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, user_id) -> Optional[User]:
        if not isinstance(user_id, uuid.UUID):
            try:
                user_id = uuid.UUID(str(user_id))
            except ValueError:
                return None
        return self.db.get(User, user_id)

    def find_by_email(self, email: str) -> Optional[User]:
        return self.db.scalar(select(User).where(User.email == normalize(email)))

    def find_by_email_or_username(self, identifier: str) -> Optional[User]:
        key = normalize(identifier)
        return self.db.scalar(select(User).where(or_(User.email == key, User.username == key)))

    def find_by_hashed_verification_token(self, hashed: str) -> Optional[User]:
        return self.db.scalar(select(User).where(User.email_verification_token == hashed))

    def find_by_hashed_reset_token(self, hashed: str) -> Optional[User]:
        return self.db.scalar(select(User).where(User.reset_token == hashed))

    def ensure_unique(self, *, email: str | None = None, username: str | None = None,
                      exclude_id: uuid.UUID | None = None) -> None:
        """이메일 / username 중복 시 ConflictError. 둘 다 충돌하면 이메일 메시지가 우선."""
        conditions = []
        if email:
            conditions.append(User.email == normalize(email))
        if username:
            conditions.append(User.username == normalize(username))
        if not conditions:
            return

        query = select(User).where(or_(*conditions))
        if exclude_id is not None:
            query = query.where(User.id != exclude_id)
        existing = self.db.scalars(query).all()

        if email and any(u.email == normalize(email) for u in existing):
            raise ConflictError("User with this email already exists")
        if username and any(u.username == normalize(username) for u in existing):
            raise ConflictError("User with this username already exists")

    def create(self, user: User) -> User:
        user.email = normalize(user.email)
        user.username = normalize(user.username)
        self.db.add(user)
        return self.save(user)

    def save(self, user: User) -> User:
        user.prune_expired_refresh_tokens()
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("User with this email or username already exists")
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(user)
        return user

    def delete(self, user: User) -> None:
        try:
            self.db.delete(user)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def list_users(self, *, role: Role | None = None, status: AccountStatus | None = None,
                   limit: int = 50, offset: int = 0) -> Sequence[User]:
        query = select(User)
        if role is not None:
            query = query.where(User.role == role)
        if status is not None:
            query = query.where(User.status == status)
        query = query.order_by(User.created_at.desc()).limit(limit).offset(offset)
        return self.db.scalars(query).all()

    def count_admins(self) -> int:
        return self.db.scalar(
            select(func.count()).select_from(User).where(User.role == Role.ADMIN)
        ) or 0
