"""
services/users.py

계정 관리 비즈니스 로직(Service) 모음.

이 파일은 관리자 계정 관리 기능과
회원 본인의 프로필 / 탈퇴 요청 기능을 담당한다.

주요 기능:
- 관리자: 회원 목록 / 상세 조회, 생성, 수정, 영구 삭제
- 관리자: 활성화 / 비활성화 / 차단 / 정지 / 차단 해제 / 권한 변경
- 회원 본인: 프로필 수정, 탈퇴 요청(비밀번호 확인), 탈퇴 요청 취소, 계정 재활성화

설계 원칙:
- HTTP / FastAPI 의존성 없음
- 상태 변경은 User 모델의 상태 전이 메서드로만 수행
- 관리자는 자기 자신의 계정에 대해 관리 행위를 할 수 없음
- 마지막 ADMIN 은 강등 / 삭제 불가
- 모든 관리자 행위는 AdminActionLog 에 기록 (대상 변경과 같은 commit)

관련 파일:
- app.models.user          : User / 상태 머신
- app.services.user_store  : 조회 / 저장
- app.services.admin_log   : 관리자 행위 로그
- app.routers.admin        : 관리자 API
- app.routers.users        : 회원 API

"""

import uuid
from typing import Sequence

from app.core.errors import BadRequestError, NotFoundError, UnauthorizedError
from app.core.logging import get_logger
from app.core.security import PasswordHasher
from app.models.admin_log import AdminAction
from app.models.user import CREATABLE_STATUSES, AccountStatus, Role, User
from app.services.admin_log import write_admin_log
from app.services.user_store import UserStore

logger = get_logger(__name__)


class UserService:
    def __init__(self, *, store: UserStore, hasher: PasswordHasher):
        self.store = store
        self.hasher = hasher

    def get(self, user_id) -> User:
        user = self.store.find_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def list_users(self, *, role: Role | None = None, status: AccountStatus | None = None,
                   limit: int = 50, offset: int = 0) -> Sequence[User]:
        limit = max(1, min(limit, 200))
        offset = max(0, offset)
        return self.store.list_users(role=role, status=status, limit=limit, offset=offset)

    def _target(self, actor: User, user_id, verb: str) -> User:
        user = self.get(user_id)
        # 자기 자신 대상 관리 행위 금지
        if user.id == actor.id:
            raise BadRequestError(f"Cannot {verb} your own account")
        return user

    def _ensure_not_last_admin(self, user: User, verb: str) -> None:
        if user.role == Role.ADMIN and self.store.count_admins() <= 1:
            raise BadRequestError(f"Cannot {verb} the last ADMIN")

    # ---- 회원 본인 ----

    def update_profile(self, user: User, *, name: str | None = None, username: str | None = None) -> User:
        if name is None and username is None:
            raise BadRequestError("No valid fields provided for update")

        if username is not None and username != user.username:
            self.store.ensure_unique(username=username, exclude_id=user.id)
            user.username = username
        if name is not None:
            user.name = name

        self.store.save(user)
        logger.info("profile_updated", user_id=str(user.id))
        return user

    def request_deletion(self, user: User, *, password: str, reason: str | None = None) -> User:
        if not self.hasher.verify_password(password, user.password_hash):
            raise UnauthorizedError("Invalid password")
        if user.role == Role.ADMIN:
            self._ensure_not_last_admin(user, "delete")

        user.request_deletion(reason)
        self.store.save(user)
        logger.info("deletion_requested", user_id=str(user.id))
        return user

    def cancel_deletion(self, user: User) -> User:
        user.cancel_deletion_request()
        self.store.save(user)
        logger.info("deletion_cancelled", user_id=str(user.id))
        return user

    def reactivate(self, user: User) -> User:
        user.reactivate_account()
        self.store.save(user)
        logger.info("account_reactivated", user_id=str(user.id))
        return user

    # ---- 관리자 ----

    """
    관리자 계정 생성

    - 이메일 / username 중복 검사 (이메일 충돌 우선)
    - 관리자가 생성한 계정은 기본 active
    - 시작 상태는 pending_verification / active / inactive 만 허용
    - 인증 메일은 보내지 않음 (email_verified 는 요청 값 사용)

    """

    def create(self, actor: User, *, name: str, username: str, email: str, password: str,
               role: Role = Role.USER, status: AccountStatus = AccountStatus.ACTIVE,
               email_verified: bool = False, onboarding_completed: bool = False) -> User:
        if status not in CREATABLE_STATUSES:
            raise BadRequestError(f"Cannot create an account in {status.value} status")
        self.store.ensure_unique(email=email, username=username)

        user = User(
            id=uuid.uuid4(),
            name=name,
            username=username,
            email=email,
            password_hash=self.hasher.hash_password(password),
            role=role,
            status=status,
            email_verified=email_verified,
            onboarding_completed=onboarding_completed,
            oauth_providers=[],
            refresh_tokens=[],
        )
        write_admin_log(self.store.db, actor=actor, action=AdminAction.CREATE_USER,
                        target=user, after=status.value)
        self.store.create(user)

        logger.info("admin_user_created", actor_id=str(actor.id), user_id=str(user.id))
        return user

    def update(self, actor: User, user_id, **changes) -> User:
        user = self.get(user_id)
        changes = {key: value for key, value in changes.items() if value is not None}
        if not changes:
            raise BadRequestError("No valid fields provided for update")

        role = changes.pop("role", None)
        if role is not None and role != user.role:
            if user.id == actor.id:
                raise BadRequestError("Cannot change your own role")
            if role != Role.ADMIN:
                self._ensure_not_last_admin(user, "demote")

        self.store.ensure_unique(
            email=changes.get("email"),
            username=changes.get("username"),
            exclude_id=user.id,
        )

        before = user.role.value
        for field, value in changes.items():
            setattr(user, field, value)
        if role is not None:
            user.role = role

        write_admin_log(self.store.db, actor=actor, action=AdminAction.UPDATE_USER,
                        target=user, before=before, after=user.role.value)
        self.store.save(user)

        logger.info("admin_user_updated", actor_id=str(actor.id), user_id=str(user.id),
                    fields=sorted(changes) + (["role"] if role is not None else []))
        return user

    def delete(self, actor: User, user_id) -> dict:
        user = self._target(actor, user_id, "delete")
        self._ensure_not_last_admin(user, "delete")

        snapshot = {
            "id": str(user.id),
            "name": user.name,
            "username": user.username,
            "email": user.email,
            "role": user.role.value,
        }
        write_admin_log(self.store.db, actor=actor, action=AdminAction.DELETE_USER,
                        target=user, before=user.status.value, after=AccountStatus.DELETED.value)
        self.store.delete(user)

        logger.info("admin_user_deleted", actor_id=str(actor.id), user_id=snapshot["id"])
        return snapshot

    def _transition(self, actor: User, user_id, *, verb: str, action: AdminAction,
                    reason: str | None = None) -> User:
        user = self._target(actor, user_id, verb)
        before = user.status.value

        if action == AdminAction.ACTIVATE_USER:
            user.activate()
        elif action == AdminAction.DEACTIVATE_USER:
            user.deactivate(reason)
        elif action == AdminAction.BLOCK_USER:
            user.block(reason)
        elif action == AdminAction.SUSPEND_USER:
            user.suspend(reason)
        elif action == AdminAction.UNBLOCK_USER:
            user.unblock()

        write_admin_log(self.store.db, actor=actor, action=action, target=user,
                        before=before, after=user.status.value, reason=reason)
        self.store.save(user)

        logger.info("admin_status_changed", actor_id=str(actor.id), user_id=str(user.id),
                    before=before, after=user.status.value)
        return user

    def activate(self, actor: User, user_id) -> User:
        return self._transition(actor, user_id, verb="activate", action=AdminAction.ACTIVATE_USER)

    def deactivate(self, actor: User, user_id, reason: str | None = None) -> User:
        return self._transition(actor, user_id, verb="deactivate",
                                action=AdminAction.DEACTIVATE_USER, reason=reason)

    def block(self, actor: User, user_id, reason: str | None = None) -> User:
        return self._transition(actor, user_id, verb="block", action=AdminAction.BLOCK_USER, reason=reason)

    def suspend(self, actor: User, user_id, reason: str | None = None) -> User:
        return self._transition(actor, user_id, verb="suspend", action=AdminAction.SUSPEND_USER, reason=reason)

    def unblock(self, actor: User, user_id) -> User:
        return self._transition(actor, user_id, verb="unblock", action=AdminAction.UNBLOCK_USER)

    def set_role(self, actor: User, user_id, role: Role) -> User:
        user = self._target(actor, user_id, "change the role of")

        if user.role == role:
            raise BadRequestError(f"User already has {role.value} role")
        if role != Role.ADMIN:
            self._ensure_not_last_admin(user, "demote")

        before = user.role.value
        user.role = role
        write_admin_log(self.store.db, actor=actor, action=AdminAction.SET_ROLE,
                        target=user, before=before, after=role.value)
        self.store.save(user)

        logger.info("admin_role_changed", actor_id=str(actor.id), user_id=str(user.id),
                    before=before, after=role.value)
        return user
