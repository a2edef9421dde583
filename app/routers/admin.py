"""
admin.py

관리자(Admin) 전용 계정 관리 API 모음.

주요 기능:
- 회원 목록 (role / status 필터, limit / offset) / 상세 조회
- 회원 생성 / 수정 / 영구 삭제
- 활성화 / 비활성화 / 차단 / 정지 / 차단 해제 / 권한 변경
- 관리자 행위 로그 조회

설계 원칙:
- ADMIN 권한만 접근 가능 (get_current_admin)
- 자기 자신 대상 관리 행위 금지, 마지막 ADMIN 보호
- 실제 정책 판단은 UserService 에서 수행

관련 파일:
- app.services.users       : UserService
- app.services.admin_log   : 관리자 행위 로그

"""

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.deps import get_current_admin, get_db, get_user_service
from app.models.user import AccountStatus, Role, User
from app.schemas.user import AdminUserCreate, AdminUserUpdate, ReasonRequest, RoleUpdate, public
from app.services.admin_log import list_admin_logs
from app.services.users import UserService

router = APIRouter(prefix="/admin", tags=["admin"])


# 전체 회원 목록 조회 엔드포인트(관리자 전용)
@router.get("/users")
def list_users(
    role: Role | None = None,
    status_filter: AccountStatus | None = Query(default=None, alias="status"),
    limit: int = 50,
    offset: int = 0,
    service: UserService = Depends(get_user_service),
    _: User = Depends(get_current_admin),
):
    users = service.list_users(role=role, status=status_filter, limit=limit, offset=offset)
    return {
        "data": [public(u) for u in users],
        "meta": {
            "limit": max(1, min(limit, 200)),
            "offset": max(0, offset),
            "count": len(users),
        },
    }


# 회원 생성 엔드포인트
@router.post("/users", status_code=status.HTTP_201_CREATED)
def create_user(
    data: AdminUserCreate,
    service: UserService = Depends(get_user_service),
    current_admin: User = Depends(get_current_admin),
):
    user = service.create(current_admin, **data.model_dump())
    return {"message": "User created", "data": public(user)}


# 회원 상세 조회 엔드포인트
@router.get("/users/{user_id}")
def get_user(
    user_id: uuid.UUID,
    service: UserService = Depends(get_user_service),
    _: User = Depends(get_current_admin),
):
    return {"data": public(service.get(user_id))}


# 회원 정보 수정 엔드포인트
@router.put("/users/{user_id}")
def update_user(
    user_id: uuid.UUID,
    data: AdminUserUpdate,
    service: UserService = Depends(get_user_service),
    current_admin: User = Depends(get_current_admin),
):
    user = service.update(current_admin, user_id, **data.model_dump(exclude_unset=True))
    return {"message": "User updated", "data": public(user)}


# 회원 삭제 엔드포인트 (영구 삭제)
@router.delete("/users/{user_id}")
def delete_user(
    user_id: uuid.UUID,
    service: UserService = Depends(get_user_service),
    current_admin: User = Depends(get_current_admin),
):
    snapshot = service.delete(current_admin, user_id)
    return {"message": "User deleted", "data": snapshot}


@router.put("/users/{user_id}/activate")
def activate_user(
    user_id: uuid.UUID,
    service: UserService = Depends(get_user_service),
    current_admin: User = Depends(get_current_admin),
):
    user = service.activate(current_admin, user_id)
    return {"message": "User activated", "data": public(user)}


@router.put("/users/{user_id}/deactivate")
def deactivate_user(
    user_id: uuid.UUID,
    data: ReasonRequest | None = None,
    service: UserService = Depends(get_user_service),
    current_admin: User = Depends(get_current_admin),
):
    user = service.deactivate(current_admin, user_id, reason=data.reason if data else None)
    return {"message": "User deactivated", "data": public(user)}


@router.put("/users/{user_id}/block")
def block_user(
    user_id: uuid.UUID,
    data: ReasonRequest | None = None,
    service: UserService = Depends(get_user_service),
    current_admin: User = Depends(get_current_admin),
):
    user = service.block(current_admin, user_id, reason=data.reason if data else None)
    return {"message": "User blocked", "data": public(user)}


@router.put("/users/{user_id}/suspend")
def suspend_user(
    user_id: uuid.UUID,
    data: ReasonRequest | None = None,
    service: UserService = Depends(get_user_service),
    current_admin: User = Depends(get_current_admin),
):
    user = service.suspend(current_admin, user_id, reason=data.reason if data else None)
    return {"message": "User suspended", "data": public(user)}


@router.put("/users/{user_id}/unblock")
def unblock_user(
    user_id: uuid.UUID,
    service: UserService = Depends(get_user_service),
    current_admin: User = Depends(get_current_admin),
):
    user = service.unblock(current_admin, user_id)
    return {"message": "User unblocked", "data": public(user)}


# 관리자가 회원 권한을 변경하는 엔드포인트
@router.patch("/users/{user_id}/role")
def set_role(
    user_id: uuid.UUID,
    data: RoleUpdate,
    service: UserService = Depends(get_user_service),
    current_admin: User = Depends(get_current_admin),
):
    user = service.set_role(current_admin, user_id, data.role)
    return {"message": "Role updated", "data": public(user)}


# 관리자 활동 로그 조회 엔드포인트
@router.get("/logs")
def admin_logs(
    limit: int = 50,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_admin),
):
    result = list_admin_logs(db, limit=limit)
    return {
        "data": result,
        "meta": {
            "limit": max(1, min(limit, 200)),
            "count": len(result),
        },
    }
