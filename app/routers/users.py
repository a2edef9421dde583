"""
users.py

회원 본인 계정 API 모음.

이 파일은 로그인한 회원이
본인의 프로필을 조회 / 수정하고
탈퇴 요청(30일 유예) 및 취소, 계정 재활성화를 하기 위한 기능을 담당한다.

관리자용 계정 관리 기능(admin.py)과 분리하여,
권한 범위와 노출 가능한 데이터 범위를 명확히 하기 위한 구조이다.

주요 기능:
- 본인 프로필 조회 / 수정 (name, username)
- 탈퇴 요청 (비밀번호 확인, 사유 선택)
- 탈퇴 요청 취소 / 계정 재활성화 (유예 기간 내)

설계 원칙:
- Access Guard(get_current_user) 통과한 계정만 접근 가능
- 응답에는 공개 필드(UserPublic)만 포함

관련 파일:
- app.services.users       : UserService
- app.core.deps            : 인증 의존성(get_current_user)
"""

from fastapi import APIRouter, Depends

from app.core.deps import get_current_user, get_user_service
from app.models.user import User
from app.schemas.user import DeletionRequest, ProfileUpdate, public
from app.services.users import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/profile")
def profile(current_user: User = Depends(get_current_user)):
    return {"message": "Profile retrieved successfully", "data": {"user": public(current_user)}}


@router.put("/profile")
def update_profile(
    data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    user = service.update_profile(current_user, name=data.name, username=data.username)
    return {"message": "Profile updated successfully", "data": {"user": public(user)}}


"""
탈퇴 요청 API

- 본인 비밀번호 확인 후 deletion_requested 상태로 전환
- 30일 유예 기간 동안 로그인하거나 취소하면 계정이 복구됨
- 응답의 deletion_expiry_date 로 유예 만료 시각 안내

"""

@router.post("/me/deletion")
def request_deletion(
    data: DeletionRequest,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    user = service.request_deletion(current_user, password=data.password, reason=data.reason)
    return {"message": "Account deletion requested", "data": {"user": public(user)}}


@router.delete("/me/deletion")
def cancel_deletion(
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    user = service.cancel_deletion(current_user)
    return {"message": "Account deletion request cancelled", "data": {"user": public(user)}}


@router.post("/me/reactivate")
def reactivate(
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    user = service.reactivate(current_user)
    return {"message": "Account reactivated successfully", "data": {"user": public(user)}}
