"""
auth.py

인증(Authentication) 및 세션 API 모음.

이 파일은 회원 가입, 로그인, 토큰 재발급, 로그아웃과 같이
사용자 인증 흐름 전반을 담당한다.
JWT 기반 인증 방식을 사용하며, Access Token + Refresh Token 구조를 따른다.

주요 기능:
- 회원 가입 / 로그인 (이메일 또는 username)
- Refresh Token 기반 토큰 재발급 (rotation)
- 로그아웃 (해당 Refresh Token만 무효화)
- 비밀번호 변경 (모든 세션 종료)
- 이메일 인증 / 인증 메일 재발송
- 비밀번호 재설정 메일 / 재설정 토큰 확인 / 비밀번호 재설정
- 현재 세션 확인 (토큰이 없어도 200)

설계 원칙:
- Access Token은 응답 바디로 반환, Authorization Header로 전달
- Refresh Token은 HttpOnly Cookie로 관리
  (쿠키를 쓸 수 없는 클라이언트를 위해 가입 / 로그인 응답 바디에도 포함)
- 비즈니스 로직은 AuthService 에 위임, 라우터는 쿠키와 응답 형태만 담당

관련 파일:
- app.services.auth        : 인증 흐름
- app.core.deps            : 인증 의존성(get_current_user)
- app.schemas.auth         : 인증 관련 요청/응답

"""

from fastapi import APIRouter, Depends, Request, Response, status

from app.core.config import Settings, get_settings
from app.core.deps import get_auth_service, get_current_user, get_optional_user
from app.core.errors import UnauthorizedError
from app.core.tokens import TokenPair
from app.models.user import User
from app.schemas.auth import (
    ChangePasswordRequest,
    EmailRequest,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
    VerifyEmailRequest,
)
from app.schemas.user import public
from app.services.auth import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])

REFRESH_COOKIE_NAME = "refresh_token"


def _set_refresh_cookie(response: Response, token: str, settings: Settings) -> None:
    response.set_cookie(
        key=REFRESH_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.cookie_secure,        # 로컬 False / production True
        samesite=settings.COOKIE_SAMESITE,    # "strict" 기본값
        domain=settings.COOKIE_DOMAIN,        # 보통 None
        path="/",
        max_age=settings.refresh_cookie_max_age,
    )


def _clear_refresh_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(key=REFRESH_COOKIE_NAME, path="/", domain=settings.COOKIE_DOMAIN)


def _session_payload(user: User, tokens: TokenPair) -> dict:
    return {
        "user": public(user),
        "access_token": tokens.access_token,
        "refresh_token": tokens.refresh_token,
        "token_type": "bearer",
    }


def _presented_refresh_token(request: Request, data: RefreshRequest | None, *, prefer_body: bool = False) -> str | None:
    cookie = request.cookies.get(REFRESH_COOKIE_NAME)
    body = data.refresh_token if data else None
    # 재발급은 쿠키 우선, 로그아웃은 명시한 바디 토큰 우선
    if prefer_body:
        return body or cookie
    return cookie or body


"""
회원 가입 API

- 이메일 / username 중복 시 409 (이메일 충돌 우선)
- 가입 직후 상태는 REGISTRATION_STATUS 설정 값 (기본 pending_verification)
- 인증 메일 발송 실패는 가입을 막지 않고 메시지만 바뀜

"""

@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    data: RegisterRequest,
    response: Response,
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
):
    result = service.register(
        name=data.name,
        username=data.username,
        email=data.email,
        password=data.password,
    )
    _set_refresh_cookie(response, result.tokens.refresh_token, settings)
    return {
        "message": result.message,
        "data": _session_payload(result.user, result.tokens),
    }


"""
로그인 API

- 이메일 또는 username + 비밀번호
- 이메일 미인증 / 비활성 / 차단 계정은 403
- Access Token은 응답 바디로 반환
- Refresh Token은 HttpOnly Cookie로 설정

"""

@router.post("/login")
def login(
    data: LoginRequest,
    response: Response,
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
):
    result = service.login(identifier=data.identifier, password=data.password)
    _set_refresh_cookie(response, result.tokens.refresh_token, settings)
    return {
        "message": result.message,
        "data": _session_payload(result.user, result.tokens),
    }


"""
Access Token 재발급 API

- Refresh Token 쿠키(또는 바디)를 사용해 새로운 토큰 쌍 발급
- 사용한 Refresh Token은 즉시 폐기 (같은 토큰 재사용 시 401)
- 새 Refresh Token은 쿠키로만 전달

"""

@router.post("/refresh")
def refresh(
    request: Request,
    response: Response,
    data: RefreshRequest | None = None,
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
):
    token = _presented_refresh_token(request, data)
    if not token:
        raise UnauthorizedError("Refresh token not provided")

    tokens = service.refresh(token)
    _set_refresh_cookie(response, tokens.refresh_token, settings)
    return {
        "message": "Token refreshed successfully",
        "data": {
            "access_token": tokens.access_token,
            "token_type": "bearer",
        },
    }


"""
로그아웃 API

- 전달된 Refresh Token만 계정에서 제거 (다른 기기 세션은 유지)
- 바디에 refresh_token 을 명시하면 쿠키보다 우선
- 이미 제거된 토큰이어도 성공 처리
- 클라이언트의 Refresh Token 쿠키 삭제

"""

@router.post("/logout")
def logout(
    request: Request,
    response: Response,
    data: RefreshRequest | None = None,
    user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
):
    service.logout(user.id, _presented_refresh_token(request, data, prefer_body=True))
    _clear_refresh_cookie(response, settings)
    return {"message": "Logout successful", "data": None}


"""
비밀번호 변경 API

- 현재 비밀번호 확인 필수
- 새 비밀번호는 기존 비밀번호와 달라야 함
- 변경 시 모든 Refresh Token 폐기 (모든 기기 재로그인)

"""

@router.patch("/password")
def change_password(
    data: ChangePasswordRequest,
    response: Response,
    user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
):
    service.change_password(
        user.id,
        current_password=data.current_password,
        new_password=data.new_password,
    )
    _clear_refresh_cookie(response, settings)
    return {"message": "Password changed successfully", "data": None}


@router.post("/verify-email")
def verify_email(data: VerifyEmailRequest, service: AuthService = Depends(get_auth_service)):
    user = service.verify_email(data.token)
    return {"message": "Email verified successfully", "data": {"user": public(user)}}


@router.post("/resend-verification")
def resend_verification(data: EmailRequest, service: AuthService = Depends(get_auth_service)):
    service.resend_verification(data.email)
    return {"message": "Verification email resent successfully.", "data": None}


@router.post("/forgot-password")
def forgot_password(data: EmailRequest, service: AuthService = Depends(get_auth_service)):
    service.forgot_password(data.email)
    return {"message": "Password reset email sent successfully.", "data": None}


@router.get("/verify-reset-token/{token}")
def verify_reset_token(token: str, service: AuthService = Depends(get_auth_service)):
    user = service.verify_reset_token(token)
    return {"message": "Reset token is valid", "data": {"user": public(user)}}


@router.post("/reset-password")
def reset_password(
    data: ResetPasswordRequest,
    response: Response,
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
):
    service.reset_password(data.token, data.password)
    _clear_refresh_cookie(response, settings)
    return {"message": "Password reset successfully", "data": None}


"""
세션 확인 API

- Access Token이 없거나 유효하지 않아도 200
- authenticated 여부와 (로그인 상태면) 계정 정보 반환

"""

@router.get("/session")
def session(user: User | None = Depends(get_optional_user)):
    if user is None:
        return {"message": "Not authenticated", "data": {"authenticated": False, "user": None}}
    return {"message": "User is authenticated", "data": {"authenticated": True, "user": public(user)}}
