"""
security.py

비밀번호 해싱 및 1회용(opaque) 토큰 생성을 담당하는 보안 유틸리티 모음.

이 파일은 인증(auth) 로직에서 사용하는
저수준(low-level) 보안 기능만을 제공하며,
라우터나 비즈니스 로직은 포함하지 않는다.

주요 기능:
- 비밀번호 해싱 및 검증 (bcrypt, rounds 설정 가능)
- 이메일 인증 / 비밀번호 재설정용 랜덤 토큰 생성
- 랜덤 토큰의 SHA-256 해시 (DB에는 해시만 저장)

설계 원칙:
- 원본 토큰은 메일 링크로 한 번만 외부에 전달되고 저장되지 않음
- 인증 / 재설정 토큰은 서로 다른 TTL을 가짐
- 시간 기반 만료는 UTC 기준으로 처리

관련 파일:
- app.core.config        : BCRYPT_ROUNDS / 토큰 TTL 설정
- app.core.tokens        : JWT 생성·검증
- app.services.auth      : 회원가입 / 인증 / 재설정 흐름

"""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from passlib.context import CryptContext

from app.core.config import Settings


@dataclass(frozen=True)
class OpaqueToken:
    raw: str
    hashed: str
    expires_at: datetime


"""
랜덤 토큰 생성 함수

- secrets 모듈 기반 암호학적 난수
- byte_length 바이트를 hex 문자열로 반환

"""

def generate_opaque_token(byte_length: int = 32) -> str:
    return secrets.token_hex(byte_length)


"""
랜덤 토큰 해시 함수

- DB 저장 / 조회 시 원본 대신 SHA-256 hex digest 사용

"""

def hash_opaque_token(raw_token: str) -> str:
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


class PasswordHasher:
    """bcrypt 해시 + 인증/재설정 토큰 발급기. Settings를 생성 시점에 주입받는다."""

    def __init__(self, settings: Settings):
        # deprecated="auto"로 향후 알고리즘 교체 가능하도록 설정
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=settings.BCRYPT_ROUNDS,
        )
        self._verification_ttl = timedelta(hours=settings.EMAIL_VERIFICATION_EXPIRE_HOURS)
        self._reset_ttl = timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES)

    def hash_password(self, plain: str) -> str:
        return self._context.hash(plain)

    def verify_password(self, plain: str, hashed: str) -> bool:
        # 해시 형식이 깨져 있으면 불일치로 취급
        try:
            return self._context.verify(plain, hashed)
        except (ValueError, TypeError):
            return False

    def _issue(self, ttl: timedelta) -> OpaqueToken:
        raw = generate_opaque_token()
        return OpaqueToken(
            raw=raw,
            hashed=hash_opaque_token(raw),
            expires_at=datetime.now(timezone.utc) + ttl,
        )

    def generate_verification_token(self) -> OpaqueToken:
        return self._issue(self._verification_ttl)

    def generate_password_reset_token(self) -> OpaqueToken:
        return self._issue(self._reset_ttl)
