"""
tokens.py

JWT Access Token / Refresh Token 생성 및 검증 서비스.

주요 기능:
- Access Token 생성 (userId, email, role, username 포함, 짧은 만료)
- Refresh Token 생성 (userId만 포함, 긴 만료)
- 두 토큰 모두 issuer / audience 검증
- 만료 시각 조회 (서명 검증 없이 디코딩, 신뢰 판단에는 사용 금지)

설계 원칙:
- Access / Refresh 시크릿을 분리하여 한쪽 유출이 다른 쪽에 영향 없도록 함
- 토큰마다 jti(랜덤 ID)를 넣어 같은 초에 발급된 토큰도 서로 다름
- 만료는 TokenExpiredError, 나머지 실패는 TokenInvalidError

관련 파일:
- app.core.config        : 시크릿 / 만료 / issuer / audience 설정
- app.core.deps          : Access Token 검증 (Access Guard)
- app.services.auth      : 로그인 / 재발급 흐름

"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Literal, Optional

from jose import ExpiredSignatureError, JWTError, jwt
from jose.exceptions import JOSEError

from app.core.config import Settings
from app.core.errors import TokenExpiredError, TokenInvalidError

TokenType = Literal["access", "refresh"]


@dataclass(frozen=True)
class AccessClaims:
    user_id: str
    email: str
    role: str
    username: str


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    refresh_expires_at: datetime


class TokenService:
    def __init__(self, settings: Settings):
        self._access_secret = settings.SECRET_KEY
        self._refresh_secret = settings.REFRESH_SECRET_KEY
        self._algorithm = settings.ALGORITHM
        self._issuer = settings.JWT_ISSUER
        self._audience = settings.JWT_AUDIENCE
        self.access_ttl = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        self.refresh_ttl = timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)

    def _encode(self, *, subject: str, token_type: TokenType, expires_delta: timedelta,
                secret: str, extra: Optional[dict] = None) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": subject,
            "type": token_type,
            "iss": self._issuer,
            "aud": self._audience,
            "iat": int(now.timestamp()),
            "exp": int((now + expires_delta).timestamp()),
            "jti": uuid.uuid4().hex,
        }
        if extra:
            payload.update(extra)
        return jwt.encode(payload, secret, algorithm=self._algorithm)

    def _decode(self, token: str, *, secret: str, token_type: TokenType) -> dict[str, Any]:
        label = "Access" if token_type == "access" else "Refresh"
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[self._algorithm],
                audience=self._audience,
                issuer=self._issuer,
            )
        except ExpiredSignatureError:
            raise TokenExpiredError(f"{label} token expired")
        except JWTError:
            raise TokenInvalidError(f"Invalid {label.lower()} token")

        if payload.get("type") != token_type or not payload.get("sub"):
            raise TokenInvalidError(f"Invalid {label.lower()} token")
        return payload

    def issue_access_token(self, claims: AccessClaims) -> str:
        return self._encode(
            subject=claims.user_id,
            token_type="access",
            expires_delta=self.access_ttl,
            secret=self._access_secret,
            extra={
                "userId": claims.user_id,
                "email": claims.email,
                "role": claims.role,
                "username": claims.username,
            },
        )

    def issue_refresh_token(self, user_id: str) -> str:
        return self._encode(
            subject=user_id,
            token_type="refresh",
            expires_delta=self.refresh_ttl,
            secret=self._refresh_secret,
            extra={"userId": user_id},
        )

    def issue_pair(self, claims: AccessClaims) -> TokenPair:
        refresh = self.issue_refresh_token(claims.user_id)
        return TokenPair(
            access_token=self.issue_access_token(claims),
            refresh_token=refresh,
            refresh_expires_at=self.get_token_expiry(refresh) or datetime.now(timezone.utc) + self.refresh_ttl,
        )

    def verify_access_token(self, token: str) -> AccessClaims:
        payload = self._decode(token, secret=self._access_secret, token_type="access")
        return AccessClaims(
            user_id=payload["sub"],
            email=payload.get("email", ""),
            role=payload.get("role", ""),
            username=payload.get("username", ""),
        )

    def verify_refresh_token(self, token: str) -> str:
        """Refresh Token을 검증하고 user_id(sub)를 반환한다."""
        payload = self._decode(token, secret=self._refresh_secret, token_type="refresh")
        return payload["sub"]

    @staticmethod
    def get_token_expiry(token: str) -> Optional[datetime]:
        # 만료 시각 조회 전용 (서명 미검증)
        try:
            exp = jwt.get_unverified_claims(token).get("exp")
        except JOSEError:
            return None
        if exp is None:
            return None
        return datetime.fromtimestamp(int(exp), tz=timezone.utc)

    @classmethod
    def is_token_expired(cls, token: str) -> bool:
        expiry = cls.get_token_expiry(token)
        return expiry is None or expiry <= datetime.now(timezone.utc)
