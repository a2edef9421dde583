"""
config.py

애플리케이션 전역 설정(Configuration) 관리 파일.

이 파일은 .env 환경 변수들을 Pydantic BaseSettings를 통해 로드하여
애플리케이션 전반에서 공통으로 사용하는 설정 값을 제공한다.

주요 설정 항목:
- 데이터베이스 연결 정보
- JWT 시크릿 / issuer / audience 및 만료 정책
- 비밀번호 해시 비용(bcrypt rounds), 이메일 인증 / 비밀번호 재설정 토큰 TTL
- 쿠키 보안 옵션, CORS 허용 도메인
- SMTP 및 로깅 옵션

설계 원칙:
- 모든 환경 변수는 이 파일을 통해서만 접근
- Settings 인스턴스는 get_settings()로 한 번만 만들고,
  TokenService / PasswordHasher / AuthService 등에 생성자 인자로 주입
- 설정 값은 런타임 중 변경되지 않는 불변 객체로 취급

관련 파일:
- app.main               : CORS / 로깅 초기화 시 설정 사용
- app.core.tokens        : JWT 시크릿 / 만료 설정 사용
- app.core.security      : bcrypt rounds / opaque token TTL 사용
- app.db.session         : DATABASE_URL 사용

"""

from functools import lru_cache
from typing import List, Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MIN_BCRYPT_ROUNDS = 10


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    ENVIRONMENT: Literal["development", "production", "test"] = "development"

    DATABASE_URL: str
    TEST_DATABASE_URL: str | None = None

    # access / refresh 시크릿은 반드시 분리
    SECRET_KEY: str = Field(min_length=32)
    REFRESH_SECRET_KEY: str = Field(min_length=32)
    ALGORITHM: str = "HS256"
    JWT_ISSUER: str = "user-management-api"
    JWT_AUDIENCE: str = "user-management-client"

    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    REFRESH_TOKEN_EXPIRE_DAYS: int = 30
    MAX_REFRESH_TOKENS: int = Field(default=5, ge=1)

    # 10 미만은 test 환경에서만 허용
    BCRYPT_ROUNDS: int = Field(default=12, ge=4, le=31)
    EMAIL_VERIFICATION_EXPIRE_HOURS: int = 24
    PASSWORD_RESET_EXPIRE_MINUTES: int = 60

    # 가입 직후 상태: 이메일 인증 대기 또는 바로 활성
    REGISTRATION_STATUS: Literal["pending_verification", "active"] = "pending_verification"

    # 쿠키/배포 옵션
    # - COOKIE_SECURE: None이면 production 환경에서만 True
    # - COOKIE_SAMESITE: refresh 쿠키는 "strict" 기본값
    COOKIE_SECURE: bool | None = None
    COOKIE_SAMESITE: Literal["lax", "strict", "none"] = "strict"
    COOKIE_DOMAIN: str | None = None

    # CORS 허용 도메인 (프론트엔드 주소)
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # 인증/재설정 메일 링크의 기준 주소
    FRONTEND_BASE_URL: str = "http://localhost:3000"

    SMTP_HOST: str | None = None
    SMTP_PORT: int = 587
    SMTP_USER: str | None = None
    SMTP_PASSWORD: str | None = None
    SMTP_USE_TLS: bool = True
    EMAIL_FROM: str | None = None
    EMAIL_FROM_NAME: str = "User Management"

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool | None = None

    DEFAULT_ADMIN_NAME: str = "Admin User"
    DEFAULT_ADMIN_USERNAME: str = "admin"
    DEFAULT_ADMIN_EMAIL: str = "admin@localhost.com"
    DEFAULT_ADMIN_PASSWORD: str = "Admin@123"

    @model_validator(mode="after")
    def check_security(self) -> "Settings":
        if self.SECRET_KEY == self.REFRESH_SECRET_KEY:
            raise ValueError("SECRET_KEY and REFRESH_SECRET_KEY must differ")
        if self.ENVIRONMENT != "test" and self.BCRYPT_ROUNDS < MIN_BCRYPT_ROUNDS:
            raise ValueError(f"BCRYPT_ROUNDS must be at least {MIN_BCRYPT_ROUNDS}")
        return self

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def cookie_secure(self) -> bool:
        if self.COOKIE_SECURE is None:
            return self.is_production
        return self.COOKIE_SECURE

    @property
    def log_json(self) -> bool:
        if self.LOG_JSON is None:
            return self.is_production
        return self.LOG_JSON

    @property
    def refresh_cookie_max_age(self) -> int:
        return self.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60


# 애플리케이션 전역에서 사용하는 Settings 인스턴스
# 실행 시 한 번만 생성됨
@lru_cache
def get_settings() -> Settings:
    return Settings()
