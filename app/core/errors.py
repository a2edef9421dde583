"""
errors.py

도메인 예외(Error) 정의 파일.

서비스 계층은 HTTPException 대신 이 파일의 예외를 발생시키고,
app.main 에 등록된 예외 핸들러가 {"detail": message} 형태의
HTTP 응답으로 변환한다.

설계 원칙:
- 모든 예외는 HTTP 상태 코드와 사람이 읽을 수 있는 메시지를 가진다
- "계정 없음"과 "비밀번호 불일치"는 같은 예외(InvalidCredentialsError)로 통일
- 내부 상세(stack trace 등)는 응답에 포함하지 않는다

"""

from starlette import status


class AppError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.message
        super().__init__(self.message)


class BadRequestError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Bad request"


class InvalidStatusTransition(BadRequestError):
    message = "Invalid account status transition"


class UnauthorizedError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Not authenticated"


class TokenExpiredError(UnauthorizedError):
    message = "Token has expired"


class TokenInvalidError(UnauthorizedError):
    message = "Invalid token"


class InvalidCredentialsError(UnauthorizedError):
    message = "Invalid email/username or password"


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "You do not have permission to perform this action"


class EmailNotVerifiedError(ForbiddenError):
    message = "Email address is not verified"


class AccountDeactivatedError(ForbiddenError):
    message = "Account is deactivated. Please contact support"


class AccountBlockedError(ForbiddenError):
    message = "Account is blocked. Please contact support"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Resource not found"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    message = "Resource already exists"


class EmailDeliveryError(AppError):
    message = "Failed to send email"
