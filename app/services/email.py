"""
services/email.py

이메일 발송(Notifier) 서비스.

- 이메일 인증 메일 / 비밀번호 재설정 메일 발송
- 성공 여부만 bool 로 반환 (재시도는 하지 않음)
- SMTP 설정이 없으면(개발 환경) 실제 발송 대신 로그만 남기고 성공 처리

"""

import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional, Protocol

from app.core.config import Settings
from app.core.logging import get_logger

logger = get_logger(__name__)


class Notifier(Protocol):
    def send_verification_email(self, email: str, verification_url: str) -> bool: ...

    def send_password_reset_email(self, email: str, reset_url: str) -> bool: ...


class UrlBuilder:
    """원본 토큰으로 메일 링크(절대 URL)를 만든다."""

    def __init__(self, settings: Settings):
        self.base_url = settings.FRONTEND_BASE_URL.rstrip("/")

    def verification_url(self, token: str) -> str:
        return f"{self.base_url}/auth/verify-email?token={token}"

    def password_reset_url(self, token: str) -> str:
        return f"{self.base_url}/auth/reset-password?token={token}"


def _redact_email(email: str) -> str:
    if "@" not in email:
        return "redacted"
    local, domain = email.split("@", 1)
    return f"{local[:2]}***@{domain}"


class EmailService:
    def __init__(
        self,
        *,
        smtp_host: Optional[str] = None,
        smtp_port: int = 587,
        smtp_user: Optional[str] = None,
        smtp_password: Optional[str] = None,
        smtp_use_tls: bool = True,
        from_email: Optional[str] = None,
        from_name: str = "User Management",
        timeout: float = 10.0,
    ) -> None:
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_password = smtp_password
        self.smtp_use_tls = smtp_use_tls
        self.from_email = from_email or smtp_user
        self.from_name = from_name
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "EmailService":
        return cls(
            smtp_host=settings.SMTP_HOST,
            smtp_port=settings.SMTP_PORT,
            smtp_user=settings.SMTP_USER,
            smtp_password=settings.SMTP_PASSWORD,
            smtp_use_tls=settings.SMTP_USE_TLS,
            from_email=settings.EMAIL_FROM,
            from_name=settings.EMAIL_FROM_NAME,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.smtp_host and self.from_email)

    def _send_email(self, to_email: str, subject: str, html_body: str, text_body: str) -> bool:
        if not self.is_configured:
            # 개발 환경: 실제 발송 대신 로그
            logger.info("email_dev_mode", to=_redact_email(to_email), subject=subject)
            return True

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self.from_name} <{self.from_email}>"
        msg["To"] = to_email
        msg.attach(MIMEText(text_body, "plain"))
        msg.attach(MIMEText(html_body, "html"))

        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.timeout) as server:
                if self.smtp_use_tls:
                    server.starttls(context=ssl.create_default_context())
                if self.smtp_user and self.smtp_password:
                    server.login(self.smtp_user, self.smtp_password)
                server.sendmail(self.from_email, [to_email], msg.as_string())
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("email_send_failed", to=_redact_email(to_email), subject=subject, error=str(exc))
            return False

        logger.info("email_sent", to=_redact_email(to_email), subject=subject)
        return True

    def send_verification_email(self, email: str, verification_url: str) -> bool:
        text = (
            "Please verify your email address by opening the link below.\n\n"
            f"{verification_url}\n\n"
            "If you did not create an account, you can ignore this email."
        )
        html = (
            "<p>Please verify your email address.</p>"
            f'<p><a href="{verification_url}">Verify email</a></p>'
            "<p>If you did not create an account, you can ignore this email.</p>"
        )
        return self._send_email(email, "Please Verify Your Email", html, text)

    def send_password_reset_email(self, email: str, reset_url: str) -> bool:
        text = (
            "A password reset was requested for your account.\n\n"
            f"{reset_url}\n\n"
            "The link expires soon. If you did not request it, ignore this email."
        )
        html = (
            "<p>A password reset was requested for your account.</p>"
            f'<p><a href="{reset_url}">Reset password</a></p>'
            "<p>The link expires soon. If you did not request it, ignore this email.</p>"
        )
        return self._send_email(email, "Reset Your Password", html, text)
