"""
logging.py

structlog 기반 구조화 로깅 설정.

- configure_logging() 은 앱 시작 시 한 번만 호출
- 운영(production)에서는 JSON, 개발에서는 콘솔 렌더러 사용
- password / token / secret / email 키는 값 일부만 남기고 마스킹

"""

import logging
from typing import Any, Dict

import structlog
import structlog.typing

_REDACT_KEYS = ("password", "secret", "token", "authorization", "email")


def _redact_pii(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in list(event_dict.items()):
        if key == "event":
            continue
        if any(part in key.lower() for part in _REDACT_KEYS) and isinstance(value, str):
            event_dict[key] = value[:2] + "***" + value[-2:] if len(value) > 4 else "***"
    return event_dict


def configure_logging(level: str = "INFO", json_output: bool = False) -> None:
    log_level = getattr(logging, level.upper(), logging.INFO)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        _redact_pii,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        structlog.processors.format_exc_info,
    ]
    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.typing.FilteringBoundLogger:
    return structlog.get_logger(name)
