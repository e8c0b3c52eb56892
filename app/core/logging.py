from fastapi import Request
import logging
from typing import Any

from rich.logging import RichHandler

from app.config.settings import LoggingConfig

logger = logging.getLogger(__name__)

_configured = False


def setup_logging(logging_config: LoggingConfig) -> None:
    """Install the root handler once (rich console output unless disabled)"""
    global _configured
    if _configured:
        return

    if logging_config.enable_rich:
        handler = RichHandler(rich_tracebacks=True, show_path=False)
        handler.setFormatter(logging.Formatter(logging_config.format))
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s - %(levelname)s - %(name)s - %(message)s"))

    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(logging_config.level)
    _configured = True


def mask_email(email: Any) -> str:
    """j***@example.com style masking for log lines"""
    if not email or "@" not in str(email):
        return "-"
    local, _, domain = str(email).partition("@")
    return f"{local[:1]}***@{domain}"


def log_with_context(
    request: Request,
    level: int,
    message: str,
    **kwargs: Any
) -> None:
    """
    Log with request context.
    Automatically includes request_id for tracing.
    """
    extra = {
        "request_id": getattr(request.state, "request_id", "unknown"),
        **kwargs
    }
    logger.log(level, f"[{extra['request_id']}] {message}", extra=extra)

def log_info(request: Request, message: str, **kwargs: Any) -> None:
    log_with_context(request, logging.INFO, message, **kwargs)

def log_error(request: Request, message: str, **kwargs: Any) -> None:
    log_with_context(request, logging.ERROR, message, **kwargs)

def log_warning(request: Request, message: str, **kwargs: Any) -> None:
    log_with_context(request, logging.WARNING, message, **kwargs)

def log_debug(request: Request, message: str, **kwargs: Any) -> None:
    log_with_context(request, logging.DEBUG, message, **kwargs)
