"""Logging utilities with privacy and observability features.

Provides:
- PII redaction for phone numbers and message bodies
- Structured logging helpers
- Shell session ID context management
"""

import logging
import re
import uuid
from contextvars import ContextVar
from typing import Any

# Context variable for the shell session ID (async-safe)
_session_id_var: ContextVar[str | None] = ContextVar("session_id", default=None)

# Runs of 7+ digits, optionally prefixed with "+", with common separators
PHONE_NUMBER_PATTERN = re.compile(r"\+?\d[\d\s().-]{5,}\d")

# Fields whose values are free-form user text
BODY_FIELDS = {"body", "message_body", "text"}
BODY_PREVIEW_LENGTH = 12


def _mask_number(match: re.Match[str]) -> str:
    digits = re.sub(r"\D", "", match.group(0))
    if len(digits) < 7:
        return match.group(0)
    return f"***{digits[-4:]}"


def redact_pii(text: str | None) -> str:
    """Redact phone numbers from text, keeping the last four digits.

    Args:
        text: Text that may contain phone numbers

    Returns:
        Text with phone numbers masked
    """
    if text is None:
        return ""

    if not isinstance(text, str):
        text = str(text)

    return PHONE_NUMBER_PATTERN.sub(_mask_number, text)


def preview_body(text: str | None) -> str:
    """Shorten a message body for logging.

    Args:
        text: Message body

    Returns:
        At most BODY_PREVIEW_LENGTH characters followed by an ellipsis
    """
    if not text:
        return ""
    if len(text) <= BODY_PREVIEW_LENGTH:
        return text
    return text[:BODY_PREVIEW_LENGTH] + "..."


def set_session_id(session_id: str | None = None) -> str:
    """Set the shell session ID for the current context.

    Args:
        session_id: Optional session ID (generates one if not provided)

    Returns:
        The session ID that was set
    """
    if session_id is None:
        session_id = str(uuid.uuid4())

    _session_id_var.set(session_id)
    return session_id


def get_session_id() -> str | None:
    """Get the shell session ID for the current context."""
    return _session_id_var.get()


def clear_session_id() -> None:
    """Clear the shell session ID from the current context."""
    _session_id_var.set(None)


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    **kwargs: Any,
) -> None:
    """Log a message with structured context (session_id, verb, etc.).

    Args:
        logger: Logger instance
        level: Log level (logging.INFO, logging.ERROR, etc.)
        message: Log message
        **kwargs: Additional structured fields to include; `exc_info` is
            passed through to the logger instead
    """
    exc_info = kwargs.pop("exc_info", None)
    parts = [message]

    session_id = get_session_id()
    if session_id:
        parts.append(f"session_id={session_id}")

    for key, value in kwargs.items():
        if key in BODY_FIELDS:
            safe_value = preview_body(str(value))
        else:
            safe_value = redact_pii(str(value))
        parts.append(f"{key}={safe_value}")

    logger.log(level, " | ".join(parts), exc_info=exc_info)


def log_info(logger: logging.Logger, message: str, **kwargs: Any) -> None:
    """Log an info message with structured context."""
    log_with_context(logger, logging.INFO, message, **kwargs)


def log_warning(logger: logging.Logger, message: str, **kwargs: Any) -> None:
    """Log a warning message with structured context."""
    log_with_context(logger, logging.WARNING, message, **kwargs)


def log_error(logger: logging.Logger, message: str, **kwargs: Any) -> None:
    """Log an error message with structured context."""
    log_with_context(logger, logging.ERROR, message, **kwargs)


def log_debug(logger: logging.Logger, message: str, **kwargs: Any) -> None:
    """Log a debug message with structured context."""
    log_with_context(logger, logging.DEBUG, message, **kwargs)
