"""Redaction helpers for safe logging.

Sender phone numbers and free text typed by chat users must never reach the
logs verbatim. Anything external goes through ``safe_log_context``.
"""

import hashlib
import re
from typing import Any

_PHONE_PATTERN = re.compile(r"\+?\d[\d\s\-()]{8,}\d")
_EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")

_REDACTED = "[REDACTED]"


def redact_string(value: str) -> str:
    """Replace phone numbers and email addresses in a string."""
    result = _PHONE_PATTERN.sub(_REDACTED, value)
    return _EMAIL_PATTERN.sub(_REDACTED, result)


def redact_value(value: Any) -> str:
    """Render any value as a log-safe string."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return redact_string(value)
    if isinstance(value, dict):
        # structure only
        return f"dict(keys={list(value.keys())})"
    if isinstance(value, (list, tuple)):
        return f"list(len={len(value)})"
    return f"<{type(value).__name__}>"


def hash_identifier(value: str) -> str:
    """Non-reversible short hash for correlating a sender across log lines."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()[:12]


def id_prefix(message_id: str, length: int = 12) -> str:
    """Shorten provider message IDs for logs."""
    return message_id[:length] if len(message_id) > length else message_id


def safe_log_context(**kwargs: Any) -> dict[str, str]:
    """Build a context dict safe for logging. All values are redacted."""
    return {k: redact_value(v) for k, v in kwargs.items()}
