"""
Secret Redaction

Scrubs credentials from tool output and audit details.
"""

import re
from typing import Any

REDACTED = "[REDACTED]"

SENSITIVE_KEYS = ("password", "secret", "token", "api_key", "apikey", "authorization")

_OUTPUT_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"Bearer\s+[A-Za-z0-9\-._~+/]+=*"), f"Bearer {REDACTED}"),
    (re.compile(r"password['\":\s]*['\"]?[^'\"\s,}]+", re.IGNORECASE), f"password: {REDACTED}"),
    (re.compile(r"api[_-]?key['\":\s]*['\"]?[^'\"\s,}]+", re.IGNORECASE), f"api_key: {REDACTED}"),
    (re.compile(r"secret['\":\s]*['\"]?[^'\"\s,}]+", re.IGNORECASE), f"secret: {REDACTED}"),
]


def redact_text(text: str) -> str:
    """Replace bearer tokens, passwords, API keys and secrets in free text."""
    for pattern, replacement in _OUTPUT_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


def redact_output(value: Any) -> Any:
    """
    Redact strings inside a tool result.

    Walks dicts, lists and tuples; other values are returned unchanged.
    """
    if isinstance(value, str):
        return redact_text(value)
    if isinstance(value, dict):
        return {k: redact_output(v) for k, v in value.items()}
    if isinstance(value, list):
        return [redact_output(v) for v in value]
    if isinstance(value, tuple):
        return tuple(redact_output(v) for v in value)
    return value


def redact_mapping(details: dict[str, Any]) -> dict[str, Any]:
    """Mask values whose key looks sensitive, recursively."""
    sanitized: dict[str, Any] = {}
    for key, value in details.items():
        if any(s in str(key).lower() for s in SENSITIVE_KEYS):
            sanitized[key] = REDACTED
        elif isinstance(value, dict):
            sanitized[key] = redact_mapping(value)
        else:
            sanitized[key] = value
    return sanitized
