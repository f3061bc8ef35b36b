"""Sensitive data sanitization for logging.

Recursively redacts credentials and tokens from data structures before
they reach a log line.
"""

from typing import Any

from gateway.observability.constants import (
    REDACTED_VALUE,
    SENSITIVE_FIELD_PATTERNS,
    SENSITIVE_FIELDS,
)


def _is_sensitive_field(field_name: str) -> bool:
    field_lower = field_name.lower()

    if field_lower in SENSITIVE_FIELDS:
        return True

    return any(pattern in field_lower for pattern in SENSITIVE_FIELD_PATTERNS)


def sanitize(data: Any, max_depth: int = 10) -> Any:
    """Recursively sanitize sensitive data from a structure.

    Args:
        data: The data to sanitize (dict, list, or scalar).
        max_depth: Maximum recursion depth to prevent infinite loops.

    Returns:
        Sanitized copy of the data with sensitive fields redacted.
    """
    if max_depth <= 0:
        return REDACTED_VALUE

    if isinstance(data, dict):
        return {
            k: REDACTED_VALUE if _is_sensitive_field(str(k)) else sanitize(v, max_depth - 1)
            for k, v in data.items()
        }

    if isinstance(data, list):
        return [sanitize(item, max_depth - 1) for item in data]

    if isinstance(data, tuple):
        return tuple(sanitize(item, max_depth - 1) for item in data)

    return data


def sanitize_headers(headers: dict[str, str]) -> dict[str, str]:
    """Sanitize HTTP headers, redacting sensitive ones."""
    sensitive_headers = {"authorization", "cookie", "x-api-key", "x-auth-token"}

    return {k: REDACTED_VALUE if k.lower() in sensitive_headers else v for k, v in headers.items()}
