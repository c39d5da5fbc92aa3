"""
Security Logging Utilities
Prevents log injection (CWE-117) when request values reach log records.
"""

import re
from typing import Any, Iterable, Optional

# Patterns for detecting potentially malicious content
LOG_INJECTION_PATTERNS = [
    r"[\r\n]",  # CRLF injection
    r"%0[ad]",  # URL-encoded CRLF
    r"\\[rn]",  # Escaped newlines
    r"\x00",  # Null bytes
    r"[\x01-\x08\x0b\x0c\x0e-\x1f\x7f]",  # Control characters
]

SAFE_LOG_PATTERN = re.compile(r"^[a-zA-Z0-9._@\-\s]+$")
UUID_PATTERN = re.compile(r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$")


def sanitize_for_log(value: Optional[Any], max_length: int = 100, allow_special: bool = False) -> str:
    """
    Sanitize any value for safe logging.

    Args:
        value: Value to sanitize
        max_length: Maximum length of output
        allow_special: Whether to allow some special characters

    Returns:
        str: Sanitized string safe for logging
    """
    if value is None:
        return "null"

    str_value = str(value)

    if len(str_value) > max_length:
        str_value = str_value[:max_length] + "..."

    for pattern in LOG_INJECTION_PATTERNS:
        str_value = re.sub(pattern, "", str_value)

    if not allow_special and not SAFE_LOG_PATTERN.match(str_value):
        str_value = re.sub(r"[^a-zA-Z0-9._@\-\s]", "", str_value)

    if not str_value.strip():
        return "[sanitized]"

    return str_value.strip()


def sanitize_id_for_log(id_value: Optional[Any]) -> str:
    """Sanitize an identifier; UUIDs pass through untouched."""
    if id_value is None:
        return "[no_id]"

    str_id = str(id_value)
    if UUID_PATTERN.match(str_id) or str_id.isdigit():
        return str_id

    return sanitize_for_log(str_id, max_length=50)


def sanitize_ids_for_log(id_values: Iterable[Any], max_items: int = 10) -> str:
    """Render a list of identifiers as a comma separated, sanitized string."""
    values = list(id_values)
    rendered = ",".join(sanitize_id_for_log(v) for v in values[:max_items])
    if len(values) > max_items:
        rendered += f",...(+{len(values) - max_items})"
    return rendered
