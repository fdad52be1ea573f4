"""Security utilities for caprouter.

Provides:
- API key masking for logs and error messages
- Sensitive field/value detection used by the logging processors
- Size limits for backend output

Security Level: MEDIUM
"""

from typing import Any

# Maximum size accepted from an execution backend (DoS prevention)
MAX_BACKEND_OUTPUT_LENGTH = 100_000  # 100KB

# Sensitive field names that should be masked
SENSITIVE_FIELD_NAMES = frozenset(
    {
        "password",
        "api_key",
        "apikey",
        "api-key",
        "secret",
        "token",
        "credential",
        "auth",
        "private",
        "bearer",
        "authorization",
    }
)

# Sensitive value prefixes that indicate secrets
SENSITIVE_PREFIXES = (
    "sk-",
    "pk-",
    "api-",
    "bearer ",
    "token ",
    "secret_",
    "AIza",
)


def mask_api_key(api_key: str, visible_chars: int = 4) -> str:
    """Mask an API key for safe logging/display.

    Args:
        api_key: The API key to mask.
        visible_chars: Number of trailing characters to keep.

    Returns:
        Masked key like "sk-...cdef", or "<empty>".

    Example:
        >>> mask_api_key("sk-1234567890abcdef")
        'sk-...cdef'
    """
    if not api_key:
        return "<empty>"

    if len(api_key) <= visible_chars + 4:
        return "*" * len(api_key)

    if "-" in api_key[:6]:
        prefix_end = api_key.index("-") + 1
        prefix = api_key[:prefix_end]
        return f"{prefix}...{api_key[-visible_chars:]}"

    return f"...{api_key[-visible_chars:]}"


def is_sensitive_field(field_name: str) -> bool:
    """Check if a field name indicates sensitive data."""
    if not field_name:
        return False

    field_lower = field_name.lower()
    return any(sensitive in field_lower for sensitive in SENSITIVE_FIELD_NAMES)


def is_sensitive_value(value: Any) -> bool:
    """Check if a value looks like a secret (API key, bearer token, ...)."""
    if not isinstance(value, str):
        return False

    value_lower = value.lower()
    return any(value_lower.startswith(prefix.lower()) for prefix in SENSITIVE_PREFIXES)


def truncate_output(text: str, max_length: int = MAX_BACKEND_OUTPUT_LENGTH) -> tuple[str, bool]:
    """Cap backend output at ``max_length`` characters.

    Returns:
        Tuple of (possibly truncated text, whether truncation happened).
    """
    if len(text) <= max_length:
        return text, False
    return text[:max_length], True
