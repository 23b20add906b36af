"""
Keep shop credentials out of logs and error messages.
"""

import re
from typing import Any, Dict

REDACTED = "***REDACTED***"

# Matched case-insensitively against dict keys
SENSITIVE_KEY_PARTS = ("token", "secret", "password", "api_key")

_TOKEN_PATTERNS = (
    # Admin API / custom app / partner / shared-secret tokens
    (re.compile(r"shp(at|ca|pa|ss)_[a-fA-F0-9]{16,}"), r"shp\1_***"),
    (re.compile(r'access_token["\']?\s*[:=]\s*["\']?[^"\'\s,}]+'), 'access_token="***"'),
    (re.compile(r"(X-Shopify-Access-Token:\s*)\S+", re.IGNORECASE), r"\1***"),
)


def _is_sensitive(key: Any) -> bool:
    name = str(key).lower()
    return any(part in name for part in SENSITIVE_KEY_PARTS)


def _sanitize_value(value: Any) -> Any:
    if isinstance(value, dict):
        return sanitize_dict_for_logging(value)
    if isinstance(value, list):
        return [_sanitize_value(item) for item in value]
    return value


def sanitize_dict_for_logging(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Copy of a (possibly nested) dict with credential-like values redacted.

    Keys containing token, secret, password or api_key are replaced, at any
    depth and inside lists. The input is not modified.
    """
    return {
        key: REDACTED if _is_sensitive(key) else _sanitize_value(value)
        for key, value in data.items()
    }


def sanitize_string_for_logging(text: str) -> str:
    """Mask Shopify access tokens found in free text (e.g. an error body)."""
    if not text:
        return text

    for pattern, replacement in _TOKEN_PATTERNS:
        text = pattern.sub(replacement, text)
    return text
