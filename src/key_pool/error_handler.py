# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

import re
from typing import Optional

from litellm.exceptions import (
    APIConnectionError,
    InternalServerError,
    RateLimitError,
    ServiceUnavailableError,
    Timeout,
)


class ConfigurationError(ValueError):
    """Raised when the pool cannot be built from the configured credentials."""


class NoAvailableKeyError(RuntimeError):
    """Raised by callers of the pool when every key is cooling down."""

    def __init__(self, message: str, retry_after: float = 0.0):
        super().__init__(message)
        self.retry_after = retry_after


# Provider-specific ways of saying how long to back off, e.g. Gemini's
# '"retryDelay": "48s"'.
RETRY_DELAY_PATTERNS = [
    r"retry_?delay.*?(\d+)",
    r"retry[\s_-]?after\W*(\d+)",
    r"wait.*?(\d+)\s*seconds?",
]


def mask_credential(credential: Optional[str]) -> str:
    """Returns a log-safe form of a credential showing only its last 6 characters."""
    if not credential:
        return "<none>"
    return f"...{credential[-6:]}"


def is_rate_limit_error(e: Exception) -> bool:
    """Checks if the exception is a rate limit error."""
    if isinstance(e, RateLimitError):
        return True
    return getattr(e, "status_code", None) == 429


def is_server_error(e: Exception) -> bool:
    """Checks if the exception is a temporary server-side error."""
    return isinstance(
        e, (ServiceUnavailableError, APIConnectionError, InternalServerError, Timeout)
    )


def _retry_after_header(e: Exception) -> Optional[int]:
    response = getattr(e, "response", None)
    headers = getattr(response, "headers", None)
    if not headers:
        return None
    value = headers.get("retry-after")
    if value is None:
        return None
    try:
        return max(0, int(float(value)))
    except (TypeError, ValueError):
        return None


def get_retry_after(e: Exception) -> Optional[int]:
    """
    Extracts the provider-suggested cooldown from a rate limit error.

    The Retry-After header wins when present; otherwise the error text is
    searched for a retry delay. Returns None when the provider gave no hint.
    """
    from_header = _retry_after_header(e)
    if from_header is not None:
        return from_header

    error_str = str(e).lower()
    for pattern in RETRY_DELAY_PATTERNS:
        match = re.search(pattern, error_str, re.IGNORECASE)
        if match:
            try:
                return int(match.group(1))
            except (ValueError, IndexError):
                continue
    return None
