from __future__ import annotations

import logging

from app.ai.errors import AIError, RateLimitedError, TransportError

logger = logging.getLogger(__name__)

RATE_LIMIT_MARKERS = (
    "rate limit",
    "rate_limit",
    "quota exceeded",
    "too many requests",
    "429",
    "resource exhausted",
    "exhausted",
    "limit exceeded",
    "requests per minute",
)


def _error_text(error: object) -> str:
    if isinstance(error, BaseException):
        return f"{type(error).__name__}: {error}".lower()
    return str(error).lower()


def is_rate_limit_error(error: object) -> bool:
    """Heuristic check for capacity exhaustion in free-form provider error text."""
    combined = _error_text(error)
    matched = any(marker in combined for marker in RATE_LIMIT_MARKERS)
    if matched:
        logger.debug("rate_limit_detected message=%s", combined[:200])
    return matched


def is_retryable_error(error: object, *, failover_on_transport: bool = True) -> bool:
    """Decide whether a failed attempt should move on to the next catalog entry.

    Typed errors from the adapters are dispatched on their class; the substring
    heuristic only applies to errors the adapters did not classify.
    """
    if isinstance(error, RateLimitedError):
        return True
    if isinstance(error, TransportError):
        if error.status_code == 429:
            return True
        return failover_on_transport and error.transient
    if isinstance(error, AIError) and type(error) is not AIError:
        return False
    return is_rate_limit_error(error)
