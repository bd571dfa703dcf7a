"""Retry classification and backoff for both API services.

* :func:`should_retry` decides whether another attempt is allowed.
* :func:`compute_backoff` returns the sleep before that attempt.
* :func:`parse_retry_after` reads a numeric ``Retry-After`` header.
"""

from __future__ import annotations

import random

import httpx

# Statuses both Notion and Google document as transient.
RETRYABLE_STATUSES: frozenset[int] = frozenset({429, 500, 502, 503, 504})

RETRYABLE_EXCEPTIONS: tuple[type[Exception], ...] = (
    httpx.TimeoutException,
    httpx.NetworkError,
)


def should_retry(
    status_code: int | None,
    exception: Exception | None,
    attempt: int,
    max_attempts: int,
) -> bool:
    """Return ``True`` if attempt number ``attempt + 1`` may be made.

    Parameters
    ----------
    status_code:
        Status of the failed response, or ``None`` when no response arrived.
    exception:
        The transport exception, or ``None`` when a response arrived.
    attempt:
        Zero-based index of the attempt that just failed.
    max_attempts:
        Total attempts allowed, the first one included.
    """
    if attempt + 1 >= max_attempts:
        return False
    if exception is not None:
        return isinstance(exception, RETRYABLE_EXCEPTIONS)
    return status_code in RETRYABLE_STATUSES


def retry_reason(status_code: int | None) -> str:
    """Metric tag describing why a request is being retried."""
    if status_code is None:
        return "network_error"
    if status_code == 429:
        return "rate_limited"
    return "server_error"


def compute_backoff(
    attempt: int,
    base: float = 1.0,
    maximum: float = 60.0,
    jitter: bool = True,
    retry_after: float | None = None,
) -> float:
    """Seconds to wait before retrying.

    A server-supplied *retry_after* wins over the exponential schedule
    ``base * 2 ** attempt`` (capped at *maximum*).  With *jitter* the
    delay is scaled by a random factor in ``[0.5, 1.0)``.
    """
    delay = retry_after if retry_after is not None else min(base * (2 ** attempt), maximum)
    if jitter:
        delay *= 0.5 + random.random() * 0.5
    return delay


def parse_retry_after(response: httpx.Response) -> float | None:
    """The ``Retry-After`` header in seconds, or ``None`` if absent or not numeric."""
    raw = response.headers.get("retry-after")
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        return None
