"""Retry decisions and wait-time computation.

Two pure functions used by the transport layer:

* :func:`should_retry` -- decide whether a failed attempt is transient and
  the attempt budget still allows another send.
* :func:`wait_time` -- compute how long to wait before the next attempt,
  honouring a server-supplied rate-limit reset time when there is one.
"""

from __future__ import annotations

import random
import time

import httpx

from .rate_limit import RateLimit

# HTTP status codes that are safe to retry.  Any other 5xx is treated the
# same way by :func:`is_retryable_status`.
_RETRYABLE_STATUSES: frozenset[int] = frozenset({429, 500, 502, 503, 504})

# Network-level exceptions that warrant a retry.
_RETRYABLE_EXCEPTIONS: tuple[type[Exception], ...] = (
    httpx.TimeoutException,
    httpx.NetworkError,
    httpx.RemoteProtocolError,
)

# 2**64 seconds is beyond any sane cap; larger exponents would overflow the
# float multiplication.
_MAX_EXPONENT = 64


def is_retryable_status(status_code: int) -> bool:
    """Return ``True`` for 429 and every 5xx status."""
    return status_code == 429 or status_code >= 500


def should_retry(
    status_code: int | None,
    exception: Exception | None,
    attempt: int,
    max_attempts: int,
) -> bool:
    """Decide whether a request should be retried.

    Parameters
    ----------
    status_code:
        HTTP status of the response, or ``None`` if no response arrived.
    exception:
        The exception raised by the send, or ``None`` if a response arrived.
    attempt:
        The current attempt number (0-indexed).
    max_attempts:
        Maximum total sends allowed, including the first.

    Returns
    -------
    bool
        ``True`` if another attempt should be made.
    """
    if attempt + 1 >= max_attempts:
        return False

    if exception is not None:
        return isinstance(exception, _RETRYABLE_EXCEPTIONS)

    if status_code is not None:
        return is_retryable_status(status_code)

    return False


def wait_time(
    attempt: int,
    rate_limit: RateLimit | None = None,
    *,
    wait_min: float = 1.0,
    wait_max: float = 30.0,
    jitter: bool = False,
    now: float | None = None,
) -> float:
    """Compute the delay (seconds) before the next attempt.

    If *rate_limit* carries a reset time strictly after *now*, the delay is
    exactly ``reset_at - now`` regardless of *attempt*.  Otherwise it is the
    capped exponential backoff ``min(wait_min * 2**attempt, wait_max)``.

    Parameters
    ----------
    attempt:
        Number of attempts already made minus one (0 before the first
        retry).  Negative values are treated as 0.
    rate_limit:
        Rate-limit state parsed from the last response, if any.
    wait_min:
        Base delay for exponential backoff.
    wait_max:
        Ceiling for exponential backoff.
    jitter:
        Scale the exponential delay to a random 50-100 % of its value.
    now:
        Current epoch time.  Defaults to :func:`time.time`; pass a fixed
        value for deterministic results.
    """
    if rate_limit is not None and rate_limit.reset_at is not None:
        current = time.time() if now is None else now
        if rate_limit.reset_at > current:
            return rate_limit.reset_at - current

    exponent = max(attempt, 0)
    if exponent >= _MAX_EXPONENT:
        delay = wait_max
    else:
        delay = min(wait_min * (2 ** exponent), wait_max)

    if jitter:
        delay *= 0.5 + random.random() * 0.5

    return delay
