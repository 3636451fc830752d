"""Rate-limit state parsed from Notion API response headers.

The API signals its quota through ``X-RateLimit-Remaining`` and
``X-RateLimit-Reset`` (epoch seconds), and on ``429`` responses through
``Retry-After`` (seconds).  :func:`parse_rate_limit` folds whichever of
these are present into a :class:`RateLimit` snapshot.  Snapshots are local
to one call; nothing here is shared between requests.
"""

from __future__ import annotations

import math
import time
from collections.abc import Mapping
from dataclasses import dataclass

REMAINING_HEADER = "x-ratelimit-remaining"
RESET_HEADER = "x-ratelimit-reset"
RETRY_AFTER_HEADER = "retry-after"


@dataclass(frozen=True)
class RateLimit:
    """Point-in-time view of the server's quota.

    Attributes
    ----------
    remaining:
        Requests left in the current window, if reported.
    reset_at:
        Epoch time (seconds) at which the quota resets, if reported.
    """

    remaining: int | None = None
    reset_at: float | None = None


def _parse_float(raw: str | None) -> float | None:
    if raw is None:
        return None
    try:
        value = float(raw)
    except (ValueError, TypeError):
        return None
    if not math.isfinite(value):
        return None
    return value


def _parse_int(raw: str | None) -> int | None:
    if raw is None:
        return None
    try:
        return int(raw.strip())
    except (ValueError, TypeError):
        return None


def parse_retry_after(headers: Mapping[str, str]) -> float | None:
    """Return ``Retry-After`` in seconds, or ``None`` if absent or not numeric.

    HTTP-date values are not supported and yield ``None``.
    """
    return _parse_float(headers.get(RETRY_AFTER_HEADER))


def parse_rate_limit(
    headers: Mapping[str, str],
    now: float | None = None,
) -> RateLimit | None:
    """Build a :class:`RateLimit` from response headers.

    ``X-RateLimit-Reset`` wins over ``Retry-After`` when both are usable.
    Missing or malformed headers never raise; if none of them is usable the
    result is ``None``, meaning "no rate-limit information available".

    Parameters
    ----------
    headers:
        Response headers.  Lookup must be case-insensitive, as with
        :class:`httpx.Headers`.
    now:
        Current epoch time, used to anchor ``Retry-After``.  Defaults to
        :func:`time.time`.
    """
    remaining = _parse_int(headers.get(REMAINING_HEADER))
    reset_at = _parse_float(headers.get(RESET_HEADER))

    if reset_at is None:
        retry_after = parse_retry_after(headers)
        if retry_after is not None and retry_after >= 0:
            reset_at = (time.time() if now is None else now) + retry_after

    if remaining is None and reset_at is None:
        return None
    return RateLimit(remaining=remaining, reset_at=reset_at)
