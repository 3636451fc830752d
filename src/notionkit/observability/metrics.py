"""Metrics hook protocol and its no-op default.

The transport reports counters, timings and gauges for every physical
attempt.  Without a configured backend a :class:`NoopMetricsHook` absorbs
them.  Any object satisfying :class:`MetricsHook` can be passed as
``NotionkitConfig(metrics=...)`` to forward them to StatsD, Prometheus and
the like.

Emitted metric names:

* ``notionkit.requests_total``         -- counter, tagged by status
* ``notionkit.retries_total``          -- counter, tagged by reason
* ``notionkit.rate_limited_total``     -- counter
* ``notionkit.canceled_total``         -- counter, tagged by phase
* ``notionkit.request_duration_ms``    -- timing per physical attempt
* ``notionkit.rate_limit_remaining``   -- gauge from response headers
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MetricsHook(Protocol):
    """Protocol that any metrics backend must satisfy.

    *tags* are string key/value pairs; backends map them onto their own
    tagging scheme.
    """

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Increment a counter by *value*."""
        ...

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Record a duration in milliseconds."""
        ...

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Set a gauge to an absolute value."""
        ...


class NoopMetricsHook:
    """Discards every data point."""

    __slots__ = ()

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass
