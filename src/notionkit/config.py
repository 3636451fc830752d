"""Client configuration for notionkit.

:class:`NotionkitConfig` is a frozen dataclass that captures every tuneable
knob of the request executor.  One instance is passed to
:class:`~notionkit.notion_api.transport.NotionTransport` or
:class:`~notionkit.notion_api.transport.AsyncNotionTransport` and cannot be
changed for the life of that transport.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any

DEFAULT_BASE_URL = "https://api.notion.com/v1"

DEFAULT_NOTION_VERSION = "2022-06-28"

DEFAULT_MAX_PAYLOAD_SIZE = 512 * 1024
"""Largest request body (bytes) the Notion API accepts."""


@dataclass(frozen=True)
class NotionkitConfig:
    """Complete configuration for a notionkit transport.

    Every parameter has a default so that the only *required* value is
    ``token``.

    Parameters
    ----------
    token:
        Notion integration token.  **Required.**  Never logged.
    notion_version:
        Value of the ``Notion-Version`` header sent with every request.
    base_url:
        API root URL.  Override for proxy or testing environments.
    retry_max_attempts:
        Maximum number of physical sends per logical call, including the
        first one.  Must be at least 1.
    retry_wait_min:
        Base delay (seconds) for exponential backoff.
    retry_wait_max:
        Upper cap (seconds) on the exponential backoff delay.
    retry_jitter:
        Scale exponential backoff delays to a random 50-100 % of their
        value.  Waits derived from rate-limit headers are never jittered.
    validate_input:
        Reject request bodies larger than ``max_payload_size`` before
        sending them.
    max_payload_size:
        Maximum serialized request body size in bytes.
    timeout_seconds:
        Timeout for a single physical attempt.
    max_connections:
        Upper bound on concurrent pooled connections.
    max_idle_connections:
        Number of idle keep-alive connections kept in the pool.
    idle_timeout_seconds:
        How long an idle connection is kept before being closed.
    accept_gzip:
        Advertise ``Accept-Encoding: gzip``.  Compressed responses are
        decoded transparently.
    http_proxy:
        Optional HTTP/HTTPS proxy URL.
    metrics:
        Optional :class:`~notionkit.observability.MetricsHook` backend.
    debug_dump_payload:
        Write a redacted request/response dump to *stderr* for every attempt.
    """

    # ── Core ────────────────────────────────────────────────────────────
    token: str = ""

    notion_version: str = DEFAULT_NOTION_VERSION

    base_url: str = DEFAULT_BASE_URL

    # ── Retry ───────────────────────────────────────────────────────────
    retry_max_attempts: int = 3

    retry_wait_min: float = 1.0

    retry_wait_max: float = 30.0

    retry_jitter: bool = False

    # ── Input validation ────────────────────────────────────────────────
    validate_input: bool = True

    max_payload_size: int = DEFAULT_MAX_PAYLOAD_SIZE

    # ── HTTP ────────────────────────────────────────────────────────────
    timeout_seconds: float = 30.0

    max_connections: int = 100

    max_idle_connections: int = 100

    idle_timeout_seconds: float = 90.0

    accept_gzip: bool = True

    http_proxy: str | None = None

    # ── Observability ──────────────────────────────────────────────────
    metrics: Any | None = None

    debug_dump_payload: bool = False

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        from urllib.parse import urlparse

        parsed = urlparse(self.base_url)
        if parsed.scheme == "http" and parsed.hostname not in (
            "localhost",
            "127.0.0.1",
            "::1",
        ):
            raise ValueError(
                f"base_url uses insecure HTTP for non-local host '{parsed.hostname}'. "
                "Use HTTPS to protect your API token, or target localhost for testing."
            )

        if self.retry_max_attempts < 1:
            raise ValueError(f"retry_max_attempts must be >= 1, got {self.retry_max_attempts}")
        if self.retry_wait_min < 0:
            raise ValueError(f"retry_wait_min must be >= 0, got {self.retry_wait_min}")
        if self.retry_wait_max < self.retry_wait_min:
            raise ValueError(
                f"retry_wait_max must be >= retry_wait_min ({self.retry_wait_min}), "
                f"got {self.retry_wait_max}"
            )
        if self.max_payload_size <= 0:
            raise ValueError(f"max_payload_size must be > 0, got {self.max_payload_size}")
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {self.timeout_seconds}")
        if self.max_connections < 1:
            raise ValueError(f"max_connections must be >= 1, got {self.max_connections}")
        if self.max_idle_connections < 0:
            raise ValueError(
                f"max_idle_connections must be >= 0, got {self.max_idle_connections}"
            )
        if self.idle_timeout_seconds < 0:
            raise ValueError(
                f"idle_timeout_seconds must be >= 0, got {self.idle_timeout_seconds}"
            )

    def __repr__(self) -> str:
        """Mask the token to prevent accidental credential leakage."""
        parts: list[str] = []
        for f in dataclasses.fields(self):
            val = getattr(self, f.name)
            if f.name == "token":
                masked = f"...{val[-4:]}" if len(val) >= 4 else "****"
                parts.append(f"token='{masked}'")
            else:
                parts.append(f"{f.name}={val!r}")
        return f"NotionkitConfig({', '.join(parts)})"
