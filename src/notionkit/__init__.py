"""notionkit -- resilient client for the Notion API.

Public re-exports
-----------------

* **Transports:** :class:`NotionTransport`, :class:`AsyncNotionTransport`
* **Endpoint wrappers:** pages, blocks, databases, users, search, comments
  (sync and ``Async*`` variants)
* **Configuration:** :class:`NotionkitConfig`
* **Cancellation:** :class:`CancelToken`
* **Errors:** every :class:`NotionkitError` subclass, :class:`ErrorKind`,
  :class:`ErrorCode` and the ``is_*`` predicates

Usage::

    from notionkit import CancelToken, NotionkitConfig, NotionTransport, PageAPI

    with NotionTransport(NotionkitConfig(token="secret_xxx")) as transport:
        pages = PageAPI(transport)
        page = pages.retrieve("<page_id>", cancel=CancelToken(timeout=10))
"""

from __future__ import annotations

# ── Configuration ───────────────────────────────────────────────────────
from notionkit.config import (
    DEFAULT_BASE_URL,
    DEFAULT_MAX_PAYLOAD_SIZE,
    DEFAULT_NOTION_VERSION,
    NotionkitConfig,
)

# ── Errors ──────────────────────────────────────────────────────────────
from notionkit.errors import (
    ErrorCode,
    ErrorKind,
    NotionkitAPIError,
    NotionkitAuthError,
    NotionkitCanceledError,
    NotionkitConflictError,
    NotionkitError,
    NotionkitNotFoundError,
    NotionkitPermissionError,
    NotionkitRateLimitError,
    NotionkitSerializationError,
    NotionkitServerError,
    NotionkitSizeLimitError,
    NotionkitTransportError,
    NotionkitValidationError,
    is_not_found,
    is_rate_limited,
    is_retryable,
    is_size_limit_exceeded,
    is_validation_error,
)

# ── Transports & endpoints ─────────────────────────────────────────────
from notionkit.notion_api import (
    AsyncBlockAPI,
    AsyncCommentAPI,
    AsyncDatabaseAPI,
    AsyncNotionTransport,
    AsyncPageAPI,
    AsyncSearchAPI,
    AsyncUserAPI,
    BlockAPI,
    CancelToken,
    CommentAPI,
    DatabaseAPI,
    NotionTransport,
    PageAPI,
    RateLimit,
    SearchAPI,
    SearchBuilder,
    UserAPI,
)

# ── Public surface ──────────────────────────────────────────────────────

__all__ = [
    # Transports
    "NotionTransport",
    "AsyncNotionTransport",
    "CancelToken",
    "RateLimit",
    # Endpoints
    "PageAPI",
    "AsyncPageAPI",
    "BlockAPI",
    "AsyncBlockAPI",
    "DatabaseAPI",
    "AsyncDatabaseAPI",
    "UserAPI",
    "AsyncUserAPI",
    "SearchAPI",
    "AsyncSearchAPI",
    "SearchBuilder",
    "CommentAPI",
    "AsyncCommentAPI",
    # Configuration
    "NotionkitConfig",
    "DEFAULT_BASE_URL",
    "DEFAULT_MAX_PAYLOAD_SIZE",
    "DEFAULT_NOTION_VERSION",
    # Errors
    "NotionkitError",
    "ErrorKind",
    "ErrorCode",
    "NotionkitSerializationError",
    "NotionkitSizeLimitError",
    "NotionkitTransportError",
    "NotionkitCanceledError",
    "NotionkitAPIError",
    "NotionkitValidationError",
    "NotionkitAuthError",
    "NotionkitPermissionError",
    "NotionkitNotFoundError",
    "NotionkitConflictError",
    "NotionkitRateLimitError",
    "NotionkitServerError",
    "is_not_found",
    "is_rate_limited",
    "is_retryable",
    "is_size_limit_exceeded",
    "is_validation_error",
]
