"""notionkit.notion_api -- request executor and endpoint wrappers.

This sub-package provides:

* :mod:`.retries` -- Retry decisions and backoff / rate-limit wait times.
* :mod:`.rate_limit` -- Rate-limit header parsing.
* :mod:`.cancel` -- Cancellation tokens with optional deadlines.
* :mod:`.transport` -- Sync and async request executors.
* :mod:`.pages`, :mod:`.blocks`, :mod:`.databases`, :mod:`.users`,
  :mod:`.search`, :mod:`.comments` -- Endpoint wrappers, each built from a
  shared transport.
"""

from __future__ import annotations

from .blocks import AsyncBlockAPI, BlockAPI
from .cancel import CancelToken
from .comments import AsyncCommentAPI, CommentAPI
from .databases import AsyncDatabaseAPI, DatabaseAPI
from .pages import AsyncPageAPI, PageAPI
from .rate_limit import RateLimit, parse_rate_limit
from .retries import should_retry, wait_time
from .search import AsyncSearchAPI, SearchAPI, SearchBuilder
from .transport import AsyncNotionTransport, NotionTransport
from .users import AsyncUserAPI, UserAPI

__all__ = [
    "AsyncBlockAPI",
    "AsyncCommentAPI",
    "AsyncDatabaseAPI",
    "AsyncNotionTransport",
    "AsyncPageAPI",
    "AsyncSearchAPI",
    "AsyncUserAPI",
    "BlockAPI",
    "CancelToken",
    "CommentAPI",
    "DatabaseAPI",
    "NotionTransport",
    "PageAPI",
    "RateLimit",
    "SearchAPI",
    "SearchBuilder",
    "UserAPI",
    "parse_rate_limit",
    "should_retry",
    "wait_time",
]
