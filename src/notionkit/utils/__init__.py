"""Small helpers shared across notionkit."""

from __future__ import annotations

from .redact import redact

__all__ = ["redact"]
