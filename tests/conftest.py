"""Shared test fixtures for the notionkit test suite."""

from __future__ import annotations

import pytest

from notionkit.config import NotionkitConfig


@pytest.fixture
def config() -> NotionkitConfig:
    """Default test configuration with a dummy token."""
    return NotionkitConfig(token="test_token_1234")


@pytest.fixture
def fast_config() -> NotionkitConfig:
    """Configuration with zero backoff so retry tests run instantly."""
    return NotionkitConfig(
        token="test_token_1234",
        retry_max_attempts=3,
        retry_wait_min=0.0,
        retry_wait_max=0.0,
    )
