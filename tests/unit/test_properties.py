"""Property-based tests for notionkit using Hypothesis.

These verify invariants of the retry policy, rate-limit parsing and
redaction over a wide range of generated inputs.
"""

from __future__ import annotations

import json

import httpx
from hypothesis import given, settings
from hypothesis import strategies as st

from notionkit.notion_api.rate_limit import RateLimit, parse_rate_limit
from notionkit.notion_api.retries import should_retry, wait_time
from notionkit.utils.redact import redact

# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

_attempts = st.integers(min_value=0, max_value=10_000)
_waits = st.floats(min_value=0.0, max_value=120.0, allow_nan=False)
_now = st.floats(min_value=1.0e9, max_value=2.0e9, allow_nan=False)
_statuses = st.integers(min_value=100, max_value=599)

_json_scalars = st.one_of(
    st.none(), st.booleans(), st.integers(), st.text(max_size=20),
)
_json_values = st.recursive(
    _json_scalars,
    lambda children: st.one_of(
        st.lists(children, max_size=4),
        st.dictionaries(st.text(max_size=8), children, max_size=4),
    ),
    max_leaves=20,
)


# ---------------------------------------------------------------------------
# wait_time
# ---------------------------------------------------------------------------


class TestWaitTimeProperties:
    @given(attempt=_attempts, a=_waits, b=_waits)
    def test_backoff_within_bounds(self, attempt, a, b):
        wait_min, wait_max = min(a, b), max(a, b)
        delay = wait_time(attempt, wait_min=wait_min, wait_max=wait_max)
        assert 0.0 <= delay <= wait_max
        if attempt == 0:
            assert delay == wait_min

    @given(attempt=st.integers(min_value=0, max_value=200), a=_waits, b=_waits)
    def test_backoff_monotone_in_attempt(self, attempt, a, b):
        wait_min, wait_max = min(a, b), max(a, b)
        first = wait_time(attempt, wait_min=wait_min, wait_max=wait_max)
        second = wait_time(attempt + 1, wait_min=wait_min, wait_max=wait_max)
        assert first <= second

    @given(attempt=_attempts, a=_waits, b=_waits)
    def test_jitter_never_exceeds_plain_backoff(self, attempt, a, b):
        wait_min, wait_max = min(a, b), max(a, b)
        plain = wait_time(attempt, wait_min=wait_min, wait_max=wait_max)
        jittered = wait_time(attempt, wait_min=wait_min, wait_max=wait_max, jitter=True)
        assert plain * 0.5 <= jittered <= plain

    @given(attempt=_attempts, now=_now, ahead=st.floats(min_value=0.001, max_value=3600.0))
    def test_future_reset_is_exact(self, attempt, now, ahead):
        rl = RateLimit(remaining=0, reset_at=now + ahead)
        assert wait_time(attempt, rl, now=now) == rl.reset_at - now


# ---------------------------------------------------------------------------
# should_retry
# ---------------------------------------------------------------------------


class TestShouldRetryProperties:
    @given(status=_statuses, attempt=st.integers(0, 20), max_attempts=st.integers(1, 20))
    def test_never_exceeds_budget(self, status, attempt, max_attempts):
        if should_retry(status, None, attempt, max_attempts):
            assert attempt + 1 < max_attempts

    @given(status=st.integers(400, 499).filter(lambda s: s != 429))
    def test_client_errors_never_retried(self, status):
        assert should_retry(status, None, 0, 100) is False

    @given(status=st.integers(200, 399))
    def test_success_never_retried(self, status):
        assert should_retry(status, None, 0, 100) is False


# ---------------------------------------------------------------------------
# parse_rate_limit
# ---------------------------------------------------------------------------


class TestParseRateLimitProperties:
    @given(
        remaining=st.one_of(st.none(), st.text(max_size=12)),
        reset=st.one_of(st.none(), st.text(max_size=12)),
        retry_after=st.one_of(st.none(), st.text(max_size=12)),
    )
    @settings(max_examples=200)
    def test_never_raises(self, remaining, reset, retry_after):
        headers = {}
        for key, value in (
            ("x-ratelimit-remaining", remaining),
            ("x-ratelimit-reset", reset),
            ("retry-after", retry_after),
        ):
            if value is not None and value.isprintable() and value.isascii():
                headers[key] = value
        result = parse_rate_limit(httpx.Headers(headers), now=1_000.0)
        assert result is None or isinstance(result, RateLimit)

    @given(remaining=st.integers(0, 10_000), reset=st.integers(0, 2_000_000_000))
    def test_round_trips_integers(self, remaining, reset):
        headers = httpx.Headers({
            "x-ratelimit-remaining": str(remaining),
            "x-ratelimit-reset": str(reset),
        })
        assert parse_rate_limit(headers) == RateLimit(remaining=remaining, reset_at=float(reset))


# ---------------------------------------------------------------------------
# redact
# ---------------------------------------------------------------------------


class TestRedactProperties:
    @given(payload=st.dictionaries(st.text(max_size=8), _json_values, max_size=5))
    def test_token_never_survives(self, payload):
        token = "secret_ZZtok9876"
        payload = {**payload, "note": f"x {token} y", "nested": {"v": [token]}}
        dumped = json.dumps(redact(payload, token))
        assert token not in dumped

    @given(payload=st.dictionaries(st.text(max_size=8), _json_values, max_size=5))
    def test_input_never_mutated(self, payload):
        before = json.dumps(payload, sort_keys=True)
        redact(payload, "tok_1234")
        assert json.dumps(payload, sort_keys=True) == before
