"""Sync and async request executors for the Notion API.

Each transport runs one logical call to completion:

1. Serialize the body to compact JSON (failure: serialization error, no send).
2. Reject bodies over ``max_payload_size`` when input validation is on.
3. Before every attempt, check the cancel token.
4. Send with auth, version, encoding and content headers.
5. On a network error -- back off and retry, or raise a transport error
   once the attempt budget is spent.
6. On ``429`` -- wait until the rate-limit reset (or back off) and retry.
   On ``5xx`` -- back off and retry.  Otherwise, or once the budget is
   spent, raise the API error decoded from the response payload.
7. On ``2xx``/``3xx`` -- return the (decompressed) body.

Every wait and every send is interruptible by the caller's
:class:`~notionkit.notion_api.cancel.CancelToken`.  Records go to the
``notionkit.transport`` logger; attaching handlers is left to the
application (see :func:`notionkit.observability.get_logger`).
"""

from __future__ import annotations

import asyncio
import json as _json
import logging
import sys
import time
from collections.abc import AsyncIterator, Iterator
from concurrent import futures
from typing import Any

import httpx

from notionkit.config import NotionkitConfig
from notionkit.errors import (
    NotionkitCanceledError,
    NotionkitSerializationError,
    NotionkitSizeLimitError,
    NotionkitTransportError,
    api_error_for_status,
)
from notionkit.observability import NoopMetricsHook, log_fields

from .cancel import CancelToken
from .rate_limit import parse_rate_limit
from .retries import _RETRYABLE_EXCEPTIONS, should_retry, wait_time

log = logging.getLogger("notionkit.transport")

# How often a blocked sync send re-checks its cancel token.
_CANCEL_POLL_SECONDS = 0.01


# ---------------------------------------------------------------------------
# Request preparation
# ---------------------------------------------------------------------------

def _normalize_path(path: str) -> str:
    return path if path.startswith("/") else f"/{path}"


def _encode_body(body: Any, method: str, path: str) -> bytes | None:
    """Serialize *body* to compact UTF-8 JSON, or return ``None`` for no body."""
    if body is None:
        return None
    try:
        text = _json.dumps(
            body,
            ensure_ascii=False,
            separators=(",", ":"),
            allow_nan=False,
        )
        return text.encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise NotionkitSerializationError(
            message=f"marshal request body: {exc}",
            context={"method": method, "path": path, "phase": "encode"},
            cause=exc,
        ) from exc


def _check_payload_size(
    config: NotionkitConfig,
    payload: bytes,
    method: str,
    path: str,
) -> None:
    if not config.validate_input or len(payload) <= config.max_payload_size:
        return
    raise NotionkitSizeLimitError(
        message=(
            f"request size {len(payload)} bytes exceeds maximum of "
            f"{config.max_payload_size} bytes"
        ),
        context={
            "method": method,
            "path": path,
            "size_bytes": len(payload),
            "max_bytes": config.max_payload_size,
        },
    )


def _build_headers(config: NotionkitConfig, payload: bytes | None) -> dict[str, str]:
    headers = {
        "Authorization": f"Bearer {config.token}",
        "Notion-Version": config.notion_version,
        "Accept-Encoding": "gzip" if config.accept_gzip else "identity",
    }
    if payload is not None:
        headers["Content-Type"] = "application/json"
        headers["Content-Length"] = str(len(payload))
    return headers


def _attempt_timeout(config: NotionkitConfig, cancel: CancelToken | None) -> float:
    """Per-attempt timeout, shortened to the cancel token's deadline."""
    timeout = config.timeout_seconds
    if cancel is not None:
        remaining = cancel.remaining()
        if remaining is not None:
            timeout = max(min(timeout, remaining), 0.001)
    return timeout


def _build_limits(config: NotionkitConfig) -> httpx.Limits:
    return httpx.Limits(
        max_connections=config.max_connections,
        max_keepalive_connections=config.max_idle_connections,
        keepalive_expiry=config.idle_timeout_seconds,
    )


# ---------------------------------------------------------------------------
# Response classification
# ---------------------------------------------------------------------------

def _raise_for_status(
    response: httpx.Response,
    method: str,
    path: str,
    attempts: int,
) -> None:
    """Raise the API error carried by a terminal ``>= 400`` response.

    The payload must be a JSON object with ``code`` and ``message``; if it
    cannot be decoded a :class:`NotionkitSerializationError` carrying the
    original status is raised instead.
    """
    status = response.status_code
    context: dict[str, Any] = {"method": method, "path": path, "attempts": attempts}
    try:
        payload = _json.loads(response.content)
    except ValueError as exc:
        raise NotionkitSerializationError(
            message=f"failed to decode error response: {exc}",
            status=status,
            context={**context, "phase": "decode", "body": response.text[:500]},
            cause=exc,
        ) from exc

    if not isinstance(payload, dict):
        raise NotionkitSerializationError(
            message=(
                "failed to decode error response: expected a JSON object, "
                f"got {type(payload).__name__}"
            ),
            status=status,
            context={**context, "phase": "decode"},
        )

    if payload.get("request_id"):
        context["request_id"] = payload["request_id"]
    code = payload.get("code")
    message = payload.get("message")
    raise api_error_for_status(
        status,
        code="" if code is None else str(code),
        message="" if message is None else str(message),
        context=context,
    )


def _decode_json(response: httpx.Response, method: str, path: str) -> dict[str, Any]:
    """Decode a success body.  An empty body decodes to ``{}``."""
    if not response.content.strip():
        return {}
    try:
        data = _json.loads(response.content)
    except ValueError as exc:
        raise NotionkitSerializationError(
            message=f"failed to decode response from {method} {path}: {exc}",
            status=response.status_code,
            context={"method": method, "path": path, "phase": "decode"},
            cause=exc,
        ) from exc
    if not isinstance(data, dict):
        raise NotionkitSerializationError(
            message=(
                f"failed to decode response from {method} {path}: expected a "
                f"JSON object, got {type(data).__name__}"
            ),
            status=response.status_code,
            context={"method": method, "path": path, "phase": "decode"},
        )
    return data


def _decoding_error(
    exc: httpx.DecodingError,
    status: int,
    method: str,
    path: str,
) -> NotionkitSerializationError:
    return NotionkitSerializationError(
        message=f"failed to read compressed response from {method} {path}: {exc}",
        status=status,
        context={"method": method, "path": path, "phase": "decompress"},
        cause=exc,
    )


# ---------------------------------------------------------------------------
# Debug dumps
# ---------------------------------------------------------------------------

def _dump_payload(
    method: str,
    url: str,
    payload: Any | None,
    response_status: int | None,
    response_body: Any | None,
    token: str | None = None,
) -> None:
    """Write a redacted dump of one attempt to stderr."""
    from notionkit.utils.redact import redact

    dump: dict[str, Any] = {
        "method": method,
        "url": url,
    }
    if payload is not None:
        dump["request_body"] = payload
    if response_status is not None:
        dump["response_status"] = response_status
    if response_body is not None:
        dump["response_body"] = response_body
    print(
        _json.dumps(redact(dump, token), indent=2, default=str),
        file=sys.stderr,
    )


def _emit_debug_dump(
    config: NotionkitConfig,
    method: str,
    response: httpx.Response,
    body: Any,
) -> None:
    if not config.debug_dump_payload:
        return
    try:
        resp_body = _json.loads(response.content) if response.content else None
    except ValueError:
        resp_body = response.text[:1000]
    _dump_payload(
        method, str(response.request.url), body,
        response.status_code, resp_body,
        token=config.token,
    )


# ---------------------------------------------------------------------------
# Shared attempt handling (used by both sync and async transports)
# ---------------------------------------------------------------------------

def _canceled(
    metrics: Any,
    method: str,
    path: str,
    attempt: int,
    phase: str,
    cause: Exception | None = None,
) -> NotionkitCanceledError:
    metrics.increment(
        "notionkit.canceled_total",
        tags={"method": method, "path": path, "phase": phase},
    )
    log.info(
        "Request canceled",
        extra=log_fields(
            op="request", method=method, path=path, attempt=attempt + 1, phase=phase,
        ),
    )
    return NotionkitCanceledError(
        message=f"context canceled during {phase} of {method} {path}",
        context={"method": method, "path": path, "attempt": attempt + 1, "phase": phase},
        cause=cause,
    )


def _handle_network_exception(
    config: NotionkitConfig,
    metrics: Any,
    method: str,
    path: str,
    exc: Exception,
    attempt: int,
) -> float:
    """Handle a network error during an attempt.

    Returns the delay (seconds) before the next attempt.  Raises
    :class:`NotionkitTransportError` if the attempt budget is spent.
    """
    max_attempts = config.retry_max_attempts
    metrics.increment(
        "notionkit.requests_total",
        tags={"method": method, "path": path, "status": "error"},
    )
    log.warning(
        "Request network error",
        extra=log_fields(
            op="request", method=method, path=path, attempt=attempt + 1, error=str(exc),
        ),
    )
    if should_retry(None, exc, attempt, max_attempts):
        delay = wait_time(
            attempt,
            wait_min=config.retry_wait_min,
            wait_max=config.retry_wait_max,
            jitter=config.retry_jitter,
        )
        metrics.increment(
            "notionkit.retries_total",
            tags={"method": method, "path": path, "reason": "network_error"},
        )
        return delay
    raise NotionkitTransportError(
        message=f"execute request {method} {path} (after {attempt + 1} attempts): {exc}",
        context={"method": method, "path": path, "attempts": attempt + 1},
        cause=exc,
    ) from exc


def _handle_response(
    config: NotionkitConfig,
    metrics: Any,
    response: httpx.Response,
    method: str,
    path: str,
    attempt: int,
    elapsed_ms: float,
) -> float | None:
    """Classify a response.

    Returns ``None`` when the response is a success, or the delay (seconds)
    before the next attempt when it is transient and budget remains.
    Raises the terminal error otherwise.
    """
    status = response.status_code
    tags = {"method": method, "path": path, "status": str(status)}
    metrics.increment("notionkit.requests_total", tags=tags)
    metrics.timing("notionkit.request_duration_ms", elapsed_ms, tags=tags)

    rate_limit = parse_rate_limit(response.headers)

    if status < 400:
        if rate_limit is not None:
            if rate_limit.remaining is not None:
                metrics.gauge(
                    "notionkit.rate_limit_remaining",
                    rate_limit.remaining,
                    tags={"method": method, "path": path},
                )
            log.debug(
                "Rate limit snapshot",
                extra=log_fields(
                    op="request", method=method, path=path,
                    remaining=rate_limit.remaining, reset_at=rate_limit.reset_at,
                ),
            )
        return None

    if not should_retry(status, None, attempt, config.retry_max_attempts):
        if status == 429 or status >= 500:
            log.warning(
                "Retry budget exhausted",
                extra=log_fields(
                    op="request", method=method, path=path,
                    attempt=attempt + 1, status_code=status,
                ),
            )
        _raise_for_status(response, method, path, attempts=attempt + 1)

    if status == 429:
        reason = "rate_limited"
        metrics.increment(
            "notionkit.rate_limited_total",
            tags={"method": method, "path": path},
        )
        delay = wait_time(
            attempt,
            rate_limit,
            wait_min=config.retry_wait_min,
            wait_max=config.retry_wait_max,
            jitter=config.retry_jitter,
        )
    else:
        reason = "server_error"
        delay = wait_time(
            attempt,
            wait_min=config.retry_wait_min,
            wait_max=config.retry_wait_max,
            jitter=config.retry_jitter,
        )

    metrics.increment(
        "notionkit.retries_total",
        tags={"method": method, "path": path, "reason": reason},
    )
    log.warning(
        "Retrying request",
        extra=log_fields(
            op="request", method=method, path=path, attempt=attempt + 1,
            status_code=status, reason=reason, wait_seconds=round(delay, 3),
        ),
    )
    return delay


def _page_args(
    method: str,
    body: dict[str, Any] | None,
    params: dict[str, Any] | None,
    cursor: str | None,
    page_size: int,
) -> tuple[dict[str, Any] | None, dict[str, Any] | None]:
    """Merge pagination keys into a copy of the body (POST/PATCH) or params."""
    extra: dict[str, Any] = {"page_size": page_size}
    if cursor is not None:
        extra["start_cursor"] = cursor
    if method in ("POST", "PATCH"):
        merged = {k: v for k, v in (body or {}).items() if k != "start_cursor"}
        return {**merged, **extra}, params
    merged = {k: v for k, v in (params or {}).items() if k != "start_cursor"}
    return body, {**merged, **extra}


def _sleep(delay: float, cancel: CancelToken | None) -> bool:
    """Sleep for *delay* seconds.  Returns ``True`` if *cancel* fired."""
    if cancel is None:
        if delay > 0:
            time.sleep(delay)
        return False
    return cancel.wait(delay)


async def _async_sleep(delay: float, cancel: CancelToken | None) -> bool:
    """Async counterpart of :func:`_sleep`."""
    if cancel is None:
        await asyncio.sleep(max(delay, 0.0))
        return False
    return await cancel.wait_async(delay)


# ---------------------------------------------------------------------------
# Sync transport
# ---------------------------------------------------------------------------

class NotionTransport:
    """Blocking request executor with retries, rate-limit handling and
    cancellation.

    Safe to share between threads: all per-call state lives on the stack,
    and the underlying :class:`httpx.Client` pool is thread-safe.

    When a call carries a cancel token, each send runs on a worker thread
    so the caller can return as soon as the token fires.  The abandoned
    send finishes in the background and its outcome is discarded.

    Parameters
    ----------
    config:
        A :class:`NotionkitConfig` controlling all transport behaviour.
    client:
        Optional pre-built :class:`httpx.Client` (for custom transports or
        tests).  A client passed in is not closed by :meth:`close`.
    """

    def __init__(
        self,
        config: NotionkitConfig,
        *,
        client: httpx.Client | None = None,
    ) -> None:
        self._config = config
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()
        self._base_url = config.base_url.rstrip("/")
        self._owns_client = client is None
        if client is None:
            client = httpx.Client(
                timeout=httpx.Timeout(config.timeout_seconds),
                limits=_build_limits(config),
                proxy=config.http_proxy,
            )
        self._client = client
        self._send_pool = futures.ThreadPoolExecutor(
            max_workers=config.max_connections,
            thread_name_prefix="notionkit-send",
        )

    @property
    def config(self) -> NotionkitConfig:
        return self._config

    # -- public API --------------------------------------------------------

    def execute(
        self,
        method: str,
        path: str,
        body: Any = None,
        *,
        params: dict[str, Any] | None = None,
        cancel: CancelToken | None = None,
    ) -> bytes:
        """Run one logical call and return the raw response body.

        Parameters
        ----------
        method:
            HTTP method (``GET``, ``POST``, ``PATCH``, ``DELETE``).
        path:
            API path relative to ``base_url`` (e.g. ``/pages``).
        body:
            Any JSON-serializable value, or ``None`` for no body.
        params:
            Optional query-string parameters.
        cancel:
            Optional :class:`CancelToken` bounding the whole call.

        Returns
        -------
        bytes
            The decompressed body of the first ``2xx``/``3xx`` response.
            May be empty.

        Raises
        ------
        NotionkitSerializationError
            The body could not be encoded, or an error payload could not be
            decoded.
        NotionkitSizeLimitError
            The encoded body is larger than ``max_payload_size``.
        NotionkitCanceledError
            *cancel* fired before the call completed.
        NotionkitTransportError
            Network failures persisted through every attempt.
        NotionkitAPIError
            The API rejected the request (or kept returning 429/5xx).
        """
        return self._execute(method, path, body, params=params, cancel=cancel).content

    def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        *,
        params: dict[str, Any] | None = None,
        cancel: CancelToken | None = None,
    ) -> dict[str, Any]:
        """Like :meth:`execute`, but decode the body as a JSON object.

        An empty body decodes to ``{}``.
        """
        method = method.upper()
        path = _normalize_path(path)
        response = self._execute(method, path, body, params=params, cancel=cancel)
        return _decode_json(response, method, path)

    def paginate(
        self,
        path: str,
        *,
        method: str = "GET",
        body: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        cancel: CancelToken | None = None,
        page_size: int = 100,
    ) -> Iterator[dict[str, Any]]:
        """Auto-paginate a list endpoint, yielding each result item.

        ``start_cursor`` and ``page_size`` go into the JSON body for
        ``POST``/``PATCH`` and into the query string otherwise.  The caller's
        *body* and *params* are never mutated.
        """
        method = method.upper()
        cursor: str | None = None

        while True:
            page_body, page_params = _page_args(method, body, params, cursor, page_size)
            data = self.request(method, path, page_body, params=page_params, cancel=cancel)
            yield from data.get("results", [])

            if not data.get("has_more", False):
                break
            cursor = data.get("next_cursor")
            if cursor is None:
                break

    def close(self) -> None:
        """Close the underlying HTTP client if this transport created it.

        Sends abandoned by cancellation are not waited for.
        """
        self._send_pool.shutdown(wait=False)
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> NotionTransport:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # -- internals ---------------------------------------------------------

    def _send(self, request: httpx.Request, method: str, path: str) -> httpx.Response:
        response = self._client.send(request, stream=True)
        try:
            response.read()
        except httpx.DecodingError as exc:
            raise _decoding_error(exc, response.status_code, method, path) from exc
        finally:
            response.close()
        return response

    def _send_cancellable(
        self,
        request: httpx.Request,
        method: str,
        path: str,
        cancel: CancelToken | None,
    ) -> httpx.Response | None:
        """Send *request*, returning ``None`` as soon as *cancel* fires.

        Without a token the send runs on the calling thread.
        """
        if cancel is None:
            return self._send(request, method, path)

        future = self._send_pool.submit(self._send, request, method, path)
        while True:
            done, _ = futures.wait((future,), timeout=_CANCEL_POLL_SECONDS)
            if done:
                return future.result()
            if cancel.cancelled:
                future.cancel()
                return None

    def _execute(
        self,
        method: str,
        path: str,
        body: Any,
        *,
        params: dict[str, Any] | None,
        cancel: CancelToken | None,
    ) -> httpx.Response:
        method = method.upper()
        path = _normalize_path(path)
        config = self._config

        payload = _encode_body(body, method, path)
        if payload is not None:
            _check_payload_size(config, payload, method, path)
        headers = _build_headers(config, payload)
        url = f"{self._base_url}{path}"

        max_attempts = config.retry_max_attempts
        last_exception: Exception | None = None

        for attempt in range(max_attempts):
            # 1. Cancellation gate
            if cancel is not None and cancel.cancelled:
                raise _canceled(self._metrics, method, path, attempt, "before_send")

            # 2. Send
            request = self._client.build_request(
                method,
                url,
                content=payload,
                params=params,
                headers=headers,
                timeout=_attempt_timeout(config, cancel),
            )
            t0 = time.monotonic()
            try:
                response = self._send_cancellable(request, method, path, cancel)
            except httpx.DecodingError as exc:
                raise _decoding_error(exc, 502, method, path) from exc
            except _RETRYABLE_EXCEPTIONS as exc:
                if cancel is not None and cancel.cancelled:
                    raise _canceled(self._metrics, method, path, attempt, "send", exc) from exc
                last_exception = exc
                delay = _handle_network_exception(
                    config, self._metrics, method, path, exc, attempt,
                )
                if _sleep(delay, cancel):
                    raise _canceled(self._metrics, method, path, attempt, "backoff")
                continue
            except httpx.HTTPError as exc:
                raise NotionkitTransportError(
                    message=f"execute request {method} {path}: {exc}",
                    context={"method": method, "path": path, "attempts": attempt + 1},
                    cause=exc,
                ) from exc
            elapsed_ms = (time.monotonic() - t0) * 1000

            # 3. Canceled mid-flight, or the response arrived too late.
            if response is None or (cancel is not None and cancel.cancelled):
                raise _canceled(self._metrics, method, path, attempt, "send")

            _emit_debug_dump(config, method, response, body)

            # 4. Classify
            delay = _handle_response(
                config, self._metrics, response, method, path, attempt, elapsed_ms,
            )
            if delay is None:
                return response
            if _sleep(delay, cancel):
                raise _canceled(self._metrics, method, path, attempt, "backoff")

        # The final attempt always returns or raises above.
        raise NotionkitTransportError(
            message=f"all {max_attempts} attempts exhausted for {method} {path}",
            context={"method": method, "path": path, "attempts": max_attempts},
            cause=last_exception,
        )


# ---------------------------------------------------------------------------
# Async transport
# ---------------------------------------------------------------------------

class AsyncNotionTransport:
    """Asynchronous request executor.

    Mirrors :class:`NotionTransport` on top of :class:`httpx.AsyncClient`.
    In addition, an in-flight send is raced against the cancel token and
    abandoned as soon as the token fires.  Cancelling the surrounding
    asyncio task propagates :class:`asyncio.CancelledError` unchanged.

    Parameters
    ----------
    config:
        A :class:`NotionkitConfig` controlling all transport behaviour.
    client:
        Optional pre-built :class:`httpx.AsyncClient`.  A client passed in
        is not closed by :meth:`close`.
    """

    def __init__(
        self,
        config: NotionkitConfig,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()
        self._base_url = config.base_url.rstrip("/")
        self._owns_client = client is None
        if client is None:
            client = httpx.AsyncClient(
                timeout=httpx.Timeout(config.timeout_seconds),
                limits=_build_limits(config),
                proxy=config.http_proxy,
            )
        self._client = client

    @property
    def config(self) -> NotionkitConfig:
        return self._config

    # -- public API --------------------------------------------------------

    async def execute(
        self,
        method: str,
        path: str,
        body: Any = None,
        *,
        params: dict[str, Any] | None = None,
        cancel: CancelToken | None = None,
    ) -> bytes:
        """Run one logical call and return the raw response body (async).

        See :meth:`NotionTransport.execute` for the full contract.
        """
        response = await self._execute(method, path, body, params=params, cancel=cancel)
        return response.content

    async def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        *,
        params: dict[str, Any] | None = None,
        cancel: CancelToken | None = None,
    ) -> dict[str, Any]:
        """Like :meth:`execute`, but decode the body as a JSON object."""
        method = method.upper()
        path = _normalize_path(path)
        response = await self._execute(method, path, body, params=params, cancel=cancel)
        return _decode_json(response, method, path)

    async def paginate(
        self,
        path: str,
        *,
        method: str = "GET",
        body: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        cancel: CancelToken | None = None,
        page_size: int = 100,
    ) -> AsyncIterator[dict[str, Any]]:
        """Auto-paginate a list endpoint, yielding each result item.

        Async equivalent of :meth:`NotionTransport.paginate`.
        """
        method = method.upper()
        cursor: str | None = None

        while True:
            page_body, page_params = _page_args(method, body, params, cursor, page_size)
            data = await self.request(method, path, page_body, params=page_params, cancel=cancel)
            for item in data.get("results", []):
                yield item

            if not data.get("has_more", False):
                break
            cursor = data.get("next_cursor")
            if cursor is None:
                break

    async def close(self) -> None:
        """Close the underlying HTTP client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> AsyncNotionTransport:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # -- internals ---------------------------------------------------------

    async def _send_and_read(
        self,
        request: httpx.Request,
        method: str,
        path: str,
    ) -> httpx.Response:
        response = await self._client.send(request, stream=True)
        try:
            await response.aread()
        except httpx.DecodingError as exc:
            raise _decoding_error(exc, response.status_code, method, path) from exc
        finally:
            await response.aclose()
        return response

    async def _send(
        self,
        request: httpx.Request,
        method: str,
        path: str,
        cancel: CancelToken | None,
    ) -> httpx.Response | None:
        """Send *request*, racing it against *cancel*.

        Returns ``None`` if the token fired first; the send is then
        cancelled and awaited before returning.
        """
        if cancel is None:
            return await self._send_and_read(request, method, path)

        send_task = asyncio.ensure_future(self._send_and_read(request, method, path))
        try:
            while True:
                cancel_task = asyncio.ensure_future(cancel.wait_async())
                try:
                    done, _ = await asyncio.wait(
                        {send_task, cancel_task},
                        return_when=asyncio.FIRST_COMPLETED,
                    )
                finally:
                    cancel_task.cancel()
                if send_task in done:
                    return send_task.result()
                if cancel.cancelled:
                    break
        finally:
            if not send_task.done():
                send_task.cancel()
                # Let the aborted send release its connection; its outcome
                # is irrelevant once the call is canceled.
                await asyncio.gather(send_task, return_exceptions=True)
        return None

    async def _execute(
        self,
        method: str,
        path: str,
        body: Any,
        *,
        params: dict[str, Any] | None,
        cancel: CancelToken | None,
    ) -> httpx.Response:
        method = method.upper()
        path = _normalize_path(path)
        config = self._config

        payload = _encode_body(body, method, path)
        if payload is not None:
            _check_payload_size(config, payload, method, path)
        headers = _build_headers(config, payload)
        url = f"{self._base_url}{path}"

        max_attempts = config.retry_max_attempts
        last_exception: Exception | None = None

        for attempt in range(max_attempts):
            # 1. Cancellation gate
            if cancel is not None and cancel.cancelled:
                raise _canceled(self._metrics, method, path, attempt, "before_send")

            # 2. Send, racing the cancel token
            request = self._client.build_request(
                method,
                url,
                content=payload,
                params=params,
                headers=headers,
                timeout=_attempt_timeout(config, cancel),
            )
            t0 = time.monotonic()
            try:
                response = await self._send(request, method, path, cancel)
            except httpx.DecodingError as exc:
                raise _decoding_error(exc, 502, method, path) from exc
            except _RETRYABLE_EXCEPTIONS as exc:
                if cancel is not None and cancel.cancelled:
                    raise _canceled(self._metrics, method, path, attempt, "send", exc) from exc
                last_exception = exc
                delay = _handle_network_exception(
                    config, self._metrics, method, path, exc, attempt,
                )
                if await _async_sleep(delay, cancel):
                    raise _canceled(self._metrics, method, path, attempt, "backoff")
                continue
            except httpx.HTTPError as exc:
                raise NotionkitTransportError(
                    message=f"execute request {method} {path}: {exc}",
                    context={"method": method, "path": path, "attempts": attempt + 1},
                    cause=exc,
                ) from exc
            elapsed_ms = (time.monotonic() - t0) * 1000

            # 3. Canceled mid-flight, or the response arrived too late.
            if response is None or (cancel is not None and cancel.cancelled):
                raise _canceled(self._metrics, method, path, attempt, "send")

            _emit_debug_dump(config, method, response, body)

            # 4. Classify
            delay = _handle_response(
                config, self._metrics, response, method, path, attempt, elapsed_ms,
            )
            if delay is None:
                return response
            if await _async_sleep(delay, cancel):
                raise _canceled(self._metrics, method, path, attempt, "backoff")

        # The final attempt always returns or raises above.
        raise NotionkitTransportError(
            message=f"all {max_attempts} attempts exhausted for {method} {path}",
            context={"method": method, "path": path, "attempts": max_attempts},
            cause=last_exception,
        )

