"""Error hierarchy for the notionkit client.

Every error raised by the request executor inherits from
:class:`NotionkitError`.  Each carries a machine-readable ``code``, a
human-readable ``message``, the HTTP-equivalent ``status``, an optional
structured ``context`` dict, and an optional ``cause`` (chained exception).

Errors are grouped into five kinds (see :class:`ErrorKind`) so that callers
can branch on the failure category without inspecting status codes:

* ``SERIALIZATION`` -- a request body could not be encoded, or a response
  payload could not be decoded.
* ``SIZE_LIMIT_EXCEEDED`` -- the pre-flight payload size guard tripped.
* ``TRANSPORT`` -- network-level failure that survived every retry.
* ``CANCELED`` -- the caller's :class:`~notionkit.notion_api.cancel.CancelToken`
  fired.
* ``API`` -- the Notion API rejected the request definitively.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class ErrorKind(str, Enum):
    """Discriminant for the classified error union."""

    SERIALIZATION = "serialization"
    SIZE_LIMIT_EXCEEDED = "size_limit_exceeded"
    TRANSPORT = "transport"
    CANCELED = "canceled"
    API = "api"


class ErrorCode(str, Enum):
    """Known error codes.

    API errors carry whatever ``code`` string the server returned, which is
    usually (but not necessarily) one of these values.  Because this is a
    :class:`str` enum, ``err.code == ErrorCode.VALIDATION_ERROR`` works for
    plain strings too.
    """

    # Returned by the Notion API
    VALIDATION_ERROR = "validation_error"
    INVALID_REQUEST = "invalid_request"
    INVALID_JSON = "invalid_json"
    MISSING_VERSION = "missing_version"
    UNAUTHORIZED = "unauthorized"
    RESTRICTED_RESOURCE = "restricted_resource"
    OBJECT_NOT_FOUND = "object_not_found"
    RATE_LIMITED = "rate_limited"
    INTERNAL_SERVER_ERROR = "internal_server_error"
    CONFLICT_ERROR = "conflict_error"
    SERVICE_UNAVAILABLE = "service_unavailable"

    # Raised by the client itself
    INVALID_INPUT = "invalid_input"
    SIZE_LIMIT_EXCEEDED = "size_limit_exceeded"
    REQUEST_TIMEOUT = "request_timeout"
    CONTEXT_CANCELED = "context_canceled"


# ---------------------------------------------------------------------------
# Base error
# ---------------------------------------------------------------------------

class NotionkitError(Exception):
    """Base exception for all notionkit errors.

    Parameters
    ----------
    code:
        Machine-readable error code.  A value from :class:`ErrorCode` for
        client-side failures, or the server's ``code`` for API errors.
    message:
        Description of what went wrong.  For API errors this is the
        server's ``message`` verbatim.
    status:
        HTTP status code, or the HTTP-equivalent for client-side failures
        (400 for bad input, 499 for cancellation, 504 for transport).
    context:
        Arbitrary structured diagnostic data.
    cause:
        The underlying exception, if this error wraps another.
    """

    kind: ErrorKind = ErrorKind.API

    def __init__(
        self,
        code: str,
        message: str,
        status: int,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.code: str = code
        self.message: str = message
        self.status: int = status
        self.context: dict[str, Any] = context or {}
        self.cause: Exception | None = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    @property
    def retryable(self) -> bool:
        """``True`` when the same call may succeed if issued again later."""
        return False

    def __str__(self) -> str:
        code = self.code.value if isinstance(self.code, ErrorCode) else self.code
        return f"notion: {self.message} (status: {self.status}, code: {code})"

    def __repr__(self) -> str:
        ctx = f", context={self.context!r}" if self.context else ""
        return (
            f"{type(self).__name__}(code={self.code!r}, message={self.message!r}, "
            f"status={self.status!r}{ctx})"
        )


# ---------------------------------------------------------------------------
# Client-side failures
# ---------------------------------------------------------------------------

class NotionkitSerializationError(NotionkitError):
    """A request body could not be encoded, or a response body could not be
    decoded.

    When raised while decoding a response, ``status`` is the response's
    original status code.

    Context keys: ``method``, ``path``, ``phase`` (``"encode"`` or
    ``"decode"``).
    """

    kind = ErrorKind.SERIALIZATION

    def __init__(
        self,
        message: str,
        status: int = 400,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(ErrorCode.INVALID_JSON, message, status, context, cause)


class NotionkitSizeLimitError(NotionkitError):
    """The serialized request body exceeds the configured maximum.

    Context keys: ``size_bytes``, ``max_bytes``.
    """

    kind = ErrorKind.SIZE_LIMIT_EXCEEDED

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(ErrorCode.SIZE_LIMIT_EXCEEDED, message, 400, context, cause)


class NotionkitTransportError(NotionkitError):
    """A network-level failure (timeout, DNS, connection reset) persisted
    through every attempt.

    Context keys: ``attempts``, ``method``, ``path``.
    """

    kind = ErrorKind.TRANSPORT

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(ErrorCode.REQUEST_TIMEOUT, message, 504, context, cause)

    @property
    def retryable(self) -> bool:
        return True


class NotionkitCanceledError(NotionkitError):
    """The caller's cancel token fired before the call completed.

    Context keys: ``attempt``, ``phase`` (``"before_send"``, ``"send"``,
    ``"backoff"``).
    """

    kind = ErrorKind.CANCELED

    def __init__(
        self,
        message: str = "context canceled",
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(ErrorCode.CONTEXT_CANCELED, message, 499, context, cause)


# ---------------------------------------------------------------------------
# API errors
# ---------------------------------------------------------------------------

class NotionkitAPIError(NotionkitError):
    """The Notion API rejected the request with a ``{code, message}`` payload.

    Subclasses narrow the status; callers that only care about the category
    can catch this class.

    Context keys: ``method``, ``path``, ``attempts``.
    """

    kind = ErrorKind.API

    def __init__(
        self,
        code: str,
        message: str,
        status: int,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(code, message, status, context, cause)

    @property
    def retryable(self) -> bool:
        return self.status == 429 or self.status >= 500


class NotionkitValidationError(NotionkitAPIError):
    """400: the request payload was invalid."""


class NotionkitAuthError(NotionkitAPIError):
    """401: the integration token is invalid or expired."""


class NotionkitPermissionError(NotionkitAPIError):
    """403: the integration lacks access to the resource."""


class NotionkitNotFoundError(NotionkitAPIError):
    """404: the resource does not exist or is not shared with the integration."""


class NotionkitConflictError(NotionkitAPIError):
    """409: the resource changed concurrently."""


class NotionkitRateLimitError(NotionkitAPIError):
    """429 after the retry budget ran out."""


class NotionkitServerError(NotionkitAPIError):
    """5xx after the retry budget ran out."""


_STATUS_ERRORS: dict[int, type[NotionkitAPIError]] = {
    400: NotionkitValidationError,
    401: NotionkitAuthError,
    403: NotionkitPermissionError,
    404: NotionkitNotFoundError,
    409: NotionkitConflictError,
    429: NotionkitRateLimitError,
}


def api_error_for_status(
    status: int,
    code: str,
    message: str,
    context: dict[str, Any] | None = None,
) -> NotionkitAPIError:
    """Build the :class:`NotionkitAPIError` subclass matching *status*."""
    if status >= 500:
        cls: type[NotionkitAPIError] = NotionkitServerError
    else:
        cls = _STATUS_ERRORS.get(status, NotionkitAPIError)
    return cls(code=code, message=message, status=status, context=context)


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------

def is_not_found(err: BaseException) -> bool:
    """Return ``True`` if *err* is a 404 from the API."""
    return isinstance(err, NotionkitError) and err.status == 404


def is_rate_limited(err: BaseException) -> bool:
    return isinstance(err, NotionkitError) and (
        err.code == ErrorCode.RATE_LIMITED or err.status == 429
    )


def is_size_limit_exceeded(err: BaseException) -> bool:
    return isinstance(err, NotionkitError) and err.kind is ErrorKind.SIZE_LIMIT_EXCEEDED


def is_validation_error(err: BaseException) -> bool:
    return isinstance(err, NotionkitError) and err.code == ErrorCode.VALIDATION_ERROR


def is_retryable(err: BaseException) -> bool:
    """Return ``True`` if retrying the same call later may succeed."""
    return isinstance(err, NotionkitError) and err.retryable
