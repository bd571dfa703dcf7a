"""Error hierarchy for notion2docs.

Every public error class inherits from Notion2DocsError. Each carries a
machine-readable ``code`` (from :class:`ErrorCode`), a human-readable
``message``, an optional structured ``context`` dict, and an optional
``cause`` (chained exception).

Compilers never raise these for irregular block data; they degrade to
empty results or placeholder text.  Errors surface from the HTTP layer,
the local store, configuration checks and the document buffer.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Error code enum
# ---------------------------------------------------------------------------

class ErrorCode(str, Enum):
    """Machine-readable error codes for every error the package can raise."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    AUTH_ERROR = "AUTH_ERROR"
    PERMISSION_ERROR = "PERMISSION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    RATE_LIMITED = "RATE_LIMITED"
    RETRY_EXHAUSTED = "RETRY_EXHAUSTED"
    NETWORK_ERROR = "NETWORK_ERROR"
    CONFIG_ERROR = "CONFIG_ERROR"
    REFERENCE_ERROR = "REFERENCE_ERROR"
    STORE_ERROR = "STORE_ERROR"
    DOCUMENT_ERROR = "DOCUMENT_ERROR"


# ---------------------------------------------------------------------------
# Base error
# ---------------------------------------------------------------------------

class Notion2DocsError(Exception):
    """Base exception for all notion2docs errors.

    Parameters
    ----------
    code:
        A value from :class:`ErrorCode` (or any string) identifying the
        error category.
    message:
        A developer-friendly description of what went wrong.
    context:
        Arbitrary structured data providing extra diagnostic detail.
        Keys and expected types are documented per subclass.
    cause:
        The underlying exception, if this error wraps another.
    """

    def __init__(
        self,
        code: str,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.code: str = code
        self.message: str = message
        self.context: dict[str, Any] = context or {}
        self.cause: Exception | None = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        ctx = f", context={self.context!r}" if self.context else ""
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r}{ctx})"


class _CodedError(Notion2DocsError):
    """Subclass helper binding a fixed :class:`ErrorCode`."""

    _code: ErrorCode = ErrorCode.VALIDATION_ERROR

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=self._code,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# API / transport errors
# ---------------------------------------------------------------------------

class Notion2DocsValidationError(_CodedError):
    """An API returned 400 (or another non-retryable 4xx).

    Context keys: ``status_code``, ``service``, ``api_code``, ``body``.
    """

    _code = ErrorCode.VALIDATION_ERROR


class Notion2DocsAuthError(_CodedError):
    """An API returned 401, or Google credentials could not be obtained.

    Context keys: ``status_code``, ``service``.
    """

    _code = ErrorCode.AUTH_ERROR


class Notion2DocsPermissionError(_CodedError):
    """An API returned 403: the integration lacks access to the resource.

    Context keys: ``status_code``, ``service``, ``operation``.
    """

    _code = ErrorCode.PERMISSION_ERROR


class Notion2DocsNotFoundError(_CodedError):
    """An API returned 404.

    Context keys: ``status_code``, ``service``, ``path``.
    """

    _code = ErrorCode.NOT_FOUND


class Notion2DocsConflictError(_CodedError):
    """An API returned 409, or a Docs write was rejected because the
    document revision changed since it was read.

    Context keys: ``status_code``, ``service``, ``document_id``.
    """

    _code = ErrorCode.CONFLICT


class Notion2DocsRateLimitError(_CodedError):
    """Rate limit exceeded.

    Context keys: ``retry_after_seconds``, ``attempt``.
    """

    _code = ErrorCode.RATE_LIMITED


class Notion2DocsRetryExhaustedError(_CodedError):
    """All retry attempts have been exhausted for a retryable request.

    Context keys: ``attempts``, ``last_status_code``.
    """

    _code = ErrorCode.RETRY_EXHAUSTED


class Notion2DocsNetworkError(_CodedError):
    """A transport-level failure occurred (timeout, DNS, connection reset).

    Context keys: ``url``, ``attempt``.
    """

    _code = ErrorCode.NETWORK_ERROR


# ---------------------------------------------------------------------------
# Local errors
# ---------------------------------------------------------------------------

class Notion2DocsConfigError(_CodedError):
    """Required configuration is missing or invalid.

    Context keys: ``missing``.
    """

    _code = ErrorCode.CONFIG_ERROR


class Notion2DocsReferenceError(_CodedError):
    """A synced-block reference or linked database could not be resolved.

    Raised by resolution callbacks; block compilers catch it and render a
    placeholder instead.

    Context keys: ``block_id``, ``database_id``.
    """

    _code = ErrorCode.REFERENCE_ERROR


class Notion2DocsStoreError(_CodedError):
    """The local cache/placement store could not be read or written.

    Context keys: ``path``.
    """

    _code = ErrorCode.STORE_ERROR


class Notion2DocsDocumentError(_CodedError):
    """An operation addressed a range outside the document buffer.

    Context keys: ``operation``, ``index``, ``length``.
    """

    _code = ErrorCode.DOCUMENT_ERROR
