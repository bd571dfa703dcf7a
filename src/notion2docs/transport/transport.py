"""Sync and async HTTP transports for the Notion and Google Docs APIs.

Both services get the same request lifecycle:

1. Take a token-bucket slot (wait if needed).
2. Send the request with the service's auth headers.
3. ``2xx``: return the parsed JSON body.
4. ``429``: honour ``Retry-After``, then retry.
5. ``5xx`` / network error: exponential backoff, then retry.
6. Other ``4xx``: raise the matching typed error at once.
7. Attempts used up: raise :class:`Notion2DocsRetryExhaustedError`.

Use :func:`notion_transport` / :func:`docs_transport` (and their async
twins) rather than constructing transports by hand.
"""

from __future__ import annotations

import asyncio
import json as _json
import sys
import time
from collections.abc import AsyncIterator, Iterator
from typing import Any

import httpx

from notion2docs.config import Notion2DocsConfig
from notion2docs.errors import (
    Notion2DocsAuthError,
    Notion2DocsConflictError,
    Notion2DocsNetworkError,
    Notion2DocsNotFoundError,
    Notion2DocsPermissionError,
    Notion2DocsRetryExhaustedError,
    Notion2DocsValidationError,
)
from notion2docs.observability import NoopMetricsHook, get_logger, redact

from .rate_limit import AsyncTokenBucket, TokenBucket
from .retries import (
    RETRYABLE_STATUSES,
    compute_backoff,
    parse_retry_after,
    retry_reason,
    should_retry,
)

log = get_logger("notion2docs.transport")

PAGE_SIZE = 100


# ---------------------------------------------------------------------------
# Error mapping and debug dumps
# ---------------------------------------------------------------------------

def _error_details(response: httpx.Response, service: str) -> tuple[str, str, dict]:
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    if service == "docs":
        err = body.get("error") if isinstance(body.get("error"), dict) else {}
        return err.get("message") or response.text[:500], err.get("status", ""), body
    return body.get("message") or response.text[:500], body.get("code", ""), body


def _raise_for_status(
    response: httpx.Response, method: str, path: str, service: str = "notion"
) -> None:
    """Raise the typed error for a non-retryable 4xx *response*."""
    status = response.status_code
    message, api_code, body = _error_details(response, service)
    where = f"{service} {method} {path}"
    base = {"status_code": status, "service": service, "api_code": api_code}

    if status == 401:
        raise Notion2DocsAuthError(
            message=f"Authentication failed on {where}: {message}", context=base
        )
    if status == 403:
        raise Notion2DocsPermissionError(
            message=f"Permission denied on {where}: {message}",
            context={**base, "operation": f"{method} {path}"},
        )
    if status == 404:
        raise Notion2DocsNotFoundError(
            message=f"Resource not found on {where}: {message}",
            context={**base, "path": path},
        )
    if status == 409 or api_code == "FAILED_PRECONDITION":
        raise Notion2DocsConflictError(
            message=f"Conflict on {where}: {message}", context=base
        )
    raise Notion2DocsValidationError(
        message=f"Client error {status} on {where}: {message}",
        context={**base, "body": body},
    )


def _dump_payload(
    method: str,
    url: str,
    payload: Any | None,
    response_status: int | None,
    response_body: Any | None,
    secrets: tuple[str, ...] = (),
) -> None:
    """Print a redacted request/response dump to stderr."""
    dump: dict[str, Any] = {"method": method, "url": url}
    if payload is not None:
        dump["request_body"] = payload
    if response_status is not None:
        dump["response_status"] = response_status
    if response_body is not None:
        dump["response_body"] = response_body
    print(_json.dumps(redact(dump, secrets), indent=2, default=str), file=sys.stderr)


# ---------------------------------------------------------------------------
# Lifecycle steps shared by both transports
# ---------------------------------------------------------------------------

class _Lifecycle:
    """Per-transport bookkeeping that does not depend on sync vs async I/O."""

    def __init__(
        self,
        config: Notion2DocsConfig,
        service: str,
        secrets: tuple[str, ...],
    ) -> None:
        self.config = config
        self.service = service
        self.secrets = secrets
        self.metrics = config.metrics if config.metrics is not None else NoopMetricsHook()

    def tags(self, method: str, path: str, **extra: str) -> dict[str, str]:
        return {"service": self.service, "method": method, "path": path, **extra}

    def waited(self, method: str, path: str, wait: float) -> None:
        if wait > 0:
            self.metrics.timing(
                "notion2docs.rate_limit_wait_ms", wait * 1000, tags=self.tags(method, path)
            )

    def network_failure(self, method: str, path: str, exc: Exception, attempt: int) -> float:
        """Backoff delay after a network error, or raise if out of attempts."""
        self.metrics.increment(
            "notion2docs.requests_total", tags=self.tags(method, path, status="error")
        )
        log.warning(
            "Request network error",
            extra={"extra_fields": {
                "op": "request",
                "service": self.service,
                "method": method,
                "path": path,
                "attempt": attempt + 1,
                "error": str(exc),
            }},
        )
        if not should_retry(None, exc, attempt, self.config.retry_max_attempts):
            raise Notion2DocsNetworkError(
                message=f"Network error on {self.service} {method} {path}: {exc}",
                context={"url": path, "attempt": attempt + 1, "service": self.service},
                cause=exc,
            ) from exc
        self.metrics.increment(
            "notion2docs.retries_total",
            tags=self.tags(method, path, reason=retry_reason(None)),
        )
        return compute_backoff(
            attempt,
            base=self.config.retry_base_delay,
            maximum=self.config.retry_max_delay,
            jitter=self.config.retry_jitter,
        )

    def received(
        self,
        method: str,
        path: str,
        response: httpx.Response,
        elapsed_ms: float,
        payload: Any,
    ) -> None:
        status = str(response.status_code)
        self.metrics.increment(
            "notion2docs.requests_total", tags=self.tags(method, path, status=status)
        )
        self.metrics.timing(
            "notion2docs.request_duration_ms",
            elapsed_ms,
            tags=self.tags(method, path, status=status),
        )
        if self.config.debug_dump_payload:
            try:
                body = response.json()
            except ValueError:
                body = response.text[:1000]
            _dump_payload(
                method, str(response.url), payload, response.status_code, body, self.secrets
            )

    def retry_delay(
        self, method: str, path: str, response: httpx.Response, attempt: int
    ) -> float | None:
        """Delay before retrying a failed *response*.

        Raises for non-retryable statuses; returns ``None`` when the
        attempts are used up.
        """
        status = response.status_code
        if status not in RETRYABLE_STATUSES:
            _raise_for_status(response, method, path, self.service)
        if not should_retry(status, None, attempt, self.config.retry_max_attempts):
            return None

        retry_after: float | None = None
        if status == 429:
            retry_after = parse_retry_after(response)
            self.metrics.increment(
                "notion2docs.rate_limited_total", tags=self.tags(method, path)
            )
            log.warning(
                "Rate limited",
                extra={"extra_fields": {
                    "op": "request",
                    "service": self.service,
                    "method": method,
                    "path": path,
                    "status_code": 429,
                    "retry_after": retry_after,
                    "attempt": attempt + 1,
                }},
            )
        self.metrics.increment(
            "notion2docs.retries_total",
            tags=self.tags(method, path, reason=retry_reason(status)),
        )
        return compute_backoff(
            attempt,
            base=self.config.retry_base_delay,
            maximum=self.config.retry_max_delay,
            jitter=self.config.retry_jitter,
            retry_after=retry_after,
        )

    def exhausted(
        self,
        method: str,
        path: str,
        last_status: int | None,
        last_exception: Exception | None,
    ) -> Notion2DocsRetryExhaustedError:
        attempts = self.config.retry_max_attempts
        ctx: dict[str, Any] = {
            "attempts": attempts,
            "last_status_code": last_status,
            "service": self.service,
        }
        last = f"last error: {last_exception}" if last_exception else f"last status: {last_status}"
        return Notion2DocsRetryExhaustedError(
            message=f"All {attempts} attempts exhausted for {self.service} {method} {path} ({last})",
            context=ctx,
            cause=last_exception,
        )


def _success_body(response: httpx.Response) -> dict:
    if response.status_code == 204 or not response.content:
        return {}
    result: dict = response.json()
    return result


def _with_cursor(method: str, kwargs: dict[str, Any], cursor: str | None) -> None:
    key = "json" if method.upper() in ("POST", "PATCH") else "params"
    args: dict = dict(kwargs.get(key) or {})
    args["page_size"] = PAGE_SIZE
    if cursor is None:
        args.pop("start_cursor", None)
    else:
        args["start_cursor"] = cursor
    kwargs[key] = args


# ---------------------------------------------------------------------------
# Sync transport
# ---------------------------------------------------------------------------

class Transport:
    """Synchronous JSON-over-HTTP transport with pacing and retries.

    Parameters
    ----------
    config:
        Retry, timeout, proxy, metrics and debug settings.
    service:
        ``"notion"`` or ``"docs"``; selects error-body parsing and tags
        metrics.
    base_url:
        Root URL every request path is relative to.
    headers:
        Default headers, including authorization.
    rate_rps:
        Sustained request rate for the token bucket.
    secrets:
        Strings scrubbed from debug dumps.
    """

    def __init__(
        self,
        config: Notion2DocsConfig,
        *,
        service: str,
        base_url: str,
        headers: dict[str, str],
        rate_rps: float,
        secrets: tuple[str, ...] = (),
    ) -> None:
        self._config = config
        self._life = _Lifecycle(config, service, secrets)
        self._bucket = TokenBucket(rate_rps=rate_rps, burst=10)
        proxy: httpx.URL | str | None = config.http_proxy
        self._client = httpx.Client(
            base_url=base_url,
            headers=headers,
            timeout=httpx.Timeout(config.timeout_seconds),
            proxy=proxy,
        )

    @property
    def service(self) -> str:
        return self._life.service

    def set_bearer_token(self, token: str) -> None:
        """Replace the ``Authorization`` bearer token (after a refresh)."""
        self._client.headers["Authorization"] = f"Bearer {token}"
        self._life.secrets = (*self._life.secrets, token)

    def request(self, method: str, path: str, **kwargs: Any) -> dict:
        """Send a request and return its JSON body.

        ``kwargs`` are forwarded to :meth:`httpx.Client.request`.

        Raises
        ------
        Notion2DocsAuthError, Notion2DocsPermissionError, Notion2DocsNotFoundError
            On 401, 403 and 404.
        Notion2DocsConflictError
            On 409 or a failed revision precondition.
        Notion2DocsValidationError
            On any other non-retryable 4xx.
        Notion2DocsRetryExhaustedError
            When every attempt failed with a retryable status.
        Notion2DocsNetworkError
            When the last attempt failed at the network level.
        """
        life = self._life
        last_exception: Exception | None = None
        last_status: int | None = None
        payload = kwargs.get("json")

        for attempt in range(self._config.retry_max_attempts):
            life.waited(method, path, self._bucket.acquire())

            t0 = time.monotonic()
            try:
                response = self._client.request(method, path, **kwargs)
            except (httpx.TimeoutException, httpx.NetworkError) as exc:
                last_exception, last_status = exc, None
                time.sleep(life.network_failure(method, path, exc, attempt))
                continue

            last_exception, last_status = None, response.status_code
            life.received(method, path, response, (time.monotonic() - t0) * 1000, payload)

            if 200 <= response.status_code < 300:
                return _success_body(response)

            delay = life.retry_delay(method, path, response, attempt)
            if delay is None:
                break
            time.sleep(delay)

        raise life.exhausted(method, path, last_status, last_exception)

    def paginate(self, path: str, **kwargs: Any) -> Iterator[dict]:
        """Yield every ``results`` item of a cursor-paginated Notion endpoint.

        Pass ``method="POST"`` for endpoints taking a JSON body (database
        queries); pagination fields go into ``json`` or ``params``
        accordingly.
        """
        method = kwargs.pop("method", "GET")
        cursor: str | None = None
        while True:
            _with_cursor(method, kwargs, cursor)
            data = self.request(method, path, **kwargs)
            yield from data.get("results", [])
            cursor = data.get("next_cursor")
            if not data.get("has_more", False) or cursor is None:
                break

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> Transport:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


# ---------------------------------------------------------------------------
# Async transport
# ---------------------------------------------------------------------------

class AsyncTransport:
    """Asynchronous twin of :class:`Transport` built on ``httpx.AsyncClient``."""

    def __init__(
        self,
        config: Notion2DocsConfig,
        *,
        service: str,
        base_url: str,
        headers: dict[str, str],
        rate_rps: float,
        secrets: tuple[str, ...] = (),
    ) -> None:
        self._config = config
        self._life = _Lifecycle(config, service, secrets)
        self._bucket = AsyncTokenBucket(rate_rps=rate_rps, burst=10)
        proxy: httpx.URL | str | None = config.http_proxy
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=httpx.Timeout(config.timeout_seconds),
            proxy=proxy,
        )

    @property
    def service(self) -> str:
        return self._life.service

    def set_bearer_token(self, token: str) -> None:
        self._client.headers["Authorization"] = f"Bearer {token}"
        self._life.secrets = (*self._life.secrets, token)

    async def request(self, method: str, path: str, **kwargs: Any) -> dict:
        """Async equivalent of :meth:`Transport.request`."""
        life = self._life
        last_exception: Exception | None = None
        last_status: int | None = None
        payload = kwargs.get("json")

        for attempt in range(self._config.retry_max_attempts):
            life.waited(method, path, await self._bucket.acquire())

            t0 = time.monotonic()
            try:
                response = await self._client.request(method, path, **kwargs)
            except (httpx.TimeoutException, httpx.NetworkError) as exc:
                last_exception, last_status = exc, None
                await asyncio.sleep(life.network_failure(method, path, exc, attempt))
                continue

            last_exception, last_status = None, response.status_code
            life.received(method, path, response, (time.monotonic() - t0) * 1000, payload)

            if 200 <= response.status_code < 300:
                return _success_body(response)

            delay = life.retry_delay(method, path, response, attempt)
            if delay is None:
                break
            await asyncio.sleep(delay)

        raise life.exhausted(method, path, last_status, last_exception)

    async def paginate(self, path: str, **kwargs: Any) -> AsyncIterator[dict]:
        """Async equivalent of :meth:`Transport.paginate`."""
        method = kwargs.pop("method", "GET")
        cursor: str | None = None
        while True:
            _with_cursor(method, kwargs, cursor)
            data = await self.request(method, path, **kwargs)
            for item in data.get("results", []):
                yield item
            cursor = data.get("next_cursor")
            if not data.get("has_more", False) or cursor is None:
                break

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> AsyncTransport:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

def _notion_kwargs(config: Notion2DocsConfig) -> dict[str, Any]:
    return {
        "service": "notion",
        "base_url": config.notion_base_url,
        "headers": {
            "Authorization": f"Bearer {config.notion_token}",
            "Notion-Version": config.notion_version,
            "Content-Type": "application/json",
        },
        "rate_rps": config.rate_limit_rps,
        "secrets": (config.notion_token,) if config.notion_token else (),
    }


def _docs_kwargs(config: Notion2DocsConfig, access_token: str) -> dict[str, Any]:
    return {
        "service": "docs",
        "base_url": config.docs_base_url,
        "headers": {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        },
        "rate_rps": config.docs_rate_limit_rps,
        "secrets": (access_token,) if access_token else (),
    }


def notion_transport(config: Notion2DocsConfig) -> Transport:
    """Transport for the Notion API (bearer token plus ``Notion-Version``)."""
    return Transport(config, **_notion_kwargs(config))


def docs_transport(config: Notion2DocsConfig, access_token: str) -> Transport:
    """Transport for the Google Docs API authorized with an OAuth access token."""
    return Transport(config, **_docs_kwargs(config, access_token))


def async_notion_transport(config: Notion2DocsConfig) -> AsyncTransport:
    return AsyncTransport(config, **_notion_kwargs(config))


def async_docs_transport(config: Notion2DocsConfig, access_token: str) -> AsyncTransport:
    return AsyncTransport(config, **_docs_kwargs(config, access_token))
