"""Metrics hook protocol and no-op default implementation.

notion2docs emits counters and timings around HTTP requests and page
transfers.  A :class:`NoopMetricsHook` is used unless the caller passes
its own object satisfying :class:`MetricsHook` via ``config.metrics``.

Emitted metric names:

* ``notion2docs.requests_total``             -- counter
* ``notion2docs.retries_total``              -- counter
* ``notion2docs.rate_limited_total``         -- counter
* ``notion2docs.request_duration_ms``        -- timing
* ``notion2docs.rate_limit_wait_ms``         -- timing
* ``notion2docs.pages_transferred_total``    -- counter
* ``notion2docs.pages_failed_total``         -- counter
* ``notion2docs.operations_submitted_total`` -- counter
* ``notion2docs.page_transfer_duration_ms``  -- timing
* ``notion2docs.cache_hits_total``           -- counter
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MetricsHook(Protocol):
    """Protocol that any metrics backend must satisfy.

    All methods accept an optional *tags* dict of string keys and values.
    """

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Increment a counter metric."""
        ...

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Record a duration in milliseconds."""
        ...

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Set a gauge metric to an absolute value."""
        ...


class NoopMetricsHook:
    """Default metrics implementation that discards all data points."""

    __slots__ = ()

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass
