"""HTTP transports, retry policy and rate limiting."""

from .rate_limit import AsyncTokenBucket, TokenBucket
from .retries import compute_backoff, parse_retry_after, should_retry
from .transport import (
    AsyncTransport,
    Transport,
    async_docs_transport,
    async_notion_transport,
    docs_transport,
    notion_transport,
)

__all__ = [
    "AsyncTokenBucket",
    "AsyncTransport",
    "TokenBucket",
    "Transport",
    "async_docs_transport",
    "async_notion_transport",
    "compute_backoff",
    "docs_transport",
    "notion_transport",
    "parse_retry_after",
    "should_retry",
]
