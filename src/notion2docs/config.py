"""Configuration for notion2docs.

:class:`Notion2DocsConfig` is a dataclass that captures every tuneable knob
used by the clients, transports and compiler.  Instances are passed to both
:class:`Notion2DocsClient` and :class:`AsyncNotion2DocsClient`.

:meth:`Notion2DocsConfig.from_env` builds a config from the process
environment using the variable names listed in :data:`ENV_VARS`.
"""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Literal

from notion2docs.errors import Notion2DocsConfigError

ENV_VARS: dict[str, str] = {
    "notion_token": "NOTION_API_KEY",
    "notion_database_id": "NOTION_DATABASE_ID",
    "notion_page_id": "NOTION_PAGE_ID",
    "google_client_id": "GOOGLE_CLIENT_ID",
    "google_client_secret": "GOOGLE_CLIENT_SECRET",
    "google_doc_id": "GOOGLE_DOC_ID",
    "fetch_child_databases": "FETCH_CHILD_DATABASES",
    "submit_mode": "NOTION2DOCS_SUBMIT_MODE",
    "store_path": "NOTION2DOCS_STORE_PATH",
}
"""Mapping of config field name to environment variable name."""

_SECRET_FIELDS: frozenset[str] = frozenset({"notion_token", "google_client_secret"})

_TRUTHY: frozenset[str] = frozenset({"1", "true", "yes", "on"})


def _mask(value: str) -> str:
    return f"...{value[-4:]}" if len(value) >= 4 else "****"


@dataclass
class Notion2DocsConfig:
    """Complete configuration for a notion2docs client.

    Parameters
    ----------
    notion_token:
        Notion integration token.  Never logged.
    notion_version:
        Value of the ``Notion-Version`` header.
    notion_base_url:
        Notion API root URL.
    docs_base_url:
        Google Docs API root URL.
    google_doc_id:
        Destination document ID.
    notion_page_id:
        Default source page, used when no page is given explicitly.
    notion_database_id:
        Default source database for page listing.
    google_client_id / google_client_secret:
        OAuth desktop client used to authorize Google Docs access.
    google_credentials_path:
        Where the authorized-user credentials JSON is stored.
    submit_mode:
        * ``"batch"`` -- one ``batchUpdate`` call per page.
        * ``"eager"`` -- one call for the page header and one per
          top-level block, in order.
    fetch_child_databases:
        Queue the pages of child databases found in a transferred page.
    render_database_tables:
        Query linked databases and render their rows as a pipe table.
    use_page_cache:
        Reuse fetched pages from the local store while their
        ``last_edited_time`` is unchanged.
    store_path:
        Path of the JSON file holding the page cache and section
        placements.
    max_fetch_depth:
        Maximum block nesting depth fetched.  ``None`` means unlimited.
    code_font_family:
        Font applied to code blocks and inline code.
    quote_indent_pt:
        Start and first-line indent applied to quote paragraphs.
    retry_max_attempts, retry_base_delay, retry_max_delay, retry_jitter:
        Retry policy for retryable HTTP failures.
    rate_limit_rps:
        Client-side pacing for the Notion API (token bucket).
    docs_rate_limit_rps:
        Client-side pacing for the Google Docs API.
    timeout_seconds:
        HTTP request timeout.
    http_proxy:
        Optional HTTP/HTTPS proxy URL.
    metrics:
        Optional :class:`~notion2docs.observability.MetricsHook`.
    debug_dump_payload:
        Write redacted request/response payloads to *stderr*.
    """

    # ── Notion ──────────────────────────────────────────────────────────
    notion_token: str = ""

    notion_version: str = "2022-06-28"

    notion_base_url: str = "https://api.notion.com/v1"

    notion_page_id: str | None = None

    notion_database_id: str | None = None

    # ── Google ──────────────────────────────────────────────────────────
    docs_base_url: str = "https://docs.googleapis.com/v1"

    google_doc_id: str = ""

    google_client_id: str = ""

    google_client_secret: str = ""

    google_credentials_path: str = "google-credentials.json"

    # ── Transfer ────────────────────────────────────────────────────────
    submit_mode: Literal["batch", "eager"] = "batch"

    fetch_child_databases: bool = False

    render_database_tables: bool = True

    use_page_cache: bool = True

    store_path: str = ".notion2docs.json"

    max_fetch_depth: int | None = None

    # ── Styling ─────────────────────────────────────────────────────────
    code_font_family: str = "Consolas"

    quote_indent_pt: float = 36.0

    # ── Retry & rate ────────────────────────────────────────────────────
    retry_max_attempts: int = 5

    retry_base_delay: float = 1.0

    retry_max_delay: float = 60.0

    retry_jitter: bool = True

    rate_limit_rps: float = 3.0

    docs_rate_limit_rps: float = 1.0

    # ── HTTP ────────────────────────────────────────────────────────────
    timeout_seconds: float = 30.0

    http_proxy: str | None = None

    # ── Observability ──────────────────────────────────────────────────
    metrics: Any | None = None

    debug_dump_payload: bool = False

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        from urllib.parse import urlparse

        for name in ("notion_base_url", "docs_base_url"):
            parsed = urlparse(getattr(self, name))
            if parsed.scheme == "http" and parsed.hostname not in (
                "localhost",
                "127.0.0.1",
                "::1",
            ):
                raise ValueError(
                    f"{name} uses insecure HTTP for non-local host '{parsed.hostname}'. "
                    "Use HTTPS to protect your credentials, or target localhost for testing."
                )

        if self.submit_mode not in ("batch", "eager"):
            raise ValueError(f"submit_mode must be 'batch' or 'eager', got {self.submit_mode!r}")
        if self.retry_max_attempts < 0:
            raise ValueError(f"retry_max_attempts must be >= 0, got {self.retry_max_attempts}")
        if self.retry_base_delay < 0:
            raise ValueError(f"retry_base_delay must be >= 0, got {self.retry_base_delay}")
        if self.retry_max_delay < 0:
            raise ValueError(f"retry_max_delay must be >= 0, got {self.retry_max_delay}")
        if self.rate_limit_rps <= 0:
            raise ValueError(f"rate_limit_rps must be > 0, got {self.rate_limit_rps}")
        if self.docs_rate_limit_rps <= 0:
            raise ValueError(f"docs_rate_limit_rps must be > 0, got {self.docs_rate_limit_rps}")
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {self.timeout_seconds}")
        if self.max_fetch_depth is not None and self.max_fetch_depth < 0:
            raise ValueError(f"max_fetch_depth must be >= 0, got {self.max_fetch_depth}")
        if self.quote_indent_pt < 0:
            raise ValueError(f"quote_indent_pt must be >= 0, got {self.quote_indent_pt}")

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        **overrides: Any,
    ) -> Notion2DocsConfig:
        """Build a config from environment variables.

        Parameters
        ----------
        environ:
            Mapping to read from.  Defaults to :data:`os.environ`.
        **overrides:
            Explicit field values that take precedence over the
            environment.

        Returns
        -------
        Notion2DocsConfig
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for field_name, var in ENV_VARS.items():
            raw = env.get(var)
            if raw is None or raw == "":
                continue
            if field_name == "fetch_child_databases":
                values[field_name] = raw.strip().lower() in _TRUTHY
            else:
                values[field_name] = raw
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def validate_for_transfer(self) -> None:
        """Raise :class:`Notion2DocsConfigError` if a transfer cannot start.

        All missing values are reported at once.
        """
        missing = [
            ENV_VARS[name]
            for name in ("notion_token", "google_doc_id", "google_client_id", "google_client_secret")
            if not getattr(self, name)
        ]
        if missing:
            raise Notion2DocsConfigError(
                message=f"Missing required configuration: {', '.join(missing)}",
                context={"missing": missing},
            )

    def __repr__(self) -> str:
        """Mask secrets to prevent accidental credential leakage."""
        parts: list[str] = []
        for f in dataclasses.fields(self):
            val = getattr(self, f.name)
            if f.name in _SECRET_FIELDS:
                parts.append(f"{f.name}='{_mask(val)}'")
            else:
                parts.append(f"{f.name}={val!r}")
        return f"Notion2DocsConfig({', '.join(parts)})"
