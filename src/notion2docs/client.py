"""Synchronous notion2docs client.

:class:`Notion2DocsClient` ties the pieces together: it fetches a Notion
page, locates (or appends) the page's section in the destination
document, compiles the page at that offset and submits the operations
under the configured submit mode.

Usage::

    from notion2docs import Notion2DocsClient, Notion2DocsConfig

    config = Notion2DocsConfig.from_env()
    with Notion2DocsClient(config) as client:
        result = client.transfer_page("<page_id>")
        print(result.message)
"""

from __future__ import annotations

import time
from typing import Any

from google.oauth2.credentials import Credentials

from notion2docs.buffer import DocumentBuffer
from notion2docs.compiler import CompileContext, PageCompiler
from notion2docs.config import Notion2DocsConfig
from notion2docs.docs_api import DocumentsAPI, access_token, get_credentials, revision_of
from notion2docs.errors import Notion2DocsError
from notion2docs.fetch import PageFetcher, child_database_ids
from notion2docs.models import (
    DeleteContentRange,
    MultiTransferResult,
    Operation,
    Page,
    PageListItem,
    TransferResult,
    to_requests,
)
from notion2docs.notion_api import BlockAPI, DatabaseAPI, PageAPI
from notion2docs.observability import NoopMetricsHook, get_logger
from notion2docs.placement import PlacementPlan, plan_placement, record_write
from notion2docs.store import LocalStore
from notion2docs.transport import Transport, docs_transport, notion_transport

log = get_logger("notion2docs.client")


# ---------------------------------------------------------------------------
# Helpers shared with the async client
# ---------------------------------------------------------------------------

def normalize_id(object_id: str) -> str:
    """Notion IDs compare equal with or without hyphens."""
    return object_id.replace("-", "").lower()


def compile_batches(
    page: Page,
    plan: PlacementPlan,
    ctx: CompileContext,
    submit_mode: str,
) -> tuple[list[list[Operation]], int]:
    """Split the work of writing *page* into ``batchUpdate`` calls.

    ``"batch"`` mode yields one list holding the placement preamble and
    the whole page.  ``"eager"`` mode yields the preamble, the page
    header and then one list per top-level block, to be submitted in
    order.  Also returns the compiled page length.
    """
    compiler = PageCompiler(ctx)
    if submit_mode == "eager":
        segments = compiler.compile_page_segments(page, plan.offset)
        batches = [plan.operations] + [segment.operations for segment in segments]
        length = sum(segment.length for segment in segments)
        return [batch for batch in batches if batch], length
    compiled = compiler.compile_page(page, plan.offset)
    return [plan.operations + compiled.operations], compiled.length


def summarize(results: list[TransferResult]) -> MultiTransferResult:
    ok = sum(1 for r in results if r.success)
    failed = len(results) - ok
    return MultiTransferResult(
        success=failed == 0,
        message=f"Transferred {ok} of {len(results)} page(s)"
        + (f", {failed} failed" if failed else ""),
        results=results,
        success_count=ok,
        failed_count=failed,
    )


def failure(page_id: str, exc: Notion2DocsError) -> TransferResult:
    return TransferResult(
        success=False,
        message=f"Failed to transfer page {page_id}: {exc.message}",
        notion_page_id=page_id,
        error=exc,
    )


class Notion2DocsClient:
    """Synchronous Notion to Google Docs transfer client.

    Parameters
    ----------
    config:
        Client configuration.  When omitted, one is built from
        ``**kwargs``.
    store:
        Page cache and placement store.  Defaults to a
        :class:`~notion2docs.store.LocalStore` at ``config.store_path``.
    credentials:
        Google OAuth credentials.  Loaded from
        ``config.google_credentials_path`` on first Docs access when omitted.
    interactive_auth:
        Run the browser consent flow when no stored credentials exist.
    """

    def __init__(
        self,
        config: Notion2DocsConfig | None = None,
        *,
        store: LocalStore | None = None,
        credentials: Credentials | None = None,
        interactive_auth: bool = False,
        **kwargs: Any,
    ) -> None:
        self._config = config if config is not None else Notion2DocsConfig(**kwargs)
        self._metrics = (
            self._config.metrics if self._config.metrics is not None else NoopMetricsHook()
        )
        self._store = store if store is not None else LocalStore(self._config.store_path)
        self._transport = notion_transport(self._config)
        self._pages = PageAPI(self._transport)
        self._blocks = BlockAPI(self._transport)
        self._databases = DatabaseAPI(self._transport)
        self._fetcher = PageFetcher(
            self._pages, self._blocks, self._databases, self._config, self._store
        )
        self._credentials = credentials
        self._interactive_auth = interactive_auth
        self._docs_transport: Transport | None = None
        self._documents: DocumentsAPI | None = None

    # ------------------------------------------------------------------
    # Transfers
    # ------------------------------------------------------------------

    def transfer_page(self, page_id: str, document_id: str | None = None) -> TransferResult:
        """Write one page into the destination document.

        The page replaces its earlier section when present, and is
        appended after a page break otherwise.  Errors are captured in the
        returned result rather than raised.
        """
        result, _ = self._transfer(page_id, document_id or self._config.google_doc_id)
        return result

    def transfer_pages(
        self, page_ids: list[str], document_id: str | None = None
    ) -> MultiTransferResult:
        """Transfer a worklist of pages one after another.

        Duplicate IDs are transferred once.  A failed page does not stop
        the run.  With ``fetch_child_databases`` the pages of every linked
        database found in a transferred page are queued as well.
        """
        doc_id = document_id or self._config.google_doc_id
        queue = list(page_ids)
        seen: set[str] = set()
        results: list[TransferResult] = []
        while queue:
            page_id = queue.pop(0)
            key = normalize_id(page_id)
            if key in seen:
                continue
            seen.add(key)
            result, page = self._transfer(page_id, doc_id)
            results.append(result)
            if page is not None and self._config.fetch_child_databases:
                queue.extend(self._child_database_pages(page))
        return summarize(results)

    def _transfer(self, page_id: str, doc_id: str) -> tuple[TransferResult, Page | None]:
        t0 = time.monotonic()
        try:
            page = self._fetcher.fetch_page(page_id)
            submitted, updated = self._write_page(page, doc_id)
        except Notion2DocsError as exc:
            self._metrics.increment("notion2docs.pages_failed_total")
            log.error(
                "page transfer failed",
                extra={"extra_fields": {
                    "op": "transfer_page",
                    "page_id": page_id,
                    "document_id": doc_id,
                    "error_code": exc.code,
                    "error": exc.message,
                }},
            )
            return failure(page_id, exc), None

        elapsed_ms = (time.monotonic() - t0) * 1000
        self._metrics.increment("notion2docs.pages_transferred_total")
        self._metrics.timing("notion2docs.page_transfer_duration_ms", elapsed_ms)
        log.info(
            "page transferred",
            extra={"extra_fields": {
                "op": "transfer_page",
                "page_id": page.id,
                "document_id": doc_id,
                "operations": submitted,
                "updated": updated,
                "mode": self._config.submit_mode,
            }},
        )
        verb = "Updated" if updated else "Appended"
        return TransferResult(
            success=True,
            message=f"{verb} page '{page.title}' in document {doc_id}",
            notion_page_id=page.id,
            google_doc_id=doc_id,
            updated=updated,
            operations=submitted,
        ), page

    def _write_page(self, page: Page, doc_id: str) -> tuple[int, bool]:
        documents = self._docs_api()
        snapshot = documents.snapshot(doc_id)
        record = self._store.get_placements(doc_id)
        plan = plan_placement(snapshot, page.id, record)

        batches, length = compile_batches(
            page, plan, self._compile_context(), self._config.submit_mode
        )
        revision = snapshot.revision_id
        submitted = 0
        for batch in batches:
            response = documents.batch_update(
                doc_id, to_requests(batch), required_revision_id=revision
            )
            revision = revision_of(response)
            submitted += len(batch)

        record_write(record, page.id, plan.written_range(length), plan.previous, revision)
        self._store.put_placements(record)
        self._metrics.increment("notion2docs.operations_submitted_total", submitted)
        return submitted, plan.is_update

    def _compile_context(self) -> CompileContext:
        return CompileContext(
            resolve_reference=self._fetcher.resolve_reference,
            query_database=(
                self._fetcher.query_database_rows
                if self._config.render_database_tables
                else None
            ),
            can_submit=True,
            code_font_family=self._config.code_font_family,
            quote_indent_pt=self._config.quote_indent_pt,
        )

    def _child_database_pages(self, page: Page) -> list[str]:
        queued: list[str] = []
        for database_id in child_database_ids(page.blocks):
            try:
                items = self._fetcher.list_database_pages(database_id)
            except Notion2DocsError as exc:
                log.warning(
                    "child database pages could not be listed",
                    extra={"extra_fields": {
                        "page_id": page.id,
                        "database_id": database_id,
                        "error": exc.message,
                    }},
                )
                continue
            queued.extend(item.id for item in items)
        return queued

    # ------------------------------------------------------------------
    # Other operations
    # ------------------------------------------------------------------

    def preview_page(self, page_id: str) -> DocumentBuffer:
        """Compile *page_id* into an empty in-memory document.

        Nothing is written to Google Docs.
        """
        page = self._fetcher.fetch_page(page_id)
        compiled = PageCompiler(self._compile_context()).compile_page(page, 1)
        return DocumentBuffer().apply(compiled.operations)

    def list_database_pages(self, database_id: str | None = None) -> list[PageListItem]:
        """Pages of a database, most recently edited first."""
        return self._fetcher.list_database_pages(
            database_id or self._config.notion_database_id or ""
        )

    def clear_document(self, document_id: str | None = None) -> int:
        """Delete the whole body of the destination document.

        Recorded placements for the document are dropped.  Returns the
        number of characters removed.
        """
        doc_id = document_id or self._config.google_doc_id
        documents = self._docs_api()
        snapshot = documents.snapshot(doc_id)
        removed = 0
        if not snapshot.is_empty:
            op = DeleteContentRange(1, snapshot.end_index - 1)
            documents.batch_update(
                doc_id, to_requests([op]), required_revision_id=snapshot.revision_id
            )
            removed = op.end - op.start
        self._store.clear_placements(doc_id)
        log.info(
            "document cleared",
            extra={"extra_fields": {"document_id": doc_id, "removed": removed}},
        )
        return removed

    # ------------------------------------------------------------------
    # Google Docs access
    # ------------------------------------------------------------------

    def _docs_api(self) -> DocumentsAPI:
        if self._documents is None:
            if self._credentials is None:
                self._credentials = get_credentials(
                    self._config, interactive=self._interactive_auth
                )
            token = access_token(self._credentials, self._config.google_credentials_path)
            self._docs_transport = docs_transport(self._config, token)
            self._documents = DocumentsAPI(self._docs_transport)
        elif (
            self._docs_transport is not None
            and self._credentials is not None
            and not self._credentials.valid
        ):
            self._docs_transport.set_bearer_token(
                access_token(self._credentials, self._config.google_credentials_path)
            )
        return self._documents

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the HTTP transports."""
        self._transport.close()
        if self._docs_transport is not None:
            self._docs_transport.close()

    def __enter__(self) -> Notion2DocsClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
