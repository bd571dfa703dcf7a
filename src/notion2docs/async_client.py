"""Asynchronous notion2docs client.

:class:`AsyncNotion2DocsClient` mirrors :class:`Notion2DocsClient` but
every I/O method is an ``async def`` coroutine.  The compiler itself is
synchronous, so synced-block content and linked-database rows are
fetched before compilation and served to it from memory.

Usage::

    import asyncio
    from notion2docs import AsyncNotion2DocsClient, Notion2DocsConfig

    async def main():
        async with AsyncNotion2DocsClient(Notion2DocsConfig.from_env()) as client:
            result = await client.transfer_pages(["<page_id>"])
            print(result.message)

    asyncio.run(main())
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from typing import Any, TypeVar

from google.oauth2.credentials import Credentials

from notion2docs.buffer import DocumentBuffer
from notion2docs.client import compile_batches, failure, normalize_id, summarize
from notion2docs.compiler import CompileContext, PageCompiler
from notion2docs.config import Notion2DocsConfig
from notion2docs.docs_api import (
    AsyncDocumentsAPI,
    access_token,
    get_credentials,
    revision_of,
)
from notion2docs.errors import Notion2DocsError, Notion2DocsReferenceError
from notion2docs.fetch import AsyncPageFetcher, child_database_ids
from notion2docs.models import (
    Block,
    DeleteContentRange,
    MultiTransferResult,
    Page,
    PageListItem,
    TransferResult,
    to_requests,
)
from notion2docs.notion_api import AsyncBlockAPI, AsyncDatabaseAPI, AsyncPageAPI
from notion2docs.observability import NoopMetricsHook, get_logger
from notion2docs.placement import plan_placement, record_write
from notion2docs.store import LocalStore
from notion2docs.transport import AsyncTransport, async_docs_transport, async_notion_transport

log = get_logger("notion2docs.async_client")

T = TypeVar("T")


def prefetched(
    table: dict[str, T | Notion2DocsReferenceError], what: str
) -> Callable[[str], T]:
    """A lookup over *table* that raises stored or missing entries."""

    def lookup(key: str) -> T:
        if key not in table:
            raise Notion2DocsReferenceError(
                message=f"{what} {key} was not prefetched",
                context={"id": key},
            )
        value = table[key]
        if isinstance(value, Notion2DocsReferenceError):
            raise value
        return value

    return lookup


class AsyncNotion2DocsClient:
    """Asynchronous Notion to Google Docs transfer client.

    Parameters
    ----------
    config:
        Client configuration.  When omitted, one is built from
        ``**kwargs``.
    store:
        Page cache and placement store.
    credentials:
        Google OAuth credentials.
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
        self._transport = async_notion_transport(self._config)
        self._pages = AsyncPageAPI(self._transport)
        self._blocks = AsyncBlockAPI(self._transport)
        self._databases = AsyncDatabaseAPI(self._transport)
        self._fetcher = AsyncPageFetcher(
            self._pages, self._blocks, self._databases, self._config, self._store
        )
        self._credentials = credentials
        self._interactive_auth = interactive_auth
        self._docs_transport: AsyncTransport | None = None
        self._documents: AsyncDocumentsAPI | None = None

    # ------------------------------------------------------------------
    # Transfers
    # ------------------------------------------------------------------

    async def transfer_page(
        self, page_id: str, document_id: str | None = None
    ) -> TransferResult:
        """Write one page into the destination document."""
        result, _ = await self._transfer(page_id, document_id or self._config.google_doc_id)
        return result

    async def transfer_pages(
        self, page_ids: list[str], document_id: str | None = None
    ) -> MultiTransferResult:
        """Transfer a worklist of pages sequentially.

        Pages share one destination document, so they are never written
        concurrently.
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
            result, page = await self._transfer(page_id, doc_id)
            results.append(result)
            if page is not None and self._config.fetch_child_databases:
                queue.extend(await self._child_database_pages(page))
        return summarize(results)

    async def _transfer(
        self, page_id: str, doc_id: str
    ) -> tuple[TransferResult, Page | None]:
        t0 = time.monotonic()
        try:
            page = await self._fetcher.fetch_page(page_id)
            ctx = await self._compile_context(page)
            submitted, updated = await self._write_page(page, doc_id, ctx)
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

        self._metrics.increment("notion2docs.pages_transferred_total")
        self._metrics.timing(
            "notion2docs.page_transfer_duration_ms", (time.monotonic() - t0) * 1000
        )
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

    async def _write_page(
        self, page: Page, doc_id: str, ctx: CompileContext
    ) -> tuple[int, bool]:
        documents = await self._docs_api()
        snapshot = await documents.snapshot(doc_id)
        record = self._store.get_placements(doc_id)
        plan = plan_placement(snapshot, page.id, record)

        batches, length = compile_batches(page, plan, ctx, self._config.submit_mode)
        revision = snapshot.revision_id
        submitted = 0
        for batch in batches:
            response = await documents.batch_update(
                doc_id, to_requests(batch), required_revision_id=revision
            )
            revision = revision_of(response)
            submitted += len(batch)

        record_write(record, page.id, plan.written_range(length), plan.previous, revision)
        self._store.put_placements(record)
        self._metrics.increment("notion2docs.operations_submitted_total", submitted)
        return submitted, plan.is_update

    async def _compile_context(self, page: Page) -> CompileContext:
        references = await self._fetcher.prefetch_references(page)
        query_database = None
        if self._config.render_database_tables:
            blocks: list[Block] = list(page.blocks)
            for value in references.values():
                if isinstance(value, list):
                    blocks.extend(value)
            rows = await self._fetcher.prefetch_database_rows(blocks)
            query_database = prefetched(rows, "Linked database")
        return CompileContext(
            resolve_reference=prefetched(references, "Synced block"),
            query_database=query_database,
            can_submit=True,
            code_font_family=self._config.code_font_family,
            quote_indent_pt=self._config.quote_indent_pt,
        )

    async def _child_database_pages(self, page: Page) -> list[str]:
        queued: list[str] = []
        for database_id in child_database_ids(page.blocks):
            try:
                items = await self._fetcher.list_database_pages(database_id)
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

    async def preview_page(self, page_id: str) -> DocumentBuffer:
        """Compile *page_id* into an empty in-memory document."""
        page = await self._fetcher.fetch_page(page_id)
        ctx = await self._compile_context(page)
        compiled = PageCompiler(ctx).compile_page(page, 1)
        return DocumentBuffer().apply(compiled.operations)

    async def list_database_pages(
        self, database_id: str | None = None
    ) -> list[PageListItem]:
        return await self._fetcher.list_database_pages(
            database_id or self._config.notion_database_id or ""
        )

    async def clear_document(self, document_id: str | None = None) -> int:
        """Delete the whole body of the destination document."""
        doc_id = document_id or self._config.google_doc_id
        documents = await self._docs_api()
        snapshot = await documents.snapshot(doc_id)
        removed = 0
        if not snapshot.is_empty:
            op = DeleteContentRange(1, snapshot.end_index - 1)
            await documents.batch_update(
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

    async def _docs_api(self) -> AsyncDocumentsAPI:
        # google-auth refreshes over blocking HTTP.
        if self._documents is None:
            if self._credentials is None:
                self._credentials = await asyncio.to_thread(
                    get_credentials, self._config, interactive=self._interactive_auth
                )
            token = await asyncio.to_thread(
                access_token, self._credentials, self._config.google_credentials_path
            )
            self._docs_transport = async_docs_transport(self._config, token)
            self._documents = AsyncDocumentsAPI(self._docs_transport)
        elif (
            self._docs_transport is not None
            and self._credentials is not None
            and not self._credentials.valid
        ):
            token = await asyncio.to_thread(
                access_token, self._credentials, self._config.google_credentials_path
            )
            self._docs_transport.set_bearer_token(token)
        return self._documents

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Close the HTTP transports."""
        await self._transport.close()
        if self._docs_transport is not None:
            await self._docs_transport.close()

    async def __aenter__(self) -> AsyncNotion2DocsClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
