"""Materializing Notion pages into :class:`~notion2docs.models.Page` snapshots.

The fetchers own everything the compiler must not do itself: retrieving
page metadata, walking the block tree (filling ``child_blocks``),
consulting the page cache, and answering synced-block and linked-database
lookups.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterator
from typing import Any

from notion2docs.config import Notion2DocsConfig
from notion2docs.errors import Notion2DocsError, Notion2DocsReferenceError
from notion2docs.models import Block, DatabaseRow, Page, PageListItem
from notion2docs.notion_api import (
    AsyncBlockAPI,
    AsyncDatabaseAPI,
    AsyncPageAPI,
    BlockAPI,
    DatabaseAPI,
    PageAPI,
)
from notion2docs.observability import NoopMetricsHook, get_logger
from notion2docs.properties import extract_properties, page_title
from notion2docs.store import LocalStore

log = get_logger("notion2docs.fetch")


def iter_blocks(blocks: list[Block]) -> Iterator[Block]:
    """Yield every block of a tree, depth first, parents before children."""
    for block in blocks:
        yield block
        yield from iter_blocks(block.child_blocks)


def synced_references(blocks: list[Block]) -> list[str]:
    """IDs of the original blocks referenced by synced-block copies."""
    refs: list[str] = []
    for block in iter_blocks(blocks):
        if block.type == "synced_block":
            source = block.data.get("synced_from") or {}
            ref = source.get("block_id")
            if ref and ref not in refs:
                refs.append(ref)
    return refs


def child_database_ids(blocks: list[Block]) -> list[str]:
    """IDs of the linked databases embedded anywhere in *blocks*."""
    ids: list[str] = []
    for block in iter_blocks(blocks):
        if block.type == "child_database" and block.id not in ids:
            ids.append(block.id)
    return ids


def _list_item(raw: dict[str, Any]) -> PageListItem:
    return PageListItem(
        id=raw.get("id", ""),
        title=page_title(raw),
        last_edited_time=raw.get("last_edited_time"),
        url=raw.get("url", ""),
    )


def _row(raw: dict[str, Any]) -> DatabaseRow:
    return DatabaseRow(page_id=raw.get("id", ""), properties=extract_properties(raw))


def _page(raw: dict[str, Any], page_id: str, blocks: list[Block]) -> Page:
    return Page(
        id=raw.get("id", page_id),
        title=page_title(raw),
        url=raw.get("url", ""),
        last_edited_time=raw.get("last_edited_time"),
        properties=extract_properties(raw),
        blocks=blocks,
    )


class _FetcherBase:
    def __init__(self, config: Notion2DocsConfig, store: LocalStore | None) -> None:
        self._config = config
        self._store = store
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()

    def _cached(self, page_id: str, last_edited_time: str | None) -> Page | None:
        if not self._config.use_page_cache or self._store is None:
            return None
        page = self._store.get_page(page_id, last_edited_time)
        if page is not None:
            self._metrics.increment("notion2docs.cache_hits_total")
            log.debug(
                "page served from cache",
                extra={"extra_fields": {"page_id": page_id}},
            )
        return page

    def _remember(self, page: Page) -> None:
        if self._config.use_page_cache and self._store is not None:
            self._store.put_page(page)

    def _descend(self, block: Block, depth: int) -> bool:
        limit = self._config.max_fetch_depth
        return block.has_children and (limit is None or depth < limit)


class PageFetcher(_FetcherBase):
    """Synchronous page materializer.

    Parameters
    ----------
    pages, blocks, databases:
        Notion endpoint wrappers.
    config:
        Supplies ``use_page_cache``, ``max_fetch_depth`` and ``metrics``.
    store:
        Optional page cache.
    """

    def __init__(
        self,
        pages: PageAPI,
        blocks: BlockAPI,
        databases: DatabaseAPI,
        config: Notion2DocsConfig,
        store: LocalStore | None = None,
    ) -> None:
        super().__init__(config, store)
        self._pages = pages
        self._blocks = blocks
        self._databases = databases

    def fetch_page(self, page_id: str) -> Page:
        """Return *page_id* with its complete block tree.

        A cached copy is used when its ``last_edited_time`` matches.
        """
        raw = self._pages.retrieve(page_id)
        cached = self._cached(page_id, raw.get("last_edited_time"))
        if cached is not None:
            return cached
        page = _page(raw, page_id, self.fetch_block_tree(page_id))
        self._remember(page)
        return page

    def fetch_block_tree(self, block_id: str, depth: int = 0) -> list[Block]:
        """Children of *block_id*, each with its ``child_blocks`` filled in."""
        result: list[Block] = []
        for raw in self._blocks.get_children(block_id):
            block = Block.from_api(raw)
            if self._descend(block, depth):
                block.child_blocks = self.fetch_block_tree(block.id, depth + 1)
            result.append(block)
        return result

    def resolve_reference(self, block_id: str) -> list[Block]:
        """Content of the original synced block *block_id*."""
        try:
            return self.fetch_block_tree(block_id)
        except Notion2DocsError as exc:
            raise Notion2DocsReferenceError(
                message=f"Cannot resolve synced block {block_id}",
                context={"block_id": block_id},
                cause=exc,
            ) from exc

    def list_database_pages(self, database_id: str) -> list[PageListItem]:
        """Pages of *database_id*, most recently edited first."""
        return [_list_item(raw) for raw in self._databases.query(database_id)]

    def query_database_rows(self, database_id: str) -> list[DatabaseRow]:
        """Records of *database_id* with extracted property values."""
        try:
            return [_row(raw) for raw in self._databases.query(database_id)]
        except Notion2DocsError as exc:
            raise Notion2DocsReferenceError(
                message=f"Cannot query linked database {database_id}",
                context={"database_id": database_id},
                cause=exc,
            ) from exc


class AsyncPageFetcher(_FetcherBase):
    """Asynchronous page materializer.

    Lookups the compiler needs are gathered up front with
    :meth:`prefetch_references` and :meth:`prefetch_database_rows`.
    """

    def __init__(
        self,
        pages: AsyncPageAPI,
        blocks: AsyncBlockAPI,
        databases: AsyncDatabaseAPI,
        config: Notion2DocsConfig,
        store: LocalStore | None = None,
    ) -> None:
        super().__init__(config, store)
        self._pages = pages
        self._blocks = blocks
        self._databases = databases

    async def fetch_page(self, page_id: str) -> Page:
        raw = await self._pages.retrieve(page_id)
        cached = self._cached(page_id, raw.get("last_edited_time"))
        if cached is not None:
            return cached
        page = _page(raw, page_id, await self.fetch_block_tree(page_id))
        self._remember(page)
        return page

    async def fetch_block_tree(self, block_id: str, depth: int = 0) -> list[Block]:
        result: list[Block] = []
        for raw in await self._blocks.get_children(block_id):
            block = Block.from_api(raw)
            if self._descend(block, depth):
                block.child_blocks = await self.fetch_block_tree(block.id, depth + 1)
            result.append(block)
        return result

    async def list_database_pages(self, database_id: str) -> list[PageListItem]:
        return [_list_item(raw) for raw in await self._databases.query(database_id)]

    async def query_database_rows(self, database_id: str) -> list[DatabaseRow]:
        return [_row(raw) for raw in await self._databases.query(database_id)]

    async def prefetch_references(
        self, page: Page
    ) -> dict[str, list[Block] | Notion2DocsReferenceError]:
        """Resolve every synced reference in *page*.

        Failures are stored as :class:`Notion2DocsReferenceError` values
        rather than raised.
        """
        resolved: dict[str, list[Block] | Notion2DocsReferenceError] = {}
        pending = synced_references(page.blocks)
        while pending:
            ref = pending.pop(0)
            if ref in resolved:
                continue
            try:
                blocks = await self.fetch_block_tree(ref)
                resolved[ref] = blocks
                # Resolved content may itself contain synced copies.
                pending.extend(synced_references(blocks))
            except Notion2DocsError as exc:
                resolved[ref] = Notion2DocsReferenceError(
                    message=f"Cannot resolve synced block {ref}",
                    context={"block_id": ref},
                    cause=exc,
                )
        return resolved

    async def prefetch_database_rows(
        self, blocks: list[Block]
    ) -> dict[str, list[DatabaseRow] | Notion2DocsReferenceError]:
        """Query every linked database in *blocks*, storing failures as values."""
        async def _query_one(database_id: str) -> list[DatabaseRow] | Notion2DocsReferenceError:
            try:
                return await self.query_database_rows(database_id)
            except Notion2DocsError as exc:
                return Notion2DocsReferenceError(
                    message=f"Cannot query linked database {database_id}",
                    context={"database_id": database_id},
                    cause=exc,
                )

        database_ids = child_database_ids(blocks)
        results = await asyncio.gather(*(_query_one(d) for d in database_ids))
        return dict(zip(database_ids, results))
