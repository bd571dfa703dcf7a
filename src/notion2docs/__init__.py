"""notion2docs: copy Notion pages into a Google Docs document.

Public re-exports
-----------------

* **Clients:** :class:`Notion2DocsClient`, :class:`AsyncNotion2DocsClient`
* **Configuration:** :class:`Notion2DocsConfig`
* **Errors:** Every :class:`Notion2DocsError` subclass and :class:`ErrorCode`
* **Models:** Page, block, operation and result dataclasses
* **Compiler:** :class:`BlockCompiler`, :class:`PageCompiler`, :class:`CompileContext`

Usage::

    from notion2docs import Notion2DocsClient, Notion2DocsConfig

    with Notion2DocsClient(Notion2DocsConfig.from_env()) as client:
        result = client.transfer_page("<page_id>")
"""

from __future__ import annotations

from notion2docs.async_client import AsyncNotion2DocsClient
from notion2docs.buffer import DocumentBuffer

# ── Clients ────────────────────────────────────────────────────────────
from notion2docs.client import Notion2DocsClient

# ── Compiler ────────────────────────────────────────────────────────────
from notion2docs.compiler import BlockCompiler, CompileContext, PageCompiler, dispatch

# ── Configuration ───────────────────────────────────────────────────────
from notion2docs.config import Notion2DocsConfig

# ── Errors ──────────────────────────────────────────────────────────────
from notion2docs.errors import (
    ErrorCode,
    Notion2DocsAuthError,
    Notion2DocsConfigError,
    Notion2DocsConflictError,
    Notion2DocsDocumentError,
    Notion2DocsError,
    Notion2DocsNetworkError,
    Notion2DocsNotFoundError,
    Notion2DocsPermissionError,
    Notion2DocsRateLimitError,
    Notion2DocsReferenceError,
    Notion2DocsRetryExhaustedError,
    Notion2DocsStoreError,
    Notion2DocsValidationError,
)

# ── Models ──────────────────────────────────────────────────────────────
from notion2docs.models import (
    Block,
    CompileResult,
    CreateParagraphBullets,
    DatabaseRow,
    DeleteContentRange,
    DeleteParagraphBullets,
    DocumentSnapshot,
    InsertPageBreak,
    InsertTable,
    InsertText,
    MultiTransferResult,
    Page,
    PageListItem,
    PageProperty,
    SectionRange,
    TransferResult,
    UpdateParagraphStyle,
    UpdateTextStyle,
)
from notion2docs.store import LocalStore

# ── Public surface ──────────────────────────────────────────────────────

__all__ = [
    # Clients
    "Notion2DocsClient",
    "AsyncNotion2DocsClient",
    # Configuration and storage
    "Notion2DocsConfig",
    "LocalStore",
    # Error base + code enum
    "Notion2DocsError",
    "ErrorCode",
    # API / transport errors
    "Notion2DocsValidationError",
    "Notion2DocsAuthError",
    "Notion2DocsPermissionError",
    "Notion2DocsNotFoundError",
    "Notion2DocsConflictError",
    "Notion2DocsRateLimitError",
    "Notion2DocsRetryExhaustedError",
    "Notion2DocsNetworkError",
    # Local errors
    "Notion2DocsConfigError",
    "Notion2DocsReferenceError",
    "Notion2DocsStoreError",
    "Notion2DocsDocumentError",
    # Compiler
    "BlockCompiler",
    "PageCompiler",
    "CompileContext",
    "dispatch",
    "DocumentBuffer",
    # Models: Notion side
    "Block",
    "Page",
    "PageProperty",
    "PageListItem",
    "DatabaseRow",
    # Models: operations
    "InsertText",
    "UpdateTextStyle",
    "UpdateParagraphStyle",
    "CreateParagraphBullets",
    "DeleteParagraphBullets",
    "InsertTable",
    "InsertPageBreak",
    "DeleteContentRange",
    "CompileResult",
    # Models: documents and results
    "DocumentSnapshot",
    "SectionRange",
    "TransferResult",
    "MultiTransferResult",
]
