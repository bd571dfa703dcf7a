"""Shared test fixtures for the notion2docs test suite."""

from __future__ import annotations

from typing import Any

import pytest

from notion2docs.buffer import DocumentBuffer
from notion2docs.config import Notion2DocsConfig
from notion2docs.errors import Notion2DocsConflictError
from notion2docs.models import (
    CreateParagraphBullets,
    DeleteContentRange,
    DeleteParagraphBullets,
    InsertPageBreak,
    InsertTable,
    InsertText,
    Operation,
    UpdateParagraphStyle,
    UpdateTextStyle,
)
from notion2docs.store import LocalStore


def operation_from_request(request: dict[str, Any]) -> Operation:
    """Rebuild the operation a ``batchUpdate`` request dict was made from."""
    (kind, body), = request.items()
    rng = body.get("range", {})
    start, end = rng.get("startIndex"), rng.get("endIndex")
    if kind == "insertText":
        return InsertText(body["location"]["index"], body["text"])
    if kind == "insertTable":
        return InsertTable(body["location"]["index"], body["rows"], body["columns"])
    if kind == "insertPageBreak":
        return InsertPageBreak(body["location"]["index"])
    if kind == "deleteContentRange":
        return DeleteContentRange(start, end)
    if kind == "createParagraphBullets":
        return CreateParagraphBullets(start, end, body["bulletPreset"])
    if kind == "deleteParagraphBullets":
        return DeleteParagraphBullets(start, end)
    if kind == "updateTextStyle":
        return UpdateTextStyle(start, end, body["textStyle"], body["fields"])
    if kind == "updateParagraphStyle":
        return UpdateParagraphStyle(start, end, body["paragraphStyle"], body["fields"])
    raise AssertionError(f"unexpected request {kind}")


class FakeDocuments:
    """A DocumentsAPI stand-in that applies requests to a DocumentBuffer."""

    def __init__(self, text: str = "\n") -> None:
        self.buffer = DocumentBuffer(text)
        self.revision = 0
        self.calls: list[list[dict[str, Any]]] = []

    @property
    def revision_id(self) -> str:
        return f"rev-{self.revision}"

    def snapshot(self, document_id: str):
        return self.buffer.snapshot(revision_id=self.revision_id, document_id=document_id)

    def batch_update(self, document_id, requests, required_revision_id=None):
        if not requests:
            return {}
        if required_revision_id is not None and required_revision_id != self.revision_id:
            raise Notion2DocsConflictError(
                message="revision changed",
                context={"document_id": document_id},
            )
        self.calls.append(requests)
        self.buffer.apply(operation_from_request(r) for r in requests)
        self.revision += 1
        return {
            "documentId": document_id,
            "writeControl": {"requiredRevisionId": self.revision_id},
        }


class AsyncFakeDocuments(FakeDocuments):
    """Awaitable twin of :class:`FakeDocuments`."""

    async def snapshot(self, document_id: str):
        return FakeDocuments.snapshot(self, document_id)

    async def batch_update(self, document_id, requests, required_revision_id=None):
        return FakeDocuments.batch_update(self, document_id, requests, required_revision_id)


@pytest.fixture
def config(tmp_path) -> Notion2DocsConfig:
    """Configuration with dummy credentials and fast retries."""
    return Notion2DocsConfig(
        notion_token="secret_test_token_1234",
        google_doc_id="doc-1",
        google_client_id="client-id",
        google_client_secret="client-secret",
        google_credentials_path=str(tmp_path / "google-credentials.json"),
        store_path=str(tmp_path / "store.json"),
        retry_max_attempts=2,
        retry_base_delay=0.0,
        retry_max_delay=0.0,
        retry_jitter=False,
        rate_limit_rps=10_000.0,
        docs_rate_limit_rps=10_000.0,
    )


@pytest.fixture
def store(tmp_path) -> LocalStore:
    return LocalStore(tmp_path / "store.json")


@pytest.fixture
def fake_docs() -> FakeDocuments:
    return FakeDocuments()


@pytest.fixture
def async_fake_docs() -> AsyncFakeDocuments:
    return AsyncFakeDocuments()
