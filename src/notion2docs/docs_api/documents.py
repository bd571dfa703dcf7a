"""Google Docs ``documents`` endpoint wrappers."""

from __future__ import annotations

from typing import Any

from notion2docs.models import DocumentSnapshot
from notion2docs.transport import AsyncTransport, Transport


def _batch_body(
    requests: list[dict[str, Any]], required_revision_id: str | None
) -> dict[str, Any]:
    body: dict[str, Any] = {"requests": requests}
    if required_revision_id is not None:
        body["writeControl"] = {"requiredRevisionId": required_revision_id}
    return body


def revision_of(response: dict[str, Any]) -> str | None:
    """The document revision after a ``batchUpdate`` *response*."""
    return (response.get("writeControl") or {}).get("requiredRevisionId")


class DocumentsAPI:
    """Synchronous access to Google Docs documents.

    Parameters
    ----------
    transport:
        A Docs :class:`~notion2docs.transport.Transport`.
    """

    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    def get(self, document_id: str) -> dict[str, Any]:
        """Return the full document resource."""
        return self._transport.request("GET", f"/documents/{document_id}")

    def snapshot(self, document_id: str) -> DocumentSnapshot:
        """Fetch the document and reduce it to paragraph runs."""
        return DocumentSnapshot.from_api(self.get(document_id))

    def batch_update(
        self,
        document_id: str,
        requests: list[dict[str, Any]],
        required_revision_id: str | None = None,
    ) -> dict[str, Any]:
        """Apply *requests* atomically.

        With *required_revision_id* the update fails with
        :class:`~notion2docs.errors.Notion2DocsConflictError` if the
        document changed since that revision.  An empty request list is
        not sent.
        """
        if not requests:
            return {}
        return self._transport.request(
            "POST",
            f"/documents/{document_id}:batchUpdate",
            json=_batch_body(requests, required_revision_id),
        )


class AsyncDocumentsAPI:
    """Asynchronous twin of :class:`DocumentsAPI`."""

    def __init__(self, transport: AsyncTransport) -> None:
        self._transport = transport

    async def get(self, document_id: str) -> dict[str, Any]:
        return await self._transport.request("GET", f"/documents/{document_id}")

    async def snapshot(self, document_id: str) -> DocumentSnapshot:
        return DocumentSnapshot.from_api(await self.get(document_id))

    async def batch_update(
        self,
        document_id: str,
        requests: list[dict[str, Any]],
        required_revision_id: str | None = None,
    ) -> dict[str, Any]:
        if not requests:
            return {}
        return await self._transport.request(
            "POST",
            f"/documents/{document_id}:batchUpdate",
            json=_batch_body(requests, required_revision_id),
        )
