"""Notion ``/databases`` endpoint wrappers.

Queries are always sorted by ``last_edited_time`` descending so the most
recently edited records come first.
"""

from __future__ import annotations

from typing import Any

from notion2docs.transport import AsyncTransport, Transport

_NEWEST_FIRST: list[dict[str, str]] = [
    {"timestamp": "last_edited_time", "direction": "descending"},
]


def _query_body(filter_: dict[str, Any] | None) -> dict[str, Any]:
    body: dict[str, Any] = {"sorts": list(_NEWEST_FIRST)}
    if filter_ is not None:
        body["filter"] = filter_
    return body


class DatabaseAPI:
    """Synchronous access to Notion databases.

    Parameters
    ----------
    transport:
        A Notion :class:`~notion2docs.transport.Transport`.
    """

    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    def retrieve(self, database_id: str) -> dict[str, Any]:
        """Return the database object (title and property schema)."""
        return self._transport.request("GET", f"/databases/{database_id}")

    def query(
        self, database_id: str, filter_: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        """Return every page of the database, newest edit first.

        Parameters
        ----------
        database_id:
            The database UUID.
        filter_:
            Optional Notion filter object.
        """
        return list(
            self._transport.paginate(
                f"/databases/{database_id}/query",
                method="POST",
                json=_query_body(filter_),
            )
        )


class AsyncDatabaseAPI:
    """Asynchronous twin of :class:`DatabaseAPI`."""

    def __init__(self, transport: AsyncTransport) -> None:
        self._transport = transport

    async def retrieve(self, database_id: str) -> dict[str, Any]:
        return await self._transport.request("GET", f"/databases/{database_id}")

    async def query(
        self, database_id: str, filter_: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        return [
            page
            async for page in self._transport.paginate(
                f"/databases/{database_id}/query",
                method="POST",
                json=_query_body(filter_),
            )
        ]
