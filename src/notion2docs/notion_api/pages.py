"""Notion ``/pages`` endpoint wrappers (read-only)."""

from __future__ import annotations

from typing import Any

from notion2docs.transport import AsyncTransport, Transport


class PageAPI:
    """Synchronous access to Notion page objects.

    Parameters
    ----------
    transport:
        A Notion :class:`~notion2docs.transport.Transport`.
    """

    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    def retrieve(self, page_id: str) -> dict[str, Any]:
        """Return the page object (metadata and properties, no content).

        Parameters
        ----------
        page_id:
            The page UUID, with or without hyphens.
        """
        return self._transport.request("GET", f"/pages/{page_id}")


class AsyncPageAPI:
    """Asynchronous twin of :class:`PageAPI`."""

    def __init__(self, transport: AsyncTransport) -> None:
        self._transport = transport

    async def retrieve(self, page_id: str) -> dict[str, Any]:
        return await self._transport.request("GET", f"/pages/{page_id}")
