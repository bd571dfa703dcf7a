"""Notion ``/blocks`` endpoint wrappers (read-only)."""

from __future__ import annotations

from typing import Any

from notion2docs.transport import AsyncTransport, Transport


class BlockAPI:
    """Synchronous access to Notion blocks.

    Parameters
    ----------
    transport:
        A Notion :class:`~notion2docs.transport.Transport`.
    """

    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    def retrieve(self, block_id: str) -> dict[str, Any]:
        """Return a single block object."""
        return self._transport.request("GET", f"/blocks/{block_id}")

    def get_children(self, block_id: str) -> list[dict[str, Any]]:
        """Return every direct child of *block_id*, following pagination.

        Pages are blocks too, so a page ID returns its top-level content.
        """
        return list(self._transport.paginate(f"/blocks/{block_id}/children"))


class AsyncBlockAPI:
    """Asynchronous twin of :class:`BlockAPI`."""

    def __init__(self, transport: AsyncTransport) -> None:
        self._transport = transport

    async def retrieve(self, block_id: str) -> dict[str, Any]:
        return await self._transport.request("GET", f"/blocks/{block_id}")

    async def get_children(self, block_id: str) -> list[dict[str, Any]]:
        return [
            child
            async for child in self._transport.paginate(f"/blocks/{block_id}/children")
        ]
