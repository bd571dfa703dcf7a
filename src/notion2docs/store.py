"""Local JSON store for the page cache and recorded placements.

The file layout is::

    {
      "page_cache": {
        "<page_id>": {"last_edited_time": "...", "cached_at": "...",
                       "page": {...Page.to_dict()...}}
      },
      "placements": {
        "<doc_id>": {"revision_id": "...", "sections": {"<page_id>": [1, 42]}}
      }
    }

A store is constructed once by the caller and injected into the fetchers
and clients.  Writes go through a temporary file and an atomic rename.
"""

from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from notion2docs.errors import Notion2DocsStoreError
from notion2docs.models import Page
from notion2docs.observability import get_logger
from notion2docs.placement import PlacementRecord

log = get_logger("notion2docs.store")


class LocalStore:
    """Persistent page cache and placement records backed by one JSON file.

    Parameters
    ----------
    path:
        Location of the JSON file.  It is created on first write.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)
        self._data: dict[str, Any] = self._load()

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {"page_cache": {}, "placements": {}}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise Notion2DocsStoreError(
                message=f"Cannot read store file {self.path}",
                context={"path": str(self.path)},
                cause=exc,
            ) from exc
        if not isinstance(data, dict):
            raise Notion2DocsStoreError(
                message=f"Store file {self.path} does not contain a JSON object",
                context={"path": str(self.path)},
            )
        data.setdefault("page_cache", {})
        data.setdefault("placements", {})
        return data

    def save(self) -> None:
        """Write the store to disk."""
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            if self.path.parent != Path(""):
                self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(
                json.dumps(self._data, ensure_ascii=False, indent=2), encoding="utf-8"
            )
            os.replace(tmp, self.path)
        except OSError as exc:
            raise Notion2DocsStoreError(
                message=f"Cannot write store file {self.path}",
                context={"path": str(self.path)},
                cause=exc,
            ) from exc

    # ------------------------------------------------------------------
    # Page cache
    # ------------------------------------------------------------------

    def get_page(self, page_id: str, last_edited_time: str | None) -> Page | None:
        """Return the cached page if it was cached at *last_edited_time*."""
        entry = self._data["page_cache"].get(page_id)
        if not entry or last_edited_time is None:
            return None
        if entry.get("last_edited_time") != last_edited_time:
            return None
        return Page.from_dict(entry["page"])

    def put_page(self, page: Page) -> None:
        self._data["page_cache"][page.id] = {
            "last_edited_time": page.last_edited_time,
            "cached_at": datetime.now(timezone.utc).isoformat(),
            "page": page.to_dict(),
        }
        self.save()
        log.debug(
            "page cached",
            extra={"extra_fields": {"page_id": page.id, "path": str(self.path)}},
        )

    def clear_pages(self) -> None:
        self._data["page_cache"] = {}
        self.save()

    # ------------------------------------------------------------------
    # Placements
    # ------------------------------------------------------------------

    def get_placements(self, document_id: str) -> PlacementRecord:
        """The recorded placements for *document_id* (empty if none)."""
        data = self._data["placements"].get(document_id)
        if not data:
            return PlacementRecord(document_id)
        return PlacementRecord.from_dict(document_id, data)

    def put_placements(self, record: PlacementRecord) -> None:
        self._data["placements"][record.document_id] = record.to_dict()
        self.save()

    def clear_placements(self, document_id: str) -> None:
        self._data["placements"].pop(document_id, None)
        self.save()
