"""Thin wrappers over the Notion REST endpoints used for reading pages."""

from .blocks import AsyncBlockAPI, BlockAPI
from .databases import AsyncDatabaseAPI, DatabaseAPI
from .pages import AsyncPageAPI, PageAPI

__all__ = [
    "AsyncBlockAPI",
    "AsyncDatabaseAPI",
    "AsyncPageAPI",
    "BlockAPI",
    "DatabaseAPI",
    "PageAPI",
]
