"""Explicit capabilities handed to the block compilers.

The compiler never performs I/O on its own.  Anything that needs data from
outside the block tree (synced-block sources, linked-database rows) is
reached through the optional callables on :class:`CompileContext`; when a
callable is ``None`` the corresponding compiler degrades to its
placeholder output.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from notion2docs.models import Block, DatabaseRow

ReferenceResolver = Callable[[str], "list[Block]"]
DatabaseQuery = Callable[[str], "list[DatabaseRow]"]


@dataclass
class CompileContext:
    """Capabilities and rendering knobs for one compilation pass.

    Attributes
    ----------
    resolve_reference:
        ``resolve_reference(block_id) -> list[Block]`` returns the
        materialized source blocks of a synced block.  May raise; the
        synced-block compiler falls back to a placeholder.
    query_database:
        ``query_database(database_id) -> list[DatabaseRow]`` returns the
        records of a linked database.  Failures are swallowed.
    can_submit:
        Whether the caller can apply the operations to a real (or
        simulated) destination.  Tables are only emitted when true.
    code_font_family:
        Monospace font used for code blocks and inline code.
    quote_indent_pt:
        Start and first-line indentation of quote paragraphs, in points.
    """

    resolve_reference: ReferenceResolver | None = None
    query_database: DatabaseQuery | None = None
    can_submit: bool = True
    code_font_family: str = "Consolas"
    quote_indent_pt: float = 36.0
