"""Data models for notion2docs.

Three groups of types live here:

* Source-side snapshots built by the fetch layer (:class:`Block`,
  :class:`Page`, :class:`PageProperty`, :class:`PageListItem`,
  :class:`DatabaseRow`).
* The positional edit vocabulary produced by the compiler
  (:class:`InsertText`, :class:`UpdateTextStyle`, ...) and
  :class:`CompileResult`.
* Destination-side views and results (:class:`TextRun`,
  :class:`DocumentSnapshot`, :class:`SectionRange`,
  :class:`TransferResult`, :class:`MultiTransferResult`).

Every operation is addressed by absolute character index into the
destination body, computed as if all earlier operations in the same list
had already been applied.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Union


# ---------------------------------------------------------------------------
# Source blocks and pages
# ---------------------------------------------------------------------------

@dataclass
class Block:
    """One node of a Notion block tree.

    Attributes
    ----------
    id:
        The Notion block ID.
    type:
        The block kind tag (``"paragraph"``, ``"toggle"``, ...).
    data:
        The kind-specific payload, i.e. ``raw[type]`` of the API object.
    has_children:
        Whether Notion reports nested children for this block.
    archived:
        Whether the block is archived / in trash.  Informational.
    created_time, last_edited_time:
        ISO-8601 timestamps.  Informational.
    child_blocks:
        Materialized children, filled in by the fetch layer before
        compilation.  The compiler never fetches them itself.
    """

    id: str
    type: str
    data: dict[str, Any] = field(default_factory=dict)
    has_children: bool = False
    archived: bool = False
    created_time: str | None = None
    last_edited_time: str | None = None
    child_blocks: list[Block] = field(default_factory=list)

    @classmethod
    def from_api(cls, obj: dict[str, Any]) -> Block:
        """Build a block from a Notion API block object.

        A ``child_blocks`` list on *obj* (as written by :meth:`to_api`) is
        converted recursively.
        """
        kind = obj.get("type") or "unsupported"
        payload = obj.get(kind)
        return cls(
            id=obj.get("id", ""),
            type=kind,
            data=dict(payload) if isinstance(payload, dict) else {},
            has_children=bool(obj.get("has_children", False)),
            archived=bool(obj.get("archived", False) or obj.get("in_trash", False)),
            created_time=obj.get("created_time"),
            last_edited_time=obj.get("last_edited_time"),
            child_blocks=[cls.from_api(c) for c in obj.get("child_blocks") or []],
        )

    def to_api(self) -> dict[str, Any]:
        """Serialise back to the Notion API shape plus ``child_blocks``."""
        return {
            "object": "block",
            "id": self.id,
            "type": self.type,
            self.type: self.data,
            "has_children": self.has_children,
            "archived": self.archived,
            "created_time": self.created_time,
            "last_edited_time": self.last_edited_time,
            "child_blocks": [c.to_api() for c in self.child_blocks],
        }

    @property
    def rich_text(self) -> list[dict[str, Any]]:
        """The block's rich-text span list, or ``[]`` if it has none."""
        spans = self.data.get("rich_text")
        return spans if isinstance(spans, list) else []


@dataclass
class PageProperty:
    """A single database/page property with its value already extracted.

    ``value`` is a string, number, bool or ``None``.
    """

    name: str
    type: str
    value: Any = None


@dataclass
class Page:
    """A Notion page with its fully materialized block tree."""

    id: str
    title: str
    url: str = ""
    last_edited_time: str | None = None
    properties: list[PageProperty] = field(default_factory=list)
    blocks: list[Block] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "url": self.url,
            "last_edited_time": self.last_edited_time,
            "properties": [
                {"name": p.name, "type": p.type, "value": p.value}
                for p in self.properties
            ],
            "blocks": [b.to_api() for b in self.blocks],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Page:
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            url=data.get("url", ""),
            last_edited_time=data.get("last_edited_time"),
            properties=[PageProperty(**p) for p in data.get("properties", [])],
            blocks=[Block.from_api(b) for b in data.get("blocks", [])],
        )


@dataclass
class PageListItem:
    """A page entry returned by a database query."""

    id: str
    title: str
    last_edited_time: str | None = None
    url: str = ""


@dataclass
class DatabaseRow:
    """One record of a linked database, used to render its pipe table."""

    page_id: str
    properties: list[PageProperty] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Edit operations
# ---------------------------------------------------------------------------

def _range(start: int, end: int) -> dict[str, int]:
    return {"startIndex": start, "endIndex": end}


@dataclass(frozen=True)
class InsertText:
    """Insert *text* so that its first character lands at *index*."""

    index: int
    text: str

    def to_request(self) -> dict[str, Any]:
        return {"insertText": {"location": {"index": self.index}, "text": self.text}}

    def shifted(self, delta: int) -> InsertText:
        return replace(self, index=self.index + delta)


@dataclass(frozen=True)
class UpdateTextStyle:
    """Apply a character style to ``[start, end)``."""

    start: int
    end: int
    text_style: dict[str, Any]
    fields: str

    def to_request(self) -> dict[str, Any]:
        return {
            "updateTextStyle": {
                "range": _range(self.start, self.end),
                "textStyle": self.text_style,
                "fields": self.fields,
            }
        }

    def shifted(self, delta: int) -> UpdateTextStyle:
        return replace(self, start=self.start + delta, end=self.end + delta)


@dataclass(frozen=True)
class UpdateParagraphStyle:
    """Apply a paragraph style to every paragraph overlapping ``[start, end)``."""

    start: int
    end: int
    paragraph_style: dict[str, Any]
    fields: str

    def to_request(self) -> dict[str, Any]:
        return {
            "updateParagraphStyle": {
                "range": _range(self.start, self.end),
                "paragraphStyle": self.paragraph_style,
                "fields": self.fields,
            }
        }

    def shifted(self, delta: int) -> UpdateParagraphStyle:
        return replace(self, start=self.start + delta, end=self.end + delta)


@dataclass(frozen=True)
class CreateParagraphBullets:
    """Bullet every paragraph overlapping ``[start, end)``.

    The destination removes the leading tabs of those paragraphs (using
    them as the nesting level), which shortens the document.
    """

    start: int
    end: int
    preset: str

    def to_request(self) -> dict[str, Any]:
        return {
            "createParagraphBullets": {
                "range": _range(self.start, self.end),
                "bulletPreset": self.preset,
            }
        }

    def shifted(self, delta: int) -> CreateParagraphBullets:
        return replace(self, start=self.start + delta, end=self.end + delta)


@dataclass(frozen=True)
class DeleteParagraphBullets:
    """Remove bullets from paragraphs overlapping ``[start, end)``."""

    start: int
    end: int

    def to_request(self) -> dict[str, Any]:
        return {"deleteParagraphBullets": {"range": _range(self.start, self.end)}}

    def shifted(self, delta: int) -> DeleteParagraphBullets:
        return replace(self, start=self.start + delta, end=self.end + delta)


@dataclass(frozen=True)
class InsertTable:
    """Insert an empty ``rows`` x ``columns`` table at *index*.

    A newline is inserted before the table.  The structure occupies
    ``3 + rows * (1 + 2 * columns)`` indexes: the newline, the table start,
    one per row, two per cell (cell start and its empty paragraph) and the
    table end.
    """

    index: int
    rows: int
    columns: int

    def to_request(self) -> dict[str, Any]:
        return {
            "insertTable": {
                "rows": self.rows,
                "columns": self.columns,
                "location": {"index": self.index},
            }
        }

    def shifted(self, delta: int) -> InsertTable:
        return replace(self, index=self.index + delta)

    @property
    def size(self) -> int:
        return 3 + self.rows * (1 + 2 * self.columns)


@dataclass(frozen=True)
class InsertPageBreak:
    """Insert a page break followed by a newline (two indexes) at *index*."""

    index: int

    def to_request(self) -> dict[str, Any]:
        return {"insertPageBreak": {"location": {"index": self.index}}}

    def shifted(self, delta: int) -> InsertPageBreak:
        return replace(self, index=self.index + delta)


@dataclass(frozen=True)
class DeleteContentRange:
    """Delete ``[start, end)``."""

    start: int
    end: int

    def to_request(self) -> dict[str, Any]:
        return {"deleteContentRange": {"range": _range(self.start, self.end)}}

    def shifted(self, delta: int) -> DeleteContentRange:
        return replace(self, start=self.start + delta, end=self.end + delta)


Operation = Union[
    InsertText,
    UpdateTextStyle,
    UpdateParagraphStyle,
    CreateParagraphBullets,
    DeleteParagraphBullets,
    InsertTable,
    InsertPageBreak,
    DeleteContentRange,
]


def to_requests(operations: list[Operation]) -> list[dict[str, Any]]:
    """Convert operations to Google Docs ``batchUpdate`` request dicts."""
    return [op.to_request() for op in operations]


@dataclass
class CompileResult:
    """Output of compiling one block, block list or page.

    Attributes
    ----------
    operations:
        Ordered operations, addressed as if applied in order.
    length:
        Net number of characters the operations add to the document.
    """

    operations: list[Operation] = field(default_factory=list)
    length: int = 0

    def __bool__(self) -> bool:
        return bool(self.operations)

    def shifted(self, delta: int) -> CompileResult:
        return CompileResult([op.shifted(delta) for op in self.operations], self.length)


# ---------------------------------------------------------------------------
# Destination document views
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TextRun:
    """The text of one destination paragraph and the range it occupies.

    ``len(text) == end - start``; non-text elements are represented by a
    single placeholder character each (``"\\f"`` for page breaks).
    """

    start: int
    end: int
    text: str

    @property
    def is_blank(self) -> bool:
        return self.text.strip() == ""


PAGE_BREAK_CHAR = "\f"
OBJECT_CHAR = "\ufffc"


def _paragraph_run(element: dict[str, Any]) -> TextRun:
    start = element.get("startIndex", 0)
    end = element.get("endIndex", start)
    parts: list[str] = []
    for item in element["paragraph"].get("elements", []):
        if "textRun" in item:
            parts.append(item["textRun"].get("content", ""))
        elif "pageBreak" in item:
            parts.append(PAGE_BREAK_CHAR)
        else:
            width = item.get("endIndex", 0) - item.get("startIndex", 0)
            parts.append(OBJECT_CHAR * max(width, 0))
    return TextRun(start, end, "".join(parts))


def _collect_runs(
    content: list[dict[str, Any]],
    runs: list[TextRun],
    tables: list[tuple[int, int]] | None = None,
) -> None:
    for element in content:
        if "paragraph" in element:
            runs.append(_paragraph_run(element))
        elif "table" in element:
            if tables is not None:
                tables.append((element.get("startIndex", 0), element.get("endIndex", 0)))
            for row in element["table"].get("tableRows", []):
                for cell in row.get("tableCells", []):
                    _collect_runs(cell.get("content", []), runs, tables)
        elif "tableOfContents" in element:
            _collect_runs(element["tableOfContents"].get("content", []), runs, tables)


@dataclass
class DocumentSnapshot:
    """A read-only view of a destination document body.

    Attributes
    ----------
    runs:
        Paragraph runs in document order (table cell paragraphs included).
    end_index:
        End index of the body; the final newline sits at ``end_index - 1``.
    revision_id:
        The document revision this snapshot was taken at, if known.
    document_id:
        The destination document ID, if known.
    tables:
        ``(start, end)`` of every table, in document order.
    """

    runs: list[TextRun] = field(default_factory=list)
    end_index: int = 2
    revision_id: str | None = None
    document_id: str | None = None
    tables: list[tuple[int, int]] = field(default_factory=list)

    @classmethod
    def from_api(cls, document: dict[str, Any]) -> DocumentSnapshot:
        """Build a snapshot from a Docs ``documents.get`` response."""
        content = document.get("body", {}).get("content", [])
        runs: list[TextRun] = []
        tables: list[tuple[int, int]] = []
        _collect_runs(content, runs, tables)
        end_index = content[-1].get("endIndex", 2) if content else 2
        return cls(
            runs=runs,
            end_index=end_index,
            revision_id=document.get("revisionId"),
            document_id=document.get("documentId"),
            tables=tables,
        )

    @property
    def text(self) -> str:
        """The flat search string: all run texts concatenated in order."""
        return "".join(run.text for run in self.runs)

    @property
    def is_empty(self) -> bool:
        """True when the body holds nothing but its final newline."""
        return self.end_index <= 2


@dataclass(frozen=True)
class SectionRange:
    """The destination range ``[start, end)`` occupied by one page.

    ``source`` is ``"recorded"`` when taken from the placement store and
    ``"search"`` when reconstructed from the document text.
    """

    start: int
    end: int
    source: str = "search"


# ---------------------------------------------------------------------------
# Transfer results
# ---------------------------------------------------------------------------

@dataclass
class TransferResult:
    """Outcome of transferring a single page.

    Attributes
    ----------
    success:
        Whether the page was written.
    message:
        Human-readable summary.
    notion_page_id:
        Source page ID.
    google_doc_id:
        Destination document ID (on success).
    updated:
        ``True`` if an existing section was replaced, ``False`` if the
        page was appended.
    operations:
        Number of operations submitted.
    error:
        The captured exception on failure.
    """

    success: bool
    message: str
    notion_page_id: str
    google_doc_id: str | None = None
    updated: bool = False
    operations: int = 0
    error: Exception | None = None


@dataclass
class MultiTransferResult:
    """Outcome of transferring a worklist of pages."""

    success: bool
    message: str
    results: list[TransferResult] = field(default_factory=list)
    success_count: int = 0
    failed_count: int = 0
