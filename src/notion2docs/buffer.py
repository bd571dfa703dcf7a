"""In-memory model of a destination document body.

:class:`DocumentBuffer` applies the operation vocabulary with the same
index arithmetic as the destination service:

* the body starts as a single ``"\\n"`` at index 1 and its final newline
  can never be deleted or inserted after;
* ``InsertTable`` adds a newline and then the table structure, one index
  each for the table start, every row, every cell start and the table
  end, plus an empty paragraph per cell;
* ``InsertPageBreak`` adds the page break and a newline;
* ``DeleteContentRange`` may remove a whole table but none of the
  structure of a table it only partly covers;
* ``CreateParagraphBullets`` removes the leading tabs of every paragraph
  it touches.

Style operations are bounds-checked and recorded but not modelled.
Structure indexes are stored as control characters that never appear in
paragraph text.
"""

from __future__ import annotations

from collections.abc import Iterable

from notion2docs.errors import Notion2DocsDocumentError
from notion2docs.models import (
    CreateParagraphBullets,
    DeleteContentRange,
    DeleteParagraphBullets,
    DocumentSnapshot,
    InsertPageBreak,
    InsertTable,
    InsertText,
    Operation,
    TextRun,
    UpdateParagraphStyle,
    UpdateTextStyle,
)

TABLE_START = "\x1c"
ROW_START = "\x1d"
CELL_START = "\x1e"
TABLE_END = "\x1f"
STRUCTURE_CHARS = frozenset({TABLE_START, ROW_START, CELL_START, TABLE_END})


def table_structure(rows: int, columns: int) -> str:
    """The characters an ``InsertTable`` adds, leading newline included."""
    row = ROW_START + (CELL_START + "\n") * columns
    return "\n" + TABLE_START + row * rows + TABLE_END


class DocumentBuffer:
    """A mutable document body addressed by destination indexes.

    Index ``i`` refers to ``text[i - 1]``.

    Parameters
    ----------
    text:
        Initial body content, which must end with ``"\\n"``.
    """

    def __init__(self, text: str = "\n") -> None:
        if not text.endswith("\n"):
            raise Notion2DocsDocumentError(
                message="document body must end with a newline",
                context={"length": len(text)},
            )
        self._text = text
        self.applied: list[Operation] = []

    @classmethod
    def from_snapshot(cls, snapshot: DocumentSnapshot) -> DocumentBuffer:
        """Rebuild a buffer from *snapshot*.

        Indexes not covered by a run (table structure) are filled with
        structure characters so every run keeps its position and every
        recorded table keeps its bounds.
        """
        starts = {start for start, _ in snapshot.tables}
        ends = {end - 1 for _, end in snapshot.tables}

        def structure(index: int) -> str:
            if index in starts:
                return TABLE_START
            if index in ends:
                return TABLE_END
            return CELL_START

        parts: list[str] = []
        pos = 1
        for run in snapshot.runs:
            parts.extend(structure(i) for i in range(pos, run.start))
            parts.append(run.text)
            pos = run.end
        if snapshot.end_index > pos:
            parts.extend(structure(i) for i in range(pos, snapshot.end_index - 1))
            parts.append("\n")
        text = "".join(parts) or "\n"
        return cls(text)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @property
    def text(self) -> str:
        """Raw body text, structure characters included."""
        return self._text

    @property
    def end_index(self) -> int:
        return len(self._text) + 1

    def plain_text(self) -> str:
        """Body text with table structure characters removed."""
        return "".join(ch for ch in self._text if ch not in STRUCTURE_CHARS)

    def paragraphs(self) -> list[TextRun]:
        """Paragraph runs in document order, table cell paragraphs included."""
        runs: list[TextRun] = []
        start: int | None = None
        for i, ch in enumerate(self._text, start=1):
            if ch in STRUCTURE_CHARS:
                continue
            if start is None:
                start = i
            if ch == "\n":
                runs.append(TextRun(start, i + 1, self._text[start - 1:i]))
                start = None
        return runs

    def table_bounds(self) -> list[tuple[int, int]]:
        """``(start, end)`` of every table, ordered by start."""
        bounds: list[tuple[int, int]] = []
        open_tables: list[int] = []
        for i, ch in enumerate(self._text, start=1):
            if ch == TABLE_START:
                open_tables.append(i)
            elif ch == TABLE_END and open_tables:
                bounds.append((open_tables.pop(), i + 1))
        return sorted(bounds)

    def snapshot(
        self, revision_id: str | None = None, document_id: str | None = None
    ) -> DocumentSnapshot:
        return DocumentSnapshot(
            runs=self.paragraphs(),
            end_index=self.end_index,
            revision_id=revision_id,
            document_id=document_id,
            tables=self.table_bounds(),
        )

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def apply(self, operations: Iterable[Operation]) -> DocumentBuffer:
        """Apply *operations* in order and return ``self``.

        Raises
        ------
        Notion2DocsDocumentError
            If an operation addresses an index outside the body,
            or a deletion covers only part of a table.
        """
        for op in operations:
            self._apply_one(op)
            self.applied.append(op)
        return self

    def _apply_one(self, op: Operation) -> None:
        if isinstance(op, InsertText):
            self._insert(op.index, op.text, op)
        elif isinstance(op, InsertTable):
            self._insert(op.index, table_structure(op.rows, op.columns), op)
        elif isinstance(op, InsertPageBreak):
            self._insert(op.index, "\f\n", op)
        elif isinstance(op, DeleteContentRange):
            self._check_range(op.start, op.end, op, limit=self.end_index - 1)
            self._check_table_cover(op.start, op.end, op)
            if op.start == op.end:
                return
            self._text = self._text[: op.start - 1] + self._text[op.end - 1:]
        elif isinstance(op, CreateParagraphBullets):
            self._check_range(op.start, op.end, op)
            self._strip_leading_tabs(op.start, op.end)
        elif isinstance(op, (UpdateTextStyle, UpdateParagraphStyle, DeleteParagraphBullets)):
            self._check_range(op.start, op.end, op)
        else:
            raise Notion2DocsDocumentError(
                message=f"unknown operation {type(op).__name__}",
                context={"operation": repr(op)},
            )

    def _insert(self, index: int, text: str, op: Operation) -> None:
        if not 1 <= index <= len(self._text):
            raise Notion2DocsDocumentError(
                message=f"insert index {index} is outside the body",
                context={"operation": repr(op), "end_index": self.end_index},
            )
        self._text = self._text[: index - 1] + text + self._text[index - 1:]

    def _check_range(self, start: int, end: int, op: Operation, limit: int | None = None) -> None:
        upper = self.end_index if limit is None else limit
        if not 1 <= start <= end <= upper:
            raise Notion2DocsDocumentError(
                message=f"range [{start}, {end}) is outside the body",
                context={"operation": repr(op), "end_index": self.end_index},
            )

    def _check_table_cover(self, start: int, end: int, op: Operation) -> None:
        for table_start, table_end in self.table_bounds():
            if start <= table_start and table_end <= end:
                continue
            lo, hi = max(start, table_start), min(end, table_end)
            if lo < hi and any(ch in STRUCTURE_CHARS for ch in self._text[lo - 1:hi - 1]):
                raise Notion2DocsDocumentError(
                    message=f"range [{start}, {end}) covers part of a table",
                    context={"operation": repr(op), "table": [table_start, table_end]},
                )

    def _strip_leading_tabs(self, start: int, end: int) -> None:
        touched = [
            run for run in self.paragraphs()
            if run.start < max(end, start + 1) and run.end > start
        ]
        # Later paragraphs first so earlier starts stay valid.
        for run in reversed(touched):
            tabs = len(run.text) - len(run.text.lstrip("\t"))
            if tabs:
                self._text = self._text[: run.start - 1] + self._text[run.start - 1 + tabs:]
