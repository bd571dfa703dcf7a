"""Table compilation.

Two shapes are produced here:

* :func:`compile_table` turns a Notion ``table`` block (whose
  ``child_blocks`` are ``table_row`` blocks) into a native destination
  table.  Cell positions are found by walking a fixed stride over the
  structure :class:`~notion2docs.models.InsertTable` creates: one index for
  the table start, one per row, and two per cell (cell start plus the
  cell's paragraph) before any text is inserted.
* :func:`pipe_table` renders database records as Markdown-style pipe
  lines for the linked-database compiler.
"""

from __future__ import annotations

from typing import Any

from notion2docs.compiler.context import CompileContext
from notion2docs.compiler.rich_text import flatten, span_styles
from notion2docs.models import (
    Block,
    CompileResult,
    DatabaseRow,
    InsertTable,
    InsertText,
    Operation,
    UpdateTextStyle,
)
from notion2docs.properties import format_value

_ROW_STRIDE = 1
_CELL_STRIDE = 2
# Table end marker plus the paragraph that follows it.
_TABLE_TAIL = 2

_BOLD = {"bold": True}


def _row_cells(row: Block) -> list[list[dict[str, Any]]]:
    cells = row.data.get("cells")
    return cells if isinstance(cells, list) else []


def compile_table(block: Block, offset: int, ctx: CompileContext) -> CompileResult:
    """Compile a ``table`` block inserted at *offset*.

    Returns an empty result when the context cannot submit, or when the
    table has no rows or no columns.
    """
    if not ctx.can_submit:
        return CompileResult()

    rows = [child for child in block.child_blocks if child.type == "table_row"]
    columns = int(block.data.get("table_width") or 0)
    if not rows or columns <= 0:
        return CompileResult()

    has_column_header = bool(block.data.get("has_column_header"))
    has_row_header = bool(block.data.get("has_row_header"))

    ops: list[Operation] = [
        InsertText(offset, "\n"),
        InsertTable(offset + 1, len(rows), columns),
    ]
    header_styles: list[Operation] = []
    index = offset + 2

    for row_number, row in enumerate(rows):
        index += _ROW_STRIDE
        cells = _row_cells(row)
        for column_number in range(columns):
            index += _CELL_STRIDE
            spans = cells[column_number] if column_number < len(cells) else []
            text = flatten(spans)
            if not text:
                continue
            ops.append(InsertText(index, text))
            ops.extend(span_styles(spans, index, ctx.code_font_family))
            is_header = (has_column_header and row_number == 0) or (
                has_row_header and column_number == 0
            )
            if is_header:
                header_styles.append(UpdateTextStyle(index, index + len(text), _BOLD, "bold"))
            index += len(text)

    ops.extend(header_styles)
    index += _TABLE_TAIL
    ops.append(InsertText(index, "\n"))
    index += 1
    return CompileResult(ops, index - offset)


def _cell(value: Any) -> str:
    text = format_value(value).replace("\n", " ")
    return text.replace("|", "\\|")


def pipe_table(rows: list[DatabaseRow]) -> str:
    """Render *rows* as pipe-table lines, each ending in ``"\\n"``.

    Columns follow the property order of the first row.  Returns ``""``
    when there is nothing to render.
    """
    if not rows or not rows[0].properties:
        return ""
    names = [prop.name for prop in rows[0].properties]
    lines = [
        "| " + " | ".join(_cell(name) for name in names) + " |",
        "| " + " | ".join("---" for _ in names) + " |",
    ]
    for row in rows:
        values = {prop.name: prop.value for prop in row.properties}
        lines.append("| " + " | ".join(_cell(values.get(name)) for name in names) + " |")
    return "".join(line + "\n" for line in lines)
