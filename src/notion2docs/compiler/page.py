"""Page assembly: title, identity marker, property table and body blocks.

A compiled page is laid out as::

    <title>\\n                        TITLE style
    Notion Page ID: <id>\\n           8pt gray, linked to the page
    \\n
    Page Properties\\n               HEADING_2   (only with properties)
    <padded property table>\\n
    <blocks ...>
"""

from __future__ import annotations

from notion2docs.compiler.blocks import BlockCompiler, notion_url
from notion2docs.compiler.context import CompileContext
from notion2docs.compiler.rich_text import rgb
from notion2docs.models import (
    CompileResult,
    InsertText,
    Operation,
    Page,
    PageProperty,
    UpdateParagraphStyle,
    UpdateTextStyle,
)
from notion2docs.placement import identity_marker
from notion2docs.properties import format_value

PROPERTIES_HEADING = "Page Properties"

_NAME_HEADER = "Property Name"
_TYPE_HEADER = "Property Type"
_VALUE_HEADER = "Value"
_COLUMN_GAP = 2
_VALUE_RULE_WIDTH = 10

_MARKER_STYLE = {
    "fontSize": {"magnitude": 8, "unit": "PT"},
    "foregroundColor": rgb(0.5, 0.5, 0.5),
}


def property_table(properties: list[PageProperty]) -> str:
    """Render non-title *properties* as a fixed-width plain-text table.

    Returns ``""`` when there is no non-title property.
    """
    shown = [p for p in properties if p.type != "title"]
    if not shown:
        return ""

    name_width = max([len(_NAME_HEADER)] + [len(p.name) for p in shown])
    type_width = max([len(_TYPE_HEADER)] + [len(p.type) for p in shown])

    def row(name: str, kind: str, value: str) -> str:
        name_pad = " " * (name_width - len(name) + _COLUMN_GAP)
        type_pad = " " * (type_width - len(kind) + _COLUMN_GAP)
        return f"{name}{name_pad}| {kind}{type_pad}| {value}\n"

    lines = [
        row(_NAME_HEADER, _TYPE_HEADER, _VALUE_HEADER),
        "-" * (name_width + _COLUMN_GAP)
        + "|"
        + "-" * (type_width + _COLUMN_GAP)
        + "|"
        + "-" * _VALUE_RULE_WIDTH
        + "\n",
    ]
    for prop in shown:
        value = format_value(prop.value).replace("\r\n", " ").replace("\n", " ")
        lines.append(row(prop.name, prop.type, value))
    return "".join(lines)


class PageCompiler:
    """Compile whole pages into positional edit operations.

    Parameters
    ----------
    ctx:
        Capabilities and rendering options shared with the block
        compilers.
    """

    def __init__(self, ctx: CompileContext | None = None) -> None:
        self.ctx = ctx or CompileContext()
        self.blocks = BlockCompiler(self.ctx)

    def compile_header(self, page: Page, offset: int) -> CompileResult:
        """Compile the title, identity marker and property table at *offset*."""
        ops: list[Operation] = []
        pos = offset

        ops.append(InsertText(pos, page.title + "\n"))
        if page.title:
            ops.append(
                UpdateParagraphStyle(
                    pos, pos + len(page.title), {"namedStyleType": "TITLE"}, "namedStyleType"
                )
            )
        pos += len(page.title) + 1

        marker = identity_marker(page.id)
        ops.append(InsertText(pos, marker + "\n"))
        ops.append(
            UpdateTextStyle(
                pos,
                pos + len(marker),
                {**_MARKER_STYLE, "link": {"url": page.url or notion_url(page.id)}},
                "fontSize,foregroundColor,link",
            )
        )
        pos += len(marker) + 1
        ops.append(InsertText(pos, "\n"))
        pos += 1

        table = property_table(page.properties)
        if table:
            ops.append(InsertText(pos, PROPERTIES_HEADING + "\n"))
            ops.append(
                UpdateParagraphStyle(
                    pos,
                    pos + len(PROPERTIES_HEADING),
                    {"namedStyleType": "HEADING_2"},
                    "namedStyleType",
                )
            )
            pos += len(PROPERTIES_HEADING) + 1
            ops.append(InsertText(pos, table + "\n"))
            pos += len(table) + 1

        return CompileResult(ops, pos - offset)

    def compile_page_segments(self, page: Page, offset: int) -> list[CompileResult]:
        """Compile *page* into the header segment and one segment per block.

        Each segment is addressed as if every earlier segment had already
        been applied, so the segments may be submitted one at a time in
        order.  Blocks that compile to nothing yield no segment.
        """
        header = self.compile_header(page, offset)
        segments = [header]
        pos = offset + header.length
        for block in page.blocks:
            result = self.blocks.compile_block(block, pos)
            if not result:
                continue
            segments.append(result)
            pos += result.length
        return segments

    def compile_page(self, page: Page, offset: int) -> CompileResult:
        """Compile *page* into a single ordered operation list at *offset*."""
        ops: list[Operation] = []
        length = 0
        for segment in self.compile_page_segments(page, offset):
            ops.extend(segment.operations)
            length += segment.length
        return CompileResult(ops, length)
