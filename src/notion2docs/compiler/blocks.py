"""Per-kind block compilers and the block dispatcher.

Every compiler has the same shape::

    compiler(self, block, offset, depth) -> CompileResult

where *offset* is the absolute destination index the block's first
character lands on and *depth* is ``0`` for top-level blocks and ``> 0``
for nested children.  The result carries the ordered operations and the
net number of characters they add, which callers use to place the next
sibling.

Nesting conventions
-------------------
Children are introduced by the recursors.  Each child is preceded by
exactly one ``"\\t"`` marker, independent of depth.  Creating bullets over
a paragraph consumes its leading tab (the destination turns it into the
nesting level), so bullet-carrying kinds compiled at ``depth > 0`` report
one character less than they insert.

* :meth:`BlockCompiler.nest_inside_bullet_range` places children directly
  after the parent's paragraph, before the parent's bullets are created
  (list items, to-dos, paragraphs, headings).
* :meth:`BlockCompiler.nest_outside_bullet_range` places children one
  character earlier, on the parent's own newline, once its bullets
  already exist (toggles).  The first child's marker then sits inside the
  parent's line instead of leading a paragraph, so that child is compiled
  *inline* and its bullets have no tab to consume.
"""

from __future__ import annotations

from collections.abc import Callable

from notion2docs.compiler.context import CompileContext
from notion2docs.compiler.rich_text import flatten, rgb, span_styles
from notion2docs.compiler.tables import compile_table, pipe_table
from notion2docs.models import (
    Block,
    CompileResult,
    CreateParagraphBullets,
    InsertText,
    Operation,
    UpdateParagraphStyle,
    UpdateTextStyle,
)
from notion2docs.observability import get_logger

log = get_logger("notion2docs.compiler")

INDENT_MARKER = "\t"

BULLET_PRESETS: dict[str, str] = {
    "bulleted_list_item": "BULLET_DISC_CIRCLE_SQUARE",
    "numbered_list_item": "NUMBERED_DECIMAL_ALPHA_ROMAN",
    "to_do": "BULLET_CHECKBOX",
    "toggle": "BULLET_ARROW_DIAMOND_DISC",
}

_HEADING_STYLES: dict[str, str] = {
    "heading_1": "HEADING_1",
    "heading_2": "HEADING_2",
    "heading_3": "HEADING_3",
}

DIVIDER_TEXT = "---\n"

LINKED_DATABASE_DESCRIPTION = "Open this database in Notion to see all of its records."
_LINK_COLOR = rgb(0.0, 0.3, 0.8)
_DESCRIPTION_COLOR = rgb(0.5, 0.5, 0.5)


def unsupported_placeholder(kind: str) -> str:
    return f"[Unsupported block type: {kind}]\n"


def synced_placeholder(block_id: str) -> str:
    return f"[Synced block: {block_id}]\n"


def notion_url(object_id: str) -> str:
    """Build the ``notion.so`` URL of a page, block or database ID."""
    return f"https://www.notion.so/{object_id.replace('-', '')}"


class BlockCompiler:
    """Compiles single blocks into positional edit operations.

    Parameters
    ----------
    ctx:
        The capabilities and rendering options of this pass.  Defaults to
        a context without reference resolution or database queries.

    Examples
    --------
    >>> block = Block(id="b1", type="paragraph",
    ...               data={"rich_text": [{"plain_text": "Hello"}]})
    >>> result = BlockCompiler().compile_block(block, 10)
    >>> result.operations, result.length
    ([InsertText(index=10, text='Hello\\n')], 6)
    """

    def __init__(self, ctx: CompileContext | None = None) -> None:
        self.ctx = ctx or CompileContext()
        self._inline = False

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def compile_block(
        self, block: Block, offset: int, depth: int = 0, *, inline: bool = False
    ) -> CompileResult:
        """Compile *block* and its descendants at *offset*.

        *inline* marks a nested block whose marker lands inside the
        preceding paragraph rather than at the start of its own.
        """
        self._inline = inline
        return dispatch(block.type)(self, block, offset, depth)

    def _consumes_marker(self, depth: int) -> bool:
        # Read before compiling any children; nested calls reset the flag.
        return depth > 0 and not self._inline

    def compile_blocks(
        self, blocks: list[Block], offset: int, depth: int = 0
    ) -> CompileResult:
        """Compile sibling *blocks* one after another starting at *offset*."""
        ops: list[Operation] = []
        pos = offset
        for block in blocks:
            result = self.compile_block(block, pos, depth)
            ops.extend(result.operations)
            pos += result.length
        return CompileResult(ops, pos - offset)

    # ------------------------------------------------------------------
    # Recursors
    # ------------------------------------------------------------------

    def _nest_children(
        self, children: list[Block], offset: int, depth: int, inline_first: bool = False
    ) -> CompileResult:
        ops: list[Operation] = []
        pos = offset
        inline = inline_first
        for child in children:
            result = self.compile_block(
                child, pos + len(INDENT_MARKER), depth + 1, inline=inline
            )
            if not result:
                continue
            ops.append(InsertText(pos, INDENT_MARKER))
            ops.extend(result.operations)
            pos += len(INDENT_MARKER) + result.length
            inline = False
        return CompileResult(ops, pos - offset)

    def nest_inside_bullet_range(
        self, block: Block, offset: int, depth: int
    ) -> CompileResult:
        """Compile *block*'s children at *offset*, before the parent's bullets.

        *offset* is the index just past the parent's own paragraph.
        Children that compile to nothing get no marker.
        """
        return self._nest_children(block.child_blocks, offset, depth)

    def nest_outside_bullet_range(
        self, block: Block, offset: int, depth: int
    ) -> CompileResult:
        """Compile *block*'s children before the parent's closing newline.

        *offset* is the parent's paragraph end as it stands once the
        bullets have consumed any leading marker.  Children start one
        character before it, so the first child joins the parent's line
        and each later child leads a paragraph of its own.
        """
        return self._nest_children(
            block.child_blocks, offset - len("\n"), depth, inline_first=True
        )

    # ------------------------------------------------------------------
    # Text kinds
    # ------------------------------------------------------------------

    def _styled_line(self, block: Block, offset: int) -> tuple[str, list[Operation]]:
        text = flatten(block.rich_text)
        if not text:
            return "", []
        ops: list[Operation] = [InsertText(offset, text + "\n")]
        ops.extend(span_styles(block.rich_text, offset, self.ctx.code_font_family))
        return text, ops

    def _compile_paragraph(self, block: Block, offset: int, depth: int) -> CompileResult:
        text, ops = self._styled_line(block, offset)
        if not text:
            return CompileResult()
        length = len(text) + 1
        children = self.nest_inside_bullet_range(block, offset + length, depth)
        ops.extend(children.operations)
        return CompileResult(ops, length + children.length)

    def _compile_heading(self, block: Block, offset: int, depth: int) -> CompileResult:
        text, ops = self._styled_line(block, offset)
        if not text:
            return CompileResult()
        ops.append(
            UpdateParagraphStyle(
                offset,
                offset + len(text),
                {"namedStyleType": _HEADING_STYLES[block.type]},
                "namedStyleType",
            )
        )
        length = len(text) + 1
        children = self.nest_inside_bullet_range(block, offset + length, depth)
        ops.extend(children.operations)
        return CompileResult(ops, length + children.length)

    def _compile_list_item(self, block: Block, offset: int, depth: int) -> CompileResult:
        strips = self._consumes_marker(depth)
        text, ops = self._styled_line(block, offset)
        if not text:
            return CompileResult()
        length = len(text) + 1
        children = self.nest_inside_bullet_range(block, offset + length, depth)
        ops.extend(children.operations)
        ops.append(
            CreateParagraphBullets(offset, offset + len(text), BULLET_PRESETS[block.type])
        )
        consumed = length + children.length
        if strips:
            consumed -= len(INDENT_MARKER)
        return CompileResult(ops, consumed)

    def _compile_toggle(self, block: Block, offset: int, depth: int) -> CompileResult:
        strips = self._consumes_marker(depth)
        text, ops = self._styled_line(block, offset)
        if not text:
            return CompileResult()
        ops.append(CreateParagraphBullets(offset, offset + len(text), BULLET_PRESETS["toggle"]))
        own = len(text) + 1
        if strips:
            own -= len(INDENT_MARKER)
        children = self.nest_outside_bullet_range(block, offset + own, depth)
        ops.extend(children.operations)
        consumed = own + children.length
        if depth == 0:
            ops.append(InsertText(offset + consumed, "\n"))
            consumed += 1
        return CompileResult(ops, consumed)

    def _compile_quote(self, block: Block, offset: int, depth: int) -> CompileResult:
        text, ops = self._styled_line(block, offset)
        if not text:
            return CompileResult()
        indent = {"magnitude": self.ctx.quote_indent_pt, "unit": "PT"}
        ops.append(
            UpdateParagraphStyle(
                offset,
                offset + len(text),
                {"indentStart": indent, "indentFirstLine": indent},
                "indentStart,indentFirstLine",
            )
        )
        return CompileResult(ops, len(text) + 1)

    def _compile_code(self, block: Block, offset: int, depth: int) -> CompileResult:
        text = flatten(block.rich_text)
        if not text:
            return CompileResult()
        ops: list[Operation] = [
            InsertText(offset, text + "\n"),
            UpdateTextStyle(
                offset,
                offset + len(text),
                {"weightedFontFamily": {"fontFamily": self.ctx.code_font_family}},
                "weightedFontFamily",
            ),
        ]
        return CompileResult(ops, len(text) + 1)

    # ------------------------------------------------------------------
    # Fixed and structural kinds
    # ------------------------------------------------------------------

    def _compile_divider(self, block: Block, offset: int, depth: int) -> CompileResult:
        return CompileResult([InsertText(offset, DIVIDER_TEXT)], len(DIVIDER_TEXT))

    def _compile_unsupported(self, block: Block, offset: int, depth: int) -> CompileResult:
        text = unsupported_placeholder(block.type)
        return CompileResult([InsertText(offset, text)], len(text))

    def _compile_table(self, block: Block, offset: int, depth: int) -> CompileResult:
        return compile_table(block, offset, self.ctx)

    def _compile_column_list(self, block: Block, offset: int, depth: int) -> CompileResult:
        # Column content starts on fresh, unmarked paragraphs after the
        # separator, so it is compiled as top-level content.
        ops: list[Operation] = [InsertText(offset, "\n")]
        pos = offset + 1
        for column in block.child_blocks:
            result = self.compile_blocks(column.child_blocks, pos)
            ops.extend(result.operations)
            pos += result.length
        ops.append(InsertText(pos, "\n"))
        return CompileResult(ops, pos + 1 - offset)

    def _compile_synced_block(self, block: Block, offset: int, depth: int) -> CompileResult:
        inline = self._inline
        synced_from = block.data.get("synced_from")
        if synced_from is None:
            # An original synced block holds its own content.
            if not block.child_blocks:
                return self._synced_fallback(block.id, offset)
            return self._compile_resolved(block.child_blocks, offset, depth, inline)

        reference = synced_from.get("block_id") or ""
        if self.ctx.resolve_reference is None or not reference:
            return self._synced_fallback(reference or block.id, offset)
        try:
            resolved = self.ctx.resolve_reference(reference)
        except Exception as exc:
            log.warning(
                "synced block reference could not be resolved",
                extra={"extra_fields": {
                    "block_id": block.id,
                    "reference": reference,
                    "error": repr(exc),
                }},
            )
            return self._synced_fallback(reference, offset)
        if not resolved:
            return self._synced_fallback(reference, offset)
        return self._compile_resolved(resolved, offset, depth, inline)

    def _compile_resolved(
        self, blocks: list[Block], offset: int, depth: int, inline: bool
    ) -> CompileResult:
        ops: list[Operation] = []
        pos = offset
        placed = False
        for source in blocks:
            marker = len(INDENT_MARKER) if depth > 0 and placed else 0
            # The first block shares the marker the synced block was given.
            result = self.compile_block(
                source, pos + marker, depth, inline=inline and not placed
            )
            if not result:
                continue
            if marker:
                ops.append(InsertText(pos, INDENT_MARKER))
            ops.extend(result.operations)
            pos += marker + result.length
            placed = True
        ops.append(InsertText(pos, "\n"))
        return CompileResult(ops, pos + 1 - offset)

    def _synced_fallback(self, reference: str, offset: int) -> CompileResult:
        text = synced_placeholder(reference)
        ops: list[Operation] = [
            InsertText(offset, text),
            InsertText(offset + len(text), "\n"),
        ]
        return CompileResult(ops, len(text) + 1)

    def _compile_child_database(self, block: Block, offset: int, depth: int) -> CompileResult:
        title = block.data.get("title") or ""
        heading = f"{title} (Linked database)" if title else "Linked Database"
        ops: list[Operation] = [
            InsertText(offset, heading + "\n"),
            UpdateTextStyle(
                offset,
                offset + len(heading),
                {
                    "bold": True,
                    "foregroundColor": _LINK_COLOR,
                    "link": {"url": notion_url(block.id)},
                },
                "bold,foregroundColor,link",
            ),
        ]
        pos = offset + len(heading) + 1

        ops.append(InsertText(pos, LINKED_DATABASE_DESCRIPTION + "\n"))
        ops.append(
            UpdateTextStyle(
                pos,
                pos + len(LINKED_DATABASE_DESCRIPTION),
                {"italic": True, "foregroundColor": _DESCRIPTION_COLOR},
                "italic,foregroundColor",
            )
        )
        pos += len(LINKED_DATABASE_DESCRIPTION) + 1

        table = self._database_table(block)
        if table:
            ops.append(InsertText(pos, table))
            pos += len(table)

        ops.append(InsertText(pos, "\n"))
        return CompileResult(ops, pos + 1 - offset)

    def _database_table(self, block: Block) -> str:
        if self.ctx.query_database is None:
            return ""
        try:
            rows = self.ctx.query_database(block.id)
        except Exception as exc:
            log.warning(
                "linked database rows could not be fetched",
                extra={"extra_fields": {"block_id": block.id, "error": repr(exc)}},
            )
            return ""
        return pipe_table(rows)


_BlockCompilerFn = Callable[[BlockCompiler, Block, int, int], CompileResult]

_BLOCK_COMPILERS: dict[str, _BlockCompilerFn] = {
    "paragraph": BlockCompiler._compile_paragraph,
    "heading_1": BlockCompiler._compile_heading,
    "heading_2": BlockCompiler._compile_heading,
    "heading_3": BlockCompiler._compile_heading,
    "bulleted_list_item": BlockCompiler._compile_list_item,
    "numbered_list_item": BlockCompiler._compile_list_item,
    "to_do": BlockCompiler._compile_list_item,
    "toggle": BlockCompiler._compile_toggle,
    "quote": BlockCompiler._compile_quote,
    "code": BlockCompiler._compile_code,
    "divider": BlockCompiler._compile_divider,
    "table": BlockCompiler._compile_table,
    "column_list": BlockCompiler._compile_column_list,
    "synced_block": BlockCompiler._compile_synced_block,
    "child_database": BlockCompiler._compile_child_database,
}


def dispatch(kind: str) -> _BlockCompilerFn:
    """Return the compiler for block *kind*.

    Unknown kinds resolve to the unsupported-block fallback.
    """
    return _BLOCK_COMPILERS.get(kind, BlockCompiler._compile_unsupported)


def supported_kinds() -> frozenset[str]:
    return frozenset(_BLOCK_COMPILERS)
