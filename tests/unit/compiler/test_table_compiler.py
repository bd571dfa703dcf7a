"""Tests for notion2docs.compiler.tables."""

from __future__ import annotations

from notion2docs.buffer import DocumentBuffer
from notion2docs.compiler import CompileContext, compile_table, pipe_table
from notion2docs.models import (
    Block,
    DatabaseRow,
    InsertTable,
    InsertText,
    PageProperty,
    UpdateTextStyle,
)


def cell(text: str, **annotations) -> list[dict]:
    if not text:
        return []
    s: dict = {"type": "text", "plain_text": text}
    if annotations:
        s["annotations"] = annotations
    return [s]


def table(rows: list[list[str]], width: int | None = None, **flags) -> Block:
    children = [
        Block(id=f"row-{i}", type="table_row", data={"cells": [cell(t) for t in row]})
        for i, row in enumerate(rows)
    ]
    data = {"table_width": width if width is not None else max((len(r) for r in rows), default=0)}
    data.update(flags)
    return Block(id="tbl", type="table", data=data, has_children=bool(children), child_blocks=children)


SUBMIT = CompileContext(can_submit=True)


class TestCompileTable:
    def test_two_by_two_with_column_header(self):
        result = compile_table(
            table([["A", "B"], ["1", "2"]], has_column_header=True), 1, SUBMIT
        )
        assert result.operations == [
            InsertText(1, "\n"),
            InsertTable(2, 2, 2),
            InsertText(6, "A"),
            InsertText(9, "B"),
            InsertText(13, "1"),
            InsertText(16, "2"),
            UpdateTextStyle(6, 7, {"bold": True}, "bold"),
            UpdateTextStyle(9, 10, {"bold": True}, "bold"),
            InsertText(19, "\n"),
        ]
        assert result.length == 19

    def test_length_matches_buffer(self):
        result = compile_table(table([["A", "B"], ["1", "2"]]), 1, SUBMIT)
        buf = DocumentBuffer().apply(result.operations)
        assert len(buf.text) - 1 == result.length
        assert buf.plain_text() == "\n\nA\nB\n1\n2\n\n\n"

    def test_structural_length_formula(self):
        rows, cols = 3, 4
        result = compile_table(table([[""] * cols] * rows, width=cols), 10, SUBMIT)
        assert result.length == 3 + rows * (1 + 2 * cols) + 2

    def test_row_header_bolds_first_column(self):
        result = compile_table(
            table([["k1", "v1"], ["k2", "v2"]], has_row_header=True), 1, SUBMIT
        )
        bolded = [op for op in result.operations if isinstance(op, UpdateTextStyle)]
        texts = {op.index: op.text for op in result.operations if isinstance(op, InsertText)}
        assert [texts[op.start] for op in bolded] == ["k1", "k2"]

    def test_short_rows_leave_cells_empty(self):
        block = table([["only"], ["a", "b"]], width=2)
        result = compile_table(block, 1, SUBMIT)
        buf = DocumentBuffer().apply(result.operations)
        assert len(buf.text) - 1 == result.length
        assert [run.text for run in buf.paragraphs()][2:6] == ["only\n", "\n", "a\n", "b\n"]

    def test_cell_annotations_are_styled(self):
        block = Block(
            id="t",
            type="table",
            data={"table_width": 1},
            child_blocks=[
                Block(id="r", type="table_row", data={"cells": [cell("x", italic=True)]})
            ],
        )
        result = compile_table(block, 1, SUBMIT)
        assert UpdateTextStyle(6, 7, {"italic": True}, "italic") in result.operations

    def test_requires_submission_capability(self):
        result = compile_table(table([["A"]]), 1, CompileContext(can_submit=False))
        assert result.operations == []
        assert result.length == 0

    def test_zero_columns(self):
        result = compile_table(table([["A"]], width=0), 1, SUBMIT)
        assert result.length == 0

    def test_non_row_children_ignored(self):
        block = table([["A"]])
        block.child_blocks.append(Block(id="odd", type="paragraph"))
        assert compile_table(block, 1, SUBMIT).operations[1] == InsertTable(2, 1, 1)


class TestPipeTable:
    def test_header_separator_and_rows(self):
        rows = [
            DatabaseRow("p1", [PageProperty("Name", "title", "A|B"), PageProperty("Done", "checkbox", True)]),
            DatabaseRow("p2", [PageProperty("Name", "title", "two\nlines"), PageProperty("Done", "checkbox", False)]),
        ]
        assert pipe_table(rows) == (
            "| Name | Done |\n"
            "| --- | --- |\n"
            "| A\\|B | Yes |\n"
            "| two lines | No |\n"
        )

    def test_missing_property_renders_blank(self):
        rows = [
            DatabaseRow("p1", [PageProperty("Name", "title", "x"), PageProperty("Score", "number", 3.0)]),
            DatabaseRow("p2", [PageProperty("Name", "title", "y")]),
        ]
        assert pipe_table(rows).splitlines()[-1] == "| y |  |"

    def test_empty(self):
        assert pipe_table([]) == ""
        assert pipe_table([DatabaseRow("p1", [])]) == ""
