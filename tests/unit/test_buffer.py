"""Tests for notion2docs.buffer.DocumentBuffer."""

from __future__ import annotations

import pytest

from notion2docs.buffer import (
    CELL_START,
    TABLE_END,
    TABLE_START,
    DocumentBuffer,
    table_structure,
)
from notion2docs.errors import Notion2DocsDocumentError
from notion2docs.models import (
    CreateParagraphBullets,
    DeleteContentRange,
    DeleteParagraphBullets,
    DocumentSnapshot,
    InsertPageBreak,
    InsertTable,
    InsertText,
    TextRun,
    UpdateParagraphStyle,
    UpdateTextStyle,
)


class TestConstruction:
    def test_default_is_single_newline(self):
        buf = DocumentBuffer()
        assert buf.text == "\n"
        assert buf.end_index == 2

    def test_text_must_end_with_newline(self):
        with pytest.raises(Notion2DocsDocumentError):
            DocumentBuffer("no newline")

    def test_from_snapshot_keeps_run_positions(self):
        snapshot = DocumentSnapshot(
            runs=[TextRun(1, 4, "ab\n"), TextRun(6, 8, "c\n")],
            end_index=9,
        )
        buf = DocumentBuffer.from_snapshot(snapshot)
        assert buf.end_index == 9
        assert [run.text for run in buf.paragraphs()] == ["ab\n", "c\n", "\n"]
        assert buf.paragraphs()[1].start == 6

    def test_from_empty_snapshot(self):
        assert DocumentBuffer.from_snapshot(DocumentSnapshot(runs=[])).text == "\n"

    def test_from_snapshot_keeps_table_bounds(self):
        buf = DocumentBuffer("x\n").apply([InsertTable(2, 1, 2), InsertText(6, "A1")])
        rebuilt = DocumentBuffer.from_snapshot(buf.snapshot())
        assert rebuilt.table_bounds() == buf.table_bounds() == [(3, 12)]
        assert rebuilt.paragraphs() == buf.paragraphs()
        assert rebuilt.end_index == buf.end_index


class TestInsert:
    def test_insert_text(self):
        buf = DocumentBuffer().apply([InsertText(1, "Hello\n"), InsertText(6, ", world")])
        assert buf.text == "Hello, world\n\n"

    def test_cannot_insert_after_final_newline(self):
        with pytest.raises(Notion2DocsDocumentError) as exc_info:
            DocumentBuffer().apply([InsertText(2, "x")])
        assert exc_info.value.context["end_index"] == 2

    def test_cannot_insert_at_zero(self):
        with pytest.raises(Notion2DocsDocumentError):
            DocumentBuffer().apply([InsertText(0, "x")])

    def test_page_break_adds_two_characters(self):
        buf = DocumentBuffer("ab\n\n").apply([InsertPageBreak(4)])
        assert buf.text == "ab\n\f\n\n"
        assert buf.paragraphs()[1] == TextRun(4, 6, "\f\n")

    def test_table_structure_size(self):
        op = InsertTable(1, 2, 3)
        assert len(table_structure(2, 3)) == op.size == 3 + 2 * (1 + 2 * 3)
        buf = DocumentBuffer().apply([op])
        assert buf.end_index == 2 + op.size

    def test_table_cells_are_paragraphs(self):
        buf = DocumentBuffer().apply([InsertTable(1, 1, 2)])
        assert buf.text.startswith("\n" + TABLE_START)
        assert buf.text.count(CELL_START) == 2
        assert buf.text.endswith(TABLE_END + "\n")
        assert [run.text for run in buf.paragraphs()] == ["\n", "\n", "\n", "\n"]
        assert buf.plain_text() == "\n\n\n\n"


class TestDelete:
    def test_delete_range(self):
        buf = DocumentBuffer("abcdef\n").apply([DeleteContentRange(2, 5)])
        assert buf.text == "aef\n"

    def test_empty_range_is_noop(self):
        buf = DocumentBuffer("abc\n").apply([DeleteContentRange(2, 2)])
        assert buf.text == "abc\n"

    def test_final_newline_cannot_be_deleted(self):
        with pytest.raises(Notion2DocsDocumentError):
            DocumentBuffer("abc\n").apply([DeleteContentRange(1, 5)])

    def test_everything_but_final_newline(self):
        buf = DocumentBuffer("abc\n").apply([DeleteContentRange(1, 4)])
        assert buf.text == "\n"

    def test_whole_table_can_be_deleted(self):
        buf = DocumentBuffer().apply([InsertTable(1, 1, 2)])
        buf.apply([DeleteContentRange(2, 9)])
        assert buf.text == "\n\n"
        assert buf.table_bounds() == []

    def test_text_inside_a_cell_can_be_deleted(self):
        buf = DocumentBuffer().apply([InsertTable(1, 1, 2), InsertText(5, "ab")])
        buf.apply([DeleteContentRange(5, 7)])
        assert buf.table_bounds() == [(2, 9)]
        assert buf.plain_text() == "\n\n\n\n"

    @pytest.mark.parametrize("start,end", [(1, 8), (4, 6), (8, 10)])
    def test_partial_table_is_rejected(self, start, end):
        buf = DocumentBuffer("x\n").apply([InsertTable(2, 1, 2)])
        before = buf.text
        with pytest.raises(Notion2DocsDocumentError, match="covers part of a table"):
            buf.apply([DeleteContentRange(start, end)])
        assert buf.text == before


class TestBullets:
    def test_leading_tab_removed(self):
        buf = DocumentBuffer("a\n\tb\n").apply([CreateParagraphBullets(4, 5, "BULLET_DISC_CIRCLE_SQUARE")])
        assert buf.text == "a\nb\n"

    def test_all_touched_paragraphs_lose_tabs(self):
        buf = DocumentBuffer("\ta\n\t\tb\nc\n").apply([CreateParagraphBullets(2, 7, "BULLET_CHECKBOX")])
        assert buf.text == "a\nb\nc\n"

    def test_untouched_paragraph_keeps_tab(self):
        buf = DocumentBuffer("a\n\tb\n").apply([CreateParagraphBullets(1, 2, "BULLET_CHECKBOX")])
        assert buf.text == "a\n\tb\n"

    def test_delete_bullets_only_checks_bounds(self):
        buf = DocumentBuffer("\ta\n").apply([DeleteParagraphBullets(1, 2)])
        assert buf.text == "\ta\n"


class TestStyles:
    def test_styles_recorded_not_modelled(self):
        ops = [
            UpdateTextStyle(1, 3, {"bold": True}, "bold"),
            UpdateParagraphStyle(1, 4, {"namedStyleType": "TITLE"}, "namedStyleType"),
        ]
        buf = DocumentBuffer("abc\n").apply(ops)
        assert buf.text == "abc\n"
        assert buf.applied == ops

    def test_style_range_checked(self):
        with pytest.raises(Notion2DocsDocumentError):
            DocumentBuffer("abc\n").apply([UpdateTextStyle(2, 9, {}, "bold")])

    def test_inverted_range_rejected(self):
        with pytest.raises(Notion2DocsDocumentError):
            DocumentBuffer("abc\n").apply([UpdateTextStyle(3, 2, {}, "bold")])


class TestViews:
    def test_paragraphs(self):
        buf = DocumentBuffer("Title\nbody\n")
        assert buf.paragraphs() == [TextRun(1, 7, "Title\n"), TextRun(7, 12, "body\n")]

    def test_snapshot(self):
        snap = DocumentBuffer("x\n").snapshot(revision_id="r1", document_id="d1")
        assert snap.text == "x\n"
        assert snap.end_index == 3
        assert snap.revision_id == "r1"
        assert snap.document_id == "d1"
        assert not snap.is_empty

    def test_empty_snapshot(self):
        assert DocumentBuffer().snapshot().is_empty

    def test_snapshot_records_tables(self):
        buf = DocumentBuffer().apply([InsertTable(1, 1, 2), InsertTable(1, 2, 1)])
        assert buf.snapshot().tables == buf.table_bounds() == [(2, 10), (11, 18)]
