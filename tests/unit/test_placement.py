"""Tests for section search, placement planning and placement records."""

from __future__ import annotations

import pytest

from notion2docs.buffer import DocumentBuffer
from notion2docs.compiler import PageCompiler
from notion2docs.models import (
    Block,
    DeleteContentRange,
    DeleteParagraphBullets,
    InsertPageBreak,
    InsertTable,
    InsertText,
    Page,
    SectionRange,
    UpdateParagraphStyle,
)
from notion2docs.placement import (
    PlacementPlan,
    PlacementRecord,
    find_section,
    identity_marker,
    plan_append,
    plan_placement,
    plan_update,
    record_write,
    resolve_section,
)

NORMAL = {"namedStyleType": "NORMAL_TEXT"}

TWO_PAGES = (
    "Title\n"
    "Notion Page ID: p1\n"
    "\n"
    "Body\n"
    "\f\n"
    "T2\n"
    "Notion Page ID: p2\n"
    "\n"
    "X\n"
    "\n"
)


def snap(text: str, revision: str | None = None):
    return DocumentBuffer(text).snapshot(revision_id=revision)


def paragraph(text: str) -> Block:
    return Block(id="b", type="paragraph", data={"rich_text": [{"plain_text": text}]})


def table(*cells: str) -> Block:
    row = Block(
        id="r",
        type="table_row",
        data={"cells": [[{"plain_text": cell}] if cell else [] for cell in cells]},
    )
    return Block(
        id="t",
        type="table",
        data={"table_width": len(cells), "has_column_header": False},
        has_children=True,
        child_blocks=[row],
    )


def write(buf: DocumentBuffer, page: Page, record: PlacementRecord | None = None):
    plan = plan_placement(buf.snapshot(), page.id, record)
    buf.apply(plan.operations)
    result = PageCompiler().compile_page(page, plan.offset)
    buf.apply(result.operations)
    return plan, result


class TestIdentityMarker:
    def test_format(self):
        assert identity_marker("abc") == "Notion Page ID: abc"


class TestFindSection:
    def test_section_ends_at_page_break(self):
        assert find_section(snap(TWO_PAGES), "p1") == SectionRange(1, 32)

    def test_last_section_ends_after_last_non_blank_paragraph(self):
        assert find_section(snap(TWO_PAGES), "p2") == SectionRange(34, 59)

    def test_section_ends_before_next_marked_title(self):
        text = "A\nNotion Page ID: a\nBody\nB\nNotion Page ID: b\n\n"
        assert find_section(snap(text), "a") == SectionRange(1, 26)

    def test_marker_must_match_exactly(self):
        text = "A\nNotion Page ID: p10\n\n"
        assert find_section(snap(text), "p1") is None

    def test_missing_marker(self):
        assert find_section(snap("Just text\n"), "p1") is None

    def test_marker_as_first_paragraph(self):
        text = "Notion Page ID: p1\nBody\n"
        # "Body\n" ends in the final newline, which is never part of a section.
        assert find_section(snap(text), "p1") == SectionRange(1, 24)

    def test_never_includes_final_newline(self):
        text = "T\nNotion Page ID: p1\n"
        section = find_section(snap(text), "p1")
        assert section is not None
        assert section.end <= snap(text).end_index - 1

    def test_last_section_extends_to_table_end(self):
        buf = DocumentBuffer("T\nNotion Page ID: p1\n\n")
        buf.apply([InsertTable(22, 1, 2), InsertText(26, "ab")])
        assert buf.table_bounds() == [(23, 32)]
        assert find_section(buf.snapshot(), "p1") == SectionRange(1, 32)

    def test_blank_table_after_marker_is_included(self):
        buf = DocumentBuffer("T\nNotion Page ID: p1\n\n").apply([InsertTable(22, 1, 2)])
        assert find_section(buf.snapshot(), "p1") == SectionRange(1, 30)

    def test_table_before_marker_is_ignored(self):
        buf = DocumentBuffer("\nT\nNotion Page ID: p1\nBody\n\n").apply([InsertTable(1, 1, 1)])
        section = find_section(buf.snapshot(), "p1")
        assert section.start > buf.table_bounds()[0][1]
        assert buf.text[section.start - 1:section.end - 1] == "T\nNotion Page ID: p1\nBody\n"


class TestResolveSection:
    def test_recorded_range_used_at_same_revision(self):
        record = PlacementRecord("doc", "r1", {"p1": (1, 10)})
        section = resolve_section(snap(TWO_PAGES, "r1"), "p1", record)
        assert section == SectionRange(1, 10, source="recorded")

    def test_stale_revision_falls_back_to_search(self):
        record = PlacementRecord("doc", "r1", {"p1": (1, 10)})
        section = resolve_section(snap(TWO_PAGES, "r2"), "p1", record)
        assert section == SectionRange(1, 32, source="search")

    def test_out_of_bounds_record_ignored(self):
        record = PlacementRecord("doc", "r1", {"p1": (1, 500)})
        assert resolve_section(snap(TWO_PAGES, "r1"), "p1", record).source == "search"

    def test_record_without_page_falls_back(self):
        record = PlacementRecord("doc", "r1", {"other": (1, 5)})
        assert resolve_section(snap(TWO_PAGES, "r1"), "p2", record) == SectionRange(34, 59)


class TestPlans:
    def test_update_plan(self):
        plan = plan_update(SectionRange(5, 20))
        assert plan.operations == [
            DeleteContentRange(5, 20),
            InsertText(5, "\n"),
            DeleteParagraphBullets(5, 6),
            UpdateParagraphStyle(5, 6, NORMAL, "*"),
        ]
        assert plan.offset == 5
        assert plan.is_update

    def test_update_of_empty_section_skips_delete(self):
        plan = plan_update(SectionRange(5, 5))
        assert plan.operations[0] == InsertText(5, "\n")

    def test_append_to_empty_document(self):
        plan = plan_append(snap("\n"))
        assert plan.operations == []
        assert plan.offset == 1
        assert not plan.is_update

    def test_append_after_page_break(self):
        plan = plan_append(snap("Existing\n\n"))
        assert plan.operations == [
            InsertPageBreak(10),
            DeleteParagraphBullets(12, 13),
            UpdateParagraphStyle(12, 13, NORMAL, "*"),
        ]
        assert plan.offset == 12

    def test_append_plan_applies_cleanly(self):
        buf = DocumentBuffer("Existing\n\n")
        buf.apply(plan_append(buf.snapshot()).operations)
        assert buf.text == "Existing\n\f\n\n"

    def test_plan_placement_chooses_update(self):
        assert plan_placement(snap(TWO_PAGES), "p2").previous == SectionRange(34, 59)

    def test_plan_placement_chooses_append(self):
        assert plan_placement(snap(TWO_PAGES), "p3").previous is None

    def test_written_range(self):
        assert PlacementPlan([], 7, SectionRange(7, 9)).written_range(10) == (7, 18)
        assert PlacementPlan([], 7).written_range(10) == (7, 17)


class TestPlacementRecord:
    def test_dict_round_trip(self):
        record = PlacementRecord("doc", "r3", {"p1": (1, 9), "p2": (11, 30)})
        assert PlacementRecord.from_dict("doc", record.to_dict()) == record

    def test_from_empty_dict(self):
        record = PlacementRecord.from_dict("doc", {})
        assert record.sections == {}
        assert record.revision_id is None

    def test_record_write_shifts_following_sections(self):
        record = PlacementRecord("doc", "r1", {"a": (1, 20), "b": (20, 40), "c": (40, 50)})
        record_write(record, "b", (20, 31), SectionRange(20, 40), "r2")
        assert record.sections == {"a": (1, 20), "b": (20, 31), "c": (31, 41)}
        assert record.revision_id == "r2"

    def test_record_write_for_append(self):
        record = PlacementRecord("doc")
        record_write(record, "a", (1, 30), None, "r1")
        record_write(record, "b", (32, 50), None, "r2")
        assert record.sections == {"a": (1, 30), "b": (32, 50)}


class TestRoundTrip:
    def test_append_then_update_keeps_sections_apart(self):
        buf = DocumentBuffer()
        one = Page(id="p1", title="One", blocks=[paragraph("alpha")])
        two = Page(id="p2", title="Two", blocks=[paragraph("beta")])

        plan, result = write(buf, one)
        assert plan.offset == 1
        assert find_section(buf.snapshot(), "p1") == SectionRange(1, 1 + result.length)

        plan, _ = write(buf, two)
        assert plan.offset == 1 + result.length + 2
        assert find_section(buf.snapshot(), "p1") == SectionRange(1, 1 + result.length)

        longer = Page(id="p1", title="One", blocks=[paragraph("alpha beta gamma")])
        plan, result = write(buf, longer)
        assert plan.is_update
        assert find_section(buf.snapshot(), "p1") == SectionRange(*plan.written_range(result.length))
        assert buf.text.count("\f") == 1
        assert buf.text.count("Notion Page ID: p1") == 1
        assert buf.text.count("Notion Page ID: p2") == 1
        assert "alpha beta gamma\n\n\f\nTwo\n" in buf.text


class TestTrailingTables:
    @pytest.mark.parametrize("cells", [("a", "b"), ("", "")])
    def test_found_section_covers_the_whole_table(self, cells):
        buf = DocumentBuffer()
        write(buf, Page(id="p1", title="One", blocks=[paragraph("alpha"), table(*cells)]))
        [(_, table_end)] = buf.table_bounds()
        assert find_section(buf.snapshot(), "p1") == SectionRange(1, table_end)
        assert set(buf.text[table_end - 1:]) == {"\n"}

    @pytest.mark.parametrize("cells", [("a", "b"), ("", "")])
    def test_update_found_by_search_replaces_the_table(self, cells):
        buf = DocumentBuffer()
        write(buf, Page(id="p1", title="One", blocks=[paragraph("alpha"), table(*cells)]))
        plan, result = write(
            buf, Page(id="p1", title="One", blocks=[paragraph("beta"), table("c", "d")])
        )
        assert plan.is_update
        assert plan.previous.source == "search"
        assert "alpha" not in buf.text
        assert buf.text.count("Notion Page ID: p1") == 1
        [(_, table_end)] = buf.table_bounds()
        assert find_section(buf.snapshot(), "p1") == SectionRange(1, table_end)
        assert table_end <= plan.written_range(result.length)[1]

    def test_table_page_followed_by_another_page(self):
        buf = DocumentBuffer()
        write(buf, Page(id="p1", title="One", blocks=[table("old", "cell")]))
        write(buf, Page(id="p2", title="Two", blocks=[paragraph("beta")]))
        plan, _ = write(buf, Page(id="p1", title="One", blocks=[table("new", "cell")]))
        assert plan.is_update
        assert len(buf.table_bounds()) == 1
        assert buf.text.count("\f") == 1
        assert "old" not in buf.text
        assert "new" in buf.text
        assert find_section(buf.snapshot(), "p2").start > buf.table_bounds()[0][1]
