"""Tests for page assembly (notion2docs.compiler.page)."""

from __future__ import annotations

from notion2docs.buffer import DocumentBuffer
from notion2docs.compiler import PageCompiler, property_table
from notion2docs.models import (
    Block,
    InsertText,
    Page,
    PageProperty,
    UpdateParagraphStyle,
    UpdateTextStyle,
)


def paragraph(text: str) -> Block:
    return Block(id="p", type="paragraph", data={"rich_text": [{"plain_text": text}]})


def make_page(**overrides) -> Page:
    defaults = dict(id="page-1", title="Doc", url="", properties=[], blocks=[paragraph("Body")])
    defaults.update(overrides)
    return Page(**defaults)


class TestPropertyTable:
    def test_layout(self):
        table = property_table([
            PageProperty("Name", "title", "Doc"),
            PageProperty("Status", "select", "Done"),
        ])
        assert table == (
            "Property Name  | Property Type  | Value\n"
            "---------------|---------------|----------\n"
            "Status         | select         | Done\n"
        )

    def test_columns_grow_with_long_names(self):
        table = property_table([PageProperty("A rather long property", "rich_text", "x")])
        header, rule, row = table.splitlines()
        assert header.index("|") == row.index("|") == len("A rather long property") + 2
        assert rule.index("|") == header.index("|")

    def test_values_stay_on_one_line(self):
        table = property_table([PageProperty("Notes", "rich_text", "one\ntwo\r\nthree")])
        assert table.splitlines()[-1].endswith("| one two three")

    def test_values_are_formatted(self):
        table = property_table([
            PageProperty("Done", "checkbox", True),
            PageProperty("Count", "number", 4.0),
            PageProperty("Empty", "url", None),
        ])
        values = [line.rsplit("| ", 1)[1] for line in table.splitlines()[2:]]
        assert values == ["Yes", "4", ""]

    def test_only_title_property(self):
        assert property_table([PageProperty("Name", "title", "Doc")]) == ""


class TestCompileHeader:
    def test_title_marker_and_blank_line(self):
        header = PageCompiler().compile_header(make_page(), 1)
        marker = "Notion Page ID: page-1"
        assert header.operations[0] == InsertText(1, "Doc\n")
        assert header.operations[1] == UpdateParagraphStyle(
            1, 4, {"namedStyleType": "TITLE"}, "namedStyleType"
        )
        assert header.operations[2] == InsertText(5, marker + "\n")
        style = header.operations[3]
        assert isinstance(style, UpdateTextStyle)
        assert (style.start, style.end) == (5, 5 + len(marker))
        assert style.text_style["fontSize"] == {"magnitude": 8, "unit": "PT"}
        assert style.text_style["link"] == {"url": "https://www.notion.so/page1"}
        assert header.operations[4] == InsertText(5 + len(marker) + 1, "\n")
        assert header.length == 4 + len(marker) + 1 + 1

    def test_marker_links_to_page_url(self):
        page = make_page(url="https://www.notion.so/Doc-page1")
        header = PageCompiler().compile_header(page, 1)
        assert header.operations[3].text_style["link"] == {"url": "https://www.notion.so/Doc-page1"}

    def test_properties_section(self):
        page = make_page(properties=[PageProperty("Status", "select", "Done")])
        header = PageCompiler().compile_header(page, 1)
        text = DocumentBuffer().apply(header.operations).text
        assert text.startswith("Doc\nNotion Page ID: page-1\n\nPage Properties\nProperty Name")
        assert text.endswith("| Done\n\n\n")
        heading = [
            op for op in header.operations
            if isinstance(op, UpdateParagraphStyle) and op.paragraph_style == {"namedStyleType": "HEADING_2"}
        ]
        assert len(heading) == 1
        assert len(text) - 1 == header.length


class TestCompilePage:
    def test_full_page_text(self):
        page = make_page(blocks=[paragraph("Body"), Block(id="d", type="divider")])
        result = PageCompiler().compile_page(page, 1)
        buf = DocumentBuffer().apply(result.operations)
        assert buf.text == "Doc\nNotion Page ID: page-1\n\nBody\n---\n\n"
        assert len(buf.text) - 1 == result.length

    def test_segments_chain_offsets(self):
        page = make_page(blocks=[paragraph("One"), paragraph(""), paragraph("Two")])
        segments = PageCompiler().compile_page_segments(page, 7)
        assert len(segments) == 3
        header, first, second = segments
        assert first.operations == [InsertText(7 + header.length, "One\n")]
        assert second.operations == [InsertText(7 + header.length + 4, "Two\n")]

    def test_page_is_concatenation_of_segments(self):
        page = make_page(
            properties=[PageProperty("Tags", "multi_select", "a, b")],
            blocks=[paragraph("x"), paragraph("y")],
        )
        compiler = PageCompiler()
        segments = compiler.compile_page_segments(page, 3)
        whole = compiler.compile_page(page, 3)
        assert whole.operations == [op for s in segments for op in s.operations]
        assert whole.length == sum(s.length for s in segments)

    def test_segments_apply_one_at_a_time(self):
        page = make_page(
            blocks=[
                Block(
                    id="l",
                    type="bulleted_list_item",
                    data={"rich_text": [{"plain_text": "item"}]},
                    child_blocks=[paragraph("nested")],
                ),
                paragraph("after"),
            ]
        )
        buf = DocumentBuffer()
        for segment in PageCompiler().compile_page_segments(page, 1):
            before = len(buf.text)
            buf.apply(segment.operations)
            assert len(buf.text) - before == segment.length
        assert buf.text.endswith("item\n\tnested\nafter\n\n")
