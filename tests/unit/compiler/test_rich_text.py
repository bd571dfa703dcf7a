"""Tests for notion2docs.compiler.rich_text."""

from __future__ import annotations

import pytest

from notion2docs.compiler.rich_text import (
    flatten,
    notion_color,
    rgb,
    span_styles,
    text_style_for,
)
from notion2docs.models import UpdateTextStyle


def span(text: str, href: str | None = None, **annotations) -> dict:
    s: dict = {"type": "text", "plain_text": text, "text": {"content": text}}
    if annotations:
        s["annotations"] = annotations
    if href:
        s["href"] = href
    return s


class TestFlatten:
    def test_concatenates_in_order(self):
        assert flatten([span("Hello"), span(", "), span("world")]) == "Hello, world"

    @pytest.mark.parametrize("spans", [[], None, "text", 42, {"plain_text": "x"}])
    def test_empty_or_non_list_returns_empty(self, spans):
        assert flatten(spans) == ""

    def test_preserves_whitespace_and_newlines(self):
        assert flatten([span("  a\n"), span("\tb  ")]) == "  a\n\tb  "

    def test_ignores_annotations_and_links(self):
        assert flatten([span("x", href="https://example.com", bold=True)]) == "x"

    def test_falls_back_to_text_content(self):
        assert flatten([{"type": "text", "text": {"content": "raw"}}]) == "raw"

    def test_skips_non_dict_entries(self):
        assert flatten([span("a"), None, "b", span("c")]) == "ac"


class TestTextStyleFor:
    def test_plain_span_has_no_fields(self):
        style, fields = text_style_for(span("x"))
        assert style == {}
        assert fields == []

    def test_basic_flags(self):
        style, fields = text_style_for(
            span("x", bold=True, italic=True, strikethrough=True, underline=True)
        )
        assert style == {
            "bold": True,
            "italic": True,
            "strikethrough": True,
            "underline": True,
        }
        assert fields == ["bold", "italic", "strikethrough", "underline"]

    def test_code_uses_monospace_and_background(self):
        style, fields = text_style_for(span("x", code=True), "Courier New")
        assert style["weightedFontFamily"] == {"fontFamily": "Courier New", "weight": 400}
        assert style["backgroundColor"] == rgb(0.95, 0.95, 0.95)
        assert fields == ["weightedFontFamily", "backgroundColor"]

    def test_foreground_color(self):
        style, fields = text_style_for(span("x", color="red"))
        assert style["foregroundColor"] == notion_color("red")
        assert fields == ["foregroundColor"]

    def test_background_color(self):
        style, fields = text_style_for(span("x", color="blue_background"))
        assert style["backgroundColor"] == notion_color("blue")
        assert fields == ["backgroundColor"]

    def test_background_color_overrides_code_background_once(self):
        style, fields = text_style_for(span("x", code=True, color="yellow_background"))
        assert style["backgroundColor"] == notion_color("yellow")
        assert fields.count("backgroundColor") == 1

    def test_default_color_ignored(self):
        _, fields = text_style_for(span("x", color="default"))
        assert fields == []

    def test_link(self):
        style, fields = text_style_for(span("x", href="https://example.com"))
        assert style["link"] == {"url": "https://example.com"}
        assert fields == ["link"]


class TestNotionColor:
    def test_unknown_color_maps_to_black(self):
        assert notion_color("magenta") == rgb(0.0, 0.0, 0.0)

    def test_background_uses_base_name(self):
        assert notion_color("green_background") == notion_color("green")


class TestSpanStyles:
    def test_positions_follow_flattened_text(self):
        spans = [span("ab"), span("cd", bold=True), span("e"), span("fg", italic=True)]
        ops = span_styles(spans, 10)
        assert ops == [
            UpdateTextStyle(12, 14, {"bold": True}, "bold"),
            UpdateTextStyle(15, 17, {"italic": True}, "italic"),
        ]

    def test_empty_spans_produce_nothing(self):
        assert span_styles([span("", bold=True)], 1) == []

    def test_multiple_fields_joined(self):
        (op,) = span_styles([span("x", bold=True, href="https://e.com")], 1)
        assert op.fields == "bold,link"
