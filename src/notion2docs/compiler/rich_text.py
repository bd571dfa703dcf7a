"""Rich-text helpers: flattening and annotation-to-style mapping.

A Notion rich-text span is a dict such as::

    {
        "type": "text",
        "plain_text": "hello",
        "annotations": {"bold": true, "italic": false, "strikethrough": false,
                        "underline": false, "code": false, "color": "red"},
        "href": "https://example.com"
    }

:func:`flatten` ignores everything but ``plain_text``; :func:`span_styles`
turns annotations and links into positional text-style operations.
"""

from __future__ import annotations

from typing import Any

from notion2docs.models import UpdateTextStyle

_NOTION_COLORS: dict[str, tuple[float, float, float]] = {
    "blue": (0.13, 0.59, 0.95),
    "brown": (0.5, 0.3, 0.1),
    "gray": (0.5, 0.5, 0.5),
    "green": (0.13, 0.69, 0.42),
    "orange": (0.99, 0.5, 0.15),
    "pink": (0.97, 0.44, 0.84),
    "purple": (0.69, 0.32, 0.87),
    "red": (0.96, 0.26, 0.21),
    "yellow": (0.97, 0.78, 0.29),
    "default": (0.0, 0.0, 0.0),
}

_CODE_BACKGROUND = (0.95, 0.95, 0.95)


def rgb(red: float, green: float, blue: float) -> dict[str, Any]:
    """Build a Docs ``OptionalColor`` value."""
    return {"color": {"rgbColor": {"red": red, "green": green, "blue": blue}}}


def notion_color(name: str) -> dict[str, Any]:
    """Map a Notion color name (``"red"``, ``"red_background"``) to a Docs color.

    Only the base name is used; unknown names map to black.
    """
    base = name.split("_")[0]
    return rgb(*_NOTION_COLORS.get(base, _NOTION_COLORS["default"]))


def flatten(spans: Any) -> str:
    """Concatenate the ``plain_text`` of every span, in order.

    Returns ``""`` for an empty or non-list input.  No trimming or
    normalization is applied.
    """
    if not isinstance(spans, list):
        return ""
    parts: list[str] = []
    for span in spans:
        if isinstance(span, dict):
            text = span.get("plain_text")
            if text is None:
                text = (span.get("text") or {}).get("content", "")
            parts.append(text or "")
    return "".join(parts)


def text_style_for(
    span: dict[str, Any],
    code_font_family: str = "Consolas",
) -> tuple[dict[str, Any], list[str]]:
    """Return ``(text_style, fields)`` for a span's annotations and link.

    ``fields`` is empty when the span carries no styling.
    """
    annotations = span.get("annotations") or {}
    style: dict[str, Any] = {}
    fields: list[str] = []

    for flag in ("bold", "italic", "strikethrough", "underline"):
        if annotations.get(flag):
            style[flag] = True
            fields.append(flag)

    if annotations.get("code"):
        style["weightedFontFamily"] = {"fontFamily": code_font_family, "weight": 400}
        style["backgroundColor"] = rgb(*_CODE_BACKGROUND)
        fields.extend(["weightedFontFamily", "backgroundColor"])

    color = annotations.get("color") or "default"
    if color != "default":
        if color.endswith("_background"):
            style["backgroundColor"] = notion_color(color)
            if "backgroundColor" not in fields:
                fields.append("backgroundColor")
        else:
            style["foregroundColor"] = notion_color(color)
            fields.append("foregroundColor")

    href = span.get("href")
    if href:
        style["link"] = {"url": href}
        fields.append("link")

    return style, fields


def span_styles(
    spans: list[dict[str, Any]],
    start: int,
    code_font_family: str = "Consolas",
) -> list[UpdateTextStyle]:
    """Text-style operations for *spans* whose flattened text begins at *start*.

    Spans without styling (and empty spans) produce nothing.
    """
    ops: list[UpdateTextStyle] = []
    pos = start
    for span in spans:
        text = flatten([span])
        if text:
            style, fields = text_style_for(span, code_font_family)
            if fields:
                ops.append(UpdateTextStyle(pos, pos + len(text), style, ",".join(fields)))
        pos += len(text)
    return ops
