"""Notion property value extraction and display formatting.

:func:`extract_property_value` reduces a Notion property object to a
plain string, number, bool or ``None``; :func:`format_value` turns that
value into the text written to the document.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

from notion2docs.models import PageProperty


def _plain(spans: Any) -> str:
    if not isinstance(spans, list):
        return ""
    return "".join(s.get("plain_text", "") for s in spans if isinstance(s, dict))


def _date(value: Any) -> str:
    if not isinstance(value, dict):
        return ""
    start = value.get("start") or ""
    end = value.get("end")
    return f"{start} -> {end}" if end else start


def _user(value: Any) -> str:
    if not isinstance(value, dict):
        return ""
    return value.get("name") or value.get("id") or ""


def _join(items: Any, key: Callable[[Any], str]) -> str:
    if not isinstance(items, list):
        return ""
    return ", ".join(text for text in (key(item) for item in items) if text)


def _file_name(item: dict[str, Any]) -> str:
    return item.get("name") or (item.get("external") or {}).get("url") or ""


def _formula(formula: Any) -> Any:
    if not isinstance(formula, dict):
        return ""
    kind = formula.get("type")
    if kind in ("string", "number", "boolean"):
        return formula.get(kind)
    if kind == "date":
        return _date(formula.get("date"))
    return ""


def _rollup(rollup: Any) -> Any:
    if not isinstance(rollup, dict):
        return ""
    kind = rollup.get("type")
    if kind == "number":
        return rollup.get("number")
    if kind == "date":
        return _date(rollup.get("date"))
    if kind == "array":
        return _join(
            rollup.get("array"),
            lambda item: format_value(extract_property_value(item)),
        )
    return ""


def _unique_id(value: Any) -> str:
    if not isinstance(value, dict) or value.get("number") is None:
        return ""
    prefix = value.get("prefix")
    return f"{prefix}-{value['number']}" if prefix else str(value["number"])


_EXTRACTORS: dict[str, Callable[[dict[str, Any]], Any]] = {
    "title": lambda p: _plain(p.get("title")),
    "rich_text": lambda p: _plain(p.get("rich_text")),
    "number": lambda p: p.get("number"),
    "select": lambda p: (p.get("select") or {}).get("name", ""),
    "status": lambda p: (p.get("status") or {}).get("name", ""),
    "multi_select": lambda p: _join(p.get("multi_select"), lambda s: s.get("name", "")),
    "date": lambda p: _date(p.get("date")),
    "people": lambda p: _join(p.get("people"), _user),
    "files": lambda p: _join(p.get("files"), _file_name),
    "checkbox": lambda p: bool(p.get("checkbox")),
    "url": lambda p: p.get("url") or "",
    "email": lambda p: p.get("email") or "",
    "phone_number": lambda p: p.get("phone_number") or "",
    "formula": lambda p: _formula(p.get("formula")),
    "relation": lambda p: _join(p.get("relation"), lambda r: r.get("id", "")),
    "rollup": lambda p: _rollup(p.get("rollup")),
    "created_time": lambda p: p.get("created_time") or "",
    "created_by": lambda p: _user(p.get("created_by")),
    "last_edited_time": lambda p: p.get("last_edited_time") or "",
    "last_edited_by": lambda p: _user(p.get("last_edited_by")),
    "unique_id": lambda p: _unique_id(p.get("unique_id")),
}


def extract_property_value(prop: dict[str, Any]) -> Any:
    """Reduce a Notion property object to a displayable scalar.

    Unknown property types are returned as their JSON encoding.
    """
    extractor = _EXTRACTORS.get(prop.get("type", ""))
    if extractor is None:
        return json.dumps(prop, ensure_ascii=False, sort_keys=True)
    return extractor(prop)


def extract_properties(page: dict[str, Any]) -> list[PageProperty]:
    """Extract every typed property of a Notion page object, in API order."""
    result: list[PageProperty] = []
    for name, prop in (page.get("properties") or {}).items():
        if not isinstance(prop, dict) or not prop.get("type"):
            continue
        result.append(PageProperty(name, prop["type"], extract_property_value(prop)))
    return result


def page_title(page: dict[str, Any]) -> str:
    """Return the page's title property text.

    Falls back to ``"Notion Page (<id>)"`` when the page has no non-empty
    title.  Newlines are replaced by spaces so the title stays one line.
    """
    for prop in (page.get("properties") or {}).values():
        if isinstance(prop, dict) and prop.get("type") == "title":
            title = _plain(prop.get("title"))
            if title:
                return title.replace("\r\n", " ").replace("\n", " ")
    return f"Notion Page ({page.get('id', '')})"


def format_value(value: Any) -> str:
    """Format an extracted property value for display.

    >>> format_value(None), format_value(True), format_value(3.0)
    ('', 'Yes', '3')
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
