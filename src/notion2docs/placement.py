"""Locating, replacing and appending page sections in a destination document.

Every transferred page starts with its title paragraph followed by an
identity marker paragraph (``Notion Page ID: <id>``).  A page's *section*
runs from its title to just before the next page's separator.

Two sources are used to find a section:

* a :class:`PlacementRecord` persisted after our own last successful
  write, trusted only while the document revision is unchanged;
* :func:`find_section`, a search over the document's paragraph runs for
  documents that were edited since, or written by another tool.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from notion2docs.models import (
    PAGE_BREAK_CHAR,
    DeleteContentRange,
    DeleteParagraphBullets,
    DocumentSnapshot,
    InsertPageBreak,
    InsertText,
    Operation,
    SectionRange,
    TextRun,
    UpdateParagraphStyle,
)

MARKER_PREFIX = "Notion Page ID: "


def identity_marker(page_id: str) -> str:
    """The marker text written under the title of page *page_id*."""
    return f"{MARKER_PREFIX}{page_id}"


def _is_marker(run: TextRun, marker: str | None = None) -> bool:
    text = run.text.strip()
    if marker is not None:
        return text == marker
    return text.startswith(MARKER_PREFIX)


def _is_page_break(run: TextRun) -> bool:
    return PAGE_BREAK_CHAR in run.text


def find_section(snapshot: DocumentSnapshot, page_id: str) -> SectionRange | None:
    """Search *snapshot* for the section written for *page_id*.

    The section starts at the paragraph before the identity marker (the
    page title).  It ends at the first page-break paragraph after the
    marker, or at the title of the next marked page, whichever comes
    first.  Without either, it ends after the last non-blank paragraph
    or the last table, whichever is later, never including the body's
    final newline.

    Returns ``None`` when the marker does not occur.
    """
    runs = snapshot.runs
    marker = identity_marker(page_id)
    k = next((i for i, run in enumerate(runs) if _is_marker(run, marker)), None)
    if k is None:
        return None

    start = runs[k - 1].start if k > 0 else runs[k].start

    for j in range(k + 1, len(runs)):
        if _is_page_break(runs[j]):
            return SectionRange(start, runs[j].start)
        if _is_marker(runs[j]):
            end = runs[j - 1].start if j - 1 > k else runs[j].start
            return SectionRange(start, end)

    end = runs[k].end
    for run in reversed(runs[k:]):
        if not run.is_blank:
            end = run.end
            break
    # A table after the marker belongs to the section, blank cells included.
    for table_start, table_end in snapshot.tables:
        if table_start >= runs[k].end or table_start < end < table_end:
            end = max(end, table_end)
    if end >= snapshot.end_index:
        end = snapshot.end_index - 1
    return SectionRange(start, end)


@dataclass
class PlacementRecord:
    """Section ranges written by this tool into one document.

    ``sections`` maps page ID to ``(start, end)``; the ranges are valid
    for revision ``revision_id`` only.
    """

    document_id: str
    revision_id: str | None = None
    sections: dict[str, tuple[int, int]] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "revision_id": self.revision_id,
            "sections": {pid: [s, e] for pid, (s, e) in self.sections.items()},
        }

    @classmethod
    def from_dict(cls, document_id: str, data: dict[str, Any]) -> PlacementRecord:
        sections = {
            pid: (int(bounds[0]), int(bounds[1]))
            for pid, bounds in (data.get("sections") or {}).items()
        }
        return cls(document_id, data.get("revision_id"), sections)


def resolve_section(
    snapshot: DocumentSnapshot,
    page_id: str,
    record: PlacementRecord | None = None,
) -> SectionRange | None:
    """Find *page_id*'s section, preferring a still-valid recorded range."""
    if (
        record is not None
        and record.revision_id is not None
        and record.revision_id == snapshot.revision_id
        and page_id in record.sections
    ):
        start, end = record.sections[page_id]
        if 1 <= start <= end <= snapshot.end_index - 1:
            return SectionRange(start, end, source="recorded")
    return find_section(snapshot, page_id)


def _reset_style(index: int) -> list[Operation]:
    return [
        DeleteParagraphBullets(index, index + 1),
        UpdateParagraphStyle(index, index + 1, {"namedStyleType": "NORMAL_TEXT"}, "*"),
    ]


@dataclass
class PlacementPlan:
    """Where and how a page is written.

    Attributes
    ----------
    operations:
        Preamble operations to apply before the compiled page.
    offset:
        Index the page is compiled at.
    previous:
        The section being replaced, or ``None`` when appending.
    """

    operations: list[Operation]
    offset: int
    previous: SectionRange | None = None

    @property
    def is_update(self) -> bool:
        return self.previous is not None

    def written_range(self, length: int) -> tuple[int, int]:
        """The section occupied once a page of *length* is written."""
        if self.previous is not None:
            # The placeholder newline ends up after the compiled page.
            return self.offset, self.offset + length + 1
        return self.offset, self.offset + length


def plan_update(section: SectionRange) -> PlacementPlan:
    """Replace *section*: delete it, leave one unstyled paragraph, compile there."""
    start, end = section.start, section.end
    ops: list[Operation] = []
    if end > start:
        ops.append(DeleteContentRange(start, end))
    ops.append(InsertText(start, "\n"))
    ops.extend(_reset_style(start))
    return PlacementPlan(ops, start, previous=section)


def plan_append(snapshot: DocumentSnapshot) -> PlacementPlan:
    """Append after a page break, or at index 1 of an empty document."""
    if snapshot.is_empty:
        return PlacementPlan([], 1)
    end = snapshot.end_index
    ops: list[Operation] = [InsertPageBreak(end - 1)]
    start = end + 1
    ops.extend(_reset_style(start))
    return PlacementPlan(ops, start)


def plan_placement(
    snapshot: DocumentSnapshot,
    page_id: str,
    record: PlacementRecord | None = None,
) -> PlacementPlan:
    """Plan an update when *page_id* is already present, else an append."""
    section = resolve_section(snapshot, page_id, record)
    if section is None:
        return plan_append(snapshot)
    return plan_update(section)


def record_write(
    record: PlacementRecord,
    page_id: str,
    written: tuple[int, int],
    previous: SectionRange | None,
    revision_id: str | None,
) -> PlacementRecord:
    """Store *page_id*'s new range and shift the sections after it.

    Sections that start at or after the replaced section's end move by the
    size difference between the new and the old section.  Returns *record*.
    """
    if previous is not None:
        delta = (written[1] - written[0]) - (previous.end - previous.start)
        for other, (s, e) in list(record.sections.items()):
            if other != page_id and s >= previous.end:
                record.sections[other] = (s + delta, e + delta)
    record.sections[page_id] = written
    record.revision_id = revision_id
    return record
