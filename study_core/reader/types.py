"""
Type definitions shared by the reader text engine.

Everything here is plain data: terms and annotations come from external
collaborators, segments and pages are derived on every render.
"""

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone


class SegmentKind(str, enum.Enum):
    plain = "plain"
    term = "term"


class AnnotationKind(str, enum.Enum):
    highlight = "highlight"
    note = "note"
    question = "question"


class HighlightColor(str, enum.Enum):
    yellow = "yellow"
    blue = "blue"
    green = "green"
    pink = "pink"


class MasteryLevel(enum.IntEnum):
    """3-state self-assessment of a vocabulary term."""

    not_known = 0
    partial = 1
    known = 2


class ContentFormat(str, enum.Enum):
    structured = "structured"  # tag-structured markup (HTML subset)
    plain = "plain"  # newline separated text


@dataclass(frozen=True)
class Term:
    """A vocabulary entry recognized during segmentation."""

    id: str
    canonical_form: str
    display_form: str = ""
    definition: str = ""
    default_mastery_level: MasteryLevel = MasteryLevel.not_known
    has_rich_media: bool = False  # e.g. a 3D model or figure is attached


@dataclass(frozen=True)
class Segment:
    """A contiguous slice of source text, either plain or a matched term."""

    kind: SegmentKind
    content: str
    start: int
    term_id: str | None = None

    @property
    def end(self) -> int:
        return self.start + len(self.content)


# Longer selections are shortened for lists/side panels only; matching
# always uses original_text.
DISPLAY_TEXT_LIMIT = 200


@dataclass(frozen=True)
class Annotation:
    """A user-authored highlight, note or question anchored to exact text."""

    id: str
    original_text: str
    kind: AnnotationKind = AnnotationKind.highlight
    color: str | None = HighlightColor.yellow.value
    note_text: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def display_text(self) -> str:
        if len(self.original_text) > DISPLAY_TEXT_LIMIT:
            return self.original_text[:DISPLAY_TEXT_LIMIT] + "…"
        return self.original_text


@dataclass(frozen=True)
class Page:
    """A bounded slice of a document.

    content is a markup fragment for structured documents and the list of
    lines for plain documents.
    """

    index: int
    content: str | list[str]


@dataclass(frozen=True)
class ReaderDocument:
    """Raw lesson content as delivered by the data-access layer."""

    document_id: str
    content: str
    content_format: ContentFormat = ContentFormat.structured


@dataclass(frozen=True)
class ReaderViewState:
    """View state owned by the caller and passed into rendering."""

    page_index: int = 0
