# study_core/reader/renderer.py
"""
Render pipeline: raw lesson content in, one render-ready page out.

Structured content is enriched, paginated, then split into tags (kept as
markup) and text runs (segmented against the term index). Plain content is
paginated by lines and each line is segmented on its own. Plain segments
are correlated with cached annotations; term segments carry the student's
current mastery level and notes.

Rendering is a pure function of its inputs. The caller owns the view state
and the session objects (tracker, annotation cache).
"""

import enum
import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, Mapping

from study_core.reader.annotations import HighlightStyle, match, style
from study_core.reader.errors import InvalidConfigError
from study_core.reader.mastery import MasteryTracker
from study_core.reader.media import enrich
from study_core.reader.normalize import decode_references
from study_core.reader.paginator import (
    clamp_page_index,
    paginate_plain,
    paginate_structured,
)
from study_core.reader.segmenter import segment
from study_core.reader.term_index import TermIndex
from study_core.reader.types import (
    Annotation,
    AnnotationKind,
    ContentFormat,
    HighlightColor,
    MasteryLevel,
    ReaderDocument,
    ReaderViewState,
    SegmentKind,
    Term,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_PAGE_CHARS = 3000
DEFAULT_LINES_PER_PAGE = 40

_TAG_SPLIT = re.compile(r"(<[^>]*>)")


@dataclass(frozen=True)
class ReaderConfig:
    """Page sizes and the highlight palette."""

    max_page_chars: int = DEFAULT_MAX_PAGE_CHARS
    lines_per_page: int = DEFAULT_LINES_PER_PAGE
    color_palette: tuple[HighlightColor, ...] = tuple(HighlightColor)

    def __post_init__(self):
        for name in ("max_page_chars", "lines_per_page"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise InvalidConfigError(
                    f"{name} must be a positive integer, got {value!r}"
                )
        try:
            palette = tuple(HighlightColor(color) for color in self.color_palette)
        except ValueError as e:
            raise InvalidConfigError(f"Unsupported highlight color: {e}") from None
        if set(palette) != set(HighlightColor) or len(palette) != len(HighlightColor):
            raise InvalidConfigError(
                "color_palette must be exactly yellow, blue, green and pink"
            )
        object.__setattr__(self, "color_palette", palette)

    @classmethod
    def from_mapping(cls, values: Mapping) -> "ReaderConfig":
        """
        Build a config from a plain mapping (env, JSON, request body).

        Raises:
            InvalidConfigError: On unknown keys or invalid values
        """
        known = {"max_page_chars", "lines_per_page", "color_palette"}
        unknown = sorted(set(values) - known)
        if unknown:
            raise InvalidConfigError(f"Unknown reader config keys: {', '.join(unknown)}")
        kwargs = dict(values)
        if "color_palette" in kwargs:
            kwargs["color_palette"] = tuple(kwargs["color_palette"])
        return cls(**kwargs)

    def to_dict(self) -> dict:
        return {
            "max_page_chars": self.max_page_chars,
            "lines_per_page": self.lines_per_page,
            "color_palette": [color.value for color in self.color_palette],
        }


class RenderedKind(str, enum.Enum):
    markup = "markup"  # tags and line breaks, emitted verbatim
    plain = "plain"
    term = "term"


class Affordance(str, enum.Enum):
    """What activating a segment does."""

    none = "none"
    open_term = "open_term"
    create_annotation = "create_annotation"
    edit_annotation = "edit_annotation"


@dataclass(frozen=True)
class RenderedSegment:
    kind: RenderedKind
    content: str
    offset: int  # position within the page source
    affordance: Affordance = Affordance.none
    term: Term | None = None
    mastery_level: MasteryLevel | None = None
    notes: tuple[str, ...] = ()
    annotation: Annotation | None = None
    highlight: HighlightStyle | None = None

    def to_dict(self) -> dict:
        data = {
            "kind": self.kind.value,
            "content": self.content,
            "offset": self.offset,
            "affordance": self.affordance.value,
        }
        if self.term is not None:
            data["term"] = {
                "id": self.term.id,
                "display_form": self.term.display_form or self.term.canonical_form,
                "definition": self.term.definition,
                "has_rich_media": self.term.has_rich_media,
                "mastery_level": int(self.mastery_level),
                "notes": list(self.notes),
            }
        if self.annotation is not None:
            data["annotation"] = {
                "id": self.annotation.id,
                "kind": AnnotationKind(self.annotation.kind).value,
                "display_text": self.annotation.display_text,
                "note_text": self.annotation.note_text,
                "color": self.highlight.color.value,
                "background": self.highlight.background,
            }
        return data


@dataclass(frozen=True)
class RenderedPage:
    index: int
    page_count: int
    content_format: ContentFormat
    segments: list[RenderedSegment] = field(default_factory=list)

    @property
    def source(self) -> str:
        """The page source, rebuilt from the segments."""
        return "".join(s.content for s in self.segments)

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "page_count": self.page_count,
            "content_format": self.content_format.value,
            "segments": [s.to_dict() for s in self.segments],
        }


def _render_text(
    text: str,
    offset: int,
    index: TermIndex,
    tracker: MasteryTracker,
    annotations: tuple[Annotation, ...],
    decode: bool = False,
) -> list[RenderedSegment]:
    """
    Segment one text run and map each segment back onto the run.

    With decode, character references are resolved before matching, so
    terms are found in the text the reader sees and never inside a
    reference. Segment contents stay the raw source, while annotations
    are matched against the decoded text.
    """
    mapped = decode_references(text) if decode else None
    rendered = []
    for seg in segment(mapped.text if mapped is not None else text, index):
        if mapped is not None:
            start, end = mapped.source_span(seg.start, seg.end)
        else:
            start, end = seg.start, seg.end
        if start == end:
            # Boundary fell inside a reference that decodes to several characters
            continue
        if seg.kind == SegmentKind.term:
            rendered.append(
                RenderedSegment(
                    kind=RenderedKind.term,
                    content=text[start:end],
                    offset=offset + start,
                    affordance=Affordance.open_term,
                    term=index.get(seg.term_id),
                    mastery_level=tracker.level_for(seg.term_id),
                    notes=tracker.notes_for(seg.term_id),
                )
            )
            continue

        annotation = match(seg, annotations) if seg.content.strip() else None
        if annotation is not None:
            affordance = Affordance.edit_annotation
        elif seg.content.strip():
            affordance = Affordance.create_annotation
        else:
            affordance = Affordance.none
        rendered.append(
            RenderedSegment(
                kind=RenderedKind.plain,
                content=text[start:end],
                offset=offset + start,
                affordance=affordance,
                annotation=annotation,
                highlight=style(annotation) if annotation is not None else None,
            )
        )
    return rendered


def _render_structured(
    fragment: str,
    index: TermIndex,
    tracker: MasteryTracker,
    annotations: tuple[Annotation, ...],
) -> list[RenderedSegment]:
    rendered = []
    offset = 0
    for i, piece in enumerate(_TAG_SPLIT.split(fragment)):
        if piece:
            if i % 2 == 1:
                rendered.append(
                    RenderedSegment(kind=RenderedKind.markup, content=piece, offset=offset)
                )
            else:
                rendered.extend(
                    _render_text(piece, offset, index, tracker, annotations, decode=True)
                )
        offset += len(piece)
    return rendered


def _render_lines(
    lines: list[str],
    index: TermIndex,
    tracker: MasteryTracker,
    annotations: tuple[Annotation, ...],
) -> list[RenderedSegment]:
    rendered = []
    offset = 0
    for i, line in enumerate(lines):
        if i:
            rendered.append(
                RenderedSegment(kind=RenderedKind.markup, content="\n", offset=offset)
            )
            offset += 1
        rendered.extend(_render_text(line, offset, index, tracker, annotations))
        offset += len(line)
    return rendered


def render_page(
    document: ReaderDocument,
    view: ReaderViewState,
    index: TermIndex,
    tracker: MasteryTracker | None = None,
    annotations: Iterable[Annotation] = (),
    config: ReaderConfig | None = None,
) -> RenderedPage:
    """
    Render the active page of a document.

    The requested page index is clamped into range, so a stale view state
    after the content changed still renders a valid page.

    Args:
        document: Raw content and its format
        view: Caller-owned view state (active page)
        index: Term index for the current course
        tracker: Session mastery state; a fresh one if omitted
        annotations: Cached annotations for the document
        config: Page sizes; defaults if omitted

    Returns:
        RenderedPage whose segment contents concatenate to the page source

    Raises:
        ValueError: If index is None
    """
    if index is None:
        raise ValueError("Term index is required")
    config = config or ReaderConfig()
    tracker = tracker or MasteryTracker(index)
    annotations = tuple(annotations)

    if ContentFormat(document.content_format) == ContentFormat.plain:
        pages = paginate_plain(document.content, config.lines_per_page)
        page_index = clamp_page_index(view.page_index, len(pages))
        segments = _render_lines(pages[page_index], index, tracker, annotations)
        content_format = ContentFormat.plain
    else:
        pages = paginate_structured(enrich(document.content), config.max_page_chars)
        page_index = clamp_page_index(view.page_index, len(pages))
        segments = _render_structured(pages[page_index], index, tracker, annotations)
        content_format = ContentFormat.structured

    if page_index != view.page_index:
        logger.info(
            f"Clamped page {view.page_index} to {page_index} for {document.document_id}"
        )
    logger.debug(
        f"Rendered page {page_index + 1}/{len(pages)} of {document.document_id} "
        f"({len(segments)} segments)"
    )
    return RenderedPage(
        index=page_index,
        page_count=len(pages),
        content_format=content_format,
        segments=segments,
    )


def page_count(document: ReaderDocument, config: ReaderConfig | None = None) -> int:
    config = config or ReaderConfig()
    if ContentFormat(document.content_format) == ContentFormat.plain:
        return len(paginate_plain(document.content, config.lines_per_page))
    return len(paginate_structured(enrich(document.content), config.max_page_chars))
