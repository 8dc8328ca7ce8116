# study_core/reader/annotations.py
"""Correlate rendered segments with saved highlights, notes and questions."""

import enum
import logging
from dataclasses import dataclass
from typing import Iterable

from study_core.reader.types import (
    Annotation,
    AnnotationKind,
    HighlightColor,
    Segment,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HighlightStyle:
    """Display style for an annotated segment."""

    color: HighlightColor
    swatch: str  # hex color of the marker stroke
    background: str  # CSS background drawing a highlighter stroke


def _marker(swatch: str) -> str:
    return (
        f"linear-gradient(to bottom, transparent 40%, {swatch} 40%, "
        f"{swatch} 85%, transparent 85%)"
    )


PALETTE: dict[HighlightColor, HighlightStyle] = {
    color: HighlightStyle(color=color, swatch=swatch, background=_marker(swatch))
    for color, swatch in (
        (HighlightColor.yellow, "#fde047"),
        (HighlightColor.blue, "#93c5fd"),
        (HighlightColor.green, "#6ee7b7"),
        (HighlightColor.pink, "#f9a8d4"),
    )
}

DEFAULT_COLOR = HighlightColor.yellow


def resolve_color(color: str | None) -> HighlightColor:
    """Map a stored color name onto the palette, falling back to yellow."""
    try:
        return HighlightColor(color)
    except ValueError:
        if color is not None:
            logger.warning(f"Unknown highlight color {color!r}, using yellow")
        return DEFAULT_COLOR


def style(annotation: Annotation | None) -> HighlightStyle:
    """Display style for an annotation; unknown or missing colors are yellow."""
    if annotation is None:
        return PALETTE[DEFAULT_COLOR]
    return PALETTE[resolve_color(annotation.color)]


def match(segment: Segment, annotations: Iterable[Annotation]) -> Annotation | None:
    """
    Find the annotation anchored to this segment.

    Matching is exact: the segment's trimmed content must equal the
    annotation's original_text character for character. Text edited after
    an annotation was made will simply stop matching.
    """
    text = segment.content.strip()
    if not text:
        return None
    for annotation in annotations:
        if annotation.original_text == text:
            return annotation
    return None


class IntentAction(str, enum.Enum):
    create = "create"
    edit = "edit"


@dataclass(frozen=True)
class AnnotationIntent:
    """What clicking a plain segment asks the surrounding UI to do."""

    action: IntentAction
    text: str
    annotation: Annotation | None = None


def click_intent(
    segment: Segment, annotations: Iterable[Annotation]
) -> AnnotationIntent:
    """Clicking an unmatched segment starts a new annotation; a matched one edits it."""
    matched = match(segment, annotations)
    if matched is None:
        return AnnotationIntent(action=IntentAction.create, text=segment.content.strip())
    return AnnotationIntent(
        action=IntentAction.edit, text=matched.original_text, annotation=matched
    )


class AnnotationCache:
    """
    Read cache of the current document's persisted annotations.

    Only AnnotationSync mutates it, and only after the external store has
    confirmed the change, so the "annotated" state never runs ahead of
    what is durable.
    """

    def __init__(self, annotations: Iterable[Annotation] = ()):
        self._items: dict[str, Annotation] = {}
        self.load(annotations)

    def load(self, annotations: Iterable[Annotation]) -> None:
        """Replace the cache contents with freshly fetched records."""
        self._items = {annotation.id: annotation for annotation in annotations}

    def apply_created(self, annotation: Annotation) -> None:
        self._items[annotation.id] = annotation

    def apply_updated(self, annotation: Annotation) -> None:
        self._items[annotation.id] = annotation

    def apply_removed(self, annotation_id: str) -> None:
        self._items.pop(annotation_id, None)

    def get(self, annotation_id: str) -> Annotation | None:
        return self._items.get(annotation_id)

    def all(self) -> tuple[Annotation, ...]:
        return tuple(self._items.values())

    def match(self, segment: Segment) -> Annotation | None:
        return match(segment, self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(self._items.values())


def annotation_stats(annotations: Iterable[Annotation]) -> dict:
    """
    Count annotations by kind and by (resolved) color.

    Returns:
        {"total": int, "by_kind": {kind: int}, "by_color": {color: int}}
    """
    by_kind = {kind.value: 0 for kind in AnnotationKind}
    by_color = {color.value: 0 for color in HighlightColor}
    total = 0
    for annotation in annotations:
        total += 1
        by_kind[AnnotationKind(annotation.kind).value] += 1
        by_color[resolve_color(annotation.color).value] += 1
    return {"total": total, "by_kind": by_kind, "by_color": by_color}
