# study_core/reader/segmenter.py
"""
Split free text into plain and vocabulary-term segments.

Matching rules:
- case-insensitive and diacritic-insensitive ("Célula" matches "celula")
- whole words only: the characters on both sides must not be letters
- overlapping candidates resolve leftmost first, then longest first, then
  by dictionary insertion order

Segmentation is lossless: concatenating segment contents gives back the
input, and every segment starts where the previous one ended. An empty
input yields an empty list.
"""

from dataclasses import dataclass

from study_core.reader.normalize import fold_with_offsets
from study_core.reader.term_index import TermIndex
from study_core.reader.types import Segment, SegmentKind, Term


@dataclass(frozen=True)
class TermMatch:
    """An accepted term occurrence, in source offsets."""

    start: int
    end: int
    term: Term


def find_candidates(text: str, index: TermIndex) -> list[TermMatch]:
    """
    Find accepted, non-overlapping term occurrences in source order.

    The index scanner tests all forms at each position and prefers the
    longest one that ends on a word boundary; resuming after each accepted
    match gives the same result as collecting every candidate, sorting by
    (start, longest) and keeping those that start after the last accepted
    end.
    """
    if index is None:
        raise ValueError("Term index is required")

    scanner = index.scanner
    if scanner is None or not text:
        return []

    folded = fold_with_offsets(text)
    matches = []
    for found in scanner.finditer(folded.text):
        term = index.lookup(found.group(0))
        if term is None:
            continue
        start, end = folded.source_span(found.start(), found.end())
        matches.append(TermMatch(start=start, end=end, term=term))
    return matches


def segment(text: str, index: TermIndex) -> list[Segment]:
    """
    Segment text against a term index.

    Args:
        text: Source text (a paragraph, line or text run)
        index: Vocabulary for the current course

    Returns:
        Ordered, gapless list of segments covering the whole text

    Raises:
        ValueError: If index is None
    """
    matches = find_candidates(text, index)
    if not text:
        return []
    if not matches:
        return [Segment(kind=SegmentKind.plain, content=text, start=0)]

    segments = []
    cursor = 0
    for match in matches:
        if match.start > cursor:
            segments.append(
                Segment(
                    kind=SegmentKind.plain,
                    content=text[cursor : match.start],
                    start=cursor,
                )
            )
        segments.append(
            Segment(
                kind=SegmentKind.term,
                content=text[match.start : match.end],
                start=match.start,
                term_id=match.term.id,
            )
        )
        cursor = match.end

    if cursor < len(text):
        segments.append(
            Segment(kind=SegmentKind.plain, content=text[cursor:], start=cursor)
        )
    return segments
