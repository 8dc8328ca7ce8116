# study_core/reader/tests/test_segmenter.py
"""Tests for splitting text into plain and term segments."""

import pytest

from study_core.reader.segmenter import find_candidates, segment
from study_core.reader.term_index import TermIndex
from study_core.reader.types import SegmentKind, Term


def assert_lossless(text, segments):
    assert "".join(s.content for s in segments) == text
    for previous, current in zip(segments, segments[1:]):
        assert previous.end == current.start
    if segments:
        assert segments[0].start == 0
        assert segments[-1].end == len(text)


class TestRoundTrip:
    @pytest.mark.parametrize(
        "text",
        [
            "A mitochondria produces ATP.",
            "The artery axilar branches off the artery.",
            "No vocabulary here at all",
            "ATP",
            "  leading and trailing  ",
            "Célula, célula y CELULA\nen otra línea",
        ],
    )
    def test_segments_concatenate_to_input(self, anatomy_index, text):
        """Segmentation loses nothing and leaves no gaps."""
        assert_lossless(text, segment(text, anatomy_index))

    def test_empty_text_gives_no_segments(self, anatomy_index):
        assert segment("", anatomy_index) == []

    def test_no_match_gives_single_plain_segment(self, anatomy_index):
        segments = segment("heart and lungs", anatomy_index)
        assert len(segments) == 1
        assert segments[0].kind == SegmentKind.plain
        assert segments[0].content == "heart and lungs"

    def test_empty_dictionary_gives_single_plain_segment(self):
        segments = segment("anything", TermIndex.build([]))
        assert [(s.kind, s.content) for s in segments] == [
            (SegmentKind.plain, "anything")
        ]

    def test_none_index_rejected(self):
        with pytest.raises(ValueError):
            segment("text", None)


class TestMatching:
    def test_mitochondria_scenario(self, anatomy_index):
        segments = segment("A mitochondria produces ATP.", anatomy_index)
        assert [(s.kind, s.content, s.term_id) for s in segments] == [
            (SegmentKind.plain, "A ", None),
            (SegmentKind.term, "mitochondria", "t-mito"),
            (SegmentKind.plain, " produces ", None),
            (SegmentKind.term, "ATP", "t-atp"),
            (SegmentKind.plain, ".", None),
        ]

    def test_single_term_dictionary(self):
        index = TermIndex.build([Term(id="t-mito", canonical_form="mitochondria")])
        segments = segment("A mitochondria produces ATP.", index)
        assert [s.content for s in segments] == ["A ", "mitochondria", " produces ATP."]
        assert [s.kind for s in segments] == [
            SegmentKind.plain,
            SegmentKind.term,
            SegmentKind.plain,
        ]
        assert segments[1].term_id == "t-mito"

    def test_longest_match_wins(self, anatomy_index):
        """A shorter term starting at the same place as a longer one loses."""
        segments = segment("the artery axilar is", anatomy_index)
        terms = [s for s in segments if s.kind == SegmentKind.term]
        assert [(t.content, t.term_id) for t in terms] == [
            ("artery axilar", "t-axillary")
        ]

    def test_falls_back_to_shorter_form(self, anatomy_index):
        segments = segment("the artery axis", anatomy_index)
        terms = [s for s in segments if s.kind == SegmentKind.term]
        assert [(t.content, t.term_id) for t in terms] == [("artery", "t-artery")]

    def test_case_and_diacritic_insensitive(self, anatomy_index):
        """Source text keeps its original spelling in the segment."""
        for variant in ("Célula", "celula", "CELULA", "CÉLULA"):
            segments = segment(f"La {variant} vive", anatomy_index)
            assert segments[1].kind == SegmentKind.term
            assert segments[1].content == variant
            assert segments[1].term_id == "t-cell"

    def test_decomposed_accent_stays_in_term(self, anatomy_index):
        text = "ce\u0301lula madre"
        segments = segment(text, anatomy_index)
        assert segments[0].kind == SegmentKind.term
        assert segments[0].content == "ce\u0301lula"
        assert_lossless(text, segments)

    def test_whole_words_only(self, anatomy_index):
        segments = segment("arteryless ATPase subATP", anatomy_index)
        assert all(s.kind == SegmentKind.plain for s in segments)

    def test_digits_and_punctuation_are_boundaries(self, anatomy_index):
        segments = segment("(ATP)2 artery,", anatomy_index)
        terms = [s.content for s in segments if s.kind == SegmentKind.term]
        assert terms == ["ATP", "artery"]

    def test_adjacent_terms(self, anatomy_index):
        segments = segment("ATP ATP", anatomy_index)
        assert [s.kind for s in segments] == [
            SegmentKind.term,
            SegmentKind.plain,
            SegmentKind.term,
        ]

    def test_ambiguous_form_resolves_to_first_inserted(self):
        index = TermIndex.build(
            [Term(id="one", canonical_form="nodo"), Term(id="two", canonical_form="Nodo")]
        )
        segments = segment("un nodo", index)
        assert segments[1].term_id == "one"


class TestFindCandidates:
    def test_candidates_are_ordered_and_disjoint(self, anatomy_index):
        text = "artery axilar and artery and ATP"
        matches = find_candidates(text, anatomy_index)
        assert [(m.start, m.end, m.term.id) for m in matches] == [
            (0, 13, "t-axillary"),
            (18, 24, "t-artery"),
            (29, 32, "t-atp"),
        ]

    def test_none_index_rejected(self):
        with pytest.raises(ValueError):
            find_candidates("", None)
