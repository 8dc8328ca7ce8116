# study_core/reader/tests/test_term_index.py
"""Tests for the vocabulary term index."""

import pytest

from study_core.reader.normalize import decode_references, fold, fold_with_offsets
from study_core.reader.term_index import TermIndex
from study_core.reader.types import Term


class TestFolding:
    def test_fold_strips_case_and_accents(self):
        assert fold("Célula ÁRBOL niño") == "celula arbol nino"

    def test_fold_keeps_length_for_precomposed_text(self):
        text = "Corazón"
        assert len(fold(text)) == len(text)

    def test_combining_marks_map_back_to_source(self):
        """Decomposed accents fold away but spans still cover them."""
        text = "cafe\u0301 noir"
        folded = fold_with_offsets(text)
        assert folded.text == "cafe noir"
        assert folded.source_span(0, 4) == (0, 5)

    def test_whitespace_folds_to_plain_space(self):
        assert fold("artery\u00a0axilar\tx") == "artery axilar x"


class TestDecodeReferences:
    def test_named_and_numeric_references(self):
        decoded = decode_references("c&eacute;lula &amp; c&#233;lula &#xE9;")
        assert decoded.text == "célula & célula é"

    def test_decoded_spans_cover_whole_reference(self):
        text = "ATP &amp; ADP"
        decoded = decode_references(text)
        amp = decoded.text.index("&")
        assert decoded.source_span(amp, amp + 1) == (4, 9)
        assert decoded.source_span(0, len(decoded.text)) == (0, len(text))

    def test_unknown_reference_is_kept_literally(self):
        decoded = decode_references("a &bogus; b")
        assert decoded.text == "a &bogus; b"
        assert decoded.origins == tuple(range(len("a &bogus; b")))

    def test_text_without_references_is_unchanged(self):
        assert decode_references("plain text").text == "plain text"


class TestBuild:
    def test_none_dictionary_rejected(self):
        with pytest.raises(ValueError):
            TermIndex.build(None)

    def test_empty_dictionary_has_no_scanner(self):
        index = TermIndex.build([])
        assert len(index) == 0
        assert index.scanner is None
        assert index.all_forms() == ()

    def test_empty_forms_are_skipped(self):
        index = TermIndex.build(
            [Term(id="blank", canonical_form="   "), Term(id="ok", canonical_form="vein")]
        )
        assert len(index) == 1
        assert "blank" not in index
        assert "ok" in index

    def test_forms_longest_first(self, anatomy_index):
        forms = anatomy_index.all_forms()
        assert forms[0] == "artery axilar"
        assert [len(f) for f in forms] == sorted((len(f) for f in forms), reverse=True)

    def test_equal_lengths_keep_insertion_order(self):
        index = TermIndex.build(
            [
                Term(id="a", canonical_form="bone"),
                Term(id="b", canonical_form="vein"),
                Term(id="c", canonical_form="skin"),
            ]
        )
        assert index.all_forms() == ("bone", "vein", "skin")

    def test_duplicate_folded_form_keeps_first(self):
        index = TermIndex.build(
            [
                Term(id="first", canonical_form="Célula"),
                Term(id="second", canonical_form="celula"),
            ]
        )
        assert len(index) == 1
        assert index.lookup("CELULA").id == "first"
        # Both terms are still retrievable by id
        assert index.get("second") is not None


class TestLookup:
    def test_lookup_ignores_case_and_accents(self, anatomy_index):
        assert anatomy_index.lookup("CELULA").id == "t-cell"
        assert anatomy_index.lookup("Artery Axilar").id == "t-axillary"

    def test_lookup_unknown_returns_none(self, anatomy_index):
        assert anatomy_index.lookup("ventricle") is None

    def test_get_by_id(self, anatomy_index):
        assert anatomy_index.get("t-atp").canonical_form == "ATP"
        assert anatomy_index.get("missing") is None

    def test_terms_in_insertion_order(self, anatomy_index, anatomy_terms):
        assert anatomy_index.terms == tuple(anatomy_terms)
