"""Shared fixtures for reader engine tests."""

import pytest

from study_core.reader.term_index import TermIndex
from study_core.reader.types import MasteryLevel, Term


@pytest.fixture
def anatomy_terms():
    """A small anatomy vocabulary with an overlapping multi-word form."""
    return [
        Term(id="t-artery", canonical_form="artery", definition="Carries blood away"),
        Term(
            id="t-axillary",
            canonical_form="artery axilar",
            display_form="Axillary artery",
            has_rich_media=True,
        ),
        Term(
            id="t-cell",
            canonical_form="célula",
            default_mastery_level=MasteryLevel.partial,
        ),
        Term(id="t-mito", canonical_form="mitochondria"),
        Term(id="t-atp", canonical_form="ATP"),
    ]


@pytest.fixture
def anatomy_index(anatomy_terms):
    return TermIndex.build(anatomy_terms)
