# web_api/tests/conftest.py
"""Pytest fixtures for web API tests.

Provides a small vocabulary and lesson so route tests can run without a
content source.
"""

import pytest


@pytest.fixture
def lesson_terms():
    """Vocabulary payload as the frontend sends it."""
    return [
        {"id": "t-mito", "canonical_form": "mitochondria", "definition": "Organelle"},
        {"id": "t-atp", "canonical_form": "ATP", "default_mastery_level": 1},
        {"id": "t-cell", "canonical_form": "Célula"},
    ]


@pytest.fixture
def render_payload(lesson_terms):
    """A structured lesson with one saved highlight."""
    return {
        "document_id": "lesson-1",
        "content": (
            "<h1>Cells</h1>"
            "<p>A mitochondria produces ATP.</p>"
            "<p>https://cdn.example.com/cell.png</p>"
        ),
        "terms": lesson_terms,
        "annotations": [
            {"id": "a1", "original_text": "Cells", "kind": "highlight", "color": "pink"}
        ],
        "keyword_mastery": {"t-atp": 2},
        "keyword_notes": {"t-mito": ["powerhouse"]},
    }
