# web_api/tests/test_reader_routes.py
"""Tests for reader API endpoints."""

import sys
from pathlib import Path

# Ensure we import from root main.py
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from fastapi.testclient import TestClient  # noqa: E402
from main import app  # noqa: E402


client = TestClient(app)


# --- Render endpoint tests ---


class TestRender:
    def test_render_structured_page(self, render_payload):
        """Renders terms, markup and the enriched figure."""
        response = client.post("/api/reader/render", json=render_payload)

        assert response.status_code == 200
        page = response.json()["page"]
        assert page["index"] == 0
        assert page["page_count"] == 1
        assert page["content_format"] == "structured"

        source = "".join(s["content"] for s in page["segments"])
        assert "reader-figure" in source

        terms = {s["content"]: s["term"] for s in page["segments"] if s["kind"] == "term"}
        assert terms["ATP"]["mastery_level"] == 2
        assert terms["mitochondria"]["notes"] == ["powerhouse"]
        assert terms["mitochondria"]["definition"] == "Organelle"

    def test_render_reports_annotation(self, render_payload):
        """Saved highlight shows up on the matching segment with its color."""
        response = client.post("/api/reader/render", json=render_payload)

        segments = response.json()["page"]["segments"]
        annotated = [s for s in segments if "annotation" in s]
        assert len(annotated) == 1
        assert annotated[0]["content"] == "Cells"
        assert annotated[0]["affordance"] == "edit_annotation"
        assert annotated[0]["annotation"]["color"] == "pink"

    def test_render_summaries(self, render_payload):
        response = client.post("/api/reader/render", json=render_payload)

        data = response.json()
        # t-mito only has a note, so it counts at its default level
        assert data["mastery"] == {"not_known": 1, "partial": 0, "known": 1, "total": 2}
        assert data["annotation_stats"]["by_color"]["pink"] == 1

    def test_render_plain_content(self, lesson_terms):
        payload = {
            "content": "line with ATP\nsecond line\nthird line",
            "content_format": "plain",
            "terms": lesson_terms,
            "lines_per_page": 2,
            "page_index": 1,
        }
        response = client.post("/api/reader/render", json=payload)

        assert response.status_code == 200
        page = response.json()["page"]
        assert page["page_count"] == 2
        assert page["index"] == 1
        assert [s["content"] for s in page["segments"]] == ["third line"]

    def test_page_index_past_end_is_clamped(self, render_payload):
        render_payload["page_index"] = 50
        response = client.post("/api/reader/render", json=render_payload)

        assert response.status_code == 200
        assert response.json()["page"]["index"] == 0

    def test_invalid_page_size_returns_400(self, render_payload):
        render_payload["max_page_chars"] = 0
        response = client.post("/api/reader/render", json=render_payload)

        assert response.status_code == 400

    def test_invalid_format_returns_422(self, render_payload):
        render_payload["content_format"] = "markdown"
        response = client.post("/api/reader/render", json=render_payload)

        assert response.status_code == 422


# --- Enrich endpoint tests ---


def test_enrich_returns_figure():
    """A paragraph holding only an image URL becomes a figure."""
    response = client.post(
        "/api/reader/enrich",
        json={"content": "<p>https://cdn.example.com/a.webp</p>"},
    )

    assert response.status_code == 200
    assert response.json()["content"].startswith('<figure class="reader-figure">')


# --- Config endpoint tests ---


def test_config_defaults():
    response = client.get("/api/reader/config")

    assert response.status_code == 200
    assert response.json() == {
        "max_page_chars": 3000,
        "lines_per_page": 40,
        "color_palette": ["yellow", "blue", "green", "pink"],
    }


def test_config_from_environment(monkeypatch):
    monkeypatch.setenv("READER_LINES_PER_PAGE", "12")
    response = client.get("/api/reader/config")

    assert response.json()["lines_per_page"] == 12


def test_malformed_environment_value_is_a_server_error(monkeypatch):
    """A non-integer page size in the environment fails cleanly, not as a crash."""
    monkeypatch.setenv("READER_MAX_PAGE_CHARS", "lots")

    response = client.get("/api/reader/config")

    assert response.status_code == 500
    assert "READER_MAX_PAGE_CHARS" in response.json()["detail"]


def test_render_with_malformed_environment_value(monkeypatch, render_payload):
    monkeypatch.setenv("READER_LINES_PER_PAGE", "forty")

    response = client.post("/api/reader/render", json=render_payload)

    assert response.status_code == 500
    assert "READER_LINES_PER_PAGE" in response.json()["detail"]


def test_health():
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
