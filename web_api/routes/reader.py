"""
Reader API routes.

Endpoints:
- POST /api/reader/render - Render one page of lesson content
- POST /api/reader/enrich - Normalize image references in structured content
- GET /api/reader/config - Effective reader configuration
"""

import logging
from datetime import datetime

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from study_core.config import get_reader_config
from study_core.reader import (
    Annotation,
    AnnotationKind,
    ContentFormat,
    InvalidConfigError,
    MasteryLevel,
    MasteryTracker,
    ReaderConfig,
    ReaderDocument,
    ReaderViewState,
    Term,
    TermIndex,
    annotation_stats,
    enrich,
    render_page,
)

router = APIRouter(prefix="/api/reader", tags=["reader"])

logger = logging.getLogger(__name__)


class TermPayload(BaseModel):
    id: str
    canonical_form: str
    display_form: str = ""
    definition: str = ""
    default_mastery_level: MasteryLevel = MasteryLevel.not_known
    has_rich_media: bool = False


class AnnotationPayload(BaseModel):
    id: str
    original_text: str
    kind: AnnotationKind = AnnotationKind.highlight
    color: str | None = "yellow"
    note_text: str | None = None
    created_at: datetime | None = None


class RenderRequest(BaseModel):
    document_id: str = "inline"
    content: str
    content_format: ContentFormat = ContentFormat.structured
    terms: list[TermPayload] = Field(default_factory=list)
    annotations: list[AnnotationPayload] = Field(default_factory=list)
    keyword_mastery: dict[str, int] = Field(default_factory=dict)
    keyword_notes: dict[str, list[str]] = Field(default_factory=dict)
    page_index: int = 0
    max_page_chars: int | None = None
    lines_per_page: int | None = None


class EnrichRequest(BaseModel):
    content: str


def _load_base_config() -> ReaderConfig:
    """Reader config from the environment; a bad value is a server error."""
    try:
        return get_reader_config()
    except InvalidConfigError as e:
        logger.error(f"Invalid reader configuration: {e}")
        raise HTTPException(status_code=500, detail=str(e))


def _build_config(base: ReaderConfig, request: RenderRequest) -> ReaderConfig:
    overrides = {
        key: value
        for key, value in (
            ("max_page_chars", request.max_page_chars),
            ("lines_per_page", request.lines_per_page),
        )
        if value is not None
    }
    values = base.to_dict()
    values.update(overrides)
    return ReaderConfig.from_mapping(values)


def _to_annotation(payload: AnnotationPayload) -> Annotation:
    data = payload.model_dump(exclude_none=True)
    data.setdefault("color", None)
    return Annotation(**data)


@router.post("/render")
async def render(request: RenderRequest):
    """
    Render the requested page of a document.

    The page index is clamped, so asking for a page past the end returns
    the last page.
    """
    base = _load_base_config()
    try:
        config = _build_config(base, request)
    except InvalidConfigError as e:
        raise HTTPException(status_code=400, detail=str(e))

    index = TermIndex.build(Term(**term.model_dump()) for term in request.terms)
    tracker = MasteryTracker(index)
    # Invalid levels are dropped by restore() rather than rejected
    tracker.restore(
        {
            "keywordMastery": request.keyword_mastery,
            "keywordNotes": request.keyword_notes,
        }
    )

    annotations = [_to_annotation(a) for a in request.annotations]
    document = ReaderDocument(
        document_id=request.document_id,
        content=request.content,
        content_format=request.content_format,
    )
    page = render_page(
        document,
        ReaderViewState(page_index=request.page_index),
        index,
        tracker=tracker,
        annotations=annotations,
        config=config,
    )

    return {
        "page": page.to_dict(),
        "mastery": tracker.aggregate().to_dict(),
        "annotation_stats": annotation_stats(annotations),
    }


@router.post("/enrich")
async def enrich_content(request: EnrichRequest):
    """Return structured content with image references turned into figures."""
    return {"content": enrich(request.content)}


@router.get("/config")
async def reader_config():
    """Effective reader configuration from the environment."""
    return _load_base_config().to_dict()
