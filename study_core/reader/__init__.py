"""In-reader text engine: vocabulary, annotations, pagination and media."""

from .types import (
    Annotation,
    AnnotationKind,
    ContentFormat,
    HighlightColor,
    MasteryLevel,
    Page,
    ReaderDocument,
    ReaderViewState,
    Segment,
    SegmentKind,
    Term,
)
from .errors import InvalidConfigError, PersistenceError, ReaderError
from .term_index import TermIndex
from .segmenter import find_candidates, segment
from .annotations import (
    PALETTE,
    AnnotationCache,
    AnnotationIntent,
    HighlightStyle,
    IntentAction,
    annotation_stats,
    click_intent,
    match,
    style,
)
from .paginator import (
    build_plain_pages,
    build_structured_pages,
    clamp_page_index,
    paginate_plain,
    paginate_structured,
)
from .media import enrich
from .mastery import MasteryAggregate, MasteryTracker, ReviewedTerm
from .timer import ReadingTimer, format_elapsed
from .persistence import (
    AnnotationDraft,
    AnnotationStore,
    AnnotationSync,
    InMemoryAnnotationStore,
    PersistenceOutcome,
)
from .renderer import (
    Affordance,
    ReaderConfig,
    RenderedKind,
    RenderedPage,
    RenderedSegment,
    page_count,
    render_page,
)
