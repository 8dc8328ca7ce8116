"""
Core study logic - platform-agnostic.
Can be used by the web API or any other interface.
"""

# Reader text engine
from .reader import (
    Annotation,
    AnnotationCache,
    AnnotationDraft,
    AnnotationSync,
    InMemoryAnnotationStore,
    MasteryTracker,
    ReaderConfig,
    ReaderDocument,
    ReaderViewState,
    ReadingTimer,
    Term,
    TermIndex,
    enrich,
    render_page,
    segment,
)

# Configuration
from .config import get_reader_config, is_dev_mode
