# study_core/reader/persistence.py
"""
Annotation persistence seam.

The engine never stores annotations itself. It hands drafts to an external
AnnotationStore and only updates its read cache once the store confirms.
Each call returns a PersistenceOutcome instead of failing silently; the
submit_* variants schedule the call as a background task so rendering
never waits on the network.
"""

import asyncio
import itertools
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import datetime, timezone

import sentry_sdk

from study_core.reader.annotations import AnnotationCache
from study_core.reader.errors import PersistenceError
from study_core.reader.types import Annotation, AnnotationKind, HighlightColor

logger = logging.getLogger(__name__)

DEFAULT_QUESTION = "Explain this passage in detail"

# Track running tasks to prevent GC (asyncio only keeps weak references)
_running_tasks: set[asyncio.Task] = set()


@dataclass(frozen=True)
class AnnotationDraft:
    """A create request: exact matched text, color and optional payload."""

    original_text: str
    kind: AnnotationKind = AnnotationKind.highlight
    color: HighlightColor = HighlightColor.yellow
    note_text: str | None = None

    @classmethod
    def create(
        cls,
        original_text: str,
        kind: AnnotationKind | str = AnnotationKind.highlight,
        color: HighlightColor | str = HighlightColor.yellow,
        note_text: str | None = None,
    ) -> "AnnotationDraft":
        """
        Validate and normalize a draft.

        Notes need text; a blank question gets DEFAULT_QUESTION.

        Raises:
            ValueError: On empty text, unknown kind or color outside the palette
        """
        if not original_text or not original_text.strip():
            raise ValueError("Annotation text must not be empty")
        kind = AnnotationKind(kind)
        color = HighlightColor(color)
        note_text = note_text.strip() if note_text else None
        if kind == AnnotationKind.note and not note_text:
            raise ValueError("A note annotation needs note text")
        if kind == AnnotationKind.question and not note_text:
            note_text = DEFAULT_QUESTION
        if kind == AnnotationKind.highlight:
            note_text = note_text or None
        return cls(
            original_text=original_text, kind=kind, color=color, note_text=note_text
        )


@dataclass(frozen=True)
class PersistenceOutcome:
    """Result of a create/update/delete handed to the external store."""

    ok: bool
    operation: str
    annotation: Annotation | None = None
    annotation_id: str | None = None
    error: str | None = None


class AnnotationStore(ABC):
    """External collaborator that owns annotation records. Assigns ids."""

    @abstractmethod
    async def list_for_document(self, document_id: str) -> list[Annotation]:
        """Fetch the persisted annotations of a document."""
        pass

    @abstractmethod
    async def create(self, document_id: str, draft: AnnotationDraft) -> Annotation:
        """Persist a draft and return the stored record."""
        pass

    @abstractmethod
    async def update(
        self,
        document_id: str,
        annotation_id: str,
        *,
        color: HighlightColor | None = None,
        note_text: str | None = None,
    ) -> Annotation:
        """Change color and/or note text of a stored annotation."""
        pass

    @abstractmethod
    async def delete(self, document_id: str, annotation_id: str) -> None:
        """Remove a stored annotation."""
        pass


class InMemoryAnnotationStore(AnnotationStore):
    """Process-local store for development and tests."""

    def __init__(self):
        self._documents: dict[str, dict[str, Annotation]] = {}
        self._ids = itertools.count(1)

    async def list_for_document(self, document_id: str) -> list[Annotation]:
        return list(self._documents.get(document_id, {}).values())

    async def create(self, document_id: str, draft: AnnotationDraft) -> Annotation:
        annotation = Annotation(
            id=f"ann-{next(self._ids)}",
            original_text=draft.original_text,
            kind=draft.kind,
            color=draft.color.value,
            note_text=draft.note_text,
            created_at=datetime.now(timezone.utc),
        )
        self._documents.setdefault(document_id, {})[annotation.id] = annotation
        return annotation

    async def update(
        self,
        document_id: str,
        annotation_id: str,
        *,
        color: HighlightColor | None = None,
        note_text: str | None = None,
    ) -> Annotation:
        stored = self._documents.get(document_id, {})
        if annotation_id not in stored:
            raise PersistenceError(f"Annotation not found: {annotation_id}")
        changes = {}
        if color is not None:
            changes["color"] = HighlightColor(color).value
        if note_text is not None:
            changes["note_text"] = note_text
        stored[annotation_id] = replace(stored[annotation_id], **changes)
        return stored[annotation_id]

    async def delete(self, document_id: str, annotation_id: str) -> None:
        stored = self._documents.get(document_id, {})
        if annotation_id not in stored:
            raise PersistenceError(f"Annotation not found: {annotation_id}")
        del stored[annotation_id]


class AnnotationSync:
    """
    Routes annotation changes through the store, then into the cache.

    No retries and no optimistic updates: on failure the cache is left
    exactly as it was and the failure is returned to the caller.
    """

    def __init__(self, store: AnnotationStore, document_id: str, cache: AnnotationCache):
        self.store = store
        self.document_id = document_id
        self.cache = cache

    async def refresh(self) -> PersistenceOutcome:
        """Reload the cache from the store."""
        try:
            annotations = await self.store.list_for_document(self.document_id)
        except Exception as e:
            return self._failed("list", e)
        self.cache.load(annotations)
        return PersistenceOutcome(ok=True, operation="list")

    async def create(self, draft: AnnotationDraft) -> PersistenceOutcome:
        try:
            annotation = await self.store.create(self.document_id, draft)
        except Exception as e:
            return self._failed("create", e)
        self.cache.apply_created(annotation)
        return PersistenceOutcome(
            ok=True, operation="create", annotation=annotation, annotation_id=annotation.id
        )

    async def update(
        self,
        annotation_id: str,
        *,
        color: HighlightColor | str | None = None,
        note_text: str | None = None,
    ) -> PersistenceOutcome:
        try:
            color = HighlightColor(color) if color is not None else None
            annotation = await self.store.update(
                self.document_id, annotation_id, color=color, note_text=note_text
            )
        except Exception as e:
            return self._failed("update", e, annotation_id)
        self.cache.apply_updated(annotation)
        return PersistenceOutcome(
            ok=True, operation="update", annotation=annotation, annotation_id=annotation_id
        )

    async def delete(self, annotation_id: str) -> PersistenceOutcome:
        try:
            await self.store.delete(self.document_id, annotation_id)
        except Exception as e:
            return self._failed("delete", e, annotation_id)
        self.cache.apply_removed(annotation_id)
        return PersistenceOutcome(ok=True, operation="delete", annotation_id=annotation_id)

    def submit_create(self, draft: AnnotationDraft) -> asyncio.Task:
        """Fire-and-forget create; await the task to observe the outcome."""
        return _schedule(self.create(draft), f"annotation-create-{self.document_id}")

    def submit_update(self, annotation_id: str, **changes) -> asyncio.Task:
        return _schedule(
            self.update(annotation_id, **changes), f"annotation-update-{annotation_id}"
        )

    def submit_delete(self, annotation_id: str) -> asyncio.Task:
        return _schedule(self.delete(annotation_id), f"annotation-delete-{annotation_id}")

    def _failed(
        self, operation: str, error: Exception, annotation_id: str | None = None
    ) -> PersistenceOutcome:
        logger.error(
            f"Annotation {operation} failed for document {self.document_id}: {error}"
        )
        sentry_sdk.capture_exception(error)
        return PersistenceOutcome(
            ok=False, operation=operation, annotation_id=annotation_id, error=str(error)
        )


def _schedule(coro, name: str) -> asyncio.Task:
    task = asyncio.create_task(coro, name=name)
    _running_tasks.add(task)
    task.add_done_callback(_task_done)
    return task


def _task_done(task: asyncio.Task) -> None:
    """Callback to clean up completed tasks and log unexpected errors."""
    _running_tasks.discard(task)
    if task.cancelled():
        return
    exc = task.exception()
    if exc:
        logger.error(f"Annotation task {task.get_name()} failed: {exc}")
        sentry_sdk.capture_exception(exc)
