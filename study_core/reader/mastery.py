# study_core/reader/mastery.py
"""Session-scoped per-term mastery levels and personal notes."""

import logging
from dataclasses import dataclass

from study_core.reader.term_index import TermIndex
from study_core.reader.types import MasteryLevel, Term

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MasteryAggregate:
    """Counts of reviewed terms per mastery level."""

    not_known: int = 0
    partial: int = 0
    known: int = 0

    @property
    def total(self) -> int:
        return self.not_known + self.partial + self.known

    def to_dict(self) -> dict:
        return {
            "not_known": self.not_known,
            "partial": self.partial,
            "known": self.known,
            "total": self.total,
        }


@dataclass(frozen=True)
class ReviewedTerm:
    """A term the student interacted with, for the side panel list."""

    term: Term
    level: MasteryLevel
    notes: tuple[str, ...]


def _coerce_level(level: int) -> MasteryLevel:
    if isinstance(level, bool):
        raise ValueError(f"Invalid mastery level: {level!r}")
    try:
        return MasteryLevel(level)
    except ValueError:
        raise ValueError(f"Invalid mastery level: {level!r}") from None


class MasteryTracker:
    """
    Mastery levels and personal notes recorded while reading.

    Terms the student never touched keep their dictionary default level
    for display but are not counted as reviewed. Flushing to storage is
    done by an external collaborator via snapshot().
    """

    def __init__(self, index: TermIndex | None = None):
        self._index = index
        self._levels: dict[str, MasteryLevel] = {}
        self._notes: dict[str, list[str]] = {}

    def set_mastery(self, term_id: str, level: int) -> None:
        """Overwrite the level for a term; no history is kept."""
        self._levels[term_id] = _coerce_level(level)

    def add_note(self, term_id: str, text: str) -> None:
        """Append a personal note to a term. Blank notes are ignored."""
        text = text.strip()
        if not text:
            logger.debug(f"Ignoring blank note for term {term_id!r}")
            return
        self._notes.setdefault(term_id, []).append(text)

    def remove_note(self, term_id: str, position: int) -> None:
        notes = self._notes.get(term_id)
        if not notes or not 0 <= position < len(notes):
            raise IndexError(f"No note {position} for term {term_id!r}")
        del notes[position]
        if not notes:
            del self._notes[term_id]

    def notes_for(self, term_id: str) -> tuple[str, ...]:
        return tuple(self._notes.get(term_id, ()))

    def level_for(self, term_id: str) -> MasteryLevel:
        """Current level: the explicit one if set, else the term's default."""
        if term_id in self._levels:
            return self._levels[term_id]
        term = self._index.get(term_id) if self._index is not None else None
        if term is not None:
            return MasteryLevel(term.default_mastery_level)
        return MasteryLevel.not_known

    def interacted_term_ids(self) -> list[str]:
        """Ids with an explicit level or at least one note, first touched first."""
        seen = dict.fromkeys(self._levels)
        seen.update(dict.fromkeys(self._notes))
        return list(seen)

    def aggregate(self) -> MasteryAggregate:
        """Count reviewed terms at each level; untouched terms are excluded."""
        counts = {level: 0 for level in MasteryLevel}
        for term_id in self.interacted_term_ids():
            counts[self.level_for(term_id)] += 1
        return MasteryAggregate(
            not_known=counts[MasteryLevel.not_known],
            partial=counts[MasteryLevel.partial],
            known=counts[MasteryLevel.known],
        )

    def reviewed_terms(self) -> list[ReviewedTerm]:
        """Reviewed terms known to the index, with their level and notes."""
        if self._index is None:
            return []
        reviewed = []
        for term_id in self.interacted_term_ids():
            term = self._index.get(term_id)
            if term is None:
                continue
            reviewed.append(
                ReviewedTerm(
                    term=term,
                    level=self.level_for(term_id),
                    notes=self.notes_for(term_id),
                )
            )
        return reviewed

    def snapshot(self) -> dict:
        """Payload for the persistence collaborator."""
        return {
            "keywordMastery": {
                term_id: int(level) for term_id, level in self._levels.items()
            },
            "keywordNotes": {
                term_id: list(notes) for term_id, notes in self._notes.items()
            },
        }

    def restore(self, snapshot: dict) -> None:
        """Reload state saved by snapshot(). Invalid levels are skipped."""
        self._levels = {}
        for term_id, level in (snapshot.get("keywordMastery") or {}).items():
            try:
                self._levels[term_id] = _coerce_level(level)
            except ValueError:
                logger.warning(f"Dropping saved mastery {level!r} for {term_id!r}")
        self._notes = {
            term_id: [note for note in notes if note.strip()]
            for term_id, notes in (snapshot.get("keywordNotes") or {}).items()
            if any(note.strip() for note in notes)
        }
