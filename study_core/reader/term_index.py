# study_core/reader/term_index.py
"""Lookup of known vocabulary terms for a course."""

import logging
import re
from typing import Iterable

from study_core.reader.normalize import fold
from study_core.reader.types import Term

logger = logging.getLogger(__name__)

# A Unicode letter: word characters minus digits and underscore.
_LETTER = r"[^\W\d_]"


def _node_pattern(node: dict) -> str:
    """Render one trie node as a regex fragment.

    Terminal nodes become greedy optional groups, so the engine tries the
    longest continuation first and backs off to shorter forms.
    """
    branches = [
        re.escape(char) + _node_pattern(child) for char, child in node.items() if char
    ]
    if not branches:
        return ""
    body = branches[0] if len(branches) == 1 else "(?:" + "|".join(branches) + ")"
    if "" in node:
        return f"(?:{body})?"
    return body


def build_scanner(forms: Iterable[str]) -> re.Pattern | None:
    """
    Compile a single whole-word matcher for all folded forms.

    The forms are merged into a character trie so one left-to-right pass
    over the text tests every form at every position. Returns None when
    there is nothing to match.
    """
    trie: dict = {}
    for form in forms:
        node = trie
        for char in form:
            node = node.setdefault(char, {})
        node[""] = {}

    if not trie:
        return None

    return re.compile(f"(?<!{_LETTER})(?:{_node_pattern(trie)})(?!{_LETTER})")


class TermIndex:
    """
    Immutable dictionary of vocabulary terms keyed by folded canonical form.

    Use TermIndex.build() to construct one; rebuilding is the only way to
    change the dictionary.
    """

    def __init__(
        self,
        terms: tuple[Term, ...],
        by_form: dict[str, Term],
    ):
        self._terms = terms
        self._by_form = by_form
        self._by_id = {term.id: term for term in terms}
        # dicts keep insertion order, so sorted() keeps it among equal lengths
        self._forms = tuple(sorted(by_form, key=len, reverse=True))
        self._scanner = build_scanner(self._forms)

    @classmethod
    def build(cls, terms: Iterable[Term]) -> "TermIndex":
        """
        Index terms by canonical form, longest form first.

        When two terms fold to the same form, the first one inserted wins.

        Raises:
            ValueError: If terms is None
        """
        if terms is None:
            raise ValueError("Term dictionary is required")

        kept = []
        by_form: dict[str, Term] = {}
        for term in terms:
            form = fold(term.canonical_form).strip()
            if not form:
                logger.warning(f"Skipping term {term.id!r}: empty canonical form")
                continue
            kept.append(term)
            if form in by_form:
                logger.info(
                    f"Term {term.id!r} shares form {form!r} with "
                    f"{by_form[form].id!r}; keeping the first"
                )
                continue
            by_form[form] = term

        logger.info(f"Built term index with {len(by_form)} forms")
        return cls(tuple(kept), by_form)

    def lookup(self, candidate: str) -> Term | None:
        """Find the term whose canonical form matches, ignoring case and accents."""
        return self._by_form.get(fold(candidate).strip())

    def get(self, term_id: str) -> Term | None:
        return self._by_id.get(term_id)

    def all_forms(self) -> tuple[str, ...]:
        """Folded forms in scan priority order (longest first)."""
        return self._forms

    @property
    def terms(self) -> tuple[Term, ...]:
        return self._terms

    @property
    def scanner(self) -> re.Pattern | None:
        return self._scanner

    def __len__(self) -> int:
        return len(self._by_form)

    def __contains__(self, term_id: str) -> bool:
        return term_id in self._by_id
