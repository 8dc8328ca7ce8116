# study_core/reader/normalize.py
"""
Text normalization used for vocabulary matching.

Folding (case, diacritics, whitespace) and character-reference decoding
both keep a map from every output character back to its source offset,
so matches found in normalized text can be cut out of the original.
"""

import html
import re
import unicodedata
from dataclasses import dataclass

# Named, decimal and hex character references, e.g. &amp; &#233; &#xE9;
_CHAR_REFERENCE = re.compile(r"&(?:[A-Za-z][A-Za-z0-9]*|#[0-9]+|#[xX][0-9A-Fa-f]+);")


def _strip_marks(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def fold_char(char: str) -> str:
    """
    Fold a single character to its lowercase, unaccented form.

    Always returns zero or one character so that folded offsets map back to
    source offsets one-to-one. Combining marks fold to "", any whitespace
    (including no-break space) folds to " ", and characters whose folded
    form would expand (e.g. "ß" stays "ß") keep their plain lowercase form.

    Examples:
        "É" -> "e"
        "ç" -> "c"
        "\\u00a0" -> " "
        "\\u0301" (combining acute) -> ""
    """
    if char.isspace():
        return " "
    folded = _strip_marks(_strip_marks(char).lower())
    if len(folded) == 1:
        return folded
    if not folded:
        return ""
    lowered = char.lower()
    return lowered if len(lowered) == 1 else char


def fold(text: str) -> str:
    """Fold a whole string (used for dictionary forms and lookups)."""
    return "".join(fold_char(ch) for ch in text)


@dataclass(frozen=True)
class MappedText:
    """Derived text plus the source offset of every derived character."""

    source: str
    text: str
    origins: tuple[int, ...]

    def source_span(self, start: int, end: int) -> tuple[int, int]:
        """
        Map a [start, end) span of derived text back to the source.

        The end extends up to the next derived character, so combining
        marks that trail a match stay attached to it and a decoded
        character reference is never cut in half.
        """
        source_start = self.origins[start]
        source_end = self.origins[end] if end < len(self.origins) else len(self.source)
        return source_start, source_end


def fold_with_offsets(text: str) -> MappedText:
    chars = []
    origins = []
    for position, ch in enumerate(text):
        folded = fold_char(ch)
        if folded:
            chars.append(folded)
            origins.append(position)
    return MappedText(source=text, text="".join(chars), origins=tuple(origins))


def decode_references(text: str) -> MappedText:
    """
    Decode HTML character references in a markup text run.

    Every character a reference decodes to maps back to the reference's
    "&", so "c&eacute;lula" reads as "célula" and "&amp;" as "&". Unknown
    references are kept literally.
    """
    chars = []
    origins = []
    position = 0
    for ref in _CHAR_REFERENCE.finditer(text):
        for offset in range(position, ref.start()):
            chars.append(text[offset])
            origins.append(offset)
        decoded = html.unescape(ref.group(0))
        if decoded == ref.group(0):
            decoded_origins = range(ref.start(), ref.end())
        else:
            decoded_origins = [ref.start()] * len(decoded)
        chars.extend(decoded)
        origins.extend(decoded_origins)
        position = ref.end()
    for offset in range(position, len(text)):
        chars.append(text[offset])
        origins.append(offset)
    return MappedText(source=text, text="".join(chars), origins=tuple(origins))
