# study_core/reader/paginator.py
"""
Split lesson content into bounded pages.

Structured content is only cut after the closing marker of a top-level
structural block (paragraph, container, heading, figure, blockquote, list,
list item, table, preformatted block) or a top-level <hr>. A block that is
never closed extends to the end of the document. Nested blocks are never
cut points, so content wrapped in a single outer block (one <div> or
<article> around everything, or one long list) is a single fragment and
renders as a single page however long it is. Plain content is cut every
N lines.

Pages always concatenate back to the original content.
"""

import re

from study_core.reader.types import Page

STRUCTURAL_TAGS = frozenset(
    {
        "p",
        "div",
        "section",
        "article",
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "figure",
        "blockquote",
        "ul",
        "ol",
        "li",
        "table",
        "pre",
    }
)

_TAG_PATTERN = re.compile(
    r"<(?P<closing>/)?(?P<name>[a-zA-Z][a-zA-Z0-9]*)\b[^>]*?(?P<selfclosing>/)?>"
)


def _require_positive(value: int, name: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"{name} must be a positive integer, got {value!r}")


def split_fragments(content: str) -> list[str]:
    """
    Cut structured content into unsplittable fragments.

    Each fragment ends right after a boundary marker (the marker stays with
    the text before it); whatever follows the last boundary is the final
    fragment.
    """
    fragments = []
    open_blocks: list[str] = []
    fragment_start = 0

    for tag in _TAG_PATTERN.finditer(content):
        name = tag.group("name").lower()
        if name == "hr":
            is_boundary = not open_blocks
        elif name not in STRUCTURAL_TAGS or tag.group("selfclosing"):
            continue
        elif not tag.group("closing"):
            open_blocks.append(name)
            continue
        elif name in open_blocks:
            # Close the innermost matching block, and any unclosed blocks in it
            depth = len(open_blocks) - 1 - open_blocks[::-1].index(name)
            del open_blocks[depth:]
            is_boundary = not open_blocks
        else:
            # Stray closing marker: only a boundary at top level
            is_boundary = not open_blocks

        if is_boundary:
            fragments.append(content[fragment_start : tag.end()])
            fragment_start = tag.end()

    if fragment_start < len(content):
        fragments.append(content[fragment_start:])
    return fragments


def paginate_structured(content: str, max_page_chars: int) -> list[str]:
    """
    Paginate tag-structured content.

    Fragments are packed greedily: a new page starts when adding the next
    fragment would exceed max_page_chars and the current page already has
    content. A fragment larger than max_page_chars gets a page of its own
    rather than being truncated.

    Args:
        content: Markup to paginate
        max_page_chars: Soft page size in characters

    Returns:
        List of page fragments (at least one; [""] for empty content)

    Raises:
        ValueError: If max_page_chars is not a positive integer
    """
    _require_positive(max_page_chars, "max_page_chars")

    pages = []
    current = ""
    for fragment in split_fragments(content):
        if current and len(current) + len(fragment) > max_page_chars:
            pages.append(current)
            current = fragment
        else:
            current += fragment

    if current or not pages:
        pages.append(current)
    return pages


def paginate_plain(text: str, lines_per_page: int) -> list[list[str]]:
    """
    Paginate plain text into groups of lines_per_page lines.

    Purely positional: the last page may be shorter. Joining every line of
    every page with "\\n" gives back the input.

    Raises:
        ValueError: If lines_per_page is not a positive integer
    """
    _require_positive(lines_per_page, "lines_per_page")

    lines = text.split("\n")
    return [
        lines[start : start + lines_per_page]
        for start in range(0, len(lines), lines_per_page)
    ]


def clamp_page_index(index: int, page_count: int) -> int:
    """Keep the active page index in range after the page count changes."""
    if page_count < 1:
        return 0
    return max(0, min(index, page_count - 1))


def build_structured_pages(content: str, max_page_chars: int) -> list[Page]:
    return [
        Page(index=i, content=fragment)
        for i, fragment in enumerate(paginate_structured(content, max_page_chars))
    ]


def build_plain_pages(text: str, lines_per_page: int) -> list[Page]:
    return [
        Page(index=i, content=lines)
        for i, lines in enumerate(paginate_plain(text, lines_per_page))
    ]
