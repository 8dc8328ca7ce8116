# study_core/reader/media.py
"""
Turn image references pasted into lesson markup into renderable figures.

Three passes, in this order:
1. a block whose whole text is an image URL becomes a figure
2. a block whose whole text is ![caption](url) becomes a figure with caption
3. any other image URL in running text becomes an inline image

Block passes must run before the inline pass, otherwise the URL of a
block image would be wrapped inline first and never become a figure.
Running enrich() on its own output changes nothing.
"""

import html
import re

IMAGE_EXTENSIONS = ("png", "jpg", "jpeg", "gif", "webp", "svg", "bmp", "avif")

_URL_CHARS = r"[^\s<>\"'()\[\]]"
# Sentence punctuation right after the URL is not part of it.
_URL_END = r"(?=[.,;:!?]*(?:[\s<>\"'()\[\]]|$))"
IMAGE_URL = (
    rf"https?://{_URL_CHARS}+?\.(?:{'|'.join(IMAGE_EXTENSIONS)})"
    rf"(?:\?{_URL_CHARS}*?)?{_URL_END}"
)

_BLOCK_URL_PATTERN = re.compile(
    rf"<(?P<tag>p|div)(?:\s[^>]*)?>\s*(?P<url>{IMAGE_URL})\s*</(?P=tag)\s*>",
    re.IGNORECASE,
)

_BLOCK_MARKUP_PATTERN = re.compile(
    r"<(?P<tag>p|div)(?:\s[^>]*)?>\s*"
    r"!\[(?P<caption>[^\]]*)\]\(\s*(?P<url>[^\s()<>]+)\s*\)"
    r"\s*</(?P=tag)\s*>",
    re.IGNORECASE,
)

# Inline references that are the target of ![..](..) markup are left alone.
_INLINE_URL_PATTERN = re.compile(rf"(?<!\]\()(?P<url>{IMAGE_URL})", re.IGNORECASE)

_TAG_OR_TEXT = re.compile(r"(<[^>]*>)")
_ANCHOR_TAG = re.compile(r"<(/?)a\b", re.IGNORECASE)


def _figure(url: str, caption: str = "") -> str:
    src = html.escape(url, quote=True)
    alt = html.escape(caption, quote=True)
    parts = [f'<figure class="reader-figure"><img src="{src}" alt="{alt}" loading="lazy" />']
    if caption:
        parts.append(f"<figcaption>{html.escape(caption, quote=False)}</figcaption>")
    parts.append("</figure>")
    return "".join(parts)


def _inline_image(url: str) -> str:
    src = html.escape(url, quote=True)
    return f'<img class="reader-inline-image" src="{src}" alt="" loading="lazy" />'


def wrap_block_images(content: str) -> str:
    """Pass 1: blocks holding nothing but an image URL."""
    return _BLOCK_URL_PATTERN.sub(lambda m: _figure(html.unescape(m.group("url"))), content)


def wrap_block_markup_images(content: str) -> str:
    """Pass 2: blocks holding nothing but ![caption](url)."""

    def replace(m: re.Match) -> str:
        url = html.unescape(m.group("url"))
        caption = html.unescape(m.group("caption").strip())
        return _figure(url, caption)

    return _BLOCK_MARKUP_PATTERN.sub(replace, content)


def wrap_inline_images(content: str) -> str:
    """
    Pass 3: image URLs left in running text.

    Only text between tags is rewritten, so URLs inside attributes (img src,
    a href) are never touched, and text inside <a> elements is skipped.
    """
    pieces = _TAG_OR_TEXT.split(content)
    anchor_depth = 0
    for i, piece in enumerate(pieces):
        if i % 2 == 1:
            anchor = _ANCHOR_TAG.match(piece)
            if anchor:
                anchor_depth = max(0, anchor_depth + (-1 if anchor.group(1) else 1))
            continue
        if anchor_depth == 0 and piece:
            pieces[i] = _INLINE_URL_PATTERN.sub(
                lambda m: _inline_image(html.unescape(m.group("url"))), piece
            )
    return "".join(pieces)


def enrich(content: str) -> str:
    """Normalize image references into figures and inline images."""
    content = wrap_block_images(content)
    content = wrap_block_markup_images(content)
    return wrap_inline_images(content)
