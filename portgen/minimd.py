"""Small Markdown-to-HTML converter for release notes and live API fallbacks.

Supports fenced and inline code, ``#``-``###`` headings, bold, italic, links,
images, list items, single-line blockquotes, horizontal rules and paragraphs.
Anything else passes through as-is. Build-time pages go through the
``markdown`` package instead (see ``render.convert_markdown``).
"""

from __future__ import annotations

import html
import re
from typing import Optional

FENCE_RE = re.compile(r"```(\w+)?[^\n]*\n(.*?)```", re.DOTALL)
INLINE_CODE_RE = re.compile(r"`([^`\n]+)`")
HEADING_RE = re.compile(r"^(#{1,3}) (.*)$", re.MULTILINE)
IMAGE_RE = re.compile(r"!\[([^\]]*)\]\(([^)\s]+)\)")
LINK_RE = re.compile(r"(?<!!)\[([^\]]+)\]\(([^)\s]+)\)")
BOLD_STAR_RE = re.compile(r"\*\*(?!\s)([^*\n]+?)(?<!\s)\*\*")
BOLD_UNDERSCORE_RE = re.compile(r"(?<!\w)__(?!\s)([^_\n]+?)(?<!\s)__(?!\w)")
ITALIC_STAR_RE = re.compile(r"(?<!\*)\*(?![\s*])([^*\n]+?)(?<!\s)\*(?!\*)")
ITALIC_UNDERSCORE_RE = re.compile(r"(?<!\w)_(?![\s_])([^_\n]+?)(?<!\s)_(?!\w)")
BULLET_RE = re.compile(r"^[*-] (.+)$", re.MULTILINE)
ORDERED_RE = re.compile(r"^\d+\. (.+)$", re.MULTILINE)
ORDERED_RUN_RE = re.compile(r"^\d+\. .+$(?:\n\d+\. .+$)*", re.MULTILINE)
LI_RUN_RE = re.compile(r"^<li>.*</li>$(?:\n<li>.*</li>$)*", re.MULTILINE)
BLOCKQUOTE_RE = re.compile(r"^> (.+)$", re.MULTILINE)
HR_RE = re.compile(r"^(?:---|\*\*\*)[ \t]*$", re.MULTILINE)
PARAGRAPH_SPLIT_RE = re.compile(r"\n[ \t]*\n")
BLOCK_START_RE = re.compile(r"^<(h[1-6]|ul|ol|li|pre|blockquote|hr)\b")
TOKEN_RE = re.compile(r"\x00(\d+)\x00")
IMG_TAG_RE = re.compile(r"<img\b[^>]*>", re.IGNORECASE)
ATTR_RE = re.compile(r'([a-zA-Z_:][\w:.-]*)\s*=\s*"([^"]*)"')


class _Stash:
    """Holds finished fragments so later rules cannot touch them.

    Fragments are stored with their own tokens already resolved, so a
    single restore pass is enough.
    """

    def __init__(self) -> None:
        self.items: list[str] = []

    def _lookup(self, match: re.Match) -> str:
        index = int(match.group(1))
        return self.items[index] if index < len(self.items) else match.group(0)

    def put(self, fragment: str) -> str:
        self.items.append(self.restore(fragment))
        return f"\x00{len(self.items) - 1}\x00"

    def peek(self, text: str) -> Optional[str]:
        match = TOKEN_RE.match(text)
        if not match or int(match.group(1)) >= len(self.items):
            return None
        return self.items[int(match.group(1))]

    def restore(self, text: str) -> str:
        return TOKEN_RE.sub(self._lookup, text)


def _emphasis(text: str) -> str:
    text = BOLD_STAR_RE.sub(r"<strong>\1</strong>", text)
    text = BOLD_UNDERSCORE_RE.sub(r"<strong>\1</strong>", text)
    text = ITALIC_STAR_RE.sub(r"<em>\1</em>", text)
    return ITALIC_UNDERSCORE_RE.sub(r"<em>\1</em>", text)


def _wrap_ordered(match: re.Match) -> str:
    items = "\n".join(f"<li>{line.split('. ', 1)[1]}</li>" for line in match.group(0).splitlines())
    return f"<ol>\n{items}\n</ol>"


def _is_block(chunk: str, stash: _Stash) -> bool:
    if BLOCK_START_RE.match(chunk):
        return True
    fragment = stash.peek(chunk)
    return fragment is not None and fragment.startswith("<pre")


def markdown_to_html(markdown: Optional[str], wrap_all_lists: bool = False) -> str:
    if not markdown:
        return ""

    stash = _Stash()
    # NUL marks stash tokens; it never survives from the input.
    text = markdown.replace("\r\n", "\n").replace("\x00", "\ufffd")

    def fence(match: re.Match) -> str:
        lang = match.group(1) or "text"
        code = html.escape(match.group(2).strip(), quote=False)
        return stash.put(f'<pre><code class="language-{lang}">{code}</code></pre>')

    text = FENCE_RE.sub(fence, text)
    text = INLINE_CODE_RE.sub(
        lambda m: stash.put(f"<code>{html.escape(m.group(1), quote=False)}</code>"), text
    )
    text = HEADING_RE.sub(lambda m: f"<h{len(m.group(1))}>{m.group(2)}</h{len(m.group(1))}>", text)

    # Link targets are stashed before emphasis so underscores in URLs survive.
    text = IMAGE_RE.sub(
        lambda m: stash.put(f'<img src="{m.group(2)}" alt="{m.group(1)}" loading="lazy">'), text
    )
    text = LINK_RE.sub(
        lambda m: stash.put(
            f'<a href="{m.group(2)}" target="_blank" rel="noopener noreferrer">{_emphasis(m.group(1))}</a>'
        ),
        text,
    )
    text = _emphasis(text)

    text = BULLET_RE.sub(r"<li>\1</li>", text)
    if wrap_all_lists:
        text = LI_RUN_RE.sub(lambda m: f"<ul>\n{m.group(0)}\n</ul>", text)
        text = ORDERED_RUN_RE.sub(_wrap_ordered, text)
    else:
        text = LI_RUN_RE.sub(lambda m: f"<ul>\n{m.group(0)}\n</ul>", text, count=1)
        text = ORDERED_RE.sub(r"<li>\1</li>", text)

    text = BLOCKQUOTE_RE.sub(r"<blockquote>\1</blockquote>", text)
    text = HR_RE.sub("<hr>", text)

    blocks = []
    for chunk in PARAGRAPH_SPLIT_RE.split(text):
        chunk = chunk.strip()
        if not chunk:
            continue
        blocks.append(chunk if _is_block(chunk, stash) else f"<p>{chunk}</p>")
    return stash.restore("\n".join(blocks))


def parse_attrs(tag: str) -> dict[str, str]:
    return {name.lower(): value for name, value in ATTR_RE.findall(tag)}


def extract_images(html_text: str) -> list[dict]:
    images = []
    for tag in IMG_TAG_RE.findall(html_text or ""):
        attrs = parse_attrs(tag)
        if not attrs.get("src"):
            continue
        width = attrs.get("width", "")
        images.append(
            {
                "src": attrs["src"],
                "alt": attrs.get("alt", ""),
                "width": int(width) if width.isdigit() else None,
            }
        )
    return images
