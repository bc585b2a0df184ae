"""Post-processing of rendered HTML links.

Project documents (README, CHANGELOG, ROADMAP) link to each other and to
files in their repository with relative paths that break once the HTML is
served from this site. ``rewrite_links`` points them at in-page anchors or
at GitHub, and every external link is opened in a new tab without opener
or referrer.
"""

from __future__ import annotations

import html
import re

GITHUB = "https://github.com"
RAW_GITHUB = "https://raw.githubusercontent.com"
NEW_CONTEXT = 'target="_blank" rel="noopener noreferrer"'

ANCHOR_RE = re.compile(r"<a\s+([^>]*?)\s*>", re.IGNORECASE)
HREF_RE = re.compile(r'(?<![\w-])href\s*=\s*"([^"]*)"', re.IGNORECASE)
TARGET_RE = re.compile(r"(?<![\w-])target\s*=", re.IGNORECASE)
CONTEXT_ATTR_RE = re.compile(r'\s+(?:target|rel)\s*=\s*"[^"]*"', re.IGNORECASE)
REL_RE = re.compile(r'(?<![\w-])rel\s*=\s*"([^"]*)"', re.IGNORECASE)
LEADING_DOTS_RE = re.compile(r"^(?:\.{1,2}/|/)+")
SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:")
DOC_RE = re.compile(r"^(?:.*/)?(README|CHANGELOG|ROADMAP)\.md(?:#.*)?$", re.IGNORECASE)
MD_FILE_RE = re.compile(r"^(?P<path>[^#?]+\.md)(?P<frag>#.*)?$", re.IGNORECASE)
LICENSE_RE = re.compile(r"^(?:\./|/)?(?P<name>LICEN[SC]E(?:\.md|\.txt)?)$", re.IGNORECASE)
COMPARE_HEAD_RE = re.compile(r"/compare/[^\"]*\.\.\.HEAD$")
COMPARE_TAG_RE = re.compile(r"/compare/[^\"]*\.\.\.v?(?P<version>\d+\.\d+(?:\.\d+)?[\w.+-]*)$")
VERSION_LINK_RE = re.compile(r"^(?:\.{1,2}/)*v(?P<version>\d+\.\d+(?:\.\d+)?[\w.+-]*)$")
MD_IMAGE_RE = re.compile(r"!\[([^\]]*)\]\((?!https?://)([^)\s]+)((?:\s+\"[^\"]*\")?)\)")
HTML_IMAGE_RE = re.compile(r'(<img\s+(?:[^>]*?\s+)?)src="(?!https?://|data:)([^"]+)"', re.IGNORECASE)
MENTION_RE = re.compile(r"(?<![\w.@/])@([A-Za-z0-9](?:[A-Za-z0-9_-]*[A-Za-z0-9])?)\b(?!\.\w)")
TAG_SPLIT_RE = re.compile(r"(<[^>]+>)")
SKIP_TAGS = ("a", "code", "pre", "script", "style")


def clean_path(path: str) -> str:
    """Drop leading ``./``, ``../`` and ``/`` so the path is relative to the repo root."""
    return LEADING_DOTS_RE.sub("", path)


def repo_file_url(repo: str, path: str, branch: str = "main") -> str:
    return f"{GITHUB}/{repo}/blob/{branch}/{clean_path(path)}"


def release_tag_url(repo: str, version: str) -> str:
    tag = version if version.startswith("v") else f"v{version}"
    return f"{GITHUB}/{repo}/releases/tag/{tag}"


def open_in_new_context(attrs: str) -> str:
    """Add ``target="_blank"`` and merge ``noopener noreferrer`` into ``rel``.

    Anchors that already carry a ``target`` are returned unchanged.
    """
    if TARGET_RE.search(attrs):
        return attrs
    rel = REL_RE.search(attrs)
    if rel is None:
        return f"{attrs} {NEW_CONTEXT}"
    tokens = rel.group(1).split()
    tokens += [token for token in ("noopener", "noreferrer") if token not in tokens]
    merged = " ".join(tokens)
    attrs = REL_RE.sub(lambda _: f'rel="{merged}"', attrs, count=1)
    return f'{attrs} target="_blank"'


def _retarget(attrs: str, href: str, new_context: bool) -> str:
    attrs = HREF_RE.sub(lambda _: f'href="{href}"', attrs, count=1)
    if new_context:
        attrs = open_in_new_context(attrs)
    else:
        attrs = CONTEXT_ATTR_RE.sub("", attrs)
    return f"<a {attrs}>"


def _is_relative(href: str) -> bool:
    return bool(href) and not href.startswith("#") and not SCHEME_RE.match(href) and not href.startswith("//")


def rewrite_href(href: str, repo: str, branch: str = "main") -> tuple[str, bool]:
    """Return the rewritten target for ``href`` and whether it opens a new tab."""
    repo_blob = f"{GITHUB}/{repo}/blob/"
    same_repo_doc = href.startswith(repo_blob) or href.startswith(f"{GITHUB}/{repo}/tree/")
    doc = DOC_RE.match(href)
    if doc and (_is_relative(href) or same_repo_doc):
        return f"#{doc.group(1).lower()}", False

    if _is_relative(href):
        md_file = MD_FILE_RE.match(href)
        if md_file:
            url = repo_file_url(repo, md_file.group("path"), branch) + (md_file.group("frag") or "")
            return url, True
        license_file = LICENSE_RE.match(href)
        if license_file:
            return repo_file_url(repo, license_file.group("name"), branch), True

    if COMPARE_HEAD_RE.search(href):
        return f"{GITHUB}/{repo}/commits/{branch}", True
    compare_tag = COMPARE_TAG_RE.search(href)
    if compare_tag:
        return release_tag_url(repo, compare_tag.group("version")), True

    if _is_relative(href):
        version = VERSION_LINK_RE.match(href)
        if version:
            return release_tag_url(repo, version.group("version")), True

    return href, href.startswith(("http://", "https://"))


def rewrite_links(html_text: str, repo: str, branch: str = "main") -> str:
    if not html_text:
        return html_text

    def repl(match: re.Match) -> str:
        attrs = match.group(1)
        href_match = HREF_RE.search(attrs)
        if not href_match:
            return match.group(0)
        original = html.unescape(href_match.group(1))
        href, new_context = rewrite_href(original, repo, branch)
        if href == original and (not new_context or TARGET_RE.search(attrs)):
            return match.group(0)
        return _retarget(attrs, html.escape(href, quote=True), new_context)

    return ANCHOR_RE.sub(repl, html_text)


def mark_external_links(html_text: str) -> str:
    """Open absolute http(s) links in a new tab; links with a target are left alone."""
    if not html_text:
        return html_text

    def repl(match: re.Match) -> str:
        attrs = match.group(1)
        href_match = HREF_RE.search(attrs)
        if not href_match or TARGET_RE.search(attrs):
            return match.group(0)
        if not href_match.group(1).lower().startswith(("http://", "https://")):
            return match.group(0)
        return f"<a {open_in_new_context(attrs)}>"

    return ANCHOR_RE.sub(repl, html_text)


def mention_html(username: str) -> str:
    profile = f"{GITHUB}/{username}"
    return (
        f'<a href="{profile}" {NEW_CONTEXT} class="user-avatar-link">'
        f'<img src="{profile}.png" width="16" height="16" alt="@{username}" class="user-avatar" loading="lazy">'
        f"</a>"
        f'<a href="{profile}" {NEW_CONTEXT} class="user-mention">@{username}</a>'
    )


def expand_mentions(html_text: str) -> str:
    """Turn ``@user`` in text nodes into avatar + profile links.

    Text inside links, code and preformatted blocks is skipped, as are
    e-mail addresses, so the function can be applied more than once.
    """
    if not html_text or "@" not in html_text:
        return html_text
    parts = TAG_SPLIT_RE.split(html_text)
    depth = {name: 0 for name in SKIP_TAGS}
    out = []
    for part in parts:
        if part.startswith("<") and part.endswith(">"):
            name_match = re.match(r"</?\s*([a-zA-Z0-9]+)", part)
            name = name_match.group(1).lower() if name_match else ""
            if name in depth and not part.endswith("/>"):
                if part.startswith("</"):
                    depth[name] = max(0, depth[name] - 1)
                else:
                    depth[name] += 1
            out.append(part)
            continue
        if any(depth.values()):
            out.append(part)
            continue
        out.append(MENTION_RE.sub(lambda m: mention_html(m.group(1)), part))
    return "".join(out)


def absolutize_readme_images(markdown_text: str, repo: str, branch: str = "main") -> str:
    """Point relative image paths (Markdown and ``<img>``) at raw file URLs."""
    if not markdown_text:
        return markdown_text
    base = f"{RAW_GITHUB}/{repo}/{branch}"

    def md_repl(match: re.Match) -> str:
        path = match.group(2)
        if path.startswith("#"):
            return match.group(0)
        return f"![{match.group(1)}]({base}/{clean_path(path)}{match.group(3)})"

    def html_repl(match: re.Match) -> str:
        return f'{match.group(1)}src="{base}/{clean_path(match.group(2))}"'

    text = MD_IMAGE_RE.sub(md_repl, markdown_text)
    return HTML_IMAGE_RE.sub(html_repl, text)
