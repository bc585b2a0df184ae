from __future__ import annotations

import shutil
from pathlib import Path

import markdown
from pygments.formatters import HtmlFormatter

HIGHLIGHT_CLASS = "codehilite"
LATE_KEYS = (
    "POST_CONTENT",
    "README_HTML",
    "CHANGELOG_HTML",
    "ROADMAP_HTML",
    "RELEASE_NOTES",
    "RELEASES",
    "SCREENSHOTS",
    "PROJECT_CARDS",
    "BLOG_POSTS",
)


class TemplateError(Exception):
    pass


def convert_markdown(text: str) -> str:
    md = markdown.Markdown(
        extensions=["fenced_code", "tables", "codehilite"],
        extension_configs={"codehilite": {"css_class": HIGHLIGHT_CLASS, "guess_lang": False}},
    )
    return md.convert(text or "")


def fill_placeholders(template: str, values: dict[str, object]) -> str:
    """Replace ``{{KEY}}`` markers literally; nothing is escaped.

    Content-bearing keys go last so ``{{...}}`` inside rendered documents
    is not mistaken for a placeholder.
    """
    output = template
    for key, value in values.items():
        if key in LATE_KEYS:
            continue
        output = output.replace(f"{{{{{key}}}}}", "" if value is None else str(value))
    for key in LATE_KEYS:
        if key in values:
            value = values[key]
            output = output.replace(f"{{{{{key}}}}}", "" if value is None else str(value))
    return output


def read_template(path: Path) -> str:
    if not path.exists():
        raise TemplateError(f"Template not found: {path}")
    return path.read_text(encoding="utf-8")


def write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def write_highlight_css(path: Path, style: str = "default") -> None:
    formatter = HtmlFormatter(style=style, cssclass=HIGHLIGHT_CLASS)
    write_text(path, formatter.get_style_defs(f".{HIGHLIGHT_CLASS}"))


def copy_static(static_dir: Path, output_dir: Path) -> None:
    if static_dir.resolve() == output_dir.resolve():
        return
    for item in static_dir.iterdir():
        dest = output_dir / item.name
        if item.is_dir():
            if dest.exists():
                shutil.rmtree(dest)
            shutil.copytree(item, dest)
        else:
            shutil.copy2(item, dest)
