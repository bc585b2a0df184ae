from __future__ import annotations

import datetime as dt
from typing import Optional

MONTH_NAMES = {
    "de": [
        "Januar", "Februar", "März", "April", "Mai", "Juni",
        "Juli", "August", "September", "Oktober", "November", "Dezember",
    ],
    "en": [
        "January", "February", "March", "April", "May", "June",
        "July", "August", "September", "October", "November", "December",
    ],
}


def parse_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "y", "on"}
    return False


def parse_int(value: object, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return default


def join_url(base: str, path: str) -> str:
    base = base.rstrip("/")
    path = path.lstrip("/")
    if not path:
        return base
    return f"{base}/{path}"


def parse_date(value: object) -> Optional[dt.datetime]:
    """Parse a frontmatter/API date (``2024-06-01`` or ISO 8601) or return None."""
    if isinstance(value, dt.datetime):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return dt.datetime.fromisoformat(text)
    except ValueError:
        pass
    try:
        return dt.datetime.combine(dt.date.fromisoformat(text[:10]), dt.time())
    except ValueError:
        return None


def rfc822_date(value: dt.datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=dt.timezone.utc)
    return value.strftime("%a, %d %b %Y %H:%M:%S %z")


def iso_now() -> str:
    return dt.datetime.now(dt.timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def format_long_date(value: object, language: str = "en") -> str:
    """``2024-06-01`` -> ``1. Juni 2024`` (de) or ``June 1, 2024`` (en)."""
    parsed = parse_date(value)
    if parsed is None:
        return "" if value is None else str(value)
    months = MONTH_NAMES.get(language, MONTH_NAMES["en"])
    month = months[parsed.month - 1]
    if language == "de":
        return f"{parsed.day}. {month} {parsed.year}"
    return f"{month} {parsed.day}, {parsed.year}"


def format_short_date(value: object, language: str = "en") -> str:
    parsed = parse_date(value)
    if parsed is None:
        return "" if value is None else str(value)
    if language == "de":
        return f"{parsed.day}.{parsed.month}.{parsed.year}"
    return parsed.strftime("%Y-%m-%d")
