"""Shared text canonicalization used by every renderer.

Preview, PDF and DOCX all go through these helpers so the same resume reads
the same in each output.
"""

from __future__ import annotations

import re
from datetime import date, datetime

PRESENT_LABEL = "Present"
DATE_SEPARATOR = " – "

_NEWLINES = re.compile(r"[\r\n]+")
_WHITESPACE = re.compile(r"\s+")
_SCHEME = re.compile(r"^[a-z][a-z0-9+.-]*://", re.IGNORECASE)

_PROFILE_BASES = {
    "linkedin": "https://linkedin.com/in/",
    "github": "https://github.com/",
}


def normalize_text(text: str | None) -> str:
    """Collapse newlines and whitespace runs into single spaces and trim."""
    if not text:
        return ""
    text = _NEWLINES.sub(" ", str(text))
    return _WHITESPACE.sub(" ", text).strip()


def format_date_range(start: str | None, end: str | None, is_current: bool = False) -> str:
    """Render ``"{start} – {end}"`` with ``Present`` for ongoing entries.

    Missing values become empty segments; this never raises.
    """
    start_text = normalize_text(start)
    end_text = PRESENT_LABEL if is_current else normalize_text(end)
    return f"{start_text}{DATE_SEPARATOR}{end_text}"


def format_location(*parts: str | None) -> str:
    """Join non-empty location parts with commas."""
    return ", ".join(p for p in (normalize_text(x) for x in parts) if p)


def generate_filename(name: str | None, version: str | None = None, extension: str = "pdf") -> str:
    """Build an export filename: ``{name}[-{version}].{extension}``."""
    base = normalize_text(name) or "Resume"
    suffix = f"-{normalize_text(version)}" if normalize_text(version) else ""
    return f"{base}{suffix}.{extension.lstrip('.')}"


def has_scheme(value: str) -> bool:
    return bool(_SCHEME.match(value))


def profile_url(kind: str, value: str | None) -> str:
    """Expand a bare LinkedIn/GitHub username to its canonical profile URL.

    Values that already carry a scheme are returned unchanged.
    """
    value = normalize_text(value)
    if not value or has_scheme(value):
        return value
    base = _PROFILE_BASES.get(kind)
    if base is None:
        return ensure_url(value)
    return f"{base}{value.lstrip('@')}"


def ensure_url(value: str | None) -> str:
    """Prefix ``https://`` onto bare domains like ``example.com``."""
    value = normalize_text(value)
    if not value or has_scheme(value) or value.startswith("mailto:"):
        return value
    return f"https://{value}"


def format_long_date(value: str | date | None) -> str:
    """Format an ISO date as ``May 1, 2024``; other strings pass through."""
    if not value:
        return ""
    if isinstance(value, date):
        d = value
    else:
        raw = normalize_text(value)
        try:
            d = datetime.fromisoformat(raw[:10]).date()
        except ValueError:
            return raw
    return f"{d:%B} {d.day}, {d.year}"
