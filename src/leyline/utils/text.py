"""Text helpers for markdown titles, previews and word splitting."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable, List

_HEADING_PREFIX = re.compile(r"^#+\s*")
_WORD = re.compile(r"\w+")


def extract_heading(lines: Iterable[str]) -> str | None:
    """Return the text of the first markdown heading, if any."""
    for line in lines:
        stripped = line.strip()
        if stripped.startswith("#"):
            title = _HEADING_PREFIX.sub("", stripped).strip()
            if title:
                return title
    return None


def title_from_filename(path: str | Path) -> str:
    """Turn ``my-binding-name.md`` into ``My binding name``."""
    stem = Path(path).stem.replace("-", " ").replace("_", " ").strip()
    return stem.capitalize() if stem else "Untitled"


def build_preview(lines: Iterable[str], *, max_chars: int = 200) -> str:
    """Join body text (headings and blank lines skipped) into a short preview.

    Text past ``max_chars`` is cut at the last word boundary and marked with
    an ellipsis.
    """
    preview = ""
    for line in lines:
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        preview += stripped + " "
        if len(preview) >= max_chars:
            break

    if len(preview) > max_chars:
        preview = preview[:max_chars]
        last_space = preview.rfind(" ")
        if last_space > 0:
            preview = preview[:last_space]
        preview += "..."
    return preview.strip()


def split_words(text: str) -> List[str]:
    """Split text into word tokens, keeping their original case."""
    return _WORD.findall(text)
