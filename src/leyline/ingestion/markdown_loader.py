"""Markdown loading with YAML front-matter extraction."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

import yaml

from leyline.config import MAX_FRONT_MATTER_SIZE

LOGGER = logging.getLogger(__name__)

FRONT_MATTER_MARKER = "---"


@dataclass(slots=True)
class ParsedMarkdown:
    """Front-matter mapping and body text of one markdown file."""

    front_matter: Dict[str, Any] = field(default_factory=dict)
    body: str = ""
    front_matter_error: str | None = None


def split_front_matter(content: str) -> tuple[str | None, str]:
    """Split ``content`` into its raw front-matter block and the body.

    Returns ``(None, content)`` when the file has no closed front-matter block.
    """
    lines = content.splitlines(keepends=True)
    if not lines or lines[0].strip() != FRONT_MATTER_MARKER:
        return None, content

    for index in range(1, len(lines)):
        if lines[index].strip() == FRONT_MATTER_MARKER:
            return "".join(lines[1:index]), "".join(lines[index + 1 :])
    return None, content


def parse_markdown(
    content: str, *, max_front_matter_size: int = MAX_FRONT_MATTER_SIZE
) -> ParsedMarkdown:
    """Parse markdown text, degrading to empty metadata on bad front-matter."""
    raw, body = split_front_matter(content)
    if raw is None:
        return ParsedMarkdown(body=body)

    if len(raw.encode("utf-8")) > max_front_matter_size:
        LOGGER.warning("Front-matter too large (%d bytes), ignoring it", len(raw.encode("utf-8")))
        return ParsedMarkdown(body=body, front_matter_error="front-matter too large")

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        LOGGER.warning("YAML parse error: %s", exc)
        return ParsedMarkdown(body=body, front_matter_error=str(exc))

    if data is None:
        return ParsedMarkdown(body=body)
    if not isinstance(data, dict):
        return ParsedMarkdown(body=body, front_matter_error="front-matter is not a mapping")
    return ParsedMarkdown(front_matter=data, body=body)


def load_markdown(
    path: Path, *, max_front_matter_size: int = MAX_FRONT_MATTER_SIZE
) -> tuple[bytes, ParsedMarkdown]:
    """Read a markdown file and return its raw bytes plus parsed parts."""
    raw = path.read_bytes()
    text = raw.decode("utf-8", errors="replace")
    return raw, parse_markdown(text, max_front_matter_size=max_front_matter_size)
