"""Utility helpers for working with corpus files."""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Iterable, Iterator

CORPUS_DIRECTORIES = ("tenets", "bindings/core", "bindings/categories")
SKIPPED_FILENAMES = frozenset({"index.md", "glance.md", "00-index.md"})


def iter_markdown_paths(inputs: Iterable[Path]) -> Iterator[Path]:
    """Yield markdown paths from input paths, descending into directories."""
    for item in inputs:
        if item.is_dir():
            yield from iter_markdown_paths(sorted(child for child in item.rglob("*.md")))
        elif item.is_file() and item.suffix.lower() == ".md":
            if item.name.lower() not in SKIPPED_FILENAMES:
                yield item


def corpus_document_paths(docs_root: Path) -> list[Path]:
    """List tenet and binding files under a checked-out docs directory."""
    roots = [docs_root / sub for sub in CORPUS_DIRECTORIES]
    return list(iter_markdown_paths(root for root in roots if root.is_dir()))


def compute_sha256(data: bytes) -> str:
    """Compute SHA256 hash for file content."""
    return hashlib.sha256(data).hexdigest()
