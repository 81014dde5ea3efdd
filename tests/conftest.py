"""Shared fixtures: a small tenet/binding corpus on disk."""

from __future__ import annotations

from pathlib import Path

import pytest

CORPUS = {
    "tenets/simplicity.md": (
        "---\nid: simplicity\nlast_modified: '2025-01-01'\n---\n\n"
        "# Tenet: Simplicity Above All\n\n"
        "Prefer the simplest design that solves the problem at hand.\n"
    ),
    "tenets/testability.md": (
        "---\nid: testability\n---\n\n"
        "# Tenet: Design for Testability\n\n"
        "Structure code so that it can be verified automatically.\n"
    ),
    "bindings/core/api-design.md": (
        "---\nid: api-design\nderived_from: simplicity\nenforced_by: code review\n---\n\n"
        "# Binding: API Design Contracts\n\n"
        "Define explicit contracts for every public interface.\n"
    ),
    "bindings/categories/typescript/no-any.md": (
        "---\nid: no-any\nderived_from: simplicity\n---\n\n"
        "# Binding: Avoid the Any Type\n\n"
        "Never use the any type in TypeScript code.\n"
    ),
    "bindings/categories/go/error-wrapping.md": (
        "---\nid: error-wrapping\n---\n\n"
        "# Binding: Error Wrapping\n\n"
        "Wrap errors with context before returning them.\n"
    ),
    "bindings/categories/go/00-index.md": "# Go bindings index\n",
}


def write_corpus(root: Path, files: dict[str, str] = CORPUS) -> Path:
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def docs_root(tmp_path: Path) -> Path:
    """A docs/ directory laid out the way a synced corpus is."""
    return write_corpus(tmp_path / "docs")
