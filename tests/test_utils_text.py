"""Tests for text utility functions."""

from __future__ import annotations

from pathlib import Path

from leyline.utils.text import build_preview, extract_heading, split_words, title_from_filename


class TestExtractHeading:
    """Test extract_heading function."""

    def test_first_heading(self) -> None:
        lines = ["", "Intro text", "# Main Title", "## Sub"]
        assert extract_heading(lines) == "Main Title"

    def test_deeper_heading_levels(self) -> None:
        assert extract_heading(["### Deep Title  "]) == "Deep Title"

    def test_skips_empty_heading(self) -> None:
        assert extract_heading(["#", "# Real"]) == "Real"

    def test_no_heading(self) -> None:
        assert extract_heading(["plain", "text"]) is None


class TestTitleFromFilename:
    """Test title_from_filename function."""

    def test_normalizes_dashes(self) -> None:
        assert title_from_filename("docs/bindings/core/api-design-first.md") == "Api design first"

    def test_underscores_and_path_objects(self) -> None:
        assert title_from_filename(Path("tenets/no_secret_suppression.md")) == "No secret suppression"

    def test_empty_name(self) -> None:
        assert title_from_filename("") == "Untitled"


class TestBuildPreview:
    """Test build_preview function."""

    def test_joins_body_lines(self) -> None:
        lines = ["# Title", "", "First line.", "Second line."]
        assert build_preview(lines) == "First line. Second line."

    def test_truncates_at_word_boundary(self) -> None:
        lines = ["word " * 100]

        preview = build_preview(lines, max_chars=50)

        assert preview.endswith("...")
        assert len(preview) <= 53
        assert "wor..." not in preview

    def test_empty_body(self) -> None:
        assert build_preview([]) == ""


class TestSplitWords:
    """Test split_words function."""

    def test_keeps_case(self) -> None:
        assert split_words("Testing Best-Practices!") == ["Testing", "Best", "Practices"]
