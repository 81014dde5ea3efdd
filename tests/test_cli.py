"""Tests for CLI commands."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from leyline.cli import _normalize_score, _setup_logging, app
from leyline.web.app import app as web_app


runner = CliRunner()


@pytest.fixture(autouse=True)
def _reset_web_state():
    yield
    if hasattr(web_app.state, "docs_root"):
        del web_app.state.docs_root


class TestSetupLogging:
    """Tests for _setup_logging helper."""

    def test_setup_logging_verbose(self) -> None:
        """Verbose mode sets DEBUG level."""
        with patch("leyline.cli.logging.basicConfig") as mock_config:
            _setup_logging(verbose=True)
            mock_config.assert_called_once()
            assert mock_config.call_args[1]["level"] == logging.DEBUG

    def test_setup_logging_normal(self) -> None:
        """Normal mode sets INFO level."""
        with patch("leyline.cli.logging.basicConfig") as mock_config:
            _setup_logging(verbose=False)
            mock_config.assert_called_once()
            assert mock_config.call_args[1]["level"] == logging.INFO


class TestNormalizeScore:
    """Tests for _normalize_score helper."""

    def test_scales_into_unit_interval(self) -> None:
        assert _normalize_score(100.0) == 0.5
        assert _normalize_score(0.0) == 0.0

    def test_caps_at_one(self) -> None:
        assert _normalize_score(185.0) <= 1.0
        assert _normalize_score(500.0) == 1.0


class TestCategoriesCommand:
    """Tests for the categories command."""

    def test_lists_categories(self, docs_root: Path) -> None:
        result = runner.invoke(app, ["categories", "--docs", str(docs_root)])

        assert result.exit_code == 0
        for name in ("core", "go", "typescript"):
            assert name in result.stdout

    def test_json_output(self, docs_root: Path) -> None:
        result = runner.invoke(app, ["categories", "--docs", str(docs_root), "--json"])

        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert payload["categories"] == [
            {"name": "core", "documents": 3},
            {"name": "go", "documents": 1},
            {"name": "typescript", "documents": 1},
        ]
        assert "stats" not in payload

    def test_json_with_stats(self, docs_root: Path) -> None:
        result = runner.invoke(app, ["categories", "--docs", str(docs_root), "--json", "--stats"])

        assert result.exit_code == 0
        stats = json.loads(result.stdout)["stats"]
        assert stats["document_count"] == 5
        assert stats["scan_count"] == 1
        assert 0.0 <= stats["hit_ratio"] <= 1.0

    def test_stats_table(self, docs_root: Path) -> None:
        result = runner.invoke(app, ["categories", "--docs", str(docs_root), "--stats"])

        assert result.exit_code == 0
        assert "Cache statistics" in result.stdout
        assert "Memory usage" in result.stdout

    def test_compressed_stats_table(self, docs_root: Path) -> None:
        result = runner.invoke(app, ["categories", "--docs", str(docs_root), "--stats", "--compress"])

        assert result.exit_code == 0
        assert "Compression" in result.stdout

    def test_empty_corpus(self, tmp_path: Path) -> None:
        """An existing but empty docs directory is not an error."""
        docs = tmp_path / "docs"
        docs.mkdir()

        result = runner.invoke(app, ["categories", "--docs", str(docs)])

        assert result.exit_code == 0
        assert "No categories found" in result.stdout

    def test_missing_docs_directory(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["categories", "--docs", str(tmp_path / "missing")])

        assert result.exit_code == 1
        assert "Error:" in result.stdout
        assert "Suggestions:" in result.stdout


class TestShowCommand:
    """Tests for the show command."""

    def test_shows_documents(self, docs_root: Path) -> None:
        result = runner.invoke(app, ["show", "core", "--docs", str(docs_root)])

        assert result.exit_code == 0
        assert "api-design" in result.stdout
        assert "simplicity" in result.stdout

    def test_json_output(self, docs_root: Path) -> None:
        result = runner.invoke(app, ["show", "typescript", "--docs", str(docs_root), "--json"])

        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert payload["category"] == "typescript"
        (document,) = payload["documents"]
        assert document["id"] == "no-any"
        assert document["metadata"]["derived_from"] == "simplicity"

    def test_unknown_category(self, docs_root: Path) -> None:
        result = runner.invoke(app, ["show", "cobol", "--docs", str(docs_root)])

        assert result.exit_code == 0
        assert "No documents found in category 'cobol'" in result.stdout
        assert "Available categories: core, go, typescript" in result.stdout


class TestSearchCommand:
    """Tests for the search command."""

    def test_search_with_results(self, docs_root: Path) -> None:
        result = runner.invoke(app, ["search", "simplicity", "--docs", str(docs_root)])

        assert result.exit_code == 0
        assert "Tenet: Simplicity Above All" in result.stdout

    def test_search_json(self, docs_root: Path) -> None:
        result = runner.invoke(app, ["search", "binding", "--docs", str(docs_root), "--json", "--limit", "2"])

        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert payload["query"] == "binding"
        assert payload["total_results"] == 3
        assert payload["shown_results"] == 2
        assert payload["limit"] == 2
        assert all(0.0 < item["score"] <= 1.0 for item in payload["results"])
        assert payload["suggestions"] == []

    def test_search_json_with_stats(self, docs_root: Path) -> None:
        result = runner.invoke(app, ["search", "design", "--docs", str(docs_root), "--json", "--stats"])

        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert "operation_metrics" in payload["stats"]

    def test_search_fuzzy(self, docs_root: Path) -> None:
        result = runner.invoke(app, ["search", "Simplicty", "--docs", str(docs_root), "--json"])

        payload = json.loads(result.stdout)
        assert payload["results"][0]["id"] == "simplicity"

    def test_limit_hint(self, docs_root: Path) -> None:
        result = runner.invoke(app, ["search", "binding", "--docs", str(docs_root), "--limit", "1"])

        assert result.exit_code == 0
        assert "Use --limit 3 to see all results" in result.stdout

    def test_search_no_results(self, docs_root: Path) -> None:
        result = runner.invoke(app, ["search", "qqqqqq", "--docs", str(docs_root)])

        assert result.exit_code == 0
        assert "No results found for 'qqqqqq'" in result.stdout

    def test_did_you_mean(self, docs_root: Path) -> None:
        """Suggestions are printed when nothing matches."""
        with patch(
            "leyline.cli.MetadataCache.suggest_corrections", return_value=["Wrapping"]
        ) as mock_suggest:
            result = runner.invoke(app, ["search", "qqqqqq", "--docs", str(docs_root)])

        assert result.exit_code == 0
        mock_suggest.assert_called_once_with("qqqqqq")
        assert "Did you mean:" in result.stdout
        assert "Wrapping" in result.stdout

    def test_empty_query(self, docs_root: Path) -> None:
        result = runner.invoke(app, ["search", "   ", "--docs", str(docs_root)])

        assert result.exit_code != 0

    def test_invalid_limit(self, docs_root: Path) -> None:
        result = runner.invoke(app, ["search", "design", "--docs", str(docs_root), "--limit", "0"])

        assert result.exit_code != 0

    def test_missing_docs_directory(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["search", "design", "--docs", str(tmp_path / "missing")])

        assert result.exit_code == 1
        assert "Error:" in result.stdout


class TestWebCommand:
    """Tests for the web command."""

    def test_web_starts_server(self, docs_root: Path) -> None:
        """Starts uvicorn server with correct parameters."""
        with patch("uvicorn.run") as mock_uvicorn_run:
            result = runner.invoke(
                app, ["web", "--host", "0.0.0.0", "--port", "9000", "--docs", str(docs_root)]
            )
            assert result.exit_code == 0
            mock_uvicorn_run.assert_called_once()
            call_kwargs = mock_uvicorn_run.call_args[1]
            assert call_kwargs["host"] == "0.0.0.0"
            assert call_kwargs["port"] == 9000
        assert web_app.state.docs_root == docs_root

    def test_web_warns_missing_docs(self, tmp_path: Path) -> None:
        """Shows warning when the docs directory doesn't exist."""
        with patch("uvicorn.run"):
            result = runner.invoke(app, ["web", "--docs", str(tmp_path / "missing")])
            assert result.exit_code == 0
            assert "docs directory not found" in result.stdout.lower()
