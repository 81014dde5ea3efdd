"""Markdown document scanning with parallel batches."""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Sequence

from leyline.config import (
    CONTENT_PREVIEW_LENGTH,
    MAX_FRONT_MATTER_SIZE,
    MAX_THREADS,
    PARALLEL_THRESHOLD,
)
from leyline.ingestion.markdown_loader import load_markdown
from leyline.models import Document, DocumentType
from leyline.utils.files import compute_sha256
from leyline.utils.text import build_preview, extract_heading, title_from_filename

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class ScanStatistics:
    files_scanned: int = 0
    parallel_batches: int = 0
    sequential_batches: int = 0
    failed_files: int = 0
    yaml_parse_errors: int = 0
    total_bytes_processed: int = 0
    avg_scan_time: float = 0.0
    _timed_scans: int = 0

    def record_scan_time(self, seconds: float) -> None:
        self._timed_scans += 1
        self.avg_scan_time += (seconds - self.avg_scan_time) / self._timed_scans

    def to_dict(self) -> Dict[str, Any]:
        return {
            "files_scanned": self.files_scanned,
            "parallel_batches": self.parallel_batches,
            "sequential_batches": self.sequential_batches,
            "failed_files": self.failed_files,
            "yaml_parse_errors": self.yaml_parse_errors,
            "total_bytes_processed": self.total_bytes_processed,
            "avg_scan_time": self.avg_scan_time,
        }


def category_from_path(path: str | Path) -> str:
    parts = Path(path).parts
    if "categories" in parts:
        index = parts.index("categories")
        # The last part is the file itself, not a category directory.
        if index + 1 < len(parts) - 1:
            return parts[index + 1]
    if "core" in parts or "tenets" in parts:
        return "core"
    return "unknown"


def document_type_from_path(path: str | Path) -> DocumentType:
    parts = Path(path).parts
    if "tenets" in parts:
        return "tenet"
    if "bindings" in parts:
        return "binding"
    return "unknown"


def _stringify_metadata(front_matter: Mapping[Any, Any]) -> Dict[str, str]:
    return {str(key): "" if value is None else str(value) for key, value in front_matter.items()}


class DocumentScanner:
    """Turns markdown files into :class:`Document` records."""

    def __init__(
        self,
        *,
        parallel_threshold: int = PARALLEL_THRESHOLD,
        max_workers: int = MAX_THREADS,
        preview_length: int = CONTENT_PREVIEW_LENGTH,
        max_front_matter_size: int = MAX_FRONT_MATTER_SIZE,
    ) -> None:
        self.parallel_threshold = parallel_threshold
        self.max_workers = max_workers
        self.preview_length = preview_length
        self.max_front_matter_size = max_front_matter_size
        self._stats = ScanStatistics()
        self._stats_lock = threading.Lock()

    def scan_document(self, path: str | Path) -> Document | None:
        """Scan one file; returns ``None`` when it is missing or unreadable."""
        with self._stats_lock:
            self._stats.files_scanned += 1
        return self._scan_one(Path(path))

    def scan_documents(self, paths: Sequence[str | Path]) -> List[Document]:
        """Scan a batch of files, in parallel once the batch is large enough.

        Result order only follows input order for sequential batches.
        """
        file_paths = [Path(path) for path in paths]
        parallel = len(file_paths) >= self.parallel_threshold

        with self._stats_lock:
            self._stats.files_scanned += len(file_paths)
            if parallel:
                self._stats.parallel_batches += 1
            else:
                self._stats.sequential_batches += 1

        if not parallel:
            results = (self._scan_one(path) for path in file_paths)
            return [document for document in results if document is not None]

        documents: List[Document] = []
        workers = min(self.max_workers, len(file_paths))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="leyline-scanner") as pool:
            futures = [pool.submit(self._scan_one, path) for path in file_paths]
            for future in as_completed(futures):
                document = future.result()
                if document is not None:
                    documents.append(document)
        LOGGER.debug("Scanned %d/%d files with %d workers", len(documents), len(file_paths), workers)
        return documents

    def scan_statistics(self) -> ScanStatistics:
        with self._stats_lock:
            return replace(self._stats)

    def reset_statistics(self) -> None:
        with self._stats_lock:
            self._stats = ScanStatistics()

    def _scan_one(self, path: Path) -> Document | None:
        start = time.perf_counter()
        try:
            if not path.is_file():
                raise FileNotFoundError(f"No such file: {path}")
            raw, parsed = load_markdown(path, max_front_matter_size=self.max_front_matter_size)
            modified_time = path.stat().st_mtime
        except (OSError, ValueError) as exc:
            LOGGER.warning("Document scan error for %s: %s", path, exc)
            with self._stats_lock:
                self._stats.failed_files += 1
            return None

        front_matter = parsed.front_matter
        body_lines = parsed.body.splitlines()
        title = (
            extract_heading(body_lines)
            or (str(front_matter["title"]) if front_matter.get("title") else None)
            or title_from_filename(path)
        )
        doc_id = front_matter.get("id")

        document = Document(
            id=str(doc_id) if doc_id else path.stem,
            title=title,
            path=str(path),
            category=category_from_path(path),
            type=document_type_from_path(path),
            metadata=_stringify_metadata(front_matter),
            content_preview=build_preview(body_lines, max_chars=self.preview_length),
            content_hash=compute_sha256(raw),
            size=len(raw),
            modified_time=modified_time,
            scan_time=time.time(),
        )

        with self._stats_lock:
            self._stats.total_bytes_processed += len(raw)
            if parsed.front_matter_error is not None:
                self._stats.yaml_parse_errors += 1
            self._stats.record_scan_time(time.perf_counter() - start)
        return document
