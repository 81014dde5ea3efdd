"""In-memory metadata cache behind the discovery commands."""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Iterable, List

from leyline.config import CacheConfig
from leyline.discovery.compression import CompressedText, CompressionStats
from leyline.discovery.fuzzy import closest_terms, relevance
from leyline.discovery.scanner import DocumentScanner
from leyline.discovery.stats import OperationTimer, PerformanceStats
from leyline.errors import CacheError, CacheErrorKind
from leyline.models import Document, SearchResult
from leyline.utils.files import corpus_document_paths
from leyline.utils.text import split_words

LOGGER = logging.getLogger(__name__)

PathDiscoverer = Callable[[], Iterable["str | Path"]]


class WarmState(str, Enum):
    COLD = "cold"
    WARMING = "warming"
    WARM = "warm"


@dataclass(slots=True)
class _CacheEntry:
    document: Document
    compressed: CompressedText | None
    accounted_size: int


class MetadataCache:
    """Bounded, LRU-evicting index of scanned tenets and bindings.

    Every query first checks the corpus for changed files (by modification
    time and size) and rescans only those. Documents live in insertion/access
    order so the least recently used entry is always first in line for
    eviction once ``max_memory_usage`` would be exceeded.
    """

    def __init__(
        self,
        config: CacheConfig | None = None,
        *,
        scanner: DocumentScanner | None = None,
        path_discoverer: PathDiscoverer | None = None,
    ) -> None:
        self.config = config or CacheConfig()
        self.scanner = scanner or DocumentScanner(
            parallel_threshold=self.config.parallel_threshold,
            max_workers=self.config.max_workers,
            preview_length=self.config.preview_length,
            max_front_matter_size=self.config.max_front_matter_size,
        )
        self._path_discoverer = path_discoverer

        self._lock = threading.RLock()
        self._refresh_lock = threading.Lock()

        self._entries: "OrderedDict[str, _CacheEntry]" = OrderedDict()
        self._categories: Dict[str, set[str]] = {}
        self._file_marks: Dict[str, tuple[float, int]] = {}
        self._memory_usage = 0
        self._compression = CompressionStats(enabled=self.config.compression_enabled)

        self._hit_count = 0
        self._miss_count = 0
        self._scan_count = 0
        self._queries = 0
        self._queries_from_memory = 0
        self._eviction_count = 0
        self._last_scan_time: float | None = None
        self._timer = OperationTimer()

        self._warm_state = WarmState.COLD
        self._warm_done = threading.Event()
        self._executor: ThreadPoolExecutor | None = None
        self._warm_future: Future[None] | None = None

    @property
    def compression_enabled(self) -> bool:
        return self.config.compression_enabled

    @property
    def memory_usage(self) -> int:
        with self._lock:
            return self._memory_usage

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def categories(self) -> List[str]:
        with self._timer.measure("list_categories"):
            self._ensure_current()
            with self._lock:
                return sorted(self._categories)

    def documents_for_category(self, category: str) -> List[Document]:
        with self._timer.measure("show_category"):
            self._ensure_current()
            with self._lock:
                paths = list(self._categories.get(str(category), ()))
                documents = [self._materialize(self._entries[path]) for path in paths]
                self._touch(paths)
            return sorted(documents, key=lambda doc: (doc.title, doc.path))

    def search(self, query: str | None) -> List[SearchResult]:
        with self._timer.measure("search_content"):
            if query is None or not query.strip():
                return []
            self._ensure_current()
            normalized = query.strip().lower()

            with self._lock:
                snapshot = [self._materialize(entry) for entry in self._entries.values()]

            results: List[SearchResult] = []
            for document in snapshot:
                score, matches = relevance(document, normalized)
                if score > 0:
                    results.append(SearchResult(document=document, score=score, matches=matches))

            with self._lock:
                self._touch(result.document.path for result in results)
            results.sort(key=lambda result: (-result.score, result.document.path))
            return results

    def suggest_corrections(self, query: str | None, limit: int = 5) -> List[str]:
        """Title words close to ``query``, for "did you mean" hints."""
        if not query or not query.strip():
            return []
        self._ensure_current()
        with self._lock:
            vocabulary = [
                word for entry in self._entries.values() for word in split_words(entry.document.title)
            ]
        return closest_terms(query, vocabulary, limit=limit)

    def get_document(self, doc_id: str, category: str | None = None) -> Document:
        """Look up a document by id.

        Ids are only unique within a category, so ``category`` narrows the
        lookup; otherwise the match with the lowest path wins.
        """
        with self._timer.measure("show_document"):
            self._ensure_current()
            with self._lock:
                candidates = sorted(
                    path
                    for path, entry in self._entries.items()
                    if entry.document.id == doc_id and (category is None or entry.document.category == category)
                )
                if candidates:
                    self._touch(candidates[:1])
                    return self._materialize(self._entries[candidates[0]])
                known_ids = [entry.document.id for entry in self._entries.values()]

        suggestions = [f"Did you mean '{candidate}'?" for candidate in closest_terms(doc_id, known_ids, limit=3)]
        suggestions.append("Run 'leyline categories' to list available categories")
        raise CacheError(
            CacheErrorKind.NOT_FOUND,
            f"Document '{doc_id}' not found",
            suggestions=suggestions,
        )

    def performance_stats(self) -> PerformanceStats:
        with self._lock:
            return PerformanceStats(
                hit_count=self._hit_count,
                miss_count=self._miss_count,
                scan_count=self._scan_count,
                document_count=len(self._entries),
                category_count=len(self._categories),
                memory_usage=self._memory_usage,
                compression_stats=replace(self._compression),
                queries=self._queries,
                queries_from_memory=self._queries_from_memory,
                eviction_count=self._eviction_count,
                last_scan_time=self._last_scan_time,
                warm_state=self._warm_state.value,
                operation_metrics=self._timer.snapshot(),
            )

    # ------------------------------------------------------------------
    # Index maintenance
    # ------------------------------------------------------------------

    def cache_document(self, document: Document) -> None:
        """Insert or replace the entry for ``document.path``."""
        with self._lock:
            self._store(document)

    def invalidate(self) -> None:
        """Drop every cached document and reset memory accounting."""
        with self._lock:
            self._entries.clear()
            self._categories.clear()
            self._file_marks.clear()
            self._memory_usage = 0
            self._compression.reset()
            self._last_scan_time = None
            if self._warm_state is WarmState.WARM:
                self._warm_state = WarmState.COLD
                self._warm_done.clear()
        LOGGER.debug("Metadata cache invalidated")

    def discover_document_paths(self) -> List[str]:
        if self._path_discoverer is not None:
            return [str(Path(path)) for path in self._path_discoverer()]

        root = self.config.resolve_docs_root(Path.cwd())
        if not root.is_dir():
            raise CacheError(
                CacheErrorKind.SCAN_FAILURE,
                f"Corpus directory not found: {root}",
                suggestions=[
                    "Sync the standards first so that a docs/ directory exists",
                    "Pass --docs to point at a checked-out corpus",
                ],
            )
        return [str(path) for path in corpus_document_paths(root)]

    # ------------------------------------------------------------------
    # Background warm-up
    # ------------------------------------------------------------------

    def warm_cache_in_background(self) -> bool:
        """Start populating the index on a background thread.

        Returns ``False`` when a warm-up is already running or the cache is
        already warm.
        """
        with self._lock:
            if self._warm_state is not WarmState.COLD:
                return False
            self._warm_state = WarmState.WARMING
            self._warm_done.clear()
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=1, thread_name_prefix="leyline-warmup"
                )
            self._warm_future = self._executor.submit(self._warm)
        return True

    def cache_warm(self) -> bool:
        return self._warm_state is WarmState.WARM

    def wait_until_warm(self, timeout: float | None = None) -> bool:
        """Block until an in-flight warm-up finishes; returns :meth:`cache_warm`."""
        with self._lock:
            state = self._warm_state
        if state is WarmState.WARMING:
            self._warm_done.wait(timeout)
        return self.cache_warm()

    def close(self) -> None:
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=True)

    def _warm(self) -> None:
        start = time.perf_counter()
        try:
            with self._refresh_lock:
                self._refresh()
        except Exception:
            LOGGER.exception("Background cache warm-up failed")
            with self._lock:
                self._warm_state = WarmState.COLD
        else:
            with self._lock:
                self._warm_state = WarmState.WARM
            LOGGER.debug("Cache warmed in %.1f ms", (time.perf_counter() - start) * 1000.0)
        finally:
            self._warm_done.set()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _ensure_current(self) -> None:
        if not self._refresh_lock.acquire(blocking=self._warm_state is not WarmState.WARMING):
            LOGGER.debug("Warm-up in progress, answering from the current index")
            with self._lock:
                self._queries += 1
            return
        try:
            rescanned = self._refresh()
        finally:
            self._refresh_lock.release()

        with self._lock:
            self._queries += 1
            if not rescanned:
                self._queries_from_memory += 1

    def _refresh(self) -> bool:
        """Rescan new or modified files. Caller must hold the refresh lock."""
        paths = self.discover_document_paths()
        current = set(paths)

        changed: List[str] = []
        marks: Dict[str, tuple[float, int]] = {}
        unchanged = 0
        with self._lock:
            known = dict(self._file_marks)
            first_refresh = self._last_scan_time is None
        for path in paths:
            try:
                stat = Path(path).stat()
            except OSError:
                changed.append(path)
                continue
            marks[path] = (stat.st_mtime, stat.st_size)
            if known.get(path) == marks[path]:
                unchanged += 1
            else:
                changed.append(path)
        removed = [path for path in known if path not in current]

        documents = self.scanner.scan_documents(changed) if changed else []
        scanned = {document.path for document in documents}

        with self._lock:
            self._hit_count += unchanged
            self._miss_count += len(changed)

            for path in removed:
                self._file_marks.pop(path, None)
                self._remove_entry(path)
            for path in changed:
                if path in marks:
                    self._file_marks[path] = marks[path]
                else:
                    self._file_marks.pop(path, None)
                if path not in scanned:
                    self._remove_entry(path)
            for document in documents:
                try:
                    self._store(document)
                except CacheError as exc:
                    self._remove_entry(document.path)
                    LOGGER.warning("Skipping %s: %s", document.path, exc.message)

            if not (first_refresh or changed or removed):
                return False

            self._scan_count += 1
            self._last_scan_time = time.time()
            if self._warm_state is WarmState.COLD:
                self._warm_state = WarmState.WARM
                self._warm_done.set()
        LOGGER.debug(
            "Refreshed index: %d rescanned, %d unchanged, %d removed",
            len(changed),
            unchanged,
            len(removed),
        )
        return True

    def _store(self, document: Document) -> None:
        compressed = None
        if self.config.compression_enabled:
            compressed = CompressedText.compress(document.content_preview)
            stored = replace(document, content_preview="", metadata=dict(document.metadata))
            accounted = compressed.compressed_size
        else:
            stored = replace(document, metadata=dict(document.metadata))
            accounted = max(document.size, 0)

        if accounted > self.config.max_memory_usage:
            raise CacheError(
                CacheErrorKind.CAPACITY_EXCEEDED,
                f"Document {document.path} needs {accounted} bytes, "
                f"more than the {self.config.max_memory_usage} byte cache limit",
                suggestions=["Enable compression or raise max_memory_usage"],
            )

        self._remove_entry(document.path)
        self._make_room(accounted)

        self._entries[document.path] = _CacheEntry(stored, compressed, accounted)
        self._memory_usage += accounted
        self._categories.setdefault(stored.category, set()).add(document.path)
        if compressed is not None:
            self._compression.add(compressed)

    def _remove_entry(self, path: str) -> _CacheEntry | None:
        entry = self._entries.pop(path, None)
        if entry is None:
            return None
        self._memory_usage -= entry.accounted_size
        category = entry.document.category
        members = self._categories.get(category)
        if members is not None:
            members.discard(path)
            if not members:
                del self._categories[category]
        if entry.compressed is not None:
            self._compression.remove(entry.compressed)
        return entry

    def _make_room(self, incoming: int) -> None:
        while self._entries and self._memory_usage + incoming > self.config.max_memory_usage:
            oldest = next(iter(self._entries))
            entry = self._remove_entry(oldest)
            self._eviction_count += 1
            LOGGER.debug("Evicted %s (%d bytes)", oldest, entry.accounted_size if entry else 0)

    def _touch(self, paths: Iterable[str]) -> None:
        for path in paths:
            if path in self._entries:
                self._entries.move_to_end(path)

    @staticmethod
    def _materialize(entry: _CacheEntry) -> Document:
        if entry.compressed is not None:
            return replace(
                entry.document,
                content_preview=entry.compressed.decompress(),
                metadata=dict(entry.document.metadata),
            )
        return replace(entry.document, metadata=dict(entry.document.metadata))
