"""Application configuration defaults."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

MAX_MEMORY_USAGE = 10 * 1024 * 1024
PARALLEL_THRESHOLD = 10
MAX_THREADS = 4
CONTENT_PREVIEW_LENGTH = 200
MAX_FRONT_MATTER_SIZE = 8 * 1024


@dataclass(slots=True)
class CacheConfig:
    docs_root: Path = Path("docs")
    compression_enabled: bool = False
    max_memory_usage: int = MAX_MEMORY_USAGE
    parallel_threshold: int = PARALLEL_THRESHOLD
    max_workers: int = MAX_THREADS
    preview_length: int = CONTENT_PREVIEW_LENGTH
    max_front_matter_size: int = MAX_FRONT_MATTER_SIZE

    def __post_init__(self) -> None:
        self.docs_root = Path(self.docs_root)
        if self.max_memory_usage <= 0:
            raise ValueError("max_memory_usage must be positive")
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")

    def resolve_docs_root(self, base_dir: Path | None = None) -> Path:
        if self.docs_root.is_absolute() or base_dir is None:
            return self.docs_root
        return base_dir / self.docs_root
