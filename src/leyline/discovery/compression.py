"""Compressed storage for cached document previews."""

from __future__ import annotations

import zlib
from dataclasses import dataclass
from typing import Any, Dict

COMPRESSION_LEVEL = 6


@dataclass(slots=True, frozen=True)
class CompressedText:
    """zlib-compressed UTF-8 text along with its original byte length."""

    data: bytes
    original_size: int

    @classmethod
    def compress(cls, text: str, *, level: int = COMPRESSION_LEVEL) -> "CompressedText":
        raw = text.encode("utf-8")
        return cls(data=zlib.compress(raw, level), original_size=len(raw))

    @property
    def compressed_size(self) -> int:
        return len(self.data)

    def decompress(self) -> str:
        return zlib.decompress(self.data).decode("utf-8")


@dataclass(slots=True)
class CompressionStats:
    enabled: bool = False
    compressed_documents: int = 0
    original_bytes: int = 0
    compressed_bytes: int = 0

    def add(self, item: CompressedText) -> None:
        self.compressed_documents += 1
        self.original_bytes += item.original_size
        self.compressed_bytes += item.compressed_size

    def remove(self, item: CompressedText) -> None:
        self.compressed_documents -= 1
        self.original_bytes -= item.original_size
        self.compressed_bytes -= item.compressed_size

    def reset(self) -> None:
        self.compressed_documents = 0
        self.original_bytes = 0
        self.compressed_bytes = 0

    @property
    def compression_ratio(self) -> float:
        """Compressed bytes over original bytes; lower is better."""
        if self.original_bytes <= 0:
            return 1.0
        return self.compressed_bytes / self.original_bytes

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "compression_ratio": self.compression_ratio,
            "compressed_documents": self.compressed_documents,
            "original_bytes": self.original_bytes,
            "compressed_bytes": self.compressed_bytes,
        }
