"""Core Leyline data models."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Literal

DocumentType = Literal["tenet", "binding", "unknown"]


@dataclass(slots=True)
class Document:
    """Metadata extracted from a single tenet or binding file."""

    id: str
    title: str
    path: str
    category: str
    type: DocumentType
    metadata: Dict[str, str] = field(default_factory=dict)
    content_preview: str = ""
    content_hash: str = ""
    size: int = 0
    modified_time: float | None = None
    scan_time: float | None = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class SearchResult:
    """Ranked search hit."""

    document: Document
    score: float
    matches: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "document": self.document.to_dict(),
            "score": self.score,
            "matches": list(self.matches),
        }
