"""Errors raised at the discovery cache boundary."""

from __future__ import annotations

from enum import Enum
from typing import Sequence


class CacheErrorKind(str, Enum):
    SCAN_FAILURE = "scan_failure"
    CAPACITY_EXCEEDED = "capacity_exceeded"
    NOT_FOUND = "not_found"


class CacheError(Exception):
    """Failure that prevents the cache from answering a request.

    ``kind`` tells callers which case they are dealing with; ``suggestions``
    lists recovery steps suitable for showing to a user.
    """

    def __init__(
        self,
        kind: CacheErrorKind,
        message: str,
        *,
        suggestions: Sequence[str] = (),
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.suggestions = list(suggestions)

    def __repr__(self) -> str:
        return f"CacheError({self.kind.value!r}, {self.message!r})"
