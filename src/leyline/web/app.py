"""FastAPI application exposing the discovery cache over HTTP."""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from pathlib import Path
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from leyline.config import CacheConfig
from leyline.discovery.cache import MetadataCache
from leyline.errors import CacheError, CacheErrorKind

LOGGER = logging.getLogger(__name__)

app = FastAPI(title="Leyline Discovery", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

MAX_CACHED_ROOTS = 8

_CACHES: "OrderedDict[Path, MetadataCache]" = OrderedDict()
_CACHES_LOCK = threading.Lock()

_STATUS_BY_KIND = {
    CacheErrorKind.NOT_FOUND: 404,
    CacheErrorKind.SCAN_FAILURE: 404,
    CacheErrorKind.CAPACITY_EXCEEDED: 413,
}


class SearchPayload(BaseModel):
    query: str
    docs: Path | None = None
    limit: int = 10


def _resolve_docs_root(docs: Path | None) -> Path:
    if docs is None:
        docs = getattr(app.state, "docs_root", None)
    config = CacheConfig(docs_root=docs if docs is not None else CacheConfig().docs_root)
    return config.resolve_docs_root(Path.cwd())


def _get_cache(docs: Path | None) -> MetadataCache:
    root = _resolve_docs_root(docs)
    evicted = []
    with _CACHES_LOCK:
        cache = _CACHES.get(root)
        if cache is None:
            cache = MetadataCache(CacheConfig(docs_root=root))
            _CACHES[root] = cache
        _CACHES.move_to_end(root)
        while len(_CACHES) > MAX_CACHED_ROOTS:
            stale_root, stale = _CACHES.popitem(last=False)
            LOGGER.debug("Dropping cache for %s", stale_root)
            evicted.append(stale)
    for stale in evicted:
        stale.close()
    return cache


def _http_error(error: CacheError) -> HTTPException:
    return HTTPException(
        status_code=_STATUS_BY_KIND.get(error.kind, 500),
        detail={"message": error.message, "suggestions": error.suggestions},
    )


@app.on_event("startup")
async def startup_event() -> None:
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")
    _get_cache(None).warm_cache_in_background()


@app.on_event("shutdown")
async def shutdown_event() -> None:
    with _CACHES_LOCK:
        caches = list(_CACHES.values())
        _CACHES.clear()
    for cache in caches:
        cache.close()


@app.get("/categories")
async def list_categories(docs: Path | None = None) -> dict[str, Any]:
    cache = _get_cache(docs)
    try:
        return {"categories": cache.categories()}
    except CacheError as error:
        raise _http_error(error) from error


@app.get("/categories/{category}")
async def show_category(category: str, docs: Path | None = None) -> dict[str, Any]:
    cache = _get_cache(docs)
    try:
        documents = cache.documents_for_category(category)
    except CacheError as error:
        raise _http_error(error) from error
    return {"category": category, "documents": [document.to_dict() for document in documents]}


@app.get("/documents/{doc_id}")
async def show_document(
    doc_id: str, docs: Path | None = None, category: str | None = None
) -> dict[str, Any]:
    cache = _get_cache(docs)
    try:
        document = cache.get_document(doc_id, category)
    except CacheError as error:
        raise _http_error(error) from error
    return {"document": document.to_dict()}


@app.post("/search")
async def search_documents(payload: SearchPayload) -> dict[str, Any]:
    query = payload.query.strip()
    if not query:
        raise HTTPException(status_code=400, detail="Empty query")

    limit = max(1, min(payload.limit, 50))
    cache = _get_cache(payload.docs)
    try:
        results = cache.search(query)
        suggestions = cache.suggest_corrections(query) if not results else []
    except CacheError as error:
        raise _http_error(error) from error

    return {
        "query": query,
        "total_results": len(results),
        "results": [result.to_dict() for result in results[:limit]],
        "suggestions": suggestions,
    }


@app.get("/stats")
async def cache_stats(docs: Path | None = None) -> dict[str, Any]:
    cache = _get_cache(docs)
    return cache.performance_stats().to_dict()
