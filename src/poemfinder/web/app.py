"""FastAPI application exposing the PoemFinder engine."""

from __future__ import annotations

import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any, List

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from poemfinder.errors import EmptyCategory, PoemFinderError, UnsupportedCategory
from poemfinder.models import SearchOptions, SearchResult
from poemfinder.services import Services, build_services

LOGGER = logging.getLogger(__name__)

app = FastAPI(title="PoemFinder API", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

_services: Services | None = None


class SearchPayload(BaseModel):
    query: str
    category: str = "all"
    search_title: bool = True
    search_author: bool = True
    search_content: bool = True
    search_tags: bool = False
    page: int = 1


async def get_services() -> Services:
    global _services
    if _services is None:
        _services = build_services(base_dir=Path.cwd())
    return _services


def _error_status(exc: PoemFinderError) -> int:
    if isinstance(exc, (UnsupportedCategory, EmptyCategory)):
        return 404
    return 502


def _result_dict(result: SearchResult) -> dict[str, Any]:
    highlights = asdict(result.highlights) if result.highlights is not None else None
    return {"poem": result.record.to_dict(), "highlights": highlights}


def _page_response(services: Services, results: List[SearchResult]) -> dict[str, Any]:
    engine = services.engine
    return {
        "results": [_result_dict(result) for result in results],
        "page": engine.current_page,
        "total_results": engine.get_total_results(),
        "total_pages": engine.get_total_pages(),
        "has_more": engine.has_more_pages(),
    }


@app.on_event("startup")
async def startup_event() -> None:
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")


@app.on_event("shutdown")
async def shutdown_event() -> None:
    global _services
    if _services is not None:
        await _services.aclose()
        _services = None


@app.post("/search")
async def search_poems(
    payload: SearchPayload, services: Services = Depends(get_services)
) -> dict[str, Any]:
    if not payload.query.strip():
        raise HTTPException(status_code=400, detail="Empty query")

    options = SearchOptions(
        category=payload.category,
        search_title=payload.search_title,
        search_author=payload.search_author,
        search_content=payload.search_content,
        search_tags=payload.search_tags,
    )
    try:
        results = await services.engine.search(payload.query, options)
    except PoemFinderError as exc:
        LOGGER.error("Search for %r failed: %s", payload.query, exc)
        raise HTTPException(status_code=_error_status(exc), detail=str(exc)) from exc

    if payload.page != 1:
        results = services.engine.get_page(payload.page)
    return _page_response(services, results)


@app.get("/search/page/{page}")
async def search_page(page: int, services: Services = Depends(get_services)) -> dict[str, Any]:
    results = services.engine.get_page(page)
    return _page_response(services, results)


@app.get("/random")
async def random_poem(
    category: str | None = None,
    provider: str | None = None,
    services: Services = Depends(get_services),
) -> dict[str, Any]:
    try:
        if category is not None:
            poem = await services.loader.get_random(category)
        else:
            poem = await services.providers.get_random_poem(provider)
    except PoemFinderError as exc:
        raise HTTPException(status_code=_error_status(exc), detail=str(exc)) from exc
    return {"poem": poem.to_dict()}


@app.get("/categories")
async def list_categories(services: Services = Depends(get_services)) -> dict[str, Any]:
    categories = [
        {
            "key": entry.key,
            "name": entry.name,
            "state": services.loader.state(entry.key).value,
        }
        for entry in services.config.data_source.categories.values()
    ]
    return {"categories": categories}


@app.delete("/cache")
async def clear_cache(
    category: str | None = None, services: Services = Depends(get_services)
) -> dict[str, Any]:
    if category is not None and category not in services.config.data_source.categories:
        raise HTTPException(status_code=404, detail=f"Unknown category: {category}")
    services.loader.invalidate(category)
    services.engine.reset()
    return {"status": "ok", "cleared": category or "all"}
