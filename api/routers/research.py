"""
Research endpoints: one POST per entity type, plus a GET describing each endpoint.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from api.deps import Engine
from content_research.models.records import to_json_dict
from content_research.models.requests import (
    BookRequest,
    MovieRequest,
    MusicRequest,
    ResearchRequest,
    SeriesRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/research", tags=["research"])


# --- Pydantic models ---


class MovieBody(BaseModel):
    title: str = Field(min_length=1)
    year: int
    director: str | None = None
    cast: list[str] = []
    genre: str | None = None

    def to_request(self) -> MovieRequest:
        return MovieRequest(
            title=self.title.strip(),
            year=self.year,
            director=self.director,
            cast=tuple(self.cast),
            genre=self.genre,
        )


class SeriesBody(BaseModel):
    title: str = Field(min_length=1)
    year: int | None = None
    creator: str | None = None
    network: str | None = None
    genre: str | None = None

    def to_request(self) -> SeriesRequest:
        return SeriesRequest(
            title=self.title.strip(),
            year=self.year,
            creator=self.creator,
            network=self.network,
            genre=self.genre,
        )


class MusicBody(BaseModel):
    title: str = Field(min_length=1)
    artist: str = Field(min_length=1)
    year: int | None = None
    album: str | None = None
    genre: str | None = None

    def to_request(self) -> MusicRequest:
        return MusicRequest(
            title=self.title.strip(),
            artist=self.artist.strip(),
            year=self.year,
            album=self.album,
            genre=self.genre,
        )


class BookBody(BaseModel):
    title: str = Field(min_length=1)
    author: str | None = None
    year: int | None = None
    isbn: str | None = None
    genre: str | None = None

    def to_request(self) -> BookRequest:
        return BookRequest(
            title=self.title.strip(),
            author=self.author,
            year=self.year,
            isbn=self.isbn,
            genre=self.genre,
        )


ENDPOINTS: dict[str, dict[str, Any]] = {
    "movie": {
        "endpoint": "Movie Research API",
        "description": "POST endpoint for researching movie data including regional streaming availability",
        "requiredFields": ["title", "year"],
        "optionalFields": ["director", "cast", "genre"],
        "example": {"title": "The Matrix", "year": 1999, "director": "The Wachowskis", "genre": "Sci-Fi"},
    },
    "series": {
        "endpoint": "Series Research API",
        "description": "POST endpoint for researching TV series data including streaming availability",
        "requiredFields": ["title"],
        "optionalFields": ["year", "creator", "network", "genre"],
        "example": {"title": "Breaking Bad", "year": 2008, "creator": "Vince Gilligan", "network": "AMC"},
    },
    "music": {
        "endpoint": "Music Research API",
        "description": "POST endpoint for researching music data including streaming availability",
        "requiredFields": ["title", "artist"],
        "optionalFields": ["year", "album", "genre"],
        "example": {"title": "Bohemian Rhapsody", "artist": "Queen", "year": 1975, "album": "A Night at the Opera"},
    },
    "book": {
        "endpoint": "Book Research API",
        "description": "POST endpoint for researching book data including purchase/reading availability",
        "requiredFields": ["title"],
        "optionalFields": ["author", "year", "isbn", "genre"],
        "example": {"title": "The Great Gatsby", "author": "F. Scott Fitzgerald", "year": 1925, "isbn": "9780743273565"},
    },
}


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


async def _run(engine: Engine, kind: str, body: MovieBody | SeriesBody | MusicBody | BookBody) -> Any:
    try:
        request: ResearchRequest = body.to_request()
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    try:
        report = await engine.research(request)
    except Exception as exc:  # noqa: BLE001
        logger.exception(f"{kind.capitalize()} research failed for {request.title!r}")
        return JSONResponse(
            status_code=500,
            content={"error": f"Failed to research {kind} data", "message": str(exc) or type(exc).__name__},
        )
    return {
        "success": True,
        "data": to_json_dict(report.record),
        "sources": report.source_statuses(),
        "timestamp": _utc_now(),
    }


# --- Endpoints ---


@router.get("/{kind}")
def describe_endpoint(kind: str) -> dict[str, Any]:
    """Describe one research endpoint: required and optional fields plus an example body."""
    description = ENDPOINTS.get(kind)
    if description is None:
        raise HTTPException(status_code=404, detail=f"Unknown research type: {kind}")
    return description


@router.post("/movie")
async def research_movie(body: MovieBody, engine: Engine):
    return await _run(engine, "movie", body)


@router.post("/series")
async def research_series(body: SeriesBody, engine: Engine):
    return await _run(engine, "series", body)


@router.post("/music")
async def research_music(body: MusicBody, engine: Engine):
    return await _run(engine, "music", body)


@router.post("/book")
async def research_book(body: BookBody, engine: Engine):
    return await _run(engine, "book", body)
