from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from content_research.errors import MissingCredentials, NoMatchFound
from content_research.integrations.http import Fetcher, FetchTarget

logger = logging.getLogger(__name__)

OMDB_API_URL = "https://www.omdbapi.com/"
PROVIDER = "omdb"


def _value(payload: Mapping[str, Any], key: str) -> str | None:
    raw = payload.get(key)
    if not isinstance(raw, str):
        return None
    text = raw.strip()
    if not text or text.upper() == "N/A":
        return None
    return text


@dataclass(frozen=True)
class OmdbTitle:
    """One `?t=` lookup. Every OMDb field is a string; "N/A" is read as missing."""

    title: str | None = None
    year: str | None = None
    rated: str | None = None
    released: str | None = None
    runtime: str | None = None
    genre: str | None = None
    director: str | None = None
    writer: str | None = None
    actors: str | None = None
    plot: str | None = None
    language: str | None = None
    country: str | None = None
    poster: str | None = None
    imdb_rating: str | None = None
    imdb_votes: str | None = None
    imdb_id: str | None = None
    box_office: str | None = None
    total_seasons: str | None = None
    type: str | None = None
    ratings: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> OmdbTitle:
        ratings: dict[str, str] = {}
        for entry in payload.get("Ratings") or []:
            if isinstance(entry, Mapping):
                source = entry.get("Source")
                value = entry.get("Value")
                if isinstance(source, str) and isinstance(value, str) and value.strip().upper() != "N/A":
                    ratings[source] = value.strip()
        return cls(
            title=_value(payload, "Title"),
            year=_value(payload, "Year"),
            rated=_value(payload, "Rated"),
            released=_value(payload, "Released"),
            runtime=_value(payload, "Runtime"),
            genre=_value(payload, "Genre"),
            director=_value(payload, "Director"),
            writer=_value(payload, "Writer"),
            actors=_value(payload, "Actors"),
            plot=_value(payload, "Plot"),
            language=_value(payload, "Language"),
            country=_value(payload, "Country"),
            poster=_value(payload, "Poster"),
            imdb_rating=_value(payload, "imdbRating"),
            imdb_votes=_value(payload, "imdbVotes"),
            imdb_id=_value(payload, "imdbID"),
            box_office=_value(payload, "BoxOffice"),
            total_seasons=_value(payload, "totalSeasons"),
            type=_value(payload, "Type"),
            ratings=ratings,
        )

    def rating(self, source: str) -> str | None:
        return self.ratings.get(source)


class OmdbClient:
    def __init__(self, fetcher: Fetcher, *, api_key: str | None, timeout_seconds: float | None = None) -> None:
        self._fetcher = fetcher
        self._api_key = (api_key or "").strip() or None
        self._timeout_seconds = timeout_seconds

    async def fetch_title(self, title: str, year: int | None = None, *, media_type: str = "movie") -> OmdbTitle:
        if not self._api_key:
            raise MissingCredentials("OMDB_API_KEY is not set.", provider=PROVIDER)

        params: dict[str, Any] = {"apikey": self._api_key, "t": title, "plot": "full", "type": media_type}
        if year:
            params["y"] = year
        outcome = await self._fetcher.fetch(
            FetchTarget.api(OMDB_API_URL, params=params, timeout_seconds=self._timeout_seconds)
        )
        payload = outcome.unwrap().json_object()

        if payload.get("Response") != "True":
            message = payload.get("Error") or "no result"
            raise NoMatchFound(f"OMDb has no {media_type} {title!r}: {message}", provider=PROVIDER)

        logger.debug(f"OMDb {media_type} lookup {title!r} -> {payload.get('imdbID')}")
        return OmdbTitle.from_payload(payload)
