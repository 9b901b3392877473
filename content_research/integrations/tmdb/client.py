from __future__ import annotations

import logging
from typing import Any, Mapping

from content_research.errors import MissingCredentials, NoMatchFound
from content_research.integrations.http import Fetcher, FetchTarget
from content_research.integrations.tmdb.schema import (
    TmdbMovie,
    TmdbSearchHit,
    TmdbSeries,
    TmdbWatchProviders,
)

logger = logging.getLogger(__name__)

TMDB_API_BASE_URL = "https://api.themoviedb.org/3"
PROVIDER = "tmdb"


def _require_api_key(api_key: str | None) -> str:
    resolved = (api_key or "").strip()
    if not resolved:
        raise MissingCredentials("TMDB_API_KEY is not set.", provider=PROVIDER)
    return resolved


class TmdbClient:
    """
    Async TMDb v3 client over a `Fetcher`.

    Methods raise `ProviderError` subclasses; callers wrap them into outcomes.
    """

    def __init__(self, fetcher: Fetcher, *, api_key: str | None, timeout_seconds: float | None = None) -> None:
        self._fetcher = fetcher
        self._api_key = api_key
        self._timeout_seconds = timeout_seconds

    @property
    def enabled(self) -> bool:
        return bool((self._api_key or "").strip())

    async def _request_json(self, path: str, *, params: Mapping[str, Any] | None = None) -> dict[str, Any]:
        api_key = _require_api_key(self._api_key)
        url = f"{TMDB_API_BASE_URL}{path}"
        outcome = await self._fetcher.fetch(
            FetchTarget.api(url, params={"api_key": api_key, **dict(params or {})}, timeout_seconds=self._timeout_seconds)
        )
        payload = outcome.unwrap()
        return payload.json_object()

    async def _search(self, path: str, params: Mapping[str, Any], label: str) -> TmdbSearchHit:
        payload = await self._request_json(path, params=params)
        results = payload.get("results")
        if not isinstance(results, list) or not results:
            raise NoMatchFound(f"TMDb has no {label} matching {params.get('query')!r}.", provider=PROVIDER)
        first = results[0]
        if not isinstance(first, Mapping):
            raise ValueError("TMDb search result is not an object.")
        hit = TmdbSearchHit.from_payload(first)
        logger.debug(f"TMDb {label} search {params.get('query')!r} -> {hit.id}")
        return hit

    async def search_movie(self, title: str, year: int | None = None) -> TmdbSearchHit:
        params: dict[str, Any] = {"query": title}
        if year:
            params["year"] = year
        return await self._search("/search/movie", params, "movie")

    async def search_tv(self, title: str, year: int | None = None) -> TmdbSearchHit:
        params: dict[str, Any] = {"query": title}
        if year:
            params["first_air_date_year"] = year
        return await self._search("/search/tv", params, "series")

    async def fetch_movie(self, movie_id: int, *, language: str = "en-US") -> TmdbMovie:
        payload = await self._request_json(
            f"/movie/{int(movie_id)}",
            params={"language": language, "append_to_response": "credits,videos,release_dates"},
        )
        return TmdbMovie.from_payload(payload)

    async def fetch_tv(self, tv_id: int, *, language: str = "en-US") -> TmdbSeries:
        payload = await self._request_json(
            f"/tv/{int(tv_id)}",
            params={"language": language, "append_to_response": "credits,external_ids,content_ratings"},
        )
        return TmdbSeries.from_payload(payload)

    async def fetch_watch_providers(self, media: str, tmdb_id: int) -> TmdbWatchProviders:
        if media not in ("movie", "tv"):
            raise ValueError(f"Unsupported TMDb media type: {media!r}")
        payload = await self._request_json(f"/{media}/{int(tmdb_id)}/watch/providers")
        return TmdbWatchProviders.from_payload(payload)
