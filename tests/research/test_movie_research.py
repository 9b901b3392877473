from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

from content_research.config import Settings
from content_research.errors import NetworkError
from content_research.integrations.http import FetchTarget, RawPayload
from content_research.integrations.omdb import OmdbTitle
from content_research.integrations.proxy import ProxyPool, ResilientFetcher
from content_research.integrations.tmdb.schema import TmdbMovie
from content_research.models.availability import OfferKind
from content_research.models.outcomes import Failure, Success
from content_research.models.records import Person, Score, to_json_dict
from content_research.models.requests import MovieRequest
from content_research.research.context import ResearchContext
from content_research.research.movie import build_movie_record, from_omdb, from_request, from_tmdb, research_movie
from content_research.research.regions import PacingPolicy

FIXTURES = Path(__file__).resolve().parents[1] / "fixtures" / "tmdb"

OMDB_MATRIX = {
    "Response": "True",
    "Title": "The Matrix",
    "Year": "1999",
    "Rated": "R",
    "Released": "31 Mar 1999",
    "Runtime": "136 min",
    "Genre": "Action, Sci-Fi",
    "Director": "Lana Wachowski, Lilly Wachowski",
    "Actors": "Keanu Reeves, Laurence Fishburne, Carrie-Anne Moss",
    "imdbRating": "8.7",
    "imdbVotes": "2,100,000",
    "imdbID": "tt0133093",
    "BoxOffice": "$172,076,928",
    "Ratings": [
        {"Source": "Internet Movie Database", "Value": "8.7/10"},
        {"Source": "Rotten Tomatoes", "Value": "83%"},
        {"Source": "Metacritic", "Value": "73/100"},
    ],
}


def _run_async(coro):
    return asyncio.run(coro)


def _load_json(name: str) -> dict[str, Any]:
    return json.loads((FIXTURES / name).read_text())


class RoutedFetcher:
    """Answers by exact URL; anything unrouted fails like an unreachable host."""

    def __init__(self, routes: dict[str, Any]) -> None:
        self.routes = routes
        self.targets: list[FetchTarget] = []

    async def fetch(self, target: FetchTarget, *, proxy: str | None = None):
        self.targets.append(target)
        body = self.routes.get(target.url)
        if body is None:
            return Failure(NetworkError(f"unrouted {target.url}", status_code=404))
        if isinstance(body, (dict, list)):
            return Success(RawPayload(url=target.url, status_code=200, text=json.dumps(body), data=body))
        return Success(RawPayload(url=target.url, status_code=200, text=body))


class RecordingSleep:
    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def _matrix_routes() -> dict[str, Any]:
    return {
        "https://api.themoviedb.org/3/search/movie": {
            "results": [{"id": 603, "title": "The Matrix", "release_date": "1999-03-30"}]
        },
        "https://api.themoviedb.org/3/movie/603": _load_json("movie_details_sample.json"),
        "https://api.themoviedb.org/3/movie/603/watch/providers": _load_json("movie_watch_providers_sample.json"),
        "https://www.omdbapi.com/": OMDB_MATRIX,
        "https://www.themoviedb.org/movie/603/watch?locale=US": (FIXTURES / "movie_watch_page_sample.html").read_text(),
        "https://www.themoviedb.org/movie/603/watch?locale=GB": "<html><body></body></html>",
    }


def test_research_movie_merges_providers_and_regions() -> None:
    fetcher = RoutedFetcher(_matrix_routes())
    pacing_sleep = RecordingSleep()
    lookup_sleep = RecordingSleep()
    context = ResearchContext(
        fetcher=fetcher,
        scraper=ResilientFetcher(fetcher, ProxyPool(), sleep=RecordingSleep()),
        settings=Settings(tmdb_api_key="tmdb-key", omdb_api_key="omdb-key", regions=("US", "GB")),
        pacing=PacingPolicy(interval_seconds=1.0, sleep=pacing_sleep),
        sleep=lookup_sleep,
    )

    report = _run_async(research_movie(MovieRequest(title="The Matrix", year=1999), context))
    record = report.record

    assert report.exhausted is None
    assert report.source_statuses() == {"tmdb": "ok", "omdb": "ok", "availability": "ok"}

    assert record.title == "The Matrix"
    assert record.year == 1999
    assert record.slug == "the-matrix"
    assert record.genres == ["Action", "Science Fiction"]
    assert [p.name for p in record.director] == ["Lana Wachowski", "Lilly Wachowski"]
    assert record.cast[0].person == Person(name="Keanu Reeves", tmdb_id="6384")
    assert record.rated == "R"
    assert record.runtime == 136
    assert record.ratings.imdb == Score(score=8.7, votes=2100000)
    assert record.ratings.rotten_tomatoes == Score(score=83)
    assert record.ratings.metacritic == Score(score=73)
    assert record.box_office is not None
    assert record.box_office.budget == "$63,000,000"
    assert record.box_office.gross_usa == "$172,076,928"
    assert record.box_office.gross_worldwide == "$463,517,383"
    assert record.trailer is not None
    assert record.trailer.url == "https://www.youtube.com/watch?v=vKQi3bBA1y8"
    assert record.references.imdb_id == "tt0133093"
    assert record.references.tmdb_id == "603"

    us = record.available_on.by_region["US"]
    assert [(o.platform, o.url) for o in us.streaming] == [("Netflix", "https://www.netflix.com/title/20557937")]
    assert [(o.platform, o.kind) for o in us.purchase] == [("Apple TV", OfferKind.BUY)]
    assert record.available_on.by_region["GB"].is_empty()
    assert [o.platform for o in record.available_on.streaming] == ["Netflix"]

    assert pacing_sleep.calls == [1.0]
    # Watch providers are fetched once and shared by both regions.
    provider_calls = [t for t in fetcher.targets if t.url.endswith("/watch/providers")]
    assert len(provider_calls) == 1
    search_calls = [t for t in fetcher.targets if t.url.endswith("/search/movie")]
    assert len(search_calls) == 1
    assert search_calls[0].params["year"] == 1999


def test_movie_record_json_shape() -> None:
    fetcher = RoutedFetcher(_matrix_routes())
    context = ResearchContext(
        fetcher=fetcher,
        scraper=ResilientFetcher(fetcher, ProxyPool(), sleep=RecordingSleep()),
        settings=Settings(tmdb_api_key="tmdb-key", omdb_api_key="omdb-key", regions=("US",)),
        pacing=PacingPolicy(interval_seconds=0),
        sleep=RecordingSleep(),
    )

    report = _run_async(research_movie(MovieRequest(title="The Matrix", year=1999), context))
    data = to_json_dict(report.record)

    assert data["boxOffice"]["grossUSA"] == "$172,076,928"
    assert data["availableOn"]["streaming"] == [
        {"platform": "Netflix", "link": "https://www.netflix.com/title/20557937", "type": "subscription"}
    ]
    assert set(data["availableOn"]["byRegion"]) == {"US"}
    assert data["references"] == {"imdbId": "tt0133093", "tmdbId": "603"}


def test_omdb_fills_gaps_when_tmdb_is_missing() -> None:
    request = MovieRequest(title="The Matrix", year=1999, director="The Wachowskis", genre="Sci-Fi")
    omdb = from_omdb(OmdbTitle.from_payload(OMDB_MATRIX))

    record = build_movie_record(request, {"omdb": omdb})

    assert record.genres == ["Action", "Sci-Fi"]
    assert record.runtime == 136
    assert record.released == "31 Mar 1999"
    assert record.references.tmdb_id is None
    assert record.box_office is not None and record.box_office.budget is None


def test_request_fields_are_the_last_fallback() -> None:
    request = MovieRequest(title="The Matrix", year=1999, director="The Wachowskis", cast=("Keanu Reeves",), genre="Sci-Fi")

    record = build_movie_record(request, {})

    assert record.genres == ["Sci-Fi"]
    assert [p.name for p in record.director] == ["The Wachowskis"]
    assert [c.person.name for c in record.cast] == ["Keanu Reeves"]
    assert record.box_office is None
    assert from_request(request).writers == []


def test_tmdb_projection_limits_cast_and_prefers_omdb_rating() -> None:
    payload = _load_json("movie_details_sample.json")
    payload["credits"]["cast"] = [{"id": i, "name": f"Actor {i}", "character": "Agent"} for i in range(30)]
    tmdb = from_tmdb(TmdbMovie.from_payload(payload))
    omdb = from_omdb(OmdbTitle.from_payload({**OMDB_MATRIX, "Rated": "TV-MA"}))

    record = build_movie_record(MovieRequest(title="The Matrix", year=1999), {"tmdb": tmdb, "omdb": omdb})

    assert len(record.cast) == 20
    assert record.rated == "TV-MA"
    assert record.poster is not None
    assert record.poster.url == "https://image.tmdb.org/t/p/w500/f89U3ADr1oiB1s9GkdPOEpXUk5H.jpg"


def test_request_title_and_year_beat_provider_values() -> None:
    details = _load_json("movie_details_sample.json")
    details.update({"title": "Matrix, The", "original_title": "Matrix, The", "release_date": "1998-12-01"})
    routes = _matrix_routes()
    routes["https://api.themoviedb.org/3/search/movie"] = {
        "results": [{"id": 603, "title": "Matrix, The", "release_date": "1998-12-01"}]
    }
    routes["https://api.themoviedb.org/3/movie/603"] = details
    routes["https://www.omdbapi.com/"] = {**OMDB_MATRIX, "Title": "Matrix, The", "Year": "1998"}
    fetcher = RoutedFetcher(routes)
    context = ResearchContext(
        fetcher=fetcher,
        scraper=ResilientFetcher(fetcher, ProxyPool(), sleep=RecordingSleep()),
        settings=Settings(tmdb_api_key="tmdb-key", omdb_api_key="omdb-key", regions=("US",)),
        pacing=PacingPolicy(interval_seconds=0),
        sleep=RecordingSleep(),
    )

    record = _run_async(research_movie(MovieRequest(title="The Matrix", year=1999), context)).record

    assert record.title == "The Matrix"
    assert record.slug == "the-matrix"
    assert record.year == 1999
    # Fields only the providers know still come from them.
    assert record.runtime == 136
    assert record.references.tmdb_id == "603"
    assert record.references.imdb_id == "tt0133093"
    assert record.ratings.imdb == Score(score=8.7, votes=2100000)
