from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from content_research.integrations.justwatch import search_offers
from content_research.integrations.omdb import OmdbTitle
from content_research.integrations.platform_search import PlatformLookup
from content_research.integrations.tmdb.schema import TmdbSeries, poster_url
from content_research.integrations.tmdb.watch_page import fetch_watch_page_links
from content_research.models.availability import AvailabilitySet
from content_research.models.outcomes import payload_or_none
from content_research.models.records import (
    CastCredit,
    Company,
    Image,
    Network,
    Person,
    Score,
    SeriesRatings,
    SeriesRecord,
    SeriesReferences,
)
from content_research.models.requests import SeriesRequest
from content_research.research.availability import AvailabilityAggregator, ListedProvider, listed_providers
from content_research.research.context import ResearchContext, ResearchReport, shared
from content_research.research.merge import (
    REQUEST_SOURCE,
    merge_fields,
    parse_float,
    parse_int,
    parse_year,
    slugify,
    split_list,
)
from content_research.research.outcomes import exhausted, settle

logger = logging.getLogger(__name__)

# Series availability is researched for one region only.
SERIES_REGION = "US"
CAST_LIMIT = 20


@dataclass(frozen=True)
class SeriesFields:
    year: int | None = None
    genres: list[str] = field(default_factory=list)
    language: list[str] = field(default_factory=list)
    country: list[str] = field(default_factory=list)
    creators: list[Person] = field(default_factory=list)
    cast: list[CastCredit] = field(default_factory=list)
    companies: list[Company] = field(default_factory=list)
    networks: list[Network] = field(default_factory=list)
    runtime: list[int] = field(default_factory=list)
    rated: str | None = None
    released: str | None = None
    plot: str | None = None
    series_type: str | None = None
    seasons: int | None = None
    episodes: int | None = None
    status: str | None = None
    poster: Image | None = None
    imdb: Score | None = None
    rotten_tomatoes: Score | None = None
    metacritic: Score | None = None
    tmdb: Score | None = None
    tmdb_id: str | None = None
    imdb_id: str | None = None


PRECEDENCE: Mapping[str, tuple[str, ...]] = {
    "year": (REQUEST_SOURCE, "tmdb", "omdb"),
    "genres": ("tmdb", "omdb"),
    "language": ("tmdb", "omdb"),
    "country": ("tmdb", "omdb"),
    "creators": ("tmdb", "omdb"),
    "cast": ("tmdb", "omdb"),
    "companies": ("tmdb",),
    "networks": ("tmdb",),
    "runtime": ("tmdb", "omdb"),
    "rated": ("tmdb", "omdb"),
    "released": ("tmdb", "omdb"),
    "plot": ("tmdb", "omdb"),
    "series_type": ("tmdb",),
    "seasons": ("tmdb", "omdb"),
    "episodes": ("tmdb",),
    "status": ("tmdb",),
    "poster": ("tmdb",),
    "imdb": ("omdb",),
    "rotten_tomatoes": ("omdb",),
    "metacritic": ("omdb",),
    "tmdb": ("tmdb",),
    "tmdb_id": ("tmdb",),
    "imdb_id": ("tmdb", "omdb"),
}


def from_tmdb(series: TmdbSeries) -> SeriesFields:
    poster = poster_url(series.poster_path)
    return SeriesFields(
        year=parse_year(series.first_air_date),
        genres=list(series.genres),
        language=list(series.spoken_languages),
        country=list(series.production_countries),
        creators=[Person(name=c.name, tmdb_id=str(c.id) if c.id is not None else None) for c in series.created_by],
        cast=[
            CastCredit(
                person=Person(name=c.name, tmdb_id=str(c.id) if c.id is not None else None),
                character=c.character or "",
            )
            for c in series.cast[:CAST_LIMIT]
        ],
        companies=[
            Company(name=c.name, tmdb_id=str(c.id) if c.id is not None else None) for c in series.production_companies
        ],
        networks=[
            Network(name=n.name, id=n.id, logo_path=n.logo_path, origin_country=n.origin_country)
            for n in series.networks
        ],
        runtime=list(series.episode_run_time),
        rated=series.content_rating,
        released=series.first_air_date,
        plot=series.overview,
        series_type=series.type,
        seasons=series.number_of_seasons,
        episodes=series.number_of_episodes,
        status=series.status,
        poster=Image(url=poster, public_id=series.poster_path) if poster and series.poster_path else None,
        tmdb=Score(score=series.vote_average, votes=series.vote_count) if series.vote_average else None,
        tmdb_id=str(series.id),
        imdb_id=series.imdb_id,
    )


def from_omdb(title: OmdbTitle) -> SeriesFields:
    runtime = parse_int(title.runtime)
    imdb_score = parse_float(title.imdb_rating)
    rotten = parse_int(title.rating("Rotten Tomatoes"))
    metacritic = parse_int(title.rating("Metacritic"))
    return SeriesFields(
        year=parse_year(title.year),
        genres=split_list(title.genre),
        language=split_list(title.language),
        country=split_list(title.country),
        creators=[Person(name=name) for name in split_list(title.writer)],
        cast=[CastCredit(person=Person(name=name)) for name in split_list(title.actors)],
        runtime=[runtime] if runtime else [],
        rated=title.rated,
        released=title.released,
        plot=title.plot,
        seasons=parse_int(title.total_seasons),
        imdb=Score(score=imdb_score, votes=parse_int(title.imdb_votes)) if imdb_score is not None else None,
        rotten_tomatoes=Score(score=rotten) if rotten is not None else None,
        metacritic=Score(score=metacritic) if metacritic is not None else None,
        imdb_id=title.imdb_id,
    )


def from_request(request: SeriesRequest) -> SeriesFields:
    return SeriesFields(
        year=request.year,
        genres=[request.genre] if request.genre else [],
        creators=[Person(name=request.creator)] if request.creator else [],
        networks=[Network(name=request.network)] if request.network else [],
    )


def build_series_record(
    request: SeriesRequest,
    projections: Mapping[str, SeriesFields],
    availability: AvailabilitySet | None = None,
) -> SeriesRecord:
    merged = merge_fields(PRECEDENCE, {**projections, REQUEST_SOURCE: from_request(request)})
    return SeriesRecord(
        title=request.title,
        slug=slugify(request.title),
        year=merged["year"],
        genres=merged["genres"] or [],
        language=merged["language"] or [],
        country=merged["country"] or [],
        creators=merged["creators"] or [],
        cast=merged["cast"] or [],
        companies=merged["companies"] or [],
        networks=merged["networks"] or [],
        runtime=merged["runtime"] or [],
        rated=merged["rated"],
        released=merged["released"],
        plot=merged["plot"],
        series_type=merged["series_type"],
        seasons=merged["seasons"],
        episodes=merged["episodes"],
        status=merged["status"],
        poster=merged["poster"],
        ratings=SeriesRatings(
            imdb=merged["imdb"],
            rotten_tomatoes=merged["rotten_tomatoes"],
            metacritic=merged["metacritic"],
            tmdb=merged["tmdb"],
        ),
        available_on=availability or AvailabilitySet(),
        references=SeriesReferences(tmdb_id=merged["tmdb_id"], imdb_id=merged["imdb_id"]),
    )


async def research_series(request: SeriesRequest, context: ResearchContext) -> ResearchReport[SeriesRecord]:
    tmdb = context.tmdb()
    search = shared(tmdb.search_tv(request.title, request.year))

    async def tmdb_details() -> TmdbSeries:
        hit = await search
        return await tmdb.fetch_tv(hit.id)

    async def availability() -> AvailabilitySet:
        hit = await search

        async def listing() -> list[ListedProvider]:
            providers = await tmdb.fetch_watch_providers("tv", hit.id)
            return listed_providers(providers.for_region(SERIES_REGION))

        aggregator = AvailabilityAggregator(
            PlatformLookup(context.scraper, title=request.title, year=request.year, media="tv", sleep=context.sleep)
        )
        return await aggregator.aggregate(
            listing(),
            {
                "tmdb_watch_page": fetch_watch_page_links(context.scraper, "tv", hit.id, SERIES_REGION),
                "justwatch": search_offers(
                    context.scraper, request.title, region=SERIES_REGION, year=request.year, content_type="show"
                ),
            },
        )

    logger.info(f"Researching series {request.title!r}")
    outcomes = await settle(
        {
            "tmdb": tmdb_details(),
            "omdb": context.omdb().fetch_title(request.title, request.year, media_type="series"),
            "availability": availability(),
        }
    )

    projections: dict[str, Any] = {}
    tmdb_series = payload_or_none(outcomes["tmdb"])
    if tmdb_series is not None:
        projections["tmdb"] = from_tmdb(tmdb_series)
    omdb_title = payload_or_none(outcomes["omdb"])
    if omdb_title is not None:
        projections["omdb"] = from_omdb(omdb_title)

    record = build_series_record(request, projections, payload_or_none(outcomes["availability"]))
    failed = exhausted("series", outcomes)
    if failed is not None:
        logger.warning(str(failed))
    return ResearchReport(kind="series", record=record, outcomes=outcomes, exhausted=failed)
