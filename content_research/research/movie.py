"""
Movie research: TMDb and OMDb metadata plus regional availability, merged into a
`MovieRecord`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from content_research.integrations.justwatch import search_offers
from content_research.integrations.omdb import OmdbTitle
from content_research.integrations.platform_search import PlatformLookup
from content_research.integrations.tmdb.schema import TmdbMovie, TmdbWatchProviders, poster_url
from content_research.integrations.tmdb.watch_page import fetch_watch_page_links
from content_research.models.availability import RegionalAvailability
from content_research.models.outcomes import payload_or_none
from content_research.models.records import (
    BoxOffice,
    CastCredit,
    Company,
    Image,
    MovieRatings,
    MovieRecord,
    MovieReferences,
    Person,
    Score,
    Trailer,
)
from content_research.models.requests import MovieRequest
from content_research.research.availability import AvailabilityAggregator, ListedProvider, listed_providers
from content_research.research.context import ResearchContext, ResearchReport, shared
from content_research.research.merge import (
    REQUEST_SOURCE,
    format_usd,
    merge_fields,
    parse_float,
    parse_int,
    slugify,
    split_list,
)
from content_research.research.outcomes import exhausted, settle
from content_research.research.regions import RegionIterator

logger = logging.getLogger(__name__)

CAST_LIMIT = 20


@dataclass(frozen=True)
class MovieFields:
    genres: list[str] = field(default_factory=list)
    director: list[Person] = field(default_factory=list)
    writers: list[Person] = field(default_factory=list)
    cast: list[CastCredit] = field(default_factory=list)
    language: list[str] = field(default_factory=list)
    country: list[str] = field(default_factory=list)
    companies: list[Company] = field(default_factory=list)
    poster: Image | None = None
    rated: str | None = None
    released: str | None = None
    runtime: int | None = None
    plot: str | None = None
    imdb: Score | None = None
    rotten_tomatoes: Score | None = None
    metacritic: Score | None = None
    budget: str | None = None
    gross_usa: str | None = None
    gross_worldwide: str | None = None
    trailer: Trailer | None = None
    imdb_id: str | None = None
    tmdb_id: str | None = None


PRECEDENCE: Mapping[str, tuple[str, ...]] = {
    "genres": ("tmdb", "omdb"),
    "director": ("tmdb", "omdb"),
    "writers": ("tmdb", "omdb"),
    "cast": ("tmdb", "omdb"),
    "language": ("tmdb", "omdb"),
    "country": ("tmdb", "omdb"),
    "companies": ("tmdb",),
    "poster": ("tmdb",),
    "rated": ("omdb", "tmdb"),
    "released": ("tmdb", "omdb"),
    "runtime": ("tmdb", "omdb"),
    "plot": ("tmdb", "omdb"),
    "imdb": ("omdb",),
    "rotten_tomatoes": ("omdb",),
    "metacritic": ("omdb",),
    "budget": ("tmdb",),
    "gross_usa": ("omdb",),
    "gross_worldwide": ("tmdb",),
    "trailer": ("tmdb",),
    "imdb_id": ("omdb", "tmdb"),
    "tmdb_id": ("tmdb",),
}


def _people(names: list[str]) -> list[Person]:
    return [Person(name=name) for name in names]


def _tmdb_person(credit) -> Person:
    return Person(name=credit.name, tmdb_id=str(credit.id) if credit.id is not None else None)


def from_tmdb(movie: TmdbMovie) -> MovieFields:
    poster = poster_url(movie.poster_path)
    trailer = movie.trailer()
    return MovieFields(
        genres=list(movie.genres),
        director=[_tmdb_person(c) for c in movie.crew_with_jobs("Director")],
        writers=[_tmdb_person(c) for c in movie.crew_with_jobs("Writer", "Screenplay")],
        cast=[CastCredit(person=_tmdb_person(c), character=c.character or "") for c in movie.cast[:CAST_LIMIT]],
        language=list(movie.spoken_languages),
        country=list(movie.production_countries),
        companies=[
            Company(name=c.name, tmdb_id=str(c.id) if c.id is not None else None) for c in movie.production_companies
        ],
        poster=Image(url=poster, public_id=movie.poster_path) if poster and movie.poster_path else None,
        rated=movie.certification,
        released=movie.release_date,
        runtime=movie.runtime,
        plot=movie.overview,
        budget=format_usd(movie.budget),
        gross_worldwide=format_usd(movie.revenue),
        trailer=(
            Trailer(url=f"https://www.youtube.com/watch?v={trailer.key}", language=trailer.language or "en")
            if trailer is not None
            else None
        ),
        imdb_id=movie.imdb_id,
        tmdb_id=str(movie.id),
    )


def _score(value: str | None, *, votes: str | None = None, as_int: bool = False) -> Score | None:
    score = parse_int(value) if as_int else parse_float(value)
    if score is None:
        return None
    return Score(score=score, votes=parse_int(votes))


def from_omdb(title: OmdbTitle) -> MovieFields:
    return MovieFields(
        genres=split_list(title.genre),
        director=_people(split_list(title.director)),
        writers=_people(split_list(title.writer)),
        cast=[CastCredit(person=p) for p in _people(split_list(title.actors))],
        language=split_list(title.language),
        country=split_list(title.country),
        rated=title.rated,
        released=title.released,
        runtime=parse_int(title.runtime),
        plot=title.plot,
        imdb=_score(title.imdb_rating, votes=title.imdb_votes),
        rotten_tomatoes=_score(title.rating("Rotten Tomatoes"), as_int=True),
        metacritic=_score(title.rating("Metacritic"), as_int=True),
        gross_usa=title.box_office,
        imdb_id=title.imdb_id,
    )


def from_request(request: MovieRequest) -> MovieFields:
    return MovieFields(
        genres=[request.genre] if request.genre else [],
        director=[Person(name=request.director)] if request.director else [],
        cast=[CastCredit(person=Person(name=name)) for name in request.cast if name],
    )


def build_movie_record(
    request: MovieRequest,
    projections: Mapping[str, MovieFields],
    availability: RegionalAvailability | None = None,
) -> MovieRecord:
    merged = merge_fields(PRECEDENCE, {**projections, REQUEST_SOURCE: from_request(request)})
    box_office = BoxOffice(
        budget=merged["budget"],
        gross_usa=merged["gross_usa"],
        gross_worldwide=merged["gross_worldwide"],
    )
    return MovieRecord(
        title=request.title,
        year=request.year,
        slug=slugify(request.title),
        genres=merged["genres"] or [],
        director=merged["director"] or [],
        writers=merged["writers"] or [],
        cast=merged["cast"] or [],
        language=merged["language"] or [],
        country=merged["country"] or [],
        companies=merged["companies"] or [],
        poster=merged["poster"],
        rated=merged["rated"],
        released=merged["released"],
        runtime=merged["runtime"],
        plot=merged["plot"],
        ratings=MovieRatings(
            imdb=merged["imdb"],
            rotten_tomatoes=merged["rotten_tomatoes"],
            metacritic=merged["metacritic"],
        ),
        box_office=box_office if any((box_office.budget, box_office.gross_usa, box_office.gross_worldwide)) else None,
        trailer=merged["trailer"],
        available_on=availability or RegionalAvailability(),
        references=MovieReferences(imdb_id=merged["imdb_id"], tmdb_id=merged["tmdb_id"]),
    )


async def _region_listing(providers: TmdbWatchProviders, region: str) -> list[ListedProvider]:
    return listed_providers(providers.for_region(region))


async def research_movie(request: MovieRequest, context: ResearchContext) -> ResearchReport[MovieRecord]:
    tmdb = context.tmdb()
    # One search feeds both the metadata and the availability query.
    search = shared(tmdb.search_movie(request.title, request.year))

    async def tmdb_details() -> TmdbMovie:
        hit = await search
        return await tmdb.fetch_movie(hit.id)

    async def regional_availability() -> RegionalAvailability:
        hit = await search
        providers = await tmdb.fetch_watch_providers("movie", hit.id)
        aggregator = AvailabilityAggregator(
            PlatformLookup(context.scraper, title=request.title, year=request.year, media="movie", sleep=context.sleep)
        )

        async def aggregate(region: str):
            return await aggregator.aggregate(
                _region_listing(providers, region),
                {
                    "tmdb_watch_page": fetch_watch_page_links(context.scraper, "movie", hit.id, region),
                    "justwatch": search_offers(context.scraper, request.title, region=region, year=request.year),
                },
            )

        return await RegionIterator(context.settings.regions, pacing=context.pacing).run(aggregate)

    logger.info(f"Researching movie {request.title!r} ({request.year})")
    outcomes = await settle(
        {
            "tmdb": tmdb_details(),
            "omdb": context.omdb().fetch_title(request.title, request.year, media_type="movie"),
            "availability": regional_availability(),
        }
    )

    projections: dict[str, Any] = {}
    tmdb_movie = payload_or_none(outcomes["tmdb"])
    if tmdb_movie is not None:
        projections["tmdb"] = from_tmdb(tmdb_movie)
    omdb_title = payload_or_none(outcomes["omdb"])
    if omdb_title is not None:
        projections["omdb"] = from_omdb(omdb_title)

    record = build_movie_record(request, projections, payload_or_none(outcomes["availability"]))
    failed = exhausted("movie", outcomes)
    if failed is not None:
        logger.warning(str(failed))
    return ResearchReport(kind="movie", record=record, outcomes=outcomes, exhausted=failed)
