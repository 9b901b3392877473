from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

TMDB_IMAGE_BASE_URL = "https://image.tmdb.org/t/p/w500"

WATCH_LISTING_KEYS = ("flatrate", "free", "ads", "buy", "rent")


def _names(items: Any, key: str = "name") -> list[str]:
    if not isinstance(items, list):
        return []
    out: list[str] = []
    for item in items:
        if isinstance(item, Mapping):
            value = item.get(key)
            if isinstance(value, str) and value.strip():
                out.append(value.strip())
    return out


def _str(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    return None


def _float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    return None


@dataclass(frozen=True)
class TmdbSearchHit:
    id: int
    title: str
    date: str | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> TmdbSearchHit:
        tmdb_id = payload.get("id")
        if isinstance(tmdb_id, bool) or not isinstance(tmdb_id, int):
            raise ValueError(f"TMDb search result without an integer id: {tmdb_id!r}")
        return cls(
            id=tmdb_id,
            title=_str(payload.get("title")) or _str(payload.get("name")) or "",
            date=_str(payload.get("release_date")) or _str(payload.get("first_air_date")),
        )


@dataclass(frozen=True)
class TmdbCredit:
    name: str
    id: int | None = None
    job: str | None = None
    character: str | None = None


def _credits(items: Any) -> list[TmdbCredit]:
    if not isinstance(items, list):
        return []
    out: list[TmdbCredit] = []
    for item in items:
        if not isinstance(item, Mapping):
            continue
        name = _str(item.get("name"))
        if not name:
            continue
        out.append(
            TmdbCredit(
                name=name,
                id=_int(item.get("id")),
                job=_str(item.get("job")),
                character=_str(item.get("character")),
            )
        )
    return out


@dataclass(frozen=True)
class TmdbVideo:
    key: str
    site: str | None = None
    type: str | None = None
    language: str | None = None


def _videos(payload: Any) -> list[TmdbVideo]:
    results = payload.get("results") if isinstance(payload, Mapping) else None
    if not isinstance(results, list):
        return []
    out: list[TmdbVideo] = []
    for item in results:
        if not isinstance(item, Mapping):
            continue
        key = _str(item.get("key"))
        if key:
            out.append(
                TmdbVideo(
                    key=key,
                    site=_str(item.get("site")),
                    type=_str(item.get("type")),
                    language=_str(item.get("iso_639_1")),
                )
            )
    return out


def _us_certification(release_dates: Any) -> str | None:
    results = release_dates.get("results") if isinstance(release_dates, Mapping) else None
    if not isinstance(results, list):
        return None
    for entry in results:
        if not isinstance(entry, Mapping) or entry.get("iso_3166_1") != "US":
            continue
        for release in entry.get("release_dates") or []:
            if isinstance(release, Mapping):
                cert = _str(release.get("certification"))
                if cert:
                    return cert
    return None


@dataclass(frozen=True)
class TmdbCompany:
    name: str
    id: int | None = None
    logo_path: str | None = None
    origin_country: str | None = None


def _companies(items: Any) -> list[TmdbCompany]:
    if not isinstance(items, list):
        return []
    out: list[TmdbCompany] = []
    for item in items:
        if not isinstance(item, Mapping):
            continue
        name = _str(item.get("name"))
        if name:
            out.append(
                TmdbCompany(
                    name=name,
                    id=_int(item.get("id")),
                    logo_path=_str(item.get("logo_path")),
                    origin_country=_str(item.get("origin_country")),
                )
            )
    return out


@dataclass(frozen=True)
class TmdbMovie:
    """`/movie/{id}` with credits, videos and release_dates appended."""

    id: int
    title: str | None = None
    overview: str | None = None
    release_date: str | None = None
    runtime: int | None = None
    poster_path: str | None = None
    budget: int | None = None
    revenue: int | None = None
    imdb_id: str | None = None
    certification: str | None = None
    genres: list[str] = field(default_factory=list)
    spoken_languages: list[str] = field(default_factory=list)
    production_countries: list[str] = field(default_factory=list)
    production_companies: list[TmdbCompany] = field(default_factory=list)
    cast: list[TmdbCredit] = field(default_factory=list)
    crew: list[TmdbCredit] = field(default_factory=list)
    videos: list[TmdbVideo] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> TmdbMovie:
        tmdb_id = _int(payload.get("id"))
        if tmdb_id is None:
            raise ValueError("TMDb movie payload without an id.")
        credits = payload.get("credits") if isinstance(payload.get("credits"), Mapping) else {}
        return cls(
            id=tmdb_id,
            title=_str(payload.get("title")),
            overview=_str(payload.get("overview")),
            release_date=_str(payload.get("release_date")),
            runtime=_int(payload.get("runtime")) or None,
            poster_path=_str(payload.get("poster_path")),
            budget=_int(payload.get("budget")) or None,
            revenue=_int(payload.get("revenue")) or None,
            imdb_id=_str(payload.get("imdb_id")),
            certification=_us_certification(payload.get("release_dates")),
            genres=_names(payload.get("genres")),
            spoken_languages=_names(payload.get("spoken_languages"), "english_name"),
            production_countries=_names(payload.get("production_countries")),
            production_companies=_companies(payload.get("production_companies")),
            cast=_credits(credits.get("cast")),
            crew=_credits(credits.get("crew")),
            videos=_videos(payload.get("videos")),
        )

    def crew_with_jobs(self, *jobs: str) -> list[TmdbCredit]:
        wanted = set(jobs)
        return [c for c in self.crew if c.job in wanted]

    def trailer(self) -> TmdbVideo | None:
        for video in self.videos:
            if video.type == "Trailer" and (video.site or "YouTube") == "YouTube":
                return video
        return None


def _us_content_rating(content_ratings: Any) -> str | None:
    results = content_ratings.get("results") if isinstance(content_ratings, Mapping) else None
    if not isinstance(results, list):
        return None
    for entry in results:
        if isinstance(entry, Mapping) and entry.get("iso_3166_1") == "US":
            return _str(entry.get("rating"))
    return None


@dataclass(frozen=True)
class TmdbSeries:
    """`/tv/{id}` with credits, external_ids and content_ratings appended."""

    id: int
    name: str | None = None
    overview: str | None = None
    first_air_date: str | None = None
    status: str | None = None
    type: str | None = None
    poster_path: str | None = None
    number_of_seasons: int | None = None
    number_of_episodes: int | None = None
    vote_average: float | None = None
    vote_count: int | None = None
    imdb_id: str | None = None
    content_rating: str | None = None
    episode_run_time: list[int] = field(default_factory=list)
    genres: list[str] = field(default_factory=list)
    spoken_languages: list[str] = field(default_factory=list)
    origin_country: list[str] = field(default_factory=list)
    production_countries: list[str] = field(default_factory=list)
    created_by: list[TmdbCredit] = field(default_factory=list)
    cast: list[TmdbCredit] = field(default_factory=list)
    networks: list[TmdbCompany] = field(default_factory=list)
    production_companies: list[TmdbCompany] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> TmdbSeries:
        tmdb_id = _int(payload.get("id"))
        if tmdb_id is None:
            raise ValueError("TMDb series payload without an id.")
        credits = payload.get("credits") if isinstance(payload.get("credits"), Mapping) else {}
        external_ids = payload.get("external_ids") if isinstance(payload.get("external_ids"), Mapping) else {}
        run_times = payload.get("episode_run_time")
        countries = payload.get("origin_country")
        return cls(
            id=tmdb_id,
            name=_str(payload.get("name")),
            overview=_str(payload.get("overview")),
            first_air_date=_str(payload.get("first_air_date")),
            status=_str(payload.get("status")),
            type=_str(payload.get("type")),
            poster_path=_str(payload.get("poster_path")),
            number_of_seasons=_int(payload.get("number_of_seasons")),
            number_of_episodes=_int(payload.get("number_of_episodes")),
            vote_average=_float(payload.get("vote_average")),
            vote_count=_int(payload.get("vote_count")),
            imdb_id=_str(external_ids.get("imdb_id")),
            content_rating=_us_content_rating(payload.get("content_ratings")),
            episode_run_time=[r for r in run_times if _int(r)] if isinstance(run_times, list) else [],
            genres=_names(payload.get("genres")),
            spoken_languages=_names(payload.get("spoken_languages"), "english_name"),
            origin_country=[c for c in countries if isinstance(c, str)] if isinstance(countries, list) else [],
            production_countries=_names(payload.get("production_countries")),
            created_by=_credits(payload.get("created_by")),
            cast=_credits(credits.get("cast")),
            networks=_companies(payload.get("networks")),
            production_companies=_companies(payload.get("production_companies")),
        )


@dataclass(frozen=True)
class TmdbWatchProviders:
    """
    `/{movie|tv}/{id}/watch/providers`, reduced to provider names per offer kind.

    `regions["US"]` looks like `{"flatrate": ["Netflix"], "buy": ["Apple TV"]}`.
    """

    regions: dict[str, dict[str, list[str]]] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> TmdbWatchProviders:
        results = payload.get("results")
        if not isinstance(results, Mapping):
            return cls()
        regions: dict[str, dict[str, list[str]]] = {}
        for region, entry in results.items():
            if not isinstance(entry, Mapping):
                continue
            listing = {key: _names(entry.get(key), "provider_name") for key in WATCH_LISTING_KEYS}
            regions[str(region).upper()] = {k: v for k, v in listing.items() if v}
        return cls(regions=regions)

    def for_region(self, region: str) -> dict[str, list[str]]:
        return self.regions.get(region.upper(), {})


def poster_url(poster_path: str | None) -> str | None:
    if not poster_path:
        return None
    return f"{TMDB_IMAGE_BASE_URL}{poster_path}"
