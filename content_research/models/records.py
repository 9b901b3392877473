"""
Canonical output records, one per research entity type.

Records are flat-ish dataclasses; `to_json_dict` turns them into the camelCase JSON
shape served by the API. Absent optional values are omitted, lists stay as lists.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, is_dataclass
from enum import Enum
from typing import Any

from content_research.models.availability import (
    AvailabilityOffer,
    AvailabilitySet,
    BookAvailability,
    RegionalAvailability,
)


@dataclass(frozen=True)
class Person:
    name: str
    tmdb_id: str | None = None
    spotify_id: str | None = None


@dataclass(frozen=True)
class CastCredit:
    person: Person
    character: str = ""


@dataclass(frozen=True)
class Company:
    name: str
    tmdb_id: str | None = None


@dataclass(frozen=True)
class Network:
    name: str
    id: int | None = None
    logo_path: str | None = None
    origin_country: str | None = None


@dataclass(frozen=True)
class Score:
    score: float
    votes: int | None = None


@dataclass(frozen=True)
class Image:
    url: str
    public_id: str


@dataclass(frozen=True)
class Trailer:
    url: str
    language: str = "en"


@dataclass(frozen=True)
class BoxOffice:
    budget: str | None = None
    gross_usa: str | None = field(default=None, metadata={"json": "grossUSA"})
    gross_worldwide: str | None = None


@dataclass(frozen=True)
class MovieRatings:
    imdb: Score | None = None
    rotten_tomatoes: Score | None = None
    metacritic: Score | None = None


@dataclass(frozen=True)
class MovieReferences:
    imdb_id: str | None = None
    tmdb_id: str | None = None


@dataclass(frozen=True)
class MovieRecord:
    title: str
    year: int
    slug: str
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
    ratings: MovieRatings = field(default_factory=MovieRatings)
    box_office: BoxOffice | None = None
    trailer: Trailer | None = None
    available_on: RegionalAvailability = field(default_factory=RegionalAvailability)
    references: MovieReferences = field(default_factory=MovieReferences)


@dataclass(frozen=True)
class SeriesRatings:
    imdb: Score | None = None
    rotten_tomatoes: Score | None = None
    metacritic: Score | None = None
    tmdb: Score | None = None


@dataclass(frozen=True)
class SeriesReferences:
    tmdb_id: str | None = None
    imdb_id: str | None = None


@dataclass(frozen=True)
class SeriesRecord:
    title: str
    slug: str
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
    ratings: SeriesRatings = field(default_factory=SeriesRatings)
    available_on: AvailabilitySet = field(default_factory=AvailabilitySet)
    references: SeriesReferences = field(default_factory=SeriesReferences)


@dataclass(frozen=True)
class Album:
    title: str
    release_year: int | None = None
    cover_image: Image | None = None
    spotify_id: str | None = None
    record_label: str | None = None
    album_type: str | None = None
    total_tracks: int | None = None


@dataclass(frozen=True)
class Artist:
    name: str
    spotify_id: str | None = None
    genres: list[str] = field(default_factory=list)
    popularity: int | None = None
    followers: int | None = None
    images: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class Lyrics:
    preview: str
    full_lyrics_link: str


@dataclass(frozen=True)
class AudioFeatures:
    bpm: int | None = None
    key: str | None = None
    energy: float | None = None
    danceability: float | None = None
    acousticness: float | None = None
    instrumentalness: float | None = None
    liveness: float | None = None
    speechiness: float | None = None
    valence: float | None = None


@dataclass(frozen=True)
class MusicRatings:
    spotify: Score | None = None


@dataclass(frozen=True)
class MusicReferences:
    spotify_id: str | None = None
    spotify_artist_id: str | None = None
    spotify_album_id: str | None = None
    isrc: str | None = None
    apple_music_id: str | None = None
    youtube_video_id: str | None = None
    deezer_id: str | None = None


@dataclass(frozen=True)
class MusicRecord:
    title: str
    slug: str
    artist: Artist
    featured_artists: list[Person] = field(default_factory=list)
    writers: list[Person] = field(default_factory=list)
    genres: list[str] = field(default_factory=list)
    mood: list[str] = field(default_factory=list)
    album: Album | None = None
    release_year: int | None = None
    duration: str | None = None
    audio: AudioFeatures | None = None
    lyrics: Lyrics | None = None
    ratings: MusicRatings = field(default_factory=MusicRatings)
    available_on: AvailabilitySet = field(default_factory=AvailabilitySet)
    references: MusicReferences = field(default_factory=MusicReferences)


@dataclass(frozen=True)
class Publisher:
    name: str


@dataclass(frozen=True)
class BookRatings:
    goodreads: Score | None = None
    google_books: Score | None = None


@dataclass(frozen=True)
class BookReferences:
    isbn10: str | None = None
    isbn13: str | None = None
    goodreads_id: str | None = None
    google_books_id: str | None = None


@dataclass(frozen=True)
class BookRecord:
    title: str
    slug: str
    author: list[Person] = field(default_factory=list)
    genres: list[str] = field(default_factory=list)
    isbn: str | None = None
    published_year: int | None = None
    publisher: Publisher | None = None
    language: str | None = None
    pages: int | None = None
    description: str | None = None
    ratings: BookRatings = field(default_factory=BookRatings)
    available_on: BookAvailability = field(default_factory=BookAvailability)
    references: BookReferences = field(default_factory=BookReferences)


CanonicalRecord = MovieRecord | SeriesRecord | MusicRecord | BookRecord


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


# Offers keep the wire names the service has always used.
_OFFER_KEYS = {"url": "link", "kind": "type"}


def to_json_dict(value: Any) -> Any:
    """Serialize records (and anything nested in them) into JSON-ready values."""

    if isinstance(value, Enum):
        return value.value
    if is_dataclass(value) and not isinstance(value, type):
        is_offer = isinstance(value, AvailabilityOffer)
        out: dict[str, Any] = {}
        for f in fields(value):
            item = getattr(value, f.name)
            if item is None:
                continue
            key = f.metadata.get("json") or (_OFFER_KEYS.get(f.name) if is_offer else None) or _camel(f.name)
            out[key] = to_json_dict(item)
        return out
    if isinstance(value, dict):
        return {str(k): to_json_dict(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json_dict(v) for v in value]
    return value
