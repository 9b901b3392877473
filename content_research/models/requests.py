from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union


def _require_text(kind: str, name: str, value: object) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{kind} request requires a non-empty {name!r}.")


@dataclass(frozen=True)
class MovieRequest:
    title: str
    year: int
    director: str | None = None
    cast: tuple[str, ...] = field(default_factory=tuple)
    genre: str | None = None

    def __post_init__(self) -> None:
        _require_text("Movie", "title", self.title)
        if not isinstance(self.year, int) or isinstance(self.year, bool):
            raise ValueError("Movie request requires an integer 'year'.")
        object.__setattr__(self, "cast", tuple(self.cast or ()))


@dataclass(frozen=True)
class SeriesRequest:
    title: str
    year: int | None = None
    creator: str | None = None
    network: str | None = None
    genre: str | None = None

    def __post_init__(self) -> None:
        _require_text("Series", "title", self.title)


@dataclass(frozen=True)
class MusicRequest:
    title: str
    artist: str
    year: int | None = None
    album: str | None = None
    genre: str | None = None

    def __post_init__(self) -> None:
        _require_text("Music", "title", self.title)
        _require_text("Music", "artist", self.artist)


@dataclass(frozen=True)
class BookRequest:
    title: str
    author: str | None = None
    year: int | None = None
    isbn: str | None = None
    genre: str | None = None

    def __post_init__(self) -> None:
        _require_text("Book", "title", self.title)


ResearchRequest = Union[MovieRequest, SeriesRequest, MusicRequest, BookRequest]


def request_kind(request: ResearchRequest) -> str:
    if isinstance(request, MovieRequest):
        return "movie"
    if isinstance(request, SeriesRequest):
        return "series"
    if isinstance(request, MusicRequest):
        return "music"
    if isinstance(request, BookRequest):
        return "book"
    raise TypeError(f"Unsupported research request: {type(request).__name__}")
