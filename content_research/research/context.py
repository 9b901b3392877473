"""
Per-request wiring shared by the entity researchers, and the report they return.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Generic, Mapping, TypeVar

from content_research.config import Settings
from content_research.errors import AllProvidersExhausted
from content_research.integrations.google_books import GoogleBooksClient
from content_research.integrations.http import Fetcher
from content_research.integrations.omdb import OmdbClient
from content_research.integrations.spotify import SpotifyClient
from content_research.integrations.tmdb.client import TmdbClient
from content_research.models.outcomes import ProviderOutcome, outcome_status
from content_research.research.regions import PacingPolicy

R = TypeVar("R")

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class ResearchContext:
    """
    `fetcher` talks to structured APIs directly; `scraper` is the retrying, proxy-aware
    fetcher used for HTML pages. Clients are built per call so no token or result
    outlives one request.
    """

    fetcher: Fetcher
    scraper: Fetcher
    settings: Settings = field(default_factory=Settings)
    pacing: PacingPolicy = field(default_factory=PacingPolicy)
    sleep: Sleep = asyncio.sleep

    def tmdb(self) -> TmdbClient:
        return TmdbClient(
            self.fetcher,
            api_key=self.settings.tmdb_api_key,
            timeout_seconds=self.settings.api_timeout_seconds,
        )

    def omdb(self) -> OmdbClient:
        return OmdbClient(
            self.fetcher,
            api_key=self.settings.omdb_api_key,
            timeout_seconds=self.settings.api_timeout_seconds,
        )

    def spotify(self) -> SpotifyClient:
        return SpotifyClient(
            self.fetcher,
            client_id=self.settings.spotify_client_id,
            client_secret=self.settings.spotify_client_secret,
            timeout_seconds=self.settings.api_timeout_seconds,
        )

    def google_books(self) -> GoogleBooksClient:
        return GoogleBooksClient(
            self.fetcher,
            api_key=self.settings.google_books_api_key,
            timeout_seconds=self.settings.api_timeout_seconds,
        )


@dataclass(frozen=True)
class ResearchReport(Generic[R]):
    kind: str
    record: R
    outcomes: Mapping[str, ProviderOutcome[Any]] = field(default_factory=dict)
    exhausted: AllProvidersExhausted | None = None

    def source_statuses(self) -> dict[str, str]:
        return {name: outcome_status(outcome) for name, outcome in self.outcomes.items()}


def shared(awaitable: Awaitable[Any]) -> asyncio.Future[Any]:
    """
    Wrap a coroutine so several queries can await the same result.

    Must be called inside a running event loop.
    """

    return asyncio.ensure_future(awaitable)
