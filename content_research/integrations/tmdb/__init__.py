"""
TMDb integration: API client, payload schemas and the public watch page scraper.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from content_research.integrations.tmdb.client import TmdbClient
    from content_research.integrations.tmdb.schema import TmdbMovie, TmdbSeries, TmdbWatchProviders

__all__ = [
    "TmdbClient",
    "TmdbMovie",
    "TmdbSeries",
    "TmdbWatchProviders",
]


def __getattr__(name: str):
    if name == "TmdbClient":
        from content_research.integrations.tmdb import client

        return client.TmdbClient
    if name in __all__:
        from content_research.integrations.tmdb import schema

        return getattr(schema, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
