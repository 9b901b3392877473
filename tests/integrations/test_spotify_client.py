from __future__ import annotations

import asyncio
import base64
import json
from pathlib import Path
from typing import Any

import pytest

from content_research.errors import MissingCredentials, NetworkError, NoMatchFound
from content_research.integrations.http import FetchTarget, RawPayload
from content_research.integrations.spotify import SPOTIFY_TOKEN_URL, SpotifyClient
from content_research.models.outcomes import Failure, Success

FIXTURES = Path(__file__).resolve().parents[1] / "fixtures" / "spotify"

TRACK_ID = "7tFiyTwD0nx5a1eklYtX2J"


def _run_async(coro):
    return asyncio.run(coro)


def _load_json(name: str) -> dict[str, Any]:
    return json.loads((FIXTURES / name).read_text(encoding="utf-8"))


class RoutedFetcher:
    def __init__(self, routes: dict[str, Any]) -> None:
        self.routes = routes
        self.targets: list[FetchTarget] = []

    async def fetch(self, target: FetchTarget, *, proxy: str | None = None):
        self.targets.append(target)
        body = self.routes.get(target.url)
        if body is None:
            return Failure(NetworkError(f"unrouted {target.url}", status_code=404))
        return Success(RawPayload(url=target.url, status_code=200, text=json.dumps(body), data=body))


def _routes() -> dict[str, Any]:
    return {
        SPOTIFY_TOKEN_URL: {"access_token": "token-123", "token_type": "Bearer", "expires_in": 3600},
        "https://api.spotify.com/v1/search": _load_json("track_search_sample.json"),
        f"https://api.spotify.com/v1/audio-features/{TRACK_ID}": _load_json("audio_features_sample.json"),
        "https://api.spotify.com/v1/artists/1dfeR4HaWDbWqFHLkxsg1d": _load_json("artist_sample.json"),
        "https://api.spotify.com/v1/albums/6i6folBtxKV28WX3msQ4FE": _load_json("album_sample.json"),
    }


def _client(fetcher: RoutedFetcher) -> SpotifyClient:
    return SpotifyClient(fetcher, client_id="client-id", client_secret="client-secret")


class TestSpotifyClient:
    def test_missing_credentials_never_fetch(self) -> None:
        fetcher = RoutedFetcher(_routes())
        client = SpotifyClient(fetcher, client_id="client-id", client_secret=None)

        assert client.enabled is False
        with pytest.raises(MissingCredentials):
            _run_async(client.search_track("Bohemian Rhapsody", "Queen"))
        assert fetcher.targets == []

    def test_token_uses_basic_auth_and_is_cached(self) -> None:
        fetcher = RoutedFetcher(_routes())
        client = _client(fetcher)

        async def two_searches():
            return await asyncio.gather(
                client.search_track("Bohemian Rhapsody", "Queen"),
                client.search_track("Bohemian Rhapsody", "Queen"),
            )

        _run_async(two_searches())

        token_calls = [t for t in fetcher.targets if t.url == SPOTIFY_TOKEN_URL]
        assert len(token_calls) == 1
        token_call = token_calls[0]
        assert token_call.method == "POST"
        assert token_call.data == {"grant_type": "client_credentials"}
        expected = base64.b64encode(b"client-id:client-secret").decode()
        assert token_call.headers["authorization"] == f"Basic {expected}"

        api_calls = [t for t in fetcher.targets if t.url != SPOTIFY_TOKEN_URL]
        assert all(t.headers["authorization"] == "Bearer token-123" for t in api_calls)

    def test_search_track_parses_the_first_item(self) -> None:
        fetcher = RoutedFetcher(_routes())

        track = _run_async(_client(fetcher).search_track("Bohemian Rhapsody", "Queen"))

        assert track.id == TRACK_ID
        assert track.popularity == 82
        assert track.duration_ms == 354320
        assert track.isrc == "GBUM71029604"
        assert [a.name for a in track.artists] == ["Queen"]
        assert track.album is not None and track.album.release_date == "1975-11-21"
        search = next(t for t in fetcher.targets if t.url.endswith("/search"))
        assert search.params["q"] == 'track:"Bohemian Rhapsody" artist:"Queen"'
        assert search.params["limit"] == 1

    def test_empty_search_is_no_match(self) -> None:
        routes = _routes()
        routes["https://api.spotify.com/v1/search"] = {"tracks": {"items": []}}

        with pytest.raises(NoMatchFound):
            _run_async(_client(RoutedFetcher(routes)).search_track("Nothing", "Nobody"))

    def test_bundle_lookups_are_best_effort(self) -> None:
        routes = _routes()
        del routes[f"https://api.spotify.com/v1/audio-features/{TRACK_ID}"]
        client = _client(RoutedFetcher(routes))

        async def run():
            track = await client.search_track("Bohemian Rhapsody", "Queen")
            return await client.fetch_bundle(track)

        bundle = _run_async(run())

        assert bundle.audio_features is None
        assert bundle.artist is not None
        assert bundle.artist.genres == ["classic rock", "glam rock", "rock"]
        assert bundle.artist.followers == 52000000
        assert bundle.album is not None
        assert bundle.album.label == "EMI"
        assert bundle.album.total_tracks == 12
        assert bundle.album.phonographic_copyrights == [
            "\u2117 2011 Queen Productions Ltd, under exclusive licence to Universal International Music BV"
        ]
