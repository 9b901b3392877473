from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

from content_research.config import Settings
from content_research.errors import NetworkError
from content_research.integrations.http import FetchTarget, RawPayload
from content_research.integrations.proxy import ProxyPool, ResilientFetcher
from content_research.models.availability import AvailabilityOffer, OfferKind
from content_research.models.outcomes import Failure, Success
from content_research.models.records import Score
from content_research.models.requests import MusicRequest
from content_research.research.context import ResearchContext
from content_research.research.music import (
    build_music_record,
    from_offers,
    mood_from_valence,
    research_music,
    rights_holder,
)
from content_research.research.regions import PacingPolicy

FIXTURES = Path(__file__).resolve().parents[1] / "fixtures" / "spotify"

TRACK_ID = "7tFiyTwD0nx5a1eklYtX2J"

GENIUS_SEARCH = '<div class="search_result"><a href="/Queen-bohemian-rhapsody-lyrics">Bohemian Rhapsody by Queen</a></div>'
GENIUS_SONG = (
    '<div data-lyrics-container="true">Is this the real life?<br/>Is this just fantasy?</div>'
    '<div data-lyrics-container="true">Caught in a landslide</div>'
)
APPLE_SEARCH = (
    '<div data-testid="track-lockup">'
    '<a href="/us/album/bohemian-rhapsody/1440806041?i=1440806326">Bohemian Rhapsody</a>'
    "</div>"
)
YOUTUBE_RESULTS = (
    '{"videoId":"aaaaaaaaaaa","title":{"runs":[{"text":"Bohemian Rhapsody piano cover"}]}}'
    '{"videoId":"fJ9rUzIMcZQ","title":{"runs":[{"text":"Queen - Bohemian Rhapsody (Official Video Remastered)"}]}}'
)
DEEZER_SEARCH = '<div data-testid="track"><a href="/us/track/9997018">Bohemian Rhapsody</a></div>'


def _run_async(coro):
    return asyncio.run(coro)


def _load_json(name: str) -> dict[str, Any]:
    return json.loads((FIXTURES / name).read_text())


class RoutedFetcher:
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


async def _no_sleep(seconds: float) -> None:
    return None


def _context(fetcher: RoutedFetcher) -> ResearchContext:
    return ResearchContext(
        fetcher=fetcher,
        scraper=ResilientFetcher(fetcher, ProxyPool(), sleep=_no_sleep),
        settings=Settings(spotify_client_id="client-id", spotify_client_secret="client-secret"),
        pacing=PacingPolicy(interval_seconds=0),
        sleep=_no_sleep,
    )


def _routes() -> dict[str, Any]:
    return {
        "https://accounts.spotify.com/api/token": {"access_token": "token-123", "token_type": "Bearer", "expires_in": 3600},
        "https://api.spotify.com/v1/search": _load_json("track_search_sample.json"),
        f"https://api.spotify.com/v1/audio-features/{TRACK_ID}": _load_json("audio_features_sample.json"),
        "https://api.spotify.com/v1/artists/1dfeR4HaWDbWqFHLkxsg1d": _load_json("artist_sample.json"),
        "https://api.spotify.com/v1/albums/6i6folBtxKV28WX3msQ4FE": _load_json("album_sample.json"),
        "https://genius.com/search": GENIUS_SEARCH,
        "https://genius.com/Queen-bohemian-rhapsody-lyrics": GENIUS_SONG,
        "https://music.apple.com/search": APPLE_SEARCH,
        "https://www.youtube.com/results": YOUTUBE_RESULTS,
        "https://www.deezer.com/search/Queen%20Bohemian%20Rhapsody": DEEZER_SEARCH,
    }


def test_research_music_merges_spotify_lyrics_and_platforms() -> None:
    fetcher = RoutedFetcher(_routes())

    report = _run_async(research_music(MusicRequest(title="Bohemian Rhapsody", artist="Queen"), _context(fetcher)))
    record = report.record

    assert report.exhausted is None
    assert report.source_statuses() == {"spotify": "ok", "lyrics": "ok", "availability": "ok"}

    assert record.title == "Bohemian Rhapsody"
    assert record.slug == "bohemian-rhapsody-queen"
    assert record.artist.name == "Queen"
    assert record.artist.spotify_id == "1dfeR4HaWDbWqFHLkxsg1d"
    assert record.artist.followers == 52000000
    assert record.genres == ["classic rock", "glam rock", "rock"]
    assert record.mood == ["Mellow", "Calm"]
    assert record.release_year == 1975
    assert record.duration == "5 min 54 sec"
    assert record.album is not None
    assert record.album.record_label == "EMI"
    assert record.album.total_tracks == 12
    assert [w.name for w in record.writers] == [
        "Queen Productions Ltd, under exclusive licence to Universal International Music BV"
    ]
    assert record.audio is not None
    assert record.audio.bpm == 144
    assert record.audio.key == "C"
    assert record.audio.valence == 0.228
    assert record.ratings.spotify == Score(score=82)

    assert record.lyrics is not None
    assert record.lyrics.full_lyrics_link == "https://genius.com/Queen-bohemian-rhapsody-lyrics"
    assert record.lyrics.preview.startswith("Is this the real life?")

    assert [o.platform for o in record.available_on.streaming] == ["Spotify", "Apple Music", "YouTube", "Deezer"]
    assert [(o.platform, o.kind) for o in record.available_on.purchase] == [("iTunes", OfferKind.BUY)]

    refs = record.references
    assert refs.spotify_id == TRACK_ID
    assert refs.spotify_artist_id == "1dfeR4HaWDbWqFHLkxsg1d"
    assert refs.spotify_album_id == "6i6folBtxKV28WX3msQ4FE"
    assert refs.isrc == "GBUM71029604"
    assert refs.apple_music_id == "1440806326"
    assert refs.youtube_video_id == "fJ9rUzIMcZQ"
    assert refs.deezer_id == "9997018"

    token_calls = [t for t in fetcher.targets if t.url == "https://accounts.spotify.com/api/token"]
    search_calls = [t for t in fetcher.targets if t.url == "https://api.spotify.com/v1/search"]
    assert len(token_calls) == 1
    assert len(search_calls) == 1


def test_request_year_wins_over_album_release() -> None:
    fetcher = RoutedFetcher(_routes())

    report = _run_async(
        research_music(MusicRequest(title="Bohemian Rhapsody", artist="Queen", year=1992), _context(fetcher))
    )

    assert report.record.release_year == 1992


def test_spotify_failure_still_collects_other_platforms() -> None:
    routes = _routes()
    del routes["https://accounts.spotify.com/api/token"]
    fetcher = RoutedFetcher(routes)

    report = _run_async(research_music(MusicRequest(title="Bohemian Rhapsody", artist="Queen"), _context(fetcher)))

    assert report.source_statuses()["spotify"] == "failed"
    assert report.record.artist.spotify_id is None
    assert report.record.genres == []
    assert "Spotify" not in [o.platform for o in report.record.available_on.streaming]
    assert "YouTube" in [o.platform for o in report.record.available_on.streaming]


def test_mood_from_valence() -> None:
    assert mood_from_valence(0.9) == ["Happy", "Upbeat"]
    assert mood_from_valence(0.5) == ["Mellow", "Calm"]
    assert mood_from_valence(None) == []


def test_from_offers_reads_platform_ids() -> None:
    offers = [
        AvailabilityOffer("YouTube", "https://www.youtube.com/watch?v=fJ9rUzIMcZQ", OfferKind.FREE),
        AvailabilityOffer("Apple Music", "https://music.apple.com/us/song/bohemian-rhapsody/1440806326", OfferKind.SUBSCRIPTION),
    ]

    fields = from_offers(offers)

    assert fields.youtube_video_id == "fJ9rUzIMcZQ"
    assert fields.apple_music_id == "1440806326"
    assert fields.deezer_id is None


def test_build_music_record_from_request_only() -> None:
    record = build_music_record(MusicRequest(title="Bohemian Rhapsody", artist="Queen", album="A Night at the Opera"), {})

    assert record.artist.name == "Queen"
    assert record.album is not None and record.album.title == "A Night at the Opera"
    assert record.available_on.is_empty()
    assert record.lyrics is None


def test_rights_holder_strips_the_phonographic_prefix() -> None:
    assert rights_holder("℗ 1975 EMI Records Ltd") == "EMI Records Ltd"
    assert rights_holder("(P) 2011 Queen Productions Ltd") == "Queen Productions Ltd"
    assert rights_holder("Hollywood Records") == "Hollywood Records"
