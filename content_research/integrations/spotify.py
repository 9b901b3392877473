from __future__ import annotations

import asyncio
import base64
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from content_research.errors import MissingCredentials, NoMatchFound, ProviderError, ProviderProtocolError
from content_research.integrations.http import Fetcher, FetchTarget

logger = logging.getLogger(__name__)

SPOTIFY_TOKEN_URL = "https://accounts.spotify.com/api/token"
SPOTIFY_API_BASE_URL = "https://api.spotify.com/v1"
PROVIDER = "spotify"


def _str(value: Any) -> str | None:
    return value.strip() if isinstance(value, str) and value.strip() else None


def _int(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _float(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _copyright_texts(items: Any, kind: str) -> list[str]:
    if not isinstance(items, list):
        return []
    texts: list[str] = []
    for item in items:
        if isinstance(item, Mapping) and item.get("type") == kind:
            text = _str(item.get("text"))
            if text:
                texts.append(text)
    return texts


def _image_urls(items: Any) -> list[str]:
    if not isinstance(items, list):
        return []
    return [i["url"] for i in items if isinstance(i, Mapping) and isinstance(i.get("url"), str)]


@dataclass(frozen=True)
class SpotifyArtistRef:
    name: str
    id: str | None = None


@dataclass(frozen=True)
class SpotifyAlbum:
    id: str
    name: str
    release_date: str | None = None
    label: str | None = None
    album_type: str | None = None
    total_tracks: int | None = None
    images: list[str] = field(default_factory=list)
    phonographic_copyrights: list[str] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> SpotifyAlbum:
        album_id = _str(payload.get("id"))
        if not album_id:
            raise ValueError("Spotify album without an id.")
        return cls(
            id=album_id,
            name=_str(payload.get("name")) or "",
            release_date=_str(payload.get("release_date")),
            label=_str(payload.get("label")),
            album_type=_str(payload.get("album_type")),
            total_tracks=_int(payload.get("total_tracks")),
            images=_image_urls(payload.get("images")),
            phonographic_copyrights=_copyright_texts(payload.get("copyrights"), "P"),
        )


@dataclass(frozen=True)
class SpotifyTrack:
    id: str
    name: str
    url: str | None = None
    popularity: int | None = None
    duration_ms: int | None = None
    isrc: str | None = None
    artists: list[SpotifyArtistRef] = field(default_factory=list)
    album: SpotifyAlbum | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> SpotifyTrack:
        track_id = _str(payload.get("id"))
        if not track_id:
            raise ValueError("Spotify track without an id.")
        urls = payload.get("external_urls") if isinstance(payload.get("external_urls"), Mapping) else {}
        ids = payload.get("external_ids") if isinstance(payload.get("external_ids"), Mapping) else {}
        artists = [
            SpotifyArtistRef(name=a["name"], id=_str(a.get("id")))
            for a in payload.get("artists") or []
            if isinstance(a, Mapping) and _str(a.get("name"))
        ]
        album = payload.get("album")
        return cls(
            id=track_id,
            name=_str(payload.get("name")) or "",
            url=_str(urls.get("spotify")),
            popularity=_int(payload.get("popularity")),
            duration_ms=_int(payload.get("duration_ms")),
            isrc=_str(ids.get("isrc")),
            artists=artists,
            album=SpotifyAlbum.from_payload(album) if isinstance(album, Mapping) and album.get("id") else None,
        )


@dataclass(frozen=True)
class SpotifyArtist:
    id: str
    name: str
    genres: list[str] = field(default_factory=list)
    popularity: int | None = None
    followers: int | None = None
    images: list[str] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> SpotifyArtist:
        artist_id = _str(payload.get("id"))
        if not artist_id:
            raise ValueError("Spotify artist without an id.")
        followers = payload.get("followers") if isinstance(payload.get("followers"), Mapping) else {}
        genres = payload.get("genres")
        return cls(
            id=artist_id,
            name=_str(payload.get("name")) or "",
            genres=[g for g in genres if isinstance(g, str)] if isinstance(genres, list) else [],
            popularity=_int(payload.get("popularity")),
            followers=_int(followers.get("total")),
            images=_image_urls(payload.get("images")),
        )


@dataclass(frozen=True)
class SpotifyAudioFeatures:
    tempo: float | None = None
    key: int | None = None
    energy: float | None = None
    danceability: float | None = None
    acousticness: float | None = None
    instrumentalness: float | None = None
    liveness: float | None = None
    speechiness: float | None = None
    valence: float | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> SpotifyAudioFeatures:
        return cls(
            tempo=_float(payload.get("tempo")),
            key=_int(payload.get("key")),
            energy=_float(payload.get("energy")),
            danceability=_float(payload.get("danceability")),
            acousticness=_float(payload.get("acousticness")),
            instrumentalness=_float(payload.get("instrumentalness")),
            liveness=_float(payload.get("liveness")),
            speechiness=_float(payload.get("speechiness")),
            valence=_float(payload.get("valence")),
        )


@dataclass(frozen=True)
class SpotifyTrackBundle:
    """A track plus the optional detail lookups made for it."""

    track: SpotifyTrack
    artist: SpotifyArtist | None = None
    album: SpotifyAlbum | None = None
    audio_features: SpotifyAudioFeatures | None = None


class SpotifyClient:
    """
    Client-credentials Spotify Web API client.

    The access token is fetched once per client and shared by concurrent calls.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        *,
        client_id: str | None,
        client_secret: str | None,
        timeout_seconds: float | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._client_id = (client_id or "").strip()
        self._client_secret = (client_secret or "").strip()
        self._timeout_seconds = timeout_seconds
        self._token: str | None = None
        self._token_lock = asyncio.Lock()

    @property
    def enabled(self) -> bool:
        return bool(self._client_id and self._client_secret)

    async def _access_token(self) -> str:
        if not self.enabled:
            raise MissingCredentials("SPOTIFY_CLIENT_ID / SPOTIFY_CLIENT_SECRET are not set.", provider=PROVIDER)
        async with self._token_lock:
            if self._token:
                return self._token
            basic = base64.b64encode(f"{self._client_id}:{self._client_secret}".encode()).decode()
            outcome = await self._fetcher.fetch(
                FetchTarget.api(
                    SPOTIFY_TOKEN_URL,
                    method="POST",
                    data={"grant_type": "client_credentials"},
                    headers={"authorization": f"Basic {basic}"},
                    timeout_seconds=self._timeout_seconds,
                )
            )
            token = _str(outcome.unwrap().json_object().get("access_token"))
            if not token:
                raise ProviderProtocolError("Spotify token response without access_token.", provider=PROVIDER)
            self._token = token
            return token

    async def _get(self, path: str, *, params: Mapping[str, Any] | None = None) -> dict[str, Any]:
        token = await self._access_token()
        outcome = await self._fetcher.fetch(
            FetchTarget.api(
                f"{SPOTIFY_API_BASE_URL}{path}",
                params=params,
                headers={"authorization": f"Bearer {token}"},
                timeout_seconds=self._timeout_seconds,
            )
        )
        return outcome.unwrap().json_object()

    async def search_track(self, title: str, artist: str) -> SpotifyTrack:
        payload = await self._get(
            "/search",
            params={"q": f'track:"{title}" artist:"{artist}"', "type": "track", "limit": 1},
        )
        tracks = payload.get("tracks") if isinstance(payload.get("tracks"), Mapping) else {}
        items = tracks.get("items")
        if not isinstance(items, list) or not items or not isinstance(items[0], Mapping):
            raise NoMatchFound(f"Spotify has no track {title!r} by {artist!r}.", provider=PROVIDER)
        track = SpotifyTrack.from_payload(items[0])
        logger.debug(f"Spotify search {title!r} / {artist!r} -> {track.id}")
        return track

    async def _optional(self, label: str, path: str, parse) -> Any:
        try:
            return parse(await self._get(path))
        except (ProviderError, ValueError) as exc:
            logger.warning(f"Could not fetch Spotify {label}: {exc}")
            return None

    async def fetch_bundle(self, track: SpotifyTrack) -> SpotifyTrackBundle:
        """Audio features, primary artist and album for a track; each is best-effort."""

        artist_id = track.artists[0].id if track.artists else None
        album_id = track.album.id if track.album else None

        async def _none() -> None:
            return None

        audio, artist, album = await asyncio.gather(
            self._optional("audio features", f"/audio-features/{track.id}", SpotifyAudioFeatures.from_payload),
            self._optional("artist", f"/artists/{artist_id}", SpotifyArtist.from_payload) if artist_id else _none(),
            self._optional("album", f"/albums/{album_id}", SpotifyAlbum.from_payload) if album_id else _none(),
        )
        return SpotifyTrackBundle(track=track, artist=artist, album=album, audio_features=audio)
