from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from content_research.integrations.lyrics import fetch_lyrics
from content_research.integrations.music_platforms import (
    amazon_music_offers,
    apple_music_id,
    apple_music_offers,
    deezer_id,
    deezer_offers,
    tidal_offers,
    youtube_offers,
    youtube_video_id,
)
from content_research.integrations.spotify import SpotifyTrack, SpotifyTrackBundle
from content_research.models.availability import AvailabilityOffer, AvailabilitySet, OfferKind
from content_research.models.outcomes import payload_or_none
from content_research.models.records import (
    Album,
    Artist,
    AudioFeatures,
    Image,
    MusicRatings,
    MusicRecord,
    MusicReferences,
    Person,
    Score,
)
from content_research.models.requests import MusicRequest
from content_research.research.availability import collect_offers
from content_research.research.context import ResearchContext, ResearchReport, shared
from content_research.research.merge import (
    REQUEST_SOURCE,
    format_duration,
    merge_fields,
    musical_key,
    parse_year,
    slugify,
)
from content_research.research.outcomes import exhausted, settle

logger = logging.getLogger(__name__)

# "℗ 2011 Queen Productions Ltd" -> "Queen Productions Ltd"
_PHONOGRAPHIC_PREFIX_RE = re.compile(r"^(?:\u2117|\(P\))\s*(?:\d{4}\s+)?", re.IGNORECASE)


@dataclass(frozen=True)
class MusicFields:
    artist: Artist | None = None
    featured_artists: list[Person] = field(default_factory=list)
    writers: list[Person] = field(default_factory=list)
    genres: list[str] = field(default_factory=list)
    mood: list[str] = field(default_factory=list)
    album: Album | None = None
    release_year: int | None = None
    duration: str | None = None
    audio: AudioFeatures | None = None
    spotify: Score | None = None
    spotify_id: str | None = None
    spotify_artist_id: str | None = None
    spotify_album_id: str | None = None
    isrc: str | None = None
    apple_music_id: str | None = None
    youtube_video_id: str | None = None
    deezer_id: str | None = None


PRECEDENCE: Mapping[str, tuple[str, ...]] = {
    "artist": ("spotify",),
    "featured_artists": ("spotify",),
    "writers": ("spotify",),
    "genres": ("spotify",),
    "mood": ("spotify",),
    "album": ("spotify",),
    "release_year": (REQUEST_SOURCE, "spotify"),
    "duration": ("spotify",),
    "audio": ("spotify",),
    "spotify": ("spotify",),
    "spotify_id": ("spotify",),
    "spotify_artist_id": ("spotify",),
    "spotify_album_id": ("spotify",),
    "isrc": ("spotify",),
    "apple_music_id": ("platforms",),
    "youtube_video_id": ("platforms",),
    "deezer_id": ("platforms",),
}


def mood_from_valence(valence: float | None) -> list[str]:
    if valence is None:
        return []
    return ["Happy", "Upbeat"] if valence > 0.5 else ["Mellow", "Calm"]


def rights_holder(copyright_text: str) -> str:
    return _PHONOGRAPHIC_PREFIX_RE.sub("", copyright_text.strip()).strip()


def from_spotify(bundle: SpotifyTrackBundle) -> MusicFields:
    track = bundle.track
    album = bundle.album or track.album
    features = bundle.audio_features
    artist = bundle.artist

    album_record = None
    if album is not None:
        cover = album.images[0] if album.images else None
        album_record = Album(
            title=album.name,
            release_year=parse_year(album.release_date),
            cover_image=Image(url=cover, public_id=album.id) if cover else None,
            spotify_id=album.id,
            record_label=album.label,
            album_type=album.album_type,
            total_tracks=album.total_tracks,
        )

    audio = None
    if features is not None:
        audio = AudioFeatures(
            bpm=round(features.tempo) if features.tempo is not None else None,
            key=musical_key(features.key),
            energy=features.energy,
            danceability=features.danceability,
            acousticness=features.acousticness,
            instrumentalness=features.instrumentalness,
            liveness=features.liveness,
            speechiness=features.speechiness,
            valence=features.valence,
        )

    primary = track.artists[0] if track.artists else None
    return MusicFields(
        artist=(
            Artist(
                name=artist.name,
                spotify_id=artist.id,
                genres=list(artist.genres),
                popularity=artist.popularity,
                followers=artist.followers,
                images=list(artist.images),
            )
            if artist is not None
            else None
        ),
        featured_artists=[Person(name=a.name, spotify_id=a.id) for a in track.artists[1:]],
        writers=(
            [Person(name=rights_holder(text)) for text in album.phonographic_copyrights if rights_holder(text)]
            if album is not None
            else []
        ),
        genres=list(artist.genres) if artist is not None else [],
        mood=mood_from_valence(features.valence if features is not None else None),
        album=album_record,
        release_year=album_record.release_year if album_record is not None else None,
        duration=format_duration(track.duration_ms),
        audio=audio,
        spotify=Score(score=track.popularity) if track.popularity is not None else None,
        spotify_id=track.id,
        spotify_artist_id=primary.id if primary is not None else None,
        spotify_album_id=album.id if album is not None else None,
        isrc=track.isrc,
    )


def from_offers(offers: Sequence[AvailabilityOffer]) -> MusicFields:
    """Platform ids read back out of the validated availability links."""

    def first(platform: str, extract) -> str | None:
        for offer in offers:
            if offer.platform == platform:
                found = extract(offer.url)
                if found:
                    return found
        return None

    return MusicFields(
        apple_music_id=first("Apple Music", apple_music_id),
        youtube_video_id=first("YouTube", youtube_video_id),
        deezer_id=first("Deezer", deezer_id),
    )


def from_request(request: MusicRequest) -> MusicFields:
    return MusicFields(
        genres=[request.genre] if request.genre else [],
        album=Album(title=request.album) if request.album else None,
        release_year=request.year,
    )


def build_music_record(
    request: MusicRequest,
    projections: Mapping[str, MusicFields],
    availability: AvailabilitySet | None = None,
    lyrics=None,
) -> MusicRecord:
    merged = merge_fields(PRECEDENCE, {**projections, REQUEST_SOURCE: from_request(request)})
    artist: Artist | None = merged["artist"]
    return MusicRecord(
        title=request.title,
        slug=slugify(request.title, request.artist),
        artist=(
            Artist(
                name=request.artist,
                spotify_id=artist.spotify_id,
                genres=artist.genres,
                popularity=artist.popularity,
                followers=artist.followers,
                images=artist.images,
            )
            if artist is not None
            else Artist(name=request.artist)
        ),
        featured_artists=merged["featured_artists"] or [],
        writers=merged["writers"] or [],
        genres=merged["genres"] or [],
        mood=merged["mood"] or [],
        album=merged["album"],
        release_year=merged["release_year"],
        duration=merged["duration"],
        audio=merged["audio"],
        lyrics=lyrics,
        ratings=MusicRatings(spotify=merged["spotify"]),
        available_on=availability or AvailabilitySet(),
        references=MusicReferences(
            spotify_id=merged["spotify_id"],
            spotify_artist_id=merged["spotify_artist_id"],
            spotify_album_id=merged["spotify_album_id"],
            isrc=merged["isrc"],
            apple_music_id=merged["apple_music_id"],
            youtube_video_id=merged["youtube_video_id"],
            deezer_id=merged["deezer_id"],
        ),
    )


async def research_music(request: MusicRequest, context: ResearchContext) -> ResearchReport[MusicRecord]:
    spotify = context.spotify()
    # The metadata query and the Spotify availability link share one search.
    search = shared(spotify.search_track(request.title, request.artist))

    async def spotify_metadata() -> SpotifyTrackBundle:
        return await spotify.fetch_bundle(await search)

    async def spotify_offer() -> list[AvailabilityOffer]:
        track: SpotifyTrack = await search
        if not track.url:
            return []
        return [AvailabilityOffer(platform="Spotify", url=track.url, kind=OfferKind.SUBSCRIPTION)]

    title, artist = request.title, request.artist
    scraper = context.scraper

    logger.info(f"Researching music {title!r} by {artist!r}")
    outcomes = await settle(
        {
            "spotify": spotify_metadata(),
            "lyrics": fetch_lyrics(scraper, title, artist),
            "availability": collect_offers(
                {
                    "spotify_link": spotify_offer(),
                    "apple_music": apple_music_offers(scraper, title, artist),
                    "youtube": youtube_offers(scraper, title, artist),
                    "amazon_music": amazon_music_offers(scraper, title, artist),
                    "deezer": deezer_offers(scraper, title, artist),
                    "tidal": tidal_offers(scraper, title, artist),
                }
            ),
        }
    )

    projections: dict[str, Any] = {}
    bundle = payload_or_none(outcomes["spotify"])
    if bundle is not None:
        projections["spotify"] = from_spotify(bundle)
    availability: AvailabilitySet | None = payload_or_none(outcomes["availability"])
    if availability is not None:
        projections["platforms"] = from_offers(availability.offers)

    record = build_music_record(request, projections, availability, payload_or_none(outcomes["lyrics"]))
    failed = exhausted("music", outcomes)
    if failed is not None:
        logger.warning(str(failed))
    return ResearchReport(kind="music", record=record, outcomes=outcomes, exhausted=failed)
