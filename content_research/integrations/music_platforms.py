"""
Music availability lookups. Each function returns ready-made offers for one platform,
or an empty list when the platform's search page did not resolve the track.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Mapping
from urllib.parse import parse_qs, quote, urljoin, urlsplit

from bs4 import BeautifulSoup

from content_research.errors import ProviderError
from content_research.integrations.http import Fetcher, FetchTarget
from content_research.models.availability import AvailabilityOffer, OfferKind

logger = logging.getLogger(__name__)

APPLE_MUSIC_BASE_URL = "https://music.apple.com"
ITUNES_SEARCH_URL = "https://itunes.apple.com/search"
YOUTUBE_BASE_URL = "https://www.youtube.com"
AMAZON_MUSIC_BASE_URL = "https://music.amazon.com"
DEEZER_BASE_URL = "https://www.deezer.com"
TIDAL_BASE_URL = "https://tidal.com"

_VIDEO_ID_RE = re.compile(r'"videoId":"([A-Za-z0-9_-]{11})"')
_VIDEO_TITLE_RE = re.compile(r'"title":\{"runs":\[\{"text":"((?:[^"\\]|\\.)*)"')
_TRAILING_ID_RE = re.compile(r"/(\d+)(?:[/?#]|$)")


def _query(title: str, artist: str) -> str:
    return f"{artist} {title}"


def _first_row_link(html: str, row_selector: str, base_url: str, href_pattern: str) -> str | None:
    soup = BeautifulSoup(html or "", "html.parser")
    pattern = re.compile(href_pattern)
    for row in soup.select(row_selector):
        anchors = [row] if row.name == "a" and row.get("href") else row.find_all("a", href=True)
        for anchor in anchors:
            href = anchor.get("href") or ""
            if pattern.search(href):
                return urljoin(base_url, href)
    return None


def parse_apple_music_search(html: str) -> str | None:
    return _first_row_link(
        html,
        '[data-testid="track-lockup"], .songs-list-row, .track-lockup',
        APPLE_MUSIC_BASE_URL,
        r"/(?:song|album)/",
    )


def parse_itunes_results(payload: Mapping[str, Any]) -> tuple[str, str | None] | None:
    """`(trackViewUrl, price)` of the first iTunes Search API result."""

    results = payload.get("results")
    if not isinstance(results, list) or not results or not isinstance(results[0], Mapping):
        return None
    first = results[0]
    url = first.get("trackViewUrl")
    if not isinstance(url, str) or not url:
        return None
    price = first.get("trackPrice")
    currency = first.get("currency")
    label = f"{price:.2f} {currency}" if isinstance(price, (int, float)) and price > 0 and currency else None
    return url, label


def parse_youtube_results(html: str, title: str, artist: str) -> str | None:
    """
    Pick a video from the results page's inline JSON.

    Prefers the first video whose title mentions both the track and the artist.
    """

    text = html or ""
    ids = _VIDEO_ID_RE.findall(text)
    if not ids:
        return None
    titles = _VIDEO_TITLE_RE.findall(text)
    wanted_title = title.casefold()
    wanted_artist = artist.casefold()
    for video_id, video_title in zip(ids, titles):
        folded = video_title.casefold()
        if wanted_title in folded and wanted_artist in folded:
            return f"{YOUTUBE_BASE_URL}/watch?v={video_id}"
    return f"{YOUTUBE_BASE_URL}/watch?v={ids[0]}"


def parse_amazon_music_search(html: str) -> str | None:
    return _first_row_link(
        html,
        '.music-item, .track-row, [data-testid="music-item"]',
        AMAZON_MUSIC_BASE_URL,
        r"/(?:albums|tracks)/",
    )


def parse_deezer_search(html: str) -> str | None:
    return _first_row_link(
        html,
        '[data-testid="track"], .track-item, .song-item',
        DEEZER_BASE_URL,
        r"/track/\d+",
    )


def parse_tidal_search(html: str) -> str | None:
    return _first_row_link(
        html,
        '[data-test="track-item"], .track-item, .media-item',
        TIDAL_BASE_URL,
        r"/track/\d+",
    )


def youtube_video_id(url: str | None) -> str | None:
    if not url:
        return None
    values = parse_qs(urlsplit(url).query).get("v")
    return values[0] if values else None


def apple_music_id(url: str | None) -> str | None:
    """Track id: `?i=` on album links, otherwise the trailing numeric segment."""

    if not url:
        return None
    parts = urlsplit(url)
    track = parse_qs(parts.query).get("i")
    if track:
        return track[0]
    match = _TRAILING_ID_RE.search(parts.path)
    return match.group(1) if match else None


def deezer_id(url: str | None) -> str | None:
    if not url:
        return None
    match = re.search(r"/track/(\d+)", urlsplit(url).path)
    return match.group(1) if match else None


async def _page(fetcher: Fetcher, url: str, params: Mapping[str, Any] | None = None) -> str:
    outcome = await fetcher.fetch(FetchTarget.page(url, params=params))
    return outcome.unwrap().text


async def apple_music_offers(fetcher: Fetcher, title: str, artist: str) -> list[AvailabilityOffer]:
    """Apple Music (subscription) and iTunes (buy); the iTunes Search API is the fallback."""

    url: str | None = None
    price: str | None = None
    try:
        url = parse_apple_music_search(
            await _page(fetcher, f"{APPLE_MUSIC_BASE_URL}/search", {"term": _query(title, artist)})
        )
    except ProviderError as exc:
        logger.info(f"Apple Music search failed for {title!r}: {exc}")

    if not url:
        outcome = await fetcher.fetch(
            FetchTarget.api(
                ITUNES_SEARCH_URL,
                params={"term": _query(title, artist), "media": "music", "entity": "song", "limit": 1},
            )
        )
        found = parse_itunes_results(outcome.unwrap().json_object())
        if found is None:
            return []
        url, price = found

    return [
        AvailabilityOffer(platform="Apple Music", url=url, kind=OfferKind.SUBSCRIPTION),
        AvailabilityOffer(platform="iTunes", url=url, kind=OfferKind.BUY, price=price),
    ]


async def youtube_offers(fetcher: Fetcher, title: str, artist: str) -> list[AvailabilityOffer]:
    html = await _page(fetcher, f"{YOUTUBE_BASE_URL}/results", {"search_query": f"{artist} {title} official"})
    url = parse_youtube_results(html, title, artist)
    if not url:
        return []
    return [AvailabilityOffer(platform="YouTube", url=url, kind=OfferKind.FREE)]


async def amazon_music_offers(fetcher: Fetcher, title: str, artist: str) -> list[AvailabilityOffer]:
    html = await _page(fetcher, f"{AMAZON_MUSIC_BASE_URL}/search/{quote(_query(title, artist))}")
    url = parse_amazon_music_search(html)
    if not url:
        return []
    return [
        AvailabilityOffer(platform="Amazon Music", url=url, kind=OfferKind.SUBSCRIPTION),
        AvailabilityOffer(platform="Amazon Music", url=url, kind=OfferKind.BUY),
    ]


async def deezer_offers(fetcher: Fetcher, title: str, artist: str) -> list[AvailabilityOffer]:
    html = await _page(fetcher, f"{DEEZER_BASE_URL}/search/{quote(_query(title, artist))}")
    url = parse_deezer_search(html)
    return [AvailabilityOffer(platform="Deezer", url=url, kind=OfferKind.SUBSCRIPTION)] if url else []


async def tidal_offers(fetcher: Fetcher, title: str, artist: str) -> list[AvailabilityOffer]:
    html = await _page(fetcher, f"{TIDAL_BASE_URL}/search", {"q": _query(title, artist)})
    url = parse_tidal_search(html)
    return [AvailabilityOffer(platform="Tidal", url=url, kind=OfferKind.SUBSCRIPTION)] if url else []
