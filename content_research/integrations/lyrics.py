"""
Lyrics lookups: Genius search first, AZLyrics as the fallback.

Only a short preview is kept alongside the page link; full lyrics are never stored.
"""

from __future__ import annotations

import logging
import re
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from content_research.errors import NoMatchFound, ProviderError
from content_research.integrations.http import Fetcher, FetchTarget
from content_research.models.records import Lyrics

logger = logging.getLogger(__name__)

GENIUS_BASE_URL = "https://genius.com"
AZLYRICS_BASE_URL = "https://www.azlyrics.com"
PREVIEW_LENGTH = 200
PROVIDER = "lyrics"

_ALNUM_RE = re.compile(r"[^a-z0-9]")


def preview(text: str, length: int = PREVIEW_LENGTH) -> str:
    text = (text or "").strip()
    if len(text) <= length:
        return text
    return text[:length] + "..."


def parse_genius_search(html: str) -> str | None:
    soup = BeautifulSoup(html or "", "html.parser")
    anchor = soup.select_one(".search_result a[href]")
    if anchor is None:
        return None
    return urljoin(GENIUS_BASE_URL, anchor["href"])


def parse_genius_song(html: str) -> str | None:
    soup = BeautifulSoup(html or "", "html.parser")
    containers = soup.select('[data-lyrics-container="true"]') or soup.select(".lyrics")
    text = "\n".join(c.get_text("\n", strip=True) for c in containers).strip()
    return text or None


def azlyrics_url(title: str, artist: str) -> str:
    artist_part = _ALNUM_RE.sub("", artist.lower())
    title_part = _ALNUM_RE.sub("", title.lower())
    return f"{AZLYRICS_BASE_URL}/lyrics/{artist_part}/{title_part}.html"


def parse_azlyrics_song(html: str) -> str | None:
    # The lyrics block is the first unstyled div with real content.
    soup = BeautifulSoup(html or "", "html.parser")
    for div in soup.find_all("div"):
        if div.get("class") or div.get("id"):
            continue
        text = div.get_text("\n", strip=True)
        if len(text) > 100:
            return text
    return None


async def _genius(fetcher: Fetcher, title: str, artist: str) -> Lyrics | None:
    search = await fetcher.fetch(FetchTarget.page(f"{GENIUS_BASE_URL}/search", params={"q": f"{artist} {title}"}))
    song_url = parse_genius_search(search.unwrap().text)
    if not song_url:
        return None
    page = await fetcher.fetch(FetchTarget.page(song_url))
    text = parse_genius_song(page.unwrap().text)
    if not text:
        return None
    return Lyrics(preview=preview(text), full_lyrics_link=song_url)


async def _azlyrics(fetcher: Fetcher, title: str, artist: str) -> Lyrics | None:
    url = azlyrics_url(title, artist)
    page = await fetcher.fetch(FetchTarget.page(url))
    text = parse_azlyrics_song(page.unwrap().text)
    if not text:
        return None
    return Lyrics(preview=preview(text), full_lyrics_link=url)


async def fetch_lyrics(fetcher: Fetcher, title: str, artist: str) -> Lyrics:
    try:
        found = await _genius(fetcher, title, artist)
    except ProviderError as exc:
        logger.info(f"Genius lookup failed for {title!r} / {artist!r}: {exc}")
        found = None
    if found is not None:
        return found

    found = await _azlyrics(fetcher, title, artist)
    if found is None:
        raise NoMatchFound(f"No lyrics found for {title!r} by {artist!r}.", provider=PROVIDER)
    return found
