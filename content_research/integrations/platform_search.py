"""
Targeted per-platform lookups for providers that no scraped page linked to.

Each lookup fetches a platform's own search page, or a search-engine query scoped to
the platform's title paths, and pulls the first deep link that belongs to the title.
Lookups return None when nothing usable turns up.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Awaitable, Callable
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from content_research.errors import ProviderError
from content_research.integrations.http import Fetcher, FetchTarget

logger = logging.getLogger(__name__)

GOOGLE_SEARCH_URL = "https://www.google.com/search"

Sleep = Callable[[float], Awaitable[None]]

_URL_TAIL = r"[^\"'\s?&<>\\]+"


@dataclass(frozen=True)
class SiteQuery:
    """A search-engine query scoped to one platform plus the deep-link shape to pull out."""

    query: str
    pattern: re.Pattern[str]
    prefix: str = "https://www."


def _contains_title(text: str | None, title: str) -> bool:
    return bool(text) and title.casefold() in text.casefold()


def first_match_url(html: str, pattern: re.Pattern[str], *, prefix: str = "https://www.") -> str | None:
    # Result pages escape slashes inside inline JSON.
    match = pattern.search((html or "").replace("\\/", "/"))
    if not match:
        return None
    return f"{prefix}{match.group(0)}"


def parse_netflix_search(html: str, title: str, year: int | None = None) -> str | None:
    soup = BeautifulSoup(html or "", "html.parser")
    for anchor in soup.select('a[href*="/title/"]'):
        match = re.search(r"/title/(\d+)", anchor.get("href") or "")
        if match and _contains_title(anchor.get_text(" ", strip=True), title):
            return f"https://www.netflix.com/title/{match.group(1)}"

    for script in soup.find_all("script"):
        content = script.string or script.get_text() or ""
        for match in re.finditer(r'"id":(\d{8,})', content):
            context = content[max(0, match.start() - 200) : match.end() + 200]
            if _contains_title(context, title) or (year and str(year) in context):
                return f"https://www.netflix.com/title/{match.group(1)}"
    return None


def parse_amazon_search(html: str, title: str) -> str | None:
    soup = BeautifulSoup(html or "", "html.parser")
    for anchor in soup.select('a[href*="/dp/"], a[href*="/gp/video/detail/"]'):
        href = anchor.get("href") or ""
        label_el = anchor.select_one('[data-cy="title-recipe-title"]')
        label = label_el.get_text(" ", strip=True) if label_el is not None else ""
        if not label:
            card = anchor.find_parent(attrs={"data-component-type": "s-search-result"})
            heading = card.select_one("h2 a span, h2 span") if card is not None else None
            label = heading.get_text(" ", strip=True) if heading is not None else anchor.get_text(" ", strip=True)
        if not _contains_title(label, title):
            continue
        dp = re.search(r"/dp/([A-Z0-9]{10})", href)
        if dp:
            return f"https://www.amazon.com/dp/{dp.group(1)}"
        detail = re.search(r"/gp/video/detail/([A-Z0-9]{10})", href)
        if detail:
            return f"https://www.amazon.com/gp/video/detail/{detail.group(1)}"
    return None


def _anchor_label(anchor) -> str:
    text = anchor.get_text(" ", strip=True)
    if text:
        return text
    img = anchor.find("img")
    return (img.get("alt") or "").strip() if img is not None else ""


def parse_hulu_search(html: str, title: str) -> str | None:
    soup = BeautifulSoup(html or "", "html.parser")
    for anchor in soup.select('a[href*="/movie/"], a[href*="/watch/"], a[href*="/series/"]'):
        if _contains_title(_anchor_label(anchor), title):
            return urljoin("https://www.hulu.com", anchor.get("href") or "")
    return None


def parse_apple_tv_search(html: str, title: str) -> str | None:
    soup = BeautifulSoup(html or "", "html.parser")
    for anchor in soup.select('a[href*="/movie/"], a[href*="/show/"]'):
        if _contains_title(_anchor_label(anchor), title):
            return urljoin("https://tv.apple.com", anchor.get("href") or "")

    pattern = re.compile(r"tv\.apple\.com/us/(?:movie|show)/[^\"'\s<>\\]+")
    for script in soup.find_all("script"):
        content = (script.string or script.get_text() or "").replace("\\/", "/")
        if not _contains_title(content, title):
            continue
        match = pattern.search(content)
        if match:
            return f"https://{match.group(0)}"
    return None


def _site_queries(title: str, year: int | None, media: str) -> dict[str, SiteQuery]:
    year_part = f" {year}" if year else ""
    quoted = f'"{title}"{year_part}'
    if media == "tv":
        return {
            "netflix": SiteQuery(
                f'site:netflix.com "{title}" tv series', re.compile(r"netflix\.com/(?:[a-z]{2}/)?title/\d+", re.I)
            ),
            "amazon": SiteQuery(
                f'site:amazon.com "{title}" prime video tv series',
                re.compile(rf"amazon\.com/(?:{_URL_TAIL}/)?(?:dp|gp/video/detail)/[A-Z0-9]{{10}}"),
            ),
            "hulu": SiteQuery(f'site:hulu.com "{title}" tv series', re.compile(rf"hulu\.com/(?:series|watch)/{_URL_TAIL}", re.I)),
            "disney": SiteQuery(
                f'site:disneyplus.com "{title}" tv series',
                re.compile(rf"disneyplus\.com/(?:[a-z]{{2}}-[a-z]{{2}}/)?(?:series|video)/{_URL_TAIL}", re.I),
            ),
            "max": SiteQuery(
                f'site:max.com "{title}" tv series OR site:hbomax.com "{title}"',
                re.compile(rf"(?<![a-z0-9])(?:www\.|play\.)?(?:hbo)?max\.com/(?:shows?|series)/{_URL_TAIL}", re.I),
                prefix="https://",
            ),
            "apple": SiteQuery(
                f'site:tv.apple.com "{title}" tv series',
                re.compile(rf"tv\.apple\.com/(?:[a-z]{{2}}/)?show/{_URL_TAIL}", re.I),
                prefix="https://",
            ),
            "google_play": SiteQuery(
                f'site:play.google.com "{title}" tv series',
                re.compile(rf"play\.google\.com/store/tv/details/{_URL_TAIL}", re.I),
                prefix="https://",
            ),
            "vudu": SiteQuery(
                f'site:vudu.com "{title}" tv series',
                re.compile(rf"vudu\.com/content/(?:movies|browse|tv)/{_URL_TAIL}", re.I),
            ),
        }
    return {
        "amazon_web": SiteQuery(
            f"{quoted} site:amazon.com/gp/video/detail",
            re.compile(r"amazon\.com/gp/video/detail/[A-Z0-9]{10}", re.I),
        ),
        "disney": SiteQuery(
            f"{quoted} site:disneyplus.com/movies",
            re.compile(rf"disneyplus\.com/(?:[a-z]{{2}}-[a-z]{{2}}/)?movies/{_URL_TAIL}", re.I),
        ),
        "max": SiteQuery(
            f"{quoted} site:max.com",
            re.compile(rf"(?<![a-z0-9])(?:www\.|play\.)?max\.com/(?:movies?|video|feature)/{_URL_TAIL}", re.I),
            prefix="https://",
        ),
        "paramount": SiteQuery(
            f"{quoted} site:paramountplus.com/movies",
            re.compile(rf"paramountplus\.com/(?:[a-z]{{2}}/)?movies/{_URL_TAIL}", re.I),
        ),
        "youtube": SiteQuery(
            f"{quoted} full movie site:youtube.com/watch",
            re.compile(r"youtube\.com/watch\?v=[A-Za-z0-9_-]{11}"),
        ),
        "google_play": SiteQuery(
            f"{quoted} site:play.google.com/store/movies/details",
            re.compile(rf"play\.google\.com/store/movies/details/{_URL_TAIL}", re.I),
            prefix="https://",
        ),
    }


# Staggered start so concurrent lookups do not hit the search engine at once.
PRE_DELAY_SECONDS = {
    "netflix": 1.0,
    "amazon": 1.5,
    "youtube": 2.0,
    "google_play": 2.5,
}


class PlatformLookup:
    """
    Targeted lookups for one title.

    `media` is "movie" or "tv". Routes are chosen from the provider name the same way
    for every region; the aggregator runs each route at most once.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        *,
        title: str,
        year: int | None = None,
        media: str = "movie",
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        if media not in ("movie", "tv"):
            raise ValueError(f"Unsupported media type: {media!r}")
        self._fetcher = fetcher
        self._title = title
        self._year = year
        self._media = media
        self._sleep = sleep
        self._queries = _site_queries(title, year, media)

    def route(self, provider_name: str) -> str | None:
        name = (provider_name or "").casefold()
        if "netflix" in name:
            return "netflix"
        if "amazon" in name or "prime" in name:
            return "amazon"
        if "hulu" in name:
            return "hulu"
        if "apple" in name or "itunes" in name:
            return "apple"
        if "disney" in name:
            return "disney"
        if "hbo" in name or "max" in name.split():
            return "max"
        if "paramount" in name:
            return "paramount"
        if "youtube" in name:
            return "youtube"
        if "google play" in name:
            return "google_play"
        if ("vudu" in name or "fandango" in name) and self._media == "tv":
            return "vudu"
        return None

    async def lookup(self, route: str) -> str | None:
        delay = PRE_DELAY_SECONDS.get(route, 0.0)
        if delay:
            await self._sleep(delay)

        if self._media == "movie":
            if route == "netflix":
                return await self._page_lookup(
                    "https://www.netflix.com/search",
                    {"q": self._title},
                    lambda html: parse_netflix_search(html, self._title, self._year),
                )
            if route == "amazon":
                return await self._amazon_movie()
            if route == "hulu":
                return await self._page_lookup(
                    "https://www.hulu.com/search", {"q": self._title}, lambda html: parse_hulu_search(html, self._title)
                )
            if route == "apple":
                return await self._page_lookup(
                    "https://tv.apple.com/us/search",
                    {"term": self._title},
                    lambda html: parse_apple_tv_search(html, self._title),
                )

        query = self._queries.get(route)
        if query is None:
            return None
        return await self._site_search(query)

    async def _page_lookup(self, url: str, params: dict[str, str], parse: Callable[[str], str | None]) -> str | None:
        outcome = await self._fetcher.fetch(FetchTarget.page(url, params=params))
        found = parse(outcome.unwrap().text)
        logger.debug(f"Lookup {url} for {self._title!r} -> {found}")
        return found

    async def _site_search(self, query: SiteQuery) -> str | None:
        outcome = await self._fetcher.fetch(
            FetchTarget.page(GOOGLE_SEARCH_URL, params={"q": query.query}, timeout_seconds=10.0)
        )
        found = first_match_url(outcome.unwrap().text, query.pattern, prefix=query.prefix)
        logger.debug(f"Site search {query.query!r} -> {found}")
        return found

    async def _amazon_movie(self) -> str | None:
        term = f"{self._title} {self._year}" if self._year else self._title
        try:
            found = await self._page_lookup(
                "https://www.amazon.com/s",
                {"k": term, "i": "prime-instant-video"},
                lambda html: parse_amazon_search(html, self._title),
            )
        except ProviderError as exc:
            logger.debug(f"Amazon search failed for {self._title!r}: {exc}")
            found = None
        if found:
            return found
        return await self._site_search(self._queries["amazon_web"])
