"""
Deep-link recognition for streaming, music and book platforms.

A discovered URL only counts as evidence of availability when it points at a concrete
title page. Search pages, listings and country landing pages are what platforms hand
back when they could not resolve the title, so they are always rejected.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterator
from urllib.parse import parse_qsl, urlsplit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlatformRule:
    platform: str
    hosts: tuple[str, ...]
    paths: tuple[re.Pattern[str], ...]
    category: str = "video"

    def matches_host(self, host: str) -> bool:
        return any(host == h or host.endswith(f".{h}") for h in self.hosts)

    def matches_path(self, path_and_query: str) -> bool:
        return any(p.search(path_and_query) for p in self.paths)


def _p(*patterns: str) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


_AMAZON_HOSTS = (
    "amazon.com",
    "amazon.co.uk",
    "amazon.de",
    "amazon.fr",
    "amazon.in",
    "amazon.ca",
    "amazon.com.au",
    "amazon.co.jp",
    "amazon.com.br",
    "amazon.com.mx",
)

_LOCALE = r"(?:[a-z]{2}(?:[-_][a-z]{2})?/)?"

# Order matters: more specific hosts come before the hosts they are subdomains of.
PLATFORM_RULES: tuple[PlatformRule, ...] = (
    # Video
    PlatformRule("Netflix", ("netflix.com",), _p(rf"^/{_LOCALE}(?:title|watch)/\d+")),
    PlatformRule(
        "Amazon Prime Video",
        ("primevideo.com", "watch.amazon.com"),
        _p(r"^/(?:[a-z-]+/)?(?:detail|dp)/[A-Za-z0-9.]+"),
    ),
    PlatformRule(
        "Amazon Music",
        tuple(f"music.{h}" for h in _AMAZON_HOSTS),
        _p(r"^/(?:albums|tracks)/[A-Z0-9]{10}"),
        category="music",
    ),
    PlatformRule("Prime Video", _AMAZON_HOSTS, _p(r"^/gp/video/detail/[A-Z0-9]+")),
    PlatformRule("Amazon", _AMAZON_HOSTS, _p(r"(?:^|/)dp/[A-Z0-9]{10}", r"^/gp/product/[A-Z0-9]{10}"), category="store"),
    PlatformRule("Hulu", ("hulu.com",), _p(r"^/(?:movie|watch|series)/[^/?#]+")),
    PlatformRule("Apple TV", ("tv.apple.com",), _p(r"^/(?:[a-z]{2}/)?(?:movie|show|episode)/[^?#]+")),
    PlatformRule("Apple Music", ("music.apple.com",), _p(r"^/(?:[a-z]{2}/)?(?:album|song)/[^?#]+"), category="music"),
    PlatformRule("Apple Books", ("books.apple.com",), _p(r"^/(?:[a-z]{2}/)?(?:book|audiobook)/[^?#]+"), category="book"),
    PlatformRule("iTunes", ("itunes.apple.com",), _p(r"^/(?:[a-z]{2}/)?(?:movie|album|tv-season|book)/[^?#]+"), category="store"),
    PlatformRule(
        "Disney Plus",
        ("disneyplus.com",),
        _p(r"^/(?:[a-z]{2}-[a-z]{2}/)?(?:movies|series|video)/[^?#]+", r"^/(?:[a-z]{2}-[a-z]{2}/)?browse/entity-"),
    ),
    PlatformRule(
        "Max",
        ("play.max.com", "max.com", "play.hbomax.com", "hbomax.com"),
        _p(r"^/(?:[a-z]{2}/)?(?:movies?|shows?|series|video|feature|page)/[^?#]+"),
    ),
    PlatformRule("Paramount Plus", ("paramountplus.com",), _p(r"^/(?:[a-z]{2}/)?(?:movies|shows)/[^?#]+")),
    PlatformRule(
        "YouTube Music",
        ("music.youtube.com",),
        _p(r"^/watch\?(?:[^#]*&)?v=[A-Za-z0-9_-]{11}", r"^/playlist\?(?:[^#]*&)?list=[A-Za-z0-9_-]+"),
        category="music",
    ),
    PlatformRule(
        "YouTube",
        ("youtube.com",),
        _p(r"^/watch\?(?:[^#]*&)?v=[A-Za-z0-9_-]{11}", r"^/(?:movie|shorts)/[^?#]+"),
    ),
    PlatformRule("YouTube", ("youtu.be",), _p(r"^/[A-Za-z0-9_-]{11}")),
    PlatformRule(
        "Google Play Books",
        ("play.google.com",),
        _p(r"^/store/books/details", r"^/books/reader\?(?:[^#]*&)?id="),
        category="book",
    ),
    PlatformRule("Google Play Movies", ("play.google.com",), _p(r"^/store/(?:movies|tv)/details")),
    PlatformRule(
        "Google Books",
        ("books.google.com", "books.google.co.uk", "books.google.ca", "books.google.de"),
        _p(r"^/books(?:/about)?\?(?:[^#]*&)?id=[\w-]+", r"^/books/edition/[^/?#]+/[\w-]+"),
        category="book",
    ),
    PlatformRule("Lionsgate Play", ("lionsgateplay.com",), _p(r"^/(?:[a-z]{2}/)?(?:movie|show|title)s?/[^?#]+")),
    PlatformRule("Lionsgate", ("lionsgate.com",), _p(r"^/(?:movies|films|tv)/[^?#]+")),
    PlatformRule("Rakuten TV", ("rakuten.tv",), _p(r"^/[a-z]{2}/(?:movies|tv_shows)/[^?#]+")),
    PlatformRule("Sky Store", ("skystore.com",), _p(r"^/(?:product|movies?|tv)/[^?#]+")),
    PlatformRule("Cineplex", ("store.cineplex.com", "cineplex.com"), _p(r"^/(?:[a-z-]+/)?(?:product|movie|film)s?/[^?#]+")),
    PlatformRule("Plex", ("plex.tv",), _p(r"^/(?:[a-z]{2}/)?(?:movie|show)/[^?#]+")),
    PlatformRule(
        "Fandango At Home",
        ("athome.fandango.com", "vudu.com"),
        _p(r"^/content/(?:movies|browse|tv)/[^?#]+"),
    ),
    PlatformRule("Fandango", ("fandango.com",), _p(r"^/[a-z0-9-]+-\d+/movie-overview")),
    PlatformRule(
        "Microsoft Store",
        ("apps.microsoft.com", "microsoft.com"),
        _p(r"^/(?:[a-z]{2}-[a-z]{2}/)?(?:store/)?p/[^/?#]+/[a-z0-9]{12}", r"^/detail/[a-z0-9]{12}"),
    ),
    PlatformRule(
        "The Roku Channel",
        ("therokuchannel.roku.com", "roku.com"),
        _p(r"^/details/[^?#]+", r"^/(?:[a-z-]+/)?whats-on/(?:movies|tv)/[^?#]+"),
    ),
    PlatformRule("Tubi TV", ("tubitv.com", "tubi.tv"), _p(r"^/(?:movies|series|tv-shows)/\d+")),
    PlatformRule("Crackle", ("crackle.com",), _p(r"^/(?:watch|details)/[^?#]+")),
    PlatformRule("Peacock", ("peacocktv.com",), _p(r"^/(?:watch/asset|stream-movies|stream-tv|movies)/[^?#]+")),
    PlatformRule("Showtime", ("showtime.com", "sho.com"), _p(r"^/(?:titles|movies?|series)/[^?#]+")),
    PlatformRule("Starz", ("starz.com",), _p(r"^/(?:[a-z]{2}/[a-z]{2}/)?(?:movies|series)/[^?#]+")),
    PlatformRule("MGM Plus", ("mgmplus.com", "epix.com"), _p(r"^/(?:movie|series)/[^?#]+")),
    PlatformRule("Cinemax", ("cinemax.com",), _p(r"^/(?:movies?|series)/[^?#]+")),
    PlatformRule("Discovery+", ("discoveryplus.com", "discovery.com"), _p(r"^/(?:[a-z]{2}/)?(?:show|video)/[^?#]+")),
    PlatformRule("Funimation", ("funimation.com",), _p(r"^/(?:[a-z]{2}/)?(?:shows|v)/[^?#]+")),
    PlatformRule("Crunchyroll", ("crunchyroll.com",), _p(r"^/(?:[a-z]{2}/)?(?:watch|series)/[^?#]+")),
    # Music
    PlatformRule(
        "Spotify",
        ("open.spotify.com",),
        _p(r"^/(?:intl-[a-z]+/)?(?:track|album)/[A-Za-z0-9]{22}"),
        category="music",
    ),
    PlatformRule("Deezer", ("deezer.com",), _p(r"^/(?:[a-z]{2}/)?(?:track|album)/\d+"), category="music"),
    PlatformRule("Tidal", ("tidal.com",), _p(r"^/(?:browse/)?(?:track|album)/\d+"), category="music"),
    # Books
    PlatformRule("Audible", ("audible.com", "audible.co.uk"), _p(r"^/pd/[^?#]+"), category="book"),
    PlatformRule("Barnes & Noble", ("barnesandnoble.com",), _p(r"^/w/[^?#]+"), category="book"),
    PlatformRule("Kobo", ("kobo.com",), _p(r"^/(?:[a-z]{2}/[a-z]{2}/)?(?:ebook|audiobook)/[^?#]+"), category="book"),
    PlatformRule("Goodreads", ("goodreads.com",), _p(r"^/book/show/\d+"), category="book"),
)

_SEARCH_QUERY_KEYS = frozenset({"q", "k", "term", "query", "search_query", "keywords", "searchterm"})
_SEARCH_SEGMENT_RE = re.compile(r"^(?:s|search|searchresults?|results|find)$", re.IGNORECASE)
_LOCALE_ONLY_PATH_RE = re.compile(r"^(?:/[a-z]{2}(?:[-_][a-z]{2})?)*/?$", re.IGNORECASE)

_URL_IN_TEXT_RE = re.compile(r"https?://[^\s\"'<>\\)]+")

REDIRECT_PARAMS = ("r", "url", "u", "target")


def _split(url: str) -> tuple[str, str, str] | None:
    if not isinstance(url, str) or not url.strip():
        return None
    try:
        parts = urlsplit(url.strip())
    except ValueError:
        return None
    if parts.scheme not in ("http", "https") or not parts.hostname:
        return None
    host = parts.hostname.lower()
    if host.startswith("www."):
        host = host[4:]
    return host, parts.path or "/", parts.query


def is_search_or_listing(url: str) -> bool:
    """True for search pages, result listings and bare country/locale landing pages."""

    parts = _split(url)
    if parts is None:
        return True
    _, path, query = parts

    segments = [s for s in path.split("/") if s]
    if any(_SEARCH_SEGMENT_RE.match(s) for s in segments):
        return True
    if _LOCALE_ONLY_PATH_RE.match(path):
        return True

    keys = {k.lower() for k, _ in parse_qsl(query, keep_blank_values=True)}
    return bool(keys & _SEARCH_QUERY_KEYS)


def _matching_rule(host: str, path_and_query: str) -> PlatformRule | None:
    for rule in PLATFORM_RULES:
        if rule.matches_host(host) and rule.matches_path(path_and_query):
            return rule
    return None


def is_genuine_content_link(url: str) -> bool:
    parts = _split(url)
    if parts is None:
        return False
    host, path, query = parts

    if is_search_or_listing(url):
        logger.debug(f"Rejecting search/listing URL: {url}")
        return False

    path_and_query = f"{path}?{query}" if query else path
    if _matching_rule(host, path_and_query) is None:
        logger.debug(f"Rejecting URL without a known deep-link shape: {url}")
        return False
    return True


def platform_from_url(url: str) -> str | None:
    """
    Canonical platform name for a URL.

    Prefers the rule whose deep-link shape matches, then any rule owning the host.
    """

    parts = _split(url)
    if parts is None:
        return None
    host, path, query = parts
    path_and_query = f"{path}?{query}" if query else path

    rule = _matching_rule(host, path_and_query)
    if rule is not None:
        return rule.platform
    for rule in PLATFORM_RULES:
        if rule.matches_host(host):
            return rule.platform
    return None


def unwrap_redirect(url: str, *, max_depth: int = 3) -> str:
    """
    Follow tracking redirects that carry their destination in a query parameter.

    JustWatch click-outs and TMDb watch buttons wrap the platform URL as `?r=` or
    `?url=`.
    """

    current = (url or "").strip()
    for _ in range(max_depth):
        parts = _split(current)
        if parts is None:
            break
        params = dict(parse_qsl(parts[2], keep_blank_values=False))
        target = next(
            (params[k] for k in REDIRECT_PARAMS if params.get(k, "").startswith(("http://", "https://"))),
            None,
        )
        if target is None:
            break
        current = target
    return current


def find_platform_urls(text: str) -> Iterator[tuple[str, str]]:
    """
    Scan free text (inline scripts, JSON blobs) for known platform deep links.

    Yields `(platform, url)` pairs in order of appearance.
    """

    # Inline JSON escapes forward slashes.
    cleaned = (text or "").replace("\\/", "/").replace("\\u002F", "/")
    for match in _URL_IN_TEXT_RE.finditer(cleaned):
        candidate = match.group(0).rstrip(".,;")
        platform = platform_from_url(candidate)
        if platform and is_genuine_content_link(candidate):
            yield platform, candidate
