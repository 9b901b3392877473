from __future__ import annotations

import json
import logging
import re
from typing import Any, Iterator

from bs4 import BeautifulSoup

from content_research.integrations.http import Fetcher, FetchTarget
from content_research.models.availability import LinkCandidate
from content_research.research.links import find_platform_urls, platform_from_url, unwrap_redirect

logger = logging.getLogger(__name__)

TMDB_SITE_BASE_URL = "https://www.themoviedb.org"

_OFFERS_KEY_RE = re.compile(r'"offers"\s*:\s*\[')
_PROVIDER_SELECTOR = ".ott_offer, .provider, .streaming_option"


def watch_page_url(media: str, tmdb_id: int, region: str) -> str:
    return f"{TMDB_SITE_BASE_URL}/{media}/{int(tmdb_id)}/watch?locale={region.upper()}"


def _offers_in_script(script: str) -> Iterator[dict[str, Any]]:
    decoder = json.JSONDecoder()
    for match in _OFFERS_KEY_RE.finditer(script):
        try:
            offers, _ = decoder.raw_decode(script, match.end() - 1)
        except ValueError:
            continue
        if isinstance(offers, list):
            for offer in offers:
                if isinstance(offer, dict):
                    yield offer


def _provider_name(element: Any) -> str | None:
    img = element.find("img")
    if img is not None and (img.get("alt") or "").strip():
        return img["alt"].strip()
    label = element.select_one(".provider_name")
    if label is not None and label.get_text(strip=True):
        return label.get_text(strip=True)
    data_provider = (element.get("data-provider") or "").strip()
    return data_provider or None


def parse_watch_page(html: str) -> list[LinkCandidate]:
    """
    Deep links embedded in a TMDb watch page.

    Sources, in order: JustWatch click-out anchors, provider buttons, `"offers"` JSON in
    inline scripts, then known platform URLs anywhere in inline scripts.
    """

    soup = BeautifulSoup(html or "", "html.parser")
    found: list[LinkCandidate] = []

    for anchor in soup.select("a[href]"):
        href = (anchor.get("href") or "").strip()
        if "justwatch.com" not in href:
            continue
        target = unwrap_redirect(href)
        if target == href:
            continue
        platform = platform_from_url(target)
        if platform:
            found.append(LinkCandidate(platform=platform, url=target))

    for element in soup.select(_PROVIDER_SELECTOR):
        anchor = element if element.name == "a" else element.find("a", href=True)
        href = ((anchor.get("href") if anchor is not None else None) or "").strip()
        name = _provider_name(element)
        if not name or not href.startswith("http") or "justwatch.com" in href:
            continue
        found.append(LinkCandidate(platform=name, url=href))

    for script in soup.find_all("script"):
        content = script.string or script.get_text() or ""
        if not content.strip():
            continue
        for offer in _offers_in_script(content):
            urls = offer.get("urls")
            web = urls.get("standard_web") if isinstance(urls, dict) else None
            if isinstance(web, str):
                platform = platform_from_url(web)
                if platform:
                    found.append(LinkCandidate(platform=platform, url=web))
        for platform, url in find_platform_urls(content):
            found.append(LinkCandidate(platform=platform, url=url))

    logger.debug(f"TMDb watch page yielded {len(found)} candidate links")
    return found


async def fetch_watch_page_links(fetcher: Fetcher, media: str, tmdb_id: int, region: str) -> list[LinkCandidate]:
    outcome = await fetcher.fetch(FetchTarget.page(watch_page_url(media, tmdb_id, region)))
    return parse_watch_page(outcome.unwrap().text)
