from __future__ import annotations

import logging
import re
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from content_research.integrations.http import Fetcher, FetchTarget
from content_research.models.availability import LinkCandidate
from content_research.research.links import platform_from_url, unwrap_redirect
from content_research.research.matching import tokens

logger = logging.getLogger(__name__)

JUSTWATCH_BASE_URL = "https://www.justwatch.com"

# JustWatch's country paths differ from ISO codes in a few places.
COUNTRY_PATHS = {"GB": "uk"}

_YEAR_RE = re.compile(r"\b(\d{4})\b")


def country_path(region: str) -> str:
    code = (region or "US").upper()
    return COUNTRY_PATHS.get(code, code.lower())


def search_url(region: str) -> str:
    return f"{JUSTWATCH_BASE_URL}/{country_path(region)}/search"


def _title_matches(row_title: str, wanted: str) -> bool:
    row_tokens = tokens(row_title)
    wanted_tokens = tokens(wanted)
    if not row_tokens or not wanted_tokens:
        return False
    width = len(wanted_tokens)
    return any(row_tokens[i : i + width] == wanted_tokens for i in range(len(row_tokens) - width + 1))


def parse_search_results(html: str, title: str, year: int | None = None) -> list[LinkCandidate]:
    """
    Offer links from the rows of a JustWatch search page that match `title` (and
    `year`, when the row shows one). Redirect wrappers are unwrapped.
    """

    soup = BeautifulSoup(html or "", "html.parser")
    found: list[LinkCandidate] = []

    for row in soup.select(".title-list-row"):
        title_el = row.select_one(".title")
        row_title = title_el.get_text(" ", strip=True) if title_el is not None else ""
        if not _title_matches(row_title, title):
            continue

        subtitle = row.select_one(".subtitle")
        year_match = _YEAR_RE.search(subtitle.get_text(" ", strip=True)) if subtitle is not None else None
        if year and year_match and int(year_match.group(1)) != int(year):
            continue

        for offer in row.select(".offer"):
            img = offer.find("img")
            name = ((img.get("alt") if img is not None else None) or offer.get("title") or "").strip()
            anchor = offer if offer.name == "a" else offer.find("a", href=True)
            href = ((anchor.get("href") if anchor is not None else None) or "").strip()
            if not href:
                continue
            url = unwrap_redirect(urljoin(JUSTWATCH_BASE_URL, href))
            platform = name or platform_from_url(url)
            if platform:
                found.append(LinkCandidate(platform=platform, url=url))

    logger.debug(f"JustWatch search for {title!r} yielded {len(found)} candidate links")
    return found


async def search_offers(
    fetcher: Fetcher,
    title: str,
    *,
    region: str = "US",
    year: int | None = None,
    content_type: str | None = None,
) -> list[LinkCandidate]:
    params = {"q": title}
    if content_type:
        params["content_type"] = content_type
    outcome = await fetcher.fetch(FetchTarget.page(search_url(region), params=params))
    return parse_search_results(outcome.unwrap().text, title, year)
