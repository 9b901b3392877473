from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup

from content_research.errors import NoMatchFound
from content_research.integrations.http import Fetcher, FetchTarget
from content_research.research.matching import tokens

logger = logging.getLogger(__name__)

GOODREADS_BASE_URL = "https://www.goodreads.com"
PROVIDER = "goodreads"

_AVG_RE = re.compile(r"(\d+(?:\.\d+)?)\s+avg rating")
_COUNT_RE = re.compile(r"([\d,]+)\s+ratings?")
_BOOK_ID_RE = re.compile(r"/book/show/(\d+)")


@dataclass(frozen=True)
class GoodreadsBook:
    id: str
    url: str
    title: str
    rating: float | None = None
    ratings_count: int | None = None


def _covers(text: str, wanted: str) -> bool:
    have = tokens(text)
    need = tokens(wanted)
    return bool(need) and all(t in have for t in need)


def parse_search_results(html: str, title: str, author: str | None = None) -> GoodreadsBook | None:
    """First search-table row whose title (and author, when given) matches."""

    soup = BeautifulSoup(html or "", "html.parser")
    for row in soup.select('tr[itemtype="http://schema.org/Book"]'):
        title_el = row.select_one("a.bookTitle")
        if title_el is None:
            continue
        row_title = title_el.get_text(" ", strip=True)
        if not _covers(row_title, title):
            continue
        author_el = row.select_one("a.authorName")
        if author and author_el is not None and not _covers(author_el.get_text(" ", strip=True), author):
            continue

        href = title_el.get("href") or ""
        id_match = _BOOK_ID_RE.search(href)
        if not id_match:
            continue
        url = urljoin(GOODREADS_BASE_URL, urlsplit(href).path)

        mini = row.select_one(".minirating")
        mini_text = mini.get_text(" ", strip=True) if mini is not None else ""
        avg = _AVG_RE.search(mini_text)
        count = _COUNT_RE.search(mini_text)
        return GoodreadsBook(
            id=id_match.group(1),
            url=url,
            title=row_title,
            rating=float(avg.group(1)) if avg else None,
            ratings_count=int(count.group(1).replace(",", "")) if count else None,
        )
    return None


async def search_book(fetcher: Fetcher, title: str, author: str | None = None) -> GoodreadsBook:
    query = f"{title} {author}" if author else title
    outcome = await fetcher.fetch(FetchTarget.page(f"{GOODREADS_BASE_URL}/search", params={"q": query}))
    book = parse_search_results(outcome.unwrap().text, title, author)
    if book is None:
        raise NoMatchFound(f"Goodreads has no result for {query!r}.", provider=PROVIDER)
    logger.debug(f"Goodreads {query!r} -> {book.id} ({book.rating})")
    return book
