from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from content_research.errors import NoMatchFound
from content_research.integrations.http import Fetcher, FetchTarget
from content_research.models.availability import AvailabilityOffer, BookAvailability, OfferKind

logger = logging.getLogger(__name__)

GOOGLE_BOOKS_API_URL = "https://www.googleapis.com/books/v1/volumes"
PROVIDER = "google_books"


def _str(value: Any) -> str | None:
    return value.strip() if isinstance(value, str) and value.strip() else None


def _identifier(items: Any, kind: str) -> str | None:
    if not isinstance(items, list):
        return None
    for item in items:
        if isinstance(item, Mapping) and item.get("type") == kind:
            return _str(item.get("identifier"))
    return None


def _strings(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [v.strip() for v in value if isinstance(v, str) and v.strip()]


def _price(sale_info: Mapping[str, Any]) -> str | None:
    retail = sale_info.get("retailPrice")
    if not isinstance(retail, Mapping):
        return None
    amount = retail.get("amount")
    currency = retail.get("currencyCode")
    if isinstance(amount, (int, float)) and not isinstance(amount, bool) and currency:
        return f"{amount:.2f} {currency}"
    return None


@dataclass(frozen=True)
class GoogleBooksVolume:
    """First `volumes?q=` hit, with the volumeInfo / saleInfo / accessInfo bits we read."""

    id: str
    title: str | None = None
    authors: list[str] = field(default_factory=list)
    publisher: str | None = None
    published_date: str | None = None
    description: str | None = None
    page_count: int | None = None
    categories: list[str] = field(default_factory=list)
    language: str | None = None
    average_rating: float | None = None
    ratings_count: int | None = None
    isbn10: str | None = None
    isbn13: str | None = None
    buy_link: str | None = None
    price: str | None = None
    web_reader_link: str | None = None
    public_domain: bool = False

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> GoogleBooksVolume:
        volume_id = _str(payload.get("id"))
        if not volume_id:
            raise ValueError("Google Books volume without an id.")
        info = payload.get("volumeInfo") if isinstance(payload.get("volumeInfo"), Mapping) else {}
        sale = payload.get("saleInfo") if isinstance(payload.get("saleInfo"), Mapping) else {}
        access = payload.get("accessInfo") if isinstance(payload.get("accessInfo"), Mapping) else {}
        rating = info.get("averageRating")
        count = info.get("ratingsCount")
        pages = info.get("pageCount")
        return cls(
            id=volume_id,
            title=_str(info.get("title")),
            authors=_strings(info.get("authors")),
            publisher=_str(info.get("publisher")),
            published_date=_str(info.get("publishedDate")),
            description=_str(info.get("description")),
            page_count=pages if isinstance(pages, int) and not isinstance(pages, bool) and pages > 0 else None,
            categories=_strings(info.get("categories")),
            language=_str(info.get("language")),
            average_rating=float(rating) if isinstance(rating, (int, float)) and not isinstance(rating, bool) else None,
            ratings_count=count if isinstance(count, int) and not isinstance(count, bool) else None,
            isbn10=_identifier(info.get("industryIdentifiers"), "ISBN_10"),
            isbn13=_identifier(info.get("industryIdentifiers"), "ISBN_13"),
            buy_link=_str(sale.get("buyLink")) if sale.get("saleability") == "FOR_SALE" else None,
            price=_price(sale),
            web_reader_link=_str(access.get("webReaderLink")),
            public_domain=bool(access.get("publicDomain")),
        )


def book_availability(volume: GoogleBooksVolume) -> BookAvailability:
    """
    Offers backed by the volume itself: the Play Books store page when it is for sale,
    and the web reader when the full text is public domain.
    """

    ebook: list[AvailabilityOffer] = []
    if volume.buy_link:
        ebook.append(
            AvailabilityOffer(platform="Google Play Books", url=volume.buy_link, kind=OfferKind.BUY, price=volume.price)
        )
    if volume.public_domain and volume.web_reader_link:
        ebook.append(AvailabilityOffer(platform="Google Play Books", url=volume.web_reader_link, kind=OfferKind.FREE))
    return BookAvailability(ebook=ebook)


class GoogleBooksClient:
    """The public volumes API; the key is optional and only raises quota."""

    def __init__(self, fetcher: Fetcher, *, api_key: str | None = None, timeout_seconds: float | None = None) -> None:
        self._fetcher = fetcher
        self._api_key = (api_key or "").strip() or None
        self._timeout_seconds = timeout_seconds

    async def search(self, title: str, author: str | None = None) -> GoogleBooksVolume:
        query = f'intitle:"{title}" inauthor:"{author}"' if author else f'intitle:"{title}"'
        params: dict[str, Any] = {"q": query}
        if self._api_key:
            params["key"] = self._api_key
        outcome = await self._fetcher.fetch(
            FetchTarget.api(GOOGLE_BOOKS_API_URL, params=params, timeout_seconds=self._timeout_seconds)
        )
        payload = outcome.unwrap().json_object()
        items = payload.get("items")
        if not isinstance(items, list) or not items or not isinstance(items[0], Mapping):
            raise NoMatchFound(f"Google Books has no volume for {query}.", provider=PROVIDER)
        volume = GoogleBooksVolume.from_payload(items[0])
        logger.debug(f"Google Books {query} -> {volume.id}")
        return volume
