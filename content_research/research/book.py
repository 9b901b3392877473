from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from content_research.integrations.goodreads import GoodreadsBook, search_book
from content_research.integrations.google_books import GoogleBooksVolume, book_availability
from content_research.models.availability import BookAvailability
from content_research.models.outcomes import payload_or_none
from content_research.models.records import (
    BookRatings,
    BookRecord,
    BookReferences,
    Person,
    Publisher,
    Score,
)
from content_research.models.requests import BookRequest
from content_research.research.availability import validated_offers
from content_research.research.context import ResearchContext, ResearchReport, shared
from content_research.research.merge import REQUEST_SOURCE, merge_fields, parse_year, slugify
from content_research.research.outcomes import exhausted, settle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookFields:
    author: list[Person] = field(default_factory=list)
    genres: list[str] = field(default_factory=list)
    isbn: str | None = None
    published_year: int | None = None
    publisher: Publisher | None = None
    language: str | None = None
    pages: int | None = None
    description: str | None = None
    goodreads: Score | None = None
    google_books: Score | None = None
    isbn10: str | None = None
    isbn13: str | None = None
    goodreads_id: str | None = None
    google_books_id: str | None = None


PRECEDENCE: Mapping[str, tuple[str, ...]] = {
    "author": (REQUEST_SOURCE, "google_books"),
    "genres": ("google_books",),
    "isbn": (REQUEST_SOURCE, "google_books"),
    "published_year": (REQUEST_SOURCE, "google_books"),
    "publisher": ("google_books",),
    "language": ("google_books",),
    "pages": ("google_books",),
    "description": ("google_books",),
    "goodreads": ("goodreads",),
    "google_books": ("google_books",),
    "isbn10": ("google_books",),
    "isbn13": ("google_books",),
    "goodreads_id": ("goodreads",),
    "google_books_id": ("google_books",),
}


def from_google_books(volume: GoogleBooksVolume) -> BookFields:
    return BookFields(
        author=[Person(name=name) for name in volume.authors],
        genres=list(volume.categories),
        isbn=volume.isbn13 or volume.isbn10,
        published_year=parse_year(volume.published_date),
        publisher=Publisher(name=volume.publisher) if volume.publisher else None,
        language=volume.language,
        pages=volume.page_count,
        description=volume.description,
        google_books=(
            Score(score=volume.average_rating, votes=volume.ratings_count or 0)
            if volume.average_rating is not None
            else None
        ),
        isbn10=volume.isbn10,
        isbn13=volume.isbn13,
        google_books_id=volume.id,
    )


def from_goodreads(book: GoodreadsBook) -> BookFields:
    return BookFields(
        goodreads=Score(score=book.rating, votes=book.ratings_count) if book.rating is not None else None,
        goodreads_id=book.id,
    )


def from_request(request: BookRequest) -> BookFields:
    return BookFields(
        author=[Person(name=request.author)] if request.author else [],
        genres=[request.genre] if request.genre else [],
        isbn=request.isbn,
        published_year=request.year,
    )


def _checked(availability: BookAvailability) -> BookAvailability:
    return BookAvailability(
        ebook=validated_offers(availability.ebook),
        paperback=validated_offers(availability.paperback),
        hardcover=validated_offers(availability.hardcover),
        audiobook=validated_offers(availability.audiobook),
    )


def build_book_record(
    request: BookRequest,
    projections: Mapping[str, BookFields],
    availability: BookAvailability | None = None,
) -> BookRecord:
    merged = merge_fields(PRECEDENCE, {**projections, REQUEST_SOURCE: from_request(request)})
    return BookRecord(
        title=request.title,
        slug=slugify(request.title),
        author=merged["author"] or [],
        genres=merged["genres"] or [],
        isbn=merged["isbn"],
        published_year=merged["published_year"],
        publisher=merged["publisher"],
        language=merged["language"],
        pages=merged["pages"],
        description=merged["description"],
        ratings=BookRatings(goodreads=merged["goodreads"], google_books=merged["google_books"]),
        available_on=_checked(availability) if availability is not None else BookAvailability(),
        references=BookReferences(
            isbn10=merged["isbn10"],
            isbn13=merged["isbn13"],
            goodreads_id=merged["goodreads_id"],
            google_books_id=merged["google_books_id"],
        ),
    )


async def research_book(request: BookRequest, context: ResearchContext) -> ResearchReport[BookRecord]:
    volume = shared(context.google_books().search(request.title, request.author))

    async def google_books() -> GoogleBooksVolume:
        return await volume

    async def availability() -> BookAvailability:
        return book_availability(await volume)

    logger.info(f"Researching book {request.title!r}")
    outcomes = await settle(
        {
            "google_books": google_books(),
            "goodreads": search_book(context.scraper, request.title, request.author),
            "availability": availability(),
        }
    )

    projections: dict[str, Any] = {}
    found_volume = payload_or_none(outcomes["google_books"])
    if found_volume is not None:
        projections["google_books"] = from_google_books(found_volume)
    goodreads = payload_or_none(outcomes["goodreads"])
    if goodreads is not None:
        projections["goodreads"] = from_goodreads(goodreads)

    record = build_book_record(request, projections, payload_or_none(outcomes["availability"]))
    failed = exhausted("book", outcomes)
    if failed is not None:
        logger.warning(str(failed))
    return ResearchReport(kind="book", record=record, outcomes=outcomes, exhausted=failed)
