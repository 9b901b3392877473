from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Mapping

_WS_RE = re.compile(r"\s+")


class OfferKind(str, Enum):
    FREE = "free"
    SUBSCRIPTION = "subscription"
    RENT = "rent"
    BUY = "buy"

    @property
    def is_streaming(self) -> bool:
        return self in (OfferKind.FREE, OfferKind.SUBSCRIPTION)


def normalize_platform_name(name: str) -> str:
    return _WS_RE.sub(" ", (name or "").strip()).casefold()


@dataclass(frozen=True)
class LinkCandidate:
    """A `{platform, url}` pair discovered by one strategy, not yet validated."""

    platform: str
    url: str


@dataclass(frozen=True)
class AvailabilityOffer:
    platform: str
    url: str
    kind: OfferKind
    price: str | None = None

    @property
    def identity(self) -> tuple[str, OfferKind]:
        return (normalize_platform_name(self.platform), self.kind)


def dedupe_offers(offers: Iterable[AvailabilityOffer]) -> list[AvailabilityOffer]:
    """Collapse offers sharing (platform, kind); the first one seen wins."""

    seen: set[tuple[str, OfferKind]] = set()
    unique: list[AvailabilityOffer] = []
    for offer in offers:
        key = offer.identity
        if key in seen:
            continue
        seen.add(key)
        unique.append(offer)
    return unique


@dataclass(frozen=True)
class AvailabilitySet:
    streaming: list[AvailabilityOffer] = field(default_factory=list)
    purchase: list[AvailabilityOffer] = field(default_factory=list)

    @classmethod
    def from_offers(cls, offers: Iterable[AvailabilityOffer]) -> AvailabilitySet:
        unique = dedupe_offers(offers)
        return cls(
            streaming=[o for o in unique if o.kind.is_streaming],
            purchase=[o for o in unique if not o.kind.is_streaming],
        )

    @property
    def offers(self) -> list[AvailabilityOffer]:
        return [*self.streaming, *self.purchase]

    def is_empty(self) -> bool:
        return not self.streaming and not self.purchase


@dataclass(frozen=True)
class RegionalAvailability:
    """
    Movie availability partitioned by region.

    `streaming` / `purchase` are the union across regions in region order, deduplicated
    the same way as a single region.
    """

    streaming: list[AvailabilityOffer] = field(default_factory=list)
    purchase: list[AvailabilityOffer] = field(default_factory=list)
    by_region: dict[str, AvailabilitySet] = field(default_factory=dict)

    @classmethod
    def from_regions(cls, by_region: Mapping[str, AvailabilitySet]) -> RegionalAvailability:
        combined = AvailabilitySet.from_offers(
            offer for region_set in by_region.values() for offer in region_set.offers
        )
        return cls(streaming=combined.streaming, purchase=combined.purchase, by_region=dict(by_region))


@dataclass(frozen=True)
class BookAvailability:
    ebook: list[AvailabilityOffer] = field(default_factory=list)
    paperback: list[AvailabilityOffer] = field(default_factory=list)
    hardcover: list[AvailabilityOffer] = field(default_factory=list)
    audiobook: list[AvailabilityOffer] = field(default_factory=list)
