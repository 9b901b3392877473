"""
Availability aggregation for one entity (and, for movies, one region).

Strategies:
  a. a watch-provider listing naming providers per offer kind, without deep links;
  b. discovery sources that scrape pages for deep links;
  c. targeted per-platform lookups for listed providers that (b) did not cover.

(a) and (b) run concurrently, the lookups in (c) run concurrently with each other.
Only providers backed by a validated deep link make it into the result.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Iterable, Mapping, Protocol, Sequence

from content_research.errors import ProviderError
from content_research.models.availability import (
    AvailabilityOffer,
    AvailabilitySet,
    LinkCandidate,
    OfferKind,
    dedupe_offers,
)
from content_research.models.outcomes import Success, payload_or_none
from content_research.research.links import is_genuine_content_link, platform_from_url, unwrap_redirect
from content_research.research.matching import find_matching_link, is_channel_reseller
from content_research.research.outcomes import settle

logger = logging.getLogger(__name__)

LISTING_KINDS: Mapping[str, OfferKind] = {
    "flatrate": OfferKind.SUBSCRIPTION,
    "free": OfferKind.FREE,
    "ads": OfferKind.FREE,
    "buy": OfferKind.BUY,
    "rent": OfferKind.RENT,
}


@dataclass(frozen=True)
class ListedProvider:
    name: str
    kind: OfferKind


class TargetedLookup(Protocol):
    def route(self, provider_name: str) -> str | None:
        """Lookup key for a provider, or None when no lookup exists for it."""

    async def lookup(self, route: str) -> str | None:
        ...


def listed_providers(listing: Mapping[str, Sequence[str]]) -> list[ListedProvider]:
    """Flatten `{"flatrate": [...], "buy": [...]}` into providers in listing order."""

    out: list[ListedProvider] = []
    for key, kind in LISTING_KINDS.items():
        for name in listing.get(key) or ():
            if isinstance(name, str) and name.strip():
                out.append(ListedProvider(name=name.strip(), kind=kind))
    return out


def validated_candidates(candidates: Iterable[LinkCandidate]) -> list[LinkCandidate]:
    """Unwrap redirects, keep genuine deep links, drop repeated URLs."""

    seen: set[str] = set()
    out: list[LinkCandidate] = []
    for candidate in candidates:
        url = unwrap_redirect(candidate.url)
        if url in seen or not is_genuine_content_link(url):
            continue
        seen.add(url)
        platform = candidate.platform or platform_from_url(url) or ""
        out.append(LinkCandidate(platform=platform, url=url))
    return out


class AvailabilityAggregator:
    def __init__(self, lookup: TargetedLookup | None = None) -> None:
        self._lookup = lookup

    async def aggregate(
        self,
        listing: Awaitable[Sequence[ListedProvider]],
        discoveries: Mapping[str, Awaitable[Sequence[LinkCandidate]]] | None = None,
    ) -> AvailabilitySet:
        queries: dict[str, Awaitable[Any]] = {"listing": listing, **dict(discoveries or {})}
        settled = await settle(queries)

        providers: Sequence[ListedProvider] = payload_or_none(settled.pop("listing")) or []
        if not providers:
            return AvailabilitySet()

        raw: list[LinkCandidate] = []
        for outcome in settled.values():
            if isinstance(outcome, Success):
                raw.extend(outcome.payload)
        candidates = validated_candidates(raw)
        logger.debug(f"{len(providers)} listed providers, {len(candidates)} validated candidate links")

        resolved: dict[ListedProvider, str] = {}
        pending: dict[str, list[ListedProvider]] = {}
        for provider in providers:
            match = find_matching_link(provider.name, candidates)
            if match is not None:
                resolved[provider] = match.url
                continue
            if is_channel_reseller(provider.name) or self._lookup is None:
                continue
            route = self._lookup.route(provider.name)
            if route is not None:
                pending.setdefault(route, []).append(provider)

        if pending and self._lookup is not None:
            lookups = await settle({route: self._lookup.lookup(route) for route in pending})
            for route, outcome in lookups.items():
                url = payload_or_none(outcome)
                if not url or not is_genuine_content_link(url):
                    logger.debug(f"Targeted lookup {route} produced no usable link")
                    continue
                for provider in pending[route]:
                    resolved[provider] = url

        offers: list[AvailabilityOffer] = []
        for provider in providers:
            url = resolved.get(provider)
            if url is None:
                logger.debug(f"Dropping {provider.name} ({provider.kind.value}): no validated link")
                continue
            offers.append(AvailabilityOffer(platform=provider.name, url=url, kind=provider.kind))
        return AvailabilitySet.from_offers(offers)


def validated_offers(offers: Iterable[AvailabilityOffer]) -> list[AvailabilityOffer]:
    kept: list[AvailabilityOffer] = []
    for offer in offers:
        if is_genuine_content_link(offer.url):
            kept.append(offer)
        else:
            logger.debug(f"Dropping {offer.platform} offer with non-content link: {offer.url}")
    return dedupe_offers(kept)


async def collect_offers(sources: Mapping[str, Awaitable[Sequence[AvailabilityOffer]]]) -> AvailabilitySet:
    """
    Availability for entities whose providers return ready-made offers (music).

    Every source runs concurrently; failed sources contribute nothing. Raises
    `ProviderError` only when there were sources and every one of them failed.
    """

    settled = await settle(sources)
    if settled and not any(isinstance(o, Success) for o in settled.values()):
        raise ProviderError(f"Every availability source failed: {', '.join(sorted(settled))}.")
    offers: list[AvailabilityOffer] = []
    for outcome in settled.values():
        offers.extend(payload_or_none(outcome) or [])
    return AvailabilitySet.from_offers(validated_offers(offers))
