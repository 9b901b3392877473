"""
Provider-name matching between watch-provider listings and discovered links.

Listings name a provider one way ("Amazon Prime Video with Ads", "Netflix Standard with
Ads", "Apple TV Plus") while scraped links are named after their host. Two names
match when either one's tokens appear as a contiguous run inside the other, or when
both belong to the same brand family.

This is a heuristic. It can over-merge services whose names overlap, and the family
table is the place to correct that.
"""

from __future__ import annotations

import re
from typing import Iterable, Sequence

from content_research.models.availability import LinkCandidate

_TOKEN_RE = re.compile(r"[a-z0-9]+")

BRAND_FAMILIES: dict[str, tuple[tuple[str, ...], ...]] = {
    "amazon": (("amazon",), ("prime", "video"), ("primevideo",)),
    "apple": (("apple", "tv"), ("appletv",), ("itunes",)),
    "max": (("hbo",), ("max",), ("hbomax",)),
    "paramount": (("paramount",),),
    "disney": (("disney",),),
    "netflix": (("netflix",),),
    "lionsgate": (("lionsgate",),),
    "google_play": (("google", "play"),),
    "fandango": (("fandango",), ("vudu",)),
    "mgm": (("mgm",), ("epix",)),
    "peacock": (("peacock",),),
    "roku": (("roku",),),
    "tubi": (("tubi",),),
}


def tokens(name: str) -> tuple[str, ...]:
    text = (name or "").casefold().replace("+", " plus ").replace("&", " and ")
    return tuple(_TOKEN_RE.findall(text))


def _contains_run(haystack: Sequence[str], needle: Sequence[str]) -> bool:
    if not needle or len(needle) > len(haystack):
        return False
    width = len(needle)
    return any(tuple(haystack[i : i + width]) == tuple(needle) for i in range(len(haystack) - width + 1))


def brand_families(name: str) -> set[str]:
    name_tokens = tokens(name)
    return {
        family
        for family, runs in BRAND_FAMILIES.items()
        if any(_contains_run(name_tokens, run) for run in runs)
    }


def names_match(provider_name: str, platform_name: str) -> bool:
    left = tokens(provider_name)
    right = tokens(platform_name)
    if not left or not right:
        return False
    if _contains_run(left, right) or _contains_run(right, left):
        return True
    return bool(brand_families(provider_name) & brand_families(platform_name))


def find_matching_link(provider_name: str, candidates: Iterable[LinkCandidate]) -> LinkCandidate | None:
    for candidate in candidates:
        if names_match(provider_name, candidate.platform):
            return candidate
    return None


def is_channel_reseller(provider_name: str) -> bool:
    """Storefront channels ("Starz Amazon Channel") are sold through another platform."""

    return "channel" in tokens(provider_name)
