from __future__ import annotations

import asyncio

from content_research.errors import NetworkError
from content_research.models.availability import AvailabilityOffer, AvailabilitySet, OfferKind
from content_research.research.regions import PacingPolicy, RegionIterator

NETFLIX = AvailabilityOffer(
    platform="Netflix", url="https://www.netflix.com/title/20557937", kind=OfferKind.SUBSCRIPTION
)
APPLE_TV = AvailabilityOffer(
    platform="Apple TV",
    url="https://tv.apple.com/gb/movie/the-matrix/umc.cmc.1ob4e5y5bxfcyxscg3lpkvzb",
    kind=OfferKind.BUY,
)


def _run_async(coro):
    return asyncio.run(coro)


class RecordingSleep:
    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def test_regions_are_normalized_and_deduplicated() -> None:
    iterator = RegionIterator(["us", "GB", " us ", ""])
    assert iterator.regions == ("US", "GB")


def test_consecutive_regions_are_paced() -> None:
    sleep = RecordingSleep()
    seen: list[str] = []

    async def aggregate(region: str) -> AvailabilitySet:
        seen.append(region)
        return AvailabilitySet()

    iterator = RegionIterator(["US", "GB", "DE", "FR"], pacing=PacingPolicy(interval_seconds=1.0, sleep=sleep))
    result = _run_async(iterator.run(aggregate))

    assert seen == ["US", "GB", "DE", "FR"]
    assert sleep.calls == [1.0, 1.0, 1.0]
    assert sum(sleep.calls) >= (len(seen) - 1) * 1.0
    assert list(result.by_region) == ["US", "GB", "DE", "FR"]


def test_regions_never_overlap() -> None:
    active = 0
    peak = 0

    async def aggregate(region: str) -> AvailabilitySet:
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        await asyncio.sleep(0)
        active -= 1
        return AvailabilitySet()

    iterator = RegionIterator(["US", "GB", "CA"], pacing=PacingPolicy(interval_seconds=0))
    _run_async(iterator.run(aggregate))

    assert peak == 1


def test_failed_region_is_recorded_empty() -> None:
    async def aggregate(region: str) -> AvailabilitySet:
        if region == "IN":
            raise NetworkError("blocked in region")
        return AvailabilitySet.from_offers([NETFLIX])

    iterator = RegionIterator(["US", "IN", "GB"], pacing=PacingPolicy(interval_seconds=0))
    result = _run_async(iterator.run(aggregate))

    assert result.by_region["IN"].is_empty()
    assert result.by_region["US"].streaming == [NETFLIX]
    assert result.by_region["GB"].streaming == [NETFLIX]


def test_union_across_regions_is_deduplicated_in_region_order() -> None:
    async def aggregate(region: str) -> AvailabilitySet:
        if region == "GB":
            return AvailabilitySet.from_offers([NETFLIX, APPLE_TV])
        return AvailabilitySet.from_offers([NETFLIX])

    iterator = RegionIterator(["US", "GB"], pacing=PacingPolicy(interval_seconds=0))
    result = _run_async(iterator.run(aggregate))

    assert result.streaming == [NETFLIX]
    assert result.purchase == [APPLE_TV]


def test_zero_interval_does_not_sleep() -> None:
    sleep = RecordingSleep()
    _run_async(PacingPolicy(interval_seconds=0, sleep=sleep).pause())
    assert sleep.calls == []
