from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Sequence

from content_research.models.availability import AvailabilitySet, RegionalAvailability

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]
RegionAggregation = Callable[[str], Awaitable[AvailabilitySet]]


@dataclass(frozen=True)
class PacingPolicy:
    """Minimum wait between two consecutive regions."""

    interval_seconds: float = 1.0
    sleep: Sleep = asyncio.sleep

    async def pause(self) -> None:
        if self.interval_seconds > 0:
            await self.sleep(self.interval_seconds)


class RegionIterator:
    """
    Runs one availability aggregation per region, strictly one region at a time.

    Target sites rate-limit by source IP, so regions are paced instead of fanned out.
    """

    def __init__(self, regions: Sequence[str], *, pacing: PacingPolicy | None = None) -> None:
        self._regions = tuple(dict.fromkeys(r.strip().upper() for r in regions if r and r.strip()))
        self._pacing = pacing or PacingPolicy()

    @property
    def regions(self) -> tuple[str, ...]:
        return self._regions

    async def run(self, aggregate: RegionAggregation) -> RegionalAvailability:
        by_region: dict[str, AvailabilitySet] = {}
        for index, region in enumerate(self._regions):
            if index > 0:
                await self._pacing.pause()
            try:
                by_region[region] = await aggregate(region)
            except Exception as exc:  # noqa: BLE001
                logger.warning(f"Availability for region {region} failed, recording it as empty: {exc!r}")
                by_region[region] = AvailabilitySet()
                continue
            found = by_region[region]
            logger.debug(f"Region {region}: {len(found.streaming)} streaming, {len(found.purchase)} purchase")
        return RegionalAvailability.from_regions(by_region)
