from __future__ import annotations

import asyncio
import logging
from threading import Lock
from typing import Awaitable, Callable, Sequence

from content_research.errors import NetworkError
from content_research.integrations.http import Fetcher, FetchTarget, RawPayload
from content_research.models.outcomes import Failure, ProviderOutcome, Success

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3
BACKOFF_STEP_SECONDS = 2.0

Sleep = Callable[[float], Awaitable[None]]


def parse_proxy_list(text: str) -> list[str]:
    proxies: list[str] = []
    for line in (text or "").splitlines():
        entry = line.strip()
        if not entry or entry.startswith("#"):
            continue
        proxies.append(entry)
    # Deduplicate while preserving order.
    return list(dict.fromkeys(proxies))


class ProxyPool:
    """
    Proxies plus the round-robin cursor shared by every retrying call.

    Cursor advancement is serialized so concurrent retries neither skip nor repeat an
    entry.
    """

    def __init__(self, proxies: Sequence[str] = ()) -> None:
        self._proxies = list(proxies)
        self._cursor = 0
        self._lock = Lock()

    def __len__(self) -> int:
        return len(self._proxies)

    @property
    def proxies(self) -> tuple[str, ...]:
        return tuple(self._proxies)

    def next_proxy(self) -> str | None:
        with self._lock:
            if not self._proxies:
                return None
            proxy = self._proxies[self._cursor]
            self._cursor = (self._cursor + 1) % len(self._proxies)
            return proxy


async def load_proxy_pool(
    url: str | None,
    fetcher: Fetcher,
    *,
    timeout_seconds: float = 10.0,
) -> ProxyPool:
    """
    Fetch the proxy list once. Any problem degrades to an empty pool.
    """

    if not url:
        return ProxyPool()

    logger.info("Fetching proxy list")
    outcome = await fetcher.fetch(FetchTarget(url=url, timeout_seconds=timeout_seconds))
    if isinstance(outcome, Failure):
        logger.warning(f"Failed to load proxies, continuing without proxy support: {outcome.reason}")
        return ProxyPool()

    proxies = parse_proxy_list(outcome.payload.text)
    logger.info(f"Loaded {len(proxies)} proxies")
    return ProxyPool(proxies)


class ResilientFetcher:
    """
    Retry wrapper for block-prone scraping targets.

    Attempt 0 goes direct. Attempt k waits `BACKOFF_STEP_SECONDS * k` and then uses the
    next proxy from the pool when there is one. The last failure is returned when every
    attempt fails.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        pool: ProxyPool,
        *,
        max_attempts: int = MAX_ATTEMPTS,
        backoff_step_seconds: float = BACKOFF_STEP_SECONDS,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._fetcher = fetcher
        self._pool = pool
        self._max_attempts = max(1, int(max_attempts))
        self._backoff_step_seconds = max(0.0, float(backoff_step_seconds))
        self._sleep = sleep

    async def fetch(self, target: FetchTarget, *, proxy: str | None = None) -> ProviderOutcome[RawPayload]:
        last: ProviderOutcome[RawPayload] | None = None
        for attempt in range(self._max_attempts):
            attempt_proxy = proxy
            if attempt > 0:
                if self._backoff_step_seconds:
                    await self._sleep(self._backoff_step_seconds * attempt)
                attempt_proxy = self._pool.next_proxy() or proxy
                if attempt_proxy:
                    logger.debug(f"Using proxy {attempt_proxy} for {target.url}")

            outcome = await self._fetcher.fetch(target, proxy=attempt_proxy)
            if isinstance(outcome, Success):
                return outcome

            last = outcome
            logger.debug(f"Request attempt {attempt + 1} for {target.url} failed: {outcome.reason}")

        if last is None:
            return Failure(NetworkError(f"No request was attempted for {target.url}"))
        return last
