from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol

import requests

from content_research.errors import NetworkError, ProviderProtocolError
from content_research.models.outcomes import Failure, ProviderOutcome, Success

logger = logging.getLogger(__name__)

SCRAPE_TIMEOUT_SECONDS = 15.0

BROWSER_HEADERS: dict[str, str] = {
    "user-agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "accept-language": "en-US,en;q=0.9",
    "cache-control": "no-cache",
}

JSON_HEADERS: dict[str, str] = {
    "accept": "application/json",
    "user-agent": "Mozilla/5.0",
}


@dataclass(frozen=True)
class FetchTarget:
    """A fully formed outbound request."""

    url: str
    method: str = "GET"
    params: Mapping[str, Any] | None = None
    headers: Mapping[str, str] = field(default_factory=dict)
    data: Any = None
    timeout_seconds: float | None = None
    expect_json: bool = False

    @classmethod
    def api(
        cls,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        method: str = "GET",
        data: Any = None,
        timeout_seconds: float | None = None,
    ) -> FetchTarget:
        return cls(
            url=url,
            method=method,
            params=params,
            headers={**JSON_HEADERS, **dict(headers or {})},
            data=data,
            timeout_seconds=timeout_seconds,
            expect_json=True,
        )

    @classmethod
    def page(
        cls,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        timeout_seconds: float | None = None,
    ) -> FetchTarget:
        return cls(
            url=url,
            params=params,
            headers={**BROWSER_HEADERS, **dict(headers or {})},
            timeout_seconds=timeout_seconds,
        )


@dataclass(frozen=True)
class RawPayload:
    url: str
    status_code: int
    text: str
    data: Any = None

    def json_object(self) -> dict[str, Any]:
        if not isinstance(self.data, dict):
            raise ProviderProtocolError(
                "Expected a JSON object.",
                status_code=self.status_code,
                body_snippet=(self.text or "")[:400],
            )
        return self.data


class Fetcher(Protocol):
    async def fetch(self, target: FetchTarget, *, proxy: str | None = None) -> ProviderOutcome[RawPayload]:
        ...


def _proxies_for(proxy: str | None) -> dict[str, str] | None:
    if not proxy:
        return None
    address = proxy if "://" in proxy else f"http://{proxy}"
    return {"http": address, "https": address}


class HttpFetcher:
    """
    One network fetch per call, run on a worker thread so callers can await it.

    Never raises for network or HTTP problems; those come back as `Failure`.
    """

    def __init__(
        self,
        *,
        session: requests.Session | None = None,
        scrape_timeout_seconds: float = SCRAPE_TIMEOUT_SECONDS,
    ) -> None:
        self._session = session or requests.Session()
        self._scrape_timeout_seconds = scrape_timeout_seconds

    def _timeout(self, target: FetchTarget) -> float | None:
        # Page targets without an explicit timeout get the scrape default; API targets wait.
        if target.timeout_seconds is not None or target.expect_json:
            return target.timeout_seconds
        return self._scrape_timeout_seconds

    def _send(self, target: FetchTarget, proxy: str | None) -> requests.Response:
        return self._session.request(
            target.method,
            target.url,
            params=target.params,
            headers=dict(target.headers),
            data=target.data,
            timeout=self._timeout(target),
            proxies=_proxies_for(proxy),
        )

    async def fetch(self, target: FetchTarget, *, proxy: str | None = None) -> ProviderOutcome[RawPayload]:
        try:
            resp = await asyncio.to_thread(self._send, target, proxy)
        except requests.Timeout as exc:
            return Failure(NetworkError(f"Request to {target.url} timed out: {exc}"))
        except requests.RequestException as exc:
            return Failure(NetworkError(f"Request to {target.url} failed: {exc}"))

        text = resp.text or ""
        if not 200 <= resp.status_code < 300:
            return Failure(
                NetworkError(
                    f"Request to {target.url} failed with HTTP {resp.status_code}.",
                    status_code=resp.status_code,
                    body_snippet=text[:400],
                )
            )

        data: Any = None
        if target.expect_json:
            try:
                data = json.loads(text)
            except ValueError:
                return Failure(
                    ProviderProtocolError(
                        f"Non-JSON response from {target.url}.",
                        status_code=resp.status_code,
                        body_snippet=text[:400],
                    )
                )

        logger.debug(f"Fetched {target.url} (HTTP {resp.status_code}, {len(text)} bytes)")
        return Success(RawPayload(url=str(resp.url or target.url), status_code=resp.status_code, text=text, data=data))
