from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Mapping

from content_research.config import Settings, get_settings
from content_research.integrations.http import Fetcher, HttpFetcher
from content_research.integrations.proxy import ProxyPool, ResilientFetcher, load_proxy_pool
from content_research.models.requests import ResearchRequest, request_kind
from content_research.research.book import research_book
from content_research.research.context import ResearchContext, ResearchReport
from content_research.research.movie import research_movie
from content_research.research.music import research_music
from content_research.research.regions import PacingPolicy
from content_research.research.series import research_series

logger = logging.getLogger(__name__)

Researcher = Callable[[Any, ResearchContext], Awaitable[ResearchReport[Any]]]

RESEARCHERS: Mapping[str, Researcher] = {
    "movie": research_movie,
    "series": research_series,
    "music": research_music,
    "book": research_book,
}


class ResearchEngine:
    """
    Dispatches one request to its entity researcher.

    Never raises for provider trouble: the report always carries a record, degraded when
    providers fail. Only an unsupported request type raises (`TypeError`).
    """

    def __init__(self, context: ResearchContext) -> None:
        self._context = context

    @property
    def context(self) -> ResearchContext:
        return self._context

    async def research(self, request: ResearchRequest) -> ResearchReport[Any]:
        kind = request_kind(request)
        report = await RESEARCHERS[kind](request, self._context)
        logger.info(f"{kind} research for {request.title!r} finished: {report.source_statuses()}")
        return report


async def create_engine(
    settings: Settings | None = None,
    *,
    fetcher: Fetcher | None = None,
    pool: ProxyPool | None = None,
) -> ResearchEngine:
    """
    Build an engine from settings. The proxy pool is loaded here, once, unless given.
    """

    resolved = settings or get_settings()
    direct = fetcher or HttpFetcher(scrape_timeout_seconds=resolved.scrape_timeout_seconds)
    if pool is None:
        pool = await load_proxy_pool(resolved.proxy_list_url, direct)
    context = ResearchContext(
        fetcher=direct,
        scraper=ResilientFetcher(direct, pool),
        settings=resolved,
        pacing=PacingPolicy(interval_seconds=resolved.region_pacing_seconds),
    )
    return ResearchEngine(context)
