from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Mapping, TypeVar

from content_research.errors import (
    AllProvidersExhausted,
    MissingCredentials,
    NoMatchFound,
    ProviderError,
    ProviderProtocolError,
)
from content_research.models.outcomes import Failure, ProviderOutcome, Success

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def capture(awaitable: Awaitable[T], *, source: str) -> ProviderOutcome[T]:
    """
    Await one provider query and fold its result into an outcome.

    Provider errors and payload-shape errors become `Failure`; anything else is a bug
    and propagates.
    """

    try:
        return Success(await awaitable)
    except NoMatchFound as exc:
        exc.provider = exc.provider or source
        logger.info(f"{source}: no match ({exc})")
        return Failure(exc)
    except MissingCredentials as exc:
        exc.provider = exc.provider or source
        logger.info(f"{source}: disabled ({exc})")
        return Failure(exc)
    except ProviderError as exc:
        exc.provider = exc.provider or source
        logger.warning(f"{source}: provider failed: {exc}")
        return Failure(exc)
    except (ValueError, TypeError, KeyError) as exc:
        logger.warning(f"{source}: unreadable payload: {exc!r}")
        return Failure(ProviderProtocolError(f"Unreadable {source} payload: {exc!r}", provider=source))


async def settle(queries: Mapping[str, Awaitable[Any]]) -> dict[str, ProviderOutcome[Any]]:
    """Run every named query concurrently and wait for all of them, whatever the result."""

    names = list(queries)
    results = await asyncio.gather(*(capture(queries[name], source=name) for name in names))
    return dict(zip(names, results))


def exhausted(kind: str, outcomes: Mapping[str, ProviderOutcome[Any]]) -> AllProvidersExhausted | None:
    if not outcomes or any(isinstance(o, Success) for o in outcomes.values()):
        return None
    failures = {name: o.error for name, o in outcomes.items() if isinstance(o, Failure)}
    return AllProvidersExhausted(kind, failures)
