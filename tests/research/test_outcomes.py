from __future__ import annotations

import asyncio

import pytest

from content_research.errors import (
    AllProvidersExhausted,
    MissingCredentials,
    NetworkError,
    NoMatchFound,
    ProviderProtocolError,
)
from content_research.models.outcomes import Failure, Success, outcome_status, payload_or_none
from content_research.research.outcomes import capture, exhausted, settle


def _run_async(coro):
    return asyncio.run(coro)


async def _value(value):
    return value


async def _raise(exc: Exception):
    raise exc


class TestCapture:
    """Provider errors fold into outcomes; programming errors do not."""

    def test_success(self) -> None:
        outcome = _run_async(capture(_value({"id": 603}), source="tmdb"))
        assert outcome == Success({"id": 603})
        assert payload_or_none(outcome) == {"id": 603}

    def test_no_match_is_tagged_with_source(self) -> None:
        outcome = _run_async(capture(_raise(NoMatchFound("nothing")), source="omdb"))
        assert isinstance(outcome, Failure)
        assert isinstance(outcome.error, NoMatchFound)
        assert outcome.error.provider == "omdb"

    def test_existing_provider_tag_is_kept(self) -> None:
        outcome = _run_async(capture(_raise(NetworkError("down", provider="tmdb")), source="availability"))
        assert outcome.error.provider == "tmdb"

    def test_payload_shape_errors_become_protocol_errors(self) -> None:
        outcome = _run_async(capture(_raise(KeyError("results")), source="spotify"))
        assert isinstance(outcome.error, ProviderProtocolError)
        assert outcome.error.provider == "spotify"

    def test_other_exceptions_propagate(self) -> None:
        with pytest.raises(RuntimeError):
            _run_async(capture(_raise(RuntimeError("bug")), source="tmdb"))


def test_settle_runs_queries_concurrently() -> None:
    async def scenario():
        ready = asyncio.Event()

        async def waiter() -> str:
            await ready.wait()
            return "waited"

        async def setter() -> str:
            ready.set()
            return "set"

        return await asyncio.wait_for(settle({"waiter": waiter(), "setter": setter()}), timeout=1.0)

    outcomes = _run_async(scenario())

    assert list(outcomes) == ["waiter", "setter"]
    assert outcomes["waiter"] == Success("waited")
    assert outcomes["setter"] == Success("set")


def test_settle_keeps_failures_alongside_successes() -> None:
    outcomes = _run_async(settle({"tmdb": _value(1), "omdb": _raise(NetworkError("timeout"))}))

    assert outcomes["tmdb"].ok
    assert not outcomes["omdb"].ok
    assert outcomes["omdb"].reason == "timeout"


def test_exhausted_only_when_every_query_failed() -> None:
    failed = {"tmdb": Failure(MissingCredentials("no key")), "omdb": Failure(NetworkError("down"))}

    result = exhausted("movie", failed)

    assert isinstance(result, AllProvidersExhausted)
    assert result.kind == "movie"
    assert set(result.failures) == {"tmdb", "omdb"}
    assert exhausted("movie", {**failed, "availability": Success(None)}) is None
    assert exhausted("movie", {}) is None


def test_outcome_status_labels() -> None:
    assert outcome_status(Success(1)) == "ok"
    assert outcome_status(Failure(NoMatchFound("none"))) == "no_match"
    assert outcome_status(Failure(MissingCredentials("no key"))) == "unavailable"
    assert outcome_status(Failure(NetworkError("down"))) == "failed"
