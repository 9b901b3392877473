from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from content_research.errors import MissingCredentials, NoMatchFound, ProviderError

T = TypeVar("T")


@dataclass(frozen=True)
class Success(Generic[T]):
    payload: T

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.payload


@dataclass(frozen=True)
class Failure:
    error: ProviderError

    @property
    def ok(self) -> bool:
        return False

    @property
    def reason(self) -> str:
        return str(self.error)

    def unwrap(self):
        raise self.error


ProviderOutcome = Union[Success[T], Failure]


def payload_or_none(outcome: ProviderOutcome[T] | None) -> T | None:
    if isinstance(outcome, Success):
        return outcome.payload
    return None


def outcome_status(outcome: ProviderOutcome[object]) -> str:
    """Short status label used when reporting per-source results."""

    if isinstance(outcome, Success):
        return "ok"
    if isinstance(outcome.error, NoMatchFound):
        return "no_match"
    if isinstance(outcome.error, MissingCredentials):
        return "unavailable"
    return "failed"
