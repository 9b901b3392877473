from __future__ import annotations


class ProviderError(RuntimeError):
    """Base error for a single provider call that produced no usable data."""

    def __init__(
        self,
        message: str,
        *,
        provider: str | None = None,
        status_code: int | None = None,
        body_snippet: str | None = None,
    ) -> None:
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code
        self.body_snippet = body_snippet


class NetworkError(ProviderError):
    """Timeout, connection failure or a non-2xx HTTP status."""


class ProviderProtocolError(ProviderError):
    """The provider answered, but not in the shape we can read."""


class NoMatchFound(ProviderError):
    """The provider had no result for the query. A valid, empty answer."""


class MissingCredentials(ProviderError):
    """The provider is disabled because its credential is not configured."""


class AllProvidersExhausted(RuntimeError):
    """
    Every top-level provider query for one request failed.

    Never raised by the engine; attached to the research report so callers can tell a
    sparse record from a fully degraded one.
    """

    def __init__(self, kind: str, failures: dict[str, ProviderError]) -> None:
        names = ", ".join(sorted(failures)) or "none"
        super().__init__(f"All providers failed for {kind} research ({names}).")
        self.kind = kind
        self.failures = failures
