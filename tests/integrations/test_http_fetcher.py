from __future__ import annotations

import asyncio
from unittest.mock import MagicMock

import pytest
import requests

from content_research.errors import NetworkError, ProviderProtocolError
from content_research.integrations.http import SCRAPE_TIMEOUT_SECONDS, FetchTarget, HttpFetcher, RawPayload
from content_research.models.outcomes import Failure, Success


def _run_async(coro):
    return asyncio.run(coro)


def _session(*, status_code: int = 200, text: str = "", url: str = "https://example.test/") -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    resp.text = text
    resp.url = url
    session = MagicMock()
    session.request.return_value = resp
    return session


class TestHttpFetcher:
    def test_api_target_decodes_json(self) -> None:
        session = _session(text='{"results": [1, 2]}', url="https://api.example.test/search?q=x")
        fetcher = HttpFetcher(session=session)

        outcome = _run_async(fetcher.fetch(FetchTarget.api("https://api.example.test/search", params={"q": "x"})))

        assert isinstance(outcome, Success)
        assert outcome.payload.data == {"results": [1, 2]}
        assert outcome.payload.json_object() == {"results": [1, 2]}
        assert outcome.payload.url == "https://api.example.test/search?q=x"
        _, kwargs = session.request.call_args
        assert kwargs["params"] == {"q": "x"}
        assert kwargs["headers"]["accept"] == "application/json"
        assert kwargs["proxies"] is None

    def test_non_2xx_is_a_network_failure(self) -> None:
        session = _session(status_code=429, text="Too Many Requests" * 100)
        fetcher = HttpFetcher(session=session)

        outcome = _run_async(fetcher.fetch(FetchTarget.page("https://example.test/page")))

        assert isinstance(outcome, Failure)
        assert isinstance(outcome.error, NetworkError)
        assert outcome.error.status_code == 429
        assert outcome.error.body_snippet is not None
        assert len(outcome.error.body_snippet) == 400

    def test_timeout_is_a_network_failure(self) -> None:
        session = MagicMock()
        session.request.side_effect = requests.Timeout("read timed out")
        fetcher = HttpFetcher(session=session)

        outcome = _run_async(fetcher.fetch(FetchTarget.page("https://example.test/slow")))

        assert isinstance(outcome, Failure)
        assert isinstance(outcome.error, NetworkError)
        assert "timed out" in outcome.reason

    def test_connection_error_is_a_network_failure(self) -> None:
        session = MagicMock()
        session.request.side_effect = requests.ConnectionError("refused")

        outcome = _run_async(HttpFetcher(session=session).fetch(FetchTarget.page("https://example.test/")))

        assert isinstance(outcome, Failure)
        assert isinstance(outcome.error, NetworkError)

    def test_bad_json_is_a_protocol_failure(self) -> None:
        session = _session(text="<html>maintenance</html>")

        outcome = _run_async(HttpFetcher(session=session).fetch(FetchTarget.api("https://api.example.test/")))

        assert isinstance(outcome, Failure)
        assert isinstance(outcome.error, ProviderProtocolError)
        assert outcome.error.body_snippet == "<html>maintenance</html>"

    def test_page_target_is_not_decoded(self) -> None:
        session = _session(text='{"looks": "like json"}')

        outcome = _run_async(HttpFetcher(session=session).fetch(FetchTarget.page("https://example.test/")))

        assert isinstance(outcome, Success)
        assert outcome.payload.data is None
        assert outcome.payload.text == '{"looks": "like json"}'


class TestTimeoutsAndProxies:
    def test_page_targets_get_the_scrape_timeout(self) -> None:
        session = _session(text="ok")
        _run_async(HttpFetcher(session=session).fetch(FetchTarget.page("https://example.test/")))

        _, kwargs = session.request.call_args
        assert kwargs["timeout"] == SCRAPE_TIMEOUT_SECONDS

    def test_api_targets_wait_unless_told_otherwise(self) -> None:
        session = _session(text="{}")
        fetcher = HttpFetcher(session=session)

        _run_async(fetcher.fetch(FetchTarget.api("https://api.example.test/")))
        assert session.request.call_args[1]["timeout"] is None

        _run_async(fetcher.fetch(FetchTarget.api("https://api.example.test/", timeout_seconds=4.0)))
        assert session.request.call_args[1]["timeout"] == 4.0

    def test_proxy_is_applied_to_both_schemes(self) -> None:
        session = _session(text="ok")

        _run_async(HttpFetcher(session=session).fetch(FetchTarget.page("https://example.test/"), proxy="10.0.0.1:8080"))

        _, kwargs = session.request.call_args
        assert kwargs["proxies"] == {"http": "http://10.0.0.1:8080", "https": "http://10.0.0.1:8080"}


def test_json_object_rejects_a_list_payload() -> None:
    payload = RawPayload(url="https://api.example.test/", status_code=200, text="[1]", data=[1])

    with pytest.raises(ProviderProtocolError):
        payload.json_object()
