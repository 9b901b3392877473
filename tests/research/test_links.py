from __future__ import annotations

import pytest

from content_research.research.links import (
    find_platform_urls,
    is_genuine_content_link,
    is_search_or_listing,
    platform_from_url,
    unwrap_redirect,
)


@pytest.mark.parametrize(
    "url",
    [
        "https://www.netflix.com/title/20557937",
        "https://www.netflix.com/gb/title/20557937",
        "https://www.amazon.com/dp/B000HAB4KS",
        "https://www.amazon.com/gp/video/detail/B00FZM8Z7I",
        "https://tv.apple.com/us/movie/the-matrix/umc.cmc.1ob4e5y5bxfcyxscg3lpkvzb",
        "https://www.hulu.com/movie/the-matrix-8a0a5c8e",
        "https://play.max.com/movie/the-matrix-abc",
        "https://www.youtube.com/watch?v=vKQi3bBA1y8",
        "https://open.spotify.com/track/7tFiyTwD0nx5a1eklYtX2J",
        "https://www.deezer.com/us/track/9997018",
        "https://music.apple.com/us/album/bohemian-rhapsody/1440806041?i=1440806326",
        "https://www.goodreads.com/book/show/4671.The_Great_Gatsby",
    ],
)
def test_deep_links_are_accepted(url: str) -> None:
    assert is_genuine_content_link(url) is True


@pytest.mark.parametrize(
    "url",
    [
        "https://www.netflix.com/search?q=the%20matrix",
        "https://www.amazon.com/s?k=the+matrix",
        "https://www.youtube.com/results?search_query=the+matrix",
        "https://tv.apple.com/us/search?term=the%20matrix",
        "https://www.netflix.com/gb/",
        "https://www.netflix.com/",
        "https://www.hulu.com/movie/the-matrix?q=matrix",
        "https://example.com/movie/the-matrix",
        "ftp://www.netflix.com/title/20557937",
        "",
    ],
)
def test_search_pages_and_unknown_shapes_are_rejected(url: str) -> None:
    assert is_genuine_content_link(url) is False


def test_search_rejection_holds_on_a_host_that_also_serves_deep_links() -> None:
    # Same host: one title page, one result listing.
    assert is_genuine_content_link("https://www.netflix.com/title/20557937")
    assert is_search_or_listing("https://www.netflix.com/search?q=matrix")
    assert not is_genuine_content_link("https://www.netflix.com/search?q=matrix")


def test_platform_from_url_prefers_deep_link_rule_then_host() -> None:
    assert platform_from_url("https://www.amazon.com/gp/video/detail/B00FZM8Z7I") == "Prime Video"
    assert platform_from_url("https://www.amazon.com/dp/B000HAB4KS") == "Amazon"
    assert platform_from_url("https://music.youtube.com/watch?v=fJ9rUzIMcZQ") == "YouTube Music"
    assert platform_from_url("https://www.netflix.com/search?q=x") == "Netflix"
    assert platform_from_url("https://www.cinemax.com/movies/the-matrix") == "Cinemax"
    assert platform_from_url("https://unknown.example/title/1") is None


def test_unwrap_redirect_follows_click_out_parameters() -> None:
    wrapped = (
        "https://click.justwatch.com/a?cx=abc&r=https%3A%2F%2Fwww.netflix.com%2Ftitle%2F20557937"
        "&uct_country=us"
    )
    assert unwrap_redirect(wrapped) == "https://www.netflix.com/title/20557937"
    assert unwrap_redirect("https://www.netflix.com/title/20557937") == "https://www.netflix.com/title/20557937"


def test_find_platform_urls_reads_escaped_json_and_skips_search_links() -> None:
    script = (
        'window.__DATA__ = {"watch":"https:\\/\\/www.netflix.com\\/title\\/20557937",'
        '"fallback":"https://www.netflix.com/search?q=matrix"};'
    )
    assert list(find_platform_urls(script)) == [("Netflix", "https://www.netflix.com/title/20557937")]
