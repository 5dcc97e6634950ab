"""Tests for URL parsing and URL-derived fallbacks."""

from __future__ import annotations

import pytest

from linksnap.scraper.models import InvalidURLError
from linksnap.scraper.urls import (
    default_favicon,
    host_matches,
    hostname,
    normalize_url,
    parse_url,
    title_from_url,
    truncate,
)


# ---------------------------------------------------------------------------
# parse_url
# ---------------------------------------------------------------------------

class TestParseUrl:
    def test_accepts_https_and_strips_whitespace(self) -> None:
        assert parse_url("  https://example.com/a?b=1  ") == "https://example.com/a?b=1"

    def test_accepts_http(self) -> None:
        assert parse_url("http://example.com") == "http://example.com"

    @pytest.mark.parametrize(
        "value",
        [
            "",
            "   ",
            "not a url",
            "example.com/page",
            "ftp://example.com/file",
            "javascript:alert(1)",
            "https://",
            "https://exa mple.com/",
            "https://example.com:notaport/",
        ],
    )
    def test_rejects_malformed(self, value: str) -> None:
        with pytest.raises(InvalidURLError):
            parse_url(value)

    def test_rejects_non_string(self) -> None:
        with pytest.raises(InvalidURLError):
            parse_url(None)  # type: ignore[arg-type]

    def test_invalid_url_error_is_a_value_error(self) -> None:
        with pytest.raises(ValueError):
            parse_url("nope")


# ---------------------------------------------------------------------------
# Host helpers
# ---------------------------------------------------------------------------

class TestHosts:
    def test_hostname_drops_www(self) -> None:
        assert hostname("https://www.Example.com/x") == "example.com"

    def test_exact_and_subdomain_match(self) -> None:
        domains = frozenset({"x.com"})
        assert host_matches("x.com", domains)
        assert host_matches("mobile.x.com", domains)
        assert not host_matches("box.com", domains)

    def test_any_tld_entry(self) -> None:
        domains = frozenset({"amazon."})
        assert host_matches("amazon.com", domains)
        assert host_matches("amazon.co.uk", domains)
        assert host_matches("smile.amazon.de", domains)
        assert not host_matches("notamazon.com", domains)


# ---------------------------------------------------------------------------
# normalize_url
# ---------------------------------------------------------------------------

class TestNormalizeUrl:
    def test_protocol_relative_becomes_https(self) -> None:
        assert normalize_url("//cdn.example.com/a.png", "http://example.com") == "https://cdn.example.com/a.png"

    def test_relative_is_resolved_against_page(self) -> None:
        assert normalize_url("/img/a.png", "https://example.com/blog/post") == "https://example.com/img/a.png"

    def test_data_uri_returned_as_is(self) -> None:
        assert normalize_url("data:image/png;base64,AAAA", "https://example.com") == "data:image/png;base64,AAAA"

    def test_empty_and_non_http_give_none(self) -> None:
        assert normalize_url(None, "https://example.com") is None
        assert normalize_url("   ", "https://example.com") is None
        assert normalize_url("mailto:a@example.com", "https://example.com") is None


# ---------------------------------------------------------------------------
# URL-derived fallbacks
# ---------------------------------------------------------------------------

class TestFallbacks:
    def test_title_from_last_segment(self) -> None:
        assert title_from_url("https://blog.example.com/posts/my-first_post") == "My First Post"

    def test_title_drops_extension_and_numeric_id(self) -> None:
        assert title_from_url("https://example.com/news/big-launch-12345.html") == "Big Launch"

    def test_title_falls_back_to_host(self) -> None:
        assert title_from_url("https://example.com/") == "example.com"

    def test_default_favicon(self) -> None:
        assert default_favicon("https://example.com/a/b?c=d") == "https://example.com/favicon.ico"

    def test_truncate(self) -> None:
        assert truncate("  a   b  ", 10) == "a b"
        assert truncate("abcdef", 3) == "abc..."
        assert truncate(None, 3) == ""
