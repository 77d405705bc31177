"""Tests for URL and title extraction."""

import pytest

from matrix_rss_bridge.extractor import extract_link, extract_title


class TestExtractLink:

    def test_link_with_query(self):
        assert extract_link("check this out https://example.com/a?x=1 thanks") == "https://example.com/a?x=1"

    def test_plain_http_and_www(self):
        assert extract_link("see http://www.example.org") == "http://www.example.org"

    def test_first_url_wins(self):
        body = "https://first.example.com/1 and https://second.example.com/2"
        assert extract_link(body) == "https://first.example.com/1"

    def test_link_at_start_of_message(self):
        assert extract_link("https://ex.com hi") == "https://ex.com"

    @pytest.mark.parametrize("body", [
        "no links here",
        "ftp://example.com/file",
        "example.com without scheme",
        "https://localhost/path",
        "",
    ])
    def test_no_url(self, body):
        assert extract_link(body) is None

    def test_trailing_punctuation_kept_by_pattern(self):
        # '.' is a valid path character in the pattern
        assert extract_link("read https://example.com/post.") == "https://example.com/post."

    def test_fragment(self):
        assert extract_link("https://example.com/page#section end") == "https://example.com/page#section"


class TestExtractTitle:

    def test_simple_title(self):
        assert extract_title("<html><head><title>Hi</title></head></html>") == "Hi"

    def test_first_title_only(self):
        html = "<title>First</title><svg><title>Second</title></svg>"
        assert extract_title(html) == "First"

    def test_missing_title(self):
        assert extract_title("<html><body>nothing</body></html>") is None

    def test_case_sensitive(self):
        assert extract_title("<TITLE>Upper</TITLE>") is None

    def test_attributes_not_supported(self):
        assert extract_title('<title lang="en">With attr</title>') is None

    def test_multiline_title_not_matched(self):
        assert extract_title("<title>\n  Spread out\n</title>") is None

    def test_empty_title(self):
        assert extract_title("<title></title>") == ""
