"""Unit tests for the status page feed processor."""

from unittest.mock import Mock, patch

import feedparser
import pytest
import requests

from status_notice_bot.models import FeedEntry
from status_notice_bot.rss import USER_AGENT, FeedParseError, FeedProcessor

STATUS_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Acme Status</title>
    <link>https://status.example.com/</link>
    <description>Acme status updates</description>
    <item>
      <title>Acme Status</title>
      <link>https://status.example.com/</link>
      <description>Status page</description>
      <pubDate>Mon, 01 Jan 2024 09:00:00 GMT</pubDate>
    </item>
    <item>
      <title>Acme Maintenance</title>
      <link>https://status.example.com/incidents/42</link>
      <description>&lt;p&gt;Scheduled &lt;b&gt;database&lt;/b&gt; upgrade&lt;/p&gt;</description>
      <pubDate>Mon, 01 Jan 2024 10:00:00 GMT</pubDate>
      <category>maintenance</category>
    </item>
  </channel>
</rss>
"""

# 2024-01-01T10:00:00Z
PUBLISHED_MS = 1704103200000


def make_processor(content=STATUS_FEED.encode("utf-8"), status_code=200):
    session = Mock()
    session.headers = {}
    response = Mock()
    response.content = content
    response.status_code = status_code
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status_code}")
    session.get.return_value = response
    return FeedProcessor(session=session), session


class TestFeedProcessorUnit:
    """Unit tests for FeedProcessor."""

    def test_parse_feed_keeps_feed_order(self):
        processor, session = make_processor()

        entries = processor.parse_feed("https://status.example.com/feed")

        session.get.assert_called_once_with(
            "https://status.example.com/feed", timeout=30
        )
        assert [entry.link for entry in entries] == [
            "https://status.example.com/",
            "https://status.example.com/incidents/42",
        ]

    def test_entry_fields_are_normalized(self):
        processor, _ = make_processor()

        entry = processor.parse_feed("https://status.example.com/feed")[1]

        assert isinstance(entry, FeedEntry)
        assert entry.title == "Acme Maintenance"
        assert entry.description == "Scheduled database upgrade"
        assert entry.published == PUBLISHED_MS
        assert entry.categories == ["maintenance"]

    def test_download_failure_propagates(self):
        processor, _ = make_processor(status_code=503)

        with pytest.raises(requests.HTTPError):
            processor.parse_feed("https://status.example.com/feed")

    def test_naive_date_is_treated_as_utc(self):
        processor, _ = make_processor()
        raw_entry = feedparser.FeedParserDict(
            title="Acme", link="https://x/1", published="2024-01-01 10:00:00"
        )

        assert processor.normalize_entry(raw_entry).published == PUBLISHED_MS

    def test_undated_entry_gets_zero(self):
        processor, _ = make_processor()
        raw_entry = feedparser.FeedParserDict(title="Acme", link="https://x/1")

        entry = processor.normalize_entry(raw_entry)

        assert entry.published == 0
        assert entry.description == ""
        assert entry.author is None

    def test_html_cleaning_specific_cases(self):
        processor, _ = make_processor()

        test_cases = [
            ("<p>Simple paragraph</p>", "Simple paragraph"),
            ("<div><h1>Title</h1><p>Content</p></div>", "Title Content"),
            ("<script>alert('xss')</script><p>Safe content</p>", "Safe content"),
            ("Plain text without HTML", "Plain text without HTML"),
            ("<p>Multiple  \n\n  spaces   and\tlines</p>", "Multiple spaces and lines"),
        ]

        for html_input, expected_output in test_cases:
            assert processor.clean_html_content(html_input) == expected_output

    def test_empty_content_handling(self):
        processor, _ = make_processor()

        assert processor.clean_html_content("") == ""
        assert processor.clean_html_content(None) == ""
        assert processor.clean_html_content("   ") == ""
        assert processor.clean_html_content("<div></div>") == ""

    def test_html_error_page_is_a_parse_error(self):
        processor, _ = make_processor(
            content=b"<html><body>502 Bad Gateway</body></html>"
        )

        with pytest.raises(FeedParseError):
            processor.parse_feed("https://status.example.com/feed")

    def test_non_xml_body_is_a_parse_error(self):
        processor, _ = make_processor(content=b"upstream connect error")

        with pytest.raises(FeedParseError) as exc_info:
            processor.parse_feed("https://status.example.com/feed")

        assert "https://status.example.com/feed" in str(exc_info.value)

    def test_malformed_feed_with_entries_is_kept(self):
        processor, _ = make_processor()
        salvaged = feedparser.FeedParserDict(
            bozo=1,
            bozo_exception=ValueError("undefined entity"),
            version="rss20",
            entries=[
                feedparser.FeedParserDict(
                    title="Acme Maintenance",
                    link="https://status.example.com/incidents/42",
                )
            ],
        )

        with patch("status_notice_bot.rss.feedparser.parse", return_value=salvaged):
            entries = processor.parse_feed("https://status.example.com/feed")

        assert [entry.title for entry in entries] == ["Acme Maintenance"]

    def test_empty_valid_feed_is_not_an_error(self):
        processor, _ = make_processor(
            content=(
                b'<?xml version="1.0" encoding="UTF-8"?><rss version="2.0"><channel>'
                b"<title>Acme Status</title><link>https://status.example.com/</link>"
                b"</channel></rss>"
            )
        )

        assert processor.parse_feed("https://status.example.com/feed") == []

    def test_shared_session_headers_are_left_alone(self):
        session = Mock()
        session.headers = {"User-Agent": "caller"}

        FeedProcessor(session=session)

        assert session.headers == {"User-Agent": "caller"}

    def test_own_session_gets_user_agent(self):
        processor = FeedProcessor()

        assert processor.session.headers["User-Agent"] == USER_AGENT
