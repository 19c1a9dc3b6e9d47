"""Unit tests for the feed fetcher."""

from datetime import UTC, datetime
from unittest.mock import Mock

import pytest
import requests

from news_weaver.errors import FeedFetchError, InvalidFeedError
from news_weaver.models import Article
from news_weaver.rss import FETCH_ERROR_MESSAGE, INVALID_FEED_MESSAGE, FeedProcessor

RSS_FEED = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"
     xmlns:content="http://purl.org/rss/1.0/modules/content/"
     xmlns:dc="http://purl.org/dc/elements/1.1/"
     xmlns:media="http://search.yahoo.com/mrss/">
  <channel>
    <title>Example News</title>
    <link>https://example.com/</link>
    <description>Example feed</description>
    <item>
      <title>First story</title>
      <link>https://example.com/first</link>
      <guid>https://example.com/?p=1</guid>
      <pubDate>Mon, 01 Jan 2024 10:00:00 GMT</pubDate>
      <dc:creator>Jane Doe</dc:creator>
      <description><![CDATA[<p>Short <b>summary</b></p>]]></description>
      <content:encoded><![CDATA[<p>Full body of the first story</p>]]></content:encoded>
      <enclosure url="https://example.com/first.jpg" type="image/jpeg" length="0"/>
    </item>
    <item>
      <title>Second story</title>
      <link>https://example.com/second</link>
      <description>Plain text description</description>
      <media:content url="https://example.com/second.jpg" medium="image"/>
    </item>
  </channel>
</rss>
"""

UNTITLED_FEED = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <item>
      <title>Orphan</title>
      <link>https://example.com/orphan</link>
    </item>
  </channel>
</rss>
"""


def make_processor(content: bytes = RSS_FEED) -> FeedProcessor:
    processor = FeedProcessor()
    response = Mock()
    response.content = content
    response.raise_for_status.return_value = None
    processor.session.get = Mock(return_value=response)
    return processor


class TestFeedProcessorUnit:
    """Unit tests for fetching, validating and normalizing feeds."""

    def test_fetch_articles_normalizes_rss_items(self):
        processor = make_processor()

        articles = processor.fetch_articles("https://example.com/feed")

        assert len(articles) == 2
        first, second = articles
        assert isinstance(first, Article)
        assert first.title == "First story"
        assert first.link == "https://example.com/first"
        assert first.guid == "https://example.com/?p=1"
        assert first.identity_key == "https://example.com/?p=1"
        assert first.published == "Mon, 01 Jan 2024 10:00:00 GMT"
        assert first.published_at == datetime(2024, 1, 1, 10, tzinfo=UTC)
        assert "Full body of the first story" in first.content
        assert first.snippet == "Short summary"
        assert first.author == "Jane Doe"
        assert first.enclosure_url == "https://example.com/first.jpg"
        assert not first.is_classified

        assert second.link == "https://example.com/second"
        assert second.published_at is None
        assert second.snippet == "Plain text description"
        assert second.enclosure_url == "https://example.com/second.jpg"

    def test_fetch_passes_timeout(self):
        processor = make_processor()
        processor.fetch_articles("https://example.com/feed")
        processor.session.get.assert_called_once_with(
            "https://example.com/feed", timeout=processor.config.timeout
        )

    def test_download_failure_raises_fetch_error(self):
        processor = FeedProcessor()
        processor.session.get = Mock(side_effect=requests.ConnectionError("refused"))

        with pytest.raises(FeedFetchError) as exc_info:
            processor.fetch_articles("https://unreachable.example.com/feed")

        assert str(exc_info.value) == FETCH_ERROR_MESSAGE
        assert isinstance(exc_info.value.__cause__, requests.ConnectionError)

    def test_http_error_raises_fetch_error(self):
        processor = make_processor()
        processor.session.get.return_value.raise_for_status.side_effect = (
            requests.HTTPError("404")
        )

        with pytest.raises(FeedFetchError):
            processor.fetch_articles("https://example.com/missing")

    def test_unparsable_document_raises_fetch_error(self):
        processor = make_processor(b"this is not a feed <<<")

        with pytest.raises(FeedFetchError):
            processor.fetch_articles("https://example.com/page")

    @pytest.mark.parametrize(
        "url", ["ftp://example.com/feed", "file:///etc/passwd", "example.com/feed", ""]
    )
    def test_unsupported_url_is_rejected_without_download(self, url):
        processor = make_processor()

        with pytest.raises(FeedFetchError):
            processor.fetch_articles(url)

        processor.session.get.assert_not_called()

    def test_validate_feed_returns_title_and_url(self):
        processor = make_processor()

        result = processor.validate_feed("https://example.com/feed")

        assert result == {"name": "Example News", "url": "https://example.com/feed"}

    def test_validate_feed_without_title(self):
        processor = make_processor(UNTITLED_FEED)

        with pytest.raises(InvalidFeedError) as exc_info:
            processor.validate_feed("https://example.com/feed")

        assert str(exc_info.value) == INVALID_FEED_MESSAGE

    def test_validate_unreachable_feed(self):
        processor = FeedProcessor()
        processor.session.get = Mock(side_effect=requests.Timeout("slow"))

        with pytest.raises(InvalidFeedError) as exc_info:
            processor.validate_feed("https://example.com/feed")

        assert isinstance(exc_info.value.__cause__, FeedFetchError)

    def test_normalize_item_with_minimal_fields(self):
        processor = FeedProcessor()

        article = processor.normalize_item({"link": "https://example.com/minimal"})

        assert article.link == "https://example.com/minimal"
        assert article.title == ""
        assert article.guid is None
        assert article.content is None
        assert article.snippet is None
        assert article.published_at is None
        assert article.enclosure_url is None

    def test_normalize_item_atom_content(self):
        processor = FeedProcessor()
        entry = {
            "title": "Security Best Practices Update",
            "link": "https://example.com/security",
            "id": "tag:example.com,2024:/security",
            "updated": "2024-01-01T10:00:00Z",
            "content": [{"value": "<div><h2>Important</h2><p>New guidelines.</p></div>"}],
        }

        article = processor.normalize_item(entry)

        assert article.guid == "tag:example.com,2024:/security"
        assert article.published == "2024-01-01T10:00:00Z"
        assert article.published_at == datetime(2024, 1, 1, 10, tzinfo=UTC)
        assert article.content.startswith("<div>")
        assert article.snippet == "Important New guidelines."

    def test_normalize_item_without_link_is_rejected(self):
        processor = FeedProcessor()
        with pytest.raises(ValueError):
            processor.normalize_item({"title": "No link"})

    def test_parse_date(self):
        assert FeedProcessor.parse_date(None) is None
        assert FeedProcessor.parse_date("not a date at all") is None
        assert FeedProcessor.parse_date("2024-03-05 08:00") == datetime(
            2024, 3, 5, 8, tzinfo=UTC
        )
