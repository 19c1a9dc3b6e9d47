"""Feed fetching and normalization for News Weaver."""

from datetime import UTC, datetime
from typing import Any
from urllib.parse import urlparse

import feedparser
import requests
from dateutil import parser as date_parser

from .config import FetchConfig
from .errors import FeedFetchError, InvalidFeedError
from .logging_config import create_execution_logger
from .models import Article
from .sanitize import html_to_text

FETCH_ERROR_MESSAGE = (
    "Could not fetch or parse the RSS feed. Please check the URL and try again."
)
INVALID_FEED_MESSAGE = "Invalid or unreachable RSS feed URL."

ALLOWED_SCHEMES = ("http", "https")


class FeedProcessor:
    """Handles RSS/Atom feed download, parsing and normalization."""

    def __init__(self, config: FetchConfig | None = None, execution_id: str | None = None):
        """Initialize FeedProcessor with configuration.

        Args:
            config: Download settings (timeout, user agent)
            execution_id: Execution ID for logging context
        """
        self.config = config or FetchConfig()
        self.logger = create_execution_logger("feed_processor", execution_id)
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": self.config.user_agent})

        self.logger.info("FeedProcessor initialized", timeout=self.config.timeout)

    def fetch_articles(self, feed_url: str) -> list[Article]:
        """Fetch a feed and return its articles.

        Args:
            feed_url: URL of the RSS/Atom feed

        Returns:
            List of Article objects in feed order

        Raises:
            FeedFetchError: If the feed is unreachable or unparsable
        """
        feed = self._download_and_parse(feed_url)

        articles = []
        for entry in feed.entries:
            try:
                articles.append(self.normalize_item(entry))
            except ValueError as e:
                self.logger.warning(
                    f"Skipping entry from {feed_url}: {e}",
                    feed_url=feed_url,
                    error=str(e),
                )

        self.logger.info(
            f"Fetched {len(articles)} articles",
            feed_url=feed_url,
            articles_count=len(articles),
        )
        return articles

    def validate_feed(self, feed_url: str) -> dict[str, str]:
        """Check that a URL points to a usable feed before subscribing to it.

        Returns:
            Dictionary with the feed ``name`` (its title) and ``url``

        Raises:
            InvalidFeedError: If the feed is unreachable or has no title
        """
        try:
            feed = self._download_and_parse(feed_url)
        except FeedFetchError as e:
            raise InvalidFeedError(INVALID_FEED_MESSAGE) from e

        title = (feed.feed.get("title") or "").strip()
        if not title:
            self.logger.warning("Feed has no title", feed_url=feed_url)
            raise InvalidFeedError(INVALID_FEED_MESSAGE)

        self.logger.info("Feed validated", feed_url=feed_url, feed_title=title)
        return {"name": title, "url": feed_url}

    def _download_and_parse(self, feed_url: str) -> Any:
        """Download and parse a feed document.

        Raises:
            FeedFetchError: If the URL is unsupported, the download fails or
                the document is not a feed
        """
        try:
            scheme = urlparse(feed_url).scheme
        except ValueError as e:
            self.logger.error(f"Invalid feed URL {feed_url}: {e}", feed_url=feed_url)
            raise FeedFetchError(FETCH_ERROR_MESSAGE) from e

        if scheme not in ALLOWED_SCHEMES:
            self.logger.error(
                f"Unsupported feed URL scheme: {feed_url}",
                feed_url=feed_url,
                scheme=scheme,
            )
            raise FeedFetchError(FETCH_ERROR_MESSAGE)

        try:
            self.logger.info("Downloading feed content", feed_url=feed_url)
            response = self.session.get(feed_url, timeout=self.config.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            self.logger.error(
                f"Failed to download feed {feed_url}: {e}",
                feed_url=feed_url,
                error=str(e),
            )
            raise FeedFetchError(FETCH_ERROR_MESSAGE) from e

        feed = feedparser.parse(response.content)

        if feed.bozo:
            bozo_exception = str(getattr(feed, "bozo_exception", "unknown error"))
            if not feed.entries and not feed.feed.get("title"):
                self.logger.error(
                    f"Feed could not be parsed: {feed_url}",
                    feed_url=feed_url,
                    bozo_exception=bozo_exception,
                )
                raise FeedFetchError(FETCH_ERROR_MESSAGE)
            self.logger.warning(
                f"Feed parsing warning for {feed_url}: {bozo_exception}",
                feed_url=feed_url,
                bozo_exception=bozo_exception,
            )

        return feed

    def normalize_item(self, entry: Any) -> Article:
        """Normalize a parsed feed entry into an Article.

        Args:
            entry: Feed entry from feedparser

        Returns:
            Normalized Article object

        Raises:
            ValueError: If the entry has no link
        """
        link = (entry.get("link") or "").strip()
        if not link:
            raise ValueError("entry has no link")

        published = entry.get("published") or entry.get("updated") or None

        # Prefer full content, fall back to the summary/description
        summary = entry.get("summary") or ""
        content = summary
        entry_content = entry.get("content")
        if entry_content:
            content = entry_content[0].get("value", "") or summary

        snippet = html_to_text(summary or content) or None

        return Article(
            link=link,
            title=entry.get("title") or "",
            guid=entry.get("id") or None,
            published=published,
            published_at=self.parse_date(published),
            content=content or None,
            snippet=snippet,
            author=entry.get("author") or None,
            enclosure_url=self.extract_enclosure_url(entry),
        )

    @staticmethod
    def parse_date(raw: str | None) -> datetime | None:
        """Parse a feed date into a timezone-aware datetime.

        Dates without a zone are taken as UTC; missing or unparsable dates
        give None.
        """
        if not raw:
            return None
        try:
            parsed = date_parser.parse(raw)
        except (ValueError, TypeError, OverflowError):
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        return parsed

    @staticmethod
    def extract_enclosure_url(entry: Any) -> str | None:
        """Pick the image/media URL from the enclosure or media:content."""
        for enclosure in entry.get("enclosures") or []:
            href = enclosure.get("href") or enclosure.get("url")
            if href:
                return href
        for media in entry.get("media_content") or []:
            url = media.get("url")
            if url:
                return url
        return None
