"""Reader state container: selected view, filters and article loading."""

import asyncio
from dataclasses import dataclass, field, replace

from .controller import ViewFilters, available_topics, select_articles
from .errors import FeedFetchError, InvalidFeedError
from .logging_config import create_execution_logger
from .models import Article, Feed
from .orchestrator import EnrichmentOrchestrator
from .rss import FeedProcessor
from .storage import FavoritesStore, FeedStore

FAVORITES = "favorites"


@dataclass(frozen=True)
class ReaderState:
    """Snapshot of what the reader is showing.

    ``view`` is a feed id, FAVORITES, or None before anything is selected.
    """

    view: str | None = None
    filters: ViewFilters = field(default_factory=ViewFilters)
    loading: bool = False
    error: str | None = None


class ReaderStore:
    """Holds the reader state and performs its transitions.

    Articles and the set of articles being classified are owned by the
    orchestrator; this store only reads them.
    """

    def __init__(
        self,
        feeds: FeedStore,
        favorites: FavoritesStore,
        fetcher: FeedProcessor,
        orchestrator: EnrichmentOrchestrator,
        execution_id: str | None = None,
    ):
        self.feeds = feeds
        self.favorites = favorites
        self.fetcher = fetcher
        self.orchestrator = orchestrator
        self.logger = create_execution_logger("reader_store", execution_id)
        self.state = ReaderState()

    @property
    def articles(self) -> tuple[Article, ...]:
        return self.orchestrator.articles

    @property
    def classifying(self) -> frozenset[str]:
        return self.orchestrator.classifying

    def initial_view(self) -> str:
        """Select the first feed, or favorites when there are no feeds."""
        view = self.feeds.feeds[0].id if self.feeds.feeds else FAVORITES
        self.select_view(view)
        return view

    def select_view(self, view: str) -> None:
        """Switch to a feed or to favorites, clearing search and filters.

        Raises:
            KeyError: If the view is not a known feed id
        """
        if view != FAVORITES and self.feeds.get(view) is None:
            raise KeyError(f"Unknown feed: {view}")
        self.state = replace(
            self.state,
            view=view,
            filters=ViewFilters(sort=self.state.filters.sort),
            loading=False,
            error=None,
        )
        # Drops whatever a load of the previous view would still apply
        self.orchestrator.reset((), view=view)
        self.logger.info("View selected", view=view)

    def set_query(self, query: str) -> None:
        self.state = replace(self.state, filters=replace(self.state.filters, query=query))

    def set_sort(self, sort: str) -> None:
        self.state = replace(self.state, filters=replace(self.state.filters, sort=sort))

    def set_sentiment_filter(self, sentiment: str) -> None:
        self.state = replace(
            self.state, filters=replace(self.state.filters, sentiment=sentiment)
        )

    def set_topic_filter(self, topic: str) -> None:
        self.state = replace(self.state, filters=replace(self.state.filters, topic=topic))

    async def load_view(self) -> list[Article]:
        """Load the articles of the selected view and classify them.

        A failed fetch is stored as the error message of the state and yields
        no articles. Loading is retried by calling this again.
        """
        view = self.state.view
        if view is None:
            return []

        if view == FAVORITES:
            self.state = replace(self.state, loading=False, error=None)
            return await self.orchestrator.enrich_batch(self.favorites.articles, view=view)

        feed = self.feeds.get(view)
        if feed is None:
            raise KeyError(f"Unknown feed: {view}")

        self.state = replace(self.state, loading=True, error=None)
        token = self.orchestrator.reset((), view=view)

        try:
            articles = await asyncio.to_thread(self.fetcher.fetch_articles, feed.url)
        except FeedFetchError as e:
            if self.orchestrator.is_current(token):
                self.state = replace(self.state, loading=False, error=str(e))
            self.logger.warning(
                f"Failed to load feed {feed.url}: {e}", feed_url=feed.url
            )
            return []

        if not self.orchestrator.is_current(token):
            # Another view was loaded while this feed was downloading
            return articles

        # Show the articles right away, classification follows
        self.orchestrator.reset(articles, view=view)
        self.state = replace(self.state, loading=False)
        return await self.orchestrator.enrich_batch(articles, view=view)

    def visible_articles(self) -> list[Article]:
        return select_articles(self.articles, self.state.filters)

    def available_topics(self) -> list[str]:
        return available_topics(self.articles)

    def current_view_name(self) -> str:
        view = self.state.view
        if view == FAVORITES:
            return "Favorites"
        feed = self.feeds.get(view) if view else None
        return feed.name if feed else "Select a feed"

    async def add_feed(
        self, url: str, name: str | None = None, category: str | None = None
    ) -> Feed:
        """Subscribe to a feed after checking that it can be read.

        Args:
            url: Feed URL
            name: Display name; the feed's own title when empty
            category: Optional group of the feed in the feed list

        Raises:
            InvalidFeedError: If the URL is not a usable feed; nothing is saved
        """
        details = await self._validate(url)
        return self.feeds.add(self._feed_name(name, details), url, category)

    async def update_feed(
        self,
        feed_id: str,
        url: str,
        name: str | None = None,
        category: str | None = None,
    ) -> Feed:
        """Change a subscription, checking the new URL first.

        Raises:
            KeyError: If the feed id is unknown
            InvalidFeedError: If the URL is not a usable feed; nothing is saved
        """
        feed = self.feeds.get(feed_id)
        if feed is None:
            raise KeyError(f"Unknown feed: {feed_id}")

        details = await self._validate(url)
        updated = replace(
            feed, name=self._feed_name(name, details), url=url, category=category or None
        )
        self.feeds.update(updated)
        return updated

    async def _validate(self, url: str) -> dict[str, str]:
        try:
            return await asyncio.to_thread(self.fetcher.validate_feed, url)
        except InvalidFeedError as e:
            self.logger.warning(f"Rejected feed {url}: {e}", feed_url=url)
            raise

    @staticmethod
    def _feed_name(name: str | None, details: dict[str, str]) -> str:
        return (name or "").strip() or details["name"]

    def is_favorite(self, article: Article) -> bool:
        return self.favorites.is_favorite(article.link)

    def toggle_favorite(self, article: Article) -> bool:
        """Add or remove a favorite; the favorites view is refreshed at once."""
        added = self.favorites.toggle(article)
        if self.state.view == FAVORITES:
            self.orchestrator.reset(self.favorites.articles, view=FAVORITES)
        return added
