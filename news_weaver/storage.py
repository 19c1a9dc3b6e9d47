"""Local persistence of feed subscriptions and favorite articles."""

import json
from pathlib import Path
from typing import Any

from .logging_config import create_execution_logger
from .models import Article, Feed

DEFAULT_FEEDS = (
    {"name": "TechCrunch", "url": "https://techcrunch.com/feed/", "category": "Technology"},
    {
        "name": "The Verge",
        "url": "https://www.theverge.com/rss/index.xml",
        "category": "Technology",
    },
)


class JsonFileStore:
    """Best-effort list storage in a JSON file.

    Storage is treated as a cache, not a system of record: a failed load
    yields an empty list and a failed save is only logged.
    """

    def __init__(self, path: Path, execution_id: str | None = None):
        self.path = Path(path)
        self.logger = create_execution_logger("storage", execution_id)

    def load(self, default: list[Any] | tuple = ()) -> list[Any]:
        """Read the stored list.

        Args:
            default: Records returned when nothing is stored or it is unreadable

        Returns:
            The stored records
        """
        if not self.path.exists():
            return list(default)
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            self.logger.error(
                f"Failed to load {self.path}: {e}", path=str(self.path), error=str(e)
            )
            return list(default)

        if not isinstance(data, list):
            self.logger.error(
                f"Unexpected content in {self.path}", path=str(self.path)
            )
            return list(default)
        return data

    def save(self, records: list[Any]) -> None:
        """Write the list, logging and ignoring any failure."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(records, f, ensure_ascii=False, indent=2)
        except (OSError, TypeError, ValueError) as e:
            self.logger.error(
                f"Failed to save {self.path}: {e}", path=str(self.path), error=str(e)
            )


class FeedStore:
    """Feed subscriptions, seeded with default feeds on first use."""

    def __init__(self, store: JsonFileStore):
        self.store = store
        self.feeds = self._load()

    def _load(self) -> list[Feed]:
        defaults = [Feed(**record).to_dict() for record in DEFAULT_FEEDS]
        records = self.store.load(default=defaults)
        feeds = []
        for record in records:
            try:
                feeds.append(Feed.from_dict(record))
            except (KeyError, TypeError, AttributeError) as e:
                self.store.logger.warning(
                    f"Skipping malformed feed record: {e}", error=str(e)
                )
        return feeds

    def _save(self) -> None:
        self.store.save([feed.to_dict() for feed in self.feeds])

    def get(self, feed_id: str) -> Feed | None:
        for feed in self.feeds:
            if feed.id == feed_id:
                return feed
        return None

    def add(self, name: str, url: str, category: str | None = None) -> Feed:
        feed = Feed(name=name, url=url, category=category or None)
        self.feeds = [*self.feeds, feed]
        self._save()
        self.store.logger.info("Feed added", feed_url=url, feed_id=feed.id)
        return feed

    def update(self, updated: Feed) -> None:
        """Replace the feed having the same id; unknown ids are ignored."""
        self.feeds = [updated if feed.id == updated.id else feed for feed in self.feeds]
        self._save()

    def remove(self, feed_id: str) -> None:
        self.feeds = [feed for feed in self.feeds if feed.id != feed_id]
        self._save()

    def grouped(self) -> dict[str, list[Feed]]:
        """Group feeds by category, in first-seen category order."""
        groups: dict[str, list[Feed]] = {}
        for feed in self.feeds:
            groups.setdefault(feed.group, []).append(feed)
        return groups


class FavoritesStore:
    """Favorite articles, most recently added first."""

    def __init__(self, store: JsonFileStore):
        self.store = store
        self.articles = self._load()

    def _load(self) -> list[Article]:
        articles = []
        for record in self.store.load():
            try:
                articles.append(Article.from_dict(record))
            except (ValueError, TypeError, AttributeError) as e:
                self.store.logger.warning(
                    f"Skipping malformed favorite record: {e}", error=str(e)
                )
        return articles

    def _save(self) -> None:
        self.store.save([article.to_dict() for article in self.articles])

    def is_favorite(self, link: str) -> bool:
        return any(article.link == link for article in self.articles)

    def toggle(self, article: Article) -> bool:
        """Add or remove an article.

        Returns:
            True if the article is now a favorite
        """
        if self.is_favorite(article.link):
            self.articles = [fav for fav in self.articles if fav.link != article.link]
            added = False
        else:
            self.articles = [article, *self.articles]
            added = True
        self._save()
        self.store.logger.log_article_processing(
            article.link, "added_to_favorites" if added else "removed_from_favorites"
        )
        return added
