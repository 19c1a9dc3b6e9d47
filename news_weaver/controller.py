"""Derivation of the displayed article list from search, filters and sort order."""

import unicodedata
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime

from .models import SENTIMENTS, Article

ALL = "all"

SORT_ORDERS = ("newest", "oldest", "a-z", "z-a")
SENTIMENT_FILTERS = (ALL, *SENTIMENTS)

EPOCH = datetime.fromtimestamp(0, UTC)


@dataclass(frozen=True)
class ViewFilters:
    """Search text, filters and sort order applied to an article list."""

    query: str = ""
    sentiment: str = ALL
    topic: str = ALL
    sort: str = "newest"


def matches(article: Article, filters: ViewFilters) -> bool:
    """Check an article against the search text and both filters."""
    query = filters.query.lower()
    if query:
        title = (article.title or "").lower()
        snippet = (article.snippet or "").lower()
        if query not in title and query not in snippet:
            return False

    if filters.sentiment != ALL and article.sentiment != filters.sentiment:
        return False

    if filters.topic != ALL and article.topic != filters.topic:
        return False

    return True


def _timestamp(article: Article) -> datetime:
    published_at = article.published_at
    if published_at is None:
        return EPOCH
    if published_at.tzinfo is None:
        return published_at.replace(tzinfo=UTC)
    return published_at


def _title_key(article: Article) -> tuple[str, str]:
    """Collation key ignoring case and accents, so "Éclair" sorts with "eclair".

    Titles equal up to accents are ordered by their case-folded form.
    """
    folded = (article.title or "").casefold()
    decomposed = unicodedata.normalize("NFKD", folded)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return base, folded


def sort_articles(articles: list[Article], order: str) -> list[Article]:
    """Sort articles; an unknown order keeps the given order."""
    if order == "newest":
        return sorted(articles, key=_timestamp, reverse=True)
    if order == "oldest":
        return sorted(articles, key=_timestamp)
    if order == "a-z":
        return sorted(articles, key=_title_key)
    if order == "z-a":
        return sorted(articles, key=_title_key, reverse=True)
    return list(articles)


def select_articles(articles: Iterable[Article], filters: ViewFilters) -> list[Article]:
    """Compute the visible, ordered subset of an article set.

    Filtering is applied before sorting.

    Raises:
        ValueError: If the sentiment filter is not a known value
    """
    if filters.sentiment not in SENTIMENT_FILTERS:
        raise ValueError(f"Unknown sentiment filter: {filters.sentiment!r}")

    visible = [article for article in articles if matches(article, filters)]
    return sort_articles(visible, filters.sort)


def available_topics(articles: Iterable[Article]) -> list[str]:
    """List topic filter choices: 'all' then each topic in first-seen order."""
    topics = dict.fromkeys(article.topic for article in articles if article.topic)
    return [ALL, *topics]
