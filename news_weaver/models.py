"""Data models for News Weaver."""

import uuid
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Any

from dateutil import parser as date_parser

SENTIMENTS = ("positive", "negative", "neutral")

UNCATEGORIZED = "Uncategorized"

FALLBACK_SENTIMENT = "neutral"
FALLBACK_TOPIC = "General"


@dataclass(frozen=True)
class Classification:
    """Sentiment and topic produced for a single article."""

    sentiment: str
    topic: str

    @classmethod
    def fallback(cls) -> "Classification":
        """Classification used when the remote call fails."""
        return cls(sentiment=FALLBACK_SENTIMENT, topic=FALLBACK_TOPIC)


@dataclass
class Article:
    """Represents a single ingested feed article."""

    link: str
    title: str = ""
    guid: str | None = None
    published: str | None = None  # Raw date text as found in the feed
    published_at: datetime | None = None
    content: str | None = None
    snippet: str | None = None
    author: str | None = None
    enclosure_url: str | None = None
    sentiment: str | None = None
    topic: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def identity_key(self) -> str:
        """Key used to track the article: guid when present, else link."""
        return self.guid or self.link

    @property
    def is_classified(self) -> bool:
        return self.sentiment is not None and self.topic is not None

    def same_entity(self, other: "Article") -> bool:
        """Check whether two articles describe the same item."""
        if self.guid and other.guid:
            return self.guid == other.guid
        return self.link == other.link

    def with_classification(self, classification: Classification) -> "Article":
        """Return a copy carrying the given sentiment and topic."""
        return replace(
            self,
            sentiment=classification.sentiment,
            topic=classification.topic,
            extra=dict(self.extra),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the feed record field names."""
        data = dict(self.extra)
        data.update(
            {
                "link": self.link,
                "title": self.title,
                "guid": self.guid,
                "pubDate": self.published,
                "isoDate": self.published_at.isoformat() if self.published_at else None,
                "content": self.content,
                "contentSnippet": self.snippet,
                "creator": self.author,
                "enclosureUrl": self.enclosure_url,
                "sentiment": self.sentiment,
                "topic": self.topic,
            }
        )
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Article":
        """Build an Article from its serialized form.

        Unknown keys are kept in ``extra``.

        Raises:
            ValueError: If the record has no link
        """
        link = data.get("link")
        if not link:
            raise ValueError("Article record must have a link")

        published_at = None
        iso_date = data.get("isoDate")
        if iso_date:
            try:
                published_at = date_parser.isoparse(iso_date)
            except (ValueError, TypeError):
                published_at = None
        if published_at is not None and published_at.tzinfo is None:
            published_at = published_at.replace(tzinfo=UTC)

        known = {
            "link",
            "title",
            "guid",
            "pubDate",
            "isoDate",
            "content",
            "contentSnippet",
            "creator",
            "enclosureUrl",
            "sentiment",
            "topic",
        }
        return cls(
            link=link,
            title=data.get("title") or "",
            guid=data.get("guid") or None,
            published=data.get("pubDate"),
            published_at=published_at,
            content=data.get("content"),
            snippet=data.get("contentSnippet"),
            author=data.get("creator"),
            enclosure_url=data.get("enclosureUrl"),
            sentiment=data.get("sentiment"),
            topic=data.get("topic"),
            extra={k: v for k, v in data.items() if k not in known},
        )


@dataclass
class Feed:
    """Represents a feed subscription."""

    name: str
    url: str
    category: str | None = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def group(self) -> str:
        return self.category or UNCATEGORIZED

    def to_dict(self) -> dict[str, Any]:
        data = {"id": self.id, "name": self.name, "url": self.url}
        if self.category:
            data["category"] = self.category
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Feed":
        return cls(
            id=data["id"],
            name=data["name"],
            url=data["url"],
            category=data.get("category") or None,
        )
