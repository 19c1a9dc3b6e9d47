"""Unit tests for article selection, filtering and sorting."""

from datetime import UTC, datetime

import pytest

from news_weaver.controller import (
    ViewFilters,
    available_topics,
    select_articles,
    sort_articles,
)
from news_weaver.models import Article


def make_article(title, day=None, sentiment=None, topic=None, snippet=None):
    return Article(
        link=f"https://example.com/{title}",
        title=title,
        snippet=snippet,
        published_at=datetime(2024, 1, day, tzinfo=UTC) if day else None,
        sentiment=sentiment,
        topic=topic,
    )


ARTICLES = [
    make_article("Mars rover finds water", 3, "positive", "Science", "NASA team reports"),
    make_article("Markets tumble", 1, "negative", "Business", "Stocks fell sharply"),
    make_article("Election results", 2, "neutral", "Politics", "Counting continues"),
    make_article("Undated note", None, "positive", "Science", None),
]


def titles(articles):
    return [a.title for a in articles]


class TestSelectArticlesUnit:
    """Unit tests for select_articles."""

    def test_defaults_show_everything_newest_first(self):
        result = select_articles(ARTICLES, ViewFilters())
        assert titles(result) == [
            "Mars rover finds water",
            "Election results",
            "Markets tumble",
            "Undated note",
        ]

    def test_oldest_puts_missing_dates_first(self):
        result = select_articles(ARTICLES, ViewFilters(sort="oldest"))
        assert titles(result) == [
            "Undated note",
            "Markets tumble",
            "Election results",
            "Mars rover finds water",
        ]

    def test_title_sorts(self):
        articles = [make_article("banana"), make_article("Apple"), make_article("cherry")]
        assert titles(select_articles(articles, ViewFilters(sort="a-z"))) == [
            "Apple",
            "banana",
            "cherry",
        ]
        assert titles(select_articles(articles, ViewFilters(sort="z-a"))) == [
            "cherry",
            "banana",
            "Apple",
        ]

    def test_accented_titles_sort_with_their_base_letters(self):
        articles = [
            make_article("Zebra crossing"),
            make_article("Éclair recipe"),
            make_article("eagle sighted"),
            make_article("Ångström unit"),
        ]
        assert titles(select_articles(articles, ViewFilters(sort="a-z"))) == [
            "Ångström unit",
            "eagle sighted",
            "Éclair recipe",
            "Zebra crossing",
        ]

    def test_unknown_sort_keeps_input_order(self):
        result = select_articles(ARTICLES, ViewFilters(sort="popular"))
        assert titles(result) == titles(ARTICLES)

    def test_query_matches_title_case_insensitively(self):
        result = select_articles(ARTICLES, ViewFilters(query="MARKETS"))
        assert titles(result) == ["Markets tumble"]

    def test_query_matches_snippet(self):
        result = select_articles(ARTICLES, ViewFilters(query="nasa"))
        assert titles(result) == ["Mars rover finds water"]

    def test_query_without_match(self):
        assert select_articles(ARTICLES, ViewFilters(query="football")) == []

    def test_sentiment_filter(self):
        result = select_articles(ARTICLES, ViewFilters(sentiment="positive"))
        assert titles(result) == ["Mars rover finds water", "Undated note"]

    def test_topic_filter_is_exact(self):
        assert titles(select_articles(ARTICLES, ViewFilters(topic="Politics"))) == [
            "Election results"
        ]
        assert select_articles(ARTICLES, ViewFilters(topic="politics")) == []

    def test_combined_filters(self):
        filters = ViewFilters(query="note", sentiment="positive", topic="Science")
        assert titles(select_articles(ARTICLES, filters)) == ["Undated note"]

    def test_unclassified_articles_hidden_by_sentiment_filter(self):
        articles = [make_article("pending")]
        assert select_articles(articles, ViewFilters(sentiment="neutral")) == []
        assert len(select_articles(articles, ViewFilters())) == 1

    def test_unknown_sentiment_filter_rejected(self):
        with pytest.raises(ValueError):
            select_articles(ARTICLES, ViewFilters(sentiment="angry"))

    def test_naive_dates_sort_with_aware_ones(self):
        naive = Article(link="n", title="naive", published_at=datetime(2024, 1, 5))
        result = sort_articles([*ARTICLES, naive], "newest")
        assert result[0].title == "naive"


class TestAvailableTopicsUnit:
    """Unit tests for available_topics."""

    def test_topics_in_first_seen_order(self):
        assert available_topics(ARTICLES) == ["all", "Science", "Business", "Politics"]

    def test_no_topics(self):
        assert available_topics([make_article("pending")]) == ["all"]
