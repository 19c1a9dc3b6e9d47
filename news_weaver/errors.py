"""Error types for News Weaver.

The message of each error is meant to be shown to the user as is; the
underlying cause is chained on the exception.
"""


class NewsWeaverError(Exception):
    """Base class for all News Weaver errors."""


class FeedFetchError(NewsWeaverError):
    """Raised when a feed is unreachable or cannot be parsed."""


class InvalidFeedError(NewsWeaverError):
    """Raised when a feed cannot be registered as a subscription."""


class SummarizationError(NewsWeaverError):
    """Raised when an article summary cannot be produced."""


class ClassificationError(NewsWeaverError):
    """Raised when an article cannot be classified."""
