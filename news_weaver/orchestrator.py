"""Enrichment orchestrator: concurrent classification of article batches."""

import asyncio
from collections.abc import Callable, Iterable, Sequence
from typing import Any, Protocol

from .logging_config import create_execution_logger
from .models import Article, Classification
from .sanitize import sanitize


class Classifier(Protocol):
    async def aclassify(self, title: str, content: str) -> Classification: ...


Observer = Callable[["EnrichmentOrchestrator"], None]


class EnrichmentOrchestrator:
    """Owns the displayed article set and the set of articles being classified.

    Each call to ``enrich_batch`` or ``reset`` issues a new generation token. A batch only
    writes its results to the shared state if its token is still the latest
    one when all of its classification calls have settled; results of a
    superseded batch are returned to the caller but never applied.
    """

    def __init__(
        self,
        classifier: Classifier,
        max_concurrency: int | None = None,
        execution_id: str | None = None,
    ):
        self.classifier = classifier
        self.max_concurrency = max_concurrency
        self.logger = create_execution_logger("orchestrator", execution_id)

        self.articles: tuple[Article, ...] = ()
        self.classifying: frozenset[str] = frozenset()
        self.generation = 0
        self.view: Any = None
        self._observers: list[Observer] = []

    @property
    def in_flight(self) -> bool:
        return bool(self.classifying)

    def is_classifying(self, article: Article) -> bool:
        return article.identity_key in self.classifying

    def is_current(self, token: int) -> bool:
        return token == self.generation

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register a callback run after every state change.

        Returns:
            Function that removes the callback again
        """
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def _notify(self) -> None:
        for observer in list(self._observers):
            observer(self)

    def _issue_token(self, view: Any) -> int:
        self.generation += 1
        self.view = view
        return self.generation

    def reset(self, articles: Iterable[Article] = (), view: Any = None) -> int:
        """Show a new article set as is, superseding any batch in flight."""
        token = self._issue_token(view)
        self.articles = tuple(articles)
        self.classifying = frozenset()
        self.logger.debug(
            "Article set reset", batch_token=token, articles_count=len(self.articles)
        )
        self._notify()
        return token

    async def enrich_batch(
        self, articles: Sequence[Article], view: Any = None
    ) -> list[Article]:
        """Classify every unclassified article of a batch concurrently.

        Args:
            articles: Articles of the requested view, in display order
            view: Identifier of the view that requested the batch

        Returns:
            The batch in input order, with unclassified articles replaced by
            classified copies. Articles that were already classified are
            returned as the same objects.
        """
        articles = list(articles)
        token = self._issue_token(view)
        pending = [
            (index, article)
            for index, article in enumerate(articles)
            if not article.is_classified
        ]

        # Published before the first call starts
        self.classifying = frozenset(article.identity_key for _, article in pending)
        self._notify()

        self.logger.info(
            "Starting classification batch",
            batch_token=token,
            articles_count=len(articles),
            pending_count=len(pending),
        )

        semaphore = asyncio.Semaphore(self.max_concurrency) if self.max_concurrency else None
        failed: list[str] = []

        async def classify_one(article: Article) -> Classification:
            try:
                if semaphore is None:
                    return await self._classify(article)
                async with semaphore:
                    return await self._classify(article)
            except Exception as e:
                self.logger.warning(
                    f"Failed to classify article {article.link}: {e}",
                    article_link=article.link,
                    batch_token=token,
                    error=str(e),
                )
                failed.append(article.identity_key)
                return Classification.fallback()

        results = await asyncio.gather(*(classify_one(article) for _, article in pending))
        self.logger.log_metrics(
            {
                "batch_token": token,
                "articles": len(articles),
                "dispatched": len(pending),
                "fallbacks": len(failed),
            }
        )

        merged = list(articles)
        for (index, article), classification in zip(pending, results):
            merged[index] = article.with_classification(classification)

        if self.is_current(token):
            self.articles = tuple(merged)
            self.classifying = frozenset()
            self.logger.info(
                "Classification batch applied",
                batch_token=token,
                articles_count=len(merged),
            )
            self._notify()
        else:
            self.logger.info(
                "Discarding results of superseded batch",
                batch_token=token,
                latest_token=self.generation,
            )

        return merged

    async def _classify(self, article: Article) -> Classification:
        text = sanitize(article.snippet or article.content or "")
        return await self.classifier.aclassify(article.title, text)
