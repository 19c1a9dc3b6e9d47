"""Backend action layer for News Weaver, exposed as a Lambda handler."""

import asyncio
import json
import os
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from .config import Config
from .errors import (
    ClassificationError,
    FeedFetchError,
    InvalidFeedError,
    SummarizationError,
)
from .gateway import EnrichmentGateway
from .logging_config import create_execution_logger, setup_structured_logging
from .models import Article, Classification
from .orchestrator import EnrichmentOrchestrator
from .rss import FeedProcessor
from .sanitize import sanitize

setup_structured_logging(os.getenv("LOG_LEVEL", "INFO"))

# Status code returned for each user-facing error
ERROR_STATUS = {
    FeedFetchError: 502,
    InvalidFeedError: 422,
    SummarizationError: 502,
}


class BadRequest(Exception):
    """Raised when an event is missing its action or a parameter."""


def _require(event: dict[str, Any], name: str, kind: type = str) -> Any:
    value = event.get(name)
    if value is None:
        raise BadRequest(f"Missing parameter: {name}")
    if not isinstance(value, kind):
        raise BadRequest(f"Parameter {name} must be a {kind.__name__}")
    return value


def _optional(event: dict[str, Any], name: str) -> str:
    value = event.get(name)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise BadRequest(f"Parameter {name} must be a str")
    return value


def _response(status_code: int, body: dict[str, Any]) -> dict[str, Any]:
    return {"statusCode": status_code, "body": json.dumps(body)}


class ActionContext:
    """Lazily built components shared by the actions of one invocation."""

    def __init__(self, config: Config, execution_id: str):
        self.config = config
        self.execution_id = execution_id
        self._fetcher: FeedProcessor | None = None
        self._gateway: EnrichmentGateway | None = None

    @property
    def fetcher(self) -> FeedProcessor:
        if self._fetcher is None:
            self._fetcher = FeedProcessor(
                self.config.get_fetch_config(), execution_id=self.execution_id
            )
        return self._fetcher

    @property
    def gateway(self) -> EnrichmentGateway:
        if self._gateway is None:
            self._gateway = EnrichmentGateway(
                self.config.get_bedrock_config(), execution_id=self.execution_id
            )
        return self._gateway


def fetch_feed(context: ActionContext, event: dict[str, Any]) -> dict[str, Any]:
    articles = context.fetcher.fetch_articles(_require(event, "url"))
    return {"articles": [article.to_dict() for article in articles]}


def validate_feed(context: ActionContext, event: dict[str, Any]) -> dict[str, Any]:
    return context.fetcher.validate_feed(_require(event, "url"))


def summarize(context: ActionContext, event: dict[str, Any]) -> dict[str, Any]:
    return {"summary": context.gateway.summarize(_require(event, "content"))}


def classify(context: ActionContext, event: dict[str, Any]) -> dict[str, Any]:
    title = _optional(event, "title")
    content = sanitize(_optional(event, "content"))
    try:
        classification = context.gateway.classify(title, content)
    except ClassificationError as e:
        # Callers always get a usable classification
        create_execution_logger("actions", context.execution_id).warning(
            f"Returning fallback classification: {e}", error=str(e)
        )
        classification = Classification.fallback()
    return {"sentiment": classification.sentiment, "topic": classification.topic}


def enrich(context: ActionContext, event: dict[str, Any]) -> dict[str, Any]:
    records = _require(event, "articles", list)
    try:
        articles = [Article.from_dict(record) for record in records]
    except (ValueError, TypeError, AttributeError) as e:
        raise BadRequest(f"Invalid article record: {e}") from e

    orchestrator = EnrichmentOrchestrator(
        context.gateway,
        max_concurrency=context.config.get_enrichment_config().max_concurrency,
        execution_id=context.execution_id,
    )
    enriched = asyncio.run(orchestrator.enrich_batch(articles))
    return {"articles": [article.to_dict() for article in enriched]}


ACTIONS: dict[str, Callable[[ActionContext, dict[str, Any]], dict[str, Any]]] = {
    "fetch_feed": fetch_feed,
    "validate_feed": validate_feed,
    "summarize": summarize,
    "classify": classify,
    "enrich": enrich,
}


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """
    Dispatch a reader action.

    Args:
        event: Lambda event with an ``action`` name and its parameters
        context: Lambda context object

    Returns:
        Response dictionary with status code and JSON body
    """
    execution_id = f"lambda_{datetime.now(UTC).strftime('%Y%m%d_%H%M%S_%f')}"
    main_logger = create_execution_logger("actions", execution_id)

    action_name = event.get("action") if isinstance(event, dict) else None
    main_logger.log_execution_start(
        action=action_name,
        lambda_request_id=getattr(context, "aws_request_id", "unknown"),
    )

    action = ACTIONS.get(action_name) if isinstance(action_name, str) else None
    if action is None:
        main_logger.log_execution_end(success=False, action=action_name)
        return _response(400, {"error": f"Unknown action: {action_name}"})

    try:
        body = action(ActionContext(Config(), execution_id), event)
    except BadRequest as e:
        main_logger.warning(str(e), action=action_name)
        main_logger.log_execution_end(success=False, action=action_name)
        return _response(400, {"error": str(e)})
    except (FeedFetchError, InvalidFeedError, SummarizationError) as e:
        main_logger.log_execution_end(success=False, action=action_name, error=str(e))
        return _response(ERROR_STATUS[type(e)], {"error": str(e)})
    except Exception as e:
        error_msg = f"Critical error in action {action_name}: {e}"
        main_logger.exception(error_msg, action=action_name)
        main_logger.log_execution_end(success=False, action=action_name)
        return _response(500, {"error": "Internal error", "execution_id": execution_id})

    main_logger.log_execution_end(success=True, action=action_name)
    return _response(200, body)
