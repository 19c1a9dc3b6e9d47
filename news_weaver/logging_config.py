"""JSON logging for News Weaver components."""

import json
import logging
import sys
import time
import uuid
from datetime import UTC, datetime
from typing import Any

# Components that log through create_execution_logger
COMPONENTS = (
    "actions",
    "feed_processor",
    "gateway",
    "orchestrator",
    "reader_store",
    "storage",
)

# Keyword arguments understood by logging itself, everything else is a field
_LOGGING_KWARGS = ("exc_info", "stack_info", "stacklevel")


class StructuredFormatter(logging.Formatter):
    """Render a record as one JSON object per line.

    Structured fields (execution id, component, article link, batch token,
    metrics...) are flattened next to the standard keys.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in getattr(record, "fields", {}).items():
            entry.setdefault(key, value)
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ExecutionLogger(logging.LoggerAdapter):
    """Logger adapter that attaches the execution id, component and fields.

    Any keyword argument passed to a log call becomes a field of the entry:

        logger.info("Batch applied", batch_token=3, articles_count=12)
    """

    def __init__(self, execution_id: str, component: str):
        super().__init__(logging.getLogger(f"news_weaver.{component}"), {})
        self.execution_id = execution_id
        self.component = component
        self._started: float | None = None

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        fields = {"execution_id": self.execution_id, "component": self.component}
        passthrough = {}
        for key, value in kwargs.items():
            if key in _LOGGING_KWARGS:
                passthrough[key] = value
            else:
                fields[key] = value
        passthrough["extra"] = {"fields": fields}
        return msg, passthrough

    def log_execution_start(self, **fields) -> None:
        self._started = time.monotonic()
        self.info(f"Starting {self.component} execution", **fields)

    def log_execution_end(self, success: bool = True, **fields) -> None:
        duration = None
        if self._started is not None:
            duration = round(time.monotonic() - self._started, 3)
        self.info(
            f"Completed {self.component} execution",
            execution_success=success,
            execution_duration_seconds=duration,
            **fields,
        )

    def log_article_processing(
        self, article_link: str, action: str, success: bool = True
    ) -> None:
        """Log one step of an article's life; failures are warnings."""
        self.log(
            logging.INFO if success else logging.WARNING,
            f"Article {action}: {article_link}",
            article_link=article_link,
            action=action,
            success=success,
        )

    def log_metrics(self, metrics: dict[str, Any]) -> None:
        self.info("Execution metrics", metrics=metrics)


def setup_structured_logging(log_level: str = "INFO") -> None:
    """Send JSON entries to stdout at the given level.

    Args:
        log_level: Level name (DEBUG, INFO, WARNING, ERROR); unknown names mean INFO
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers[:] = [handler]
    root_logger.setLevel(level)

    for name in ("news_weaver", *(f"news_weaver.{c}" for c in COMPONENTS)):
        logging.getLogger(name).setLevel(level)


def create_execution_logger(
    component: str, execution_id: str | None = None
) -> ExecutionLogger:
    """Create a logger for a component, generating an execution id if needed."""
    return ExecutionLogger(execution_id or f"exec_{uuid.uuid4().hex[:12]}", component)
