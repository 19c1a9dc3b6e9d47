"""AI enrichment gateway: article summaries and classifications via Amazon Bedrock."""

import asyncio
import json
import re
import time
from typing import Any, Literal

import boto3
from pydantic import BaseModel, Field, field_validator

from .config import BedrockConfig
from .errors import ClassificationError, SummarizationError
from .logging_config import create_execution_logger
from .models import Classification
from .sanitize import sanitize

MIN_SUMMARY_LENGTH = 100

SHORT_CONTENT_MESSAGE = (
    "This article is too short to summarize. "
    "Please read the full content at the source."
)
SUMMARIZATION_ERROR_MESSAGE = "Could not summarize the article at this time."
CLASSIFICATION_ERROR_MESSAGE = "Could not classify the article."

SUMMARY_PROMPT = """You are an expert news editor. Summarize the following article in a short paragraph of three to five sentences. Keep only facts stated in the article.

Reply with a JSON object of the form {{"summary": "..."}} and nothing else.

Article:
{content}"""

CLASSIFY_PROMPT = """You are an expert content analyst. Analyze the following article and determine its sentiment and primary topic.

The sentiment must be one of: positive, negative, neutral.
The topic should be a single, general category like Technology, Science, Business, Health, Sports, Politics, or Entertainment.

Reply with a JSON object of the form {{"sentiment": "...", "topic": "..."}} and nothing else.

Title: {title}
Content: {content}"""

_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$")


class SummaryLLM(BaseModel):
    """LLM output for an article summary."""

    summary: str = Field(min_length=1)

    @field_validator("summary")
    @classmethod
    def _strip(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("summary is empty")
        return value


class ClassificationLLM(BaseModel):
    """LLM output for an article classification."""

    sentiment: Literal["positive", "negative", "neutral"]
    topic: str = Field(min_length=1)

    @field_validator("sentiment", mode="before")
    @classmethod
    def _normalize_sentiment(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("topic")
    @classmethod
    def _strip_topic(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("topic is empty")
        return value


class EnrichmentGateway:
    """Summarizes and classifies articles with a Bedrock model.

    Every operation makes at most one remote call: there is no retry and no
    caching between calls.
    """

    def __init__(self, config: BedrockConfig | None = None, execution_id: str | None = None):
        """Initialize the gateway with Bedrock configuration."""
        self.config = config or BedrockConfig()
        self.logger = create_execution_logger("gateway", execution_id)
        self.bedrock_client = boto3.client(
            "bedrock-runtime", region_name=self.config.region
        )
        self.logger.info(
            "EnrichmentGateway initialized",
            model_id=self.config.model_id,
            region=self.config.region,
        )

    def summarize(self, content: str | None) -> str:
        """Summarize an article body.

        Content shorter than MIN_SUMMARY_LENGTH characters is not sent to the
        model; a fixed message is returned instead.

        Raises:
            SummarizationError: If the model call fails or its reply is invalid
        """
        if not content or len(content.strip()) < MIN_SUMMARY_LENGTH:
            self.logger.info("Content too short to summarize", content_length=len(content or ""))
            return SHORT_CONTENT_MESSAGE

        prompt = SUMMARY_PROMPT.format(content=sanitize(content))
        try:
            reply = self._invoke(prompt)
            result = SummaryLLM.model_validate(self._parse_json(reply))
        except Exception as e:
            self.logger.error(f"Error summarizing article: {e}", error=str(e))
            raise SummarizationError(SUMMARIZATION_ERROR_MESSAGE) from e

        return result.summary

    def classify(self, title: str, content: str) -> Classification:
        """Classify an article's sentiment and topic.

        Args:
            title: Article title
            content: Article text, already stripped of markup

        Raises:
            ClassificationError: If the model call fails or its reply is invalid
        """
        prompt = CLASSIFY_PROMPT.format(title=title, content=content)
        try:
            reply = self._invoke(prompt)
            result = ClassificationLLM.model_validate(self._parse_json(reply))
        except Exception as e:
            self.logger.warning(f"Error classifying article: {e}", error=str(e))
            raise ClassificationError(CLASSIFICATION_ERROR_MESSAGE) from e

        return Classification(sentiment=result.sentiment, topic=result.topic)

    async def aclassify(self, title: str, content: str) -> Classification:
        """Run classify in a worker thread so calls can overlap."""
        return await asyncio.to_thread(self.classify, title, content)

    def _build_request_body(self, prompt: str) -> dict[str, Any]:
        # Llama models use the legacy prompt format, Nova/Mistral the messages API
        if "llama" in self.config.model_id.lower():
            return {
                "prompt": prompt,
                "max_gen_len": self.config.max_tokens,
                "temperature": self.config.temperature,
            }
        return {
            "messages": [{"role": "user", "content": [{"text": prompt}]}],
            "inferenceConfig": {
                "maxTokens": self.config.max_tokens,
                "temperature": self.config.temperature,
            },
        }

    def _invoke(self, prompt: str) -> str:
        """Send a prompt to the model and return the text of its reply.

        Raises:
            ValueError: If the reply has no text
        """
        start_time = time.time()
        response = self.bedrock_client.invoke_model(
            modelId=self.config.model_id,
            body=json.dumps(self._build_request_body(prompt)),
            contentType="application/json",
            accept="application/json",
        )
        response_time_ms = int((time.time() - start_time) * 1000)

        response_body = json.loads(response["body"].read())
        text = self._reply_text(response_body)
        if not text.strip():
            raise ValueError(f"Empty response from model {self.config.model_id}")

        self.logger.debug(
            "Bedrock response received",
            model_id=self.config.model_id,
            response_time_ms=response_time_ms,
        )
        return text.strip()

    @staticmethod
    def _reply_text(response_body: Any) -> str:
        """Extract the reply text of a Llama or Nova/Mistral response body.

        Raises:
            ValueError: If the body does not have the expected shape
        """
        if not isinstance(response_body, dict):
            raise ValueError("Response body is not an object")

        if "generation" in response_body:
            text = response_body["generation"]
        else:
            output = response_body.get("output")
            message = output.get("message") if isinstance(output, dict) else None
            parts = message.get("content") if isinstance(message, dict) else None
            first = parts[0] if isinstance(parts, list) and parts else None
            text = first.get("text") if isinstance(first, dict) else None

        if not isinstance(text, str):
            raise ValueError(
                f"Unexpected response shape, keys: {list(response_body.keys())}"
            )
        return text

    @staticmethod
    def _parse_json(text: str) -> Any:
        """Decode a JSON reply, tolerating a surrounding markdown code fence."""
        return json.loads(_CODE_FENCE.sub("", text.strip()))
