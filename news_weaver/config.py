"""Configuration management for News Weaver."""

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass
class BedrockConfig:
    """Configuration for Amazon Bedrock."""

    model_id: str = "amazon.nova-micro-v1:0"
    region: str = "us-east-1"
    max_tokens: int = 1000
    temperature: float = 0.3


@dataclass
class FetchConfig:
    """Configuration for feed downloads."""

    timeout: int = 30
    user_agent: str = "News-Weaver/1.0 (Personal RSS Reader)"


@dataclass
class StorageConfig:
    """Configuration for the local JSON stores."""

    data_dir: Path

    @property
    def feeds_path(self) -> Path:
        return self.data_dir / "feeds.json"

    @property
    def favorites_path(self) -> Path:
        return self.data_dir / "favorites.json"


@dataclass
class EnrichmentConfig:
    """Configuration for article classification batches."""

    # None means every classification of a batch is dispatched at once
    max_concurrency: int | None = None


def _int_from_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


class Config:
    """Main configuration manager."""

    DEFAULT_DATA_DIR = "~/.news_weaver"

    def __init__(self):
        """Initialize configuration from environment variables."""
        self.aws_region = os.getenv(
            "CURRENT_AWS_REGION", os.getenv("AWS_DEFAULT_REGION", "us-east-1")
        )
        self.bedrock_model_id = os.getenv("BEDROCK_MODEL_ID", "amazon.nova-micro-v1:0")
        self.bedrock_max_tokens = _int_from_env("BEDROCK_MAX_TOKENS", 1000)
        self.feed_timeout = _int_from_env("FEED_TIMEOUT", 30)
        self.data_dir = Path(
            os.getenv("NEWS_WEAVER_DATA_DIR", self.DEFAULT_DATA_DIR)
        ).expanduser()
        self.max_concurrency = _int_from_env("CLASSIFY_MAX_CONCURRENCY", 0)
        self.log_level = os.getenv("LOG_LEVEL", "INFO")

        if self.feed_timeout <= 0:
            raise ValueError("FEED_TIMEOUT must be positive")
        if self.max_concurrency < 0:
            raise ValueError("CLASSIFY_MAX_CONCURRENCY cannot be negative")

    def get_bedrock_config(self) -> BedrockConfig:
        """Get Bedrock configuration."""
        return BedrockConfig(
            model_id=self.bedrock_model_id,
            region=self.aws_region,
            max_tokens=self.bedrock_max_tokens,
        )

    def get_fetch_config(self) -> FetchConfig:
        """Get feed download configuration."""
        return FetchConfig(timeout=self.feed_timeout)

    def get_storage_config(self) -> StorageConfig:
        """Get local storage configuration."""
        return StorageConfig(data_dir=self.data_dir)

    def get_enrichment_config(self) -> EnrichmentConfig:
        """Get classification batch configuration."""
        return EnrichmentConfig(max_concurrency=self.max_concurrency or None)
