"""Application-wide configuration management using Pydantic settings."""

from functools import lru_cache
from typing import Annotated, List

import orjson
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Typed configuration for the rally radar project."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    anthropic_api_key: str | None = Field(None, alias="ANTHROPIC_API_KEY")
    reasoning_model: str = Field("claude-sonnet-4-20250514", alias="REASONING_MODEL")
    reasoning_max_tokens: int = Field(4096, alias="REASONING_MAX_TOKENS")
    reasoning_timeout_seconds: float = Field(60.0, alias="REASONING_TIMEOUT_SECONDS")

    tradier_api_key: str | None = Field(None, alias="TRADIER_API_KEY")
    tradier_base_url: str = Field("https://api.tradier.com/v1", alias="TRADIER_BASE_URL")
    alpaca_api_key_id: str | None = Field(None, alias="ALPACA_API_KEY_ID")
    alpaca_api_secret_key: str | None = Field(None, alias="ALPACA_API_SECRET_KEY")
    quote_provider: str = Field("tradier", alias="QUOTE_PROVIDER")

    http_timeout_seconds: float = Field(10.0, alias="HTTP_TIMEOUT_SECONDS")
    quote_batch_size: int = Field(10, alias="QUOTE_BATCH_SIZE")
    quote_batch_delay_seconds: float = Field(1.0, alias="QUOTE_BATCH_DELAY_SECONDS")

    prediction_db_path: str = Field("data/predictions.duckdb", alias="PREDICTION_DB_PATH")
    # Empty means the built-in priority sector list.
    priority_sectors: Annotated[List[str], NoDecode] = Field(default_factory=list, alias="PRIORITY_SECTORS")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    backtest_interval_seconds: int = Field(3600, alias="BACKTEST_INTERVAL_SECONDS")

    @field_validator("priority_sectors", mode="before")
    @classmethod
    def _split_sectors(cls, value: List[str] | str) -> List[str]:
        """Support comma-separated or JSON-array sector strings in environment variables."""

        if isinstance(value, str) and value.strip().startswith("["):
            value = orjson.loads(value)
        if isinstance(value, list):
            return [str(sector).strip() for sector in value if str(sector).strip()]
        return [sector.strip() for sector in value.split(",") if sector.strip()]

    @field_validator("quote_provider")
    @classmethod
    def _check_quote_provider(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in {"tradier", "alpaca"}:
            raise ValueError(f"Unsupported quote provider: {value}")
        return normalized


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached Settings instance loaded from environment variables."""

    return Settings()
