"""
Application configuration.

Loads settings from environment variables and .env file.
All configuration is centralized here; no scattered magic strings.
Invalid values fail at startup; missing API keys only degrade the
endpoints that need them.
"""

import json
from typing import Annotated

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment.

    Attributes:
        project_name: Display name for the API.
        version: Current API version string.
        debug: Enable debug mode (docs, env diagnostics). Must be False in production.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
        host: Bind address for the ``serve`` command.
        port: Bind port for the ``serve`` command.
        allowed_origins: CORS allow-list for browser callers.
        rate_limit_enabled: Toggle slowapi limits (tests turn this off).
        rate_limit_default: Default rate limit for all endpoints.
        financial_api_base: Financial-data API origin.
        financial_api_key: Static key sent as ``x-api-key``.
        data_timeout_seconds: Deadline for financial-data calls.
        max_upstream_body_bytes: Read cap for upstream bodies.
        trending_ttl_seconds: Freshness window of the trending cache.
        cache_single_flight: Serialize concurrent refreshes of one cache key.
        completion_api_url: Chat-completions endpoint.
        completion_api_key: Bearer token for the completion provider.
        completion_models: Ordered candidate model ids.
        completion_timeout_seconds: Deadline per candidate attempt.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    project_name: str = "Market Gateway"
    version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = Field(default=3000, ge=1, le=65535)

    allowed_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["*"],
        validation_alias=AliasChoices("ALLOWED_ORIGINS", "FRONTEND_ORIGIN"),
    )
    rate_limit_enabled: bool = True
    rate_limit_default: str = "100/minute"

    # --- Financial data API ---
    financial_api_base: str = "https://stock.indianapi.in"
    financial_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("FINANCIAL_API_KEY", "INDIANAPI_KEY", "VITE_INDIANAPI_KEY"),
    )
    financial_user_agent: str = "MarketGateway/0.1"
    data_timeout_seconds: float = Field(default=15.0, gt=0)
    max_upstream_body_bytes: int = Field(default=5 * 1024 * 1024, gt=0)

    # --- Caching ---
    trending_ttl_seconds: float = Field(default=30.0, gt=0)
    deals_cache_ttl_seconds: float = Field(default=300.0, ge=0)
    cache_single_flight: bool = False

    # --- Completion provider ---
    completion_api_url: str = "https://api.perplexity.ai/chat/completions"
    completion_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("COMPLETION_API_KEY", "PERPLEXITY_KEY", "PERPLEXITY_API_KEY"),
    )
    completion_models: Annotated[list[str], NoDecode] = Field(default_factory=lambda: ["sonar-pro", "sonar"])
    completion_timeout_seconds: float = Field(default=25.0, gt=0)
    completion_temperature: float = Field(default=0.1, ge=0, le=2)
    research_max_tokens: int = Field(default=800, gt=0)
    deals_max_tokens: int = Field(default=1500, gt=0)
    deals_max_limit: int = Field(default=50, ge=1)

    @field_validator("financial_api_base", "completion_api_url")
    @classmethod
    def _require_http_url(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"expected an http(s) URL, got {value!r}")
        return value

    @field_validator("financial_api_key", "completion_api_key")
    @classmethod
    def _strip_key(cls, value: str) -> str:
        return value.strip()

    @field_validator("allowed_origins", "completion_models", mode="before")
    @classmethod
    def _split_list(cls, value: object) -> object:
        # Env values are a JSON list or a comma-separated string.
        if isinstance(value, str):
            text = value.strip()
            if text.startswith("["):
                return json.loads(text)
            return [item.strip() for item in text.split(",") if item.strip()]
        return value

    @field_validator("completion_models")
    @classmethod
    def _require_models(cls, value: list[str]) -> list[str]:
        models = [m.strip() for m in value if m and m.strip()]
        if not models:
            raise ValueError("completion_models must list at least one model id")
        return models

    @property
    def financial_api_configured(self) -> bool:
        return bool(self.financial_api_key)

    @property
    def completion_configured(self) -> bool:
        return bool(self.completion_api_key)

    def missing_keys(self) -> list[str]:
        """Names of optional API keys that are not set."""
        missing = []
        if not self.financial_api_configured:
            missing.append("FINANCIAL_API_KEY")
        if not self.completion_configured:
            missing.append("COMPLETION_API_KEY")
        return missing


settings = Settings()
