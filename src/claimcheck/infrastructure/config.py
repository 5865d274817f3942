"""
Configuration Management
========================

Pydantic-settings based configuration for all external services.
Reads from environment variables with sensible defaults.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class LLMSettings(BaseSettings):
    """Configuration for the reasoning backends (OpenAI-compatible API)."""

    model_config = SettingsConfigDict(env_prefix="LLM_", extra="ignore")

    base_url: str = Field(
        default="https://api.groq.com/openai/v1",
        description="Base URL for OpenAI-compatible API",
    )
    api_key: SecretStr = Field(
        default=SecretStr("no-key-required"),
        description="API key (some OpenAI-compatible servers require a value)",
    )
    # Ordered fallback chain, one backend per model
    models: list[str] = Field(
        default_factory=lambda: [
            "llama-3.3-70b-versatile",
            "llama-3.1-8b-instant",
            "mixtral-8x7b-32768",
        ],
    )
    timeout_seconds: float = Field(default=30.0, ge=1.0, description="Hard per-call timeout")
    retry_rounds: int = Field(default=2, ge=1, description="Full passes over all backends")
    retry_base_delay_seconds: float = Field(default=1.0, ge=0.0)
    temperature: float = Field(default=0.1, ge=0.0, le=2.0)

    extraction_max_tokens: int = Field(default=1000, ge=64)
    verdict_max_tokens: int = Field(default=500, ge=64)
    rewrite_max_tokens: int = Field(default=300, ge=64)


class SearchSettings(BaseSettings):
    """Configuration for the web-search evidence provider."""

    model_config = SettingsConfigDict(env_prefix="SEARCH_", extra="ignore")

    provider: Literal["auto", "brave", "duckduckgo"] = Field(
        default="auto",
        description="'auto' uses Brave when an API key is set, DuckDuckGo otherwise",
    )
    brave_api_key: SecretStr | None = Field(default=None)
    brave_url: str = Field(default="https://api.search.brave.com")
    duckduckgo_url: str = Field(default="https://html.duckduckgo.com")
    timeout_seconds: float = Field(default=10.0, ge=1.0)
    max_results: int = Field(default=10, ge=1, le=20)


class RedisSettings(BaseSettings):
    """Configuration for the Redis cache backing store."""

    model_config = SettingsConfigDict(env_prefix="REDIS_")

    enabled: bool = Field(default=False, description="Use Redis instead of the in-memory cache")
    host: str = Field(default="localhost")
    port: int = Field(default=6379)
    socket_path: str | None = Field(default=None, description="Path to Unix socket")
    password: SecretStr | None = Field(default=None)
    db: int = Field(default=0, ge=0)
    max_connections: int = Field(default=10, ge=1)
    connect_attempts: int = Field(default=3, ge=1)


class CacheSettings(BaseSettings):
    """TTLs and limits for cached pipeline stages."""

    model_config = SettingsConfigDict(env_prefix="CACHE_")

    claim_ttl_seconds: int = Field(default=7 * 24 * 3600, ge=1)
    search_ttl_seconds: int = Field(default=3600, ge=1)
    source_metadata_ttl_seconds: int = Field(default=24 * 3600, ge=1)
    request_ttl_seconds: int = Field(default=4 * 24 * 3600, ge=1)
    memory_max_entries: int = Field(default=1000, ge=1)
    memory_sweep_interval_seconds: float = Field(default=60.0, gt=0.0)


class PipelineSettings(BaseSettings):
    """Configuration for pipeline behavior and request limits."""

    model_config = SettingsConfigDict(env_prefix="PIPELINE_")

    default_max_claims: int = Field(default=10, ge=1)
    max_claims_limit: int = Field(default=20, ge=1)
    max_text_chars: int = Field(default=5000, ge=1)

    concurrency: int = Field(
        default=3,
        ge=0,
        description="Claims processed concurrently; 0 means unbounded fan-out",
    )
    max_sources_per_claim: int = Field(default=5, ge=1)
    min_sources_per_claim: int = Field(default=2, ge=0)
    max_adjudication_sources: int = Field(default=6, ge=1)

    enable_request_cache: bool = Field(default=True)
    content_filter_enabled: bool = Field(default=True)

    review_max_chars: int = Field(default=12000, ge=1)
    review_default_risk_claims: int = Field(default=20, ge=1)
    review_max_risk_claims: int = Field(default=30, ge=1)
    review_extraction_claims: int = Field(default=100, ge=1)

    citation_fetch_timeout_seconds: float = Field(default=5.0, gt=0.0)


class APISettings(BaseSettings):
    """Configuration for the FastAPI application."""

    model_config = SettingsConfigDict(env_prefix="API_")

    title: str = Field(default="ClaimCheck Verification API")
    version: str = Field(default="0.1.0")
    debug: bool = Field(default=False)
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8080)
    workers: int = Field(default=1, ge=1)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    # API key for public access (optional, leave empty to disable)
    api_key: str = Field(
        default="",
        description="API key for authentication. Leave empty to disable auth.",
    )


class Settings(BaseSettings):
    """
    Root configuration aggregating all service settings.

    Usage:
        settings = get_settings()
        models = settings.llm.models
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Nested settings (manually instantiated due to pydantic-settings behavior)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)
    api: APISettings = Field(default_factory=APISettings)

    # Environment
    environment: Literal["development", "staging", "production", "test"] = Field(
        default="development"
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns singleton instance, reading from environment on first call.
    """
    return Settings()
