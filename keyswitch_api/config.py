"""Environment configuration using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Mock control (opt-in feature gate for testing)
    mock_catalog: bool = False  # Serve the catalog from built-in seed entries (no database)

    # Relational catalog store
    database_url: str = "sqlite:///data/switches.db"
    database_echo: bool = False

    # Catalog cache
    catalog_cache_ttl_seconds: int = 300  # 5 minutes

    # Parser pipeline
    parser_max_retries: int = 2
    markdown_min_length: int = 10
    markdown_max_length: int = 100_000
    response_version: str = "1.0.0"

    # Entity resolution
    resolver_min_similarity: float = 0.5
    resolver_word_overlap_ratio: float = 0.7
    resolver_word_overlap_confidence: float = 0.7
    resolver_store_fallback: bool = False  # Query the store when in-process matching fails
    resolution_memo_size: int = 2048

    # Server configuration
    port: int = 3000
    host: str = "0.0.0.0"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    environment: Literal["development", "production"] = "development"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def uses_sqlite(self) -> bool:
        """Check if the catalog store is a SQLite database."""
        return self.database_url.startswith("sqlite")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
