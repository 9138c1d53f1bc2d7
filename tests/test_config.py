"""Tests for configuration module."""

import os
from unittest.mock import patch

from keyswitch_api.config import Settings, get_settings


class TestSettings:
    """Tests for Settings class."""

    def test_default_values(self) -> None:
        """Test that default values are set correctly."""
        settings = Settings(mock_catalog=False)

        assert settings.mock_catalog is False
        assert settings.catalog_cache_ttl_seconds == 300
        assert settings.parser_max_retries == 2
        assert settings.markdown_min_length == 10
        assert settings.markdown_max_length == 100_000
        assert settings.resolver_min_similarity == 0.5
        assert settings.resolver_word_overlap_ratio == 0.7
        assert settings.resolver_word_overlap_confidence == 0.7
        assert settings.resolver_store_fallback is False
        assert settings.response_version == "1.0.0"
        assert settings.port == 3000
        assert settings.log_level == "INFO"

    def test_is_development(self) -> None:
        """Test is_development property."""
        settings = Settings(environment="development")
        assert settings.is_development is True

        settings = Settings(environment="production")
        assert settings.is_development is False

    def test_uses_sqlite(self) -> None:
        """Test uses_sqlite property."""
        assert Settings(database_url="sqlite:///data/switches.db").uses_sqlite is True
        assert Settings(database_url="postgresql://localhost/switches").uses_sqlite is False

    @patch.dict(os.environ, {"CATALOG_CACHE_TTL_SECONDS": "60", "PARSER_MAX_RETRIES": "4"})
    def test_load_from_env(self) -> None:
        """Test loading settings from environment variables."""
        get_settings.cache_clear()
        settings = get_settings()
        assert settings.catalog_cache_ttl_seconds == 60
        assert settings.parser_max_retries == 4

    def test_mock_catalog_from_test_env(self) -> None:
        """Test that the test environment enables the seed catalog."""
        assert get_settings().mock_catalog is True

    def test_get_settings_cached(self) -> None:
        """Test that get_settings returns the cached instance."""
        assert get_settings() is get_settings()
