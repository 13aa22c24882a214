"""Unit tests for Fairlx configuration."""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from fairlx.config import Settings
from fairlx.exceptions import ConfigurationError


class TestSettings:
    """Tests for Settings model."""

    def test_default_settings(self):
        """Default settings should be reasonable."""
        # Use _env_file=None to prevent reading from .env file
        settings = Settings(_env_file=None)
        assert settings.qdrant_url == "http://localhost:6333"
        assert settings.collection_prefix == "fairlx"
        assert settings.log_level == "INFO"

    def test_webhook_delivery_defaults(self):
        """Delivery defaults: 5s timeout, 3 attempts, 5s backoff base, 10s poll."""
        settings = Settings(_env_file=None)
        assert settings.webhook_timeout_seconds == 5.0
        assert settings.webhook_max_retries == 3
        assert settings.webhook_retry_base_delay_seconds == 5.0
        assert settings.webhook_retry_poll_interval_seconds == 10.0
        assert settings.webhook_system_actor_name == "Fairlx System"

    def test_timeout_bounds(self):
        """Timeout must be positive and at most a minute."""
        with pytest.raises(ValidationError):
            Settings(webhook_timeout_seconds=0)
        with pytest.raises(ValidationError):
            Settings(webhook_timeout_seconds=120)

    def test_max_retries_minimum(self):
        """At least the original attempt must be allowed."""
        with pytest.raises(ValidationError):
            Settings(webhook_max_retries=0)

    def test_log_formats(self):
        """Only valid log formats should be accepted."""
        settings = Settings(log_format="json")
        assert settings.log_format == "json"

        settings = Settings(log_format="text")
        assert settings.log_format == "text"

        with pytest.raises(ValidationError):
            Settings(log_format="xml")

    def test_env_prefix(self):
        """Settings should use FAIRLX_ prefix for environment variables."""
        with patch.dict(os.environ, {"FAIRLX_LOG_LEVEL": "DEBUG"}):
            settings = Settings()
            assert settings.log_level == "DEBUG"

    def test_env_webhook_timeout(self):
        """FAIRLX_WEBHOOK_TIMEOUT_SECONDS should override default."""
        with patch.dict(os.environ, {"FAIRLX_WEBHOOK_TIMEOUT_SECONDS": "2.5"}):
            settings = Settings()
            assert settings.webhook_timeout_seconds == 2.5

    def test_optional_api_key(self):
        """Qdrant API key is optional."""
        settings = Settings(_env_file=None)
        assert settings.qdrant_api_key is None


class TestSecuritySettings:
    """Tests for auth defaults and production requirements."""

    def test_auth_disabled_in_development(self):
        settings = Settings(_env_file=None, env="development")
        assert settings.is_auth_enabled is False

    def test_dev_secret_generated(self):
        """Without a configured key, development gets a random runtime key."""
        settings = Settings(_env_file=None, env="development")
        key = settings.effective_auth_secret_key
        assert len(key) == 64
        assert Settings(_env_file=None).effective_auth_secret_key != key

    def test_explicit_secret_wins(self):
        settings = Settings(_env_file=None, auth_secret_key="explicit")
        assert settings.effective_auth_secret_key == "explicit"

    def test_production_requires_secret(self):
        with pytest.raises(ValidationError, match="FAIRLX_AUTH_SECRET_KEY"):
            Settings(_env_file=None, env="production")

    def test_production_enables_auth_by_default(self):
        settings = Settings(_env_file=None, env="production", auth_secret_key="k" * 32)
        assert settings.is_auth_enabled is True

    def test_production_auth_disabled_warns(self):
        with pytest.warns(UserWarning, match="Authentication is disabled"):
            Settings(
                _env_file=None,
                env="production",
                auth_secret_key="k" * 32,
                auth_enabled=False,
            )

    def test_missing_secret_raises_configuration_error(self):
        settings = Settings(_env_file=None, auth_secret_key="k")
        object.__setattr__(settings, "auth_secret_key", None)
        object.__setattr__(settings, "_runtime_dev_secret", None)
        with pytest.raises(ConfigurationError):
            _ = settings.effective_auth_secret_key
