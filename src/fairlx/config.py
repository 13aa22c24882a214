"""Configuration management for Fairlx webhooks."""

import logging
import secrets
import warnings
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings

from fairlx.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def _generate_dev_secret_key() -> str:
    """Generate a random secret key for development use.

    Tokens signed with it are invalidated on restart, which is
    acceptable outside production.

    Returns:
        A cryptographically secure random hex string (64 characters).
    """
    return secrets.token_hex(32)


class Settings(BaseSettings):
    """Fairlx configuration loaded from environment variables.

    All settings can be overridden via environment variables with
    the FAIRLX_ prefix. For example:
        FAIRLX_QDRANT_URL=http://localhost:6333
        FAIRLX_WEBHOOK_TIMEOUT_SECONDS=5

    Security Notes:
        - In production (FAIRLX_ENV=production), auth is enabled by default
        - A secret key must be set explicitly in production
    """

    # Environment
    env: Literal["development", "production", "test"] = Field(
        default="development",
        description="Environment: development, production, or test",
    )

    # Document store
    qdrant_url: str = Field(
        default="http://localhost:6333",
        description="Qdrant connection URL",
    )
    qdrant_api_key: str | None = Field(
        default=None,
        description="Qdrant API key (for cloud)",
    )
    collection_prefix: str = Field(
        default="fairlx",
        description="Prefix for Qdrant collection names",
    )
    storage_max_scroll_limit: int = Field(
        default=10000,
        ge=100,
        le=100000,
        description="Maximum documents fetched in a single scroll operation",
    )

    # Webhook delivery
    webhook_timeout_seconds: float = Field(
        default=5.0,
        gt=0.0,
        le=60.0,
        description="Hard timeout for a single outbound webhook request",
    )
    webhook_max_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Maximum delivery attempts per event, including the first one",
    )
    webhook_retry_base_delay_seconds: float = Field(
        default=5.0,
        gt=0.0,
        description="Base delay for exponential retry backoff (delay = 2**attempt * base)",
    )
    webhook_retry_poll_interval_seconds: float = Field(
        default=10.0,
        gt=0.0,
        description="How often the retry queue checks for due retries",
    )
    webhook_user_agent: str = Field(
        default="Fairlx-Webhooks/0.1",
        description="User-Agent header sent with webhook requests",
    )
    webhook_footer_icon_url: str = Field(
        default="https://fairlx.com/logo.png",
        description="Icon shown in the footer of chat embeds",
    )
    webhook_avatar_base_url: str = Field(
        default="https://ui-avatars.com/api/",
        description="Avatar generator used for embed authors",
    )
    webhook_system_actor_name: str = Field(
        default="Fairlx System",
        description="Actor name used for manual test deliveries",
    )
    webhook_system_actor_email: str = Field(
        default="system@fairlx.com",
        description="Actor email used for manual test deliveries",
    )
    webhook_test_link_url: str = Field(
        default="https://fairlx.com",
        description="Deep link used in manual test deliveries",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_format: Literal["json", "text"] = Field(
        default="json",
        description="Log output format",
    )

    # Authentication
    auth_enabled: bool | None = Field(
        default=None,
        description=(
            "Enable Bearer token authentication. "
            "If not set, defaults to True in production, False otherwise."
        ),
    )
    auth_secret_key: str | None = Field(
        default=None,
        description="Secret key for token validation (HMAC). Required in production.",
    )

    # CORS
    cors_enabled: bool = Field(
        default=True,
        description="Enable CORS middleware",
    )
    cors_allow_origins: list[str] = Field(
        default_factory=lambda: ["*"],
        description="List of allowed CORS origins",
    )
    cors_allow_methods: list[str] = Field(
        default_factory=lambda: ["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        description="Allowed HTTP methods for CORS requests",
    )
    cors_allow_headers: list[str] = Field(
        default_factory=lambda: ["*"],
        description="Allowed headers for CORS requests",
    )

    # Runtime-generated dev secret (not from env)
    _runtime_dev_secret: str | None = None

    model_config = {
        "env_prefix": "FAIRLX_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_nested_delimiter": "__",
    }

    @model_validator(mode="after")
    def validate_security_settings(self) -> "Settings":
        """Resolve auth defaults and enforce production requirements."""
        is_production = self.env == "production"

        if self.auth_enabled is None:
            object.__setattr__(self, "auth_enabled", is_production)

        if is_production:
            if self.auth_secret_key is None:
                raise ValueError(
                    "FAIRLX_AUTH_SECRET_KEY must be set in production. "
                    'Generate one with: python -c "import secrets; print(secrets.token_hex(32))"'
                )
            if not self.auth_enabled:
                warnings.warn(
                    "Authentication is disabled in production environment. "
                    "Set FAIRLX_AUTH_ENABLED=true to enable.",
                    UserWarning,
                    stacklevel=2,
                )
                logger.warning("Authentication disabled in production - this is a security risk")
        elif self.auth_secret_key is None:
            object.__setattr__(self, "_runtime_dev_secret", _generate_dev_secret_key())
            logger.debug("Generated random auth secret for development (tokens invalid after restart)")

        return self

    @model_validator(mode="after")
    def validate_retry_window(self) -> "Settings":
        """Warn when the poll interval is coarser than the first backoff step.

        The first retry becomes due 2 * base delay after the initial attempt;
        a slower poll only delays it further.
        """
        first_step = 2 * self.webhook_retry_base_delay_seconds
        if self.webhook_retry_poll_interval_seconds > first_step:
            logger.warning(
                "Retry poll interval %.1fs exceeds first backoff step %.1fs",
                self.webhook_retry_poll_interval_seconds,
                first_step,
            )
        return self

    @property
    def is_auth_enabled(self) -> bool:
        """Get resolved auth_enabled value (always bool, never None)."""
        if self.auth_enabled is None:
            return self.env == "production"
        return self.auth_enabled

    @property
    def effective_auth_secret_key(self) -> str:
        """Get the effective secret key for authentication.

        Raises:
            ConfigurationError: If no secret key is available.
        """
        if self.auth_secret_key is not None:
            return self.auth_secret_key
        if self._runtime_dev_secret is not None:
            return self._runtime_dev_secret
        raise ConfigurationError("No auth secret key available")


# Global settings instance
settings = Settings()
