"""Authentication for the Fairlx webhook API.

Provides:
- Bearer token authentication with HMAC-signed tokens
- A development fallback that takes the acting user from ``X-User-Id``
- FastAPI dependency for route protection
"""

from __future__ import annotations

import hashlib
import hmac
import time
from functools import lru_cache
from typing import TYPE_CHECKING

from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, ConfigDict, Field

from fairlx.exceptions import AuthenticationError
from fairlx.logging import get_logger

if TYPE_CHECKING:
    from fairlx.config import Settings

logger = get_logger(__name__)

ANONYMOUS_USER_ID = "anonymous"

# Security scheme for OpenAPI docs
security = HTTPBearer(auto_error=False)


class AuthenticatedUser(BaseModel):
    """The user acting on a request.

    Attributes:
        user_id: Unique identifier for the user.
        org_id: Optional organization ID.
        verified: True when the identity comes from a validated token.
            Unverified users only exist while auth is disabled.
    """

    model_config = ConfigDict(extra="forbid")

    user_id: str = Field(description="Unique identifier for the user")
    org_id: str | None = Field(default=None, description="Optional organization ID")
    verified: bool = Field(default=True, description="Identity backed by a valid token")


class TokenValidator:
    """Validates Bearer tokens using HMAC-SHA256.

    Token format: user_id:org_id:expires_at:signature
    where signature = HMAC(secret, user_id:org_id:expires_at)
    """

    def __init__(self, secret_key: str) -> None:
        self.secret_key = secret_key.encode()

    def _sign(self, payload: str) -> str:
        return hmac.new(self.secret_key, payload.encode(), hashlib.sha256).hexdigest()

    def create_token(
        self,
        user_id: str,
        org_id: str | None = None,
        expire_minutes: int = 60,
    ) -> str:
        """Create a signed token for a user.

        Args:
            user_id: User identifier.
            org_id: Optional organization ID (encoded in token).
            expire_minutes: Token validity in minutes.

        Returns:
            Signed token string.
        """
        expires_at = int(time.time()) + (expire_minutes * 60)
        payload = f"{user_id}:{org_id or ''}:{expires_at}"
        return f"{payload}:{self._sign(payload)}"

    def validate_token(self, token: str) -> AuthenticatedUser:
        """Validate a token and return the authenticated user.

        Raises:
            AuthenticationError: If token is invalid or expired.
        """
        parts = token.split(":")
        if len(parts) != 4:
            raise AuthenticationError("Invalid token format")

        user_id, org_id, expires_at_str, signature = parts
        if not user_id:
            raise AuthenticationError("Invalid token format")

        expected = self._sign(f"{user_id}:{org_id}:{expires_at_str}")
        if not hmac.compare_digest(signature, expected):
            raise AuthenticationError("Invalid token signature")

        try:
            expires_at = int(expires_at_str)
        except ValueError as e:
            raise AuthenticationError(f"Invalid token: {e}") from e

        if time.time() > expires_at:
            raise AuthenticationError("Token has expired")

        return AuthenticatedUser(user_id=user_id, org_id=org_id or None)


@lru_cache(maxsize=1)
def get_token_validator(secret_key: str) -> TokenValidator:
    """Get or create the token validator for a secret key."""
    return TokenValidator(secret_key)


def reset_auth_singletons() -> None:
    """Clear the cached token validator (for testing)."""
    get_token_validator.cache_clear()


class AuthDependency:
    """Resolves the acting user for a request.

    With auth enabled a valid Bearer token is required. With auth
    disabled the user is taken from the ``X-User-Id`` header (or
    ``anonymous``) and marked unverified.

    Usage:
        ```python
        auth = AuthDependency(settings)
        user = await auth(credentials, x_user_id)
        ```
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    async def __call__(
        self,
        credentials: HTTPAuthorizationCredentials | None,
        x_user_id: str | None = None,
    ) -> AuthenticatedUser:
        if not self.settings.is_auth_enabled:
            return AuthenticatedUser(user_id=x_user_id or ANONYMOUS_USER_ID, verified=False)

        if credentials is None:
            raise AuthenticationError("Missing authentication credentials")

        validator = get_token_validator(self.settings.effective_auth_secret_key)
        user = validator.validate_token(credentials.credentials)

        logger.debug("User authenticated", user_id=user.user_id, org_id=user.org_id)
        return user
