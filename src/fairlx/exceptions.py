"""Fairlx exception hierarchy.

Every error raised by the webhook subsystem derives from FairlxError and
carries the machine-readable ``code`` and HTTP ``status_code`` the API
reports for it. Delivery failures are not exceptions: the dispatcher
records them in the delivery log instead.
"""

from __future__ import annotations


class FairlxError(Exception):
    """Base exception for all Fairlx errors.

    Attributes:
        message: Human-readable error description.
        code: Machine-readable error code for API responses.
        status_code: HTTP status the API answers with.
    """

    code: str = "fairlx_error"
    status_code: int = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def _details(self) -> dict[str, object]:
        return {}

    def to_dict(self) -> dict[str, object]:
        """Error body returned by the API: ``{"error": {code, ..., message}}``."""
        return {"error": {"code": self.code, **self._details(), "message": self.message}}


class NotFoundError(FairlxError):
    """A project or webhook does not exist, or is outside the caller's project.

    Attributes:
        resource_type: "project" or "webhook".
        resource_id: ID that was looked up.
    """

    code: str = "not_found"
    status_code: int = 404

    def __init__(self, resource_type: str, resource_id: str) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(f"{resource_type} not found: {resource_id}")

    def _details(self) -> dict[str, object]:
        return {"resource_type": self.resource_type, "resource_id": self.resource_id}


class StorageError(FairlxError):
    """Document store unavailable or not initialized."""

    code: str = "storage_error"


class ConfigurationError(FairlxError):
    """Required configuration is missing or invalid."""

    code: str = "configuration_error"


class AuthenticationError(FairlxError):
    code: str = "authentication_error"
    status_code: int = 401


class AuthorizationError(FairlxError):
    """Caller may not manage the project's webhooks."""

    code: str = "authorization_error"
    status_code: int = 403
