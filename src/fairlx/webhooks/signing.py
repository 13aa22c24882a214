"""HMAC-SHA256 signatures for webhook bodies."""

from __future__ import annotations

import hashlib
import hmac


def compute_signature(payload: str, secret: str) -> str:
    """Compute the HMAC-SHA256 signature of a webhook body.

    Args:
        payload: Exact JSON string sent as the request body.
        secret: Shared secret configured on the webhook.

    Returns:
        Lowercase hex digest.
    """
    return hmac.new(
        key=secret.encode("utf-8"),
        msg=payload.encode("utf-8"),
        digestmod=hashlib.sha256,
    ).hexdigest()


def verify_signature(payload: str, secret: str, signature: str) -> bool:
    """Verify a webhook signature in constant time.

    Args:
        payload: Exact JSON string that was received.
        secret: Shared secret configured on the webhook.
        signature: Value of the signature header.

    Returns:
        True if signature is valid, False otherwise.
    """
    expected = compute_signature(payload, secret)
    return hmac.compare_digest(expected, signature.strip().lower())
