"""Registration-time checks for webhook target URLs.

Webhook URLs are called from inside our network, so targets that resolve
to loopback or private ranges are refused when a webhook is created or
updated. Delivery does not re-check.
"""

from __future__ import annotations

import ipaddress

from pydantic import HttpUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

BLOCKED_HOSTNAMES: frozenset[str] = frozenset({"localhost", "127.0.0.1", "0.0.0.0"})

BLOCKED_NETWORKS: tuple[ipaddress.IPv4Network, ...] = (
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
)

_http_url: TypeAdapter[HttpUrl] = TypeAdapter(HttpUrl)


def _is_blocked_host(host: str) -> bool:
    host = host.strip("[]").rstrip(".").lower()
    if host in BLOCKED_HOSTNAMES or host.endswith(".localhost"):
        return True

    try:
        ip = ipaddress.ip_address(host)
    except ValueError:
        # Plain DNS name
        return False

    if ip.is_loopback or ip.is_unspecified:
        return True
    return any(ip in network for network in BLOCKED_NETWORKS)


def validate_webhook_url(url: str) -> str:
    """Validate a webhook target URL.

    Args:
        url: Candidate URL.

    Returns:
        The URL unchanged, when acceptable.

    Raises:
        ValueError: If the URL is malformed, not http(s), or points at a
            loopback/private host.
    """
    try:
        parsed = _http_url.validate_python(url)
    except PydanticValidationError as e:
        raise ValueError("must be a well-formed absolute http(s) URL") from e

    if not parsed.host:
        raise ValueError("must include a host")
    if _is_blocked_host(parsed.host):
        raise ValueError("must not point to a private or loopback address")
    return url

