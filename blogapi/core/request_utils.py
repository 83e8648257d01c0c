"""Request utility functions for client identification."""

import ipaddress
import logging
from collections.abc import Collection

from starlette.requests import Request

from blogapi.services.auth import Fingerprint

logger = logging.getLogger(__name__)

DEVICE_ID_HEADER = "X-Device-ID"


def _is_valid_ip(ip_str: str) -> bool:
    """Check if a string is a valid IP address."""
    try:
        ipaddress.ip_address(ip_str)
        return True
    except ValueError:
        return False


def get_client_ip(request: Request, trusted_proxies: Collection[str] = ()) -> str:
    """Get the client IP address from a request.

    X-Forwarded-For (first hop) and X-Real-IP can be spoofed by clients, so
    they are only honoured when the direct connection comes from one of
    ``trusted_proxies``. Otherwise the peer address is used.

    Returns "unknown" when the server does not expose a peer address.
    """
    direct_ip = request.client.host if request.client else None

    if trusted_proxies and direct_ip and direct_ip in trusted_proxies:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            client_ip = forwarded.split(",")[0].strip()
            if _is_valid_ip(client_ip):
                return client_ip
            logger.warning(f"Invalid IP in X-Forwarded-For header: {client_ip}")

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            ip = real_ip.strip()
            if _is_valid_ip(ip):
                return ip
            logger.warning(f"Invalid IP in X-Real-IP header: {real_ip}")
    elif request.headers.get("X-Forwarded-For"):
        logger.debug(f"Ignoring X-Forwarded-For from untrusted source: {direct_ip}")

    if direct_ip:
        return direct_ip

    return "unknown"


def build_fingerprint(request: Request, trusted_proxies: Collection[str] = ()) -> Fingerprint:
    """Capture the client context a token is bound to."""
    return Fingerprint(
        ip=get_client_ip(request, trusted_proxies),
        user_agent=request.headers.get("User-Agent", ""),
        device_id=request.headers.get(DEVICE_ID_HEADER, ""),
    )
