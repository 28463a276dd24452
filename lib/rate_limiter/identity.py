"""
Client identity resolution for per-client rate limiting, dood!
"""

import ipaddress
import logging
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

# Checked in order, first valid public address wins
PROXY_HEADERS = (
    "CF-Connecting-IP",
    "Client-IP",
    "X-Forwarded-For",
    "X-Forwarded",
    "X-Cluster-Client-IP",
    "Forwarded-For",
    "Forwarded",
)

UNKNOWN_CLIENT = "0.0.0.0"


def _parseAddress(value: str) -> Optional[ipaddress.IPv4Address | ipaddress.IPv6Address]:
    try:
        return ipaddress.ip_address(value.strip())
    except ValueError:
        return None


def _isPublic(address: ipaddress.IPv4Address | ipaddress.IPv6Address) -> bool:
    return not (
        address.is_private
        or address.is_reserved
        or address.is_loopback
        or address.is_link_local
        or address.is_multicast
        or address.is_unspecified
    )


def resolveClientIdentity(headers: Mapping[str, str], remoteAddr: Optional[str] = None) -> str:
    """
    Derive the best-available client address, dood!

    Proxy headers are trusted only when they carry a valid public address
    (first hop of comma separated lists). Otherwise the remote address is used
    if it is a valid address of any kind, and ``0.0.0.0`` as a last resort.

    Args:
        headers: Request headers, matched case-insensitively
        remoteAddr: Socket peer address

    Returns:
        str: Normalized address string

    Example:
        >>> resolveClientIdentity({"X-Forwarded-For": "81.2.69.142, 10.0.0.1"}, "10.0.0.1")
        '81.2.69.142'
    """
    lowered = {key.lower(): value for key, value in headers.items()}

    for header in PROXY_HEADERS:
        value = lowered.get(header.lower())
        if not value:
            continue
        address = _parseAddress(value.split(",")[0])
        if address is not None and _isPublic(address):
            return str(address)
        logger.debug(f"Ignoring non-public or invalid {header} value {value!r}")

    if remoteAddr:
        address = _parseAddress(remoteAddr)
        if address is not None:
            return str(address)

    return UNKNOWN_CLIENT
