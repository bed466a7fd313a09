"""
Client identity resolution for anonymous, IP-keyed quotas.
"""

import ipaddress
from typing import Mapping, Optional

UNKNOWN_IDENTITY = "unknown"
DEFAULT_TRUSTED_HEADER = "CF-Connecting-IP"


def _header(headers: Mapping[str, str], name: str) -> Optional[str]:
    value = headers.get(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def resolve_client_ip(headers: Mapping[str, str], trusted_header: str = DEFAULT_TRUSTED_HEADER) -> str:
    """Get client IP address from proxy headers.

    Order: the trusted proxy header, the first X-Forwarded-For entry,
    then the "unknown" sentinel.

    Args:
        headers: Request headers (Flask's EnvironHeaders or any mapping)
        trusted_header: Header set by the fronting proxy with the real client IP

    Returns:
        Identity string, never empty
    """
    trusted = _header(headers, trusted_header) if trusted_header else None
    if trusted:
        return trusted

    forwarded = _header(headers, "X-Forwarded-For")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    return UNKNOWN_IDENTITY


def mask_identity(identity: str) -> str:
    """Partially redact an identity for display.

    IPv4 keeps two octets, IPv6 keeps two groups, anything else keeps
    its first two characters.
    """
    try:
        address = ipaddress.ip_address(identity)
    except ValueError:
        return f"{identity[:2]}***"

    if address.version == 4:
        octets = str(address).split(".")
        return ".".join(octets[:2] + ["*", "*"])

    groups = [group.lstrip("0") or "0" for group in address.exploded.split(":")[:2]]
    return ":".join(groups + ["*"])
