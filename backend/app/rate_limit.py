"""Rate limiting for the perkyjobs backend.

Every agent (the ingestion bot and the marketplace frontend included)
shares one API key, so limits are bucketed per client IP rather than per
key. The API is served behind the reverse proxy that fronts perkyjobs.xyz;
X-Forwarded-For is read only when the direct peer is inside one of the
trusted proxy ranges. Set TRUSTED_PROXY_CIDRS (comma-separated) to the
proxy's ranges in production.
"""

import ipaddress
import os
from functools import lru_cache

from slowapi import Limiter
from slowapi.util import get_remote_address

from .logging_config import get_logger

logger = get_logger("api.rate_limit")

# Private ranges cover the proxy hop and local docker; loopback covers the
# dev server.
_DEFAULT_TRUSTED_CIDRS = [
    "10.0.0.0/8",
    "172.16.0.0/12",
    "192.168.0.0/16",
    "127.0.0.0/8",
    "::1/128",
]


@lru_cache
def trusted_networks() -> tuple:
    """Trusted proxy networks from env or defaults. Invalid entries are skipped."""
    raw = os.environ.get("TRUSTED_PROXY_CIDRS", "")
    cidrs = [s.strip() for s in raw.split(",") if s.strip()] or _DEFAULT_TRUSTED_CIDRS
    networks = []
    for cidr in cidrs:
        try:
            networks.append(ipaddress.ip_network(cidr, strict=False))
        except ValueError:
            logger.warning(f"Ignoring invalid trusted proxy CIDR: {cidr}")
    return tuple(networks)


def is_trusted_proxy(ip_str: str) -> bool:
    try:
        addr = ipaddress.ip_address(ip_str)
    except ValueError:
        return False
    return any(addr in network for network in trusted_networks())


def get_client_ip(request) -> str:
    """Client IP, using the leftmost X-Forwarded-For entry behind a trusted proxy."""
    direct_ip = get_remote_address(request)
    if is_trusted_proxy(direct_ip):
        forwarded_for = request.headers.get("x-forwarded-for", "")
        client_ip = forwarded_for.split(",")[0].strip()
        if client_ip:
            return client_ip
    return direct_ip


limiter = Limiter(key_func=get_client_ip)
