from __future__ import annotations

import ipaddress
import secrets
from functools import lru_cache

from fastapi import Request

INTERNAL_TOKEN_HEADER = "X-Internal-Token"
FORWARDED_FOR_HEADER = "X-Forwarded-For"

IPNetwork = ipaddress.IPv4Network | ipaddress.IPv6Network


def is_valid_internal_token(*, expected_token: str, received_token: str | None) -> bool:
    if not expected_token or not received_token:
        return False
    return secrets.compare_digest(expected_token.encode("utf-8"), received_token.encode("utf-8"))


def is_internal_request_authenticated(request: Request, *, expected_token: str) -> bool:
    return is_valid_internal_token(
        expected_token=expected_token,
        received_token=request.headers.get(INTERNAL_TOKEN_HEADER),
    )


@lru_cache(maxsize=32)
def parse_networks(spec: str) -> tuple[IPNetwork, ...]:
    """Parses a comma-separated list of hosts and CIDR blocks, skipping malformed entries."""
    networks: list[IPNetwork] = []
    for entry in (part.strip() for part in spec.split(",")):
        if not entry:
            continue
        try:
            networks.append(ipaddress.ip_network(entry, strict=False))
        except ValueError:
            continue
    return tuple(networks)


def normalize_ip(value: str | None) -> str | None:
    if not value:
        return None
    try:
        return str(ipaddress.ip_address(value.strip()))
    except ValueError:
        return None


def is_client_ip_allowed(*, client_ip: str | None, allowlist: str) -> bool:
    address = normalize_ip(client_ip)
    if address is None:
        return False
    parsed = ipaddress.ip_address(address)
    return any(parsed in network for network in parse_networks(allowlist))


def extract_client_ip(request: Request, *, trusted_proxies: str = "") -> str | None:
    peer = normalize_ip(request.client.host if request.client is not None else None)
    forwarded_for = request.headers.get(FORWARDED_FOR_HEADER)
    if not forwarded_for or not is_client_ip_allowed(client_ip=peer, allowlist=trusted_proxies):
        return peer
    # The left-most entry is the caller; proxies append after it.
    return normalize_ip(forwarded_for.split(",", maxsplit=1)[0])
