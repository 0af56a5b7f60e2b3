import ipaddress
import uuid
from dataclasses import dataclass
from typing import Iterable, List, Union

from fastapi import Request

IPNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]


@dataclass(frozen=True)
class ClientInfo:
    ip: str
    user_agent: str
    request_id: str


def parse_trusted_proxies(entries: Iterable[str]) -> List[IPNetwork]:
    """Addresses or CIDR ranges, e.g. ["10.0.0.0/8", "127.0.0.1"]"""
    return [ipaddress.ip_network(entry, strict=False) for entry in entries]


def _is_trusted(peer: str, trusted_proxies: List[IPNetwork]) -> bool:
    try:
        address = ipaddress.ip_address(peer)
    except ValueError:
        return False
    return any(address in network for network in trusted_proxies)


def get_client_info(request: Request) -> ClientInfo:
    """
    Resolve caller IP, user agent and a fresh request id.

    The socket peer is the caller unless it is one of the trusted proxies
    configured on app.state; only then are X-Forwarded-For (first hop) and
    X-Real-IP believed. The IP keys the per-IP rate limits, so a header the
    caller controls must never choose it.
    """
    peer = request.client.host if request.client else "unknown"
    trusted_proxies = getattr(request.app.state, "trusted_proxies", [])

    ip = peer
    if _is_trusted(peer, trusted_proxies):
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            ip = forwarded.split(",")[0].strip()
        else:
            ip = request.headers.get("x-real-ip") or peer

    return ClientInfo(
        ip=ip or "unknown",
        user_agent=request.headers.get("user-agent") or "unknown",
        request_id=f"req_{uuid.uuid4()}",
    )
