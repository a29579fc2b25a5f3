"""Validation of submitted URL lists, including the private-network guard."""

import asyncio
import ipaddress
import logging
import socket
from typing import Awaitable, Callable, Iterable, List, Optional
from urllib.parse import urlparse

from .errors import URLValidationError

logger = logging.getLogger(__name__)

Resolver = Callable[[str], Awaitable[List[str]]]

BLOCKED_HOSTNAMES = {"localhost", "localhost.localdomain", "ip6-localhost", "ip6-loopback"}


async def resolve_host(hostname: str) -> List[str]:
    """Resolve a hostname to its IP addresses using the event loop resolver."""
    loop = asyncio.get_running_loop()
    infos = await loop.getaddrinfo(hostname, None, type=socket.SOCK_STREAM)
    return list({info[4][0] for info in infos})


def is_blocked_address(address: str) -> bool:
    """True for loopback, private, link-local, reserved or unspecified IPs.

    Only 172.16.0.0/12 is private; the rest of 172.* is public address space
    and is accepted.
    """
    try:
        ip = ipaddress.ip_address(address.split("%", 1)[0])
    except ValueError:
        return False
    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped:
        ip = ip.ipv4_mapped
    return (
        ip.is_loopback
        or ip.is_private
        or ip.is_link_local
        or ip.is_reserved
        or ip.is_unspecified
        or ip.is_multicast
    )


async def validate_url(url: str, resolver: Optional[Resolver] = resolve_host) -> str:
    """Validate one target URL and return it stripped.

    Raises:
        URLValidationError: scheme is not http(s), host is missing, or the
            host is (or resolves to) a local or private address.
    """
    if not isinstance(url, str) or not url.strip():
        raise URLValidationError("URL must be a non-empty string")
    url = url.strip()

    try:
        parsed = urlparse(url)
        hostname = (parsed.hostname or "").lower().rstrip(".")
    except ValueError as e:
        # e.g. an unbalanced IPv6 bracket
        raise URLValidationError(f"Malformed URL: {url} ({e})") from e

    if parsed.scheme not in ("http", "https"):
        raise URLValidationError(f"Unsupported URL scheme: {url}")

    if not hostname:
        raise URLValidationError(f"URL has no hostname: {url}")

    if hostname in BLOCKED_HOSTNAMES or hostname.endswith(".localhost"):
        raise URLValidationError(f"Local addresses are not allowed: {url}")

    if is_blocked_address(hostname):
        raise URLValidationError(f"Private or loopback addresses are not allowed: {url}")

    try:
        ipaddress.ip_address(hostname)
        return url  # IP literal already checked
    except ValueError:
        pass

    if resolver is None:
        return url

    try:
        addresses = await resolver(hostname)
    except (OSError, UnicodeError) as e:
        # Unresolvable hosts cannot reach the private network; they fail later as page errors
        logger.info(f"Could not resolve {hostname}: {e}")
        return url

    for address in addresses:
        if is_blocked_address(address):
            raise URLValidationError(f"Host resolves to a private or loopback address: {url}")

    return url


async def validate_urls(
    urls: Iterable[str],
    max_urls: int,
    resolver: Optional[Resolver] = resolve_host,
) -> List[str]:
    """Validate a batch submission. All URLs must pass or the batch is rejected."""
    if urls is None or isinstance(urls, str):
        raise URLValidationError("urls must be a list")
    urls = list(urls)
    if not urls:
        raise URLValidationError("At least one URL is required")
    if len(urls) > max_urls:
        raise URLValidationError(f"Too many URLs: {len(urls)} (maximum {max_urls})")

    return [await validate_url(url, resolver) for url in urls]
