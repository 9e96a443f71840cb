"""
Listen address resolution for the OAuth callback listener.

The redirect address is whatever the user registered with the provider,
usually a URL such as ``http://localhost:3000``. The callback listener
needs a concrete socket address to bind, so the string is resolved here.
"""

import logging
import socket
from typing import NamedTuple, Optional
from urllib.parse import urlsplit

from .exceptions import AddressIOError, InvalidAddressError, UrlParseError

logger = logging.getLogger(__name__)

# Port used when the address is a bare host without a port
DEFAULT_PORT = 8080

SCHEME_DEFAULT_PORTS = {
    "http": 80,
    "https": 443,
    "ws": 80,
    "wss": 443,
    "ftp": 21,
}


class SocketAddress(NamedTuple):
    """Resolved (numeric host, port) pair the listener binds to."""

    host: str
    port: int

    def __str__(self) -> str:
        if ":" in self.host:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"


def _first_address(host: str, port: int) -> Optional[SocketAddress]:
    infos = socket.getaddrinfo(host, port, type=socket.SOCK_STREAM)
    for _family, _type, _proto, _canonname, sockaddr in infos:
        return SocketAddress(sockaddr[0], sockaddr[1])
    return None


def _resolve_url(address: str) -> Optional[SocketAddress]:
    try:
        parts = urlsplit(address)
        hostname = parts.hostname
        port = parts.port
    except ValueError as e:
        raise UrlParseError(f"Could not parse {address!r} as a URL: {e}") from e

    if not parts.scheme or not hostname:
        return None

    if port is None:
        port = SCHEME_DEFAULT_PORTS.get(parts.scheme.lower())
        if port is None:
            return None

    try:
        return _first_address(hostname, port)
    except OSError as e:
        raise AddressIOError(f"Could not resolve {hostname}:{port}: {e}") from e


def _resolve_bare_host(address: str) -> Optional[SocketAddress]:
    host, port = address, DEFAULT_PORT

    head, sep, tail = address.rpartition(":")
    if sep and tail.isdigit() and (":" not in head or head.startswith("[")):
        host, port = head, int(tail)

    host = host.strip("[]")
    if not host:
        return None

    try:
        return _first_address(host, port)
    except (OSError, UnicodeError, OverflowError):
        return None


def resolve_address(address: str) -> SocketAddress:
    """
    Resolve a user-supplied address string to a socket address.

    The string is first parsed as a URL and its host resolved (port from
    the URL or the scheme default). If that yields nothing, it is treated
    as a bare host, with an implied port of 8080 unless a ``host:port``
    form names one.

    Args:
        address: URL (``http://localhost:3000``) or ``host[:port]``

    Returns:
        The first socket address the name resolves to

    Raises:
        UrlParseError: If the string is a malformed URL
        AddressIOError: If resolving the URL's host fails
        InvalidAddressError: If neither attempt yields an address
    """
    resolved = _resolve_url(address)
    if resolved is None:
        logger.debug(f"{address!r} has no URL host, trying it as a bare host")
        resolved = _resolve_bare_host(address)

    if resolved is None:
        logger.error(f"Could not resolve listen address {address!r}")
        raise InvalidAddressError(address)

    logger.info(f"Resolved {address!r} to {resolved}")
    return resolved
