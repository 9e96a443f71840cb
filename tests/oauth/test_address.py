"""Tests for listen address resolution."""

import socket
from unittest import mock

import pytest

from ardly.oauth.address import DEFAULT_PORT, SocketAddress, resolve_address
from ardly.oauth.exceptions import (
    AddressIOError,
    AddressResolutionError,
    InvalidAddressError,
    UrlParseError,
)


def _addrinfo(host, port, family=socket.AF_INET):
    return [(family, socket.SOCK_STREAM, 6, "", (host, port))]


class TestResolveAddress:
    """Tests for resolve_address."""

    def test_url_with_port(self):
        """A URL resolves to its host and explicit port."""
        assert resolve_address("http://127.0.0.1:3000") == SocketAddress("127.0.0.1", 3000)

    def test_url_with_path(self):
        """The URL path does not affect the socket address."""
        assert resolve_address("http://127.0.0.1:3000/oauth/callback") == SocketAddress(
            "127.0.0.1", 3000
        )

    def test_url_uses_scheme_default_port(self):
        """A URL without a port uses its scheme's default."""
        assert resolve_address("http://127.0.0.1") == SocketAddress("127.0.0.1", 80)
        assert resolve_address("https://127.0.0.1/") == SocketAddress("127.0.0.1", 443)

    def test_ftp_url_uses_port_21(self):
        """ftp is among the schemes with a known default port."""
        assert resolve_address("ftp://127.0.0.1") == SocketAddress("127.0.0.1", 21)

    def test_url_hostname_is_resolved(self):
        """A named host is resolved with getaddrinfo and the first result wins."""
        infos = _addrinfo("10.0.0.5", 3000) + _addrinfo("10.0.0.6", 3000)
        with mock.patch(
            "ardly.oauth.address.socket.getaddrinfo", return_value=infos
        ) as getaddrinfo:
            result = resolve_address("http://bot.example:3000")

        assert result == SocketAddress("10.0.0.5", 3000)
        getaddrinfo.assert_called_once_with("bot.example", 3000, type=socket.SOCK_STREAM)

    def test_ipv6_url(self):
        """A bracketed IPv6 literal in a URL is supported."""
        assert resolve_address("http://[::1]:3000") == SocketAddress("::1", 3000)

    def test_bare_host_gets_default_port(self):
        """A bare host resolves with the implied port 8080."""
        assert resolve_address("127.0.0.1") == SocketAddress("127.0.0.1", DEFAULT_PORT)
        assert DEFAULT_PORT == 8080

    def test_bare_host_with_port(self):
        """A host:port form keeps its port."""
        assert resolve_address("127.0.0.1:3000") == SocketAddress("127.0.0.1", 3000)

    def test_named_bare_host_with_port(self):
        """A named host:port form is not mistaken for a URL scheme."""
        with mock.patch(
            "ardly.oauth.address.socket.getaddrinfo",
            return_value=_addrinfo("127.0.0.1", 3000),
        ) as getaddrinfo:
            result = resolve_address("localhost:3000")

        assert result == SocketAddress("127.0.0.1", 3000)
        getaddrinfo.assert_called_once_with("localhost", 3000, type=socket.SOCK_STREAM)

    def test_bracketed_ipv6_bare_host_with_port(self):
        """A [host]:port form is split on the final colon."""
        assert resolve_address("[::1]:3000") == SocketAddress("::1", 3000)

    def test_unresolvable_bare_host_is_invalid(self):
        """Neither attempt yielding an address raises InvalidAddressError."""
        with mock.patch(
            "ardly.oauth.address.socket.getaddrinfo",
            side_effect=socket.gaierror("Name or service not known"),
        ):
            with pytest.raises(InvalidAddressError) as exc_info:
                resolve_address("no-such-host")

        assert exc_info.value.address == "no-such-host"
        assert isinstance(exc_info.value, AddressResolutionError)

    def test_empty_resolution_is_invalid(self):
        """getaddrinfo returning nothing counts as no address."""
        with mock.patch("ardly.oauth.address.socket.getaddrinfo", return_value=[]):
            with pytest.raises(InvalidAddressError):
                resolve_address("no-such-host")

    def test_malformed_url_raises_url_parse_error(self):
        """A malformed URL raises UrlParseError."""
        with pytest.raises(UrlParseError):
            resolve_address("http://[::1:3000")

    def test_bad_url_port_raises_url_parse_error(self):
        """A non-numeric URL port raises UrlParseError."""
        with pytest.raises(UrlParseError):
            resolve_address("http://localhost:abc")

    def test_url_resolution_failure_raises_io_error(self):
        """DNS failure for a URL host raises AddressIOError."""
        with mock.patch(
            "ardly.oauth.address.socket.getaddrinfo",
            side_effect=socket.gaierror("Temporary failure in name resolution"),
        ):
            with pytest.raises(AddressIOError):
                resolve_address("http://bot.example:3000")

    def test_socket_address_str(self):
        """SocketAddress formats like host:port, bracketing IPv6."""
        assert str(SocketAddress("127.0.0.1", 3000)) == "127.0.0.1:3000"
        assert str(SocketAddress("::1", 3000)) == "[::1]:3000"
