"""
OAuth exception classes for the Twitch authorization flow.

This module defines the exception hierarchy for every failure the local
authorization-code flow can report. All of them are fatal to the flow
except a rejected callback, which is answered with an HTTP error and
never raised.
"""


class ArdlyOAuthError(Exception):
    """Base exception for all OAuth flow errors."""

    pass


class ConfigurationError(ArdlyOAuthError):
    """OAuth configuration error (missing or invalid configuration)."""

    pass


class AddressResolutionError(ArdlyOAuthError):
    """The listen address could not be turned into a socket address."""

    pass


class InvalidAddressError(AddressResolutionError):
    """Neither URL nor bare-host resolution produced a socket address."""

    def __init__(self, address: str):
        super().__init__(f'"{address}" is not a valid address.')
        self.address = address


class UrlParseError(AddressResolutionError):
    """The address string is a malformed URL."""

    pass


class AddressIOError(AddressResolutionError):
    """Name resolution of the address failed with an I/O error."""

    pass


class ListenerError(ArdlyOAuthError):
    """The local callback listener failed."""

    pass


class ListenerBindError(ListenerError):
    """The callback listener could not bind its socket (port busy, no permission)."""

    pass


class TokenExchangeError(ArdlyOAuthError):
    """Failed to exchange authorization code for tokens."""

    pass


class TokenExchangeTransportError(TokenExchangeError):
    """The token request failed on the network or returned an HTTP error."""

    pass


class TokenExchangeDecodeError(TokenExchangeError):
    """The token endpoint response could not be decoded."""

    pass


class EmptyAccessTokenError(ArdlyOAuthError):
    """The token endpoint answered with an empty access token."""

    pass


class AuthorizationTimeoutError(ArdlyOAuthError):
    """A flow stage did not complete before its deadline."""

    pass
