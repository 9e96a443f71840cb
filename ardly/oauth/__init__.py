"""
OAuth 2.0 module for obtaining a Twitch chat access token.

This module implements the OAuth 2.0 Authorization Code flow with a
short-lived local callback listener, so the user does not have to paste
a token by hand.

Flow:
- Resolve the redirect address and start the callback listener
- Open the provider's consent page in the browser
- Catch the redirect and check its anti-forgery state
- Exchange the authorization code for an access token
- Shut the listener down on every exit path

Public API:
    TwitchOAuthConfig: OAuth configuration management
    AuthRequestContext: Immutable per-flow request data
    resolve_address: Address string to socket address
    AuthState: Shared flow state
    OAuthCallbackServer: Local callback listener
    TokenExchangeClient: Token endpoint client
    AuthorizationFlow: Flow coordinator
    get_access_token: One-call entry point

Exceptions:
    ArdlyOAuthError: Base exception
    ConfigurationError: Configuration error
    AddressResolutionError: Listen address could not be resolved
    ListenerBindError: Callback listener could not bind
    TokenExchangeTransportError: Token request failed
    TokenExchangeDecodeError: Token response malformed
    EmptyAccessTokenError: Provider returned an empty token
    AuthorizationTimeoutError: A flow stage missed its deadline
"""

from .address import SocketAddress, resolve_address
from .callback_server import OAuthCallbackServer
from .config import AuthRequestContext, TwitchOAuthConfig
from .coordinator import AuthorizationFlow, FlowStage, get_access_token
from .exceptions import (
    AddressIOError,
    AddressResolutionError,
    ArdlyOAuthError,
    AuthorizationTimeoutError,
    ConfigurationError,
    EmptyAccessTokenError,
    InvalidAddressError,
    ListenerBindError,
    ListenerError,
    TokenExchangeDecodeError,
    TokenExchangeError,
    TokenExchangeTransportError,
    UrlParseError,
)
from .state import AuthState, FlowPhase
from .token_client import TokenExchangeClient, TokenResult

__all__ = [
    # Configuration
    "TwitchOAuthConfig",
    "AuthRequestContext",
    # Address resolution
    "SocketAddress",
    "resolve_address",
    # Shared state
    "AuthState",
    "FlowPhase",
    # Callback listener
    "OAuthCallbackServer",
    # Token exchange
    "TokenExchangeClient",
    "TokenResult",
    # Coordinator
    "AuthorizationFlow",
    "FlowStage",
    "get_access_token",
    # Exceptions
    "ArdlyOAuthError",
    "ConfigurationError",
    "AddressResolutionError",
    "InvalidAddressError",
    "UrlParseError",
    "AddressIOError",
    "ListenerError",
    "ListenerBindError",
    "TokenExchangeError",
    "TokenExchangeTransportError",
    "TokenExchangeDecodeError",
    "EmptyAccessTokenError",
    "AuthorizationTimeoutError",
]
