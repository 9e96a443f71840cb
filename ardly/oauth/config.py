"""
OAuth configuration for the Twitch authorization flow.

This module provides configuration management for obtaining a chat
access token through the OAuth 2.0 authorization-code flow. Configuration
can be loaded from environment variables or provided programmatically;
the per-flow request context is derived from it once per invocation.
"""

import os
import secrets
from dataclasses import dataclass
from typing import Optional, Tuple
from urllib.parse import urljoin

from .address import SocketAddress, resolve_address
from .exceptions import ConfigurationError

TWITCH_AUTH_BASE_URL = "https://id.twitch.tv/oauth2/"

# Scopes the bot needs to read and write chat
CHAT_SCOPES = ("chat:read", "chat:edit")

# Listener idle poll interval in seconds
DEFAULT_POLL_INTERVAL = 0.016


@dataclass
class TwitchOAuthConfig:
    """
    Configuration for the Twitch OAuth 2.0 authorization-code flow.

    Attributes:
        client_id: Application client ID from the Twitch dev console
        client_secret: Application client secret from the Twitch dev console
        address: Redirect address registered in the dev console; the local
            listener binds to what it resolves to
        provider_base_url: Base URL of the identity provider's oauth2 endpoints
        scopes: OAuth scopes requested on the consent page
        poll_interval: How often the idle listener re-checks for shutdown
        server_start_timeout: Seconds to wait for the listener to bind
        authorization_timeout: Seconds to wait for the user to authorize
        shutdown_timeout: Seconds to wait for the listener to close
        request_timeout: Seconds before the token request is abandoned

    Any timeout may be ``None`` to wait indefinitely.
    """

    # Required - from the Twitch dev console
    client_id: str
    client_secret: str
    address: str

    # Provider endpoints
    provider_base_url: str = TWITCH_AUTH_BASE_URL
    scopes: Tuple[str, ...] = CHAT_SCOPES

    # Listener and deadlines
    poll_interval: float = DEFAULT_POLL_INTERVAL
    server_start_timeout: Optional[float] = 10.0
    authorization_timeout: Optional[float] = 300.0
    shutdown_timeout: Optional[float] = 10.0
    request_timeout: Optional[float] = 30.0

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.client_id:
            raise ConfigurationError("client_id cannot be empty")

        if not self.client_secret:
            raise ConfigurationError("client_secret cannot be empty")

        if not self.address:
            raise ConfigurationError("address cannot be empty")

        if not self.provider_base_url.endswith("/"):
            self.provider_base_url += "/"

        if self.poll_interval <= 0:
            raise ConfigurationError(
                f"poll_interval must be positive, got {self.poll_interval}"
            )

        for name in (
            "server_start_timeout",
            "authorization_timeout",
            "shutdown_timeout",
            "request_timeout",
        ):
            value = getattr(self, name)
            if value is not None and value <= 0:
                raise ConfigurationError(f"{name} must be positive, got {value}")

    @classmethod
    def from_env(cls) -> "TwitchOAuthConfig":
        """
        Load configuration from environment variables.

        Required environment variables:
            TWITCH_CLIENT_ID: Application client ID
            TWITCH_CLIENT_SECRET: Application client secret
            TWITCH_REDIRECT_ADDRESS: Redirect address (e.g. http://localhost:3000)

        Optional environment variables:
            TWITCH_AUTH_TIMEOUT: Seconds to wait for browser authorization (default: 300)

        Returns:
            TwitchOAuthConfig instance

        Raises:
            ConfigurationError: If required environment variables are missing
        """
        client_id = os.environ.get("TWITCH_CLIENT_ID")
        client_secret = os.environ.get("TWITCH_CLIENT_SECRET")
        address = os.environ.get("TWITCH_REDIRECT_ADDRESS")

        if not client_id or not client_secret or not address:
            raise ConfigurationError(
                "Missing Twitch OAuth settings. Set environment variables:\n"
                "  TWITCH_CLIENT_ID=your_client_id\n"
                "  TWITCH_CLIENT_SECRET=your_client_secret\n"
                "  TWITCH_REDIRECT_ADDRESS=http://localhost:3000\n"
                "\n"
                "Register an application at: https://dev.twitch.tv/console"
            )

        timeout = os.environ.get("TWITCH_AUTH_TIMEOUT", "300")
        try:
            authorization_timeout = float(timeout)
        except ValueError as e:
            raise ConfigurationError(
                f"TWITCH_AUTH_TIMEOUT must be a number, got {timeout!r}"
            ) from e

        return cls(
            client_id=client_id,
            client_secret=client_secret,
            address=address,
            authorization_timeout=authorization_timeout,
        )


@dataclass(frozen=True)
class AuthRequestContext:
    """
    Immutable per-flow request data.

    Attributes:
        listen_address: Socket address the callback listener binds to
        redirect_uri: The address string exactly as the user supplied it
        client_id: Application client ID
        client_secret: Application client secret
        provider_base_url: Base URL of the provider's oauth2 endpoints
        scopes: Requested scopes
        session_secret: One-time 128-bit anti-forgery value

    ``redirect_uri`` is echoed to the provider verbatim while the listener
    binds ``listen_address``; both must denote the same reachable endpoint.
    """

    listen_address: SocketAddress
    redirect_uri: str
    client_id: str
    client_secret: str
    provider_base_url: str
    scopes: Tuple[str, ...]
    session_secret: int

    @classmethod
    def create(cls, config: TwitchOAuthConfig) -> "AuthRequestContext":
        """Resolve the listen address and draw a fresh session secret."""
        return cls(
            listen_address=resolve_address(config.address),
            redirect_uri=config.address,
            client_id=config.client_id,
            client_secret=config.client_secret,
            provider_base_url=config.provider_base_url,
            scopes=tuple(config.scopes),
            session_secret=secrets.randbits(128),
        )

    @property
    def state_token(self) -> str:
        """The ``state`` value a callback must echo (decimal secret)."""
        return str(self.session_secret)

    @property
    def authorize_url(self) -> str:
        return urljoin(self.provider_base_url, "authorize")

    @property
    def token_url(self) -> str:
        return urljoin(self.provider_base_url, "token")

    def __repr__(self) -> str:
        # Keep secrets out of logs and tracebacks
        return (
            f"AuthRequestContext(listen_address={self.listen_address!r}, "
            f"redirect_uri={self.redirect_uri!r}, client_id={self.client_id!r})"
        )
