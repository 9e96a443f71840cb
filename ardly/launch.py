"""
Launch specification for the chat bot.

The launcher needs a login name, the channels to join, and an access
token. The token is either given directly or obtained through the
browser-based OAuth flow; this module turns the raw command-line values
into a validated spec and resolves the token.
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Union

from .oauth.config import TwitchOAuthConfig
from .oauth.coordinator import AuthorizationFlow
from .oauth.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class NoChannelsError(ConfigurationError):
    """No channel was given to join."""

    def __init__(self) -> None:
        super().__init__("No channels were passed. Use --channel <channel name>")


@dataclass(frozen=True)
class DirectToken:
    """An access token the user already has."""

    token: str

    def __repr__(self) -> str:
        return "DirectToken(<hidden>)"


@dataclass(frozen=True)
class AuthRequest:
    """Obtain the token through the OAuth flow."""

    config: TwitchOAuthConfig


TokenSource = Union[DirectToken, AuthRequest]


@dataclass(frozen=True)
class LaunchSpec:
    """
    Everything the chat transport needs to connect.

    Attributes:
        login_name: The bot's login
        channel_names: Channels to join (at least one)
        token_source: Where the access token comes from
    """

    login_name: str
    channel_names: List[str]
    token_source: TokenSource


def build_launch_spec(
    login_name: str,
    channel_names: List[str],
    token: Optional[str] = None,
    app_id: Optional[str] = None,
    app_secret: Optional[str] = None,
    address: Optional[str] = None,
    authorization_timeout: Optional[float] = None,
) -> LaunchSpec:
    """
    Validate launcher input and build a LaunchSpec.

    Exactly one token source must be given: ``token``, or all of
    ``app_id``, ``app_secret`` and ``address``.

    Raises:
        NoChannelsError: If ``channel_names`` is empty
        ConfigurationError: If the token source is missing or invalid
    """
    if not channel_names:
        raise NoChannelsError()

    if not login_name:
        raise ConfigurationError("login_name cannot be empty")

    if token is not None:
        if not token:
            raise ConfigurationError("token cannot be empty")
        source: TokenSource = DirectToken(token)
    elif app_id is not None or app_secret is not None or address is not None:
        options = {}
        if authorization_timeout is not None:
            options["authorization_timeout"] = authorization_timeout
        source = AuthRequest(
            TwitchOAuthConfig(
                client_id=app_id or "",
                client_secret=app_secret or "",
                address=address or "",
                **options,
            )
        )
    else:
        raise ConfigurationError(
            "Either a token or app_id, app_secret and address are required"
        )

    return LaunchSpec(
        login_name=login_name,
        channel_names=list(channel_names),
        token_source=source,
    )


def obtain_token(
    spec: LaunchSpec,
    flow_factory: Callable[[TwitchOAuthConfig], AuthorizationFlow] = AuthorizationFlow,
) -> str:
    """
    Resolve the spec's token source to an access token.

    Args:
        spec: Validated launch spec
        flow_factory: Builds the authorization flow for an AuthRequest

    Returns:
        Access token string
    """
    source = spec.token_source
    if isinstance(source, DirectToken):
        logger.info("Using the access token given on the command line")
        return source.token

    logger.info("Starting OAuth authorization flow")
    return flow_factory(source.config).run()
