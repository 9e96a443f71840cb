"""
OAuth coordinator for obtaining a chat access token.

This module drives one authorization-code flow from start to finish:
it starts the local callback listener, sends the user's browser to the
provider's consent page, waits for the redirect, exchanges the code for
tokens, and shuts the listener down again.

Each waiting stage has a deadline. Whatever happens after the listener
starts (timeout, listener failure, token exchange error) the listener is
asked to close and its thread is joined before the flow returns.
"""

import logging
import webbrowser
from enum import Enum
from typing import Callable, Optional
from urllib.parse import urlencode

from .callback_server import OAuthCallbackServer
from .config import AuthRequestContext, TwitchOAuthConfig
from .exceptions import AuthorizationTimeoutError, EmptyAccessTokenError
from .state import AuthState
from .token_client import TokenExchangeClient, TokenResult

logger = logging.getLogger(__name__)


class FlowStage(Enum):
    """Coordinator progress through one authorization flow, strictly ordered."""

    NOT_STARTED = "not_started"
    AWAITING_SERVER_START = "awaiting_server_start"
    AWAITING_USER_CODE = "awaiting_user_code"
    EXCHANGING = "exchanging"
    CLOSING = "closing"
    DONE = "done"


class AuthorizationFlow:
    """
    One local OAuth 2.0 authorization-code flow.

    Example:
        config = TwitchOAuthConfig(client_id, client_secret, "http://localhost:3000")
        token = AuthorizationFlow(config).run()
    """

    def __init__(
        self,
        config: TwitchOAuthConfig,
        open_browser: Callable[[str], bool] = webbrowser.open,
    ):
        """
        Initialize the flow.

        Builds the request context, which resolves the listen address and
        draws the session secret; resolution errors surface here.

        Args:
            config: OAuth configuration
            open_browser: Callable that shows a URL to the user
        """
        self.config = config
        self.open_browser = open_browser
        self.context = AuthRequestContext.create(config)
        self.state = AuthState()
        self.listener = OAuthCallbackServer(
            self.context, self.state, poll_interval=config.poll_interval
        )
        self.token_client = TokenExchangeClient(
            self.context, timeout=config.request_timeout
        )
        self.stage = FlowStage.NOT_STARTED

    def _enter(self, stage: FlowStage) -> None:
        logger.info(f"Authorization flow: {self.stage.value} -> {stage.value}")
        self.stage = stage

    def generate_authorization_url(self) -> str:
        """
        Generate the provider's consent page URL.

        Returns:
            Complete authorization URL with query parameters
        """
        params = {
            "client_id": self.context.client_id,
            "redirect_uri": self.context.redirect_uri,
            "response_type": "code",
            "scope": " ".join(self.context.scopes),
            "force_verify": "true",
            "state": self.context.state_token,
        }
        return f"{self.context.authorize_url}?{urlencode(params)}"

    def _wait(self, predicate: Callable[[AuthState], bool], timeout: Optional[float]) -> None:
        if not self.state.wait_until(predicate, timeout):
            logger.error(f"Timed out after {timeout}s while {self.stage.value}")
            raise AuthorizationTimeoutError(
                f"Timed out after {timeout}s while {self.stage.value.replace('_', ' ')}"
            )

    def _launch_browser(self, url: str) -> None:
        logger.info(f"Opening browser for authorization: {url}")
        try:
            opened = self.open_browser(url)
        except webbrowser.Error as e:
            logger.warning(f"Could not open browser automatically: {e}")
            opened = False

        if not opened:
            logger.warning(
                f"Please open this URL in your browser to authorize:\n  {url}"
            )

    def _close_listener(self) -> bool:
        self._enter(FlowStage.CLOSING)
        return self.listener.stop(timeout=self.config.shutdown_timeout)

    def run(self) -> str:
        """
        Run the flow and return the access token.

        Returns:
            Non-empty access token string

        Raises:
            ListenerBindError: If the listener cannot bind its address
            ListenerError: If the listener fails while waiting for the user
            AuthorizationTimeoutError: If a stage misses its deadline
            TokenExchangeTransportError: If the token request fails
            TokenExchangeDecodeError: If the token response is malformed
            EmptyAccessTokenError: If the provider returns an empty token
        """
        if self.stage is not FlowStage.NOT_STARTED:
            raise RuntimeError("an authorization flow can only run once")

        result: Optional[TokenResult] = None
        self.listener.start()
        try:
            self._enter(FlowStage.AWAITING_SERVER_START)
            self._wait(lambda s: s.server_running, self.config.server_start_timeout)

            self._enter(FlowStage.AWAITING_USER_CODE)
            self._launch_browser(self.generate_authorization_url())
            self._wait(lambda s: bool(s.user_token), self.config.authorization_timeout)

            self._enter(FlowStage.EXCHANGING)
            result = self.token_client.exchange(self.state.user_token)
        finally:
            closed = self._close_listener()

        if not closed:
            raise AuthorizationTimeoutError(
                f"Callback listener did not shut down within "
                f"{self.config.shutdown_timeout}s"
            )

        self._enter(FlowStage.DONE)

        if not result.access_token:
            logger.error("Token endpoint returned an empty access token")
            raise EmptyAccessTokenError("access_token was empty")

        logger.info("Authorization complete")
        return result.access_token


def get_access_token(
    client_id: str, client_secret: str, address: str, **options
) -> str:
    """
    Obtain a chat access token through the browser.

    Args:
        client_id: Application client ID
        client_secret: Application client secret
        address: Redirect address registered with the provider
        **options: Other ``TwitchOAuthConfig`` fields (timeouts, endpoints)

    Returns:
        Access token string
    """
    config = TwitchOAuthConfig(
        client_id=client_id, client_secret=client_secret, address=address, **options
    )
    return AuthorizationFlow(config).run()
