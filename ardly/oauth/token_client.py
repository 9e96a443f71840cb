"""
Token exchange for the Twitch authorization flow.

This module trades the authorization code caught by the callback listener
for an access token. It makes exactly one request per flow; transport
failures and undecodable responses are reported as distinct errors.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import requests

from .config import AuthRequestContext
from .exceptions import TokenExchangeDecodeError, TokenExchangeTransportError

logger = logging.getLogger(__name__)


@dataclass
class TokenResult:
    """
    Tokens returned by the token endpoint.

    Attributes:
        access_token: Token used to log in to chat (non-empty on success)
        refresh_token: Long-lived token for obtaining new access tokens
        expires_in: Access token lifetime in seconds, if reported
        scope: Granted scopes, if reported
        token_type: Token type (typically "bearer"), if reported
    """

    access_token: str
    refresh_token: str
    expires_in: Optional[int] = None
    scope: List[str] = field(default_factory=list)
    token_type: Optional[str] = None

    def __repr__(self) -> str:
        return (
            f"TokenResult(access_token=<{len(self.access_token)} chars>, "
            f"expires_in={self.expires_in!r}, scope={self.scope!r})"
        )

    @classmethod
    def from_response(cls, data: object) -> "TokenResult":
        """
        Build a result from a decoded JSON body.

        Raises:
            TokenExchangeDecodeError: If required fields are missing or mistyped
        """
        if not isinstance(data, dict):
            raise TokenExchangeDecodeError(
                f"Expected a JSON object from token endpoint, got {type(data).__name__}"
            )

        for key in ("access_token", "refresh_token"):
            if key not in data:
                raise TokenExchangeDecodeError(f"Token response is missing '{key}'")
            if not isinstance(data[key], str):
                raise TokenExchangeDecodeError(f"Token response '{key}' is not a string")

        scope = data.get("scope")
        if scope is None:
            scope = []
        elif isinstance(scope, str):
            scope = scope.split()
        elif not isinstance(scope, list) or not all(isinstance(s, str) for s in scope):
            raise TokenExchangeDecodeError(
                "Token response 'scope' is not a string or list of strings"
            )

        expires_in = data.get("expires_in")
        if expires_in is not None and not isinstance(expires_in, int):
            raise TokenExchangeDecodeError("Token response 'expires_in' is not an integer")

        return cls(
            access_token=data["access_token"],
            refresh_token=data["refresh_token"],
            expires_in=expires_in,
            scope=list(scope),
            token_type=data.get("token_type"),
        )


class TokenExchangeClient:
    """Exchanges an authorization code at the provider's token endpoint."""

    def __init__(self, context: AuthRequestContext, timeout: Optional[float] = 30.0):
        """
        Initialize token exchange client.

        Args:
            context: Request context with client credentials and redirect URI
            timeout: Seconds before the request is abandoned
        """
        self.context = context
        self.timeout = timeout

    def exchange(self, authorization_code: str) -> TokenResult:
        """
        Exchange authorization code for access and refresh tokens.

        Args:
            authorization_code: Code received from the OAuth callback

        Returns:
            TokenResult with access and refresh tokens

        Raises:
            TokenExchangeTransportError: If the request fails or is answered
                with an HTTP error status
            TokenExchangeDecodeError: If the response body is not the
                expected JSON object
        """
        logger.info("Exchanging authorization code for tokens")

        try:
            response = requests.post(
                self.context.token_url,
                data={
                    "client_id": self.context.client_id,
                    "client_secret": self.context.client_secret,
                    "redirect_uri": self.context.redirect_uri,
                    "code": authorization_code,
                    "grant_type": "authorization_code",
                },
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Token exchange request failed: {e}")
            raise TokenExchangeTransportError(
                f"Token exchange request failed: {e}"
            ) from e

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"Invalid JSON from token endpoint: {e}")
            raise TokenExchangeDecodeError(
                f"Invalid JSON from token endpoint: {e}"
            ) from e

        try:
            result = TokenResult.from_response(data)
        except TokenExchangeDecodeError as e:
            logger.error(f"Invalid response from token endpoint: {e}")
            raise

        logger.info("Successfully obtained tokens")
        return result
