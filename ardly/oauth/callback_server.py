"""
OAuth callback listener for the Twitch authorization flow.

This module provides the short-lived local HTTP server that catches the
provider's redirect. It runs on a background thread during the flow,
accepts any number of requests (stray or duplicate hits on the open port
are answered and ignored), and stops once the coordinator asks it to.

A callback is accepted only when its ``state`` parameter matches the
flow's session secret. The last accepted ``code`` wins.
"""

import hmac
import logging
import socket
import sys
import threading
from socketserver import ThreadingMixIn
from typing import Optional
from wsgiref.simple_server import WSGIRequestHandler, WSGIServer

from flask import Flask, Response, request

from .address import SocketAddress
from .config import DEFAULT_POLL_INTERVAL, AuthRequestContext
from .exceptions import ListenerBindError, ListenerError
from .state import AuthState

logger = logging.getLogger(__name__)

SUCCESS_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <style type="text/css">
    body { margin: 40px auto; max-width: 650px; line-height: 1.6;
           font-size: 18px; color: #888; background-color: #111; padding: 0 10px; }
    h1 { line-height: 1.2; }
    </style>
    <title>'ardly OAuth</title>
</head>
<body>
    <h1>Thanks for Authenticating with 'ardly OAuth!</h1>
    You may now close this page.
</body>
</html>"""


class _CallbackWSGIServer(ThreadingMixIn, WSGIServer):
    """WSGI server bound to an IPv4 or IPv6 address, one thread per connection."""

    # One flow owns the port
    allow_reuse_port = False
    daemon_threads = True
    block_on_close = False

    def __init__(self, address: SocketAddress, handler_class):
        self.address_family = socket.AF_INET6 if ":" in address.host else socket.AF_INET
        super().__init__(tuple(address), handler_class)

    def handle_error(self, request, client_address) -> None:
        error = sys.exc_info()[1]
        if isinstance(error, (socket.timeout, TimeoutError)):
            logger.debug(f"Dropped idle connection from {client_address}")
            return
        logger.exception(f"Error while handling callback from {client_address}")


class _CallbackRequestHandler(WSGIRequestHandler):
    # Stalled connections are closed after this many seconds
    timeout = 5

    def log_message(self, format, *args) -> None:
        logger.debug(f"{self.address_string()} - {format % args}")


class OAuthCallbackServer:
    """
    Local HTTP server that handles the OAuth redirect.

    The server:
    1. Binds the resolved listen address on a worker thread
    2. Marks the shared state as running
    3. Answers callbacks, recording valid authorization codes
    4. Re-checks for a close request after every request and every idle
       ``poll_interval``
    5. Closes its socket and marks the state closed

    A bind failure is recorded on the shared state as ``ListenerBindError``
    so the coordinator can raise it; the process is never aborted.
    """

    def __init__(
        self,
        context: AuthRequestContext,
        state: AuthState,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ):
        """
        Initialize callback server.

        Args:
            context: Request context with listen address and session secret
            state: Flow state shared with the coordinator
            poll_interval: Idle seconds between close checks
        """
        self.context = context
        self.state = state
        self.poll_interval = poll_interval
        self.app = create_app(self)
        self._thread: Optional[threading.Thread] = None
        self._httpd: Optional[_CallbackWSGIServer] = None

    @property
    def server_address(self) -> Optional[SocketAddress]:
        """Address actually bound (differs from the context with port 0)."""
        if self._httpd is None:
            return None
        host, port = self._httpd.server_address[:2]
        return SocketAddress(host, port)

    def _handle_callback(self, path: str = "") -> Response:
        """Handle a redirect from the provider (or any other hit on the port)."""
        actual = request.args.get("state")
        expected = self.context.state_token

        if actual is None or not hmac.compare_digest(
            actual.encode("utf-8"), expected.encode("utf-8")
        ):
            logger.warning(f"Rejected callback on /{path}: state mismatch")
            return Response("Invalid state!", status=401, content_type="text/plain")

        code = request.args.get("code")
        # An empty code= is treated the same as a missing one
        if not code:
            logger.warning("Callback with valid state but no code")
            return Response("must provide code", status=400, content_type="text/plain")

        self.state.record_code(code)
        logger.info("Authorization code received")
        return Response(SUCCESS_PAGE, status=200, content_type="text/html")

    def start(self) -> None:
        """Start the listener on a background thread."""
        if self._thread is not None:
            raise RuntimeError("callback server already started")

        self._thread = threading.Thread(
            target=self._serve, name="oauth-callback-listener"
        )
        self._thread.start()

    def _serve(self) -> None:
        address = self.context.listen_address
        logger.info(f"Starting OAuth callback listener at {address}")

        try:
            httpd = _CallbackWSGIServer(address, _CallbackRequestHandler)
        except OSError as e:
            logger.error(f"Could not bind callback listener to {address}: {e}")
            self.state.fail(
                ListenerBindError(f"Could not bind callback listener to {address}: {e}")
            )
            return

        httpd.set_app(self.app)
        httpd.timeout = self.poll_interval
        self._httpd = httpd
        self.state.mark_server_running()

        try:
            while not self.state.can_close:
                httpd.handle_request()
        except Exception as e:
            logger.exception("Callback listener stopped unexpectedly")
            self.state.fail(ListenerError(f"Callback listener failed: {e}"))
        finally:
            httpd.server_close()
            self.state.mark_closed()
            logger.info("OAuth callback listener closed")

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def join(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the worker thread to exit.

        Returns:
            True if the thread has exited (or never started)
        """
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def stop(self, timeout: Optional[float] = None) -> bool:
        """
        Ask the listener to close and wait for it.

        Args:
            timeout: Seconds to wait for the worker to exit

        Returns:
            True if the listener has shut down
        """
        self.state.request_close()
        stopped = self.join(timeout)
        if not stopped:
            logger.warning(f"Callback listener still running after {timeout}s")
        return stopped


def create_app(server: OAuthCallbackServer) -> Flask:
    """Build the Flask app answering callbacks on every path."""
    app = Flask(__name__)
    app.logger.setLevel(logging.WARNING)  # Suppress Flask logs

    app.add_url_rule(
        "/",
        "oauth_callback",
        server._handle_callback,
        methods=["GET"],
        defaults={"path": ""},
    )
    app.add_url_rule(
        "/<path:path>",
        "oauth_callback_path",
        server._handle_callback,
        methods=["GET"],
    )
    return app
