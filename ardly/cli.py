"""
Click CLI for the 'ardly bot launcher.

Usage:
    ardly --channel NAME LOGIN_NAME token TOKEN
    ardly --channel NAME LOGIN_NAME get-token APP_ID APP_SECRET ADDRESS

Both commands resolve an access token and print it on stdout for the chat
transport. ``get-token`` obtains it through the browser; ADDRESS must match
the redirect URL set in the Twitch dev console.
"""

import logging
import sys
from dataclasses import dataclass
from typing import List, Optional

import click

from .launch import LaunchSpec, build_launch_spec, obtain_token
from .oauth.exceptions import ArdlyOAuthError

logger = logging.getLogger(__name__)


@dataclass
class CLIContext:
    """Context object passed to all CLI commands.

    Attributes:
        login_name: The bot's login
        channel_names: Channels to join
        verbose: Verbose output enabled
    """
    login_name: str
    channel_names: List[str]
    verbose: bool


def _run(
    ctx: click.Context,
    token: Optional[str] = None,
    app_id: Optional[str] = None,
    app_secret: Optional[str] = None,
    address: Optional[str] = None,
    timeout: Optional[float] = None,
) -> None:
    cli_ctx: CLIContext = ctx.obj
    try:
        spec: LaunchSpec = build_launch_spec(
            cli_ctx.login_name,
            cli_ctx.channel_names,
            token=token,
            app_id=app_id,
            app_secret=app_secret,
            address=address,
            authorization_timeout=timeout,
        )
        access_token = obtain_token(spec)
    except ArdlyOAuthError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    logger.info(f"Ready to join {spec.channel_names} as {spec.login_name}")
    click.echo(access_token)


@click.group()
@click.argument("login_name")
@click.option(
    "--channel",
    "channel_names",
    multiple=True,
    help="Channel to join (repeatable)",
)
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.pass_context
def cli(
    ctx: click.Context,
    login_name: str,
    channel_names: tuple,
    verbose: bool,
) -> None:
    """
    'ardly bot launcher - log in to Twitch chat.

    Pass an access token directly, or let the launcher obtain one by
    authorizing in the browser.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )
    ctx.obj = CLIContext(
        login_name=login_name,
        channel_names=list(channel_names),
        verbose=verbose,
    )


@cli.command()
@click.argument("token")
@click.pass_context
def token(ctx: click.Context, token: str) -> None:
    """Use an OAuth access token you already have."""
    _run(ctx, token=token)


@cli.command(name="get-token")
@click.argument("app_id")
@click.argument("app_secret")
@click.argument("address")
@click.option(
    "--timeout",
    type=float,
    default=None,
    help="Seconds to wait for browser authorization (default: 300)",
)
@click.pass_context
def get_token(
    ctx: click.Context,
    app_id: str,
    app_secret: str,
    address: str,
    timeout: Optional[float],
) -> None:
    """
    Obtain an access token through the browser.

    ADDRESS is the local server address; it needs to match the redirect
    URL set in the Twitch dev console.
    """
    _run(ctx, app_id=app_id, app_secret=app_secret, address=address, timeout=timeout)


def main() -> None:
    """CLI entry point."""
    cli()


if __name__ == "__main__":
    main()
