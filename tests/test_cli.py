"""Tests for the launcher CLI."""

from unittest import mock

import pytest
from click.testing import CliRunner

from ardly.cli import cli
from ardly.launch import AuthRequest, DirectToken
from ardly.oauth.exceptions import AuthorizationTimeoutError


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI test runner."""
    return CliRunner()


class TestTokenCommand:
    """Tests for 'ardly --channel NAME LOGIN token TOKEN'."""

    def test_token_is_echoed(self, runner: CliRunner) -> None:
        """A direct token is printed for the chat transport."""
        result = runner.invoke(
            cli, ["--channel", "somechannel", "ardlybot", "token", "abc123"]
        )

        assert result.exit_code == 0
        assert "abc123" in result.output

    def test_no_channels(self, runner: CliRunner) -> None:
        """Without --channel the launcher exits with an error."""
        result = runner.invoke(cli, ["ardlybot", "token", "abc123"])

        assert result.exit_code == 1
        assert "No channels were passed" in result.output


class TestGetTokenCommand:
    """Tests for 'ardly --channel NAME LOGIN get-token APP_ID APP_SECRET ADDRESS'."""

    @mock.patch("ardly.cli.obtain_token", return_value="T")
    def test_get_token_runs_flow(self, mock_obtain, runner: CliRunner) -> None:
        """get-token builds an AuthRequest and prints the obtained token."""
        result = runner.invoke(
            cli,
            [
                "--channel", "one",
                "--channel", "two",
                "ardlybot",
                "get-token", "app_id", "app_secret", "http://localhost:3000",
                "--timeout", "60",
            ],
        )

        assert result.exit_code == 0
        assert "T" in result.output
        spec = mock_obtain.call_args.args[0]
        assert spec.channel_names == ["one", "two"]
        assert isinstance(spec.token_source, AuthRequest)
        assert spec.token_source.config.authorization_timeout == 60.0

    @mock.patch(
        "ardly.cli.obtain_token",
        side_effect=AuthorizationTimeoutError("Timed out after 300s while awaiting user code"),
    )
    def test_get_token_failure(self, mock_obtain, runner: CliRunner) -> None:
        """A flow failure is reported and exits with status 1."""
        result = runner.invoke(
            cli,
            [
                "--channel", "somechannel",
                "ardlybot",
                "get-token", "app_id", "app_secret", "http://localhost:3000",
            ],
        )

        assert result.exit_code == 1
        assert "Error: Timed out" in result.output

    @mock.patch("ardly.cli.obtain_token")
    def test_token_command_uses_direct_token(self, mock_obtain, runner: CliRunner) -> None:
        """The token command never starts a flow."""
        mock_obtain.return_value = "abc123"

        result = runner.invoke(
            cli, ["--channel", "somechannel", "ardlybot", "token", "abc123"]
        )

        assert result.exit_code == 0
        assert mock_obtain.call_args.args[0].token_source == DirectToken("abc123")
