"""Tests for the shared authorization flow state."""

import threading
import time

import pytest

from ardly.oauth.exceptions import ListenerBindError, ListenerError
from ardly.oauth.state import AuthState, FlowPhase


class TestFlowPhase:
    """Tests for FlowPhase ordering."""

    def test_phases_are_ordered(self) -> None:
        """Phases compare in flow order."""
        assert (
            FlowPhase.NOT_STARTED
            < FlowPhase.SERVER_RUNNING
            < FlowPhase.CODE_RECEIVED
            < FlowPhase.CLOSING
            < FlowPhase.CLOSED
        )


class TestAuthState:
    """Tests for AuthState transitions."""

    def test_default_state(self) -> None:
        """A new state has no token and no flags set."""
        state = AuthState()

        assert state.phase is FlowPhase.NOT_STARTED
        assert state.user_token == ""
        assert state.server_running is False
        assert state.can_close is False
        assert state.is_closed is False
        assert state.error is None

    def test_full_lifecycle(self) -> None:
        """Flags turn on in flow order and stay on."""
        state = AuthState()

        state.mark_server_running()
        assert state.server_running is True

        state.record_code("abc123")
        assert state.user_token == "abc123"
        assert state.phase is FlowPhase.CODE_RECEIVED

        state.request_close()
        assert state.can_close is True
        assert state.is_closed is False

        state.mark_closed()
        assert state.is_closed is True
        assert state.server_running is True
        assert state.user_token == "abc123"

    def test_phase_never_reverts(self) -> None:
        """A late write for an earlier phase does not move the phase back."""
        state = AuthState()
        state.request_close()

        state.mark_server_running()
        state.record_code("late")

        assert state.phase is FlowPhase.CLOSING
        assert state.can_close is True
        assert state.user_token == "late"

    def test_last_code_wins(self) -> None:
        """A second code replaces the first."""
        state = AuthState()
        state.mark_server_running()

        state.record_code("X")
        state.record_code("Y")

        assert state.user_token == "Y"

    def test_empty_code_rejected(self) -> None:
        """An empty code cannot be recorded."""
        state = AuthState()

        with pytest.raises(ValueError):
            state.record_code("")
        assert state.user_token == ""

    def test_first_failure_is_kept(self) -> None:
        """fail() keeps the first error."""
        state = AuthState()
        first = ListenerBindError("port busy")

        state.fail(first)
        state.fail(ListenerError("later"))

        assert state.error is first


class TestWaitUntil:
    """Tests for AuthState.wait_until."""

    def test_returns_true_when_already_satisfied(self) -> None:
        """No waiting when the predicate already holds."""
        state = AuthState()
        state.mark_server_running()

        assert state.wait_until(lambda s: s.server_running, timeout=0.01) is True

    def test_returns_false_on_deadline(self) -> None:
        """The deadline passing returns False."""
        state = AuthState()

        start = time.monotonic()
        assert state.wait_until(lambda s: s.server_running, timeout=0.05) is False
        assert time.monotonic() - start >= 0.04

    def test_wakes_on_write_from_other_thread(self) -> None:
        """A write from another thread wakes the waiter."""
        state = AuthState()
        writer = threading.Timer(0.05, state.record_code, args=("abc123",))
        writer.start()
        try:
            assert state.wait_until(lambda s: bool(s.user_token), timeout=5) is True
        finally:
            writer.join()

        assert state.user_token == "abc123"

    def test_raises_recorded_failure(self) -> None:
        """A listener failure is raised to the waiter."""
        state = AuthState()
        failer = threading.Timer(
            0.05, state.fail, args=(ListenerBindError("address in use"),)
        )
        failer.start()
        try:
            with pytest.raises(ListenerBindError, match="address in use"):
                state.wait_until(lambda s: s.server_running, timeout=5)
        finally:
            failer.join()
