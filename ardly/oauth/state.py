"""Shared progress record for the authorization flow."""

import logging
import threading
from enum import IntEnum
from typing import Callable, Optional

from .exceptions import ArdlyOAuthError

logger = logging.getLogger(__name__)


class FlowPhase(IntEnum):
    """
    Listener-side progress of one authorization flow.

    Phases are ordered and only ever advance:

        NOT_STARTED -> SERVER_RUNNING -> CODE_RECEIVED -> CLOSING -> CLOSED

    CLOSING may be reached straight from any earlier phase when the
    coordinator gives up (timeout, failure).
    """

    NOT_STARTED = 0
    SERVER_RUNNING = 1
    CODE_RECEIVED = 2
    CLOSING = 3
    CLOSED = 4


class AuthState:
    """
    Mutable flow state shared by the callback listener and the coordinator.

    The listener writes the user token and the running/closed phases; the
    coordinator only requests closing. Every access holds the condition's
    lock for a short critical section, and every write wakes the waiters.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._phase = FlowPhase.NOT_STARTED
        self._user_token = ""
        self._error: Optional[ArdlyOAuthError] = None

    def __repr__(self) -> str:
        with self._cond:
            return (
                f"AuthState(phase={self._phase.name}, "
                f"has_token={bool(self._user_token)}, error={self._error!r})"
            )

    @property
    def phase(self) -> FlowPhase:
        with self._cond:
            return self._phase

    @property
    def user_token(self) -> str:
        with self._cond:
            return self._user_token

    @property
    def server_running(self) -> bool:
        return self.phase >= FlowPhase.SERVER_RUNNING

    @property
    def can_close(self) -> bool:
        return self.phase >= FlowPhase.CLOSING

    @property
    def is_closed(self) -> bool:
        return self.phase == FlowPhase.CLOSED

    @property
    def error(self) -> Optional[ArdlyOAuthError]:
        with self._cond:
            return self._error

    def _advance(self, phase: FlowPhase) -> None:
        # Caller holds the lock
        if phase > self._phase:
            logger.debug(f"Auth phase {self._phase.name} -> {phase.name}")
            self._phase = phase
        self._cond.notify_all()

    def mark_server_running(self) -> None:
        with self._cond:
            self._advance(FlowPhase.SERVER_RUNNING)

    def record_code(self, code: str) -> None:
        """Store an authorization code. A later code replaces an earlier one."""
        if not code:
            raise ValueError("authorization code cannot be empty")
        with self._cond:
            self._user_token = code
            self._advance(FlowPhase.CODE_RECEIVED)

    def request_close(self) -> None:
        with self._cond:
            self._advance(FlowPhase.CLOSING)

    def mark_closed(self) -> None:
        with self._cond:
            self._advance(FlowPhase.CLOSED)

    def fail(self, error: ArdlyOAuthError) -> None:
        """Record a listener failure; the first one is kept."""
        with self._cond:
            if self._error is None:
                self._error = error
            self._cond.notify_all()

    def wait_until(
        self, predicate: Callable[["AuthState"], bool], timeout: Optional[float]
    ) -> bool:
        """
        Block until ``predicate`` holds, the listener fails, or the deadline
        passes. The predicate runs with the lock held; the lock is
        re-entrant so it may use the public properties.

        Args:
            predicate: Condition on the state
            timeout: Seconds to wait, or None to wait indefinitely

        Returns:
            True if the predicate holds, False if the deadline passed

        Raises:
            ArdlyOAuthError: The listener failure, if one was recorded
        """
        with self._cond:
            self._cond.wait_for(
                lambda: self._error is not None or predicate(self), timeout
            )
            if self._error is not None:
                raise self._error
            return predicate(self)
