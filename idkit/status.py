"""
Bridge session status

A session moves through these states as it is polled:
- waiting_for_connection: the World App has not fetched the request yet
- awaiting_confirmation: the World App fetched it, the user has not answered
- confirmed: the user approved and a proof came back (terminal)
- failed: the request ended with an AppError (terminal)

The machine has no timers. The caller decides how often to poll and when
to give up.
"""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, model_validator

from .types import AppError, Proof


class SessionState(str, Enum):
    WAITING_FOR_CONNECTION = "waiting_for_connection"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    CONFIRMED = "confirmed"
    FAILED = "failed"


TERMINAL_STATES = frozenset({SessionState.CONFIRMED, SessionState.FAILED})

# A fast user can confirm between two polls, so waiting may jump straight
# to confirmed.
VALID_TRANSITIONS = {
    SessionState.WAITING_FOR_CONNECTION: frozenset({
        SessionState.WAITING_FOR_CONNECTION,
        SessionState.AWAITING_CONFIRMATION,
        SessionState.CONFIRMED,
        SessionState.FAILED,
    }),
    SessionState.AWAITING_CONFIRMATION: frozenset({
        SessionState.AWAITING_CONFIRMATION,
        SessionState.CONFIRMED,
        SessionState.FAILED,
    }),
    SessionState.CONFIRMED: frozenset(),  # Terminal state
    SessionState.FAILED: frozenset(),     # Terminal state
}


class SessionStateError(Exception):
    """Raised on a state transition the protocol does not allow"""

    def __init__(self, current: SessionState, new: Optional[SessionState] = None):
        self.current = current
        self.new = new
        if new is None:
            message = (
                f"Session already reached terminal state '{current.value}'; "
                "create a new session for another attempt"
            )
        else:
            message = f"Invalid state transition: {current.value} -> {new.value}"
        super().__init__(message)


def check_transition(current: SessionState, new: SessionState) -> None:
    if current in TERMINAL_STATES:
        raise SessionStateError(current)
    if new not in VALID_TRANSITIONS[current]:
        raise SessionStateError(current, new)


class Status(BaseModel):
    """
    The status of a verification request.

    confirmed statuses carry the proof, failed statuses carry the AppError.
    """
    model_config = ConfigDict(frozen=True)

    state: SessionState
    proof: Optional[Proof] = None
    error: Optional[AppError] = None

    @model_validator(mode="after")
    def _check_payload(self) -> "Status":
        if (self.state is SessionState.CONFIRMED) != (self.proof is not None):
            raise ValueError("a proof is present exactly when the status is confirmed")
        if (self.state is SessionState.FAILED) != (self.error is not None):
            raise ValueError("an error is present exactly when the status is failed")
        return self

    @classmethod
    def waiting_for_connection(cls) -> "Status":
        return cls(state=SessionState.WAITING_FOR_CONNECTION)

    @classmethod
    def awaiting_confirmation(cls) -> "Status":
        return cls(state=SessionState.AWAITING_CONFIRMATION)

    @classmethod
    def confirmed(cls, proof: Proof) -> "Status":
        return cls(state=SessionState.CONFIRMED, proof=proof)

    @classmethod
    def failed(cls, error: AppError) -> "Status":
        return cls(state=SessionState.FAILED, error=error)

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES
