"""
Session Data Models

Types shared by the report parser, the fetcher and the orchestrator.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional

from gatekeeper.exceptions import DeviceError


# One authenticated session: attribute label -> value, "Username" mandatory
SessionRecord = Dict[str, str]

# Parser output: username -> SessionRecord, in report order
SessionMap = Dict[str, SessionRecord]


class FetchStatus(Enum):
    """Outcome of a single fetch attempt"""
    SUCCESS = "success"
    TRANSIENT = "transient"
    FATAL = "fatal"


@dataclass
class FetchAttempt:
    """Typed result of one enable → pager → report → parse sequence"""
    status: FetchStatus
    sessions: Optional[SessionMap] = None
    error: Optional[DeviceError] = None

    @classmethod
    def success(cls, sessions: SessionMap) -> 'FetchAttempt':
        return cls(status=FetchStatus.SUCCESS, sessions=sessions)

    @classmethod
    def transient(cls, error: DeviceError) -> 'FetchAttempt':
        return cls(status=FetchStatus.TRANSIENT, error=error)

    @classmethod
    def fatal(cls, error: DeviceError) -> 'FetchAttempt':
        return cls(status=FetchStatus.FATAL, error=error)


@dataclass
class RetryBudget:
    """
    Shared retry counter for one fetch sequence.

    Disconnects and timeouts draw from the same budget. A fresh budget
    must be created for every fetch sequence.
    """
    max_attempts: int
    attempts_remaining: int = field(init=False)

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")
        self.attempts_remaining = self.max_attempts

    def consume(self) -> bool:
        """
        Record one transient failure.

        Returns:
            True if another attempt is allowed
        """
        if self.attempts_remaining > 0:
            self.attempts_remaining -= 1
        return self.attempts_remaining > 0

    @property
    def attempts_used(self) -> int:
        return self.max_attempts - self.attempts_remaining

    @property
    def exhausted(self) -> bool:
        return self.attempts_remaining == 0


@dataclass
class SessionDelta:
    """Usernames that appeared or disappeared since the cached snapshot"""
    connected: list = field(default_factory=list)
    disconnected: list = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.connected or self.disconnected)

    @classmethod
    def between(cls, previous: SessionMap, current: SessionMap) -> 'SessionDelta':
        return cls(
            connected=[user for user in current if user not in previous],
            disconnected=[user for user in previous if user not in current]
        )
