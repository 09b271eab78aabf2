"""
Retrying Session Fetcher

Drives the command sequence against the ASA and retries transient
failures against a shared RetryBudget.

Protocol per attempt (fresh connection each time):
    1. enable (performed by the device session)
    2. terminal pager 0
    3. show vpn-sessiondb full remote
    4. parse the report

Disconnects and timeouts are transient and share one budget. Rejected
commands, rejected credentials and malformed reports are fatal and are
never retried.
"""

from typing import List, Optional
import logging

from gatekeeper.exceptions import (
    FatalDeviceError,
    TransientDeviceError,
)
from gatekeeper.sessions.models import (
    FetchAttempt,
    FetchStatus,
    RetryBudget,
    SessionMap,
)
from gatekeeper.sessions.parser import parse_sessions


PAGER_COMMAND = "terminal pager 0"
REPORT_COMMAND = "show vpn-sessiondb full remote"
COMMANDS = [PAGER_COMMAND, REPORT_COMMAND]

# Outputs are [enable, pager, report]
REPORT_INDEX = 2


class SessionFetcher:
    """
    Fetch the active VPN sessions from a device session.

    The device session only needs a `run(commands) -> List[str]` method
    that opens a fresh connection per call and returns the enable output
    followed by one output per command.
    """

    def __init__(self, device, commands: Optional[List[str]] = None, report_index: int = REPORT_INDEX):
        """
        Initialize fetcher.

        Args:
            device: Device session (see AsaSession)
            commands: Commands sent after enable
            report_index: Position of the report in the returned outputs
        """
        self.device = device
        self.commands = list(commands) if commands is not None else list(COMMANDS)
        self.report_index = report_index
        self.host = getattr(device, 'host', None)
        self.logger = logging.getLogger(__name__)

    def attempt(self) -> FetchAttempt:
        """
        Run one full fetch sequence and classify its outcome.

        Returns:
            FetchAttempt with sessions on success, the error otherwise
        """
        try:
            outputs = self.device.run(self.commands)
        except TransientDeviceError as e:
            return FetchAttempt.transient(e)
        except FatalDeviceError as e:
            return FetchAttempt.fatal(e)

        try:
            report = outputs[self.report_index]
        except (IndexError, TypeError):
            report = None

        try:
            sessions = parse_sessions(report)
        except FatalDeviceError as e:
            if e.host is None:
                e.host = self.host
            return FetchAttempt.fatal(e)

        return FetchAttempt.success(sessions)

    def fetch(self, budget: RetryBudget) -> SessionMap:
        """
        Fetch sessions, retrying transient failures within the budget.

        Args:
            budget: Fresh RetryBudget for this sequence

        Returns:
            SessionMap keyed by username

        Raises:
            FatalDeviceError: Fatal failure, or budget exhausted
        """
        while True:
            result = self.attempt()

            if result.status == FetchStatus.SUCCESS:
                self.logger.debug(
                    f"Fetched {len(result.sessions)} sessions after "
                    f"{budget.attempts_used + 1} attempt(s)"
                )
                return result.sessions

            if result.status == FetchStatus.FATAL:
                raise result.error

            if budget.consume():
                self.logger.warning(
                    f"{result.error}, retrying "
                    f"(attempt {budget.attempts_used} of {budget.max_attempts})"
                )
                continue

            self.logger.error(
                f"Too many connection failures ({budget.max_attempts}) - aborting"
            )
            raise FatalDeviceError(
                f"Gave up after {budget.max_attempts} attempts: {result.error}",
                host=self.host
            ) from result.error
