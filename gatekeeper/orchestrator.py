"""
Run Orchestrator

Sequences one Gatekeeper run:

    acquire guard -> read cache -> fetch sessions (with retries)
    -> publish -> write cache -> notify -> release guard

The guard is released on every exit path. Each terminal failure is
logged once here and mapped to a RunOutcome.
"""

from enum import Enum
from typing import Callable, Optional, TextIO
import logging
import sys

from gatekeeper.communication import RoomNotifier, SessionPublisher
from gatekeeper.devices import AsaSession
from gatekeeper.exceptions import (
    FatalDeviceError,
    LockBusyError,
    LockIntegrityError,
    PublishError,
)
from gatekeeper.guard import ExecutionGuard
from gatekeeper.sessions import (
    RetryBudget,
    SessionCache,
    SessionDelta,
    SessionFetcher,
    SessionMap,
)
from gatekeeper.utils.config_loader import GatekeeperConfig


class RunOutcome(Enum):
    """Result of one run"""
    COMPLETED = "completed"
    SKIPPED = "skipped"
    DEVICE_FAILED = "device_failed"
    LOCK_INTEGRITY = "lock_integrity"
    PUBLISH_FAILED = "publish_failed"
    CONFIG_ERROR = "config_error"

    @property
    def exit_code(self) -> int:
        return EXIT_CODES[self]


EXIT_CODES = {
    RunOutcome.COMPLETED: 0,
    RunOutcome.SKIPPED: 0,
    RunOutcome.DEVICE_FAILED: 1,
    RunOutcome.LOCK_INTEGRITY: 2,
    RunOutcome.PUBLISH_FAILED: 3,
    RunOutcome.CONFIG_ERROR: 4,
}


def device_from_config(config: GatekeeperConfig) -> AsaSession:
    return AsaSession(
        host=config.device_hostname,
        username=config.device_user,
        password=config.device_password,
        secret=config.device_enable,
        port=config.device_port,
        timeout=config.device_timeout,
        command_timeout=config.command_timeout
    )


class RunOrchestrator:
    """
    Run the guard, fetcher, publisher sequence once.

    Collaborators default to the real implementations built from the
    config; tests pass fakes.
    """

    def __init__(
        self,
        config: GatekeeperConfig,
        guard: Optional[ExecutionGuard] = None,
        device_factory: Optional[Callable[[], object]] = None,
        publisher: Optional[SessionPublisher] = None,
        notifier: Optional[RoomNotifier] = None,
        cache: Optional[SessionCache] = None,
        output: Optional[TextIO] = None
    ):
        """
        Initialize orchestrator.

        Args:
            config: Validated configuration
            guard: Execution guard (default: from lock_file)
            device_factory: Callable returning a device session
            publisher: Downstream publisher (default: from server_endpoint)
            notifier: Success notifier (default: from notify_* when enabled)
            cache: Session cache (default: from cache_file)
            output: Stream receiving the downstream response body
        """
        self.config = config
        self.guard = guard or ExecutionGuard(
            config.lock_file,
            timeout=config.lock_timeout,
            poll_interval=config.lock_poll_interval
        )
        self.device_factory = device_factory or (lambda: device_from_config(config))
        self.publisher = publisher or SessionPublisher(
            config.server_endpoint, timeout=config.publish_timeout
        )
        if notifier is None and config.notify_enabled:
            notifier = RoomNotifier(
                config.notify_endpoint,
                room_id=config.notify_room_id,
                verify_tls=config.notify_verify_tls
            )
        self.notifier = notifier
        self.cache = cache or SessionCache(config.cache_file)
        self.output = output if output is not None else sys.stdout
        self.logger = logging.getLogger(__name__)

    def run(self) -> RunOutcome:
        """
        Execute one run under the execution guard.

        Returns:
            RunOutcome of the run
        """
        try:
            with self.guard.hold():
                return self._run_locked()

        except LockBusyError as e:
            self.logger.warning(f"Skipping run: {e}")
            return RunOutcome.SKIPPED

        except LockIntegrityError as e:
            # Traceback carries any error the run itself raised before release
            self.logger.critical(f"Lock integrity violated, aborting: {e}", exc_info=True)
            return RunOutcome.LOCK_INTEGRITY

        finally:
            self.publisher.close()

    def _run_locked(self) -> RunOutcome:
        host = self.config.device_hostname
        previous = self.cache.read()

        device = self.device_factory()
        self.logger.info(f"Connecting to {host}, getting VPN sessions")

        try:
            sessions = SessionFetcher(device).fetch(RetryBudget(self.config.max_attempts))
        except FatalDeviceError as e:
            self.logger.critical(f"Could not read sessions from device: {e}")
            return RunOutcome.DEVICE_FAILED

        self._log_delta(previous, sessions)

        try:
            body = self.publisher.publish(sessions)
        except PublishError as e:
            self.logger.error(f"Could not publish sessions: {e}")
            return RunOutcome.PUBLISH_FAILED

        print(body, file=self.output)

        self.cache.write(sessions)

        if self.notifier is not None:
            self.notifier.notify_success(host)

        self.logger.info("Operation complete")
        return RunOutcome.COMPLETED

    def _log_delta(self, previous: SessionMap, current: SessionMap):
        if not self.cache.enabled:
            return

        delta = SessionDelta.between(previous, current)
        if delta.changed:
            self.logger.info(
                f"{len(current)} active sessions; connected: {delta.connected or '-'}; "
                f"disconnected: {delta.disconnected or '-'}"
            )
        else:
            self.logger.debug(f"{len(current)} active sessions, unchanged since last run")
