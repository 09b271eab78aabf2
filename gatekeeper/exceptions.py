"""
Gatekeeper Exceptions

Error taxonomy shared by the device, guard and publish layers.

Transient device errors are retried by the SessionFetcher up to the shared
retry budget. Everything else propagates to the RunOrchestrator, which maps
it to a RunOutcome.
"""

from typing import Optional


class GatekeeperError(Exception):
    """Base class for all Gatekeeper errors"""


class ConfigurationError(GatekeeperError):
    """Configuration file missing, unreadable or invalid"""


class DeviceError(GatekeeperError):
    """
    Failure talking to the VPN concentrator.

    Args:
        message: Human readable description
        host: Device hostname the failure relates to
    """

    def __init__(self, message: str, host: Optional[str] = None):
        super().__init__(message)
        self.host = host

    def __str__(self) -> str:
        message = super().__str__()
        if self.host:
            return f"{message} (device: {self.host})"
        return message


class TransientDeviceError(DeviceError):
    """Device currently unreachable; retryable within the budget"""


class DeviceDisconnectedError(TransientDeviceError):
    """SSH transport closed by the remote end, or nothing left to read"""


class DeviceTimeoutError(TransientDeviceError):
    """Connect or command execution exceeded its timeout"""


class FatalDeviceError(DeviceError):
    """Failure that will not heal by retrying; aborts the run"""


class DeviceCommandError(FatalDeviceError):
    """Device rejected a command or the credentials"""


class ParseError(FatalDeviceError):
    """Session report is absent or malformed"""


class LockError(GatekeeperError):
    """
    Execution lock could not be taken or kept.

    Args:
        message: Human readable description
        lock_path: Path of the lock file
    """

    def __init__(self, message: str, lock_path: Optional[str] = None):
        super().__init__(message)
        self.lock_path = lock_path

    def __str__(self) -> str:
        message = super().__str__()
        if self.lock_path:
            return f"{message} ({self.lock_path})"
        return message


class LockBusyError(LockError):
    """Another run holds the lock; this run should be skipped"""


class LockIntegrityError(LockError):
    """Lock state is inconsistent with our ownership (stolen or corrupted)"""


class PublishError(GatekeeperError):
    """
    Downstream endpoint rejected the session list or was unreachable.

    Args:
        message: Human readable description
        status_code: HTTP status if a response was received
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
