"""
Cisco ASA Session

SSH session to a Cisco ASA via netmiko. Every call to run() opens a fresh
connection, enters enable mode, sends the commands and disconnects.

Transport failures are classified here into the Gatekeeper error taxonomy
so that callers never see netmiko or paramiko exceptions.
"""

from enum import Enum
from typing import Dict, List, Optional
import logging
import socket

from netmiko import ConnectHandler
from netmiko.exceptions import (
    NetmikoAuthenticationException,
    NetmikoTimeoutException,
    ReadTimeout,
)
from paramiko.ssh_exception import SSHException

from gatekeeper.exceptions import (
    DeviceCommandError,
    DeviceDisconnectedError,
    DeviceTimeoutError,
)


# ASA prefixes rejected commands with "ERROR:", e.g.
# "ERROR: % Invalid input detected at '^' marker."
ERROR_MARKERS = ("ERROR:", "% Invalid input", "% Incomplete command")


class SessionState(Enum):
    """Session states"""
    CLOSED = "closed"
    CONNECTED = "connected"
    ERROR = "error"


class AsaSession:
    """
    Run-to-completion command session against one ASA.

    Only password authentication is offered; SSH keys and agents are
    disabled.
    """

    DEVICE_TYPE = "cisco_asa"

    def __init__(
        self,
        host: str,
        username: str,
        password: str,
        secret: str = "",
        port: int = 22,
        timeout: float = 10,
        command_timeout: float = 60
    ):
        """
        Initialize ASA session.

        Args:
            host: Device hostname or IP
            username: SSH username
            password: SSH password
            secret: Enable secret
            port: SSH port
            timeout: Connection timeout in seconds
            command_timeout: Per-command read timeout in seconds
        """
        self.host = host
        self.username = username
        self.password = password
        self.secret = secret
        self.port = port
        self.timeout = timeout
        self.command_timeout = command_timeout

        self.connection = None
        self.state = SessionState.CLOSED
        self.logger = logging.getLogger(f"{__name__}.{host}")

    def _connect_params(self) -> Dict:
        return {
            'device_type': self.DEVICE_TYPE,
            'host': self.host,
            'username': self.username,
            'password': self.password,
            'secret': self.secret,
            'port': self.port,
            'timeout': self.timeout,
            'conn_timeout': self.timeout,
            'auth_timeout': self.timeout,
            'use_keys': False,
            'allow_agent': False,
        }

    def connect(self):
        """
        Open the SSH connection.

        Raises:
            DeviceCommandError: Authentication rejected
            DeviceTimeoutError: Connection timed out
            DeviceDisconnectedError: Connection refused or dropped
        """
        self.logger.debug(f"Connecting to {self.host}:{self.port}")
        try:
            self.connection = ConnectHandler(**self._connect_params())
        except Exception as e:
            self.state = SessionState.ERROR
            raise self._classify(e) from e

        self.state = SessionState.CONNECTED
        self.logger.info(f"Connected to {self.host}")

    def disconnect(self):
        """Close SSH connection"""
        if self.connection:
            try:
                self.connection.disconnect()
            except (OSError, EOFError, SSHException) as e:
                self.logger.debug(f"Ignoring error while disconnecting: {e}")
            self.connection = None
        self.state = SessionState.CLOSED

    def run(self, commands: List[str]) -> List[str]:
        """
        Enter enable mode and execute commands on a fresh connection.

        Args:
            commands: Commands to send after enable

        Returns:
            [enable_output, *command_outputs] in send order

        Raises:
            TransientDeviceError: Disconnect, empty read or timeout
            FatalDeviceError: Rejected credentials or commands
        """
        self.connect()
        try:
            outputs = [self._enable()]
            for command in commands:
                outputs.append(self._send(command))
            return outputs
        finally:
            self.disconnect()

    def _enable(self) -> str:
        try:
            return self.connection.enable()
        except ValueError as e:
            # netmiko raises ValueError when the enable prompt never appears
            self.state = SessionState.ERROR
            raise DeviceCommandError(f"Could not enter enable mode: {e}", host=self.host) from e
        except Exception as e:
            self.state = SessionState.ERROR
            raise self._classify(e) from e

    def _send(self, command: str) -> str:
        self.logger.debug(f"Sending '{command}'")
        try:
            output = self.connection.send_command(command, read_timeout=self.command_timeout)
        except Exception as e:
            self.state = SessionState.ERROR
            raise self._classify(e) from e

        if not output or not output.strip():
            if command.startswith("show "):
                # Zero bytes after a read: the ASA closed the channel
                self.state = SessionState.ERROR
                raise DeviceDisconnectedError(
                    f"No data received for '{command}'", host=self.host
                )
            return output or ""

        rejection = find_rejection(output)
        if rejection:
            self.state = SessionState.ERROR
            raise DeviceCommandError(
                f"Device rejected '{command}': {rejection}", host=self.host
            )

        return output

    def _classify(self, error: Exception) -> Exception:
        """Map a transport exception to the Gatekeeper taxonomy"""
        if isinstance(error, NetmikoAuthenticationException):
            return DeviceCommandError(f"Authentication failed: {error}", host=self.host)

        if isinstance(error, (NetmikoTimeoutException, ReadTimeout, socket.timeout, TimeoutError)):
            return DeviceTimeoutError(f"Execution expired: {error}", host=self.host)

        if isinstance(error, (SSHException, EOFError, OSError)):
            return DeviceDisconnectedError(
                f"Abruptly disconnected from device: {error}", host=self.host
            )

        return DeviceCommandError(f"Unexpected device error: {error!r}", host=self.host)

    def __repr__(self) -> str:
        return f"AsaSession(host={self.host!r}, port={self.port}, state={self.state.value})"


def find_rejection(output: str) -> Optional[str]:
    """
    Return the first error line in a command output, if any.

    Args:
        output: Raw command output

    Returns:
        The offending line or None
    """
    for line in output.splitlines():
        stripped = line.strip()
        if stripped.startswith(ERROR_MARKERS):
            return stripped
    return None
