"""
Test the ASA session wrapper (no real device connections)
"""

import socket

import pytest
from unittest.mock import MagicMock, patch

from netmiko.exceptions import (
    NetmikoAuthenticationException,
    NetmikoTimeoutException,
    ReadTimeout,
)
from paramiko.ssh_exception import SSHException

from gatekeeper.devices import AsaSession, SessionState, find_rejection
from gatekeeper.exceptions import (
    DeviceCommandError,
    DeviceDisconnectedError,
    DeviceTimeoutError,
)


COMMANDS = ["terminal pager 0", "show vpn-sessiondb full remote"]


@pytest.fixture
def session():
    return AsaSession(
        host="asa1.test",
        username="gatekeeper",
        password="secret",
        secret="enable-secret",
        timeout=10,
        command_timeout=60
    )


@pytest.fixture
def connection():
    conn = MagicMock()
    conn.enable.return_value = "asa1#"
    conn.send_command.side_effect = ["", "Username: alice | Index: 1 |"]
    return conn


class TestConnect:

    @patch('gatekeeper.devices.asa_session.ConnectHandler')
    def test_password_only_authentication(self, mock_connect, session, connection):
        mock_connect.return_value = connection
        session.run(COMMANDS)

        kwargs = mock_connect.call_args.kwargs
        assert kwargs['device_type'] == 'cisco_asa'
        assert kwargs['host'] == 'asa1.test'
        assert kwargs['secret'] == 'enable-secret'
        assert kwargs['use_keys'] is False
        assert kwargs['allow_agent'] is False
        assert kwargs['conn_timeout'] == 10

    @patch('gatekeeper.devices.asa_session.ConnectHandler')
    def test_authentication_failure_is_fatal(self, mock_connect, session):
        mock_connect.side_effect = NetmikoAuthenticationException("bad password")

        with pytest.raises(DeviceCommandError, match="Authentication failed"):
            session.run(COMMANDS)
        assert session.state == SessionState.ERROR

    @patch('gatekeeper.devices.asa_session.ConnectHandler')
    def test_connect_timeout_is_transient(self, mock_connect, session):
        mock_connect.side_effect = NetmikoTimeoutException("TCP connection timed out")

        with pytest.raises(DeviceTimeoutError):
            session.run(COMMANDS)

    @pytest.mark.parametrize("error", [
        SSHException("Error reading SSH protocol banner"),
        EOFError(),
        ConnectionResetError("reset by peer"),
    ])
    @patch('gatekeeper.devices.asa_session.ConnectHandler')
    def test_transport_errors_are_disconnects(self, mock_connect, session, error):
        mock_connect.side_effect = error

        with pytest.raises(DeviceDisconnectedError) as excinfo:
            session.run(COMMANDS)
        assert excinfo.value.host == "asa1.test"


class TestRun:

    @patch('gatekeeper.devices.asa_session.ConnectHandler')
    def test_returns_enable_then_command_outputs(self, mock_connect, session, connection):
        mock_connect.return_value = connection

        outputs = session.run(COMMANDS)

        assert outputs == ["asa1#", "", "Username: alice | Index: 1 |"]
        connection.enable.assert_called_once()
        assert [c.args[0] for c in connection.send_command.call_args_list] == COMMANDS
        assert connection.send_command.call_args.kwargs['read_timeout'] == 60

    @patch('gatekeeper.devices.asa_session.ConnectHandler')
    def test_disconnects_after_run(self, mock_connect, session, connection):
        mock_connect.return_value = connection

        session.run(COMMANDS)

        connection.disconnect.assert_called_once()
        assert session.state == SessionState.CLOSED

    @patch('gatekeeper.devices.asa_session.ConnectHandler')
    def test_fresh_connection_per_run(self, mock_connect, session):
        mock_connect.side_effect = lambda **kwargs: MagicMock(
            enable=MagicMock(return_value="asa1#"),
            send_command=MagicMock(side_effect=["", "Username: a | Index: 1 |"])
        )

        session.run(COMMANDS)
        session.run(COMMANDS)

        assert mock_connect.call_count == 2

    @patch('gatekeeper.devices.asa_session.ConnectHandler')
    def test_empty_report_is_a_disconnect(self, mock_connect, session, connection):
        connection.send_command.side_effect = ["", ""]
        mock_connect.return_value = connection

        with pytest.raises(DeviceDisconnectedError, match="No data received"):
            session.run(COMMANDS)
        connection.disconnect.assert_called_once()

    @patch('gatekeeper.devices.asa_session.ConnectHandler')
    def test_read_timeout_is_transient(self, mock_connect, session, connection):
        connection.send_command.side_effect = ["", ReadTimeout("pattern not detected")]
        mock_connect.return_value = connection

        with pytest.raises(DeviceTimeoutError):
            session.run(COMMANDS)
        connection.disconnect.assert_called_once()

    @patch('gatekeeper.devices.asa_session.ConnectHandler')
    def test_socket_timeout_is_transient(self, mock_connect, session, connection):
        connection.send_command.side_effect = ["", socket.timeout("timed out")]
        mock_connect.return_value = connection

        with pytest.raises(DeviceTimeoutError):
            session.run(COMMANDS)

    @patch('gatekeeper.devices.asa_session.ConnectHandler')
    def test_socket_closed_mid_command_is_disconnect(self, mock_connect, session, connection):
        connection.send_command.side_effect = ["", OSError("Socket is closed")]
        mock_connect.return_value = connection

        with pytest.raises(DeviceDisconnectedError):
            session.run(COMMANDS)

    @patch('gatekeeper.devices.asa_session.ConnectHandler')
    def test_rejected_command_is_fatal(self, mock_connect, session, connection):
        connection.send_command.side_effect = [
            "",
            "show vpn-sessiondb full remote\n    ^\nERROR: % Invalid input detected at '^' marker.",
        ]
        mock_connect.return_value = connection

        with pytest.raises(DeviceCommandError, match="Invalid input"):
            session.run(COMMANDS)

    @patch('gatekeeper.devices.asa_session.ConnectHandler')
    def test_enable_failure_is_fatal(self, mock_connect, session, connection):
        connection.enable.side_effect = ValueError("Failed to enter enable mode.")
        mock_connect.return_value = connection

        with pytest.raises(DeviceCommandError, match="enable mode"):
            session.run(COMMANDS)
        connection.send_command.assert_not_called()
        connection.disconnect.assert_called_once()


class TestFindRejection:

    def test_detects_error_line(self):
        output = "foo\nERROR: % Incomplete command\n"
        assert find_rejection(output) == "ERROR: % Incomplete command"

    def test_clean_output(self):
        assert find_rejection("Username: alice | Index: 1 |") is None
