"""
Shared fixtures: sample ASA reports, scripted device sessions and configs.
"""

import pytest

from gatekeeper.utils.config_loader import GatekeeperConfig


SAMPLE_REPORT = """
Session Type: Remote Detailed

Active sessions for all tunnel groups
------------------------------------------------------------------------
Username: alice | Index: 1 | Assigned IP: 10.8.0.12 | Public IP: 203.0.113.7 | Protocol: AnyConnect-Parent SSL-Tunnel | Group Policy: Engineering |
Username: bob | Index: 2 | Assigned IP: 10.8.0.13 | Public IP: 198.51.100.22 | Protocol: IKEv2 IPsec | Group Policy: Finance |
  Encryption: AES256 | Hashing: SHA256 |

Username: carol | Index: 5 | Assigned IP: 10.8.0.20 | Public IP: 192.0.2.99 | Protocol: AnyConnect-Parent | Group Policy: Engineering |
"""


class ScriptedDevice:
    """
    Device session that replays a script of results.

    Each entry is either a list of outputs returned by run(), or an
    exception instance raised by run().
    """

    def __init__(self, script, host="asa1.test"):
        self.script = list(script)
        self.host = host
        self.calls = []

    def run(self, commands):
        self.calls.append(list(commands))
        result = self.script.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def sample_report():
    return SAMPLE_REPORT


@pytest.fixture
def scripted_device():
    return ScriptedDevice


@pytest.fixture
def config(tmp_path):
    """Minimal valid configuration writing into tmp_path"""
    return GatekeeperConfig(
        device_hostname="asa1.test",
        device_user="gatekeeper",
        device_password="secret",
        device_enable="enable-secret",
        server_endpoint="http://sg-sync.test/vpn/sessions",
        max_attempts=3,
        lock_file=str(tmp_path / "gatekeeper.lock"),
        lock_timeout=0.1,
        lock_poll_interval=0.05,
        cache_file=str(tmp_path / "sessions.json")
    )
