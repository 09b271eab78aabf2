"""
Gatekeeper Device Module

Provides the SSH session to the VPN concentrator.

Usage:
    from gatekeeper.devices import AsaSession

    session = AsaSession("asa1.example.net", "gatekeeper", "secret", secret="enable")
    outputs = session.run(["terminal pager 0", "show vpn-sessiondb full remote"])
"""

from .asa_session import AsaSession, SessionState, find_rejection

__all__ = [
    "AsaSession",
    "SessionState",
    "find_rejection",
]
