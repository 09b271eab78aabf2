"""
Gatekeeper — VPN session publisher

Polls a Cisco ASA for the active remote-access VPN sessions and republishes
them to a downstream HTTP consumer, guarded so that only one run is active
at a time.
"""

from .__version__ import __version__

__all__ = [
    '__version__',
    'communication',
    'devices',
    'guard',
    'logging',
    'sessions',
    'utils'
]
