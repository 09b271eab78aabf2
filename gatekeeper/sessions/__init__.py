"""
Gatekeeper Sessions Module

Parses and fetches the active VPN sessions of a device.

Usage:
    from gatekeeper.sessions import SessionFetcher, RetryBudget

    fetcher = SessionFetcher(asa_session)
    sessions = fetcher.fetch(RetryBudget(max_attempts=3))
"""

from .models import (
    FetchAttempt,
    FetchStatus,
    RetryBudget,
    SessionDelta,
    SessionMap,
    SessionRecord,
)
from .parser import HEADER_LINES, parse_line, parse_sessions
from .fetcher import COMMANDS, REPORT_INDEX, SessionFetcher
from .cache import SessionCache

__all__ = [
    'COMMANDS',
    'FetchAttempt',
    'FetchStatus',
    'HEADER_LINES',
    'REPORT_INDEX',
    'RetryBudget',
    'SessionCache',
    'SessionDelta',
    'SessionFetcher',
    'SessionMap',
    'SessionRecord',
    'parse_line',
    'parse_sessions',
]
