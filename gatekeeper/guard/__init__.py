"""
Gatekeeper Guard Module

Single-instance execution guard.

Usage:
    from gatekeeper.guard import ExecutionGuard

    with ExecutionGuard("/var/run/gatekeeper.lock").hold():
        ...
"""

from .execution_lock import ExecutionGuard, LockHandle

__all__ = ['ExecutionGuard', 'LockHandle']
