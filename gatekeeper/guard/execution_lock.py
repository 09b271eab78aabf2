"""
Execution Guard

Single-instance guard for one Gatekeeper run, built on filelock.

The OS-level lock (filelock) provides mutual exclusion. An ownership
marker next to it (<lock_file>.owner) records which process holds the
lock, so that a lock taken over by someone else is detected instead of
silently overridden:

- marker of another live process (or another host) at acquire time
  -> LockIntegrityError
- marker token changed or removed while we held the lock
  -> LockIntegrityError on release
- marker of a dead local process -> reclaimed with a warning
"""

from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterator, Optional
import json
import logging
import os
import socket
import uuid

from filelock import FileLock, Timeout

from gatekeeper.exceptions import LockBusyError, LockIntegrityError


MARKER_SUFFIX = ".owner"


def _pid_alive(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True


class LockHandle:
    """
    Proof of ownership returned by ExecutionGuard.acquire().

    release() must be called exactly once; ExecutionGuard.hold() does it
    for you.
    """

    def __init__(self, guard: 'ExecutionGuard', lock: FileLock, token: str):
        self.guard = guard
        self.token = token
        self.held = True
        self._lock = lock

    def release(self):
        """
        Release the lock and verify we still owned it.

        Raises:
            RuntimeError: If the handle was already released
            LockIntegrityError: If the marker no longer names this run
        """
        if not self.held:
            raise RuntimeError(f"Lock {self.guard.lock_path} is not held by this run")

        problem = None
        try:
            marker = self.guard.read_marker()
            if marker is None:
                problem = "ownership marker disappeared"
            elif marker.get('token') != self.token:
                problem = f"ownership marker now names pid {marker.get('pid')}"
            else:
                self.guard.marker_path.unlink(missing_ok=True)
        except LockIntegrityError as e:
            problem = str(e)
        finally:
            self._lock.release()
            self.held = False
            self.guard.logger.debug(f"Released lock {self.guard.lock_path}")

        if problem:
            raise LockIntegrityError(f"Lock was stolen: {problem}", lock_path=str(self.guard.lock_path))


class ExecutionGuard:
    """
    Filesystem-backed mutual exclusion for a whole run.

    Acquisition is bounded by `timeout`; a busy lock means another run is
    in progress and this one should be skipped.
    """

    def __init__(self, lock_path: str, timeout: float = 1.0, poll_interval: float = 0.5):
        """
        Initialize execution guard.

        Args:
            lock_path: Lock file path
            timeout: Maximum seconds to wait for the lock
            poll_interval: Seconds between acquisition attempts
        """
        self.lock_path = Path(lock_path)
        self.marker_path = Path(str(self.lock_path) + MARKER_SUFFIX)
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.logger = logging.getLogger(__name__)

    def acquire(self) -> LockHandle:
        """
        Take the lock and stamp it with our ownership marker.

        Returns:
            LockHandle to release later

        Raises:
            LockBusyError: Another run holds the lock
            LockIntegrityError: Lock path unusable or owned by someone else
        """
        self.logger.debug(f"Grabbing lock {self.lock_path}")
        lock = FileLock(str(self.lock_path))

        try:
            lock.acquire(timeout=self.timeout, poll_interval=self.poll_interval)
        except Timeout as e:
            raise LockBusyError(
                "Could not acquire lock, another run is in progress",
                lock_path=str(self.lock_path)
            ) from e
        except OSError as e:
            raise LockIntegrityError(
                f"Lock file unusable: {e}", lock_path=str(self.lock_path)
            ) from e

        try:
            self._check_previous_owner()
            token = self._write_marker()
        except BaseException:
            lock.release()
            raise

        return LockHandle(self, lock, token)

    @contextmanager
    def hold(self) -> Iterator[LockHandle]:
        """
        Hold the lock for the duration of a with-block.

        Release runs on every exit path, and only if acquire() succeeded.
        """
        handle = self.acquire()
        try:
            yield handle
        finally:
            handle.release()

    def read_marker(self) -> Optional[Dict]:
        """
        Read the ownership marker.

        Returns:
            Marker dict, or None if there is no marker

        Raises:
            LockIntegrityError: If the marker exists but is unreadable
        """
        try:
            with open(self.marker_path, 'r', encoding='utf-8') as f:
                marker = json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            raise LockIntegrityError(
                f"Ownership marker {self.marker_path} is corrupt: {e}",
                lock_path=str(self.lock_path)
            ) from e

        if not isinstance(marker, dict) or 'token' not in marker:
            raise LockIntegrityError(
                f"Ownership marker {self.marker_path} is corrupt",
                lock_path=str(self.lock_path)
            )
        return marker

    def _check_previous_owner(self):
        marker = self.read_marker()
        if marker is None:
            return

        pid = marker.get('pid')
        host = marker.get('hostname')

        if host != socket.gethostname() or not isinstance(pid, int):
            raise LockIntegrityError(
                f"Lock is marked as held by pid {pid} on {host}",
                lock_path=str(self.lock_path)
            )

        if pid != os.getpid() and not _pid_alive(pid):
            self.logger.warning(
                f"Reclaiming stale lock left by pid {pid} "
                f"(acquired {marker.get('acquired_at')})"
            )
            return

        raise LockIntegrityError(
            f"Lock is marked as held by running pid {pid}",
            lock_path=str(self.lock_path)
        )

    def _write_marker(self) -> str:
        token = uuid.uuid4().hex
        marker = {
            'pid': os.getpid(),
            'hostname': socket.gethostname(),
            'token': token,
            'acquired_at': datetime.now(timezone.utc).isoformat()
        }

        temp_path = Path(str(self.marker_path) + f".{token}")
        try:
            with open(temp_path, 'w', encoding='utf-8') as f:
                json.dump(marker, f)
            os.replace(temp_path, self.marker_path)
        except OSError as e:
            temp_path.unlink(missing_ok=True)
            raise LockIntegrityError(
                f"Could not write ownership marker: {e}", lock_path=str(self.lock_path)
            ) from e

        return token
