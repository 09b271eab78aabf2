"""
Session Cache

Best-effort JSON snapshot of the last published SessionMap. It is only
used for diagnostics (connected/disconnected users since the last run);
a missing or unreadable cache never fails a run.
"""

import json
import logging
import shutil
import tempfile
from pathlib import Path
from typing import Optional

from gatekeeper.sessions.models import SessionMap


class SessionCache:
    """
    Read and atomically write the cached session snapshot.
    """

    def __init__(self, cache_path: Optional[str]):
        """
        Initialize session cache.

        Args:
            cache_path: Path to the JSON cache file, None disables the cache
        """
        self.cache_path = Path(cache_path) if cache_path else None
        self.logger = logging.getLogger(__name__)

    @property
    def enabled(self) -> bool:
        return self.cache_path is not None

    def read(self) -> SessionMap:
        """
        Load the cached snapshot.

        Returns:
            Cached SessionMap, or an empty one if absent or corrupt
        """
        if not self.enabled:
            return {}

        try:
            with open(self.cache_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError:
            self.logger.debug(f"Cache file {self.cache_path} not found - starting from empty")
            return {}
        except (OSError, ValueError) as e:
            self.logger.debug(f"Cache file {self.cache_path} unreadable ({e}) - starting from empty")
            return {}

        if not isinstance(data, dict) or not all(isinstance(v, dict) for v in data.values()):
            self.logger.debug(f"Cache file {self.cache_path} has unexpected layout - starting from empty")
            return {}

        self.logger.debug(f"Cache contains {len(data)} entries")
        return data

    def write(self, sessions: SessionMap) -> bool:
        """
        Write the snapshot atomically (temp file, then rename).

        Args:
            sessions: SessionMap to store

        Returns:
            True if written, False if the cache is disabled or the write failed
        """
        if not self.enabled:
            return False

        temp_path = None
        try:
            self.cache_path.parent.mkdir(parents=True, exist_ok=True)
            temp_fd, temp_path = tempfile.mkstemp(
                dir=self.cache_path.parent,
                prefix=".gatekeeper_cache_",
                suffix=".json"
            )
            with open(temp_fd, 'w', encoding='utf-8') as f:
                json.dump(sessions, f, indent=2, sort_keys=True)

            shutil.move(temp_path, self.cache_path)
        except OSError as e:
            self.logger.warning(f"Could not write cache file {self.cache_path}: {e}")
            if temp_path:
                Path(temp_path).unlink(missing_ok=True)
            return False

        self.logger.debug(f"Cached {len(sessions)} sessions to {self.cache_path}")
        return True
