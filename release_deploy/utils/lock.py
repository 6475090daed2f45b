"""Advisory lock guarding the release tree"""

import fcntl
import logging
import os
from pathlib import Path
from typing import Optional, Union

from ..api.exceptions import LockError, StorageError
from ..constants import LOCK_FILE_SUFFIX

logger = logging.getLogger(__name__)


class DeployLock:
    """Non-blocking exclusive flock on a sidecar file

    Deploy, rollback and configuration edits all take the same lock, so
    only one of them can touch a release tree at a time.
    """

    def __init__(self, config_path: Union[str, Path]):
        config_path = Path(config_path)
        self.path = config_path.with_name(config_path.name + LOCK_FILE_SUFFIX)
        self._handle = None

    @property
    def held(self) -> bool:
        return self._handle is not None

    def acquire(self) -> None:
        """
        Take the lock or fail immediately

        Raises:
            LockError: Another process holds the lock
            StorageError: Lock file cannot be opened
        """
        if self._handle is not None:
            return

        try:
            handle = open(self.path, "a+", encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Cannot open lock file {self.path}: {e}", str(self.path)) from e

        try:
            fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            handle.close()
            raise LockError(
                f"The command is already running in another process (lock: {self.path})"
            )

        handle.seek(0)
        handle.truncate()
        handle.write(str(os.getpid()))
        handle.flush()
        self._handle = handle
        logger.debug("Acquired lock %s", self.path)

    def release(self) -> None:
        if self._handle is None:
            return
        try:
            fcntl.flock(self._handle.fileno(), fcntl.LOCK_UN)
        finally:
            self._handle.close()
            self._handle = None
        logger.debug("Released lock %s", self.path)

    def owner(self) -> Optional[str]:
        """PID recorded by the last holder, if any"""
        try:
            return self.path.read_text(encoding="utf-8").strip() or None
        except OSError:
            return None

    def __enter__(self) -> 'DeployLock':
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
