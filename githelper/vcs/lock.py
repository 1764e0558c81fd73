"""
Per-repository exclusive locking.

Sync and undo mutate refs, the index and the stash; two of them interleaving
on the same repository can lose work. This module provides a lock file in
the repository's git directory that serializes such routines.
"""

import os
import time
import logging
from contextlib import contextmanager
from pathlib import Path

from ..errors import RepositoryLockError
from .gateway import GitGateway, RepositoryHandle

LOCK_FILE_NAME = "githelper.lock"

# Unreadable lock files older than this are considered abandoned
STALE_LOCK_AGE = 300


class RepositoryLock:
    """
    Exclusive lock file for one repository.

    The lock is created atomically with O_CREAT | O_EXCL and records the
    owning process id so that locks left behind by dead processes can be
    cleaned up.
    """

    def __init__(self, lock_file_path: Path, timeout: float = 30.0):
        """
        Initialize the lock.

        Args:
            lock_file_path: Path to the lock file
            timeout: Maximum time to wait for lock acquisition (seconds)
        """
        self.lock_file_path = lock_file_path
        self.timeout = timeout
        self.logger = logging.getLogger('githelper.lock')
        self._lock_acquired = False

    @property
    def acquired(self) -> bool:
        return self._lock_acquired

    def acquire(self) -> bool:
        """
        Acquire the lock.

        Returns:
            True if the lock was acquired, False if the timeout expired
        """
        start_time = time.time()

        while True:
            if self._try_create():
                self._lock_acquired = True
                self.logger.debug(f"Acquired lock: {self.lock_file_path}")
                return True

            if self._check_and_cleanup_stale_lock():
                continue

            if time.time() - start_time >= self.timeout:
                break
            time.sleep(0.1)

        self.logger.warning(f"Failed to acquire lock {self.lock_file_path} within {self.timeout}s")
        return False

    def release(self) -> None:
        """Release the lock if this instance holds it."""
        if not self._lock_acquired:
            return
        try:
            self.lock_file_path.unlink()
            self.logger.debug(f"Released lock: {self.lock_file_path}")
        except FileNotFoundError:
            self.logger.warning(f"Lock file already removed: {self.lock_file_path}")
        finally:
            self._lock_acquired = False

    def _try_create(self) -> bool:
        try:
            fd = os.open(self.lock_file_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            return False

        with os.fdopen(fd, 'w') as f:
            f.write(f"locked_by_pid_{os.getpid()}")
        return True

    def _check_and_cleanup_stale_lock(self) -> bool:
        """
        Remove the existing lock file if it is stale.

        A lock is stale when its owning process is gone. A lock whose owner
        cannot be read is only removed once it is older than STALE_LOCK_AGE;
        a live owner keeps its lock however long it runs.

        Returns:
            True if a stale lock was removed and acquisition can be retried
        """
        try:
            lock_content = self.lock_file_path.read_text()
            try:
                pid = int(lock_content.split("locked_by_pid_")[1])
            except (ValueError, IndexError):
                # Being written by its owner, or corrupt
                lock_age = time.time() - self.lock_file_path.stat().st_mtime
                if lock_age <= STALE_LOCK_AGE:
                    return False
                self.logger.warning(f"Cleaning up unreadable lock file: {self.lock_file_path}")
                self.lock_file_path.unlink()
                return True

            if not self._is_process_running(pid):
                self.logger.warning(f"Cleaning up lock from dead process {pid}: {self.lock_file_path}")
                self.lock_file_path.unlink()
                return True
        except FileNotFoundError:
            # Released between our attempt and this check
            return True

        return False

    @staticmethod
    def _is_process_running(pid: int) -> bool:
        try:
            os.kill(pid, 0)
        except ProcessLookupError:
            return False
        except PermissionError:
            return True
        except OSError:
            return False
        return True


@contextmanager
def repository_lock(gateway: GitGateway, handle: RepositoryHandle, timeout: float):
    """
    Hold the exclusive lock of ``handle`` for the duration of the block.

    Raises:
        RepositoryLockError: if the lock is not acquired within ``timeout``
    """
    lock = RepositoryLock(gateway.git_dir(handle) / LOCK_FILE_NAME, timeout=timeout)
    if not lock.acquire():
        raise RepositoryLockError(f"Repository {handle} is locked by another githelper process")
    try:
        yield lock
    finally:
        lock.release()
