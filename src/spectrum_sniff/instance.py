"""Single-instance guard.

The checksum ledger's check-then-insert is not atomic across processes, so
two running copies could import the same spectrum twice. A PID file in the
state directory keeps a second copy from starting. Stale files left by a
dead process are cleaned up automatically.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional, Union

from .exceptions import InstanceAlreadyRunningError

logger = logging.getLogger(__name__)


def _is_process_alive(pid: int) -> bool:
    """Check if a process with the given PID is still running."""
    try:
        os.kill(pid, 0)  # Signal 0 = check existence, don't actually kill
        return True
    except ProcessLookupError:
        return False
    except PermissionError:
        # Process exists but we can't signal it (different user)
        return True
    except OSError:
        return False


def read_lock(lock_path: Union[str, Path]) -> Optional[int]:
    """Return the PID recorded in the lock file, or None if absent or malformed."""
    path = Path(lock_path)
    try:
        return int(path.read_text().strip())
    except FileNotFoundError:
        return None
    except (OSError, ValueError) as exc:
        logger.warning("Malformed lock file at %s: %s", path, exc)
        return None


def acquire_instance_lock(lock_path: Union[str, Path]) -> Path:
    """Claim the lock for this process.

    Raises:
        InstanceAlreadyRunningError: If another live process holds the lock
    """
    path = Path(lock_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    pid = read_lock(path)
    if pid is not None and pid != os.getpid():
        if _is_process_alive(pid):
            raise InstanceAlreadyRunningError(pid, path)
        logger.info("Stale lock file found (process %d is dead), cleaning up", pid)

    path.write_text(f"{os.getpid()}\n")
    logger.debug("Instance lock written: %s", path)
    return path


def release_instance_lock(lock_path: Union[str, Path]) -> bool:
    """Remove the lock if this process owns it.

    Returns True if the file was removed.
    """
    path = Path(lock_path)
    if read_lock(path) != os.getpid():
        return False
    try:
        path.unlink()
        logger.debug("Instance lock removed: %s", path)
        return True
    except FileNotFoundError:
        return False


class InstanceLock:
    """Context manager around :func:`acquire_instance_lock`."""

    def __init__(self, lock_path: Union[str, Path]) -> None:
        self.lock_path = Path(lock_path)

    def __enter__(self) -> "InstanceLock":
        acquire_instance_lock(self.lock_path)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        release_instance_lock(self.lock_path)
