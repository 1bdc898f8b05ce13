"""
Cross-process install locking for Ziege.

Two invocations racing to install the same version would otherwise
download into the same destination. Installs are serialized per version
with a file lock; the caller must re-check whether the version appeared
while it was waiting, since directory existence stays the only record of
an installed version.

Usage:
    from ziege.core.locking import LockManager

    lock_manager = LockManager(locations.lock_dir)
    with lock_manager.install_lock("zig", "0.12.0"):
        if not root.exists():
            install()
"""

import logging
import re
from contextlib import contextmanager
from pathlib import Path

from filelock import FileLock, Timeout as LockTimeout

from ziege.core.exceptions import FilesystemError

logger = logging.getLogger(__name__)

DEFAULT_INSTALL_TIMEOUT = 600


class InstallLockTimeout(FilesystemError):
    """Raised when another process holds the install lock for too long."""

    pass


class LockManager:
    """
    Manages install locks.

    Attributes:
        lock_dir: Directory where lock files are stored
    """

    def __init__(self, lock_dir: Path):
        self.lock_dir = Path(lock_dir)
        self.lock_dir.mkdir(parents=True, exist_ok=True)

    def lock_path(self, family: str, version: str) -> Path:
        safe_version = re.sub(r"[^A-Za-z0-9._+-]", "_", version)
        return self.lock_dir / f"{family}-{safe_version}.lock"

    @contextmanager
    def install_lock(
        self, family: str, version: str, timeout: float = DEFAULT_INSTALL_TIMEOUT
    ):
        """
        Acquire the install lock for one version of a tool family.

        Args:
            family: Tool family name ('zig')
            version: Version being installed
            timeout: Maximum wait time in seconds

        Raises:
            InstallLockTimeout: If lock can't be acquired within timeout
        """
        lock_path = self.lock_path(family, version)
        lock = FileLock(lock_path, timeout=timeout)

        try:
            with lock:
                logger.debug(f"Acquired install lock: {lock_path}")
                yield
                logger.debug(f"Released install lock: {lock_path}")
        except LockTimeout as e:
            raise InstallLockTimeout(
                f"Could not acquire install lock for {family} {version} after "
                f"{timeout}s. Another ziege process may be installing it."
            ) from e
