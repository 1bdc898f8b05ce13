"""
Version resolution.

Decides which Zig version applies to the current invocation. Sources are
checked in order and the first one that yields a version wins:

1. ``+use-version=<v>`` launcher argument (this invocation only)
2. ``+set-version=<v>`` launcher argument (also rewrites the pin file)
3. ``$ZIEGE_ZIG_VERSION``
4. ``.zigversion`` pin file in the working directory
5. The release index's current nightly, which is then pinned

The sentinel names ``master`` and ``nightly`` are accepted from every source
and expand to the index's current nightly version.
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Mapping, Optional, Tuple

from ziege.core.exceptions import FilesystemError
from ziege.core.filesystem import atomic_write
from ziege.toolchain.release_index import ReleaseIndex

logger = logging.getLogger(__name__)

PIN_FILENAME = ".zigversion"
VERSION_ENV_VAR = "ZIEGE_ZIG_VERSION"
NIGHTLY_SENTINELS = ("master", "nightly")


class VersionKind(Enum):
    """Whether a version tracks the nightly build or is an exact tag."""

    NIGHTLY = "nightly"
    PINNED = "pinned"


class VersionSource(Enum):
    """Where a resolved version came from."""

    USE_ONCE = "use-version"
    PERSIST = "set-version"
    ENVIRONMENT = "environment"
    PIN_FILE = "pin-file"
    INDEX_NIGHTLY = "index-nightly"


@dataclass(frozen=True)
class ResolvedVersion:
    """A version string together with how it was obtained."""

    version: str
    kind: VersionKind
    source: VersionSource

    def __str__(self) -> str:
        return self.version


@dataclass(frozen=True)
class LauncherOverrides:
    """Version overrides given as ``+`` launcher arguments."""

    use_version: Optional[str] = None
    set_version: Optional[str] = None


def is_sentinel(version: str) -> bool:
    return version in NIGHTLY_SENTINELS


def is_nightly_style(version: str, index: ReleaseIndex) -> bool:
    """
    Classify a version for download URL selection.

    A version is nightly-style if it is a sentinel name or has no full entry
    in the release index. Nightly-style archives are located by URL template
    instead of by index lookup.
    """
    if is_sentinel(version):
        return True
    return not index.contains(version)


class PinFile:
    """The single-line ``.zigversion`` file of a project directory."""

    def __init__(self, path: Path):
        self.path = Path(path)

    @classmethod
    def in_directory(cls, directory: Optional[Path] = None) -> "PinFile":
        directory = Path.cwd() if directory is None else Path(directory)
        return cls(directory / PIN_FILENAME)

    def read(self) -> Optional[str]:
        """
        Read the pinned version.

        Returns:
            The version with trailing CR/LF removed, or None if the file is
            missing or holds nothing but line endings.
        """
        try:
            content = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise FilesystemError(f"Cannot read pin file {self.path}: {e}") from e

        version = content.rstrip("\r\n")
        return version or None

    def write(self, version: str) -> None:
        """Replace the pin file contents with exactly ``version``."""
        try:
            atomic_write(self.path, version)
        except OSError as e:
            raise FilesystemError(f"Cannot write pin file {self.path}: {e}") from e
        logger.debug(f"Pinned Zig {version} in {self.path}")


class VersionResolver:
    """
    Resolves the effective Zig version.

    The release index is only requested through ``index_provider`` when a
    sentinel must be expanded or no other source yields a version, so a
    pinned invocation never touches the network.
    """

    def __init__(
        self,
        pin_file: PinFile,
        index_provider: Callable[[], ReleaseIndex],
        environ: Optional[Mapping[str, str]] = None,
    ):
        self.pin_file = pin_file
        self._index_provider = index_provider
        self._environ = environ

    @property
    def environ(self) -> Mapping[str, str]:
        return os.environ if self._environ is None else self._environ

    def expand(self, version: str) -> Tuple[str, VersionKind]:
        """
        Expand sentinel names to the current nightly version.

        Returns:
            Tuple of (version, VersionKind)
        """
        if is_sentinel(version):
            nightly = self._index_provider().nightly_version()
            logger.debug(f"'{version}' resolves to nightly {nightly}")
            return nightly, VersionKind.NIGHTLY
        return version, VersionKind.PINNED

    def resolve(self, overrides: Optional[LauncherOverrides] = None) -> ResolvedVersion:
        """
        Resolve the version for this invocation.

        Args:
            overrides: Launcher argument overrides, if any

        Returns:
            ResolvedVersion

        Raises:
            DownloadError: If the index must be refreshed and the refresh fails
            ReleaseIndexError: If the index lacks a nightly entry
            FilesystemError: If the pin file cannot be read or written
        """
        overrides = overrides or LauncherOverrides()

        if overrides.use_version:
            return self._resolved(overrides.use_version, VersionSource.USE_ONCE)

        if overrides.set_version:
            resolved = self._resolved(overrides.set_version, VersionSource.PERSIST)
            self.pin_file.write(resolved.version)
            return resolved

        env_version = self.environ.get(VERSION_ENV_VAR, "").strip()
        if env_version:
            return self._resolved(env_version, VersionSource.ENVIRONMENT)

        pinned = self.pin_file.read()
        if pinned:
            return self._resolved(pinned, VersionSource.PIN_FILE)

        nightly = self._index_provider().nightly_version()
        logger.info(f"No {PIN_FILENAME} found, pinning nightly Zig {nightly}")
        self.pin_file.write(nightly)
        return ResolvedVersion(nightly, VersionKind.NIGHTLY, VersionSource.INDEX_NIGHTLY)

    def _resolved(self, version: str, source: VersionSource) -> ResolvedVersion:
        version, kind = self.expand(version)
        logger.debug(f"Resolved Zig {version} from {source.value}")
        return ResolvedVersion(version, kind, source)
