"""
Toolchain download and installation.

Installs a Zig version into ``<zig_pkgs>/<version>`` and, for nightly-style
versions, drops the matching ZLS binary next to it. The existence of the
versioned directory is the only record that a version is installed.

Workflow of ensure_installed():
1. Return immediately if the versioned directory exists
2. Acquire the per-version install lock and check again
3. Pick the archive URL (index entry, or URL template for nightly-style)
4. Download the archive into the package root
5. Extract with the platform's extraction strategy
6. Delete the archive (always, success or failure)
7. Install ZLS into the new directory (the directory is removed if this fails)
"""

import logging
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Callable, List, Optional, Tuple
from urllib.parse import urlsplit

import requests

from ziege.config.settings import Settings
from ziege.core.directory import Locations
from ziege.core.download import DownloadError, DownloadProgress, download_file
from ziege.core.exceptions import (
    FilesystemError,
    InstallCleanupError,
    ToolchainAlreadyInstalledError,
    ToolchainNotInstalledError,
    UserInputError,
)
from ziege.core.filesystem import make_executable, safe_rmtree
from ziege.core.locking import LockManager
from ziege.core.platform import PlatformInfo, detect_platform
from ziege.toolchain.release_index import ReleaseArtifactInfo, ReleaseIndex, ToolFamily
from ziege.toolchain.resolver import is_nightly_style
from ziege.toolchain.strategies import select_extraction_strategy
from ziege.toolchain.strategy import ExtractionStrategy

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[DownloadProgress], None]


@dataclass
class InstallResult:
    """Result of an ensure_installed() call."""

    version: str
    """Installed version"""

    toolchain_path: Path
    """Versioned install directory"""

    was_cached: bool
    """Whether the version was already installed (no download happened)"""


class ToolchainInstaller:
    """
    Installs, lists and removes Zig versions.

    Example:
        >>> installer = ToolchainInstaller(locations, session,
        ...                                zig_index_provider, zls_index_provider)
        >>> result = installer.ensure_installed("0.12.0")
        >>> print(result.toolchain_path)
    """

    def __init__(
        self,
        locations: Locations,
        session: requests.Session,
        zig_index_provider: Callable[[], ReleaseIndex],
        zls_index_provider: Callable[[], ReleaseIndex],
        settings: Optional[Settings] = None,
        platform: Optional[PlatformInfo] = None,
        extraction: Optional[ExtractionStrategy] = None,
        lock_manager: Optional[LockManager] = None,
    ):
        """
        Initialize installer.

        Args:
            locations: Standard Ziege locations
            session: HTTP session for this invocation
            zig_index_provider: Returns the (cached) Zig release index
            zls_index_provider: Returns the (cached) ZLS release index
            settings: URL templates and download options. Defaults if None.
            platform: Target platform. Detected if None.
            extraction: Extraction strategy. Chosen from the platform if None.
            lock_manager: Install lock manager. Uses locations.lock_dir if None.
        """
        self.locations = locations
        self.session = session
        self.settings = settings or Settings()
        self.platform = platform or detect_platform()
        self.extraction = extraction or select_extraction_strategy(self.platform)
        self.lock_manager = lock_manager or LockManager(locations.lock_dir)
        self._zig_index = zig_index_provider
        self._zls_index = zls_index_provider

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def toolchain_path(self, version: str) -> Path:
        """
        Get the install directory for ``version``.

        Raises:
            UserInputError: If the version string is not a valid directory name
        """
        if (
            not version
            or version in (".", "..")
            or "/" in version
            or "\\" in version
            or version.startswith(".")
        ):
            raise UserInputError(f"Invalid Zig version: {version!r}")
        return self.locations.zig_root(version)

    def binary_path(self, version: str, family: ToolFamily = ToolFamily.ZIG) -> Path:
        """Path of the ``zig`` or ``zls`` executable inside a toolchain."""
        return self.toolchain_path(version) / self.platform.executable_name(
            family.value
        )

    def is_installed(self, version: str) -> bool:
        return self.toolchain_path(version).is_dir()

    def list_installed(self) -> List[str]:
        """Installed versions, sorted by name."""
        return sorted(
            entry.name
            for entry in self.locations.zig_pkgs.iterdir()
            if entry.is_dir() and not entry.name.startswith(".")
        )

    def archive_source(self, version: str) -> Tuple[str, Optional[ReleaseArtifactInfo]]:
        """
        Determine where the archive for ``version`` is downloaded from.

        Returns:
            Tuple of (url, release info). Release info is None for
            nightly-style versions, whose URL is derived from the template.

        Raises:
            ReleaseIndexError: If an indexed version has no build for this platform
        """
        index = self._zig_index()
        if is_nightly_style(version, index):
            url = self.settings.zig_nightly_url_template.format(
                url_platform=self.platform.url_platform,
                version=version,
                archive_ext=self.platform.archive_extension,
            )
            return url, None

        info = index.release_info(version, self.platform.json_platform)
        return info.download_url, info

    # ------------------------------------------------------------------
    # Install / uninstall
    # ------------------------------------------------------------------

    def ensure_installed(
        self, version: str, progress_callback: Optional[ProgressCallback] = None
    ) -> InstallResult:
        """
        Install ``version`` unless it is already present.

        Args:
            version: Exact Zig version (sentinels must already be expanded)
            progress_callback: Optional callback for download progress

        Returns:
            InstallResult

        Raises:
            DownloadError: If any download fails
            ReleaseIndexError: If the index lacks required data
            ArchiveExtractionError: If the archive is corrupt
            InstallCleanupError: If temporary files cannot be removed
        """
        toolchain_path = self.toolchain_path(version)
        if toolchain_path.is_dir():
            logger.debug(f"Zig {version} already installed: {toolchain_path}")
            return InstallResult(version, toolchain_path, was_cached=True)

        with self.lock_manager.install_lock(ToolFamily.ZIG.value, version):
            if toolchain_path.is_dir():
                logger.info(f"Zig {version} was installed by another process")
                return InstallResult(version, toolchain_path, was_cached=True)

            self._install(version, toolchain_path, progress_callback)

        return InstallResult(version, toolchain_path, was_cached=False)

    def install(
        self, version: str, progress_callback: Optional[ProgressCallback] = None
    ) -> InstallResult:
        """
        Install ``version``, refusing if it is already installed.

        Raises:
            ToolchainAlreadyInstalledError: If the version is already installed
        """
        if self.is_installed(version):
            raise ToolchainAlreadyInstalledError(version)
        return self.ensure_installed(version, progress_callback)

    def uninstall(self, version: str) -> Path:
        """
        Remove an installed version.

        Returns:
            The removed directory

        Raises:
            ToolchainNotInstalledError: If the version is not installed
            FilesystemError: If the directory cannot be removed
        """
        toolchain_path = self.toolchain_path(version)
        if not toolchain_path.is_dir():
            raise ToolchainNotInstalledError(version)

        logger.info(f"Removing: {toolchain_path}")
        safe_rmtree(toolchain_path, require_prefix=self.locations.zig_pkgs)
        return toolchain_path

    def _install(
        self,
        version: str,
        toolchain_path: Path,
        progress_callback: Optional[ProgressCallback],
    ) -> None:
        url, info = self.archive_source(version)
        nightly = info is None
        archive_path = self.locations.zig_pkgs / _url_filename(url)

        expected_sha256 = None
        expected_size = None
        if info is not None and self.settings.verify_downloads:
            expected_sha256 = info.checksum
            expected_size = info.size_bytes

        try:
            download_file(
                self.session,
                url,
                archive_path,
                expected_sha256=expected_sha256,
                expected_size=expected_size,
                progress_callback=progress_callback,
                timeout=self.settings.http_timeout,
            )
            logger.info(f"Unpacking Zig release to: {toolchain_path}")
            self.extraction.extract(archive_path, toolchain_path)
        finally:
            _remove_archive(archive_path)

        try:
            self._install_companion(toolchain_path, nightly, progress_callback)
        except Exception:
            # A directory without its companion would pass as installed
            _remove_incomplete_install(toolchain_path, self.locations.zig_pkgs)
            raise

    def _install_companion(
        self,
        toolchain_path: Path,
        nightly: bool,
        progress_callback: Optional[ProgressCallback],
    ) -> None:
        if not nightly:
            logger.warning(
                f"Installing stable ZLS versions is not yet supported; "
                f"Zig {toolchain_path.name} was installed without ZLS."
            )
            return

        binary = self.platform.executable_name(ToolFamily.ZLS.value)
        url = self.settings.zls_url_template.format(
            version=self._zls_index().latest_version(),
            json_platform=self.platform.json_platform,
            binary=binary,
        )
        zls_path = toolchain_path / binary
        download_file(
            self.session,
            url,
            zls_path,
            progress_callback=progress_callback,
            timeout=self.settings.http_timeout,
        )
        make_executable(zls_path)


def _url_filename(url: str) -> str:
    name = PurePosixPath(urlsplit(url).path).name
    if not name:
        raise DownloadError(f"Cannot determine archive name from URL: {url}")
    return name


def _remove_archive(archive_path: Path) -> None:
    try:
        archive_path.unlink(missing_ok=True)
    except OSError as e:
        raise InstallCleanupError(
            f"Failed to remove downloaded archive {archive_path}: {e}"
        ) from e


def _remove_incomplete_install(toolchain_path: Path, pkgs_dir: Path) -> None:
    logger.debug(f"Removing incomplete install: {toolchain_path}")
    try:
        safe_rmtree(toolchain_path, require_prefix=pkgs_dir)
    except (FilesystemError, ValueError) as e:
        raise InstallCleanupError(
            f"Unable to remove {toolchain_path} after a failed ZLS install: {e}"
        ) from e


__all__ = ["InstallResult", "ToolchainInstaller"]
