"""
Directory structure management for Ziege.

Directory Structure:
    Data root (platform application-data directory, or $ZIEGE_HOME):
        - settings.yaml   : Optional user settings
        - pkg/zig/        : Installed Zig versions, one directory per version,
                            plus the cached Zig release index (index.json)
        - pkg/zls/        : Cached ZLS release index (index.json)
        - lock/           : Install lock files
"""

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ziege.core.exceptions import FilesystemError

logger = logging.getLogger(__name__)

HOME_ENV_VAR = "ZIEGE_HOME"
APP_NAME = "ziege"


def get_app_data_dir() -> Path:
    """
    Get the platform-specific application data directory.

    ``$ZIEGE_HOME`` takes precedence when set.

    Returns:
        Path: The data root.
            - Windows: %LOCALAPPDATA%\\ziege
            - macOS: ~/Library/Application Support/ziege
            - Linux: $XDG_DATA_HOME/ziege or ~/.local/share/ziege
    """
    override = os.environ.get(HOME_ENV_VAR)
    if override:
        return Path(override)

    if os.name == "nt":
        local_app_data = os.environ.get("LOCALAPPDATA")
        if not local_app_data:
            raise FilesystemError(
                "LOCALAPPDATA environment variable is not set. "
                "Cannot determine data directory."
            )
        return Path(local_app_data) / APP_NAME
    elif sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_NAME
    else:
        xdg_data_home = os.environ.get("XDG_DATA_HOME")
        if xdg_data_home:
            return Path(xdg_data_home) / APP_NAME
        return Path.home() / ".local" / "share" / APP_NAME


@dataclass(frozen=True)
class Locations:
    """Paths to the standard Ziege locations."""

    app_data: Path
    config_file: Path
    pkg_root: Path
    zig_pkgs: Path
    zls_pkgs: Path
    lock_dir: Path

    @classmethod
    def create(cls, root: Optional[Path] = None) -> "Locations":
        """
        Build the standard locations under ``root`` and create missing directories.

        Args:
            root: Data root. If None, uses get_app_data_dir().

        Raises:
            FilesystemError: If a directory cannot be created
        """
        app_data = Path(root) if root is not None else get_app_data_dir()
        pkg_root = app_data / "pkg"
        locations = cls(
            app_data=app_data,
            config_file=app_data / "settings.yaml",
            pkg_root=pkg_root,
            zig_pkgs=pkg_root / "zig",
            zls_pkgs=pkg_root / "zls",
            lock_dir=app_data / "lock",
        )

        logger.debug(f"Ziege root: {locations.app_data}")
        logger.debug(f"Zig packages: {locations.zig_pkgs}")
        logger.debug(f"ZLS packages: {locations.zls_pkgs}")

        for directory in (
            locations.app_data,
            locations.pkg_root,
            locations.zig_pkgs,
            locations.zls_pkgs,
            locations.lock_dir,
        ):
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise FilesystemError(f"Failed to create directory {directory}: {e}")

        return locations

    def zig_root(self, version: str) -> Path:
        """Directory holding the installed Zig ``version``."""
        return self.zig_pkgs / version
