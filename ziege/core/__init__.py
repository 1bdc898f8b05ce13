"""
Core functionality for Ziege.

This package contains the foundational modules that other components depend on.
"""

from .directory import Locations, get_app_data_dir

from .platform import (
    PlatformInfo,
    detect_platform,
    clear_platform_cache,
)

from .exceptions import (
    ZiegeError,
    ConfigError,
    UnsupportedPlatformError,
    ReleaseIndexError,
    FilesystemError,
    InstallCleanupError,
    ArchiveExtractionError,
    InsecureArchiveError,
    ProxyExecutionError,
    UserInputError,
    ToolchainAlreadyInstalledError,
    ToolchainNotInstalledError,
    LauncherArgumentError,
)

__all__ = [
    "Locations",
    "get_app_data_dir",
    "PlatformInfo",
    "detect_platform",
    "clear_platform_cache",
    "ZiegeError",
    "ConfigError",
    "UnsupportedPlatformError",
    "ReleaseIndexError",
    "FilesystemError",
    "InstallCleanupError",
    "ArchiveExtractionError",
    "InsecureArchiveError",
    "ProxyExecutionError",
    "UserInputError",
    "ToolchainAlreadyInstalledError",
    "ToolchainNotInstalledError",
    "LauncherArgumentError",
]
