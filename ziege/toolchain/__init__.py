"""
Toolchain management module for Ziege.

This module provides functionality for:
- Release index caching
- Version resolution (launcher overrides, environment, pin file, nightly)
- Toolchain download, extraction and removal
"""

from ziege.toolchain.release_index import (
    ReleaseArtifactInfo,
    ReleaseIndex,
    ReleaseIndexCache,
    ToolFamily,
)
from ziege.toolchain.resolver import (
    LauncherOverrides,
    PinFile,
    ResolvedVersion,
    VersionKind,
    VersionResolver,
    VersionSource,
    is_nightly_style,
)
from ziege.toolchain.installer import InstallResult, ToolchainInstaller

__all__ = [
    # Release index
    "ToolFamily",
    "ReleaseIndex",
    "ReleaseIndexCache",
    "ReleaseArtifactInfo",
    # Resolver
    "LauncherOverrides",
    "PinFile",
    "ResolvedVersion",
    "VersionKind",
    "VersionResolver",
    "VersionSource",
    "is_nightly_style",
    # Installer
    "InstallResult",
    "ToolchainInstaller",
]
