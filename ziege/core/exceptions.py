"""
Centralized exception hierarchy for Ziege.

Every failure raised by library code derives from ``ZiegeError`` so the CLI
can map it onto an exit status in one place.
"""


# ============================================================================
# Base Exceptions
# ============================================================================


class ZiegeError(Exception):
    """Base exception for all Ziege errors."""

    pass


class ConfigError(ZiegeError):
    """Settings file could not be parsed or contains invalid values."""

    pass


class UnsupportedPlatformError(ZiegeError):
    """Raised when the host OS or CPU has no published toolchain builds."""

    pass


# ============================================================================
# Release Index Exceptions
# ============================================================================


class ReleaseIndexError(ZiegeError):
    """Release index is malformed or lacks a required entry."""

    pass


# ============================================================================
# Filesystem Exceptions
# ============================================================================


class FilesystemError(ZiegeError):
    """Base exception for filesystem operations."""

    pass


class InstallCleanupError(FilesystemError):
    """
    Raised when cleanup after a failed or finished install step fails.

    Leftover archives or half-extracted directories would corrupt the next
    invocation, so this is never downgraded to a warning.
    """

    pass


class ArchiveExtractionError(FilesystemError):
    """Failed to extract an archive."""

    pass


class InsecureArchiveError(ArchiveExtractionError):
    """Archive member would be written outside of the extraction root."""

    pass


# ============================================================================
# Proxy Exceptions
# ============================================================================


class ProxyExecutionError(ZiegeError):
    """Proxied binary could not be spawned or did not exit cleanly."""

    pass


# ============================================================================
# User Input Exceptions
# ============================================================================


class UserInputError(ZiegeError):
    """Base exception for invalid requests made by the user."""

    pass


class ToolchainAlreadyInstalledError(UserInputError):
    """Raised when adding a version that is already installed."""

    def __init__(self, version: str):
        self.version = version
        super().__init__(f"Zig {version} is already installed")


class ToolchainNotInstalledError(UserInputError):
    """Raised when removing a version that is not installed."""

    def __init__(self, version: str):
        self.version = version
        super().__init__(f"Zig {version} is not installed")


class LauncherArgumentError(UserInputError):
    """Malformed or conflicting ``+`` launcher argument."""

    pass


class CommandUsageError(UserInputError):
    """Management command line does not match the command's usage."""

    def __init__(self, message: str, usage: str = ""):
        self.usage = usage
        super().__init__(message)
