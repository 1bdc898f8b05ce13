"""
Platform detection for Ziege.

Zig publishes builds for a small matrix of operating systems and CPU
architectures, and names them two different ways:

- download URLs use ``<os>-<arch>`` (e.g. ``linux-x86_64``)
- the release index keys entries by ``<arch>-<os>`` (e.g. ``x86_64-linux``)

Usage:
    from ziege.core.platform import detect_platform

    info = detect_platform()
    print(info.url_platform)   # linux-x86_64
    print(info.json_platform)  # x86_64-linux
"""

import functools
import platform
from dataclasses import dataclass

from ziege.core.exceptions import UnsupportedPlatformError

SUPPORTED_OS = ("linux", "macos", "windows")
SUPPORTED_ARCH = ("x86_64", "aarch64")

# Names reported by platform.system() / platform.machine() on other hosts
_OS_ALIASES = {"darwin": "macos"}
_ARCH_ALIASES = {"amd64": "x86_64", "x64": "x86_64", "arm64": "aarch64"}


@dataclass(frozen=True)
class PlatformInfo:
    """
    Host platform information.

    Attributes:
        os: Operating system ('linux', 'macos', 'windows')
        arch: CPU architecture ('x86_64', 'aarch64')
    """

    os: str
    arch: str

    @property
    def is_windows(self) -> bool:
        return self.os == "windows"

    @property
    def url_platform(self) -> str:
        """Platform segment used in download URLs, e.g. 'macos-aarch64'."""
        return f"{self.os}-{self.arch}"

    @property
    def json_platform(self) -> str:
        """Platform key used inside release indexes, e.g. 'aarch64-macos'."""
        return f"{self.arch}-{self.os}"

    @property
    def archive_extension(self) -> str:
        """Native archive format of published toolchain builds."""
        return "zip" if self.is_windows else "tar.xz"

    def executable_name(self, name: str) -> str:
        """
        Get the on-disk file name of an executable.

        Example:
            >>> PlatformInfo("windows", "x86_64").executable_name("zig")
            'zig.exe'
        """
        return f"{name}.exe" if self.is_windows else name

    def __str__(self) -> str:
        return self.url_platform


@functools.lru_cache(maxsize=1)
def detect_platform() -> PlatformInfo:
    """
    Detect current platform information.

    This function is cached - it only runs detection once per process.

    Returns:
        PlatformInfo for the running interpreter

    Raises:
        UnsupportedPlatformError: If no Zig builds exist for this host
    """
    return PlatformInfo(os=_detect_os(), arch=_detect_architecture())


def _detect_os() -> str:
    system = platform.system().lower()
    system = _OS_ALIASES.get(system, system)

    if system not in SUPPORTED_OS:
        raise UnsupportedPlatformError(f"Unsupported operating system: {system}")
    return system


def _detect_architecture() -> str:
    machine = platform.machine().lower()
    machine = _ARCH_ALIASES.get(machine, machine)

    if machine not in SUPPORTED_ARCH:
        raise UnsupportedPlatformError(f"Unsupported CPU architecture: {machine}")
    return machine


def clear_platform_cache():
    """
    Clear the platform detection cache.

    Forces the next call to detect_platform() to re-detect.
    """
    detect_platform.cache_clear()


__all__ = [
    "PlatformInfo",
    "SUPPORTED_OS",
    "SUPPORTED_ARCH",
    "detect_platform",
    "clear_platform_cache",
]
