"""
Proxy dispatch.

The ``ziege`` executable behaves like ``zig`` or ``zls`` when it is invoked
under that name (for example through a symlink), or when a ``+zig`` / ``+zls``
launcher argument is given. In every other case it runs the management CLI.

Arguments starting with ``+`` are launcher arguments and are never forwarded
to the proxied tool:

    +use-version=<v>   use <v> for this invocation only
    +set-version=<v>   use <v> and write it to .zigversion
    +zig / +zls        force compiler / language-server proxy mode
"""

import logging
import os
import subprocess
from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePath
from typing import List, Optional, Sequence, Tuple

from ziege.cli.context import AppContext
from ziege.cli.utils import print_error
from ziege.core.exceptions import (
    LauncherArgumentError,
    ProxyExecutionError,
    UserInputError,
)
from ziege.toolchain.release_index import ToolFamily
from ziege.toolchain.resolver import VERSION_ENV_VAR, LauncherOverrides

logger = logging.getLogger(__name__)

LAUNCHER_PREFIX = "+"
USE_VERSION_KEY = "use-version"
SET_VERSION_KEY = "set-version"
LOG_LEVEL_ENV_VAR = "ZIEGE_LOG_LEVEL"


class ProxyMode(Enum):
    """What this invocation acts as; chosen once at startup."""

    ZIG = "zig"
    ZLS = "zls"
    MANAGEMENT = "management"

    @property
    def family(self) -> Optional[ToolFamily]:
        if self is ProxyMode.ZIG:
            return ToolFamily.ZIG
        if self is ProxyMode.ZLS:
            return ToolFamily.ZLS
        return None


@dataclass(frozen=True)
class LauncherArguments:
    """Parsed ``+`` launcher arguments."""

    overrides: LauncherOverrides = field(default_factory=LauncherOverrides)
    mode: Optional[ProxyMode] = None


def partition_arguments(arguments: Sequence[str]) -> Tuple[List[str], List[str]]:
    """
    Split arguments into launcher arguments and arguments to forward.

    Both lists keep their original order.

    Returns:
        Tuple of (launcher_arguments, forwarded_arguments)
    """
    launcher: List[str] = []
    forwarded: List[str] = []
    for argument in arguments:
        if argument.startswith(LAUNCHER_PREFIX):
            launcher.append(argument)
        else:
            forwarded.append(argument)
    return launcher, forwarded


def parse_launcher_arguments(tokens: Sequence[str]) -> LauncherArguments:
    """
    Parse ``+`` launcher arguments.

    Raises:
        LauncherArgumentError: On unknown tokens, missing values or
            conflicting mode switches
    """
    use_version = None
    set_version = None
    mode = None

    for token in tokens:
        key, sep, value = token[len(LAUNCHER_PREFIX) :].partition("=")

        if key in (USE_VERSION_KEY, SET_VERSION_KEY):
            if not sep or not value:
                raise LauncherArgumentError(
                    f"{LAUNCHER_PREFIX}{key} requires a value, e.g. "
                    f"{LAUNCHER_PREFIX}{key}=0.12.0"
                )
            if key == USE_VERSION_KEY:
                use_version = value
            else:
                set_version = value
        elif key in (ProxyMode.ZIG.value, ProxyMode.ZLS.value) and not sep:
            requested = ProxyMode(key)
            if mode is not None and mode is not requested:
                raise LauncherArgumentError(
                    f"Conflicting launcher arguments: {LAUNCHER_PREFIX}{mode.value} "
                    f"and {LAUNCHER_PREFIX}{requested.value}"
                )
            mode = requested
        else:
            raise LauncherArgumentError(f"Unknown launcher argument: {token}")

    return LauncherArguments(
        overrides=LauncherOverrides(use_version=use_version, set_version=set_version),
        mode=mode,
    )


def mode_from_executable(executable: str) -> ProxyMode:
    """
    Derive the mode from the name this program was started as.

    The base name is compared case-insensitively with any ``.exe`` suffix removed.
    """
    name = PurePath(executable).name.lower()
    if name.endswith(".exe"):
        name = name[: -len(".exe")]

    for mode in (ProxyMode.ZIG, ProxyMode.ZLS):
        if name == mode.value:
            return mode
    return ProxyMode.MANAGEMENT


def select_mode(executable: str, launcher: LauncherArguments) -> ProxyMode:
    """Explicit ``+zig`` / ``+zls`` wins over the executable name."""
    if launcher.mode is not None:
        return launcher.mode
    return mode_from_executable(executable)


class ProxyDispatcher:
    """Resolves, installs and runs the proxied binary."""

    def __init__(self, context):
        """
        Args:
            context: AppContext for this invocation
        """
        self.context = context

    def dispatch(
        self,
        mode: ProxyMode,
        arguments: Sequence[str],
        overrides: Optional[LauncherOverrides] = None,
    ) -> int:
        """
        Run the proxied tool and return its exit code.

        Args:
            mode: ProxyMode.ZIG or ProxyMode.ZLS
            arguments: Arguments forwarded to the tool, in order
            overrides: Launcher version overrides

        Raises:
            ProxyExecutionError: If the binary is missing, cannot be spawned
                or is terminated by a signal
        """
        if mode.family is None:
            raise ValueError(f"{mode} is not a proxy mode")

        resolved = self.context.resolver.resolve(overrides)
        installer = self.context.installer
        installer.ensure_installed(resolved.version)

        binary = installer.binary_path(resolved.version, mode.family)
        if not binary.is_file():
            raise ProxyExecutionError(
                f"{mode.value} is not available for Zig {resolved.version}: "
                f"{binary} does not exist"
            )

        command = [str(binary), *arguments]
        environ = os.environ if self.context.environ is None else self.context.environ
        child_env = dict(environ)
        child_env[VERSION_ENV_VAR] = resolved.version

        logger.debug(f"Running: {' '.join(command)}")
        try:
            completed = subprocess.run(command, env=child_env)
        except OSError as e:
            raise ProxyExecutionError(f"Failed to start {binary}: {e}") from e

        if completed.returncode < 0:
            raise ProxyExecutionError(
                f"{binary.name} was terminated by signal {-completed.returncode}"
            )
        return completed.returncode


def _configure_logging(environ) -> None:
    level_name = environ.get(LOG_LEVEL_ENV_VAR, "INFO").upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO

    if level <= logging.DEBUG:
        format_str = "%(levelname)s [%(name)s] %(message)s"
    else:
        format_str = "%(message)s"

    # basicConfig writes to stderr, keeping the tool's stdout clean
    logging.basicConfig(level=level, format=format_str, force=True)


def run_proxy(
    mode: ProxyMode,
    arguments: Sequence[str],
    overrides: Optional[LauncherOverrides] = None,
    context=None,
) -> int:
    """
    Proxy-mode entry point.

    Returns:
        The child's exit code, or 1 if Ziege itself failed
    """
    _configure_logging(os.environ)

    try:
        with context or AppContext() as ctx:
            return ProxyDispatcher(ctx).dispatch(mode, arguments, overrides)
    except KeyboardInterrupt:
        logger.info("Operation cancelled by user")
        return 130  # Standard exit code for SIGINT
    except UserInputError as e:
        print_error(str(e))
        return 1
    except Exception as e:
        print_error(f"{mode.value} proxy failed", str(e))
        logger.debug("Unexpected error", exc_info=True)
        return 1
