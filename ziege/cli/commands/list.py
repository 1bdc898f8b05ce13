"""
List command implementation.

Prints the installed Zig versions, marking the one selected for the
current directory.
"""

import logging

from ziege.toolchain.resolver import VERSION_ENV_VAR, is_sentinel

logger = logging.getLogger(__name__)


def run(args, context) -> int:
    """
    Run the list command.

    The marked version comes from $ZIEGE_ZIG_VERSION or .zigversion only;
    listing never downloads a release index.

    Args:
        args: Parsed command-line arguments
        context: AppContext for this invocation

    Returns:
        Exit code (0 for success)
    """
    versions = context.installer.list_installed()
    if not versions:
        logger.info("No Zig versions installed")
        logger.info("Install one with: ziege add <version>")
        return 0

    current = _current_version(context)
    for version in versions:
        marker = "*" if version == current else " "
        print(f"{marker} {version}")

    return 0


def _current_version(context):
    environ = context.resolver.environ
    version = environ.get(VERSION_ENV_VAR, "").strip() or context.pin_file.read()
    if not version or is_sentinel(version):
        return None
    return version
