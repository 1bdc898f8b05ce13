"""
Path command implementation.

Prints the install directory of the Zig version selected for the current
directory. The version is not installed by this command.
"""

import logging

logger = logging.getLogger(__name__)


def run(args, context) -> int:
    """
    Run the path (tool-path) command.

    Args:
        args: Parsed command-line arguments
        context: AppContext for this invocation

    Returns:
        Exit code (0 for success)
    """
    resolved = context.resolver.resolve()
    toolchain_path = context.installer.toolchain_path(resolved.version)

    if not toolchain_path.is_dir():
        logger.warning(f"Zig {resolved.version} is not installed yet")

    print(toolchain_path)
    return 0
