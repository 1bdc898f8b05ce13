"""
Remove command implementation.
"""

import logging

from ziege.cli.utils import print_error
from ziege.core.exceptions import ToolchainNotInstalledError

logger = logging.getLogger(__name__)


def run(args, context) -> int:
    """
    Run the remove command.

    Args:
        args: Parsed command-line arguments with:
            - target_version: Installed version to delete
        context: AppContext for this invocation

    Returns:
        Exit code (0 for success, 1 if missing or not installed)
    """
    if not args.target_version:
        print_error("Missing version", "Usage: ziege remove <version>")
        return 1

    version, _ = context.resolver.expand(args.target_version)

    try:
        removed = context.installer.uninstall(version)
    except ToolchainNotInstalledError as e:
        print_error(str(e), "Run 'ziege list' to see installed versions")
        return 1

    print(f"Removed Zig {version} ({removed})")
    return 0
