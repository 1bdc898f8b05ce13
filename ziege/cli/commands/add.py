"""
Add command implementation.

Downloads and installs a Zig version without pinning it.
"""

import logging

from ziege.cli.utils import ProgressPrinter, print_error
from ziege.core.exceptions import ToolchainAlreadyInstalledError

logger = logging.getLogger(__name__)


def run(args, context) -> int:
    """
    Run the add command.

    Args:
        args: Parsed command-line arguments with:
            - target_version: Version to install, or 'master' / 'nightly'
        context: AppContext for this invocation

    Returns:
        Exit code (0 for success, 1 if missing or already installed)
    """
    if not args.target_version:
        print_error("Missing version", "Usage: ziege add <version>")
        return 1

    version, _ = context.resolver.expand(args.target_version)

    progress = ProgressPrinter()
    try:
        result = context.installer.install(version, progress_callback=progress)
    except ToolchainAlreadyInstalledError as e:
        print_error(str(e), "Use 'ziege remove' first to reinstall it")
        return 1
    finally:
        progress.finish()

    print(f"Installed Zig {result.version} to {result.toolchain_path}")
    return 0
