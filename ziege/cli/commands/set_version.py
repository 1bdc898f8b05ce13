"""
Set-version command implementation.

Installs a Zig version if needed and pins it in ./.zigversion.
"""

import logging

from ziege.cli.utils import ProgressPrinter, print_error

logger = logging.getLogger(__name__)


def run(args, context) -> int:
    """
    Run the set-version command.

    Args:
        args: Parsed command-line arguments with:
            - target_version: Version to pin, or 'master' / 'nightly'
        context: AppContext for this invocation

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    if not args.target_version:
        print_error("Missing version", "Usage: ziege set-version <version>")
        return 1

    version, _ = context.resolver.expand(args.target_version)

    progress = ProgressPrinter()
    try:
        context.installer.ensure_installed(version, progress_callback=progress)
    finally:
        progress.finish()

    pin_file = context.pin_file
    pin_file.write(version)
    logger.debug(f"Wrote {pin_file.path}")

    print(f"Zig {version} pinned in {pin_file.path}")
    return 0
