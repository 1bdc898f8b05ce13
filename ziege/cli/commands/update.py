"""
Update command implementation.

Downloads fresh copies of the Zig and ZLS release indexes regardless of
their age.
"""

import logging

from ziege.toolchain.release_index import ToolFamily

logger = logging.getLogger(__name__)


def run(args, context) -> int:
    """
    Run the update command.

    Args:
        args: Parsed command-line arguments
        context: AppContext for this invocation

    Returns:
        Exit code (0 for success)
    """
    zig_index = context.release_index(ToolFamily.ZIG, force_refresh=True)
    zls_index = context.release_index(ToolFamily.ZLS, force_refresh=True)

    print(f"Zig nightly: {zig_index.nightly_version()}")
    print(f"ZLS latest:  {zls_index.latest_version()}")
    return 0
