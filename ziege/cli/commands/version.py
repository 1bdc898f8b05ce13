"""
Version command implementation.
"""

from ziege.cli.parser import __version__


def run(args, context) -> int:
    """Print the ziege version."""
    print(f"ziege {__version__}")
    return 0
