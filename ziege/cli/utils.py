"""
Shared utilities for CLI commands.

Provides consistent error output and download progress reporting.
"""

import logging
import sys
from typing import Optional

from ziege.core.download import DownloadProgress

logger = logging.getLogger(__name__)


def print_error(message: str, details: Optional[str] = None):
    """
    Print error message to stderr in consistent format.

    Args:
        message: Main error message
        details: Optional additional details
    """
    print(f"ERROR: {message}", file=sys.stderr)
    if details:
        print(f"  {details}", file=sys.stderr)


def print_warning(message: str):
    """Print warning message to stderr."""
    print(f"WARNING: {message}", file=sys.stderr)


class ProgressPrinter:
    """
    Download progress callback that rewrites one stderr line.

    Only draws when stderr is a terminal, so redirected output stays clean.
    """

    def __init__(self, stream=None):
        self.stream = stream or sys.stderr
        self._active = False

    def __call__(self, progress: DownloadProgress) -> None:
        if not self.stream.isatty():
            return
        self.stream.write(f"\r  {progress}\033[K")
        self.stream.flush()
        self._active = True

    def finish(self) -> None:
        """Terminate the progress line, if one was drawn."""
        if self._active:
            self.stream.write("\n")
            self.stream.flush()
            self._active = False
