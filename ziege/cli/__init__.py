"""
Ziege CLI module.

This module provides the management command-line interface and the
``zig`` / ``zls`` proxy entry point.
"""

from .parser import CLI, main
from . import utils

__all__ = ["CLI", "main", "utils"]
