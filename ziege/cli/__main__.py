"""
Entry point for running Ziege CLI as a module.

Usage: python -m ziege.cli [command] [options]
"""

from .parser import main

if __name__ == "__main__":
    main()
