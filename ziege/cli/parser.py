"""
Ziege CLI argument parser and program entry point.

This module implements the management command-line interface using argparse,
and main(), which decides between management mode and the zig/zls proxies.
"""

import argparse
import importlib
import logging
import sys
import traceback
from typing import Callable, List, Optional

from ziege.cli.context import AppContext
from ziege.cli.proxy import (
    ProxyMode,
    parse_launcher_arguments,
    partition_arguments,
    run_proxy,
    select_mode,
)
from ziege.cli.utils import print_error, print_warning
from ziege.core.exceptions import (
    CommandUsageError,
    LauncherArgumentError,
    UserInputError,
)

# Get version from package
try:
    from importlib.metadata import version

    __version__ = version("ziege")
except Exception:
    __version__ = "0.1.0"

logger = logging.getLogger(__name__)

# Command module mapping
COMMAND_MODULES = {
    "list": "ziege.cli.commands.list",
    "add": "ziege.cli.commands.add",
    "remove": "ziege.cli.commands.remove",
    "set-version": "ziege.cli.commands.set_version",
    "version": "ziege.cli.commands.version",
    "update": "ziege.cli.commands.update",
    "home": "ziege.cli.commands.home",
    "path": "ziege.cli.commands.path",
    "tool-path": "ziege.cli.commands.path",
}

# Commands that never touch the data directory
CONTEXT_FREE_COMMANDS = ("version",)


class UsageErrorParser(argparse.ArgumentParser):
    """ArgumentParser whose usage errors raise CommandUsageError instead of exiting."""

    def error(self, message):
        raise CommandUsageError(message, usage=self.format_usage())


class CLI:
    """Ziege management command-line interface."""

    def __init__(self, context_factory: Callable[[], AppContext] = AppContext):
        """
        Initialize CLI with argument parser.

        Args:
            context_factory: Builds the per-invocation AppContext
        """
        self.context_factory = context_factory
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """
        Create argument parser with all subcommands.

        Returns:
            Configured ArgumentParser instance
        """
        parser = UsageErrorParser(
            prog="ziege",
            description="Ziege - pinned Zig toolchains, installed on demand",
            epilog=(
                "Invoked as 'zig' or 'zls' (or with +zig / +zls), ziege runs the "
                "toolchain selected by +use-version=, +set-version=, "
                "$ZIEGE_ZIG_VERSION or .zigversion."
            ),
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )

        # Global options
        parser.add_argument(
            "--version", action="version", version=f"ziege {__version__}"
        )
        parser.add_argument(
            "--verbose", "-v", action="store_true", help="Enable verbose output"
        )
        parser.add_argument(
            "--quiet",
            "-q",
            action="store_true",
            help="Enable minimal output (errors only)",
        )

        subparsers = parser.add_subparsers(
            dest="command", help="Available commands", metavar="COMMAND"
        )

        subparsers.add_parser("list", help="List installed Zig versions")

        add_parser = subparsers.add_parser(
            "add",
            help="Install a Zig version",
            description="Download and install a Zig version (or 'master')",
        )
        add_parser.add_argument("target_version", nargs="?", metavar="VERSION")

        remove_parser = subparsers.add_parser(
            "remove", help="Remove an installed Zig version"
        )
        remove_parser.add_argument("target_version", nargs="?", metavar="VERSION")

        set_version_parser = subparsers.add_parser(
            "set-version",
            help="Pin a Zig version for the current directory",
            description="Install a Zig version if needed and write it to .zigversion",
        )
        set_version_parser.add_argument(
            "target_version", nargs="?", metavar="VERSION"
        )

        subparsers.add_parser("version", help="Show the ziege version")
        subparsers.add_parser("update", help="Refresh the Zig and ZLS release indexes")
        subparsers.add_parser("home", help="Show the ziege data directory")
        subparsers.add_parser(
            "path", help="Show the directory of the Zig version in use"
        )
        subparsers.add_parser("tool-path", help="Alias for 'path'")
        subparsers.add_parser("help", help="Show this help")

        return parser

    def parse_args(self, args: Optional[List[str]] = None):
        """
        Parse command-line arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Parsed arguments namespace
        """
        return self.parser.parse_args(args)

    def run(self, args: Optional[List[str]] = None) -> int:
        """
        Run CLI with given arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Exit code (0 for success, non-zero for error)
        """
        args = sys.argv[1:] if args is None else list(args)

        command = next((a for a in args if not a.startswith("-")), None)
        if command == "help":
            self.parser.print_help()
            return 0
        if command is not None and command not in COMMAND_MODULES:
            print_error(f"Unknown command: {command}")
            self.parser.print_help(sys.stderr)
            return 1

        try:
            parsed_args = self.parse_args(args)
        except CommandUsageError as e:
            print_error(str(e))
            sys.stderr.write(e.usage)
            return 1

        self._configure_logging(parsed_args)

        if not parsed_args.command:
            self.parser.print_help()
            return 1

        try:
            return self._dispatch_command(parsed_args)
        except KeyboardInterrupt:
            logger.info("Operation cancelled by user")
            return 130  # Standard exit code for SIGINT
        except UserInputError as e:
            print_error(str(e))
            return 1
        except Exception as e:
            print_error(f"'{parsed_args.command}' failed", str(e))
            if parsed_args.verbose:
                traceback.print_exc()
            return 1

    def _configure_logging(self, args):
        """
        Configure logging based on verbose/quiet flags.

        Args:
            args: Parsed arguments with verbose/quiet flags
        """
        if args.verbose:
            level = logging.DEBUG
            format_str = "%(levelname)s [%(name)s] %(message)s"
        elif args.quiet:
            level = logging.ERROR
            format_str = "%(levelname)s: %(message)s"
        else:
            level = logging.INFO
            format_str = "%(message)s"

        logging.basicConfig(
            level=level,
            format=format_str,
            force=True,  # Reconfigure if already configured
        )

    def _dispatch_command(self, args) -> int:
        """
        Dispatch to appropriate command handler.

        Args:
            args: Parsed arguments with command field

        Returns:
            Exit code from command handler
        """
        module = importlib.import_module(COMMAND_MODULES[args.command])

        if args.command in CONTEXT_FREE_COMMANDS:
            return module.run(args, None)

        with self.context_factory() as context:
            return module.run(args, context)


def main(argv: Optional[List[str]] = None):
    """
    Main entry point.

    Selects proxy or management mode from the executable name and ``+``
    launcher arguments, then exits with the resulting status.
    """
    argv = list(sys.argv if argv is None else argv)
    executable, arguments = argv[0], argv[1:]

    launcher_tokens, forwarded = partition_arguments(arguments)
    try:
        launcher = parse_launcher_arguments(launcher_tokens)
    except LauncherArgumentError as e:
        print_error(str(e))
        sys.exit(1)

    mode = select_mode(executable, launcher)

    if mode is ProxyMode.MANAGEMENT:
        if launcher_tokens:
            print_warning(
                "Launcher arguments only apply to zig/zls; ignoring "
                + " ".join(launcher_tokens)
            )
        sys.exit(CLI().run(forwarded))

    sys.exit(run_proxy(mode, forwarded, launcher.overrides))


if __name__ == "__main__":
    main()
