"""EnvConf command line parser module."""

import argparse
import sys
from typing import Any, Dict, List, Mapping, Optional

import yaml

from .exceptions import EnvParseError
from .registry import Registry

INTRODUCTION = (
    "Configuration values are set using environment variables, for info please see the following list."
)


class EnvConfParser:
    """Startup helper that handles ``--help`` and ``--print`` around :meth:`Registry.parse`."""

    def __init__(self, registry: Registry, exit_on_error: bool = False, description: Optional[str] = None):
        """Initialize EnvConf parser.

        Args:
            registry: Registry holding the declared variables
            exit_on_error: Print parse failures to stderr and exit with status 1 instead of raising
            description: Program description printed above the variable listing by ``--help``
        """
        self.registry = registry
        self.exit_on_error = exit_on_error
        self.description = description

    def parse_args(
        self, args: Optional[List[str]] = None, environ: Optional[Mapping[str, str]] = None
    ) -> Dict[str, Any]:
        """Parse arguments, then the environment.

        Args:
            args: Command line arguments (defaults to sys.argv[1:])
            environ: Mapping to read variables from (defaults to os.environ)

        Returns:
            Parsed values keyed by variable name

        Raises:
            EnvParseError: If a value fails to parse and exit_on_error is False
        """
        if args is None:
            args = sys.argv[1:]

        parsed_args = self._parse_command_line(args)

        # Show help without touching the environment
        if parsed_args.help:
            self._show_help()
            sys.exit(0)

        try:
            self.registry.parse(environ)
        except EnvParseError as e:
            if not self.exit_on_error:
                raise
            print(str(e), file=sys.stderr)
            sys.exit(1)

        values = self.registry.values()

        if parsed_args.print_config:
            self._print_config()

        return values

    def _parse_command_line(self, args: List[str]) -> argparse.Namespace:
        """Parse command line arguments.

        Args:
            args: Command line arguments

        Returns:
            Parsed arguments namespace
        """
        parser = argparse.ArgumentParser(description=self.description, add_help=False)
        parser.add_argument("-h", "--help", action="store_true", help="Show environment variable help")
        parser.add_argument("--print", dest="print_config", action="store_true", help="Print final configuration")
        namespace, _ = parser.parse_known_args(args)
        return namespace

    def _show_help(self) -> None:
        if self.description:
            print(self.description)
            print("")
        print(INTRODUCTION)
        print("")
        print(self.registry.help())

    def _print_config(self) -> None:
        """Print parsed values in YAML format."""
        config = {}  # Dict[str, Any] (name -> YAML-safe value)
        for item in self.registry:
            if item.destination.is_set:
                value = item.destination.get()
                # Durations are shown the way they are written in the environment
                config[item.name] = item.kind.format(value) if item.kind.name == "duration" else value

        print("Final Configuration:")
        print("=" * 50)
        print(yaml.safe_dump(config, default_flow_style=False, indent=2, sort_keys=False))
