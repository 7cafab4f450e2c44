"""Command line binding of property containers."""

import argparse
from typing import Any, List, Optional, Sequence

from .exceptions import ConversionError, FlagParseError
from .kinds import Kind
from .logging import get_logger
from .value import Value

logger = get_logger(__name__)


class ValueAction(argparse.Action):
    """Argparse action writing the option argument into a ``Value`` container."""

    def __init__(self, option_strings: List[str], dest: str, container: Value = None, append: bool = False, **kwargs):
        """Initialize action.

        Args:
            option_strings: Option strings of the argument
            dest: Namespace attribute recording the raw argument
            container: Container receiving the parsed value
            append: Merge lists/maps instead of replacing them
        """
        if container is None:
            raise ValueError("ValueAction requires a container")
        self.target = container
        self.append = append
        super().__init__(option_strings, dest, **kwargs)

    def __call__(self, parser: argparse.ArgumentParser, namespace: argparse.Namespace, values: Any, option_string: Optional[str] = None) -> None:
        try:
            self.target.set(values, append=self.append)
        except ConversionError as e:
            raise argparse.ArgumentError(self, str(e)) from e
        setattr(namespace, self.dest, values)


class PropertyArgumentParser(argparse.ArgumentParser):
    """Argument parser with one option per property and per alias.

    Options are accepted as ``-name value``, ``-name=value`` and ``--name value``.
    Bool options may be given bare. Parse failures raise ``FlagParseError``
    instead of exiting the process.
    """

    def __init__(self, prog: Optional[str] = None, list_append: bool = False, map_append: bool = False):
        """Initialize parser.

        Args:
            prog: Program name used in messages
            list_append: Append to list properties instead of replacing them
            map_append: Merge into map properties instead of replacing them
        """
        super().__init__(prog=prog, add_help=False, allow_abbrev=False)
        self.list_append = list_append
        self.map_append = map_append
        self._bound = 0

    def error(self, message: str) -> None:
        raise FlagParseError(message)

    def bind(self, name: str, container: Value, aliases: Sequence[str] = (), usage: str = "") -> None:
        """Add the options of one property.

        Args:
            name: Property name
            container: Live container of the property
            aliases: Alias names sharing the container
            usage: Help text
        """
        option_strings = []
        for option in [name, *aliases]:
            option_strings.extend([f"-{option}", f"--{option}"])

        kwargs = {}
        if container.kind is Kind.BOOL:
            kwargs.update(nargs="?", const="true")

        append = False
        if container.kind is Kind.LIST:
            append = self.list_append
        elif container.kind is Kind.MAP:
            append = self.map_append

        self._bound += 1
        self.add_argument(
            *option_strings,
            action=ValueAction,
            container=container,
            append=append,
            dest=f"property_{self._bound}",
            default=argparse.SUPPRESS,
            metavar=container.kind.value.upper(),
            help=usage.replace("%", "%%") or None,
            **kwargs,
        )

    def parse_into(self, args: Sequence[str], tolerate_unknown: bool = False) -> List[str]:
        """Parse ``args`` into the bound containers.

        Args:
            args: Command line arguments
            tolerate_unknown: Return unknown arguments instead of failing

        Returns:
            Unknown arguments  # (always empty unless tolerate_unknown)

        Raises:
            FlagParseError: On unknown options or unparsable values
        """
        if tolerate_unknown:
            _, unknown = self.parse_known_args(list(args))
            if unknown:
                logger.debug("unknown arguments ignored", arguments=unknown)
            return unknown
        self.parse_args(list(args))
        return []
