"""Utility functions for proptree."""

import re
from typing import Any, List

import yaml

TEST_ARG_PREFIX = "-test."


class _ConfigLoader(yaml.SafeLoader):
    """SafeLoader that also reads ``1e-3`` style scientific notation as float."""


_ConfigLoader.add_implicit_resolver(
    "tag:yaml.org,2002:float",
    re.compile(r"-? [1-9] ( \. [0-9]* [1-9] )? ( e [-+] [1-9] [0-9]* )? $", re.X),
    list("-+0123456789."),
)


def load_yaml(stream: Any) -> Any:
    """Load YAML content from a stream.

    Args:
        stream: Stream to read YAML from  # (file-like object or string)
    Returns:
        Parsed YAML content  # (None for an empty document)
    """
    return yaml.load(stream, Loader=_ConfigLoader)


def normalize_name(name: str) -> str:
    """Case-normalize a property or alias name."""
    return name.strip().lower()


def environment_names(name: str) -> List[str]:
    """Environment variable names checked for a property, in lookup order."""
    names = [name.upper()]
    if name not in names:
        names.append(name)
    return names


def filter_test_args(args: List[str]) -> List[str]:
    """Drop test-runner arguments such as ``-test.v`` from an argument list.

    Args:
        args: Command line arguments

    Returns:
        Arguments not starting with ``-test.``  # (order kept)
    """
    return [arg for arg in args if not arg.startswith(TEST_ARG_PREFIX)]
