"""Plain-text usage listing of registered properties."""

import inspect
from typing import Any, Iterable, List, Optional, Sequence, Tuple

import docstring_parser

from .descriptor import Property

# Rendered defaults that carry no information
EMPTY_DEFAULTS = ("", '""', "[]", "{}")


def describe_validator(validator: Any) -> Optional[str]:
    """Get the one-line summary of a validator from its docstring.

    Args:
        validator: Validator function  # (plain predicate or closure from a factory)

    Returns:
        Summary without trailing period, or None when undocumented
    """
    docstring = inspect.getdoc(validator)
    if not docstring:
        return None
    parsed = docstring_parser.parse(docstring)
    if not parsed.short_description:
        return None
    return parsed.short_description.strip().rstrip(".")


def format_flag(name: str, default: str, aliases: Sequence[str]) -> str:
    flag = name if default in EMPTY_DEFAULTS else f"{name}[={default}]"
    if aliases:
        flag = "|-".join([*aliases, flag])
    return f"-{flag}"


def format_usage(prog: str, entries: Iterable[Tuple[Property, str, Sequence[str]]]) -> str:
    """Format the usage listing.

    Args:
        prog: Program name shown in the header
        entries: Descriptor, rendered default and aliases of each property  # (listed in the given order)

    Returns:
        Multi-line usage text  # (ends with a newline)
    """
    rows = []  # List[Tuple[str, str, Property]] (flag column, kind column, descriptor)
    for prop, default, aliases in entries:
        rows.append((format_flag(prop.name, default, sorted(aliases)), f"[{prop.kind}]", prop))

    flag_width = max((len(flag) for flag, _, _ in rows), default=0)
    kind_width = max((len(kind) for _, kind, _ in rows), default=0)

    lines: List[str] = [f"Usage of {prog}:"]
    for flag, kind, prop in rows:
        lines.append(f"   {flag:<{flag_width}}   {kind:<{kind_width}}   {prop.usage}".rstrip())
        for validator in prop.validators:
            summary = describe_validator(validator)
            if summary:
                lines.append(f"{' ' * (flag_width + 6)}- {summary}")
    return "\n".join(lines) + "\n"
