"""Conversions between the raw representations supported by property kinds.

Every function accepts plain Python objects, ``Value`` containers (unwrapped
transparently) and strings, and either returns the converted value or raises
:class:`~proptree.exceptions.ConversionError`.
"""

import math
import re
from datetime import timedelta
from decimal import Decimal
from typing import Any, Dict, List

from .exceptions import ConversionError
from .kinds import Kind

LIST_SEPARATOR = ","
MAP_SEPARATOR = ","
MAP_KEY_SEPARATOR = "="

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

TRUE_STRINGS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
FALSE_STRINGS = frozenset({"0", "f", "F", "FALSE", "false", "False"})

# Microseconds per duration unit
DURATION_UNITS = {
    "ns": 0.001,
    "us": 1,
    "µs": 1,  # U+00B5 micro sign
    "μs": 1,  # U+03BC greek mu
    "ms": 1_000,
    "s": 1_000_000,
    "m": 60 * 1_000_000,
    "h": 3_600 * 1_000_000,
    "d": 24 * 3_600 * 1_000_000,
    "w": 7 * 24 * 3_600 * 1_000_000,
    "l": 30 * 24 * 3_600 * 1_000_000,
    "y": 365 * 24 * 3_600 * 1_000_000,
}

_DURATION_TOKEN = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h|d|w|l|y)")


def unwrap(value: Any) -> Any:
    """Strip any number of ``Value`` containers around a raw value."""
    while isinstance(getattr(value, "kind", None), Kind) and hasattr(value, "raw"):
        value = value.raw
    return value


def parse_duration(text: str) -> timedelta:
    """Parse a duration string.

    Accepts the classic unit syntax (``300ms``, ``-1.5h``, ``2h45m``), the
    calendar units ``d``, ``w``, ``l`` (30 days) and ``y`` (365 days), and a bare
    number meaning seconds.

    Args:
        text: Duration string  # (e.g. "1h30m", "10s", "2w", "90")

    Returns:
        Parsed duration

    Raises:
        ConversionError: If the string is not a duration
    """
    raw = text
    text = text.strip()
    if not text:
        raise ConversionError(raw, Kind.DURATION, "empty duration")

    sign = 1
    if text[0] in "+-":
        sign = -1 if text[0] == "-" else 1
        text = text[1:]

    try:
        return timedelta(seconds=sign * float(text))
    except ValueError:
        pass
    except OverflowError as e:
        raise ConversionError(raw, Kind.DURATION, "duration out of range") from e

    micros = 0.0
    position = 0
    for match in _DURATION_TOKEN.finditer(text):
        if match.start() != position:
            break
        micros += float(match.group(1)) * DURATION_UNITS[match.group(2)]
        position = match.end()
    if position != len(text) or position == 0:
        raise ConversionError(raw, Kind.DURATION, "invalid duration format")
    try:
        return timedelta(microseconds=sign * micros)
    except OverflowError as e:
        raise ConversionError(raw, Kind.DURATION, "duration out of range") from e


def _trim_fraction(amount: int, unit: int) -> str:
    whole, fraction = divmod(amount, unit)
    if not fraction:
        return str(whole)
    digits = str(fraction).rjust(len(str(unit)) - 1, "0").rstrip("0")
    return f"{whole}.{digits}"


def format_duration(value: timedelta) -> str:
    """Render a duration as ``1h30m0s`` / ``1.5s`` / ``250ms``."""
    micros = (value.days * 86_400 + value.seconds) * 1_000_000 + value.microseconds
    if micros == 0:
        return "0s"
    sign = "-" if micros < 0 else ""
    micros = abs(micros)
    if micros < 1_000:
        return f"{sign}{micros}µs"
    if micros < 1_000_000:
        return f"{sign}{_trim_fraction(micros, 1_000)}ms"

    hours, rest = divmod(micros, 3_600_000_000)
    minutes, rest = divmod(rest, 60_000_000)
    result = ""
    if hours:
        result += f"{hours}h"
    if hours or minutes:
        result += f"{minutes}m"
    return f"{sign}{result}{_trim_fraction(rest, 1_000_000)}s"


def _format_float(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value.is_integer():
        return str(int(value))
    text = repr(value)
    if "e" in text or "E" in text:
        text = format(Decimal(text), "f")
    return text


def to_int(value: Any) -> int:
    """Convert to int; numeric strings are parsed as float then truncated."""
    value = unwrap(value)
    if isinstance(value, bool):
        raise ConversionError(value, Kind.INT)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise ConversionError(value, Kind.INT)
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text, 10)
        except ValueError:
            pass
        try:
            return int(float(text))
        except (ValueError, OverflowError) as e:
            raise ConversionError(value, Kind.INT) from e
    raise ConversionError(value, Kind.INT)


def to_int64(value: Any) -> int:
    """Convert to int and check the signed 64-bit range."""
    try:
        result = to_int(value)
    except ConversionError as e:
        raise ConversionError(e.value, Kind.INT64) from e
    if not INT64_MIN <= result <= INT64_MAX:
        raise ConversionError(value, Kind.INT64, "out of 64-bit range")
    return result


def to_float64(value: Any) -> float:
    """Convert to float."""
    value = unwrap(value)
    if isinstance(value, bool):
        raise ConversionError(value, Kind.FLOAT64)
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError as e:
            raise ConversionError(value, Kind.FLOAT64) from e
    raise ConversionError(value, Kind.FLOAT64)


def to_bool(value: Any) -> bool:
    """Convert to bool from a bool or one of the classic bool spellings."""
    value = unwrap(value)
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        if value in TRUE_STRINGS:
            return True
        if value in FALSE_STRINGS:
            return False
    raise ConversionError(value, Kind.BOOL)


def to_duration(value: Any) -> timedelta:
    """Convert to timedelta; plain numbers are seconds."""
    value = unwrap(value)
    if isinstance(value, timedelta):
        return value
    if isinstance(value, bool):
        raise ConversionError(value, Kind.DURATION)
    if isinstance(value, (int, float)):
        return timedelta(seconds=value)
    if isinstance(value, str):
        return parse_duration(value)
    raise ConversionError(value, Kind.DURATION)


def to_string(value: Any) -> str:
    """Convert to str; lists and maps are joined with the separators."""
    value = unwrap(value)
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _format_float(value)
    if isinstance(value, timedelta):
        return format_duration(value)
    if isinstance(value, (list, tuple)):
        return LIST_SEPARATOR.join(to_string(item) for item in value)
    if isinstance(value, dict):
        return MAP_SEPARATOR.join(f"{key}{MAP_KEY_SEPARATOR}{to_string(item)}" for key, item in value.items())
    raise ConversionError(value, Kind.STRING)


def to_list(value: Any) -> List[str]:
    """Convert to a new list of strings; "" becomes an empty list."""
    value = unwrap(value)
    if isinstance(value, (list, tuple)):
        return [to_string(item) for item in value]
    if isinstance(value, str):
        if value == "":
            return []
        return value.split(LIST_SEPARATOR)
    raise ConversionError(value, Kind.LIST)


def to_map(value: Any) -> Dict[str, str]:
    """Convert to a new dict of strings.

    A string is split into ``key=value`` pairs; a single malformed pair fails
    the whole conversion.
    """
    value = unwrap(value)
    if isinstance(value, dict):
        return {str(key): to_string(item) for key, item in value.items()}
    if isinstance(value, str):
        if value == "":
            return {}
        result = {}
        for pair in value.split(MAP_SEPARATOR):
            parts = pair.split(MAP_KEY_SEPARATOR, 1)
            if len(parts) != 2:
                raise ConversionError(value, Kind.MAP, f"invalid map item: {pair}")
            result[parts[0]] = parts[1]
        return result
    raise ConversionError(value, Kind.MAP)


CONVERTERS = {
    Kind.STRING: to_string,
    Kind.BOOL: to_bool,
    Kind.INT: to_int,
    Kind.INT64: to_int64,
    Kind.FLOAT64: to_float64,
    Kind.DURATION: to_duration,
    Kind.UNIT_DURATION: to_duration,
    Kind.LIST: to_list,
    Kind.MAP: to_map,
}


def convert(kind: Kind, value: Any) -> Any:
    """Convert ``value`` into the representation of ``kind``."""
    return CONVERTERS[kind](value)
