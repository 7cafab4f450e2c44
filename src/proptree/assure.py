"""Ready-made validators.

Plain predicates (``string_not_empty``) are passed as is; factories
(``string_has_prefix("x")``) return a predicate. Every predicate raises
``ValueError`` for a rejected value and ``TypeError`` for a value of the wrong
type. The first docstring line of each predicate is shown in usage output.
"""

import math
from datetime import timedelta
from typing import Any, Callable, Dict, List, Sequence

from .conversions import format_duration, unwrap
from .descriptor import ValidatorFunc


def _described(description: str) -> Callable[[ValidatorFunc], ValidatorFunc]:
    def decorate(func: ValidatorFunc) -> ValidatorFunc:
        func.__doc__ = description
        return func

    return decorate


def _expect(value: Any, types: Any, label: str) -> Any:
    value = unwrap(value)
    # bool is an int subclass, never a number here
    if isinstance(value, bool) and bool not in (types if isinstance(types, tuple) else (types,)):
        raise TypeError(f"invalid type, expected {label}, got bool")
    if not isinstance(value, types):
        raise TypeError(f"invalid type, expected {label}, got {type(value).__name__}")
    return value


def _string(value: Any) -> str:
    return _expect(value, str, "str")


def _int(value: Any) -> int:
    return _expect(value, int, "int")


def _float(value: Any) -> float:
    return _expect(value, (int, float), "float")


def _duration(value: Any) -> timedelta:
    return _expect(value, timedelta, "timedelta")


def _list(value: Any) -> List[str]:
    return _expect(value, (list, tuple), "list")


def _map(value: Any) -> Dict[str, str]:
    return _expect(value, dict, "dict")


# Strings


def string_not_empty(value: Any) -> None:
    """String must not be empty."""
    if _string(value) == "":
        raise ValueError("empty string")


def string_has_prefix(prefix: str) -> ValidatorFunc:
    """Ensure a string begins with ``prefix`` (case-sensitive)."""

    @_described(f"String must start with {prefix!r}.")
    def check(value: Any) -> None:
        text = _string(value)
        if not text.startswith(prefix):
            raise ValueError(f"string must have prefix {prefix!r}, got {text!r}")

    return check


def string_has_suffix(suffix: str) -> ValidatorFunc:
    """Ensure a string ends with ``suffix`` (case-sensitive)."""

    @_described(f"String must end with {suffix!r}.")
    def check(value: Any) -> None:
        text = _string(value)
        if not text.endswith(suffix):
            raise ValueError(f"string must have suffix {suffix!r}, got {text!r}")

    return check


def string_contains(substring: str) -> ValidatorFunc:
    @_described(f"String must contain {substring!r}.")
    def check(value: Any) -> None:
        text = _string(value)
        if substring not in text:
            raise ValueError(f"string must contain {substring!r}, got {text!r}")

    return check


def string_not_contains(substring: str) -> ValidatorFunc:
    @_described(f"String must not contain {substring!r}.")
    def check(value: Any) -> None:
        text = _string(value)
        if substring in text:
            raise ValueError(f"string must not contain {substring!r}, got {text!r}")

    return check


def string_length(length: int) -> ValidatorFunc:
    @_described(f"String must be exactly {length} characters long.")
    def check(value: Any) -> None:
        text = _string(value)
        if len(text) != length:
            raise ValueError(f"string must be {length} chars, got {len(text)}")

    return check


def string_not_length(length: int) -> ValidatorFunc:
    @_described(f"String must not be {length} characters long.")
    def check(value: Any) -> None:
        text = _string(value)
        if len(text) == length:
            raise ValueError(f"string must not be {length} chars")

    return check


def string_length_less_than(length: int) -> ValidatorFunc:
    """Ensure a string has at most ``length`` characters."""

    @_described(f"String must be at most {length} characters long.")
    def check(value: Any) -> None:
        text = _string(value)
        if len(text) > length:
            raise ValueError(f"string must be less than {length} chars, got {len(text)}")

    return check


def string_length_greater_than(length: int) -> ValidatorFunc:
    """Ensure a string has at least ``length`` characters."""

    @_described(f"String must be at least {length} characters long.")
    def check(value: Any) -> None:
        text = _string(value)
        if len(text) < length:
            raise ValueError(f"string must be greater than {length} chars, got {len(text)}")

    return check


# Bools


def bool_true(value: Any) -> None:
    """Bool must be true."""
    if not _expect(value, bool, "bool"):
        raise ValueError("value must be true")


def bool_false(value: Any) -> None:
    """Bool must be false."""
    if _expect(value, bool, "bool"):
        raise ValueError("value must be false")


# Ints, int64 values share the same representation


def int_positive(value: Any) -> None:
    """Int must be positive."""
    number = _int(value)
    if number <= 0:
        raise ValueError(f"value must be positive, got {number}")


def int_negative(value: Any) -> None:
    """Int must be negative."""
    number = _int(value)
    if number >= 0:
        raise ValueError(f"value must be negative, got {number}")


def int_greater_than(above: int) -> ValidatorFunc:
    """Ensure an int is strictly greater than ``above``."""

    @_described(f"Int must be greater than {above}.")
    def check(value: Any) -> None:
        number = _int(value)
        if number <= above:
            raise ValueError(f"value must be above {above}, got {number}")

    return check


def int_less_than(below: int) -> ValidatorFunc:
    """Ensure an int is strictly less than ``below``."""

    @_described(f"Int must be less than {below}.")
    def check(value: Any) -> None:
        number = _int(value)
        if number >= below:
            raise ValueError(f"value must be below {below}, got {number}")

    return check


def int_in_range(low: int, high: int) -> ValidatorFunc:
    """Ensure an int lies in ``[low, high]``."""

    @_described(f"Int must be between {low} and {high}.")
    def check(value: Any) -> None:
        number = _int(value)
        if not low <= number <= high:
            raise ValueError(f"value must be between {low} and {high}, got {number}")

    return check


int64_positive = int_positive
int64_greater_than = int_greater_than
int64_less_than = int_less_than
int64_in_range = int_in_range


# Floats


def float64_positive(value: Any) -> None:
    """Float must be positive."""
    number = _float(value)
    if not number > 0:
        raise ValueError(f"value must be positive, got {number}")


def float64_not_nan(value: Any) -> None:
    """Float must not be NaN."""
    if math.isnan(_float(value)):
        raise ValueError("value must not be NaN")


def float64_in_range(low: float, high: float) -> ValidatorFunc:
    @_described(f"Float must be between {low} and {high}.")
    def check(value: Any) -> None:
        number = _float(value)
        if not low <= number <= high:
            raise ValueError(f"value must be between {low} and {high}, got {number}")

    return check


def float64_greater_than(above: float) -> ValidatorFunc:
    @_described(f"Float must be greater than {above}.")
    def check(value: Any) -> None:
        number = _float(value)
        if not number > above:
            raise ValueError(f"value must be above {above}, got {number}")

    return check


def float64_less_than(below: float) -> ValidatorFunc:
    @_described(f"Float must be less than {below}.")
    def check(value: Any) -> None:
        number = _float(value)
        if not number < below:
            raise ValueError(f"value must be below {below}, got {number}")

    return check


# Durations


def duration_positive(value: Any) -> None:
    """Duration must be positive."""
    duration = _duration(value)
    if duration <= timedelta(0):
        raise ValueError(f"duration must be positive, got {format_duration(duration)}")


def duration_greater_than(above: timedelta) -> ValidatorFunc:
    @_described(f"Duration must be greater than {format_duration(above)}.")
    def check(value: Any) -> None:
        duration = _duration(value)
        if duration <= above:
            raise ValueError(f"duration must be above {format_duration(above)}, got {format_duration(duration)}")

    return check


def duration_less_than(below: timedelta) -> ValidatorFunc:
    @_described(f"Duration must be less than {format_duration(below)}.")
    def check(value: Any) -> None:
        duration = _duration(value)
        if duration >= below:
            raise ValueError(f"duration must be below {format_duration(below)}, got {format_duration(duration)}")

    return check


def duration_min(minimum: timedelta) -> ValidatorFunc:
    """Ensure a duration is at least ``minimum``."""

    @_described(f"Duration must be at least {format_duration(minimum)}.")
    def check(value: Any) -> None:
        duration = _duration(value)
        if duration < minimum:
            raise ValueError(
                f"duration must be at least {format_duration(minimum)}, got {format_duration(duration)}"
            )

    return check


def duration_max(maximum: timedelta) -> ValidatorFunc:
    """Ensure a duration does not exceed ``maximum``."""

    @_described(f"Duration must not exceed {format_duration(maximum)}.")
    def check(value: Any) -> None:
        duration = _duration(value)
        if duration > maximum:
            raise ValueError(
                f"duration must not exceed {format_duration(maximum)}, got {format_duration(duration)}"
            )

    return check


# Lists


def list_not_empty(value: Any) -> None:
    """List must not be empty."""
    if len(_list(value)) == 0:
        raise ValueError("list is empty")


def list_min_length(length: int) -> ValidatorFunc:
    @_described(f"List must have at least {length} items.")
    def check(value: Any) -> None:
        items = _list(value)
        if len(items) < length:
            raise ValueError(f"list must have at least {length} items, got {len(items)}")

    return check


def list_length(length: int) -> ValidatorFunc:
    @_described(f"List must have exactly {length} items.")
    def check(value: Any) -> None:
        items = _list(value)
        if len(items) != length:
            raise ValueError(f"list must have length {length}, got {len(items)}")

    return check


def list_contains(item: str) -> ValidatorFunc:
    @_described(f"List must contain {item!r}.")
    def check(value: Any) -> None:
        items = _list(value)
        if item not in items:
            raise ValueError(f"list must contain {item!r}, got {items}")

    return check


list_contains_key = list_contains


def list_not_contains(item: str) -> ValidatorFunc:
    @_described(f"List must not contain {item!r}.")
    def check(value: Any) -> None:
        if item in _list(value):
            raise ValueError(f"list cannot contain {item!r}")

    return check


# Maps


def map_not_empty(value: Any) -> None:
    """Map must not be empty."""
    if len(_map(value)) == 0:
        raise ValueError("map is empty")


def map_has_key(key: str) -> ValidatorFunc:
    @_described(f"Map must contain key {key!r}.")
    def check(value: Any) -> None:
        if key not in _map(value):
            raise ValueError(f"map must contain key {key!r}")

    return check


def map_has_no_key(key: str) -> ValidatorFunc:
    @_described(f"Map must not contain key {key!r}.")
    def check(value: Any) -> None:
        if key in _map(value):
            raise ValueError(f"map must not contain key {key!r}")

    return check


def map_has_keys(keys: Sequence[str]) -> ValidatorFunc:
    """Ensure a map contains every key of ``keys``."""
    keys = list(keys)

    @_described(f"Map must contain keys {keys}.")
    def check(value: Any) -> None:
        mapping = _map(value)
        missing = [key for key in keys if key not in mapping]
        if missing:
            raise ValueError(f"map must contain keys {keys}, missing {missing}")

    return check


def map_value_matches(key: str, expected: str) -> ValidatorFunc:
    """Ensure ``key`` exists in a map and maps to ``expected``."""

    @_described(f"Map key {key!r} must have value {expected!r}.")
    def check(value: Any) -> None:
        mapping = _map(value)
        if key not in mapping:
            raise ValueError(f"map key {key!r} does not exist")
        if mapping[key] != expected:
            raise ValueError(f"map key {key!r} must have value {expected!r}, got {mapping[key]!r}")

    return check


def map_length(length: int) -> ValidatorFunc:
    @_described(f"Map must have exactly {length} entries.")
    def check(value: Any) -> None:
        mapping = _map(value)
        if len(mapping) != length:
            raise ValueError(f"map must have length {length}, got {len(mapping)}")

    return check


def map_not_length(length: int) -> ValidatorFunc:
    @_described(f"Map must not have {length} entries.")
    def check(value: Any) -> None:
        if len(_map(value)) == length:
            raise ValueError(f"map must not have length {length}")

    return check
