"""Typed value container."""

from datetime import timedelta
from typing import Any, Callable, Dict, List, Optional

from .conversions import (
    convert,
    to_bool,
    to_duration,
    to_float64,
    to_int,
    to_int64,
    to_list,
    to_map,
    to_string,
    unwrap,
)
from .exceptions import ConversionError
from .kinds import Kind


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


class Value:
    """One cell holding a raw value of a fixed kind.

    The write methods (:meth:`set`, :meth:`assign`) raise ``ConversionError``;
    the read accessors (``to_*``) never raise and fall back to the zero value
    of the requested kind.
    """

    __slots__ = ("kind", "raw", "unit")

    def __init__(self, kind: Kind, raw: Any = None, unit: Optional[timedelta] = None):
        """Initialize a value container.

        Args:
            kind: Fixed kind of the container
            raw: Initial value, converted into ``kind``  # (None means the zero value)
            unit: Unit applied to bare numbers  # (UnitDuration only, defaults to one second)
        """
        if not isinstance(kind, Kind):
            raise TypeError(f"kind must be a Kind, got {kind!r}")
        self.kind = kind
        self.unit = unit if unit is not None else timedelta(seconds=1)
        self.raw = kind.zero() if raw is None else self._coerce(raw)

    # One constructor per kind

    @classmethod
    def of_string(cls, value: str) -> "Value":
        return cls(Kind.STRING, value)

    @classmethod
    def of_bool(cls, value: bool) -> "Value":
        return cls(Kind.BOOL, value)

    @classmethod
    def of_int(cls, value: int) -> "Value":
        return cls(Kind.INT, value)

    @classmethod
    def of_int64(cls, value: int) -> "Value":
        return cls(Kind.INT64, value)

    @classmethod
    def of_float64(cls, value: float) -> "Value":
        return cls(Kind.FLOAT64, value)

    @classmethod
    def of_duration(cls, value: timedelta) -> "Value":
        return cls(Kind.DURATION, value)

    @classmethod
    def of_unit_duration(cls, value: Any, units: timedelta) -> "Value":
        """Create a UnitDuration holding ``value * units``.

        Args:
            value: Amount of ``units``  # (a timedelta is taken as is)
            units: Unit of the amount  # (e.g. timedelta(minutes=1))
        """
        return cls(Kind.UNIT_DURATION, value, unit=units)

    @classmethod
    def of_list(cls, value: List[str]) -> "Value":
        return cls(Kind.LIST, value)

    @classmethod
    def of_map(cls, value: Dict[str, str]) -> "Value":
        return cls(Kind.MAP, value)

    def _coerce(self, obj: Any) -> Any:
        obj = unwrap(obj)
        if self.kind is Kind.UNIT_DURATION and not isinstance(obj, timedelta):
            number = _as_number(obj)
            if number is not None:
                return self.unit * number
        return convert(self.kind, obj)

    def _put(self, parsed: Any, append: bool) -> None:
        # Always rebind, never mutate in place: readers hold no lock.
        if append and self.kind is Kind.LIST:
            self.raw = list(dict.fromkeys([*self.raw, *parsed]))
        elif append and self.kind is Kind.MAP:
            self.raw = {**self.raw, **parsed}
        else:
            self.raw = parsed

    def set(self, raw: str, append: bool = False) -> None:
        """Parse a string into this container's kind and store it in place.

        Args:
            raw: String form  # (as given on the command line or in the environment)
            append: Merge into the current list/map instead of replacing it

        Raises:
            ConversionError: If ``raw`` does not parse into the kind
        """
        if self.kind is Kind.STRING:
            self.raw = raw
            return
        if raw == "":
            self.raw = self.kind.zero()
            return
        self._put(self._coerce(raw), append)

    def assign(self, obj: Any, append: bool = False) -> None:
        """Convert any supported object into this container's kind and store it."""
        self._put(self._coerce(obj), append)

    def copy(self) -> "Value":
        """Return an independent deep copy."""
        return Value(self.kind, self.raw, unit=self.unit)

    # Predicates

    def is_kind(self, kind: Kind) -> bool:
        return kind.accepts(Kind.of(self.raw))

    def is_string(self) -> bool:
        return self.is_kind(Kind.STRING)

    def is_bool(self) -> bool:
        return self.is_kind(Kind.BOOL)

    def is_int(self) -> bool:
        return self.is_kind(Kind.INT)

    def is_int64(self) -> bool:
        return self.is_kind(Kind.INT64)

    def is_float64(self) -> bool:
        return self.is_kind(Kind.FLOAT64)

    def is_duration(self) -> bool:
        return self.is_kind(Kind.DURATION)

    def is_unit_duration(self) -> bool:
        return self.is_kind(Kind.UNIT_DURATION)

    def is_list(self) -> bool:
        return self.is_kind(Kind.LIST)

    def is_map(self) -> bool:
        return self.is_kind(Kind.MAP)

    # Total read accessors

    def _total(self, converter: Callable[[Any], Any], kind: Kind) -> Any:
        try:
            return converter(self.raw)
        except ConversionError:
            return kind.zero()

    def to_string(self) -> str:
        return self._total(to_string, Kind.STRING)

    def to_bool(self) -> bool:
        return self._total(to_bool, Kind.BOOL)

    def to_int(self) -> int:
        return self._total(to_int, Kind.INT)

    def to_int64(self) -> int:
        return self._total(to_int64, Kind.INT64)

    def to_float64(self) -> float:
        return self._total(to_float64, Kind.FLOAT64)

    def to_duration(self) -> timedelta:
        return self._total(to_duration, Kind.DURATION)

    def to_unit_duration(self) -> timedelta:
        return self._total(to_duration, Kind.UNIT_DURATION)

    def to_list(self) -> List[str]:
        return self._total(to_list, Kind.LIST)

    def to_map(self) -> Dict[str, str]:
        return self._total(to_map, Kind.MAP)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        return self.kind is other.kind and self.raw == other.raw

    __hash__ = None

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return f"Value({self.kind}, {self.raw!r})"
