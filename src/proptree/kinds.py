"""Closed set of property kinds."""

from datetime import timedelta
from enum import Enum
from typing import Any, Optional


class Kind(Enum):
    """Kind of a property, fixed for its whole lifetime."""

    STRING = "String"
    BOOL = "Bool"
    INT = "Int"
    INT64 = "Int64"
    FLOAT64 = "Float64"
    DURATION = "Duration"
    UNIT_DURATION = "UnitDuration"
    LIST = "List"
    MAP = "Map"

    def __str__(self) -> str:
        return self.value

    @property
    def label(self) -> str:
        """Lowercase name used in mutation events."""
        return self.value.lower()

    def zero(self) -> Any:
        """Return a fresh zero value of this kind.

        Returns:
            Zero value  # ("", False, 0, 0.0, timedelta(0), [] or {})
        """
        if self is Kind.STRING:
            return ""
        if self is Kind.BOOL:
            return False
        if self in (Kind.INT, Kind.INT64):
            return 0
        if self is Kind.FLOAT64:
            return 0.0
        if self in (Kind.DURATION, Kind.UNIT_DURATION):
            return timedelta(0)
        if self is Kind.LIST:
            return []
        return {}

    def accepts(self, other: Optional["Kind"]) -> bool:
        """Check whether a value classified as ``other`` may be stored in this kind.

        A Duration is accepted by a UnitDuration property and an Int by an Int64
        or Float64 property; every other pair must match exactly.
        """
        if other is None:
            return False
        if other is self:
            return True
        if self is Kind.UNIT_DURATION and other is Kind.DURATION:
            return True
        return self in (Kind.INT64, Kind.FLOAT64) and other is Kind.INT

    @classmethod
    def of(cls, what: Any) -> Optional["Kind"]:
        """Classify a Python object.

        Args:
            what: Raw value or ``Value`` container

        Returns:
            The kind of ``what`` or None when it has no kind
        """
        kind = getattr(what, "kind", None)
        if isinstance(kind, Kind):
            return kind
        # bool before int, bool is an int subclass
        if isinstance(what, bool):
            return cls.BOOL
        if isinstance(what, int):
            return cls.INT
        if isinstance(what, float):
            return cls.FLOAT64
        if isinstance(what, str):
            return cls.STRING
        if isinstance(what, timedelta):
            return cls.DURATION
        if isinstance(what, (list, tuple)):
            return cls.LIST
        if isinstance(what, dict):
            return cls.MAP
        return None
