"""Lifecycle callbacks attached to properties."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, List, Optional

from .exceptions import CallbackError

CallbackFunc = Callable[[Any], Optional[BaseException]]


class CallbackPhase(Enum):
    """Point of the property lifecycle at which a callback runs."""

    BEFORE_VERIFY = "before_verify"
    AFTER_VERIFY = "after_verify"
    BEFORE_READ = "before_read"
    AFTER_READ = "after_read"
    BEFORE_CHANGE = "before_change"
    AFTER_CHANGE = "after_change"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Callback:
    """A function bound to one lifecycle phase."""

    phase: CallbackPhase
    func: CallbackFunc


def run_callbacks(name: str, callbacks: Iterable[Callback], phase: CallbackPhase, value: Any) -> None:
    """Run every callback registered for ``phase`` in registration order.

    A callback fails by raising an ``Exception`` or by returning one. All
    callbacks run even when an earlier one failed.

    Args:
        name: Property name used in the error message
        callbacks: Callbacks of the property  # (any phase, filtered here)
        phase: Phase being executed
        value: Decoded value passed to each callback

    Raises:
        CallbackError: With every failure of this phase joined together
    """
    errors: List[BaseException] = []
    for callback in callbacks:
        if callback.phase is not phase:
            continue
        try:
            result = callback.func(value)
        except Exception as e:
            errors.append(e)
            continue
        if isinstance(result, BaseException):
            errors.append(result)
    if errors:
        raise CallbackError(name, phase, errors)
