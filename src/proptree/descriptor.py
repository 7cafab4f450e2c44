"""Property descriptor and mutation event."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, List, Optional, Set

from .callbacks import Callback
from .exceptions import PropertyError
from .kinds import Kind
from .rules import Rule

ValidatorFunc = Callable[[Any], Optional[BaseException]]


@dataclass
class Property:
    """Metadata of one registered property.

    The value itself lives in the store's value map; the descriptor only
    carries what is needed to validate, notify and guard it.
    """

    name: str
    kind: Kind
    usage: str = ""
    validators: List[ValidatorFunc] = field(default_factory=list)
    callbacks: List[Callback] = field(default_factory=list)
    rules: Set[Rule] = field(default_factory=set)
    errors: List[BaseException] = field(default_factory=list)

    @property
    def error(self) -> Optional[PropertyError]:
        """Sticky error of the property, or None."""
        if not self.errors:
            return None
        return PropertyError(self.name, self.errors)

    def attach_error(self, error: BaseException) -> None:
        self.errors.append(error)


@dataclass(frozen=True)
class Mutation:
    """A change to a property emitted on the mutation channel."""

    property: str
    kind: str
    way: str
    old: Any
    new: Any
    when: datetime
    error: Optional[BaseException] = None
