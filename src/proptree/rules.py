"""Behavior rules applied to the whole store or to one property."""

from enum import Enum
from typing import AbstractSet


class Rule(Enum):
    """Behavior toggle. The effective rule set of a property is global OR own."""

    PREVENT_CHANGE = "prevent_change"  # store() is silently rejected
    PANIC_ON_CHANGE = "panic_on_change"  # store() raises StorePanic
    NO_VALIDATIONS = "no_validations"
    NO_CALLBACKS = "no_callbacks"
    CONDEMNED_FROM_RESURRECTION = "condemned_from_resurrection"
    NO_MAPS = "no_maps"
    NO_LISTS = "no_lists"
    NO_FLAGS = "no_flags"
    NO_ENV = "no_env"


def effective(rule: Rule, global_rules: AbstractSet[Rule], own_rules: AbstractSet[Rule]) -> bool:
    """Return True when ``rule`` is set globally or on the property itself."""
    return rule in global_rules or rule in own_rules


class MergePolicy(Enum):
    """How a list or map write combines with the current value."""

    OVERWRITE = "overwrite"
    APPEND = "append"

    @property
    def append(self) -> bool:
        return self is MergePolicy.APPEND
