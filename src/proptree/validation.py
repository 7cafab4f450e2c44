"""Validator and verify-callback pipeline."""

from typing import AbstractSet, Any, Iterable, Tuple

from .callbacks import CallbackPhase, run_callbacks
from .descriptor import Property, ValidatorFunc
from .exceptions import ValidationError
from .logging import get_logger
from .rules import Rule, effective

logger = get_logger(__name__)


def check_validator(name: str, validator: ValidatorFunc, value: Any) -> None:
    """Run one validator against a decoded value.

    A validator fails by raising an ``Exception`` or by returning one.

    Args:
        name: Property name reported in the error
        validator: Predicate to run
        value: Decoded value of the property

    Raises:
        ValidationError: If the validator rejects the value
    """
    try:
        result = validator(value)
    except Exception as e:
        raise ValidationError(name, e) from e
    if isinstance(result, BaseException):
        raise ValidationError(name, result)


class PropertyValidator:
    """Validates registered properties against their validators and rules."""

    def __init__(self, global_rules: AbstractSet[Rule]):
        """Initialize validator.

        Args:
            global_rules: Store-wide rules  # (live set, read on every pass)
        """
        self.global_rules = global_rules

    def validate_all(self, entries: Iterable[Tuple[Property, Any]]) -> None:
        """Validate every property, stopping at the first failure.

        Args:
            entries: Pairs of descriptor and decoded value

        Raises:
            PropertyError: If a property carries a sticky error
            CallbackError: If a verify callback fails
            ValidationError: If a validator rejects a value
        """
        for prop, value in entries:
            self.validate_property(prop, value)

    def validate_property(self, prop: Property, value: Any) -> None:
        """Run the verify pipeline of a single property.

        Order: sticky error, before-verify callbacks, validators, after-verify callbacks.
        """
        error = prop.error
        if error is not None:
            raise error

        with_callbacks = not effective(Rule.NO_CALLBACKS, self.global_rules, prop.rules)
        if with_callbacks:
            run_callbacks(prop.name, prop.callbacks, CallbackPhase.BEFORE_VERIFY, value)

        if effective(Rule.NO_VALIDATIONS, self.global_rules, prop.rules):
            logger.debug("validation skipped", property=prop.name)
        else:
            for validator in prop.validators:
                check_validator(prop.name, validator, value)

        if with_callbacks:
            run_callbacks(prop.name, prop.callbacks, CallbackPhase.AFTER_VERIFY, value)
