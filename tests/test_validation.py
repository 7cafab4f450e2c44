"""Test cases for validators, ready-made predicates and verify callbacks."""

import math
from datetime import timedelta

import pytest

from proptree import CallbackError, CallbackPhase, PropertyStore, Rule, ValidationError, assure
from proptree.validation import check_validator


def test_string_predicates():
    """Test the string predicates.

    Given accepted and rejected strings
    When running the predicates
    Then rejected strings raise ValueError and non-strings raise TypeError
    """
    assure.string_not_empty("x")
    assure.string_has_prefix("http")("https://example.com")
    assure.string_has_suffix(".yml")("config.yml")
    assure.string_length(3)("abc")
    assure.string_length_less_than(3)("abc")

    with pytest.raises(ValueError):
        assure.string_not_empty("")
    with pytest.raises(ValueError):
        assure.string_has_prefix("http")("ftp://example.com")
    with pytest.raises(ValueError):
        assure.string_not_contains("@")("user@host")
    with pytest.raises(ValueError):
        assure.string_length_greater_than(4)("abc")
    with pytest.raises(TypeError):
        assure.string_not_empty(42)


def test_number_predicates():
    """Test the int and float predicates.

    Given numbers inside and outside the accepted ranges
    When running the predicates
    Then out-of-range numbers raise ValueError and bools raise TypeError
    """
    assure.int_positive(1)
    assure.int_in_range(1, 10)(10)
    assure.int64_greater_than(2**40)(2**41)
    assure.float64_in_range(0.0, 1.0)(0.5)
    assure.float64_positive(3)  # ints are accepted as floats

    with pytest.raises(ValueError):
        assure.int_positive(0)
    with pytest.raises(ValueError):
        assure.int_negative(1)
    with pytest.raises(ValueError):
        assure.int_less_than(5)(5)
    with pytest.raises(ValueError):
        assure.float64_not_nan(math.nan)
    with pytest.raises(TypeError):
        assure.int_positive(True)
    with pytest.raises(TypeError):
        assure.float64_positive("1.0")


def test_bool_and_duration_predicates():
    assure.bool_true(True)
    assure.bool_false(False)
    assure.duration_positive(timedelta(seconds=1))
    assure.duration_max(timedelta(minutes=1))(timedelta(minutes=1))

    with pytest.raises(ValueError):
        assure.bool_true(False)
    with pytest.raises(ValueError):
        assure.duration_positive(timedelta(0))
    with pytest.raises(ValueError):
        assure.duration_min(timedelta(seconds=1))(timedelta(milliseconds=999))
    with pytest.raises(ValueError):
        assure.duration_greater_than(timedelta(seconds=1))(timedelta(seconds=1))
    with pytest.raises(TypeError):
        assure.duration_positive(5)


def test_collection_predicates():
    """Test the list and map predicates.

    Given lists and maps of various shapes
    When running the predicates
    Then missing items, keys or wrong lengths raise ValueError
    """
    assure.list_not_empty(["a"])
    assure.list_contains("a")(["a", "b"])
    assure.list_contains_key("b")(["a", "b"])
    assure.list_min_length(2)(["a", "b"])
    assure.map_has_keys(["a", "b"])({"a": "1", "b": "2"})
    assure.map_value_matches("env", "prod")({"env": "prod"})

    with pytest.raises(ValueError):
        assure.list_not_contains("a")(["a"])
    with pytest.raises(ValueError):
        assure.list_length(1)([])
    with pytest.raises(ValueError):
        assure.map_not_empty({})
    with pytest.raises(ValueError):
        assure.map_has_no_key("a")({"a": "1"})
    with pytest.raises(ValueError):
        assure.map_value_matches("env", "prod")({"env": "dev"})
    with pytest.raises(ValueError):
        assure.map_length(2)({"a": "1"})
    with pytest.raises(TypeError):
        assure.map_not_empty(["a"])


def test_check_validator_wraps_failures():
    """Test both ways a validator can fail.

    Given one validator that raises and one that returns an exception
    When checking a value
    Then both produce a ValidationError naming the property and the cause
    """
    with pytest.raises(ValidationError) as exc_info:
        check_validator("port", assure.int_positive, 0)
    assert exc_info.value.name == "port"
    assert isinstance(exc_info.value.cause, ValueError)

    with pytest.raises(ValidationError, match="nope"):
        check_validator("name", lambda value: ValueError("nope"), "x")

    check_validator("name", lambda value: None, "x")


def test_validators_run_in_order_on_decoded_values(store: PropertyStore):
    """Test validator order and arguments.

    Given a duration property with two recording validators
    When validating
    Then validators run in registration order and receive the timedelta
    """
    seen = []
    store.new_duration("timeout", timedelta(seconds=5))
    store.with_validators(
        "timeout",
        lambda value: seen.append(("first", value)),
        lambda value: seen.append(("second", value)),
    )

    store.validate_all()

    assert seen == [("first", timedelta(seconds=5)), ("second", timedelta(seconds=5))]


def test_validation_stops_at_first_property_in_name_order(store: PropertyStore):
    store.new_int("beta", 0).with_validator("beta", assure.int_positive)
    store.new_int("alpha", 0).with_validator("alpha", assure.int_positive)

    with pytest.raises(ValidationError) as exc_info:
        store.parse([])
    assert exc_info.value.name == "alpha"


def test_no_validations_rule(store: PropertyStore):
    """Test skipping validators.

    Given failing validators on two properties
    When one property and then the whole store disable validations
    Then parsing succeeds
    """
    store.new_int("port", 0).with_validator("port", assure.int_positive)
    store.new_string("name", "").with_validator("name", assure.string_not_empty)

    store.with_rule("port", Rule.NO_VALIDATIONS)
    with pytest.raises(ValidationError):
        store.parse([])

    store.with_global_rule(Rule.NO_VALIDATIONS)
    store.parse([])


def test_validators_on_unknown_names_are_ignored(store: PropertyStore):
    store.with_validator("ghost", assure.int_positive)
    store.parse([])
    assert store.properties() == []


def test_verify_callbacks(store: PropertyStore):
    """Test verify callbacks around the validators.

    Given before and after verify callbacks recording their calls
    When validating, then making the after callback fail
    Then callbacks bracket the validators and a failure raises CallbackError
    """
    calls = []
    store.new_int("port", 8080)
    store.with_callback("port", CallbackPhase.BEFORE_VERIFY, lambda value: calls.append("before"))
    store.with_validator("port", lambda value: calls.append("validator"))
    store.with_callback("port", CallbackPhase.AFTER_VERIFY, lambda value: calls.append("after"))

    store.parse([])
    assert calls == ["before", "validator", "after"]

    store.with_callback("port", CallbackPhase.AFTER_VERIFY, lambda value: RuntimeError("port in use"))
    with pytest.raises(CallbackError, match="port in use") as exc_info:
        store.parse([])
    assert exc_info.value.phase is CallbackPhase.AFTER_VERIFY
