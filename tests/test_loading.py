"""Test cases for command line, file and environment loading."""

from datetime import timedelta
from pathlib import Path
from textwrap import dedent

import pytest

from proptree import (
    ENVIRONMENT_KEY,
    ConfigFileError,
    FlagParseError,
    MergePolicy,
    PropertyError,
    PropertyStore,
    Rule,
    UnsupportedFileError,
    ValidationError,
    assure,
)
from tests.conftest import cleanup_env_vars, set_env_vars, write_json_file, write_text_file, write_yaml_file


def test_source_precedence(workdir: Path):
    """Test the precedence of value sources.

    Given a default, a config file value, an environment value and a CLI value
    When loading with all of them, then without env, then without file
    Then env beats the file, the file beats the CLI, and the CLI beats the default
    """
    write_yaml_file(workdir / "config.yml", {"pt_level": "F"})

    set_env_vars(PT_LEVEL="E")
    try:
        store = PropertyStore(prog="app").new_string("pt_level", "D")
        store.load(["-pt_level", "C"])
        assert store.get_string("pt_level") == "E"
    finally:
        cleanup_env_vars("PT_LEVEL")

    store = PropertyStore(prog="app").new_string("pt_level", "D")
    store.load(["-pt_level", "C"])
    assert store.get_string("pt_level") == "F"

    (workdir / "config.yml").unlink()
    store = PropertyStore(prog="app").new_string("pt_level", "D")
    store.load(["-pt_level", "C"])
    assert store.get_string("pt_level") == "C"

    store = PropertyStore(prog="app").new_string("pt_level", "D")
    store.load([])
    assert store.get_string("pt_level") == "D"


def test_every_discovered_file_is_merged_in_order(workdir: Path):
    """Test configuration file discovery.

    Given a file named by CONFIG_FILE, a store config file and ./config.json
    When loading
    Then all of them merge, later files overriding earlier ones
    """
    write_yaml_file(workdir / "env.yaml", {"a": "env", "c": "env"})
    write_yaml_file(workdir / "base.yaml", {"a": "base", "b": "base"})
    write_json_file(workdir / "config.json", {"b": "json"})

    set_env_vars(**{ENVIRONMENT_KEY: str(workdir / "env.yaml")})
    try:
        store = PropertyStore(config_file=workdir / "base.yaml", prog="app")
        store.new_string("a", "").new_string("b", "").new_string("c", "")
        store.load([])
    finally:
        cleanup_env_vars(ENVIRONMENT_KEY)

    assert store.get_string("a") == "base"
    assert store.get_string("b") == "json"
    assert store.get_string("c") == "env"


def test_config_file_variable_ignored_without_env(workdir: Path):
    """Test that the global NO_ENV rule also skips the CONFIG_FILE variable."""
    write_yaml_file(workdir / "env.yaml", {"a": "env"})

    set_env_vars(**{ENVIRONMENT_KEY: str(workdir / "env.yaml")})
    try:
        store = PropertyStore(prog="app").new_string("a", "default")
        store.with_global_rule(Rule.NO_ENV)
        store.load([])
    finally:
        cleanup_env_vars(ENVIRONMENT_KEY)

    assert store.get_string("a") == "default"


def test_json_values_of_every_kind(store: PropertyStore, workdir: Path):
    """Test decoding of JSON values into property kinds.

    Given a JSON file with native and string values, plus an unknown key
    When loading it
    Then each value is converted into the kind of its property
    """
    write_json_file(
        workdir / "settings.json",
        {
            "timeout": "1m30s",
            "retries": 3,
            "ratio": 0.75,
            "debug": True,
            "hosts": ["a", "b"],
            "labels": {"k": "v"},
            "interval": 2,
            "unknown": "ignored",
        },
    )
    store.new_duration("timeout", timedelta(0))
    store.new_int("retries", 0)
    store.new_float64("ratio", 0.0)
    store.new_bool("debug", False)
    store.new_list("hosts", [])
    store.new_map("labels", {})
    store.new_unit_duration("interval", 1, timedelta(minutes=1))

    store.load_file(workdir / "settings.json", [])

    assert store.get_duration("timeout") == timedelta(seconds=90)
    assert store.get_int("retries") == 3
    assert store.get_float64("ratio") == 0.75
    assert store.get_bool("debug") is True
    assert store.get_list("hosts") == ["a", "b"]
    assert store.get_map("labels") == {"k": "v"}
    assert store.get_unit_duration("interval") == timedelta(minutes=2)
    assert store.kind_of("unknown") is None


def test_ini_sections(store: PropertyStore, workdir: Path):
    """Test INI decoding.

    Given an INI file with top-level keys and a section
    When loading it
    Then top-level keys fill scalars, the section fills a map and section.key entries
    """
    write_text_file(
        workdir / "config.ini",
        dedent(
            """\
            name = svc
            port = 9090

            [labels]
            env = prod
            """
        ),
    )
    store.new_string("name", "").new_int("port", 0).new_map("labels", {}).new_string("labels.env", "")

    store.load([])

    assert store.get_string("name") == "svc"
    assert store.get_int("port") == 9090
    assert store.get_map("labels") == {"env": "prod"}
    assert store.get_string("labels.env") == "prod"


def test_invalid_file_values(store: PropertyStore, workdir: Path):
    """Test file values that do not convert.

    Given a YAML file with a non-numeric port and a malformed YAML file
    When loading each of them
    Then ConfigFileError is raised naming the key or the file
    """
    write_yaml_file(workdir / "bad.yaml", {"port": "abc"})
    write_text_file(workdir / "broken.yaml", "port: [1, 2\n")
    store.new_int("port", 1)

    with pytest.raises(ConfigFileError) as exc_info:
        store.load_file(workdir / "bad.yaml", [])
    assert "port" in str(exc_info.value)

    with pytest.raises(ConfigFileError) as exc_info:
        store.read_from(workdir / "broken.yaml")
    assert "broken.yaml" in str(exc_info.value)


def test_missing_file_still_applies_environment(store: PropertyStore, workdir: Path):
    """Test load_file with a missing path.

    Given an environment value and a path that does not exist
    When loading that path
    Then ConfigFileError is raised after the environment was applied
    """
    store.new_string("pt_mode", "default")
    set_env_vars(PT_MODE="env")
    try:
        with pytest.raises(ConfigFileError):
            store.load_file(workdir / "missing.yml", [])
    finally:
        cleanup_env_vars("PT_MODE")

    assert store.get_string("pt_mode") == "env"


def test_command_line_syntax(store: PropertyStore):
    """Test accepted command line forms.

    Given properties of several kinds, one with an alias
    When parsing single-dash, double-dash, inline and bare bool options
    Then every value is applied
    """
    store.new_int("port", 0).new_string("name", "").new_bool("debug", False).new_bool("quiet", True)
    store.new_list("hosts", []).new_map("labels", {}).new_duration("timeout", timedelta(0))
    store.new_string("environment", "dev").with_alias("environment", "e")

    store.parse(
        [
            "-port=9090",
            "--name",
            "api",
            "-debug",
            "-quiet=false",
            "-hosts",
            "a,b",
            "--labels=k=v,x=y",
            "-timeout",
            "1h",
            "-e",
            "prod",
        ]
    )

    assert store.get_int("port") == 9090
    assert store.get_string("name") == "api"
    assert store.get_bool("debug") is True
    assert store.get_bool("quiet") is False
    assert store.get_list("hosts") == ["a", "b"]
    assert store.get_map("labels") == {"k": "v", "x": "y"}
    assert store.get_duration("timeout") == timedelta(hours=1)
    assert store.get_string("environment") == "prod"


def test_command_line_errors(store: PropertyStore):
    """Test rejected command lines.

    Given an int property and a property excluded from flags
    When parsing an unknown option, a bad value, or the excluded option
    Then FlagParseError is raised
    """
    store.new_int("port", 0).new_string("secret", "").with_rule("secret", Rule.NO_FLAGS)

    with pytest.raises(FlagParseError):
        store.parse(["-unknown", "1"])
    with pytest.raises(FlagParseError):
        store.parse(["-port", "abc"])
    with pytest.raises(FlagParseError):
        store.parse(["-secret", "x"])


def test_test_arguments_are_filtered(workdir: Path):
    """Test tolerant parsing for test runners.

    Given a store filtering test arguments
    When parsing test-runner flags and unknown options along with a real one
    Then only the real option is applied and nothing fails
    """
    store = PropertyStore(filter_test_args=True, prog="app").new_int("port", 0)

    store.parse(["-test.v", "-test.run=TestX", "-port", "8", "--unknown"])

    assert store.get_int("port") == 8


def test_no_flags_rule_skips_command_line(store: PropertyStore):
    """Test that the global NO_FLAGS rule ignores every argument."""
    store.new_int("port", 1).with_global_rule(Rule.NO_FLAGS)

    store.parse(["-port", "2", "--anything"])

    assert store.get_int("port") == 1


def test_list_append_policy(workdir: Path):
    """Test merge policies.

    Given stores appending lists and merging maps
    When parsing repeated list and map options
    Then values accumulate on the registered defaults
    """
    store = PropertyStore(list_policy=MergePolicy.APPEND, map_policy=MergePolicy.APPEND, prog="app")
    store.new_list("hosts", ["a"]).new_map("labels", {"env": "dev"})

    store.parse(["-hosts", "b", "-hosts", "c,a", "-labels", "tier=web"])

    assert store.get_list("hosts") == ["a", "b", "c"]
    assert store.get_map("labels") == {"env": "dev", "tier": "web"}


def test_environment_lookup(store: PropertyStore):
    """Test environment overlay.

    Given properties with an upper-case and an exact-case variable
    When parsing
    Then both variables apply and the upper-case name wins
    """
    store.new_string("pt_upper", "").new_string("pt_exact", "")
    set_env_vars(PT_UPPER="upper", pt_upper="exact", pt_exact="exact")
    try:
        store.parse([])
    finally:
        cleanup_env_vars("PT_UPPER", "pt_upper", "pt_exact")

    assert store.get_string("pt_upper") == "upper"
    assert store.get_string("pt_exact") == "exact"


def test_environment_can_be_disabled(workdir: Path):
    """Test ignore_environment and the NO_ENV rule.

    Given environment values for three properties
    When the store ignores the environment, or a property has NO_ENV
    Then those values are not applied
    """
    set_env_vars(PT_A="env", PT_B="env", PT_C="env")
    try:
        ignoring = PropertyStore(ignore_environment=True, prog="app").new_string("pt_a", "default")
        ignoring.parse([])

        store = PropertyStore(prog="app").new_string("pt_b", "default").new_string("pt_c", "default")
        store.with_rule("pt_b", Rule.NO_ENV)
        store.parse([])
    finally:
        cleanup_env_vars("PT_A", "PT_B", "PT_C")

    assert ignoring.get_string("pt_a") == "default"
    assert store.get_string("pt_b") == "default"
    assert store.get_string("pt_c") == "env"


def test_invalid_environment_value(store: PropertyStore):
    """Test that an environment value that does not convert fails parse."""
    store.new_int("pt_port", 1)
    set_env_vars(PT_PORT="abc")
    try:
        with pytest.raises(PropertyError) as exc_info:
            store.parse([])
    finally:
        cleanup_env_vars("PT_PORT")

    assert "pt_port" in str(exc_info.value)


def test_validation_runs_after_parse(store: PropertyStore):
    """Test validators during parse.

    Given an int property with a positive validator
    When parsing without and then with a valid value
    Then the first parse raises naming the property and the second succeeds
    """
    store.new_int("port", 0).with_validator("port", assure.int_positive)

    with pytest.raises(ValidationError) as exc_info:
        store.parse([])
    assert "port" in str(exc_info.value)

    store.parse(["-port", "8080"])
    assert store.get_int("port") == 8080


def test_same_parse_succeeds_without_validators(workdir: Path):
    """Test that only the validators make a parse fail.

    Given two identical stores, one with a positive validator on its int property
    When both parse the same empty argument list
    Then only the validated store raises
    """
    validated = PropertyStore.new(prog="app").new_int("port", 0)
    validated.with_validator("port", assure.int_positive)
    plain = PropertyStore.new(prog="app").new_int("port", 0)

    with pytest.raises(ValidationError, match="port"):
        validated.parse([])
    plain.parse([])

    assert plain.get_int("port") == 0


def test_reload_reapplies_environment(store: PropertyStore):
    """Test reload.

    Given a parsed store
    When the environment changes and the store reloads
    Then the new environment value applies
    """
    store.new_string("pt_color", "red")
    store.parse([])
    set_env_vars(PT_COLOR="blue")
    try:
        store.reload()
    finally:
        cleanup_env_vars("PT_COLOR")

    assert store.get_string("pt_color") == "blue"


@pytest.mark.parametrize("file_name", ["out.yaml", "out.json", "out.ini"])
def test_save_and_read_back(store: PropertyStore, workdir: Path, file_name: str):
    """Test persistence.

    Given a store with one property of every kind
    When saving it and reading the file into a fresh store
    Then every value is restored
    """
    store.new_string("name", "svc").new_bool("debug", True).new_int("port", 8080)
    store.new_int64("big", 2**40).new_float64("ratio", 0.5)
    store.new_duration("timeout", timedelta(seconds=30))
    store.new_unit_duration("interval", 5, timedelta(minutes=1))
    store.new_list("hosts", ["a", "b"]).new_map("labels", {"env": "dev"})
    path = store.save_to(workdir / file_name)

    fresh = PropertyStore(prog="app")
    fresh.new_string("name", "").new_bool("debug", False).new_int("port", 0)
    fresh.new_int64("big", 0).new_float64("ratio", 0.0)
    fresh.new_duration("timeout", timedelta(0))
    fresh.new_unit_duration("interval", 0, timedelta(minutes=1))
    fresh.new_list("hosts", []).new_map("labels", {})
    fresh.read_from(path)

    assert fresh.get_string("name") == "svc"
    assert fresh.get_bool("debug") is True
    assert fresh.get_int("port") == 8080
    assert fresh.get_int64("big") == 2**40
    assert fresh.get_float64("ratio") == 0.5
    assert fresh.get_duration("timeout") == timedelta(seconds=30)
    assert fresh.get_unit_duration("interval") == timedelta(minutes=5)
    assert fresh.get_list("hosts") == ["a", "b"]
    assert fresh.get_map("labels") == {"env": "dev"}


def test_unsupported_file_extension(store: PropertyStore, workdir: Path):
    """Test save and read with an unknown extension."""
    store.new_string("name", "svc")
    write_text_file(workdir / "settings.txt", "name = other\n")

    with pytest.raises(UnsupportedFileError):
        store.save_to(workdir / "out.txt")
    with pytest.raises(UnsupportedFileError):
        store.read_from(workdir / "settings.txt")
    with pytest.raises(ConfigFileError):
        store.read_from(workdir / "missing.yaml")
