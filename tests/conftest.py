"""Pytest configuration and shared fixtures for proptree tests."""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Iterator

import pytest
import yaml
from proptree import ENVIRONMENT_KEY, PropertyStore

# Variables left in place by the workdir fixture
KEPT_ENV_VARS = {"PATH", "HOME", "TMPDIR", "TEMP", "TMP", "SYSTEMROOT", "PYTHONPATH"}


@pytest.fixture
def temp_dir() -> Iterator[Path]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield Path(tmp_dir)


@pytest.fixture
def workdir(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run the test inside an empty directory with a minimal environment.

    Property names such as ``port`` or ``debug`` would otherwise pick up
    variables of the machine running the tests.
    """
    monkeypatch.chdir(temp_dir)
    for key in list(os.environ):
        if key not in KEPT_ENV_VARS:
            monkeypatch.delenv(key)
    assert ENVIRONMENT_KEY not in os.environ
    return temp_dir


@pytest.fixture
def store(workdir: Path) -> PropertyStore:
    """Create a store without tracking."""
    return PropertyStore.new(prog="app")


@pytest.fixture
def tracked_store(workdir: Path) -> PropertyStore:
    """Create a tracking store whose channel buffers enough events for a test."""
    return PropertyStore.grow(harvest=32, prog="app")


def write_yaml_file(file_path: Path, data: Dict[str, Any]) -> None:
    """Write data to YAML file.

    Args:
        file_path: Path to write file
        data: Data to write
    """
    with open(file_path, "w") as f:
        yaml.dump(data, f, default_flow_style=False)


def write_json_file(file_path: Path, data: Dict[str, Any]) -> None:
    with open(file_path, "w") as f:
        json.dump(data, f)


def write_text_file(file_path: Path, text: str) -> None:
    with open(file_path, "w") as f:
        f.write(text)


def set_env_vars(**env_vars: str) -> None:
    """Set environment variables.

    Args:
        **env_vars: Environment variables to set
    """
    for key, value in env_vars.items():
        os.environ[key] = value


def cleanup_env_vars(*var_names: str) -> None:
    """Clean up environment variables.

    Args:
        *var_names: Variable names to remove
    """
    for var_name in var_names:
        os.environ.pop(var_name, None)
