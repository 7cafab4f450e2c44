"""Configuration file decoding and discovery."""

import configparser
import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .exceptions import ConfigFileError, UnsupportedFileError
from .utils import load_yaml

DEFAULT_YAML_FILE = "config.yml"
DEFAULT_JSON_FILE = "config.json"
DEFAULT_INI_FILE = "config.ini"
CONFIG_FILE_PATH = os.path.join(".", DEFAULT_YAML_FILE)

YAML_SUFFIXES = (".yml", ".yaml")
JSON_SUFFIXES = (".json",)
INI_SUFFIXES = (".ini",)

# Name of the implicit section holding keys that appear before any [section]
ROOT_SECTION = "__root__"

PathLike = Union[str, "os.PathLike[str]"]


def decode_ini(text: str) -> Dict[str, Any]:
    """Decode INI text into a string-keyed map.

    Keys before the first section are top-level entries. Each ``[section]``
    contributes ``section.key`` entries and, unless a top-level key of the same
    name exists, a nested map under ``section``.

    Args:
        text: INI document

    Returns:
        Decoded mapping  # (values are strings or dicts of strings)
    """
    parser = configparser.ConfigParser(interpolation=None)
    parser.optionxform = str  # keep key case
    parser.read_string(f"[{ROOT_SECTION}]\n{text}")

    result: Dict[str, Any] = dict(parser[ROOT_SECTION])
    for section in parser.sections():
        if section == ROOT_SECTION:
            continue
        entries = dict(parser[section])
        for key, value in entries.items():
            result[f"{section}.{key}"] = value
        result.setdefault(section, entries)
    return result


def decode_file(path: PathLike) -> Dict[str, Any]:
    """Read and decode a configuration file by its extension.

    Args:
        path: YAML, JSON or INI file

    Returns:
        Decoded top-level mapping  # (an empty document gives {})

    Raises:
        UnsupportedFileError: If the extension is not known
        ConfigFileError: If the file cannot be read or is not a mapping
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix not in YAML_SUFFIXES + JSON_SUFFIXES + INI_SUFFIXES:
        raise UnsupportedFileError(path)

    try:
        with open(path, "r", encoding="utf-8") as f:
            if suffix in YAML_SUFFIXES:
                data = load_yaml(f)
            elif suffix in JSON_SUFFIXES:
                data = json.load(f)
            else:
                data = decode_ini(f.read())
    except (OSError, ValueError, configparser.Error, yaml.YAMLError) as e:
        raise ConfigFileError(path, e) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigFileError(path, f"top level must be a mapping, got {type(data).__name__}")
    return data


def discover_files(
    config_file: Optional[PathLike] = None,
    env_key: Optional[str] = None,
) -> List[Path]:
    """List existing configuration files in merge order.

    Order: the file named by the ``env_key`` environment variable, ``config_file``,
    ``CONFIG_FILE_PATH``, ``./config.json``, ``./config.ini``. Each path appears
    once, at its first position.

    Args:
        config_file: Store-level configuration file
        env_key: Environment variable naming a file  # (None skips the lookup)

    Returns:
        Existing files, earliest first  # (later files override earlier ones)
    """
    candidates: List[Any] = []
    if env_key:
        candidates.append(os.environ.get(env_key))
    candidates.extend(
        [
            config_file,
            CONFIG_FILE_PATH,
            os.path.join(".", DEFAULT_JSON_FILE),
            os.path.join(".", DEFAULT_INI_FILE),
        ]
    )

    found: List[Path] = []
    seen = set()
    for candidate in candidates:
        if not candidate:
            continue
        path = Path(candidate)
        key = os.path.abspath(path)
        if key in seen or not path.is_file():
            continue
        seen.add(key)
        found.append(path)
    return found
