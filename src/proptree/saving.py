"""Persist property values as YAML, JSON or INI."""

import configparser
import io
import json
from pathlib import Path
from typing import Any, Dict

import yaml

from .conversions import to_string
from .exceptions import UnsupportedFileError
from .loading import INI_SUFFIXES, JSON_SUFFIXES, YAML_SUFFIXES, PathLike


def encode_ini(values: Dict[str, Any]) -> str:
    """Render values as INI.

    Scalars and lists become top-level ``key = value`` lines, maps become
    sections, so the output decodes back through ``decode_ini``.
    """
    lines = []
    sections = {}
    for key, value in values.items():
        if isinstance(value, dict):
            sections[key] = {str(k): to_string(v) for k, v in value.items()}
        else:
            lines.append(f"{key} = {to_string(value)}")

    parser = configparser.ConfigParser(interpolation=None)
    parser.optionxform = str
    parser.read_dict(sections)
    buffer = io.StringIO()
    parser.write(buffer)

    head = "\n".join(lines)
    body = buffer.getvalue()
    if head and body:
        return f"{head}\n\n{body}"
    return f"{head}\n" if head else body


def write_file(values: Dict[str, Any], path: PathLike) -> Path:
    """Write values to ``path`` in the format named by its extension.

    Args:
        values: Property name to plain value  # (durations already rendered as strings)
        path: Target file

    Returns:
        Path written

    Raises:
        UnsupportedFileError: If the extension is not YAML, JSON or INI
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix in YAML_SUFFIXES:
        text = yaml.safe_dump(values, default_flow_style=False, sort_keys=True, allow_unicode=True)
    elif suffix in JSON_SUFFIXES:
        text = json.dumps(values, indent=2, sort_keys=True, ensure_ascii=False)
    elif suffix in INI_SUFFIXES:
        text = encode_ini(values)
    else:
        raise UnsupportedFileError(path)

    with open(path, "w", encoding="utf-8") as f:
        f.write(text)
    return path
