"""Shared helpers for locating and loading configuration mappings."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Sequence

import json
import tomllib

import yaml


ConfigLoader = Callable[[Any], Any]


FILE_LOADERS: Dict[str, ConfigLoader] = {
    ".json": lambda stream: json.load(stream),
    ".toml": lambda stream: tomllib.load(stream),
    ".yaml": lambda stream: yaml.safe_load(stream),
    ".yml": lambda stream: yaml.safe_load(stream),
}
"""Mapping of file suffixes to loader callables."""


def load_config_file(path: Path) -> Mapping[str, Any]:
    """Load and decode a configuration mapping from ``path``."""

    suffix = path.suffix.lower()
    loader = FILE_LOADERS.get(suffix)
    if loader is None:
        supported = ", ".join(sorted(FILE_LOADERS)) or "<none>"
        raise ValueError(
            f"Unsupported configuration file extension: {suffix}. Supported: {supported}"
        )

    mode = "rb" if suffix == ".toml" else "r"
    kwargs: Dict[str, Any] = {}
    if mode == "r":
        kwargs["encoding"] = "utf-8"

    with path.open(mode, **kwargs) as handle:
        data = loader(handle)

    if not isinstance(data, Mapping):
        raise TypeError(f"Configuration file '{path}' must contain a mapping at the root")

    return data


def first_existing(directory: Path, names: Iterable[str]) -> Path | None:
    """Return the first of *names* that is a file inside *directory*."""

    for name in names:
        candidate = directory / name
        if candidate.is_file():
            return candidate
    return None


def normalize_string_list(value: Any, *, field_name: str | None = None) -> List[str]:
    """Coerce ``value`` into a list of trimmed strings."""

    if value is None:
        return []

    if isinstance(value, (str, bytes)):
        text = str(value).strip()
        return [text] if text else []

    if isinstance(value, Sequence):
        items: List[str] = []
        for item in value:
            if not isinstance(item, (str, bytes)):
                label = f"{field_name} " if field_name else ""
                raise TypeError(f"{label}entries must be strings")
            text = str(item).strip()
            if text:
                items.append(text)
        return items

    label = f"{field_name} " if field_name else ""
    raise TypeError(f"{label}must be a string or sequence of strings")


def normalize_string_mapping(value: Any, *, field_name: str | None = None) -> Dict[str, str]:
    """Coerce ``value`` into a ``str -> str`` mapping."""

    if value is None:
        return {}
    if not isinstance(value, Mapping):
        label = f"{field_name} " if field_name else ""
        raise TypeError(f"{label}must be a mapping")
    result: Dict[str, str] = {}
    for key, item in value.items():
        if not isinstance(key, str) or not isinstance(item, str):
            label = f"{field_name} " if field_name else ""
            raise TypeError(f"{label}keys and values must be strings")
        result[key] = item
    return result


__all__ = [
    "ConfigLoader",
    "FILE_LOADERS",
    "first_existing",
    "load_config_file",
    "normalize_string_list",
    "normalize_string_mapping",
]
