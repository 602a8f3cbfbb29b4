"""Project root detection and ``deodar.json`` loading."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

import yaml

from core.config_loader import (
    first_existing,
    load_config_file,
    normalize_string_list,
    normalize_string_mapping,
)

from .console import Console

CONFIG_FILENAMES = ("deodar.json", "deodar.toml", "deodar.yaml", "deodar.yml")
DEFAULT_EXTERNALS: Mapping[str, str] = {"jquery": "jQuery"}
DEFAULT_SKIP_DIRECTORIES = frozenset({"node_modules", ".git"})


class ProjectKind(str, Enum):
    PLUGIN = "plugin"
    THEME = "theme"


@dataclass(frozen=True, slots=True)
class LoadedConfig:
    """Raw configuration data, or the empty default when it could not be read."""

    data: Mapping[str, Any] = field(default_factory=dict)
    path: Path | None = None
    error: str | None = None

    @property
    def is_default(self) -> bool:
        return self.path is None or self.error is not None


@dataclass(frozen=True, slots=True)
class ProjectConfig:
    root: Path
    kind: ProjectKind
    externals: Mapping[str, str] = field(default_factory=lambda: dict(DEFAULT_EXTERNALS))
    skip_directories: frozenset[str] = DEFAULT_SKIP_DIRECTORIES
    config_path: Path | None = None

    @property
    def name(self) -> str:
        return self.root.name


def detect_kind(root: Path) -> ProjectKind | None:
    """Return the project kind marked by files in *root*, if any."""

    if (root / f"{root.name}.php").is_file():
        return ProjectKind.PLUGIN
    if (root / "functions.php").is_file() and (root / "style.css").is_file():
        return ProjectKind.THEME
    return None


def read_config(root: Path) -> LoadedConfig:
    """Read the first project configuration file found in *root*.

    Absence and decode failures both yield an empty mapping; a failure keeps
    its message in :attr:`LoadedConfig.error`.
    """

    path = first_existing(root, CONFIG_FILENAMES)
    if path is None:
        return LoadedConfig()
    try:
        data = load_config_file(path)
    except (OSError, ValueError, TypeError, yaml.YAMLError) as exc:
        return LoadedConfig(path=path, error=str(exc))
    return LoadedConfig(data=data, path=path)


def build_config(root: Path, kind: ProjectKind, loaded: LoadedConfig, console: Console | None = None) -> ProjectConfig:
    externals: Mapping[str, str] = dict(DEFAULT_EXTERNALS)
    skip: set[str] = set(DEFAULT_SKIP_DIRECTORIES)

    if "externals" in loaded.data:
        try:
            externals = normalize_string_mapping(loaded.data["externals"], field_name="externals")
        except TypeError as exc:
            if console:
                console.debug(f"Ignoring externals in {loaded.path}: {exc}")
    if "skip" in loaded.data:
        try:
            skip.update(normalize_string_list(loaded.data["skip"], field_name="skip"))
        except TypeError as exc:
            if console:
                console.debug(f"Ignoring skip in {loaded.path}: {exc}")

    return ProjectConfig(
        root=root,
        kind=kind,
        externals=externals,
        skip_directories=frozenset(skip),
        config_path=None if loaded.is_default else loaded.path,
    )


def locate(cwd: Path | None = None, *, console: Console | None = None) -> ProjectConfig | None:
    """Return the project rooted at *cwd* (default: the working directory).

    ``None`` means the directory is neither a plugin (``<dirname>.php``) nor a
    theme (``functions.php`` and ``style.css``).
    """

    root = Path(cwd or Path.cwd()).resolve()
    kind = detect_kind(root)
    if kind is None:
        return None

    loaded = read_config(root)
    if console and loaded.error:
        console.debug(f"Could not read {loaded.path}, using defaults: {loaded.error}")
    return build_config(root, kind, loaded, console)
