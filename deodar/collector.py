"""Discovery of compilable entry points in project directories."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple
import os

from .console import Console

STYLE_EXTENSION = ".scss"
SCRIPT_EXTENSION = ".js"


@dataclass(frozen=True, slots=True)
class EntryPointSet:
    style_files: Tuple[Path, ...] = ()
    script_files: Tuple[Path, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.style_files or self.script_files)


def collect(directory: Path, *, console: Console | None = None) -> EntryPointSet:
    """Return the style and script files directly inside *directory*.

    A missing or unreadable directory yields an empty set.
    """

    styles: List[Path] = []
    scripts: List[Path] = []
    try:
        with os.scandir(directory) as entries:
            for entry in entries:
                if not entry.is_file():
                    continue
                extension = os.path.splitext(entry.name)[1]
                if extension == STYLE_EXTENSION:
                    styles.append(Path(directory) / entry.name)
                elif extension == SCRIPT_EXTENSION:
                    scripts.append(Path(directory) / entry.name)
    except OSError as exc:
        if console:
            console.debug(f"Failed to read directory {directory}: {exc}")
        return EntryPointSet()
    return EntryPointSet(style_files=tuple(styles), script_files=tuple(scripts))


def list_directories(directory: Path) -> List[str]:
    """Names of the direct sub-directories of *directory*; empty when unreadable."""

    try:
        with os.scandir(directory) as entries:
            return [entry.name for entry in entries if entry.is_dir()]
    except OSError:
        return []
