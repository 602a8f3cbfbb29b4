"""Packaging a project into ``dist/<name>.zip`` honouring ``.bundleignore``."""
from __future__ import annotations

from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path, PurePosixPath
from typing import Tuple

from core.archive import FORMAT_SUFFIXES, ArchiveArtifact, ArchiveManager, normalize_format

from .console import Console
from .project import ProjectConfig

IGNORE_FILENAME = ".bundleignore"
DIST_DIRNAME = "dist"


@dataclass(frozen=True, slots=True)
class IgnoreRules:
    """Glob patterns from ``.bundleignore``; empty when the file is absent."""

    patterns: Tuple[str, ...] = ()
    path: Path | None = None

    @classmethod
    def parse(cls, text: str, path: Path | None = None) -> "IgnoreRules":
        patterns = []
        for line in text.splitlines():
            trimmed = line.strip()
            if not trimmed or trimmed.startswith("#"):
                continue
            patterns.append(trimmed)
        return cls(tuple(patterns), path)

    def matches(self, relative_path: str, is_dir: bool = False) -> bool:
        """Whether the root-relative POSIX *relative_path* is excluded.

        A pattern without ``/`` matches the entry name at any depth. Other
        patterns match the whole path segment by segment, so ``*`` never
        crosses a ``/`` and ``**`` spans any number of directories. Dot files
        are matched. A trailing ``/`` limits a pattern to directories.
        """

        path_parts = PurePosixPath(relative_path).parts
        for pattern in self.patterns:
            if pattern.endswith("/"):
                if not is_dir:
                    continue
                pattern = pattern.rstrip("/")
            if "/" not in pattern:
                if path_parts and fnmatchcase(path_parts[-1], pattern):
                    return True
                continue
            if _match_segments(tuple(part for part in pattern.split("/") if part), path_parts):
                return True
        return False


def _match_segments(pattern_parts: Tuple[str, ...], path_parts: Tuple[str, ...]) -> bool:
    if not pattern_parts:
        return not path_parts
    head, rest = pattern_parts[0], pattern_parts[1:]
    if head == "**":
        return any(_match_segments(rest, path_parts[index:]) for index in range(len(path_parts) + 1))
    if not path_parts or not fnmatchcase(path_parts[0], head):
        return False
    return _match_segments(rest, path_parts[1:])


def load_bundle_ignores(root: Path) -> IgnoreRules:
    path = root / IGNORE_FILENAME
    if not path.is_file():
        return IgnoreRules()
    return IgnoreRules.parse(path.read_text(encoding="utf-8"), path)


def archive_path(config: ProjectConfig, archive_format: str = "zip") -> Path:
    return config.root / DIST_DIRNAME / f"{config.name}{FORMAT_SUFFIXES[archive_format]}"


def bundle_project(config: ProjectConfig, *, console: Console, archive_format: str = "zip") -> Path:
    """Archive the project tree; any walk or write failure propagates."""

    archive_format = normalize_format(archive_format)
    ignores = load_bundle_ignores(config.root)
    target = archive_path(config, archive_format)
    artifact = ArchiveArtifact(
        source_dir=config.root,
        label=config.name,
        exclude=ignores.matches,
    )
    return ArchiveManager(console).create_archive(
        artifact=artifact,
        target_path=target,
        archive_format=archive_format,
    )
