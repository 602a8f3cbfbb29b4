"""Archive creation for project bundles."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, Iterator, Protocol, runtime_checkable
import os
import tarfile
import zipfile

import zstandard as zstd

FORMAT_SUFFIXES: dict[str, str] = {
    "zip": ".zip",
    "tar": ".tar",
    "gztar": ".tar.gz",
    "zst": ".tar.zst",
}

EntryFilter = Callable[[str, bool], bool]
"""Called with a root-relative POSIX path and ``is_dir``; ``True`` excludes it."""


@runtime_checkable
class ArchiveConsole(Protocol):
    """Minimal console interface required by :class:`ArchiveManager`."""

    dry_run: bool

    def info(self, message: str) -> None:
        ...

    def error(self, message: str) -> None:
        ...

    def dry(self, message: str) -> None:
        ...


@dataclass(slots=True)
class ArchiveArtifact:
    """Description of filesystem content to package into an archive."""

    source_dir: Path
    label: str | None = None
    exclude: EntryFilter | None = None
    skip_paths: frozenset[Path] = field(default_factory=frozenset)


def normalize_format(archive_format: str) -> str:
    normalized = archive_format.strip().lower()
    if normalized in FORMAT_SUFFIXES:
        return normalized
    raise ValueError(f"Unsupported archive format '{archive_format}'")


def iter_archive_members(artifact: ArchiveArtifact) -> Iterator[tuple[Path, str]]:
    """Yield ``(path, arcname)`` for every file selected by *artifact*.

    Directories are visited with an explicit stack in sorted order. Excluded
    directories are not descended. Listing errors propagate.
    """

    root = Path(artifact.source_dir)
    skip = {path.resolve() for path in artifact.skip_paths}
    stack: list[Path] = [root]
    while stack:
        current = stack.pop()
        with os.scandir(current) as iterator:
            entries = sorted(iterator, key=lambda entry: entry.name)
        subdirs: list[Path] = []
        for entry in entries:
            full_path = Path(entry.path)
            relative = full_path.relative_to(root).as_posix()
            is_dir = entry.is_dir(follow_symlinks=False)
            if artifact.exclude is not None and artifact.exclude(relative, is_dir):
                continue
            if is_dir:
                subdirs.append(full_path)
                continue
            if full_path.resolve() in skip:
                continue
            yield full_path, relative
        stack.extend(reversed(subdirs))


class ArchiveManager:
    """Create compressed archives from directories."""

    def __init__(self, console: ArchiveConsole, *, zstd_level: int = 19) -> None:
        self._console = console
        self._zstd_level = zstd_level

    def create_archive(
        self,
        *,
        artifact: ArchiveArtifact,
        target_path: Path | str,
        archive_format: str,
    ) -> Path:
        """Create an archive for *artifact* at *target_path*.

        Parameters
        ----------
        artifact:
            Data describing the directory to archive and which entries to skip.
        target_path:
            Exact path (including filename) for the archive that should be created.
            An existing file is replaced.
        archive_format:
            One of the keys of :data:`FORMAT_SUFFIXES`.

        A failure while walking or writing removes the partially written target.
        """

        target = Path(target_path).expanduser()
        source_dir = Path(artifact.source_dir).expanduser()

        if not source_dir.exists():
            raise FileNotFoundError(
                f"Archive source directory '{source_dir}' does not exist")

        archive_format = normalize_format(archive_format)
        members = ArchiveArtifact(
            source_dir=source_dir,
            label=artifact.label,
            exclude=artifact.exclude,
            skip_paths=artifact.skip_paths | {target},
        )

        if self._console.dry_run:
            label = artifact.label or source_dir.name
            self._console.dry(f"Would archive {label} to {target}")
            for _, arcname in iter_archive_members(members):
                self._console.dry(f"  {arcname}")
            return target

        target.unlink(missing_ok=True)
        target.parent.mkdir(parents=True, exist_ok=True)

        try:
            if archive_format == "zip":
                self._make_zip_archive(target, iter_archive_members(members))
            else:
                self._make_tar_archive(target, archive_format, iter_archive_members(members))
        except BaseException:
            target.unlink(missing_ok=True)
            raise
        return target

    def _make_zip_archive(self, target: Path, members: Iterable[tuple[Path, str]]) -> None:
        with zipfile.ZipFile(
            target,
            mode="w",
            compression=zipfile.ZIP_DEFLATED,
            compresslevel=9,
            allowZip64=True,
            strict_timestamps=False,
        ) as archive:
            for path, arcname in members:
                archive.write(path, arcname)

    def _make_tar_archive(self, target: Path, archive_format: str, members: Iterable[tuple[Path, str]]) -> None:
        if archive_format == "zst":
            compressor = zstd.ZstdCompressor(level=self._zstd_level, threads=-1, write_checksum=True)
            with target.open("wb") as raw, compressor.stream_writer(raw) as writer:
                with tarfile.open(fileobj=writer, mode="w|", format=tarfile.PAX_FORMAT) as tar:
                    for path, arcname in members:
                        tar.add(path, arcname=arcname, recursive=False)
            return

        mode = "w:gz" if archive_format == "gztar" else "w"
        with tarfile.open(target, mode=mode, format=tarfile.PAX_FORMAT) as tar:
            for path, arcname in members:
                tar.add(path, arcname=arcname, recursive=False)


__all__ = [
    "ArchiveArtifact",
    "ArchiveConsole",
    "ArchiveManager",
    "EntryFilter",
    "FORMAT_SUFFIXES",
    "iter_archive_members",
    "normalize_format",
]
