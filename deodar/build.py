"""Whole-project compilation and ``index.php`` guard files."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Tuple
import os

from core.command_runner import CommandRunner

from .collector import EntryPointSet, collect, list_directories
from .compiler import AssetCompiler, CompilationOutcome, output_path
from .console import Console
from .project import ProjectConfig
from .scaffold import write_template

SOURCE_DIRNAME = "source"
BLOCKS_DIRNAME = "blocks"
SOURCE_OUTPUT_LOCATION = "../build"
BLOCK_OUTPUT_LOCATION = "build"
INDEX_FILENAME = "index.php"


@dataclass(slots=True)
class BuildReport:
    outcomes: List[CompilationOutcome] = field(default_factory=list)
    indexes_written: List[Path] = field(default_factory=list)

    @property
    def failed(self) -> List[CompilationOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.succeeded]

    @property
    def succeeded(self) -> bool:
        return not self.failed


def block_directories(root: Path) -> List[Path]:
    """Every ``blocks/<provider>/<block>`` directory; none when ``blocks`` is absent."""

    blocks_dir = root / BLOCKS_DIRNAME
    directories: List[Path] = []
    for provider in list_directories(blocks_dir):
        provider_dir = blocks_dir / provider
        for block in list_directories(provider_dir):
            directories.append(provider_dir / block)
    return directories


def compile_entry_points(
    compiler: AssetCompiler,
    entry_points: EntryPointSet,
    location: str,
    config: ProjectConfig,
    production: bool,
) -> List[CompilationOutcome]:
    outcomes: List[CompilationOutcome] = []
    for source in entry_points.style_files:
        outcomes.append(
            compiler.compile_one(source, output_path(source, location, True), True, production, config.externals)
        )
    for source in entry_points.script_files:
        outcomes.append(
            compiler.compile_one(source, output_path(source, location, False), False, production, config.externals)
        )
    return outcomes


def add_indexes(root: Path, skip_directories: Iterable[str], *, console: Console) -> List[Path]:
    """Ensure every non-skipped directory below *root* holds an ``index.php``.

    Skipped directories are not descended. Errors for one directory are
    reported and the walk continues with its siblings.
    """

    skip = frozenset(skip_directories)
    written: List[Path] = []
    stack: List[Path] = [root]
    while stack:
        current = stack.pop()
        if current.name in skip:
            continue

        index_path = current / INDEX_FILENAME
        if not index_path.exists():
            if console.dry_run:
                console.dry(f"Would write {index_path}")
            else:
                ok, err = write_template(index_path, "index.php", {})
                if ok:
                    written.append(index_path)
                else:
                    console.error(f"Failed to write {index_path}")
                    console.error(str(err))

        try:
            with os.scandir(current) as entries:
                children = sorted(
                    (Path(entry.path) for entry in entries if entry.is_dir(follow_symlinks=False)),
                    reverse=True,
                )
        except OSError as exc:
            console.error(f"Failed to read directory {current}: {exc}")
            continue
        stack.extend(children)
    return written


def collect_project(root: Path, *, console: Console | None = None) -> Tuple[EntryPointSet, List[EntryPointSet]]:
    source_entries = collect(root / SOURCE_DIRNAME, console=console)
    blocks = [collect(directory, console=console) for directory in block_directories(root)]
    return source_entries, blocks


def compile_project(
    root: Path,
    config: ProjectConfig,
    production: bool = False,
    *,
    runner: CommandRunner,
    console: Console,
) -> BuildReport:
    """Compile ``source/`` and every block, then write missing index guards.

    Per-file failures are collected in the report rather than raised.
    """

    source_entries, blocks = collect_project(root, console=console)
    compiler = AssetCompiler(root=root, runner=runner, console=console)
    report = BuildReport()

    console.notice("Started")
    report.outcomes.extend(
        compile_entry_points(compiler, source_entries, SOURCE_OUTPUT_LOCATION, config, production)
    )
    for block in blocks:
        report.outcomes.extend(
            compile_entry_points(compiler, block, BLOCK_OUTPUT_LOCATION, config, production)
        )

    report.indexes_written.extend(add_indexes(root, config.skip_directories, console=console))
    console.notice("Finished")
    return report
