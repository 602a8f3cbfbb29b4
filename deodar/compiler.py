"""Single-file asset compilation through the ``sass`` and ``esbuild`` CLIs."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Mapping
import os
import re
import tempfile

from core.command_runner import CommandError, CommandRunner, resolve_executable

from .collector import STYLE_EXTENSION, SCRIPT_EXTENSION
from .console import Console

STYLE_OUTPUT_SUFFIX = ".build.css"
SCRIPT_OUTPUT_SUFFIX = ".build.js"

_SHIM_TEMPLATE = """const globalValue = window.{global_name};
export default globalValue;
export {{ globalValue }};
"""


@dataclass(frozen=True, slots=True)
class CompilationOutcome:
    source_path: Path
    output_path: Path
    succeeded: bool
    error_detail: str | None = None


def output_path(source: Path, location: str, is_style: bool) -> Path:
    """Compiled file path for *source*, placed in *location* relative to its directory.

    >>> output_path(Path("/p/source/app.scss"), "../build", True)
    PosixPath('/p/build/app.build.css')
    """

    extension, suffix = (
        (STYLE_EXTENSION, STYLE_OUTPUT_SUFFIX) if is_style else (SCRIPT_EXTENSION, SCRIPT_OUTPUT_SUFFIX)
    )
    name = source.name
    if name.endswith(extension):
        name = name[: -len(extension)]
    return Path(os.path.normpath(source.parent / location / f"{name}{suffix}"))


def _shim_filename(module: str) -> str:
    return re.sub(r"[^A-Za-z0-9_.-]+", "_", module).strip("._") or "module"


def write_global_shims(directory: Path, externals: Mapping[str, str]) -> dict[str, Path]:
    """Write one module per external that re-exports ``window.<global>``."""

    shims: dict[str, Path] = {}
    for index, (module, global_name) in enumerate(sorted(externals.items())):
        path = directory / f"{index}-{_shim_filename(module)}.js"
        path.write_text(_SHIM_TEMPLATE.format(global_name=global_name), encoding="utf-8")
        shims[module] = path
    return shims


class AssetCompiler:
    """Compile individual style and script entry points.

    Every call returns a :class:`CompilationOutcome`; tool failures are
    reported through the console and never raised.
    """

    def __init__(self, *, root: Path, runner: CommandRunner, console: Console) -> None:
        self._root = root
        self._runner = runner
        self._console = console
        bin_dir = root / "node_modules" / ".bin"
        self._sass = resolve_executable("sass", env_var="DEODAR_SASS", search_dirs=[bin_dir])
        self._esbuild = resolve_executable("esbuild", env_var="DEODAR_ESBUILD", search_dirs=[bin_dir])

    def _relative(self, path: Path) -> str:
        try:
            return path.relative_to(self._root).as_posix()
        except ValueError:
            return str(path)

    def style_command(self, source: Path, output: Path, production: bool) -> List[str]:
        command = [self._sass, f"--load-path={self._root / 'node_modules'}"]
        if production:
            command.extend(["--style=compressed", "--no-source-map"])
        else:
            command.extend(["--style=expanded", "--source-map", "--embed-sources"])
        command.extend([str(source), str(output)])
        return command

    def script_command(
        self,
        source: Path,
        output: Path,
        production: bool,
        shims: Mapping[str, Path],
    ) -> List[str]:
        command = [
            self._esbuild,
            str(source),
            "--bundle",
            "--format=iife",
            f"--outfile={output}",
            "--log-level=warning",
        ]
        command.append("--minify" if production else "--sourcemap")
        for module, shim in shims.items():
            command.append(f"--alias:{module}={shim}")
        return command

    def compile_one(
        self,
        source: Path,
        output: Path,
        is_style: bool,
        production: bool,
        externals: Mapping[str, str],
    ) -> CompilationOutcome:
        src_rel = self._relative(source)
        out_rel = self._relative(output)
        try:
            if not self._console.dry_run:
                output.parent.mkdir(parents=True, exist_ok=True)
            if is_style:
                self._runner.run(self.style_command(source, output, production), cwd=self._root, note=src_rel)
            else:
                with tempfile.TemporaryDirectory(prefix="deodar-shims-") as shim_dir:
                    shims = write_global_shims(Path(shim_dir), externals)
                    self._runner.run(
                        self.script_command(source, output, production, shims),
                        cwd=self._root,
                        note=src_rel,
                    )
        except (CommandError, OSError) as exc:
            self._console.error(f"Couldn't build {src_rel}")
            self._console.error(str(exc))
            return CompilationOutcome(source, output, False, str(exc))

        self._console.success(f"{src_rel} to {out_rel}")
        return CompilationOutcome(source, output, True)
