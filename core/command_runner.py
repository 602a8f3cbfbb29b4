"""Run external asset tools with optional dry-run recording."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Sequence
import os
import shlex
import shutil
import subprocess


@dataclass
class CommandResult:
    """Represents the outcome of an executed command."""

    command: Sequence[str]
    returncode: int
    stdout: str
    stderr: str


class CommandError(RuntimeError):
    """Raised when a command exits with a non-zero status."""

    def __init__(self, result: CommandResult):
        message = f"Command failed with exit code {result.returncode}: {' '.join(map(shlex.quote, result.command))}"
        output = (result.stderr or result.stdout).strip()
        if output:
            message = f"{message}\n{output}"
        super().__init__(message)
        self.result = result


def resolve_executable(
    name: str,
    *,
    env_var: str | None = None,
    search_dirs: Iterable[Path] = (),
) -> str:
    """Locate *name*, preferring ``env_var``, then *search_dirs*, then ``PATH``.

    The bare *name* is returned when nothing matches so the failure surfaces
    from the runner as a missing executable.
    """

    if env_var:
        override = os.environ.get(env_var, "").strip()
        if override:
            return override
    for directory in search_dirs:
        found = shutil.which(name, path=str(directory))
        if found:
            return found
    return shutil.which(name) or name


class CommandRunner:
    """Abstract command runner interface."""

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        check: bool = True,
        note: str | None = None,
    ) -> CommandResult:
        raise NotImplementedError

    def format_command(self, command: Sequence[str]) -> str:
        return " ".join(shlex.quote(part) for part in command)


class SubprocessCommandRunner(CommandRunner):
    """Command runner that executes commands via :mod:`subprocess`."""

    @staticmethod
    def _merge_environment(env: Mapping[str, str] | None) -> Dict[str, str] | None:
        if env is None:
            return None
        merged = os.environ.copy()
        merged.update(env)
        return merged

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        check: bool = True,
        note: str | None = None,
    ) -> CommandResult:
        process = subprocess.run(
            list(command),
            cwd=str(cwd) if cwd else None,
            env=self._merge_environment(env),
            capture_output=True,
            text=True,
            check=False,
        )
        result = CommandResult(
            command=command,
            returncode=process.returncode,
            stdout=process.stdout,
            stderr=process.stderr,
        )
        if check and result.returncode != 0:
            raise CommandError(result)
        return result


@dataclass(slots=True)
class RecordedCommand:
    command: List[str]
    cwd: str | None
    note: str | None


class RecordingCommandRunner(CommandRunner):
    """Command runner that records commands instead of executing them."""

    def __init__(self) -> None:
        self.commands: List[RecordedCommand] = []

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        check: bool = True,
        note: str | None = None,
    ) -> CommandResult:
        self.commands.append(
            RecordedCommand(command=list(command), cwd=str(cwd) if cwd else None, note=note)
        )
        return CommandResult(command=command, returncode=0, stdout="", stderr="")

    def iter_formatted(self, *, workspace: Path | None = None) -> Iterable[str]:
        default_cwd = str(workspace) if workspace else None
        for record in self.commands:
            parts: List[str] = ["[dry-run]"]
            if record.note:
                parts.append(record.note)
            cwd = record.cwd or default_cwd
            if cwd:
                parts.append(f"(cwd={cwd})")
            parts.append(self.format_command(record.command))
            yield " ".join(parts)
