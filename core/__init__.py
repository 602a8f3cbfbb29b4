"""Shared utilities for running tools, loading configuration, templating and archiving."""

from .archive import ArchiveArtifact, ArchiveConsole, ArchiveManager, iter_archive_members
from .command_runner import (
    CommandError,
    CommandResult,
    CommandRunner,
    RecordingCommandRunner,
    SubprocessCommandRunner,
    resolve_executable,
)
from .config_loader import (
    FILE_LOADERS,
    first_existing,
    load_config_file,
    normalize_string_list,
    normalize_string_mapping,
)
from .template import TemplateError, TemplateResolver, render_template

__all__ = [
    "ArchiveArtifact",
    "ArchiveConsole",
    "ArchiveManager",
    "iter_archive_members",
    "CommandError",
    "CommandResult",
    "CommandRunner",
    "RecordingCommandRunner",
    "SubprocessCommandRunner",
    "resolve_executable",
    "FILE_LOADERS",
    "first_existing",
    "load_config_file",
    "normalize_string_list",
    "normalize_string_mapping",
    "TemplateError",
    "TemplateResolver",
    "render_template",
]
