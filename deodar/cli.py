"""Command line interface for deodar."""
from __future__ import annotations

from argparse import ArgumentParser, BooleanOptionalAction, Namespace
from pathlib import Path
from typing import Iterable
import sys

from core.archive import FORMAT_SUFFIXES
from core.command_runner import RecordingCommandRunner, SubprocessCommandRunner

from . import __version__
from .build import compile_project
from .bundle import bundle_project
from .console import INVALID_PROJECT_LOCATION, Console
from .project import ProjectConfig, locate
from .prompts import ask_choice, ask_confirm, ask_text
from .scaffold import (
    CATEGORIES,
    DEFAULT_CUSTOM_CATEGORY,
    BlockOptions,
    block_directory,
    create_block,
    slugify,
    title_case,
)
from .watch import run_watch


def _parse_arguments(argv: Iterable[str]) -> Namespace:
    parser = ArgumentParser(prog="deodar", description="Build tool for ACF block based WordPress plugins and themes")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug output")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only print errors")
    subparsers = parser.add_subparsers(dest="command", required=True)

    new_parser = subparsers.add_parser("new", aliases=["n"], help="Scaffold a new ACF block")
    new_parser.add_argument("name", nargs="?", help="Name of the new block")
    new_parser.add_argument("--title", help="Display label of the block")
    new_parser.add_argument("--category", help="Block category (text, media, design, widgets, theme or a custom name)")
    new_parser.add_argument("--js", action=BooleanOptionalAction, default=None, help="Include a JavaScript file")
    new_parser.add_argument("-y", "--yes", action="store_true", help="Accept defaults instead of prompting")
    new_parser.set_defaults(handler=_handle_new)

    for name, aliases, help_text, production in (
        ("development", ["d", "dev"], "Build a development build (source maps, unminified)", False),
        ("production", ["p", "prod"], "Build a production build (minified, no source maps)", True),
    ):
        build_parser = subparsers.add_parser(name, aliases=aliases, help=help_text)
        build_parser.add_argument("--dry-run", action="store_true", help="Print compiler commands without executing them")
        build_parser.add_argument("--strict", action="store_true", help="Exit with status 1 when any file fails to compile")
        build_parser.set_defaults(handler=_handle_compile, production=production)

    watch_parser = subparsers.add_parser("watch", aliases=["w", "wat"], help="Build, then rebuild on every change")
    watch_parser.set_defaults(handler=_handle_watch)

    bundle_parser = subparsers.add_parser("bundle", aliases=["b"], help="Bundle the project into dist/<name>.zip")
    bundle_parser.add_argument("--format", choices=sorted(FORMAT_SUFFIXES), default="zip", help="Archive format")
    bundle_parser.add_argument("--dry-run", action="store_true", help="List the files that would be archived")
    bundle_parser.set_defaults(handler=_handle_bundle)

    return parser.parse_args(list(argv))


def main(argv: Iterable[str] | None = None) -> int:
    args = _parse_arguments(sys.argv[1:] if argv is None else argv)
    level = "debug" if args.verbose else "error" if args.quiet else "info"
    console = Console(level=level, dry_run=getattr(args, "dry_run", False))
    return args.handler(args, Path.cwd(), console)


def _locate_or_report(workspace: Path, console: Console) -> ProjectConfig | None:
    config = locate(workspace, console=console)
    if config is None:
        console.error(INVALID_PROJECT_LOCATION)
    return config


def _handle_new(args: Namespace, workspace: Path, console: Console) -> int:
    config = _locate_or_report(workspace, console)
    if config is None:
        return 1

    name = args.name
    if not name and not args.yes:
        name = ask_text("What name/slug will your block have?")
    slug = slugify(name or "")
    if not slug:
        console.error("A block name is required.")
        return 1

    location = block_directory(config.root, slug)
    if location.exists():
        console.error(f"Block {slug} already exists.")
        return 1

    title = args.title
    if not title:
        title = title_case(name) if args.yes else ask_text("What display label will your block have?", default=title_case(name))

    js = args.js
    if js is None:
        js = False if args.yes else ask_confirm("Do you want JS included?", default=False)

    category = args.category
    if not category:
        category = CATEGORIES[0] if args.yes else ask_choice("What category is this block?", CATEGORIES)
    if category == "custom":
        category = (
            DEFAULT_CUSTOM_CATEGORY
            if args.yes
            else ask_text("What custom category does this block have?", default=DEFAULT_CUSTOM_CATEGORY)
        )

    ok, err = create_block(location, BlockOptions(title=title, slug=slug, category=category, js=js))
    if not ok:
        console.error(f"Error creating block {slug}: {err}")
        return 1
    console.success(f"Created block {location.relative_to(config.root).as_posix()}")
    return 0


def _handle_compile(args: Namespace, workspace: Path, console: Console) -> int:
    config = _locate_or_report(workspace, console)
    if config is None:
        return 1

    runner: SubprocessCommandRunner | RecordingCommandRunner
    if args.dry_run:
        runner = RecordingCommandRunner()
    else:
        runner = SubprocessCommandRunner()

    report = compile_project(config.root, config, args.production, runner=runner, console=console)

    if args.dry_run and isinstance(runner, RecordingCommandRunner):
        for line in runner.iter_formatted(workspace=config.root):
            print(line)
    if report.failed:
        console.warning(f"{len(report.failed)} file(s) failed to compile")
        if args.strict:
            return 1
    return 0


def _handle_watch(args: Namespace, workspace: Path, console: Console) -> int:
    config = _locate_or_report(workspace, console)
    if config is None:
        return 1
    return run_watch(config, console=console)


def _handle_bundle(args: Namespace, workspace: Path, console: Console) -> int:
    config = _locate_or_report(workspace, console)
    if config is None:
        return 1
    try:
        target = bundle_project(config, console=console, archive_format=args.format)
    except (OSError, ValueError) as exc:
        console.error("Failed to create archive")
        console.error(str(exc))
        return 1
    if not console.dry_run:
        console.success(f"Archive Created: {target.relative_to(config.root).as_posix()}")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
