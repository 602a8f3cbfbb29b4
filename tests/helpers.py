from __future__ import annotations

from pathlib import Path
from typing import Iterable

from deodar.console import Console


def quiet_console(*, dry_run: bool = False) -> Console:
    return Console(level="none", dry_run=dry_run)


def make_plugin(root: Path, name: str = "demo-plugin") -> Path:
    project = root / name
    project.mkdir(parents=True)
    (project / f"{name}.php").write_text("<?php\n/* Plugin Name: Demo */\n")
    return project


def make_theme(root: Path, name: str = "demo-theme") -> Path:
    project = root / name
    project.mkdir(parents=True)
    (project / "functions.php").write_text("<?php\n")
    (project / "style.css").write_text("/* Theme Name: Demo */\n")
    return project


def touch_all(root: Path, relative_paths: Iterable[str], content: str = "") -> None:
    for relative in relative_paths:
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
