"""Template rendering and ACF block scaffolding."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Tuple
import json
import re
import shutil

from core.template import TemplateError, render_template

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
BLOCK_PROVIDER = "acf"
CATEGORIES = ("text", "media", "design", "widgets", "theme", "custom")
DEFAULT_CUSTOM_CATEGORY = "deodar"


@dataclass(frozen=True, slots=True)
class BlockOptions:
    title: str
    slug: str
    category: str
    js: bool = False


def slugify(name: str) -> str:
    """``"My Block"`` -> ``"my-block"``."""
    return re.sub(r"[^a-z0-9]+", "-", name.strip().lower()).strip("-")


def title_case(name: str) -> str:
    words = re.split(r"[\s_-]+", name.strip())
    return " ".join(word[:1].upper() + word[1:] for word in words if word)


def pascal_case(slug: str) -> str:
    return "".join(part[:1].upper() + part[1:] for part in re.split(r"[^A-Za-z0-9]+", slug) if part)


def block_directory(root: Path, slug: str) -> Path:
    return root / "blocks" / BLOCK_PROVIDER / slug


def write_template(location: Path, name: str, data: Mapping[str, Any]) -> Tuple[bool, Exception | None]:
    """Render ``templates/<name>.mustache`` with *data* into *location*.

    Returns ``(True, None)`` on success and ``(False, error)`` otherwise.
    """

    try:
        template = (TEMPLATES_DIR / f"{name}.mustache").read_text(encoding="utf-8")
        Path(location).write_text(render_template(template, data), encoding="utf-8")
    except (OSError, TemplateError) as exc:
        return False, exc
    return True, None


def _json_text(value: str) -> str:
    return json.dumps(value)[1:-1]


def create_block(location: Path, options: BlockOptions) -> Tuple[bool, Exception | None]:
    """Create *location* and write the block's template files into it.

    A failed write removes *location* again so the block can be retried.
    """

    try:
        location.mkdir(parents=True)
    except OSError as exc:
        return False, exc

    script_entry = ""
    if options.js:
        script_entry = f',\n\t"viewScript": "file:./build/{options.slug}.build.js"'

    files: list[tuple[Path, str, Mapping[str, Any]]] = [
        (
            location / "block.json",
            "block.json",
            {
                "title": _json_text(options.title),
                "slug": options.slug,
                "category": _json_text(options.category),
                "script": script_entry,
            },
        ),
        (location / f"{options.slug}.php", "block.php", {"title": options.title, "slug": options.slug}),
        (location / f"{options.slug}.scss", "block.scss", {"slug": options.slug}),
    ]
    if options.js:
        files.append(
            (location / f"{options.slug}.js", "block.js", {"slug": options.slug, "pascal": pascal_case(options.slug)})
        )

    for path, template, data in files:
        ok, err = write_template(path, template, data)
        if not ok:
            shutil.rmtree(location, ignore_errors=True)
            return False, err
    return True, None
