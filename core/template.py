"""Placeholder resolution for scaffold and guard templates."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping
import re


_PLACEHOLDER_PATTERN = re.compile(r"\{\{([^{}]+)\}\}")


class TemplateError(ValueError):
    """Raised when template resolution fails."""


@dataclass(slots=True)
class TemplateResolver:
    """Resolves ``{{dotted.path}}`` placeholders against a nested mapping.

    Looked-up values are inserted literally; braces inside a value are never
    expanded again.
    """

    context: Mapping[str, Any]

    def render(self, text: str) -> str:
        """Return *text* with every placeholder substituted."""

        def replacement(match: re.Match[str]) -> str:
            return _to_text(self._lookup_raw(match.group(1).strip()))

        return _PLACEHOLDER_PATTERN.sub(replacement, text)

    def _lookup_raw(self, path: str) -> Any:
        current: Any = self.context
        for part in path.split("."):
            if isinstance(current, Mapping) and part in current:
                current = current[part]
                continue
            raise TemplateError(f"Cannot resolve path '{path}' in template context")
        return current


def render_template(text: str, context: Mapping[str, Any]) -> str:
    return TemplateResolver(context).render(text)


def _to_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)
