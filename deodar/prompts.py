"""Interactive questions for the ``new`` command."""
from __future__ import annotations

from typing import Sequence

from prompt_toolkit import prompt
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.validation import Validator


def _required() -> Validator:
    return Validator.from_callable(
        lambda text: bool(text.strip()),
        error_message="A value is required",
        move_cursor_to_end=True,
    )


def ask_text(message: str, default: str = "") -> str:
    return prompt(f"{message} ", default=default, validator=_required()).strip()


def ask_confirm(message: str, default: bool = False) -> bool:
    hint = "Y/n" if default else "y/N"
    validator = Validator.from_callable(
        lambda text: text.strip().lower() in {"", "y", "yes", "n", "no"},
        error_message="Answer y or n",
    )
    answer = prompt(f"{message} ({hint}) ", validator=validator).strip().lower()
    if not answer:
        return default
    return answer in {"y", "yes"}


def ask_choice(message: str, choices: Sequence[str], default: str | None = None) -> str:
    validator = Validator.from_callable(
        lambda text: text.strip() in choices,
        error_message=f"Choose one of: {', '.join(choices)}",
    )
    answer = prompt(
        f"{message} [{'/'.join(choices)}] ",
        default=default or "",
        completer=WordCompleter(list(choices)),
        validator=validator,
    )
    return answer.strip()
