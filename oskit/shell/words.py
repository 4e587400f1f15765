"""Turning parsed words into strings and argument vectors."""

from __future__ import annotations

import os
from collections.abc import Mapping

from .model import SimpleCommand, Word

__all__ = ["get_word", "get_argv"]


def get_word(word: Word | None, env: Mapping[str, str] | None = None) -> str | None:
    """Concatenate the parts of one literal, expanding variable parts.

    Variables are looked up in ``env`` (the process environment by default);
    an unset variable expands to the empty string.  ``None`` yields ``None``.
    """
    if word is None:
        return None
    environment = os.environ if env is None else env
    return "".join(
        environment.get(part.string, "") if part.expand else part.string
        for part in word.iter_parts()
    )


def get_argv(command: SimpleCommand, env: Mapping[str, str] | None = None) -> list[str]:
    """Return the verb followed by every parameter, each fully expanded."""
    verb = get_word(command.verb, env)
    if verb is None:
        raise ValueError("command has no verb")
    argv = [verb]
    if command.params is not None:
        for param in command.params.iter_words():
            text = get_word(param, env)
            assert text is not None
            argv.append(text)
    return argv