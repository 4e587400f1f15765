"""The command tree produced by the shell parser.

A :class:`Word` is one string literal made of parts (``next_part``); parts
with ``expand`` set name an environment variable.  Literals in a list are
chained through ``next_word``.  A :class:`Command` is either a simple command
(``op`` is :attr:`Operator.NONE`) or two commands joined by an operator.
"""

from __future__ import annotations

import enum
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

__all__ = ["IOFlags", "Operator", "Word", "SimpleCommand", "Command"]


class IOFlags(enum.IntFlag):
    """Redirection modes."""

    REGULAR = 0x00
    OUT_APPEND = 0x01
    ERR_APPEND = 0x02


class Operator(enum.IntEnum):
    """How the two children of a command are combined."""

    NONE = 0
    SEQUENTIAL = 1
    PARALLEL = 2
    CONDITIONAL_ZERO = 3
    CONDITIONAL_NZERO = 4
    PIPE = 5


@dataclass
class Word:
    """One part of a string literal, linked to the rest of it and the list."""

    string: str
    expand: bool = False
    next_part: Word | None = None
    next_word: Word | None = None

    def iter_parts(self) -> Iterator[Word]:
        """Yield this part and every following part of the same literal."""
        part: Word | None = self
        while part is not None:
            yield part
            part = part.next_part

    def iter_words(self) -> Iterator[Word]:
        """Yield this literal and every following literal of the list."""
        word: Word | None = self
        while word is not None:
            yield word
            word = word.next_word


@dataclass
class SimpleCommand:
    """A verb with its parameters and redirections."""

    verb: Word
    params: Word | None = None
    in_: Word | None = None
    out: Word | None = None
    err: Word | None = None
    io_flags: IOFlags = IOFlags.REGULAR
    up: Command | None = field(default=None, compare=False, repr=False)
    aux: Any = field(default=None, compare=False, repr=False)


@dataclass
class Command:
    """A node of the command tree.

    Children get their ``up`` link set to this node on construction.
    """

    op: Operator
    scmd: SimpleCommand | None = None
    cmd1: Command | None = None
    cmd2: Command | None = None
    up: Command | None = field(default=None, compare=False, repr=False)
    aux: Any = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        self.op = Operator(self.op)
        if self.op is Operator.NONE:
            if self.scmd is None or self.cmd1 is not None or self.cmd2 is not None:
                raise ValueError("a simple command node holds only scmd")
            self.scmd.up = self
        else:
            if self.scmd is not None or self.cmd1 is None or self.cmd2 is None:
                raise ValueError("an operator node holds cmd1 and cmd2 only")
            self.cmd1.up = self
            self.cmd2.up = self