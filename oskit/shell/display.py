"""A readable, indented dump of a command tree."""

from __future__ import annotations

from .model import Command, IOFlags, Operator, SimpleCommand, Word

__all__ = ["format_command"]

_INDENT = 4
_OPERATOR_NAMES = {
    Operator.SEQUENTIAL: "OP_SEQUENTIAL",
    Operator.PARALLEL: "OP_PARALLEL",
    Operator.CONDITIONAL_ZERO: "OP_CONDITIONAL_ZERO",
    Operator.CONDITIONAL_NZERO: "OP_CONDITIONAL_NZERO",
    Operator.PIPE: "OP_PIPE",
}


def _pad(level: int, extra: int = 0) -> str:
    return " " * (2 * _INDENT * level + extra)


def _word_line(word: Word) -> str:
    pieces = []
    for part in word.iter_parts():
        if part is not word and part.next_word is not None:
            raise ValueError("a word part must not start another word")
        text = f"'{part.string}'"
        pieces.append(f"expand({text})" if part.expand else text)
    return ";    ".join(pieces)


def _list_lines(word: Word, level: int) -> list[str]:
    return [_pad(level) + _word_line(item) for item in word.iter_words()]


def _section(name: str, word: Word, level: int, append: bool = False) -> list[str]:
    lines = [f"{_pad(level, _INDENT)}{name} ("]
    lines += _list_lines(word, level + 1)
    if append:
        lines.append(f"{_pad(level + 1)}APPEND")
    lines.append(f"{_pad(level, _INDENT)})")
    return lines


def _simple_lines(scmd: SimpleCommand, level: int, father: Command) -> list[str]:
    if scmd.up is not father:
        raise ValueError("simple command is not linked to its parent")
    if scmd.verb.next_word is not None:
        raise ValueError("the verb must be a single word")
    lines = [f"{_pad(level)}simple_command_t ("]
    lines += _section("verb", scmd.verb, level)
    if scmd.params is not None:
        lines += _section("params", scmd.params, level)
    if scmd.in_ is not None:
        lines += _section("in", scmd.in_, level)
    if scmd.out is not None:
        lines += _section(
            "out", scmd.out, level, bool(scmd.io_flags & IOFlags.OUT_APPEND)
        )
    if scmd.err is not None:
        lines += _section(
            "err", scmd.err, level, bool(scmd.io_flags & IOFlags.ERR_APPEND)
        )
    lines.append(f"{_pad(level)})")
    return lines


def _command_lines(command: Command, level: int, father: Command | None) -> list[str]:
    if command.up is not father:
        raise ValueError("command is not linked to its parent")
    lines = [f"{_pad(level)}command_t ("]
    if command.op is Operator.NONE:
        assert command.scmd is not None
        lines.append(f"{_pad(level, _INDENT)}scmd (")
        lines += _simple_lines(command.scmd, level + 1, command)
        lines.append(f"{_pad(level, _INDENT)})")
    else:
        assert command.cmd1 is not None and command.cmd2 is not None
        try:
            name = _OPERATOR_NAMES[command.op]
        except KeyError:
            raise ValueError(f"unknown operator {command.op!r}") from None
        lines.append(f"{_pad(level, _INDENT)}op == {name}")
        for label, child in (("cmd1", command.cmd1), ("cmd2", command.cmd2)):
            lines.append(f"{_pad(level, _INDENT)}{label} (")
            lines += _command_lines(child, level + 1, command)
            lines.append(f"{_pad(level, _INDENT)})")
    lines.append(f"{_pad(level)})")
    return lines


def format_command(command: Command) -> str:
    """Return the indented structure of ``command`` and its descendants."""
    return "\n".join(_command_lines(command, 0, command.up)) + "\n"