"""A compact printf-style formatter with C conversion semantics.

Supported conversions are ``d i u x X o b f F e E g G c s p %`` with the
flags ``0 - + space #``, a width and precision (either may be ``*``) and the
length modifiers ``hh h l ll t j z``.  Integer arguments are reduced to the
width of the C type that the length modifier selects.
"""

from __future__ import annotations

import sys
from collections.abc import Callable, Iterable, Iterator
from typing import Any

from .numbers import Flags, format_exponent, format_fixed, format_integer

__all__ = ["vsnprintf", "snprintf", "sprintf", "vprintf", "printf", "fctprintf"]

_FLAG_CHARS = {
    "0": Flags.ZEROPAD,
    "-": Flags.LEFT,
    "+": Flags.PLUS,
    " ": Flags.SPACE,
    "#": Flags.HASH,
}
_DIGITS = "0123456789"
_INTEGER_SPECS = "diuxXob"
_POINTER_WIDTH = 16
_U64_MASK = (1 << 64) - 1


def _to_signed(value: int, bits: int) -> int:
    value &= (1 << bits) - 1
    if value >= 1 << (bits - 1):
        value -= 1 << bits
    return value


class _Arguments:
    """Sequential access to the variadic arguments."""

    def __init__(self, args: Iterable[Any]) -> None:
        self._it: Iterator[Any] = iter(args)

    def take(self) -> Any:
        try:
            return next(self._it)
        except StopIteration:
            raise ValueError("not enough arguments for format string") from None


def _read_number(fmt: str, pos: int) -> tuple[int, int]:
    start = pos
    while pos < len(fmt) and fmt[pos] in _DIGITS:
        pos += 1
    return int(fmt[start:pos]), pos


def _convert_integer(
    spec: str, args: _Arguments, precision: int, width: int, flags: int
) -> str:
    if spec in "xX":
        base = 16
    elif spec == "o":
        base = 8
    elif spec == "b":
        base = 2
    else:
        base = 10
        flags &= ~int(Flags.HASH)
    if spec == "X":
        flags |= Flags.UPPERCASE
    if spec not in "id":
        flags &= ~int(Flags.PLUS | Flags.SPACE)
    if flags & Flags.PRECISION:
        flags &= ~int(Flags.ZEROPAD)

    raw = int(args.take())
    wide = flags & (Flags.LONG | Flags.LONG_LONG)
    if spec in "id":
        if wide:
            value = _to_signed(raw, 64)
        elif flags & Flags.CHAR:
            value = _to_signed(raw, 8)
        elif flags & Flags.SHORT:
            value = _to_signed(raw, 16)
        else:
            value = _to_signed(raw, 32)
        return format_integer(abs(value), value < 0, base, precision, width, flags)

    if wide:
        value = raw & _U64_MASK
    elif flags & Flags.CHAR:
        value = raw & 0xFF
    elif flags & Flags.SHORT:
        value = raw & 0xFFFF
    else:
        value = raw & 0xFFFFFFFF
    return format_integer(value, False, base, precision, width, flags)


def _convert_char(args: _Arguments, width: int, flags: int) -> str:
    arg = args.take()
    if isinstance(arg, str):
        if len(arg) != 1:
            raise ValueError("%c expects a single character")
        char = arg
    else:
        char = chr(int(arg) & 0xFF)
    padding = " " * max(0, width - 1)
    return char + padding if flags & Flags.LEFT else padding + char


def _convert_string(args: _Arguments, precision: int, width: int, flags: int) -> str:
    text = str(args.take()).split("\0", 1)[0]
    length = min(len(text), precision) if precision else len(text)
    if flags & Flags.PRECISION:
        length = min(length, precision)
        text = text[:precision]
    padding = " " * max(0, width - length)
    return text + padding if flags & Flags.LEFT else padding + text


def _render(fmt: str, args: Iterable[Any]) -> str:
    """Produce the complete output of ``fmt`` applied to ``args``."""
    arguments = _Arguments(args)
    pieces: list[str] = []
    pos = 0
    end = len(fmt)

    while pos < end:
        char = fmt[pos]
        if char != "%":
            pieces.append(char)
            pos += 1
            continue
        pos += 1

        flags = 0
        while pos < end and fmt[pos] in _FLAG_CHARS:
            flags |= _FLAG_CHARS[fmt[pos]]
            pos += 1

        width = 0
        if pos < end and fmt[pos] in _DIGITS:
            width, pos = _read_number(fmt, pos)
        elif pos < end and fmt[pos] == "*":
            requested = int(arguments.take())
            if requested < 0:
                flags |= Flags.LEFT
                width = -requested
            else:
                width = requested
            pos += 1

        precision = 0
        if pos < end and fmt[pos] == ".":
            flags |= Flags.PRECISION
            pos += 1
            if pos < end and fmt[pos] in _DIGITS:
                precision, pos = _read_number(fmt, pos)
            elif pos < end and fmt[pos] == "*":
                precision = max(0, int(arguments.take()))
                pos += 1

        if pos < end:
            modifier = fmt[pos]
            if modifier == "l":
                flags |= Flags.LONG
                pos += 1
                if pos < end and fmt[pos] == "l":
                    flags |= Flags.LONG_LONG
                    pos += 1
            elif modifier == "h":
                flags |= Flags.SHORT
                pos += 1
                if pos < end and fmt[pos] == "h":
                    flags |= Flags.CHAR
                    pos += 1
            elif modifier in "tjz":
                flags |= Flags.LONG
                pos += 1

        if pos >= end:
            break
        spec = fmt[pos]
        pos += 1

        if spec in _INTEGER_SPECS:
            pieces.append(_convert_integer(spec, arguments, precision, width, flags))
        elif spec in "fF":
            if spec == "F":
                flags |= Flags.UPPERCASE
            pieces.append(
                format_fixed(float(arguments.take()), precision, width, flags)
            )
        elif spec in "eEgG":
            if spec in "gG":
                flags |= Flags.ADAPT_EXP
            if spec in "EG":
                flags |= Flags.UPPERCASE
            pieces.append(
                format_exponent(float(arguments.take()), precision, width, flags)
            )
        elif spec == "c":
            pieces.append(_convert_char(arguments, width, flags))
        elif spec == "s":
            pieces.append(_convert_string(arguments, precision, width, flags))
        elif spec == "p":
            flags |= Flags.ZEROPAD | Flags.UPPERCASE
            address = int(arguments.take()) & _U64_MASK
            pieces.append(
                format_integer(address, False, 16, precision, _POINTER_WIDTH, flags)
            )
        else:
            pieces.append(spec)

    return "".join(pieces)


def vsnprintf(count: int, fmt: str, args: Iterable[Any]) -> tuple[str, int]:
    """Format into a buffer of ``count`` characters including the terminator.

    Returns the stored text and the length the full output would have had;
    a length of ``count`` or more means the text was truncated.
    """
    if count < 0:
        raise ValueError("count must not be negative")
    full = _render(fmt, args)
    stored = full[: count - 1] if count else ""
    return stored, len(full)


def snprintf(count: int, fmt: str, *args: Any) -> tuple[str, int]:
    """Variadic form of :func:`vsnprintf`."""
    return vsnprintf(count, fmt, args)


def sprintf(fmt: str, *args: Any) -> str:
    """Return the complete formatted text."""
    return _render(fmt, args)


def vprintf(fmt: str, args: Iterable[Any]) -> int:
    """Write the formatted text to standard output; return its length.

    NUL characters count towards the length but are not written.
    """
    full = _render(fmt, args)
    sys.stdout.write(full.replace("\0", ""))
    return len(full)


def printf(fmt: str, *args: Any) -> int:
    """Variadic form of :func:`vprintf`."""
    return vprintf(fmt, args)


def fctprintf(out: Callable[[str], Any], fmt: str, *args: Any) -> int:
    """Pass each output character to ``out``; return the output length.

    NUL characters count towards the length but are not passed on.
    """
    full = _render(fmt, args)
    for char in full:
        if char != "\0":
            out(char)
    return len(full)