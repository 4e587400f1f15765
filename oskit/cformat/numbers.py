"""Integer and floating point conversions for the compact formatter.

Each function returns the text that a single conversion produces, including
any sign, prefix and padding.  Output is limited in the same way as the fixed
32-character conversion buffers: digits that do not fit are dropped.
"""

from __future__ import annotations

import enum
import math
import struct

__all__ = ["Flags", "format_integer", "format_fixed", "format_exponent"]

_BUFFER_SIZE = 32
_DEFAULT_FLOAT_PRECISION = 6
_MAX_FLOAT = 1e9
_DBL_MAX = 1.7976931348623157e308
_POW10 = (
    1.0,
    10.0,
    100.0,
    1000.0,
    10000.0,
    100000.0,
    1000000.0,
    10000000.0,
    100000000.0,
    1000000000.0,
)
_U64_MASK = (1 << 64) - 1


class Flags(enum.IntFlag):
    """Conversion flags collected from a format specifier."""

    NONE = 0
    ZEROPAD = 1 << 0
    LEFT = 1 << 1
    PLUS = 1 << 2
    SPACE = 1 << 3
    HASH = 1 << 4
    UPPERCASE = 1 << 5
    CHAR = 1 << 6
    SHORT = 1 << 7
    LONG = 1 << 8
    LONG_LONG = 1 << 9
    PRECISION = 1 << 10
    ADAPT_EXP = 1 << 11


def _has(flags: int, flag: Flags) -> bool:
    return bool(flags & flag)


def _out_reversed(buf: list[str], width: int, flags: int) -> str:
    """Emit ``buf`` (stored least significant first) with space padding."""
    text = "".join(reversed(buf))
    if not _has(flags, Flags.LEFT) and not _has(flags, Flags.ZEROPAD):
        text = " " * max(0, width - len(buf)) + text
    if _has(flags, Flags.LEFT):
        text = text + " " * max(0, width - len(text))
    return text


def _append_sign(buf: list[str], negative: bool, flags: int) -> None:
    if len(buf) < _BUFFER_SIZE:
        if negative:
            buf.append("-")
        elif _has(flags, Flags.PLUS):
            buf.append("+")
        elif _has(flags, Flags.SPACE):
            buf.append(" ")


def _finish_integer(
    buf: list[str],
    negative: bool,
    base: int,
    precision: int,
    width: int,
    flags: int,
) -> str:
    if not _has(flags, Flags.LEFT):
        if width and _has(flags, Flags.ZEROPAD) and (
            negative or flags & (Flags.PLUS | Flags.SPACE)
        ):
            width -= 1
        while len(buf) < precision and len(buf) < _BUFFER_SIZE:
            buf.append("0")
        while (
            _has(flags, Flags.ZEROPAD)
            and len(buf) < width
            and len(buf) < _BUFFER_SIZE
        ):
            buf.append("0")

    if _has(flags, Flags.HASH):
        if (
            not _has(flags, Flags.PRECISION)
            and buf
            and (len(buf) == precision or len(buf) == width)
        ):
            buf.pop()
            if buf and base == 16:
                buf.pop()
        if len(buf) < _BUFFER_SIZE:
            if base == 16:
                buf.append("X" if _has(flags, Flags.UPPERCASE) else "x")
            elif base == 2:
                buf.append("b")
        if len(buf) < _BUFFER_SIZE:
            buf.append("0")

    _append_sign(buf, negative, flags)
    return _out_reversed(buf, width, flags)


def format_integer(
    value: int,
    negative: bool,
    base: int,
    precision: int,
    width: int,
    flags: int,
) -> str:
    """Convert the magnitude ``value`` in ``base``; ``negative`` adds a minus."""
    if value < 0:
        raise ValueError("value must be a non-negative magnitude")
    if base < 2:
        raise ValueError("base must be at least 2")
    flags = int(flags)
    if not value:
        flags &= ~int(Flags.HASH)

    letter = "A" if _has(flags, Flags.UPPERCASE) else "a"
    buf: list[str] = []
    if not _has(flags, Flags.PRECISION) or value:
        while True:
            digit = value % base
            buf.append(
                chr(ord("0") + digit) if digit < 10 else chr(ord(letter) + digit - 10)
            )
            value //= base
            if not value or len(buf) >= _BUFFER_SIZE:
                break

    return _finish_integer(buf, negative, base, precision, width, flags)


def format_fixed(value: float, precision: int, width: int, flags: int) -> str:
    """Convert ``value`` in fixed decimal notation (``%f``)."""
    flags = int(flags)
    value = float(value)

    if math.isnan(value):
        return _out_reversed(list("nan"), width, flags)
    if value < -_DBL_MAX:
        return _out_reversed(list("fni-"), width, flags)
    if value > _DBL_MAX:
        text = "fni+" if _has(flags, Flags.PLUS) else "fni"
        return _out_reversed(list(text), width, flags)

    if value > _MAX_FLOAT or value < -_MAX_FLOAT:
        return format_exponent(value, precision, width, flags)

    negative = False
    if value < 0:
        negative = True
        value = 0 - value

    if not _has(flags, Flags.PRECISION):
        precision = _DEFAULT_FLOAT_PRECISION

    buf: list[str] = []
    while len(buf) < _BUFFER_SIZE and precision > 9:
        buf.append("0")
        precision -= 1

    whole = int(value)
    tmp = (value - whole) * _POW10[precision]
    frac = int(tmp)
    diff = tmp - frac

    if diff > 0.5:
        frac += 1
        if frac >= _POW10[precision]:
            frac = 0
            whole += 1
    elif diff < 0.5:
        pass
    elif frac == 0 or frac & 1:
        frac += 1

    if precision == 0:
        diff = value - float(whole)
        if (not (diff < 0.5) or diff > 0.5) and (whole & 1):
            whole += 1
    else:
        count = precision
        while len(buf) < _BUFFER_SIZE:
            count -= 1
            buf.append(chr(48 + frac % 10))
            frac //= 10
            if not frac:
                break
        # A negative count stands for an exhausted unsigned counter.
        while len(buf) < _BUFFER_SIZE and count != 0:
            count -= 1
            buf.append("0")
        if len(buf) < _BUFFER_SIZE:
            buf.append(".")

    while len(buf) < _BUFFER_SIZE:
        buf.append(chr(48 + whole % 10))
        whole //= 10
        if not whole:
            break

    if not _has(flags, Flags.LEFT) and _has(flags, Flags.ZEROPAD):
        if width and (negative or flags & (Flags.PLUS | Flags.SPACE)):
            width -= 1
        while len(buf) < width and len(buf) < _BUFFER_SIZE:
            buf.append("0")

    _append_sign(buf, negative, flags)
    return _out_reversed(buf, width, flags)


def _bits(value: float) -> int:
    return struct.unpack("<Q", struct.pack("<d", value))[0]


def _from_bits(bits: int) -> float:
    return struct.unpack("<d", struct.pack("<Q", bits & _U64_MASK))[0]


def format_exponent(value: float, precision: int, width: int, flags: int) -> str:
    """Convert ``value`` in exponent notation (``%e``, or ``%g`` with ADAPT_EXP)."""
    flags = int(flags)
    value = float(value)

    if math.isnan(value) or value > _DBL_MAX or value < -_DBL_MAX:
        return format_fixed(value, precision, width, flags)

    negative = value < 0
    if negative:
        value = -value

    if not _has(flags, Flags.PRECISION):
        precision = _DEFAULT_FLOAT_PRECISION

    bits = _bits(value)
    exp2 = ((bits >> 52) & 0x07FF) - 1023
    mantissa = _from_bits((bits & ((1 << 52) - 1)) | (1023 << 52))
    expval = int(
        0.1760912590558
        + exp2 * 0.301029995663981
        + (mantissa - 1.5) * 0.289529654602168
    )
    exp2 = int(expval * 3.321928094887362 + 0.5)
    z = expval * 2.302585092994046 - exp2 * 0.6931471805599453
    z2 = z * z
    scale = _from_bits((exp2 + 1023) << 52)
    scale *= 1 + 2 * z / (2 - z + (z2 / (6 + (z2 / (10 + z2 / 14)))))
    if value < scale:
        expval -= 1
        scale /= 10

    minwidth = 4 if -100 < expval < 100 else 5

    if _has(flags, Flags.ADAPT_EXP):
        if 1e-4 <= value < 1e6:
            precision = precision - expval - 1 if precision > expval else 0
            flags |= Flags.PRECISION
            minwidth = 0
            expval = 0
        elif precision > 0 and _has(flags, Flags.PRECISION):
            precision -= 1

    fwidth = width - minwidth if width > minwidth else 0
    if _has(flags, Flags.LEFT) and minwidth:
        fwidth = 0

    if expval:
        value /= scale

    text = format_fixed(
        -value if negative else value,
        precision,
        fwidth,
        flags & ~int(Flags.ADAPT_EXP),
    )

    if minwidth:
        text += "E" if _has(flags, Flags.UPPERCASE) else "e"
        text += format_integer(
            -expval if expval < 0 else expval,
            expval < 0,
            10,
            0,
            minwidth - 1,
            Flags.ZEROPAD | Flags.PLUS,
        )
        if _has(flags, Flags.LEFT):
            text += " " * max(0, width - len(text))
    return text