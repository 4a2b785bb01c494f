"""Strict parsing of numbers from text."""

from __future__ import annotations

import errno
import math
import os
import re
import sys
from itertools import takewhile

from netshell.errors import TaggedError

_SPACE = " \t\n\v\f\r"
_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"
_VALUES = {**{c: i for i, c in enumerate(_DIGITS)}, **{c.upper(): i for i, c in enumerate(_DIGITS)}}
_LONG_MIN = -(2**63)
_LONG_MAX = 2**63 - 1

_DECIMAL = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)
_HEX = re.compile(
    r"[+-]?0[xX]((?:[0-9a-fA-F]+\.?[0-9a-fA-F]*|\.[0-9a-fA-F]+))(?:[pP][+-]?\d+)?", re.ASCII
)
_SPECIAL = re.compile(r"[+-]?(?:inf(?:inity)?|nan(?:\([0-9A-Za-z_]*\))?)", re.IGNORECASE | re.ASCII)


def _range_error(attempt: str) -> TaggedError:
    return TaggedError(attempt, os.strerror(errno.ERANGE), errno.ERANGE)


def _digit(ch: str) -> int:
    return _VALUES.get(ch, 99)


def parse_int(text: str, base: int = 10) -> int:
    """Parse a whole string as a signed 64-bit integer in the given base.

    Leading whitespace, a sign and (for base 16 or 0) a "0x" prefix are
    accepted; anything left over after the digits is an error.
    """
    if not text:
        raise ValueError("Invalid integer string: empty")
    if base != 0 and not 2 <= base <= 36:
        raise TaggedError("strtol", os.strerror(errno.EINVAL), errno.EINVAL)

    body = text.lstrip(_SPACE)
    negative = False
    if body[:1] in ("+", "-"):
        negative = body[0] == "-"
        body = body[1:]

    if base in (0, 16) and len(body) > 2 and body[:2] in ("0x", "0X") and _digit(body[2]) < 16:
        body = body[2:]
        base = 16
    elif base == 0:
        base = 8 if body.startswith("0") else 10

    digits = "".join(takewhile(lambda ch: _digit(ch) < base, body))
    if not digits:
        raise ValueError(f"Invalid integer: {text}")

    value = int(digits, base)
    if negative:
        value = -value
    if not _LONG_MIN <= value <= _LONG_MAX:
        raise _range_error("strtol")

    if len(digits) != len(body):
        raise ValueError(f"Invalid integer: {text}")
    return value


def parse_float(text: str) -> float:
    """Parse a whole string as a floating-point number.

    Decimal, hexadecimal, infinity and NaN forms are accepted after
    optional leading whitespace; trailing characters are an error.
    """
    if not text:
        raise ValueError("Invalid floating-point string: empty")

    body = text.lstrip(_SPACE)

    if _SPECIAL.fullmatch(body):
        sign = "-" if body.startswith("-") else ""
        kind = body.lstrip("+-").lower()
        return float(sign + ("inf" if kind.startswith("inf") else "nan"))

    hex_match = _HEX.fullmatch(body)
    if hex_match:
        mantissa = hex_match.group(1)
        try:
            value = float.fromhex(body)
        except OverflowError:
            raise _range_error("strtod") from None
        nonzero = any(ch not in "0." for ch in mantissa)
    elif _DECIMAL.fullmatch(body):
        mantissa = re.split(r"[eE]", body)[0]
        value = float(body)
        nonzero = any(ch in "123456789" for ch in mantissa)
    else:
        raise ValueError(f"Invalid floating-point number: {text}")

    if math.isinf(value) or (value == 0.0 and nonzero) or 0.0 < abs(value) < sys.float_info.min:
        raise _range_error("strtod")
    return value