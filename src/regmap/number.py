# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

"""
Parsing of the numeric literals found in register descriptions.

Two notations are understood:

* Sized literals in the hardware description style, ``<width>'<base><digits>``, for example
  ``8'hFF`` or ``4'b1010``. The base letter is one of ``h`` (hex), ``o`` (octal), ``d`` (decimal)
  or ``b`` (binary). Underscores may be used as digit separators.
* Plain literals: decimal (``31``), hexadecimal with a ``0x`` prefix (``0x1F``) or octal with a
  leading zero (``017``).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import ClassVar, Optional

import regmap

from .errors import NumberParseError

_SIZED_LITERAL = re.compile(r"\s*([0-9]+)'([A-Za-z])([0-9A-Fa-f_]+)\s*")
_PLAIN_LITERAL = re.compile(r"\s*(0?[xX]?)([0-9A-Fa-f]+)\s*")

_SIZED_BASES = {"h": 16, "o": 8, "d": 10}
_PLAIN_BASES = {"": 10, "0x": 16, "0X": 16, "0": 8}


@dataclass(frozen=True)
class Number:
    """Result of parsing a numeric literal."""

    # True if the literal was understood
    valid: bool

    # Width given in a sized literal, 0 otherwise. Not used to bound the value.
    width: int

    # Parsed value, 0 if the literal is invalid
    value: int

    INVALID: ClassVar[Number]


Number.INVALID = Number(valid=False, width=0, value=0)


def parse_number(text: Optional[str]) -> Number:
    """
    Parse a numeric literal.

    :param text: Literal text, surrounding whitespace is ignored.
    :return: The parsed number. Malformed input gives an invalid number; no exception is raised.
    """
    if text is None:
        return Number.INVALID

    if (match := _SIZED_LITERAL.fullmatch(text)) is not None:
        width, base, digits = match.groups()
        value = _parse_sized(base, digits.replace("_", ""))
        if value is None:
            return Number.INVALID
        return Number(valid=True, width=int(width), value=value)

    if (match := _PLAIN_LITERAL.fullmatch(text)) is not None:
        prefix, digits = match.groups()
        base = _PLAIN_BASES.get(prefix)
        if base is None:
            regmap.log.debug(f"Unsupported prefix '{prefix}' in literal {text!r}")
            return Number.INVALID
        value = _to_int(digits, base)
        if value is None:
            return Number.INVALID
        return Number(valid=True, width=0, value=value)

    regmap.log.debug(f"Unable to parse numeric literal {text!r}")
    return Number.INVALID


def require_number(text: Optional[str]) -> int:
    """
    Parse a numeric literal that must be valid.

    :param text: Literal text.
    :raises NumberParseError: If the literal is malformed.
    :return: The parsed value.
    """
    number = parse_number(text)
    if not number.valid:
        raise NumberParseError(text)
    return number.value


def _parse_sized(base: str, digits: str) -> Optional[int]:
    if base == "b":
        return _parse_binary(digits)

    radix = _SIZED_BASES.get(base)
    if radix is None:
        regmap.log.debug(f"Unable to handle base format '{base}'")
        return None

    return _to_int(digits, radix)


def _parse_binary(digits: str) -> Optional[int]:
    """Binary digits, scanned from the least significant end."""
    value = 0
    valid = True

    for bit, char in enumerate(reversed(digits)):
        if char == "1":
            value |= 1 << bit
        elif char != "0":
            regmap.log.debug(f"Invalid binary digit '{char}' in '{digits}'")
            valid = False

    return value if valid else None


def _to_int(digits: str, radix: int) -> Optional[int]:
    if not digits:
        return None
    try:
        return int(digits, radix)
    except ValueError:
        regmap.log.debug(f"Invalid base {radix} digits '{digits}'")
        return None
