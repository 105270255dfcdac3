"""Typed value encoding for the Rama JSON wire format.

The cluster parses strings that start with a ``#__`` sentinel followed by a
one-letter tag as typed values (a ``#__L42`` is a long, a ``#__S42`` a short).
Strings without a sentinel are plain JSON strings.
"""

from __future__ import annotations

import math
import struct
from decimal import Decimal

LONG_SENTINEL = "#__L"
BYTE_SENTINEL = "#__B"
SHORT_SENTINEL = "#__S"
FLOAT_SENTINEL = "#__F"
CHAR_SENTINEL = "#__C"
KEYWORD_SENTINEL = "#__K"
FUNCTION_SENTINEL = "#__f"

SENTINELS = (
    LONG_SENTINEL,
    BYTE_SENTINEL,
    SHORT_SENTINEL,
    FLOAT_SENTINEL,
    CHAR_SENTINEL,
    KEYWORD_SENTINEL,
    FUNCTION_SENTINEL,
)

OPS_NAMESPACE = "Ops"

_LONG_RANGE = (-(2**63), 2**63 - 1)
_BYTE_RANGE = (-(2**7), 2**7 - 1)
_SHORT_RANGE = (-(2**15), 2**15 - 1)


def _check_range(value: int, bounds: tuple[int, int], kind: str) -> int:
    low, high = bounds
    if not low <= value <= high:
        raise ValueError(f"{value} does not fit in a {kind} ({low}..{high})")
    return value


_F32 = struct.Struct("f")


def _unpack_f32(value: float) -> float:
    return _F32.unpack(_F32.pack(value))[0]


def _float_text(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    try:
        single = _unpack_f32(value)
    except OverflowError as e:
        raise ValueError(f"{value} does not fit in a float") from e
    # shortest decimal that reads back as the same 32-bit value, in positional notation
    for digits in range(1, 10):
        text = f"{single:.{digits}g}"
        try:
            if _unpack_f32(float(text)) == single:
                break
        except OverflowError:
            continue
    return format(Decimal(text), "f")


def encode_long(value: int) -> str:
    """Encode a 64-bit signed integer, e.g. ``encode_long(-42) == "#__L-42"``."""
    return f"{LONG_SENTINEL}{_check_range(int(value), _LONG_RANGE, 'long')}"


def encode_byte(value: int) -> str:
    """Encode an 8-bit signed integer."""
    return f"{BYTE_SENTINEL}{_check_range(int(value), _BYTE_RANGE, 'byte')}"


def encode_short(value: int) -> str:
    """Encode a 16-bit signed integer."""
    return f"{SHORT_SENTINEL}{_check_range(int(value), _SHORT_RANGE, 'short')}"


def encode_float(value: float) -> str:
    """Encode a 32-bit float, e.g. ``encode_float(1 / 3) == "#__F0.33333334"``.

    The value is rounded to single precision first. Non-finite values are
    written as ``NaN``, ``Infinity`` and ``-Infinity``.

    Raises:
        ValueError: If ``value`` is finite but outside the single-precision range
    """
    return f"{FLOAT_SENTINEL}{_float_text(float(value))}"


def encode_char(value: str) -> str:
    """Encode a single character.

    Raises:
        ValueError: If ``value`` is not exactly one code point
    """
    if len(value) != 1:
        raise ValueError(f"A char must be exactly one character, got {value!r}")
    return f"{CHAR_SENTINEL}{value}"


def encode_keyword(name: str) -> str:
    """Encode a symbolic name (keyword) verbatim."""
    return f"{KEYWORD_SENTINEL}{name}"


def encode_function(name: str) -> str:
    """Encode a reference to a named function, e.g. ``"#__fOps.IS_EVEN"``."""
    return f"{FUNCTION_SENTINEL}{name}"


def encode_ops_function(name: str) -> str:
    """Encode a reference to a built-in ``Ops`` function by its short name."""
    return encode_function(f"{OPS_NAMESPACE}.{name}")


def is_encoded(value: object) -> bool:
    """Check whether a value is a sentinel-tagged string."""
    return isinstance(value, str) and value.startswith(SENTINELS)
