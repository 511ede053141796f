"""
Conversion of numeric plist payloads to and from text.

Reals are written as the decimal value of their 64-bit IEEE-754 bit pattern
followed by the marker `L`, e.g. `4607182418800017408L` for 1.0. Only this
form guarantees that a saved state restores every double bit for bit,
including -0.0, subnormals, infinities and NaN payloads. Plain decimal text
(`0.1`, `1e-3`, `NaN`) is still accepted on input for files written by older
tools, but it is only exact when the decimal text is.
"""
import re
import struct

from .exceptions import MalformedNumberError
from .values import INT32_MAX, INT32_MIN

BITS_MARKER = "L"

INT64_MIN: int = -(2**63)
INT64_MAX: int = 2**63 - 1

_DOUBLE = struct.Struct("<d")
_INT64 = struct.Struct("<q")

_DECIMAL_INT = re.compile(r"[+-]?[0-9]+")
_DECIMAL_REAL = re.compile(
    r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?"
    r"|[+-]?(?:nan|inf|infinity)",
    re.IGNORECASE,
)


def double_to_bits(value: float) -> int:
    """Returns the raw bit pattern of `value` as a signed 64-bit integer."""
    return _INT64.unpack(_DOUBLE.pack(value))[0]


def bits_to_double(bits: int) -> float:
    """Reinterprets a signed 64-bit integer as a double."""
    return _DOUBLE.unpack(_INT64.pack(bits))[0]


def encode_real(value: float) -> str:
    """Encodes a double as its bit pattern with the trailing marker."""
    return f"{double_to_bits(value)}{BITS_MARKER}"


def decode_real(text: str) -> float:
    """Decodes the payload of a `<real>` tag.

    Args:
        text: Either a bit pattern ending in `L` or a plain decimal literal.

    Returns:
        The decoded double.

    Raises:
        MalformedNumberError: If the text is neither a valid bit pattern nor a
            valid decimal literal.
    """
    if text is None:
        raise MalformedNumberError("", "real")
    stripped = text.strip()
    if stripped.endswith(BITS_MARKER):
        if not _DECIMAL_INT.fullmatch(stripped[:-1]):
            raise MalformedNumberError(text, "real")
        bits = int(stripped[:-1], 10)
        if bits < INT64_MIN or bits > INT64_MAX:
            raise MalformedNumberError(text, "real")
        return bits_to_double(bits)
    if not _DECIMAL_REAL.fullmatch(stripped):
        raise MalformedNumberError(text, "real")
    return float(stripped)


def encode_integer(value: int) -> str:
    return str(value)


def decode_integer(text: str) -> int:
    """Decodes the payload of an `<integer>` tag as a signed 32-bit value.

    Raises:
        MalformedNumberError: On non-decimal text or values outside 32 bits.
    """
    if text is None:
        raise MalformedNumberError("", "integer")
    stripped = text.strip()
    if not _DECIMAL_INT.fullmatch(stripped):
        raise MalformedNumberError(text, "integer")
    value = int(stripped, 10)
    if value < INT32_MIN or value > INT32_MAX:
        raise MalformedNumberError(text, "integer")
    return value
