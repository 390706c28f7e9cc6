from __future__ import annotations

"""Base64 VLQ codec used by the `mappings` field of v3 source maps.

Each signed integer is turned into an unsigned one by moving the sign into the
lowest bit, then emitted as 5-bit groups, least significant first. Every group
but the last has the continuation bit (0x20) set, and each 6-bit group is one
character of the base64 alphabet.

    "A" -> 0     "C" -> 1     "D" -> -1     "gB" -> 16
"""

from collections.abc import Iterable

from .errors import FormatError

ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
_CHAR_TO_INT = {c: i for i, c in enumerate(ALPHABET)}

VLQ_SHIFT = 5
VLQ_CONTINUATION = 1 << VLQ_SHIFT
VLQ_MASK = VLQ_CONTINUATION - 1

INT32_MIN = -(1 << 31)
INT32_MAX = (1 << 31) - 1


def encode_int(value: int) -> str:
    if not INT32_MIN <= value <= INT32_MAX:
        raise ValueError(f"VLQ value out of 32-bit range: {value}")

    raw = ((-value) << 1) | 1 if value < 0 else value << 1

    chars: list[str] = []
    while True:
        digit = raw & VLQ_MASK
        raw >>= VLQ_SHIFT
        if raw:
            digit |= VLQ_CONTINUATION
        chars.append(ALPHABET[digit])
        if not raw:
            return "".join(chars)


def encode(values: Iterable[int]) -> str:
    return "".join(encode_int(v) for v in values)


def decode(text: str) -> list[int]:
    """Decode every integer in `text`.

    Raises FormatError for characters outside the alphabet, for input that
    ends in the middle of a continuation sequence, and for values that do not
    fit in 32 bits.
    """

    values: list[int] = []
    raw = 0
    shift = 0

    for pos, char in enumerate(text):
        digit = _CHAR_TO_INT.get(char)
        if digit is None:
            raise FormatError(f"Invalid base64 VLQ character {char!r} at offset {pos} in {text!r}")

        raw |= (digit & VLQ_MASK) << shift
        if digit & VLQ_CONTINUATION:
            shift += VLQ_SHIFT
            continue

        magnitude = raw >> 1
        value = -magnitude if raw & 1 else magnitude
        if not INT32_MIN <= value <= INT32_MAX:
            raise FormatError(f"VLQ value out of 32-bit range in {text!r}")
        values.append(value)
        raw = 0
        shift = 0

    if shift:
        raise FormatError(f"Truncated VLQ continuation sequence in {text!r}")

    return values
