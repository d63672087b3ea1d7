"""Compact key encoding for harness-generated keys.

The workload generator names records ``<prefix><number>`` where the prefix is
four characters (``user``) and the number is a decimal 64-bit value. On the
read path the number stands for an IPv4 address, so only its low 32 bits are
kept and sent to the store as a 4-byte big-endian key.
"""

from __future__ import annotations

KEY_PREFIX_LENGTH = 4
COMPACT_KEY_LENGTH = 4

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_INT64_MAX_DIGITS = len(str(_INT64_MAX))


class KeyFormatError(ValueError):
    """Raised when a key does not follow the ``<prefix><digits>`` convention."""


def parse_key_number(key: str) -> int:
    """Return the numeric identifier embedded after the key prefix.

    Args:
        key: Harness key such as ``user3232235777``

    Returns:
        The suffix parsed as a signed 64-bit integer

    Raises:
        KeyFormatError: If the suffix is missing, not decimal, or out of range
    """
    suffix = key[KEY_PREFIX_LENGTH:]
    digits = suffix[1:] if suffix[:1] in ("-", "+") else suffix
    if not digits or not digits.isascii() or not digits.isdigit():
        raise KeyFormatError(f"Key {key!r} has no numeric suffix")
    if len(digits.lstrip("0")) > _INT64_MAX_DIGITS:
        raise KeyFormatError(f"Key {key!r} does not fit in 64 bits")

    value = int(suffix)
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise KeyFormatError(f"Key {key!r} does not fit in 64 bits")
    return value


def encode_number(value: int) -> bytes:
    """Encode the low 32 bits of ``value`` as 4 big-endian bytes."""
    return (value & 0xFFFFFFFF).to_bytes(COMPACT_KEY_LENGTH, "big")


def compact_key(key: str) -> bytes:
    """Derive the 4-byte compact key used by reads.

    Suffixes that agree modulo 2**32 map to the same compact key.
    """
    return encode_number(parse_key_number(key))


def format_compact_key(compact: bytes) -> str:
    """Render a compact key as a dotted quad, e.g. ``192.168.1.1``."""
    if len(compact) != COMPACT_KEY_LENGTH:
        raise KeyFormatError(
            f"Compact keys are {COMPACT_KEY_LENGTH} bytes, got {len(compact)}"
        )
    return ".".join(str(b) for b in compact)
