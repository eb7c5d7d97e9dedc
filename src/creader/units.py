"""Byte count constants and human-readable formatting."""

import re
from typing import Final

from .errors import InvalidArgumentError

# Binary prefixes for common use.
KI: Final[int] = 1 << 10
MI: Final[int] = 1 << 20
GI: Final[int] = 1 << 30
TI: Final[int] = 1 << 40
PI: Final[int] = 1 << 50
EI: Final[int] = 1 << 60

_DECIMAL_PREFIXES = "kMGTPE"
_BINARY_PREFIXES = "KMGTPE"

_SIZE_RE = re.compile(r"^\s*(\d+)\s*([kKMGTPE]|[KMGTPE]i)?B?\s*$")
_SIZE_FACTORS = {
    "k": 1000,
    "K": 1000,
    "M": 1000**2,
    "G": 1000**3,
    "T": 1000**4,
    "P": 1000**5,
    "E": 1000**6,
    "Ki": KI,
    "Mi": MI,
    "Gi": GI,
    "Ti": TI,
    "Pi": PI,
    "Ei": EI,
}


def _byte_count(b: int, unit: int, prefixes: str, suffix: str) -> str:
    if b < unit:
        return f"{b} B"
    div, exp = unit, 0
    n = b // unit
    while n >= unit and exp < len(prefixes) - 1:
        div *= unit
        exp += 1
        n //= unit
    return f"{b / div:.1f} {prefixes[exp]}{suffix}"


def byte_count_decimal(b: int) -> str:
    """Return a string representation of ``b`` bytes with a base of 10 (SI)."""
    return _byte_count(b, 1000, _DECIMAL_PREFIXES, "B")


def byte_count_binary(b: int) -> str:
    """Return a string representation of ``b`` bytes with a base of 2 (IEC)."""
    return _byte_count(b, 1024, _BINARY_PREFIXES, "iB")


def parse_byte_count(text: str) -> int:
    """
    Parse a byte count such as ``"256"``, ``"4MiB"`` or ``"1 kB"``.

    Args:
        text: Integer byte count with an optional SI or IEC unit.

    Returns:
        The number of bytes.

    Raises:
        InvalidArgumentError: If the text is not a recognised byte count.
    """
    match = _SIZE_RE.match(text)
    if not match:
        raise InvalidArgumentError(f"Not a byte count: {text!r}")
    number, prefix = match.groups()
    return int(number) * _SIZE_FACTORS.get(prefix, 1)
