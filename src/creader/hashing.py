"""Streaming hash accumulators usable with :meth:`Chunk.hash`."""

import hashlib
import zlib
from typing import Protocol, runtime_checkable

from .errors import InvalidArgumentError


@runtime_checkable
class HashAccumulator(Protocol):
    """Protocol for reset-able streaming hashes."""

    def reset(self) -> None: ...

    def update(self, data: bytes) -> None: ...

    def digest(self) -> bytes: ...


class HashlibAccumulator:
    """Wraps a :mod:`hashlib` algorithm; ``reset`` starts a fresh hash."""

    def __init__(self, name: str = "sha256"):
        try:
            self._h = hashlib.new(name)
        except (ValueError, TypeError) as e:
            raise InvalidArgumentError(f"Unknown hash algorithm: {name}") from e
        self.name = name

    def reset(self) -> None:
        self._h = hashlib.new(self.name)

    def update(self, data: bytes) -> None:
        self._h.update(data)

    def digest(self) -> bytes:
        return self._h.digest()

    def hexdigest(self) -> str:
        return self._h.hexdigest()


class Crc32Accumulator:
    """CRC32 checksum with a 4-byte big-endian digest."""

    name = "crc32"

    def __init__(self):
        self._crc = 0

    def reset(self) -> None:
        self._crc = 0

    def update(self, data: bytes) -> None:
        self._crc = zlib.crc32(data, self._crc)

    def digest(self) -> bytes:
        return (self._crc & 0xFFFFFFFF).to_bytes(4, "big")

    def hexdigest(self) -> str:
        return f"{self._crc & 0xFFFFFFFF:08x}"


def new_accumulator(name: str = "sha256") -> HashAccumulator:
    """
    Create an accumulator by algorithm name.

    Args:
        name: ``"crc32"`` or any name accepted by :func:`hashlib.new`.

    Raises:
        InvalidArgumentError: If the algorithm is unknown.
    """
    if name.lower() == "crc32":
        return Crc32Accumulator()
    return HashlibAccumulator(name)
