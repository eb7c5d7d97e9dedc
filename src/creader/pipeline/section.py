"""Read-only window onto a range of a random-access source."""

import os

from ..backends.sources import ReaderAt
from ..errors import InvalidArgumentError


class SectionReader:
    """
    Reads ``[offset, offset + size)`` of a source with its own cursor.

    The cursor belongs to this view alone; the source is only ever addressed
    by absolute offset. One view must not be used from two threads at once.
    """

    def __init__(self, source: ReaderAt, offset: int, size: int):
        self._source = source
        self._base = offset
        self._size = size
        self._pos = 0

    @property
    def size(self) -> int:
        return self._size

    def tell(self) -> int:
        return self._pos

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        if whence == os.SEEK_SET:
            pos = offset
        elif whence == os.SEEK_CUR:
            pos = self._pos + offset
        elif whence == os.SEEK_END:
            pos = self._size + offset
        else:
            raise InvalidArgumentError(f"invalid whence: {whence}")
        if pos < 0:
            raise InvalidArgumentError(f"negative seek position: {pos}")
        self._pos = pos
        return pos

    def read(self, n: int = -1) -> bytes:
        remaining = self._size - self._pos
        if remaining <= 0 or n == 0:
            return b""
        if n < 0 or n > remaining:
            n = remaining
        data = self._source.read_at(n, self._base + self._pos)
        self._pos += len(data)
        return data

    def readinto(self, buffer) -> int:
        view = memoryview(buffer).cast("B")
        data = self.read(len(view))
        view[: len(data)] = data
        return len(data)

    def read_at(self, n: int, offset: int) -> bytes:
        """Read relative to the window start without moving the cursor."""
        if offset < 0:
            raise InvalidArgumentError(f"negative offset: {offset}")
        remaining = self._size - offset
        if remaining <= 0:
            return b""
        return self._source.read_at(min(n, remaining), self._base + offset)
