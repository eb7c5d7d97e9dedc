"""Chunks: byte ranges of a source that can be read and hashed on their own."""

from dataclasses import dataclass
from typing import Iterator, Optional

from ..backends.sources import ReaderAt
from ..hashing import HashAccumulator, new_accumulator
from .section import SectionReader

# Block size used when streaming a chunk from a source that names none.
COPY_BLOCK_SIZE = 32 * 1024


@dataclass(frozen=True)
class ByteRange:
    """Describes one chunk: where it starts, how long it is, and its position."""
    offset: int
    size: int
    index: int

    @property
    def end(self) -> int:
        """Exclusive end offset."""
        return self.offset + self.size


class Chunk:
    """
    A byte range bound to a live source.

    Wraps a :class:`SectionReader` with the range's offset and an index
    showing the position relative to other chunks. ``hash`` and ``data``
    always leave the cursor at the start of the range when they return.
    """

    def __init__(self, byte_range: ByteRange, source: ReaderAt):
        self.range = byte_range
        self._sr = SectionReader(source, byte_range.offset, byte_range.size)
        self._block_size = getattr(source, "block_size", COPY_BLOCK_SIZE)

    def __repr__(self) -> str:
        return (
            f"Chunk(index={self.index}, offset={self.offset}, size={self.size})"
        )

    @property
    def offset(self) -> int:
        """Byte offset of the chunk in the source."""
        return self.range.offset

    @property
    def size(self) -> int:
        return self._sr.size

    @property
    def index(self) -> int:
        """0-based index of the chunk relative to other chunks."""
        return self.range.index

    def read(self, n: int = -1) -> bytes:
        """Read up to ``n`` bytes from the cursor; ``b""`` at the end of the range."""
        return self._sr.read(n)

    def readinto(self, buffer) -> int:
        return self._sr.readinto(buffer)

    def seek(self, offset: int, whence: int = 0) -> int:
        return self._sr.seek(offset, whence)

    def tell(self) -> int:
        return self._sr.tell()

    def rewind(self) -> None:
        self._sr.seek(0)

    def iter_blocks(self, block_size: Optional[int] = None) -> Iterator[bytes]:
        """
        Yield the whole range in blocks, rewinding when done.

        Blocks default to the source's ``block_size``, so remote sources
        are read with few large requests.
        """
        if block_size is None:
            block_size = self._block_size
        self.rewind()
        try:
            for block in iter(lambda: self._sr.read(block_size), b""):
                yield block
        finally:
            self.rewind()

    __iter__ = iter_blocks

    def hash(self, h: HashAccumulator) -> bytes:
        """
        Hash the chunk's bytes.

        Args:
            h: Accumulator; it is reset first, so leftover state is discarded.

        Returns:
            ``h.digest()`` over the whole range.
        """
        h.reset()
        for block in self.iter_blocks():
            h.update(block)
        return h.digest()

    def hexdigest(self, algorithm: str = "sha256") -> str:
        return self.hash(new_accumulator(algorithm)).hex()

    def data(self) -> bytes:
        """
        Return a copy of the chunk's bytes.

        This allocates memory for the whole chunk. Be careful with large
        chunk sizes.
        """
        self.rewind()
        try:
            # One request for the whole range; loop only on short reads.
            parts = list(iter(self._sr.read, b""))
        finally:
            self.rewind()
        return b"".join(parts)
