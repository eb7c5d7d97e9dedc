"""Partitioning of a random-access source into fixed-size chunks."""

import logging
from dataclasses import dataclass
from typing import Optional

from ..backends.sources import ReaderAt
from ..errors import InvalidArgumentError
from ..units import MI, byte_count_binary
from .chunk import ByteRange, Chunk

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 4 * MI


def _require_int(name: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgumentError(f"{name} must be an integer, given: {value!r}")
    return value


def _check_size(size) -> int:
    _require_int("size", size)
    if size < 0:
        raise InvalidArgumentError(f"size should not be negative: {size}")
    return size


@dataclass(frozen=True)
class ReaderConfig:
    """Settings for a :class:`ConcurrentReader`."""
    chunk_size: int = DEFAULT_CHUNK_SIZE

    def __post_init__(self):
        _require_int("chunk_size", self.chunk_size)
        if self.chunk_size < 1:
            raise InvalidArgumentError(
                f"chunk sizes below 1 not allowed, given: {self.chunk_size}"
            )


def partition(size: int, chunk_size: int) -> tuple[ByteRange, ...]:
    """
    Split ``[0, size)`` into contiguous ranges of ``chunk_size`` bytes.

    The last range holds the remainder when ``size`` is not a multiple of
    ``chunk_size``. A size of 0 gives no ranges.

    Args:
        size: Total number of bytes; must not be negative.
        chunk_size: Bytes per range; at least 1.

    Returns:
        Ranges ordered by offset, indexed from 0.

    Raises:
        InvalidArgumentError: On a negative size or a chunk size below 1.
    """
    _check_size(size)
    cs = ReaderConfig(chunk_size=chunk_size).chunk_size

    nchunks = (size + cs - 1) // cs
    sizes = [cs] * nchunks

    # Change last chunk size to the remainder of bytes not fitting into cs.
    rem = size % cs
    if rem != 0:
        sizes[-1] = rem

    return tuple(
        ByteRange(offset=i * cs, size=sizes[i], index=i) for i in range(nchunks)
    )


class ConcurrentReader:
    """
    Splits a :class:`ReaderAt` into chunks that can be read concurrently.

    Every chunk gets its own section view over the shared source, so chunks
    can be handed to separate threads without coordination. Launching those
    threads is up to the caller.
    """

    def __init__(
        self,
        source: ReaderAt,
        size: int,
        config: Optional[ReaderConfig] = None,
        *,
        chunk_size: Optional[int] = None,
    ):
        """
        Initialize a reader.

        Args:
            source: Random-access source; must tolerate concurrent ``read_at`` calls.
            size: Total size of the source in bytes.
            config: Reader settings. Defaults to 4 MiB chunks.
            chunk_size: Shortcut for ``ReaderConfig(chunk_size=...)``.

        Raises:
            InvalidArgumentError: If the size or chunk size is invalid.
        """
        _check_size(size)
        if config is not None and chunk_size is not None:
            raise InvalidArgumentError("pass either config or chunk_size, not both")
        if config is None:
            config = (
                ReaderConfig()
                if chunk_size is None
                else ReaderConfig(chunk_size=chunk_size)
            )

        self._source = source
        self._size = size
        self._config = config
        self._ranges = partition(size, config.chunk_size)
        logger.debug(
            "partitioned %d bytes into %d chunks of %d bytes",
            size,
            len(self._ranges),
            config.chunk_size,
        )

    def __repr__(self) -> str:
        return (
            f"ConcurrentReader(size={byte_count_binary(self._size)}, "
            f"chunk_size={byte_count_binary(self.chunk_size)}, "
            f"chunks={len(self._ranges)})"
        )

    def __len__(self) -> int:
        return len(self._ranges)

    @property
    def size(self) -> int:
        return self._size

    @property
    def chunk_size(self) -> int:
        return self._config.chunk_size

    @property
    def config(self) -> ReaderConfig:
        return self._config

    @property
    def ranges(self) -> tuple[ByteRange, ...]:
        """List of byte ranges to cover, ordered from the start of the source."""
        return self._ranges

    def chop(self) -> list[Chunk]:
        """
        Bind every range to the source.

        Returns:
            New chunks ordered from the start of the source to the end; each
            call returns fresh cursors.
        """
        return [Chunk(r, self._source) for r in self._ranges]

    partition = chop

    def read_at(self, size: int, offset: int) -> bytes:
        """Read from the underlying source directly, bypassing the chunks."""
        return self._source.read_at(size, offset)
