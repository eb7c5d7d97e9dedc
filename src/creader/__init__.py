# Core
from creader.pipeline.chunk import ByteRange, Chunk
from creader.pipeline.reader import (
    ConcurrentReader,
    ReaderConfig,
    partition,
    DEFAULT_CHUNK_SIZE,
)
from creader.pipeline.section import SectionReader
from creader.errors import CReaderError, InvalidArgumentError, ManifestMismatchError

# Sources
from creader.backends.sources import (
    ReaderAt,
    BytesReaderAt,
    FileReaderAt,
    FsspecReaderAt,
    HttpReaderAt,
    open_source,
)

# Hashing
from creader.hashing import (
    HashAccumulator,
    HashlibAccumulator,
    Crc32Accumulator,
    new_accumulator,
)

# Formatting
from creader.units import (
    KI,
    MI,
    GI,
    TI,
    PI,
    EI,
    byte_count_decimal,
    byte_count_binary,
    parse_byte_count,
)

# Runtime
from creader.runtime import list_chunks, hash_chunks, verify_chunks, digest_all
from creader.repo.manifest import ChunkDigest, Manifest


__all__ = [
    # Core
    "ByteRange",
    "Chunk",
    "ConcurrentReader",
    "ReaderConfig",
    "partition",
    "DEFAULT_CHUNK_SIZE",
    "SectionReader",
    "CReaderError",
    "InvalidArgumentError",
    "ManifestMismatchError",
    # Sources
    "ReaderAt",
    "BytesReaderAt",
    "FileReaderAt",
    "FsspecReaderAt",
    "HttpReaderAt",
    "open_source",
    # Hashing
    "HashAccumulator",
    "HashlibAccumulator",
    "Crc32Accumulator",
    "new_accumulator",
    # Formatting
    "KI",
    "MI",
    "GI",
    "TI",
    "PI",
    "EI",
    "byte_count_decimal",
    "byte_count_binary",
    "parse_byte_count",
    # Runtime
    "list_chunks",
    "hash_chunks",
    "verify_chunks",
    "digest_all",
    "ChunkDigest",
    "Manifest",
]

__version__ = "0.0.1"
