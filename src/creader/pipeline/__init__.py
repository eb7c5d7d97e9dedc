from .chunk import ByteRange, Chunk
from .reader import ConcurrentReader, ReaderConfig, partition, DEFAULT_CHUNK_SIZE
from .section import SectionReader

__all__ = [
    "ByteRange",
    "Chunk",
    "ConcurrentReader",
    "ReaderConfig",
    "partition",
    "DEFAULT_CHUNK_SIZE",
    "SectionReader",
]
