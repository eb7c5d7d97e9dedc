from .sources import (
    ReaderAt,
    BytesReaderAt,
    FileReaderAt,
    FsspecReaderAt,
    HttpReaderAt,
    open_source,
)

__all__ = [
    "ReaderAt",
    "BytesReaderAt",
    "FileReaderAt",
    "FsspecReaderAt",
    "HttpReaderAt",
    "open_source",
]
