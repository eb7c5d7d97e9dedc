"""Random-access byte sources.

Every source answers ``read_at(size, offset)`` without relying on an
implicit file position, so one source can serve many chunks read from
different threads at the same time.
"""

from __future__ import annotations

import logging
import os
import re
import threading
from typing import BinaryIO

import fsspec
from fsspec.spec import AbstractFileSystem

from ..errors import CReaderError, InvalidArgumentError

logger = logging.getLogger(__name__)

# Bytes per read_at call when a chunk is streamed; remote sources raise it.
DEFAULT_BLOCK_SIZE = 32 * 1024
REMOTE_BLOCK_SIZE = 4 * 1024 * 1024

IDENTITY_HEADERS = {"Accept-Encoding": "identity"}
_CONTENT_RANGE_TOTAL = re.compile(r"/(\d+)\s*$")


class ReaderAt:
    block_size = DEFAULT_BLOCK_SIZE

    def read_at(self, size: int, offset: int) -> bytes:
        """Return up to ``size`` bytes starting at ``offset``.

        Fewer bytes are returned only when the source ends first.
        """
        raise NotImplementedError

    def size(self) -> int:
        raise NotImplementedError


class BytesReaderAt(ReaderAt):
    def __init__(self, data: bytes):
        self._data = bytes(data)

    def read_at(self, size: int, offset: int) -> bytes:
        if offset < 0:
            raise InvalidArgumentError(f"negative offset: {offset}")
        return self._data[offset : offset + size]

    def size(self) -> int:
        return len(self._data)


class FileReaderAt(ReaderAt):
    """Positional reads over a binary file object.

    Uses ``os.pread`` when the object has a real file descriptor, otherwise
    seek and read are serialised with a lock.
    """

    def __init__(self, file_obj: BinaryIO):
        self._file = file_obj
        self._lock = threading.Lock()
        self._fd: int | None = None
        if hasattr(os, "pread"):
            try:
                self._fd = file_obj.fileno()
            except (AttributeError, OSError, ValueError):
                self._fd = None

    def read_at(self, size: int, offset: int) -> bytes:
        if offset < 0:
            raise InvalidArgumentError(f"negative offset: {offset}")
        if self._fd is not None:
            return _pread_full(self._fd, size, offset)
        with self._lock:
            self._file.seek(offset)
            return self._file.read(size)

    def size(self) -> int:
        if self._fd is not None:
            return os.fstat(self._fd).st_size
        with self._lock:
            pos = self._file.tell()
            end = self._file.seek(0, os.SEEK_END)
            self._file.seek(pos)
            return end


def _pread_full(fd: int, size: int, offset: int) -> bytes:
    parts = []
    while size > 0:
        data = os.pread(fd, size, offset)
        if not data:
            break
        parts.append(data)
        size -= len(data)
        offset += len(data)
    return b"".join(parts)


class FsspecReaderAt(ReaderAt):
    """Positional reads of one path on any fsspec filesystem."""

    block_size = REMOTE_BLOCK_SIZE

    def __init__(self, fs: AbstractFileSystem, path: str):
        self.fs = fs
        self.path = path
        self._size: int | None = None

    @classmethod
    def from_url(cls, url: str) -> "FsspecReaderAt":
        """
        Build a reader from an fsspec URL.

        Args:
            url: fsspec URL (e.g., 'file:///path', 's3://bucket/key', 'memory://blob').
        """
        fs, path = fsspec.core.url_to_fs(url)
        return cls(fs, path)

    def read_at(self, size: int, offset: int) -> bytes:
        if offset < 0:
            raise InvalidArgumentError(f"negative offset: {offset}")
        if size <= 0:
            return b""
        return self.fs.cat_file(self.path, start=offset, end=offset + size)

    def size(self) -> int:
        if self._size is None:
            self._size = int(self.fs.size(self.path))
        return self._size


class HttpReaderAt(ReaderAt):
    """
    Positional reads over HTTP ``Range`` requests.

    Requests ask for ``Accept-Encoding: identity`` so offsets and sizes refer
    to the stored bytes, not a compressed transfer. Without an explicit
    ``session`` every thread gets its own ``requests.Session``; a session
    passed in is shared by all threads and must tolerate that.

    A server that ignores ``Range`` and answers 200 is downloaded once and
    later reads are served from that copy.
    """

    block_size = REMOTE_BLOCK_SIZE

    def __init__(self, url: str, session=None):
        self.url = url
        self._session = session
        self._local = threading.local()
        self._lock = threading.Lock()
        self._body: bytes | None = None
        self._size: int | None = None

    def _get_session(self):
        if self._session is not None:
            return self._session
        sess = getattr(self._local, "session", None)
        if sess is None:
            import requests

            sess = requests.Session()
            self._local.session = sess
        return sess

    def _get_range(self, start: int, end: int):
        return self._get_session().get(
            self.url,
            headers={"Range": f"bytes={start}-{end}", **IDENTITY_HEADERS},
        )

    def _keep_body(self, content: bytes) -> bytes:
        with self._lock:
            if self._body is None:
                logger.debug("%s ignores Range; keeping the full body", self.url)
                self._body = content
            return self._body

    def read_at(self, size: int, offset: int) -> bytes:
        if offset < 0:
            raise InvalidArgumentError(f"negative offset: {offset}")
        if size <= 0:
            return b""
        if self._body is not None:
            return self._body[offset : offset + size]
        r = self._get_range(offset, offset + size - 1)
        if r.status_code == 416:
            # Range starts past the end of the resource.
            return b""
        r.raise_for_status()
        if r.status_code == 206:
            return r.content[:size]
        body = self._keep_body(r.content)
        return body[offset : offset + size]

    def size(self) -> int:
        if self._size is None:
            self._size = self._fetch_size()
        return self._size

    def _fetch_size(self) -> int:
        r = self._get_session().head(
            self.url, headers=IDENTITY_HEADERS, allow_redirects=True
        )
        r.raise_for_status()
        length = r.headers.get("Content-Length")
        if length is not None:
            return int(length)

        # No length on HEAD: ask for one byte and read the Content-Range total.
        r = self._get_range(0, 0)
        if r.status_code == 200:
            return len(self._keep_body(r.content))
        if r.status_code in (206, 416):
            match = _CONTENT_RANGE_TOTAL.search(r.headers.get("Content-Range", ""))
            if match:
                return int(match.group(1))
        r.raise_for_status()
        raise CReaderError(
            f"Cannot determine size of {self.url}: no Content-Length on HEAD "
            "and no total in Content-Range"
        )


def open_source(url: str) -> tuple[ReaderAt, int]:
    """
    Open a URL as a random-access source.

    ``http://`` and ``https://`` URLs are read with ``requests``; anything
    else goes through fsspec.

    Args:
        url: Source URL.

    Returns:
        Tuple of (source, total size in bytes).
    """
    if url.startswith(("http://", "https://")):
        source: ReaderAt = HttpReaderAt(url)
    else:
        source = FsspecReaderAt.from_url(url)
    size = source.size()
    logger.debug("opened %s (%d bytes)", url, size)
    return source, size
