"""Tests for sources, hash accumulators and byte count formatting."""

import hashlib
import io
import os
import tempfile
import threading
import zlib

import fsspec
import pytest
import requests

from creader.backends.sources import (
    ReaderAt,
    BytesReaderAt,
    FileReaderAt,
    FsspecReaderAt,
    HttpReaderAt,
    open_source,
)
from creader.errors import CReaderError, InvalidArgumentError
from creader.hashing import (
    HashAccumulator,
    HashlibAccumulator,
    Crc32Accumulator,
    new_accumulator,
)
from creader.pipeline.reader import ConcurrentReader
from creader.units import (
    KI,
    EI,
    byte_count_decimal,
    byte_count_binary,
    parse_byte_count,
)


def write_memory(url: str, data: bytes) -> None:
    with fsspec.open(url, "wb") as f:
        f.write(data)


class FakeResponse:
    def __init__(self, status_code: int, content: bytes = b"", headers=None):
        self.status_code = status_code
        self.content = content
        self.headers = headers or {}

    def raise_for_status(self):
        if self.status_code >= 400:
            raise IOError(f"HTTP {self.status_code}")


class FakeSession:
    """
    Serves one in-memory body.

    ``honour_range`` makes GETs answer 206 with a ``Content-Range``;
    ``send_length`` controls ``Content-Length`` on HEAD.
    """

    def __init__(
        self,
        body: bytes,
        honour_range: bool = True,
        send_length: bool = True,
        send_content_range: bool = True,
    ):
        self.body = body
        self.honour_range = honour_range
        self.send_length = send_length
        self.send_content_range = send_content_range
        self.requests = []
        self.heads = []

    def get(self, url, headers=None):
        self.requests.append(headers)
        total = len(self.body)
        if not self.honour_range:
            return FakeResponse(200, self.body)
        spec = headers["Range"].split("=", 1)[1]
        start, end = (int(x) for x in spec.split("-"))
        if start >= total:
            return FakeResponse(416, headers={"Content-Range": f"bytes */{total}"})
        part = self.body[start : end + 1]
        resp_headers = {}
        if self.send_content_range:
            resp_headers["Content-Range"] = (
                f"bytes {start}-{start + len(part) - 1}/{total}"
            )
        return FakeResponse(206, part, resp_headers)

    def head(self, url, headers=None, allow_redirects=True):
        self.heads.append(headers)
        if not self.send_length:
            return FakeResponse(200)
        return FakeResponse(200, headers={"Content-Length": str(len(self.body))})


class TestSources:
    """Tests for ReaderAt implementations."""

    def test_base_class_is_abstract(self):
        with pytest.raises(NotImplementedError):
            ReaderAt().read_at(1, 0)

    def test_bytes_reader(self):
        source = BytesReaderAt(b"0123456789")
        assert source.size() == 10
        assert source.read_at(3, 4) == b"456"
        assert source.read_at(5, 8) == b"89"
        assert source.read_at(5, 20) == b""
        with pytest.raises(InvalidArgumentError):
            source.read_at(1, -1)

    def test_file_reader_with_descriptor(self):
        data = os.urandom(4 * KI)
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "data.bin")
            with open(path, "wb") as f:
                f.write(data)
            with open(path, "rb") as f:
                source = FileReaderAt(f)
                assert source.size() == len(data)
                assert source.read_at(100, 1000) == data[1000:1100]
                assert source.read_at(100, len(data) - 10) == data[-10:]
                assert source.read_at(10, len(data) + 5) == b""

    def test_file_reader_without_descriptor(self):
        """In-memory file objects do not move their visible position."""
        buf = io.BytesIO(b"abcdefghij")
        buf.seek(2)
        source = FileReaderAt(buf)
        assert source.read_at(3, 5) == b"fgh"
        assert source.size() == 10
        assert buf.tell() == 8

    def test_fsspec_reader_memory(self):
        data = os.urandom(3000)
        write_memory("memory://sources/fsspec_blob.bin", data)
        source = FsspecReaderAt.from_url("memory://sources/fsspec_blob.bin")
        assert source.size() == 3000
        assert source.read_at(100, 50) == data[50:150]
        assert source.read_at(100, 2950) == data[2950:]
        assert source.read_at(0, 10) == b""

    def test_fsspec_reader_local_file(self):
        data = os.urandom(2048)
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "local.bin")
            with open(path, "wb") as f:
                f.write(data)
            source, size = open_source(f"file://{path}")
            assert size == 2048
            reader = ConcurrentReader(source, size, chunk_size=1000)
            assert [c.data() for c in reader.chop()] == [
                data[:1000],
                data[1000:2000],
                data[2000:],
            ]

    def test_open_source_missing(self):
        with pytest.raises(FileNotFoundError):
            open_source("memory://sources/does_not_exist.bin")

    def test_http_reader_range(self):
        body = os.urandom(1000)
        session = FakeSession(body)
        source = HttpReaderAt("https://example.invalid/blob", session=session)
        assert source.size() == 1000
        assert source.read_at(10, 990) == body[990:]
        assert session.requests[-1] == {
            "Range": "bytes=990-999",
            "Accept-Encoding": "identity",
        }
        assert source.read_at(10, 1000) == b""
        assert source.read_at(0, 5) == b""

    def test_http_reader_asks_for_identity_encoding(self):
        """Sizes and offsets must refer to the stored bytes, not gzip output."""
        session = FakeSession(b"0123456789")
        source = HttpReaderAt("https://example.invalid/blob", session=session)
        source.size()
        source.read_at(2, 0)
        assert session.heads == [{"Accept-Encoding": "identity"}]
        assert all(h["Accept-Encoding"] == "identity" for h in session.requests)

    def test_http_reader_ignored_range(self):
        """A server that ignores Range still yields the requested slice."""
        body = b"0123456789"
        source = HttpReaderAt("https://example.invalid/blob", FakeSession(body, False))
        assert source.read_at(3, 4) == b"456"

    def test_http_reader_ignored_range_downloads_once(self):
        body = os.urandom(10 * KI)
        session = FakeSession(body, honour_range=False)
        source = HttpReaderAt("https://example.invalid/blob", session=session)
        reader = ConcurrentReader(source, source.size(), chunk_size=KI)
        assert b"".join(c.data() for c in reader.chop()) == body
        assert [c.hexdigest("md5") for c in reader.chop()] == [
            hashlib.md5(body[i : i + KI]).hexdigest() for i in range(0, 10 * KI, KI)
        ]
        assert len(session.requests) == 1

    def test_http_reader_one_request_per_chunk(self):
        body = os.urandom(160 * KI)
        session = FakeSession(body)
        source = HttpReaderAt("https://example.invalid/blob", session=session)
        reader = ConcurrentReader(source, source.size(), chunk_size=64 * KI)
        digests = [c.hexdigest("sha256") for c in reader.chop()]
        assert digests == [
            hashlib.sha256(body[i : i + 64 * KI]).hexdigest()
            for i in range(0, 160 * KI, 64 * KI)
        ]
        assert [h["Range"] for h in session.requests] == [
            "bytes=0-65535",
            "bytes=65536-131071",
            "bytes=131072-163839",
        ]

    def test_http_reader_chunks(self):
        body = os.urandom(2500)
        source = HttpReaderAt("https://example.invalid/blob", session=FakeSession(body))
        reader = ConcurrentReader(source, source.size(), chunk_size=KI)
        digests = [c.hexdigest("md5") for c in reader.chop()]
        assert digests == [
            hashlib.md5(body[i : i + KI]).hexdigest() for i in range(0, 2500, KI)
        ]

    def test_http_size_from_content_range(self):
        """Without Content-Length the total comes from a one-byte GET."""
        session = FakeSession(b"x" * 1234, send_length=False)
        source = HttpReaderAt("https://example.invalid/blob", session=session)
        assert source.size() == 1234
        assert session.requests == [
            {"Range": "bytes=0-0", "Accept-Encoding": "identity"}
        ]

    def test_http_size_of_empty_resource(self):
        session = FakeSession(b"", send_length=False)
        source = HttpReaderAt("https://example.invalid/blob", session=session)
        assert source.size() == 0
        assert ConcurrentReader(source, source.size()).chop() == []

    def test_http_size_without_length_or_range(self):
        """A server ignoring Range is downloaded once and measured."""
        body = os.urandom(500)
        session = FakeSession(body, honour_range=False, send_length=False)
        source = HttpReaderAt("https://example.invalid/blob", session=session)
        assert source.size() == 500
        assert source.read_at(50, 100) == body[100:150]
        assert len(session.requests) == 1

    def test_http_size_unknown(self):
        session = FakeSession(
            b"0123456789", send_length=False, send_content_range=False
        )
        source = HttpReaderAt("https://example.invalid/blob", session=session)
        with pytest.raises(CReaderError, match="Cannot determine size"):
            source.size()

    def test_http_session_per_thread(self, monkeypatch):
        """Each thread gets its own session when none is passed in."""
        body = os.urandom(100)
        created = []

        class RecordingSession(FakeSession):
            def __init__(self):
                super().__init__(body)
                created.append(self)

        monkeypatch.setattr(requests, "Session", RecordingSession)
        source = HttpReaderAt("https://example.invalid/blob")

        def read_twice():
            assert source.read_at(10, 0) == body[:10]
            assert source.read_at(10, 50) == body[50:60]

        threads = [threading.Thread(target=read_twice) for _ in range(3)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(created) == 3
        assert [len(s.requests) for s in created] == [2, 2, 2]

    def test_http_injected_session_is_shared(self):
        session = FakeSession(os.urandom(100))
        source = HttpReaderAt("https://example.invalid/blob", session=session)
        worker = threading.Thread(target=source.read_at, args=(10, 0))
        worker.start()
        worker.join()
        source.read_at(10, 20)
        assert len(session.requests) == 2


class TestHashing:
    """Tests for hash accumulators."""

    def test_hashlib_accumulator(self):
        h = HashlibAccumulator("sha1")
        h.update(b"abc")
        assert h.digest() == hashlib.sha1(b"abc").digest()
        h.reset()
        h.update(b"xyz")
        assert h.hexdigest() == hashlib.sha1(b"xyz").hexdigest()

    def test_crc32_accumulator(self):
        h = Crc32Accumulator()
        h.update(b"hello ")
        h.update(b"world")
        crc = zlib.crc32(b"hello world")
        assert h.digest() == crc.to_bytes(4, "big")
        assert h.hexdigest() == f"{crc:08x}"
        h.reset()
        assert h.hexdigest() == "00000000"

    def test_new_accumulator(self):
        assert isinstance(new_accumulator("CRC32"), Crc32Accumulator)
        h = new_accumulator("sha512")
        assert isinstance(h, HashAccumulator)
        h.update(b"x")
        assert h.digest() == hashlib.sha512(b"x").digest()

    def test_unknown_algorithm(self):
        with pytest.raises(InvalidArgumentError):
            new_accumulator("no-such-hash")


class TestUnits:
    """Tests for byte count formatting."""

    @pytest.mark.parametrize(
        "b, want",
        [
            (2, "2 B"),
            (2 * 1 << 10, "2.0 kB"),
            (2 * 1 << 20, "2.1 MB"),
            (2 * 1 << 30, "2.1 GB"),
            (2 * 1 << 40, "2.2 TB"),
            (2 * 1 << 50, "2.3 PB"),
            (2 * 1 << 60, "2.3 EB"),
        ],
    )
    def test_byte_count_decimal(self, b, want):
        assert byte_count_decimal(b) == want

    @pytest.mark.parametrize(
        "b, want",
        [
            (2, "2 B"),
            (2 * 1 << 10, "2.0 KiB"),
            (2 * 1 << 20, "2.0 MiB"),
            (2 * 1 << 30, "2.0 GiB"),
            (2 * 1 << 40, "2.0 TiB"),
            (2 * 1 << 50, "2.0 PiB"),
            (2 * 1 << 60, "2.0 EiB"),
        ],
    )
    def test_byte_count_binary(self, b, want):
        assert byte_count_binary(b) == want

    def test_unit_boundaries(self):
        assert byte_count_decimal(999) == "999 B"
        assert byte_count_decimal(1000) == "1.0 kB"
        assert byte_count_binary(1023) == "1023 B"
        assert byte_count_binary(1024) == "1.0 KiB"
        assert byte_count_binary(512 * KI + 512) == "512.5 KiB"

    def test_never_raises(self):
        assert byte_count_binary(-5) == "-5 B"
        assert byte_count_decimal(0) == "0 B"
        assert byte_count_binary(1024 * EI) == "1024.0 EiB"

    def test_parse_byte_count(self):
        assert parse_byte_count("256") == 256
        assert parse_byte_count("4MiB") == 4 * 1024 * 1024
        assert parse_byte_count("64 KiB") == 64 * KI
        assert parse_byte_count("1kB") == 1000
        assert parse_byte_count("2G") == 2 * 1000**3
        assert parse_byte_count("10B") == 10

    def test_parse_byte_count_invalid(self):
        for text in ["", "abc", "-1", "1.5MiB", "4 ki"]:
            with pytest.raises(InvalidArgumentError):
                parse_byte_count(text)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
