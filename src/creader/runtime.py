"""Runtime functions that drive a ConcurrentReader over a URL."""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from creader.backends.sources import open_source
from creader.errors import InvalidArgumentError, ManifestMismatchError
from creader.hashing import new_accumulator
from creader.pipeline.chunk import ByteRange, Chunk
from creader.pipeline.reader import ConcurrentReader, DEFAULT_CHUNK_SIZE
from creader.repo.manifest import (
    ChunkDigest,
    Manifest,
    write_manifest,
    read_manifest,
    find_mismatches,
)
from creader.units import byte_count_binary

logger = logging.getLogger(__name__)


def _open_reader(url: str, chunk_size: Optional[int]) -> ConcurrentReader:
    source, size = open_source(url)
    if chunk_size is None:
        chunk_size = DEFAULT_CHUNK_SIZE
    return ConcurrentReader(source, size, chunk_size=chunk_size)


def list_chunks(url: str, chunk_size: Optional[int] = None) -> list[ByteRange]:
    """
    Print the chunk layout of a source.

    Args:
        url: Source URL (fsspec URL or http(s)).
        chunk_size: Chunk size in bytes. Defaults to 4 MiB.

    Returns:
        The byte ranges, ordered by offset.
    """
    reader = _open_reader(url, chunk_size)
    size = reader.size

    print(f"{'Index':<8} {'Offset':<16} {'Size':<12}")
    print("-" * 40)
    for r in reader.ranges:
        print(f"{r.index:<8} {r.offset:<16} {byte_count_binary(r.size):<12}")
    print(
        f"{len(reader)} chunks, {byte_count_binary(size)} total"
    )
    return list(reader.ranges)


def _hash_chunk(chunk: Chunk, algorithm: str) -> ChunkDigest:
    digest = chunk.hash(new_accumulator(algorithm)).hex()
    return ChunkDigest(
        index=chunk.index, offset=chunk.offset, size=chunk.size, digest=digest
    )


def digest_all(
    chunks: list[Chunk], algorithm: str = "sha256", workers: int = 4
) -> list[ChunkDigest]:
    """
    Hash chunks on a thread pool.

    Every chunk is hashed even when some fail; the first failure (in chunk
    order) is raised once all workers are done.

    Args:
        chunks: Chunks from :meth:`ConcurrentReader.chop`.
        algorithm: ``"crc32"`` or a hashlib algorithm name.
        workers: Number of worker threads.

    Returns:
        Digests ordered by chunk index.
    """
    if workers < 1:
        raise InvalidArgumentError(f"workers must be at least 1, given: {workers}")
    # Fail fast on an unknown algorithm before starting any thread.
    new_accumulator(algorithm)

    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(_hash_chunk, c, algorithm) for c in chunks]

    results = []
    errors = []
    for chunk, fut in zip(chunks, futures):
        err = fut.exception()
        if err is not None:
            logger.warning("chunk %d failed: %s", chunk.index, err)
            errors.append(err)
        else:
            results.append(fut.result())
    if errors:
        raise errors[0]
    return results


def hash_chunks(
    url: str,
    chunk_size: Optional[int] = None,
    algorithm: str = "sha256",
    workers: int = 4,
    manifest_url: Optional[str] = None,
) -> list[ChunkDigest]:
    """
    Hash every chunk of a source concurrently.

    Args:
        url: Source URL (fsspec URL or http(s)).
        chunk_size: Chunk size in bytes. Defaults to 4 MiB.
        algorithm: ``"crc32"`` or a hashlib algorithm name.
        workers: Number of worker threads.
        manifest_url: Optional fsspec URL to write a JSON manifest to.

    Returns:
        Digests ordered by chunk index.
    """
    reader = _open_reader(url, chunk_size)
    size = reader.size
    digests = digest_all(reader.chop(), algorithm, workers)

    for d in digests:
        print(f"{d.index:<8} {d.offset:<16} {d.size:<12} {d.digest}")

    if manifest_url:
        manifest = Manifest(
            url=url,
            size=size,
            chunk_size=reader.chunk_size,
            algorithm=algorithm,
            chunks=digests,
        )
        write_manifest(manifest, manifest_url)
        print(f"Manifest with {len(digests)} chunks written to {manifest_url}")
    return digests


def verify_chunks(url: str, manifest_url: str, workers: int = 4) -> None:
    """
    Check a source against a manifest written by :func:`hash_chunks`.

    Args:
        url: Source URL; may differ from the URL recorded in the manifest.
        manifest_url: fsspec URL of the manifest.
        workers: Number of worker threads.

    Raises:
        ManifestMismatchError: If the size or any chunk digest differs.
    """
    expected = read_manifest(manifest_url)
    source, size = open_source(url)
    if size != expected.size:
        raise ManifestMismatchError(
            f"Size mismatch: manifest has {expected.size} bytes, source has {size}"
        )

    reader = ConcurrentReader(source, size, chunk_size=expected.chunk_size)
    actual = Manifest(
        url=url,
        size=size,
        chunk_size=reader.chunk_size,
        algorithm=expected.algorithm,
        chunks=digest_all(reader.chop(), expected.algorithm, workers),
    )
    mismatches = find_mismatches(expected, actual)
    if mismatches:
        raise ManifestMismatchError(
            f"{len(mismatches)} of {len(expected.chunks)} chunks differ",
            mismatches,
        )
    print(f"OK: {len(actual.chunks)} chunks match {manifest_url}")
