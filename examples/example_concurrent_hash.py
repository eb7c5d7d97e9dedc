"""
Example usage of creader.

This script chops a local file into chunks, hashes them on a thread pool,
writes a manifest and verifies the file against it.
You must run this from the project root directory:
  python examples/example_concurrent_hash.py
"""

import os
import sys
import tempfile
from concurrent.futures import ThreadPoolExecutor

# Ensure creader is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from creader import (
    ConcurrentReader,
    FileReaderAt,
    HashlibAccumulator,
    byte_count_binary,
    hash_chunks,
    verify_chunks,
)


def main():
    """Demonstrate chunked concurrent reads."""

    with tempfile.TemporaryDirectory() as tmpdir:
        path = os.path.join(tmpdir, "test.bin")
        with open(path, "wb") as f:
            f.write(os.urandom(512 * 1025))
        size = os.path.getsize(path)

        print("=" * 60)
        print("CREADER EXAMPLE")
        print("=" * 60)
        print(f"\nSource file: {path} ({byte_count_binary(size)})\n")

        # Step 1: Chop the file and hash each chunk on our own pool
        print("[1] Hashing 64 KiB chunks with 4 workers...")
        with open(path, "rb") as f:
            reader = ConcurrentReader(FileReaderAt(f), size, chunk_size=64 * 1024)
            chunks = reader.chop()
            with ThreadPoolExecutor(max_workers=4) as pool:
                digests = list(
                    pool.map(lambda c: c.hash(HashlibAccumulator("sha256")), chunks)
                )
            for chunk, digest in zip(chunks, digests):
                print(f"    chunk {chunk.index:>2} @ {chunk.offset:>7}: {digest.hex()[:16]}")
        print()

        # Step 2: Same thing through the runtime, with a manifest
        manifest_url = "memory://example/manifest.json"
        print(f"[2] Writing manifest to {manifest_url}...")
        hash_chunks(f"file://{path}", chunk_size=64 * 1024, manifest_url=manifest_url)
        print()

        # Step 3: Verify
        print("[3] Verifying the file against the manifest...")
        verify_chunks(f"file://{path}", manifest_url)

        print("\n" + "=" * 60)
        print("Example complete!")
        print("=" * 60)


if __name__ == "__main__":
    main()
