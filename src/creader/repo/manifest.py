"""Chunk manifests stored as JSON using fsspec."""

import json
from dataclasses import dataclass, field
from typing import Any, Optional

import fsspec


@dataclass
class ChunkDigest:
    """Digest of one chunk."""
    index: int
    offset: int
    size: int
    digest: str  # hex


@dataclass
class Manifest:
    """Per-chunk digests of a whole source."""
    url: str
    size: int
    chunk_size: int
    algorithm: str
    chunks: list[ChunkDigest] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "url": self.url,
            "size": self.size,
            "chunk_size": self.chunk_size,
            "algorithm": self.algorithm,
            "chunks": [
                {
                    "index": c.index,
                    "offset": c.offset,
                    "size": c.size,
                    "digest": c.digest,
                }
                for c in self.chunks
            ],
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "Manifest":
        """Create from dictionary."""
        chunks = [
            ChunkDigest(
                index=c["index"],
                offset=c["offset"],
                size=c["size"],
                digest=c["digest"],
            )
            for c in data["chunks"]
        ]
        return Manifest(
            url=data["url"],
            size=data["size"],
            chunk_size=data["chunk_size"],
            algorithm=data["algorithm"],
            chunks=chunks,
        )


def write_manifest(manifest: Manifest, url: str) -> None:
    """
    Write a manifest as JSON.

    Args:
        manifest: Manifest instance.
        url: fsspec URL of the output file (e.g., 'file:///tmp/m.json', 'memory://m.json').
    """
    fs, path = fsspec.core.url_to_fs(url)
    if "/" in path.strip("/"):
        fs.makedirs(path.rsplit("/", 1)[0], exist_ok=True)
    with fs.open(path, "w") as f:
        json.dump(manifest.to_dict(), f, indent=2)


def read_manifest(url: str) -> Manifest:
    """
    Load a manifest written by :func:`write_manifest`.

    Raises:
        FileNotFoundError: If there is no manifest at ``url``.
    """
    fs, path = fsspec.core.url_to_fs(url)
    if not fs.exists(path):
        raise FileNotFoundError(f"Manifest {url} not found")
    with fs.open(path, "r") as f:
        return Manifest.from_dict(json.load(f))


def find_mismatches(expected: Manifest, actual: Manifest) -> list[int]:
    """Return indices of chunks whose digest or extent differ."""
    mismatches = []
    by_index: dict[int, Optional[ChunkDigest]] = {c.index: c for c in actual.chunks}
    for c in expected.chunks:
        other = by_index.pop(c.index, None)
        if other is None or other != c:
            mismatches.append(c.index)
    mismatches.extend(by_index)
    return sorted(mismatches)
