from .manifest import ChunkDigest, Manifest, write_manifest, read_manifest, find_mismatches

__all__ = [
    "ChunkDigest",
    "Manifest",
    "write_manifest",
    "read_manifest",
    "find_mismatches",
]
