import argparse
import logging
import os

from creader.runtime import list_chunks, hash_chunks, verify_chunks
from creader.units import parse_byte_count


def _default_chunk_size() -> int | None:
    value = os.environ.get("CREADER_CHUNK_SIZE")
    return parse_byte_count(value) if value else None


def _chunk_size(args: argparse.Namespace) -> int | None:
    if args.chunk_size is not None:
        return args.chunk_size
    return _default_chunk_size()


def cmd_chunks(args: argparse.Namespace) -> int:
    """List the chunks of a source."""
    try:
        list_chunks(args.url, _chunk_size(args))
        return 0
    except Exception as e:
        print(f"Error: {e}")
        return 1


def cmd_hash(args: argparse.Namespace) -> int:
    """Hash every chunk of a source."""
    try:
        hash_chunks(
            args.url,
            chunk_size=_chunk_size(args),
            algorithm=args.algorithm,
            workers=args.workers,
            manifest_url=args.manifest,
        )
        return 0
    except Exception as e:
        print(f"Error: {e}")
        return 1


def cmd_verify(args: argparse.Namespace) -> int:
    """Verify a source against a manifest."""
    try:
        verify_chunks(args.url, args.manifest_url, workers=args.workers)
        return 0
    except Exception as e:
        print(f"Error: {e}")
        return 1


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="creader", description="Read and hash large sources in chunks"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    sub = parser.add_subparsers(dest="cmd", required=True)

    # chunks
    p_chunks = sub.add_parser("chunks", help="Show the chunk layout of a source")
    p_chunks.add_argument(
        "url",
        help="Source URL (e.g., file:///path, s3://bucket/key, memory://blob, https://host/file)",
    )
    p_chunks.add_argument(
        "--chunk-size",
        "-c",
        type=parse_byte_count,
        default=None,
        help="Chunk size, e.g. 256, 64KiB, 4MiB (default: $CREADER_CHUNK_SIZE or 4MiB)",
    )
    p_chunks.set_defaults(func=cmd_chunks)

    # hash
    p_hash = sub.add_parser("hash", help="Hash every chunk of a source")
    p_hash.add_argument("url", help="Source URL")
    p_hash.add_argument(
        "--chunk-size",
        "-c",
        type=parse_byte_count,
        default=None,
        help="Chunk size (default: $CREADER_CHUNK_SIZE or 4MiB)",
    )
    p_hash.add_argument(
        "--algorithm",
        "-a",
        default="sha256",
        help="crc32 or any hashlib algorithm (default: sha256)",
    )
    p_hash.add_argument(
        "--workers", "-w", type=int, default=4, help="Worker threads (default: 4)"
    )
    p_hash.add_argument(
        "--manifest",
        "-m",
        default=None,
        help="fsspec URL to write a JSON manifest to",
    )
    p_hash.set_defaults(func=cmd_hash)

    # verify
    p_verify = sub.add_parser("verify", help="Verify a source against a manifest")
    p_verify.add_argument("url", help="Source URL")
    p_verify.add_argument("manifest_url", help="fsspec URL of the manifest")
    p_verify.add_argument(
        "--workers", "-w", type=int, default=4, help="Worker threads (default: 4)"
    )
    p_verify.set_defaults(func=cmd_verify)

    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
