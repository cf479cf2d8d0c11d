from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
import gzip
from typing import IO

from indexer.services.jsonl.errors import DecompressionInitFailed
from indexer.services.jsonl.storage import Storage
from indexer.services.jsonl.types import ArchiveAddress

GZIP_MAGIC = b"\x1f\x8b"
GZIP_HEADER_SIZE = 10
GZIP_METHOD_DEFLATE = 8
GZIP_RESERVED_FLAGS = 0xE0


def _check_gzip_header(raw: IO[bytes], address: ArchiveAddress) -> None:
    header = raw.read(GZIP_HEADER_SIZE)
    if len(header) < GZIP_HEADER_SIZE or header[:2] != GZIP_MAGIC:
        reason = "missing gzip header"
    elif header[2] != GZIP_METHOD_DEFLATE:
        reason = f"unknown compression method {header[2]}"
    elif header[3] & GZIP_RESERVED_FLAGS:
        reason = f"reserved header flags set {header[3]:#04x}"
    else:
        raw.seek(0)
        return
    raise DecompressionInitFailed(f"failed to create gzip reader for {address}: {reason}")


@contextmanager
def open_archive(address: ArchiveAddress, *, storage: Storage) -> Iterator[IO[bytes]]:
    """Open ``address`` and yield its decompressed byte stream.

    The backend handle is released when the block exits, whether or not the
    stream was drained.
    """
    with storage.open(address) as raw:
        _check_gzip_header(raw, address)
        with gzip.GzipFile(fileobj=raw, mode="rb") as decompressed:
            yield decompressed
