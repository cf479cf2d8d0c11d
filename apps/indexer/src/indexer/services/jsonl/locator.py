from __future__ import annotations

from indexer.services.jsonl.errors import InvalidAddressFormat
from indexer.services.jsonl.types import GCS_SCHEME, ArchiveAddress, LocalAddress, RemoteAddress


def is_remote(path: str) -> bool:
    return path.startswith(GCS_SCHEME)


def classify(path: str) -> ArchiveAddress:
    """Classify a single-archive address as local or ``gs://bucket/key``."""
    if not is_remote(path):
        return LocalAddress(path=path)

    bucket, separator, key = path[len(GCS_SCHEME):].partition("/")
    if not separator or not bucket:
        raise InvalidAddressFormat(
            f"Invalid GCS path format, expected 'gs://bucket/object': {path!r}"
        )
    return RemoteAddress(bucket=bucket, key=key)


def classify_root(path: str) -> ArchiveAddress:
    """Like ``classify`` but a bare ``gs://bucket`` is a valid listing root."""
    if not is_remote(path):
        return LocalAddress(path=path)

    bucket, _, prefix = path[len(GCS_SCHEME):].partition("/")
    if not bucket:
        raise InvalidAddressFormat(
            f"Invalid GCS path format, expected 'gs://bucket/prefix': {path!r}"
        )
    return RemoteAddress(bucket=bucket, key=prefix)
