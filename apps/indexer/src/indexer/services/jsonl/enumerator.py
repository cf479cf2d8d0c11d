from __future__ import annotations

from indexer.services.jsonl.locator import classify_root
from indexer.services.jsonl.storage import Storage
from indexer.services.jsonl.types import ArchiveAddress


def enumerate_archives(root: str, suffix: str, *, storage: Storage) -> list[ArchiveAddress]:
    """List every archive under ``root`` whose name ends with ``suffix``.

    The listing is eager: a walk or pagination error raises
    ``EnumerationFailed`` instead of returning a truncated list.
    """
    return storage.list(classify_root(root), suffix)
