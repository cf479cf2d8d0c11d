from __future__ import annotations

import os
from pathlib import Path
import re
import sys
from time import perf_counter

from indexer.services.jsonl.builder import IndexBuilder
from indexer.services.jsonl.decoder import DEFAULT_CHUNK_SIZE, decode_records
from indexer.services.jsonl.errors import BuilderError
from indexer.services.jsonl.enumerator import enumerate_archives
from indexer.services.jsonl.locator import classify
from indexer.services.jsonl.reader import open_archive
from indexer.services.jsonl.storage import Storage
from indexer.services.jsonl.types import (
    ArchiveAddress,
    Document,
    FileRecord,
    IngestionSummary,
    LocalAddress,
)

DEFAULT_ARCHIVE_SUFFIX = ".jsonl.gz"

# unpaired \uD800-\uDFFF escapes decode to code points UTF-8 cannot encode
_LONE_SURROGATE = re.compile("[\ud800-\udfff]")


def _utf8_safe(text: str) -> str:
    return _LONE_SURROGATE.sub("\ufffd", text)


def language_from_address(address: ArchiveAddress, *, suffix: str = DEFAULT_ARCHIVE_SUFFIX) -> str:
    """Language tag encoded in an archive name, e.g. ``python_corpus.jsonl.gz``.

    Every record of an archive shares this tag; record contents are not
    inspected.
    """
    if isinstance(address, LocalAddress):
        file_name = os.path.basename(address.path)
    else:
        file_name = address.key.rsplit("/", 1)[-1]

    if suffix and file_name.endswith(suffix):
        file_name = file_name[: -len(suffix)]
    return file_name.split("_", 1)[0].lower()


def document_from_record(record: FileRecord, *, language: str) -> Document:
    return Document(
        name=_utf8_safe(f"{record.repository}/{record.file_path}"),
        language=language,
        content=_utf8_safe(record.content).encode("utf-8"),
    )


def index_archive(
    address: ArchiveAddress,
    *,
    builder: IndexBuilder,
    storage: Storage,
    suffix: str = DEFAULT_ARCHIVE_SUFFIX,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> int:
    language = language_from_address(address, suffix=suffix)
    submitted = 0

    with open_archive(address, storage=storage) as stream:
        for record in decode_records(stream, chunk_size=chunk_size, source=str(address)):
            document = document_from_record(record, language=language)
            try:
                builder.add(document)
            except BuilderError as exc:
                raise BuilderError(
                    f"failed to add {document.name} from {address} at record {submitted + 1}: {exc}"
                ) from exc
            submitted += 1

    print(f"[jsonl-index] indexed {address} documents={submitted}", flush=True)
    return submitted


def index_directory(
    root: str,
    *,
    builder: IndexBuilder,
    storage: Storage,
    suffix: str = DEFAULT_ARCHIVE_SUFFIX,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> tuple[int, int]:
    addresses = enumerate_archives(root, suffix, storage=storage)
    print(f"[jsonl-index] indexing {len(addresses)} files from dir {root}", flush=True)

    documents = 0
    for address in addresses:
        print(f"[jsonl-index] indexing {address}", flush=True)
        documents += index_archive(
            address,
            builder=builder,
            storage=storage,
            suffix=suffix,
            chunk_size=chunk_size,
        )
    return len(addresses), documents


def run_ingestion(
    *,
    builder: IndexBuilder,
    storage: Storage,
    file: str | None = None,
    directory: str | None = None,
    suffix: str = DEFAULT_ARCHIVE_SUFFIX,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> IngestionSummary:
    """Feed one archive or a whole directory into ``builder``.

    Aborts on the first error. ``builder.finish()`` runs exactly once, also
    after a failure; documents submitted before the failure stay submitted.
    """
    if (file is None) == (directory is None):
        raise ValueError("exactly one of file or directory must be given")

    start = perf_counter()
    failed = False
    index_file: Path | None = None
    try:
        if file is not None:
            address = classify(file)
            print(f"[jsonl-index] indexing {address}", flush=True)
            archive_count = 1
            document_count = index_archive(
                address,
                builder=builder,
                storage=storage,
                suffix=suffix,
                chunk_size=chunk_size,
            )
        else:
            archive_count, document_count = index_directory(
                directory,
                builder=builder,
                storage=storage,
                suffix=suffix,
                chunk_size=chunk_size,
            )
    except BaseException:
        failed = True
        raise
    finally:
        try:
            index_file = builder.finish()
        except Exception as exc:
            if not failed:
                raise
            print(f"[jsonl-index] finish after failure also failed: {exc}", file=sys.stderr, flush=True)

    return IngestionSummary(
        archive_count=archive_count,
        document_count=document_count,
        index_file=str(index_file) if index_file is not None else None,
        duration_ms=int((perf_counter() - start) * 1000),
    )
