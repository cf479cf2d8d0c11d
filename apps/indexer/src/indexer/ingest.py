from __future__ import annotations

import argparse
from pathlib import Path
import sys

from indexer.config import get_settings
from indexer.services.jsonl import GcsStorage, SqliteIndexBuilder, Storage, run_ingestion


def _build_parser() -> argparse.ArgumentParser:
    settings = get_settings()

    parser = argparse.ArgumentParser(
        prog="jsonl-index",
        description="Index gzipped JSONL source archives from local disk or GCS",
    )
    parser.add_argument(
        "--index-dir",
        default=settings.index_dir,
        help="Index directory for segment files",
    )
    parser.add_argument(
        "--index-name",
        default=settings.index_name,
        help="Repository name recorded in the index segment",
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--file",
        default=None,
        help="File to index (gzipped jsonl), local path or gs://bucket/object",
    )
    source.add_argument(
        "--dir",
        default=None,
        help="Dir to index (has to contain gzipped jsonl files), local path or gs://bucket/prefix",
    )
    parser.add_argument(
        "--suffix",
        default=settings.archive_suffix,
        help="Archive name suffix used in --dir mode",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    settings = get_settings()

    try:
        builder = SqliteIndexBuilder(
            index_dir=Path(args.index_dir),
            repository_name=args.index_name,
            batch_size=settings.builder_batch_size,
        )
        summary = run_ingestion(
            builder=builder,
            storage=Storage(remote=GcsStorage(project=settings.gcs_project)),
            file=args.file,
            directory=args.dir,
            suffix=args.suffix,
            chunk_size=settings.read_chunk_bytes,
        )
    except Exception as exc:
        print(f"[jsonl-index] failed: {exc}", file=sys.stderr, flush=True)
        raise SystemExit(1) from exc

    print(
        "[jsonl-index] completed "
        f"archives={summary.archive_count} "
        f"documents={summary.document_count} "
        f"index_file={summary.index_file} "
        f"duration_ms={summary.duration_ms}",
        flush=True,
    )


if __name__ == "__main__":
    main()
