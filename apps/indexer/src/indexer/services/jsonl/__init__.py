from indexer.services.jsonl.builder import IndexBuilder, SqliteIndexBuilder
from indexer.services.jsonl.errors import (
    BuilderError,
    DecodeFailed,
    DecompressionInitFailed,
    EnumerationFailed,
    IngestError,
    InvalidAddressFormat,
    OpenFailed,
)
from indexer.services.jsonl.ingest import index_archive, index_directory, run_ingestion
from indexer.services.jsonl.storage import GcsStorage, LocalStorage, Storage
from indexer.services.jsonl.types import Document, FileRecord, IngestionSummary

__all__ = [
    "BuilderError",
    "DecodeFailed",
    "DecompressionInitFailed",
    "Document",
    "EnumerationFailed",
    "FileRecord",
    "GcsStorage",
    "IndexBuilder",
    "IngestError",
    "IngestionSummary",
    "InvalidAddressFormat",
    "LocalStorage",
    "OpenFailed",
    "SqliteIndexBuilder",
    "Storage",
    "index_archive",
    "index_directory",
    "run_ingestion",
]
