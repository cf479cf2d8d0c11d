from dataclasses import dataclass
from functools import lru_cache
import os


def _to_int(value: str | None, *, default: int, minimum: int) -> int:
    if value is None:
        return default
    parsed = int(value)
    return max(minimum, parsed)


def _to_optional(value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    return value.strip()


@dataclass(frozen=True)
class Settings:
    index_dir: str
    index_name: str
    archive_suffix: str
    read_chunk_bytes: int
    builder_batch_size: int
    gcs_project: str | None


@lru_cache
def get_settings() -> Settings:
    return Settings(
        index_dir=os.path.expanduser(os.getenv("INDEXER_INDEX_DIR", "~/.jsonl-index")),
        index_name=os.getenv("INDEXER_INDEX_NAME", "magicsearchdev"),
        archive_suffix=os.getenv("INDEXER_ARCHIVE_SUFFIX", ".jsonl.gz"),
        read_chunk_bytes=_to_int(
            os.getenv("INDEXER_READ_CHUNK_BYTES"),
            default=1024 * 1024,
            minimum=4096,
        ),
        builder_batch_size=_to_int(
            os.getenv("INDEXER_BUILDER_BATCH_SIZE"),
            default=500,
            minimum=1,
        ),
        gcs_project=_to_optional(os.getenv("INDEXER_GCS_PROJECT")),
    )
