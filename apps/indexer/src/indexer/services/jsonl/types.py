from dataclasses import dataclass
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, field_validator

GCS_SCHEME = "gs://"


@dataclass(frozen=True)
class LocalAddress:
    path: str

    def __str__(self) -> str:
        return self.path


@dataclass(frozen=True)
class RemoteAddress:
    bucket: str
    key: str

    def __str__(self) -> str:
        return f"{GCS_SCHEME}{self.bucket}/{self.key}"


ArchiveAddress = Union[LocalAddress, RemoteAddress]


class FileRecord(BaseModel):
    """One source file decoded from an archive."""

    model_config = ConfigDict(extra="ignore", strict=True, frozen=True)

    content: str = ""
    repository: str = ""
    file_path: str = ""

    @field_validator("content", "repository", "file_path", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        if value is None:
            return ""
        return value


@dataclass(frozen=True)
class Document:
    name: str
    language: str
    content: bytes


@dataclass(frozen=True)
class IngestionSummary:
    archive_count: int
    document_count: int
    index_file: str | None
    duration_ms: int
