from __future__ import annotations

from datetime import datetime, timezone
import hashlib
import os
from pathlib import Path
from typing import Protocol

from sqlalchemy import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from indexer.db import Base, create_segment_engine
from indexer.models import DocumentRecord, SegmentMetadataRecord
from indexer.services.jsonl.errors import BuilderError
from indexer.services.jsonl.types import Document

SEGMENT_FORMAT_VERSION = "1"


class IndexBuilder(Protocol):
    def add(self, document: Document) -> None: ...

    def finish(self) -> Path | None: ...


class SqliteIndexBuilder:
    """Writes submitted documents into a single SQLite index segment.

    Documents go to ``<segment>.tmp`` and the segment only becomes visible
    under its final name once ``finish`` succeeds.
    """

    def __init__(self, *, index_dir: Path, repository_name: str, batch_size: int = 500) -> None:
        if not repository_name or "/" in repository_name or os.sep in repository_name:
            raise ValueError(f"invalid repository name: {repository_name!r}")
        if batch_size <= 0:
            raise ValueError("batch_size must be > 0")

        self.segment_path = index_dir / f"{repository_name}.db"
        self._tmp_path = self.segment_path.with_suffix(f"{self.segment_path.suffix}.tmp")
        self._repository_name = repository_name
        self._batch_size = batch_size
        self._pending: list[dict[str, object]] = []
        self._document_count = 0
        self._finished = False

        try:
            if self._tmp_path.exists():
                self._tmp_path.unlink()
            self._engine = create_segment_engine(self._tmp_path)
            Base.metadata.create_all(bind=self._engine)
        except (OSError, SQLAlchemyError) as exc:
            raise BuilderError(f"failed to create index segment {self._tmp_path}: {exc}") from exc
        self._session = Session(self._engine)

    @property
    def document_count(self) -> int:
        return self._document_count

    def add(self, document: Document) -> None:
        if self._finished:
            raise BuilderError("cannot add documents after finish")
        if not document.name:
            raise BuilderError("document name must not be empty")
        if not isinstance(document.content, bytes):
            raise BuilderError(f"document {document.name} content must be bytes")

        self._pending.append(
            {
                "name": document.name,
                "language": document.language,
                "content": document.content,
                "content_hash": hashlib.sha256(document.content).hexdigest(),
            }
        )
        self._document_count += 1
        if len(self._pending) >= self._batch_size:
            self._flush()

    def _flush(self) -> None:
        if not self._pending:
            return
        try:
            self._session.execute(insert(DocumentRecord), self._pending)
        except SQLAlchemyError as exc:
            raise BuilderError(f"failed to write documents to {self._tmp_path}: {exc}") from exc
        self._pending = []

    def finish(self) -> Path:
        if self._finished:
            raise BuilderError("finish already called")
        self._finished = True

        try:
            self._flush()
            metadata = {
                "repository_name": self._repository_name,
                "document_count": str(self._document_count),
                "created_at": datetime.now(timezone.utc).isoformat(),
                "format_version": SEGMENT_FORMAT_VERSION,
            }
            self._session.add_all(
                SegmentMetadataRecord(key=key, value=value) for key, value in metadata.items()
            )
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise BuilderError(f"failed to finalize index segment {self._tmp_path}: {exc}") from exc
        finally:
            self._session.close()
            self._engine.dispose()

        try:
            os.replace(self._tmp_path, self.segment_path)
        except OSError as exc:
            raise BuilderError(f"failed to publish index segment {self.segment_path}: {exc}") from exc
        return self.segment_path
