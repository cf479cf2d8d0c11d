from collections.abc import Iterator
import gzip
import json
from pathlib import Path

import pytest

from indexer.config import get_settings
from indexer.services.jsonl.types import Document


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Iterator[None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class FakeBuilder:
    def __init__(self) -> None:
        self.documents: list[Document] = []
        self.finish_calls = 0

    def add(self, document: Document) -> None:
        self.documents.append(document)

    def finish(self) -> None:
        self.finish_calls += 1


@pytest.fixture
def builder() -> FakeBuilder:
    return FakeBuilder()


def write_archive(path: Path, records: list[dict[str, object]], *, separator: str = "\n") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = separator.join(json.dumps(record) for record in records)
    with gzip.open(path, "wb") as handle:
        handle.write(payload.encode("utf-8"))
    return path


def make_records(repository: str, count: int) -> list[dict[str, object]]:
    return [
        {"content": f"print({index})\n", "repository": repository, "file_path": f"src/m{index}.py"}
        for index in range(count)
    ]
