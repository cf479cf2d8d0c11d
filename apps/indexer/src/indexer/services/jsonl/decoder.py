from __future__ import annotations

import codecs
import gzip
import json
import re
from typing import IO, Any
import zlib

from pydantic import ValidationError

from indexer.services.jsonl.errors import DecodeFailed
from indexer.services.jsonl.types import FileRecord

DEFAULT_CHUNK_SIZE = 1024 * 1024

_JSON_WHITESPACE = re.compile(r"[ \t\n\r]*")
_NUMBER_TAIL = re.compile(r"[-+0-9.eE]*")
_LITERALS = ("true", "false", "null", "NaN", "Infinity", "-Infinity")
_STREAM_ERRORS = (EOFError, zlib.error, gzip.BadGzipFile)


def _may_continue(exc: json.JSONDecodeError) -> bool:
    """Whether more input could still turn the failing text into valid JSON."""
    if exc.msg.startswith("Unterminated string"):
        return True
    tail = exc.doc[exc.pos:].rstrip(" \t\n\r")
    if exc.msg.startswith("Invalid \\uXXXX escape"):
        return len(tail) < 7
    if len(tail) > len("-Infinity"):
        return False
    return _NUMBER_TAIL.fullmatch(tail) is not None or any(
        literal.startswith(tail) for literal in _LITERALS
    )


class RecordDecoder:
    """Pull-based iterator over JSON objects concatenated in a byte stream.

    Values need no separator other than optional whitespace. Bytes are read
    in chunks and only the unparsed tail is kept in memory, so an archive is
    never materialized as a whole. The iterator consumes its stream and
    cannot be restarted.
    """

    def __init__(
        self,
        stream: IO[bytes],
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        source: str = "<stream>",
    ) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be > 0")
        self._stream = stream
        self._chunk_size = chunk_size
        self._source = source
        self._text = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._json = json.JSONDecoder()
        self._buffer = ""
        self._cursor = 0
        self._eof = False
        self._position = 0

    def __iter__(self) -> RecordDecoder:
        return self

    def __next__(self) -> FileRecord:
        while True:
            self._cursor = _JSON_WHITESPACE.match(self._buffer, self._cursor).end()
            if self._cursor < len(self._buffer):
                try:
                    value, end = self._json.raw_decode(self._buffer, self._cursor)
                except json.JSONDecodeError as exc:
                    if self._eof or not _may_continue(exc):
                        raise DecodeFailed(
                            f"failed to decode JSON in {self._source} "
                            f"at record {self._position + 1}: {exc.msg}"
                        ) from exc
                    # a value spanning chunks at least doubles the next read
                    self._fill(max(self._chunk_size, len(self._buffer) - self._cursor))
                    continue

                self._cursor = end
                self._position += 1
                return self._to_record(value)

            if self._eof:
                raise StopIteration
            self._fill()

    def _fill(self, size: int | None = None) -> None:
        # drop the consumed prefix before growing the buffer
        self._buffer = self._buffer[self._cursor:]
        self._cursor = 0

        try:
            chunk = self._stream.read(size or self._chunk_size)
        except _STREAM_ERRORS as exc:
            raise DecodeFailed(f"failed to read {self._source}: {exc}") from exc

        if chunk:
            self._buffer += self._text.decode(chunk)
        else:
            self._buffer += self._text.decode(b"", final=True)
            self._eof = True

    def _to_record(self, value: Any) -> FileRecord:
        if not isinstance(value, dict):
            raise DecodeFailed(
                f"failed to decode JSON in {self._source} at record {self._position}: "
                f"expected an object, got {type(value).__name__}"
            )
        try:
            return FileRecord.model_validate(value)
        except ValidationError as exc:
            raise DecodeFailed(
                f"failed to decode JSON in {self._source} at record {self._position}: {exc}"
            ) from exc


def decode_records(
    stream: IO[bytes],
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    source: str = "<stream>",
) -> RecordDecoder:
    return RecordDecoder(stream, chunk_size=chunk_size, source=source)
