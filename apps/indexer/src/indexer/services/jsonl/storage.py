from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
import os
from typing import IO, Any, Protocol

from google.api_core.exceptions import GoogleAPIError
from google.auth.exceptions import GoogleAuthError
from google.cloud import storage

from indexer.services.jsonl.errors import EnumerationFailed, OpenFailed
from indexer.services.jsonl.types import ArchiveAddress, LocalAddress, RemoteAddress

_GCS_ERRORS = (GoogleAPIError, GoogleAuthError)


class StorageBackend(Protocol):
    def open(self, address: Any) -> Any: ...

    def list(self, root: Any, suffix: str) -> list[Any]: ...


class LocalStorage:
    @contextmanager
    def open(self, address: LocalAddress) -> Iterator[IO[bytes]]:
        try:
            handle = open(address.path, "rb")
        except OSError as exc:
            raise OpenFailed(f"failed to open local file {address}: {exc}") from exc
        with handle:
            yield handle

    def list(self, root: LocalAddress, suffix: str) -> list[LocalAddress]:
        def _raise(exc: OSError) -> None:
            raise exc

        files: list[LocalAddress] = []
        try:
            for dirpath, dirnames, filenames in os.walk(root.path, onerror=_raise):
                dirnames.sort()
                for filename in sorted(filenames):
                    if filename.endswith(suffix):
                        files.append(LocalAddress(path=os.path.join(dirpath, filename)))
        except OSError as exc:
            raise EnumerationFailed(f"error walking directory {root}: {exc}") from exc
        return files


class GcsStorage:
    def __init__(
        self,
        *,
        project: str | None = None,
        client_factory: Callable[[], Any] | None = None,
    ) -> None:
        self._project = project
        self._client_factory = client_factory

    def _connect(self) -> Any:
        if self._client_factory is not None:
            return self._client_factory()
        return storage.Client(project=self._project)

    @contextmanager
    def open(self, address: RemoteAddress) -> Iterator[IO[bytes]]:
        try:
            client = self._connect()
        except _GCS_ERRORS as exc:
            raise OpenFailed(f"failed to create storage client for {address}: {exc}") from exc

        try:
            try:
                blob = client.bucket(address.bucket).blob(address.key)
                blob.reload()
                reader = blob.open("rb")
            except _GCS_ERRORS as exc:
                raise OpenFailed(f"failed to open GCS object {address}: {exc}") from exc

            with reader:
                try:
                    yield reader
                except _GCS_ERRORS as exc:
                    raise OpenFailed(f"failed to read GCS object {address}: {exc}") from exc
        finally:
            client.close()

    def list(self, root: RemoteAddress, suffix: str) -> list[RemoteAddress]:
        prefix = root.key
        # Ensure prefix ends with / if it's not empty
        if prefix and not prefix.endswith("/"):
            prefix += "/"

        try:
            client = self._connect()
        except _GCS_ERRORS as exc:
            raise EnumerationFailed(f"failed to create storage client for {root}: {exc}") from exc

        files: list[RemoteAddress] = []
        try:
            for blob in client.list_blobs(root.bucket, prefix=prefix):
                if blob.name.endswith(suffix):
                    files.append(RemoteAddress(bucket=root.bucket, key=blob.name))
        except _GCS_ERRORS as exc:
            raise EnumerationFailed(f"error iterating over bucket {root}: {exc}") from exc
        finally:
            client.close()
        return files


class Storage:
    """Dispatches each address to the backend matching its variant."""

    def __init__(
        self,
        *,
        local: StorageBackend | None = None,
        remote: StorageBackend | None = None,
    ) -> None:
        self.local = local or LocalStorage()
        self.remote = remote or GcsStorage()

    def _backend(self, address: ArchiveAddress) -> StorageBackend:
        if isinstance(address, LocalAddress):
            return self.local
        if isinstance(address, RemoteAddress):
            return self.remote
        raise TypeError(f"unsupported archive address: {address!r}")

    def open(self, address: ArchiveAddress) -> Any:
        return self._backend(address).open(address)

    def list(self, root: ArchiveAddress, suffix: str) -> list[ArchiveAddress]:
        return self._backend(root).list(root, suffix)
