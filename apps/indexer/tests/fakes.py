import io

from google.api_core.exceptions import NotFound, ServiceUnavailable


class FlakyReader(io.BytesIO):
    """Serves bytes until ``fail_after`` have been read, then fails like a dropped connection."""

    def __init__(self, data: bytes, *, fail_after: int) -> None:
        super().__init__(data)
        self._fail_after = fail_after

    def read(self, size: int | None = -1) -> bytes:
        if self.tell() >= self._fail_after:
            raise ServiceUnavailable("connection reset while reading object")
        if size is None or size < 0 or self.tell() + size > self._fail_after:
            size = self._fail_after - self.tell()
        return super().read(size)


class FakeBlob:
    def __init__(self, name: str, data: bytes | None, *, fail_after: int | None = None) -> None:
        self.name = name
        self._data = data
        self._fail_after = fail_after
        self.opened: list[io.BytesIO] = []

    def reload(self) -> None:
        if self._data is None:
            raise NotFound(f"object {self.name} not found")

    def open(self, mode: str) -> io.BytesIO:
        assert mode == "rb"
        if self._fail_after is None:
            stream = io.BytesIO(self._data or b"")
        else:
            stream = FlakyReader(self._data or b"", fail_after=self._fail_after)
        self.opened.append(stream)
        return stream


class FakeBucket:
    def __init__(self, client: "FakeGcsClient", name: str) -> None:
        self._client = client
        self.name = name

    def blob(self, key: str) -> FakeBlob:
        blob = FakeBlob(
            key,
            self._client.objects.get((self.name, key)),
            fail_after=self._client.fail_reads_after,
        )
        self._client.blobs.append(blob)
        return blob


class FakeGcsClient:
    def __init__(
        self,
        objects: dict[tuple[str, str], bytes],
        *,
        fail_listing_after: int | None = None,
        fail_reads_after: int | None = None,
    ) -> None:
        self.objects = objects
        self.fail_listing_after = fail_listing_after
        self.fail_reads_after = fail_reads_after
        self.blobs: list[FakeBlob] = []
        self.list_calls: list[tuple[str, str]] = []
        self.closed = 0

    def bucket(self, name: str) -> FakeBucket:
        return FakeBucket(self, name)

    def list_blobs(self, bucket: str, *, prefix: str):
        self.list_calls.append((bucket, prefix))
        for index, (bucket_name, key) in enumerate(sorted(self.objects)):
            if self.fail_listing_after is not None and index >= self.fail_listing_after:
                raise ServiceUnavailable("listing page failed")
            if bucket_name == bucket and key.startswith(prefix):
                yield FakeBlob(key, self.objects[(bucket_name, key)])

    def close(self) -> None:
        self.closed += 1
