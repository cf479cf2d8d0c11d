class IngestError(RuntimeError):
    pass


class InvalidAddressFormat(IngestError):
    pass


class OpenFailed(IngestError):
    pass


class DecompressionInitFailed(IngestError):
    pass


class DecodeFailed(IngestError):
    pass


class EnumerationFailed(IngestError):
    pass


class BuilderError(IngestError):
    pass
