class GmaError(Exception):
    """Base class for GMA-specific errors."""


# Decode: structural
class InvalidHeader(GmaError):
    def __init__(self, actual: bytes):
        self.actual = actual
        super().__init__(f"invalid header: {actual.decode('utf-8', errors='replace')!r}")


class InvalidVersion(GmaError):
    def __init__(self, actual: int):
        self.actual = actual
        super().__init__(f"invalid version: {actual}")


class MissingNullTerminator(GmaError):
    def __init__(self):
        super().__init__("missing null terminator in string field")


class SizeOutOfRange(GmaError):
    def __init__(self, size: int):
        self.size = size
        super().__init__(f"negative or invalid size: {size}")


class TrailingMarkerMismatch(GmaError):
    def __init__(self, actual: int):
        self.actual = actual
        super().__init__(f"expected trailing 0 u32 marker, got {actual}")


# Encode: input validation
class InvalidInput(GmaError, ValueError):
    pass
