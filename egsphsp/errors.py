"""
Exceptions raised while reading, writing and transforming phase space files.

Operating-system failures (missing files, permissions, ...) are not wrapped;
they propagate as the builtin OSError.
"""


class EGSError(Exception):
    """Base class for all phase space errors."""


class BadModeError(EGSError):
    """First 5 bytes of the file are neither MODE0 nor MODE2."""

    def __init__(self, mode: bytes):
        self.mode = mode
        super().__init__(f"First 5 bytes of file are invalid ({mode!r}), "
                         f"must be MODE0 or MODE2")


class BadLengthError(EGSError):
    """Declared particle count does not match the byte length of the file."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Expected {expected} bytes in file, not {actual}")


class ModeMismatchError(EGSError):
    """Headers with different modes cannot be merged."""

    def __init__(self, first: bytes, second: bytes):
        self.first = first
        self.second = second
        super().__init__(f"Input file modes do not match: "
                         f"{first.decode('ascii', 'replace')} vs "
                         f"{second.decode('ascii', 'replace')}")


class HeaderMismatchError(EGSError):
    """Headers are different."""


class RecordMismatchError(EGSError):
    """Records are different."""

    def __init__(self, index: int, message: str = "Records are different"):
        self.index = index
        super().__init__(f"{message} (record {index})")


class TruncatedFileError(EGSError):
    """Stream ended before the header or the declared records were read."""


class ParticleCountOverflowError(EGSError):
    """Total particle count no longer fits a signed 32-bit integer."""

    def __init__(self):
        super().__init__("Too many particles, i32 overflow")
