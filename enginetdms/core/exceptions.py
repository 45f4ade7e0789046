# enginetdms/core/exceptions.py
from __future__ import annotations


class TdmsError(Exception):
    """Base error for all enginetdms exceptions."""


# ---- Structural errors (abort the segment scan) ----
class MalformedLeadIn(TdmsError):
    """Raised when a segment does not start with a valid lead-in."""


class TruncatedSegment(TdmsError):
    """Raised when a segment declares more bytes than the file holds."""


class InvalidRawDataIndexRecord(TdmsError):
    """Raised when a raw-data index record is inconsistent with its declared length."""


class NoPreviousObjectError(TdmsError):
    """Raised when an object reuses a previous layout that was never registered."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(
            f"Object {path!r} reuses the previous raw-data index, "
            "but no concrete layout was registered for it."
        )


class MalformedSegment(TdmsError):
    """Raised when a segment cannot be interpreted against the current parse state."""


class UnknownDataType(TdmsError):
    """Raised for a data-type code with no known width or no registered decoder."""

    def __init__(self, code: int, detail: str | None = None) -> None:
        self.code = code
        msg = f"Unknown data type code 0x{code:08X}"
        if detail:
            msg = f"{msg} ({detail})"
        super().__init__(msg)


# ---- Raw-data errors (scoped to one segment) ----
class PartialChunk(TdmsError):
    """
    Raised when a raw-data region is not a whole number of chunks.

    `layout` is the same chunk layout restricted to the whole chunks, so callers
    can still consume them.
    """

    def __init__(self, segment_index: int, surplus: int, layout=None) -> None:
        self.segment_index = segment_index
        self.surplus = surplus
        self.layout = layout
        super().__init__(
            f"Segment {segment_index}: raw data leaves {surplus} surplus byte(s) "
            "after the last whole chunk."
        )

    @property
    def whole_chunks(self) -> int:
        return 0 if self.layout is None else self.layout.chunk_count


class InterleavedUnsupportedType(TdmsError):
    """Raised for interleaved layouts whose byte arrangement is not defined."""


class MalformedRawData(TdmsError):
    """Raised when raw bytes contradict the layout that describes them."""


# ---- Session / resource errors ----
class ByteSourceError(TdmsError, OSError):
    """Raised when the byte source cannot satisfy a read."""


class ParseCancelled(TdmsError):
    """Raised when a parse session is cancelled between segments."""

    def __init__(self, segment_index: int) -> None:
        self.segment_index = segment_index
        super().__init__(f"Parse cancelled before segment {segment_index}.")


class InvalidConfig(TdmsError, ValueError):
    """Raised when a ReaderConfig is constructed with invalid values."""


# ---- Validation / construction errors ----
class InvalidTypeVector(TdmsError):
    """Raised when values of the wrong kind are appended to a TypeVector."""


class InvalidChannel(TdmsError):
    """Raised when a Channel / ObjectMeta is constructed with invalid inputs."""


class InvalidDataset(TdmsError):
    """Raised when a Dataset is constructed with invalid inputs."""


# ---- Lookup errors (also behave like KeyError for dict-like APIs) ----
class ChannelNotFound(TdmsError, KeyError):
    """Raised when a requested channel path is not present."""


class ObjectNotFound(TdmsError, KeyError):
    """Raised when a requested object path is not present."""
