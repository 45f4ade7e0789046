# enginetdms/io/byte_source.py
from __future__ import annotations

import logging
import os
from typing import BinaryIO, Protocol, runtime_checkable

from enginetdms.core.exceptions import ByteSourceError


logger = logging.getLogger(__name__)


@runtime_checkable
class ByteSource(Protocol):
    """Seekable, random-access provider of file bytes."""

    def read_exact(self, offset: int, length: int) -> bytes: ...

    def file_length(self) -> int: ...


class BytesByteSource:
    """Byte source over an in-memory buffer."""

    def __init__(self, data: bytes | bytearray | memoryview):
        self._data = bytes(data)

    def read_exact(self, offset: int, length: int) -> bytes:
        if offset < 0 or length < 0 or offset + length > len(self._data):
            raise ByteSourceError(
                f"Cannot read {length} byte(s) at offset {offset}: buffer holds {len(self._data)}."
            )
        return self._data[offset:offset + length]

    def file_length(self) -> int:
        return len(self._data)

    def close(self) -> None:
        pass

    def __enter__(self) -> "BytesByteSource":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class FileByteSource:
    """
    Byte source over a file on disk.

    Opened once per parse session; use as a context manager so the handle is
    released when the session ends or fails.
    """

    def __init__(self, path: str | os.PathLike):
        self.path = os.fspath(path)
        logger.debug("opening path '%s'", self.path)
        self._fh: BinaryIO | None = open(self.path, "rb")
        self._length = os.fstat(self._fh.fileno()).st_size

    def read_exact(self, offset: int, length: int) -> bytes:
        if self._fh is None:
            raise ByteSourceError(f"Byte source for '{self.path}' is closed.")
        if offset < 0 or length < 0 or offset + length > self._length:
            raise ByteSourceError(
                f"Cannot read {length} byte(s) at offset {offset}: '{self.path}' holds {self._length}."
            )
        self._fh.seek(offset)
        data = self._fh.read(length)
        if len(data) != length:
            raise ByteSourceError(
                f"Short read in '{self.path}': wanted {length} byte(s) at {offset}, got {len(data)}."
            )
        return data

    def file_length(self) -> int:
        return self._length

    def close(self) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None

    def __enter__(self) -> "FileByteSource":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
