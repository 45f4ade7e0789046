# enginetdms/io/cursor.py
from __future__ import annotations

import struct

from enginetdms.core.exceptions import MalformedSegment


class Cursor:
    """Sequential reader over one in-memory block (metadata or raw data)."""

    def __init__(self, data: bytes, byteorder: str = "<", *, origin: int = 0):
        self.data = data
        self.byteorder = byteorder
        # Absolute file offset of data[0], for error messages only.
        self.origin = origin
        self.pos = 0

    def tell(self) -> int:
        return self.pos

    @property
    def remaining(self) -> int:
        return len(self.data) - self.pos

    def take(self, n: int) -> bytes:
        if n < 0 or self.pos + n > len(self.data):
            raise MalformedSegment(
                f"Block ended early: wanted {n} byte(s) at file offset {self.origin + self.pos}, "
                f"{self.remaining} left."
            )
        out = self.data[self.pos:self.pos + n]
        self.pos += n
        return out

    def unpack(self, fmt: str) -> tuple:
        s = struct.Struct(self.byteorder + fmt)
        return s.unpack(self.take(s.size))

    def u32(self) -> int:
        return self.unpack("I")[0]

    def u64(self) -> int:
        return self.unpack("Q")[0]

    def text(self) -> str:
        """Length-prefixed (u32) UTF-8 string."""
        raw = self.take(self.u32())
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedSegment(
                f"Invalid UTF-8 text ending at file offset {self.origin + self.pos}."
            ) from e
