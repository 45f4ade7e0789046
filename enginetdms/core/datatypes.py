# enginetdms/core/datatypes.py
"""
Data-type codes and lead-in flag bits of the TDMS container format.

The numeric values match the on-disk representation.
"""
from __future__ import annotations

from enum import IntEnum, IntFlag

from .exceptions import UnknownDataType


class TocFlag(IntFlag):
    """Table-of-contents bits carried by every segment lead-in."""

    META_DATA = 1 << 1
    NEW_OBJ_LIST = 1 << 2
    RAW_DATA = 1 << 3
    INTERLEAVED_DATA = 1 << 5
    BIG_ENDIAN = 1 << 6
    DAQMX_RAW_DATA = 1 << 7


class DataType(IntEnum):
    VOID = 0
    I8 = 1
    I16 = 2
    I32 = 3
    I64 = 4
    U8 = 5
    U16 = 6
    U32 = 7
    U64 = 8
    SINGLE_FLOAT = 9
    DOUBLE_FLOAT = 10
    EXTENDED_FLOAT = 11
    DOUBLE_FLOAT_WITH_UNIT = 12
    EXTENDED_FLOAT_WITH_UNIT = 13
    SINGLE_FLOAT_WITH_UNIT = 0x19
    STRING = 0x20
    BOOLEAN = 0x21
    TIMESTAMP = 0x44
    FIXED_POINT = 0x4F
    COMPLEX_SINGLE_FLOAT = 0x0008_000C
    COMPLEX_DOUBLE_FLOAT = 0x0010_000D
    DAQMX_RAW_DATA = 0xFFFF_FFFF

    @classmethod
    def from_code(cls, code: int) -> "DataType":
        try:
            return cls(code)
        except ValueError as e:
            raise UnknownDataType(code) from e

    @property
    def is_string(self) -> bool:
        return self is DataType.STRING

    @property
    def width(self) -> int:
        """Size in bytes of one value; strings and DAQmx data have no fixed width."""
        try:
            return _WIDTHS[self]
        except KeyError as e:
            raise UnknownDataType(int(self), "no fixed width") from e


_WIDTHS: dict[DataType, int] = {
    DataType.VOID: 0,
    DataType.I8: 1,
    DataType.I16: 2,
    DataType.I32: 4,
    DataType.I64: 8,
    DataType.U8: 1,
    DataType.U16: 2,
    DataType.U32: 4,
    DataType.U64: 8,
    DataType.SINGLE_FLOAT: 4,
    DataType.DOUBLE_FLOAT: 8,
    DataType.EXTENDED_FLOAT: 10,
    DataType.DOUBLE_FLOAT_WITH_UNIT: 8,
    DataType.EXTENDED_FLOAT_WITH_UNIT: 10,
    DataType.SINGLE_FLOAT_WITH_UNIT: 4,
    DataType.BOOLEAN: 1,
    DataType.TIMESTAMP: 16,
    # Raw fixed-point word; the binary point lives in the channel properties.
    DataType.FIXED_POINT: 4,
    DataType.COMPLEX_SINGLE_FLOAT: 8,
    DataType.COMPLEX_DOUBLE_FLOAT: 16,
}
