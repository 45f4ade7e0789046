# enginetdms/io/raw_index.py
"""
Raw-data index records.

Each object in a metadata block carries one record describing how its samples
are laid out in this segment's raw data. The record opens with a 4-byte marker:

    0xFFFFFFFF              same layout as the object's previous concrete one
    0x00000000              no samples in this segment
    0x69120000, 0x69130000  DAQmx composite layout (DAQmx segments only)
    anything else           byte length of a fixed layout record, marker included
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from enginetdms.core.datatypes import DataType
from enginetdms.core.exceptions import InvalidRawDataIndexRecord, MalformedSegment

from .cursor import Cursor


logger = logging.getLogger(__name__)

SAME_PREVIOUS_MARKER = 0xFFFF_FFFF
NO_DATA_MARKER = 0x0000_0000
DAQMX_FORMAT_CHANGING_MARKER = 0x6912_0000
DAQMX_DIGITAL_LINE_MARKER = 0x6913_0000
DAQMX_MARKERS = (DAQMX_FORMAT_CHANGING_MARKER, DAQMX_DIGITAL_LINE_MARKER)

# marker + type + dimension + count (+ total bytes for strings)
FIXED_RECORD_LENGTH = 20
STRING_RECORD_LENGTH = 28


@dataclass(frozen=True, slots=True)
class NoData:
    """Object is present in metadata but has no samples in this segment."""


@dataclass(frozen=True, slots=True)
class SamePrevious:
    """Reuse the registry's current layout for this object."""


@dataclass(frozen=True, slots=True)
class FixedIndex:
    data_type: DataType
    value_count: int
    dimension: int = 1
    # Strings are variable length: their combined footprint is declared instead.
    string_total_bytes: int | None = None

    def __post_init__(self) -> None:
        if self.dimension != 1:
            raise InvalidRawDataIndexRecord(f"Array dimension must be 1, got {self.dimension}.")
        if self.data_type.is_string and self.string_total_bytes is None:
            raise InvalidRawDataIndexRecord("String layouts must declare their total byte size.")

    @property
    def byte_count(self) -> int:
        """Bytes occupied by this object in one chunk."""
        if self.string_total_bytes is not None:
            return self.string_total_bytes
        return self.data_type.width * self.value_count


@dataclass(frozen=True, slots=True)
class DaqmxScaler:
    data_type: DataType
    raw_buffer_index: int
    byte_offset: int
    sample_bit_width: int
    scale_id: int


@dataclass(frozen=True, slots=True)
class DaqmxIndex:
    raw_buffer_index: int
    value_count: int
    scalers: tuple[DaqmxScaler, ...]
    raw_buffer_widths: tuple[int, ...]
    dimension: int = 1

    @property
    def data_type(self) -> DataType:
        return self.scalers[0].data_type

    @property
    def byte_count(self) -> int:
        """Bytes of all raw buffers in one chunk (shared by every DAQmx channel)."""
        return sum(self.raw_buffer_widths) * self.value_count


NO_DATA = NoData()
SAME_PREVIOUS = SamePrevious()

RawDataIndex = NoData | SamePrevious | FixedIndex | DaqmxIndex
ConcreteIndex = FixedIndex | DaqmxIndex


def parse_raw_data_index(cursor: Cursor, *, daqmx_segment: bool = False) -> RawDataIndex:
    """Read one raw-data index record at the cursor."""
    start = cursor.tell()
    marker = cursor.u32()

    if marker == SAME_PREVIOUS_MARKER:
        return SAME_PREVIOUS
    if marker == NO_DATA_MARKER:
        return NO_DATA
    if marker in DAQMX_MARKERS:
        if not daqmx_segment:
            raise InvalidRawDataIndexRecord(
                f"DAQmx index marker 0x{marker:08X} in a segment without DAQmx raw data."
            )
        return _parse_daqmx(cursor)
    return _parse_fixed(cursor, start, marker)


def _parse_fixed(cursor: Cursor, start: int, length: int) -> FixedIndex:
    if length < FIXED_RECORD_LENGTH:
        raise InvalidRawDataIndexRecord(
            f"Raw data index length {length} is shorter than a fixed record ({FIXED_RECORD_LENGTH})."
        )
    try:
        code, dimension, value_count = cursor.unpack("IIQ")
        data_type = DataType.from_code(code)
        if data_type is DataType.DAQMX_RAW_DATA:
            raise InvalidRawDataIndexRecord("DAQmx data type in a fixed raw data index record.")
        if dimension != 1:
            raise InvalidRawDataIndexRecord(f"Array dimension must be 1, got {dimension}.")
        total = cursor.u64() if data_type.is_string else None
    except MalformedSegment as e:
        raise InvalidRawDataIndexRecord(f"Raw data index record truncated: {e}") from e

    consumed = cursor.tell() - start
    if consumed != length:
        raise InvalidRawDataIndexRecord(
            f"Raw data index declares {length} byte(s) but its record holds {consumed}."
        )
    return FixedIndex(
        data_type=data_type,
        value_count=value_count,
        dimension=dimension,
        string_total_bytes=total,
    )


def _parse_daqmx(cursor: Cursor) -> DaqmxIndex:
    try:
        code, dimension, value_count = cursor.unpack("IIQ")
        if code != DataType.DAQMX_RAW_DATA:
            raise InvalidRawDataIndexRecord(
                f"DAQmx index record declares data type 0x{code:08X}, expected 0xFFFFFFFF."
            )
        if dimension != 1:
            raise InvalidRawDataIndexRecord(f"Array dimension must be 1, got {dimension}.")

        scalers = []
        for _ in range(cursor.u32()):
            s_code, buffer_index, byte_offset, bit_width, scale_id = cursor.unpack("IIIII")
            scalers.append(
                DaqmxScaler(
                    data_type=DataType.from_code(s_code),
                    raw_buffer_index=buffer_index,
                    byte_offset=byte_offset,
                    sample_bit_width=bit_width,
                    scale_id=scale_id,
                )
            )
        widths = tuple(cursor.u32() for _ in range(cursor.u32()))
    except MalformedSegment as e:
        raise InvalidRawDataIndexRecord(f"DAQmx index record truncated: {e}") from e

    if not scalers:
        raise InvalidRawDataIndexRecord("DAQmx index record declares no scalers.")
    buffer_indexes = {s.raw_buffer_index for s in scalers}
    if len(buffer_indexes) != 1:
        raise InvalidRawDataIndexRecord(
            f"DAQmx scalers of one object reference several raw buffers: {sorted(buffer_indexes)}"
        )
    buffer_index = scalers[0].raw_buffer_index
    if buffer_index >= len(widths):
        raise InvalidRawDataIndexRecord(
            f"DAQmx raw buffer {buffer_index} is not declared ({len(widths)} width(s))."
        )
    for s in scalers:
        if s.data_type.is_string or s.data_type is DataType.DAQMX_RAW_DATA:
            raise InvalidRawDataIndexRecord(f"DAQmx scaler cannot hold {s.data_type.name} values.")
        if s.byte_offset + s.data_type.width > widths[buffer_index]:
            raise InvalidRawDataIndexRecord(
                f"DAQmx scaler window [{s.byte_offset}, {s.byte_offset + s.data_type.width}) "
                f"exceeds raw buffer width {widths[buffer_index]}."
            )

    logger.debug("DAQmx index: %d value(s), %d scaler(s), widths=%s", value_count, len(scalers), widths)
    return DaqmxIndex(
        raw_buffer_index=buffer_index,
        value_count=value_count,
        scalers=tuple(scalers),
        raw_buffer_widths=widths,
        dimension=dimension,
    )
