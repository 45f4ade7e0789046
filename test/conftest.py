# test/conftest.py
import struct

import pytest

from enginetdms.core.datatypes import DataType, TocFlag


class TdmsBuilder:
    """Assemble literal TDMS byte fixtures."""

    META = int(TocFlag.META_DATA)
    NEW_OBJ_LIST = int(TocFlag.NEW_OBJ_LIST)
    RAW = int(TocFlag.RAW_DATA)
    INTERLEAVED = int(TocFlag.INTERLEAVED_DATA)
    BIG_ENDIAN = int(TocFlag.BIG_ENDIAN)
    DAQMX = int(TocFlag.DAQMX_RAW_DATA)
    # metadata + raw data + new object list
    STANDARD = META | RAW | NEW_OBJ_LIST

    SAME_PREVIOUS = b"\xff\xff\xff\xff"
    NO_DATA = b"\x00\x00\x00\x00"

    @staticmethod
    def u32(value, bo="<"):
        return struct.pack(bo + "I", value)

    @staticmethod
    def text(s, bo="<"):
        raw = s.encode("utf-8")
        return struct.pack(bo + "I", len(raw)) + raw

    @staticmethod
    def pack(fmt, *values, bo="<"):
        return struct.pack(bo + fmt, *values)

    @staticmethod
    def fixed_index(data_type, count, bo="<", total_bytes=None, dimension=1, length=None):
        if total_bytes is None:
            return struct.pack(bo + "IIIQ", 20 if length is None else length, int(data_type), dimension, count)
        return struct.pack(
            bo + "IIIQQ", 28 if length is None else length, int(data_type), dimension, count, total_bytes
        )

    @staticmethod
    def daqmx_index(count, scalers, widths, bo="<", marker=0x6912_0000):
        """scalers: iterable of (data_type, buffer_index, byte_offset, bit_width, scale_id)."""
        out = struct.pack(bo + "IIIQ", marker, int(DataType.DAQMX_RAW_DATA), 1, count)
        scalers = list(scalers)
        out += struct.pack(bo + "I", len(scalers))
        for dt, buf, off, bits, scale_id in scalers:
            out += struct.pack(bo + "IIIII", int(dt), buf, off, bits, scale_id)
        out += struct.pack(bo + "I", len(widths))
        out += b"".join(struct.pack(bo + "I", w) for w in widths)
        return out

    @classmethod
    def prop(cls, name, data_type, value_bytes, bo="<"):
        return cls.text(name, bo) + struct.pack(bo + "I", int(data_type)) + value_bytes

    @classmethod
    def string_prop(cls, name, value, bo="<"):
        return cls.prop(name, DataType.STRING, cls.text(value, bo), bo)

    @classmethod
    def obj(cls, path, index, props=(), bo="<"):
        props = list(props)
        return cls.text(path, bo) + index + struct.pack(bo + "I", len(props)) + b"".join(props)

    @classmethod
    def metadata(cls, objects, bo="<"):
        objects = list(objects)
        return struct.pack(bo + "I", len(objects)) + b"".join(objects)

    @staticmethod
    def segment(toc, metadata=b"", raw=b"", bo="<", version=4713, next_offset=None, tag=b"TDSm"):
        if bo == ">":
            toc |= int(TocFlag.BIG_ENDIAN)
        if next_offset is None:
            next_offset = len(metadata) + len(raw)
        lead_in = tag + struct.pack("<I", toc) + struct.pack(bo + "IQQ", version, next_offset, len(metadata))
        return lead_in + metadata + raw

    @staticmethod
    def strings(values, bo="<"):
        """Raw string data: cumulative u32 end offsets, then the UTF-8 bytes."""
        encoded = [v.encode("utf-8") for v in values]
        ends = []
        total = 0
        for e in encoded:
            total += len(e)
            ends.append(total)
        return b"".join(struct.pack(bo + "I", e) for e in ends) + b"".join(encoded)


@pytest.fixture
def tdms():
    return TdmsBuilder
