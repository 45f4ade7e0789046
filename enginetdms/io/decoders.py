# enginetdms/io/decoders.py
"""
Type vector decoders: one independent function per data-type code.

A decoder maps `(data, count, byteorder)` to a 1D numpy array of `count`
values in native byte order. `data` must be exactly the bytes of those values.
New types are added with `register_decoder` without touching the chunk walker.
"""
from __future__ import annotations

from typing import Callable

import numpy as np

from enginetdms.core.datatypes import DataType
from enginetdms.core.exceptions import MalformedRawData, UnknownDataType
from enginetdms.core.timestamps import EPOCH_NS, fractions_to_ns


Decoder = Callable[[bytes, int, str], np.ndarray]

_DECODERS: dict[DataType, Decoder] = {}


def register_decoder(data_type: DataType, decoder: Decoder | None = None):
    """Register `decoder` for `data_type`; usable as a decorator."""
    def _register(fn: Decoder) -> Decoder:
        _DECODERS[data_type] = fn
        return fn

    if decoder is not None:
        return _register(decoder)
    return _register


def get_decoder(data_type: DataType) -> Decoder:
    try:
        return _DECODERS[data_type]
    except KeyError:
        raise UnknownDataType(int(data_type), f"no decoder registered for {data_type.name}") from None


def registered_types() -> list[DataType]:
    return list(_DECODERS)


def decode(data_type: DataType, data: bytes, count: int, byteorder: str = "<") -> np.ndarray:
    return get_decoder(data_type)(data, count, byteorder)


def _check_length(data: bytes, expected: int, what: str) -> None:
    if len(data) != expected:
        raise MalformedRawData(f"{what}: expected {expected} byte(s), got {len(data)}.")


# ----------------------------------------------------------------------
# Plain numeric types
# ----------------------------------------------------------------------
def _numpy_decoder(base: str) -> Decoder:
    native = np.dtype(base)

    def _decode(data: bytes, count: int, byteorder: str) -> np.ndarray:
        dt = native.newbyteorder(byteorder)
        _check_length(data, dt.itemsize * count, native.name)
        return np.frombuffer(data, dtype=dt, count=count).astype(native)

    return _decode


for _dtype, _base in (
    (DataType.I8, "i1"),
    (DataType.I16, "i2"),
    (DataType.I32, "i4"),
    (DataType.I64, "i8"),
    (DataType.U8, "u1"),
    (DataType.U16, "u2"),
    (DataType.U32, "u4"),
    (DataType.U64, "u8"),
    (DataType.SINGLE_FLOAT, "f4"),
    (DataType.DOUBLE_FLOAT, "f8"),
    # The unit travels as a property; samples are plain floats.
    (DataType.SINGLE_FLOAT_WITH_UNIT, "f4"),
    (DataType.DOUBLE_FLOAT_WITH_UNIT, "f8"),
    (DataType.COMPLEX_SINGLE_FLOAT, "c8"),
    (DataType.COMPLEX_DOUBLE_FLOAT, "c16"),
    # Raw fixed-point words; interpretation is left to the channel properties.
    (DataType.FIXED_POINT, "i4"),
):
    register_decoder(_dtype, _numpy_decoder(_base))


@register_decoder(DataType.BOOLEAN)
def _decode_boolean(data: bytes, count: int, byteorder: str) -> np.ndarray:
    _check_length(data, count, "bool")
    return np.frombuffer(data, dtype=np.uint8, count=count) != 0


@register_decoder(DataType.VOID)
def _decode_void(data: bytes, count: int, byteorder: str) -> np.ndarray:
    _check_length(data, 0, "void")
    return np.full(count, None, dtype=object)


# ----------------------------------------------------------------------
# 80-bit extended precision (x87 layout), widened to float64
# ----------------------------------------------------------------------
def _decode_extended(data: bytes, count: int, byteorder: str) -> np.ndarray:
    _check_length(data, 10 * count, "extended float")
    if byteorder == ">":
        dt = np.dtype([("sign_exponent", ">u2"), ("mantissa", ">u8")])
    else:
        dt = np.dtype([("mantissa", "<u8"), ("sign_exponent", "<u2")])
    raw = np.frombuffer(data, dtype=dt, count=count)

    sign_exp = raw["sign_exponent"].astype(np.int64)
    mantissa = raw["mantissa"]
    exponent = sign_exp & 0x7FFF
    negative = (sign_exp & 0x8000) != 0

    special = exponent == 0x7FFF
    # Explicit integer bit: value = mantissa * 2**(exponent - 16383 - 63)
    shift = np.where(special, 0, exponent - 16446).astype(np.int32)
    out = np.ldexp(mantissa.astype(np.float64), shift)
    if special.any():
        fraction = mantissa & np.uint64(0x7FFF_FFFF_FFFF_FFFF)
        out = np.where(special & (fraction == 0), np.inf, out)
        out = np.where(special & (fraction != 0), np.nan, out)
    return np.where(negative, -out, out)


register_decoder(DataType.EXTENDED_FLOAT, _decode_extended)
register_decoder(DataType.EXTENDED_FLOAT_WITH_UNIT, _decode_extended)


# ----------------------------------------------------------------------
# Timestamps: whole seconds + 2^-64 fractions since 1904-01-01 UTC
# ----------------------------------------------------------------------
def timestamp_dtype(byteorder: str) -> np.dtype:
    if byteorder == ">":
        return np.dtype([("seconds", ">i8"), ("second_fractions", ">u8")])
    return np.dtype([("second_fractions", "<u8"), ("seconds", "<i8")])


@register_decoder(DataType.TIMESTAMP)
def _decode_timestamp(data: bytes, count: int, byteorder: str) -> np.ndarray:
    _check_length(data, 16 * count, "timestamp")
    raw = np.frombuffer(data, dtype=timestamp_dtype(byteorder), count=count)
    ns = raw["seconds"].astype(np.int64) * 1_000_000_000 + fractions_to_ns(raw["second_fractions"])
    return EPOCH_NS + ns.astype("timedelta64[ns]")


# ----------------------------------------------------------------------
# Strings: `count` u32 cumulative end offsets, then the concatenated UTF-8 bytes
# ----------------------------------------------------------------------
@register_decoder(DataType.STRING)
def _decode_string(data: bytes, count: int, byteorder: str) -> np.ndarray:
    table = 4 * count
    if len(data) < table:
        raise MalformedRawData(
            f"String data of {len(data)} byte(s) cannot hold an offset table for {count} value(s)."
        )
    ends = np.frombuffer(data, dtype=np.dtype("u4").newbyteorder(byteorder), count=count).astype(np.int64)
    body = data[table:]
    last = int(ends[-1]) if count else 0
    if last != len(body) or (count and np.any(np.diff(ends) < 0)):
        raise MalformedRawData(
            f"String offset table does not match its {len(body)} byte(s) of text."
        )

    out = np.empty(count, dtype=object)
    start = 0
    for i, end in enumerate(ends.tolist()):
        try:
            out[i] = body[start:end].decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedRawData(f"String value {i} is not valid UTF-8.") from e
        start = end
    return out
