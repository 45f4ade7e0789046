# enginetdms/io/raw_decoder.py
"""
Chunked raw-data decoder.

Walks a segment's raw data chunk by chunk and decodes every channel of a
chunk with the type decoders. Channels of one chunk occupy disjoint bytes,
so they may be decoded on a thread pool.
"""
from __future__ import annotations

import logging
from concurrent.futures import Executor
from dataclasses import dataclass, field
from typing import Callable, Iterator

import numpy as np

from enginetdms.core.datatypes import DataType
from enginetdms.core.exceptions import MalformedRawData

from .chunk_layout import ChannelLayout, ChunkLayout
from .decoders import decode
from .raw_index import DaqmxIndex


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ChunkEvent:
    """Decoded values of one channel in one chunk."""
    segment_index: int
    chunk_index: int
    path: str
    data_type: DataType
    values: np.ndarray = field(repr=False)


def decode_channel(channel: ChannelLayout, chunk: bytes, layout: ChunkLayout, byteorder: str) -> np.ndarray:
    """Decode one channel's values out of one chunk."""
    count = channel.value_count

    if layout.daqmx:
        return _decode_daqmx(channel, chunk, byteorder)

    if layout.interleaved:
        if count == 0 or channel.value_size == 0:
            return decode(channel.data_type, b"", count, byteorder)
        rows = np.frombuffer(chunk, dtype=np.uint8).reshape(count, layout.row_size)
        column = rows[:, channel.offset:channel.offset + channel.value_size].tobytes()
        return decode(channel.data_type, column, count, byteorder)

    data = chunk[channel.offset:channel.offset + channel.byte_count]
    return decode(channel.data_type, data, count, byteorder)


def _decode_daqmx(channel: ChannelLayout, chunk: bytes, byteorder: str) -> np.ndarray:
    index: DaqmxIndex = channel.index  # type: ignore[assignment]
    scaler = index.scalers[0]
    if len(index.scalers) > 1:
        logger.debug("%s: %d DAQmx scalers, decoding the first", channel.path, len(index.scalers))

    width = index.raw_buffer_widths[scaler.raw_buffer_index]
    count = channel.value_count
    end = channel.offset + width * count
    if end > len(chunk):
        raise MalformedRawData(f"DAQmx raw buffer of {channel.path} runs past the end of its chunk.")
    if count == 0:
        return decode(scaler.data_type, b"", 0, byteorder)

    rows = np.frombuffer(chunk[channel.offset:end], dtype=np.uint8).reshape(count, width)
    window = rows[:, scaler.byte_offset:scaler.byte_offset + channel.value_size].tobytes()
    values = decode(scaler.data_type, window, count, byteorder)
    return apply_bit_width(values, scaler.sample_bit_width)


def apply_bit_width(values: np.ndarray, bits: int) -> np.ndarray:
    """Keep the low `bits` of integer samples, sign-extending signed types."""
    if values.dtype.kind not in "iu" or bits <= 0 or bits >= values.dtype.itemsize * 8:
        return values
    as_int = values.astype(np.int64)
    masked = as_int & ((1 << bits) - 1)
    if values.dtype.kind == "i":
        sign = 1 << (bits - 1)
        masked = np.where(masked & sign, masked - (1 << bits), masked)
    return masked.astype(values.dtype)


def decode_chunk(
    layout: ChunkLayout,
    chunk: bytes,
    byteorder: str = "<",
    executor: Executor | None = None,
) -> list[tuple[ChannelLayout, np.ndarray]]:
    """Decode every channel of one chunk, in active-list order."""
    if len(chunk) != layout.chunk_size:
        raise MalformedRawData(f"Chunk holds {len(chunk)} byte(s), layout expects {layout.chunk_size}.")

    if executor is not None and len(layout.channels) > 1:
        results = list(
            executor.map(lambda ch: decode_channel(ch, chunk, layout, byteorder), layout.channels)
        )
    else:
        results = [decode_channel(ch, chunk, layout, byteorder) for ch in layout.channels]
    return list(zip(layout.channels, results))


def iter_chunks(
    layout: ChunkLayout,
    raw: bytes,
    byteorder: str = "<",
    executor: Executor | None = None,
) -> Iterator[list[ChunkEvent]]:
    """
    Yield the decoded channels of each whole chunk of `raw`, in file order.

    Trailing bytes beyond `layout.data_length` are ignored; the layout
    calculator has already reported them.
    """
    if len(raw) < layout.data_length:
        raise MalformedRawData(
            f"Raw data holds {len(raw)} byte(s), layout covers {layout.data_length}."
        )
    size = layout.chunk_size
    for i in range(layout.chunk_count):
        chunk = raw[i * size:(i + 1) * size]
        yield _chunk_events(layout, i, decode_chunk(layout, chunk, byteorder, executor))


def iter_selected_chunks(
    layout: ChunkLayout,
    read: Callable[[int, int], bytes],
    byteorder: str = "<",
    executor: Executor | None = None,
) -> Iterator[list[ChunkEvent]]:
    """
    Like `iter_chunks`, but fetch bytes on demand through `read(offset, length)`,
    with offsets relative to the start of the segment's raw data.

    Meant for a layout narrowed with `select_channels`: contiguous channels
    are read as their own byte runs only, so unselected channels are neither
    read nor decoded. Interleaved and DAQmx channels are spread over the whole
    chunk, which is read at once but decoded for the selected channels only.
    """
    size = layout.chunk_size
    for i in range(layout.chunk_count):
        base = i * size
        if layout.interleaved or layout.daqmx:
            decoded = decode_chunk(layout, read(base, size), byteorder, executor)
        else:
            decoded = [
                (ch, decode(ch.data_type, read(base + ch.offset, ch.byte_count), ch.value_count, byteorder))
                for ch in layout.channels
            ]
        yield _chunk_events(layout, i, decoded)


def _chunk_events(
    layout: ChunkLayout,
    chunk_index: int,
    decoded: list[tuple[ChannelLayout, np.ndarray]],
) -> list[ChunkEvent]:
    return [
        ChunkEvent(
            segment_index=layout.segment_index,
            chunk_index=chunk_index,
            path=ch.path,
            data_type=ch.data_type,
            values=values,
        )
        for ch, values in decoded
    ]
