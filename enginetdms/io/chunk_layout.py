# enginetdms/io/chunk_layout.py
"""
Chunk layout calculator.

A segment's raw data is `chunk_count` repetitions of one chunk. Inside a chunk:

- contiguous : each active channel's run of values, in active-list order
- interleaved: `value_count` rows, each row holding one value per channel
- DAQmx      : the raw buffers one after another, each `value_count` rows wide;
               every channel reads a window out of its buffer's rows
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Sequence

from enginetdms.core.exceptions import InterleavedUnsupportedType, MalformedSegment, PartialChunk

from .metadata_parser import ActiveChannel
from .raw_index import ConcreteIndex, DaqmxIndex, FixedIndex


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ChannelLayout:
    path: str
    index: ConcreteIndex
    # Bytes per value; for strings the whole run's byte size.
    value_size: int
    value_count: int
    # Bytes this channel adds to a chunk (0 for DAQmx channels sharing buffers).
    byte_count: int
    # Contiguous: start of the run. Interleaved: column within a row.
    # DAQmx: start of the channel's raw buffer.
    offset: int

    @property
    def data_type(self):
        return self.index.data_type


@dataclass(frozen=True, slots=True)
class ChunkLayout:
    segment_index: int
    channels: tuple[ChannelLayout, ...]
    interleaved: bool
    chunk_size: int
    chunk_count: int
    daqmx: bool = False
    surplus: int = 0
    # Bytes of one interleaved row; kept when the channels are narrowed down.
    row_size: int = 0

    @property
    def data_length(self) -> int:
        """Bytes covered by whole chunks."""
        return self.chunk_size * self.chunk_count


def compute_chunk_layout(
    segment_index: int,
    active: Sequence[ActiveChannel],
    raw_data_length: int,
    *,
    interleaved: bool = False,
) -> ChunkLayout:
    """
    Lay the active channels out in one chunk and count the chunks.

    Raises PartialChunk when the raw data is not a whole number of chunks;
    its `layout` covers the whole chunks only.
    """
    with_data = [a for a in active if a.has_data]
    daqmx = [a for a in with_data if isinstance(a.index, DaqmxIndex)]

    if daqmx:
        if len(daqmx) != len(with_data):
            raise MalformedSegment(
                f"Segment {segment_index} mixes DAQmx and plain raw data layouts."
            )
        channels, chunk_size = _daqmx_layout(segment_index, daqmx)
    elif interleaved:
        channels, chunk_size = _interleaved_layout(segment_index, with_data)
    else:
        channels, chunk_size = _contiguous_layout(with_data)

    if chunk_size == 0:
        chunk_count, surplus = 0, raw_data_length
    else:
        chunk_count, surplus = divmod(raw_data_length, chunk_size)

    layout = ChunkLayout(
        segment_index=segment_index,
        channels=tuple(channels),
        interleaved=interleaved and not daqmx,
        chunk_size=chunk_size,
        chunk_count=chunk_count,
        daqmx=bool(daqmx),
        row_size=sum(ch.value_size for ch in channels) if interleaved and not daqmx else 0,
    )
    logger.debug(
        "segment %d: %d channel(s), chunk_size=%d, chunk_count=%d, surplus=%d",
        segment_index, len(channels), chunk_size, chunk_count, surplus,
    )
    if surplus:
        raise PartialChunk(segment_index, surplus, replace(layout, surplus=surplus))
    return layout


def _contiguous_layout(active: list[ActiveChannel]) -> tuple[list[ChannelLayout], int]:
    channels = []
    offset = 0
    for a in active:
        index: FixedIndex = a.index  # type: ignore[assignment]
        size = index.byte_count if index.data_type.is_string else index.data_type.width
        channels.append(
            ChannelLayout(
                path=a.path,
                index=index,
                value_size=size,
                value_count=index.value_count,
                byte_count=index.byte_count,
                offset=offset,
            )
        )
        offset += index.byte_count
    return channels, offset


def _interleaved_layout(segment_index: int, active: list[ActiveChannel]) -> tuple[list[ChannelLayout], int]:
    if not active:
        return [], 0
    counts = {a.index.value_count for a in active}
    if len(counts) != 1:
        raise InterleavedUnsupportedType(
            f"Segment {segment_index}: interleaved channels with differing value counts {sorted(counts)}."
        )
    for a in active:
        if a.index.data_type.is_string:
            raise InterleavedUnsupportedType(
                f"Segment {segment_index}: string channel {a.path} in interleaved raw data."
            )

    (count,) = counts
    channels = []
    column = 0
    for a in active:
        width = a.index.data_type.width
        channels.append(
            ChannelLayout(
                path=a.path,
                index=a.index,
                value_size=width,
                value_count=count,
                byte_count=width * count,
                offset=column,
            )
        )
        column += width
    return channels, column * count


def _daqmx_layout(segment_index: int, active: list[ActiveChannel]) -> tuple[list[ChannelLayout], int]:
    first: DaqmxIndex = active[0].index  # type: ignore[assignment]
    for a in active[1:]:
        if a.index.value_count != first.value_count or a.index.raw_buffer_widths != first.raw_buffer_widths:
            raise MalformedSegment(
                f"Segment {segment_index}: DAQmx channels disagree on raw buffer layout."
            )

    widths = first.raw_buffer_widths
    count = first.value_count
    buffer_starts = [sum(widths[:i]) * count for i in range(len(widths))]
    channels = [
        ChannelLayout(
            path=a.path,
            index=a.index,
            value_size=a.index.data_type.width,
            value_count=count,
            byte_count=0,
            offset=buffer_starts[a.index.raw_buffer_index],
        )
        for a in active
    ]
    return channels, first.byte_count


def select_channels(layout: ChunkLayout, paths) -> ChunkLayout:
    """Restrict `layout` to the channels in `paths`; chunk geometry is unchanged."""
    wanted = set(paths)
    return replace(layout, channels=tuple(ch for ch in layout.channels if ch.path in wanted))
