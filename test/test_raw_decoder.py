# test/test_raw_decoder.py
import struct
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from enginetdms.core import DataType, MalformedRawData
from enginetdms.io.chunk_layout import compute_chunk_layout, select_channels
from enginetdms.io.metadata_parser import ActiveChannel
from enginetdms.io.raw_decoder import apply_bit_width, decode_chunk, iter_chunks, iter_selected_chunks
from enginetdms.io.raw_index import DaqmxIndex, DaqmxScaler, FixedIndex


def _fixed(path, data_type, count, total=None):
    return ActiveChannel(path, FixedIndex(data_type, count, string_total_bytes=total))


def test_contiguous_chunk():
    layout = compute_chunk_layout(0, [_fixed("A", DataType.I32, 4), _fixed("B", DataType.I32, 4)], 32)
    raw = struct.pack("<8i", 1, 2, 3, 4, 5, 6, 7, 8)
    decoded = decode_chunk(layout, raw)
    assert [ch.path for ch, _ in decoded] == ["A", "B"]
    assert decoded[0][1].tolist() == [1, 2, 3, 4]
    assert decoded[1][1].tolist() == [5, 6, 7, 8]


def test_interleaved_chunk_big_endian():
    layout = compute_chunk_layout(
        0, [_fixed("A", DataType.I32, 3), _fixed("B", DataType.I16, 3)], 18, interleaved=True
    )
    raw = b"".join(struct.pack(">ih", i, -i) for i in (1, 2, 3))
    decoded = dict((ch.path, v) for ch, v in decode_chunk(layout, raw, ">"))
    assert decoded["A"].tolist() == [1, 2, 3]
    assert decoded["B"].tolist() == [-1, -2, -3]


def test_mixed_types_and_strings(tdms):
    text = tdms.strings(["x", "yz"])
    layout = compute_chunk_layout(
        0,
        [_fixed("S", DataType.STRING, 2, total=len(text)), _fixed("D", DataType.DOUBLE_FLOAT, 1)],
        len(text) + 8,
    )
    decoded = decode_chunk(layout, text + struct.pack("<d", 2.5))
    assert decoded[0][1].tolist() == ["x", "yz"]
    assert decoded[1][1].tolist() == [2.5]


def test_daqmx_chunk_windows_and_bit_width():
    widths = (4,)
    x = DaqmxIndex(0, 3, (DaqmxScaler(DataType.I16, 0, 0, 16, 0),), widths)
    y = DaqmxIndex(0, 3, (DaqmxScaler(DataType.I16, 0, 2, 12, 1),), widths)
    layout = compute_chunk_layout(0, [ActiveChannel("X", x), ActiveChannel("Y", y)], 12)

    raw = struct.pack("<6h", 10, 0x0FFF, 20, 0x0001, 30, 0x7800)
    decoded = dict((ch.path, v) for ch, v in decode_chunk(layout, raw))
    assert decoded["X"].tolist() == [10, 20, 30]
    assert decoded["Y"].tolist() == [-1, 1, -2048]


def test_apply_bit_width():
    assert apply_bit_width(np.array([0x0FFF, 0x0800], dtype=np.int16), 12).tolist() == [-1, -2048]
    assert apply_bit_width(np.array([0xFFFF], dtype=np.uint16), 12).tolist() == [0x0FFF]
    full = np.array([-5], dtype=np.int16)
    assert apply_bit_width(full, 16) is full
    floats = np.array([1.5])
    assert apply_bit_width(floats, 8) is floats


def test_chunk_size_mismatch():
    layout = compute_chunk_layout(0, [_fixed("A", DataType.I32, 2)], 8)
    with pytest.raises(MalformedRawData):
        decode_chunk(layout, b"\x00" * 4)


def test_iter_chunks_in_file_order():
    layout = compute_chunk_layout(3, [_fixed("A", DataType.U8, 2), _fixed("B", DataType.U8, 1)], 9)
    raw = bytes(range(9))
    chunks = list(iter_chunks(layout, raw))
    assert len(chunks) == 3
    flat = [(e.chunk_index, e.path, e.values.tolist()) for events in chunks for e in events]
    assert flat == [
        (0, "A", [0, 1]), (0, "B", [2]),
        (1, "A", [3, 4]), (1, "B", [5]),
        (2, "A", [6, 7]), (2, "B", [8]),
    ]
    assert all(e.segment_index == 3 for events in chunks for e in events)
    assert chunks[0][0].data_type is DataType.U8


def test_iter_chunks_with_executor_matches_sequential():
    active = [_fixed(f"C{i}", DataType.DOUBLE_FLOAT, 5) for i in range(4)]
    layout = compute_chunk_layout(0, active, 4 * 5 * 8 * 2)
    raw = np.arange(40, dtype="<f8").tobytes()

    sequential = [[e.values.tolist() for e in events] for events in iter_chunks(layout, raw)]
    with ThreadPoolExecutor(max_workers=3) as pool:
        threaded = [[e.values.tolist() for e in events] for events in iter_chunks(layout, raw, "<", pool)]
    assert threaded == sequential
    assert sequential[1][0] == [20.0, 21.0, 22.0, 23.0, 24.0]


def test_iter_chunks_short_raw():
    layout = compute_chunk_layout(0, [_fixed("A", DataType.I32, 2)], 16)
    with pytest.raises(MalformedRawData):
        list(iter_chunks(layout, b"\x00" * 8))


def test_iter_selected_chunks_reads_contiguous_runs():
    layout = compute_chunk_layout(0, [_fixed("A", DataType.I32, 2), _fixed("B", DataType.I16, 2)], 24)
    raw = struct.pack("<2i2h", 1, 2, 3, 4) + struct.pack("<2i2h", 5, 6, 7, 8)
    reads = []

    def read(offset, length):
        reads.append((offset, length))
        return raw[offset:offset + length]

    chunks = list(iter_selected_chunks(select_channels(layout, ["B"]), read))
    assert [[e.path for e in events] for events in chunks] == [["B"], ["B"]]
    assert [events[0].values.tolist() for events in chunks] == [[3, 4], [7, 8]]
    assert reads == [(8, 4), (20, 4)]

    full = [[e.values.tolist() for e in events if e.path == "B"] for events in iter_chunks(layout, raw)]
    assert full == [[[3, 4]], [[7, 8]]]


def test_iter_selected_chunks_interleaved_reads_whole_chunk():
    layout = compute_chunk_layout(
        0, [_fixed("A", DataType.I32, 2), _fixed("B", DataType.I16, 2)], 12, interleaved=True
    )
    raw = b"".join(struct.pack("<ih", i, -i) for i in (1, 2))
    reads = []

    def read(offset, length):
        reads.append((offset, length))
        return raw[offset:offset + length]

    ((event,),) = list(iter_selected_chunks(select_channels(layout, ["B"]), read))
    assert event.path == "B"
    assert event.values.tolist() == [-1, -2]
    assert reads == [(0, 12)]
