# test/test_metadata_parser.py
import struct

import pytest

from enginetdms.core import (
    DataType,
    MalformedSegment,
    NoPreviousObjectError,
    Segment,
    TdmsTimestamp,
    TocFlag,
)
from enginetdms.io.byte_source import BytesByteSource
from enginetdms.io.cursor import Cursor
from enginetdms.io.lead_in import read_segment
from enginetdms.io.metadata_parser import (
    ActiveChannel,
    ObjectEntry,
    parse_properties,
    parse_segment_metadata,
    read_property_value,
    resolve_active_channels,
)
from enginetdms.io.raw_index import NO_DATA, FixedIndex
from enginetdms.io.registry import ObjectRegistry


A = "/'g'/'A'"
B = "/'g'/'B'"
E = "/'g'/'E'"


def _parse(tdms, toc, metadata, registry=None, previous=None, bo="<"):
    data = tdms.segment(toc, metadata=metadata, bo=bo)
    seg = read_segment(BytesByteSource(data), 0, 0)
    registry = registry if registry is not None else ObjectRegistry()
    meta = data[seg.metadata_range[0]:seg.metadata_range[1]] if seg.metadata_range else b""
    return parse_segment_metadata(meta, seg, registry, previous), registry


def _segment(toc):
    return Segment(index=1, offset=0, toc=TocFlag(toc), version=4713,
                   next_segment_offset=0, raw_data_offset=0, end=0)


@pytest.mark.parametrize(
    "data_type, raw, expected",
    [
        (DataType.I32, struct.pack("<i", -7), -7),
        (DataType.U8, b"\x05", 5),
        (DataType.DOUBLE_FLOAT, struct.pack("<d", 0.25), 0.25),
        (DataType.BOOLEAN, b"\x01", True),
    ],
)
def test_read_scalar_property_values(data_type, raw, expected):
    value = read_property_value(Cursor(raw), data_type)
    assert value == expected
    assert type(value) is type(expected)


def test_read_string_and_timestamp_property(tdms):
    assert read_property_value(Cursor(tdms.text("héllo")), DataType.STRING) == "héllo"

    le = read_property_value(Cursor(struct.pack("<Qq", 2**63, 60)), DataType.TIMESTAMP)
    assert le == TdmsTimestamp(seconds=60, second_fractions=2**63)
    be = read_property_value(Cursor(struct.pack(">qQ", 60, 2**63), ">"), DataType.TIMESTAMP)
    assert be == le


def test_parse_properties_in_declared_order(tdms):
    raw = tdms.u32(2) + tdms.string_prop("unit_string", "V") + tdms.prop(
        "wf_increment", DataType.DOUBLE_FLOAT, struct.pack("<d", 0.1)
    )
    props = parse_properties(Cursor(raw))
    assert list(props) == ["unit_string", "wf_increment"]
    assert props["wf_increment"] == 0.1


def test_parse_segment_metadata_new_object_list(tdms):
    md = tdms.metadata([
        tdms.obj("/", tdms.NO_DATA, [tdms.string_prop("name", "run")]),
        tdms.obj(A, tdms.fixed_index(DataType.I32, 4)),
        tdms.obj(B, tdms.fixed_index(DataType.I32, 4)),
    ])
    meta, reg = _parse(tdms, tdms.META | tdms.NEW_OBJ_LIST | tdms.RAW, md)

    assert [o.path for o in meta.objects] == ["/", A, B]
    assert [a.path for a in meta.active] == ["/", A, B]
    assert [a.has_data for a in meta.active] == [False, True, True]
    assert reg.properties("/") == {"name": "run"}
    assert reg.current(A) == FixedIndex(DataType.I32, 4)


def test_parse_segment_metadata_big_endian(tdms):
    md = tdms.metadata(
        [tdms.obj(A, tdms.fixed_index(DataType.DOUBLE_FLOAT, 10, bo=">"),
                  [tdms.prop("k", DataType.I16, struct.pack(">h", -2), bo=">")], bo=">")],
        bo=">",
    )
    meta, reg = _parse(tdms, tdms.META | tdms.NEW_OBJ_LIST, md, bo=">")
    assert meta.objects[0].index == FixedIndex(DataType.DOUBLE_FLOAT, 10)
    assert reg.properties(A) == {"k": -2}


def test_same_previous_without_prior_layout(tdms):
    md = tdms.metadata([tdms.obj("/'g'/'D'", tdms.SAME_PREVIOUS)])
    with pytest.raises(NoPreviousObjectError):
        _parse(tdms, tdms.STANDARD, md)


def test_truncated_metadata(tdms):
    md = tdms.metadata([tdms.obj(A, tdms.fixed_index(DataType.I32, 4))])
    with pytest.raises(MalformedSegment):
        _parse(tdms, tdms.STANDARD, md[:-2])


def test_active_list_persists_without_new_object_list():
    previous = (
        ActiveChannel(A, FixedIndex(DataType.I32, 1)),
        ActiveChannel(B, FixedIndex(DataType.I32, 1)),
    )
    objects = [
        ObjectEntry(B, FixedIndex(DataType.I32, 2), FixedIndex(DataType.I32, 2)),
        ObjectEntry(E, FixedIndex(DataType.I32, 1), FixedIndex(DataType.I32, 1)),
        ObjectEntry("/'g'", NO_DATA, NO_DATA),
    ]
    active, outside = resolve_active_channels(
        _segment(TocFlag.META_DATA | TocFlag.RAW_DATA), objects, previous
    )
    assert [a.path for a in active] == [A, B]
    assert active[1].index.value_count == 2
    assert outside == (E,)


def test_segment_without_metadata_reuses_previous_list():
    previous = (ActiveChannel(A, FixedIndex(DataType.I32, 1)),)
    active, outside = resolve_active_channels(_segment(TocFlag.RAW_DATA), [], previous)
    assert active == previous
    assert outside == ()


def test_no_previous_list():
    with pytest.raises(MalformedSegment):
        resolve_active_channels(_segment(TocFlag.RAW_DATA), [], None)
    with pytest.raises(MalformedSegment):
        resolve_active_channels(_segment(TocFlag.META_DATA), [], None)
    assert resolve_active_channels(_segment(0), [], None) == ((), ())
