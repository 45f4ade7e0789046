# test/test_segment.py
import pytest

from enginetdms.core import Segment, TocFlag, MalformedSegment


def _segment(toc, **kw):
    args = dict(
        index=0,
        offset=0,
        toc=toc,
        version=4713,
        next_segment_offset=40,
        raw_data_offset=8,
        end=68,
    )
    args.update(kw)
    return Segment(**args)


def test_segment_flags_and_lengths():
    seg = _segment(
        TocFlag.META_DATA | TocFlag.RAW_DATA | TocFlag.NEW_OBJ_LIST,
        metadata_range=(28, 36),
        raw_data_range=(36, 68),
    )
    assert seg.has_metadata
    assert seg.has_raw_data
    assert seg.new_object_list
    assert not seg.interleaved
    assert not seg.has_daqmx_raw_data
    assert seg.byteorder == "<"
    assert seg.metadata_length == 8
    assert seg.raw_data_length == 32


def test_segment_big_endian_and_missing_ranges():
    seg = _segment(TocFlag.BIG_ENDIAN | TocFlag.INTERLEAVED_DATA)
    assert seg.big_endian
    assert seg.interleaved
    assert seg.byteorder == ">"
    assert seg.metadata_length == 0
    assert seg.raw_data_length == 0


def test_segment_rejects_ranges_outside_extent():
    with pytest.raises(MalformedSegment):
        _segment(TocFlag.RAW_DATA, raw_data_range=(36, 80))
    with pytest.raises(MalformedSegment):
        _segment(TocFlag.META_DATA, offset=40, end=30)
