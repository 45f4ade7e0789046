# test/test_timestamps.py
from datetime import datetime, timezone

import numpy as np

from enginetdms.core import TdmsTimestamp
from enginetdms.core.timestamps import fractions_to_ns


def test_epoch_is_1904_utc():
    ts = TdmsTimestamp(seconds=0, second_fractions=0)
    assert ts.as_datetime() == datetime(1904, 1, 1, tzinfo=timezone.utc)
    assert ts.as_datetime64() == np.datetime64("1904-01-01T00:00:00", "ns")


def test_fractions_are_units_of_two_to_minus_64():
    half = TdmsTimestamp(seconds=10, second_fractions=1 << 63)
    assert half.nanoseconds == 500_000_000
    assert half.as_datetime64() == np.datetime64("1904-01-01T00:00:10.5", "ns")
    assert half.as_datetime().microsecond == 500_000


def test_fractions_to_ns_matches_exact_integer_conversion():
    fractions = [0, 1, 1 << 32, (1 << 63) - 1, 1 << 63, 0x1234_5678_9ABC_DEF0, 2**64 - 2, 2**64 - 1]
    ns = fractions_to_ns(np.array(fractions, dtype=np.uint64))
    assert ns.dtype == np.int64
    assert ns.tolist() == [TdmsTimestamp(0, f).nanoseconds for f in fractions]


def test_largest_fraction_stays_below_one_second():
    ns = fractions_to_ns(np.array([2**64 - 1], dtype=np.uint64))
    assert ns[0] == 999_999_999
