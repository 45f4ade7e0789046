# enginetdms/core/timestamps.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import numpy as np

# TDMS timestamps count from 1904-01-01 00:00:00 UTC.
EPOCH = datetime(1904, 1, 1, tzinfo=timezone.utc)
EPOCH_NS = np.datetime64("1904-01-01T00:00:00", "ns")


@dataclass(frozen=True, slots=True)
class TdmsTimestamp:
    """
    A single timestamp value: whole seconds since the 1904 epoch plus a
    positive fraction of a second in units of 2^-64 s.
    """
    seconds: int
    second_fractions: int

    @property
    def nanoseconds(self) -> int:
        return (self.second_fractions * 1_000_000_000) >> 64

    def as_datetime64(self, resolution: str = "ns") -> np.datetime64:
        total_ns = self.seconds * 1_000_000_000 + self.nanoseconds
        return (EPOCH_NS + np.timedelta64(total_ns, "ns")).astype(f"datetime64[{resolution}]")

    def as_datetime(self) -> datetime:
        """Timezone-aware UTC datetime (microsecond resolution)."""
        micro = (self.second_fractions * 1_000_000) >> 64
        return EPOCH + timedelta(seconds=self.seconds, microseconds=micro)

    def __str__(self) -> str:
        return str(self.as_datetime64())


def fractions_to_ns(second_fractions: np.ndarray) -> np.ndarray:
    """Convert an array of uint64 2^-64 s fractions to int64 nanoseconds."""
    # Exact floor(f * 1e9 / 2**64) split over 32-bit halves so no step overflows uint64.
    f = np.asarray(second_fractions, dtype=np.uint64)
    billion = np.uint64(1_000_000_000)
    shift = np.uint64(32)
    high = f >> shift
    low = f & np.uint64(0xFFFF_FFFF)
    ns = (high * billion + ((low * billion) >> shift)) >> shift
    return ns.astype(np.int64)
