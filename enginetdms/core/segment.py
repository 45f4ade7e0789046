# enginetdms/core/segment.py
from __future__ import annotations

from dataclasses import dataclass

from .datatypes import TocFlag
from .exceptions import MalformedSegment


@dataclass(frozen=True, slots=True)
class Segment:
    """
    One segment of a TDMS file, as resolved from its lead-in.

    Byte ranges are absolute, half-open (start, end) file offsets. `end` is the
    offset of the next segment; for an unterminated last segment it is the
    file length.
    """
    index: int
    offset: int
    toc: TocFlag
    version: int
    next_segment_offset: int
    raw_data_offset: int
    end: int
    metadata_range: tuple[int, int] | None = None
    raw_data_range: tuple[int, int] | None = None
    incomplete: bool = False

    def __post_init__(self) -> None:
        if self.offset < 0 or self.end < self.offset:
            raise MalformedSegment(
                f"Segment {self.index}: invalid extent [{self.offset}, {self.end})."
            )
        for rng in (self.metadata_range, self.raw_data_range):
            if rng is not None and not (self.offset <= rng[0] <= rng[1] <= self.end):
                raise MalformedSegment(
                    f"Segment {self.index}: range {rng} outside [{self.offset}, {self.end})."
                )

    # ---- TOC flags ----
    @property
    def has_metadata(self) -> bool:
        return bool(self.toc & TocFlag.META_DATA)

    @property
    def has_raw_data(self) -> bool:
        return bool(self.toc & TocFlag.RAW_DATA)

    @property
    def has_daqmx_raw_data(self) -> bool:
        return bool(self.toc & TocFlag.DAQMX_RAW_DATA)

    @property
    def interleaved(self) -> bool:
        return bool(self.toc & TocFlag.INTERLEAVED_DATA)

    @property
    def big_endian(self) -> bool:
        return bool(self.toc & TocFlag.BIG_ENDIAN)

    @property
    def new_object_list(self) -> bool:
        return bool(self.toc & TocFlag.NEW_OBJ_LIST)

    # ---- derived ----
    @property
    def byteorder(self) -> str:
        """numpy / struct byte-order character for this segment."""
        return ">" if self.big_endian else "<"

    @property
    def metadata_length(self) -> int:
        return 0 if self.metadata_range is None else self.metadata_range[1] - self.metadata_range[0]

    @property
    def raw_data_length(self) -> int:
        return 0 if self.raw_data_range is None else self.raw_data_range[1] - self.raw_data_range[0]
