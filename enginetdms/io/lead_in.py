# enginetdms/io/lead_in.py
"""
Lead-in reader: the fixed 28-byte header that opens every segment.

Layout (offsets relative to the segment start):

    0   4  tag "TDSm"
    4   4  TOC flags (always little-endian)
    8   4  version
    12  8  next segment offset  } both relative to the end of the lead-in,
    20  8  raw data offset      } byte order given by the BIG_ENDIAN flag
"""
from __future__ import annotations

import logging
import struct
from dataclasses import dataclass

from enginetdms.core.datatypes import TocFlag
from enginetdms.core.exceptions import MalformedLeadIn, TruncatedSegment
from enginetdms.core.segment import Segment

from .byte_source import ByteSource


logger = logging.getLogger(__name__)

LEAD_IN_LENGTH = 28
TDMS_TAG = b"TDSm"
SUPPORTED_VERSIONS = (4712, 4713)
# Written by a writer that never finalised the segment (e.g. it crashed).
UNTERMINATED_OFFSET = 0xFFFF_FFFF_FFFF_FFFF


@dataclass(frozen=True, slots=True)
class LeadIn:
    toc: TocFlag
    version: int
    next_segment_offset: int
    raw_data_offset: int

    @property
    def unterminated(self) -> bool:
        return self.next_segment_offset == UNTERMINATED_OFFSET


def parse_lead_in(data: bytes, *, validate_version: bool = True) -> LeadIn:
    """Decode and validate the 28 lead-in bytes."""
    if len(data) != LEAD_IN_LENGTH:
        raise MalformedLeadIn(f"Lead-in must be {LEAD_IN_LENGTH} bytes, got {len(data)}.")
    if data[:4] != TDMS_TAG:
        raise MalformedLeadIn(f"Expected segment tag {TDMS_TAG!r}, found {bytes(data[:4])!r}.")

    (toc_word,) = struct.unpack_from("<I", data, 4)
    toc = TocFlag(toc_word)
    bo = ">" if toc & TocFlag.BIG_ENDIAN else "<"
    version, next_offset, raw_offset = struct.unpack_from(f"{bo}IQQ", data, 8)

    if validate_version and version not in SUPPORTED_VERSIONS:
        raise MalformedLeadIn(f"Unsupported format version {version}.")

    return LeadIn(
        toc=toc,
        version=version,
        next_segment_offset=next_offset,
        raw_data_offset=raw_offset,
    )


def read_segment(
    source: ByteSource,
    offset: int,
    index: int,
    *,
    file_length: int | None = None,
    validate_version: bool = True,
) -> Segment:
    """
    Read the lead-in at `offset` and resolve the segment's absolute byte ranges.

    Raises TruncatedSegment when the declared extent does not fit in the file,
    except for an unterminated last segment, which is clamped to end-of-file.
    """
    if file_length is None:
        file_length = source.file_length()
    if offset + LEAD_IN_LENGTH > file_length:
        raise TruncatedSegment(
            f"Segment {index} at offset {offset}: only {file_length - offset} byte(s) left "
            f"for a {LEAD_IN_LENGTH}-byte lead-in."
        )

    lead = parse_lead_in(source.read_exact(offset, LEAD_IN_LENGTH), validate_version=validate_version)
    lead_in_end = offset + LEAD_IN_LENGTH

    if lead.unterminated:
        end = file_length
        logger.warning("segment %d at offset %d is unterminated; clamping to end of file", index, offset)
    else:
        end = lead_in_end + lead.next_segment_offset
        if end > file_length:
            raise TruncatedSegment(
                f"Segment {index} at offset {offset} declares {lead.next_segment_offset} byte(s) "
                f"but the file ends {file_length - lead_in_end} byte(s) after its lead-in."
            )

    raw_start = lead_in_end + lead.raw_data_offset
    if raw_start > end:
        raise TruncatedSegment(
            f"Segment {index} at offset {offset}: raw data offset {lead.raw_data_offset} "
            f"lies beyond the segment end."
        )

    segment = Segment(
        index=index,
        offset=offset,
        toc=lead.toc,
        version=lead.version,
        next_segment_offset=lead.next_segment_offset,
        raw_data_offset=lead.raw_data_offset,
        end=end,
        metadata_range=(lead_in_end, raw_start) if lead.toc & TocFlag.META_DATA else None,
        raw_data_range=(raw_start, end) if lead.toc & TocFlag.RAW_DATA else None,
        incomplete=lead.unterminated,
    )
    logger.debug(
        "segment %d: offset=%d toc=%r version=%d metadata=%s raw=%s",
        index, offset, lead.toc, lead.version, segment.metadata_range, segment.raw_data_range,
    )
    return segment
