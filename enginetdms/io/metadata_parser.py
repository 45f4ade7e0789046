# enginetdms/io/metadata_parser.py
"""
Metadata block parser.

    u32 object count
    per object:
        path               (u32 length + UTF-8)
        raw data index     (see raw_index)
        u32 property count
        per property: name (u32 length + UTF-8), u32 type code, value
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from enginetdms.core.datatypes import DataType
from enginetdms.core.exceptions import MalformedSegment, UnknownDataType
from enginetdms.core.segment import Segment
from enginetdms.core.timestamps import TdmsTimestamp

from .cursor import Cursor
from .decoders import decode, timestamp_dtype
from .raw_index import NoData, RawDataIndex, parse_raw_data_index
from .registry import ObjectRegistry


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ObjectEntry:
    """One object as declared in a segment's metadata."""
    path: str
    declared: RawDataIndex
    # NoData or the concrete layout after SamePrevious resolution
    index: RawDataIndex
    properties: dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass(frozen=True, slots=True)
class ActiveChannel:
    """An object taking part in this segment's raw-data chunking."""
    path: str
    index: RawDataIndex

    @property
    def has_data(self) -> bool:
        return not isinstance(self.index, NoData)


@dataclass(frozen=True, slots=True)
class SegmentMetadata:
    objects: tuple[ObjectEntry, ...]
    active: tuple[ActiveChannel, ...]
    # Objects with data declared while the previous object list persists.
    outside_active: tuple[str, ...] = ()


def read_property_value(cursor: Cursor, data_type: DataType) -> Any:
    """Read one typed scalar property value."""
    if data_type.is_string:
        return cursor.text()
    if data_type is DataType.TIMESTAMP:
        raw = np.frombuffer(cursor.take(16), dtype=timestamp_dtype(cursor.byteorder))[0]
        return TdmsTimestamp(seconds=int(raw["seconds"]), second_fractions=int(raw["second_fractions"]))
    if data_type is DataType.DAQMX_RAW_DATA:
        raise UnknownDataType(int(data_type), "not a property type")

    value = decode(data_type, cursor.take(data_type.width), 1, cursor.byteorder)[0]
    return value.item() if isinstance(value, np.generic) else value


def parse_properties(cursor: Cursor) -> dict[str, Any]:
    properties: dict[str, Any] = {}
    for _ in range(cursor.u32()):
        name = cursor.text()
        data_type = DataType.from_code(cursor.u32())
        properties[name] = read_property_value(cursor, data_type)
    return properties


def parse_objects(cursor: Cursor, registry: ObjectRegistry, *, daqmx_segment: bool) -> list[ObjectEntry]:
    """Parse the object list and apply it to the registry, in declared order."""
    entries: list[ObjectEntry] = []
    for _ in range(cursor.u32()):
        path = cursor.text()
        declared = parse_raw_data_index(cursor, daqmx_segment=daqmx_segment)
        index = registry.resolve(path, declared)
        properties = parse_properties(cursor)
        registry.update_properties(path, properties)
        logger.debug("object %s: declared=%s resolved=%r, %d propert(ies)",
                     path, type(declared).__name__, index, len(properties))
        entries.append(ObjectEntry(path=path, declared=declared, index=index, properties=properties))
    return entries


def resolve_active_channels(
    segment: Segment,
    objects: list[ObjectEntry] | tuple[ObjectEntry, ...],
    previous: tuple[ActiveChannel, ...] | None,
) -> tuple[tuple[ActiveChannel, ...], tuple[str, ...]]:
    """
    Active channel list of `segment`.

    With NEW_OBJ_LIST set it is exactly the declared objects in declared order.
    Otherwise the previous list persists: declared objects only update the
    layout of the channels already in it.
    """
    if segment.has_metadata and segment.new_object_list:
        return tuple(ActiveChannel(o.path, o.index) for o in objects), ()

    if previous is None:
        if not segment.has_metadata and not segment.has_raw_data:
            return (), ()
        raise MalformedSegment(
            f"Segment {segment.index} keeps the previous object list, but no previous segment declared one."
        )

    declared = {o.path: o.index for o in objects}
    active = tuple(ActiveChannel(a.path, declared.get(a.path, a.index)) for a in previous)
    in_list = {a.path for a in previous}
    outside = tuple(
        p for p, idx in declared.items() if p not in in_list and not isinstance(idx, NoData)
    )
    return active, outside


def parse_segment_metadata(
    data: bytes,
    segment: Segment,
    registry: ObjectRegistry,
    previous: tuple[ActiveChannel, ...] | None,
) -> SegmentMetadata:
    """Parse a segment's metadata block (may be empty) and derive its active channels."""
    objects: list[ObjectEntry] = []
    if segment.has_metadata:
        origin = segment.metadata_range[0] if segment.metadata_range else 0
        cursor = Cursor(data, segment.byteorder, origin=origin)
        objects = parse_objects(cursor, registry, daqmx_segment=segment.has_daqmx_raw_data)
        if cursor.remaining:
            logger.debug("segment %d: %d unread metadata byte(s)", segment.index, cursor.remaining)

    active, outside = resolve_active_channels(segment, objects, previous)
    return SegmentMetadata(objects=tuple(objects), active=active, outside_active=outside)
