# enginetdms/core/__init__.py
"""
Core domain objects for enginetdms.

This module defines the format-level data model, independent from how the
bytes are read:
- DataType / TocFlag: on-disk codes
- TypeVector: growable, type-tagged value sequence of one channel
- Channel: channel path + TypeVector + resolved properties
- Segment: one lead-in resolved to absolute byte ranges
- Dataset: all channels/objects of a file plus parse diagnostics
"""

from .datatypes import DataType, TocFlag
from .timestamps import TdmsTimestamp
from .paths import ObjectPath, split_path
from .typevector import TypeVector
from .metadata import ObjectMeta
from .scaling import LinearScaling, PolynomialScaling, get_scaling
from .channel import Channel
from .segment import Segment
from .dataset import Dataset, ParseDiagnostic
from .exceptions import (
    TdmsError,
    MalformedLeadIn,
    TruncatedSegment,
    InvalidRawDataIndexRecord,
    NoPreviousObjectError,
    MalformedSegment,
    PartialChunk,
    UnknownDataType,
    InterleavedUnsupportedType,
    MalformedRawData,
    ByteSourceError,
    ParseCancelled,
    InvalidConfig,
    InvalidTypeVector,
    InvalidChannel,
    InvalidDataset,
    ChannelNotFound,
    ObjectNotFound,
)


__all__ = [
    # format codes
    "DataType",
    "TocFlag",
    "TdmsTimestamp",

    # domain objects
    "ObjectPath",
    "split_path",
    "TypeVector",
    "ObjectMeta",
    "Channel",
    "Segment",
    "Dataset",
    "ParseDiagnostic",

    # scaling
    "LinearScaling",
    "PolynomialScaling",
    "get_scaling",

    # exceptions
    "TdmsError",
    "MalformedLeadIn",
    "TruncatedSegment",
    "InvalidRawDataIndexRecord",
    "NoPreviousObjectError",
    "MalformedSegment",
    "PartialChunk",
    "UnknownDataType",
    "InterleavedUnsupportedType",
    "MalformedRawData",
    "ByteSourceError",
    "ParseCancelled",
    "InvalidConfig",
    "InvalidTypeVector",
    "InvalidChannel",
    "InvalidDataset",
    "ChannelNotFound",
    "ObjectNotFound",
]
