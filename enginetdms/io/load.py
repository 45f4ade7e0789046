# enginetdms/io/load.py
from __future__ import annotations

import os
from typing import Iterable

from enginetdms.core import Channel, Dataset, InvalidChannel, ObjectMeta, ObjectPath, TypeVector
from enginetdms.io.config import ReaderConfig
from enginetdms.io.raw_index import DaqmxIndex
from enginetdms.io.tdms_reader import ParseResult, TdmsReader


def load_tdms(
    path: str | os.PathLike,
    config: ReaderConfig | None = None,
    paths: Iterable[str] | None = None,
) -> Dataset:
    """
    Parse the TDMS file at `path` into a Dataset.

    `paths` loads only those channels' raw data; the Dataset then holds just
    these channels, while every object's properties are still available.
    """
    if paths is not None:
        paths = list(paths)
    with TdmsReader(path, config) as reader:
        result = reader.read(paths)
    return dataset_from_result(result, source=os.fspath(path), paths=paths)


def dataset_from_result(
    result: ParseResult,
    source: str | None = None,
    paths: Iterable[str] | None = None,
) -> Dataset:
    objects = {
        path: ObjectMeta(path=path, properties=props)
        for path, props in result.properties.items()
    }

    wanted = None if paths is None else set(paths)
    channels = {}
    for path, meta in objects.items():
        if not _is_channel_path(path):
            continue
        if wanted is not None and path not in wanted:
            continue
        layout = result.layouts.get(path)
        vector = result.vectors.get(path)
        if vector is None:
            # Channels that never carried data still get an (empty) vector
            # when their type is known.
            if layout is None:
                continue
            vector = TypeVector(layout.data_type)
        scale_id = layout.scalers[0].scale_id if isinstance(layout, DaqmxIndex) else None
        channels[path] = Channel(path=path, vector=vector, meta=meta, scale_id=scale_id)

    return Dataset(
        channels=channels,
        objects=objects,
        segments=tuple(result.segments),
        diagnostics=tuple(result.diagnostics),
        source=source,
    )


def _is_channel_path(path: str) -> bool:
    try:
        return ObjectPath.parse(path).is_channel
    except InvalidChannel:
        # Non-conforming paths are kept as plain objects.
        return False
