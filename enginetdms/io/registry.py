# enginetdms/io/registry.py
from __future__ import annotations

import logging
from typing import Any, Mapping

from enginetdms.core.exceptions import NoPreviousObjectError

from .raw_index import ConcreteIndex, NoData, RawDataIndex, SamePrevious


logger = logging.getLogger(__name__)


class ObjectRegistry:
    """
    Per-session map from object path to its current raw-data layout.

    Only concrete layouts are stored. A `NoData` record leaves the previous
    concrete layout in place, so a later `SamePrevious` still finds it; the
    "no samples" answer only applies to the segment that declared it.

    Also keeps every object's properties (last write wins per name) and the
    order in which objects were first seen.
    """

    def __init__(self) -> None:
        self._layouts: dict[str, ConcreteIndex] = {}
        self._properties: dict[str, dict[str, Any]] = {}

    def resolve(self, path: str, index: RawDataIndex) -> RawDataIndex:
        """
        Resolve the index declared for `path` in the current segment.

        SamePrevious -> the stored concrete layout (NoPreviousObjectError if none)
        NoData       -> NoData, registry unchanged
        concrete     -> stored as the new current layout and returned
        """
        if isinstance(index, SamePrevious):
            try:
                layout = self._layouts[path]
            except KeyError:
                raise NoPreviousObjectError(path) from None
            return layout
        self._properties.setdefault(path, {})
        if isinstance(index, NoData):
            return index
        self._layouts[path] = index
        logger.debug("registered layout for %s: %r", path, index)
        return index

    def current(self, path: str) -> ConcreteIndex | None:
        return self._layouts.get(path)

    def update_properties(self, path: str, properties: Mapping[str, Any]) -> None:
        self._properties.setdefault(path, {}).update(properties)

    def properties(self, path: str) -> dict[str, Any]:
        return dict(self._properties.get(path, {}))

    def paths(self) -> list[str]:
        """All object paths, in first-seen order."""
        return list(self._properties)

    def __contains__(self, path: object) -> bool:
        return path in self._properties

    def __len__(self) -> int:
        return len(self._properties)

