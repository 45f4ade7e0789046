# enginetdms/core/metadata.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .exceptions import InvalidChannel
from .paths import ObjectPath


@dataclass(frozen=True, slots=True)
class ObjectMeta:
    """
    Resolved metadata of one object (file, group or channel).

    - path: on-disk object path ("/'group'/'channel'")
    - properties: name -> typed scalar, last write across segments wins
    """
    path: str
    properties: dict[str, Any] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        if not isinstance(self.path, str) or not self.path.startswith("/"):
            raise InvalidChannel("ObjectMeta.path must be an object path starting with '/'.")
        if self.properties is None:
            object.__setattr__(self, "properties", {})
        elif not isinstance(self.properties, dict):
            raise InvalidChannel("ObjectMeta.properties must be a dict.")

    @property
    def object_path(self) -> ObjectPath:
        return ObjectPath.parse(self.path)

    @property
    def unit(self) -> str | None:
        return self.properties.get("unit_string")

    @property
    def description(self) -> str | None:
        return self.properties.get("description")

    def get(self, name: str, default: Any = None) -> Any:
        return self.properties.get(name, default)

    def copy(self) -> "ObjectMeta":
        return ObjectMeta(path=self.path, properties=self.properties.copy())
