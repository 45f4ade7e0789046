# enginetdms/core/dataset.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Mapping

from .channel import Channel
from .exceptions import ChannelNotFound, InvalidChannel, InvalidDataset, ObjectNotFound, TdmsError
from .metadata import ObjectMeta
from .paths import ObjectPath
from .segment import Segment


@dataclass(frozen=True, slots=True)
class ParseDiagnostic:
    """A warning or error recorded while parsing, keyed by segment index."""
    segment_index: int
    severity: str  # "warning" | "error"
    message: str
    error: TdmsError | None = field(default=None, repr=False)


@dataclass(frozen=True, slots=True)
class Dataset:
    """
    Dataset = decoded content of one TDMS file.

    Design goals:
    - dict-like access over channels: ds["/'Group'/'Voltage'"]
    - every object's resolved properties, including objects without data
    - parse diagnostics travel with the data they qualify
    """
    channels: Mapping[str, Channel] = field(default_factory=dict, repr=False)
    objects: Mapping[str, ObjectMeta] = field(default_factory=dict, repr=False)
    segments: tuple[Segment, ...] = field(default=(), repr=False)
    diagnostics: tuple[ParseDiagnostic, ...] = ()
    source: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.channels, Mapping):
            raise InvalidDataset("Dataset.channels must be a mapping (e.g., dict).")
        if not isinstance(self.objects, Mapping):
            raise InvalidDataset("Dataset.objects must be a mapping (e.g., dict).")

        normalized: dict[str, Channel] = {}
        for key, ch in self.channels.items():
            if not isinstance(ch, Channel):
                raise InvalidDataset("Dataset.channels values must be Channel instances.")
            if ch.path != key:
                raise InvalidDataset(
                    f"Channel path mismatch: key '{key}' but Channel.path is '{ch.path}'."
                )
            normalized[key] = ch

        objects: dict[str, ObjectMeta] = {}
        for key, meta in self.objects.items():
            if not isinstance(meta, ObjectMeta) or meta.path != key:
                raise InvalidDataset(f"Dataset.objects entry '{key}' is not a matching ObjectMeta.")
            objects[key] = meta
        # Every channel is also an object.
        for key, ch in normalized.items():
            objects.setdefault(key, ch.meta)

        object.__setattr__(self, "channels", normalized)
        object.__setattr__(self, "objects", objects)
        object.__setattr__(self, "segments", tuple(self.segments))
        object.__setattr__(self, "diagnostics", tuple(self.diagnostics))

    # ---- dict-like API ----
    def __len__(self) -> int:
        return len(self.channels)

    def __iter__(self) -> Iterator[str]:
        return iter(self.channels)

    def __contains__(self, path: object) -> bool:
        return path in self.channels

    def keys(self) -> Iterable[str]:
        return self.channels.keys()

    def items(self) -> Iterable[tuple[str, Channel]]:
        return self.channels.items()

    def values(self) -> Iterable[Channel]:
        return self.channels.values()

    def __getitem__(self, path: str) -> Channel:
        try:
            return self.channels[path]
        except KeyError as e:
            raise ChannelNotFound(path) from e

    def get(self, path: str, default: Channel | None = None) -> Channel | None:
        return self.channels.get(path, default)

    # ---- object / group views ----
    def object(self, path: str) -> ObjectMeta:
        try:
            return self.objects[path]
        except KeyError as e:
            raise ObjectNotFound(path) from e

    @property
    def file_properties(self) -> dict:
        root = self.objects.get("/")
        return {} if root is None else root.properties

    def groups(self) -> list[str]:
        """Group names in first-seen order."""
        seen: dict[str, None] = {}
        for path in self.objects:
            try:
                group = ObjectPath.parse(path).group
            except InvalidChannel:
                continue
            if group is not None:
                seen.setdefault(group, None)
        return list(seen)

    def group_channels(self, group: str) -> list[Channel]:
        return [ch for ch in self.channels.values() if ch.group == group]

    def data_channels(self) -> list[Channel]:
        """Channels that accumulated at least one value."""
        return [ch for ch in self.channels.values() if ch.n > 0]

    @property
    def errors(self) -> list[ParseDiagnostic]:
        return [d for d in self.diagnostics if d.severity == "error"]

    @property
    def complete(self) -> bool:
        """True when parsing finished without an error diagnostic."""
        return not self.errors

    # ---- transformations ----
    def select(self, paths: Iterable[str], *, missing: str = "raise") -> "Dataset":
        """
        Keep only the given channel paths (order preserved by insertion in `paths`).

        missing:
          - "raise": error if any path is missing
          - "ignore": skip missing paths
        """
        selected: dict[str, Channel] = {}
        for p in paths:
            if p in self.channels:
                selected[p] = self.channels[p]
            elif missing == "raise":
                raise ChannelNotFound(p)
        return Dataset(
            channels=selected,
            objects=dict(self.objects),
            segments=self.segments,
            diagnostics=self.diagnostics,
            source=self.source,
        )
