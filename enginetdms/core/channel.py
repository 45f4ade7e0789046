# core/channel.py

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from .datatypes import DataType
from .exceptions import InvalidChannel
from .metadata import ObjectMeta
from .paths import ObjectPath
from .scaling import get_scaling
from .typevector import TypeVector


_FLOAT_CONVERTIBLE = frozenset("biuf")


@dataclass(slots=True, frozen=True)
class Channel:
    path: str
    vector: TypeVector = field(repr=False)
    meta: ObjectMeta = field(default=None, repr=False)  # type: ignore[assignment]
    # DAQmx channels pick their scale through the scaler's scale id.
    scale_id: int | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.path, str) or not self.path.strip():
            raise InvalidChannel("Channel.path must be a non-empty string.")

        if not isinstance(self.vector, TypeVector):
            raise InvalidChannel("Channel.vector must be a TypeVector.")

        if self.meta is None:
            object.__setattr__(self, "meta", ObjectMeta(path=self.path))
        elif not isinstance(self.meta, ObjectMeta):
            raise InvalidChannel("Channel.meta must be an ObjectMeta instance.")
        elif self.meta.path != self.path:
            raise InvalidChannel(
                f"Channel meta path mismatch: '{self.meta.path}' vs '{self.path}'."
            )

        if not ObjectPath.parse(self.path).is_channel:
            raise InvalidChannel(f"'{self.path}' is not a channel path.")

    # Convenience accessors
    @property
    def name(self) -> str:
        return ObjectPath.parse(self.path).channel  # type: ignore[return-value]

    @property
    def group(self) -> str:
        return ObjectPath.parse(self.path).group  # type: ignore[return-value]

    @property
    def values(self) -> np.ndarray:
        return self.vector.values

    @property
    def data_type(self) -> DataType:
        return self.vector.data_type

    @property
    def properties(self) -> dict:
        return self.meta.properties

    @property
    def unit(self) -> str | None:
        return self.meta.unit

    @property
    def n(self) -> int:
        return self.vector.n

    def __len__(self) -> int:
        return self.vector.n

    # Core operations
    def as_float(self) -> np.ndarray:
        """Values as float64, for numeric and boolean channels only."""
        v = self.values
        if v.dtype.kind not in _FLOAT_CONVERTIBLE:
            raise InvalidChannel(
                f"Channel '{self.path}' holds {self.data_type.name} values; "
                "cannot convert to float."
            )
        return v.astype(np.float64)

    def scaled(self) -> np.ndarray:
        """Values in engineering units (raw values as float64 if no scale applies)."""
        scaling = get_scaling(self.meta.properties, self.scale_id)
        if scaling is None:
            return self.as_float()
        return scaling.scale(self.as_float())

    def time_track(self, *, absolute: bool = False) -> np.ndarray:
        """
        Sample times built from the waveform properties.

        absolute=False: seconds relative to wf_start_time (float64)
        absolute=True : datetime64[us] values starting at wf_start_time
        """
        props = self.meta.properties
        try:
            increment = float(props["wf_increment"])
        except KeyError as e:
            raise InvalidChannel(f"Channel '{self.path}' has no wf_increment property.") from e
        offset = float(props.get("wf_start_offset", 0.0))
        relative = offset + np.arange(self.n, dtype=np.float64) * increment

        if not absolute:
            return relative

        start = props.get("wf_start_time")
        if start is None:
            raise InvalidChannel(f"Channel '{self.path}' has no wf_start_time property.")
        start64 = start.as_datetime64("us")
        return start64 + (relative * 1e6).astype("timedelta64[us]")

    def with_meta(self, meta: ObjectMeta) -> "Channel":
        return Channel(path=self.path, vector=self.vector, meta=meta, scale_id=self.scale_id)
