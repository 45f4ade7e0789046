# core/typevector.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator

import numpy as np

from .datatypes import DataType
from .exceptions import InvalidTypeVector


@dataclass(slots=True)
class TypeVector:
    """
    Growable, type-tagged sequence of decoded values for one channel.

    Values are appended chunk by chunk in file order; readers see a single
    read-only 1D array through `values`.
    """

    data_type: DataType
    _parts: list[np.ndarray] = field(default_factory=list, init=False, repr=False)
    _dtype: np.dtype | None = field(default=None, init=False, repr=False)
    _cache: np.ndarray | None = field(default=None, init=False, repr=False)
    _size: int = field(default=0, init=False)

    def __post_init__(self) -> None:
        if not isinstance(self.data_type, DataType):
            raise InvalidTypeVector("TypeVector.data_type must be a DataType.")

    def append(self, values: np.ndarray, data_type: DataType | None = None) -> None:
        if data_type is not None and data_type != self.data_type:
            raise InvalidTypeVector(
                f"Cannot append {data_type.name} values to a {self.data_type.name} vector."
            )
        v = np.asarray(values)
        if v.ndim != 1:
            raise InvalidTypeVector(f"Appended values must be 1D, got shape {v.shape}")
        # Byte order may differ between segments; compare the native form.
        native = v.dtype.newbyteorder("=") if v.dtype.byteorder not in ("=", "|") else v.dtype
        if self._dtype is None:
            self._dtype = native
        elif native != self._dtype:
            raise InvalidTypeVector(
                f"Appended dtype {v.dtype} does not match vector dtype {self._dtype}"
            )
        if v.size == 0:
            return
        self._parts.append(v.astype(self._dtype, copy=False))
        self._size += int(v.size)
        self._cache = None

    def extend(self, other: "TypeVector") -> None:
        if other.data_type != self.data_type:
            raise InvalidTypeVector(
                f"Cannot extend a {self.data_type.name} vector with {other.data_type.name} values."
            )
        if other._size:
            self.append(other.values)

    @property
    def values(self) -> np.ndarray:
        if self._cache is None:
            if not self._parts:
                out = np.empty(0, dtype=self._dtype if self._dtype is not None else object)
            elif len(self._parts) == 1:
                out = self._parts[0].copy()
            else:
                out = np.concatenate(self._parts)
            out.setflags(write=False)
            # Collapse to one part so later appends only concatenate twice.
            self._parts = [out] if out.size else []
            self._cache = out
        return self._cache

    @property
    def dtype(self) -> np.dtype | None:
        return self._dtype

    @property
    def n(self) -> int:
        return self._size

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Iterator[Any]:
        return iter(self.values)

    def __getitem__(self, item):
        return self.values[item]

    def to_numpy(self, *, copy: bool = False) -> np.ndarray:
        if copy:
            return self.values.copy()
        return self.values
