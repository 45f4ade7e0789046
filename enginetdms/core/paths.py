# enginetdms/core/paths.py
from __future__ import annotations

from dataclasses import dataclass

from .exceptions import InvalidChannel


@dataclass(frozen=True, slots=True)
class ObjectPath:
    """
    Decomposed object path.

    "/"                      -> root (file) object
    "/'group'"               -> group object
    "/'group'/'channel'"     -> channel object

    Single quotes inside a name are doubled on disk ("/'it''s'").
    """
    group: str | None = None
    channel: str | None = None

    def __post_init__(self) -> None:
        if self.channel is not None and self.group is None:
            raise InvalidChannel("A channel path requires a group.")

    @classmethod
    def parse(cls, path: str) -> "ObjectPath":
        parts = split_path(path)
        if len(parts) == 0:
            return cls()
        if len(parts) == 1:
            return cls(group=parts[0])
        if len(parts) == 2:
            return cls(group=parts[0], channel=parts[1])
        raise InvalidChannel(f"Object path {path!r} has too many components.")

    @property
    def is_root(self) -> bool:
        return self.group is None

    @property
    def is_group(self) -> bool:
        return self.group is not None and self.channel is None

    @property
    def is_channel(self) -> bool:
        return self.channel is not None

    def __str__(self) -> str:
        if self.group is None:
            return "/"
        components = [self.group] if self.channel is None else [self.group, self.channel]
        return "".join("/'" + c.replace("'", "''") + "'" for c in components)


def split_path(path: str) -> tuple[str, ...]:
    """Split an on-disk object path into its unescaped components."""
    if path == "/":
        return ()
    if not path.startswith("/"):
        raise InvalidChannel(f"Object path {path!r} must start with '/'.")

    parts: list[str] = []
    i = 0
    n = len(path)
    while i < n:
        if path[i] != "/" or i + 1 >= n or path[i + 1] != "'":
            raise InvalidChannel(f"Malformed object path {path!r}.")
        i += 2
        buf: list[str] = []
        while True:
            if i >= n:
                raise InvalidChannel(f"Unterminated name in object path {path!r}.")
            if path[i] == "'":
                if i + 1 < n and path[i + 1] == "'":
                    buf.append("'")
                    i += 2
                    continue
                i += 1
                break
            buf.append(path[i])
            i += 1
        parts.append("".join(buf))
    return tuple(parts)
