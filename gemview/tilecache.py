"""Tile identity and a least-recently-used tile cache."""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Iterator


@dataclass(frozen=True, slots=True)
class TileKey:
    """Identifies one image tile; the file path does not take part in identity."""

    zoom: int
    x: int
    y: int
    width: int
    height: int
    theta: int
    filepath: str = field(default="", compare=False)
    tileset: str = ""


class TileCacheLRU:
    """Maps tile keys to values, evicting the least recently used past ``max_size``."""

    def __init__(self, max_size: int) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        # Most recently used entries are kept at the end.
        self._entries: OrderedDict[TileKey, Any] = OrderedDict()

    def contains(self, key: TileKey, touch: bool = False) -> bool:
        """Report whether ``key`` is cached, optionally marking it as used."""
        found = key in self._entries
        if found and touch:
            self._entries.move_to_end(key)
        return found

    def get(self, key: TileKey) -> Any | None:
        """Return the cached value and mark it as used, or None when absent."""
        if key not in self._entries:
            return None
        self._entries.move_to_end(key)
        return self._entries[key]

    def touch(self, key: TileKey) -> None:
        if key in self._entries:
            self._entries.move_to_end(key)

    def put(self, key: TileKey, value: Any) -> None:
        if key in self._entries:
            self._entries.move_to_end(key)
            self._entries[key] = value
            return
        if len(self._entries) >= self.max_size:
            self._entries.popitem(last=False)
        self._entries[key] = value

    def erase(self, key: TileKey) -> None:
        self._entries.pop(key, None)

    def items(self) -> Iterator[tuple[TileKey, Any]]:
        """Yield (key, value) pairs, most recently used first."""
        for key in reversed(self._entries):
            yield key, self._entries[key]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[TileKey]:
        return reversed(list(self._entries))

    def __contains__(self, key: object) -> bool:
        return key in self._entries