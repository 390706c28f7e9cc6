from __future__ import annotations

"""Ordered position indexes.

Every level is a `SortedMap`: iteration follows key order, never insertion
order, because the encoder has to walk lines and columns in ascending order.

    ForwardIndex:  generated line -> generated column -> [OriginalPosition]
    ReverseIndex:  source -> original line -> original column -> [GeneratedPosition]

The outer level of a `ReverseIndex` is ordered by the position of each source
in the map's `sources` array rather than lexically. Both indexes keep the
declared `sources` list as given, repeats included, so source indexes and
`sourcesContent` stay aligned; a repeated path resolves to its first slot.
"""

from bisect import bisect_left, insort
from collections.abc import Callable, Iterable, Iterator, MutableMapping
from typing import Any, Generic, TypeVar

from .types import GeneratedPosition, OriginalPosition

K = TypeVar("K")
V = TypeVar("V")


class SortedMap(MutableMapping[K, V], Generic[K, V]):
    def __init__(self, items: Iterable[tuple[K, V]] = (), *, key: Callable[[K], Any] | None = None) -> None:
        self._key = key
        self._data: dict[K, V] = {}
        self._keys: list[K] = []
        for k, v in items:
            self[k] = v

    def __getitem__(self, k: K) -> V:
        return self._data[k]

    def __setitem__(self, k: K, v: V) -> None:
        if k not in self._data:
            insort(self._keys, k, key=self._key)
        self._data[k] = v

    def __delitem__(self, k: K) -> None:
        del self._data[k]
        sort_key = self._key(k) if self._key else k
        self._keys.pop(bisect_left(self._keys, sort_key, key=self._key))

    def __iter__(self) -> Iterator[K]:
        return iter(self._keys)

    def __len__(self) -> int:
        return len(self._keys)

    def __repr__(self) -> str:
        body = ", ".join(f"{k!r}: {self._data[k]!r}" for k in self._keys)
        return f"{type(self).__name__}({{{body}}})"


ColumnMap = SortedMap[int, list[Any]]
LineMap = SortedMap[int, ColumnMap]


def _add(lines: SortedMap, line: int, column: int, entry: Any) -> None:
    columns = lines.get(line)
    if columns is None:
        columns = lines[line] = SortedMap()
    columns.setdefault(column, []).append(entry)


class ForwardIndex(SortedMap[int, "SortedMap[int, list[OriginalPosition]]"]):
    """Generated position -> original positions."""

    def __init__(self, sources: Iterable[str] = ()) -> None:
        super().__init__()
        self._sources: list[str] = []
        self._rank: dict[str, int] = {}
        for source in sources:
            self.declare_source(source)

    @property
    def sources(self) -> list[str]:
        return list(self._sources)

    def declare_source(self, source: str) -> None:
        """Append `source` to `sources`, even if it is already there."""

        self._rank.setdefault(source, len(self._sources))
        self._sources.append(source)

    def register_source(self, source: str) -> None:
        if source not in self._rank:
            self.declare_source(source)

    def source_index(self, source: str) -> int:
        return self._rank[source]

    def add(self, line: int, column: int, position: OriginalPosition) -> None:
        self.register_source(position.source)
        _add(self, line, column, position)

    def lookup(self, line: int, column: int) -> list[OriginalPosition]:
        columns = self.get(line)
        if columns is None:
            return []
        return list(columns.get(column, []))

    def entries(self) -> Iterator[tuple[int, int, OriginalPosition]]:
        for line, columns in self.items():
            for column, positions in columns.items():
                for position in positions:
                    yield line, column, position


class ReverseIndex(SortedMap[str, "SortedMap[int, SortedMap[int, list[GeneratedPosition]]]"]):
    """Original position (per source file) -> generated positions."""

    def __init__(self, sources: Iterable[str] = ()) -> None:
        self._sources: list[str] = []
        self._rank: dict[str, int] = {}
        super().__init__(key=self._rank.__getitem__)
        for source in sources:
            self.declare_source(source)

    @property
    def sources(self) -> list[str]:
        return list(self._sources)

    def declare_source(self, source: str) -> None:
        self._rank.setdefault(source, len(self._sources))
        self._sources.append(source)

    def register_source(self, source: str) -> None:
        if source not in self._rank:
            self.declare_source(source)

    def source_index(self, source: str) -> int:
        return self._rank[source]

    def add(self, source: str, line: int, column: int, position: GeneratedPosition) -> None:
        self.register_source(source)
        lines = self.get(source)
        if lines is None:
            lines = self[source] = SortedMap()
        _add(lines, line, column, position)

    def __setitem__(self, source: str, lines: SortedMap) -> None:
        self.register_source(source)
        super().__setitem__(source, lines)

    def lookup(self, source: str, line: int, column: int) -> list[GeneratedPosition]:
        lines = self.get(source)
        if lines is None or line not in lines:
            return []
        return list(lines[line].get(column, []))

    def entries(self) -> Iterator[tuple[str, int, int, GeneratedPosition]]:
        for source, lines in self.items():
            for line, columns in lines.items():
                for column, positions in columns.items():
                    for position in positions:
                        yield source, line, column, position
