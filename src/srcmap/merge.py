from __future__ import annotations

"""Composition of source maps from successive compilation stages.

The first map takes original positions to positions in an intermediate file;
the second takes positions in that intermediate file to the final output.
Original positions whose intermediate position is unknown to the second map
are dropped: the later stage removed that code.
"""

from dataclasses import replace

from .index import LineMap, ReverseIndex, SortedMap
from .types import GeneratedPosition


def merge_lines(first: LineMap, second: LineMap) -> LineMap:
    """Merge the line maps of a single source file.

    Both arguments are `line -> column -> [GeneratedPosition]` maps; `second`
    is keyed by the coordinates that `first` points at.
    """

    merged: LineMap = SortedMap()
    for line, columns in first.items():
        new_columns: SortedMap[int, list[GeneratedPosition]] = SortedMap()
        for column, positions in columns.items():
            spliced: list[GeneratedPosition] = []
            for position in positions:
                for final in _lookup(second, position):
                    if final.name is None and position.name is not None:
                        final = replace(final, name=position.name)
                    spliced.append(final)
            if spliced:
                new_columns[column] = spliced
        if new_columns:
            merged[line] = new_columns
    return merged


def _lookup(lines: LineMap, position: GeneratedPosition) -> list[GeneratedPosition]:
    columns = lines.get(position.line)
    if columns is None:
        return []
    return columns.get(position.column, [])


def merge(first: ReverseIndex, second: ReverseIndex, intermediate: str | None = None) -> ReverseIndex:
    """Merge two reverse indexes into one original -> final index.

    `intermediate` names the source of `second` that `first` was generated
    into. It may be omitted when `second` has exactly one source.
    """

    if intermediate is None:
        if len(second.sources) != 1:
            raise ValueError(
                f"Cannot infer the intermediate file: second map has {len(second.sources)} sources, "
                "pass intermediate= explicitly"
            )
        intermediate = second.sources[0]

    target = second.get(intermediate, SortedMap())
    result = ReverseIndex(first.sources)
    for source, lines in first.items():
        merged = merge_lines(lines, target)
        if merged:
            result[source] = merged
    return result
