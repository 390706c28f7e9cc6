from __future__ import annotations

"""Decoding of the v3 `mappings` string into position indexes.

`decode()` builds a forward index (generated -> original) and
`decode_reverse()` a reverse one (original -> generated). Both walk the same
segment stream produced by `iter_segments()`.
"""

from collections.abc import Iterator

from . import vlq
from .errors import FormatError
from .index import ForwardIndex, ReverseIndex
from .types import (
    Accumulator,
    GcolOnly,
    GeneratedPosition,
    OriginalPosition,
    Segment,
    SourceMap,
    WithSourceAndName,
    segment_from_fields,
)


def iter_segments(mappings: str) -> Iterator[tuple[int, Segment]]:
    """Yield `(generated_line, absolute_segment)` for every segment in `mappings`."""

    acc = Accumulator()
    for generated_line, line in enumerate(mappings.split(";")):
        acc = acc.next_line()
        if not line.strip():
            continue

        pieces = line.split(",")
        if not pieces[-1]:
            pieces.pop()
        for text in pieces:
            if not text:
                raise FormatError(f"Empty segment on generated line {generated_line}")
            acc, segment = acc.apply(segment_from_fields(vlq.decode(text)))
            yield generated_line, segment


def _resolve(
    segment: Segment, generated_line: int, sources: list[str | None], names: list[str]
) -> tuple[str, str | None]:
    if isinstance(segment, GcolOnly):
        raise FormatError(
            f"Segment at {generated_line}:{segment.column} has no source position and cannot be resolved"
        )

    if not 0 <= segment.source < len(sources):
        raise FormatError(f"Source index {segment.source} out of range (sources has {len(sources)} entries)")
    source = sources[segment.source] or ""

    name = None
    if isinstance(segment, WithSourceAndName):
        if not 0 <= segment.name < len(names):
            raise FormatError(f"Name index {segment.name} out of range (names has {len(names)} entries)")
        name = names[segment.name]

    return source, name


def decode_mappings(mappings: str, sources: list[str | None], names: list[str]) -> ForwardIndex:
    index = ForwardIndex(s or "" for s in sources)
    for generated_line, segment in iter_segments(mappings):
        source, name = _resolve(segment, generated_line, sources, names)
        index.add(
            generated_line,
            segment.column,
            OriginalPosition(source=source, line=segment.original_line, column=segment.original_column, name=name),
        )
    return index


def decode(source_map: SourceMap) -> ForwardIndex:
    """Decode a source map into a generated -> original index."""

    return decode_mappings(source_map.mappings, source_map.sources, source_map.names)


def decode_reverse(source_map: SourceMap) -> ReverseIndex:
    """Decode a source map into an original -> generated index.

    The outer level keeps the order of `source_map.sources`.
    """

    sources, names = source_map.sources, source_map.names
    index = ReverseIndex(s or "" for s in sources)
    for generated_line, segment in iter_segments(source_map.mappings):
        source, name = _resolve(segment, generated_line, sources, names)
        index.add(
            source,
            segment.original_line,
            segment.original_column,
            GeneratedPosition(line=generated_line, column=segment.column, name=name),
        )
    return index
