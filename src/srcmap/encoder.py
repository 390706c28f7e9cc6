from __future__ import annotations

"""Encoding of position indexes into v3 source maps.

The index is flattened into per-generated-line lists of absolute segments,
which are then delta-encoded line by line. The column slot restarts at 0 on
each line while the source, original line/column and name slots carry over,
matching what the decoder expects.
"""

import time
from collections.abc import Callable, Iterator

from . import vlq
from .index import ForwardIndex, ReverseIndex
from .paths import basename, relativize_path
from .types import Accumulator, EncodeOptions, Segment, SourceMap, WithSource, WithSourceAndName

__all__ = ["EncodeOptions", "NameTable", "encode", "encode_map", "encode_mappings"]


class NameTable:
    """Append-only list of unique names with index lookup."""

    def __init__(self) -> None:
        self._index: dict[str, int] = {}
        self._items: list[str] = []

    def index_for(self, name: str) -> int:
        idx = self._index.get(name)
        if idx is None:
            idx = len(self._items)
            self._index[name] = idx
            self._items.append(name)
        return idx

    @property
    def items(self) -> list[str]:
        return list(self._items)


def _positions(index: ForwardIndex | ReverseIndex) -> Iterator[tuple[int, int, int, int, int, str | None]]:
    """Yield `(generated_line, generated_column, source_idx, line, column, name)`."""

    source_idx = index.source_index

    if isinstance(index, ReverseIndex):
        for source, line, column, generated in index.entries():
            yield generated.line, generated.column, source_idx(source), line, column, generated.name
    else:
        for generated_line, generated_column, original in index.entries():
            yield generated_line, generated_column, source_idx(original.source), original.line, original.column, original.name


def segment_lines(index: ForwardIndex | ReverseIndex, names: NameTable) -> list[list[Segment]]:
    """Bucket every association of `index` by generated line.

    Skipped generated lines are padded with empty lists and each line is
    sorted by generated column.
    """

    lines: list[list[Segment]] = []
    for generated_line, generated_column, source_idx, line, column, name in _positions(index):
        if generated_line >= len(lines):
            lines.extend([] for _ in range(generated_line + 1 - len(lines)))

        segment: Segment
        if name is not None:
            segment = WithSourceAndName(generated_column, source_idx, line, column, names.index_for(name))
        else:
            segment = WithSource(generated_column, source_idx, line, column)
        lines[generated_line].append(segment)

    for segments in lines:
        segments.sort(key=lambda s: s.column)
    return lines


def encode_mappings(lines: list[list[Segment]]) -> str:
    acc = Accumulator()
    encoded_lines: list[str] = []
    for segments in lines:
        acc = acc.next_line()
        encoded: list[str] = []
        for segment in segments:
            acc, delta = acc.delta(segment)
            encoded.append(vlq.encode(delta.fields()))
        encoded_lines.append(",".join(encoded))
    return ";".join(encoded_lines)


def _source_names(
    paths: list[str], options: EncodeOptions, now: Callable[[], float]
) -> list[str]:
    if options.verbatim_sources:
        sources = list(paths)
    elif options.relativizes:
        sources = [relativize_path(p, options) for p in paths]
    else:
        sources = [basename(p) for p in paths]

    if options.source_map_timestamp:
        stamp = int(now() * 1000)
        sources = [f"{s}?rel={stamp}" for s in sources]
    return sources


def encode_map(
    index: ForwardIndex | ReverseIndex,
    options: EncodeOptions | None = None,
    *,
    now: Callable[[], float] = time.time,
) -> SourceMap:
    """Build a v3 `SourceMap` from a forward or reverse index.

    Source indexes follow `index.sources`; names are numbered in the order
    they are first met while walking the index.
    """

    options = options or EncodeOptions()
    names = NameTable()
    lines = segment_lines(index, names)
    preamble: list[list[Segment]] = [[] for _ in range(options.preamble_line_count)]

    return SourceMap(
        file=options.file,
        sources=_source_names(index.sources, options, now),
        names=names.items,
        mappings=encode_mappings(preamble + lines),
        sources_content=list(options.sources_content) if options.sources_content is not None else None,
        line_count=options.lines,
    )


def encode(
    index: ForwardIndex | ReverseIndex,
    options: EncodeOptions | None = None,
    *,
    now: Callable[[], float] = time.time,
) -> str:
    """Like `encode_map()`, returning JSON text (pretty-printed if configured)."""

    options = options or EncodeOptions()
    return encode_map(index, options, now=now).dumps(pretty=options.source_map_pretty_print)
