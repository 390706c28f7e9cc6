from __future__ import annotations

"""Data model for v3 source maps.

Segments come in three shapes on the wire (1, 4 or 5 fields). They are kept as
distinct frozen dataclasses so the decoder and encoder can dispatch on the
shape instead of checking for missing trailing values.
"""

import json
import struct
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any, Union

from .errors import FormatError


@dataclass(frozen=True)
class GcolOnly:
    column: int

    def fields(self) -> tuple[int, ...]:
        return (self.column,)


@dataclass(frozen=True)
class WithSource:
    column: int
    source: int
    original_line: int
    original_column: int

    def fields(self) -> tuple[int, ...]:
        return (self.column, self.source, self.original_line, self.original_column)


@dataclass(frozen=True)
class WithSourceAndName(WithSource):
    name: int

    def fields(self) -> tuple[int, ...]:
        return (*super().fields(), self.name)


Segment = Union[GcolOnly, WithSource, WithSourceAndName]


def segment_from_fields(values: list[int] | tuple[int, ...]) -> Segment:
    if len(values) == 1:
        return GcolOnly(*values)
    if len(values) == 4:
        return WithSource(*values)
    if len(values) == 5:
        return WithSourceAndName(*values)
    raise FormatError(f"Unsupported segment arity {len(values)}: {list(values)}")


@dataclass(frozen=True)
class Accumulator:
    """Running absolute values while walking a mappings string.

    `column` is per generated line; the other slots carry over from line to
    line and `name` only moves when a segment has a name.
    """

    column: int = 0
    source: int = 0
    original_line: int = 0
    original_column: int = 0
    name: int = 0

    def next_line(self) -> Accumulator:
        return replace(self, column=0)

    def apply(self, delta: Segment) -> tuple[Accumulator, Segment]:
        """Add a wire delta. Returns the new accumulator and the absolute segment."""

        column = self.column + delta.column
        if isinstance(delta, GcolOnly):
            return replace(self, column=column), GcolOnly(column)

        acc = Accumulator(
            column=column,
            source=self.source + delta.source,
            original_line=self.original_line + delta.original_line,
            original_column=self.original_column + delta.original_column,
            name=self.name + delta.name if isinstance(delta, WithSourceAndName) else self.name,
        )
        return acc, acc._segment(named=isinstance(delta, WithSourceAndName))

    def delta(self, segment: Segment) -> tuple[Accumulator, Segment]:
        """Inverse of `apply`: turn an absolute segment into a wire delta."""

        column = segment.column - self.column
        if isinstance(segment, GcolOnly):
            return replace(self, column=segment.column), GcolOnly(column)

        named = isinstance(segment, WithSourceAndName)
        acc = Accumulator(
            column=segment.column,
            source=segment.source,
            original_line=segment.original_line,
            original_column=segment.original_column,
            name=segment.name if named else self.name,
        )
        fields = [column, segment.source - self.source, segment.original_line - self.original_line]
        fields.append(segment.original_column - self.original_column)
        if named:
            fields.append(segment.name - self.name)
        return acc, segment_from_fields(fields)

    def _segment(self, *, named: bool) -> Segment:
        if named:
            return WithSourceAndName(self.column, self.source, self.original_line, self.original_column, self.name)
        return WithSource(self.column, self.source, self.original_line, self.original_column)


@dataclass(frozen=True)
class OriginalPosition:
    """Leaf of a forward index: where a generated position came from."""

    source: str
    line: int
    column: int
    name: str | None = None


@dataclass(frozen=True)
class GeneratedPosition:
    """Leaf of a reverse index: where an original position ended up."""

    line: int
    column: int
    name: str | None = None


def _string_list(obj: dict[str, Any], key: str, *, nullable: bool = False) -> list[Any]:
    value = obj.get(key, [])
    if not isinstance(value, list):
        raise FormatError(f"'{key}' must be a list")
    for item in value:
        if isinstance(item, str) or (nullable and item is None):
            continue
        raise FormatError(f"'{key}' must contain only strings, got {item!r}")
    return value


@dataclass(frozen=True)
class SourceMap:
    """A v3 source map object, as found in a `.map` file.

    A `null` entry in `sources` is kept here; the decoder treats it as "".
    """

    sources: list[str | None]
    names: list[str]
    mappings: str
    file: str | None = None
    source_root: str | None = None
    sources_content: list[str | None] | None = None
    line_count: int | None = None
    version: int = 3

    @classmethod
    def from_dict(cls, obj: Any) -> SourceMap:
        if not isinstance(obj, dict):
            raise FormatError("Source map must be a JSON object")
        if obj.get("version") != 3:
            raise FormatError(f"Unsupported source map version: {obj.get('version')!r}")
        if "sections" in obj:
            raise FormatError("Indexed source maps (with 'sections') are not supported")

        mappings = obj.get("mappings", "")
        if not isinstance(mappings, str):
            raise FormatError("'mappings' must be a string")

        file = obj.get("file")
        source_root = obj.get("sourceRoot")
        for key, value in (("file", file), ("sourceRoot", source_root)):
            if value is not None and not isinstance(value, str):
                raise FormatError(f"'{key}' must be a string")

        sources_content = None
        if obj.get("sourcesContent") is not None:
            sources_content = _string_list(obj, "sourcesContent", nullable=True)

        line_count = obj.get("lineCount")
        if line_count is not None and (not isinstance(line_count, int) or isinstance(line_count, bool)):
            raise FormatError("'lineCount' must be an integer")

        return cls(
            sources=list(_string_list(obj, "sources", nullable=True)),
            names=list(_string_list(obj, "names")),
            mappings=mappings,
            file=file,
            source_root=source_root,
            sources_content=list(sources_content) if sources_content is not None else None,
            line_count=line_count,
        )

    @classmethod
    def loads(cls, text: str | bytes) -> SourceMap:
        try:
            obj = json.loads(text)
        except json.JSONDecodeError as e:
            raise FormatError(f"Source map is not valid JSON: {e}") from e
        return cls.from_dict(obj)

    def to_dict(self) -> dict[str, Any]:
        obj: dict[str, Any] = {"version": self.version, "file": self.file}
        if self.source_root is not None:
            obj["sourceRoot"] = self.source_root
        obj["sources"] = list(self.sources)
        if self.line_count is not None:
            obj["lineCount"] = self.line_count
        obj["mappings"] = self.mappings
        obj["names"] = list(self.names)
        if self.sources_content is not None:
            obj["sourcesContent"] = list(self.sources_content)
        return obj

    def dumps(self, *, pretty: bool = False) -> str:
        if pretty:
            return json.dumps(self.to_dict(), indent=2)
        return json.dumps(self.to_dict(), separators=(",", ":"))


@dataclass(frozen=True)
class StringPointer:
    offset: int
    length: int

    SIZE = 8

    @classmethod
    def from_bytes(cls, data: bytes, offset: int = 0) -> StringPointer:
        return cls(*struct.unpack_from("<II", data, offset))

    def slice(self, data: bytes) -> bytes:
        if self.length == 0:
            return b""
        if self.offset + self.length > len(data):
            raise FormatError(f"String pointer {self.offset}+{self.length} runs past end of data ({len(data)} bytes)")
        return data[self.offset : self.offset + self.length]

    def slice_str(self, data: bytes) -> str:
        return self.slice(data).rstrip(b"\x00").decode("utf-8", errors="replace")


@dataclass(frozen=True)
class SerializedHeader:
    """Header of Bun's compact serialized source map."""

    source_files_count: int
    map_bytes_length: int

    SIZE = 8

    @classmethod
    def from_bytes(cls, data: bytes, offset: int = 0) -> SerializedHeader:
        return cls(*struct.unpack_from("<II", data, offset))


@dataclass(frozen=True)
class EncodeOptions:
    """Settings for `encoder.encode_map()`.

    `output_dir` / `source_map_path` switch on path relativization for
    `sources`; `source_map` is where the map file itself will be written and
    `relpaths` maps each source path to its location under `output_dir`.
    `verbatim_sources` writes the registered paths unchanged.
    """

    file: str | None = None
    output_dir: str | None = None
    source_map_path: str | None = None
    source_map: str | None = None
    relpaths: Mapping[str, str] = field(default_factory=dict)
    preamble_line_count: int = 0
    source_map_timestamp: bool = False
    source_map_pretty_print: bool = False
    sources_content: list[str | None] | None = None
    lines: int | None = None
    verbatim_sources: bool = False

    @property
    def relativizes(self) -> bool:
        return bool(self.output_dir or self.source_map_path)
